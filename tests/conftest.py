"""
Pytest Configuration and Fixtures

Provides fixtures for:
- Database sessions (async, in-memory SQLite)
- An in-memory Redis stand-in for the dashboard cache
- Test data factories (profiles, drivers, rides, QR codes)
"""
import asyncio
import itertools
from datetime import datetime, timedelta
from decimal import Decimal
from typing import AsyncGenerator
from unittest.mock import patch

import pytest
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from thdrive.db.database import Base, get_db
from thdrive.db.models.profile import Profile, ProfileRole
from thdrive.db.models.driver_details import DriverDetails
from thdrive.db.models.ride import Ride, RideStatus, PaymentMethod
from thdrive.db.models.qr_code import QRCode
from thdrive.domain.services.payment_gateway import reset_payment_gateway
from thdrive.domain.services.wallet_service import WalletService
from thdrive.main import app


# Test database URL (SQLite in memory for fast tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# No custom event_loop fixture: pytest-asyncio handles it with asyncio_mode=auto


@pytest.fixture(scope="function")
async def async_engine():
    """Create async test database engine"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture(scope="function")
def session_maker(async_engine):
    return async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False
    )


@pytest.fixture(scope="function")
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Create async database session for tests"""
    async with session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture(scope="function")
async def test_client(db_session: AsyncSession):
    """Create test client with database override"""
    from httpx import AsyncClient, ASGITransport

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def file_session_maker(tmp_path):
    """
    Sessions on a file-backed SQLite database.

    Each session checks out its own connection, so two settlements really
    interleave and SQLite's write lock arbitrates their UPDATEs.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'settlements.db'}",
        connect_args={"timeout": 15},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def debit_barrier(monkeypatch):
    """
    Hold every wallet debit until `parties` settlements have reached it,
    then release them together.

    By then every held settlement has already read the driver's rows.
    """
    class _DebitBarrier:
        def __init__(self, parties: int = 2) -> None:
            self.parties = parties
            self.arrived = 0
            self._released = asyncio.Event()

        async def wait(self) -> None:
            self.arrived += 1
            if self.arrived >= self.parties:
                self._released.set()
            await asyncio.wait_for(self._released.wait(), timeout=5)

    barrier = _DebitBarrier()
    debit = WalletService.debit_if_sufficient

    async def _held_debit(self, user_id, amount):
        await barrier.wait()
        return await debit(self, user_id, amount)

    monkeypatch.setattr(WalletService, "debit_if_sufficient", _held_debit)
    return barrier


@pytest.fixture
def file_driver(file_session_maker):
    """Create a driver with a driver_details row in the file-backed database; returns its id"""
    async def _create(wallet_balance: Decimal | str = Decimal("0.00")) -> int:
        async with file_session_maker() as session:
            driver = Profile(
                email=f"driver{next(_email_counter)}@thdrive.test",
                full_name="Racing Driver",
                role=ProfileRole.DRIVER,
                wallet_balance=Decimal(str(wallet_balance)),
            )
            session.add(driver)
            await session.flush()
            session.add(DriverDetails(
                user_id=driver.id,
                vehicle_make="Toyota",
                vehicle_model="Corolla",
                vehicle_plate="TH-5678",
                is_verified=True,
                earnings_balance=Decimal("0.00"),
                total_earnings=Decimal("0.00"),
                pending_penalties=Decimal("0.00"),
            ))
            await session.commit()
            return driver.id

    return _create


# ============================================================================
# Test Data Factories
# ============================================================================

_email_counter = itertools.count(1)


@pytest.fixture
def profile_factory(db_session: AsyncSession):
    """Factory for creating test profiles"""
    async def _create_profile(
        role: ProfileRole = ProfileRole.USER,
        wallet_balance: Decimal | str | float = Decimal("0.00"),
        email: str | None = None,
        full_name: str = "Test Rider",
    ) -> Profile:
        profile = Profile(
            email=email or f"user{next(_email_counter)}@thdrive.test",
            full_name=full_name,
            role=role,
            wallet_balance=Decimal(str(wallet_balance)),
        )
        db_session.add(profile)
        await db_session.commit()
        await db_session.refresh(profile)
        return profile

    return _create_profile


@pytest.fixture
def driver_factory(db_session: AsyncSession, profile_factory):
    """Factory for driver profiles with their driver_details row"""
    async def _create_driver(
        wallet_balance: Decimal | str | float = Decimal("0.00"),
        earnings_balance: Decimal | str | float = Decimal("0.00"),
        pending_penalties: Decimal | str | float = Decimal("0.00"),
        penalty_deadline: datetime | None = None,
        with_details: bool = True,
    ) -> Profile:
        driver = await profile_factory(
            role=ProfileRole.DRIVER,
            wallet_balance=wallet_balance,
            full_name="Test Driver",
        )
        if with_details:
            details = DriverDetails(
                user_id=driver.id,
                vehicle_make="Toyota",
                vehicle_model="Corolla",
                vehicle_plate="TH-1234",
                is_verified=True,
                earnings_balance=Decimal(str(earnings_balance)),
                total_earnings=Decimal(str(earnings_balance)),
                pending_penalties=Decimal(str(pending_penalties)),
                penalty_deadline=penalty_deadline,
            )
            db_session.add(details)
            await db_session.commit()
        return driver

    return _create_driver


@pytest.fixture
def ride_factory(db_session: AsyncSession):
    """Factory for creating test rides"""
    async def _create_ride(
        rider_id: int,
        driver_id: int | None = None,
        fare: Decimal | str | float = Decimal("40.00"),
        status: RideStatus = RideStatus.COMPLETED,
        payment_method: PaymentMethod | None = None,
    ) -> Ride:
        ride = Ride(
            user_id=rider_id,
            driver_id=driver_id,
            status=status,
            pickup_address="Tahrir Square",
            dropoff_address="Zamalek",
            fare=Decimal(str(fare)),
            payment_method=payment_method,
        )
        db_session.add(ride)
        await db_session.commit()
        await db_session.refresh(ride)
        return ride

    return _create_ride


@pytest.fixture
def qr_code_factory(db_session: AsyncSession):
    """Factory for QR payment codes; negative expires_in creates an expired code"""
    async def _create_qr_code(
        rider_id: int,
        ride_id: int,
        amount: Decimal | str | float = Decimal("40.00"),
        expires_in: int = 300,
        is_used: bool = False,
        code: str | None = None,
    ) -> QRCode:
        now = datetime.utcnow()
        qr_code = QRCode(
            code=code or f"THDRIVE-{ride_id}-{next(_email_counter)}",
            user_id=rider_id,
            ride_id=ride_id,
            amount=Decimal(str(amount)),
            is_used=is_used,
            used_at=now if is_used else None,
            expires_at=now + timedelta(seconds=expires_in),
        )
        db_session.add(qr_code)
        await db_session.commit()
        await db_session.refresh(qr_code)
        return qr_code

    return _create_qr_code


@pytest.fixture
async def rider(profile_factory) -> Profile:
    """A rider with 100.00 in the wallet"""
    return await profile_factory(wallet_balance=Decimal("100.00"))


@pytest.fixture
async def driver(driver_factory) -> Profile:
    """A driver with an empty wallet and a driver_details row"""
    return await driver_factory()


# ============================================================================
# External collaborators
# ============================================================================

@pytest.fixture(autouse=True)
def reset_gateway():
    """Fresh payment gateway instance per test"""
    reset_payment_gateway()
    yield
    reset_payment_gateway()


class FakeRedis:
    """In-memory Redis stand-in with a compatible interface and TTL tracking."""

    def __init__(self) -> None:
        self._store: dict[str, str] = {}
        self._ttls: dict[str, int] = {}

    async def ping(self) -> bool:
        return True

    async def get(self, key: str) -> str | None:
        return self._store.get(key)

    async def set(self, key: str, value: str, nx: bool = False, ex: int | None = None) -> bool | None:
        """SET with NX (only if absent) and EX (expiry in seconds)"""
        if nx and key in self._store:
            return None
        self._store[key] = value
        if ex is not None:
            self._ttls[key] = ex
        return True

    async def delete(self, *keys: str) -> int:
        deleted = 0
        for key in keys:
            if self._store.pop(key, None) is not None:
                deleted += 1
            self._ttls.pop(key, None)
        return deleted

    async def aclose(self) -> None:
        self._store.clear()
        self._ttls.clear()


@pytest.fixture(autouse=True)
def fake_redis():
    """Replace get_redis with FakeRedis for every test."""
    _fake = FakeRedis()

    async def _get_fake_redis():
        return _fake

    with patch("thdrive.core.redis_client.get_redis", _get_fake_redis):
        yield _fake
