import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("REAPER_ENABLED", "false")
os.environ.setdefault("ADMISSION_QUEUE_ENABLED", "false")

from datetime import timedelta
from decimal import Decimal
from typing import AsyncGenerator, Dict, Generator, Iterable, List, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from permit_office.auth.models import User, UserParkAssignment
from permit_office.auth.security import create_access_token, hash_password, token_claims
from permit_office.core.models import Application, Park, Permit
from permit_office.core.time_utils import today, utcnow
from permit_office.db.session import Base, get_db
from permit_office.main import app
from permit_office.notifications.service import get_notifier


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "StrongPass123"


class RecordingNotifier:
    """Stands in for the real notifier; keeps every notice it was asked to send."""

    def __init__(self) -> None:
        self.approvals: List[object] = []
        self.disapprovals: List[object] = []

    async def send_approval(self, notice) -> bool:
        self.approvals.append(notice)
        return True

    async def send_disapproval(self, notice) -> Dict[str, bool]:
        self.disapprovals.append(notice)
        return {}


@pytest.fixture()
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh in-memory database per test, shared by the test and the app through one connection."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:

        async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
            yield session

        app.dependency_overrides[get_db] = override_get_db
        yield session

    app.dependency_overrides.pop(get_db, None)
    await engine.dispose()


@pytest.fixture()
def notifier() -> Generator[RecordingNotifier, None, None]:
    recorder = RecordingNotifier()
    app.dependency_overrides[get_notifier] = lambda: recorder
    yield recorder
    app.dependency_overrides.pop(get_notifier, None)


@pytest.fixture()
async def client(db_session: AsyncSession, notifier: RecordingNotifier) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


async def create_user(
    db: AsyncSession,
    username: str,
    role: str = "staff",
    park_ids: Iterable[int] = (),
) -> User:
    user = User(
        username=username,
        password_hash=hash_password(TEST_PASSWORD),
        name=username.title(),
        email=f"{username}@example.com",
        role=role,
    )
    db.add(user)
    await db.flush()
    for park_id in park_ids:
        db.add(UserParkAssignment(user_id=user.id, park_id=park_id))
    await db.commit()
    await db.refresh(user)
    return user


def auth_headers(user: User) -> Dict[str, str]:
    token = create_access_token(subject=token_claims(user.id, user.role))
    return {"Authorization": f"Bearer {token}"}


async def create_park(db: AsyncSession, name: str = "Riverside Park") -> Park:
    park = Park(name=name, location="Salt Lake City, UT", locations=["Pavilion"], status="active")
    db.add(park)
    await db.commit()
    await db.refresh(park)
    return park


async def create_permit(db: AsyncSession, park: Park, number: str, status: str = "pending") -> Permit:
    permit = Permit(
        permit_number=number,
        permit_type="Special Use",
        park_id=park.id,
        location="Pavilion",
        permittee_name="Pat Doe",
        permittee_email="pat@example.com",
        activity="Wedding",
        start_date=today(),
        end_date=today() + timedelta(days=1),
        status=status,
        permit_fee=Decimal("35.00"),
    )
    db.add(permit)
    await db.commit()
    await db.refresh(permit)
    return permit


async def create_application(
    db: AsyncSession,
    park: Park,
    number: str,
    status: str = "pending",
    permit_fee: Optional[Decimal] = Decimal("35.00"),
    is_paid: bool = False,
    email: Optional[str] = "applicant@example.com",
    phone: Optional[str] = "+18015550100",
    age_hours: float = 0,
) -> Application:
    application = Application(
        application_number=number,
        park_id=park.id,
        first_name="Alex",
        last_name="Rivera",
        email=email,
        phone=phone,
        event_title="Summer Picnic",
        status=status,
        permit_fee=permit_fee,
        is_paid=is_paid,
        created_at=utcnow() - timedelta(hours=age_hours),
    )
    db.add(application)
    await db.commit()
    await db.refresh(application)
    return application
