import socket
from collections.abc import AsyncGenerator, Iterator
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal

import email_validator
import jwt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from pydantic import SecretStr
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.core.config import settings
from app.models.base import Base

# Use separate test database
TEST_DATABASE_URL = (
    settings.database_url.rsplit("/", 1)[0] + f"/{settings.database_name}_test"
)

# Security: This is a test-only secret. Production uses a real secret from env.
TEST_AUTH_SECRET = "test-secret-key-that-is-at-least-32-characters-long"  # nosec B105  # gitleaks:allow

TEST_PASSWORD = "correct-horse-battery-staple"  # nosec B105

# Seed and request addresses use the reserved .test domain, which
# email-validator (behind pydantic EmailStr) rejects outside test environments.
email_validator.TEST_ENVIRONMENT = True

# =============================================================================
# Two-tenant seed data
# =============================================================================
# Explicit ids are kept well above the rows tests create through the API,
# which take ids from the table sequences starting at 1.

COMPANY_A_ID = 101
COMPANY_B_ID = 102

ADMIN_A_ID = 1001  # company admin, no project membership
STAFF_A_ID = 1002  # "member" of PROJECT_A_ID
VIEWER_A_ID = 1003  # "viewer" of PROJECT_A_ID
OUTSIDER_A_ID = 1004  # same company, no membership
STAFF_B_ID = 1005  # company B admin

CLIENT_A_ID = 2001  # linked to PROJECT_A_ID
CLIENT_B_ID = 2002  # linked to PROJECT_B_ID

PROJECT_A_ID = 41
PROJECT_B_ID = 42

BOARD_A_ID = 501
BOARD_B_ID = 502

INVOICE_A_ID = 701
INVOICE_B_ID = 702
QUOTE_B_ID = 801


def create_test_jwt(
    subject: int,
    *,
    audience: str | None = None,
    secret: str = TEST_AUTH_SECRET,
    expires_delta: timedelta | None = None,
    iat: datetime | None = None,
) -> str:
    """Create a signed session JWT for test authentication.

    Args:
        subject: Staff user id (or client id with a portal audience).
        audience: Defaults to the staff audience (AUTH_ISSUER).
        secret: Signing secret (must match settings.auth_secret in tests).
        expires_delta: Time until expiration. Defaults to 1 hour.
        iat: Issued-at time. Defaults to now.

    Returns:
        Encoded JWT string.
    """
    now = datetime.now(UTC)
    payload = {
        "sub": str(subject),
        "aud": audience or settings.auth_issuer,
        "iss": settings.auth_issuer,
        "exp": now + (expires_delta or timedelta(hours=1)),
        "iat": iat or now,
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def create_portal_jwt(client_id: int, **kwargs) -> str:
    """Create a signed portal session JWT for a client."""
    return create_test_jwt(client_id, audience=settings.portal_audience, **kwargs)


def _is_postgres_available() -> bool:
    """Check if PostgreSQL is accepting connections.

    Returns:
        True if PostgreSQL is reachable on the configured port, False otherwise.
    """
    try:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.settimeout(1)
        result = sock.connect_ex((settings.database_host, settings.database_port))
        sock.close()
        return result == 0
    except OSError:
        return False


# Check once at module load time
_POSTGRES_AVAILABLE = _is_postgres_available()


def skip_if_no_postgres() -> None:
    """Skip test if PostgreSQL is not available.

    Called by fixtures that require database connection.
    """
    if not _POSTGRES_AVAILABLE:
        pytest.skip(
            f"PostgreSQL not available on port {settings.database_port}. "
            "Start database with: docker compose up -d"
        )


# =============================================================================
# Autouse Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def test_auth_settings() -> Iterator[None]:
    """Sign with the test secret and allow cookies over plain http://test."""
    original_secret = settings.auth_secret
    original_secure = settings.auth_cookie_secure
    settings.auth_secret = SecretStr(TEST_AUTH_SECRET)
    settings.auth_cookie_secure = False

    yield

    settings.auth_secret = original_secret
    settings.auth_cookie_secure = original_secure


@pytest.fixture(autouse=True)
def disable_rate_limiting() -> Iterator[None]:
    """Disable rate limiting during tests.

    Rate limiting is tested separately; disable for other tests to avoid
    flaky failures from rate limit triggers.
    """
    from app.core.rate_limiting import limiter

    original_enabled = limiter.enabled
    limiter.enabled = False

    yield

    limiter.enabled = original_enabled


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def db_engine():
    """Create test database engine with a fresh schema.

    Skips test if PostgreSQL is not available (e.g., Docker not running).
    """
    skip_if_no_postgres()

    engine = create_async_engine(TEST_DATABASE_URL, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def seed_tenants(db_session: AsyncSession) -> None:
    """Insert two companies with staff, clients, projects and billing rows.

    Company A (COMPANY_A_ID):
        ADMIN_A (company admin), STAFF_A (project member), VIEWER_A
        (project viewer), OUTSIDER_A (no membership), CLIENT_A linked to
        PROJECT_A, BOARD_A on PROJECT_A, INVOICE_A for CLIENT_A.
    Company B (COMPANY_B_ID):
        STAFF_B (company admin), CLIENT_B linked to PROJECT_B, BOARD_B on
        PROJECT_B, INVOICE_B and QUOTE_B for CLIENT_B.
    """
    from app.core.auth import hash_secret
    from app.models import (
        Board,
        Client,
        ClientProject,
        Company,
        Invoice,
        InvoiceItem,
        Project,
        ProjectMember,
        Quote,
        User,
    )

    password_hash = hash_secret(TEST_PASSWORD)

    db_session.add_all(
        [
            Company(id=COMPANY_A_ID, name="Acme Studio"),
            Company(id=COMPANY_B_ID, name="Brightside Agency"),
        ]
    )
    await db_session.flush()

    db_session.add_all(
        [
            User(
                id=ADMIN_A_ID,
                email="admin@acme.test",
                name="Ada Admin",
                role="admin",
                company_id=COMPANY_A_ID,
                password_hash=password_hash,
            ),
            User(
                id=STAFF_A_ID,
                email="staff@acme.test",
                name="Sam Staff",
                role="staff",
                company_id=COMPANY_A_ID,
                password_hash=password_hash,
            ),
            User(
                id=VIEWER_A_ID,
                email="viewer@acme.test",
                role="staff",
                company_id=COMPANY_A_ID,
            ),
            User(
                id=OUTSIDER_A_ID,
                email="outsider@acme.test",
                role="staff",
                company_id=COMPANY_A_ID,
            ),
            User(
                id=STAFF_B_ID,
                email="admin@brightside.test",
                role="admin",
                company_id=COMPANY_B_ID,
            ),
            Client(
                id=CLIENT_A_ID,
                company_id=COMPANY_A_ID,
                name="Alpha Corp",
                email="alpha@client.test",
            ),
            Client(
                id=CLIENT_B_ID,
                company_id=COMPANY_B_ID,
                name="Beta Corp",
                email="beta@client.test",
            ),
            Project(id=PROJECT_A_ID, company_id=COMPANY_A_ID, title="Alpha website"),
            Project(id=PROJECT_B_ID, company_id=COMPANY_B_ID, title="Beta rebrand"),
        ]
    )
    await db_session.flush()

    db_session.add_all(
        [
            ProjectMember(project_id=PROJECT_A_ID, user_id=STAFF_A_ID, role="member"),
            ProjectMember(project_id=PROJECT_A_ID, user_id=VIEWER_A_ID, role="viewer"),
            ProjectMember(project_id=PROJECT_B_ID, user_id=STAFF_B_ID, role="admin"),
            ClientProject(project_id=PROJECT_A_ID, client_id=CLIENT_A_ID),
            ClientProject(project_id=PROJECT_B_ID, client_id=CLIENT_B_ID),
            Board(id=BOARD_A_ID, project_id=PROJECT_A_ID, title="To do", position=0),
            Board(id=BOARD_B_ID, project_id=PROJECT_B_ID, title="Backlog", position=0),
            Invoice(
                id=INVOICE_A_ID,
                company_id=COMPANY_A_ID,
                client_id=CLIENT_A_ID,
                invoice_number="A-0001",
                status="sent",
                issue_date=date(2026, 1, 5),
                due_date=date(2026, 2, 4),
                subtotal=Decimal("1000.00"),
                total=Decimal("1000.00"),
                items=[
                    InvoiceItem(
                        description="Discovery workshop",
                        quantity=Decimal("1.00"),
                        unit_price=Decimal("1000.00"),
                        amount=Decimal("1000.00"),
                    )
                ],
            ),
            Invoice(
                id=INVOICE_B_ID,
                company_id=COMPANY_B_ID,
                client_id=CLIENT_B_ID,
                invoice_number="B-0001",
                issue_date=date(2026, 1, 5),
                due_date=date(2026, 2, 4),
                subtotal=Decimal("250.00"),
                total=Decimal("250.00"),
            ),
            Quote(
                id=QUOTE_B_ID,
                company_id=COMPANY_B_ID,
                client_id=CLIENT_B_ID,
                quote_number="BQ-0001",
                issue_date=date(2026, 1, 5),
                expiry_date=date(2026, 2, 4),
                subtotal=Decimal("500.00"),
                total=Decimal("500.00"),
            ),
        ]
    )
    await db_session.commit()


# =============================================================================
# API Test Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def api_app(db_engine, seed_tenants):  # noqa: ARG001 - seed_tenants ensures data
    """The FastAPI app with get_db bound to the test database."""
    from app.core.database import get_db
    from app.main import app

    test_session_factory = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with test_session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    yield app

    app.dependency_overrides.clear()


def _http_client(app, **kwargs) -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test", **kwargs)


@pytest_asyncio.fixture
async def staff_a_client(api_app) -> AsyncGenerator[AsyncClient, None]:
    """Staff member of PROJECT_A (session cookie)."""
    cookies = {settings.auth_cookie_name: create_test_jwt(STAFF_A_ID)}
    async with _http_client(api_app, cookies=cookies) as ac:
        yield ac


@pytest_asyncio.fixture
async def admin_a_client(api_app) -> AsyncGenerator[AsyncClient, None]:
    """Company A admin (session cookie)."""
    cookies = {settings.auth_cookie_name: create_test_jwt(ADMIN_A_ID)}
    async with _http_client(api_app, cookies=cookies) as ac:
        yield ac


@pytest_asyncio.fixture
async def viewer_a_client(api_app) -> AsyncGenerator[AsyncClient, None]:
    """Viewer of PROJECT_A (session cookie)."""
    cookies = {settings.auth_cookie_name: create_test_jwt(VIEWER_A_ID)}
    async with _http_client(api_app, cookies=cookies) as ac:
        yield ac


@pytest_asyncio.fixture
async def portal_a_client(api_app) -> AsyncGenerator[AsyncClient, None]:
    """CLIENT_A (portal cookie)."""
    cookies = {settings.portal_cookie_name: create_portal_jwt(CLIENT_A_ID)}
    async with _http_client(api_app, cookies=cookies) as ac:
        yield ac


@pytest_asyncio.fixture
async def unauthenticated_client(api_app) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client without any session."""
    async with _http_client(api_app) as ac:
        yield ac
