import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.core.security import issue_actor_token
from app.database import get_db
from app.main import create_application


@pytest_asyncio.fixture
async def client(session_factory):
    app = create_application(run_background_tasks=False)

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def auth_headers():
    def _auth_headers(user) -> dict[str, str]:
        return {"Authorization": f"Bearer {issue_actor_token(user.id, user.role)}"}

    return _auth_headers


@pytest_asyncio.fixture
async def admin(make_user):
    return await make_user("admin")


@pytest.fixture
def staff_headers(staff, auth_headers):
    return auth_headers(staff)


@pytest.fixture
def admin_headers(admin, auth_headers):
    return auth_headers(admin)


@pytest.fixture
def guest_headers(guest, auth_headers):
    return auth_headers(guest)
