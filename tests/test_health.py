import pytest
from httpx import ASGITransport, AsyncClient

from grokdb.database import Store
from grokdb.main import create_app


@pytest.mark.asyncio
async def test_health_check(store: Store) -> None:
    app = create_app()
    app.state.store = store
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
