"""HTTP surface over the matching engine."""

from types import SimpleNamespace

import httpx
import pytest
import pytest_asyncio
from fastapi import Request

from app.api.matching import get_matching_engine
from app.core.errors import TransientError
from app.main import app
from app.utils.deps import get_current_user


async def _user_from_header(request: Request):
    return SimpleNamespace(id=int(request.headers["X-User"]))


@pytest_asyncio.fixture
async def client(engine):
    app.dependency_overrides[get_matching_engine] = lambda: engine
    app.dependency_overrides[get_current_user] = _user_from_header
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


def as_user(user_id: int) -> dict:
    return {"X-User": str(user_id)}


class TestMatchingRoutes:
    @pytest.mark.asyncio
    async def test_like_bot_then_reject(self, client, make_human, make_bot):
        a = await make_human()
        bot = await make_bot()

        r = await client.post("/users/like", json={"target_user_id": bot}, headers=as_user(a))
        assert r.status_code == 200
        body = r.json()
        assert body["success"] is True
        assert body["data"]["is_match"] is True
        chat_id = body["data"]["chat_id"]
        assert chat_id is not None

        r = await client.post("/users/reject", json={"target_user_id": bot}, headers=as_user(a))
        assert r.status_code == 200
        assert r.json()["data"] == {"target_user_id": bot, "target_type": "bot"}

        r = await client.get("/users/matches", params={"filter": "match"}, headers=as_user(a))
        data = r.json()["data"]
        assert data["matches"] == []
        assert data["pagination"]["total_items"] == 0

    @pytest.mark.asyncio
    async def test_duplicate_like_is_409_with_reason(self, client, make_human):
        a = await make_human()
        c = await make_human()
        await client.post("/users/like", json={"target_user_id": c}, headers=as_user(a))

        r = await client.post("/users/like", json={"target_user_id": c}, headers=as_user(a))

        assert r.status_code == 409
        assert r.json() == {"success": False, "message": "You have already liked this user."}

    @pytest.mark.asyncio
    async def test_self_like_is_400_and_unknown_target_404(self, client, make_human):
        a = await make_human()
        r = await client.post("/users/like", json={"target_user_id": a}, headers=as_user(a))
        assert r.status_code == 400
        r = await client.post("/users/like", json={"target_user_id": 777}, headers=as_user(a))
        assert r.status_code == 404

    @pytest.mark.asyncio
    async def test_malformed_body_is_rejected(self, client, make_human):
        a = await make_human()
        r = await client.post("/users/like", json={"target_user_id": "abc"}, headers=as_user(a))
        assert r.status_code == 422

    @pytest.mark.asyncio
    async def test_like_listing(self, client, make_human):
        a = await make_human()
        c = await make_human()
        await client.post("/users/like", json={"target_user_id": c}, headers=as_user(a))

        r = await client.get("/users/matches", params={"filter": "like"}, headers=as_user(a))
        matches = r.json()["data"]["matches"]
        assert [m["user"]["id"] for m in matches] == [c]
        assert matches[0]["chat_id"] is None

        r = await client.get("/users/matches", params={"filter": "like"}, headers=as_user(c))
        assert r.json()["data"]["matches"] == []

    @pytest.mark.asyncio
    async def test_match_route(self, client, make_human, make_bot):
        a = await make_human()
        bot = await make_bot()
        r = await client.post("/users/match", json={"target_user_id": bot}, headers=as_user(a))
        assert r.json()["data"]["is_new_match"] is True
        r = await client.post("/users/match", json={"target_user_id": bot}, headers=as_user(a))
        assert r.json()["data"]["is_new_match"] is False

    @pytest.mark.asyncio
    async def test_block_cycle(self, client, make_human, make_bot):
        a = await make_human()
        bot = await make_bot()

        r = await client.post("/users/block", json={"target_user_id": bot}, headers=as_user(a))
        assert r.json()["data"]["blocked"] is True

        r = await client.get(f"/users/block/{bot}", headers=as_user(a))
        assert r.json()["data"] == {"target_user_id": bot, "blocked": True}

        r = await client.get("/users/blocks", headers=as_user(a))
        assert [b["user_id"] for b in r.json()["data"]["blocked"]] == [bot]

        r = await client.delete(f"/users/block/{bot}", headers=as_user(a))
        assert r.json()["data"]["blocked"] is False

    @pytest.mark.asyncio
    async def test_server_errors_are_opaque(self, client, engine, make_human, monkeypatch):
        a = await make_human()

        async def boom(*args, **kwargs):
            raise TransientError("lock timeout on user_interactions")

        monkeypatch.setattr(engine, "like", boom)
        r = await client.post("/users/like", json={"target_user_id": 5}, headers=as_user(a))

        assert r.status_code == 503
        assert r.headers["Retry-After"] == "1"
        assert "user_interactions" not in r.json()["message"]
