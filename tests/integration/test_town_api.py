"""Integration tests for the Town Chronicle API endpoints.

Tests the full request/response cycle through FastAPI's TestClient with a
temporary SQLite database.  Auth runs in signed-token mode; the
``_auth`` helper mints a token per user.
"""

from __future__ import annotations

import os
import random
import tempfile

import pytest
from fastapi.testclient import TestClient

from town_chronicle.api.auth_utils import create_user_token
from town_chronicle.config.settings import Settings
from town_chronicle.main import create_app
from town_chronicle.providers.town.sqlite_town_provider import SQLiteTownProvider
from town_chronicle.services.town_service import TownService

_SECRET = "integration-secret"


def _auth(user_id: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_user_token(user_id, _SECRET)}"}


@pytest.fixture
def tmp_db():
    tmp = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
    tmp.close()
    yield tmp.name
    os.unlink(tmp.name)


@pytest.fixture
def client(tmp_db, lexicon, rng):
    """A TestClient over a fresh SQLite-backed app."""
    store = SQLiteTownProvider(db_path=tmp_db)
    service = TownService(town_store=store, lexicon=lexicon, rng=rng)
    app = create_app(
        components={"town_store": store, "town_service": service, "lexicon": lexicon},
        app_settings=Settings(_env_file=None, auth_secret=_SECRET),
    )
    with TestClient(app) as c:
        yield c


@pytest.fixture
def town(client) -> dict:
    response = client.post("/api/v1/towns", json={"name": "Willowmere"}, headers=_auth("owner"))
    assert response.status_code == 201
    return response.json()


def _post_story(client, town, content, *, headers=None, location="park", author="Ada", by_share=False):
    ref = {"share_id": town["share_id"]} if by_share else {"town_id": town["town_id"]}
    return client.post(
        "/api/v1/stories",
        json={"author": author, "content": content, "location": location, **ref},
        headers=headers or {},
    )


# ─── Health ───────────────────────────────────────────────────────

class TestHealth:
    def test_health(self, client):
        response = client.get("/api/v1/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["providers"] == {"town_store": "sqlite_town"}


# ─── Towns ────────────────────────────────────────────────────────

class TestTowns:
    def test_create_town(self, town):
        assert town["name"] == "Willowmere"
        assert town["owner_id"] == "owner"
        assert town["motto"] == "A town waiting to be discovered"
        assert town["crest_rarity"] == "common"
        assert town["stats"]["total_stories"] == 0

    def test_create_requires_auth(self, client):
        response = client.post("/api/v1/towns", json={"name": "Nobody's"})
        assert response.status_code == 401
        assert response.json()["error"] == "AuthenticationError"

    def test_create_validates_name(self, client):
        response = client.post("/api/v1/towns", json={"name": ""}, headers=_auth("owner"))
        assert response.status_code == 422

    def test_forged_token(self, client):
        response = client.get("/api/v1/towns/my-towns", headers={"Authorization": "Bearer owner"})
        assert response.status_code == 401

    def test_my_towns(self, client, town):
        client.post("/api/v1/towns", json={"name": "Other"}, headers=_auth("someone"))
        response = client.get("/api/v1/towns/my-towns", headers=_auth("owner"))
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["towns"][0]["town_id"] == town["town_id"]

    def test_shared_town_counts_visitors(self, client, town):
        url = f"/api/v1/towns/share/{town['share_id']}"
        client.get(url)
        response = client.get(url, headers=_auth("visitor"))
        assert response.json()["town"]["stats"]["total_visitors"] == 2
        assert response.json()["is_owner"] is False

        owner_view = client.get(url, headers=_auth("owner")).json()
        assert owner_view["town"]["stats"]["total_visitors"] == 2
        assert owner_view["is_owner"] is True

    def test_shared_town_not_found(self, client):
        response = client.get("/api/v1/towns/share/missing")
        assert response.status_code == 404
        assert response.json() == {"error": "TownNotFoundError", "detail": "Town not found"}

    def test_private_town(self, client, town):
        client.put(f"/api/v1/towns/{town['town_id']}", json={"is_public": False}, headers=_auth("owner"))
        url = f"/api/v1/towns/share/{town['share_id']}"
        assert client.get(url).status_code == 403
        assert client.get(url, headers=_auth("owner")).status_code == 200

    def test_update_town(self, client, town):
        response = client.put(
            f"/api/v1/towns/{town['town_id']}",
            json={"name": "Hollow", "allow_guest_entries": False},
            headers=_auth("owner"),
        )
        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Hollow"
        assert data["allow_guest_entries"] is False
        assert data["is_public"] is True

    def test_update_by_non_owner(self, client, town):
        response = client.put(f"/api/v1/towns/{town['town_id']}", json={"name": "Mine"}, headers=_auth("intruder"))
        assert response.status_code == 403

    def test_delete_town(self, client, town):
        _post_story(client, town, "hello", headers=_auth("owner"))
        response = client.delete(f"/api/v1/towns/{town['town_id']}", headers=_auth("owner"))
        assert response.status_code == 200
        assert client.get(f"/api/v1/towns/share/{town['share_id']}").status_code == 404

    def test_regenerate(self, client, town, lexicon):
        _post_story(client, town, "a festival dance in the garden", headers=_auth("owner"))
        response = client.post(f"/api/v1/towns/{town['town_id']}/regenerate", headers=_auth("owner"))
        assert response.status_code == 200
        legal = {c.pattern for c in lexicon.crests if c.name in ("town", "blossom", "carnival")}
        assert response.json()["crest"] in legal


# ─── Stories ──────────────────────────────────────────────────────

class TestStories:
    def test_owner_story_recomputes_town(self, client, town):
        response = _post_story(client, town, "I love to bake bread", location="bakery", headers=_auth("owner"))

        assert response.status_code == 201
        data = response.json()
        assert data["story"]["themes"] == ["cooking"]
        assert data["story"]["sentiment"] == 1
        assert data["story"]["is_guest"] is False
        assert data["town"]["stats"]["total_stories"] == 1
        assert data["town"]["themes"] == [{"name": "cooking", "count": 1}]

    def test_guest_by_share_id(self, client, town):
        response = _post_story(client, town, "Hello neighbor", by_share=True)
        assert response.status_code == 201
        assert response.json()["story"]["is_guest"] is True
        assert response.json()["story"]["themes"] == ["community"]

    def test_guests_disallowed(self, client, town):
        client.put(f"/api/v1/towns/{town['town_id']}", json={"allow_guest_entries": False}, headers=_auth("owner"))
        assert _post_story(client, town, "knock knock").status_code == 403
        assert _post_story(client, town, "knock knock", headers=_auth("neighbor")).status_code == 403
        assert _post_story(client, town, "my own town", headers=_auth("owner")).status_code == 201

    def test_requires_town_reference(self, client):
        response = client.post("/api/v1/stories", json={"author": "A", "content": "B", "location": "park"})
        assert response.status_code == 422

    def test_bad_location(self, client, town):
        assert _post_story(client, town, "somewhere", location="moon").status_code == 422

    def test_blank_content_after_trim(self, client, town):
        response = _post_story(client, town, "     ")
        assert response.status_code == 400
        assert response.json()["error"] == "InvalidInputError"

    def test_location_listing_newest_first(self, client, town):
        first = _post_story(client, town, "first", location="library").json()["story"]
        second = _post_story(client, town, "second", location="library").json()["story"]
        _post_story(client, town, "elsewhere", location="park")

        response = client.get(f"/api/v1/stories/town/{town['town_id']}/location/library")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert [s["story_id"] for s in data["stories"]] == [second["story_id"], first["story_id"]]

    def test_location_listing_private(self, client, town):
        client.put(f"/api/v1/towns/{town['town_id']}", json={"is_public": False}, headers=_auth("owner"))
        url = f"/api/v1/stories/town/{town['town_id']}/location/park"
        assert client.get(url).status_code == 403
        assert client.get(url, headers=_auth("owner")).status_code == 200

    def test_delete_last_story_resets_town(self, client, town, lexicon):
        story = _post_story(client, town, "A secret garden of wonder", headers=_auth("owner")).json()["story"]

        response = client.delete(f"/api/v1/stories/{story['story_id']}", headers=_auth("owner"))

        assert response.status_code == 200
        refreshed = response.json()["town"]
        assert refreshed["stats"]["total_stories"] == 0
        assert refreshed["themes"] == []
        assert refreshed["crest"] == lexicon.default_crest.pattern
        assert refreshed["motto"] == "A town waiting to be discovered"

    def test_delete_story_by_author_who_is_not_owner(self, client, town):
        story = _post_story(client, town, "mine", headers=_auth("neighbor")).json()["story"]
        response = client.delete(f"/api/v1/stories/{story['story_id']}", headers=_auth("neighbor"))
        assert response.status_code == 403

    def test_delete_missing_story(self, client):
        response = client.delete("/api/v1/stories/missing", headers=_auth("owner"))
        assert response.status_code == 404
        assert response.json()["error"] == "StoryNotFoundError"

    def test_joyful_motto(self, client, town, lexicon):
        data = _post_story(client, town, "happy joy love wonderful").json()
        assert data["town"]["motto"] in lexicon.joyful_mottos


# ─── Crest Rarity ─────────────────────────────────────────────────

class _LastSlotRandom(random.Random):
    """Always draws the final entry, i.e. the rarest unlocked crest."""

    def choice(self, seq):  # noqa: ANN001, ANN201
        return seq[-1]


class TestCrestRarity:
    @pytest.fixture
    def rare_client(self, tmp_db, lexicon):
        store = SQLiteTownProvider(db_path=tmp_db)
        service = TownService(town_store=store, lexicon=lexicon, rng=_LastSlotRandom())
        app = create_app(
            components={"town_store": store, "town_service": service, "lexicon": lexicon},
            app_settings=Settings(_env_file=None, auth_secret=_SECRET),
        )
        with TestClient(app) as c:
            yield c

    def test_rare_crest_reported(self, rare_client, lexicon):
        created = rare_client.post("/api/v1/towns", json={"name": "Carnivale"}, headers=_auth("owner")).json()
        carnival = next(c for c in lexicon.crests if c.name == "carnival")

        data = _post_story(rare_client, created, "a festival", headers=_auth("owner")).json()

        assert data["town"]["crest"] == carnival.pattern
        assert data["town"]["crest_rarity"] == "rare"

        shared = rare_client.get(f"/api/v1/towns/share/{created['share_id']}").json()
        assert shared["town"]["crest_rarity"] == "rare"

    def test_legendary_crest_reported(self, rare_client, lexicon):
        created = rare_client.post("/api/v1/towns", json={"name": "Gloam"}, headers=_auth("owner")).json()
        arcane = next(c for c in lexicon.crests if c.name == "arcane")

        for _ in range(5):
            data = _post_story(rare_client, created, "a hidden puzzle", headers=_auth("owner")).json()

        assert data["town"]["crest"] == arcane.pattern
        assert data["town"]["crest_rarity"] == "legendary"
