"""
Integration tests for events endpoints.
Tests multipart creation, feed pagination, detail, update, similar events
and booking counts through the HTTP API.
"""
import json
import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from tests.factories import FakeUploader, event_fields, insert_event
from devevent.main import app
from devevent.db.session import get_optional_session, get_session
from devevent.db.repositories import get_event_by_slug
from devevent.services.image_uploader import get_image_uploader

IMAGE = {"image": ("banner.png", b"\x89PNG\r\n\x1a\n fake", "image/png")}


def form_fields(**overrides) -> dict:
    fields = event_fields(**overrides)
    fields.pop("image", None)
    return fields


@pytest.mark.integration
@pytest.mark.asyncio
class TestCreateEvent:
    """Test POST /api/v1/events."""

    async def test_create_event_with_repeated_fields(self, client: AsyncClient, uploader: FakeUploader):
        response = await client.post("/api/v1/events", data=form_fields(), files=IMAGE)

        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        assert data["message"] == "Event created successfully"
        event = data["event"]
        assert event["slug"] == "devfest-2024"
        assert event["date"] == "2024-03-05"
        assert event["time"] == "2:30 PM"
        assert event["agenda"] == ["Keynote", "Workshops", "Closing"]
        assert event["tags"] == ["react", "ai"]
        assert event["image"].startswith("https://res.cloudinary.com/")
        assert len(uploader.uploads) == 1

    async def test_create_event_with_json_encoded_arrays(self, client: AsyncClient):
        fields = form_fields(agenda=json.dumps(["Intro", "Demo"]), tags=json.dumps(["python", "web"]))

        response = await client.post("/api/v1/events", data=fields, files=IMAGE)

        assert response.status_code == 201
        assert response.json()["event"]["agenda"] == ["Intro", "Demo"]
        assert response.json()["event"]["tags"] == ["python", "web"]

    async def test_single_plain_value_is_one_item(self, client: AsyncClient):
        response = await client.post("/api/v1/events", data=form_fields(tags="python"), files=IMAGE)

        assert response.status_code == 201
        assert response.json()["event"]["tags"] == ["python"]

    async def test_caller_slug_is_ignored(self, client: AsyncClient):
        response = await client.post("/api/v1/events", data=form_fields(slug="hijacked"), files=IMAGE)

        assert response.status_code == 201
        assert response.json()["event"]["slug"] == "devfest-2024"

    async def test_duplicate_title_conflicts(self, client: AsyncClient):
        first = await client.post("/api/v1/events", data=form_fields(), files=IMAGE)
        second = await client.post("/api/v1/events", data=form_fields(), files=IMAGE)

        assert first.status_code == 201
        assert second.status_code == 409
        assert second.json()["code"] == "DUPLICATE_SLUG"

    async def test_missing_image(self, client: AsyncClient, uploader: FakeUploader):
        response = await client.post("/api/v1/events", data=form_fields())

        assert response.status_code == 400
        assert response.json()["field"] == "image"
        assert uploader.uploads == []

    async def test_invalid_time_is_rejected(self, client: AsyncClient):
        response = await client.post("/api/v1/events", data=form_fields(time="25:00"), files=IMAGE)

        assert response.status_code == 400
        data = response.json()
        assert data["success"] is False
        assert data["code"] == "INVALID_TIME"
        assert data["field"] == "time"

    async def test_invalid_mode_is_rejected(self, client: AsyncClient, uploader: FakeUploader):
        response = await client.post("/api/v1/events", data=form_fields(mode="virtual"), files=IMAGE)

        assert response.status_code == 400
        assert response.json()["field"] == "mode"
        assert uploader.uploads == []

    async def test_upload_failure_creates_nothing(self, client: AsyncClient):
        app.dependency_overrides[get_image_uploader] = lambda: FakeUploader(fail=True)

        response = await client.post("/api/v1/events", data=form_fields(), files=IMAGE)

        assert response.status_code == 500
        data = response.json()
        assert data["message"] == "Event creation failed"
        assert "unreachable" in data["error"]

        listing = await client.get("/api/v1/events")
        assert listing.json()["pagination"]["total"] == 0


@pytest.mark.integration
@pytest.mark.asyncio
class TestEventFeed:
    """Test GET /api/v1/events."""

    async def test_default_page(self, client: AsyncClient, test_events):
        response = await client.get("/api/v1/events")

        assert response.status_code == 200
        data = response.json()
        assert len(data["events"]) == 10
        assert data["events"][0]["title"] == "Event 12"
        assert data["pagination"] == {"page": 1, "limit": 10, "total": 12, "totalPages": 2}

    async def test_second_page(self, client: AsyncClient, test_events):
        response = await client.get("/api/v1/events?page=2&limit=5")

        assert response.status_code == 200
        data = response.json()
        assert [e["title"] for e in data["events"]] == ["Event 7", "Event 6", "Event 5", "Event 4", "Event 3"]
        assert data["pagination"]["totalPages"] == 3

    @pytest.mark.parametrize("query", ["page=0", "limit=101", "limit=0", "page=abc", "limit=1.5"])
    async def test_invalid_pagination(self, client: AsyncClient, query):
        response = await client.get(f"/api/v1/events?{query}")

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_PAGINATION"
        assert "events" not in response.json()


@pytest.mark.integration
@pytest.mark.asyncio
class TestEventDetail:

    async def test_get_event(self, client: AsyncClient, test_event):
        response = await client.get("/api/v1/events/DevFest-2024")

        assert response.status_code == 200
        assert response.json()["event"]["id"] == str(test_event.id)

    async def test_get_missing_event(self, client: AsyncClient):
        response = await client.get("/api/v1/events/missing")

        assert response.status_code == 404
        assert response.json()["code"] == "EVENT_NOT_FOUND"

    async def test_update_event(self, client: AsyncClient, test_event):
        response = await client.patch(
            "/api/v1/events/devfest-2024",
            json={"title": "DevFest 2025", "time": "09:00"},
        )

        assert response.status_code == 200
        event = response.json()["event"]
        assert event["slug"] == "devfest-2025"
        assert event["time"] == "9:00 AM"

    async def test_update_with_invalid_date(self, client: AsyncClient, test_event):
        response = await client.patch("/api/v1/events/devfest-2024", json={"date": "someday"})

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_DATE"


@pytest.mark.integration
@pytest.mark.asyncio
class TestSimilarAndCounts:

    async def test_similar_events(self, client: AsyncClient, db_session, test_event):
        await insert_event(db_session, title="React Summit", tags=["react"])
        await insert_event(db_session, title="Go Day", tags=["go"])

        response = await client.get("/api/v1/events/devfest-2024/similar")

        assert response.status_code == 200
        assert [e["slug"] for e in response.json()["events"]] == ["react-summit"]

    async def test_similar_events_unknown_slug(self, client: AsyncClient):
        response = await client.get("/api/v1/events/missing/similar")

        assert response.status_code == 200
        assert response.json()["events"] == []

    async def test_booking_count_zero(self, client: AsyncClient, test_event):
        response = await client.get("/api/v1/events/devfest-2024/bookings/count")

        assert response.status_code == 200
        assert response.json()["count"] == 0

    async def test_reads_degrade_when_storage_is_down(self, client: AsyncClient):
        async def no_storage():
            yield None

        app.dependency_overrides[get_optional_session] = no_storage

        count = await client.get("/api/v1/events/devfest-2024/bookings/count")
        similar = await client.get("/api/v1/events/devfest-2024/similar")

        assert count.status_code == 200
        assert count.json()["count"] == 0
        assert similar.status_code == 200
        assert similar.json()["events"] == []


@pytest.mark.integration
@pytest.mark.asyncio
class TestLostConnection:
    """A dropped storage connection surfaces as 503 and the next request reconnects."""

    async def test_lost_connection_returns_503_and_reconnects(self, client: AsyncClient, connector, test_event, monkeypatch):
        monkeypatch.setattr("devevent.db.session.connector", connector)
        app.dependency_overrides.pop(get_session, None)
        calls = []

        async def flaky_lookup(db, slug):
            calls.append(slug)
            if len(calls) == 1:
                raise OperationalError("SELECT events", {}, ConnectionError("server closed the connection"))
            return await get_event_by_slug(db, slug)

        monkeypatch.setattr("devevent.services.event_service.db_get_event_by_slug", flaky_lookup)

        response = await client.get("/api/v1/events/devfest-2024")

        assert response.status_code == 503
        assert response.json()["success"] is False
        assert response.json()["code"] == "STORAGE_UNAVAILABLE"
        assert connector.connected is False

        response = await client.get("/api/v1/events/devfest-2024")

        assert response.status_code == 200
        assert response.json()["event"]["id"] == str(test_event.id)
        assert connector.connected is True
