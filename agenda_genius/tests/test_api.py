"""
REST API tests with FastAPI's TestClient.

All singletons are replaced through dependency_overrides so every test
starts from an empty session in demo mode with no artificial latency.
"""

import pytest
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.testclient import TestClient

from agenda_genius.config import get_settings
from agenda_genius.agenda.api import router, validation_exception_handler
from agenda_genius.agenda.mode import get_mode_selector
from agenda_genius.agenda.notifications import get_notification_center
from agenda_genius.agenda.session import get_session_controller


@pytest.fixture
def client(settings, session, selector, notifications):
    app = FastAPI()
    app.include_router(router)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_session_controller] = lambda: session
    app.dependency_overrides[get_mode_selector] = lambda: selector
    app.dependency_overrides[get_notification_center] = lambda: notifications
    return TestClient(app)


def upload(client, name="brief.txt", data=b"Launch planning notes", mime="text/plain"):
    return client.post("/api/files", files=[("files", (name, data, mime))])


def messages_of(notifications, kind):
    return [n.message for n in notifications.active() if n.kind.value == kind]


class TestModeEndpoints:

    def test_get_and_toggle(self, client):
        assert client.get("/api/mode").json()["demo_mode"] is True

        response = client.post("/api/mode/toggle")
        assert response.json() == {"demo_mode": False, "mode": "live", "credential_present": False}

        response = client.put("/api/mode", json={"demo_mode": True})
        assert response.json()["mode"] == "demo"


class TestFileEndpoints:

    def test_upload_list_delete(self, client, session):
        response = upload(client)
        assert response.status_code == 200
        info = response.json()["files"][0]
        assert info["name"] == "brief.txt"
        assert info["type"] == "text/plain"
        assert info["size"] == len(b"Launch planning notes")
        assert "content" not in info

        assert client.get("/api/files").json()["count"] == 1
        assert session.files[0].content.startswith("data:text/plain;base64,")

        assert client.delete(f"/api/files/{info['id']}").status_code == 200
        assert client.get("/api/files").json()["count"] == 0

    def test_multiple_files_in_one_batch(self, client):
        response = client.post("/api/files", files=[
            ("files", ("a.txt", b"a", "text/plain")),
            ("files", ("b.pdf", b"%PDF", "application/pdf")),
        ])
        assert response.json()["count"] == 2

    def test_delete_unknown(self, client, notifications):
        assert client.delete("/api/files/nope").status_code == 404
        assert messages_of(notifications, "error") == ["File not found"]

    def test_oversized_upload(self, client, settings, session):
        settings.max_upload_bytes = 4
        assert upload(client, data=b"too large").status_code == 413
        assert session.files == ()


class TestGenerateEndpoint:

    def test_requires_files(self, client, notifications):
        response = client.post("/api/agenda/generate")
        assert response.status_code == 400
        assert response.json()["detail"] == "Please upload at least one file."
        assert messages_of(notifications, "error") == ["Please upload at least one file."]

    def test_demo_generation(self, client, notifications):
        upload(client)
        response = client.post("/api/agenda/generate")

        assert response.status_code == 200
        body = response.json()
        assert body["meetingTitle"] == "Q3 Product Launch Strategy"
        assert len(body["agendaItems"]) == 4
        assert body["totalDurationMinutes"] == 75
        assert body["totalDurationLabel"] == "1h 15m"
        assert body["schedule"][0]["start"] == "09:00"
        assert body["schedule"][-1]["end"] == "10:15"
        assert body["stakeholders"][0]["initials"] == "SC"
        assert messages_of(notifications, "success") == ["Demo agenda generated!"]

    def test_live_without_key(self, client, selector):
        selector.set_demo_mode(False)
        upload(client)
        response = client.post("/api/agenda/generate")
        assert response.status_code == 503
        assert "API Key is missing" in response.json()["detail"]


class TestAgendaEndpoints:

    @pytest.fixture
    def generated(self, client):
        upload(client)
        client.post("/api/agenda/generate")
        return client

    def test_no_agenda(self, client):
        assert client.get("/api/agenda").status_code == 404
        assert client.get("/api/agenda/export/markdown").status_code == 404

    def test_update_item(self, generated, notifications):
        response = generated.put("/api/agenda/items/1", json={
            "id": "2",
            "title": "Marketing Campaign Reveal",
            "description": "Shortened",
            "durationMinutes": 20,
            "presenter": "Emily Blunt",
        })
        assert response.status_code == 200
        body = response.json()
        assert body["agendaItems"][1]["durationMinutes"] == 20
        assert body["totalDurationMinutes"] == 65
        assert body["agendaItems"][0]["title"] == "Review Q2 Development Milestones"
        assert "Agenda item updated" in messages_of(notifications, "success")

    def test_update_item_out_of_range(self, generated):
        response = generated.put("/api/agenda/items/9", json={
            "title": "x", "description": "", "durationMinutes": 5,
        })
        assert response.status_code == 404
        assert len(generated.get("/api/agenda").json()["agendaItems"]) == 4

    def test_update_item_negative_duration(self, generated, notifications):
        response = generated.put("/api/agenda/items/0", json={
            "title": "x", "description": "", "durationMinutes": -5,
        })
        assert response.status_code == 422
        errors = messages_of(notifications, "error")
        assert len(errors) == 1
        assert errors[0].startswith("Invalid request: body.durationMinutes")
        assert generated.get("/api/agenda").json()["agendaItems"][0]["durationMinutes"] == 15

    def test_stakeholders(self, generated, notifications):
        response = generated.post("/api/agenda/stakeholders", json={"name": "Grace Hopper", "role": "Advisor"})
        assert response.json()["stakeholders"][-1] == {"name": "Grace Hopper", "role": "Advisor", "initials": "GH"}

        response = generated.delete("/api/agenda/stakeholders/0")
        names = [s["name"] for s in response.json()["stakeholders"]]
        assert names[0] == "John Smith"
        assert "Stakeholder removed" in messages_of(notifications, "info")

        assert generated.delete("/api/agenda/stakeholders/42").status_code == 404

    def test_export_markdown(self, generated):
        response = generated.get("/api/agenda/export/markdown")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/markdown")
        assert "meeting-agenda.md" in response.headers["content-disposition"]
        assert response.text.startswith("# Q3 Product Launch Strategy")

    def test_export_text(self, generated, notifications):
        response = generated.get("/api/agenda/export/text")
        assert response.text.startswith("Meeting: Q3 Product Launch Strategy\n\nSummary: ")
        assert "Agenda copied to clipboard" in messages_of(notifications, "success")

    def test_clear(self, generated, session):
        response = generated.delete("/api/agenda")
        assert response.json()["message"] == "Ready for new agenda"
        assert session.agenda is None
        assert session.files == ()


class TestMiscEndpoints:

    def test_session_status(self, client):
        upload(client)
        body = client.get("/api/session").json()
        assert body["file_count"] == 1
        assert body["has_agenda"] is False
        assert body["demo_mode"] is True

    def test_chat_messages_empty(self, client):
        assert client.get("/api/chat/messages").json() == {"messages": [], "is_streaming": False}

    def test_notifications_dismiss(self, client, notifications):
        note = notifications.info("hello")
        listed = client.get("/api/notifications").json()["notifications"]
        assert listed[0]["id"] == note.id
        assert listed[0]["type"] == "info"

        assert client.delete(f"/api/notifications/{note.id}").status_code == 200
        assert client.delete(f"/api/notifications/{note.id}").status_code == 404

    def test_notifications_clear(self, client, notifications):
        notifications.info("one")
        notifications.error("two")

        assert client.delete("/api/notifications").json()["success"] is True
        assert client.get("/api/notifications").json()["notifications"] == []
        assert notifications.active() == []

    def test_malformed_mode_update_notifies(self, client, notifications):
        response = client.put("/api/mode", json={"demo_mode": "sometimes"})
        assert response.status_code == 422
        assert "detail" in response.json()
        assert len(messages_of(notifications, "error")) == 1
