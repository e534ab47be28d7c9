import pytest
from fastapi.testclient import TestClient

import campus_bot.api.chat as chat_api
import campus_bot.api.state as state_api
from campus_bot.main import app


@pytest.fixture
def client(monkeypatch, flow) -> TestClient:
    monkeypatch.setattr(chat_api, "flow_controller", flow)
    monkeypatch.setattr(state_api, "flow_controller", flow)
    return TestClient(app)


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_chat_turn_returns_every_message(client):
    r = client.post("/chat", json={"session_id": "web-1", "user_message": "I need a letter"})
    assert r.status_code == 200
    assert r.json()["assistant_message"] == "Please enter your student ID?"

    r = client.post("/chat", json={"session_id": "web-1", "user_message": "12345"})
    body = r.json()
    assert body["messages"] == [
        {"text": "What type of letter do you want?", "suggested_replies": ["Bank Letter", "Student status Letter"]}
    ]


def test_joined_text_for_multiple_messages(client):
    r = client.post("/chat", json={"session_id": "web-2", "user_message": "office hours"})
    body = r.json()
    assert len(body["messages"]) == 2
    assert body["assistant_message"] == "\n\n".join(m["text"] for m in body["messages"])


def test_state_endpoint_exposes_the_stack(client):
    client.post("/chat", json={"session_id": "web-3", "user_message": "book appointment with Dr. Smith"})

    snapshot = client.get("/state/web-3").json()
    assert snapshot["idle"] is False
    assert snapshot["turn_count"] == 1
    assert [f["dialog"] for f in snapshot["stack"]] == ["main", "appointment"]
    assert snapshot["stack"][1]["options"]["professor"] == "Dr. Smith"
    assert snapshot["stack"][1]["options"]["purpose"] is None


def test_state_endpoint_for_unknown_session(client):
    snapshot = client.get("/state/nobody").json()
    assert snapshot == {"session_id": "nobody", "idle": True, "stack": [], "turn_count": 0}


def test_chat_rejects_missing_fields(client):
    assert client.post("/chat", json={"session_id": "x"}).status_code == 422
