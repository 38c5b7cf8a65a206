"""
Tests des endpoints /chat. On MOCK le service de chat externe.
"""

import threading
from unittest.mock import patch

import pytest

from app.core.errors import UpstreamError
from app.schemas.chat import ChatAnswer, ChatMetadata
from app.services.chat_session import ChatSession, Failed, Idle, Loaded
from fakes import make_response
from datetime import datetime, timezone


def fake_answer(text="Do the report first."):
    return ChatAnswer(
        answer=text,
        metadata=ChatMetadata(model="dify", usage=None, timestamp=datetime.now(timezone.utc))
    )


# ========== POST /chat ==========
def test_chat_success(client, chat_env):
    with patch("app.services.chat_service.requests.post") as mock_post:
        mock_post.return_value = make_response(200, {"answer": "Hello!", "metadata": {"usage": {"total_tokens": 7}}})
        response = client.post("/chat", json={"message": "Hi"})

    assert response.status_code == 200
    data = response.json()
    assert data["answer"] == "Hello!"
    assert data["metadata"]["model"] == "dify"
    assert data["metadata"]["usage"] == {"total_tokens": 7}
    assert "timestamp" in data["metadata"]


def test_chat_with_tasks_context(client, chat_env):
    task = {"id": 1, "title": "Buy milk", "createdAt": "2025-05-01T00:00:00Z"}
    with patch("app.services.chat_service.requests.post") as mock_post:
        mock_post.return_value = make_response(200, {"answer": "ok"})
        response = client.post("/chat", json={"message": "Hi", "tasks": [task]})

    assert response.status_code == 200
    assert "Buy milk" in mock_post.call_args.kwargs["json"]["inputs"]["tasks"]


def test_chat_empty_message(client, chat_env):
    with patch("app.services.chat_service.requests.post") as mock_post:
        response = client.post("/chat", json={"message": ""})

    assert response.status_code == 400
    assert "error" in response.json()
    assert "timestamp" in response.json()
    mock_post.assert_not_called()


def test_chat_not_configured(client):
    response = client.post("/chat", json={"message": "Hi"})
    assert response.status_code == 500
    assert "not configured" in response.json()["error"]


def test_chat_upstream_error(client, chat_env):
    with patch("app.services.chat_service.requests.post") as mock_post:
        mock_post.return_value = make_response(401, {"message": "Access token is invalid"}, reason="Unauthorized")
        response = client.post("/chat", json={"message": "Hi"})

    assert response.status_code == 500
    assert response.json()["error"] == "Access token is invalid"


def test_chat_timeout_is_504(client, chat_env):
    import requests
    with patch("app.services.chat_service.requests.post") as mock_post:
        mock_post.side_effect = requests.ConnectTimeout("timed out")
        response = client.post("/chat", json={"message": "Hi"})

    assert response.status_code == 504
    assert "error" in response.json()


# ========== /chat/messages ==========
def test_transcript_starts_idle(client):
    data = client.get("/chat/messages").json()
    assert data == {"state": "idle", "reason": None, "messages": []}


def test_send_appends_both_messages(client):
    client.post("/tasks", json={"title": "Buy milk"})

    with patch("app.services.chat_service.ask", return_value=fake_answer()) as mock_ask:
        response = client.post("/chat/messages", json={"message": "What first?"})

    assert response.status_code == 200
    data = response.json()
    assert data["state"] == "loaded"
    assert data["messages"] == [
        {"role": "user", "content": "What first?"},
        {"role": "assistant", "content": "Do the report first."},
    ]
    sent_tasks = mock_ask.call_args.args[1]
    assert [t.title for t in sent_tasks] == ["Buy milk"]


def test_send_failure_appends_error_message(client):
    with patch("app.services.chat_service.ask", side_effect=UpstreamError("Service Unavailable")):
        response = client.post("/chat/messages", json={"message": "Hello"})

    assert response.status_code == 200
    data = response.json()
    assert data["state"] == "failed"
    assert data["reason"] == "Service Unavailable"
    assert data["messages"][-1] == {"role": "assistant", "content": "An error occurred: Service Unavailable"}


def test_send_empty_message(client):
    response = client.post("/chat/messages", json={"message": "  "})
    assert response.status_code == 400
    assert client.get("/chat/messages").json()["messages"] == []


def test_clear_transcript(client):
    with patch("app.services.chat_service.ask", return_value=fake_answer()):
        client.post("/chat/messages", json={"message": "Hello"})

    response = client.delete("/chat/messages")

    assert response.json() == {"state": "idle", "reason": None, "messages": []}


def test_logout_clears_transcript(client):
    token = client.post("/session/login", json={"email": "test@example.com"}).json()["access_token"]
    headers = {"Authorization": f"Bearer {token}"}
    with patch("app.services.chat_service.ask", return_value=fake_answer()):
        client.post("/chat/messages", headers=headers, json={"message": "Hello"})

    client.post("/session/logout", headers=headers)

    assert client.get("/chat/messages", headers=headers).json()["messages"] == []


# ========== ChatSession ==========
def test_session_state_transitions():
    session = ChatSession()
    assert session.state == Idle()

    session.send("Hello", ask=lambda message, tasks, user: fake_answer("Hi"))
    assert session.state == Loaded()

    def failing(message, tasks, user):
        raise UpstreamError("boom")

    session.send("Again", ask=failing)
    assert session.state == Failed(reason="boom")
    assert [m.role for m in session.messages] == ["user", "assistant", "user", "assistant"]


def test_session_rejects_overlapping_send():
    from app.core.errors import ChatBusyError

    session = ChatSession()
    started = threading.Event()
    release = threading.Event()

    def slow_ask(message, tasks, user):
        started.set()
        release.wait(5)
        return fake_answer("done")

    worker = threading.Thread(target=session.send, args=("first",), kwargs={"ask": slow_ask})
    worker.start()
    started.wait(5)
    assert session.transcript().state == "loading"

    with pytest.raises(ChatBusyError):
        session.send("second", ask=slow_ask)

    release.set()
    worker.join(5)
    assert [m.content for m in session.messages] == ["first", "done"]


# ========== réponses amont inattendues ==========
def test_chat_odd_usage_still_json(client, chat_env):
    with patch("app.services.chat_service.requests.post") as mock_post:
        mock_post.return_value = make_response(200, {"answer": "hi", "metadata": {"usage": "n/a"}})
        response = client.post("/chat", json={"message": "Hi"})

    assert response.status_code == 200
    assert response.json()["answer"] == "hi"
    assert response.json()["metadata"]["usage"] is None


def test_chat_unbuildable_answer_is_upstream_error(client, chat_env):
    def invalid_metadata(**kwargs):
        return ChatMetadata.model_validate({})

    with patch("app.services.chat_service.requests.post") as mock_post, \
         patch("app.services.chat_service.ChatMetadata", side_effect=invalid_metadata):
        mock_post.return_value = make_response(200, {"answer": "hi"})
        response = client.post("/chat", json={"message": "Hi"})

    assert response.status_code == 500
    assert response.headers["content-type"].startswith("application/json")
    assert response.json()["error"] == "Chat service returned an invalid response"
    assert "timestamp" in response.json()


def test_send_with_numeric_model(client, chat_env):
    with patch("app.services.chat_service.requests.post") as mock_post:
        mock_post.return_value = make_response(200, {"answer": "hi", "model": 7})
        data = client.post("/chat/messages", json={"message": "Hello"}).json()

    assert data["state"] == "loaded"
    assert [m["role"] for m in data["messages"]] == ["user", "assistant"]


def test_session_unexpected_error_keeps_transcript_coherent():
    session = ChatSession()

    def broken(message, tasks, user):
        raise TypeError("bad payload")

    transcript = session.send("Hello", ask=broken)

    assert transcript.state == "failed"
    assert [m.role for m in transcript.messages] == ["user", "assistant"]
    assert transcript.messages[-1].content.startswith("An error occurred: ")
    # un nouvel envoi reste possible
    session.send("Again", ask=lambda message, tasks, user: fake_answer("ok"))
    assert session.state == Loaded()
