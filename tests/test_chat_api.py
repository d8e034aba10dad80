from knowledgebase.core.rate_limit import RateLimiter
from knowledgebase.main import create_app
from fastapi.testclient import TestClient


def test_chat_reply(client, auth_headers, fake_llm):
    fake_llm.reply = "Hello there!"

    response = client.post(
        "/chat",
        json={"messages": [{"role": "user", "content": "hi"}]},
        headers=auth_headers(),
    )

    assert response.status_code == 200
    assert response.json() == {"reply": "Hello there!"}
    assert "You are a helpful AI assistant." in fake_llm.calls[0]["prompt"]


def test_chat_with_resume_context_and_history(client, auth_headers, fake_llm):
    body = {
        "messages": [
            {"role": "user", "content": "Who is this?"},
            {"role": "assistant", "content": "This is Jane's resume."},
            {"role": "user", "content": "What languages does she know?"},
        ],
        "context": {"title": "Resume", "type": "file", "content": "Jane Doe. Python, Go."},
        "documentType": "resume",
    }

    response = client.post("/chat", json=body, headers=auth_headers())

    assert response.status_code == 200
    prompt = fake_llm.calls[0]["prompt"]
    assert "expert at analyzing resumes" in prompt
    assert "Jane Doe. Python, Go." in prompt
    assert "Assistant: This is Jane's resume." in prompt
    assert prompt.endswith("User Question: What languages does she know?")


def test_chat_forwards_pdf_inline(client, auth_headers, fake_llm):
    body = {
        "messages": [{"role": "user", "content": "Summarize this"}],
        "fileBase64": "JVBERi0xLjQK",
        "fileMime": "application/pdf",
    }

    client.post("/chat", json=body, headers=auth_headers())

    assert fake_llm.calls[0]["pdf_base64"] == "JVBERi0xLjQK"
    assert "You are analyzing a PDF document." in fake_llm.calls[0]["prompt"]


def test_long_context_is_truncated(client, auth_headers, fake_llm, settings):
    body = {
        "messages": [{"role": "user", "content": "Summarize"}],
        "context": {"title": "Huge", "type": "web", "content": "z" * 40000},
    }

    client.post("/chat", json=body, headers=auth_headers())

    prompt = fake_llm.calls[0]["prompt"]
    assert "z" * settings.CHAT_CONTEXT_MAX_CHARS + "... [content truncated]" in prompt
    assert "z" * (settings.CHAT_CONTEXT_MAX_CHARS + 1) not in prompt


def test_chat_without_trailing_user_message(client, auth_headers):
    body = {"messages": [{"role": "assistant", "content": "How can I help?"}]}

    response = client.post("/chat", json=body, headers=auth_headers())

    assert response.status_code == 400
    assert response.json() == {"error": "No user message found"}


def test_chat_requires_auth(client):
    assert client.post("/chat", json={"messages": []}).status_code == 401


def test_chat_without_api_key(settings, fake_web_search, http_client, auth_headers):
    app = create_app(
        settings.model_copy(update={"GOOGLE_API_KEY": ""}),
        web_search=fake_web_search,
        http_client=http_client,
        rate_limiter=RateLimiter(),
    )

    with TestClient(app) as client:
        response = client.post(
            "/chat",
            json={"messages": [{"role": "user", "content": "hi"}]},
            headers=auth_headers(),
        )

    assert response.status_code == 500
    assert response.json() == {"error": "Missing GOOGLE_API_KEY"}


def test_missing_api_key_is_reported_before_message_checks(settings, fake_web_search, http_client, auth_headers):
    app = create_app(
        settings.model_copy(update={"GOOGLE_API_KEY": ""}),
        web_search=fake_web_search,
        http_client=http_client,
        rate_limiter=RateLimiter(),
    )

    with TestClient(app) as client:
        response = client.post(
            "/chat",
            json={"messages": [{"role": "assistant", "content": "Hello, how can I help?"}]},
            headers=auth_headers(),
        )

    assert response.status_code == 500
    assert response.json() == {"error": "Missing GOOGLE_API_KEY"}
