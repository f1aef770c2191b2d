"""
test_context.py - Context (settings) Routes
"""


def test_default_context(client, auth_headers):
    response = client.get("/api/context", headers=auth_headers)

    assert response.json() == {"role": "Office worker", "language": "English"}


def test_partial_update(client, auth_headers):
    client.patch("/api/context", json={"language": "Hindi"}, headers=auth_headers)
    response = client.patch("/api/context", json={"role": "Student"}, headers=auth_headers)

    assert response.json() == {"role": "Student", "language": "Hindi"}
    assert client.get("/api/context", headers=auth_headers).json() == {
        "role": "Student",
        "language": "Hindi",
    }


def test_invalid_value(client, auth_headers):
    response = client.patch("/api/context", json={"language": "Klingon"}, headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "INVALID_CONTEXT"
    assert client.get("/api/context", headers=auth_headers).json()["language"] == "English"


def test_context_reaches_chat_prompt(client, auth_headers, fake_provider):
    client.patch("/api/context", json={"role": "Personal life"}, headers=auth_headers)

    client.post("/api/chat/message", json={"text": "hi"}, headers=auth_headers)

    assert "Life Context: Personal life" in fake_provider.calls[0]["system_instruction"]
