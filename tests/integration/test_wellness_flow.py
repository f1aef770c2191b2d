"""
test_wellness_flow.py - end-to-end flow through the HTTP API

signup → login → settings → chat → journal → dashboard/path → report,
with the LLM replaced by the scripted provider.
"""

import json
from pathlib import Path

import pytest

pytestmark = pytest.mark.integration

REPORT = {
    "summary": "Stress around exams, eased by journaling.",
    "stabilityScore": 71,
    "keyThemes": ["Stress", "Exams", "Relief"],
    "recommendation": "Keep short daily entries during exam weeks.",
}


def test_full_wellness_flow(client, fake_provider, test_config):
    # Account
    signup = client.post(
        "/api/auth/signup",
        json={"name": "Ravi", "email": "ravi@example.com", "password": "pw-123"},
    )
    assert signup.status_code == 200

    login = client.post(
        "/api/auth/login", json={"email": "RAVI@example.com", "password": "pw-123"}
    ).json()
    headers = {"Authorization": f"Bearer {login['token']}"}
    user_id = login["userId"]

    # Settings
    client.patch(
        "/api/context", json={"role": "Student", "language": "Hindi"}, headers=headers
    )

    # Chat
    exchange = client.post(
        "/api/chat/message", json={"text": "Exams start Monday"}, headers=headers
    ).json()
    assert exchange["assistantMessage"]["emotion"]["label"] == "Stress"
    system_prompt = fake_provider.calls[-1]["system_instruction"]
    assert "Life Context: Student" in system_prompt
    assert "Always respond strictly in Hindi" in system_prompt

    # Journal
    fake_provider.queue({"label": "Happy", "confidence": 0.7, "intensity": 40})
    entry = client.post(
        "/api/journal", json={"content": "Studied with friends, felt lighter."}, headers=headers
    ).json()
    assert entry["emotion"]["label"] == "Happy"

    # Analytics
    dashboard = client.get("/api/wellness/dashboard", headers=headers).json()
    assert dashboard["analyzedMessages"] == 1

    path = client.get("/api/wellness/path", headers=headers).json()
    assert [p["source"] for p in path["timeline"]] == ["Chat", "Journal"]

    # Report (chat + journal = 3 items)
    fake_provider.queue(REPORT)
    report = client.post("/api/wellness/report?scope=path", headers=headers).json()
    assert report["keyThemes"] == ["Stress", "Exams", "Relief"]
    report_prompt = fake_provider.calls[-1]["turns"][0].text
    assert "[Journal]" in report_prompt
    assert report_prompt.endswith("Target Context: Student")

    # Documents on disk
    user_dir = Path(test_config["paths"]["data_root"]) / "users" / user_id
    chat_doc = json.loads((user_dir / "chat.json").read_text(encoding="utf-8"))
    profile = json.loads((user_dir / "profile.json").read_text(encoding="utf-8"))
    assert len(chat_doc["messages"]) == 2
    assert profile["password_hash"] != "pw-123"

    # Cleanup
    client.delete(f"/api/journal/{entry['id']}", headers=headers)
    assert client.get("/api/journal", headers=headers).json() == []


def test_users_are_isolated(client):
    tokens = []
    for email in ("a@example.com", "b@example.com"):
        client.post("/api/auth/signup", json={"name": "x", "email": email, "password": "pw"})
        tokens.append(
            client.post("/api/auth/login", json={"email": email, "password": "pw"}).json()["token"]
        )

    client.post("/api/chat/message", json={"text": "hello"}, headers={"Authorization": tokens[0]})

    history_b = client.get("/api/chat/history", headers={"Authorization": tokens[1]}).json()
    assert history_b == []
