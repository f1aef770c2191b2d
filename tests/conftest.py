"""
Pytest fixtures for the Sonia tests.

- FakeProvider: scripted LLM provider (no network)
- store / services on a tmp data root
- app + TestClient with a signed-up user
"""

from pathlib import Path
from typing import Any

import pytest
import yaml
from fastapi import FastAPI
from fastapi.testclient import TestClient

from sonia.app.main import create_app, init_state
from sonia.app.providers.base import (
    ChatTurn,
    LLMProvider,
    SpeechResult,
    StructuredResult,
    TranscriptionResult,
)
from sonia.app.services.emotion import EmotionService
from sonia.core.store import UserStore

# =============================================================================
# Fake Provider
# =============================================================================

DEFAULT_EMOTION = {
    "label": "Stress",
    "confidence": 0.9,
    "intensity": 70,
    "response": "It sounds like a lot is on your plate right now.",
    "activities": ["Take a short walk", "Try box breathing"],
}

# 16-bit PCM, two samples
FAKE_SPEECH = b"\x01\x00\x02\x00"

DEFAULT_REPORT = {
    "summary": "Mostly stressed, with calmer evenings.",
    "stabilityScore": 64,
    "keyThemes": ["Stress", "Fatigue", "Hope"],
    "recommendation": "Keep a short evening wind-down routine.",
}


class FakeProvider(LLMProvider):
    """
    Scripted provider.

    queue() pushes the next generate_json answers (dict, None for
    unparseable output, or an exception to raise); afterwards
    DEFAULT_EMOTION is returned. Speech is FAKE_SPEECH unless replaced.
    """

    name = "fake"

    def __init__(self) -> None:
        self.model = "fake-model"
        self.responses: list[Any] = []
        self.calls: list[dict[str, Any]] = []
        self.transcription: Any = "I feel stressed about exams"
        self.transcribe_calls: list[tuple[bytes, str]] = []
        self.speech: Any = FAKE_SPEECH
        self.speech_calls: list[tuple[str, str]] = []

    def queue(self, *responses: Any) -> None:
        self.responses.extend(responses)

    async def generate_json(
        self,
        turns: list[ChatTurn],
        system_instruction: str,
        response_schema: dict[str, Any],
    ) -> StructuredResult:
        self.calls.append(
            {
                "turns": list(turns),
                "system_instruction": system_instruction,
                "response_schema": response_schema,
            }
        )
        data = self.responses.pop(0) if self.responses else dict(DEFAULT_EMOTION)
        if isinstance(data, Exception):
            raise data
        return StructuredResult(
            success=data is not None,
            data=data,
            model_requested=self.model,
            model_used=self.model,
            provider=self.name,
        )

    async def transcribe(self, audio_bytes: bytes, mime_type: str) -> TranscriptionResult:
        self.transcribe_calls.append((audio_bytes, mime_type))
        if isinstance(self.transcription, Exception):
            raise self.transcription
        return TranscriptionResult(
            success=True,
            text=self.transcription,
            model_requested=self.model,
            model_used=self.model,
        )

    async def synthesize_speech(self, text: str, voice_name: str) -> SpeechResult:
        self.speech_calls.append((text, voice_name))
        if isinstance(self.speech, Exception):
            raise self.speech
        return SpeechResult(
            success=bool(self.speech),
            audio=self.speech,
            voice_name=voice_name,
            model_used=self.model,
        )

    async def complete(self, prompt: str, **kwargs: Any) -> str:
        return "ok"


# =============================================================================
# Path / Config Fixtures
# =============================================================================


@pytest.fixture
def project_root() -> Path:
    return Path(__file__).parent.parent


@pytest.fixture
def default_config(project_root: Path) -> dict:
    with open(project_root / "default.yaml", encoding="utf-8") as f:
        return yaml.safe_load(f)


@pytest.fixture
def test_config(tmp_path: Path) -> dict:
    """Config pointing at a tmp data root, fast bcrypt, small audio limit."""
    return {
        "paths": {"data_root": str(tmp_path / "data")},
        "auth": {"jwt_secret": "test-secret", "bcrypt_rounds": 4, "token_ttl_days": 7},
        "storage": {"lock_timeout": 5.0},
        "chat": {"history_window": 10},
        "voice": {"max_audio_bytes": 1024},
    }


# =============================================================================
# Service Fixtures
# =============================================================================


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def store(tmp_path: Path) -> UserStore:
    return UserStore(tmp_path / "data", lock_timeout=5.0)


@pytest.fixture
def user_id(store: UserStore) -> str:
    return store.create_user("Asha", "asha@example.com", "not-a-real-hash").user_id


@pytest.fixture
def emotion_service(fake_provider: FakeProvider) -> EmotionService:
    return EmotionService(fake_provider, history_window=10)


# =============================================================================
# App Fixtures
# =============================================================================


@pytest.fixture
def app(test_config: dict, fake_provider: FakeProvider) -> FastAPI:
    app = create_app()
    init_state(app, test_config, provider=fake_provider)
    return app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture
def token(client: TestClient) -> str:
    """Signed-up + logged-in user's token."""
    client.post(
        "/api/auth/signup",
        json={"name": "Asha", "email": "asha@example.com", "password": "s3cret!"},
    )
    response = client.post(
        "/api/auth/login",
        json={"email": "asha@example.com", "password": "s3cret!"},
    )
    return response.json()["token"]


@pytest.fixture
def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": token}
