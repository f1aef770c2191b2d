"""
test_chat.py - Chat Routes

- /message persists the user message before answering
- /voice transcribes multipart audio
- provider failures surface as 502 with a code
"""

from starlette.datastructures import UploadFile

from sonia.app.providers.base import GenerationError, TranscriptionError


class TestSave:
    def test_save_and_history(self, client, auth_headers):
        for role, text in [("user", "hello"), ("ai", "hi, I'm Sonia")]:
            response = client.post(
                "/api/chat/save", json={"role": role, "text": text}, headers=auth_headers
            )
            assert response.json() == {"success": True}

        history = client.get("/api/chat/history", headers=auth_headers).json()

        assert [(m["role"], m["content"]) for m in history] == [
            ("user", "hello"),
            ("assistant", "hi, I'm Sonia"),
        ]

    def test_invalid_role(self, client, auth_headers):
        response = client.post(
            "/api/chat/save", json={"role": "system", "text": "x"}, headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_ROLE"

    def test_requires_token(self, client):
        assert client.get("/api/chat/history").status_code == 401


class TestMessage:
    def test_exchange(self, client, auth_headers):
        response = client.post(
            "/api/chat/message", json={"text": "I have exams tomorrow"}, headers=auth_headers
        )

        body = response.json()
        assert response.status_code == 200
        assert body["userMessage"]["content"] == "I have exams tomorrow"
        assert body["assistantMessage"]["role"] == "assistant"
        assert body["assistantMessage"]["emotion"]["label"] == "Stress"
        assert body["assistantMessage"]["emotion"]["activities"] == [
            "Take a short walk",
            "Try box breathing",
        ]

        history = client.get("/api/chat/history", headers=auth_headers).json()
        assert len(history) == 2

    def test_unusable_output(self, client, auth_headers, fake_provider):
        fake_provider.queue(None)

        body = client.post(
            "/api/chat/message", json={"text": "hello"}, headers=auth_headers
        ).json()

        assert body["assistantMessage"] is None

    def test_empty_message(self, client, auth_headers):
        response = client.post("/api/chat/message", json={"text": "  "}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "EMPTY_MESSAGE"

    def test_provider_failure(self, client, auth_headers, fake_provider):
        fake_provider.queue(GenerationError("FALLBACK_FAILED", "Both models failed."))

        response = client.post("/api/chat/message", json={"text": "hi"}, headers=auth_headers)

        assert response.status_code == 502
        assert response.json()["detail"] == {
            "code": "FALLBACK_FAILED",
            "message": "Both models failed.",
        }
        history = client.get("/api/chat/history", headers=auth_headers).json()
        assert [m["content"] for m in history] == ["hi"]


class TestVoice:
    def test_voice_message(self, client, auth_headers, fake_provider):
        response = client.post(
            "/api/chat/voice",
            files={"audio": ("note.webm", b"fake-audio", "audio/webm")},
            headers=auth_headers,
        )

        body = response.json()
        assert response.status_code == 200
        assert body["userMessage"]["type"] == "voice"
        assert body["userMessage"]["content"] == "I feel stressed about exams"
        assert body["assistantMessage"]["emotion"]["label"] == "Stress"
        assert fake_provider.transcribe_calls == [(b"fake-audio", "audio/webm")]

    def test_mime_type_form_field_wins(self, client, auth_headers, fake_provider):
        client.post(
            "/api/chat/voice",
            files={"audio": ("note.bin", b"fake-audio", "application/octet-stream")},
            data={"mime_type": "audio/ogg"},
            headers=auth_headers,
        )

        assert fake_provider.transcribe_calls[0][1] == "audio/ogg"

    def test_empty_audio(self, client, auth_headers, fake_provider):
        response = client.post(
            "/api/chat/voice",
            files={"audio": ("note.webm", b"", "audio/webm")},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "EMPTY_AUDIO"
        assert fake_provider.transcribe_calls == []

    def test_audio_too_large(self, client, auth_headers, fake_provider):
        response = client.post(
            "/api/chat/voice",
            files={"audio": ("note.webm", b"x" * 2048, "audio/webm")},
            headers=auth_headers,
        )

        assert response.status_code == 413
        assert response.json()["detail"]["code"] == "AUDIO_TOO_LARGE"
        assert fake_provider.transcribe_calls == []

    def test_upload_read_is_bounded(self, client, auth_headers, fake_provider, monkeypatch):
        real_read = UploadFile.read
        sizes = []

        async def recording_read(self, size=-1):
            sizes.append(size)
            return await real_read(self, size)

        monkeypatch.setattr(UploadFile, "read", recording_read)

        response = client.post(
            "/api/chat/voice",
            files={"audio": ("note.webm", b"x" * 4096, "audio/webm")},
            headers=auth_headers,
        )

        # voice.max_audio_bytes is 1024 in the test config
        assert 1025 in sizes
        assert -1 not in sizes
        assert response.status_code == 413

    def test_audio_at_limit_accepted(self, client, auth_headers, fake_provider):
        response = client.post(
            "/api/chat/voice",
            files={"audio": ("note.webm", b"x" * 1024, "audio/webm")},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert len(fake_provider.transcribe_calls[0][0]) == 1024

    def test_transcription_failure(self, client, auth_headers, fake_provider):
        fake_provider.transcription = TranscriptionError("TRANSCRIPTION_FAILED", "Could not transcribe.")

        response = client.post(
            "/api/chat/voice",
            files={"audio": ("note.webm", b"fake-audio", "audio/webm")},
            headers=auth_headers,
        )

        assert response.status_code == 502
        assert response.json()["detail"]["code"] == "TRANSCRIPTION_FAILED"
        assert client.get("/api/chat/history", headers=auth_headers).json() == []
