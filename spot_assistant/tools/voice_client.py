# Role: External tool adapter for speech. Speech-to-text posts raw audio and reads back a transcript;
# text-to-speech posts text + language and reads back audio bytes.

from __future__ import annotations

import logging
from typing import Optional

import requests

import spot_assistant.config as config
from spot_assistant.core.errors import TransientServiceError, ValidationError

logger = logging.getLogger(__name__)


class VoiceClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = (base_url or config.VOICE_SERVICE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else config.HTTP_TIMEOUT_SECONDS
        self.session = session or requests.Session()

    def speech_to_text(self, audio: bytes, audio_format: str = "wav") -> str:
        # 1) Validate audio
        # 2) POST bytes with the matching content type
        # 3) Read {"text": "..."}; an empty transcript is an error, not a message
        if not audio:
            raise ValidationError("Audio data cannot be empty")

        try:
            r = self.session.post(
                f"{self.base_url}/speech-to-text",
                data=audio,
                headers={"Content-Type": f"audio/{audio_format}"},
                timeout=self.timeout,
            )
            r.raise_for_status()
            payload = r.json()
        except requests.RequestException as e:
            raise TransientServiceError(f"Speech-to-text request failed: {e}", cause=e) from e
        except ValueError as e:
            raise TransientServiceError(f"Speech-to-text returned invalid JSON: {e}", cause=e) from e

        text = (payload.get("text") or "").strip() if isinstance(payload, dict) else ""
        if not text:
            raise TransientServiceError("Speech-to-text returned an empty transcript")

        logger.info("Transcribed %d bytes of %s audio", len(audio), audio_format)
        return text

    def text_to_speech(self, text: str, language: str = "en") -> bytes:
        if not text or not text.strip():
            raise ValidationError("Text cannot be empty")

        try:
            r = self.session.post(
                f"{self.base_url}/text-to-speech",
                json={"text": text, "language": language},
                timeout=self.timeout,
            )
            r.raise_for_status()
        except requests.RequestException as e:
            raise TransientServiceError(f"Text-to-speech request failed: {e}", cause=e) from e

        if not r.content:
            raise TransientServiceError("Text-to-speech returned no audio")
        logger.info("Generated %d bytes of speech", len(r.content))
        return r.content
