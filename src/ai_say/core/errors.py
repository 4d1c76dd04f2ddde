from __future__ import annotations

from typing import Optional


class SayError(Exception):
    """
    Base for every failure that ends an invocation.

    Components raise these; only the top-level handler in `ai_say.main` catches them
    and turns them into an exit status.
    """

    kind = "error"
    exit_code = 1

    def __init__(self, message: str, *, hint: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint


class ConfigError(SayError):
    kind = "config_error"


class CatalogFetchError(SayError):
    kind = "catalog_fetch_error"


class VoiceNotFound(SayError):
    kind = "voice_not_found"

    def __init__(self, reference: str) -> None:
        super().__init__(
            "No voice matches %r" % reference,
            hint="Run `ai-say --list-voices` to see available voices.",
        )
        self.reference = reference


class TransportError(SayError):
    kind = "transport_error"


class SynthesisError(SayError):
    kind = "synthesis_error"


class AudioDeviceError(SayError):
    kind = "audio_device_error"
