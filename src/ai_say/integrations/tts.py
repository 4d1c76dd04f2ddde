from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union
from uuid import uuid4

from ai_say.core.errors import SynthesisError

SAMPLE_RATE = 44100
CHANNELS = 1
LANGUAGE = "en"


def new_context_id() -> str:
    return str(uuid4())


@dataclass(frozen=True)
class OutputFormat:
    container: str = "raw"
    encoding: str = "pcm_s16le"
    sample_rate: int = SAMPLE_RATE

    def to_payload(self) -> Dict[str, Any]:
        return {
            "container": self.container,
            "encoding": self.encoding,
            "sample_rate": self.sample_rate,
        }


@dataclass(frozen=True)
class SynthesisRequest:
    model_id: str
    transcript: str
    voice_id: str
    language: str = LANGUAGE
    context_id: str = field(default_factory=new_context_id)
    output_format: OutputFormat = field(default_factory=OutputFormat)

    def __post_init__(self) -> None:
        if not (self.transcript or "").strip():
            raise ValueError("transcript must not be empty")

    def to_payload(self) -> Dict[str, Any]:
        return {
            "model_id": self.model_id,
            "transcript": self.transcript,
            "voice": {"mode": "id", "id": self.voice_id},
            "language": self.language,
            "context_id": self.context_id,
            "output_format": self.output_format.to_payload(),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_payload())


@dataclass(frozen=True)
class ServerMessage:
    """
    One inbound frame. `kind` is "chunk", "error", "done" or "other".

    A chunk can also carry `done=True` when it is the last one.
    """

    kind: str
    audio: bytes = b""
    done: bool = False
    error: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.kind == "error"


GENERIC_ERROR = "synthesis failed"


def parse_server_message(raw: Union[str, bytes]) -> ServerMessage:
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = bytes(raw).decode("utf-8")
        except UnicodeDecodeError as e:
            raise SynthesisError("Received a binary frame that is not UTF-8 text") from e
    try:
        msg = json.loads(raw)
    except ValueError as e:
        raise SynthesisError("Received a message that is not valid JSON") from e
    if not isinstance(msg, dict):
        raise SynthesisError("Received a message that is not a JSON object")

    typ = str(msg.get("type") or "")
    done = bool(msg.get("done"))

    err = msg.get("error")
    if typ == "error" or err:
        text = str(err).strip() if err else ""
        return ServerMessage(kind="error", done=done, error=text or GENERIC_ERROR)

    data = msg.get("data")
    if typ == "chunk" and data:
        try:
            audio = base64.b64decode(str(data), validate=True)
        except (binascii.Error, ValueError) as e:
            raise SynthesisError("Received a chunk with invalid base64 audio") from e
        return ServerMessage(kind="chunk", audio=audio, done=done)

    if done:
        return ServerMessage(kind="done", done=True)
    return ServerMessage(kind="other")
