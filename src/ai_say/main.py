from __future__ import annotations

import asyncio
from typing import Callable, Optional, Sequence, TextIO

import typer
from pydantic import ValidationError

from ai_say.app import SayApp
from ai_say.config import AppSettings
from ai_say.core.errors import ConfigError, SayError
from ai_say.core.logging import configure_logging, get_logger
from ai_say.integrations.voices import use_environment_collation

USAGE = "Usage: ai-say [-m MODEL] [-v VOICE] <text>\n       echo 'text' | ai-say"


def read_text(parts: Sequence[str], stdin: TextIO) -> str:
    """
    Text comes from the arguments, or from piped stdin when there are none.
    """
    text = " ".join(parts).strip()
    if not text and not stdin.isatty():
        text = stdin.read().strip()
    return text


def require_api_key(settings: AppSettings) -> str:
    key = settings.cartesia.api_key
    if not key:
        raise ConfigError("CARTESIA_API_KEY environment variable is required", hint=USAGE)
    return key


def main(
    *,
    text: str = "",
    model: Optional[str] = None,
    voice: Optional[str] = None,
    list_voices: bool = False,
    settings: Optional[AppSettings] = None,
    app_factory: Callable[[AppSettings], SayApp] = SayApp,
) -> int:
    if settings is None:
        try:
            settings = AppSettings()
        except ValidationError as e:
            typer.echo("Error: invalid configuration\n%s" % e, err=True)
            return 1
    configure_logging(settings.log_level)
    use_environment_collation()
    log = get_logger(app=settings.name)

    try:
        if list_voices:
            require_api_key(settings)
            voices = asyncio.run(app_factory(settings).list_voices())
            for voice_id, name in voices:
                typer.echo("%s  %s" % (voice_id, name))
            return 0

        if not text.strip():
            raise ConfigError("No text to speak", hint=USAGE)
        require_api_key(settings)
        asyncio.run(app_factory(settings).speak(text, voice=voice, model=model))
    except SayError as e:
        log.debug("exiting", error=e.kind, details=e.message)
        typer.echo("Error: %s" % e.message, err=True)
        if e.hint:
            typer.echo(e.hint, err=True)
        return e.exit_code
    return 0
