from __future__ import annotations

import sys
from typing import List, Optional

import typer

from ai_say import __version__
from ai_say.main import main, read_text

app = typer.Typer(add_completion=False)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo("ai-say %s" % __version__)
        raise typer.Exit()


@app.command()
def say(
    text: Optional[List[str]] = typer.Argument(None, help="Text to speak (read from stdin when omitted)"),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Override the synthesis model id"),
    voice: Optional[str] = typer.Option(None, "--voice", "-v", help="Voice id or (partial) voice name"),
    list_voices: bool = typer.Option(False, "--list-voices", "-l", help="List public voices and exit"),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show the version and exit"
    ),
) -> None:
    """
    Speak TEXT aloud, playing audio while it is still being synthesized.
    """
    content = "" if list_voices else read_text(text or [], sys.stdin)
    raise SystemExit(main(text=content, model=model, voice=voice, list_voices=list_voices))


if __name__ == "__main__":
    app()
