from __future__ import annotations

import asyncio
from typing import Any, AsyncContextManager, Callable, Optional
from urllib.parse import urlencode

import websockets
from websockets.exceptions import WebSocketException

from ai_say.core.errors import SynthesisError, TransportError
from ai_say.core.logging import get_logger
from ai_say.core.state import SessionState, SessionStateMachine
from ai_say.integrations.audio_sink import AudioSink
from ai_say.integrations.tts import GENERIC_ERROR, SynthesisRequest, parse_server_message

Connect = Callable[[str], AsyncContextManager[Any]]


class CartesiaSynthesisSession:
    """
    One request over one WebSocket; audio chunks are forwarded as they arrive.
    """

    def __init__(
        self,
        *,
        api_key: str,
        ws_url: str,
        version: str,
        timeout_seconds: float,
        connect: Optional[Connect] = None,
    ) -> None:
        self._api_key = api_key
        self._ws_url = ws_url.rstrip("/")
        self._version = version
        self._timeout = float(timeout_seconds)
        self._connect = connect or self._default_connect
        self._log = get_logger(component="synthesis_session")

    @property
    def url(self) -> str:
        query = urlencode({"api_key": self._api_key, "cartesia_version": self._version})
        return "%s?%s" % (self._ws_url, query)

    def _default_connect(self, url: str) -> AsyncContextManager[Any]:
        return websockets.connect(url, open_timeout=self._timeout, max_size=None)

    async def run(self, request: SynthesisRequest, sink: AudioSink, state: SessionStateMachine) -> None:
        """
        Expects `state` to be `connecting`; leaves it `draining` once the server
        reports done. Any failure raises and leaves the state untouched.
        """
        # The key travels in the query string; keep it out of the logs.
        self._log.info("connecting", url=self._ws_url, model=request.model_id, voice=request.voice_id)
        try:
            async with self._connect(self.url) as ws:
                await ws.send(request.to_json())
                state.transition(SessionState.STREAMING)
                self._log.info("streaming", context_id=request.context_id, chars=len(request.transcript))
                finished = await self._consume(ws, sink, state)
        except (OSError, asyncio.TimeoutError, WebSocketException) as e:
            raise TransportError("WebSocket error: %s" % (str(e) or type(e).__name__)) from e

        if not finished:
            raise TransportError("Connection closed before synthesis finished")

    async def _consume(self, ws: Any, sink: AudioSink, state: SessionStateMachine) -> bool:
        chunks = 0
        async for raw in ws:
            msg = parse_server_message(raw)
            if msg.is_error:
                raise SynthesisError(msg.error or GENERIC_ERROR)
            if msg.audio:
                await sink.write(msg.audio)
                chunks += 1
            if msg.done:
                state.transition(SessionState.DRAINING)
                self._log.info("draining", chunks=chunks)
                await sink.end()
                return True
        return False
