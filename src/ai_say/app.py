from __future__ import annotations

from typing import Callable, Iterator, Optional, Tuple

from ai_say.config import AppSettings
from ai_say.core.errors import AudioDeviceError, ConfigError
from ai_say.core.logging import get_logger
from ai_say.core.state import SessionState, SessionStateMachine
from ai_say.integrations.audio_sink import AudioSink, SoundDeviceSink
from ai_say.integrations.tts import SynthesisRequest
from ai_say.integrations.tts_cartesia import CartesiaSynthesisSession
from ai_say.integrations.voices import VoiceCatalog, VoiceResolver

SinkFactory = Callable[[], AudioSink]


class SayApp:
    """
    Resolve the voice, stream one synthesis, and wait for the speaker to go quiet.
    """

    def __init__(
        self,
        settings: AppSettings,
        *,
        catalog: Optional[VoiceCatalog] = None,
        session: Optional[CartesiaSynthesisSession] = None,
        sink_factory: Optional[SinkFactory] = None,
    ) -> None:
        self._settings = settings
        self._log = get_logger(app=settings.name)
        cartesia = settings.cartesia

        self._catalog = catalog or VoiceCatalog(
            api_key=cartesia.api_key or "",
            base_url=cartesia.base_url,
            version=cartesia.version,
            timeout_seconds=cartesia.timeout_seconds,
        )
        self._resolver = VoiceResolver(self._catalog)
        self._session = session or CartesiaSynthesisSession(
            api_key=cartesia.api_key or "",
            ws_url=cartesia.ws_url,
            version=cartesia.version,
            timeout_seconds=cartesia.timeout_seconds,
        )
        self._sink_factory = sink_factory or self._default_sink

    def _default_sink(self) -> AudioSink:
        return SoundDeviceSink(device=self._settings.audio.device_selector)

    async def list_voices(self) -> Iterator[Tuple[str, str]]:
        return await self._catalog.list_public()

    async def speak(
        self,
        text: str,
        *,
        voice: Optional[str] = None,
        model: Optional[str] = None,
    ) -> SessionStateMachine:
        transcript = (text or "").strip()
        if not transcript:
            raise ConfigError("No text to speak")

        voice_id = await self._resolver.resolve(voice or self._settings.cartesia.voice)
        request = SynthesisRequest(
            model_id=model or self._settings.cartesia.model,
            transcript=transcript,
            voice_id=voice_id,
        )

        state = SessionStateMachine()
        sink = self._sink_factory()
        try:
            state.transition(SessionState.CONNECTING)
            await sink.open()
            await self._session.run(request, sink, state)
            # Exit waits for the device, not the network: buffered audio is still playing.
            await sink.wait_drained()
            state.transition(SessionState.CLOSED)
        except BaseException as e:
            state.fail(e)
            self._log.debug("failed", error=type(e).__name__)
            await self._abort(sink)
            raise

        await sink.close()
        self._log.info("closed", voice=voice_id, model=request.model_id)
        return state

    async def _abort(self, sink: AudioSink) -> None:
        try:
            await sink.close()
        except AudioDeviceError as e:
            self._log.warning("sink_abort_failed", details=e.message)
