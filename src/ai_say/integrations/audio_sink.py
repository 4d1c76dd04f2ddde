from __future__ import annotations

import asyncio
from typing import Any, Callable, Optional

from ai_say.core.errors import AudioDeviceError
from ai_say.core.logging import get_logger
from ai_say.integrations.tts import CHANNELS, SAMPLE_RATE

StreamFactory = Callable[..., Any]


class AudioSink:
    """
    Ordered consumer of raw PCM frames.

    `end()` announces that no more audio is coming; `wait_drained()` returns once
    the device has finished playing everything it was given.
    """

    async def open(self) -> None:
        raise NotImplementedError

    async def write(self, pcm: bytes) -> None:
        raise NotImplementedError

    async def end(self) -> None:
        raise NotImplementedError

    async def wait_drained(self) -> None:
        raise NotImplementedError

    async def close(self) -> None:
        raise NotImplementedError


def _sounddevice_stream(**kwargs: Any) -> Any:
    try:
        import sounddevice as sd
    except OSError as e:  # PortAudio library missing
        raise AudioDeviceError("Audio output is unavailable: %s" % e) from e
    return sd.RawOutputStream(**kwargs)


class SoundDeviceSink(AudioSink):
    """
    Plays signed 16-bit little-endian PCM through a PortAudio output stream.
    """

    def __init__(
        self,
        *,
        sample_rate: int = SAMPLE_RATE,
        channels: int = CHANNELS,
        device: Optional[object] = None,
        stream_factory: Optional[StreamFactory] = None,
    ) -> None:
        if sample_rate <= 0:
            raise ValueError("sample_rate must be > 0")
        if channels <= 0:
            raise ValueError("channels must be > 0")
        self._sample_rate = sample_rate
        self._channels = channels
        self._frame_bytes = channels * 2
        self._device = device
        self._stream_factory = stream_factory or _sounddevice_stream
        self._stream: Any = None
        self._leftover = b""
        self._ended = False
        self._drain_task: Optional["asyncio.Task[None]"] = None
        self._written_bytes = 0
        self._log = get_logger(component="audio_sink")

    @property
    def written_bytes(self) -> int:
        return self._written_bytes

    async def open(self) -> None:
        if self._stream is not None:
            return
        try:
            stream = self._stream_factory(
                samplerate=self._sample_rate,
                channels=self._channels,
                dtype="int16",
                device=self._device,
            )
            stream.start()
        except AudioDeviceError:
            raise
        except Exception as e:
            raise AudioDeviceError("Could not open audio output: %s" % e) from e
        self._stream = stream
        self._log.debug("device_opened", rate=self._sample_rate, channels=self._channels)

    async def write(self, pcm: bytes) -> None:
        if self._ended:
            raise AudioDeviceError("Audio written after end of stream")
        stream = self._require_stream()
        if not pcm:
            return
        # Only whole samples go to the device; a split sample waits for the next chunk.
        payload = self._leftover + pcm
        valid_len = len(payload) - (len(payload) % self._frame_bytes)
        self._leftover = payload[valid_len:]
        if valid_len <= 0:
            return
        await self._device_call(stream.write, payload[:valid_len])
        self._written_bytes += valid_len

    async def end(self) -> None:
        if self._ended:
            return
        self._require_stream()
        self._ended = True
        self._drain_task = asyncio.ensure_future(self._drain())

    async def wait_drained(self) -> None:
        if self._drain_task is None:
            raise AudioDeviceError("Audio output was never finalized")
        await self._drain_task

    async def close(self) -> None:
        if self._drain_task is not None and not self._drain_task.done():
            self._drain_task.cancel()
        stream = self._stream
        self._stream = None
        self._leftover = b""
        if stream is None:
            return
        try:
            stream.abort()
            stream.close()
        except Exception as e:
            raise AudioDeviceError("Could not close audio output: %s" % e) from e
        self._log.debug("device_aborted")

    async def _drain(self) -> None:
        stream = self._require_stream()
        if self._leftover:
            pad = b"\x00" * (self._frame_bytes - len(self._leftover))
            await self._device_call(stream.write, self._leftover + pad)
            self._written_bytes += len(self._leftover) + len(pad)
            self._leftover = b""
        # stop() returns only after every queued buffer has been played.
        await self._device_call(stream.stop)
        await self._device_call(stream.close)
        self._stream = None
        self._log.debug("device_drained", written_bytes=self._written_bytes)

    def _require_stream(self) -> Any:
        if self._stream is None:
            raise AudioDeviceError("Audio output is not open")
        return self._stream

    async def _device_call(self, fn: Callable[..., Any], *args: Any) -> Any:
        # PortAudio's blocking calls run off-loop; callers await each one so order holds.
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, fn, *args)
        except Exception as e:
            raise AudioDeviceError("Audio output failed: %s" % e) from e
