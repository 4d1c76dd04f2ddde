from __future__ import annotations

import pytest

from ai_say.core.errors import AudioDeviceError
from ai_say.integrations.audio_sink import SoundDeviceSink


class FakeStream:
    def __init__(self, **kwargs) -> None:
        self.kwargs = kwargs
        self.calls: list = []
        self.fail_on: str = ""

    def _record(self, name: str, *args) -> None:
        if name == self.fail_on:
            raise RuntimeError("device unplugged")
        self.calls.append((name,) + args)

    def start(self) -> None:
        self._record("start")

    def write(self, data: bytes) -> bool:
        self._record("write", bytes(data))
        return False

    def stop(self) -> None:
        self._record("stop")

    def abort(self) -> None:
        self._record("abort")

    def close(self) -> None:
        self._record("close")


def _sink(stream: FakeStream) -> SoundDeviceSink:
    def factory(**kwargs):
        stream.kwargs = kwargs
        return stream

    return SoundDeviceSink(stream_factory=factory)


@pytest.mark.asyncio
async def test_open_configures_mono_int16_stream() -> None:
    stream = FakeStream()
    sink = _sink(stream)

    await sink.open()

    assert stream.kwargs == {"samplerate": 44100, "channels": 1, "dtype": "int16", "device": None}
    assert stream.calls == [("start",)]


@pytest.mark.asyncio
async def test_writes_reach_device_in_order() -> None:
    stream = FakeStream()
    sink = _sink(stream)
    await sink.open()

    for pcm in (b"\x01\x00", b"\x02\x00\x03\x00", b"\x04\x00"):
        await sink.write(pcm)

    writes = [c[1] for c in stream.calls if c[0] == "write"]
    assert writes == [b"\x01\x00", b"\x02\x00\x03\x00", b"\x04\x00"]
    assert sink.written_bytes == 8


@pytest.mark.asyncio
async def test_split_sample_is_held_until_complete() -> None:
    stream = FakeStream()
    sink = _sink(stream)
    await sink.open()

    await sink.write(b"\x01\x00\x02")
    await sink.write(b"\x00\x03\x00")
    await sink.write(b"\x04")

    writes = [c[1] for c in stream.calls if c[0] == "write"]
    assert writes == [b"\x01\x00", b"\x02\x00\x03\x00"]


@pytest.mark.asyncio
async def test_end_pads_remainder_then_drains() -> None:
    stream = FakeStream()
    sink = _sink(stream)
    await sink.open()
    await sink.write(b"\x01\x00\x07")

    await sink.end()
    await sink.wait_drained()

    assert stream.calls == [
        ("start",),
        ("write", b"\x01\x00"),
        ("write", b"\x07\x00"),
        ("stop",),
        ("close",),
    ]

    # Already drained: closing is a no-op.
    await sink.close()
    assert stream.calls[-1] == ("close",)
    assert ("abort",) not in stream.calls


@pytest.mark.asyncio
async def test_end_is_signalled_once() -> None:
    stream = FakeStream()
    sink = _sink(stream)
    await sink.open()

    await sink.end()
    await sink.end()
    await sink.wait_drained()

    assert [c[0] for c in stream.calls].count("stop") == 1


@pytest.mark.asyncio
async def test_write_after_end_is_rejected() -> None:
    sink = _sink(FakeStream())
    await sink.open()
    await sink.end()

    with pytest.raises(AudioDeviceError):
        await sink.write(b"\x01\x00")
    await sink.wait_drained()


@pytest.mark.asyncio
async def test_close_aborts_without_draining() -> None:
    stream = FakeStream()
    sink = _sink(stream)
    await sink.open()
    await sink.write(b"\x01\x00")

    await sink.close()

    assert stream.calls[-2:] == [("abort",), ("close",)]
    assert ("stop",) not in stream.calls


@pytest.mark.asyncio
async def test_open_failure_is_device_error() -> None:
    stream = FakeStream()
    stream.fail_on = "start"

    with pytest.raises(AudioDeviceError) as exc:
        await _sink(stream).open()
    assert "device unplugged" in str(exc.value)


@pytest.mark.asyncio
async def test_write_failure_is_device_error() -> None:
    stream = FakeStream()
    sink = _sink(stream)
    await sink.open()
    stream.fail_on = "write"

    with pytest.raises(AudioDeviceError):
        await sink.write(b"\x01\x00")


@pytest.mark.asyncio
async def test_wait_drained_requires_end() -> None:
    sink = _sink(FakeStream())
    await sink.open()

    with pytest.raises(AudioDeviceError):
        await sink.wait_drained()


@pytest.mark.asyncio
async def test_write_before_open_is_device_error() -> None:
    with pytest.raises(AudioDeviceError):
        await _sink(FakeStream()).write(b"\x01\x00")


def test_invalid_format_is_rejected() -> None:
    with pytest.raises(ValueError):
        SoundDeviceSink(sample_rate=0)
    with pytest.raises(ValueError):
        SoundDeviceSink(channels=0)
