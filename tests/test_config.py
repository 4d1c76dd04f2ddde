from ai_say.config import (
    DEFAULT_MODEL,
    DEFAULT_VOICE_ID,
    AppSettings,
    AudioSettings,
    CartesiaSettings,
)


def test_defaults(monkeypatch) -> None:
    for var in ("CARTESIA_MODEL", "CARTESIA_VOICE", "CARTESIA_VERSION", "CARTESIA_WS_URL"):
        monkeypatch.delenv(var, raising=False)

    s = CartesiaSettings(_env_file=None)

    assert s.model == DEFAULT_MODEL
    assert s.voice == DEFAULT_VOICE_ID
    assert s.version == "2025-04-16"
    assert s.ws_url == "wss://api.cartesia.ai/tts/websocket"


def test_env_values_are_unquoted(monkeypatch) -> None:
    monkeypatch.setenv("CARTESIA_API_KEY", '"sk-123"')
    monkeypatch.setenv("CARTESIA_BASE_URL", "'https://api.example.test/'")

    s = CartesiaSettings(_env_file=None)

    assert s.api_key == "sk-123"
    assert s.base_url == "https://api.example.test"


def test_blank_api_key_means_unset(monkeypatch) -> None:
    monkeypatch.setenv("CARTESIA_API_KEY", "  ")

    assert CartesiaSettings(_env_file=None).api_key is None


def test_audio_device_selector(monkeypatch) -> None:
    monkeypatch.delenv("AI_SAY_AUDIO_DEVICE", raising=False)
    assert AudioSettings(_env_file=None).device_selector is None

    monkeypatch.setenv("AI_SAY_AUDIO_DEVICE", "3")
    assert AudioSettings(_env_file=None).device_selector == 3

    monkeypatch.setenv("AI_SAY_AUDIO_DEVICE", "USB Speaker")
    assert AudioSettings(_env_file=None).device_selector == "USB Speaker"


def test_log_level_is_normalized(monkeypatch) -> None:
    monkeypatch.setenv("AI_SAY_LOG_LEVEL", "debug")

    assert AppSettings(_env_file=None).log_level == "DEBUG"
