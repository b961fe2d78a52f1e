"""
Configuration Tests
===================

Tests for YAML loading and environment variable overrides.
"""

import pytest

from regionwatch.config import Settings, load_config


ENV_VARS = [
    "REGIONWATCH_CONFIG",
    "REGIONWATCH_INTERVAL_MS",
    "REGIONWATCH_SOURCE",
    "REGIONWATCH_STREAM_URL",
    "REGIONWATCH_EQUALITY_THRESHOLD",
    "REGIONWATCH_PIXEL_THRESHOLD",
    "REGIONWATCH_RECOGNITION_BACKEND",
    "REGIONWATCH_LANGUAGE_HINTS",
    "REGIONWATCH_LOG_LEVEL",
    "REGIONWATCH_PORT",
    "PORT",
    "GOOGLE_APPLICATION_CREDENTIALS",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        """
capture:
  interval_ms: 500
  source: stream
region:
  x: 10
  y: 20
  width: 300
  height: 40
preprocess:
  binarize_enabled: true
  blur_radius: 1
diff:
  equality_threshold: 5.0
recognition:
  backend: vision
  language_hints: ["ja", "en"]
"""
    )
    return path


class TestLoadConfig:
    """Tests for load_config()."""

    def test_defaults(self):
        settings = Settings()
        assert settings.capture.interval_ms == 1000
        assert settings.capture.source == "screen"
        assert settings.diff.pixel_threshold == 0.1
        assert settings.diff.equality_threshold == 2.0
        assert settings.recognition.backend == "mock"
        assert settings.recognition.language_hints == ["ja"]
        assert settings.region.is_empty

    def test_yaml_values(self, config_file):
        settings = load_config(str(config_file))

        assert settings.capture.interval_ms == 500
        assert settings.capture.source == "stream"
        assert (settings.region.x, settings.region.width) == (10, 300)
        assert settings.preprocess.binarize_enabled
        assert settings.preprocess.blur_radius == 1
        assert settings.diff.equality_threshold == 5.0
        assert settings.recognition.language_hints == ["ja", "en"]

    def test_env_overrides_yaml(self, config_file, monkeypatch):
        monkeypatch.setenv("REGIONWATCH_INTERVAL_MS", "250")
        monkeypatch.setenv("REGIONWATCH_SOURCE", "screen")
        monkeypatch.setenv("REGIONWATCH_EQUALITY_THRESHOLD", "1.5")
        monkeypatch.setenv("REGIONWATCH_PIXEL_THRESHOLD", "0.2")
        monkeypatch.setenv("REGIONWATCH_LANGUAGE_HINTS", "zh, ko")
        monkeypatch.setenv("REGIONWATCH_RECOGNITION_BACKEND", "mock")

        settings = load_config(str(config_file))

        assert settings.capture.interval_ms == 250
        assert settings.capture.source == "screen"
        assert settings.diff.equality_threshold == 1.5
        assert settings.diff.pixel_threshold == 0.2
        assert settings.recognition.language_hints == ["zh", "ko"]
        assert settings.recognition.backend == "mock"

    def test_port_precedence(self, config_file, monkeypatch):
        monkeypatch.setenv("REGIONWATCH_PORT", "9000")
        assert load_config(str(config_file)).server.port == 9000

        monkeypatch.setenv("PORT", "9100")
        assert load_config(str(config_file)).server.port == 9100

    def test_credentials_from_env(self, config_file, monkeypatch):
        monkeypatch.setenv("GOOGLE_APPLICATION_CREDENTIALS", "/secrets/sa.json")
        settings = load_config(str(config_file))
        assert settings.recognition.credentials_path == "/secrets/sa.json"

    def test_config_path_from_env(self, config_file, monkeypatch):
        monkeypatch.setenv("REGIONWATCH_CONFIG", str(config_file))
        assert load_config().capture.interval_ms == 500

    def test_invalid_interval_rejected(self, config_file, monkeypatch):
        monkeypatch.setenv("REGIONWATCH_INTERVAL_MS", "10")
        with pytest.raises(ValueError):
            load_config(str(config_file))
