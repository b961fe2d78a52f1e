"""
regionwatch Configuration
=========================

This module handles configuration loading for the capture service.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    REGIONWATCH_INTERVAL_MS            -> capture.interval_ms
    REGIONWATCH_SOURCE                 -> capture.source
    REGIONWATCH_STREAM_URL             -> stream.url
    REGIONWATCH_EQUALITY_THRESHOLD     -> diff.equality_threshold
    REGIONWATCH_PIXEL_THRESHOLD        -> diff.pixel_threshold
    REGIONWATCH_RECOGNITION_BACKEND    -> recognition.backend
    REGIONWATCH_LANGUAGE_HINTS         -> recognition.language_hints (comma separated)
    GOOGLE_APPLICATION_CREDENTIALS     -> recognition.credentials_path
    REGIONWATCH_LOG_LEVEL              -> logging.level
    PORT / REGIONWATCH_PORT            -> server.port

Example:
    from regionwatch.config import load_config

    settings = load_config()
    print(settings.capture.interval_ms)
    print(settings.diff.equality_threshold)
"""

import os
import logging
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field

from regionwatch.models.preprocess import PreprocessConfig
from regionwatch.models.region import Region


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class ServiceConfig(BaseModel):
    """Service identification configuration."""

    name: str = Field(default="regionwatch", description="Service name")
    version: str = Field(default="v0.1.0", description="Service version")


class CaptureConfig(BaseModel):
    """Capture loop configuration."""

    source: str = Field(
        default="screen",
        description="Acquisition source: 'screen' or 'stream'",
    )
    interval_ms: int = Field(
        default=1000,
        ge=50,
        description="Milliseconds between capture ticks",
    )
    monitor_index: int = Field(
        default=1,
        ge=0,
        description="mss monitor index for the screen source (0 = all)",
    )
    autostart: bool = Field(
        default=False,
        description="Start the capture loop on service startup",
    )
    log_every_n_ticks: int = Field(
        default=60,
        ge=1,
        description="Log a cycle summary every N ticks",
    )


class DiffConfig(BaseModel):
    """Frame comparison thresholds."""

    pixel_threshold: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Per-pixel noise floor, fraction of the channel range",
    )
    equality_threshold: float = Field(
        default=2.0,
        gt=0.0,
        le=100.0,
        description="Frames are equal below this percentage of differing pixels",
    )


class RecognitionConfig(BaseModel):
    """Recognition backend configuration."""

    backend: str = Field(
        default="mock",
        description="Recognition backend: 'mock' or 'vision'",
    )
    language_hints: List[str] = Field(
        default_factory=lambda: ["ja"],
        description="Language hints sent with each request",
    )
    credentials_path: Optional[str] = Field(
        default=None,
        description="Service account JSON for Google Cloud Vision",
    )
    timeout_sec: float = Field(
        default=30.0,
        gt=0,
        description="Recognition request timeout",
    )


class StreamConfig(BaseModel):
    """Frame stream connection configuration (source = 'stream')."""

    url: str = Field(
        default="ws://localhost:8000/ws/stream",
        description="WebSocket URL of the frame stream",
    )
    reconnect_backoff_ms: int = Field(
        default=500,
        ge=100,
        description="Backoff in milliseconds between reconnect attempts",
    )
    max_reconnect_attempts: int = Field(
        default=0,
        ge=0,
        description="Maximum reconnection attempts (0 = unlimited)",
    )


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = Field(default="127.0.0.1", description="Bind host")
    port: int = Field(default=8010, ge=1, le=65535, description="Bind port")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for regionwatch.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    service: ServiceConfig = Field(default_factory=ServiceConfig)
    capture: CaptureConfig = Field(default_factory=CaptureConfig)
    region: Region = Field(default_factory=Region)
    preprocess: PreprocessConfig = Field(default_factory=PreprocessConfig)
    diff: DiffConfig = Field(default_factory=DiffConfig)
    recognition: RecognitionConfig = Field(default_factory=RecognitionConfig)
    stream: StreamConfig = Field(default_factory=StreamConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

# (env var, section, key, parser); first match wins per section/key
_ENV_OVERRIDES = [
    ("REGIONWATCH_INTERVAL_MS", "capture", "interval_ms", int),
    ("REGIONWATCH_SOURCE", "capture", "source", str),
    ("REGIONWATCH_STREAM_URL", "stream", "url", str),
    ("REGIONWATCH_EQUALITY_THRESHOLD", "diff", "equality_threshold", float),
    ("REGIONWATCH_PIXEL_THRESHOLD", "diff", "pixel_threshold", float),
    ("REGIONWATCH_RECOGNITION_BACKEND", "recognition", "backend", str),
    ("REGIONWATCH_LANGUAGE_HINTS", "recognition", "language_hints",
     lambda value: [hint.strip() for hint in value.split(",") if hint.strip()]),
    ("PORT", "server", "port", int),
    ("REGIONWATCH_PORT", "server", "port", int),
    ("REGIONWATCH_LOG_LEVEL", "logging", "level", str),
]


def _find_config_file() -> Optional[Path]:
    """REGIONWATCH_CONFIG, else config.yaml in the cwd or the repository root."""
    if env_path := os.environ.get("REGIONWATCH_CONFIG"):
        return Path(env_path)

    candidates = [
        Path("config.yaml"),
        Path("config.yml"),
        Path(__file__).resolve().parents[2] / "config.yaml",
    ]
    return next((path for path in candidates if path.exists()), None)


def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Build Settings from defaults, a YAML file and the environment.

    Environment variables beat the file, which beats the model defaults.

    Args:
        config_path: Explicit YAML path; searched for when None

    Returns:
        Settings: Validated configuration
    """
    path = Path(config_path) if config_path else _find_config_file()

    config_data: dict = {}
    if path is not None and path.exists():
        logger.info(f"Reading configuration: {path}")
        config_data = yaml.safe_load(path.read_text()) or {}
    else:
        logger.warning("No config.yaml found; defaults plus environment only")

    _apply_env_overrides(config_data)

    return Settings.model_validate(config_data)


def _apply_env_overrides(config_data: dict) -> None:
    """Overlay REGIONWATCH_* variables onto the raw config dict in place."""
    applied = set()
    for env_name, section, key, parse in _ENV_OVERRIDES:
        value = os.environ.get(env_name)
        if not value or (section, key) in applied:
            continue
        config_data.setdefault(section, {})[key] = parse(value)
        applied.add((section, key))

    # Only fills the gap; an explicit credentials_path in the file wins
    if creds := os.environ.get("GOOGLE_APPLICATION_CREDENTIALS"):
        config_data.setdefault("recognition", {}).setdefault("credentials_path", creds)


_LOG_FORMATS = {
    "json": '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}',
    "text": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
}


def setup_logging(settings: Settings) -> None:
    """Configure the root logger from settings.logging."""
    logging.basicConfig(
        level=getattr(logging, settings.logging.level.upper(), logging.INFO),
        format=_LOG_FORMATS.get(settings.logging.format, _LOG_FORMATS["text"]),
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


# =============================================================================
# Global Settings Instance
# =============================================================================

settings = load_config()
setup_logging(settings)
