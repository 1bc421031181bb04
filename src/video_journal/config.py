"""Process-wide defaults for the video journal pipeline."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Mapping

from .errors import ConfigurationError

VIDEO_EXTENSIONS = (".mp4", ".mov", ".avi", ".mkv", ".webm", ".m4v", ".wmv", ".flv")
VALID_MODELS = ("tiny", "base", "small", "medium", "large")
DEFAULT_MODEL = "base"
DEFAULT_BACKEND = "claude-cli"

DEFAULT_STYLE_GUIDE_PATH = "style_guide.md"
DEFAULT_STYLE_GUIDE = """Write in a conversational, engaging tone.
Use clear headings to organize the content.
Include practical takeaways where relevant.
Keep paragraphs short and scannable.
Use active voice."""

_ENV_PREFIX = "VIDEO_JOURNAL_"


@dataclass(frozen=True)
class PipelineConfig:
    """Immutable settings shared by every stage of a single run.

    Timeouts are in seconds and sizes in bytes. ``max_video_size`` of ``None``
    disables the video size ceiling. ``model_dir`` overrides the directory the
    whisper models are looked up in.
    """

    ffmpeg_timeout: float = 30 * 60
    whisper_timeout: float = 60 * 60
    generation_timeout: float = 10 * 60
    max_video_size: int | None = 10 * 1024 * 1024 * 1024
    max_transcript_size: int = 500_000
    sample_rate: int = 16000
    model_dir: Path | None = None
    backend: str = DEFAULT_BACKEND

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "PipelineConfig":
        env = os.environ if environ is None else environ
        overrides: dict[str, object] = {}

        def read(name: str, field: str, parse: Callable[[str], object]) -> None:
            raw = env.get(_ENV_PREFIX + name)
            if raw is None or not raw.strip():
                return
            try:
                overrides[field] = parse(raw.strip())
            except ValueError as exc:
                raise ConfigurationError(f"invalid value for {_ENV_PREFIX}{name}: {raw!r}") from exc

        read("FFMPEG_TIMEOUT", "ffmpeg_timeout", _positive_float)
        read("WHISPER_TIMEOUT", "whisper_timeout", _positive_float)
        read("GENERATION_TIMEOUT", "generation_timeout", _positive_float)
        read("MAX_VIDEO_SIZE", "max_video_size", _optional_size)
        read("MAX_TRANSCRIPT_SIZE", "max_transcript_size", _positive_int)
        read("MODEL_DIR", "model_dir", lambda value: Path(value).expanduser())
        read("BACKEND", "backend", str)

        return cls(**overrides)  # type: ignore[arg-type]


def _positive_float(value: str) -> float:
    number = float(value)
    if number <= 0:
        raise ValueError("must be positive")
    return number


def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise ValueError("must be positive")
    return number


def _optional_size(value: str) -> int | None:
    number = int(value)
    if number < 0:
        raise ValueError("must not be negative")
    return number or None


DEFAULT_CONFIG = PipelineConfig()
