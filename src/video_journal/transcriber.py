from __future__ import annotations

import os
import shutil
import subprocess
import sys
from pathlib import Path
from tempfile import TemporaryDirectory
from typing import Sequence

from .audio import extract_audio, format_seconds
from .config import DEFAULT_CONFIG, DEFAULT_MODEL, PipelineConfig
from .errors import (
    DependencyNotFoundError,
    EmptyResultError,
    ExternalProcessError,
    ExternalTimeoutError,
)
from .validation import validate_model_size, validate_video_file

WHISPER_CLI_NAMES = ("whisper-cpp", "whisper-cli", "whisper", "main")
MODEL_DOWNLOAD_URL = "https://huggingface.co/ggerganov/whisper.cpp/resolve/main/ggml-{size}.bin"


def whisper_model_dir(config: PipelineConfig | None = None) -> Path:
    if config is not None and config.model_dir is not None:
        return Path(config.model_dir)

    base_dir = os.getenv("XDG_CACHE_HOME")
    if base_dir:
        base = Path(base_dir)
    else:
        base = Path.home() / ".cache"
    return base / "whisper"


def model_path(model_size: str, config: PipelineConfig | None = None) -> Path:
    """Expected on-disk location of the ggml model for ``model_size``."""

    return whisper_model_dir(config) / f"ggml-{model_size}.bin"


def ensure_model(model_size: str, config: PipelineConfig | None = None) -> Path:
    path = model_path(model_size, config)
    if not path.is_file():
        raise DependencyNotFoundError(
            f"whisper model not found at {path}\n\n"
            "Download it with:\n"
            f"  mkdir -p {path.parent}\n"
            f"  curl -L -o {path} {MODEL_DOWNLOAD_URL.format(size=model_size)}"
        )
    return path


def whisper_install_locations() -> list[Path]:
    home = Path.home()
    return [
        home / "whisper.cpp" / "main",
        home / "whisper.cpp" / "build" / "bin" / "main",
        home / "whisper.cpp" / "build" / "bin" / "whisper-cli",
        Path("/usr/local/bin/whisper-cpp"),
        Path("/opt/homebrew/bin/whisper-cpp"),
    ]


def find_whisper_cli(
    names: Sequence[str] = WHISPER_CLI_NAMES,
    locations: Sequence[Path] | None = None,
) -> str:
    """Locate the whisper.cpp executable on ``PATH`` or in a known install location."""

    for name in names:
        found = shutil.which(name)
        if found:
            return found

    candidates = whisper_install_locations() if locations is None else locations
    for candidate in candidates:
        if Path(candidate).is_file():
            return str(candidate)

    raise DependencyNotFoundError(
        "whisper.cpp CLI not found\n\n"
        "Install whisper.cpp:\n"
        "  brew install whisper-cpp\n\n"
        "Or build from source:\n"
        "  git clone https://github.com/ggerganov/whisper.cpp\n"
        "  cd whisper.cpp && make"
    )


def transcribe_video(
    video_path: Path | str,
    model_size: str = DEFAULT_MODEL,
    *,
    config: PipelineConfig | None = None,
    debug: bool = False,
) -> str:
    """Transcribe the speech in ``video_path`` with whisper.cpp.

    The audio track is extracted to a private temporary directory together with
    every file whisper writes, and that directory is removed before returning,
    whether transcription succeeded or not.

    Returns:
        The trimmed transcript text.
    """

    settings = config or DEFAULT_CONFIG
    validate_model_size(model_size)
    video = validate_video_file(video_path, settings.max_video_size)
    model = ensure_model(model_size, settings)
    whisper_cli = find_whisper_cli()

    if debug:
        print(f"[debug] whisper binary: {whisper_cli}", file=sys.stderr)
        print(f"[debug] whisper model: {model}", file=sys.stderr)

    with TemporaryDirectory(prefix="video-journal-") as tmpdir:
        workdir = Path(tmpdir)

        print("Extracting audio from video...")
        audio_path = extract_audio(
            video,
            workdir / "audio.wav",
            sample_rate=settings.sample_rate,
            timeout=settings.ffmpeg_timeout,
        )

        print("Transcribing audio with whisper.cpp...")
        output_base = workdir / "transcript"
        _run_whisper(whisper_cli, model, audio_path, output_base, timeout=settings.whisper_timeout)

        transcript_path = output_base.with_suffix(".txt")
        try:
            transcript = transcript_path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            raise ExternalProcessError(f"failed to read transcript: {exc}") from exc

    result = transcript.strip()
    if not result:
        raise EmptyResultError("no speech detected in video")
    return result


def _run_whisper(
    whisper_cli: str,
    model: Path,
    audio_path: Path,
    output_base: Path,
    *,
    timeout: float | None,
) -> None:
    command = [
        whisper_cli,
        "-m",
        str(model),
        "-f",
        str(audio_path),
        "-otxt",
        "-of",
        str(output_base),
        "--no-timestamps",
    ]

    try:
        subprocess.run(
            command,
            check=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as exc:
        raise ExternalTimeoutError(
            f"whisper transcription timed out after {format_seconds(timeout)}",
            timeout=timeout,
        ) from exc
    except subprocess.CalledProcessError as exc:
        output = exc.output or ""
        raise ExternalProcessError(
            f"whisper transcription failed: exit status {exc.returncode}\nOutput: {output}",
            output=output,
        ) from exc
    except OSError as exc:
        raise ExternalProcessError(f"whisper transcription failed: {exc}") from exc
