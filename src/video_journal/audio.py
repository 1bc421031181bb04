from __future__ import annotations

import subprocess
from pathlib import Path

from .errors import ExternalProcessError, ExternalTimeoutError


def extract_audio(
    input_video: Path | str,
    output_path: Path | str,
    *,
    sample_rate: int = 16000,
    timeout: float | None = None,
) -> Path:
    """Extract a mono 16-bit PCM WAV track from ``input_video``.

    Args:
        input_video: Path to the source video file.
        output_path: Target path for the extracted audio.
        sample_rate: Audio sampling rate in Hz. whisper.cpp expects 16 kHz.
        timeout: Seconds ffmpeg may run before it is killed.

    Returns:
        Path to the extracted audio file.
    """

    input_path = Path(input_video)
    target = Path(output_path)

    command = [
        "ffmpeg",
        "-y",
        "-i",
        str(input_path),
        "-vn",
        "-ac",
        "1",
        "-ar",
        str(sample_rate),
        "-acodec",
        "pcm_s16le",
        str(target),
    ]

    try:
        subprocess.run(
            command,
            check=True,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as exc:
        raise ExternalTimeoutError(
            f"ffmpeg audio extraction timed out after {format_seconds(timeout)}",
            timeout=timeout,
        ) from exc
    except (subprocess.CalledProcessError, OSError) as exc:
        raise ExternalProcessError(
            f"ffmpeg audio extraction failed: {exc}\nMake sure ffmpeg is installed"
        ) from exc

    return target


def format_seconds(seconds: float | None) -> str:
    """Render a timeout like ``30m0s`` for messages."""

    if seconds is None:
        return "no limit"
    total = int(seconds)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}h{minutes}m{secs}s"
    if minutes:
        return f"{minutes}m{secs}s"
    return f"{secs}s"
