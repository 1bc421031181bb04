from __future__ import annotations

import os
from pathlib import Path

from .config import VALID_MODELS, VIDEO_EXTENSIONS
from .errors import InputValidationError


def validate_video_extension(video_path: Path | str) -> None:
    suffix = Path(video_path).suffix.lower()
    if suffix not in VIDEO_EXTENSIONS:
        supported = ", ".join(ext.lstrip(".") for ext in VIDEO_EXTENSIONS)
        raise InputValidationError(
            f"unsupported video format '{suffix}'. Supported formats: {supported}"
        )


def validate_model_size(model_size: str) -> None:
    if model_size not in VALID_MODELS:
        choices = ", ".join(VALID_MODELS[:-1]) + f", or {VALID_MODELS[-1]}"
        raise InputValidationError(f"invalid model size '{model_size}'. Use: {choices}")


def validate_video_file(video_path: Path | str, max_size: int | None = None) -> Path:
    """Check that ``video_path`` is an existing file no larger than ``max_size`` bytes."""

    path = Path(video_path)
    try:
        size = path.stat().st_size
    except FileNotFoundError as exc:
        raise InputValidationError(f"video file not found: {path}") from exc
    except OSError as exc:
        raise InputValidationError(f"cannot access video file: {exc}") from exc

    if not path.is_file():
        raise InputValidationError(f"video path is not a file: {path}")
    if max_size is not None and size > max_size:
        raise InputValidationError(f"video file too large: {size} bytes (max: {max_size} bytes)")
    return path


def default_output_path(video_path: Path | str) -> Path:
    """Name of the markdown file written next to the working directory for ``video_path``."""

    return Path(Path(video_path).stem + ".md")


def validate_output_path(output_path: Path | str, *, cwd: Path | str | None = None) -> Path:
    """Resolve ``output_path`` and reject anything outside the working directory.

    Returns the absolute output path. The parent directory must already exist.
    """

    base = Path(os.path.abspath(cwd if cwd is not None else Path.cwd()))
    target = Path(os.path.abspath(base / Path(output_path)))

    try:
        relative = os.path.relpath(target, base)
    except ValueError as exc:
        raise InputValidationError(f"invalid output path: {output_path}") from exc

    if Path(relative).parts[:1] == ("..",):
        raise InputValidationError(
            f"output path must be within current directory (no path traversal): {output_path}"
        )

    if not target.parent.is_dir():
        raise InputValidationError(f"output directory does not exist: {target.parent}")

    return target


def check_overwrite(output_path: Path | str, force: bool) -> None:
    path = Path(output_path)
    if not force and path.exists():
        raise InputValidationError(f"output file already exists: {path}\nUse --force to overwrite")
