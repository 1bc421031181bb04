from __future__ import annotations

import sys
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from .backends import TextGenerationBackend, create_backend
from .blog import convert_to_blog
from .config import DEFAULT_CONFIG, DEFAULT_MODEL, DEFAULT_STYLE_GUIDE_PATH, PipelineConfig
from .errors import EmptyResultError, StageError
from .transcriber import transcribe_video
from .validation import (
    check_overwrite,
    default_output_path,
    validate_model_size,
    validate_output_path,
    validate_video_extension,
    validate_video_file,
)


class Stage(Enum):
    TRANSCRIBING = "transcription"
    CONVERTING = "blog conversion"
    WRITING = "writing output"


def process_video(
    video_path: Path | str,
    *,
    model_size: str = DEFAULT_MODEL,
    style_path: Path | str | None = DEFAULT_STYLE_GUIDE_PATH,
    output_path: Path | str | None = None,
    force: bool = False,
    backend: Optional[TextGenerationBackend] = None,
    backend_name: str | None = None,
    backend_options: Optional[dict[str, Any]] = None,
    config: PipelineConfig | None = None,
    debug: bool = False,
) -> dict[str, Any]:
    """Run the end-to-end pipeline from video to markdown blog post.

    Inputs are validated before any external process starts. The stages then
    run strictly in order and the first failure is raised as a ``StageError``
    naming the stage; nothing is written unless every stage succeeded.

    Returns:
        ``{"transcript": ..., "blog_post": ..., "output_path": ...}``
    """

    settings = config or DEFAULT_CONFIG
    video = Path(video_path)

    validate_video_extension(video)
    validate_model_size(model_size)
    validate_video_file(video, settings.max_video_size)
    target = validate_output_path(output_path if output_path is not None else default_output_path(video))
    check_overwrite(target, force)

    if backend is None:
        options = {"timeout": settings.generation_timeout, **(backend_options or {})}
        backend = create_backend(backend_name or settings.backend, **options)

    print(f"Processing video: {video}")
    print(f"Using whisper model: {model_size}")

    print("\n[1/3] Transcribing video...")
    try:
        transcript = transcribe_video(video, model_size, config=settings, debug=debug)
    except Exception as exc:  # noqa: BLE001
        raise StageError(Stage.TRANSCRIBING.value, exc) from exc
    print(f"Transcription complete ({len(transcript)} characters)")

    if debug:
        print("[debug] transcript:\n", transcript, file=sys.stderr)

    print("\n[2/3] Converting to blog post...")
    try:
        blog_post = convert_to_blog(transcript, style_path, backend=backend, config=settings).strip()
        if not blog_post:
            raise EmptyResultError("generated blog post is empty")
    except Exception as exc:  # noqa: BLE001
        raise StageError(Stage.CONVERTING.value, exc) from exc

    print("\n[3/3] Writing output file...")
    try:
        target.write_text(blog_post + "\n", encoding="utf-8")
    except OSError as exc:
        raise StageError(Stage.WRITING.value, exc) from exc

    print(f"\nBlog post saved to: {target}")

    return {
        "transcript": transcript,
        "blog_post": blog_post,
        "output_path": target,
    }
