from __future__ import annotations

from pathlib import Path

from .backends import TextGenerationBackend, create_backend
from .config import DEFAULT_CONFIG, DEFAULT_STYLE_GUIDE, DEFAULT_STYLE_GUIDE_PATH, PipelineConfig
from .errors import EmptyResultError, InputValidationError, StyleGuideNotFoundError, VideoJournalError


def load_style_guide(path: Path | str | None) -> str:
    """Load the style guide at ``path``.

    An empty path selects the built-in guide. A missing file is only tolerated
    for the conventional ``style_guide.md``, so a mistyped ``--style`` argument
    is reported instead of silently ignored.
    """

    if path is None or not str(path):
        return DEFAULT_STYLE_GUIDE

    guide_path = Path(path)
    try:
        return guide_path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        if guide_path == Path(DEFAULT_STYLE_GUIDE_PATH):
            return DEFAULT_STYLE_GUIDE
        raise StyleGuideNotFoundError(f"style guide not found: {path}") from exc
    except OSError as exc:
        raise VideoJournalError(f"failed to read style guide: {exc}") from exc


def build_prompt(transcript: str, style_guide: str) -> str:
    return (
        "Convert the following video transcript into a well-structured blog post.\n"
        "\n"
        "## Style Guide\n"
        f"{style_guide}\n"
        "\n"
        "## Instructions\n"
        "1. Create an engaging title that captures the main topic\n"
        "2. Write a brief introduction that hooks the reader\n"
        "3. Organize the main content with clear headings\n"
        "4. Preserve the key insights and examples from the transcript\n"
        "5. Add a conclusion with key takeaways\n"
        "6. Output the blog post in markdown format\n"
        '7. Do not include phrases like "In this video" - write as if it was always a blog post\n'
        "\n"
        "## Transcript\n"
        f"{transcript}\n"
        "\n"
        "## Blog Post (Markdown)"
    )


def convert_to_blog(
    transcript: str,
    style_path: Path | str | None = DEFAULT_STYLE_GUIDE_PATH,
    *,
    backend: TextGenerationBackend | None = None,
    config: PipelineConfig | None = None,
) -> str:
    """Turn ``transcript`` into a markdown blog post with the generation backend."""

    settings = config or DEFAULT_CONFIG

    size = len(transcript.encode("utf-8"))
    if size > settings.max_transcript_size:
        raise InputValidationError(
            f"transcript too large: {size} bytes (max: {settings.max_transcript_size} bytes)"
        )

    style_guide = load_style_guide(style_path)
    prompt = build_prompt(transcript, style_guide)

    generator = backend
    if generator is None:
        generator = create_backend(settings.backend, timeout=settings.generation_timeout)

    print(f"Generating blog post with {generator.name}...")
    result = generator.generate(prompt).strip()
    if not result:
        raise EmptyResultError(f"{generator.name} returned empty output")
    return result
