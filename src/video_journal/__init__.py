"""Video to markdown blog post pipeline."""

from .backends import AnthropicAPIBackend, ClaudeCLIBackend, TextGenerationBackend, create_backend
from .blog import build_prompt, convert_to_blog, load_style_guide
from .config import PipelineConfig
from .errors import (
    ConfigurationError,
    DependencyNotFoundError,
    EmptyResultError,
    ExternalProcessError,
    ExternalTimeoutError,
    InputValidationError,
    StageError,
    StyleGuideNotFoundError,
    VideoJournalError,
)
from .pipeline import process_video
from .transcriber import transcribe_video

__all__ = [
    "AnthropicAPIBackend",
    "ClaudeCLIBackend",
    "TextGenerationBackend",
    "create_backend",
    "build_prompt",
    "convert_to_blog",
    "load_style_guide",
    "PipelineConfig",
    "ConfigurationError",
    "DependencyNotFoundError",
    "EmptyResultError",
    "ExternalProcessError",
    "ExternalTimeoutError",
    "InputValidationError",
    "StageError",
    "StyleGuideNotFoundError",
    "VideoJournalError",
    "process_video",
    "transcribe_video",
]
