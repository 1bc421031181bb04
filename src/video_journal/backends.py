from __future__ import annotations

import os
import subprocess
from abc import ABC, abstractmethod
from typing import Any, Sequence

import requests

from .audio import format_seconds
from .config import DEFAULT_CONFIG
from .errors import (
    ConfigurationError,
    DependencyNotFoundError,
    ExternalProcessError,
    ExternalTimeoutError,
)


class TextGenerationBackend(ABC):
    """Anything that turns a prompt into text."""

    name = "text generation backend"

    @abstractmethod
    def generate(self, prompt: str) -> str:
        raise NotImplementedError


class ClaudeCLIBackend(TextGenerationBackend):
    """Runs the locally installed ``claude`` CLI in print mode."""

    name = "claude CLI"

    def __init__(
        self,
        *,
        executable: str = "claude",
        timeout: float = DEFAULT_CONFIG.generation_timeout,
        extra_args: Sequence[str] = (),
    ) -> None:
        self.executable = executable
        self.timeout = timeout
        self.extra_args = list(extra_args)

    def generate(self, prompt: str) -> str:
        command = [self.executable, *self.extra_args, "-p", prompt]
        try:
            completed = subprocess.run(
                command,
                check=True,
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise ExternalTimeoutError(
                f"claude CLI timed out after {format_seconds(self.timeout)}",
                timeout=self.timeout,
            ) from exc
        except subprocess.CalledProcessError as exc:
            stderr = (exc.stderr or "").strip()
            raise ExternalProcessError(
                f"claude CLI error: exit status {exc.returncode}\nstderr: {stderr}",
                output=stderr,
            ) from exc
        except FileNotFoundError as exc:
            raise DependencyNotFoundError(
                f"{self.executable} CLI not found\n\n"
                "Install it and authenticate before running:\n"
                "  npm install -g @anthropic-ai/claude-code"
            ) from exc
        except OSError as exc:
            raise ExternalProcessError(f"claude CLI error: {exc}") from exc

        return completed.stdout


class AnthropicAPIBackend(TextGenerationBackend):
    """Client for the hosted Anthropic Messages API."""

    name = "Anthropic API"

    def __init__(
        self,
        *,
        api_key: str | None = None,
        base_url: str = "https://api.anthropic.com/v1",
        model: str | None = None,
        max_tokens: int = 8192,
        timeout: float = DEFAULT_CONFIG.generation_timeout,
        api_version: str = "2023-06-01",
    ) -> None:
        self.api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        if not self.api_key:
            raise ConfigurationError("ANTHROPIC_API_KEY is not set")

        self.base_url = base_url.rstrip("/")
        self.model = model or os.getenv("ANTHROPIC_MODEL") or "claude-sonnet-4-5-20250929"
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.api_version = api_version

    def generate(self, prompt: str) -> str:
        payload: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        headers = {
            "x-api-key": str(self.api_key),
            "anthropic-version": self.api_version,
            "Content-Type": "application/json",
        }

        try:
            response = requests.post(
                f"{self.base_url}/messages",
                headers=headers,
                json=payload,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.Timeout as exc:
            raise ExternalTimeoutError(
                f"Anthropic API request timed out after {format_seconds(self.timeout)}",
                timeout=self.timeout,
            ) from exc
        except requests.RequestException as exc:
            body = exc.response.text if exc.response is not None else None
            raise ExternalProcessError(f"Anthropic API request failed: {exc}", output=body) from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise ExternalProcessError("Anthropic API response is not valid JSON") from exc

        try:
            blocks = data["content"]
            texts = [block["text"] for block in blocks if block.get("type") == "text"]
        except (KeyError, TypeError, AttributeError) as exc:
            raise ExternalProcessError("Unexpected Anthropic API response payload") from exc

        if not all(isinstance(text, str) for text in texts):
            raise ExternalProcessError("Anthropic API response content is not text")

        return "".join(texts)


BACKENDS: dict[str, type[TextGenerationBackend]] = {
    "claude-cli": ClaudeCLIBackend,
    "anthropic-api": AnthropicAPIBackend,
}


def create_backend(name: str, **options: Any) -> TextGenerationBackend:
    """Instantiate the backend registered under ``name`` with ``options``."""

    try:
        backend_cls = BACKENDS[name.lower()]
    except KeyError as exc:
        choices = ", ".join(sorted(BACKENDS))
        raise ConfigurationError(f"Unsupported text generation backend: {name} (choose from {choices})") from exc
    return backend_cls(**options)
