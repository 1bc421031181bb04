from __future__ import annotations

import subprocess
import sys
from pathlib import Path
from typing import Callable

import pytest

from video_journal.config import PipelineConfig
from video_journal.errors import (
    DependencyNotFoundError,
    EmptyResultError,
    ExternalProcessError,
    ExternalTimeoutError,
    InputValidationError,
)


@pytest.fixture
def video_file(tmp_path: Path) -> Path:
    video = tmp_path / "talk.mp4"
    video.write_bytes(b"fake-video")
    return video


@pytest.fixture
def config(tmp_path: Path) -> PipelineConfig:
    model_dir = tmp_path / "models"
    model_dir.mkdir()
    (model_dir / "ggml-base.bin").write_bytes(b"model")
    return PipelineConfig(model_dir=model_dir, ffmpeg_timeout=5, whisper_timeout=7)


def make_fake_run(
    transcript: str | None,
    calls: list[list[str]],
    *,
    whisper_error: BaseException | None = None,
) -> Callable[..., subprocess.CompletedProcess]:
    def fake_run(command: list[str], **kwargs) -> subprocess.CompletedProcess:
        calls.append(list(command))
        if command[0] == "ffmpeg":
            Path(command[-1]).write_bytes(b"RIFF")
            return subprocess.CompletedProcess(command, 0)

        base = command[command.index("-of") + 1]
        Path(base + ".vtt").write_text("WEBVTT")
        if whisper_error is not None:
            raise whisper_error
        if transcript is not None:
            Path(base + ".txt").write_text(transcript)
        return subprocess.CompletedProcess(command, 0, stdout="")

    return fake_run


def test_model_path_uses_xdg_cache_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    from video_journal.transcriber import model_path

    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))

    assert model_path("small") == tmp_path / "cache" / "whisper" / "ggml-small.bin"


def test_model_path_prefers_configured_directory(tmp_path: Path) -> None:
    from video_journal.transcriber import model_path

    config = PipelineConfig(model_dir=tmp_path / "weights")

    assert model_path("tiny", config) == tmp_path / "weights" / "ggml-tiny.bin"


def test_ensure_model_explains_how_to_download(tmp_path: Path) -> None:
    from video_journal.transcriber import ensure_model

    config = PipelineConfig(model_dir=tmp_path)

    with pytest.raises(DependencyNotFoundError) as excinfo:
        ensure_model("medium", config)

    message = str(excinfo.value)
    assert "whisper model not found" in message
    assert "curl -L -o" in message
    assert "ggml-medium.bin" in message


def test_find_whisper_cli_prefers_search_path(monkeypatch: pytest.MonkeyPatch) -> None:
    from video_journal import transcriber

    looked_up: list[str] = []

    def fake_which(name: str) -> str | None:
        looked_up.append(name)
        return "/usr/bin/whisper" if name == "whisper" else None

    monkeypatch.setattr(transcriber.shutil, "which", fake_which)

    assert transcriber.find_whisper_cli() == "/usr/bin/whisper"
    assert looked_up == ["whisper-cpp", "whisper-cli", "whisper"]


def test_find_whisper_cli_falls_back_to_install_locations(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    from video_journal import transcriber

    installed = tmp_path / "whisper.cpp" / "main"
    installed.parent.mkdir()
    installed.write_text("#!/bin/sh\n")

    monkeypatch.setattr(transcriber.shutil, "which", lambda _name: None)

    assert transcriber.find_whisper_cli(locations=[tmp_path / "missing", installed]) == str(installed)


def test_find_whisper_cli_reports_install_steps(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    from video_journal import transcriber

    monkeypatch.setattr(transcriber.shutil, "which", lambda _name: None)

    with pytest.raises(DependencyNotFoundError, match="brew install whisper-cpp"):
        transcriber.find_whisper_cli(locations=[tmp_path / "nothing-here"])


def test_transcribe_video_runs_ffmpeg_then_whisper(
    video_file: Path, config: PipelineConfig, monkeypatch: pytest.MonkeyPatch
) -> None:
    from video_journal import transcriber

    calls: list[list[str]] = []
    monkeypatch.setattr(transcriber, "find_whisper_cli", lambda: "whisper-cpp")
    monkeypatch.setattr("video_journal.transcriber.subprocess.run", make_fake_run("  hello world \n", calls))

    transcript = transcriber.transcribe_video(video_file, "base", config=config)

    assert transcript == "hello world"
    assert [call[0] for call in calls] == ["ffmpeg", "whisper-cpp"]

    whisper_call = calls[1]
    assert whisper_call[whisper_call.index("-m") + 1] == str(config.model_dir / "ggml-base.bin")
    assert whisper_call[whisper_call.index("-f") + 1] == calls[0][-1]
    assert "-otxt" in whisper_call
    assert "--no-timestamps" in whisper_call


def test_transcribe_video_removes_temporary_files(
    video_file: Path, config: PipelineConfig, monkeypatch: pytest.MonkeyPatch
) -> None:
    from video_journal import transcriber

    calls: list[list[str]] = []
    monkeypatch.setattr(transcriber, "find_whisper_cli", lambda: "whisper-cpp")
    monkeypatch.setattr("video_journal.transcriber.subprocess.run", make_fake_run("text", calls))

    transcriber.transcribe_video(video_file, "base", config=config)

    audio_path = Path(calls[0][-1])
    output_base = calls[1][calls[1].index("-of") + 1]
    assert not audio_path.exists()
    assert not Path(output_base + ".txt").exists()
    assert not Path(output_base + ".vtt").exists()
    assert not audio_path.parent.exists()


def test_transcribe_video_reports_no_speech_and_cleans_up(
    video_file: Path, config: PipelineConfig, monkeypatch: pytest.MonkeyPatch
) -> None:
    from video_journal import transcriber

    calls: list[list[str]] = []
    monkeypatch.setattr(transcriber, "find_whisper_cli", lambda: "whisper-cpp")
    monkeypatch.setattr("video_journal.transcriber.subprocess.run", make_fake_run(" \n\t ", calls))

    with pytest.raises(EmptyResultError, match="no speech detected"):
        transcriber.transcribe_video(video_file, "base", config=config)

    assert not Path(calls[0][-1]).parent.exists()


def test_transcribe_video_maps_whisper_timeout(
    video_file: Path, config: PipelineConfig, monkeypatch: pytest.MonkeyPatch
) -> None:
    from video_journal import transcriber

    calls: list[list[str]] = []
    monkeypatch.setattr(transcriber, "find_whisper_cli", lambda: "whisper-cpp")
    monkeypatch.setattr(
        "video_journal.transcriber.subprocess.run",
        make_fake_run(None, calls, whisper_error=subprocess.TimeoutExpired("whisper-cpp", 7)),
    )

    with pytest.raises(ExternalTimeoutError, match="whisper transcription timed out") as excinfo:
        transcriber.transcribe_video(video_file, "base", config=config)

    assert excinfo.value.timeout == 7
    assert not Path(calls[0][-1]).parent.exists()


def test_transcribe_video_includes_whisper_output_on_failure(
    video_file: Path, config: PipelineConfig, monkeypatch: pytest.MonkeyPatch
) -> None:
    from video_journal import transcriber

    calls: list[list[str]] = []
    failure = subprocess.CalledProcessError(3, "whisper-cpp", output="failed to load model")
    monkeypatch.setattr(transcriber, "find_whisper_cli", lambda: "whisper-cpp")
    monkeypatch.setattr("video_journal.transcriber.subprocess.run", make_fake_run(None, calls, whisper_error=failure))

    with pytest.raises(ExternalProcessError) as excinfo:
        transcriber.transcribe_video(video_file, "base", config=config)

    assert not isinstance(excinfo.value, ExternalTimeoutError)
    assert "failed to load model" in str(excinfo.value)
    assert excinfo.value.output == "failed to load model"
    assert not Path(calls[0][-1]).parent.exists()


def test_transcribe_video_fails_when_transcript_missing(
    video_file: Path, config: PipelineConfig, monkeypatch: pytest.MonkeyPatch
) -> None:
    from video_journal import transcriber

    calls: list[list[str]] = []
    monkeypatch.setattr(transcriber, "find_whisper_cli", lambda: "whisper-cpp")
    monkeypatch.setattr("video_journal.transcriber.subprocess.run", make_fake_run(None, calls))

    with pytest.raises(ExternalProcessError, match="failed to read transcript"):
        transcriber.transcribe_video(video_file, "base", config=config)


def test_transcribe_video_cleans_up_when_extraction_times_out(
    video_file: Path, config: PipelineConfig, monkeypatch: pytest.MonkeyPatch
) -> None:
    from video_journal import transcriber

    created: list[Path] = []

    def fake_run(command: list[str], **kwargs) -> subprocess.CompletedProcess:
        target = Path(command[-1])
        target.write_bytes(b"partial")
        created.append(target)
        raise subprocess.TimeoutExpired(command, kwargs["timeout"])

    monkeypatch.setattr(transcriber, "find_whisper_cli", lambda: "whisper-cpp")
    monkeypatch.setattr("video_journal.transcriber.subprocess.run", fake_run)

    with pytest.raises(ExternalTimeoutError, match="ffmpeg audio extraction timed out"):
        transcriber.transcribe_video(video_file, "base", config=config)

    assert created and not created[0].exists()


def test_transcribe_video_rejects_missing_and_oversized_video(tmp_path: Path, config: PipelineConfig) -> None:
    from video_journal.transcriber import transcribe_video

    with pytest.raises(InputValidationError, match="video file not found"):
        transcribe_video(tmp_path / "absent.mp4", "base", config=config)

    big = tmp_path / "big.mp4"
    big.write_bytes(b"x" * 32)
    small_limit = PipelineConfig(model_dir=config.model_dir, max_video_size=16)

    with pytest.raises(InputValidationError, match="video file too large: 32 bytes"):
        transcribe_video(big, "base", config=small_limit)


def test_transcribe_video_rejects_unknown_model(video_file: Path, config: PipelineConfig) -> None:
    from video_journal.transcriber import transcribe_video

    with pytest.raises(InputValidationError, match="invalid model size 'huge'"):
        transcribe_video(video_file, "huge", config=config)


def test_transcribe_video_defaults_to_base_model(
    video_file: Path, config: PipelineConfig, monkeypatch: pytest.MonkeyPatch
) -> None:
    from video_journal import transcriber

    calls: list[list[str]] = []
    monkeypatch.setattr(transcriber, "find_whisper_cli", lambda: "whisper-cpp")
    monkeypatch.setattr("video_journal.transcriber.subprocess.run", make_fake_run("text", calls))

    transcriber.transcribe_video(video_file, config=config)

    whisper_call = calls[1]
    assert whisper_call[whisper_call.index("-m") + 1] == str(config.model_dir / "ggml-base.bin")


def write_whisper_stub(path: Path, *, exit_code: int = 0) -> Path:
    path.write_text(
        "#!/bin/sh\n"
        'while [ "$#" -gt 0 ]; do\n'
        '  if [ "$1" = "-of" ]; then base="$2"; fi\n'
        "  shift\n"
        "done\n"
        "printf '\\346\\227 partial\\n'\n"
        "printf 'hello world\\n' > \"$base.txt\"\n"
        f"exit {exit_code}\n"
    )
    path.chmod(0o755)
    return path


def fake_extract_audio(_video: Path, output_path: Path, **_kwargs) -> Path:
    Path(output_path).write_bytes(b"RIFF")
    return Path(output_path)


@pytest.mark.skipif(sys.platform == "win32", reason="requires a POSIX shell")
def test_transcribe_video_tolerates_undecodable_whisper_output(
    video_file: Path, config: PipelineConfig, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    from video_journal import transcriber

    stub = write_whisper_stub(tmp_path / "whisper-cpp")
    monkeypatch.setattr(transcriber, "find_whisper_cli", lambda: str(stub))
    monkeypatch.setattr(transcriber, "extract_audio", fake_extract_audio)

    assert transcriber.transcribe_video(video_file, "base", config=config) == "hello world"


@pytest.mark.skipif(sys.platform == "win32", reason="requires a POSIX shell")
def test_transcribe_video_reports_undecodable_output_on_failure(
    video_file: Path, config: PipelineConfig, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    from video_journal import transcriber

    stub = write_whisper_stub(tmp_path / "whisper-cpp", exit_code=1)
    monkeypatch.setattr(transcriber, "find_whisper_cli", lambda: str(stub))
    monkeypatch.setattr(transcriber, "extract_audio", fake_extract_audio)

    with pytest.raises(ExternalProcessError) as excinfo:
        transcriber.transcribe_video(video_file, "base", config=config)

    assert excinfo.value.output is not None
    assert "� partial" in excinfo.value.output
