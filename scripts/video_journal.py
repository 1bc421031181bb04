import argparse
import sys
from typing import NoReturn, Optional, Sequence

from video_journal import process_video
from video_journal.backends import BACKENDS
from video_journal.config import DEFAULT_MODEL, DEFAULT_STYLE_GUIDE_PATH, PipelineConfig
from video_journal.errors import VideoJournalError


class _ArgumentParser(argparse.ArgumentParser):
	def error(self, message: str) -> NoReturn:
		self.print_usage(sys.stderr)
		self.exit(1, f"Error: {message}\n")


def build_parser(default_backend: str) -> argparse.ArgumentParser:
	parser = _ArgumentParser(
		description="Convert a video file into a blog post using AI.",
		epilog=(
			"Prerequisites:\n"
			"  - ffmpeg and whisper.cpp must be installed\n"
			"  - claude CLI must be installed and authenticated (or set ANTHROPIC_API_KEY\n"
			"    and use --backend anthropic-api)\n\n"
			"Example:\n"
			"  python scripts/video_journal.py --model base my-video.mp4"
		),
		formatter_class=argparse.RawDescriptionHelpFormatter,
	)
	parser.add_argument("video", help="Path to the input video file")
	parser.add_argument(
		"--model",
		default=DEFAULT_MODEL,
		help="Whisper model size (tiny/base/small/medium/large)",
	)
	parser.add_argument(
		"--style",
		default=DEFAULT_STYLE_GUIDE_PATH,
		help="Path to style guide file",
	)
	parser.add_argument(
		"--output",
		help="Output file path (default: auto-generated from video name)",
	)
	parser.add_argument(
		"--force",
		action="store_true",
		help="Overwrite output file if it exists",
	)
	parser.add_argument(
		"--backend",
		choices=sorted(BACKENDS),
		default=default_backend,
		help="Text generation backend used to write the blog post",
	)
	parser.add_argument(
		"--debug",
		action="store_true",
		help="Print resolved binaries and the raw transcript to stderr",
	)
	return parser


def parse_args(argv: Optional[Sequence[str]] = None, config: Optional[PipelineConfig] = None) -> argparse.Namespace:
	default_backend = config.backend if config is not None else PipelineConfig().backend
	return build_parser(default_backend).parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
	try:
		config = PipelineConfig.from_env()
	except VideoJournalError as exc:
		print(f"Error: {exc}", file=sys.stderr)
		return 1

	args = parse_args(argv, config)

	try:
		process_video(
			args.video,
			model_size=args.model,
			style_path=args.style,
			output_path=args.output,
			force=args.force,
			backend_name=args.backend,
			config=config,
			debug=args.debug,
		)
	except VideoJournalError as exc:
		print(f"Error: {exc}", file=sys.stderr)
		return 1

	return 0


if __name__ == "__main__":
	sys.exit(main())
