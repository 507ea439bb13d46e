#!/usr/bin/env python3

"""
progtrim.py

Find where the programme starts and ends inside raw broadcast recordings
and cut away the idle ident/black/silence padding with a stream copy,
or re-encode the programme in one pass.
"""

# Standard Library
import argparse
import os
import shlex
import sys

# PIP3 modules
from rich.console import Console
from rich.table import Table

# local repo modules
from progtrimlib.core import config
from progtrimlib.core import utils
from progtrimlib.core.detector import BoundaryDetector
from progtrimlib.media import ffmpeg_trim

#============================================

def parse_args():
	"""
	Parse command-line arguments.

	Returns:
		argparse.Namespace: Parsed command-line arguments.
	"""
	parser = argparse.ArgumentParser(
		description="Trim broadcast recordings to the programme content."
	)
	parser.add_argument('-i', '--input', dest='input_dir', default='.',
		help="Directory searched recursively for .ts recordings.")
	parser.add_argument('-f', '--file', dest='input_file', default=None,
		help="Single recording to process.")
	parser.add_argument('-o', '--output', dest='output_dir', default=None,
		help="Directory for trimmed files.")
	parser.add_argument('-c', '--config', dest='config_file', default=None,
		help="Settings YAML, written with defaults when missing.")
	parser.add_argument('-r', '--reference', dest='reference', default=None,
		help="Reference idle/logo image for the frame difference.")
	parser.add_argument('-s', '--start-window', dest='start_window', type=float,
		default=None, help="Seconds scanned from the recording start.")
	parser.add_argument('-e', '--end-window', dest='end_window', type=float,
		default=None, help="Seconds scanned before the recording end.")
	parser.add_argument('-p', '--parallelism', dest='parallelism', type=int,
		default=None, help="Frames scored in parallel per window.")
	parser.add_argument('-k', '--keep-debug', dest='keep_debug', action='store_true',
		help="Keep frames and per-frame diagnostics in a temp directory.")
	parser.add_argument('-t', '--transcode', dest='transcode', action='store_true',
		help="Re-encode the programme instead of a stream copy.")
	parser.add_argument('--format', dest='container', choices=config.CONTAINER_FORMATS,
		default=None, help="Container of transcoded output.")
	parser.add_argument('--encoder', dest='encoder', default=None,
		help="Software video encoder for transcoding, e.g. libx264 or libx265.")
	parser.add_argument('--preset', dest='preset', default=None,
		help="Encoder preset for transcoding.")
	parser.add_argument('--crf', dest='crf', type=int, default=None,
		help="Constant rate factor for transcoding.")
	parser.add_argument('--audio-copy', dest='audio_copy', action='store_true',
		help="Copy the programme audio stream instead of encoding AAC.")
	parser.add_argument('-n', '--dry-run', dest='dry_run', action='store_true',
		help="Analyze only and print the trim command.")
	parser.add_argument('-y', '--yes', dest='yes', action='store_true',
		help="Trim without asking for confirmation.")
	parser.add_argument('-q', '--quiet', dest='quiet', action='store_true',
		help="Only print errors and the summary.")
	parser.add_argument('-v', '--verbose', dest='verbose', action='store_true',
		help="Print per-frame debug details.")
	parser.set_defaults(keep_debug=None, transcode=None, audio_copy=None)
	args = parser.parse_args()
	return args

#============================================

def load_settings(args: argparse.Namespace) -> dict:
	raw_config = None
	config_path = "<defaults>"
	if args.config_file is not None:
		config_path = args.config_file
		if not os.path.exists(config_path):
			config.write_config_file(config_path, config.default_config())
			utils.echo(f"Wrote default config: {config_path}")
		raw_config = config.load_config(config_path)
	settings = config.build_settings(raw_config, config_path)
	if args.reference is not None:
		settings['reference'] = args.reference
	if args.start_window is not None:
		settings['start_window'] = args.start_window
	if args.end_window is not None:
		settings['end_window'] = args.end_window
	if args.parallelism is not None:
		settings['parallelism'] = args.parallelism
	if args.keep_debug is not None:
		settings['keep_debug'] = args.keep_debug
	if args.output_dir is not None:
		settings['output_dir'] = args.output_dir
	for key in ('transcode', 'container', 'encoder', 'preset', 'crf', 'audio_copy'):
		value = getattr(args, key)
		if value is not None:
			settings[key] = value
	config.validate_settings(settings)
	return settings

#============================================

def collect_recordings(input_dir: str) -> list:
	recordings = []
	for root, dirs, files in os.walk(input_dir):
		dirs.sort()
		for name in sorted(files):
			if name.endswith('.ts'):
				recordings.append(os.path.join(root, name))
	return recordings

#============================================

def confirm(question: str) -> bool:
	try:
		answer = input(question)
	except EOFError:
		return False
	return answer.strip().lower() == 'y'

#============================================

def trim_file(movfile: str, result, settings: dict, args: argparse.Namespace) -> str:
	"""
	Print and optionally run the trim command for a resolved recording.

	Returns:
		str: Status text for the summary table.
	"""
	transcode = settings['transcode']
	if transcode:
		outfile = ffmpeg_trim.default_output_path(movfile, settings['output_dir'],
			settings['container'])
		encode_args = {
			'encoder': settings['encoder'],
			'preset': settings['preset'],
			'crf': settings['crf'],
			'audio_copy': settings['audio_copy'],
			'audio_stream': settings['audio_stream'],
			'ffmpeg_bin': settings['ffmpeg'],
		}
		cmd = ffmpeg_trim.build_transcode_command(movfile, result.program_start,
			result.program_end, outfile, **encode_args)
	else:
		outfile = ffmpeg_trim.default_output_path(movfile, settings['output_dir'])
		cmd = ffmpeg_trim.build_trim_command(movfile, result.program_start,
			result.program_end, outfile, ffmpeg_bin=settings['ffmpeg'])
	minutes = result.program_length / 60.0
	utils.echo("")
	utils.echo("Trim+Transcode Command:" if transcode else "Trim Command:")
	utils.echo(shlex.join(cmd))
	utils.echo(f"Output duration: {minutes:.1f} minutes")
	if args.dry_run:
		utils.echo("DRY RUN: command not executed")
		return "dry run"
	if not args.yes and not confirm("Execute this trim command? (y/N): "):
		utils.echo("Trim operation cancelled")
		return "cancelled"
	if transcode:
		ffmpeg_trim.transcode_recording(movfile, result.program_start,
			result.program_end, outfile, **encode_args)
		return "transcoded"
	ffmpeg_trim.trim_recording(movfile, result.program_start, result.program_end,
		outfile, ffmpeg_bin=settings['ffmpeg'])
	return "trimmed"

#============================================

def process_file(detector: BoundaryDetector, movfile: str, settings: dict,
	args: argparse.Namespace) -> dict:
	utils.echo("")
	utils.echo("=" * 60)
	utils.echo(f"Processing: {os.path.basename(movfile)}")
	utils.echo("=" * 60)
	row = {
		'file': os.path.basename(movfile),
		'start': None,
		'end': None,
		'length': None,
		'status': "",
		'failed': False,
	}
	try:
		result = detector.detect(movfile)
		row['start'] = result.program_start
		row['end'] = result.program_end
		if not result.resolved:
			row['status'] = "; ".join(result.notes)
			return row
		if result.program_end <= result.program_start:
			row['status'] = "end is not after start"
			return row
		row['length'] = result.program_length
		row['status'] = trim_file(movfile, result, settings, args)
	except (RuntimeError, OSError) as exc:
		print(f"error: {movfile}: {exc}", file=sys.stderr)
		row['status'] = f"error: {str(exc).splitlines()[0]}"
		row['failed'] = True
	return row

#============================================

def _format_seconds(value) -> str:
	if value is None:
		return "-"
	return utils.format_clock(value)

#============================================

def print_summary(rows: list) -> None:
	table = Table(title="Programme Boundaries")
	table.add_column("File")
	table.add_column("Start", justify="right")
	table.add_column("End", justify="right")
	table.add_column("Length", justify="right")
	table.add_column("Status")
	for row in rows:
		style = "red" if row['failed'] else None
		table.add_row(row['file'], _format_seconds(row['start']),
			_format_seconds(row['end']), _format_seconds(row['length']),
			row['status'], style=style)
	Console().print(table)
	return

#============================================

def main() -> int:
	"""
	Main entry point.
	"""
	args = parse_args()
	utils.set_quiet_mode(args.quiet)
	utils.set_verbose_mode(args.verbose)
	settings = load_settings(args)
	utils.check_dependency(settings['ffmpeg'])
	utils.check_dependency(settings['magick'])
	if args.input_file is not None:
		recordings = [args.input_file]
	else:
		recordings = collect_recordings(args.input_dir)
	if len(recordings) == 0:
		print(f"no .ts recordings found in {args.input_dir}")
		return 0
	utils.echo(f"Found {len(recordings)} recording(s).")
	detector = BoundaryDetector(settings)
	rows = []
	for movfile in recordings:
		rows.append(process_file(detector, movfile, settings, args))
	print_summary(rows)
	if any(row['failed'] for row in rows):
		return 1
	return 0


if __name__ == '__main__':
	sys.exit(main())
