#!/usr/bin/env python3

import re
from progtrimlib.core import utils
from progtrimlib.core.errors import DurationParseError

#============================================

DURATION_RE = re.compile(r"Duration: (\d{2}):(\d{2}):(\d{2}\.\d{2})")

#============================================

def parse_duration_text(text: str) -> float:
	"""
	Read the first 'Duration: HH:MM:SS.ff' report from ffmpeg diagnostics.

	Args:
		text: Diagnostic output of an ffmpeg run.

	Returns:
		float: Duration in seconds.
	"""
	match = DURATION_RE.search(text or "")
	if match is None:
		raise DurationParseError("could not determine media duration")
	hours = int(match.group(1))
	minutes = int(match.group(2))
	seconds = float(match.group(3))
	return hours * 3600 + minutes * 60 + seconds

#============================================

def probe_duration(movfile: str, ffmpeg_bin: str = "ffmpeg") -> float:
	cmd = [
		ffmpeg_bin, "-hide_banner", "-nostats",
		"-i", movfile,
		"-c", "copy",
		"-f", "null", "-",
	]
	proc = utils.run_process(cmd)
	duration = parse_duration_text(proc.stderr)
	utils.echo(f"[DURATION] {utils.format_timestamp(duration)} ({duration:.2f}s)")
	return duration
