#!/usr/bin/env python3

import decimal
import os
import shlex
import shutil
import subprocess
from progtrimlib.core.errors import ExternalToolError

#============================================

_QUIET_MODE = False
_VERBOSE_MODE = False
STDERR_TAIL_LINES = 12

#============================================

def set_quiet_mode(value: bool) -> None:
	global _QUIET_MODE
	_QUIET_MODE = bool(value)
	return

#============================================

def is_quiet_mode() -> bool:
	return _QUIET_MODE

#============================================

def set_verbose_mode(value: bool) -> None:
	global _VERBOSE_MODE
	_VERBOSE_MODE = bool(value)
	return

#============================================

def is_verbose_mode() -> bool:
	return _VERBOSE_MODE and not _QUIET_MODE

#============================================

def echo(text: str) -> None:
	if not _QUIET_MODE:
		print(text)
	return

#============================================

def debug(text: str) -> None:
	if is_verbose_mode():
		print(text)
	return

#============================================

def _stderr_tail(stderr) -> str:
	if stderr is None:
		return ""
	if isinstance(stderr, bytes):
		stderr = stderr.decode('utf-8', errors='replace')
	lines = stderr.strip().splitlines()
	return "\n".join(lines[-STDERR_TAIL_LINES:])

#============================================

def run_process(cmd: list, input_data: bytes = None, text: bool = True,
	show: bool = True) -> subprocess.CompletedProcess:
	"""
	Run an external command to completion and capture its output.

	Args:
		cmd: Command list to execute.
		input_data: Bytes written to the child's standard input.
		text: Decode stdout and stderr as UTF-8 text when True.
		show: Echo the command line (verbose mode only when False).

	Returns:
		subprocess.CompletedProcess: The completed process.

	Raises:
		ExternalToolError: The command could not be started or exited non-zero.
	"""
	showcmd = shlex.join(cmd)
	if show:
		echo(f"CMD: '{showcmd}'")
	else:
		debug(f"CMD: '{showcmd}'")
	kwargs = {}
	if text:
		kwargs['encoding'] = 'utf-8'
		kwargs['errors'] = 'replace'
	try:
		proc = subprocess.run(cmd, input=input_data, capture_output=True, **kwargs)
	except OSError as exc:
		raise ExternalToolError(cmd, None, str(exc)) from exc
	if proc.returncode != 0:
		raise ExternalToolError(cmd, proc.returncode, _stderr_tail(proc.stderr))
	return proc

#============================================

def check_dependency(cmd_name: str) -> None:
	if shutil.which(cmd_name) is None:
		raise ExternalToolError([cmd_name], None, f"missing dependency: {cmd_name}")
	return

#============================================

def ensure_file_exists(filepath: str) -> None:
	if not os.path.isfile(filepath):
		raise RuntimeError(f"file not found: {filepath}")
	return

#============================================

def seconds_to_millis(seconds: float) -> int:
	"""
	Round a time in seconds to whole milliseconds, halves away from zero.

	Timestamps in ffmpeg reports and window offsets all pass through here,
	so frame times and silence bounds compare exactly.

	Args:
		seconds: Time in seconds, as printed by ffmpeg or configured.

	Returns:
		int: Time in milliseconds.
	"""
	millis = decimal.Decimal(repr(float(seconds))).scaleb(3)
	return int(millis.to_integral_value(rounding=decimal.ROUND_HALF_UP))

#============================================

def frame_offset_millis(index: int, frame_rate: float) -> int:
	return seconds_to_millis(index / frame_rate)

#============================================

def _split_clock(total: int, unit: int) -> tuple:
	(minutes, rest) = divmod(total, 60 * unit)
	(seconds, fraction) = divmod(rest, unit)
	return (minutes, seconds, fraction)

#============================================

def format_timestamp(seconds: float) -> str:
	"""
	Format seconds as HH:MM:SS.mmm for console reports.
	"""
	(minutes, secs, millis) = _split_clock(max(0, seconds_to_millis(seconds)), 1000)
	(hours, minutes) = divmod(minutes, 60)
	return f"{hours:02d}:{minutes:02d}:{secs:02d}.{millis:03d}"

#============================================

def format_clock(seconds: float) -> str:
	# summary table: minutes keep counting past an hour
	(minutes, secs, centis) = _split_clock(max(0, int(seconds * 100)), 100)
	return f"{minutes:02d}:{secs:02d}.{centis:02d}"
