#!/usr/bin/env python3

"""
Fuse per-frame blank similarity with silence periods and resolve the
programme start and end from the two scan windows.
"""

import numpy
from progtrimlib.core import utils
from progtrimlib.core.models import BoundaryResult, Frame, FrameWindow

#============================================

SIMILARITY_THRESHOLD = 0.92
N_CONSECUTIVE = 2
FRAME_RATE = 5
SILENCE_TOLERANCE_MS = 200

#============================================

def build_frames(means: list, frame_rate: float, offset_ms: int = 0) -> tuple:
	"""
	Turn scorer output into Frame values stamped with absolute time.

	Args:
		means: Mean intensity per frame, None where scoring failed.
		frame_rate: Sampling rate of the window.
		offset_ms: Absolute start of the window in milliseconds.

	Returns:
		tuple: Frame values in window order.
	"""
	frames = []
	for index, mean in enumerate(means):
		timestamp_ms = utils.frame_offset_millis(index, frame_rate) + offset_ms
		if mean is None:
			frames.append(Frame(index, timestamp_ms, 1.0, failed=True))
		else:
			frames.append(Frame(index, timestamp_ms, float(mean)))
	return tuple(frames)

#============================================

def find_silence_period(timestamp_ms: int, silence_periods: list,
	tolerance_ms: int = SILENCE_TOLERANCE_MS):
	for period in silence_periods:
		if period.start_ms - tolerance_ms <= timestamp_ms < period.end_ms + tolerance_ms:
			return period
	return None

#============================================

def is_frame_silent(timestamp_ms: int, silence_periods: list,
	tolerance_ms: int = SILENCE_TOLERANCE_MS) -> bool:
	return find_silence_period(timestamp_ms, silence_periods, tolerance_ms) is not None

#============================================

def silence_mask(timestamps_ms, silence_periods: list,
	tolerance_ms: int = SILENCE_TOLERANCE_MS) -> numpy.ndarray:
	timestamps = numpy.asarray(timestamps_ms, dtype=numpy.int64)
	if len(silence_periods) == 0 or timestamps.size == 0:
		return numpy.zeros(timestamps.shape, dtype=bool)
	starts = numpy.array([p.start_ms for p in silence_periods], dtype=numpy.int64)
	ends = numpy.array([p.end_ms for p in silence_periods], dtype=numpy.int64)
	inside = (timestamps[:, None] >= starts[None, :] - tolerance_ms)
	inside &= (timestamps[:, None] < ends[None, :] + tolerance_ms)
	return inside.any(axis=1)

#============================================

def blank_mask(window: FrameWindow, threshold: float = SIMILARITY_THRESHOLD) -> numpy.ndarray:
	similarity = numpy.array(window.similarities(), dtype=float)
	failed = numpy.array([frame.failed for frame in window.frames], dtype=bool)
	return (similarity >= threshold) & ~failed

#============================================

def build_validity_mask(window: FrameWindow, silence_periods: list,
	threshold: float = SIMILARITY_THRESHOLD) -> numpy.ndarray:
	"""
	A frame is valid when it looks like the idle reference and falls
	inside a silence period widened by the lookup tolerance.
	"""
	if len(window.frames) == 0:
		return numpy.zeros(0, dtype=bool)
	timestamps = [frame.timestamp_ms for frame in window.frames]
	return blank_mask(window, threshold) & silence_mask(timestamps, silence_periods)

#============================================

def find_first_run(mask, n_consecutive: int = N_CONSECUTIVE):
	"""
	Scan forward for the first run of n valid frames.

	Returns:
		int: Index of the last frame of that run, or None.
	"""
	count = 0
	for index in range(len(mask)):
		if mask[index]:
			count += 1
			if count == n_consecutive:
				return index
		else:
			count = 0
	return None

#============================================

def find_last_run(mask, n_consecutive: int = N_CONSECUTIVE):
	"""
	Scan backward for the run of n valid frames closest to the window end.

	Returns:
		int: Index of the first frame of that run, or None.
	"""
	count = 0
	for index in range(len(mask) - 1, -1, -1):
		if mask[index]:
			count += 1
			if count == n_consecutive:
				return index
		else:
			count = 0
	return None

#============================================

def _describe_run(window: FrameWindow, first: int, n_consecutive: int) -> str:
	parts = []
	for frame in window.frames[first:first + n_consecutive]:
		parts.append(f"{frame.mean_intensity:.4f} ({frame.similarity * 100:.2f}%)")
	return ", ".join(parts)

#============================================

def resolve_boundaries(start_window: FrameWindow, end_window: FrameWindow,
	silence_periods: list, duration: float,
	threshold: float = SIMILARITY_THRESHOLD,
	n_consecutive: int = N_CONSECUTIVE) -> BoundaryResult:
	"""
	Resolve programme start and end from the two scored windows.

	The start window is scanned forward and the boundary sits on the last
	frame of the first confirming run. The end window is scanned backward
	and the boundary sits on the first frame of the run nearest its end.
	Each side resolves independently; an unresolved side is None with a note.

	Args:
		start_window: Scored frames from the recording start.
		end_window: Scored frames ending at the recording end.
		silence_periods: Silence periods of the whole recording.
		duration: Total recording duration in seconds.
		threshold: Minimum similarity for a blank frame.
		n_consecutive: Required run length.

	Returns:
		BoundaryResult: Start/end in seconds plus diagnostic notes.
	"""
	result = BoundaryResult()
	start_mask = build_validity_mask(start_window, silence_periods, threshold)
	start_index = find_first_run(start_mask, n_consecutive)
	if start_index is None:
		utils.echo(f"[{start_window.label}] No run of {n_consecutive} consecutive frames "
			f"above threshold ({threshold}) and silent found.")
		result.notes.append("No valid black period found at start")
	else:
		first = start_index - n_consecutive + 1
		utils.echo(f"[{start_window.label}] Found {n_consecutive} consecutive frames "
			f"above threshold and silent at indices {first} to {start_index}.")
		utils.debug(f"[{start_window.label}] Means/Sim: "
			f"{_describe_run(start_window, first, n_consecutive)}")
		result.program_start = start_window.offset_seconds + start_index / start_window.frame_rate
	end_mask = build_validity_mask(end_window, silence_periods, threshold)
	end_index = find_last_run(end_mask, n_consecutive)
	if end_index is None:
		utils.echo(f"[{end_window.label}] No run of {n_consecutive} consecutive frames "
			f"above threshold ({threshold}) and silent found.")
		result.notes.append("No valid black period found at end")
	else:
		last = end_index + n_consecutive - 1
		utils.echo(f"[{end_window.label}] Found {n_consecutive} consecutive frames "
			f"above threshold and silent at indices {end_index} to {last}.")
		utils.debug(f"[{end_window.label}] Means/Sim: "
			f"{_describe_run(end_window, end_index, n_consecutive)}")
		end_base = max(0.0, duration - end_window.length_seconds)
		result.program_end = end_base + end_index / end_window.frame_rate
	return result
