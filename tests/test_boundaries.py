#!/usr/bin/env python3

"""
Unit tests for validity masks and programme boundary resolution.
"""

# Standard Library
import os
import sys

# PIP3 modules
import pytest

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

# local repo modules
from progtrimlib.core import boundaries
from progtrimlib.core import utils
from progtrimlib.core.models import FrameWindow, SilencePeriod

#============================================

FRAME_RATE = 5
DURATION = 1800.0
END_LENGTH = 210.0

#============================================

def _window(similarities: list, label: str = "START", offset: float = 0.0,
	length: float = 90.0, failed: set = None) -> FrameWindow:
	"""
	Build a scored window from similarity values.
	"""
	means = []
	for index, similarity in enumerate(similarities):
		if failed is not None and index in failed:
			means.append(None)
		else:
			means.append(1.0 - similarity)
	frames = boundaries.build_frames(means, FRAME_RATE,
		utils.seconds_to_millis(offset))
	return FrameWindow(label, offset, length, FRAME_RATE, frames)

#============================================

def _end_window(similarities: list) -> FrameWindow:
	return _window(similarities, "END", DURATION - END_LENGTH, END_LENGTH)

#============================================

def _all_silent() -> list:
	return [SilencePeriod(0, int(DURATION * 1000))]

#============================================

@pytest.fixture(autouse=True)
def _quiet():
	utils.set_quiet_mode(True)
	yield
	utils.set_quiet_mode(False)

#============================================

def test_start_resolves_to_last_index_of_first_run() -> None:
	"""
	[0.50, 0.95, 0.97, 0.40] with every frame silent resolves to index 2.
	"""
	start = _window([0.50, 0.95, 0.97, 0.40])
	end = _end_window([0.10, 0.10])
	result = boundaries.resolve_boundaries(start, end, _all_silent(), DURATION)
	assert result.program_start == pytest.approx(2 / FRAME_RATE)

#============================================

def test_end_resolves_to_first_index_of_run_scanned_backward() -> None:
	"""
	[0.93, 0.94, 0.30] resolves to index 0 of the end window.
	"""
	start = _window([0.10])
	end = _end_window([0.93, 0.94, 0.30])
	result = boundaries.resolve_boundaries(start, end, _all_silent(), DURATION)
	assert result.program_end == pytest.approx(DURATION - END_LENGTH + 0 / FRAME_RATE)

#============================================

def test_unresolved_sides_are_none_with_one_note_each() -> None:
	"""
	No qualifying run means None plus a single note for that side.
	"""
	start = _window([0.95, 0.10, 0.95, 0.10])
	end = _end_window([0.99, 0.99, 0.99])
	result = boundaries.resolve_boundaries(start, end, _all_silent(), DURATION)
	assert result.program_start is None
	assert result.program_end is not None
	assert result.notes == ["No valid black period found at start"]
	empty = boundaries.resolve_boundaries(_window([]), _end_window([]), [], DURATION)
	assert empty.program_start is None
	assert empty.program_end is None
	assert empty.notes == [
		"No valid black period found at start",
		"No valid black period found at end",
	]

#============================================

def test_start_prefers_run_nearest_window_start() -> None:
	"""
	The first run found wins even when a longer one follows.
	"""
	start = _window([0.95, 0.95, 0.10, 0.99, 0.99, 0.99, 0.99])
	result = boundaries.resolve_boundaries(start, _end_window([]), _all_silent(), DURATION)
	assert result.program_start == pytest.approx(1 / FRAME_RATE)

#============================================

def test_end_prefers_run_nearest_window_end() -> None:
	"""
	Scanning backward picks the run closest to the end of the window.
	"""
	end = _end_window([0.99, 0.99, 0.99, 0.99, 0.10, 0.95, 0.95, 0.20])
	result = boundaries.resolve_boundaries(_window([]), end, _all_silent(), DURATION)
	assert result.program_end == pytest.approx(DURATION - END_LENGTH + 5 / FRAME_RATE)

#============================================

def test_blank_frames_outside_silence_are_not_valid() -> None:
	"""
	Visual evidence alone does not confirm a boundary.
	"""
	start = _window([0.99, 0.99, 0.99, 0.99])
	silence = [SilencePeriod(5000, 9000)]
	mask = boundaries.build_validity_mask(start, silence)
	assert mask.tolist() == [False, False, False, False]
	result = boundaries.resolve_boundaries(start, _end_window([]), silence, DURATION)
	assert result.program_start is None

#============================================

def test_silence_lookup_uses_end_window_absolute_time() -> None:
	"""
	End window frames are matched against silence at their absolute time.
	"""
	end = _end_window([0.99, 0.99, 0.99])
	offset_ms = int((DURATION - END_LENGTH) * 1000)
	silence = [SilencePeriod(offset_ms, offset_ms + 400)]
	mask = boundaries.build_validity_mask(end, silence)
	assert mask.tolist() == [True, True, True]
	relative = [SilencePeriod(0, 400)]
	assert boundaries.build_validity_mask(end, relative).tolist() == [False, False, False]

#============================================

def test_silence_tolerance_is_half_open() -> None:
	"""
	Periods are widened by 200 ms, inclusive before and exclusive after.
	"""
	silence = [SilencePeriod(1000, 2000)]
	assert boundaries.is_frame_silent(800, silence)
	assert not boundaries.is_frame_silent(799, silence)
	assert boundaries.is_frame_silent(2199, silence)
	assert not boundaries.is_frame_silent(2200, silence)
	assert boundaries.find_silence_period(1500, silence) == silence[0]
	mask = boundaries.silence_mask([799, 800, 2199, 2200], silence)
	assert mask.tolist() == [False, True, True, False]

#============================================

def test_failed_frames_are_never_valid() -> None:
	"""
	A scoring failure has similarity 0 and breaks any run.
	"""
	start = _window([0.99, 0.99, 0.99], failed={1})
	assert start.frames[1].similarity == 0.0
	assert start.frames[1].mean_intensity == 1.0
	mask = boundaries.build_validity_mask(start, _all_silent())
	assert mask.tolist() == [True, False, True]
	result = boundaries.resolve_boundaries(start, _end_window([]), _all_silent(), DURATION)
	assert result.program_start is None

#============================================

def test_similarity_is_one_minus_mean() -> None:
	"""
	Scored frames carry similarity = 1 - mean.
	"""
	frames = boundaries.build_frames([0.25, None, 0.0], FRAME_RATE, 1000)
	assert [frame.similarity for frame in frames] == [0.75, 0.0, 1.0]
	assert [frame.timestamp_ms for frame in frames] == [1000, 1200, 1400]

#============================================

def test_threshold_is_inclusive() -> None:
	"""
	A frame exactly at the threshold counts as blank.
	"""
	frames = boundaries.build_frames([0.0, 0.5], FRAME_RATE)
	window = FrameWindow("START", 0.0, 90.0, FRAME_RATE, frames)
	assert boundaries.blank_mask(window, 1.0).tolist() == [True, False]
	assert boundaries.blank_mask(window, 0.5).tolist() == [True, True]

#============================================

def test_run_scans() -> None:
	"""
	Forward scans return the run end; backward scans return the run start.
	"""
	mask = [False, True, True, True, False, True, True]
	assert boundaries.find_first_run(mask, 2) == 2
	assert boundaries.find_first_run(mask, 3) == 3
	assert boundaries.find_first_run(mask, 4) is None
	assert boundaries.find_last_run(mask, 2) == 5
	assert boundaries.find_last_run(mask, 3) == 1
	assert boundaries.find_last_run([], 2) is None

#============================================

def test_start_not_after_end_for_long_recording() -> None:
	"""
	Resolved start is never later than the resolved end.
	"""
	start = _window([0.1] * 50 + [0.99] * 400)
	end = _end_window([0.99] * 1000 + [0.2] * 50)
	result = boundaries.resolve_boundaries(start, end, _all_silent(), DURATION)
	assert result.resolved
	assert result.program_start <= result.program_end
	assert result.program_length == pytest.approx(result.program_end - result.program_start)
