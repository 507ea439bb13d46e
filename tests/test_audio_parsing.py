#!/usr/bin/env python3

"""
Unit tests for silencedetect and astats output parsing.
"""

# Standard Library
import os
import subprocess
import sys

# PIP3 modules
import pytest

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

# local repo modules
from progtrimlib.core import utils
from progtrimlib.core.errors import ExternalToolError
from progtrimlib.core.models import AudioLevelSample, SilencePeriod
from progtrimlib.media import ffmpeg_audio

#============================================

SILENCE_LOG = """\
Input #0, mpegts, from 'recording.ts':
  Duration: 00:30:05.12, start: 1.400000, bitrate: 9000 kb/s
[silencedetect @ 0x55d0c0a1c2c0] silence_start: 0
[silencedetect @ 0x55d0c0a1c2c0] silence_end: 12.500 | silence_duration: 2.000
[silencedetect @ 0x55d0c0a1c2c0] silence_start: 1790.25
[silencedetect @ 0x55d0c0a1c2c0] silence_end: 1805.1234 | silence_duration: 14.8734
size=N/A time=00:30:05.12 bitrate=N/A speed= 900x
"""

LEVELS_LOG = """\
[Parsed_ametadata_1 @ 0x5581] frame:0    pts:0       pts_time:0
[Parsed_ametadata_1 @ 0x5581] lavfi.astats.Overall.RMS_level=-inf
[Parsed_ametadata_1 @ 0x5581] frame:1    pts:1152    pts_time:0.024
[Parsed_ametadata_1 @ 0x5581] lavfi.astats.Overall.RMS_level=-35.52
[Parsed_ametadata_1 @ 0x5581] frame:2    pts:2304    pts_time:0.048
[Parsed_ametadata_1 @ 0x5581] frame:3    pts:3456    pts_time:0.072
[Parsed_ametadata_1 @ 0x5581] lavfi.astats.Overall.RMS_level=-20.1
[Parsed_ametadata_1 @ 0x5581] lavfi.astats.Overall.RMS_level=-10.0
"""

#============================================

@pytest.fixture(autouse=True)
def _quiet():
	utils.set_quiet_mode(True)
	yield
	utils.set_quiet_mode(False)

#============================================

def test_silence_line_reconstructs_start() -> None:
	"""
	silence_end 12.5 with duration 2.0 becomes 10500-12500 ms.
	"""
	periods = ffmpeg_audio.parse_silence_output(SILENCE_LOG)
	assert periods[0] == SilencePeriod(10500, 12500)
	assert periods[1] == SilencePeriod(1790250, 1805123)
	assert len(periods) == 2

#============================================

def test_silence_output_without_reports() -> None:
	"""
	No silence_end lines yields an empty list.
	"""
	assert ffmpeg_audio.parse_silence_output("") == []
	assert ffmpeg_audio.parse_silence_output("silence_start: 4.0\n") == []

#============================================

def test_audio_levels_pair_with_latest_timestamp() -> None:
	"""
	Each RMS level consumes the most recent unconsumed pts_time.
	"""
	samples = ffmpeg_audio.parse_audio_level_output(LEVELS_LOG)
	assert samples[0].timestamp_sec == 0.0
	assert samples[0].mean_db == float("-inf")
	assert samples[1] == AudioLevelSample(0.024, -35.52)
	assert samples[2] == AudioLevelSample(0.072, -20.1)
	assert len(samples) == 3

#============================================

def test_audio_level_lookup() -> None:
	"""
	Lookup returns the latest sample at or before the timestamp.
	"""
	samples = [
		AudioLevelSample(1.0, -30.0),
		AudioLevelSample(2.0, -20.0),
		AudioLevelSample(3.0, -10.0),
	]
	assert ffmpeg_audio.audio_level_at(0.5, samples) is None
	assert ffmpeg_audio.audio_level_at(1.0, samples) == -30.0
	assert ffmpeg_audio.audio_level_at(2.9, samples) == -20.0
	assert ffmpeg_audio.audio_level_at(99.0, samples) == -10.0
	assert ffmpeg_audio.audio_level_at(1.0, []) is None

#============================================

def test_detect_silence_maps_second_audio_stream(monkeypatch) -> None:
	"""
	silencedetect runs on a:1 with the configured threshold and duration.
	"""
	calls = []

	def fake_run(cmd, **kwargs):
		calls.append(cmd)
		return subprocess.CompletedProcess(cmd, 0, "", SILENCE_LOG)

	monkeypatch.setattr(utils, "run_process", fake_run)
	periods = ffmpeg_audio.detect_silence_periods("recording.ts")
	assert len(periods) == 2
	cmd = calls[0]
	assert cmd[cmd.index("-map") + 1] == "0:a:1"
	assert cmd[cmd.index("-af") + 1] == "silencedetect=noise=-80dB:d=1"

#============================================

def test_detect_silence_failure_propagates(monkeypatch) -> None:
	"""
	A missing audio stream is fatal; no other stream is tried.
	"""
	calls = []

	def fake_run(cmd, **kwargs):
		calls.append(cmd)
		raise ExternalToolError(cmd, 1, "Stream map '0:a:1' matches no streams.")

	monkeypatch.setattr(utils, "run_process", fake_run)
	with pytest.raises(ExternalToolError):
		ffmpeg_audio.detect_silence_periods("recording.ts")
	with pytest.raises(ExternalToolError):
		ffmpeg_audio.detect_audio_levels("recording.ts")
	assert len(calls) == 2
