#!/usr/bin/env python3

import re
from progtrimlib.core import utils
from progtrimlib.core.models import AudioLevelSample, SilencePeriod

#============================================

SILENCE_THRESHOLD_DB = -80.0
MIN_SILENCE_DURATION = 1.0
# broadcast recordings carry the programme mix on the second audio track
AUDIO_STREAM_INDEX = 1

SILENCE_END_RE = re.compile(r"silence_end: ([\d.]+) \| silence_duration: ([\d.]+)")
PTS_TIME_RE = re.compile(r"pts_time:([0-9.]+)")
RMS_LEVEL_RE = re.compile(r"lavfi\.astats\.Overall\.RMS_level=(-?inf|-?[0-9.]+)")

#============================================

def parse_silence_output(text: str) -> list:
	"""
	Parse silencedetect end reports into silence periods.

	Each period starts at silence_end - silence_duration; both ends are
	rounded to whole milliseconds.

	Args:
		text: silencedetect diagnostic output.

	Returns:
		list: SilencePeriod values in report order.
	"""
	periods = []
	for line in (text or "").splitlines():
		match = SILENCE_END_RE.search(line)
		if match is None:
			continue
		end_ms = utils.seconds_to_millis(float(match.group(1)))
		duration_ms = utils.seconds_to_millis(float(match.group(2)))
		periods.append(SilencePeriod(end_ms - duration_ms, end_ms))
	return periods

#============================================

def parse_audio_level_output(text: str) -> list:
	"""
	Pair each RMS level report with the most recent unconsumed pts_time.

	Args:
		text: ametadata print output of an astats run.

	Returns:
		list: AudioLevelSample values ordered by timestamp.
	"""
	samples = []
	current_ts = None
	for line in (text or "").splitlines():
		ts_match = PTS_TIME_RE.search(line)
		if ts_match is not None:
			current_ts = float(ts_match.group(1))
		db_match = RMS_LEVEL_RE.search(line)
		if db_match is not None and current_ts is not None:
			samples.append(AudioLevelSample(current_ts, float(db_match.group(1))))
			current_ts = None
	return samples

#============================================

def audio_level_at(timestamp_sec: float, samples: list):
	"""
	Return the level of the latest sample at or before timestamp_sec, or None.
	"""
	last = None
	for sample in samples:
		if sample.timestamp_sec > timestamp_sec:
			break
		last = sample
	if last is None:
		return None
	return last.mean_db

#============================================

def detect_silence_periods(movfile: str, threshold_db: float = SILENCE_THRESHOLD_DB,
	min_duration: float = MIN_SILENCE_DURATION,
	audio_stream: int = AUDIO_STREAM_INDEX, ffmpeg_bin: str = "ffmpeg") -> list:
	utils.echo(f"[SILENCE] Using silencedetect params: noise={threshold_db:g}dB, "
		f"duration={min_duration:g}, stream=a:{audio_stream}")
	cmd = [
		ffmpeg_bin, "-hide_banner", "-nostats",
		"-vn",
		"-i", movfile,
		"-map", f"0:a:{audio_stream}",
		"-af", f"silencedetect=noise={threshold_db:g}dB:d={min_duration:g}",
		"-f", "null", "-",
	]
	proc = utils.run_process(cmd)
	periods = parse_silence_output(proc.stderr)
	utils.echo(f"[SILENCE] Detected {len(periods)} silence periods.")
	if len(periods) > 0:
		first = periods[0]
		last = periods[-1]
		utils.echo(f"[SILENCE] First: {first.start_ms}ms - {first.end_ms}ms, "
			f"Last: {last.start_ms}ms - {last.end_ms}ms")
	return periods

#============================================

def detect_audio_levels(movfile: str, audio_stream: int = AUDIO_STREAM_INDEX,
	ffmpeg_bin: str = "ffmpeg") -> list:
	cmd = [
		ffmpeg_bin, "-hide_banner", "-nostats",
		"-vn",
		"-i", movfile,
		"-map", f"0:a:{audio_stream}",
		"-af", "astats=metadata=1:reset=1,"
			"ametadata=print:key=lavfi.astats.Overall.RMS_level",
		"-f", "null", "-",
	]
	proc = utils.run_process(cmd)
	samples = parse_audio_level_output(proc.stderr)
	utils.echo(f"[AUDIO] Detected {len(samples)} audio level frames.")
	return samples
