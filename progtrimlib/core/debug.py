#!/usr/bin/env python3

import os
from progtrimlib.core import boundaries
from progtrimlib.media import ffmpeg_audio

#============================================

def write_lines(output_file: str, lines: list) -> str:
	os.makedirs(os.path.dirname(output_file) or '.', exist_ok=True)
	with open(output_file, 'w', encoding='utf-8') as handle:
		handle.write("\n".join(lines))
		if len(lines) > 0:
			handle.write("\n")
	return output_file

#============================================

def silence_lines(silence_periods: list) -> list:
	lines = []
	for period in silence_periods:
		lines.append(f"silence: {period.start_ms}ms - {period.end_ms}ms "
			f"(duration: {period.duration_ms}ms)")
	return lines

#============================================

def audio_level_lines(samples: list) -> list:
	lines = []
	for sample in samples:
		lines.append(f"audio: ts={sample.timestamp_sec:.3f}: "
			f"RMS_level={sample.mean_db:.2f}dB")
	return lines

#============================================

def means_lines(window) -> list:
	lines = []
	for frame in window.frames:
		name = f"frame_{frame.index:05d}"
		if frame.failed:
			lines.append(f"{name}: ERROR")
			continue
		lines.append(f"{name}: mean={frame.mean_intensity:.4f}, "
			f"similarity={frame.similarity * 100:.2f}%")
	return lines

#============================================

def frame_status_lines(window, silence_periods: list, audio_levels: list,
	threshold: float = boundaries.SIMILARITY_THRESHOLD) -> list:
	"""
	One line per frame with its scores, flags and matched silence interval.

	Args:
		window: Scored FrameWindow.
		silence_periods: Silence periods of the recording.
		audio_levels: AudioLevelSample list of the recording.
		threshold: Similarity threshold for the black flag.

	Returns:
		list: Text lines.
	"""
	lines = []
	for frame in window.frames:
		name = f"frame_{frame.index + 1:05d}.png"
		ts_text = f"{frame.timestamp_ms / 1000.0:.2f}s"
		level = ffmpeg_audio.audio_level_at(frame.timestamp_ms / 1000.0, audio_levels)
		level_text = "N/A" if level is None else f"{level:.2f}"
		period = boundaries.find_silence_period(frame.timestamp_ms, silence_periods)
		silent = period is not None
		interval_text = "NONE"
		if period is not None:
			interval_text = f"[{period.start_ms}ms-{period.end_ms}ms]"
		silent_text = "YES" if silent else "NO"
		if frame.failed:
			lines.append(f"{name}: ts={ts_text}, mean=N/A, sim=N/A, black=NO, "
				f"silent={silent_text}, valid=NO, audio_level={level_text}dB, "
				f"silence_interval={interval_text}")
			continue
		black = frame.similarity >= threshold
		valid = black and silent
		lines.append(f"{name}: ts={ts_text}, mean={frame.mean_intensity:.4f}, "
			f"sim={frame.similarity * 100:.2f}%, black={'YES' if black else 'NO'}, "
			f"silent={silent_text}, valid={'YES' if valid else 'NO'}, "
			f"audio_level={level_text}dB, silence_interval={interval_text}")
	return lines

#============================================

def frame_status_path(debug_dir: str, label: str) -> str:
	return os.path.join(debug_dir, f"debug_frame_status_{label}.txt")
