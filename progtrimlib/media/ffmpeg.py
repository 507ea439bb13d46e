#!/usr/bin/env python3

from progtrimlib.media.ffmpeg_probe import probe_duration
from progtrimlib.media.ffmpeg_frames import build_mask_filter
from progtrimlib.media.ffmpeg_frames import extract_frame_buffers
from progtrimlib.media.ffmpeg_frames import extract_frame_files
from progtrimlib.media.ffmpeg_frames import read_frame_files
from progtrimlib.media.ffmpeg_frames import split_png_frames
from progtrimlib.media.ffmpeg_audio import detect_silence_periods
from progtrimlib.media.ffmpeg_audio import detect_audio_levels
from progtrimlib.media.ffmpeg_trim import trim_recording
from progtrimlib.media.ffmpeg_trim import transcode_recording

__all__ = [
	'probe_duration',
	'build_mask_filter',
	'extract_frame_buffers',
	'extract_frame_files',
	'read_frame_files',
	'split_png_frames',
	'detect_silence_periods',
	'detect_audio_levels',
	'trim_recording',
	'transcode_recording',
]
