#!/usr/bin/env python3

import os
from progtrimlib.core import utils

#============================================

DEINTERLACE_FILTER = "yadif=mode=0:parity=0,format=yuv420p"

#============================================

def default_output_path(movfile: str, output_dir: str, container: str = None) -> str:
	(base, ext) = os.path.splitext(os.path.basename(movfile))
	if base.endswith('_'):
		base = base[:-1]
	if container is not None:
		ext = f".{container}"
	return os.path.join(output_dir, f"{base}{ext}")

#============================================

def build_trim_command(movfile: str, starttime: float, endtime: float,
	outfile: str, ffmpeg_bin: str = "ffmpeg") -> list:
	cmd = [
		ffmpeg_bin, "-hide_banner", "-nostats", "-loglevel", "error",
		"-err_detect", "ignore_err",
		"-i", movfile,
		"-ss", f"{starttime:.3f}",
		"-to", f"{endtime:.3f}",
		"-c", "copy",
		outfile, "-y",
	]
	return cmd

#============================================

def build_transcode_command(movfile: str, starttime: float, endtime: float,
	outfile: str, encoder: str = "libx264", preset: str = "medium",
	crf: int = 18, audio_copy: bool = False, audio_stream: int = 1,
	ffmpeg_bin: str = "ffmpeg") -> list:
	"""
	Build a single-pass trim and re-encode of the programme.

	The input is seeked before decoding, deinterlaced and encoded with a
	software encoder. With audio_copy the programme audio stream is kept
	as is, otherwise the first audio stream is encoded to stereo AAC.

	Returns:
		list: ffmpeg command.
	"""
	cmd = [
		ffmpeg_bin, "-hide_banner", "-nostats", "-loglevel", "error",
		"-err_detect", "ignore_err",
		"-ss", f"{starttime:.3f}",
		"-i", movfile,
		"-t", f"{endtime - starttime:.3f}",
		"-avoid_negative_ts", "make_zero",
		"-c:v", encoder,
		"-preset", preset,
		"-crf", str(crf),
		"-vf", DEINTERLACE_FILTER,
	]
	if audio_copy:
		cmd += ["-c:a", "copy"]
		cmd += ["-map", "0:v:0", "-map", f"0:a:{audio_stream}"]
	else:
		cmd += ["-c:a", "aac", "-b:a", "192k", "-ac", "2", "-ar", "48000"]
		cmd += ["-map", "0:v:0", "-map", "0:a:0"]
	if outfile.endswith(".mp4"):
		cmd += ["-movflags", "+faststart"]
	cmd += [outfile, "-y"]
	return cmd

#============================================

def _run_to_output(cmd: list, outfile: str) -> str:
	os.makedirs(os.path.dirname(outfile) or '.', exist_ok=True)
	utils.run_process(cmd)
	if not os.path.isfile(outfile):
		raise RuntimeError(f"ffmpeg did not write {outfile}")
	size_mib = os.path.getsize(outfile) / (1024 * 1024)
	utils.echo(f"Successfully created: {outfile} ({size_mib:.1f} MiB)")
	return outfile

#============================================

def trim_recording(movfile: str, starttime: float, endtime: float,
	outfile: str, ffmpeg_bin: str = "ffmpeg") -> str:
	if endtime <= starttime:
		raise RuntimeError(f"trim end {endtime:.3f} is not after start {starttime:.3f}")
	cmd = build_trim_command(movfile, starttime, endtime, outfile, ffmpeg_bin)
	return _run_to_output(cmd, outfile)

#============================================

def transcode_recording(movfile: str, starttime: float, endtime: float,
	outfile: str, encoder: str = "libx264", preset: str = "medium",
	crf: int = 18, audio_copy: bool = False, audio_stream: int = 1,
	ffmpeg_bin: str = "ffmpeg") -> str:
	if endtime <= starttime:
		raise RuntimeError(f"transcode end {endtime:.3f} is not after start {starttime:.3f}")
	cmd = build_transcode_command(movfile, starttime, endtime, outfile,
		encoder=encoder, preset=preset, crf=crf, audio_copy=audio_copy,
		audio_stream=audio_stream, ffmpeg_bin=ffmpeg_bin)
	return _run_to_output(cmd, outfile)
