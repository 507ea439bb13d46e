#!/usr/bin/env python3

import os
from progtrimlib.core import utils

#============================================

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"

# station logo burned into the top-left corner of the broadcast
MASK_X = 13
MASK_Y = 60
MASK_W = 400
MASK_H = 54

#============================================

def build_mask_filter(frame_rate: float, mask: tuple = None) -> str:
	"""
	Build the filter graph that blanks the logo on both inputs, converts
	them to luma and blends them into a per-pixel difference stream.

	Args:
		frame_rate: Output frames per second.
		mask: Optional (x, y, w, h) logo rectangle.

	Returns:
		str: ffmpeg -filter_complex expression with output label [diff].
	"""
	if mask is None:
		mask = (MASK_X, MASK_Y, MASK_W, MASK_H)
	(x, y, w, h) = mask
	box = f"drawbox=x={x}:y={y}:w={w}:h={h}:color=black@1:t=fill"
	expr = f"[0:v]{box},extractplanes=y[vid]; "
	expr += f"[1:v]{box},format=gray,extractplanes=y[ref]; "
	expr += f"[vid][ref]blend=all_mode=difference,fps={frame_rate:g}[diff]"
	return expr

#============================================

def split_png_frames(data: bytes) -> list:
	"""
	Split a concatenated image2pipe stream into one buffer per PNG.

	Bytes ahead of the first signature are not part of any frame.
	"""
	starts = []
	index = data.find(PNG_SIGNATURE)
	while index != -1:
		starts.append(index)
		index = data.find(PNG_SIGNATURE, index + len(PNG_SIGNATURE))
	frames = []
	for position, start in enumerate(starts):
		if position + 1 < len(starts):
			end = starts[position + 1]
		else:
			end = len(data)
		frames.append(data[start:end])
	return frames

#============================================

def _window_args(movfile: str, reference: str, offset: float, length: float,
	filter_expr: str, ffmpeg_bin: str) -> list:
	cmd = [
		ffmpeg_bin, "-hide_banner", "-nostats", "-loglevel", "error",
		"-ss", f"{offset:.3f}",
		"-i", movfile,
		"-i", reference,
		"-t", f"{length:.3f}",
		"-filter_complex", filter_expr,
		"-map", "[diff]",
	]
	return cmd

#============================================

def extract_frame_buffers(movfile: str, reference: str, offset: float,
	length: float, filter_expr: str, label: str = "FFMPEG",
	ffmpeg_bin: str = "ffmpeg") -> list:
	cmd = _window_args(movfile, reference, offset, length, filter_expr, ffmpeg_bin)
	cmd += ["-f", "image2pipe", "-vcodec", "png", "pipe:1"]
	proc = utils.run_process(cmd, text=False)
	frames = split_png_frames(proc.stdout)
	utils.echo(f"[{label}] Extracted {len(frames)} frames to memory.")
	return frames

#============================================

def extract_frame_files(movfile: str, reference: str, offset: float,
	length: float, filter_expr: str, out_dir: str, label: str = "FFMPEG",
	ffmpeg_bin: str = "ffmpeg") -> list:
	os.makedirs(out_dir, exist_ok=True)
	cmd = _window_args(movfile, reference, offset, length, filter_expr, ffmpeg_bin)
	cmd += ["-y", os.path.join(out_dir, "frame_%05d.png")]
	utils.run_process(cmd)
	names = sorted(name for name in os.listdir(out_dir)
		if name.startswith("frame_") and name.endswith(".png"))
	paths = [os.path.join(out_dir, name) for name in names]
	utils.echo(f"[{label}] Extracted {len(paths)} frames to {out_dir}")
	return paths

#============================================

def read_frame_files(paths: list) -> list:
	buffers = []
	for path in paths:
		with open(path, 'rb') as handle:
			buffers.append(handle.read())
	return buffers
