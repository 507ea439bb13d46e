#!/usr/bin/env python3

import math
from concurrent.futures import ThreadPoolExecutor, as_completed
from tqdm import tqdm
from progtrimlib.core import utils
from progtrimlib.core.errors import ExternalToolError

#============================================

DEFAULT_PARALLELISM = 8

#============================================

def parse_mean_output(text: str) -> float:
	"""
	Parse the '%[fx:mean]' reply of ImageMagick.

	Raises:
		ValueError: The reply is not a number in [0, 1].
	"""
	value = float(text.strip())
	if not math.isfinite(value):
		raise ValueError(f"non-finite mean: {text.strip()}")
	if value < 0.0 or value > 1.0:
		raise ValueError(f"mean outside [0, 1]: {text.strip()}")
	return value

#============================================

def frame_mean(frame_data: bytes, magick_bin: str = "magick") -> float:
	cmd = [magick_bin, "-", "-colorspace", "Gray", "-format", "%[fx:mean]", "info:"]
	proc = utils.run_process(cmd, input_data=frame_data, text=False, show=False)
	return parse_mean_output(proc.stdout.decode('utf-8', errors='replace'))

#============================================

def score_frame_buffers(frame_buffers: list, label: str,
	parallelism: int = DEFAULT_PARALLELISM, magick_bin: str = "magick",
	position: int = 0) -> list:
	"""
	Measure the mean grayscale intensity of every frame with a bounded
	pool of ImageMagick processes.

	Results are stored by frame index, so completion order does not matter.
	A frame whose measurement fails gets None and the batch continues.

	Args:
		frame_buffers: PNG bytes in stream order.
		label: Window label for console output.
		parallelism: Maximum number of magick processes in flight.
		magick_bin: ImageMagick executable.
		position: tqdm bar row, so concurrent windows do not overwrite each other.

	Returns:
		list: Mean intensity in [0, 1] or None, one per input buffer.
	"""
	parallelism = max(1, int(parallelism))
	total = len(frame_buffers)
	means = [None] * total
	utils.echo(f"[{label}] Calculating similarity for {total} frames "
		f"(parallelism: {parallelism})...")
	if total == 0:
		return means

	def measure(index: int) -> tuple:
		try:
			return (index, frame_mean(frame_buffers[index], magick_bin), None)
		except (ExternalToolError, ValueError) as exc:
			return (index, None, exc)

	progress = tqdm(total=total, desc=f"[{label}] frames", unit="frame",
		position=position, leave=False, disable=utils.is_quiet_mode())
	with ThreadPoolExecutor(max_workers=parallelism) as executor:
		futures = [executor.submit(measure, index) for index in range(total)]
		for future in as_completed(futures):
			(index, mean, error) = future.result()
			if error is not None:
				utils.echo(f"[{label}] magick error for frame {index}: {error}")
			else:
				means[index] = mean
			progress.update(1)
	progress.close()
	failures = sum(1 for mean in means if mean is None)
	if failures > 0:
		utils.echo(f"[{label}] {failures} of {total} frames could not be scored.")
	return means
