#!/usr/bin/env python3

import os
import tempfile
from concurrent.futures import ThreadPoolExecutor
from progtrimlib.core import boundaries
from progtrimlib.core import config
from progtrimlib.core import debug
from progtrimlib.core import utils
from progtrimlib.core.models import BoundaryResult, FrameWindow
from progtrimlib.media import ffmpeg
from progtrimlib.media import magick

#============================================

class BoundaryDetector():
	def __init__(self, settings: dict = None):
		if settings is None:
			settings = config.build_settings()
		config.validate_settings(settings)
		self.settings = settings
		self.frame_rate = boundaries.FRAME_RATE
		self.threshold = boundaries.SIMILARITY_THRESHOLD
		self.n_consecutive = boundaries.N_CONSECUTIVE
		self.filter_expr = ffmpeg.build_mask_filter(self.frame_rate)

	#============================
	def detect(self, movfile: str) -> BoundaryResult:
		"""
		Find the programme start and end of one recording.

		Duration, silence and audio level failures are fatal, as is a frame
		extraction failure in either window. Both windows run concurrently,
		each with its own pool of image-statistics processes.
		"""
		utils.ensure_file_exists(movfile)
		utils.ensure_file_exists(self.settings['reference'])
		debug_dir = None
		if self.settings['keep_debug']:
			debug_dir = tempfile.mkdtemp(prefix="progtrim-")
			utils.echo(f"[DEBUG] Debug directory: {debug_dir}")
		ffmpeg_bin = self.settings['ffmpeg']
		duration = ffmpeg.probe_duration(movfile, ffmpeg_bin=ffmpeg_bin)
		silence_periods = ffmpeg.detect_silence_periods(movfile,
			threshold_db=self.settings['silence_threshold_db'],
			min_duration=self.settings['silence_min_duration'],
			audio_stream=self.settings['audio_stream'],
			ffmpeg_bin=ffmpeg_bin)
		audio_levels = ffmpeg.detect_audio_levels(movfile,
			audio_stream=self.settings['audio_stream'], ffmpeg_bin=ffmpeg_bin)
		if debug_dir is not None:
			debug.write_lines(os.path.join(debug_dir, "debug_silence.txt"),
				debug.silence_lines(silence_periods))
			debug.write_lines(os.path.join(debug_dir, "debug_audio_levels.txt"),
				debug.audio_level_lines(audio_levels))
		start_length = self.settings['start_window']
		end_length = self.settings['end_window']
		end_offset = max(0.0, duration - end_length)
		utils.echo("Analyzing start and end boundaries for black frames...")
		with ThreadPoolExecutor(max_workers=2) as executor:
			start_future = executor.submit(self._scan_window, movfile, "START",
				0.0, start_length, 0, debug_dir)
			end_future = executor.submit(self._scan_window, movfile, "END",
				end_offset, end_length, 1, debug_dir)
			start_window = start_future.result()
			end_window = end_future.result()
		if debug_dir is not None:
			for window in (start_window, end_window):
				window_dir = _window_dir(debug_dir, window.label)
				debug.write_lines(os.path.join(window_dir, "debug_means.txt"),
					debug.means_lines(window))
				status_path = debug.write_lines(
					debug.frame_status_path(window_dir, window.label),
					debug.frame_status_lines(window, silence_periods, audio_levels,
						self.threshold))
				utils.echo(f"[{window.label}] Frame status written to {status_path}")
		result = boundaries.resolve_boundaries(start_window, end_window,
			silence_periods, duration, threshold=self.threshold,
			n_consecutive=self.n_consecutive)
		result.debug_dir = debug_dir
		return result

	#============================
	def _scan_window(self, movfile: str, label: str, offset: float,
		length: float, position: int, debug_dir: str = None) -> FrameWindow:
		reference = self.settings['reference']
		ffmpeg_bin = self.settings['ffmpeg']
		if debug_dir is not None:
			paths = ffmpeg.extract_frame_files(movfile, reference, offset, length,
				self.filter_expr, _window_dir(debug_dir, label), label=label,
				ffmpeg_bin=ffmpeg_bin)
			buffers = ffmpeg.read_frame_files(paths)
		else:
			buffers = ffmpeg.extract_frame_buffers(movfile, reference, offset,
				length, self.filter_expr, label=label, ffmpeg_bin=ffmpeg_bin)
		means = magick.score_frame_buffers(buffers, label,
			parallelism=self.settings['parallelism'],
			magick_bin=self.settings['magick'], position=position)
		offset_ms = utils.seconds_to_millis(offset)
		frames = boundaries.build_frames(means, self.frame_rate, offset_ms)
		window = FrameWindow(label, offset, length, self.frame_rate, frames)
		self._report_window(window)
		return window

	#============================
	def _report_window(self, window: FrameWindow) -> None:
		if not utils.is_verbose_mode() or len(window.frames) == 0:
			return
		head = window.frames[:5]
		tail = window.frames[-5:]
		for (name, frames) in (("First 5", head), ("Last 5", tail)):
			parts = []
			for frame in frames:
				parts.append(f"frame_{frame.index} (mean={frame.mean_intensity:.4f}, "
					f"sim={frame.similarity * 100:.2f}%)")
			utils.debug(f"[{window.label}] {name}: [{', '.join(parts)}]")
		return

#============================================

def _window_dir(debug_dir: str, label: str) -> str:
	return os.path.join(debug_dir, label.lower())

#============================================

def detect_boundaries(movfile: str, reference: str = None,
	start_window: float = None, end_window: float = None,
	parallelism: int = None, keep_debug: bool = None,
	settings: dict = None) -> BoundaryResult:
	"""
	Single entry point: detect programme boundaries of one recording.

	Keyword values override the matching entries of settings (or of the
	default settings when none are given).
	"""
	if settings is None:
		settings = config.build_settings()
	settings = dict(settings)
	overrides = {
		'reference': reference,
		'start_window': start_window,
		'end_window': end_window,
		'parallelism': parallelism,
		'keep_debug': keep_debug,
	}
	for key, value in overrides.items():
		if value is not None:
			settings[key] = value
	return BoundaryDetector(settings).detect(movfile)
