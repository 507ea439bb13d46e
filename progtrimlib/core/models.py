#!/usr/bin/env python3

from dataclasses import dataclass, field
from typing import List, Optional
from progtrimlib.core import utils

#============================================

@dataclass(frozen=True)
class SilencePeriod:
	start_ms: int
	end_ms: int

	#============================
	@property
	def duration_ms(self) -> int:
		return self.end_ms - self.start_ms

#============================================

@dataclass(frozen=True)
class AudioLevelSample:
	timestamp_sec: float
	mean_db: float

#============================================

@dataclass(frozen=True)
class Frame:
	"""
	One sampled frame of a window after scoring.

	A frame whose score could not be read keeps mean_intensity 1.0 and is
	flagged as failed, so its similarity is 0 and it never counts as blank.
	"""
	index: int
	timestamp_ms: int
	mean_intensity: float = 1.0
	failed: bool = False

	#============================
	@property
	def similarity(self) -> float:
		return 1.0 - self.mean_intensity

#============================================

@dataclass(frozen=True)
class FrameWindow:
	label: str
	offset_seconds: float
	length_seconds: float
	frame_rate: float
	frames: tuple = ()

	#============================
	@property
	def offset_ms(self) -> int:
		return utils.seconds_to_millis(self.offset_seconds)

	#============================
	def similarities(self) -> list:
		return [frame.similarity for frame in self.frames]

#============================================

@dataclass
class BoundaryResult:
	program_start: Optional[float] = None
	program_end: Optional[float] = None
	notes: List[str] = field(default_factory=list)
	debug_dir: Optional[str] = None

	#============================
	@property
	def resolved(self) -> bool:
		return self.program_start is not None and self.program_end is not None

	#============================
	@property
	def program_length(self) -> Optional[float]:
		if not self.resolved:
			return None
		return self.program_end - self.program_start
