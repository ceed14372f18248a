from __future__ import annotations

from typing import Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


Mode = Literal["edo-steps", "ratio", "chord"]
Waveform = Literal["sine", "triangle", "saw", "square"]

MODES: Tuple[Mode, ...] = ("edo-steps", "ratio", "chord")
WAVEFORMS: Tuple[Waveform, ...] = ("sine", "triangle", "saw", "square")


class RatioMapping(BaseModel):
	model_config = ConfigDict(frozen=True)

	ratio: float
	ratio_str: str
	steps: int
	error: float = Field(ge=0.0, lt=50.0)


class NamedInterval(BaseModel):
	model_config = ConfigDict(frozen=True)

	steps: int
	name: Optional[str] = None


class Chord(BaseModel):
	model_config = ConfigDict(frozen=True)

	intervals: Tuple[int, ...]
	name: str


class ExerciseConfig(BaseModel):
	"""Validated settings for one session. Built by config.resolve_config."""

	model_config = ConfigDict(frozen=True)

	edo: int = Field(ge=1, le=127)
	mode: Mode
	question_count: int = Field(ge=1)
	waveform: Waveform = "sine"
	custom_labels: Tuple[str, ...] = ()
	use_custom_labels: bool = False
	edo_step_names: Dict[int, str] = Field(default_factory=dict)
	ratio_names: Dict[str, str] = Field(default_factory=dict)
	# mode-specific
	intervals: Tuple[int, ...] = ()
	ratio_mappings: Tuple[RatioMapping, ...] = ()
	chords: Tuple[Chord, ...] = ()
	use_inversions: bool = False

	def labels(self) -> Optional[Tuple[str, ...]]:
		return self.custom_labels if self.use_custom_labels else None


class Question(BaseModel):
	model_config = ConfigDict(frozen=True)

	mode: Mode
	reference_step: int
	correct_steps: Tuple[int, ...]
	text: str
	reveal_text: str
	# edo-steps / ratio
	interval: Optional[int] = None
	ratio_str: Optional[str] = None
	# chord
	chord: Optional[Chord] = None
	pivot_index: Optional[int] = None

	@property
	def given_step(self) -> int:
		"""The step sounded and shown to the learner: the pivot tone in chord mode."""
		if self.chord is not None and self.pivot_index is not None:
			return self.reference_step + self.chord.intervals[self.pivot_index]
		return self.reference_step

	@property
	def all_steps(self) -> Tuple[int, ...]:
		if self.chord is not None:
			return tuple(self.reference_step + i for i in self.chord.intervals)
		return (self.reference_step,) + self.correct_steps


class PlayInstruction(BaseModel):
	"""Sound `steps` together for `duration` seconds."""

	model_config = ConfigDict(frozen=True)

	steps: Tuple[int, ...]
	duration: float = Field(gt=0.0)


class AnswerRecord(BaseModel):
	index: int
	submitted: List[int]
	expected: List[int]
	correct: bool
	elapsed: float


class Feedback(BaseModel):
	correct: bool
	expected_steps: List[int]
	wrong_steps: List[int]
	missed_steps: List[int]
	text: str
	play: PlayInstruction
	finished: bool = False


class SessionStats(BaseModel):
	correct: int = 0
	total: int = 0
	times: List[float] = Field(default_factory=list)


class SessionReport(BaseModel):
	model_config = ConfigDict(frozen=True)

	accuracy: float
	total_time: float
	average_time: float
	correct_count: int
	total_count: int
