from __future__ import annotations

import logging
import random
from typing import Iterable, List, Optional, Tuple

from .config import REFERENCE_SPREAD
from .errors import ValidationError
from .models import Chord, ExerciseConfig, PlayInstruction, Question
from .theory import MIDDLE_STEP, format_cents, is_valid_step

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 1000
PROMPT_DURATION = 0.5
FEEDBACK_DURATION = 1.0


def interval_display(config: ExerciseConfig, interval: int) -> str:
	name = config.edo_step_names.get(interval)
	return f"{interval} ({name})" if name else f"{interval}"


def ratio_display(config: ExerciseConfig, ratio_str: str) -> str:
	name = config.ratio_names.get(ratio_str)
	return f"{ratio_str} ({name})" if name else ratio_str


def chord_display(chord: Chord, pivot_index: int) -> str:
	"""Chord tones with the given (pivot) tone in angle brackets, e.g. "[0, <4>, 7]"."""
	parts = [f"<{i}>" if idx == pivot_index else str(i) for idx, i in enumerate(chord.intervals)]
	return f"Place chord: {chord.name} [{', '.join(parts)}]"


class QuestionGenerator:
	"""Draws questions for an ExerciseConfig.

	Candidates that put any tone off the lattice are redrawn whole, never
	clamped, so steps near the edges keep their share of questions.
	"""

	def __init__(self, rng: Optional[random.Random] = None, max_attempts: int = MAX_ATTEMPTS) -> None:
		self.rng = rng or random.Random()
		self.max_attempts = max_attempts

	def pick_reference(self) -> int:
		return self.rng.randint(MIDDLE_STEP - REFERENCE_SPREAD, MIDDLE_STEP + REFERENCE_SPREAD)

	def generate(self, config: ExerciseConfig) -> Question:
		for attempt in range(self.max_attempts):
			if config.mode == "edo-steps":
				q = self._edo_steps(config)
			elif config.mode == "ratio":
				q = self._ratio(config)
			else:
				q = self._chord(config)
			if q is not None:
				return q
			logger.debug("Resampling %s question (attempt %d)", config.mode, attempt + 1)
		raise ValidationError(
			f"Could not place a {config.mode} question on the keyboard after {self.max_attempts} attempts",
			field=config.mode,
		)

	def _edo_steps(self, config: ExerciseConfig) -> Optional[Question]:
		reference = self.pick_reference()
		interval = self.rng.choice(config.intervals)
		target = reference + interval
		if not is_valid_step(target):
			return None
		text = f"Place interval: {interval_display(config, interval)}"
		return Question(
			mode="edo-steps",
			reference_step=reference,
			correct_steps=(target,),
			text=text,
			reveal_text=f"{text} ({format_cents(config.edo, interval)})",
			interval=interval,
		)

	def _ratio(self, config: ExerciseConfig) -> Optional[Question]:
		reference = self.pick_reference()
		mapping = self.rng.choice(config.ratio_mappings)
		target = reference + mapping.steps
		if not is_valid_step(target):
			return None
		text = f"Place ratio: {ratio_display(config, mapping.ratio_str)}"
		return Question(
			mode="ratio",
			reference_step=reference,
			correct_steps=(target,),
			text=text,
			reveal_text=f"{text} ({mapping.steps} steps, {format_cents(config.edo, mapping.steps)})",
			interval=mapping.steps,
			ratio_str=mapping.ratio_str,
		)

	def _chord(self, config: ExerciseConfig) -> Optional[Question]:
		reference = self.pick_reference()
		chord = self.rng.choice(config.chords)
		pivot_index = 0
		if config.use_inversions and len(chord.intervals) > 1:
			pivot_index = self.rng.randint(0, len(chord.intervals) - 1)
		tones = [reference + i for i in chord.intervals]
		if not all(is_valid_step(t) for t in tones):
			return None
		# the pivot is given, not guessed; doubled tones count once
		pivot = tones[pivot_index]
		correct = tuple(sorted({t for t in tones if t != pivot}))
		text = chord_display(chord, pivot_index)
		return Question(
			mode="chord",
			reference_step=reference,
			correct_steps=correct,
			text=text,
			reveal_text=text,
			chord=chord,
			pivot_index=pivot_index,
		)


def validate_answer(submitted: Iterable[int], expected: Iterable[int]) -> bool:
	"""Exact match of the two step collections, ignoring order. No partial credit."""
	return sorted(submitted) == sorted(expected)


def highlight_sets(submitted: Iterable[int], expected: Iterable[int]) -> Tuple[List[int], List[int]]:
	"""(wrong, missed): submitted steps that are not expected, and expected steps not submitted."""
	sub = set(submitted)
	exp = set(expected)
	return sorted(sub - exp), sorted(exp - sub)


def prompt_instruction(question: Question, duration: float = PROMPT_DURATION) -> PlayInstruction:
	return PlayInstruction(steps=(question.given_step,), duration=duration)


def feedback_instruction(question: Question, duration: float = FEEDBACK_DURATION) -> PlayInstruction:
	return PlayInstruction(steps=question.all_steps, duration=duration)
