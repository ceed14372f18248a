import math
from fractions import Fraction
from typing import List, Optional, Sequence

from .errors import ParseError

NUM_STEPS = 127
MIDDLE_STEP = 63
REFERENCE_FREQ = 261.63

MIN_EDO = 1
MAX_EDO = 127

DEFAULT_12EDO_LABELS = ["C", "Db", "D", "Eb", "E", "F", "Gb", "G", "Ab", "A", "Bb", "B"]


def relative_error(edo: int, ratio: float) -> float:
	"""Distance from `ratio` to the nearest step of `edo`, in percent of one step (not cents)."""
	x = edo * math.log2(ratio)
	return abs(round(x) - x) * 100.0


def best_step_approximation(edo: int, ratio: float) -> int:
	return int(round(edo * math.log2(ratio)))


def step_to_frequency(step: int, edo: int, reference_freq: float = REFERENCE_FREQ, reference_step: int = MIDDLE_STEP) -> float:
	return float(reference_freq * (2.0 ** ((step - reference_step) / edo)))


def steps_to_frequencies(steps: Sequence[int], edo: int) -> List[float]:
	return [step_to_frequency(s, edo) for s in steps]


def steps_to_cents(edo: int, steps: int) -> float:
	return steps / edo * 1200


def format_cents(edo: int, steps: int) -> str:
	return f"{steps_to_cents(edo, steps):.1f}¢"


def format_time(seconds: float) -> str:
	return f"{seconds:.1f}s"


def is_valid_step(step: int) -> bool:
	return 0 <= step < NUM_STEPS


def parse_ratio(text: str) -> Fraction:
	"""Parse "n/d" into a Fraction.

	Both sides may be any decimal number; whitespace around them is ignored.
	Raises ParseError for anything else, including a zero denominator.
	"""
	parts = text.strip().split("/")
	if len(parts) != 2:
		raise ParseError(f"Expected a ratio like 3/2, got {text!r}")
	try:
		num = Fraction(parts[0].strip())
		den = Fraction(parts[1].strip())
	except ValueError as e:
		raise ParseError(f"Expected a ratio like 3/2, got {text!r}") from e
	if den == 0:
		raise ParseError(f"Zero denominator in {text!r}")
	return num / den


def canonical_ratio_str(text: str) -> str:
	"""Strip whitespace around the parts of a ratio so " 3 / 2 " and "3/2" share a key."""
	return "/".join(p.strip() for p in text.strip().split("/"))


def step_in_octave(step: int, edo: int) -> int:
	return (step - MIDDLE_STEP) % edo


def step_note_name(step: int, edo: int) -> str:
	return f"{step_in_octave(step, edo)}\\{edo}"


def step_label(step: int, edo: int, labels: Optional[Sequence[str]] = None) -> str:
	"""Custom label for a step when one exists for its octave position, else "k\\edo"."""
	if labels and len(labels) >= edo:
		return labels[step_in_octave(step, edo)]
	return step_note_name(step, edo)
