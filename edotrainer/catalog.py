"""Named just ratios and chords, and their best approximations in a given EDO."""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Tuple

from .errors import ParseError
from .models import NamedInterval, RatioMapping
from .theory import canonical_ratio_str, parse_ratio, relative_error, best_step_approximation

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 40.0
CHORD_THRESHOLD = 50.0

# Order matters: it is the first-seen order used to break error ties.
STOCK_RATIOS: List[Tuple[str, str]] = [
	("8/7", "septimal major second"),
	("10/9", "minor whole tone"),
	("9/8", "major second"),
	("6/5", "minor third"),
	("5/4", "major third"),
	("4/3", "perfect fourth"),
	("7/5", "lesser septimal tritone"),
	("10/7", "greater septimal tritone"),
	("3/2", "perfect fifth"),
	("8/5", "minor sixth"),
	("5/3", "major sixth"),
	("9/5", "minor seventh"),
	("7/4", "harmonic seventh"),
	("15/8", "major seventh"),
]

STOCK_CHORDS: List[Tuple[str, List[str]]] = [
	("major", ["1/1", "5/4", "3/2"]),
	("minor", ["1/1", "6/5", "3/2"]),
	("maj7", ["1/1", "5/4", "3/2", "15/8"]),
	("min7", ["1/1", "6/5", "3/2", "9/5"]),
	("dom7", ["1/1", "5/4", "3/2", "9/5"]),
	("harmonic7", ["1/1", "5/4", "3/2", "7/4"]),
]

TRITONE_PAIR = frozenset({"7/5", "10/7"})


def stock_ratio_names() -> Dict[str, str]:
	return dict(STOCK_RATIOS)


def map_ratios_to_steps(edo: int, ratios: Iterable[str], threshold: float = DEFAULT_THRESHOLD) -> List[RatioMapping]:
	"""Approximate each ratio in `edo`, keeping input order.

	Unparseable and non-positive ratios are skipped, as are ratios whose
	relative error is `threshold` percent of a step or more.
	"""
	mappings: List[RatioMapping] = []
	for text in ratios:
		try:
			ratio = parse_ratio(text)
		except ParseError:
			logger.debug("Skipping unparseable ratio %r", text)
			continue
		if ratio <= 0:
			logger.debug("Skipping non-positive ratio %r", text)
			continue
		try:
			error = relative_error(edo, ratio)
			steps = best_step_approximation(edo, ratio)
			value = float(ratio)
		except (OverflowError, ValueError):
			logger.debug("Skipping ratio %r: out of floating point range", text)
			continue
		if error >= threshold:
			logger.debug("Skipping %s in %d-EDO: error %.1f%%", text, edo, error)
			continue
		mappings.append(RatioMapping(
			ratio=value,
			ratio_str=canonical_ratio_str(text),
			steps=steps,
			error=error,
		))
	return mappings


def _best_name(colliding: List[RatioMapping], names: Dict[str, str]) -> str:
	if len(colliding) == 1:
		return names[colliding[0].ratio_str]
	if {m.ratio_str for m in colliding} == TRITONE_PAIR:
		return "tritone"
	# min() keeps the first of equal-error entries
	best = min(colliding, key=lambda m: m.error)
	return names[best.ratio_str]


def default_interval_naming(edo: int) -> Dict[int, str]:
	"""Name each step reached by a stock ratio, resolving collisions on one step."""
	names = stock_ratio_names()
	by_step: Dict[int, List[RatioMapping]] = {}
	for m in map_ratios_to_steps(edo, names.keys(), DEFAULT_THRESHOLD):
		by_step.setdefault(m.steps, []).append(m)
	return {step: _best_name(colliding, names) for step, colliding in by_step.items()}


def _chord_steps(edo: int, ratios: List[str]) -> List[int]:
	mappings = map_ratios_to_steps(edo, ratios, CHORD_THRESHOLD)
	if len(mappings) != len(ratios):
		return []
	return [m.steps for m in mappings]


def default_chord_suggestions(edo: int) -> List[Tuple[List[int], str]]:
	"""Stock chords that map completely into `edo`.

	A chord is left out if any of its ratios misses the threshold.
	harmonic7 is left out when it lands on the same steps as dom7.
	"""
	chord_ratios = dict(STOCK_CHORDS)
	suggestions: List[Tuple[List[int], str]] = []
	for name, ratios in STOCK_CHORDS:
		steps = _chord_steps(edo, ratios)
		if not steps:
			continue
		if name == "harmonic7":
			dom7 = _chord_steps(edo, chord_ratios["dom7"])
			if dom7 and dom7 == steps:
				logger.debug("harmonic7 duplicates dom7 in %d-EDO", edo)
				continue
		suggestions.append((steps, name))
	return suggestions


def default_named_intervals(edo: int) -> List[NamedInterval]:
	naming = default_interval_naming(edo)
	return [NamedInterval(steps=step, name=naming[step]) for step in sorted(naming)]


def default_intervals_text(edo: int) -> str:
	return "\n".join(f"{i.steps} : {i.name}" for i in default_named_intervals(edo))


def default_chords_text(edo: int) -> str:
	return "\n".join(
		f"[{', '.join(str(s) for s in steps)}] : {name}"
		for steps, name in default_chord_suggestions(edo)
	)


def default_ratios_text() -> str:
	return "\n".join(f"{ratio} : {name}" for ratio, name in STOCK_RATIOS)
