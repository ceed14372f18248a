"""Turn the raw text of the exercise form into a validated ExerciseConfig."""
from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, Field

from .catalog import DEFAULT_THRESHOLD, default_chords_text, default_intervals_text, default_ratios_text, map_ratios_to_steps
from .errors import ParseError, ValidationError
from .models import Chord, ExerciseConfig, Mode, RatioMapping, Waveform
from .theory import DEFAULT_12EDO_LABELS, MAX_EDO, MIDDLE_STEP, MIN_EDO, NUM_STEPS, canonical_ratio_str

logger = logging.getLogger(__name__)

# Reference steps are drawn from MIDDLE_STEP +/- REFERENCE_SPREAD
REFERENCE_SPREAD = 12

_STEP_LINE = re.compile(r"^\s*(\d+)\s*:\s*(.+)$")
_RATIO_LINE = re.compile(r"^\s*([^:]+)\s*:\s*(.+)$")
_CHORD_LINE = re.compile(r"\[([^\]]+)\]\s*:\s*(.+)")


class RawConfig(BaseModel):
	"""Exercise form exactly as the user typed it."""

	edo: Union[int, str] = 12
	question_count: Union[int, str] = 10
	mode: Mode = "edo-steps"
	waveform: Waveform = "sine"
	note_labels: str = ", ".join(DEFAULT_12EDO_LABELS)
	use_custom_labels: bool = False
	intervals_text: str = Field(default_factory=lambda: default_intervals_text(12))
	ratios_text: str = Field(default_factory=default_ratios_text)
	chords_text: str = Field(default_factory=lambda: default_chords_text(12))
	use_inversions: bool = False
	edo_names_text: str = ""
	ratio_names_text: str = ""


def _lines(text: str) -> List[str]:
	return [line.strip() for line in text.splitlines() if line.strip()]


def parse_int(value: Union[int, str], field: str, label: str) -> int:
	if isinstance(value, int):
		return value
	try:
		return int(str(value).strip())
	except ValueError as e:
		raise ValidationError(f"Please enter a valid {label}", field=field) from e


def parse_edo(value: Union[int, str]) -> int:
	edo = parse_int(value, "edo", f"EDO between {MIN_EDO} and {MAX_EDO}")
	if not MIN_EDO <= edo <= MAX_EDO:
		raise ValidationError(f"Please enter a valid EDO between {MIN_EDO} and {MAX_EDO}", field="edo")
	return edo


def parse_question_count(value: Union[int, str]) -> int:
	count = parse_int(value, "question_count", "question count")
	if count < 1:
		raise ValidationError("Please enter a valid question count", field="question_count")
	return count


def parse_labels(text: str) -> List[str]:
	return [label.strip() for label in text.split(",") if label.strip()]


def resolve_labels(edo: int, labels: Sequence[str]) -> List[str]:
	"""12-EDO gets the standard note names unless the user already gave exactly twelve."""
	if edo == 12 and len(labels) != 12:
		return list(DEFAULT_12EDO_LABELS)
	return list(labels)


def parse_step_names(text: str) -> Dict[int, str]:
	names: Dict[int, str] = {}
	for line in _lines(text):
		match = _STEP_LINE.match(line)
		if match:
			names[int(match.group(1))] = match.group(2).strip()
	return names


def parse_ratio_names(text: str) -> Dict[str, str]:
	names: Dict[str, str] = {}
	for line in _lines(text):
		match = _RATIO_LINE.match(line)
		if match:
			names[canonical_ratio_str(match.group(1))] = match.group(2).strip()
	return names


def parse_interval_lines(text: str) -> Tuple[List[int], Dict[int, str]]:
	"""Read "step : name" or bare "step" lines. Lines that are neither are dropped."""
	intervals: List[int] = []
	names: Dict[int, str] = {}
	for line in _lines(text):
		match = _STEP_LINE.match(line)
		if match:
			step = int(match.group(1))
			intervals.append(step)
			names[step] = match.group(2).strip()
			continue
		try:
			intervals.append(int(line))
		except ValueError:
			logger.debug("Ignoring interval line %r", line)
	return intervals, names


def parse_ratio_lines(text: str) -> Tuple[List[str], Dict[str, str]]:
	ratios: List[str] = []
	names: Dict[str, str] = {}
	for line in _lines(text):
		match = _RATIO_LINE.match(line)
		if match:
			ratio = canonical_ratio_str(match.group(1))
			ratios.append(ratio)
			names[ratio] = match.group(2).strip()
		else:
			ratios.append(canonical_ratio_str(line))
	return ratios, names


def parse_chord(line: str) -> Chord:
	"""Parse "[0, 4, 7] : major". Non-integer entries inside the brackets are ignored."""
	match = _CHORD_LINE.search(line)
	if not match:
		raise ParseError(f"Invalid chord format: {line}")
	intervals = []
	for token in match.group(1).split(","):
		try:
			intervals.append(int(token.strip()))
		except ValueError:
			continue
	name = match.group(2).strip()
	if not intervals or not name:
		raise ParseError(f"Invalid chord format: {line}")
	return Chord(intervals=tuple(intervals), name=name)


def reference_band() -> range:
	return range(MIDDLE_STEP - REFERENCE_SPREAD, MIDDLE_STEP + REFERENCE_SPREAD + 1)


def is_playable(offsets: Sequence[int]) -> bool:
	"""True if some reference in the sampling band keeps every offset on the lattice."""
	lo, hi = min(offsets), max(offsets)
	return any(ref + lo >= 0 and ref + hi < NUM_STEPS for ref in reference_band())


def _resolve_intervals(edo: int, raw: RawConfig, step_names: Dict[int, str]) -> Dict[str, object]:
	lines = _lines(raw.intervals_text)
	if not lines:
		raise ValidationError("Please enter at least one interval", field="intervals")
	intervals, inline_names = parse_interval_lines(raw.intervals_text)
	if not intervals:
		raise ValidationError("Please enter at least one valid interval", field="intervals")
	invalid = [i for i in intervals if i < 1 or i >= edo]
	if invalid:
		bad = ", ".join(str(i) for i in invalid)
		raise ValidationError(f"Intervals must be between 1 and {edo - 1} (got {bad})", field="intervals")
	unplayable = [i for i in intervals if not is_playable([0, i])]
	if unplayable:
		bad = ", ".join(str(i) for i in unplayable)
		raise ValidationError(f"Intervals too wide for the keyboard: {bad}", field="intervals")
	return {
		"intervals": tuple(intervals),
		"edo_step_names": {**step_names, **inline_names},
	}


def _resolve_ratios(edo: int, raw: RawConfig, ratio_names: Dict[str, str]) -> Dict[str, object]:
	if not _lines(raw.ratios_text):
		raise ValidationError("Please enter at least one ratio", field="ratios")
	ratios, inline_names = parse_ratio_lines(raw.ratios_text)
	mappings: List[RatioMapping] = map_ratios_to_steps(edo, ratios, DEFAULT_THRESHOLD)
	if not mappings:
		raise ValidationError(
			f"No valid ratios found with error < {DEFAULT_THRESHOLD:g}% for this EDO", field="ratios"
		)
	unplayable = [m.ratio_str for m in mappings if not is_playable([0, m.steps])]
	if unplayable:
		raise ValidationError(f"Ratios too wide for the keyboard: {', '.join(unplayable)}", field="ratios")
	return {
		"ratio_mappings": tuple(mappings),
		"ratio_names": {**ratio_names, **inline_names},
	}


def _resolve_chords(edo: int, raw: RawConfig) -> Dict[str, object]:
	lines = _lines(raw.chords_text)
	if not lines:
		raise ValidationError("Please enter at least one chord", field="chords")
	chords: List[Chord] = []
	for line in lines:
		try:
			chord = parse_chord(line)
		except ParseError as e:
			raise ValidationError(f"{e}\nExpected format: [0, 4, 7] : major", field="chords") from e
		if any(i < 0 or i >= edo for i in chord.intervals):
			raise ValidationError(f'Chord "{chord.name}" has intervals outside EDO range', field="chords")
		if not is_playable(chord.intervals):
			raise ValidationError(f'Chord "{chord.name}" is too wide for the keyboard', field="chords")
		chords.append(chord)
	return {"chords": tuple(chords), "use_inversions": raw.use_inversions}


def resolve_config(raw: Optional[RawConfig] = None) -> ExerciseConfig:
	"""Validate the form and build the immutable session configuration.

	Raises ValidationError naming the offending field when the form is rejected.
	"""
	raw = raw or RawConfig()
	edo = parse_edo(raw.edo)
	question_count = parse_question_count(raw.question_count)

	step_names = parse_step_names(raw.edo_names_text)
	ratio_names = parse_ratio_names(raw.ratio_names_text)
	common: Dict[str, object] = {
		"edo": edo,
		"mode": raw.mode,
		"question_count": question_count,
		"waveform": raw.waveform,
		"custom_labels": tuple(resolve_labels(edo, parse_labels(raw.note_labels))),
		"use_custom_labels": raw.use_custom_labels,
		"edo_step_names": step_names,
		"ratio_names": ratio_names,
	}
	if raw.mode == "edo-steps":
		specific = _resolve_intervals(edo, raw, step_names)
	elif raw.mode == "ratio":
		specific = _resolve_ratios(edo, raw, ratio_names)
	else:
		specific = _resolve_chords(edo, raw)

	config = ExerciseConfig.model_validate({**common, **specific})
	logger.info("Resolved %s config for %d-EDO, %d questions", config.mode, edo, question_count)
	return config
