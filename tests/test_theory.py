import pytest

from edotrainer.errors import ParseError
from edotrainer.theory import (
	MIDDLE_STEP,
	REFERENCE_FREQ,
	best_step_approximation,
	canonical_ratio_str,
	format_cents,
	parse_ratio,
	relative_error,
	step_label,
	step_note_name,
	step_to_frequency,
	steps_to_cents,
)


def test_step_to_frequency_reference():
	assert step_to_frequency(MIDDLE_STEP, 12) == REFERENCE_FREQ
	assert step_to_frequency(MIDDLE_STEP + 31, 31) == pytest.approx(2 * REFERENCE_FREQ)
	assert step_to_frequency(MIDDLE_STEP - 12, 12) == pytest.approx(REFERENCE_FREQ / 2)


def test_step_to_frequency_custom_reference():
	assert step_to_frequency(69, 12, reference_freq=440.0, reference_step=69) == 440.0


@pytest.mark.parametrize("edo", [1, 5, 12, 19, 31, 53, 72, 127])
def test_octave_is_1200_cents(edo):
	assert steps_to_cents(edo, edo) == 1200.0


def test_format_cents():
	assert format_cents(12, 7) == "700.0¢"
	assert format_cents(31, 18) == "696.8¢"


def test_best_step_and_error_fifth_in_12edo():
	assert best_step_approximation(12, 1.5) == 7
	# 12 * log2(3/2) = 7.0196
	assert relative_error(12, 1.5) == pytest.approx(1.955, abs=1e-3)


def test_relative_error_exact_octave():
	assert relative_error(12, 2.0) == 0.0
	assert best_step_approximation(12, 0.5) == -12


def test_parse_ratio():
	assert parse_ratio("3/2") == 1.5
	assert parse_ratio(" 5 / 4 ") == 1.25
	assert parse_ratio("1.5/1") == 1.5


@pytest.mark.parametrize("text", ["3/0", "abc", "3/2/1", "3", "/2", "3/", "a/b", ""])
def test_parse_ratio_rejects(text):
	with pytest.raises(ParseError):
		parse_ratio(text)


def test_canonical_ratio_str():
	assert canonical_ratio_str(" 3 / 2 ") == "3/2"
	assert canonical_ratio_str("7/4") == "7/4"


def test_step_note_name():
	assert step_note_name(MIDDLE_STEP, 12) == "0\\12"
	assert step_note_name(MIDDLE_STEP + 7, 12) == "7\\12"
	assert step_note_name(MIDDLE_STEP - 1, 31) == "30\\31"


def test_step_label_uses_custom_labels_when_complete():
	labels = ["C", "Db", "D", "Eb", "E", "F", "Gb", "G", "Ab", "A", "Bb", "B"]
	assert step_label(MIDDLE_STEP + 7, 12, labels) == "G"
	assert step_label(MIDDLE_STEP + 7, 12, labels[:5]) == "7\\12"
	assert step_label(MIDDLE_STEP + 7, 12, None) == "7\\12"
