"""Property based tests using hypothesis."""
import math
import random
from fractions import Fraction

import hypothesis.strategies as st
from hypothesis import given

from edotrainer.catalog import map_ratios_to_steps
from edotrainer.models import Chord, ExerciseConfig
from edotrainer.theory import (
	MIDDLE_STEP,
	NUM_STEPS,
	REFERENCE_FREQ,
	best_step_approximation,
	parse_ratio,
	relative_error,
	step_to_frequency,
	steps_to_cents,
)
from edotrainer.trainer import QuestionGenerator, validate_answer

edos = st.integers(min_value=1, max_value=127)
ratios = st.fractions(min_value=Fraction(1, 64), max_value=64)


@given(edos, ratios)
def test_relative_error_range(edo, ratio):
	assert 0 <= relative_error(edo, ratio) <= 50


@given(edos, ratios)
def test_best_step_within_half_step_of_ratio(edo, ratio):
	step = best_step_approximation(edo, ratio)
	approx = step_to_frequency(step + MIDDLE_STEP, edo) / REFERENCE_FREQ
	# at most half a step away, measured in octaves
	assert abs(math.log2(approx) - math.log2(ratio)) <= 0.5 / edo + 1e-9


@given(edos)
def test_octave_cents(edo):
	assert steps_to_cents(edo, edo) == 1200.0


@given(st.integers(min_value=0, max_value=10**6), st.integers(min_value=1, max_value=10**6))
def test_parse_ratio_integers(n, d):
	assert parse_ratio(f"{n}/{d}") == Fraction(n, d)


@given(edos, st.lists(st.builds(lambda n, d: f"{n}/{d}", st.integers(-5, 40), st.integers(0, 40))))
def test_mappings_follow_input_order(edo, texts):
	mappings = map_ratios_to_steps(edo, texts, 40)
	kept = iter(texts)
	for m in mappings:
		# every mapping matches a later input than the previous one
		assert any(m.ratio_str == t for t in kept)
		assert 0 <= m.error < 40


@given(st.lists(st.integers(0, 126), unique=True))
def test_validate_answer_is_order_free(steps):
	shuffled = list(steps)
	random.Random(0).shuffle(shuffled)
	assert validate_answer(shuffled, steps)
	assert not validate_answer(steps + [127], steps)


@given(st.lists(st.integers(0, 20), min_size=1, max_size=5), st.booleans(), st.integers(0, 2**32))
def test_chord_questions_stay_on_lattice(intervals, inversions, seed):
	config = ExerciseConfig(
		edo=21,
		mode="chord",
		chords=(Chord(intervals=tuple(intervals), name="x"),),
		use_inversions=inversions,
		question_count=1,
	)
	q = QuestionGenerator(random.Random(seed)).generate(config)
	assert all(0 <= s < NUM_STEPS for s in q.all_steps)
	pivot = q.given_step
	assert pivot not in q.correct_steps
	assert set(q.correct_steps) == set(q.all_steps) - {pivot}
