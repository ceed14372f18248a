import random

import pytest

from edotrainer.config import RawConfig, resolve_config
from edotrainer.errors import ValidationError
from edotrainer.models import Chord, ExerciseConfig, RatioMapping
from edotrainer.theory import MIDDLE_STEP, NUM_STEPS
from edotrainer.trainer import (
	QuestionGenerator,
	chord_display,
	feedback_instruction,
	highlight_sets,
	prompt_instruction,
	validate_answer,
)


def test_validate_answer_order_independent():
	assert validate_answer({60, 64}, {64, 60})
	assert validate_answer([67, 60, 64], (60, 64, 67))


def test_validate_answer_no_partial_credit():
	assert not validate_answer({60}, {60, 64})
	assert not validate_answer({60, 64, 67}, {60, 64})
	assert not validate_answer(set(), {60})


def test_highlight_sets():
	wrong, missed = highlight_sets({60, 65}, {60, 64})
	assert wrong == [65]
	assert missed == [64]


def test_edo_steps_question_end_to_end():
	config = ExerciseConfig(edo=12, mode="edo-steps", intervals=(7,), question_count=1)
	gen = QuestionGenerator(random.Random(1))
	for _ in range(200):
		q = gen.generate(config)
		(target,) = q.correct_steps
		assert target - q.reference_step == 7
		assert 0 <= q.reference_step < NUM_STEPS and 0 <= target < NUM_STEPS
		assert MIDDLE_STEP - 12 <= q.reference_step <= MIDDLE_STEP + 12
		assert validate_answer({target}, q.correct_steps)
		assert not validate_answer({target + 1}, q.correct_steps)


def test_edo_steps_text_uses_names():
	config = resolve_config(RawConfig(intervals_text="7 : perfect fifth"))
	q = QuestionGenerator(random.Random(0)).generate(config)
	assert q.text == "Place interval: 7 (perfect fifth)"
	assert q.reveal_text == "Place interval: 7 (perfect fifth) (700.0¢)"


def test_ratio_question():
	config = resolve_config(RawConfig(mode="ratio", ratios_text="3/2 : perfect fifth", edo="31"))
	q = QuestionGenerator(random.Random(3)).generate(config)
	assert q.correct_steps == (q.reference_step + 18,)
	assert q.ratio_str == "3/2"
	assert q.text == "Place ratio: 3/2 (perfect fifth)"
	assert q.reveal_text == "Place ratio: 3/2 (perfect fifth) (18 steps, 696.8¢)"


def test_ratio_question_below_reference():
	mapping = RatioMapping(ratio=0.5, ratio_str="1/2", steps=-12, error=0.0)
	config = ExerciseConfig(edo=12, mode="ratio", ratio_mappings=(mapping,), question_count=1)
	q = QuestionGenerator(random.Random(5)).generate(config)
	assert q.correct_steps == (q.reference_step - 12,)
	assert q.text == "Place ratio: 1/2"


def test_chord_root_position():
	chord = Chord(intervals=(0, 4, 7), name="major")
	config = ExerciseConfig(edo=12, mode="chord", chords=(chord,), question_count=1)
	gen = QuestionGenerator(random.Random(7))
	for _ in range(100):
		q = gen.generate(config)
		assert q.pivot_index == 0
		assert q.given_step == q.reference_step
		assert q.correct_steps == (q.reference_step + 4, q.reference_step + 7)
		assert q.reference_step not in q.correct_steps
	assert q.text == "Place chord: major [<0>, 4, 7]"


def test_chord_inversions_cover_every_pivot():
	chord = Chord(intervals=(0, 4, 7), name="major")
	config = ExerciseConfig(edo=12, mode="chord", chords=(chord,), use_inversions=True, question_count=1)
	gen = QuestionGenerator(random.Random(11))
	seen = set()
	for _ in range(200):
		q = gen.generate(config)
		seen.add(q.pivot_index)
		pivot = q.reference_step + chord.intervals[q.pivot_index]
		assert q.given_step == pivot
		assert pivot not in q.correct_steps
		assert len(q.correct_steps) == 2
		assert set(q.correct_steps) | {pivot} == set(q.all_steps)
	assert seen == {0, 1, 2}


def test_single_tone_chord_never_inverts():
	chord = Chord(intervals=(0,), name="unison")
	config = ExerciseConfig(edo=12, mode="chord", chords=(chord,), use_inversions=True, question_count=1)
	q = QuestionGenerator(random.Random(0)).generate(config)
	assert q.pivot_index == 0
	assert q.correct_steps == ()


def test_near_edge_interval_is_resampled_not_clamped():
	config = ExerciseConfig(edo=127, mode="edo-steps", intervals=(70,), question_count=1)
	gen = QuestionGenerator(random.Random(2))
	refs = {gen.generate(config).reference_step for _ in range(300)}
	assert refs == set(range(51, 57))


def test_unplayable_config_fails_after_retry_cap():
	config = ExerciseConfig(edo=127, mode="edo-steps", intervals=(100,), question_count=1)
	with pytest.raises(ValidationError):
		QuestionGenerator(random.Random(0), max_attempts=50).generate(config)


def test_chord_display_marks_pivot():
	chord = Chord(intervals=(0, 10, 18, 25), name="harmonic7")
	assert chord_display(chord, 2) == "Place chord: harmonic7 [0, 10, <18>, 25]"


def test_play_instructions():
	chord = Chord(intervals=(0, 4, 7), name="major")
	config = ExerciseConfig(edo=12, mode="chord", chords=(chord,), use_inversions=True, question_count=1)
	q = QuestionGenerator(random.Random(4)).generate(config)
	prompt = prompt_instruction(q)
	assert prompt.steps == (q.given_step,)
	assert prompt.duration == 0.5
	fb = feedback_instruction(q)
	assert fb.steps == tuple(q.reference_step + i for i in (0, 4, 7))
	assert fb.duration == 1.0

	config = ExerciseConfig(edo=12, mode="edo-steps", intervals=(5,), question_count=1)
	q = QuestionGenerator(random.Random(4)).generate(config)
	assert feedback_instruction(q).steps == (q.reference_step, q.reference_step + 5)


def test_doubled_chord_tone_counts_once():
	config = resolve_config(RawConfig(mode="chord", chords_text="[0, 4, 4, 7] : doubled", use_inversions=True))
	gen = QuestionGenerator(random.Random(9))
	for _ in range(100):
		q = gen.generate(config)
		assert q.given_step not in q.correct_steps
		assert len(q.correct_steps) == len(set(q.correct_steps))
		assert set(q.correct_steps) | {q.given_step} == set(q.all_steps)
		assert validate_answer(set(q.correct_steps), q.correct_steps)
