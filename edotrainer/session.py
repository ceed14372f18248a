from __future__ import annotations

import logging
import time
from typing import Callable, Iterable, List, Optional

from .models import AnswerRecord, ExerciseConfig, Feedback, PlayInstruction, Question, SessionReport, SessionStats
from .trainer import QuestionGenerator, feedback_instruction, highlight_sets, prompt_instruction, validate_answer

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class SessionTracker:
	"""Running score and timing for one session."""

	def __init__(self, clock: Clock = time.monotonic) -> None:
		self.clock = clock
		self.started_at = clock()
		self.stats = SessionStats()
		self.report: Optional[SessionReport] = None

	def record_answer(self, correct: bool, elapsed: float) -> None:
		assert self.report is None, "session already finalized"
		self.stats.times.append(float(elapsed))
		self.stats.total += 1
		if correct:
			self.stats.correct += 1

	def running_average(self) -> float:
		times = self.stats.times
		return sum(times) / len(times) if times else 0.0

	def elapsed_total(self) -> float:
		return self.clock() - self.started_at

	def finalize(self) -> SessionReport:
		if self.report is not None:
			return self.report
		assert self.stats.total > 0, "finalize() needs at least one recorded answer"
		self.report = SessionReport(
			accuracy=round(self.stats.correct / self.stats.total * 100, 1),
			total_time=self.elapsed_total(),
			average_time=sum(self.stats.times) / len(self.stats.times),
			correct_count=self.stats.correct,
			total_count=self.stats.total,
		)
		return self.report


class Session:
	"""One run of `config.question_count` questions.

	The UI calls `request_next`, `submit_answer` and `quit`; everything it
	needs to draw or play comes back as return values.
	"""

	def __init__(
		self,
		config: ExerciseConfig,
		generator: Optional[QuestionGenerator] = None,
		clock: Clock = time.monotonic,
	) -> None:
		self.config = config
		self.generator = generator or QuestionGenerator()
		self.clock = clock
		self.tracker = SessionTracker(clock)
		self.history: List[AnswerRecord] = []
		self.question: Optional[Question] = None
		self.index = 0
		self.question_started_at = 0.0
		self.quit_requested = False
		logger.info("Session started: %s mode, %d-EDO, %d questions", config.mode, config.edo, config.question_count)

	@property
	def finished(self) -> bool:
		return self.quit_requested or (self.question is None and self.index >= self.config.question_count)

	def request_next(self) -> Optional[Question]:
		"""Draw the next question, or return None once the session is over."""
		if self.quit_requested or self.index >= self.config.question_count:
			self.question = None
			return None
		self.index += 1
		self.question = self.generator.generate(self.config)
		self.question_started_at = self.clock()
		return self.question

	def prompt(self) -> PlayInstruction:
		if self.question is None:
			raise RuntimeError("No active question")
		return prompt_instruction(self.question)

	def submit_answer(self, steps: Iterable[int]) -> Feedback:
		if self.question is None:
			raise RuntimeError("No active question")
		q = self.question
		submitted = sorted(set(steps))
		elapsed = self.clock() - self.question_started_at
		correct = validate_answer(submitted, q.correct_steps)
		self.tracker.record_answer(correct, elapsed)
		self.history.append(AnswerRecord(
			index=self.index,
			submitted=submitted,
			expected=sorted(q.correct_steps),
			correct=correct,
			elapsed=elapsed,
		))
		logger.debug("Question %d: %s in %.2fs", self.index, "correct" if correct else "incorrect", elapsed)
		wrong, missed = highlight_sets(submitted, q.correct_steps)
		self.question = None
		return Feedback(
			correct=correct,
			expected_steps=sorted(q.correct_steps),
			wrong_steps=wrong,
			missed_steps=missed,
			text=q.reveal_text,
			play=feedback_instruction(q),
			finished=self.index >= self.config.question_count,
		)

	def elapsed_total(self) -> float:
		return self.tracker.elapsed_total()

	def quit(self) -> None:
		self.quit_requested = True
		self.question = None
		logger.info("Session quit after %d answers", self.tracker.stats.total)

	def report(self) -> Optional[SessionReport]:
		"""Final statistics, or None if no answer was recorded (e.g. quit straight away)."""
		if self.tracker.stats.total == 0:
			return None
		if self.tracker.report is not None:
			return self.tracker.report
		report = self.tracker.finalize()
		logger.info("Session finished: %d/%d correct (%.1f%%)", report.correct_count, report.total_count, report.accuracy)
		return report
