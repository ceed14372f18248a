import streamlit as st
import pandas as pd
import altair as alt
from typing import Any, Tuple

from edotrainer.audio import render, wav_bytes
from edotrainer.catalog import default_chords_text, default_intervals_text
from edotrainer.config import RawConfig, resolve_config
from edotrainer.errors import ValidationError
from edotrainer.models import MODES, WAVEFORMS, PlayInstruction
from edotrainer.session import Session
from edotrainer.theory import NUM_STEPS, format_time, step_label


st.set_page_config(page_title="EDO Ear Trainer", page_icon=None, layout="centered")


def get_state() -> Any:
	if "raw" not in st.session_state:
		st.session_state.raw = RawConfig()
	if "session" not in st.session_state:
		st.session_state.session = None
	if "feedback" not in st.session_state:
		st.session_state.feedback = None
	if "trigger_autoplay" not in st.session_state:
		st.session_state.trigger_autoplay = False
	if "play_version" not in st.session_state:
		st.session_state.play_version = 0
	return st.session_state


@st.cache_data(show_spinner=False)
def _cached_audio_bytes(steps: Tuple[int, ...], duration: float, edo: int, waveform: str, salt: int) -> bytes:
	x = render(PlayInstruction(steps=steps, duration=duration), edo, waveform)
	return wav_bytes(x)


def play(instruction: PlayInstruction, edo: int, waveform: str, autoplay: bool, salt: int) -> None:
	bytes_ = _cached_audio_bytes(instruction.steps, instruction.duration, edo, waveform, salt)
	st.audio(bytes_, format="audio/wav", autoplay=autoplay)


def config_view(state: Any) -> None:
	raw: RawConfig = state.raw
	st.title("EDO Ear Trainer")

	edo_text = st.text_input("EDO", value=str(raw.edo))
	# A new EDO refills the suggested intervals and chords
	if edo_text != str(raw.edo):
		try:
			edo = int(edo_text)
		except ValueError:
			edo = 0
		if 1 <= edo <= 127:
			raw = raw.model_copy(update={
				"intervals_text": default_intervals_text(edo),
				"chords_text": default_chords_text(edo),
			})
		raw = raw.model_copy(update={"edo": edo_text})

	question_count = st.text_input("Questions", value=str(raw.question_count))
	mode = st.radio("Mode", MODES, index=MODES.index(raw.mode), horizontal=True)
	waveform = st.selectbox("Synth", WAVEFORMS, index=WAVEFORMS.index(raw.waveform))

	intervals_text = raw.intervals_text
	ratios_text = raw.ratios_text
	chords_text = raw.chords_text
	use_inversions = raw.use_inversions
	if mode == "edo-steps":
		intervals_text = st.text_area("Intervals (step : name)", value=raw.intervals_text, height=220)
	elif mode == "ratio":
		ratios_text = st.text_area("Ratios (ratio : name)", value=raw.ratios_text, height=220)
	else:
		chords_text = st.text_area("Chords ([0, 4, 7] : name)", value=raw.chords_text, height=180)
		use_inversions = st.checkbox("Inversions", value=raw.use_inversions)

	with st.expander("Labels and names"):
		use_custom_labels = st.checkbox("Custom note labels", value=raw.use_custom_labels)
		note_labels = st.text_input("Note labels (comma separated)", value=raw.note_labels, disabled=not use_custom_labels)
		edo_names_text = st.text_area("Step names (step : name)", value=raw.edo_names_text)
		ratio_names_text = st.text_area("Ratio names (ratio : name)", value=raw.ratio_names_text)

	state.raw = RawConfig(
		edo=raw.edo,
		question_count=question_count,
		mode=mode,
		waveform=waveform,
		note_labels=note_labels,
		use_custom_labels=use_custom_labels,
		intervals_text=intervals_text,
		ratios_text=ratios_text,
		chords_text=chords_text,
		use_inversions=use_inversions,
		edo_names_text=edo_names_text,
		ratio_names_text=ratio_names_text,
	)

	if st.button("Start", use_container_width=True):
		try:
			config = resolve_config(state.raw)
		except ValidationError as e:
			st.error(str(e))
			return
		state.session = Session(config)
		state.session.request_next()
		state.feedback = None
		state.trigger_autoplay = True
		state.play_version += 1
		st.rerun()


def game_view(state: Any) -> None:
	session: Session = state.session
	config = session.config

	st.write(f"Question {session.index}/{config.question_count}")
	cols = st.columns(2)
	cols[0].metric("Total", format_time(session.elapsed_total()))
	cols[1].metric("Average", format_time(session.tracker.running_average()))

	if state.feedback is not None:
		fb = state.feedback
		st.subheader(fb.text)
		if fb.correct:
			st.success("Correct!")
		else:
			st.error("Incorrect")
		labels = config.labels()
		st.write("Answer: " + ", ".join(step_label(s, config.edo, labels) for s in fb.expected_steps))
		if fb.wrong_steps:
			st.write("Wrong: " + ", ".join(step_label(s, config.edo, labels) for s in fb.wrong_steps))
		play(fb.play, config.edo, config.waveform, autoplay=True, salt=state.play_version)
		label = "Results" if fb.finished else "Next"
		if st.button(label, use_container_width=True):
			state.feedback = None
			if session.request_next() is not None:
				state.trigger_autoplay = True
				state.play_version += 1
			st.rerun()
	elif session.question is not None:
		q = session.question
		st.subheader(q.text)
		play(session.prompt(), config.edo, config.waveform, autoplay=state.trigger_autoplay, salt=state.play_version)
		state.trigger_autoplay = False

		labels = config.labels()
		given = step_label(q.given_step, config.edo, labels)
		st.caption(f"Given: step {q.given_step} ({given})")
		chosen = st.multiselect(
			"Your notes",
			options=list(range(NUM_STEPS)),
			format_func=lambda s: f"{s} ({step_label(s, config.edo, labels)})",
			key=f"answer-{session.index}",
		)
		if st.button("Submit", disabled=not chosen, use_container_width=True):
			state.feedback = session.submit_answer(chosen)
			state.play_version += 1
			st.rerun()

	st.markdown("---")
	if st.button("Quit"):
		session.quit()
		state.session = None
		state.feedback = None
		st.rerun()


def results_view(state: Any) -> None:
	session: Session = state.session
	report = session.report()
	st.title("Results")
	if report is not None:
		cols = st.columns(4)
		cols[0].metric("Accuracy", f"{report.accuracy:.1f}%")
		cols[1].metric("Total time", format_time(report.total_time))
		cols[2].metric("Average time", format_time(report.average_time))
		cols[3].metric("Correct", f"{report.correct_count}/{report.total_count}")

		df = pd.DataFrame([r.model_dump() for r in session.history])
		chart = alt.Chart(df).mark_bar().encode(
			x=alt.X("index:O", title="question"),
			y=alt.Y("elapsed:Q", title="seconds"),
			color=alt.Color("correct:N", scale=alt.Scale(domain=[True, False], range=["#2ca02c", "#d62728"])),
			tooltip=["index", "elapsed", "correct"],
		).properties(width=400, height=250)
		st.altair_chart(chart, use_container_width=True)
		st.dataframe(df[["index", "submitted", "expected", "correct", "elapsed"]], hide_index=True)

	if st.button("Restart", use_container_width=True):
		state.session = None
		state.feedback = None
		st.rerun()


def main() -> None:
	state = get_state()
	if state.session is None:
		config_view(state)
	elif state.session.finished and state.feedback is None:
		results_view(state)
	else:
		game_view(state)


if __name__ == "__main__":
	main()
