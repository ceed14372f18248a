SR = 44100

import io
from typing import Sequence, cast
import numpy as np
import numpy.typing as npt
import soundfile as sf

from .models import PlayInstruction
from .theory import steps_to_frequencies

ATTACK = 0.02
RELEASE = 0.5
NOTE_GAIN = 0.7


def tone(freq: float, dur: float, waveform: str = "sine") -> npt.NDArray[np.float32]:
	"""Generate a single tone with a linear attack/release envelope.

	Args:
		freq: Frequency in Hz
		dur: Duration in seconds
		waveform: One of {"sine","triangle","saw","square"}
	"""
	t = np.linspace(0.0, dur, int(SR * dur), endpoint=False, dtype=np.float32)
	omega = 2.0 * np.pi * freq
	if waveform == "sine":
		x = np.sin(omega * t).astype(np.float32)
	elif waveform == "triangle":
		# 2/pi * arcsin(sin)
		x = ((2.0 / np.pi) * np.arcsin(np.sin(omega * t))).astype(np.float32)
	elif waveform == "square":
		x = np.sign(np.sin(omega * t)).astype(np.float32)
	else:
		# sawtooth via fractional part formula
		phase = (freq * t).astype(np.float32)
		x = (2.0 * (phase - np.floor(phase + 0.5))).astype(np.float32)

	# release never longer than the note itself
	attack = min(int(ATTACK * SR), x.size)
	release = min(int(RELEASE * SR), x.size - attack)
	env = np.full_like(x, NOTE_GAIN, dtype=np.float32)
	if attack > 0:
		env[:attack] = np.linspace(0.0, NOTE_GAIN, attack, endpoint=False, dtype=np.float32)
	if release > 0:
		env[-release:] = np.linspace(NOTE_GAIN, 0.0, release, endpoint=False, dtype=np.float32)

	y = (x * env).astype(np.float32)
	return cast(npt.NDArray[np.float32], y)


def chord(freqs: Sequence[float], dur: float = 1.0, waveform: str = "sine") -> npt.NDArray[np.float32]:
	n = int(SR * dur)
	if not freqs:
		return np.zeros(n, dtype=np.float32)
	x = np.sum([tone(f, dur, waveform) for f in freqs], axis=0).astype(np.float32)
	max_abs = float(np.max(np.abs(x))) if x.size else 1.0
	if max_abs > NOTE_GAIN:
		x = (x * (NOTE_GAIN / max_abs)).astype(np.float32)
	return cast(npt.NDArray[np.float32], x)


def render(instruction: PlayInstruction, edo: int, waveform: str = "sine") -> npt.NDArray[np.float32]:
	return chord(steps_to_frequencies(instruction.steps, edo), instruction.duration, waveform)


def wav_bytes(x: npt.NDArray[np.float32]) -> bytes:
	buf = io.BytesIO()
	sf.write(buf, x, SR, format="WAV")
	return buf.getvalue()
