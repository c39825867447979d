"""Pitch selection for melodic lines.

:class:`NoteSelector` walks scale degrees and produces one pitch per
sounding rhythm slot. Each step's degree change comes from a *degree
source*. There are two kinds, selected by :class:`DegreeMode`:

- ``MARKOV`` - a :class:`~polyphon.markov.MarkovModel` over degree steps,
  keyed on the previous step.
- ``NOISE`` - smooth 1-D noise sampled at increasing positions and
  quantized to whole degrees; each step is at most ``max_step`` degrees.

On strong positions (the first slot of each beat) the degree snaps to the
nearest tone of the active chord. Weak positions move freely through the
scale. Pitches outside the instrument's range move by octaves until they fit.
If no octave fits they are clamped to the nearest boundary and a warning is
logged.

Given the same scale, chords, slots, model and random generator, the
selector always returns the same pitches.
"""

import dataclasses
import enum
import logging
import random
import typing

import polyphon.chords
import polyphon.errors
import polyphon.markov
import polyphon.rhythm
import polyphon.scale
import polyphon.sequence_utils


logger = logging.getLogger(__name__)


class DegreeMode (enum.Enum):

	"""How a melody chooses its next scale-degree step."""

	MARKOV = "markov"
	NOISE = "noise"


@dataclasses.dataclass(frozen=True)
class StepState:

	"""Where a melody is: its current degree and the step that led there."""

	degree: int
	delta: int


class DegreeSource (typing.Protocol):

	"""Anything that can propose the next degree step."""

	def start (self) -> int:
		...

	def next (self, state: StepState) -> int:
		...


class MarkovDegreeSource:

	"""Degree steps sampled from a Markov model keyed on the previous step."""

	def __init__ (self, model: polyphon.markov.MarkovModel[int], rng: random.Random) -> None:

		self.model = model
		self.rng = rng

	def start (self) -> int:

		return self.model.initial_state

	def next (self, state: StepState) -> int:

		return self.model.next(state.delta, self.rng)


class NoiseDegreeSource:

	"""
	Degree steps that follow a smooth noise contour.

	The contour is ``noise(position) * span`` degrees around the starting
	degree. Each call moves one ``rate`` further along the noise and steps
	toward the contour by at most ``max_step`` degrees.
	"""

	def __init__ (self, seed: int, max_step: int = 2, span: int = 7, rate: float = 0.15) -> None:

		if max_step < 1:
			raise polyphon.errors.ConfigurationError("Noise max step must be at least 1")

		if span < 0:
			raise polyphon.errors.ConfigurationError("Noise span cannot be negative")

		if rate <= 0:
			raise polyphon.errors.ConfigurationError("Noise rate must be positive")

		self.seed = seed
		self.max_step = max_step
		self.span = span
		self.rate = rate
		self.position = 0

	def start (self) -> int:

		return 0

	def next (self, state: StepState) -> int:

		self.position += 1
		value = polyphon.sequence_utils.perlin_1d(self.position * self.rate, seed=self.seed)
		target = int(round((value - 0.5) * 2 * self.span))

		return max(-self.max_step, min(self.max_step, target - state.degree))


def make_degree_source (
	mode: DegreeMode,
	rng: random.Random,
	model: typing.Optional[polyphon.markov.MarkovModel[int]] = None,
	max_step: int = 2,
	noise_rate: float = 0.15,
	noise_span: int = 7
) -> DegreeSource:

	"""Build the degree source for a mode."""

	if mode is DegreeMode.MARKOV:
		return MarkovDegreeSource(model or polyphon.markov.default_degree_model(), rng)

	if mode is DegreeMode.NOISE:
		return NoiseDegreeSource(seed=rng.getrandbits(32), max_step=max_step, span=noise_span, rate=noise_rate)

	raise polyphon.errors.ConfigurationError(f"Unknown degree mode: {mode}")


def nearest_chord_degree (scale: polyphon.scale.Scale, degree: int, chord: polyphon.chords.Chord) -> typing.Optional[int]:

	"""
	Return the degree closest to ``degree`` whose pitch class is a chord tone.

	Upward wins ties. Returns None when no chord tone belongs to the scale.
	"""

	chord_pcs = chord.pitch_classes()

	for distance in range(len(scale) + 1):
		for candidate in (degree + distance, degree - distance):
			if scale.degree_pitch_class(candidate) in chord_pcs:
				return candidate

	return None


class NoteSelector:

	"""
	Chooses pitches for rhythm slots inside a scale and an instrument range.

	Parameters:
		scale: The scale melodies move through.
		low: Lowest allowed MIDI pitch (inclusive).
		high: Highest allowed MIDI pitch (inclusive).
		mode: Markov or noise degree stepping.
		model: Degree-step Markov model (defaults to the built-in one).
		max_step: Largest degree step in noise mode.
		noise_rate: Noise sampling distance per step.
		noise_span: Contour size in degrees for noise mode.
	"""

	def __init__ (
		self,
		scale: polyphon.scale.Scale,
		low: int,
		high: int,
		mode: DegreeMode = DegreeMode.MARKOV,
		model: typing.Optional[polyphon.markov.MarkovModel[int]] = None,
		max_step: int = 2,
		noise_rate: float = 0.15,
		noise_span: int = 7
	) -> None:

		polyphon.chords.validate_pitch_range(low, high)

		self.scale = scale
		self.low = low
		self.high = high
		self.mode = mode
		self.model = model
		self.max_step = max_step
		self.noise_rate = noise_rate
		self.noise_span = noise_span

		self.tonic_pitch = scale.tonic_near((low + high) // 2)


	def select (
		self,
		slots: typing.Sequence[polyphon.rhythm.Slot],
		rng: random.Random,
		chords: typing.Optional[typing.Sequence[typing.Optional[polyphon.chords.Chord]]] = None
	) -> typing.List[typing.Optional[int]]:

		"""
		Return one pitch per slot (``None`` for rests).

		Parameters:
			slots: Rhythm slots to fill.
			rng: Random generator (consumed in slot order).
			chords: Active chord per slot, or None for scale-only selection.
		"""

		if chords is not None and len(chords) != len(slots):
			raise ValueError("chords must align one-to-one with slots")

		source = make_degree_source(
			self.mode,
			rng,
			model = self.model,
			max_step = self.max_step,
			noise_rate = self.noise_rate,
			noise_span = self.noise_span
		)

		strong = polyphon.rhythm.strong_positions(slots)
		state = StepState(degree=0, delta=source.start())
		first = True
		pitches: typing.List[typing.Optional[int]] = []

		for index, slot in enumerate(slots):

			if slot.rest:
				pitches.append(None)
				continue

			if first:
				# The first note sounds the tonic; the walk then continues from the start step.
				delta = state.delta
				degree = state.degree
				first = False
			else:
				delta = source.next(state)
				degree = state.degree + delta

			chord = chords[index] if chords is not None else None
			constrained = chord is not None and strong[index]

			if constrained:
				snapped = nearest_chord_degree(self.scale, degree, chord)
				if snapped is not None:
					degree = snapped

			pitch = self.scale.degree_to_pitch(degree, self.tonic_pitch)

			if constrained and not chord.contains(pitch):
				# Chord tones outside the scale: take the chromatic chord tone nearest the scale pitch.
				nearby = [tone + 12 * shift for tone in chord.tones(pitch) for shift in (-1, 0, 1)]
				pitch = min(nearby, key=lambda t: (abs(t - pitch), t))

			fitted = self._fit(pitch, chord if constrained else None)

			# Re-centre the walk on the octave actually used so it cannot drift off the range.
			octave_shift = (fitted - pitch) // 12 if (fitted - pitch) % 12 == 0 else 0
			degree += octave_shift * len(self.scale)

			state = StepState(degree=degree, delta=delta)
			pitches.append(fitted)

		return pitches


	def _fit (self, pitch: int, chord: typing.Optional[polyphon.chords.Chord]) -> int:

		"""Fit a pitch into the range; keep chord tones when a chord constrains the slot."""

		try:
			return polyphon.chords.fit_to_range(pitch, self.low, self.high, strict=True)

		except polyphon.errors.RangeExhaustionError as exc:

			if chord is not None:
				in_range = [p for p in range(self.low, self.high + 1) if chord.contains(p)]
				if in_range:
					return min(in_range, key=lambda p: (abs(p - pitch), p))

			clamped = polyphon.chords.fit_to_range(pitch, self.low, self.high)
			logger.warning(f"{exc}; clamped to {clamped}")

			return clamped
