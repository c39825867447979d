"""Chord progressions from harmonic functions.

A progression is produced in two stages. First a sequence of harmonic
functions (tonic, subdominant, dominant) comes from a fixed grammar that
repeats, or from a Markov model over functions. Then each function becomes a
concrete diatonic chord, picked by weight from that function's candidate
scale degrees. Chords on a degree heard recently are damped, so a function
that repeats tends to change colour.
"""

import enum
import logging
import random
import typing

import polyphon.chords
import polyphon.errors
import polyphon.markov
import polyphon.scale
import polyphon.sequence_utils


logger = logging.getLogger(__name__)


class HarmonicFunction (enum.Enum):

	TONIC = "tonic"
	SUBDOMINANT = "subdominant"
	DOMINANT = "dominant"


_FUNCTION_ALIASES: typing.Dict[str, HarmonicFunction] = {
	"t": HarmonicFunction.TONIC,
	"s": HarmonicFunction.SUBDOMINANT,
	"sd": HarmonicFunction.SUBDOMINANT,
	"pd": HarmonicFunction.SUBDOMINANT,
	"predominant": HarmonicFunction.SUBDOMINANT,
	"d": HarmonicFunction.DOMINANT,
}


def parse_function (name: typing.Union[str, HarmonicFunction]) -> HarmonicFunction:

	"""Resolve ``"tonic"``, ``"T"``, ``"subdominant"``, ``"SD"``, ``"D"``... to a function."""

	if isinstance(name, HarmonicFunction):
		return name

	key = name.strip().lower()

	if key in _FUNCTION_ALIASES:
		return _FUNCTION_ALIASES[key]

	try:
		return HarmonicFunction(key)
	except ValueError:
		raise polyphon.errors.ConfigurationError(f"Unknown harmonic function: {name!r}") from None


# Candidate (scale degree, weight) pairs per function, degrees counted from 0.
FUNCTION_CANDIDATES: typing.Dict[HarmonicFunction, typing.List[typing.Tuple[int, float]]] = {
	HarmonicFunction.TONIC: [(0, 6), (5, 2), (2, 1)],			# I, vi, iii
	HarmonicFunction.SUBDOMINANT: [(3, 5), (1, 4)],				# IV, ii
	HarmonicFunction.DOMINANT: [(4, 6), (6, 1)],				# V, vii°
}

DEFAULT_FUNCTION_TRANSITIONS: typing.Dict[HarmonicFunction, typing.List[typing.Tuple[HarmonicFunction, float]]] = {
	HarmonicFunction.TONIC: [(HarmonicFunction.SUBDOMINANT, 4), (HarmonicFunction.DOMINANT, 3), (HarmonicFunction.TONIC, 1)],
	HarmonicFunction.SUBDOMINANT: [(HarmonicFunction.DOMINANT, 5), (HarmonicFunction.TONIC, 2), (HarmonicFunction.SUBDOMINANT, 1)],
	HarmonicFunction.DOMINANT: [(HarmonicFunction.TONIC, 6), (HarmonicFunction.SUBDOMINANT, 1)],
}

DEFAULT_GRAMMAR: typing.List[HarmonicFunction] = [
	HarmonicFunction.TONIC,
	HarmonicFunction.SUBDOMINANT,
	HarmonicFunction.DOMINANT,
	HarmonicFunction.TONIC,
]

DEFAULT_ROOT_DIVERSITY: float = 0.4


def default_function_model () -> polyphon.markov.MarkovModel[HarmonicFunction]:

	"""Return the built-in function transition model, starting on the tonic."""

	return polyphon.markov.MarkovModel(DEFAULT_FUNCTION_TRANSITIONS, initial_state=HarmonicFunction.TONIC)


class ProgressionGenerator:

	"""
	Produces one concrete chord per harmonic slot.

	Parameters:
		scale: A seven-note scale to build diatonic chords from.
		grammar: Function sequence repeated over the slots. When omitted
			(and no model is given) the function Markov model is walked.
		model: Markov model over functions, used when ``grammar`` is None.
		include_dominant_7th: Build dominant-function chords as sevenths.
		root_diversity: Weight multiplier (0–1) applied per recent chord
			sharing a candidate's degree. 1.0 disables the damping.
	"""

	def __init__ (
		self,
		scale: polyphon.scale.Scale,
		grammar: typing.Optional[typing.Sequence[typing.Union[str, HarmonicFunction]]] = None,
		model: typing.Optional[polyphon.markov.MarkovModel[HarmonicFunction]] = None,
		include_dominant_7th: bool = False,
		root_diversity: float = DEFAULT_ROOT_DIVERSITY
	) -> None:

		if len(scale) != 7:
			raise polyphon.errors.ConfigurationError(
				f"Chord progressions need a seven-note scale, '{scale.name}' has {len(scale)} notes"
			)

		if not 0.0 < root_diversity <= 1.0:
			raise polyphon.errors.ConfigurationError("Root diversity must be in (0, 1]")

		self.scale = scale
		self.grammar: typing.Optional[typing.List[HarmonicFunction]] = None

		if grammar is not None:
			if not grammar:
				raise polyphon.errors.ConfigurationError("Progression grammar cannot be empty")
			self.grammar = [parse_function(name) for name in grammar]

		self.model = model if model is not None else default_function_model()
		self.include_dominant_7th = include_dominant_7th
		self.root_diversity = root_diversity


	def functions (self, count: int, rng: random.Random) -> typing.List[HarmonicFunction]:

		"""Return ``count`` harmonic functions from the grammar or the model."""

		if count <= 0:
			return []

		if self.grammar is not None:
			return [self.grammar[i % len(self.grammar)] for i in range(count)]

		return [self.model.initial_state] + self.model.walk(count - 1, rng)


	def chord_for (self, function: HarmonicFunction, rng: random.Random, recent: typing.Sequence[int] = ()) -> polyphon.chords.Chord:

		"""Pick a chord for one function, damping degrees in ``recent``."""

		options = []

		for degree, weight in FUNCTION_CANDIDATES[function]:
			repeats = sum(1 for r in recent if r == degree)
			options.append((degree, weight * self.root_diversity ** repeats))

		degree = polyphon.sequence_utils.weighted_choice(options, rng)
		size = 4 if self.include_dominant_7th and function is HarmonicFunction.DOMINANT else 3

		return self.scale.chord_on_degree(degree, size=size)


	def generate (self, count: int, rng: random.Random) -> typing.List[polyphon.chords.Chord]:

		"""
		Return ``count`` chords.

		All randomness comes from ``rng``, function sequence first and then
		chord choices, so a given generator state always gives the same
		progression.
		"""

		chords: typing.List[polyphon.chords.Chord] = []
		recent: typing.List[int] = []

		for function in self.functions(count, rng):

			chord = self.chord_for(function, rng, recent)
			chords.append(chord)

			recent.append(typing.cast(int, chord.degree))
			if len(recent) > 2:
				recent.pop(0)

			logger.debug(f"{function.value} -> {chord.name()}")

		return chords
