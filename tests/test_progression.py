import random

import pytest

import polyphon.errors
import polyphon.progression
import polyphon.scale


T = polyphon.progression.HarmonicFunction.TONIC
S = polyphon.progression.HarmonicFunction.SUBDOMINANT
D = polyphon.progression.HarmonicFunction.DOMINANT


def test_grammar_repeats (c_major: polyphon.scale.Scale, rng: random.Random) -> None:

	generator = polyphon.progression.ProgressionGenerator(c_major, grammar=["T", "SD", "dominant", "tonic"])

	assert generator.functions(6, rng) == [T, S, D, T, T, S]


def test_chords_match_their_functions (c_major: polyphon.scale.Scale) -> None:

	"""Every chord is built on one of its function's candidate degrees."""

	generator = polyphon.progression.ProgressionGenerator(c_major, grammar=polyphon.progression.DEFAULT_GRAMMAR)
	functions = generator.functions(32, random.Random(0))
	chords = generator.generate(32, random.Random(0))

	for function, chord in zip(functions, chords):
		allowed = {degree for degree, _ in polyphon.progression.FUNCTION_CANDIDATES[function]}
		assert chord.degree in allowed
		assert chord.root_pc in c_major.pitch_classes()


def test_markov_progression_starts_on_tonic (c_major: polyphon.scale.Scale) -> None:

	generator = polyphon.progression.ProgressionGenerator(c_major)
	functions = generator.functions(16, random.Random(5))

	assert functions[0] is T
	assert len(functions) == 16


def test_dominant_sevenths (c_major: polyphon.scale.Scale, rng: random.Random) -> None:

	generator = polyphon.progression.ProgressionGenerator(c_major, grammar=["dominant"], include_dominant_7th=True)

	for chord in generator.generate(12, rng):
		assert chord.quality in ("dominant_7th", "half_diminished_7th")


def test_minor_key_progression (rng: random.Random) -> None:

	a_minor = polyphon.scale.Scale.from_key("A", "minor")
	chords = polyphon.progression.ProgressionGenerator(a_minor, grammar=["tonic"], root_diversity=1.0).generate(20, rng)

	assert {chord.name() for chord in chords} <= {"Am", "F", "C"}


def test_same_generator_state_same_progression (c_major: polyphon.scale.Scale) -> None:

	generator = polyphon.progression.ProgressionGenerator(c_major)

	assert generator.generate(24, random.Random(17)) == generator.generate(24, random.Random(17))


def test_recent_roots_are_damped (c_major: polyphon.scale.Scale) -> None:

	"""A strong damping makes an immediate repeat of the tonic chord rare."""

	generator = polyphon.progression.ProgressionGenerator(c_major, grammar=["tonic"], root_diversity=0.01)
	degrees = [chord.degree for chord in generator.generate(200, random.Random(2))]
	repeats = sum(1 for a, b in zip(degrees, degrees[1:]) if a == b)

	assert repeats < 20


def test_seven_note_scale_required () -> None:

	with pytest.raises(polyphon.errors.ConfigurationError):
		polyphon.progression.ProgressionGenerator(polyphon.scale.Scale.from_key("C", "major_pentatonic"))


def test_unknown_function_raises (c_major: polyphon.scale.Scale) -> None:

	with pytest.raises(polyphon.errors.ConfigurationError):
		polyphon.progression.ProgressionGenerator(c_major, grammar=["tonic", "mediant"])
