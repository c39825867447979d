import random

import pytest

import polyphon.budget
import polyphon.config
import polyphon.scale


@pytest.fixture
def rng () -> random.Random:

	"""A fixed-seed generator so every test run draws the same values."""

	return random.Random(1234)


@pytest.fixture
def c_major () -> polyphon.scale.Scale:

	return polyphon.scale.Scale.from_key("C", "major")


@pytest.fixture
def budget_60 () -> polyphon.budget.BeatBudget:

	"""30 seconds at 120 BPM: 60 beats at 480 PPQ."""

	return polyphon.budget.BeatBudget.from_seconds(30, bpm=120, ppq=480)


@pytest.fixture
def short_config () -> polyphon.config.GenerationConfig:

	"""A quick eight-second run with the default roles."""

	return polyphon.config.GenerationConfig(seed=7, target_duration_seconds=8)
