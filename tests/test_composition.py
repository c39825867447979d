import io
import logging

import mido
import pytest

import polyphon
import polyphon.composition
import polyphon.config
import polyphon.errors
import polyphon.export
import polyphon.roles


def test_reference_scenario () -> None:

	"""Seed 42, 120 BPM, 30 s, C major, PPQ 480: a 60-beat melody ending by tick 28800."""

	config = polyphon.config.GenerationConfig(seed=42, tempo_bpm=120, target_duration_seconds=30, key="C", mode="major", ppq=480)
	composition = polyphon.composition.Composition(config)
	tracks = composition.generate()
	melody = tracks[0]

	assert composition.budget.beats == 60
	assert abs(melody.length_beats - 60) <= composition.budget.unit
	assert melody.events and melody.end_beat() <= 60

	events = composition.events()
	offs = [e.tick for e in events if e.kind is polyphon.export.EventKind.NOTE_OFF]

	assert max(offs) <= 28800


def test_same_seed_same_bytes () -> None:

	first = polyphon.composition.Composition(polyphon.config.GenerationConfig(seed=42)).to_bytes()
	second = polyphon.composition.Composition(polyphon.config.GenerationConfig(seed=42)).to_bytes()

	assert first == second


def test_parallel_run_same_bytes () -> None:

	sequential = polyphon.composition.Composition(polyphon.config.GenerationConfig(seed=3, parallel=False)).to_bytes()
	parallel = polyphon.composition.Composition(polyphon.config.GenerationConfig(seed=3, parallel=True)).to_bytes()

	assert sequential == parallel


def test_different_seeds_differ () -> None:

	a = polyphon.composition.Composition(polyphon.config.GenerationConfig(seed=1, target_duration_seconds=8)).to_bytes()
	b = polyphon.composition.Composition(polyphon.config.GenerationConfig(seed=2, target_duration_seconds=8)).to_bytes()

	assert a != b


def test_unseeded_run_logs_its_seed (caplog: pytest.LogCaptureFixture) -> None:

	with caplog.at_level(logging.INFO, logger="polyphon.composition"):
		composition = polyphon.Composition(polyphon.config.GenerationConfig(target_duration_seconds=4))

	assert isinstance(composition.seed, int)
	assert f"using seed {composition.seed}" in caplog.text


def test_progression_covers_the_budget (short_config: polyphon.config.GenerationConfig) -> None:

	"""Eight seconds is 16 beats: four chords of four beats."""

	composition = polyphon.composition.Composition(short_config)

	assert len(composition.chords) == 4


def test_role_ranges_hold (short_config: polyphon.config.GenerationConfig) -> None:

	composition = polyphon.composition.Composition(short_config)

	for role, track in zip(short_config.roles, composition.generate()):
		for event in track.events:
			assert role.low <= event.pitch <= role.high


def test_minor_key_with_sevenths_and_swing () -> None:

	config = polyphon.config.GenerationConfig(
		seed = 11,
		key = "A",
		mode = "minor",
		tempo_bpm = 96,
		target_duration_seconds = 12.5,
		include_sevenths = True,
		swing = 0.6,
		syncopation = 0.2,
		beats_per_bar = 3,
		beats_per_chord = 3
	)

	composition = polyphon.composition.Composition(config)
	mid = mido.MidiFile(file=io.BytesIO(composition.to_bytes()))

	assert len(mid.tracks) == 4
	assert composition.budget.beats == 20
	assert [m.numerator for m in mid.tracks[0] if m.type == "time_signature"] == [3]


def test_save_writes_a_midi_file (tmp_path, short_config: polyphon.config.GenerationConfig) -> None:

	path = tmp_path / "out.mid"
	composition = polyphon.composition.Composition(short_config)
	composition.save(str(path))

	assert path.read_bytes() == composition.to_bytes()
	assert mido.MidiFile(str(path)).ticks_per_beat == 480


def test_invalid_config_fails_fast () -> None:

	with pytest.raises(polyphon.errors.ConfigurationError):
		polyphon.composition.Composition(polyphon.config.GenerationConfig(tempo_bpm=0))


NOISE_ROLES = [
	{"name": "lead", "strategy": "melody", "range": [60, 84], "degree_mode": "noise", "max_step": 1},
	{"name": "bass", "strategy": "bass", "range": [36, 55], "channel": 1},
	{"name": "arp", "strategy": "arpeggio", "range": [55, 79], "channel": 3},
	{"name": "kit", "strategy": "drums", "channel": 9},
]

VARIANTS = [
	{},
	{"roles": NOISE_ROLES},
	{"swing": 0.7, "syncopation": 0.4},
	{"parallel": True, "humanize_timing": 0.05, "humanize_velocity": 30},
	{"key": "D", "mode": "minor_pentatonic"},
	{"scale": [0, 2, 3, 7, 8], "harmony": True},
	{"harmony": False, "include_sevenths": True},
]


@pytest.mark.parametrize("options", VARIANTS)
def test_same_options_same_bytes (options: dict) -> None:

	"""Identical seed and options give identical files, whatever the options are."""

	def render () -> bytes:
		config = polyphon.config.GenerationConfig.from_dict({"seed": 21, "target_duration_seconds": 8, **options})
		return polyphon.composition.Composition(config).to_bytes()

	assert render() == render()


@pytest.mark.parametrize("options", VARIANTS)
def test_velocities_stay_in_role_ranges (options: dict) -> None:

	"""Humanized velocities never leave the role's range (the kit piece's range for drums)."""

	config = polyphon.config.GenerationConfig.from_dict({"seed": 42, "target_duration_seconds": 15, "humanize_velocity": 30, **options})
	composition = polyphon.composition.Composition(config)

	for role, track in zip(config.roles, composition.generate()):
		for event in track.events:
			low, high = role.velocity_bounds(event.pitch)
			assert low <= event.velocity <= high, (role.name, event)


@pytest.mark.parametrize("options", [
	{"mode": "minor_pentatonic"},
	{"scale": [0, 2, 3, 7, 8]},
	{"harmony": False},
])
def test_scale_only_generation (options: dict) -> None:

	"""Without a progression every pitched role still fills the budget inside the scale."""

	config = polyphon.config.GenerationConfig.from_dict({"seed": 1, "target_duration_seconds": 8, **options})
	composition = polyphon.composition.Composition(config)
	tracks = composition.generate()
	pitch_classes = set(composition.scale.pitch_classes())

	assert composition.chords == []
	assert len(mido.MidiFile(file=io.BytesIO(composition.to_bytes())).tracks) == 4

	for role, track in zip(config.roles, tracks):

		assert composition.budget.within(track.length_beats)

		if role.strategy is polyphon.roles.Strategy.DRUMS:
			continue

		assert track.events
		assert {event.pitch % 12 for event in track.events} <= pitch_classes


def test_seven_note_scale_keeps_its_progression (caplog: pytest.LogCaptureFixture) -> None:

	config = polyphon.config.GenerationConfig(seed=1, target_duration_seconds=8, scale=[0, 2, 4, 5, 7, 9, 11])

	with caplog.at_level(logging.INFO, logger="polyphon.composition"):
		composition = polyphon.composition.Composition(config)

	assert len(composition.chords) == 4
	assert "without a chord progression" not in caplog.text
