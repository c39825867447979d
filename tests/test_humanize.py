import fractions
import random

import pytest

import polyphon.errors
import polyphon.humanize
import polyphon.track


F = fractions.Fraction


def _track (starts_and_durations: list, polyphonic: bool = False, pitches: list = None) -> polyphon.track.Track:

	events = []

	for i, (start, duration) in enumerate(starts_and_durations):
		pitch = pitches[i] if pitches else 60 + i % 12
		events.append(polyphon.track.NoteEvent(pitch=pitch, start=F(start), duration=F(duration), velocity=100))

	length = max(e.end for e in events)

	return polyphon.track.Track(role="test", events=tuple(events), length_beats=length, polyphonic=polyphonic)


@pytest.mark.parametrize("seed", range(25))
def test_humanize_never_reorders (seed: int) -> None:

	"""Distinct starts keep their order, even when notes are closer together than the jitter."""

	spacing = [(i * F(1, 32), F(1, 32)) for i in range(64)]
	original = _track(spacing)
	loose = polyphon.humanize.Humanizer(timing=0.5, velocity=10).apply(original, random.Random(seed), end_limit=F(2))

	starts = [e.start for e in loose.events]

	assert all(a < b for a, b in zip(starts, starts[1:]))
	assert all(s >= 0 for s in starts)
	assert all(e.end <= 2 for e in loose.events)


def test_monophonic_notes_do_not_overlap (rng: random.Random) -> None:

	track = _track([(i, 1) for i in range(32)])
	loose = polyphon.humanize.Humanizer(timing=0.2).apply(track, rng, end_limit=F(32))

	for current, following in zip(loose.events, loose.events[1:]):
		assert current.end <= following.start


def test_chords_move_together (rng: random.Random) -> None:

	chord_events = [(0, 2), (0, 2), (0, 2), (2, 2), (2, 2), (2, 2)]
	track = _track(chord_events, polyphonic=True, pitches=[60, 64, 67, 65, 69, 72])
	loose = polyphon.humanize.Humanizer(timing=0.1).apply(track, rng, end_limit=F(4))

	first = {e.start for e in loose.events[:3]}
	second = {e.start for e in loose.events[3:]}

	assert len(first) == 1 and len(second) == 1
	assert first.pop() < second.pop()


def test_last_note_cannot_pass_the_end (rng: random.Random) -> None:

	track = _track([(0, 1), (1, 1)])

	for seed in range(20):
		loose = polyphon.humanize.Humanizer(timing=0.3).apply(track, random.Random(seed), end_limit=F(2))
		assert loose.events[-1].end <= 2


def test_velocity_stays_in_bounds (rng: random.Random) -> None:

	events = tuple(polyphon.track.NoteEvent(pitch=60, start=F(i), duration=F(1), velocity=v) for i, v in enumerate([1, 127] * 20))
	track = polyphon.track.Track(role="v", events=events, length_beats=F(40))
	loose = polyphon.humanize.Humanizer(timing=0, velocity=20).apply(track, rng)

	assert all(1 <= e.velocity <= 127 for e in loose.events)
	assert [e.start for e in loose.events] == [e.start for e in events]


def test_zero_jitter_is_identity (rng: random.Random) -> None:

	track = _track([(0, 1), (1, 0.5), (F(3, 2), F(1, 2))])
	loose = polyphon.humanize.Humanizer(timing=0, velocity=0).apply(track, rng)

	assert loose.events == track.events


def test_length_is_unchanged (rng: random.Random) -> None:

	track = _track([(0, 1), (2, 1)])

	assert polyphon.humanize.Humanizer().apply(track, rng).length_beats == track.length_beats


def test_negative_amounts_raise () -> None:

	with pytest.raises(polyphon.errors.ConfigurationError):
		polyphon.humanize.Humanizer(timing=-0.1)

	with pytest.raises(polyphon.errors.ConfigurationError):
		polyphon.humanize.Humanizer(velocity=-1)


@pytest.mark.parametrize("seed", range(10))
def test_velocity_bounds_per_pitch (seed: int) -> None:

	"""Jittered velocities stay inside the range the caller gives for each pitch."""

	original = _track([(i, 1) for i in range(32)], pitches=[36, 42] * 16)
	bounds = {36: (95, 105), 42: (98, 100)}

	loose = polyphon.humanize.Humanizer(timing=0, velocity=20).apply(original, random.Random(seed), velocity_bounds=bounds.__getitem__)

	for event in loose.events:
		low, high = bounds[event.pitch]
		assert low <= event.velocity <= high

	assert any(event.velocity != 100 for event in loose.events)
