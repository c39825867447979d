import fractions
import io
import random

import mido
import pytest

import polyphon.budget
import polyphon.errors
import polyphon.export
import polyphon.track


F = fractions.Fraction
KIND = polyphon.export.EventKind


def _note (pitch: int, start: object, duration: object, velocity: int = 90) -> polyphon.track.NoteEvent:

	return polyphon.track.NoteEvent(pitch=pitch, start=F(start), duration=F(duration), velocity=velocity)


def _track (role: str, events: list, length: object = None, polyphonic: bool = False, channel: int = 0) -> polyphon.track.Track:

	length = F(length) if length is not None else max(e.end for e in events)

	return polyphon.track.Track(role=role, events=tuple(events), length_beats=length, polyphonic=polyphonic, channel=channel)


def _notes (events: list) -> list:

	return [(e.tick, e.kind, e.pitch) for e in events if e.kind in (KIND.NOTE_ON, KIND.NOTE_OFF)]


def test_beats_to_ticks () -> None:

	converter = polyphon.export.TickConverter(ppq=480, bpm=120)

	assert converter.beats_to_ticks(F(3, 2)) == 720
	assert converter.ticks_to_beats(720) == F(3, 2)
	assert converter.tempo == 500000


def test_rounding_is_half_to_even () -> None:

	converter = polyphon.export.TickConverter(ppq=480)

	assert converter.beats_to_ticks(F(1, 960)) == 0
	assert converter.beats_to_ticks(F(3, 960)) == 2


def test_round_trip_within_one_tick () -> None:

	converter = polyphon.export.TickConverter(ppq=480)
	rng = random.Random(21)

	for _ in range(500):
		beats = F(rng.randint(0, 10 ** 6), rng.randint(1, 10 ** 4))
		assert abs(converter.ticks_to_beats(converter.beats_to_ticks(beats)) - beats) < F(1, 480)


def test_no_cumulative_drift () -> None:

	"""A thousand third-beat notes at PPQ 100 land on the nearest tick of their exact position."""

	converter = polyphon.export.TickConverter(ppq=100)
	track = _track("triplets", [_note(60 + i % 2, F(i, 3), F(1, 3)) for i in range(1000)])
	ons = [tick for tick, kind, _ in _notes(converter.convert([track])) if kind is KIND.NOTE_ON]

	assert ons == [round(F(i * 100, 3)) for i in range(1000)]


def test_event_order () -> None:

	"""Tempo first, then track names, then notes with note-offs before note-ons at equal ticks."""

	melody = _track("melody", [_note(60, 0, 1), _note(60, 1, 1)])
	chords = _track("chords", [_note(64, 0, 2), _note(60, 0, 2), _note(67, 0, 2)], polyphonic=True, channel=2)
	events = polyphon.export.TickConverter(ppq=480).convert([melody, chords])

	assert events[0].kind is KIND.TEMPO_META
	assert (events[1].kind, events[1].name) == (KIND.TRACK_NAME_META, "melody")

	assert _notes([e for e in events if e.track_index == 0]) == [
		(0, KIND.NOTE_ON, 60),
		(480, KIND.NOTE_OFF, 60),
		(480, KIND.NOTE_ON, 60),
		(960, KIND.NOTE_OFF, 60),
	]

	chord_ons = [(e.pitch, e.channel) for e in events if e.track_index == 1 and e.kind is KIND.NOTE_ON]
	assert chord_ons == [(60, 2), (64, 2), (67, 2)]


def test_restruck_pitch_is_cut_off () -> None:

	track = _track("pad", [_note(60, 0, 2), _note(60, 1, 2)], polyphonic=True)
	events = polyphon.export.TickConverter(ppq=480).convert([track])

	assert _notes(events) == [
		(0, KIND.NOTE_ON, 60),
		(480, KIND.NOTE_OFF, 60),
		(480, KIND.NOTE_ON, 60),
		(1440, KIND.NOTE_OFF, 60),
	]


def test_notes_last_at_least_one_tick () -> None:

	track = _track("blip", [_note(60, 0, F(1, 2000))])

	assert _notes(polyphon.export.TickConverter(ppq=480).convert([track])) == [(0, KIND.NOTE_ON, 60), (1, KIND.NOTE_OFF, 60)]


def test_notes_end_by_the_budget (budget_60: polyphon.budget.BeatBudget) -> None:

	track = _track("tail", [_note(60, 0, 59), _note(62, 59, 1)], length=60)
	events = polyphon.export.TickConverter(ppq=480).convert([track], budget_60)

	assert max(e.tick for e in events) == 28800


def test_overrun_is_an_error (budget_60: polyphon.budget.BeatBudget) -> None:

	track = _track("long", [_note(60, 58, 3)], length=60)

	with pytest.raises(polyphon.errors.BudgetOverrunError):
		polyphon.export.TickConverter(ppq=480).convert([track], budget_60)


def test_validate_events_catches_unpaired_notes () -> None:

	events = [
		polyphon.export.ExportEvent(track_index=0, tick=0, kind=KIND.TEMPO_META, tempo=500000),
		polyphon.export.ExportEvent(track_index=0, tick=0, kind=KIND.NOTE_ON, pitch=60, velocity=90, channel=0),
	]

	with pytest.raises(ValueError):
		polyphon.export.validate_events(events)


def test_validate_events_catches_decreasing_ticks () -> None:

	events = [
		polyphon.export.ExportEvent(track_index=0, tick=0, kind=KIND.TEMPO_META, tempo=500000),
		polyphon.export.ExportEvent(track_index=0, tick=10, kind=KIND.NOTE_ON, pitch=60, velocity=90, channel=0),
		polyphon.export.ExportEvent(track_index=0, tick=5, kind=KIND.NOTE_OFF, pitch=60, velocity=0, channel=0),
	]

	with pytest.raises(ValueError):
		polyphon.export.validate_events(events)


def test_midi_file_round_trip () -> None:

	"""The bytes parse back with mido: tempo, track names, and delta times."""

	melody = _track("melody", [_note(72, 0, 1), _note(74, F(3, 2), F(1, 2))])
	bass = _track("bass", [_note(36, 0, 2)], channel=1)
	events = polyphon.export.TickConverter(ppq=480, bpm=90).convert([melody, bass])
	data = polyphon.export.to_bytes(events, ppq=480, beats_per_bar=3)

	assert data[:4] == b"MThd"

	mid = mido.MidiFile(file=io.BytesIO(data))

	assert mid.type == 1
	assert mid.ticks_per_beat == 480
	assert len(mid.tracks) == 2

	first = mid.tracks[0]
	tempo = [m for m in first if m.type == "set_tempo"]
	signature = [m for m in first if m.type == "time_signature"]

	assert tempo[0].tempo == mido.bpm2tempo(90)
	assert (signature[0].numerator, signature[0].denominator) == (3, 4)
	assert [m.name for m in mid.tracks[1] if m.type == "track_name"] == ["bass"]

	notes = [(m.type, m.note, m.time) for m in first if m.type in ("note_on", "note_off")]
	assert notes == [("note_on", 72, 0), ("note_off", 72, 480), ("note_on", 74, 240), ("note_off", 74, 240)]


@pytest.mark.parametrize("ppq, bpm", [(0, 120), (480, 0), (40000, 120)])
def test_invalid_converter (ppq: int, bpm: float) -> None:

	with pytest.raises(polyphon.errors.ConfigurationError):
		polyphon.export.TickConverter(ppq=ppq, bpm=bpm)
