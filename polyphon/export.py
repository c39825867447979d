"""Beat-to-tick conversion and MIDI file output.

:class:`TickConverter` turns assembled tracks into a flat, ordered list of
:class:`ExportEvent` records on an integer tick grid. :func:`to_midi_file`
hands that list to mido, which owns the binary Standard MIDI File format.

Rounding works on absolute positions: every start and end is an exact beat
fraction, rounded once (half-to-even) to the nearest tick. No note's timing
is derived from a previously rounded value, so error never accumulates and
every boundary is within half a tick of its exact position.
"""

import dataclasses
import enum
import fractions
import io
import logging
import typing

import mido

import polyphon.budget
import polyphon.constants.ticks
import polyphon.errors
import polyphon.track


logger = logging.getLogger(__name__)


class EventKind (enum.Enum):

	"""Export event types, in their tie-break order at equal ticks."""

	TEMPO_META = 0
	TRACK_NAME_META = 1
	NOTE_OFF = 2
	NOTE_ON = 3


@dataclasses.dataclass(frozen=True)
class ExportEvent:

	"""
	One tick-stamped event for the file writer.

	``pitch`` and ``channel`` are set for notes, ``velocity`` for note-ons,
	``tempo`` (microseconds per quarter note) for the tempo event and
	``name`` for track names.
	"""

	track_index: int
	tick: int
	kind: EventKind
	pitch: typing.Optional[int] = None
	velocity: typing.Optional[int] = None
	channel: typing.Optional[int] = None
	tempo: typing.Optional[int] = None
	name: typing.Optional[str] = None


class TickConverter:

	"""
	Converts beat-timed tracks to tick-timed export events.

	Parameters:
		ppq: Ticks per quarter note (beat).
		bpm: Tempo in beats per minute.

	Example:
		```python
		converter = TickConverter(ppq=480, bpm=120)
		converter.beats_to_ticks(Fraction(3, 2))   # 720
		events = converter.convert(tracks, budget)
		```
	"""

	def __init__ (self, ppq: int = polyphon.constants.ticks.DEFAULT_PPQ, bpm: float = 120) -> None:

		if not 0 < ppq <= polyphon.constants.ticks.MAX_PPQ:
			raise polyphon.errors.ConfigurationError(f"PPQ must be between 1 and {polyphon.constants.ticks.MAX_PPQ}, got {ppq}")

		if bpm <= 0:
			raise polyphon.errors.ConfigurationError(f"Tempo must be positive, got {bpm}")

		self.ppq = ppq
		self.bpm = bpm


	@property
	def tempo (self) -> int:

		"""Microseconds per quarter note."""

		return int(mido.bpm2tempo(self.bpm))


	def beats_to_ticks (self, beats: fractions.Fraction) -> int:

		"""Nearest tick to an absolute beat position (ties to even)."""

		return round(fractions.Fraction(beats) * self.ppq)


	def ticks_to_beats (self, ticks: int) -> fractions.Fraction:

		return fractions.Fraction(ticks, self.ppq)


	def note_spans (
		self,
		track: polyphon.track.Track,
		end_tick: typing.Optional[int] = None
	) -> typing.List[typing.Tuple[int, int, int, int]]:

		"""
		Return ``(pitch, on_tick, off_tick, velocity)`` for each note of a track.

		Every note lasts at least one tick and, given ``end_tick``, ends by it.
		A pitch struck again while still sounding is cut off at the new onset,
		so each note-on pairs with exactly one later note-off. A second strike
		of the same pitch on the same tick is dropped.
		"""

		spans: typing.List[typing.List[int]] = []
		sounding: typing.Dict[int, int] = {}

		for event in track.events:

			on = self.beats_to_ticks(event.start)
			off = max(self.beats_to_ticks(event.end), on + 1)

			if end_tick is not None:
				on = min(on, end_tick - 1)
				off = min(off, end_tick)

			previous = sounding.get(event.pitch)

			if previous is not None and spans[previous][2] > on:

				if spans[previous][1] >= on:
					logger.debug(f"Track {track.role!r}: dropped duplicate pitch {event.pitch} at tick {on}")
					continue

				spans[previous][2] = on

			sounding[event.pitch] = len(spans)
			spans.append([event.pitch, on, off, event.velocity])

		return [(pitch, on, off, velocity) for pitch, on, off, velocity in spans]


	def convert (
		self,
		tracks: typing.Sequence[polyphon.track.Track],
		budget: typing.Optional[polyphon.budget.BeatBudget] = None
	) -> typing.List[ExportEvent]:

		"""
		Build the ordered export event list.

		The tempo event comes first (track 0, tick 0), then each track's name
		at tick 0, then its notes by tick. At equal ticks note-offs precede
		note-ons, and notes order by role priority and pitch.

		Raises:
			BudgetOverrunError: If a note ends after the budget.
		"""

		end_tick = budget.end_tick() if budget is not None else None

		if budget is not None and budget.ppq != self.ppq:
			raise polyphon.errors.ConfigurationError(f"Budget PPQ {budget.ppq} does not match converter PPQ {self.ppq}")

		events: typing.List[ExportEvent] = [ExportEvent(track_index=0, tick=0, kind=EventKind.TEMPO_META, tempo=self.tempo)]

		for index, track in enumerate(tracks):

			if end_tick is not None and track.end_beat() > budget.beats:
				raise polyphon.errors.BudgetOverrunError(f"Track {track.role!r} ends at beat {track.end_beat()}, after the {budget.beats}-beat budget")

			events.append(ExportEvent(track_index=index, tick=0, kind=EventKind.TRACK_NAME_META, name=track.role))

			notes: typing.List[typing.Tuple[typing.Tuple[int, int, int, int], ExportEvent]] = []

			for pitch, on, off, velocity in self.note_spans(track, end_tick):
				notes.append((
					(on, EventKind.NOTE_ON.value, track.priority, pitch),
					ExportEvent(track_index=index, tick=on, kind=EventKind.NOTE_ON, pitch=pitch, velocity=velocity, channel=track.channel)
				))
				notes.append((
					(off, EventKind.NOTE_OFF.value, track.priority, pitch),
					ExportEvent(track_index=index, tick=off, kind=EventKind.NOTE_OFF, pitch=pitch, velocity=0, channel=track.channel)
				))

			notes.sort(key=lambda item: item[0])
			events.extend(event for _, event in notes)

		validate_events(events, end_tick)

		return events


def validate_events (events: typing.Sequence[ExportEvent], end_tick: typing.Optional[int] = None) -> None:

	"""
	Check the writer-facing guarantees of an event list.

	Ticks are non-negative and non-decreasing within a track, no tick passes
	``end_tick``, and every note-on has exactly one later note-off.

	Raises:
		ValueError: If the list breaks ordering or pairing.
		BudgetOverrunError: If an event lies after ``end_tick``.
	"""

	last_tick: typing.Dict[int, int] = {}
	open_notes: typing.Dict[typing.Tuple[int, typing.Optional[int], typing.Optional[int]], int] = {}

	if events and events[0].kind is not EventKind.TEMPO_META:
		raise ValueError("The tempo event must come first")

	for event in events:

		if event.tick < 0:
			raise ValueError(f"Negative tick {event.tick} on track {event.track_index}")

		if event.tick < last_tick.get(event.track_index, 0):
			raise ValueError(f"Ticks decrease on track {event.track_index} at tick {event.tick}")

		if end_tick is not None and event.tick > end_tick:
			raise polyphon.errors.BudgetOverrunError(f"Event at tick {event.tick} is after the final tick {end_tick}")

		last_tick[event.track_index] = event.tick
		key = (event.track_index, event.channel, event.pitch)

		if event.kind is EventKind.NOTE_ON:
			if open_notes.get(key):
				raise ValueError(f"Note {event.pitch} struck again before release on track {event.track_index}")
			open_notes[key] = 1

		elif event.kind is EventKind.NOTE_OFF:
			if not open_notes.get(key):
				raise ValueError(f"Note-off without note-on for pitch {event.pitch} on track {event.track_index}")
			open_notes[key] = 0

	unmatched = [key for key, is_open in open_notes.items() if is_open]

	if unmatched:
		raise ValueError(f"{len(unmatched)} note-ons have no note-off")


def _to_message (event: ExportEvent, delta: int) -> typing.Union[mido.Message, mido.MetaMessage]:

	if event.kind is EventKind.TEMPO_META:
		return mido.MetaMessage('set_tempo', tempo=event.tempo, time=delta)

	if event.kind is EventKind.TRACK_NAME_META:
		return mido.MetaMessage('track_name', name=event.name, time=delta)

	if event.kind is EventKind.NOTE_ON:
		return mido.Message('note_on', channel=event.channel, note=event.pitch, velocity=event.velocity, time=delta)

	return mido.Message('note_off', channel=event.channel, note=event.pitch, velocity=0, time=delta)


def to_midi_file (
	events: typing.Sequence[ExportEvent],
	ppq: int = polyphon.constants.ticks.DEFAULT_PPQ,
	beats_per_bar: typing.Optional[int] = None
) -> mido.MidiFile:

	"""
	Build a type 1 MIDI file, one MTrk chunk per track index.

	With ``beats_per_bar`` the first track also carries an n/4 time signature
	next to the tempo.
	"""

	mid = mido.MidiFile(type=1, ticks_per_beat=ppq)
	tracks: typing.Dict[int, mido.MidiTrack] = {}
	last_tick: typing.Dict[int, int] = {}

	for event in events:

		if event.track_index not in tracks:
			tracks[event.track_index] = mido.MidiTrack()
			last_tick[event.track_index] = 0

		delta = event.tick - last_tick[event.track_index]
		tracks[event.track_index].append(_to_message(event, delta))
		last_tick[event.track_index] = event.tick

		if event.kind is EventKind.TEMPO_META and beats_per_bar is not None:
			tracks[event.track_index].append(mido.MetaMessage('time_signature', numerator=beats_per_bar, denominator=4, time=0))

	for index in sorted(tracks):
		mid.tracks.append(tracks[index])

	return mid


def to_bytes (
	events: typing.Sequence[ExportEvent],
	ppq: int = polyphon.constants.ticks.DEFAULT_PPQ,
	beats_per_bar: typing.Optional[int] = None
) -> bytes:

	"""Serialize an event list to Standard MIDI File bytes."""

	buffer = io.BytesIO()
	to_midi_file(events, ppq, beats_per_bar).save(file=buffer)

	return buffer.getvalue()
