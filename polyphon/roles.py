"""Instrument roles and their generation strategies.

An :class:`InstrumentRole` binds a pitch range, a velocity range and one
:class:`Strategy`. Every strategy is a plain function with the same
signature, ``generate(role, context, rng) -> Track``, and
:data:`GENERATORS` dispatches on the enum value:

- ``MELODY`` - weighted rhythm, Markov or noise-driven pitches snapped to chord tones on strong beats
- ``BASS`` - chord root on strong beats, root, fifth or octave elsewhere
- ``CHORDS`` - one voice-led block chord per harmonic slot (polyphonic)
- ``ARPEGGIO`` - weighted rhythm stepping up and down through the voiced chord
- ``DRUMS`` - Poisson-disk-spaced hits on a beat grid per kit piece (polyphonic)
"""

import dataclasses
import enum
import fractions
import logging
import math
import random
import typing

import polyphon.budget
import polyphon.chords
import polyphon.constants.durations
import polyphon.constants.gm_drums
import polyphon.constants.velocity
import polyphon.errors
import polyphon.markov
import polyphon.melody
import polyphon.rhythm
import polyphon.scale
import polyphon.sequence_utils
import polyphon.swing
import polyphon.track
import polyphon.voicings


logger = logging.getLogger(__name__)


class Strategy (enum.Enum):

	MELODY = "melody"
	BASS = "bass"
	CHORDS = "chords"
	ARPEGGIO = "arpeggio"
	DRUMS = "drums"


# Export tie-break for simultaneous onsets: lower sorts first.
STRATEGY_PRIORITY: typing.Dict[Strategy, int] = {
	Strategy.DRUMS: 0,
	Strategy.BASS: 1,
	Strategy.CHORDS: 2,
	Strategy.ARPEGGIO: 3,
	Strategy.MELODY: 4,
}

POLYPHONIC_STRATEGIES = frozenset({Strategy.CHORDS, Strategy.DRUMS})


@dataclasses.dataclass(frozen=True)
class DrumVoice:

	"""
	One kit piece in a drum role.

	Parameters:
		pitch: GM percussion note.
		min_distance: Minimum spacing between hits, in grid steps.
		density: Chance of trying each free grid step (0.0-1.0).
		anchor_every: Place a guaranteed hit every this many steps (None for no anchors).
		anchor_offset: Step offset of the first anchor.
		velocity_low: Quietest hit.
		velocity_high: Loudest hit (anchors always use it).
	"""

	pitch: int
	min_distance: int = 2
	density: float = 0.5
	anchor_every: typing.Optional[int] = None
	anchor_offset: int = 0
	velocity_low: int = 60
	velocity_high: int = 110

	def __post_init__ (self) -> None:

		if self.min_distance < 1:
			raise polyphon.errors.ConfigurationError("Drum min_distance must be at least 1 step")

		if not 0.0 <= self.density <= 1.0:
			raise polyphon.errors.ConfigurationError("Drum density must be between 0 and 1")

		if self.anchor_every is not None and self.anchor_every < 1:
			raise polyphon.errors.ConfigurationError("Drum anchor_every must be at least 1 step")

		if not polyphon.constants.velocity.MIN_VELOCITY <= self.velocity_low <= self.velocity_high <= polyphon.constants.velocity.MAX_VELOCITY:
			raise polyphon.errors.ConfigurationError(f"Invalid drum velocity range [{self.velocity_low}, {self.velocity_high}]")


DEFAULT_DRUM_VOICES: typing.Tuple[DrumVoice, ...] = (
	DrumVoice(pitch=polyphon.constants.gm_drums.KICK, min_distance=3, density=0.15, anchor_every=8, anchor_offset=0, velocity_low=90, velocity_high=120),
	DrumVoice(pitch=polyphon.constants.gm_drums.SNARE, min_distance=4, density=0.05, anchor_every=8, anchor_offset=4, velocity_low=70, velocity_high=110),
	DrumVoice(pitch=polyphon.constants.gm_drums.HI_HAT_CLOSED, min_distance=2, density=0.9, velocity_low=50, velocity_high=90),
)


@dataclasses.dataclass(frozen=True)
class InstrumentRole:

	"""
	A named instrument configuration.

	Parameters:
		name: Unique role name (also the exported track name).
		strategy: How the role generates notes.
		low: Lowest MIDI pitch (inclusive).
		high: Highest MIDI pitch (inclusive).
		velocity_low: Quietest velocity.
		velocity_high: Loudest velocity.
		channel: MIDI channel (0-15).
		durations: Weighted duration table (``{"quarter": 0.4, ...}``); None
			uses the strategy default.
		degree_mode: Markov or noise stepping for melodies.
		max_step: Largest degree step in noise mode.
		drum_voices: Kit pieces for the drum strategy.
		grid: Drum grid step in beats.
		humanize: Whether the humanizer touches this role.
	"""

	name: str
	strategy: Strategy
	low: int = 0
	high: int = 127
	velocity_low: int = 70
	velocity_high: int = 110
	channel: int = 0
	durations: typing.Optional[typing.Mapping[typing.Any, float]] = None
	degree_mode: polyphon.melody.DegreeMode = polyphon.melody.DegreeMode.MARKOV
	max_step: int = 2
	drum_voices: typing.Tuple[DrumVoice, ...] = DEFAULT_DRUM_VOICES
	grid: fractions.Fraction = polyphon.constants.durations.SIXTEENTH
	humanize: bool = True

	def __post_init__ (self) -> None:

		if not self.name:
			raise polyphon.errors.ConfigurationError("Role name cannot be empty")

		polyphon.chords.validate_pitch_range(self.low, self.high)

		if not polyphon.constants.velocity.MIN_VELOCITY <= self.velocity_low <= self.velocity_high <= polyphon.constants.velocity.MAX_VELOCITY:
			raise polyphon.errors.ConfigurationError(f"Role {self.name!r} has an invalid velocity range [{self.velocity_low}, {self.velocity_high}]")

		if not 0 <= self.channel <= 15:
			raise polyphon.errors.ConfigurationError(f"Role {self.name!r} channel must be 0-15, got {self.channel}")

		if self.grid <= 0:
			raise polyphon.errors.ConfigurationError(f"Role {self.name!r} grid must be positive")

		if self.strategy is Strategy.DRUMS and not self.drum_voices:
			raise polyphon.errors.ConfigurationError(f"Drum role {self.name!r} needs at least one drum voice")

		if self.strategy is Strategy.DRUMS:
			outside = sorted({voice.pitch for voice in self.drum_voices if not self.low <= voice.pitch <= self.high})
			if outside:
				raise polyphon.errors.ConfigurationError(
					f"Drum role {self.name!r} has kit pitches {outside} outside its range [{self.low}, {self.high}]"
				)


	@property
	def polyphonic (self) -> bool:

		return self.strategy in POLYPHONIC_STRATEGIES


	def velocity_bounds (self, pitch: int) -> typing.Tuple[int, int]:

		"""
		The velocity range a note at ``pitch`` must stay inside.

		Drum notes use the range of their kit piece (the widest, if several
		voices share a pitch); every other note uses the role's range.
		"""

		if self.strategy is Strategy.DRUMS:
			voices = [voice for voice in self.drum_voices if voice.pitch == pitch]
			if voices:
				return min(v.velocity_low for v in voices), max(v.velocity_high for v in voices)

		return self.velocity_low, self.velocity_high


	def duration_table (self) -> polyphon.rhythm.DurationTable:

		"""The role's duration table, or the strategy default."""

		if self.durations is not None:
			return polyphon.rhythm.DurationTable.from_mapping(self.durations)

		defaults = {
			Strategy.BASS: polyphon.rhythm.BASS_TABLE,
			Strategy.ARPEGGIO: polyphon.rhythm.ARPEGGIO_TABLE,
		}

		return polyphon.rhythm.DurationTable.from_mapping(defaults.get(self.strategy, polyphon.rhythm.MELODY_TABLE))


@dataclasses.dataclass(frozen=True)
class RoleContext:

	"""
	Shared, read-only inputs every role generator sees.

	An empty ``chords`` tuple means scale-only generation: melodies move
	through the scale unconstrained and the harmonic roles voice the sonority
	stacked on the tonic.
	"""

	scale: polyphon.scale.Scale
	chords: typing.Tuple[polyphon.chords.Chord, ...]
	beats_per_chord: fractions.Fraction
	budget: polyphon.budget.BeatBudget
	swing: float = 0.0
	syncopation: float = 0.0
	voice_leading: bool = True
	degree_model: typing.Optional[polyphon.markov.MarkovModel[int]] = None

	def chord_at (self, beat: fractions.Fraction) -> typing.Optional[polyphon.chords.Chord]:

		"""Return the chord sounding at ``beat``, or None without a progression."""

		if not self.chords:
			return None

		index = min(int(beat // self.beats_per_chord), len(self.chords) - 1)

		return self.chords[index]


	def harmony_at (self, beat: fractions.Fraction) -> polyphon.chords.Chord:

		"""The chord at ``beat``, falling back to the tonic sonority of the scale."""

		chord = self.chord_at(beat)

		if chord is None:
			return self.scale.sonority_on_degree(0)

		return chord


def _velocity (role: InstrumentRole, strong: bool, rng: random.Random) -> int:

	"""Accented velocities on strong positions, softer ones elsewhere."""

	middle = (role.velocity_low + role.velocity_high) // 2

	if strong:
		return rng.randint(middle, role.velocity_high)

	return rng.randint(role.velocity_low, middle)


def _rhythm (role: InstrumentRole, context: RoleContext, rng: random.Random) -> typing.List[polyphon.rhythm.Slot]:

	"""Budget-filling rhythm with the optional swing and syncopation passes."""

	generator = polyphon.rhythm.RhythmGenerator(role.duration_table(), context.budget.unit)
	slots = generator.generate(context.budget.beats, rng)

	if context.swing > 0:
		slots = polyphon.swing.apply_swing(slots, rng, probability=context.swing)

	if context.syncopation > 0:
		slots = polyphon.swing.apply_syncopation(slots, rng, probability=context.syncopation)

	return slots


def _fit_pitch (pitch: int, role: InstrumentRole) -> int:

	try:
		return polyphon.chords.fit_to_range(pitch, role.low, role.high, strict=True)
	except polyphon.errors.RangeExhaustionError as exc:
		clamped = polyphon.chords.fit_to_range(pitch, role.low, role.high)
		logger.warning(f"Role {role.name!r}: {exc}; clamped to {clamped}")
		return clamped


def _make_track (role: InstrumentRole, events: typing.Iterable[polyphon.track.NoteEvent], length: fractions.Fraction) -> polyphon.track.Track:

	return polyphon.track.Track(
		role = role.name,
		events = tuple(sorted(events, key=lambda e: (e.start, e.pitch))),
		length_beats = length,
		channel = role.channel,
		polyphonic = role.polyphonic,
		priority = STRATEGY_PRIORITY[role.strategy]
	)


def generate_melody (role: InstrumentRole, context: RoleContext, rng: random.Random) -> polyphon.track.Track:

	"""Rhythm first, then one selected pitch per sounding slot."""

	slots = _rhythm(role, context, rng)
	starts = polyphon.rhythm.slot_starts(slots)
	strong = polyphon.rhythm.strong_positions(slots)

	selector = polyphon.melody.NoteSelector(
		context.scale,
		role.low,
		role.high,
		mode = role.degree_mode,
		model = context.degree_model,
		max_step = role.max_step
	)

	pitches = selector.select(slots, rng, chords=[context.chord_at(start) for start in starts])
	events = []

	for slot, start, is_strong, pitch in zip(slots, starts, strong, pitches):
		if pitch is None:
			continue
		events.append(polyphon.track.NoteEvent(pitch=pitch, start=start, duration=slot.duration, velocity=_velocity(role, is_strong, rng)))

	return _make_track(role, events, polyphon.rhythm.total_beats(slots))


def generate_bass (role: InstrumentRole, context: RoleContext, rng: random.Random) -> polyphon.track.Track:

	"""Chord roots on strong positions; root, fifth or octave on the rest."""

	slots = _rhythm(role, context, rng)
	starts = polyphon.rhythm.slot_starts(slots)
	strong = polyphon.rhythm.strong_positions(slots)
	centre = (role.low + role.high) // 2
	events = []

	for slot, start, is_strong in zip(slots, starts, strong):

		if slot.rest:
			continue

		chord = context.harmony_at(start)
		root = chord.root_near(centre)
		intervals = chord.intervals()

		if is_strong:
			pitch = root
		else:
			# The chord's own fifth (diminished or augmented when the chord is); its top tone for thinner sonorities.
			fifth = root + (intervals[2] if len(intervals) > 2 else intervals[-1] or 12)
			pitch = polyphon.sequence_utils.weighted_choice([(root, 2), (fifth, 5), (root + 12, 1)], rng)

		pitch = _fit_pitch(pitch, role)
		events.append(polyphon.track.NoteEvent(pitch=pitch, start=start, duration=slot.duration, velocity=_velocity(role, is_strong, rng)))

	return _make_track(role, events, polyphon.rhythm.total_beats(slots))


def _chord_spans (context: RoleContext) -> typing.List[typing.Tuple[fractions.Fraction, fractions.Fraction, polyphon.chords.Chord]]:

	"""(start, duration, chord) for each harmonic slot, the last cut to the budget."""

	spans = []
	start = fractions.Fraction(0)

	while start < context.budget.beats:

		duration = min(context.beats_per_chord, context.budget.beats - start)
		spans.append((start, duration, context.harmony_at(start)))
		start += duration

	return spans


def generate_chords (role: InstrumentRole, context: RoleContext, rng: random.Random) -> polyphon.track.Track:

	"""One block chord per harmonic slot, voice-led inside the role's range."""

	voicer = polyphon.voicings.VoiceLeadingState(role.low, role.high, smooth=context.voice_leading)
	events = []
	length = fractions.Fraction(0)

	for start, duration, chord in _chord_spans(context):

		velocity = _velocity(role, True, rng)

		for pitch in voicer.next(chord):
			events.append(polyphon.track.NoteEvent(pitch=pitch, start=start, duration=duration, velocity=velocity))

		length = start + duration

	return _make_track(role, events, length)


def generate_arpeggio (role: InstrumentRole, context: RoleContext, rng: random.Random) -> polyphon.track.Track:

	"""Walk up and down the current voiced chord, one tone per sounding slot."""

	slots = _rhythm(role, context, rng)
	starts = polyphon.rhythm.slot_starts(slots)
	strong = polyphon.rhythm.strong_positions(slots)
	voicer = polyphon.voicings.VoiceLeadingState(role.low, role.high, smooth=context.voice_leading)

	current: typing.Optional[polyphon.chords.Chord] = None
	voicing: typing.List[int] = []
	position = 0
	direction = 1
	events = []

	for slot, start, is_strong in zip(slots, starts, strong):

		chord = context.harmony_at(start)

		if chord != current:
			current = chord
			voicing = voicer.next(chord)
			position = 0
			direction = 1

		if slot.rest:
			continue

		pitch = voicing[position]
		events.append(polyphon.track.NoteEvent(pitch=pitch, start=start, duration=slot.duration, velocity=_velocity(role, is_strong, rng)))

		if len(voicing) > 1:
			if not 0 <= position + direction < len(voicing):
				direction = -direction
			position += direction

	return _make_track(role, events, polyphon.rhythm.total_beats(slots))


def generate_drums (role: InstrumentRole, context: RoleContext, rng: random.Random) -> polyphon.track.Track:

	"""Spaced hits per kit piece on a fixed grid; every hit lasts one grid step."""

	steps = math.floor(context.budget.beats / role.grid)
	events = []

	for voice in role.drum_voices:

		anchors: typing.List[int] = []
		if voice.anchor_every is not None:
			anchors = list(range(voice.anchor_offset, steps, voice.anchor_every))

		onsets = polyphon.sequence_utils.poisson_disk_onsets(steps, voice.min_distance, rng, density=voice.density, anchors=anchors)
		accents = polyphon.sequence_utils.generate_van_der_corput_sequence(len(onsets))
		anchor_set = set(anchors)

		for step, accent in zip(onsets, accents):

			if step in anchor_set:
				velocity = voice.velocity_high
			else:
				velocity = int(voice.velocity_low + (voice.velocity_high - voice.velocity_low) * accent)

			events.append(polyphon.track.NoteEvent(pitch=voice.pitch, start=step * role.grid, duration=role.grid, velocity=velocity))

	# The grid is silent after its last step; the track still spans the whole budget.
	return _make_track(role, events, context.budget.beats)


GeneratorType = typing.Callable[[InstrumentRole, RoleContext, random.Random], polyphon.track.Track]

GENERATORS: typing.Dict[Strategy, GeneratorType] = {
	Strategy.MELODY: generate_melody,
	Strategy.BASS: generate_bass,
	Strategy.CHORDS: generate_chords,
	Strategy.ARPEGGIO: generate_arpeggio,
	Strategy.DRUMS: generate_drums,
}


def generate (role: InstrumentRole, context: RoleContext, rng: random.Random) -> polyphon.track.Track:

	"""Run the role's strategy."""

	return GENERATORS[role.strategy](role, context, rng)


def default_roles () -> typing.List[InstrumentRole]:

	"""Melody, bass, chords and drums with conventional ranges and GM channels."""

	return [
		InstrumentRole(name="melody", strategy=Strategy.MELODY, low=60, high=84, velocity_low=70, velocity_high=110, channel=0),
		InstrumentRole(name="bass", strategy=Strategy.BASS, low=36, high=55, velocity_low=80, velocity_high=110, channel=1),
		InstrumentRole(name="chords", strategy=Strategy.CHORDS, low=48, high=72, velocity_low=55, velocity_high=80, channel=2),
		InstrumentRole(name="drums", strategy=Strategy.DRUMS, low=0, high=127, channel=polyphon.constants.gm_drums.DRUM_CHANNEL),
	]
