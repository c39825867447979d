"""The generation run, end to end.

:class:`Composition` wires the pipeline together for one configuration:

1. Resolve the seed (drawing and logging one when none is given).
2. Build the scale and the beat budget.
3. Generate the chord progression from the ``progression`` stream (skipped
   for scale-only runs).
4. Assemble one humanized track per role.
5. Convert to tick-stamped export events and hand them to the MIDI writer.

Each stage is computed once and cached, so ``events()``, ``to_bytes()`` and
``save()`` can be called in any order without regenerating anything.
"""

import logging
import math
import typing

import mido

import polyphon.assembler
import polyphon.budget
import polyphon.chords
import polyphon.config
import polyphon.export
import polyphon.humanize
import polyphon.progression
import polyphon.randomness
import polyphon.roles
import polyphon.scale
import polyphon.track


logger = logging.getLogger(__name__)


class Composition:

	"""
	One reproducible generation run.

	Same seed and configuration always give byte-identical MIDI output.

	Example:
		```python
		config = polyphon.config.GenerationConfig(seed=42, key="A", mode="minor")
		comp = polyphon.composition.Composition(config)
		comp.save("out.mid")
		```
	"""

	def __init__ (self, config: typing.Optional[polyphon.config.GenerationConfig] = None) -> None:

		self.config = config if config is not None else polyphon.config.default_config()
		self.config.validate()

		if self.config.seed is None:
			self.seed = polyphon.randomness.new_seed()
			logger.info(f"No seed given; using seed {self.seed}")
		else:
			self.seed = self.config.seed

		self.streams = polyphon.randomness.RandomStreams(self.seed)

		if self.config.scale is not None:
			self.scale = polyphon.scale.Scale.custom(self.config.key, self.config.scale)
		else:
			self.scale = polyphon.scale.Scale.from_key(self.config.key, self.config.mode)

		# Functional harmony is built on seven-note scales; anything else runs scale-only.
		self.harmonic = self.config.harmony and len(self.scale) == 7

		if self.config.harmony and not self.harmonic:
			logger.info(f"Scale {self.scale.name!r} has {len(self.scale)} notes; generating without a chord progression")

		self.budget = polyphon.budget.BeatBudget.from_seconds(
			self.config.target_duration_seconds,
			self.config.tempo_bpm,
			self.config.ppq
		)

		self.beats_per_chord = self.config.chord_length()

		self._chords: typing.Optional[typing.List[polyphon.chords.Chord]] = None
		self._tracks: typing.Optional[typing.List[polyphon.track.Track]] = None
		self._events: typing.Optional[typing.List[polyphon.export.ExportEvent]] = None


	@property
	def chords (self) -> typing.List[polyphon.chords.Chord]:

		"""
		The progression, one chord per ``beats_per_chord`` span of the budget.

		Empty for scale-only runs.
		"""

		if self._chords is None and not self.harmonic:
			self._chords = []

		if self._chords is None:

			count = math.ceil(self.budget.beats / self.beats_per_chord)

			generator = polyphon.progression.ProgressionGenerator(
				self.scale,
				grammar = self.config.progression,
				include_dominant_7th = self.config.include_sevenths
			)

			self._chords = generator.generate(count, self.streams.stream("progression"))

			logger.info(f"Progression: {' '.join(chord.name() for chord in self._chords)}")

		return self._chords


	def context (self) -> polyphon.roles.RoleContext:

		return polyphon.roles.RoleContext(
			scale = self.scale,
			chords = tuple(self.chords),
			beats_per_chord = self.beats_per_chord,
			budget = self.budget,
			swing = self.config.swing,
			syncopation = self.config.syncopation,
			voice_leading = self.config.voice_leading
		)


	def generate (self) -> typing.List[polyphon.track.Track]:

		"""Generate (once) and return the assembled tracks."""

		if self._tracks is None:

			logger.info(
				f"Generating {self.budget.beats} beats ({self.config.target_duration_seconds}s at {self.config.tempo_bpm} BPM) "
				f"in {polyphon.chords.PC_TO_NOTE_NAME[self.scale.tonic_pc]} {self.scale.name}, seed {self.seed}"
			)

			humanizer: typing.Optional[polyphon.humanize.Humanizer] = None

			if self.config.humanize_timing > 0 or self.config.humanize_velocity > 0:
				humanizer = polyphon.humanize.Humanizer(timing=self.config.humanize_timing, velocity=self.config.humanize_velocity)

			assembler = polyphon.assembler.TrackAssembler(
				self.config.roles,
				self.streams,
				humanizer = humanizer,
				parallel = self.config.parallel
			)

			self._tracks = assembler.assemble(self.context())

		return self._tracks


	def events (self) -> typing.List[polyphon.export.ExportEvent]:

		"""The ordered, tick-stamped export events."""

		if self._events is None:
			converter = polyphon.export.TickConverter(ppq=self.config.ppq, bpm=self.config.tempo_bpm)
			self._events = converter.convert(self.generate(), self.budget)

		return self._events


	def to_midi (self) -> mido.MidiFile:

		return polyphon.export.to_midi_file(self.events(), self.config.ppq, self.config.beats_per_bar)


	def to_bytes (self) -> bytes:

		return polyphon.export.to_bytes(self.events(), self.config.ppq, self.config.beats_per_bar)


	def save (self, path: str) -> None:

		"""Write the Standard MIDI File to ``path``."""

		data = self.to_bytes()

		with open(path, 'wb') as f:
			f.write(data)

		logger.info(f"Saved {path} ({len(data)} bytes, {len(self.events())} events)")
