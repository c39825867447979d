"""Multi-track assembly.

The assembler runs every instrument role against the same shared inputs
(scale, chord progression, beat budget), humanizes each result, and checks
the cross-track invariants before anything is exported:

- every track's realised length lies within one tick of the budget
- no event ends after the budget

Each role draws from its own named random streams (``role:<name>`` and
``humanize:<name>``), so roles share no mutable state and may run on a
thread pool. The results are collected in configuration order either way,
and a run is byte-identical with and without ``parallel``.
"""

import concurrent.futures
import logging
import typing

import polyphon.budget
import polyphon.errors
import polyphon.humanize
import polyphon.randomness
import polyphon.roles
import polyphon.track


logger = logging.getLogger(__name__)


class TrackAssembler:

	"""
	Generates, humanizes and validates one track per instrument role.

	Parameters:
		roles: Instrument roles in export order. Names must be unique.
		streams: Seeded random streams for the run.
		humanizer: Jitter applied to roles that allow it (None to disable).
		parallel: Generate roles on a thread pool.
	"""

	def __init__ (
		self,
		roles: typing.Sequence[polyphon.roles.InstrumentRole],
		streams: polyphon.randomness.RandomStreams,
		humanizer: typing.Optional[polyphon.humanize.Humanizer] = None,
		parallel: bool = False
	) -> None:

		if not roles:
			raise polyphon.errors.ConfigurationError("At least one instrument role is required")

		names = [role.name for role in roles]
		duplicates = sorted({name for name in names if names.count(name) > 1})

		if duplicates:
			raise polyphon.errors.ConfigurationError(f"Duplicate role names: {', '.join(duplicates)}")

		self.roles = list(roles)
		self.streams = streams
		self.humanizer = humanizer
		self.parallel = parallel


	def _build (self, role: polyphon.roles.InstrumentRole, context: polyphon.roles.RoleContext) -> polyphon.track.Track:

		"""Generate and humanize one role's track."""

		track = polyphon.roles.generate(role, context, self.streams.stream(f"role:{role.name}"))

		if self.humanizer is not None and role.humanize:
			track = self.humanizer.apply(track, self.streams.stream(f"humanize:{role.name}"), end_limit=context.budget.beats, velocity_bounds=role.velocity_bounds)

		return track


	def assemble (self, context: polyphon.roles.RoleContext) -> typing.List[polyphon.track.Track]:

		"""Return one validated track per role, in role order."""

		if self.parallel and len(self.roles) > 1:
			with concurrent.futures.ThreadPoolExecutor(max_workers=len(self.roles)) as executor:
				futures = [executor.submit(self._build, role, context) for role in self.roles]
				# Collecting every result is the join: nothing continues until all roles finish.
				tracks = [future.result() for future in futures]
		else:
			tracks = [self._build(role, context) for role in self.roles]

		check_tracks(tracks, context.budget)

		for track in tracks:
			logger.info(f"Track {track.role!r}: {len(track.events)} notes over {track.length_beats} beats (channel {track.channel + 1})")

		return tracks


def check_tracks (tracks: typing.Sequence[polyphon.track.Track], budget: polyphon.budget.BeatBudget) -> None:

	"""
	Enforce the shared-length invariants.

	Raises:
		BudgetOverrunError: If a track's length falls outside one tick of the
			budget, or an event ends after it.
	"""

	for track in tracks:

		if not budget.within(track.length_beats):
			raise polyphon.errors.BudgetOverrunError(
				f"Track {track.role!r} spans {track.length_beats} beats; budget is {budget.beats} (unit {budget.unit})"
			)

		end = track.end_beat()

		if end > budget.beats:
			raise polyphon.errors.BudgetOverrunError(
				f"Track {track.role!r} ends at beat {end}, after the {budget.beats}-beat budget"
			)
