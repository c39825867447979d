"""Beat budgets: how many beats a run has to fill."""

import dataclasses
import fractions
import math

import polyphon.constants.durations
import polyphon.constants.ticks
import polyphon.errors


@dataclasses.dataclass(frozen=True)
class BeatBudget:

	"""
	The target track length in beats, derived from a duration in seconds and a tempo.

	The beat count is rounded down to a whole tick so the budget never asks
	for more music than the real-time target allows, and so its end lands
	exactly on the export grid.

	Example:
		```python
		budget = BeatBudget.from_seconds(30, bpm=120, ppq=480)
		budget.beats        # Fraction(60, 1)
		budget.end_tick()   # 28800
		```
	"""

	beats: fractions.Fraction
	ppq: int = polyphon.constants.ticks.DEFAULT_PPQ

	def __post_init__ (self) -> None:

		if self.ppq <= 0:
			raise polyphon.errors.ConfigurationError(f"PPQ must be positive, got {self.ppq}")

		if self.beats <= 0:
			raise polyphon.errors.ConfigurationError(f"Beat budget must be positive, got {self.beats}")


	@classmethod
	def from_seconds (cls, seconds: float, bpm: float, ppq: int = polyphon.constants.ticks.DEFAULT_PPQ) -> "BeatBudget":

		"""Build a budget from a real-time length and a tempo."""

		if seconds <= 0:
			raise polyphon.errors.ConfigurationError(f"Target duration must be positive, got {seconds}")

		if bpm <= 0:
			raise polyphon.errors.ConfigurationError(f"Tempo must be positive, got {bpm}")

		if ppq <= 0:
			raise polyphon.errors.ConfigurationError(f"PPQ must be positive, got {ppq}")

		exact = polyphon.constants.durations.parse_duration(seconds) * polyphon.constants.durations.parse_duration(bpm) / 60
		ticks = math.floor(exact * ppq)

		if ticks <= 0:
			raise polyphon.errors.ConfigurationError(f"{seconds}s at {bpm} BPM is shorter than one tick")

		return cls(beats=fractions.Fraction(ticks, ppq), ppq=ppq)


	@property
	def unit (self) -> fractions.Fraction:

		"""The minimal quantization unit (one tick) in beats."""

		return polyphon.constants.ticks.tick_unit(self.ppq)


	def end_tick (self) -> int:

		"""The budget's end as a tick count."""

		return int(self.beats * self.ppq)


	def within (self, beats: fractions.Fraction) -> bool:

		"""True when ``beats`` is at most the budget and no more than one unit short of it."""

		return self.beats - self.unit <= beats <= self.beats
