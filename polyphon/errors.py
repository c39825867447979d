"""Exception types raised by the generation pipeline.

``ConfigurationError`` subclasses ``ValueError`` so that code catching the
usual argument-validation error keeps working.
"""


class PolyphonError (Exception):

	"""Base class for all pipeline errors."""


class ConfigurationError (PolyphonError, ValueError):

	"""
	The supplied configuration cannot be used (bad weights, durations, ranges, PPQ...).

	Fatal: generation stops immediately and nothing is retried.
	"""


class RangeExhaustionError (PolyphonError):

	"""
	No octave of a required pitch class fits inside an instrument's range.

	Recoverable: callers clamp to the nearest range boundary and log a warning.
	"""

	def __init__ (self, pitch: int, low: int, high: int) -> None:

		self.pitch = pitch
		self.low = low
		self.high = high

		super().__init__(f"No octave of pitch {pitch} fits in range [{low}, {high}]")


class BudgetOverrunError (PolyphonError):

	"""
	A track ends after its beat budget.

	The rhythm and assembly stages rule this out by construction, so seeing it
	means a bug. It is never truncated away at export time.
	"""
