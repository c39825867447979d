"""Seeded random streams.

Every component that needs randomness receives its own ``random.Random``,
seeded from the run's top-level seed and a stream name through a SHA-256
derivation. No component touches the ``random`` module's global state, and
because each stream depends only on ``(seed, name)``, roles can be generated
in any order or in parallel without changing the result.

Stream names used by the pipeline:

- ``"progression"`` - chord progression choices
- ``"role:<name>"`` - rhythm, pitch and drum choices for one instrument role
- ``"humanize:<name>"`` - timing and velocity jitter for one role
"""

import hashlib
import random


SEED_BITS = 63


def derive_seed (seed: int, name: str) -> int:

	"""Derive a child seed from a top-level seed and a stream name."""

	digest = hashlib.sha256(f"{seed}:{name}".encode("utf-8")).digest()

	return int.from_bytes(digest[:8], "big") >> (64 - SEED_BITS)


def new_seed () -> int:

	"""Draw a fresh top-level seed from the operating system's entropy pool."""

	return random.SystemRandom().getrandbits(32)


class RandomStreams:

	"""
	Hands out independent, reproducible generators keyed by name.

	Example:
		```python
		streams = RandomStreams(seed=42)
		melody_rng = streams.stream("role:melody")
		bass_rng = streams.stream("role:bass")
		```
	"""

	def __init__ (self, seed: int) -> None:

		self.seed = seed


	def stream (self, name: str) -> random.Random:

		"""Return a new generator for ``name``. Equal names always start from the same state."""

		return random.Random(derive_seed(self.seed, name))
