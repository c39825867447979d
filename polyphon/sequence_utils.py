import math
import random
import typing

import polyphon.errors

T = typing.TypeVar("T")


def weighted_choice (options: typing.Sequence[typing.Tuple[T, typing.Any]], rng: random.Random) -> T:

	"""Pick one item from a list of (value, weight) pairs.

	Weights are relative - they don't need to sum to 1.0. Zero weights are
	allowed and never chosen; negative weights are rejected.

	Parameters:
		options: List of `(value, weight)` tuples
		rng: Random number generator instance

	Raises:
		ConfigurationError: If the list is empty, a weight is negative, or
			the weights sum to zero.

	Example:
		```python
		duration = weighted_choice([
			(Fraction(1), 0.4),      # quarter: 40%
			(Fraction(1, 2), 0.3),   # eighth: 30%
			(Fraction(3, 4), 0.1),   # dotted eighth: 10%
		], rng)
		```
	"""

	if not options:
		raise polyphon.errors.ConfigurationError("Options list cannot be empty")

	total = 0.0

	for _, weight in options:
		if weight < 0:
			raise polyphon.errors.ConfigurationError(f"Weights cannot be negative, got {weight}")
		total += float(weight)

	if total <= 0:
		raise polyphon.errors.ConfigurationError("Total weight must be positive")

	threshold = rng.random() * total
	cumulative = 0.0

	for value, weight in options:
		if weight == 0:
			continue
		cumulative += float(weight)
		if cumulative > threshold:
			return value

	# Float accumulation can fall a hair short of the threshold; use the last live option.
	for value, weight in reversed(options):
		if weight > 0:
			return value

	return options[-1][0]


def _lattice_gradient (index: int, seed: int) -> float:

	"""Deterministic pseudo-random gradient in [-1, 1] for an integer lattice point."""

	h = (index * 374761393 + seed * 668265263) & 0xFFFFFFFF
	h = ((h ^ (h >> 13)) * 1274126177) & 0xFFFFFFFF
	h ^= h >> 16

	return (h / 0xFFFFFFFF) * 2.0 - 1.0


def perlin_1d (x: float, seed: int = 0) -> float:

	"""Smooth 1-D gradient noise in the range 0.0–1.0.

	Nearby inputs give nearby outputs, so sampling at steadily increasing
	positions produces a slowly wandering value. The same ``(x, seed)`` always
	gives the same result.

	Parameters:
		x: Sample position. Steps of 0.05–0.3 give gentle movement.
		seed: Selects an independent noise field.

	Example:
		```python
		contour = [perlin_1d(i * 0.2, seed=7) for i in range(16)]
		```
	"""

	i0 = math.floor(x)
	t = x - i0

	g0 = _lattice_gradient(i0, seed)
	g1 = _lattice_gradient(i0 + 1, seed)

	fade = t * t * t * (t * (t * 6.0 - 15.0) + 10.0)
	value = (g0 * t) * (1.0 - fade) + (g1 * (t - 1.0)) * fade

	# Raw 1-D gradient noise lies within [-0.5, 0.5].
	return max(0.0, min(1.0, value + 0.5))


def poisson_disk_onsets (
	steps: int,
	min_distance: int,
	rng: random.Random,
	density: float = 1.0,
	anchors: typing.Optional[typing.Sequence[int]] = None,
) -> typing.List[int]:

	"""Choose onset steps on a grid so that no two onsets are closer than ``min_distance``.

	One-dimensional Poisson-disk sampling by dart throwing: grid steps are
	visited in random order and each is accepted if it keeps its distance from
	everything accepted so far. Anchors are placed first and always kept
	(they may sit closer together than ``min_distance``).

	Parameters:
		steps: Number of grid steps.
		min_distance: Minimum spacing between accepted onsets, in steps (>= 1).
		rng: Random number generator instance.
		density: Probability (0.0–1.0) of trying each candidate at all; lower
			values leave more space than the minimum.
		anchors: Steps that must be onsets (e.g. downbeats).

	Returns:
		Sorted list of onset steps.

	Example:
		```python
		# Sparse hits on a 16-step grid, at least 3 steps apart, beat 1 fixed
		poisson_disk_onsets(16, 3, rng, anchors=[0])
		```
	"""

	if steps <= 0:
		return []

	if min_distance < 1:
		raise polyphon.errors.ConfigurationError("Minimum distance must be at least one step")

	if not 0.0 <= density <= 1.0:
		raise polyphon.errors.ConfigurationError("Density must be between 0 and 1")

	accepted: typing.Set[int] = {a for a in (anchors or []) if 0 <= a < steps}

	candidates = [s for s in range(steps) if s not in accepted]
	rng.shuffle(candidates)

	for candidate in candidates:

		if rng.random() >= density:
			continue

		if all(abs(candidate - onset) >= min_distance for onset in accepted):
			accepted.add(candidate)

	return sorted(accepted)


def generate_van_der_corput_sequence (n: int, base: int = 2) -> typing.List[float]:

	"""
	Generate a sequence of n numbers using the van der Corput sequence.
	"""

	sequence = []

	for i in range(n):
		value = 0.0
		f = 1.0 / base
		k = i
		while k > 0:
			value += (k % base) * f
			k //= base
			f /= base
		sequence.append(value)

	return sequence
