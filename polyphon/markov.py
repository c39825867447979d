"""First-order weighted Markov models.

A :class:`MarkovModel` maps each state to a weighted list of successor
states. The model is checked when it is built: every state reachable from
the initial state must have at least one successor with positive weight, so
a walk can never get stuck. A malformed table is reported as a
``ConfigurationError`` instead of being silently patched over.
"""

import collections
import random
import typing

import polyphon.errors
import polyphon.sequence_utils


StateType = typing.TypeVar("StateType", bound=typing.Hashable)
Transitions = typing.Mapping[StateType, typing.Sequence[typing.Tuple[StateType, float]]]


class MarkovModel (typing.Generic[StateType]):

	"""
	A weighted transition table over hashable states.

	Example:
		```python
		model = MarkovModel({
			"root": [("third", 3), ("fifth", 2)],
			"third": [("fifth", 3), ("root", 2)],
			"fifth": [("root", 1)],
		})
		model.next("fifth", rng)  # always "root"
		```
	"""

	def __init__ (
		self,
		transitions: Transitions,
		initial_state: typing.Optional[StateType] = None
	) -> None:

		if not transitions:
			raise polyphon.errors.ConfigurationError("Transitions cannot be empty")

		self._edges: typing.Dict[StateType, typing.List[typing.Tuple[StateType, float]]] = {}

		for source, targets in transitions.items():
			# Accumulate repeated targets so duplicate rows strengthen the edge.
			merged: typing.Dict[StateType, float] = {}

			for target, weight in targets:
				if weight < 0:
					raise polyphon.errors.ConfigurationError(f"Negative weight {weight} on transition {source!r} -> {target!r}")
				merged[target] = merged.get(target, 0) + weight

			self._edges[source] = list(merged.items())

		if initial_state is None:
			initial_state = next(iter(transitions))

		if initial_state not in self._edges:
			raise polyphon.errors.ConfigurationError(f"Initial state {initial_state!r} has no transitions")

		self.initial_state: StateType = initial_state

		self._validate()


	@classmethod
	def from_sequence (cls, sequence: typing.Sequence[StateType], wrap: bool = True) -> "MarkovModel[StateType]":

		"""
		Learn transition counts from an example sequence.

		With ``wrap`` the last element leads back to the first, so every state
		observed has a successor.
		"""

		if len(sequence) < 2 and not wrap:
			raise polyphon.errors.ConfigurationError("Need at least two states to learn transitions")

		if not sequence:
			raise polyphon.errors.ConfigurationError("Sequence cannot be empty")

		counts: typing.Dict[StateType, typing.Counter[StateType]] = collections.defaultdict(collections.Counter)
		pairs = list(zip(sequence, sequence[1:]))

		if wrap:
			pairs.append((sequence[-1], sequence[0]))

		for source, target in pairs:
			counts[source][target] += 1

		transitions = {source: list(targets.items()) for source, targets in counts.items()}

		return cls(transitions, initial_state=sequence[0])


	def _validate (self) -> None:

		"""Check that every reachable state has a usable successor set."""

		seen = {self.initial_state}
		frontier = [self.initial_state]

		while frontier:
			state = frontier.pop()
			options = self._edges.get(state)

			if not options:
				raise polyphon.errors.ConfigurationError(f"State {state!r} is reachable but has no successors")

			if sum(weight for _, weight in options) <= 0:
				raise polyphon.errors.ConfigurationError(f"State {state!r} has zero total successor weight")

			for target, weight in options:
				if weight > 0 and target not in seen:
					seen.add(target)
					frontier.append(target)


	def states (self) -> typing.List[StateType]:

		"""Return every state that has outgoing transitions."""

		return list(self._edges)


	def successors (self, state: StateType) -> typing.List[typing.Tuple[StateType, float]]:

		"""Return the weighted successors of a state."""

		if state not in self._edges:
			raise polyphon.errors.ConfigurationError(f"Unknown Markov state: {state!r}")

		return list(self._edges[state])


	def probabilities (self, state: StateType) -> typing.Dict[StateType, float]:

		"""Return normalised successor probabilities for a state."""

		options = self.successors(state)
		total = float(sum(weight for _, weight in options))

		return {target: float(weight) / total for target, weight in options}


	def next (self, state: StateType, rng: random.Random) -> StateType:

		"""Sample a successor of ``state``."""

		return polyphon.sequence_utils.weighted_choice(self.successors(state), rng)


	def walk (self, count: int, rng: random.Random, start: typing.Optional[StateType] = None) -> typing.List[StateType]:

		"""Return ``count`` successive states, starting after ``start`` (default: the initial state)."""

		state = self.initial_state if start is None else start
		result: typing.List[StateType] = []

		for _ in range(count):
			state = self.next(state, rng)
			result.append(state)

		return result


# Scale-degree step model for melodies. The state is the previous step, the
# value the next one: steps tend to continue, leaps tend to turn back.
DEFAULT_DEGREE_TRANSITIONS: typing.Dict[int, typing.List[typing.Tuple[int, float]]] = {
	0: [(1, 3), (-1, 3), (2, 2), (-2, 2), (0, 1), (3, 1), (-3, 1)],
	1: [(1, 4), (2, 2), (-1, 2), (0, 1), (-2, 1)],
	-1: [(-1, 4), (-2, 2), (1, 2), (0, 1), (2, 1)],
	2: [(-1, 4), (1, 2), (-2, 1), (0, 1)],
	-2: [(1, 4), (-1, 2), (2, 1), (0, 1)],
	3: [(-1, 4), (-2, 3), (0, 1)],
	-3: [(1, 4), (2, 3), (0, 1)],
}


def default_degree_model () -> MarkovModel[int]:

	"""Return the built-in melodic step model, starting from a repeated note."""

	return MarkovModel(DEFAULT_DEGREE_TRANSITIONS, initial_state=0)
