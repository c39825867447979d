import random
import unittest

import polyphon.errors
import polyphon.markov


class MarkovModelTests (unittest.TestCase):

	"""
	Tests for the weighted Markov model.
	"""

	def test_single_successor_is_deterministic (self) -> None:

		"""
		A state with one successor of weight 1 always moves to it.
		"""

		model = polyphon.markov.MarkovModel({"A": [("B", 1)], "B": [("A", 1)]}, initial_state="A")
		rng = random.Random(99)

		for _ in range(500):
			self.assertEqual(model.next("A", rng), "B")

		self.assertEqual(model.walk(6, rng), ["B", "A", "B", "A", "B", "A"])


	def test_reachable_state_without_successors_raises (self) -> None:

		"""
		A walk must never reach a dead end.
		"""

		with self.assertRaises(polyphon.errors.ConfigurationError):
			polyphon.markov.MarkovModel({"A": [("B", 1)]}, initial_state="A")


	def test_zero_total_weight_raises (self) -> None:

		with self.assertRaises(polyphon.errors.ConfigurationError):
			polyphon.markov.MarkovModel({"A": [("A", 0), ("B", 0)], "B": [("A", 1)]})


	def test_negative_weight_raises (self) -> None:

		with self.assertRaises(polyphon.errors.ConfigurationError):
			polyphon.markov.MarkovModel({"A": [("A", -1)]})


	def test_unreachable_dead_end_is_allowed (self) -> None:

		"""
		Only states reachable from the initial state are checked.
		"""

		model = polyphon.markov.MarkovModel({"A": [("A", 1), ("B", 0)], "C": [("A", 1)]}, initial_state="A")

		self.assertEqual(model.next("A", random.Random(1)), "A")


	def test_duplicate_targets_merge (self) -> None:

		model = polyphon.markov.MarkovModel({"A": [("A", 1), ("B", 1), ("B", 2)], "B": [("A", 1)]})

		self.assertEqual(model.probabilities("A"), {"A": 0.25, "B": 0.75})


	def test_unknown_state_raises (self) -> None:

		model = polyphon.markov.MarkovModel({"A": [("A", 1)]})

		with self.assertRaises(polyphon.errors.ConfigurationError):
			model.next("Z", random.Random(1))


	def test_from_sequence (self) -> None:

		model = polyphon.markov.MarkovModel.from_sequence(["C", "E", "G", "E"])

		self.assertEqual(model.initial_state, "C")
		self.assertEqual(model.probabilities("E"), {"G": 0.5, "C": 0.5})
		self.assertEqual(model.successors("G"), [("E", 1)])


	def test_walk_is_reproducible (self) -> None:

		model = polyphon.markov.default_degree_model()

		first = model.walk(50, random.Random(5))
		second = model.walk(50, random.Random(5))

		self.assertEqual(first, second)
		self.assertTrue(all(step in model.states() for step in first))
