#!/usr/bin/env python3
"""
Test suite for the SSAT solver
"""

import sys
import unittest

from formula import CHOICE, POSITIVE, Chance, FormulaStore
from generator import alternating_order, brute_force, generate_instance
from heuristics import SplitHeuristic
from solver import ALGORITHMS, RULE_SETS, SolverConfig, SSATSolver, combine, solve_ssat


def configs():
  for name, config in ALGORITHMS.items():
    yield name, SolverConfig(config.unit_propagation, config.pure_elimination, config.split_heuristic, seed=3)


class TestScenarios(unittest.TestCase):
  """Small formulas with known probabilities, under every configuration."""

  def assertProbability(self, quantifiers, clauses, expected):
    for name, config in configs():
      with self.subTest(algorithm=name):
        store = FormulaStore.build(quantifiers, clauses)
        probability, _counters = solve_ssat(store, config)
        self.assertAlmostEqual(probability, expected, places=9)

  def test_two_chance_disjunction(self):
    self.assertProbability({1: Chance(0.5), 2: Chance(0.5)}, [[1, 2]], 0.75)

  def test_single_choice_unit(self):
    self.assertProbability({1: CHOICE}, [[1]], 1.0)

  def test_contradictory_chance_units(self):
    self.assertProbability({1: Chance(0.3)}, [[1], [-1]], 0.0)

  def test_single_chance_unit(self):
    self.assertProbability({1: Chance(0.3)}, [[1]], 0.3)
    self.assertProbability({1: Chance(0.3)}, [[-1]], 0.7)

  def test_choice_before_chance(self):
    # choose x1 first: whichever value, x2 must then match with probability 0.5
    self.assertProbability({1: CHOICE, 2: Chance(0.5)}, [[1, 2], [-1, -2]], 0.5)

  def test_chance_before_choice(self):
    # x2 is chosen after seeing x1
    self.assertProbability({1: Chance(0.5), 2: CHOICE}, [[1, 2], [-1, -2]], 1.0)

  def test_empty_formula_succeeds(self):
    self.assertProbability({1: CHOICE}, [], 1.0)


class TestCounters(unittest.TestCase):

  def test_pure_elimination_sets_choice_true(self):
    store = FormulaStore.build({1: CHOICE}, [[1]])
    solver = SSATSolver(store, SolverConfig(False, True, SplitHeuristic.FIRST))
    self.assertEqual(solver.solve(), 1.0)
    self.assertEqual(solver.counters.eliminations, 1)
    self.assertEqual(solver.counters.splits, 0)
    self.assertEqual(solver.assignment, {1: 1})

  def test_unit_propagation_finds_conflict(self):
    store = FormulaStore.build({1: Chance(0.3)}, [[1], [-1]])
    solver = SSATSolver(store, SolverConfig(True, False, SplitHeuristic.FIRST))
    self.assertEqual(solver.solve(), 0.0)
    self.assertEqual(solver.counters.propagations, 1)
    self.assertEqual(solver.counters.splits, 0)

  def test_plain_only_splits(self):
    store = FormulaStore.build({1: Chance(0.5), 2: Chance(0.5)}, [[1, 2]])
    solver = SSATSolver(store, ALGORITHMS["plain/first"])
    solver.solve()
    counters = solver.counters
    self.assertEqual((counters.propagations, counters.eliminations), (0, 0))
    # split x1; x1 false leaves (x2) and splits x2
    self.assertEqual(counters.splits, 2)

  def test_counters_reset_per_solve(self):
    store = FormulaStore.build({1: Chance(0.5), 2: CHOICE, 3: Chance(0.2)}, [[1, 2], [-2, 3], [-1, -3]])
    solver = SSATSolver(store, ALGORITHMS["ucp-pve/max-occurrence"])
    first = solver.solve()
    counts = solver.counters
    self.assertEqual(solver.solve(), first)
    self.assertEqual(solver.counters, counts)

  def test_counters_are_read_only_copies(self):
    store = FormulaStore.build({1: CHOICE}, [[1]])
    solver = SSATSolver(store)
    solver.solve()
    solver.counters.propagations += 10
    self.assertEqual(solver.counters.propagations, 1)

  def test_unsat_store_returns_without_work(self):
    store = FormulaStore.build({1: Chance(0.3), 2: CHOICE}, [[1], [-1, 2], [-1, -2]])
    with store.assigned(1, POSITIVE), store.assigned(2, POSITIVE):
      self.assertTrue(store.unsat)
      probability, counters = solve_ssat(store, ALGORITHMS["ucp-pve/first"])
    self.assertEqual(probability, 0.0)
    self.assertEqual((counters.propagations, counters.eliminations, counters.splits), (0, 0, 0))


class TestCombine(unittest.TestCase):

  def test_choice_takes_max(self):
    self.assertEqual(combine(CHOICE, 0.2, 0.6), 0.6)
    self.assertEqual(combine(CHOICE, 0.9, 0.6), 0.9)

  def test_chance_takes_expectation(self):
    self.assertAlmostEqual(combine(Chance(0.25), 0.4, 0.8), 0.4 * 0.75 + 0.8 * 0.25)


class TestAgainstBruteForce(unittest.TestCase):
  """All configurations agree with exhaustive evaluation and restore the store."""

  def check_instances(self, order, probs, num_clauses, max_len, min_len, seeds):
    for seed in seeds:
      instance = generate_instance(len(order), num_clauses, max_len, min_len, order, probs, seed=seed)
      expected = brute_force(instance)
      store = instance.to_store()
      before = store.snapshot()
      for name, config in configs():
        with self.subTest(seed=seed, algorithm=name):
          probability, _ = solve_ssat(store, config)
          self.assertAlmostEqual(probability, expected, places=9)
          self.assertEqual(store.snapshot(), before)

  def test_alternating_single_blocks(self):
    self.check_instances(alternating_order(6), [0.3, 0.6, 0.9], 10, 3, 1, range(12))

  def test_alternating_pairs(self):
    self.check_instances(alternating_order(7, 2, first="R"), [0.5, 0.2, 0.7, 0.4], 14, 3, 2, range(12))

  def test_all_chance(self):
    self.check_instances("RRRRR", [0.1, 0.5, 0.5, 0.8, 0.35], 8, 3, 1, range(6))

  def test_all_choice(self):
    self.check_instances("EEEEEE", [], 16, 3, 2, range(6))

  def test_deep_implication_chain(self):
    # x1 and x1 -> x2 -> ... -> xn: every path to success is n assignments deep
    n = 2000
    limit = sys.getrecursionlimit()
    quantifiers = {var: CHOICE for var in range(1, n + 1)}
    clauses = [[1]] + [[-var, var + 1] for var in range(1, n)]
    for name in ("ucp-pve/first", "ucp/first", "plain/first"):
      with self.subTest(algorithm=name):
        store = FormulaStore.build(quantifiers, clauses)
        before = store.snapshot()
        probability, _ = solve_ssat(store, ALGORITHMS[name])
        self.assertEqual(probability, 1.0)
        self.assertEqual(store.snapshot(), before)
        self.assertEqual(sys.getrecursionlimit(), limit)

  def test_rule_sets_present(self):
    self.assertEqual(len(ALGORITHMS), len(RULE_SETS) * len(SplitHeuristic))


if __name__ == "__main__":
  unittest.main()
