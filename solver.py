"""
DPLL-style SSAT solver.

Computes the maximum probability that an SSAT formula is satisfied: choice
variables take the better of their two values, chance variables average their
two values by their probability.

Notes:
- Search runs on one shared FormulaStore; each frame scopes its assignment
  with `store.assigned(...)`, so the store is restored on every exit path.
- Unit propagation and pure choice elimination, when enabled, are tried
  before branching (in that order). Any configuration yields the same
  probability; only the counters differ.
"""

import logging
import random
import sys
from dataclasses import dataclass, replace
from typing import Dict, Optional, Tuple

from formula import NEGATIVE, POSITIVE, FormulaStore, Quantifier, is_choice, literal_sign
from heuristics import NO_VARIABLE, SplitHeuristic, select_variable
from rules import has_pure_choice, has_unit_clause


logger = logging.getLogger(__name__)

SUCCESS = 1.0
FAILURE = 0.0

# Python frames per search level, plus headroom for the caller
_FRAMES_PER_LEVEL = 3
_STACK_HEADROOM = 200


@dataclass(frozen=True)
class SolverConfig:
  unit_propagation: bool = True
  pure_elimination: bool = True
  split_heuristic: SplitHeuristic = SplitHeuristic.MAX_OCCURRENCE
  seed: Optional[int] = None


@dataclass
class Counters:
  propagations: int = 0
  eliminations: int = 0
  splits: int = 0


RULE_SETS: Dict[str, Tuple[bool, bool]] = {
  "ucp-pve": (True, True),
  "ucp": (True, False),
  "pve": (False, True),
  "plain": (False, False),
}

# e.g. "ucp-pve/max-occurrence"
ALGORITHMS: Dict[str, SolverConfig] = {
  f"{rules}/{heuristic.value}": SolverConfig(ucp, pve, heuristic)
  for rules, (ucp, pve) in RULE_SETS.items()
  for heuristic in SplitHeuristic
}


def combine(quantifier: Quantifier, false_prob: float, true_prob: float) -> float:
  """Value of a split: max for choice, expectation for chance."""
  if is_choice(quantifier):
    return max(false_prob, true_prob)
  p = quantifier.probability
  return false_prob * (1 - p) + true_prob * p


class SSATSolver:
  """Recursive evaluator over a FormulaStore."""

  def __init__(self, store: FormulaStore, config: Optional[SolverConfig] = None):
    self.store = store
    self.config = config or SolverConfig()
    self._counters = Counters()
    self._rng = random.Random(self.config.seed)

  @property
  def counters(self) -> Counters:
    return replace(self._counters)

  @property
  def assignment(self) -> Dict[int, int]:
    return dict(self.store.assignment)

  def solve(self) -> float:
    """Return the maximum satisfaction probability; counters restart at zero."""
    self._counters = Counters()
    self._rng = random.Random(self.config.seed)
    self.store.assignment.clear()

    limit = sys.getrecursionlimit()
    needed = _FRAMES_PER_LEVEL * self.store.num_vars + _STACK_HEADROOM
    logger.debug("solving with %s", self.config)
    try:
      if limit < needed:
        sys.setrecursionlimit(needed)
      result = self._solve()
    finally:
      sys.setrecursionlimit(limit)
    logger.debug("probability %.6f, %s", result, self._counters)
    return result

  def _solve(self) -> float:
    store = self.store
    if not store.has_clauses():
      return SUCCESS
    if store.unsat or not store.has_variables():
      return FAILURE

    if self.config.unit_propagation:
      found, lit = has_unit_clause(store)
      if found:
        return self._propagate(lit)

    if self.config.pure_elimination:
      found, lit = has_pure_choice(store)
      if found:
        return self._eliminate(lit)

    return self._split()

  def _propagate(self, literal: int) -> float:
    self._counters.propagations += 1
    variable, value = abs(literal), literal_sign(literal)
    quantifier = self.store.variable(variable).quantifier
    with self.store.assigned(variable, value):
      prob = self._solve()
    if is_choice(quantifier):
      return prob
    if value == NEGATIVE:
      return prob * (1 - quantifier.probability)
    return prob * quantifier.probability

  def _eliminate(self, literal: int) -> float:
    self._counters.eliminations += 1
    with self.store.assigned(abs(literal), literal_sign(literal)):
      return self._solve()

  def _split(self) -> float:
    variable = select_variable(self.store, self.config.split_heuristic, self._rng)
    if variable == NO_VARIABLE:
      return FAILURE
    self._counters.splits += 1
    quantifier = self.store.variable(variable).quantifier

    with self.store.assigned(variable, NEGATIVE):
      false_prob = self._solve()
    with self.store.assigned(variable, POSITIVE):
      true_prob = self._solve()

    return combine(quantifier, false_prob, true_prob)


def solve_ssat(store: FormulaStore, config: Optional[SolverConfig] = None) -> Tuple[float, Counters]:
  """Solve `store` with `config`; returns (probability, counters)."""
  solver = SSATSolver(store, config)
  probability = solver.solve()
  return probability, solver.counters
