"""
Splitting heuristics for the SSAT search.

Every heuristic picks from the current block only: the run of active variables,
lowest id first, that share the quantifier kind of the lowest-id active
variable. Branching outside that block would break the quantifier order.
"""

import random
from enum import Enum
from typing import Callable, Dict, List

from formula import FormulaStore, is_choice


NO_VARIABLE = 0


class SplitHeuristic(Enum):
  FIRST = "first"
  RANDOM = "random"
  MAX_OCCURRENCE = "max-occurrence"
  MAX_CLAUSE = "max-clause"
  MIN_CLAUSE = "min-clause"


def current_block(store: FormulaStore) -> List[int]:
  """Active variables of the leading quantifier block, in ascending id order."""
  block: List[int] = []
  choice = None
  for var, info in store.variable_items():
    kind = is_choice(info.quantifier)
    if block and kind != choice:
      break
    choice = kind
    block.append(var)
  return block


def first_unassigned(store: FormulaStore, block: List[int], rng: random.Random) -> int:
  return block[0]


def random_variable(store: FormulaStore, block: List[int], rng: random.Random) -> int:
  return rng.choice(block)


def max_occurrence(store: FormulaStore, block: List[int], rng: random.Random) -> int:
  """Block variable occurring in the most active clauses."""
  best, best_count = NO_VARIABLE, -1
  for var in block:
    count = len(store.variable(var).members)
    if count > best_count:
      best, best_count = var, count
  return best


def _clause_sizes(store: FormulaStore, var: int) -> List[int]:
  return [len(store.clause(cid)) for cid in store.variable(var).members]


def max_clause(store: FormulaStore, block: List[int], rng: random.Random) -> int:
  """Block variable whose largest active clause is the largest overall."""
  best, best_size = NO_VARIABLE, -1
  for var in block:
    size = max(_clause_sizes(store, var))
    if size > best_size:
      best, best_size = var, size
  return best


def min_clause(store: FormulaStore, block: List[int], rng: random.Random) -> int:
  """Block variable whose smallest active clause is the smallest overall."""
  best, best_size = NO_VARIABLE, None
  for var in block:
    size = min(_clause_sizes(store, var))
    if best_size is None or size < best_size:
      best, best_size = var, size
  return best


HEURISTICS: Dict[SplitHeuristic, Callable[[FormulaStore, List[int], random.Random], int]] = {
  SplitHeuristic.FIRST: first_unassigned,
  SplitHeuristic.RANDOM: random_variable,
  SplitHeuristic.MAX_OCCURRENCE: max_occurrence,
  SplitHeuristic.MAX_CLAUSE: max_clause,
  SplitHeuristic.MIN_CLAUSE: min_clause,
}


def select_variable(store: FormulaStore, heuristic: SplitHeuristic, rng: random.Random) -> int:
  """Pick a branching variable from the current block, or NO_VARIABLE."""
  block = current_block(store)
  if not block:
    return NO_VARIABLE
  return HEURISTICS[heuristic](store, block, rng)
