"""
Random SSAT instances and an exhaustive reference evaluator.

generate_instance() draws clauses the way the classic ssat-generator does:
clause lengths uniform in [min_len, max_len], distinct variables per clause,
each literal negated with probability 1/2. The quantifier prefix comes from a
string of 'E' (choice) and 'R' (chance) letters, one per variable.

brute_force() evaluates an instance by walking variables strictly in
quantifier order with no propagation or elimination; it is the oracle the
solver is checked against.
"""

import random
from typing import Dict, Iterable, List, Optional

from formula import CHOICE, Chance, Quantifier
from reader import SSATInstance, clause_length_stats
from solver import combine

SATISFIED = 1
UNDECIDED = 0
UNSATISFIED = -1


def generate_instance(
  num_vars: int,
  num_clauses: int,
  max_clause_length: int,
  min_clause_length: int,
  var_order: str,
  probabilities: Iterable[float] = (),
  seed: Optional[int] = None,
) -> SSATInstance:
  """Build a random SSAT instance.

  - var_order has one letter per variable: 'E' choice, 'R' chance.
  - probabilities are consumed in order by the 'R' variables.
  """
  if num_vars < 1:
    raise ValueError("number of variables must be at least 1")
  if num_clauses < 0:
    raise ValueError("number of clauses must be non-negative")
  if min_clause_length < 1:
    raise ValueError("minimum clause length < 1")
  if max_clause_length < min_clause_length:
    raise ValueError("maximum clause length < minimum clause length")
  if max_clause_length > num_vars:
    raise ValueError("maximum clause length > number of variables")
  if len(var_order) != num_vars:
    raise ValueError("varorder string contains wrong number of variables")

  probs = iter(probabilities)
  quantifiers: Dict[int, Quantifier] = {}
  for var, kind in enumerate(var_order, start=1):
    if kind == "E":
      quantifiers[var] = CHOICE
    elif kind == "R":
      try:
        p = float(next(probs))
      except StopIteration:
        raise ValueError("not enough probabilities for chance variables") from None
      if not 0.0 <= p <= 1.0:
        raise ValueError(f"probability {p} outside [0, 1]")
      quantifiers[var] = Chance(p)
    else:
      raise ValueError(f"varorder letter {kind!r} is neither 'E' nor 'R'")

  rng = random.Random(seed)
  clauses: List[List[int]] = []
  for _c in range(num_clauses):
    length = rng.randint(min_clause_length, max_clause_length)
    chosen = rng.sample(range(1, num_vars + 1), length)
    clauses.append([v if rng.random() < 0.5 else -v for v in chosen])

  header = {
    "number of variables": str(num_vars),
    "number of clauses": str(num_clauses),
    "varorder": var_order,
  }
  header.update(clause_length_stats(clauses))
  header["seed"] = str(seed)
  return SSATInstance(num_vars, num_clauses, quantifiers, clauses, header)


def alternating_order(num_vars: int, block_size: int = 1, first: str = "E") -> str:
  """'E'/'R' prefix of blocks of `block_size`, starting with `first`."""
  other = "R" if first == "E" else "E"
  return "".join(first if (i // block_size) % 2 == 0 else other for i in range(num_vars))


def formula_status(clauses: List[List[int]], assignment: Dict[int, bool]) -> int:
  status = SATISFIED
  for clause in clauses:
    satisfied = False
    open_lits = 0
    for lit in clause:
      value = assignment.get(abs(lit))
      if value is None:
        open_lits += 1
      elif value == (lit > 0):
        satisfied = True
        break
    if satisfied:
      continue
    if open_lits == 0:
      return UNSATISFIED
    status = UNDECIDED
  return status


def brute_force(instance: SSATInstance) -> float:
  """Exact probability by full enumeration in quantifier order."""
  assignment: Dict[int, bool] = {}

  def evaluate(var: int) -> float:
    status = formula_status(instance.clauses, assignment)
    if status == SATISFIED:
      return 1.0
    if status == UNSATISFIED or var > instance.num_vars:
      return 0.0
    assignment[var] = False
    false_prob = evaluate(var + 1)
    assignment[var] = True
    true_prob = evaluate(var + 1)
    del assignment[var]
    return combine(instance.quantifiers[var], false_prob, true_prob)

  return evaluate(1)
