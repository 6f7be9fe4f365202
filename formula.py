"""
Stochastic SAT formula store.

Holds the active variables and active clauses of an SSAT formula and the
apply/undo pair the search uses to assign a variable and later take that
assignment back on the same shared structure.

- A variable stays in the store while it still occurs in an active clause and
  has not been assigned on the current path.
- A clause stays in the store until it is satisfied; a clause losing its last
  literal latches the `unsat` flag.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, Iterator, List, Mapping, Set, Tuple, Union


logger = logging.getLogger(__name__)

CHOICE_VALUE = -1.0
POSITIVE = 1
NEGATIVE = -1


@dataclass(frozen=True)
class Choice:
  """Existentially quantified variable: the solver picks its value."""

  def __str__(self) -> str:
    return str(CHOICE_VALUE)


@dataclass(frozen=True)
class Chance:
  """Randomly quantified variable, true with `probability`."""
  probability: float

  def __str__(self) -> str:
    return str(self.probability)


CHOICE = Choice()

Quantifier = Union[Choice, Chance]


def quantifier_from_value(value: float) -> Quantifier:
  """Map the numeric file encoding (-1 for choice, else a probability) to a quantifier."""
  if value == CHOICE_VALUE:
    return CHOICE
  if 0.0 <= value <= 1.0:
    return Chance(float(value))
  raise ValueError(f"quantifier {value} is neither {CHOICE_VALUE} (choice) nor a probability in [0, 1]")


def is_choice(quantifier: Quantifier) -> bool:
  return isinstance(quantifier, Choice)


def literal_sign(literal: int) -> int:
  return POSITIVE if literal > 0 else NEGATIVE


@dataclass
class VarInfo:
  quantifier: Quantifier
  # clause id -> sign of this variable's literal in that clause
  members: Dict[int, int] = field(default_factory=dict)


@dataclass
class UndoToken:
  """Everything `FormulaStore.undo` needs to reverse one `apply`."""
  variable: int
  quantifier: Quantifier
  members: Dict[int, int]
  satisfied: Dict[int, Set[int]] = field(default_factory=dict)
  stripped: List[int] = field(default_factory=list)
  deactivated: Dict[int, Quantifier] = field(default_factory=dict)
  was_unsat: bool = False


Snapshot = Tuple[Dict[int, FrozenSet[int]], Dict[int, Tuple[Quantifier, Dict[int, int]]], bool]


class FormulaStore:
  """Active variables and clauses of one formula, mutated only through apply/undo."""

  def __init__(self, num_vars: int = 0):
    self.num_vars = num_vars
    self._variables: Dict[int, VarInfo] = {}
    self._clauses: Dict[int, Set[int]] = {}
    self._unsat = False
    # variable -> signed value of its latest assignment, for diagnostics only
    self.assignment: Dict[int, int] = {}

  @classmethod
  def build(cls, quantifiers: Mapping[int, Quantifier], clauses: Iterable[Iterable[int]]) -> "FormulaStore":
    """Create a store from per-variable quantifiers and a clause list.

    Clause ids are the positions in `clauses`. Membership maps are derived
    from the clauses; variables occurring in no clause are left out.
    """
    store = cls(num_vars=len(quantifiers))
    for var in sorted(quantifiers):
      store._variables[var] = VarInfo(quantifiers[var])
    for clause_id, clause in enumerate(clauses):
      literals = set(clause)
      for lit in literals:
        store._variables[abs(lit)].members[clause_id] = literal_sign(lit)
      store._clauses[clause_id] = literals
      if not literals:
        store._unsat = True
    for var in [v for v, info in store._variables.items() if not info.members]:
      del store._variables[var]
    logger.debug("built store: %d active variables, %d clauses", len(store._variables), len(store._clauses))
    return store

  # ---------------------------
  # Read-only surface
  # ---------------------------
  @property
  def unsat(self) -> bool:
    return self._unsat

  def has_clauses(self) -> bool:
    return bool(self._clauses)

  def has_variables(self) -> bool:
    return bool(self._variables)

  def clause_items(self) -> List[Tuple[int, Set[int]]]:
    """Active clauses in ascending id order. The literal sets must not be modified."""
    return sorted(self._clauses.items())

  def variable_items(self) -> List[Tuple[int, VarInfo]]:
    """Active variables in ascending id order. The entries must not be modified."""
    return sorted(self._variables.items())

  def clause(self, clause_id: int) -> Set[int]:
    return self._clauses[clause_id]

  def variable(self, var: int) -> VarInfo:
    return self._variables[var]

  def is_active(self, var: int) -> bool:
    return var in self._variables

  def snapshot(self) -> Snapshot:
    """Comparable copy of the full store content."""
    clauses = {cid: frozenset(lits) for cid, lits in self._clauses.items()}
    variables = {var: (info.quantifier, dict(info.members)) for var, info in self._variables.items()}
    return clauses, variables, self._unsat

  def dump(self) -> str:
    lines = ["variables"]
    for var, info in self.variable_items():
      members = " ".join(f"{cid}:{'+' if sign > 0 else '-'}" for cid, sign in sorted(info.members.items()))
      lines.append(f"  {var} => {info.quantifier}  [{members}]")
    lines.append("clauses")
    for cid, literals in self.clause_items():
      lines.append(f"  {cid}: " + " ".join(str(l) for l in sorted(literals, key=abs)))
    if self._unsat:
      lines.append("(empty clause present)")
    return "\n".join(lines)

  # ---------------------------
  # Mutation / restoration
  # ---------------------------
  def apply(self, variable: int, value: int) -> UndoToken:
    """Assign `value` (+1/-1) to an active variable and simplify the formula.

    Satisfied clauses leave the store; variables left without any active
    clause are deactivated. Falsified literals are stripped, and a clause
    stripped to nothing latches `unsat`.
    """
    info = self._variables[variable]
    token = UndoToken(variable, info.quantifier, dict(info.members), was_unsat=self._unsat)
    self.assignment[variable] = value * variable

    for clause_id, sign in info.members.items():
      if sign == value:
        literals = self._clauses.pop(clause_id)
        token.satisfied[clause_id] = literals
        for lit in literals:
          other = abs(lit)
          if other == variable:
            continue
          other_info = self._variables[other]
          del other_info.members[clause_id]
          if not other_info.members:
            token.deactivated[other] = other_info.quantifier
            del self._variables[other]
      else:
        literals = self._clauses[clause_id]
        literals.discard(sign * variable)
        token.stripped.append(clause_id)
        if not literals:
          self._unsat = True

    del self._variables[variable]
    return token

  def undo(self, token: UndoToken) -> None:
    """Reverse the `apply` that produced `token`; must be the most recent one."""
    for var, quantifier in token.deactivated.items():
      self._variables[var] = VarInfo(quantifier)
    self._variables[token.variable] = VarInfo(token.quantifier, dict(token.members))

    for clause_id, literals in token.satisfied.items():
      self._clauses[clause_id] = literals
      for lit in literals:
        self._variables[abs(lit)].members[clause_id] = literal_sign(lit)

    members = self._variables[token.variable].members
    for clause_id in token.stripped:
      self._clauses[clause_id].add(members[clause_id] * token.variable)

    self._unsat = token.was_unsat

  @contextmanager
  def assigned(self, variable: int, value: int) -> Iterator[UndoToken]:
    """Scope one assignment: applied on entry, undone on every exit path."""
    token = self.apply(variable, value)
    try:
      yield token
    finally:
      self.undo(token)
