"""
Forced and safe assignments for the SSAT search.

- Unit propagation: a clause with one literal left forces that literal.
- Pure choice elimination: a choice variable whose literals all carry the same
  sign can take that sign without branching.

Both return (True, literal) for the first match in ascending id order, else
(False, 0).
"""

from typing import Tuple

from formula import FormulaStore, VarInfo, is_choice


def has_unit_clause(store: FormulaStore) -> Tuple[bool, int]:
  """Return (True, lit) if there exists a unit clause [lit], else (False, 0)."""
  for _clause_id, literals in store.clause_items():
    if len(literals) == 1:
      return True, next(iter(literals))
  return False, 0


def is_pure_choice(info: VarInfo) -> Tuple[bool, int]:
  """Return (True, sign) if a choice variable occurs with one sign only."""
  if not is_choice(info.quantifier):
    return False, 0
  signs = set(info.members.values())
  if len(signs) != 1:
    return False, 0
  return True, signs.pop()


def has_pure_choice(store: FormulaStore) -> Tuple[bool, int]:
  """Return (True, lit) for the first pure choice variable, else (False, 0)."""
  for var, info in store.variable_items():
    pure, sign = is_pure_choice(info)
    if pure:
      return True, sign * var
  return False, 0
