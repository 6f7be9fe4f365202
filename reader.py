"""
Reader and writer for the SSAT text format.

Layout (as written by the instance generator):

    ;  number of variables   = 3
    ;  maximum clause length = 2
    ...
    v 3
    c 2

    variables
        1   -1.0
        2   0.5
        3   0.5

    clauses
        1    2    0
       -3    0

Lines starting with ';' are descriptive header entries (`key = value`) and are
not validated. The first `v` data lines after the counts are variables
(`<id> <quantifier>`, -1 for choice, else a probability); the rest are clauses,
each terminated by 0. The `variables` / `clauses` markers are optional.
Anything after the last clause, such as the generator's solution report, is
ignored.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from formula import FormulaStore, Quantifier, quantifier_from_value


logger = logging.getLogger(__name__)

SECTION_MARKERS = ("variables", "clauses")


class MalformedInput(ValueError):
  """The text does not describe a well-formed SSAT formula."""


@dataclass
class SSATInstance:
  num_vars: int
  num_clauses: int
  quantifiers: Dict[int, Quantifier]
  clauses: List[List[int]]
  header: Dict[str, str] = field(default_factory=dict)

  def to_store(self) -> FormulaStore:
    return FormulaStore.build(self.quantifiers, self.clauses)


def _to_int(token: str, lineno: int) -> int:
  try:
    return int(token)
  except ValueError:
    raise MalformedInput(f"line {lineno}: expected an integer, got {token!r}") from None


def _parse_variable(tokens: List[str], expected_id: int, lineno: int) -> Quantifier:
  if len(tokens) != 2:
    raise MalformedInput(f"line {lineno}: expected '<id> <quantifier>', got {' '.join(tokens)!r}")
  var = _to_int(tokens[0], lineno)
  if var != expected_id:
    raise MalformedInput(f"line {lineno}: expected variable {expected_id}, got {var}")
  try:
    return quantifier_from_value(float(tokens[1]))
  except ValueError as e:
    raise MalformedInput(f"line {lineno}: {e}") from None


def _parse_clause(tokens: List[str], num_vars: int, lineno: int) -> List[int]:
  literals = [_to_int(t, lineno) for t in tokens]
  if literals[-1] != 0:
    raise MalformedInput(f"line {lineno}: clause is not terminated by 0")
  literals.pop()
  if not literals:
    raise MalformedInput(f"line {lineno}: empty clause")
  seen = set()
  for lit in literals:
    if lit == 0 or abs(lit) > num_vars:
      raise MalformedInput(f"line {lineno}: literal {lit} outside 1..{num_vars}")
    if lit in seen:
      raise MalformedInput(f"line {lineno}: duplicate literal {lit}")
    if -lit in seen:
      raise MalformedInput(f"line {lineno}: variable {abs(lit)} occurs with both signs")
    seen.add(lit)
  return literals


def parse_ssat(text: str) -> SSATInstance:
  header: Dict[str, str] = {}
  num_vars: Optional[int] = None
  num_clauses: Optional[int] = None
  quantifiers: Dict[int, Quantifier] = {}
  clauses: List[List[int]] = []

  for lineno, raw in enumerate(text.splitlines(), start=1):
    line = raw.strip()
    if not line:
      continue
    if line.startswith(";"):
      key, sep, value = line[1:].partition("=")
      if sep:
        header[key.strip()] = value.strip()
      continue
    tokens = line.split()
    if tokens[0] in ("v", "c"):
      if len(tokens) != 2:
        raise MalformedInput(f"line {lineno}: expected '{tokens[0]} <count>'")
      count = _to_int(tokens[1], lineno)
      if count < 0:
        raise MalformedInput(f"line {lineno}: negative count {count}")
      if tokens[0] == "v":
        num_vars = count
      else:
        num_clauses = count
      continue
    if line in SECTION_MARKERS:
      continue
    if num_vars is None or num_clauses is None:
      raise MalformedInput(f"line {lineno}: variable and clause counts must come first")
    if len(quantifiers) == num_vars and len(clauses) == num_clauses:
      break

    if len(quantifiers) < num_vars:
      quantifiers[len(quantifiers) + 1] = _parse_variable(tokens, len(quantifiers) + 1, lineno)
    else:
      clauses.append(_parse_clause(tokens, num_vars, lineno))

  if num_vars is None:
    raise MalformedInput("missing variable count line 'v <count>'")
  if num_clauses is None:
    raise MalformedInput("missing clause count line 'c <count>'")
  if len(quantifiers) != num_vars:
    raise MalformedInput(f"expected {num_vars} variables, found {len(quantifiers)}")
  if len(clauses) != num_clauses:
    raise MalformedInput(f"expected {num_clauses} clauses, found {len(clauses)}")

  return SSATInstance(num_vars, num_clauses, quantifiers, clauses, header)


def read_ssat(path: str) -> SSATInstance:
  with open(path, "r") as f:
    instance = parse_ssat(f.read())
  logger.debug("read %s: %d variables, %d clauses", path, instance.num_vars, instance.num_clauses)
  return instance


def clause_length_stats(clauses: List[List[int]]) -> Dict[str, str]:
  lengths = [len(c) for c in clauses] or [0]
  return {
    "maximum clause length": str(max(lengths)),
    "minimum clause length": str(min(lengths)),
    "average clause length": str(sum(lengths) / len(lengths)),
  }


def write_ssat(instance: SSATInstance) -> str:
  """Render `instance` in the text format read by parse_ssat."""
  header = {
    "number of variables": str(instance.num_vars),
    "number of clauses": str(instance.num_clauses),
  }
  header.update(clause_length_stats(instance.clauses))
  header.update(instance.header)
  width = max(len(k) for k in header)

  out: List[str] = [""]
  for key, value in header.items():
    out.append(f";  {key.ljust(width)} = {value}")
  out.append("")
  out.append(f"v {instance.num_vars}")
  out.append(f"c {instance.num_clauses}")
  out.append("")
  out.append("variables")
  for var in range(1, instance.num_vars + 1):
    out.append(f"{var:5d}   {instance.quantifiers[var]}")
  out.append("")
  out.append("clauses")
  for clause in instance.clauses:
    out.append("".join(f"{lit:5d}" for lit in clause) + f"{0:5d}")
  return "\n".join(out) + "\n"
