#!/usr/bin/env python3
"""
Tests for reading and writing the SSAT text format
"""

import os
import tempfile
import unittest

from formula import CHOICE, Chance
from reader import MalformedInput, SSATInstance, parse_ssat, read_ssat, write_ssat
from solver import solve_ssat


GENERATED = """
;  command               = ssat-generator 3 2 2 1 ERR 0.5 0.5 7
;  number of variables   = 3
;  number of clauses     = 2
;  maximum clause length = 2
;  minimum clause length = 1
;  average clause length = 1.5
;  seed                  = 7

v 3
c 2

variables
    1   -1.0
    2   0.5
    3   0.5

clauses
    2    3    0
   -1    0
"""

GENERATOR_OUTPUT = GENERATED + """
Success Probability:  0.75
Solution Time (CPU secs):  0.001

"""


class TestParse(unittest.TestCase):

  def test_generated_layout(self):
    instance = parse_ssat(GENERATED)
    self.assertEqual(instance.num_vars, 3)
    self.assertEqual(instance.num_clauses, 2)
    self.assertEqual(instance.quantifiers, {1: CHOICE, 2: Chance(0.5), 3: Chance(0.5)})
    self.assertEqual(instance.clauses, [[2, 3], [-1]])
    self.assertEqual(instance.header["seed"], "7")
    self.assertEqual(instance.header["average clause length"], "1.5")

  def test_generator_report_is_ignored(self):
    instance = parse_ssat(GENERATOR_OUTPUT)
    self.assertEqual(instance.clauses, [[2, 3], [-1]])
    self.assertEqual(instance.header, parse_ssat(GENERATED).header)

  def test_trailing_text_after_clauses(self):
    instance = parse_ssat("v 1\nc 1\n1 0.5\n1 0\nnot a clause\n")
    self.assertEqual(instance.clauses, [[1]])

  def test_minimal_layout(self):
    instance = parse_ssat("v 2\nc 1\n1 0.25\n2 -1\n1 -2 0\n")
    self.assertEqual(instance.quantifiers, {1: Chance(0.25), 2: CHOICE})
    self.assertEqual(instance.clauses, [[1, -2]])
    self.assertEqual(instance.header, {})

  def test_solves_after_parse(self):
    probability, _ = solve_ssat(parse_ssat(GENERATED).to_store())
    self.assertAlmostEqual(probability, 0.75)

  def test_malformed(self):
    cases = {
      "missing variable count": "c 1\n1 0\n",
      "missing clause count": "v 1\n1 -1\n",
      "counts after data": "1 -1\nv 1\nc 0\n",
      "too few variables": "v 2\nc 0\n1 -1\n",
      "non-dense ids": "v 2\nc 0\n1 -1\n3 0.5\n",
      "bad quantifier": "v 1\nc 0\n1 1.5\n",
      "unterminated clause": "v 1\nc 1\n1 -1\n1\n",
      "empty clause": "v 1\nc 1\n1 -1\n0\n",
      "literal out of range": "v 1\nc 1\n1 -1\n2 0\n",
      "duplicate literal": "v 2\nc 1\n1 -1\n2 -1\n1 1 0\n",
      "both signs": "v 2\nc 1\n1 -1\n2 -1\n1 -1 0\n",
      "clause count mismatch": "v 1\nc 2\n1 -1\n1 0\n",
      "non-integer literal": "v 1\nc 1\n1 -1\nx 0\n",
      "bad count line": "v 1 2\nc 0\n",
    }
    for name, text in cases.items():
      with self.subTest(case=name):
        with self.assertRaises(MalformedInput):
          parse_ssat(text)

  def test_malformed_is_value_error(self):
    self.assertTrue(issubclass(MalformedInput, ValueError))


class TestReadWrite(unittest.TestCase):

  def test_write_then_read(self):
    instance = SSATInstance(3, 2, {1: Chance(0.3), 2: CHOICE, 3: Chance(0.9)}, [[1, -2, 3], [-3]], {"seed": "11"})
    with tempfile.TemporaryDirectory() as tmp:
      path = os.path.join(tmp, "small.ssat")
      with open(path, "w") as f:
        f.write(write_ssat(instance))
      again = read_ssat(path)
    self.assertEqual(again.quantifiers, instance.quantifiers)
    self.assertEqual(again.clauses, instance.clauses)
    self.assertEqual(again.header["seed"], "11")
    self.assertEqual(again.header["maximum clause length"], "3")

  def test_written_layout(self):
    text = write_ssat(parse_ssat(GENERATED))
    self.assertIn("v 3\nc 2\n", text)
    self.assertIn("    1   -1.0\n", text)
    self.assertIn("   -1    0\n", text)


if __name__ == "__main__":
  unittest.main()
