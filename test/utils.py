"""
Utils module behavioral tests (Unset, coalesce, rename, mirror, ordinal).

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import copy
import unittest
from unittest import TestCase

from switchboard.utils import Unset, UnsetType, coalesce, mirror, ordinal, rename


class TestUnset(TestCase):

    def testUnsetIsSingletonAndFalsey(self):
        self.assertIs(UnsetType(), Unset)
        self.assertFalse(Unset)
        self.assertEqual(repr(Unset), "Unset")
        self.assertIs(copy.deepcopy(Unset), Unset)

    def testUnsetIsSealed(self):
        with self.assertRaises(TypeError):
            type("Subclass", (UnsetType,), {})

    def testUnsetSupportsUnionChecks(self):
        self.assertIsInstance(Unset, str | Unset)
        self.assertIsInstance("text", str | Unset)
        self.assertNotIsInstance(1, str | Unset)

    def testCoalescePreservesFalseyValues(self):
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(Unset))
        self.assertIsNone(coalesce(None, "fallback"))
        self.assertEqual(coalesce(0, 1), 0)


class TestHelpers(TestCase):

    def testRenameDecorator(self):
        @rename("better")
        def worse():
            pass

        self.assertEqual(worse.__name__, "better")
        with self.assertRaises(TypeError):
            rename(1, "name")

    def testMirrorFreezesContainers(self):
        class Record:
            items = mirror("items")
            table = mirror("table")

            def __init__(self):
                self._items = [1, 2]
                self._table = {"a": 1}

        record = Record()
        self.assertEqual(record.items, (1, 2))
        with self.assertRaises(TypeError):
            record.table["b"] = 2
        with self.assertRaises(AttributeError):
            record.items = ()

    def testOrdinalWords(self):
        self.assertEqual(ordinal(1), "first")
        self.assertEqual(ordinal(10), "tenth")

    def testOrdinalSuffixes(self):
        self.assertEqual(ordinal(11), "11th")
        self.assertEqual(ordinal(21), "21st")
        self.assertEqual(ordinal(102), "102nd")
        self.assertEqual(ordinal(113), "113th")
        self.assertEqual(ordinal(23), "23rd")


if __name__ == "__main__":
    unittest.main()
