"""
Tests for the internal helpers.

This module verifies:
- The Unset sentinel (singleton, falsy, printable, copy/pickle stable, final).
- coalesce() only replacing Unset.
- rename() in both forms.
- mirror() read-only properties handing out frozen containers.
- assign()/lookup() on mappings and plain objects.
"""
import copy
import pickle
import unittest
from types import MappingProxyType, SimpleNamespace
from unittest import TestCase

from helmsman.utils import *


class UnsetTest(TestCase):

    def testSingleton(self):
        self.assertIs(UnsetType(), Unset)
        self.assertIs(copy.copy(Unset), Unset)
        self.assertIs(copy.deepcopy(Unset), Unset)
        self.assertIs(pickle.loads(pickle.dumps(Unset)), Unset)

    def testFalsyAndPrintable(self):
        self.assertFalse(Unset)
        self.assertIsNot(Unset, None)
        self.assertEqual(repr(Unset), "Unset")

    def testUnionsInIsinstance(self):
        self.assertTrue(isinstance(Unset, str | Unset))
        self.assertTrue(isinstance("x", str | Unset))
        self.assertFalse(isinstance(1, str | Unset))

    def testFinal(self):
        with self.assertRaises(TypeError):
            type("Sub", (UnsetType,), {})


class HelpersTest(TestCase):

    def testCoalesce(self):
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(Unset))
        self.assertEqual(coalesce(0, 1), 0)
        self.assertIsNone(coalesce(None, "fallback"))

    def testRenameForms(self):
        def function():
            pass

        self.assertEqual(rename(function, "renamed").__name__, "renamed")

        @rename("decorated")
        def other():
            pass

        self.assertEqual(other.__qualname__, "decorated")
        with self.assertRaises(TypeError):
            rename(42, "name")
        with self.assertRaises(TypeError):
            rename()

    def testMirrorFreezesContainers(self):
        class Holder:
            items = mirror("items")
            table = mirror("table")

            def __init__(self):
                self._items = [1, 2]
                self._table = {"a": 1}

        holder = Holder()
        self.assertEqual(holder.items, (1, 2))
        self.assertIsInstance(holder.table, MappingProxyType)
        with self.assertRaises(AttributeError):
            holder.items = ()

    def testAssignAndLookup(self):
        mapping = {}
        assign(mapping, "key", 1)
        self.assertEqual(lookup(mapping, "key"), 1)
        self.assertEqual(lookup(mapping, "missing", "default"), "default")

        target = SimpleNamespace()
        assign(target, "key", 2)
        self.assertEqual(target.key, 2)
        self.assertEqual(lookup(target, "key"), 2)
        self.assertIsNone(lookup(target, "missing"))


if __name__ == "__main__":
    unittest.main()
