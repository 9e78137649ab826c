"""Unit tests for entity declarations and the descriptor cache."""

from __future__ import annotations

import threading
import unittest
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from jot.db.annotations import Char, column, record
from jot.db.descriptor import ScalarKind, clear_cache, describe
from jot.errors import MapperError


@dataclass
class User:
    id: int = column(default=0, id=True, id_auto_assign=True)
    name: str = ""
    email: str = column(default="", read_only=True)


@record(db_name="people_v2")
@dataclass
class Person:
    person_id: int = column(default=0, id=True, db_name="pid", json_name="personId")
    nickname: Optional[str] = None
    grade: Char = Char("A")
    initial: Optional[Char] = None
    age: Optional[int] = None
    active: bool = False
    born: Optional[datetime] = column(default=None, xml_name="birth", xml_attribute=True,
                                      date_format="%Y-%m-%d")
    _secret: str = ""


@dataclass
class Unsupported:
    ratio: float = 0.0


@dataclass
class TwoIds:
    a: int = column(default=0, id=True)
    b: int = column(default=0, id=True)


class NotADataclass:
    id = 0


# ===========================================================================
# 1. Descriptor construction
# ===========================================================================

class TestDescribe(unittest.TestCase):
    def test_default_table_name(self):
        self.assertEqual(describe(User).table_name, "users")

    def test_declared_table_name(self):
        self.assertEqual(describe(Person).table_name, "people_v2")

    def test_fields_in_declaration_order(self):
        names = [f.name for f in describe(Person).fields]
        self.assertEqual(
            names, ["person_id", "nickname", "grade", "initial", "age", "active", "born"]
        )

    def test_private_fields_skipped(self):
        self.assertNotIn("_secret", [f.name for f in describe(Person).fields])

    def test_names_default_to_field_name(self):
        nickname = describe(Person).by_db_name["nickname"]
        self.assertEqual(nickname.json_name, "nickname")
        self.assertEqual(nickname.xml_name, "nickname")
        self.assertFalse(nickname.xml_attribute)
        self.assertIsNone(nickname.date_format)

    def test_declared_names(self):
        info = describe(Person)
        pid = info.by_db_name["pid"]
        self.assertIs(info.by_json_name["personId"], pid)
        self.assertEqual(pid.name, "person_id")
        born = info.by_json_name["born"]
        self.assertEqual(born.xml_name, "birth")
        self.assertTrue(born.xml_attribute)
        self.assertEqual(born.date_format, "%Y-%m-%d")

    def test_scalar_kinds(self):
        kinds = {f.name: f.kind for f in describe(Person).fields}
        self.assertEqual(kinds["person_id"], ScalarKind.INT)
        self.assertEqual(kinds["nickname"], ScalarKind.STRING)
        self.assertEqual(kinds["grade"], ScalarKind.CHAR)
        self.assertEqual(kinds["initial"], ScalarKind.CHARACTER)
        self.assertEqual(kinds["age"], ScalarKind.INTEGER)
        self.assertEqual(kinds["active"], ScalarKind.BOOLEAN)
        self.assertEqual(kinds["born"], ScalarKind.INSTANT)

    def test_identity_and_write_flags(self):
        info = describe(User)
        self.assertEqual(info.id_field.name, "id")
        self.assertFalse(info.id_field.writable)
        self.assertFalse(info.by_db_name["email"].writable)
        self.assertEqual([f.name for f in info.writable_fields], ["name"])

    def test_identity_without_auto_assign_is_writable(self):
        self.assertTrue(describe(Person).id_field.writable)

    def test_unsupported_type(self):
        with self.assertRaises(MapperError) as ctx:
            describe(Unsupported)
        self.assertIn("ratio", str(ctx.exception))

    def test_not_a_dataclass(self):
        with self.assertRaises(MapperError) as ctx:
            describe(NotADataclass)
        self.assertIn("Could not access class", str(ctx.exception))

    def test_two_identity_fields(self):
        with self.assertRaises(MapperError):
            describe(TwoIds)

    def test_descriptor_is_frozen(self):
        info = describe(User)
        with self.assertRaises(Exception):
            info.table_name = "other"  # type: ignore[misc]
        with self.assertRaises(TypeError):
            info.by_db_name["x"] = info.fields[0]  # type: ignore[index]


# ===========================================================================
# 2. Cache
# ===========================================================================

class TestDescriptorCache(unittest.TestCase):
    def test_repeated_calls_return_same_object(self):
        first = describe(User)
        for _ in range(5):
            self.assertIs(describe(User), first)

    def test_concurrent_callers_share_descriptor(self):
        clear_cache()
        results = []
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            results.append(describe(Person))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        self.assertEqual(len(results), 8)
        self.assertTrue(all(r is results[0] for r in results))

    def test_clear_cache_rebuilds(self):
        first = describe(User)
        clear_cache()
        second = describe(User)
        self.assertIsNot(first, second)
        self.assertEqual(first.table_name, second.table_name)


if __name__ == "__main__":
    unittest.main()
