from datetime import date

import pytest

from sqlbasics.exceptions import ConstraintViolation, SchemaError, TypeMismatch
from sqlbasics.types import and3, check_value, compare, normalize_type, not3, or3, sort_key


class TestNormalizeType:
    def test_aliases(self):
        assert normalize_type("varchar") == "TEXT"
        assert normalize_type("INTEGER") == "INT"
        assert normalize_type("Date") == "DATE"

    def test_unknown_type(self):
        with pytest.raises(SchemaError):
            normalize_type("BLOB")


class TestCheckValue:
    def test_int_accepts_int_only(self):
        assert check_value(5, "INT") == 5
        with pytest.raises(TypeMismatch):
            check_value("5", "INT")
        with pytest.raises(TypeMismatch):
            check_value(True, "INT")
        with pytest.raises(TypeMismatch):
            check_value(1.5, "INT")

    def test_text_does_not_coerce_numbers(self):
        with pytest.raises(TypeMismatch):
            check_value(9, "TEXT", column="first_name")

    def test_text_length(self):
        assert check_value("abc", "TEXT", length=3) == "abc"
        with pytest.raises(ConstraintViolation):
            check_value("abcd", "TEXT", length=3)

    def test_date_from_iso_literal(self):
        assert check_value("2021-01-11", "DATE") == date(2021, 1, 11)
        assert check_value(date(2021, 1, 11), "DATE") == date(2021, 1, 11)
        with pytest.raises(TypeMismatch):
            check_value("yesterday", "DATE")
        with pytest.raises(TypeMismatch):
            check_value(20210111, "DATE")

    def test_null_passes(self):
        assert check_value(None, "INT") is None


class TestThreeValuedLogic:
    def test_comparison_with_null_is_unknown(self):
        assert compare("=", None, 1) is None
        assert compare("!=", None, 0) is None
        assert compare("=", None, None) is None

    def test_comparisons(self):
        assert compare("<>", 1, 2) is True
        assert compare(">=", 2, 2) is True
        assert compare("<", "a", "b") is True
        assert compare(">", 450.0, 430) is True

    def test_date_against_string_literal(self):
        assert compare(">", date(2021, 6, 18), "2021-05-01") is True

    def test_incomparable_types(self):
        with pytest.raises(TypeMismatch):
            compare("=", "Germany", 5)

    def test_connectives(self):
        assert and3(True, None) is None
        assert and3(False, None) is False
        assert or3(True, None) is True
        assert or3(False, None) is None
        assert not3(None) is None
        assert not3(False) is True


def test_sort_key_puts_null_first():
    values = [3, None, 1]
    assert sorted(values, key=sort_key) == [None, 1, 3]
