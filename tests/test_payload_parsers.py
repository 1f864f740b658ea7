from datetime import date
from decimal import Decimal

import pytest

from backoffice.services.errors import InvalidArgumentError
from backoffice.services.payload_parsers import parse_amount, parse_date, require_fields


class TestParseAmount:

    @pytest.mark.parametrize("raw,expected", [
        ("100", Decimal("100.00")),
        (49.99, Decimal("49.99")),
        ("12.346", Decimal("12.35")),
        ("9999999999.99", Decimal("9999999999.99")),
    ])
    def test_valid(self, raw, expected):
        assert parse_amount(raw, "amount") == expected

    @pytest.mark.parametrize("raw", [
        "0", "-1", "0.001", "abc", "", None, "NaN", "-Infinity",
        "1e30", "1e20", "10000000000", "9999999999.999",
    ])
    def test_rejected(self, raw):
        with pytest.raises(InvalidArgumentError):
            parse_amount(raw, "amount")


class TestParseDate:

    def test_plain_and_timestamp(self):
        assert parse_date("2025-11-09", "d") == date(2025, 11, 9)
        assert parse_date("2025-11-09T23:30:00+00:00", "d") == date(2025, 11, 9)

    def test_empty_is_none(self):
        assert parse_date("", "d") is None
        assert parse_date(None, "d") is None

    def test_garbage(self):
        with pytest.raises(InvalidArgumentError):
            parse_date("soon", "d")


class TestRequireFields:

    def test_lists_missing_fields(self):
        with pytest.raises(InvalidArgumentError) as exc:
            require_fields({"a": 1, "b": ""}, "a", "b", "c")
        assert exc.value.details == {"missing": ["b", "c"]}
