"""
Tests for attribute accessors.
"""

from decimal import Decimal

import pytest
from costguard.utils.attributes import get_number_attr, get_string_attr


def test_string_attr_returns_value():
    assert get_string_attr({"instance_type": "m5.large"}, "instance_type", "t3.micro") == "m5.large"


@pytest.mark.parametrize("attrs", [
    None,
    {},
    {"instance_type": None},
    {"instance_type": 42},
    {"instance_type": ["m5.large"]},
    {"other": "m5.large"},
])
def test_string_attr_defaults(attrs):
    """Missing keys and non-string values fall back to the default."""
    assert get_string_attr(attrs, "instance_type", "t3.micro") == "t3.micro"


def test_string_attr_keeps_empty_string():
    """An explicit empty string is still a string."""
    assert get_string_attr({"size": ""}, "size", "Standard_B1s") == ""


@pytest.mark.parametrize("value, expected", [
    (100, 100.0),
    (12.5, 12.5),
    (Decimal("7.25"), 7.25),
    (0, 0.0),
])
def test_number_attr_accepts_numeric_types(value, expected):
    result = get_number_attr({"size": value}, "size", 8)
    assert result == expected
    assert isinstance(result, float)


@pytest.mark.parametrize("attrs", [
    None,
    {},
    {"size": None},
    {"size": "100"},
    {"size": True},
    {"size": {"gb": 100}},
])
def test_number_attr_defaults(attrs):
    """Missing keys, strings, booleans and nested values fall back to the default."""
    assert get_number_attr(attrs, "size", 8) == 8


@pytest.mark.parametrize("value", [
    float("nan"),
    float("inf"),
    float("-inf"),
    Decimal("NaN"),
    Decimal("sNaN"),
    Decimal("Infinity"),
    10 ** 400,
])
def test_number_attr_rejects_non_finite(value):
    """Values that do not convert to a finite float fall back to the default."""
    assert get_number_attr({"size": value}, "size", 8) == 8


@pytest.mark.parametrize("value", [-100, -0.5, Decimal("-1")])
def test_number_attr_rejects_negative(value):
    """Sizes and counts are never negative."""
    assert get_number_attr({"size": value}, "size", 8) == 8
