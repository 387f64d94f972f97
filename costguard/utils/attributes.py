"""
Typed accessors over Terraform resource attribute maps.

Attribute values in a plan are heterogeneous JSON scalars. These helpers
never raise: a missing key, a None map or a value of the wrong shape all
resolve to the caller's default.
"""
from decimal import Decimal
import math
from typing import Any, Mapping, Optional


AttributeMap = Optional[Mapping[str, Any]]


def get_string_attr(attrs: AttributeMap, key: str, default: str) -> str:
    """
    Read a string attribute.

    Args:
        attrs: Attribute map (may be None)
        key: Attribute name
        default: Value returned when the key is missing or not a string

    Returns:
        The attribute value or the default
    """
    if not attrs:
        return default
    value = attrs.get(key)
    if isinstance(value, str):
        return value
    return default


def get_number_attr(attrs: AttributeMap, key: str, default: float) -> float:
    """
    Read a numeric attribute as float.

    Integers, floats and Decimals are accepted. Booleans are not numbers here
    even though Python treats them as ints. Numeric attributes are sizes and
    counts, so negative and non-finite values count as the wrong shape.

    Args:
        attrs: Attribute map (may be None)
        key: Attribute name
        default: Value returned when the key is missing, not numeric,
            negative or not finite

    Returns:
        The attribute value as float or the default
    """
    if not attrs:
        return default
    value = attrs.get(key)
    if isinstance(value, bool):
        return default
    if isinstance(value, Decimal) and not value.is_finite():
        return default
    if not isinstance(value, (int, float, Decimal)):
        return default

    try:
        number = float(value)
    except OverflowError:
        return default
    if not math.isfinite(number) or number < 0:
        return default
    return number
