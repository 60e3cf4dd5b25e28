"""Shared Pydantic helpers for request schemas."""
from __future__ import annotations

import math
from typing import Annotated, Any

from pydantic import AfterValidator, StringConstraints


def is_blank(value: Any) -> bool:
    """Return True for values that count as an absent required field.

    Null, false, empty strings and numeric zero or NaN are blank; empty
    lists and objects are not.
    """
    if value is None or value is False or value == "":
        return True
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0 or (isinstance(value, float) and math.isnan(value))
    return False


def _require_present(value: Any) -> Any:
    if is_blank(value):
        raise ValueError("field is required")
    return value


UserIdField = Annotated[str, StringConstraints(min_length=1)]
OpaqueField = Annotated[Any, AfterValidator(_require_present)]
