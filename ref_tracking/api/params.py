"""
Request parameter parsing for the stats API.

`r-params` arrives either as a list (repeated fields, `r-params[]=...`, or a
JSON array) or as one comma-separated string. Both are classified into a
ParameterInput variant first, then normalized into one frozenset:

    ListInput(["a", "b", "c"])   -> {"a", "b", "c"}
    CommaString("a,b,c")         -> {"a", "b", "c"}
    InvalidInput()               -> set()

Values are compared exactly as stored, so no case folding or stripping is
applied; empty items (from "a,,b" or a trailing comma) are dropped.
"""

from dataclasses import dataclass
from typing import Any, FrozenSet, Tuple, Union


@dataclass(frozen=True)
class ListInput:
    values: Tuple[str, ...]


@dataclass(frozen=True)
class CommaString:
    raw: str


@dataclass(frozen=True)
class InvalidInput:
    pass


ParameterInput = Union[ListInput, CommaString, InvalidInput]


def classify(raw: Any) -> ParameterInput:
    if isinstance(raw, str):
        return CommaString(raw)
    if isinstance(raw, (list, tuple)):
        if all(isinstance(item, str) for item in raw):
            return ListInput(tuple(raw))
    return InvalidInput()


def normalize(param: ParameterInput) -> FrozenSet[str]:
    if isinstance(param, ListInput):
        items = param.values
    elif isinstance(param, CommaString):
        items = tuple(param.raw.split(","))
    else:
        items = ()
    return frozenset(item for item in items if item)


def parse_r_params(raw: Any) -> FrozenSet[str]:
    """Classify then normalize; the single entry point used by the endpoint."""
    return normalize(classify(raw))


def parse_int(raw: Any, default: int) -> int:
    """Integer value of `raw`, or `default` when missing or not an integer."""
    if raw is None or isinstance(raw, bool):
        return default
    try:
        return int(raw)
    except (TypeError, ValueError):
        return default
