from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Union


class Op(StrEnum):
    eq = "eq"
    in_ = "in"
    icontains = "icontains"
    gte = "gte"
    lte = "lte"
    not_null = "not_null"
    overlaps = "overlaps"


@dataclass(frozen=True)
class FieldConstraint:
    field: str
    op: Op
    value: Any = None


@dataclass(frozen=True)
class AllOf:
    terms: tuple[Predicate, ...]


@dataclass(frozen=True)
class AnyOf:
    terms: tuple[Predicate, ...]


Predicate = Union[FieldConstraint, AllOf, AnyOf]


def all_of(*terms: Predicate) -> AllOf:
    return AllOf(terms=tuple(terms))


def any_of(*terms: Predicate) -> AnyOf:
    return AnyOf(terms=tuple(terms))
