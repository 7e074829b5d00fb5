"""Typed filter predicates compiled to SQLAlchemy clauses.

Listing endpoints accept optional filters; instead of assembling SQL text they
build a list of ``Predicate`` objects and hand it to ``apply_predicates``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class Operator(str, Enum):
    EQ = 'eq'
    NE = 'ne'
    LT = 'lt'
    LE = 'le'
    GT = 'gt'
    GE = 'ge'
    IN = 'in'
    NOT_IN = 'not_in'
    BETWEEN = 'between'


@dataclass(frozen=True)
class Predicate:
    field: str
    operator: Operator
    value: Any


def _compile(model, predicate: Predicate):
    column = getattr(model, predicate.field, None)
    if column is None:
        raise ValueError(f'{model.__name__} has no field {predicate.field!r}.')

    operator = predicate.operator
    value = predicate.value

    if operator is Operator.EQ:
        return column == value
    if operator is Operator.NE:
        return column != value
    if operator is Operator.LT:
        return column < value
    if operator is Operator.LE:
        return column <= value
    if operator is Operator.GT:
        return column > value
    if operator is Operator.GE:
        return column >= value
    if operator is Operator.IN:
        return column.in_(list(value))
    if operator is Operator.NOT_IN:
        return column.not_in(list(value))
    if operator is Operator.BETWEEN:
        low, high = value
        return column.between(low, high)

    raise ValueError(f'Unsupported operator {operator!r}.')


def compile_predicates(model, predicates: list[Predicate]) -> list:
    return [_compile(model, predicate) for predicate in predicates]


def apply_predicates(query, model, predicates: list[Predicate]):
    clauses = compile_predicates(model, predicates)
    if clauses:
        query = query.filter(*clauses)
    return query
