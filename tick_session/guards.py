"""Predicate helpers for receive handlers."""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from tick_session.context import SessionContext

Predicate = Callable[["SessionContext"], bool]


def always(ctx: SessionContext) -> bool:
    return True


def field_equals(name: str, value: Any) -> Predicate:
    """Match signals whose attribute ``name`` equals ``value``."""

    def predicate(ctx: SessionContext) -> bool:
        return getattr(ctx.signal, name, None) == value

    predicate.__qualname__ = f"field_equals({name!r}, {value!r})"
    return predicate


def version_is(value: int) -> Predicate:
    return field_equals("version", value)


def all_of(*predicates: Predicate) -> Predicate:
    """Match when every predicate matches. Stops at the first miss."""

    def predicate(ctx: SessionContext) -> bool:
        return all(p(ctx) for p in predicates)

    return predicate


def any_of(*predicates: Predicate) -> Predicate:
    def predicate(ctx: SessionContext) -> bool:
        return any(p(ctx) for p in predicates)

    return predicate
