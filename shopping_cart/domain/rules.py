"""
Decide helpers - Railway composition of business rules.

A rule is a zero-argument callable returning `Result[None, Error]`.
Rules run in order and the first failure wins: later rules never run,
so they may safely assume every earlier rule passed.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from kungfu import Error as Err
from kungfu import Ok

if TYPE_CHECKING:
    from kungfu import Result

    from shopping_cart.domain.errors import Error

    Rule = Callable[[], Result[None, Error]]


def ensure(condition: bool, error: Error) -> Result[None, Error]:
    """Pass when `condition` holds, otherwise fail with `error`."""
    if condition:
        return Ok(None)
    return Err(error)


def decide(*rules: Rule) -> Result[None, Error]:
    """Run rules in order and stop at the first failure."""
    for rule in rules:
        result = rule()
        if isinstance(result, Err):
            return result
    return Ok(None)
