"""Compile-time helpers: host functions evaluated while generating code."""

import functools
from collections.abc import Callable
from typing import Any


class Comptime:
    """A host function the generator calls instead of emitting a call.

    Every argument must be known during generation: literals, externals,
    or results of other compile-time calls. The return value is inlined in
    place of the call, so it must be something the generator can use as a
    value (a number, a schema, a resolvable...).
    """

    def __init__(self, func: Callable[..., Any]):
        functools.update_wrapper(self, func)
        self.func = func

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return self.func(*args, **kwargs)

    def __repr__(self) -> str:
        return f"<comptime {self.func.__name__}>"


def comptime(func: Callable[..., Any]) -> Comptime:
    """Mark a host function as evaluated during code generation.

    Examples:
        >>> @comptime
        ... def workgroup_count(n):
        ...     return (n + 63) // 64
    """
    return Comptime(func)
