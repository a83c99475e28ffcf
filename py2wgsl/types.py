"""
Base abstractions shared by every resolvable item.

A resolvable is anything that can produce WGSL text when handed an active
resolution context: struct schemas, shader functions, buffer usages, slots,
derived values and module-level declarations.
"""

import itertools
import threading
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from py2wgsl.resolution.context import ResolutionCtx

_handles = itertools.count()
_resolution_state = threading.local()


class UnknownData:
    """Data type of a snippet whose type cannot be inferred."""

    def __repr__(self) -> str:
        return "UnknownData"

    __str__ = __repr__


UNKNOWN = UnknownData()


class Resolvable(ABC):
    """An item that can be resolved into WGSL.

    Each instance receives a stable integer handle on creation. Memo tables
    and in-progress markers are keyed by that handle instead of by object
    identity.

    Attributes:
        handle: Process-wide unique integer identifying this item
        label: Optional human readable name, used as the naming primer
    """

    kind = "item"

    def __init__(self, label: str | None = None):
        self.handle = next(_handles)
        self.label = label

    @abstractmethod
    def resolve(self, ctx: "ResolutionCtx") -> str:
        """Produce the WGSL expression referring to this item.

        Implementations may append declarations to the context as a side
        effect (e.g. a struct or function declaration).
        """

    @property
    def data_type(self) -> Any:
        """Schema of the value this item represents inside shader code."""
        return UNKNOWN

    def named(self, label: str) -> "Resolvable":
        """Set the label used when naming this item. Returns self."""
        self.label = label
        return self

    def __str__(self) -> str:
        return f"{self.kind}:{self.label or '<unnamed>'}"

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self}>"


def is_resolving() -> bool:
    """Whether a resolution is currently in progress on this thread."""
    return getattr(_resolution_state, "depth", 0) > 0


def enter_resolution() -> None:
    _resolution_state.depth = getattr(_resolution_state, "depth", 0) + 1


def exit_resolution() -> None:
    _resolution_state.depth = getattr(_resolution_state, "depth", 0) - 1


class FnItem(Resolvable):
    """A resolvable that shader code can call.

    Attributes:
        arg_types: Schemas of the parameters, in order
        return_type: Schema of the result, or None for no result
    """

    kind = "fn"

    @property
    def arg_types(self) -> list[Any]:
        return []

    @property
    def return_type(self) -> Any:
        return None
