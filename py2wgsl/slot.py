"""
Slots and derived values: dependency injection for shader code.

A slot is a placeholder whose value is chosen where it is used, through
``with_`` bindings, instead of where it is declared. A derived value is a
pure computation over slot reads, recomputed only when one of the slot values
it actually read differs.

Examples:
    >>> scale = slot(2.0, label="scale")
    >>> doubled = derived(lambda get: get(scale) * 2)
    >>> resolve(externals={"x": doubled.with_(scale, 4.0)})
"""

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from py2wgsl.errors import ConstructionDuringResolutionError, NotInResolutionError
from py2wgsl.types import Resolvable, is_resolving

if TYPE_CHECKING:
    from py2wgsl.resolution.context import ResolutionCtx


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()

Binding = tuple["Slot", Any]


class Slot(Resolvable):
    """Placeholder for a value supplied by the nearest enclosing binding.

    Attributes:
        default: Value used when no binding applies, or MISSING
    """

    kind = "slot"

    def __init__(self, default: Any = MISSING, label: str | None = None):
        if is_resolving():
            raise ConstructionDuringResolutionError("slot")
        super().__init__(label)
        self.default = default

    @property
    def value(self) -> Any:
        """Only meaningful inside shader code, where it reads the bound value."""
        raise NotInResolutionError("Slot values")

    @property
    def data_type(self) -> Any:
        return getattr(self.default, "data_type", super().data_type)

    def resolve(self, ctx: "ResolutionCtx") -> str:
        return ctx.resolve(ctx.unwrap(self))


class Derived(Resolvable):
    """Memoized computation over slot reads.

    The computation receives a ``get`` callable that reads slots and other
    derived values, e.g. ``derived(lambda get: get(size) * 2)``.
    """

    kind = "derived"

    def __init__(
        self,
        compute: Callable[[Callable[[Any], Any]], Any],
        label: str | None = None,
    ):
        if is_resolving():
            raise ConstructionDuringResolutionError("derived value")
        super().__init__(label)
        self.compute = compute

    @property
    def value(self) -> Any:
        raise NotInResolutionError("Derived values")

    def with_(self, slot: Slot, value: Any) -> "BoundDerived":
        """This derived value, computed with ``slot`` bound to ``value``."""
        return BoundDerived(self, ((slot, value),))

    def resolve(self, ctx: "ResolutionCtx") -> str:
        return ctx.resolve(ctx.unwrap(self))


class BoundDerived(Resolvable):
    """A derived value computed under extra slot bindings.

    Shares the memo of the wrapped value, so bindings that agree on every
    slot the computation reads reuse one result.
    """

    kind = "derived"

    def __init__(self, inner: Derived, bindings: tuple[Binding, ...]):
        super().__init__(inner.label)
        self.inner = inner
        self.bindings = bindings

    @property
    def value(self) -> Any:
        raise NotInResolutionError("Derived values")

    def with_(self, slot: Slot, value: Any) -> "BoundDerived":
        return BoundDerived(self.inner, (*self.bindings, (slot, value)))

    def resolve(self, ctx: "ResolutionCtx") -> str:
        return ctx.resolve(ctx.unwrap(self))


def values_equal(a: Any, b: Any) -> bool:
    """Equality used to compare slot values between memo entries.

    Resolvables compare by identity, plain values by type and ``==``. Values
    whose ``==`` is not a plain bool (e.g. numpy arrays) only match
    themselves.
    """
    if a is b:
        return True
    if isinstance(a, Resolvable) or type(a) is not type(b):
        return False
    result = a == b
    return result if isinstance(result, bool) else False


def slot(default: Any = MISSING, label: str | None = None) -> Slot:
    return Slot(default, label)


def derived(
    compute: Callable[[Callable[[Any], Any]], Any], label: str | None = None
) -> Derived:
    return Derived(compute, label)
