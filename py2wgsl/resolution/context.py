"""
Resolution Context: per-call state of one ``resolve()``.

The context turns a graph of resolvable items into WGSL declarations. It owns
the name registry, the append-only declaration list, the memo tables and the
item/binding stack used for slot lookups. Items are memoized by their handle
together with the values of the slots they actually read, so the same item
resolved under equal bindings is declared once, and under different bindings
once per distinct set of values.
"""

import math
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from py2wgsl.config import ResolutionOptions
from py2wgsl.errors import (
    CycleError,
    ExtensionNotEnabledError,
    GenerationError,
    MissingSlotValueError,
    NotInResolutionError,
    Py2WgslError,
    ResolutionError,
)
from py2wgsl.naming import NameRegistry, create_name_registry
from py2wgsl.resolution.resolve_data import resolve_data
from py2wgsl.slot import (
    MISSING,
    Binding,
    BoundDerived,
    Derived,
    Slot,
    values_equal,
)
from py2wgsl.types import Resolvable


@dataclass
class ItemLayer:
    """Records every slot read while an item is being resolved."""

    used_slots: dict[int, Slot] = field(default_factory=dict)


@dataclass
class SlotBindingLayer:
    """Values bound to slots by a ``with_`` call, keyed by slot handle."""

    bindings: dict[int, Any]


@dataclass
class MemoEntry:
    slot_values: list[tuple[Slot, Any]]
    result: Any


@dataclass(frozen=True)
class BindingInfo:
    """A buffer binding required by the resolved code.

    Attributes:
        group: Bind group index
        index: Binding index inside the group
        usage: ``uniform``, ``readonly`` or ``mutable``
        schema: Data schema of the bound buffer
        label: Resolved WGSL identifier of the binding
    """

    group: int
    index: int
    usage: str
    schema: Any
    label: str


def _value_key(value: Any) -> Any:
    if isinstance(value, Resolvable):
        return ("item", value.handle)
    try:
        hash(value)
    except TypeError:
        return ("id", id(value))
    return (type(value).__name__, value)


class ResolutionCtx:
    """State of a single resolution.

    Two resolutions never share a context, so names and memoized results of
    one cannot leak into the other.
    """

    def __init__(self, options: ResolutionOptions | None = None):
        self.options = options or ResolutionOptions()
        self.names: NameRegistry = create_name_registry(self.options.names)
        self.active = False
        self.required_extensions: list[str] = []
        self.binding_infos: list[BindingInfo] = []
        self.vertex_layouts: list[Any] = []
        self._declarations: list[str] = []
        self._stack: list[ItemLayer | SlotBindingLayer] = []
        self._resolved: dict[int, list[MemoEntry]] = {}
        self._computed: dict[int, list[MemoEntry]] = {}
        self._in_progress: set[tuple[int, int, tuple[Any, ...]]] = set()
        self._next_binding_index = 0

    @property
    def declarations(self) -> list[str]:
        return list(self._declarations)

    # Slots and bindings

    def read_slot(self, slot: Slot) -> Any:
        """Innermost bound value of a slot, falling back to its default.

        Every item being resolved above the binding that supplies the value
        records the slot as one of its dependencies.

        Raises:
            MissingSlotValueError: If no binding applies and there is no default
        """
        for layer in reversed(self._stack):
            if isinstance(layer, ItemLayer):
                layer.used_slots[slot.handle] = slot
            elif slot.handle in layer.bindings:
                return layer.bindings[slot.handle]
        if slot.default is MISSING:
            raise MissingSlotValueError(slot)
        return slot.default

    def peek_slot(self, slot: Slot) -> Any:
        """Like read_slot, without recording a dependency or failing."""
        for layer in reversed(self._stack):
            if isinstance(layer, SlotBindingLayer) and slot.handle in layer.bindings:
                return layer.bindings[slot.handle]
        return slot.default

    @contextmanager
    def bindings(self, pairs: Iterable[Binding]) -> Iterator[None]:
        """Shadow slot values for the duration of the block."""
        layer = SlotBindingLayer({s.handle: value for s, value in pairs})
        if not layer.bindings:
            yield
            return
        self._stack.append(layer)
        try:
            yield
        finally:
            self._stack.pop()

    def unwrap(self, value: Any) -> Any:
        """Replace slots and derived values by what they currently stand for."""
        while True:
            if isinstance(value, Slot):
                value = self.read_slot(value)
            elif isinstance(value, Derived):
                value = self.compute_derived(value)
            elif isinstance(value, BoundDerived):
                with self.bindings(value.bindings):
                    return self.unwrap(value.inner)
            else:
                return value

    def compute_derived(self, derived: Derived) -> Any:
        return self._get_or_instantiate(
            derived, self._computed, lambda: derived.compute(self.unwrap)
        )

    # Resolution

    def _fingerprint(self) -> tuple[Any, ...]:
        """Effective bindings of the current stack, innermost shadowing."""
        effective: dict[int, Any] = {}
        for layer in self._stack:
            if isinstance(layer, SlotBindingLayer):
                effective.update(layer.bindings)
        return tuple(sorted((h, _value_key(v)) for h, v in effective.items()))

    def _get_or_instantiate(
        self,
        item: Resolvable,
        memo: dict[int, list[MemoEntry]],
        produce: Callable[[], Any],
    ) -> Any:
        key = (id(memo), item.handle, self._fingerprint())
        if key in self._in_progress:
            raise CycleError(item)

        entries = memo.setdefault(item.handle, [])
        for entry in entries:
            if all(
                values_equal(self.peek_slot(s), value) for s, value in entry.slot_values
            ):
                # Enclosing items depend on whatever the cached item read
                for s, _ in entry.slot_values:
                    self.read_slot(s)
                logger.debug(f"Memo hit for {item}")
                return entry.result

        layer = ItemLayer()
        self._stack.append(layer)
        self._in_progress.add(key)
        try:
            result = produce()
            slot_values = [(s, self.peek_slot(s)) for s in layer.used_slots.values()]
        except Py2WgslError as err:
            err.trace.append(str(item))
            raise
        except Exception as err:
            wrapped = ResolutionError(err)
            wrapped.trace.append(str(item))
            raise wrapped from err
        finally:
            self._in_progress.discard(key)
            self._stack.pop()

        entries.append(MemoEntry(slot_values, result))
        logger.debug(
            f"Resolved {item} depending on "
            f"{[str(s) for s, _ in slot_values] or 'no slots'}"
        )
        return result

    def resolve(self, item: Any) -> str:
        """Produce the WGSL text referring to ``item``.

        Resolvables are memoized and may append declarations. Schemas resolve
        to their type name, host numbers and booleans to literals, and
        strings are taken as WGSL as is.

        Raises:
            NotInResolutionError: If the context is not active
        """
        if not self.active:
            raise NotInResolutionError()
        if isinstance(item, (Slot, Derived, BoundDerived)):
            # Memoized by compute_derived, never declared themselves
            return item.resolve(self)
        if isinstance(item, Resolvable):
            return self._get_or_instantiate(
                item, self._resolved, lambda: item.resolve(self)
            )
        if isinstance(item, str):
            return item
        if isinstance(item, bool):
            return "true" if item else "false"
        if isinstance(item, int):
            return str(item)
        if isinstance(item, float):
            if not math.isfinite(item):
                raise GenerationError(f"Cannot represent {item} in WGSL")
            return repr(item)
        return resolve_data(self, item)

    def add_declaration(self, declaration: str) -> None:
        self._declarations.append(declaration)
        logger.debug(f"Added declaration #{len(self._declarations)}")

    def require_extension(self, extension: str) -> None:
        """Record that the generated code needs ``enable <extension>;``.

        Raises:
            ExtensionNotEnabledError: If the extension was not enabled in the
                options
        """
        if extension not in self.options.enable_extensions:
            raise ExtensionNotEnabledError(extension)
        if extension not in self.required_extensions:
            self.required_extensions.append(extension)

    def reserve_binding(self, usage: str, schema: Any, label: str) -> BindingInfo:
        info = BindingInfo(
            group=self.options.binding_group,
            index=self._next_binding_index,
            usage=usage,
            schema=schema,
            label=label,
        )
        self._next_binding_index += 1
        self.binding_infos.append(info)
        return info

    def register_vertex_layout(self, layout: Any) -> None:
        if all(existing is not layout for existing in self.vertex_layouts):
            self.vertex_layouts.append(layout)
