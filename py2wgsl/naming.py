"""
Name Registry: collision-free WGSL identifiers for one resolution.

Two modes are available. The strict registry keeps names human readable
(``name``, ``name_1``, ``name_2``...), the random registry always appends a
unique counter (``name_0``, ``name_1``...) so that no name depends on which
item happened to be resolved first.
"""

import re
from abc import ABC, abstractmethod
from collections.abc import Iterator

from loguru import logger

# WGSL keywords, reserved words, and identifiers that cannot be redeclared
BANNED_TOKENS = frozenset(
    """
    alias break case const const_assert continue continuing default diagnostic
    discard else enable false fn for if let loop override requires return
    struct switch true var while
    NULL Self abstract active alignas alignof as asm asm_fragment async
    attribute auto await become cast catch class co_await co_return co_yield
    coherent column_major common compile compile_fragment concept const_cast
    consteval constexpr constinit crate debugger decltype delete demote
    demote_to_helper do dynamic_cast enum explicit export extends extern
    external fallthrough filter final finally friend from fxgroup get goto
    groupshared highp impl implements import inline instanceof interface
    layout lowp macro macro_rules match mediump meta mod module move mut
    mutable namespace new nil noexcept noinline nointerpolation non_coherent
    noncoherent noperspective null nullptr of operator package packoffset
    partition pass patch pixelfragment precise precision premerge priv
    protected pub public readonly ref regardless register reinterpret_cast
    require resource restrict self set shared sizeof smooth snorm static
    static_assert static_cast std subroutine super target template this
    thread_local throw trait try type typedef typeid typename typeof union
    unless unorm unsafe unsized use using varying virtual volatile wgsl where
    with writeonly yield
    sampler
    """.split()
)


def sanitize_primer(primer: str | None) -> str:
    """Turn an arbitrary label into the stem of an identifier."""
    if not primer:
        return "item"
    primer = re.sub(r"\s", "_", primer)
    primer = re.sub(r"\W", "", primer)
    if not primer or primer[0].isdigit():
        primer = f"item_{primer}"
    return primer


def is_valid_identifier(ident: str) -> bool:
    """Whether an identifier can be used without renaming.

    Raises:
        ValueError: If the identifier can never be made valid
            (``_``, a leading ``__`` or whitespace)
    """
    if ident == "_" or ident.startswith("__") or re.search(r"\s", ident):
        raise ValueError(
            f"Invalid identifier '{ident}'. Choose an identifier without "
            "whitespaces or leading underscores."
        )
    return ident.split("_")[0] not in BANNED_TOKENS


class NameRegistry(ABC):
    """Hands out identifiers unique within a single resolution.

    Global names (declarations) are unique across the whole document, local
    names only within the innermost function scope.
    """

    mode = ""

    def __init__(self) -> None:
        self._used_names: set[str] = set(BANNED_TOKENS)
        self._function_scopes: list[set[str]] = []

    @property
    def _scope_names(self) -> set[str] | None:
        return self._function_scopes[-1] if self._function_scopes else None

    @abstractmethod
    def _candidates(self, stem: str) -> Iterator[str]:
        """Yield candidate identifiers for a sanitized primer, in order."""

    def _is_taken(self, name: str) -> bool:
        scope = self._scope_names
        return name in self._used_names or (scope is not None and name in scope)

    def make_unique(self, primer: str | None, global_: bool) -> str:
        """Create a fresh identifier derived from ``primer``.

        Args:
            primer: Label that makes the identifier recognizable
            global_: Register the name for the whole document instead of the
                current function scope
        """
        stem = sanitize_primer(primer)
        name = next(c for c in self._candidates(stem) if not self._is_taken(c))
        if global_:
            self._used_names.add(name)
        elif self._scope_names is not None:
            self._scope_names.add(name)
        return name

    def make_valid(self, primer: str) -> str:
        """Keep a local identifier as is when possible, rename it otherwise."""
        if is_valid_identifier(primer) and not self._is_taken(primer):
            if self._scope_names is not None:
                self._scope_names.add(primer)
            return primer
        renamed = self.make_unique(primer, False)
        logger.debug(f"Renamed local identifier '{primer}' to '{renamed}'")
        return renamed

    def push_function_scope(self) -> None:
        self._function_scopes.append(set())

    def pop_function_scope(self) -> None:
        self._function_scopes.pop()


class StrictNameRegistry(NameRegistry):
    """``name``, then ``name_1``, ``name_2``... on collision."""

    mode = "strict"

    def _candidates(self, stem: str) -> Iterator[str]:
        yield stem
        index = 1
        while True:
            yield f"{stem}_{index}"
            index += 1


class RandomNameRegistry(NameRegistry):
    """Every name gets a registry-wide counter suffix: ``name_0``, ``other_1``...

    The counter is per registry, so two resolutions in random mode still
    produce identical output.
    """

    mode = "random"

    def __init__(self) -> None:
        super().__init__()
        self._last_id = 0

    def _candidates(self, stem: str) -> Iterator[str]:
        while True:
            name = f"{stem}_{self._last_id}"
            self._last_id += 1
            yield name


REGISTRIES: dict[str, type[NameRegistry]] = {
    "strict": StrictNameRegistry,
    "random": RandomNameRegistry,
}


def create_name_registry(mode: str) -> NameRegistry:
    try:
        return REGISTRIES[mode]()
    except KeyError:
        raise ValueError(
            f"Unknown naming mode '{mode}', expected one of {sorted(REGISTRIES)}"
        ) from None
