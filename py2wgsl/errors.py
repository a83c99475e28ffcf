"""
Exceptions raised while building schemas and resolving WGSL code.

Every failure is fatal for the current resolution: a partially resolved
document is never returned to the caller.
"""

from typing import Any


class Py2WgslError(Exception):
    """Base class for all errors raised by py2wgsl.

    Attributes:
        trace: Labels of the items that were being resolved when the error
            propagated, innermost first
    """

    def __init__(self, *args: Any):
        super().__init__(*args)
        self.trace: list[str] = []

    def __str__(self) -> str:
        message = super().__str__()
        if not self.trace:
            return message
        entries = "\n".join(f"- {item}" for item in self.trace)
        return f"{message}\nResolution trace:\n{entries}"


class SchemaError(Py2WgslError):
    """Raised eagerly when a schema is constructed with an invalid shape.

    Examples:
        >>> align(3, f32)
        SchemaError: Custom alignment must be a power of two, got 3
    """


class NotInResolutionError(Py2WgslError):
    """Raised when a resolvable is used outside of an active resolution."""

    def __init__(self, what: str = "Resolvable items"):
        super().__init__(
            f"{what} can only be resolved inside an active resolution context "
            "(see py2wgsl.resolve)"
        )


class ConstructionDuringResolutionError(Py2WgslError):
    """Raised when slots or derived values are created during code generation."""

    def __init__(self, kind: str):
        super().__init__(
            f"Cannot create a {kind} while a resolution is in progress. "
            f"Create it during program setup instead."
        )


class MissingSlotValueError(Py2WgslError):
    """Raised when a slot is read with no binding and no default value."""

    def __init__(self, slot: Any):
        self.slot = slot
        super().__init__(f"Missing value for '{slot}'")


class DuplicateLocationError(Py2WgslError):
    """Raised when two members of one IO record share a custom location."""

    def __init__(self, location: int, members: list[str]):
        self.location = location
        self.members = members
        super().__init__(
            f"Location {location} is used by more than one member: "
            f"{', '.join(members)}"
        )


class GenerationError(Py2WgslError):
    """Raised when a function body cannot be turned into WGSL.

    Attributes:
        message: The error message without location info
        node: IR node being generated when the error occurred, if known
    """

    def __init__(self, message: str, node: Any | None = None):
        self.message = message
        self.node = node
        lineno = getattr(node, "lineno", None)
        location_info = f" at line {lineno}" if lineno else ""
        super().__init__(f"{message}{location_info}")

    def with_node(self, node: Any) -> "GenerationError":
        """Create a copy of this error attached to a different IR node."""
        return type(self)(self.message, node)


class UnknownBuiltinError(GenerationError):
    """Raised when a host builtin has no WGSL counterpart."""

    def __init__(self, name: str, node: Any | None = None):
        self.name = name
        super().__init__(f"Unsupported builtin function: {name}", node)

    def with_node(self, node: Any) -> "UnknownBuiltinError":
        return UnknownBuiltinError(self.name, node)


class MissingVertexAttributeError(Py2WgslError):
    """Raised when a vertex shader input has no matching vertex attribute."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(
            f"Missing vertex attributes for shader inputs: {', '.join(missing)}"
        )


class ExtensionNotEnabledError(Py2WgslError):
    """Raised when generated code needs a WGSL extension that was not enabled."""

    def __init__(self, extension: str):
        self.extension = extension
        super().__init__(
            f"Generated code requires the '{extension}' extension. "
            f"Pass enable_extensions=['{extension}'] to resolve()."
        )


class CycleError(Py2WgslError):
    """Raised when an item transitively depends on itself."""

    def __init__(self, item: Any):
        self.item = item
        super().__init__(f"Cyclic dependency detected while resolving '{item}'")


class ResolutionError(Py2WgslError):
    """Wraps a foreign exception raised while an item was being resolved.

    Errors that already derive from Py2WgslError are never wrapped, they only
    collect the resolution trace.
    """

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(f"{type(cause).__name__}: {cause}")
