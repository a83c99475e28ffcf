"""Resolution options and their environment defaults."""

import os
from dataclasses import dataclass, replace
from typing import Any

from py2wgsl.naming import REGISTRIES

NAMES_ENV = "PY2WGSL_NAMES"
EXTENSIONS_ENV = "PY2WGSL_EXTENSIONS"

KNOWN_EXTENSIONS = ("f16", "clip_distances", "dual_source_blending")


@dataclass(frozen=True)
class ResolutionOptions:
    """Options shared by every item resolved in one call.

    Attributes:
        names: Naming mode, ``strict`` (readable suffixes) or ``random``
        enable_extensions: WGSL extensions generated code is allowed to use
        binding_group: Bind group index assigned to buffer usages
        indent: Indentation unit of generated function bodies
    """

    names: str = "strict"
    enable_extensions: tuple[str, ...] = ()
    binding_group: int = 0
    indent: str = "  "

    def __post_init__(self) -> None:
        if self.names not in REGISTRIES:
            raise ValueError(
                f"Unknown naming mode '{self.names}', expected one of "
                f"{sorted(REGISTRIES)}"
            )
        unknown = [e for e in self.enable_extensions if e not in KNOWN_EXTENSIONS]
        if unknown:
            raise ValueError(f"Unknown WGSL extensions: {', '.join(unknown)}")

    @classmethod
    def from_env(cls, **overrides: Any) -> "ResolutionOptions":
        """Build options from ``PY2WGSL_*`` variables, then apply overrides."""
        options = cls()
        names = os.environ.get(NAMES_ENV)
        if names:
            options = replace(options, names=names.strip())
        extensions = os.environ.get(EXTENSIONS_ENV)
        if extensions:
            enabled = tuple(e.strip() for e in extensions.split(",") if e.strip())
            options = replace(options, enable_extensions=enabled)
        overrides = {k: v for k, v in overrides.items() if v is not None}
        if "enable_extensions" in overrides:
            overrides["enable_extensions"] = tuple(overrides["enable_extensions"])
        return replace(options, **overrides)
