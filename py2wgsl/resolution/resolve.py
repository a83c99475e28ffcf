"""Top-level entry points turning externals and a template into WGSL."""

import re
import textwrap
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from loguru import logger

from py2wgsl.config import ResolutionOptions
from py2wgsl.resolution.context import BindingInfo, ResolutionCtx
from py2wgsl.types import enter_resolution, exit_resolution


@dataclass(frozen=True)
class ResolutionResult:
    """Output of one resolution.

    Attributes:
        code: Complete WGSL document
        bindings: Buffer bindings the code declares, in binding index order
        vertex_layouts: Vertex layouts referenced by vertex buffer usages
        required_extensions: Extensions enabled at the top of the document
    """

    code: str
    bindings: list[BindingInfo]
    vertex_layouts: list[Any]
    required_extensions: list[str]


def replace_externals(template: str, names: Mapping[str, str]) -> str:
    """Replace every standalone identifier naming an external.

    Member accesses (``a.key``) and longer identifiers (``key_2``) are left
    untouched.
    """
    for key, name in names.items():
        template = re.sub(rf"(?<![\w.]){re.escape(key)}(?!\w)", name, template)
    return template


def resolve_with_ctx(
    template: str | None = None,
    externals: Mapping[str, Any] | None = None,
    *,
    names: str | None = None,
    enable_extensions: Iterable[str] | None = None,
    options: ResolutionOptions | None = None,
) -> tuple[ResolutionResult, ResolutionCtx]:
    """Resolve and also return the context, for inspecting its state."""
    if options is None:
        options = ResolutionOptions.from_env(
            names=names, enable_extensions=enable_extensions
        )
    ctx = ResolutionCtx(options)
    externals = dict(externals or {})
    logger.debug(
        f"Resolving {len(externals)} externals with '{options.names}' names"
    )

    ctx.active = True
    enter_resolution()
    try:
        resolved = {key: ctx.resolve(value) for key, value in externals.items()}
    finally:
        exit_resolution()
        ctx.active = False

    sections = []
    if ctx.required_extensions:
        sections.append("\n".join(f"enable {e};" for e in ctx.required_extensions))
    sections.extend(ctx.declarations)
    if template:
        body = textwrap.dedent(template).strip()
        sections.append(replace_externals(body, resolved))
    code = "\n\n".join(sections) + "\n" if sections else ""

    logger.debug(
        f"Resolved {len(ctx.declarations)} declarations and "
        f"{len(ctx.binding_infos)} bindings"
    )
    result = ResolutionResult(
        code=code,
        bindings=list(ctx.binding_infos),
        vertex_layouts=list(ctx.vertex_layouts),
        required_extensions=list(ctx.required_extensions),
    )
    return result, ctx


def resolve(
    template: str | None = None,
    externals: Mapping[str, Any] | None = None,
    *,
    names: str | None = None,
    enable_extensions: Iterable[str] | None = None,
    options: ResolutionOptions | None = None,
) -> ResolutionResult:
    """Resolve a graph of items into a single WGSL document.

    Args:
        template: WGSL code referring to externals by their key. Each key is
            replaced with the name the external resolved to.
        externals: Items to resolve, keyed by the identifier used in the
            template. Resolution happens in insertion order.
        names: Naming mode, ``strict`` or ``random``. Defaults to the
            ``PY2WGSL_NAMES`` environment variable, then ``strict``.
        enable_extensions: WGSL extensions the generated code may use
        options: Complete options, overriding ``names`` and
            ``enable_extensions``

    Returns:
        Code and binding metadata. Declarations come first, dependencies
        before dependents, followed by the template.

    Raises:
        Py2WgslError: On any failure; no partial document is returned

    Examples:
        >>> Boid = struct({"pos": vec2f, "vel": vec2f}, label="Boid")
        >>> print(resolve("var<private> b: Boid;", {"Boid": Boid}).code)
        struct Boid {
          pos: vec2f,
          vel: vec2f,
        }
        <BLANKLINE>
        var<private> b: Boid;
    """
    result, _ = resolve_with_ctx(
        template,
        externals,
        names=names,
        enable_extensions=enable_extensions,
        options=options,
    )
    return result
