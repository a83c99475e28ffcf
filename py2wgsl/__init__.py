from py2wgsl import builtin, data, std
from py2wgsl.config import ResolutionOptions
from py2wgsl.core import (
    buffer,
    compute_fn,
    connect_attributes_to_shader,
    const,
    fn,
    fragment_fn,
    link_stages,
    private_var,
    raw_declaration,
    vertex_fn,
    vertex_layout,
    workgroup_var,
)
from py2wgsl.errors import Py2WgslError
from py2wgsl.resolution import ResolutionResult, resolve, resolve_with_ctx
from py2wgsl.slot import derived, slot
from py2wgsl.tgsl import comptime

__version__ = "0.1.0"


__all__ = [
    "builtin",
    "data",
    "std",
    "ResolutionOptions",
    "Py2WgslError",
    "ResolutionResult",
    "buffer",
    "comptime",
    "compute_fn",
    "connect_attributes_to_shader",
    "const",
    "derived",
    "fn",
    "fragment_fn",
    "link_stages",
    "private_var",
    "raw_declaration",
    "resolve",
    "resolve_with_ctx",
    "slot",
    "vertex_fn",
    "vertex_layout",
    "workgroup_var",
]
