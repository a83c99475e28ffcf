"""Shader functions, entry points, buffers and module-level declarations."""

from py2wgsl.core.buffer import Buffer, BufferUsage, VertexUsage, buffer
from py2wgsl.core.declare import (
    ModuleConst,
    ModuleVar,
    RawDeclaration,
    const,
    private_var,
    raw_declaration,
    workgroup_var,
)
from py2wgsl.core.entry import (
    ComputeFn,
    FragmentFn,
    VertexFn,
    compute_fn,
    fragment_fn,
    link_stages,
    match_up_varying_locations,
    vertex_fn,
)
from py2wgsl.core.function import BoundFn, WgslFn, fn
from py2wgsl.core.vertex_layout import (
    VertexAttrib,
    VertexBufferDefinition,
    VertexLayout,
    connect_attributes_to_shader,
    vertex_layout,
)

__all__ = [
    "BoundFn",
    "Buffer",
    "BufferUsage",
    "ComputeFn",
    "FragmentFn",
    "ModuleConst",
    "ModuleVar",
    "RawDeclaration",
    "VertexAttrib",
    "VertexBufferDefinition",
    "VertexFn",
    "VertexLayout",
    "VertexUsage",
    "WgslFn",
    "buffer",
    "compute_fn",
    "connect_attributes_to_shader",
    "const",
    "fn",
    "fragment_fn",
    "link_stages",
    "match_up_varying_locations",
    "private_var",
    "raw_declaration",
    "vertex_fn",
    "vertex_layout",
    "workgroup_var",
]
