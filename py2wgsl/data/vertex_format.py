"""Packed vertex formats that can be used as members of loose schemas.

Each format describes how an attribute is stored in a vertex buffer and which
WGSL type the shader receives it as.
"""

from dataclasses import dataclass
from typing import Any

from py2wgsl.data.numeric import f32, i32, u32
from py2wgsl.data.vector import Vector


@dataclass(frozen=True)
class VertexFormat:
    """A WebGPU vertex format.

    Attributes:
        type: Format name as understood by the graphics API (``unorm8x4``)
        size: Bytes taken by one attribute value
        wgsl_type: Schema of the value seen by the shader
        channel: Storage kind of each component (``u1``, ``i2``, ``f2``...)
        normalized: Whether integer storage maps to [0, 1] or [-1, 1]
    """

    type: str
    size: int
    wgsl_type: Any
    channel: str
    normalized: bool = False

    @property
    def components(self) -> int:
        return self.size // int(self.channel[1])

    def __str__(self) -> str:
        return self.type

    __repr__ = __str__


def _fmt(name: str, size: int, channel: str, normalized: bool = False) -> VertexFormat:
    kind = "f" if normalized or channel[0] == "f" else channel[0]
    primitive = {"f": f32, "u": u32, "i": i32}[kind]
    components = size // int(channel[1])
    wgsl_type = primitive if components == 1 else Vector(primitive, components)
    return VertexFormat(name, size, wgsl_type, channel, normalized)


uint8 = _fmt("uint8", 1, "u1")
uint8x2 = _fmt("uint8x2", 2, "u1")
uint8x4 = _fmt("uint8x4", 4, "u1")
sint8 = _fmt("sint8", 1, "i1")
sint8x2 = _fmt("sint8x2", 2, "i1")
sint8x4 = _fmt("sint8x4", 4, "i1")
unorm8 = _fmt("unorm8", 1, "u1", normalized=True)
unorm8x2 = _fmt("unorm8x2", 2, "u1", normalized=True)
unorm8x4 = _fmt("unorm8x4", 4, "u1", normalized=True)
snorm8 = _fmt("snorm8", 1, "i1", normalized=True)
snorm8x2 = _fmt("snorm8x2", 2, "i1", normalized=True)
snorm8x4 = _fmt("snorm8x4", 4, "i1", normalized=True)
uint16 = _fmt("uint16", 2, "u2")
uint16x2 = _fmt("uint16x2", 4, "u2")
uint16x4 = _fmt("uint16x4", 8, "u2")
sint16 = _fmt("sint16", 2, "i2")
sint16x2 = _fmt("sint16x2", 4, "i2")
sint16x4 = _fmt("sint16x4", 8, "i2")
unorm16 = _fmt("unorm16", 2, "u2", normalized=True)
unorm16x2 = _fmt("unorm16x2", 4, "u2", normalized=True)
unorm16x4 = _fmt("unorm16x4", 8, "u2", normalized=True)
snorm16 = _fmt("snorm16", 2, "i2", normalized=True)
snorm16x2 = _fmt("snorm16x2", 4, "i2", normalized=True)
snorm16x4 = _fmt("snorm16x4", 8, "i2", normalized=True)
float16 = _fmt("float16", 2, "f2")
float16x2 = _fmt("float16x2", 4, "f2")
float16x4 = _fmt("float16x4", 8, "f2")
