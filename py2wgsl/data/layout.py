"""
Memory layout of schemas.

Sizes, alignments and member offsets follow the WGSL host-shareable layout
rules, so a value serialized with these facts can be copied into a GPU buffer
byte for byte. Loose schemas follow the same algorithm with a default
alignment of 1 for un-decorated members.
"""

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Any

from py2wgsl.data.array import Atomic, WgslArray
from py2wgsl.data.decorated import Align, Decorated, Size
from py2wgsl.data.loose import Disarray, Unstruct
from py2wgsl.data.matrix import Matrix
from py2wgsl.data.numeric import Scalar
from py2wgsl.data.struct import WgslStruct
from py2wgsl.data.vector import SWIZZLE_SETS, Vector
from py2wgsl.data.vertex_format import VertexFormat
from py2wgsl.errors import SchemaError

SCALAR_SIZES = {"bool": 4, "f32": 4, "f16": 2, "i32": 4, "u32": 4, "u16": 2}


@dataclass(frozen=True)
class FieldOffset:
    """Placement of one record member.

    Attributes:
        offset: Byte offset of the member from the start of the record
        size: Bytes occupied by the member, None when runtime-sized
        padding: Bytes of padding between this member and the next one (or
            the end of the record)
    """

    offset: int
    size: int | None
    padding: int


@dataclass(frozen=True)
class MemoryLayout:
    """Result of :func:`memory_layout_of`."""

    offset: int
    contiguous: int


def round_up(value: int, modulo: int) -> int:
    remainder = value % modulo
    return value if remainder == 0 else value + modulo - remainder


def _scalar_size(scalar: Scalar) -> int:
    try:
        return SCALAR_SIZES[scalar.type]
    except KeyError:
        raise SchemaError(f"{scalar} has no memory layout") from None


def alignment_of(schema: Any) -> int:
    """Alignment in bytes of a schema."""
    match schema:
        case Decorated(inner=inner):
            align = schema.find(Align)
            return align.value if align else alignment_of(inner)
        case Scalar():
            return _scalar_size(schema)
        case Vector(primitive=primitive, count=count):
            return _scalar_size(primitive) * (2 if count == 2 else 4)
        case Matrix():
            return alignment_of(schema.column_type)
        case WgslArray(element=element):
            return alignment_of(element)
        case Atomic(inner=inner):
            return alignment_of(inner)
        case WgslStruct():
            return max(alignment_of(member) for member in schema.props.values())
        case Disarray() | Unstruct() | VertexFormat():
            return 1
    raise SchemaError(f"Cannot compute the alignment of {schema!r}")


def loose_alignment_of(schema: Any) -> int:
    """Alignment of a member inside a loose schema: 1 unless decorated."""
    if isinstance(schema, Decorated):
        align = schema.find(Align)
        if align:
            return align.value
    return 1


def _member_alignment(schema: Any, loose: bool) -> int:
    return loose_alignment_of(schema) if loose else alignment_of(schema)


def size_of(schema: Any) -> int | None:
    """Size in bytes of a schema, or None when it is runtime-sized."""
    match schema:
        case Decorated(inner=inner):
            size = schema.find(Size)
            return size.value if size else size_of(inner)
        case Scalar():
            return _scalar_size(schema)
        case Vector(primitive=primitive, count=count):
            return _scalar_size(primitive) * count
        case Matrix(columns=columns):
            column = schema.column_type
            return columns * round_up(size_of(column), alignment_of(column))
        case WgslArray(element=element, count=count):
            if count == 0:
                return None
            return count * element_stride(schema)
        case Disarray(element=element, count=count):
            if count == 0:
                return None
            return count * element_stride(schema)
        case Atomic(inner=inner):
            return size_of(inner)
        case WgslStruct() | Unstruct():
            return _record_size(schema)
        case VertexFormat(size=size):
            return size
    raise SchemaError(f"Cannot compute the size of {schema!r}")


def element_stride(array: WgslArray | Disarray) -> int:
    """Distance in bytes between consecutive array elements."""
    element = array.element
    loose = isinstance(array, Disarray)
    return round_up(size_of(element), _member_alignment(element, loose))


def _record_size(record: WgslStruct | Unstruct) -> int | None:
    loose = isinstance(record, Unstruct)
    end = 0
    for schema in record.props.values():
        end = round_up(end, _member_alignment(schema, loose))
        size = size_of(schema)
        if size is None:
            return None
        end += size
    if loose:
        return end
    return round_up(end, alignment_of(record))


def offsets_of(record: WgslStruct | Unstruct) -> dict[str, FieldOffset]:
    """Offsets of every member of a record, in declaration order."""
    loose = isinstance(record, Unstruct)
    placed: list[tuple[str, int, int | None]] = []
    offset = 0
    for name, schema in record.props.items():
        offset = round_up(offset, _member_alignment(schema, loose))
        size = size_of(schema)
        placed.append((name, offset, size))
        if size is not None:
            offset += size

    total = size_of(record)
    result: dict[str, FieldOffset] = {}
    for i, (name, offset, size) in enumerate(placed):
        if size is None:
            padding = 0
        elif i + 1 < len(placed):
            padding = placed[i + 1][1] - offset - size
        else:
            padding = (total or 0) - offset - size
        result[name] = FieldOffset(offset=offset, size=size, padding=padding)
    return result


def field_offsets(record: WgslStruct | Unstruct) -> list[tuple[str, int]]:
    return [(name, info.offset) for name, info in offsets_of(record).items()]


def is_contiguous(schema: Any) -> bool:
    """Whether the schema's bytes contain no padding at all."""
    match schema:
        case Decorated(inner=inner):
            size = schema.find(Size)
            if size and size.value != size_of(inner):
                return False
            return is_contiguous(inner)
        case Scalar() | Vector() | Atomic() | VertexFormat():
            return True
        case Matrix():
            column = schema.column_type
            return size_of(column) == alignment_of(column)
        case WgslArray(element=element) | Disarray(element=element):
            return element_stride(schema) == size_of(element) and is_contiguous(
                element
            )
        case WgslStruct() | Unstruct():
            return all(
                info.padding == 0 and is_contiguous(schema.props[name])
                for name, info in offsets_of(schema).items()
            )
    raise SchemaError(f"Cannot analyze the layout of {schema!r}")


def _data_spans(schema: Any, base: int, runtime_count: int) -> Iterator[tuple[int, int]]:
    """Yield [start, end) byte ranges that hold data, in increasing order."""
    size = size_of(schema)
    if size is not None and is_contiguous(schema):
        yield base, base + size
        return
    match schema:
        case Decorated(inner=inner):
            yield from _data_spans(inner, base, runtime_count)
        case Matrix(columns=columns):
            column = schema.column_type
            stride = round_up(size_of(column), alignment_of(column))
            for i in range(columns):
                yield base + i * stride, base + i * stride + size_of(column)
        case WgslArray(element=element, count=count) | Disarray(
            element=element, count=count
        ):
            stride = element_stride(schema)
            for i in range(count or runtime_count):
                yield from _data_spans(element, base + i * stride, runtime_count)
        case WgslStruct() | Unstruct():
            for name, info in offsets_of(schema).items():
                yield from _data_spans(
                    schema.props[name], base + info.offset, runtime_count
                )
        case _:
            raise SchemaError(f"Cannot analyze the layout of {schema!r}")


def _step(schema: Any, key: str | int) -> tuple[Any, int, int]:
    """Descend one path element. Returns (child schema, offset, index used)."""
    schema = schema.inner if isinstance(schema, Decorated) else schema
    match schema:
        case WgslStruct() | Unstruct():
            if key not in schema.props:
                raise ValueError(f"{schema} has no member {key!r}")
            return schema.props[key], offsets_of(schema)[key].offset, 0
        case Vector(primitive=primitive, count=count):
            index = key
            if isinstance(key, str):
                components = next((s for s in SWIZZLE_SETS if key in s), "")
                index = components.find(key) if len(key) == 1 else -1
            if not isinstance(index, int) or not 0 <= index < count:
                raise ValueError(f"{schema} has no component {key!r}")
            return primitive, index * _scalar_size(primitive), 0
        case Matrix(columns=columns):
            if not isinstance(key, int) or not 0 <= key < columns:
                raise ValueError(f"{schema} has no column {key!r}")
            column = schema.column_type
            return column, key * round_up(size_of(column), alignment_of(column)), 0
        case WgslArray(count=count) | Disarray(count=count):
            if not isinstance(key, int) or key < 0 or (count and key >= count):
                raise ValueError(f"{schema} has no element {key!r}")
            return schema.element, key * element_stride(schema), key
    raise ValueError(f"Cannot access {key!r} of {schema}")


def memory_layout_of(schema: Any, path: Sequence[str | int] = ()) -> MemoryLayout:
    """Locate a member of a schema and count the contiguous bytes from it.

    Args:
        schema: Root schema
        path: Member names, component letters and indices leading to the
            member, e.g. ``("velocity", "y")`` or ``(3, "position")``

    Returns:
        Byte offset of the member from the start of the root, and the number
        of bytes that can be copied from there without crossing padding.
        Runtime-sized arrays are treated as holding the elements up to the
        accessed index.

    Examples:
        >>> Boid = struct({"position": vec3f, "velocity": vec3f})
        >>> memory_layout_of(Boid, ("velocity", "y"))
        MemoryLayout(offset=20, contiguous=8)
    """
    offset = 0
    runtime_count = 1
    current = schema
    for key in path:
        current, step, index = _step(current, key)
        offset += step
        runtime_count = max(runtime_count, index + 1)

    for start, end in _merged(_data_spans(schema, 0, runtime_count)):
        if start <= offset < end:
            return MemoryLayout(offset=offset, contiguous=end - offset)
    return MemoryLayout(offset=offset, contiguous=0)


def _merged(spans: Iterator[tuple[int, int]]) -> Iterator[tuple[int, int]]:
    current: tuple[int, int] | None = None
    for start, end in spans:
        if current and start <= current[1]:
            current = (current[0], max(current[1], end))
            continue
        if current:
            yield current
        current = (start, end)
    if current:
        yield current
