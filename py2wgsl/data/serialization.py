"""
Host-side serialization of schema values.

Values are written into a zeroed ``uint8`` backing buffer at the offsets the
layout engine computes, so the resulting bytes can be uploaded to a GPU
buffer as is. :func:`dtype_of` exposes the same layout as a numpy structured
dtype for zero-copy views over such buffers.
"""

from typing import Any

import numpy as np

from py2wgsl.data.array import Atomic, WgslArray
from py2wgsl.data.decorated import Decorated
from py2wgsl.data.layout import element_stride, offsets_of, size_of
from py2wgsl.data.loose import Disarray, Unstruct
from py2wgsl.data.matrix import Matrix
from py2wgsl.data.numeric import Scalar
from py2wgsl.data.struct import WgslStruct
from py2wgsl.data.vector import Vector
from py2wgsl.data.vertex_format import VertexFormat
from py2wgsl.errors import SchemaError

SCALAR_DTYPES = {
    "f32": "<f4",
    "f16": "<f2",
    "i32": "<i4",
    "u32": "<u4",
    "u16": "<u2",
}

CHANNEL_DTYPES = {"u1": "u1", "i1": "i1", "u2": "<u2", "i2": "<i2", "f2": "<f2"}

# Largest integer value of each normalized channel kind
NORMALIZED_RANGES = {"u1": 255, "i1": 127, "u2": 65535, "i2": 32767}


def with_count(schema: Any, count: int | None) -> Any:
    """Replace the runtime-sized array of a schema by one of ``count`` elements."""
    match schema:
        case Decorated(inner=inner, attribs=attribs):
            return Decorated(with_count(inner, count), attribs)
        case WgslArray(element=element, count=0) | Disarray(element=element, count=0):
            if count is None:
                raise SchemaError(f"{schema} is runtime-sized, pass an element count")
            return type(schema)(element, count)
        case WgslStruct() | Unstruct():
            *head, last = schema.props
            sized = with_count(schema.props[last], count)
            if sized == schema.props[last]:
                return schema
            props = {name: schema.props[name] for name in head}
            props[last] = sized
            return type(schema)(props, schema.label)
    return schema


def _scalar_dtype(scalar: Scalar) -> np.dtype:
    try:
        return np.dtype(SCALAR_DTYPES[scalar.type])
    except KeyError:
        raise SchemaError(f"{scalar} is not host-shareable") from None


def _padded(dtype: np.dtype, itemsize: int) -> np.dtype:
    if dtype.itemsize == itemsize:
        return dtype
    return np.dtype(
        {"names": ["value"], "formats": [dtype], "offsets": [0], "itemsize": itemsize}
    )


def dtype_of(schema: Any, count: int | None = None) -> np.dtype:
    """Numpy dtype with the exact memory layout of a schema.

    Array elements whose stride exceeds their size are wrapped in a
    single-field record named ``value``.

    Args:
        schema: Schema to describe
        count: Element count of a trailing runtime-sized array, if any

    Raises:
        SchemaError: If the schema is not host-shareable (e.g. bool) or
            is runtime-sized and no count was given
    """
    schema = with_count(schema, count)
    match schema:
        case Decorated(inner=inner):
            return dtype_of(inner)
        case Scalar():
            return _scalar_dtype(schema)
        case Atomic(inner=inner):
            return _scalar_dtype(inner)
        case Vector(primitive=primitive, count=components):
            return np.dtype((_scalar_dtype(primitive), (components,)))
        case Matrix(columns=columns):
            stride = size_of(schema) // columns // 4
            return np.dtype(("<f4", (columns, stride)))
        case VertexFormat(channel=channel):
            base = np.dtype(CHANNEL_DTYPES[channel])
            if schema.components == 1:
                return base
            return np.dtype((base, (schema.components,)))
        case WgslArray(element=element, count=n) | Disarray(element=element, count=n):
            item = _padded(dtype_of(element), element_stride(schema))
            return np.dtype((item, (n,)))
        case WgslStruct() | Unstruct():
            offsets = offsets_of(schema)
            return np.dtype(
                {
                    "names": list(schema.props),
                    "formats": [dtype_of(member) for member in schema.props.values()],
                    "offsets": [info.offset for info in offsets.values()],
                    "itemsize": size_of(schema),
                }
            )
    raise SchemaError(f"Cannot build a dtype for {schema!r}")


def _write_leaf(buffer: np.ndarray, offset: int, dtype: np.dtype, value: Any) -> None:
    raw = np.asarray(value, dtype=dtype.base).tobytes()
    buffer[offset : offset + len(raw)] = np.frombuffer(raw, dtype=np.uint8)


def _write(schema: Any, value: Any, buffer: np.ndarray, offset: int) -> None:
    match schema:
        case Decorated(inner=inner):
            _write(inner, value, buffer, offset)
        case Scalar() | Atomic() | Vector():
            _write_leaf(buffer, offset, dtype_of(schema), value)
        case Matrix(columns=columns):
            stride = size_of(schema) // columns
            column_dtype = dtype_of(schema.column_type)
            for i, column in enumerate(value):
                _write_leaf(buffer, offset + i * stride, column_dtype, column)
        case VertexFormat(channel=channel, normalized=normalized):
            if normalized:
                limit = NORMALIZED_RANGES[channel]
                low = -1.0 if channel[0] == "i" else 0.0
                value = np.rint(np.clip(np.asarray(value, float), low, 1.0) * limit)
            _write_leaf(buffer, offset, dtype_of(schema), value)
        case WgslArray(element=element, count=count) | Disarray(
            element=element, count=count
        ):
            if len(value) != count:
                raise ValueError(f"{schema} expects {count} elements, got {len(value)}")
            stride = element_stride(schema)
            for i, item in enumerate(value):
                _write(element, item, buffer, offset + i * stride)
        case WgslStruct() | Unstruct():
            for name, info in offsets_of(schema).items():
                if name not in value:
                    raise ValueError(f"Missing member '{name}' for {schema}")
                _write(schema.props[name], value[name], buffer, offset + info.offset)
        case _:
            raise SchemaError(f"Cannot serialize {schema!r}")


def _runtime_count(schema: Any, value: Any) -> int | None:
    """Number of elements the value holds for a trailing runtime-sized array."""
    match schema:
        case Decorated(inner=inner):
            return _runtime_count(inner, value)
        case WgslArray(count=0) | Disarray(count=0):
            return len(value)
        case WgslStruct() | Unstruct():
            last = list(schema.props)[-1]
            if last not in value:
                return None
            return _runtime_count(schema.props[last], value[last])
    return None


def to_bytes(schema: Any, value: Any) -> bytes:
    """Serialize a host value with the memory layout of a schema.

    Padding bytes are zero. A trailing runtime-sized array takes its element
    count from the value.

    Examples:
        >>> to_bytes(struct({"a": u32, "b": vec3u}), {"a": 1, "b": (2, 3, 4)})
        b'\\x01\\x00\\x00\\x00...'
    """
    schema = with_count(schema, _runtime_count(schema, value))
    buffer = np.zeros(size_of(schema), dtype=np.uint8)
    _write(schema, value, buffer, 0)
    return buffer.tobytes()


def _read_leaf(data: memoryview, offset: int, dtype: np.dtype) -> Any:
    return np.frombuffer(data, dtype=dtype, count=1, offset=offset)[0].item()


def _read(schema: Any, data: memoryview, offset: int) -> Any:
    match schema:
        case Decorated(inner=inner):
            return _read(inner, data, offset)
        case Scalar() | Atomic():
            return _read_leaf(data, offset, dtype_of(schema))
        case Vector(primitive=primitive, count=count):
            scalar = _scalar_dtype(primitive)
            values = np.frombuffer(data, dtype=scalar, count=count, offset=offset)
            return tuple(values.tolist())
        case Matrix(columns=columns):
            stride = size_of(schema) // columns
            return tuple(
                _read(schema.column_type, data, offset + i * stride)
                for i in range(columns)
            )
        case VertexFormat(channel=channel, normalized=normalized):
            base = np.dtype(CHANNEL_DTYPES[channel])
            values = np.frombuffer(
                data, dtype=base, count=schema.components, offset=offset
            ).astype(float if normalized else base)
            if normalized:
                values = np.maximum(values / NORMALIZED_RANGES[channel], -1.0)
            items = values.tolist()
            return items[0] if schema.components == 1 else tuple(items)
        case WgslArray(element=element, count=count) | Disarray(
            element=element, count=count
        ):
            stride = element_stride(schema)
            return [_read(element, data, offset + i * stride) for i in range(count)]
        case WgslStruct() | Unstruct():
            return {
                name: _read(schema.props[name], data, offset + info.offset)
                for name, info in offsets_of(schema).items()
            }
    raise SchemaError(f"Cannot deserialize {schema!r}")


def _infer_count(schema: Any, available: int) -> int | None:
    """Fit as many runtime-array elements as the byte count allows."""
    match schema:
        case Decorated(inner=inner):
            return _infer_count(inner, available)
        case WgslArray(count=0) | Disarray(count=0):
            return available // element_stride(schema)
        case WgslStruct() | Unstruct():
            last = list(schema.props)[-1]
            start = offsets_of(schema)[last].offset
            return _infer_count(schema.props[last], available - start)
    return None


def from_bytes(schema: Any, data: bytes, count: int | None = None) -> Any:
    """Deserialize bytes written with the memory layout of a schema.

    Args:
        schema: Layout of the data
        data: Raw bytes, at least ``size_of(schema)`` long
        count: Element count of a trailing runtime-sized array. Inferred from
            the length of ``data`` when omitted.

    Returns:
        Python values: numbers for scalars, tuples for vectors, tuples of
        columns for matrices, lists for arrays and dicts for records
    """
    if count is None:
        count = _infer_count(schema, len(data))
    sized = with_count(schema, count)
    required = size_of(sized)
    if len(data) < required:
        raise ValueError(f"{schema} needs {required} bytes, got {len(data)}")
    return _read(sized, memoryview(data), 0)
