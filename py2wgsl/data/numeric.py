"""Scalar schemas."""

from dataclasses import dataclass
from typing import Any

import numpy as np

# Host numpy types used when casting Python values to a scalar kind
_HOST_TYPES: dict[str, Any] = {
    "f32": np.float32,
    "f16": np.float16,
    "i32": np.int32,
    "u32": np.uint32,
    "u16": np.uint16,
}

ABSTRACT_TYPES = ("abstractInt", "abstractFloat")


@dataclass(frozen=True)
class Scalar:
    """Primitive scalar type.

    Attributes:
        type: WGSL name of the scalar (``f32``, ``i32``...), or one of the
            abstract literal kinds ``abstractInt``/``abstractFloat``
    """

    type: str

    @property
    def is_abstract(self) -> bool:
        return self.type in ABSTRACT_TYPES

    @property
    def is_float(self) -> bool:
        return self.type in ("f32", "f16", "abstractFloat")

    @property
    def is_integer(self) -> bool:
        return self.type in ("i32", "u32", "u16", "abstractInt")

    def __call__(self, value: Any = 0) -> Any:
        """Cast a host value the way the GPU would store it."""
        if self.type == "bool":
            return bool(value)
        if self.is_abstract:
            return float(value) if self.type == "abstractFloat" else int(value)
        host = _HOST_TYPES[self.type]
        if self.is_float:
            return float(host(value))
        # Integers wrap around like their 32/16-bit counterparts
        return int(np.array(int(value)).astype(host))

    def __str__(self) -> str:
        return self.type

    def __repr__(self) -> str:
        return self.type


bool_ = Scalar("bool")
f32 = Scalar("f32")
f16 = Scalar("f16")
i32 = Scalar("i32")
u32 = Scalar("u32")
u16 = Scalar("u16")

abstract_int = Scalar("abstractInt")
abstract_float = Scalar("abstractFloat")
