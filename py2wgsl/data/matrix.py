"""Square float matrix schemas."""

from dataclasses import dataclass

from py2wgsl.data.numeric import f32
from py2wgsl.data.vector import Vector
from py2wgsl.errors import SchemaError


@dataclass(frozen=True)
class Matrix:
    """Square matrix of 32-bit floats, stored as ``columns`` column vectors."""

    columns: int

    def __post_init__(self) -> None:
        if self.columns not in (2, 3, 4):
            raise SchemaError(f"Matrices are 2x2, 3x3 or 4x4, got {self.columns}")

    @property
    def column_type(self) -> Vector:
        return Vector(f32, self.columns)

    @property
    def type(self) -> str:
        return f"mat{self.columns}x{self.columns}f"

    def __str__(self) -> str:
        return self.type

    __repr__ = __str__


mat2x2f = Matrix(2)
mat3x3f = Matrix(3)
mat4x4f = Matrix(4)
