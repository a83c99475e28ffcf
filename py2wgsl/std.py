"""
WGSL builtin functions callable from shader code.

Python names are snake_case and map to the camelCase WGSL intrinsic, e.g.
``std.inverse_sqrt`` emits ``inverseSqrt``. Python's own ``abs``, ``min``,
``max``, ``round``, ``pow`` and the ``math`` functions are mapped to the same
intrinsics when used inside a shader function.
"""

import builtins
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from py2wgsl.data.array import Atomic
from py2wgsl.data.decorated import undecorate
from py2wgsl.data.numeric import bool_, f32, i32, u32
from py2wgsl.errors import NotInResolutionError
from py2wgsl.tgsl.conversion import convert_to, is_abstract, unify
from py2wgsl.tgsl.snippet import Snippet
from py2wgsl.types import UNKNOWN

if TYPE_CHECKING:
    from py2wgsl.resolution.context import ResolutionCtx


@dataclass(frozen=True)
class Intrinsic:
    """A WGSL builtin function.

    Attributes:
        name: WGSL name of the function
        returns: How the result type is derived: ``first`` (type of the
            first argument), ``component`` (its scalar component), ``bool``,
            ``u32``, ``atomic`` (inner type of the atomic argument) or
            ``void``
        pointer_args: Indices of arguments passed by pointer (``&x``)
    """

    name: str
    returns: str = "first"
    pointer_args: tuple[int, ...] = ()

    def __call__(self, *args: Any) -> Any:
        raise NotInResolutionError(f"std.{self.name}")

    def _result_type(self, args: list[Snippet], common: Any) -> Any:
        if self.returns == "void" or (not args and self.returns != "u32"):
            return UNKNOWN
        match self.returns:
            case "bool":
                return bool_
            case "u32":
                return u32
            case "atomic":
                atomic = undecorate(args[0].data_type)
                return atomic.inner if isinstance(atomic, Atomic) else UNKNOWN
            case "component":
                return common
        first = args[0].data_type
        if is_abstract(first) and not is_abstract(common):
            return common
        return first

    def generate(self, ctx: "ResolutionCtx", args: list[Snippet]) -> Snippet:
        """Emit a call, fixing abstract literal arguments to the common kind."""
        value_args = [a for i, a in enumerate(args) if i not in self.pointer_args]
        if self.returns == "atomic" and args:
            common = self._result_type(args, UNKNOWN)
        else:
            common = unify([a.data_type for a in value_args])

        rendered = []
        for i, arg in enumerate(args):
            if i in self.pointer_args:
                rendered.append(f"&{arg.value}")
            else:
                rendered.append(str(convert_to(ctx, arg, common).value))
        result_type = self._result_type(args, common)
        return Snippet(f"{self.name}({', '.join(rendered)})", result_type)


abs = Intrinsic("abs")
acos = Intrinsic("acos")
asin = Intrinsic("asin")
atan = Intrinsic("atan")
atan2 = Intrinsic("atan2")
ceil = Intrinsic("ceil")
clamp = Intrinsic("clamp")
cos = Intrinsic("cos")
cosh = Intrinsic("cosh")
cross = Intrinsic("cross")
degrees = Intrinsic("degrees")
exp = Intrinsic("exp")
exp2 = Intrinsic("exp2")
floor = Intrinsic("floor")
fma = Intrinsic("fma")
fract = Intrinsic("fract")
inverse_sqrt = Intrinsic("inverseSqrt")
log = Intrinsic("log")
log2 = Intrinsic("log2")
max = Intrinsic("max")
min = Intrinsic("min")
mix = Intrinsic("mix")
normalize = Intrinsic("normalize")
pow = Intrinsic("pow")
radians = Intrinsic("radians")
reflect = Intrinsic("reflect")
round = Intrinsic("round")
saturate = Intrinsic("saturate")
sign = Intrinsic("sign")
sin = Intrinsic("sin")
sinh = Intrinsic("sinh")
smoothstep = Intrinsic("smoothstep")
sqrt = Intrinsic("sqrt")
step = Intrinsic("step")
tan = Intrinsic("tan")
tanh = Intrinsic("tanh")
transpose = Intrinsic("transpose")
trunc = Intrinsic("trunc")
count_one_bits = Intrinsic("countOneBits")
reverse_bits = Intrinsic("reverseBits")
select = Intrinsic("select")

dot = Intrinsic("dot", "component")
length = Intrinsic("length", "component")
distance = Intrinsic("distance", "component")
determinant = Intrinsic("determinant", "component")

all = Intrinsic("all", "bool")
any = Intrinsic("any", "bool")

array_length = Intrinsic("arrayLength", "u32", pointer_args=(0,))

atomic_load = Intrinsic("atomicLoad", "atomic", pointer_args=(0,))
atomic_store = Intrinsic("atomicStore", "void", pointer_args=(0,))
atomic_add = Intrinsic("atomicAdd", "atomic", pointer_args=(0,))
atomic_sub = Intrinsic("atomicSub", "atomic", pointer_args=(0,))
atomic_max = Intrinsic("atomicMax", "atomic", pointer_args=(0,))
atomic_min = Intrinsic("atomicMin", "atomic", pointer_args=(0,))
atomic_and = Intrinsic("atomicAnd", "atomic", pointer_args=(0,))
atomic_or = Intrinsic("atomicOr", "atomic", pointer_args=(0,))
atomic_xor = Intrinsic("atomicXor", "atomic", pointer_args=(0,))
atomic_exchange = Intrinsic("atomicExchange", "atomic", pointer_args=(0,))

workgroup_barrier = Intrinsic("workgroupBarrier", "void")
storage_barrier = Intrinsic("storageBarrier", "void")

# Host callables that stand for an intrinsic or a cast inside shader code
PYTHON_BUILTINS: dict[Any, Any] = {
    builtins.abs: abs,
    builtins.min: min,
    builtins.max: max,
    builtins.round: round,
    builtins.pow: pow,
    builtins.float: f32,
    builtins.int: i32,
    builtins.bool: bool_,
    math.sin: sin,
    math.cos: cos,
    math.tan: tan,
    math.asin: asin,
    math.acos: acos,
    math.atan: atan,
    math.atan2: atan2,
    math.sinh: sinh,
    math.cosh: cosh,
    math.tanh: tanh,
    math.sqrt: sqrt,
    math.exp: exp,
    math.log: log,
    math.log2: log2,
    math.floor: floor,
    math.ceil: ceil,
    math.trunc: trunc,
    math.degrees: degrees,
    math.radians: radians,
    math.pow: pow,
    math.fabs: abs,
}

__all__ = [
    name for name, value in list(globals().items()) if isinstance(value, Intrinsic)
]
