"""Python function bodies to WGSL: transpiler, IR and code generator."""

from py2wgsl.tgsl.comptime import Comptime, comptime
from py2wgsl.tgsl.generator import FunctionGenerator, host_lookup
from py2wgsl.tgsl.transpiler import transpile, transpile_source

__all__ = [
    "Comptime",
    "FunctionGenerator",
    "comptime",
    "host_lookup",
    "transpile",
    "transpile_source",
]
