"""Resolution of item graphs into WGSL documents."""

from py2wgsl.resolution.context import BindingInfo, ResolutionCtx
from py2wgsl.resolution.resolve import ResolutionResult, resolve, resolve_with_ctx

__all__ = [
    "BindingInfo",
    "ResolutionCtx",
    "ResolutionResult",
    "resolve",
    "resolve_with_ctx",
]
