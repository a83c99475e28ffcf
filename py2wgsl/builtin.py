"""Pipeline-provided builtin values, usable as members of entry point IO."""

from py2wgsl.data.attributes import builtin
from py2wgsl.data.numeric import bool_, f32, u32
from py2wgsl.data.vector import vec3u, vec4f

vertex_index = builtin("vertex_index", u32)
instance_index = builtin("instance_index", u32)
position = builtin("position", vec4f)
front_facing = builtin("front_facing", bool_)
frag_depth = builtin("frag_depth", f32)
sample_index = builtin("sample_index", u32)
sample_mask = builtin("sample_mask", u32)
local_invocation_id = builtin("local_invocation_id", vec3u)
local_invocation_index = builtin("local_invocation_index", u32)
global_invocation_id = builtin("global_invocation_id", vec3u)
workgroup_id = builtin("workgroup_id", vec3u)
num_workgroups = builtin("num_workgroups", vec3u)
