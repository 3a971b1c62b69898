"""Pipeline operations: stateless procedures over one project's directory.

Each public operation returns a Result instead of raising, and none of them
lock anything. Callers are expected to run them through the per-project
queue so that two operations never touch the same directory at once.
"""

from stencil.pipeline.build import run_build
from stencil.pipeline.manifest import rewrite_manifest, rewrite_manifest_data
from stencil.pipeline.mutate import update, update_server, update_view
from stencil.pipeline.names import validate_content, validate_name
from stencil.pipeline.runner import SubprocessRunner, ToolRunner
from stencil.pipeline.scaffold import scaffold

__all__ = [
    "SubprocessRunner",
    "ToolRunner",
    "rewrite_manifest",
    "rewrite_manifest_data",
    "run_build",
    "scaffold",
    "update",
    "update_server",
    "update_view",
    "validate_content",
    "validate_name",
]
