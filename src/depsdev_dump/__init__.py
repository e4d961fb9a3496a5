"""Dump deps.dev metadata for the workspace dependencies of a Cargo project."""

from .batch_client import BatchQueryRequest, DepsDevClient, build_batch_request
from .commands import DepsDevExtension, SlashCommandOutput, SlashCommandOutputSection
from .dependency import DependencyDeclaration
from .parsers import extract_workspace_dependencies, parse_cargo_manifest
from .worktree import LocalWorktree

__version__ = "0.1.0"

__all__ = [
    "BatchQueryRequest",
    "DependencyDeclaration",
    "DepsDevClient",
    "DepsDevExtension",
    "LocalWorktree",
    "SlashCommandOutput",
    "SlashCommandOutputSection",
    "build_batch_request",
    "extract_workspace_dependencies",
    "parse_cargo_manifest",
]
