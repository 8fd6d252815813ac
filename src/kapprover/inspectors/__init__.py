"""Inspectors: named policy checks composed into an ordered pipeline."""
from __future__ import annotations

from kapprover.inspectors.base import Inspector
from kapprover.inspectors.builtin import (
    GroupInspector,
    UsernameInspector,
    default_inspector_registry,
)
from kapprover.inspectors.pipeline import (
    InspectorPipeline,
    NamedPlugin,
    PipelineBuilder,
    parse_token,
    resolve_plugin,
)

__all__ = [
    "GroupInspector",
    "Inspector",
    "InspectorPipeline",
    "NamedPlugin",
    "PipelineBuilder",
    "UsernameInspector",
    "default_inspector_registry",
    "parse_token",
    "resolve_plugin",
]
