"""
Post processor module - ABB RAPID module generation.

The generator walks an action list in two passes: a declare pass that
collects speed data and target declarations, and an emit pass that writes
the instructions of ``PROC main``.
"""

from openrapid.postprocessor.base import GenerationContext, GeneratorConfig
from openrapid.postprocessor.rapid import RAPIDGenerator, collect_tools, collect_work_objects

__all__ = [
    "GenerationContext",
    "GeneratorConfig",
    "RAPIDGenerator",
    "collect_tools",
    "collect_work_objects",
]
