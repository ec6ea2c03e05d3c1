"""
Tool-call helpers shared by every backend.

Tool *execution* lives in :mod:`verdant.skills`; this package only deals with turning model
output into canonical :class:`~verdant.core.schema.ToolCall` objects.
"""

from verdant.tools.action_blocks import (
    DEFAULT_HARVEST_REASON,
    ActionBlockResult,
    extract_action_blocks,
    normalize_action_args,
    normalize_variety,
)

__all__ = [
    "DEFAULT_HARVEST_REASON",
    "ActionBlockResult",
    "extract_action_blocks",
    "normalize_action_args",
    "normalize_variety",
]
