"""Fill strategies, custom dropdown resolution and next-action selection."""

from .dropdown import DropdownResolver, DropdownResult, DropdownState
from .executor import FieldOutcome, FillExecutor, FillReport
from .next_action import NextActionResult, NextActionSelector

__all__ = [
    "DropdownResolver",
    "DropdownResult",
    "DropdownState",
    "FieldOutcome",
    "FillExecutor",
    "FillReport",
    "NextActionResult",
    "NextActionSelector",
]
