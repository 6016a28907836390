"""
WebStack Base Command Classes

Abstract base classes for consistent command structure.
"""

from .base_command import BaseCommand, CommandContext

__all__ = [
    "BaseCommand",
    "CommandContext",
]
