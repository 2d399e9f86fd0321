"""
Application Commands (CQRS write side)

Contains:
    - match_commands.py: CreateMatchCommand, RemoveMatchCommand, ReviewMatchCommand
"""

from src.application.commands.match_commands import (
    CreateMatchCommand,
    RemoveMatchCommand,
    ReviewMatchCommand,
)

__all__ = ["CreateMatchCommand", "RemoveMatchCommand", "ReviewMatchCommand"]
