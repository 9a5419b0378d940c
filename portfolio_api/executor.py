from __future__ import annotations

from typing import Optional, Sequence

from .builtins import ExecutionContext, get_builtin
from .logging_utils import setup_logger
from .models import CommandKind
from .resolver import NotFound, Resolution, ResolvedCommand

logger = setup_logger("executor")

NO_OUTPUT = "No output"
NOT_IMPLEMENTED = "Command processing not implemented"
AI_NOT_IMPLEMENTED = "AI command processing not yet implemented"
INVALID_ALIAS = "Invalid alias configuration"


def not_found_message(name: str) -> str:
    return f"Command not found: {name}. Type 'help' to see available commands."


def execute(
    resolved: Resolution,
    args: Optional[Sequence[str]],
    context: ExecutionContext,
) -> str:
    """Produce the terminal output for a resolved command.

    Unknown commands, broken aliases and empty listings are rendered as
    ordinary output text; nothing here raises for content-level conditions.
    """
    if isinstance(resolved, NotFound):
        return not_found_message(resolved.name)

    if args is None:
        args = resolved.args
    kind = resolved.kind

    if kind == CommandKind.STATIC:
        return resolved.command.response_text or NO_OUTPUT
    if kind == CommandKind.ALIAS:
        return _execute_alias(resolved)
    if kind == CommandKind.DYNAMIC:
        return _execute_dynamic(resolved, args, context)
    if kind == CommandKind.AI:
        return AI_NOT_IMPLEMENTED
    return "Unknown command type"


def _execute_alias(resolved: ResolvedCommand) -> str:
    """Single-hop alias: only the directly named target is consulted."""
    target_name = resolved.command.alias_target
    if not target_name:
        return INVALID_ALIAS
    target = resolved.alias_target
    if target is None:
        return f"Alias target not found: {target_name}"
    if target.kind == CommandKind.ALIAS:
        return f"Alias target is itself an alias: {target_name}"
    return target.response_text or NO_OUTPUT


def _execute_dynamic(resolved: ResolvedCommand, args: Sequence[str], context: ExecutionContext) -> str:
    fn = get_builtin(resolved.name)
    if fn is not None:
        return fn(args, context)
    if resolved.command.script:
        logger.warning(f"⚠️ Ignoring stored script for dynamic command '{resolved.name}'")
    return NOT_IMPLEMENTED
