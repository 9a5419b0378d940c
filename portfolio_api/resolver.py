from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from .logging_utils import setup_logger
from .models import CommandDefinition, CommandKind
from .store import CommandSource

logger = setup_logger("resolver")


class EmptyCommandError(ValueError):
    """Raised when the terminal receives no command text."""


@dataclass(frozen=True)
class ParsedCommand:
    name: str
    args: tuple[str, ...] = ()


@dataclass(frozen=True)
class ResolvedCommand:
    """An active command found in the registry.

    For alias commands `alias_target` holds the single directly-named target,
    or None when that target is missing or inactive.
    """
    command: CommandDefinition
    args: tuple[str, ...] = ()
    alias_target: Optional[CommandDefinition] = None

    @property
    def name(self) -> str:
        return self.command.name

    @property
    def kind(self) -> CommandKind:
        return self.command.kind


@dataclass(frozen=True)
class NotFound:
    name: str
    args: tuple[str, ...] = ()


Resolution = Union[ResolvedCommand, NotFound]


def parse_command(raw_input: str | None) -> ParsedCommand:
    """Split terminal input on whitespace: first token (lower-cased) is the name.

    There is no quoting or escaping; every other token is a positional argument.
    """
    tokens = (raw_input or "").split()
    if not tokens:
        raise EmptyCommandError("Command is required")
    return ParsedCommand(name=tokens[0].lower(), args=tuple(tokens[1:]))


def resolve(raw_input: str | None, store: CommandSource) -> Resolution:
    """
    Resolve terminal input against the command registry.

    Resolution policy:
    1. Exact, case-insensitive name lookup among active commands
    2. Alias commands get exactly one more lookup for their target;
       alias chains are never followed
    3. Anything else is NotFound (a content response, not an error)
    """
    parsed = parse_command(raw_input)
    logger.debug(f"🔍 Resolving command '{parsed.name}' args={list(parsed.args)}")

    command = store.find_by_name(parsed.name)
    if command is None:
        logger.debug(f"❌ No active command named '{parsed.name}'")
        return NotFound(name=parsed.name, args=parsed.args)

    target = None
    if command.kind == CommandKind.ALIAS and command.alias_target:
        target = store.find_by_name(command.alias_target)
        if target is None:
            logger.warning(f"⚠️ Alias '{command.name}' points to missing command '{command.alias_target}'")
        else:
            logger.debug(f"🔗 Alias '{command.name}' -> '{target.name}'")

    return ResolvedCommand(command=command, args=parsed.args, alias_target=target)
