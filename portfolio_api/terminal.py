from __future__ import annotations

import time
from dataclasses import dataclass, field
from pathlib import Path

from .builtins import SKILLS_TEXT, ExecutionContext
from .config import settings
from .executor import execute
from .logging_utils import create_session_id, log_execution, setup_logger
from .resolver import EmptyCommandError, NotFound, resolve
from .store import Database


def load_skills_text(skills_file: str = "") -> str:
    """Skills text from SKILLS_FILE when configured, else the bundled text."""
    if skills_file:
        path = Path(skills_file)
        if path.is_file():
            return path.read_text(encoding="utf-8")
    return SKILLS_TEXT


@dataclass
class TerminalService:
    """Runs terminal input: resolve against the registry, execute, log.

    `run` raises only EmptyCommandError; every other condition is output text.
    """

    db: Database
    skills_text: str = field(default_factory=lambda: load_skills_text(settings.skills_file))

    def __post_init__(self):
        self.logger = setup_logger("terminal")
        self.context = ExecutionContext(
            commands=self.db.commands,
            projects=self.db.projects,
            skills_text=self.skills_text,
        )

    def run(self, command_text: str | None) -> str:
        session_id = create_session_id()
        start_time = time.time()

        try:
            resolved = resolve(command_text, self.db.commands)
        except EmptyCommandError:
            raise
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            log_execution(
                self.logger, session_id, (command_text or "").strip(), "unknown",
                False, duration_ms, "error", error=str(e)
            )
            raise

        output = execute(resolved, resolved.args, self.context)
        duration_ms = (time.time() - start_time) * 1000

        if isinstance(resolved, NotFound):
            log_execution(
                self.logger, session_id, resolved.name, "none",
                False, duration_ms, "not_found", args=list(resolved.args)
            )
        else:
            log_execution(
                self.logger, session_id, resolved.name, resolved.kind.value,
                True, duration_ms, "executed", args=list(resolved.args), output=output
            )
        return output
