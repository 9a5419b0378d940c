"""Built-in terminal commands.

Dynamic commands are dispatched by name to functions registered here at
import time. Stored command data can select a built-in, never supply code.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import wraps
from typing import Callable, Optional, Sequence

from .config import COMMAND_DEFAULT_SORT, HELP_COLUMN_WIDTH
from .logging_utils import setup_logger
from .models import ProjectType
from .query import Condition, Operator, SortKey
from .store import CommandSource, ProjectSource

logger = setup_logger("builtins")

CLEAR_SENTINEL = "CLEAR_TERMINAL"

SKILLS_TEXT = """
= Technical Skills =

== Programming Languages ==
• JavaScript / TypeScript
• Python
• Go
• Java

== AI / Machine Learning ==
• TensorFlow / PyTorch
• Natural Language Processing
• Computer Vision
• Reinforcement Learning
• LLM Prompt Engineering

== Web Development ==
• React / Next.js
• Node.js / Express
• REST API Design
• GraphQL
• MongoDB / PostgreSQL

== DevOps ==
• Docker / Kubernetes
• CI/CD Pipelines
• AWS / GCP / Azure
• Linux System Administration
"""

# `projects <arg>` filters
PROJECT_FILTERS = {
    "ai": Condition("project_type", Operator.EQ, ProjectType.AI),
    "web": Condition("project_type", Operator.EQ, ProjectType.WEB),
    "mobile": Condition("project_type", Operator.EQ, ProjectType.MOBILE),
    "featured": Condition("featured", Operator.EQ, True),
}


@dataclass(frozen=True)
class ExecutionContext:
    """Collaborators a built-in may read from."""
    commands: CommandSource
    projects: ProjectSource
    skills_text: str = SKILLS_TEXT


BuiltinFn = Callable[[Sequence[str], ExecutionContext], str]

BUILTINS: dict[str, BuiltinFn] = {}


def builtin(name: str, error_message: Optional[str] = None) -> Callable[[BuiltinFn], BuiltinFn]:
    """Register a built-in under `name`.

    With `error_message`, any exception raised while building the output is
    logged and replaced by that message.
    """
    def decorator(fn: BuiltinFn) -> BuiltinFn:
        if error_message is None:
            BUILTINS[name] = fn
            return fn

        @wraps(fn)
        def guarded(args: Sequence[str], ctx: ExecutionContext) -> str:
            try:
                return fn(args, ctx)
            except Exception:
                logger.exception(f"❌ Built-in '{name}' failed")
                return error_message

        BUILTINS[name] = guarded
        return guarded

    return decorator


def get_builtin(name: str) -> Optional[BuiltinFn]:
    return BUILTINS.get(name)


@builtin("help", error_message="Error fetching commands")
def help_command(args: Sequence[str], ctx: ExecutionContext) -> str:
    conditions = [Condition("is_active", Operator.EQ, True)]
    if args:
        conditions.append(Condition("category", Operator.EQ, args[0].lower()))

    sort = [SortKey(field, direction) for field, direction in COMMAND_DEFAULT_SORT]
    commands = ctx.commands.find_all(conditions, sort)
    if not commands:
        return "No commands available"

    lines = ["Available commands:\n"]
    current_category = None
    for cmd in commands:
        if cmd.category != current_category:
            current_category = cmd.category
            lines.append(f"\n== {current_category.value.upper()} ==")
        lines.append(f"{cmd.name.ljust(HELP_COLUMN_WIDTH)} - {cmd.description or 'No description'}")
    return "\n".join(lines) + "\n"


@builtin("projects", error_message="Error fetching projects")
def projects_command(args: Sequence[str], ctx: ExecutionContext) -> str:
    conditions = []
    if args and args[0].lower() in PROJECT_FILTERS:
        conditions.append(PROJECT_FILTERS[args[0].lower()])

    projects = ctx.projects.find(conditions, [SortKey("order")])
    if not projects:
        return "No projects found"

    out = "Projects:\n\n"
    for project in projects:
        header = f"{project.title} [{project.project_type.value}]"
        out += f"{header}\n"
        out += f"{'-' * len(header)}\n"
        out += f"{project.short_description}\n"
        out += f"Technologies: {', '.join(project.technologies)}\n"
        if project.github_url:
            out += f"GitHub: {project.github_url}\n"
        if project.demo_url:
            out += f"Demo: {project.demo_url}\n"
        out += "\n"
    return out


@builtin("clear")
def clear_command(args: Sequence[str], ctx: ExecutionContext) -> str:
    return CLEAR_SENTINEL


@builtin("skills")
def skills_command(args: Sequence[str], ctx: ExecutionContext) -> str:
    return ctx.skills_text
