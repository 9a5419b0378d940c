from __future__ import annotations

from .models import CommandKind, ContactStatus, ProjectType
from .query import Condition, Operator
from .store import Database


def collect_stats(db: Database) -> dict:
    """Dashboard counters for the admin area; every known bucket is present, even at zero.

    Project counts include inactive projects.
    """
    project_types = {t.value: 0 for t in ProjectType}
    project_types.update(db.projects.count_by("project_type", include_hidden=True))

    contacts = {"total": len(db.contacts)}
    contacts.update({s.value: 0 for s in ContactStatus})
    contacts.update(db.contacts.count_by("status"))

    command_kinds = {k.value: 0 for k in CommandKind}
    command_kinds.update(db.commands.count_by("kind"))

    return {
        "projects": {
            "total": db.projects.count(include_hidden=True),
            "featured": db.projects.count([Condition("featured", Operator.EQ, True)], include_hidden=True),
            "byType": project_types,
        },
        "contacts": contacts,
        "terminalCommands": {
            "total": len(db.commands),
            "active": db.commands.count([Condition("is_active", Operator.EQ, True)]),
            "byType": command_kinds,
        },
    }
