from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import ValidationError

from .logging_utils import setup_logger
from .models import CommandCreate, CommandDefinition, Project, ProjectCreate, slugify
from .store import Database

logger = setup_logger("seed")


def load_seed(seed_file: Path, db: Database) -> dict[str, dict[str, int]]:
    """
    Load commands and projects from a YAML seed file into the stores.

    Args:
        seed_file: YAML file with top-level `commands` and `projects` lists
        db: target stores

    Returns:
        dict: `created` and `updated` counts, each keyed by `commands` and `projects`

    Behaviour:
        - missing or empty file: nothing is loaded
        - items that fail validation are skipped with a warning
        - items whose command name / project slug already exist are
          overwritten with the seeded fields (hidden projects included), so
          re-seeding restores tampered or deactivated defaults
    """
    created = {"commands": 0, "projects": 0}
    updated = {"commands": 0, "projects": 0}
    result = {"created": created, "updated": updated}
    if not seed_file.exists():
        logger.warning(f"⚠️ Seed file not found: {seed_file}")
        return result

    data = yaml.safe_load(seed_file.read_text(encoding="utf-8"))
    if not data:
        return result
    if not isinstance(data, dict):
        raise ValueError(f"Seed file must contain a mapping: {seed_file}")

    for item in data.get("commands") or []:
        try:
            fields = CommandCreate.model_validate(item)
        except ValidationError as e:
            logger.warning(f"⚠️ Skipping invalid command {item!r}: {e.error_count()} error(s)")
            continue
        existing = db.commands.find_by_name(fields.name, active_only=False)
        if existing:
            db.commands.update(existing.id, fields.model_dump())
            updated["commands"] += 1
        else:
            db.commands.insert(CommandDefinition(**fields.model_dump()))
            created["commands"] += 1

    for item in data.get("projects") or []:
        try:
            fields = ProjectCreate.model_validate(item)
        except ValidationError as e:
            logger.warning(f"⚠️ Skipping invalid project {item!r}: {e.error_count()} error(s)")
            continue
        fields.slug = fields.slug or slugify(fields.title)
        existing = db.projects.find_by_slug(fields.slug, include_hidden=True)
        if existing:
            db.projects.update(existing.id, fields.model_dump(), include_hidden=True)
            updated["projects"] += 1
        else:
            db.projects.insert(Project(**fields.model_dump()))
            created["projects"] += 1

    logger.info(f"🌱 Seed loaded from {seed_file.name}: {result}")
    return result
