"""Tests for YAML seed loading."""

from pathlib import Path

from portfolio_api.config import PACKAGE_DIR
from portfolio_api.models import CommandKind
from portfolio_api.seed import load_seed
from portfolio_api.store import create_database

NOTHING = {"commands": 0, "projects": 0}


def write_seed(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "seed.yml"
    path.write_text(text, encoding="utf-8")
    return path


def test_bundled_seed_loads():
    db = create_database()
    result = load_seed(PACKAGE_DIR / "seed.yml", db)
    assert result["created"]["commands"] >= 6
    assert result["created"]["projects"] >= 1
    assert result["updated"] == NOTHING
    assert db.commands.find_by_name("help").kind == CommandKind.DYNAMIC
    assert db.commands.find_by_name("whoami").alias_target == "about"
    assert db.commands.find_by_name("ls").alias_target == "projects"
    assert db.commands.find_by_name("hello").response_text.startswith("Hello there!")


def test_missing_file_loads_nothing(tmp_path):
    db = create_database()
    assert load_seed(tmp_path / "nope.yml", db) == {"created": NOTHING, "updated": NOTHING}


def test_invalid_items_are_skipped(tmp_path):
    seed = write_seed(tmp_path, """
commands:
  - name: Ping
    responseText: pong
  - name: ll
    kind: alias
  - description: no name
projects:
  - title: Only Title
  - title: Full Project
    description: d
    shortDescription: s
""")
    db = create_database()
    result = load_seed(seed, db)
    assert result["created"] == {"commands": 1, "projects": 1}
    assert db.commands.find_by_name("ping").response_text == "pong"
    assert db.projects.find_by_slug("full-project") is not None


def test_loading_twice_updates_in_place(tmp_path):
    seed = write_seed(tmp_path, "commands:\n  - name: ping\n    responseText: pong\n")
    db = create_database()
    load_seed(seed, db)
    assert load_seed(seed, db) == {"created": NOTHING, "updated": {"commands": 1, "projects": 0}}
    assert len(db.commands) == 1


def test_reseed_restores_tampered_command():
    db = create_database()
    seed = PACKAGE_DIR / "seed.yml"
    load_seed(seed, db)
    about = db.commands.find_by_name("about")
    original_text = about.response_text
    db.commands.update(about.id, {"response_text": "tampered", "is_active": False})
    assert db.commands.find_by_name("about") is None

    load_seed(seed, db)
    restored = db.commands.find_by_name("about")
    assert restored.id == about.id
    assert restored.response_text == original_text
    assert restored.is_active is True


def test_reseed_restores_hidden_project(tmp_path):
    seed = write_seed(tmp_path, """
projects:
  - title: Full Project
    description: d
    shortDescription: s
""")
    db = create_database()
    load_seed(seed, db)
    project = db.projects.find_by_slug("full-project")
    db.projects.update(project.id, {"active": False, "description": "changed"})

    result = load_seed(seed, db)
    assert result["updated"]["projects"] == 1
    assert len(db.projects) == 1
    restored = db.projects.find_by_slug("full-project")
    assert restored.id == project.id
    assert restored.description == "d"


def test_empty_file(tmp_path):
    db = create_database()
    assert load_seed(write_seed(tmp_path, ""), db) == {"created": NOTHING, "updated": NOTHING}
