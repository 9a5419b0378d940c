from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from .config import CONTACT_DEFAULT_SORT, COMMAND_DEFAULT_SORT, PROJECT_DEFAULT_SORT, settings
from .logging_utils import setup_logger
from .models import (
    CommandCreate,
    CommandDefinition,
    CommandUpdate,
    Contact,
    ContactSubmission,
    ContactUpdate,
    Project,
    ProjectCreate,
    ProjectUpdate,
    TerminalRequest,
    slugify,
    utcnow,
)
from .query import QueryError, SortKey, build_listing_query, fold_query_params
from .resolver import EmptyCommandError
from .security import require_admin
from .seed import load_seed
from .stats import collect_stats
from .store import Database, create_database
from .terminal import TerminalService

VERSION = "1.0.0"
OBJECT_ID_RE = re.compile(r"^[0-9a-f]{32}$")

logger = setup_logger("api")

app = FastAPI(title="Portfolio API", version=VERSION)

origins = (
    [o.strip() for o in settings.cors_origins.split(",")]
    if getattr(settings, "cors_origins", None)
    else ["*"]
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "X-API-Key"],
)

DB: Database = create_database()
load_seed(Path(settings.seed_file), DB)
TERMINAL = TerminalService(db=DB)


def _dump(doc) -> dict:
    return doc.model_dump(mode="json", by_alias=True, exclude={"version"})


def _invalid_input(e: ValidationError) -> HTTPException:
    messages = ". ".join(err["msg"] for err in e.errors())
    return HTTPException(400, detail=f"Invalid input data. {messages}")


def _listing_params(request: Request) -> dict:
    return fold_query_params(request.query_params.multi_items())


@app.get("/health")
def health(response: Response):
    response.headers["Cache-Control"] = "no-store"
    return {
        "status": "ok",
        "service": "portfolio-api",
        "version": VERSION,
        "time": datetime.now().astimezone().isoformat()
    }


# --- Terminal -----------------------------------------------------------------

@app.post("/api/terminal")
def process_command(payload: Optional[TerminalRequest] = None):
    try:
        output = TERMINAL.run(payload.command if payload else None)
    except EmptyCommandError as e:
        raise HTTPException(400, detail=str(e))
    return {"status": "success", "data": {"output": output}}


@app.get("/api/terminal/commands", dependencies=[Depends(require_admin)])
def list_commands():
    sort = [SortKey(field, direction) for field, direction in COMMAND_DEFAULT_SORT]
    commands = DB.commands.find_all(sort=sort)
    return {
        "status": "success",
        "results": len(commands),
        "data": {"commands": [_dump(c) for c in commands]},
    }


@app.get("/api/terminal/commands/{command_id}", dependencies=[Depends(require_admin)])
def get_command(command_id: str):
    command = DB.commands.get(command_id)
    if command is None:
        raise HTTPException(404, detail="Command not found")
    return {"status": "success", "data": {"command": _dump(command)}}


@app.post("/api/terminal/commands", status_code=201, dependencies=[Depends(require_admin)])
def create_command(body: CommandCreate):
    if DB.commands.find_by_name(body.name, active_only=False):
        raise HTTPException(400, detail="Command already exists")
    command = DB.commands.insert(CommandDefinition(**body.model_dump()))
    logger.info(f"➕ Command created: {command.name} ({command.kind.value})")
    return {"status": "success", "data": {"command": _dump(command)}}


@app.patch("/api/terminal/commands/{command_id}", dependencies=[Depends(require_admin)])
def update_command(command_id: str, body: CommandUpdate):
    current = DB.commands.get(command_id)
    if current is None:
        raise HTTPException(404, detail="Command not found")

    changes = body.model_dump(exclude_unset=True)
    try:
        # Re-check the merged definition with the create rules (name, alias target)
        merged = CommandCreate.model_validate({**current.model_dump(), **changes})
    except ValidationError as e:
        raise _invalid_input(e)

    existing = DB.commands.find_by_name(merged.name, active_only=False)
    if existing is not None and existing.id != command_id:
        raise HTTPException(400, detail="Command name already exists")

    changes["name"] = merged.name
    if "alias_target" in changes:
        changes["alias_target"] = merged.alias_target
    command = DB.commands.update(command_id, changes)
    return {"status": "success", "data": {"command": _dump(command)}}


@app.delete("/api/terminal/commands/{command_id}", status_code=204, dependencies=[Depends(require_admin)])
def delete_command(command_id: str):
    if DB.commands.delete(command_id) is None:
        raise HTTPException(404, detail="Command not found")
    return Response(status_code=204)


# --- Projects -----------------------------------------------------------------

@app.get("/api/projects")
def list_projects(request: Request):
    try:
        spec = build_listing_query(
            _listing_params(request), Project, PROJECT_DEFAULT_SORT, settings.default_page_size
        )
    except QueryError as e:
        raise HTTPException(400, detail=str(e))
    projects, total = DB.projects.query(spec)
    return {
        "status": "success",
        "results": len(projects),
        "total": total,
        "page": spec.page,
        "pages": spec.total_pages(total),
        "data": {"projects": [spec.project(p) for p in projects]},
    }


@app.get("/api/projects/{key}")
def get_project(key: str):
    if OBJECT_ID_RE.match(key):
        project = DB.projects.get(key)
    else:
        project = DB.projects.find_by_slug(key)
    if project is None:
        raise HTTPException(404, detail="No project found with that ID or slug")
    return {"status": "success", "data": {"project": _dump(project)}}


@app.post("/api/projects", status_code=201, dependencies=[Depends(require_admin)])
def create_project(body: ProjectCreate):
    body.slug = body.slug or slugify(body.title)
    if not body.slug:
        raise HTTPException(400, detail="Cannot derive a slug from the project title")
    if DB.projects.find_by_slug(body.slug, include_hidden=True):
        raise HTTPException(400, detail=f"Duplicate field value: {body.slug}. Please use another value.")
    project = DB.projects.insert(Project(**body.model_dump()))
    logger.info(f"➕ Project created: {project.slug}")
    return {"status": "success", "data": {"project": _dump(project)}}


@app.patch("/api/projects/{project_id}", dependencies=[Depends(require_admin)])
def update_project(project_id: str, body: ProjectUpdate):
    if DB.projects.get(project_id) is None:
        raise HTTPException(404, detail="No project found with that ID")

    changes = body.model_dump(exclude_unset=True)
    if changes.get("title") and not changes.get("slug"):
        changes["slug"] = slugify(changes["title"])
    if changes.get("slug"):
        existing = DB.projects.find_by_slug(changes["slug"], include_hidden=True)
        if existing is not None and existing.id != project_id:
            raise HTTPException(400, detail=f"Duplicate field value: {changes['slug']}. Please use another value.")

    try:
        project = DB.projects.update(project_id, changes)
    except ValidationError as e:
        raise _invalid_input(e)
    return {"status": "success", "data": {"project": _dump(project)}}


@app.delete("/api/projects/{project_id}", status_code=204, dependencies=[Depends(require_admin)])
def delete_project(project_id: str):
    if DB.projects.delete(project_id) is None:
        raise HTTPException(404, detail="No project found with that ID")
    return Response(status_code=204)


# --- Contacts -----------------------------------------------------------------

@app.post("/api/contacts", status_code=201)
def submit_contact(body: ContactSubmission, request: Request):
    contact = DB.contacts.insert(Contact(
        **body.model_dump(),
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    ))
    logger.info(f"📨 Contact submission stored: {contact.id}")
    return {
        "status": "success",
        "message": "Contact form submitted successfully",
        "data": {"id": contact.id},
    }


@app.get("/api/contacts", dependencies=[Depends(require_admin)])
def list_contacts(request: Request):
    try:
        spec = build_listing_query(
            _listing_params(request), Contact, CONTACT_DEFAULT_SORT, settings.default_page_size
        )
    except QueryError as e:
        raise HTTPException(400, detail=str(e))
    contacts, total = DB.contacts.query(spec)
    return {
        "status": "success",
        "results": len(contacts),
        "total": total,
        "page": spec.page,
        "pages": spec.total_pages(total),
        "data": {"contacts": [spec.project(c) for c in contacts]},
    }


@app.get("/api/contacts/{contact_id}", dependencies=[Depends(require_admin)])
def get_contact(contact_id: str):
    contact = DB.contacts.get(contact_id)
    if contact is None:
        raise HTTPException(404, detail="No contact found with that ID")
    return {"status": "success", "data": {"contact": _dump(contact)}}


@app.patch("/api/contacts/{contact_id}", dependencies=[Depends(require_admin)])
def update_contact(contact_id: str, body: ContactUpdate):
    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    if changes.get("replied"):
        changes["reply_date"] = utcnow()
    contact = DB.contacts.update(contact_id, changes)
    if contact is None:
        raise HTTPException(404, detail="No contact found with that ID")
    return {"status": "success", "data": {"contact": _dump(contact)}}


@app.delete("/api/contacts/{contact_id}", status_code=204, dependencies=[Depends(require_admin)])
def delete_contact(contact_id: str):
    if DB.contacts.delete(contact_id) is None:
        raise HTTPException(404, detail="No contact found with that ID")
    return Response(status_code=204)


# --- Admin --------------------------------------------------------------------

@app.get("/api/admin/stats", dependencies=[Depends(require_admin)])
def admin_stats():
    return {"status": "success", "data": {"stats": collect_stats(DB)}}


@app.post("/api/admin/seed", dependencies=[Depends(require_admin)])
def admin_seed():
    result = load_seed(Path(settings.seed_file), DB)
    return {"status": "success", "data": result}
