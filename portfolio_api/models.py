from __future__ import annotations

import re
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex


def slugify(text: str) -> str:
    """Turn a project title into a URL slug ("My App!" -> "my-app")."""
    slug = text.lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[\s_-]+", "-", slug)
    return slug.strip("-")


class ApiModel(BaseModel):
    """Base for every API-facing model: camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Document(ApiModel):
    """Fields the document store maintains for every stored record."""
    id: str = Field(default_factory=new_id)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    version: int = 0


# --- Terminal commands -------------------------------------------------------

class CommandKind(str, Enum):
    STATIC = "static"
    DYNAMIC = "dynamic"
    ALIAS = "alias"
    AI = "ai"


class CommandCategory(str, Enum):
    GENERAL = "general"
    PROJECT = "project"
    ABOUT = "about"
    SKILL = "skill"
    FUN = "fun"
    SYSTEM = "system"


class CommandFields(ApiModel):
    name: str
    description: Optional[str] = None
    response_text: Optional[str] = None
    kind: CommandKind = CommandKind.STATIC
    alias_target: Optional[str] = None
    # Kept for stored data compatibility; never executed
    script: Optional[str] = None
    is_active: bool = True
    category: CommandCategory = CommandCategory.GENERAL
    order: int = 0

    @field_validator("name")
    @classmethod
    def _normalize_name(cls, v: str) -> str:
        v = v.strip().lower()
        if not v:
            raise ValueError("Command is required")
        if any(ch.isspace() for ch in v):
            raise ValueError("Command name cannot contain whitespace")
        return v

    @field_validator("alias_target")
    @classmethod
    def _normalize_alias_target(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip().lower() or None


class CommandCreate(CommandFields):
    @model_validator(mode="after")
    def _alias_needs_target(self) -> "CommandCreate":
        if self.kind == CommandKind.ALIAS and not self.alias_target:
            raise ValueError("aliasTarget is required for alias commands")
        return self


class CommandUpdate(ApiModel):
    name: Optional[str] = None
    description: Optional[str] = None
    response_text: Optional[str] = None
    kind: Optional[CommandKind] = None
    alias_target: Optional[str] = None
    script: Optional[str] = None
    is_active: Optional[bool] = None
    category: Optional[CommandCategory] = None
    order: Optional[int] = None


class CommandDefinition(Document, CommandFields):
    pass


class TerminalRequest(BaseModel):
    command: Optional[str] = None


# --- Projects ----------------------------------------------------------------

class ProjectType(str, Enum):
    AI = "AI"
    WEB = "Web"
    MOBILE = "Mobile"
    OTHER = "Other"


def _check_github_url(v: Optional[str]) -> Optional[str]:
    if v and not v.startswith("https://github.com/"):
        raise ValueError("GitHub URL must start with https://github.com/")
    return v or None


def _check_demo_url(v: Optional[str]) -> Optional[str]:
    if v and not v.startswith("http"):
        raise ValueError("Demo URL must be a valid URL")
    return v or None


GithubUrl = Annotated[Optional[str], AfterValidator(_check_github_url)]
DemoUrl = Annotated[Optional[str], AfterValidator(_check_demo_url)]


class ProjectFields(ApiModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1)
    short_description: str = Field(..., min_length=1, max_length=200)
    technologies: List[str] = Field(default_factory=list)
    project_type: ProjectType = ProjectType.AI
    image_url: Optional[str] = None
    additional_images: List[str] = Field(default_factory=list)
    github_url: GithubUrl = None
    demo_url: DemoUrl = None
    featured: bool = False
    order: int = 0
    slug: Optional[str] = None
    content: Optional[str] = None
    active: bool = True

    @field_validator("title", "description", "short_description")
    @classmethod
    def _strip(cls, v: str) -> str:
        return v.strip()

    @field_validator("technologies")
    @classmethod
    def _strip_technologies(cls, v: List[str]) -> List[str]:
        return [t.strip() for t in v if t.strip()]

    @field_validator("slug")
    @classmethod
    def _lower_slug(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().lower() if v else None


class ProjectCreate(ProjectFields):
    pass


class ProjectUpdate(ApiModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    short_description: Optional[str] = Field(default=None, max_length=200)
    technologies: Optional[List[str]] = None
    project_type: Optional[ProjectType] = None
    image_url: Optional[str] = None
    additional_images: Optional[List[str]] = None
    github_url: GithubUrl = None
    demo_url: DemoUrl = None
    featured: Optional[bool] = None
    order: Optional[int] = None
    slug: Optional[str] = None
    content: Optional[str] = None
    active: Optional[bool] = None


class Project(Document, ProjectFields):
    pass


# --- Contacts ----------------------------------------------------------------

def _normalize_email(v: str) -> str:
    return v.strip().lower()


# Lower-cased on input and in listing filters alike
Email = Annotated[str, AfterValidator(_normalize_email)]


class ContactStatus(str, Enum):
    NEW = "new"
    READ = "read"
    REPLIED = "replied"
    SPAM = "spam"


class ContactSubmission(ApiModel):
    name: str = Field(..., min_length=1)
    email: Email
    subject: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    recaptcha_token: Optional[str] = None

    @field_validator("name", "subject", "message")
    @classmethod
    def _strip(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Field cannot be blank")
        return v

    @field_validator("email")
    @classmethod
    def _check_email(cls, v: str) -> str:
        if not EMAIL_RE.match(v):
            raise ValueError("Please provide a valid email")
        return v


class ContactUpdate(ApiModel):
    status: Optional[ContactStatus] = None
    replied: Optional[bool] = None


class Contact(Document, ContactSubmission):
    status: ContactStatus = ContactStatus.NEW
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    replied: bool = False
    reply_date: Optional[datetime] = None
