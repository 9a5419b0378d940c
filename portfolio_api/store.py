from __future__ import annotations

import threading
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, Iterable, Optional, Protocol, Sequence, TypeVar

from .models import CommandDefinition, Contact, Document, Project, utcnow
from .query import Condition, ListingQuerySpec, Operator, SortKey, sort_documents

D = TypeVar("D", bound=Document)


class CommandSource(Protocol):
    """Read-only view of the command registry used by the terminal."""

    def find_by_name(self, name: str, active_only: bool = True) -> Optional[CommandDefinition]:
        ...

    def find_all(self, conditions: Sequence[Condition] = (), sort: Sequence[SortKey] = ()) -> list[CommandDefinition]:
        ...


class ProjectSource(Protocol):
    """Read-only view of the project store used by the terminal."""

    def find(self, conditions: Sequence[Condition] = (), sort: Sequence[SortKey] = ()) -> list[Project]:
        ...


class DocumentStore(Generic[D]):
    """In-memory document collection.

    `scope` conditions hide documents from every read, the way a default
    query filter does in a document database.
    """

    def __init__(self, model: type[D], scope: Sequence[Condition] = ()):
        self.model = model
        self._scope = tuple(scope)
        self._docs: dict[str, D] = {}
        self._lock = threading.RLock()

    def __len__(self) -> int:
        return len(self._visible())

    def _visible(self, include_hidden: bool = False) -> list[D]:
        with self._lock:
            docs = list(self._docs.values())
        if include_hidden:
            return docs
        return [d for d in docs if all(c.matches(d) for c in self._scope)]

    def insert(self, doc: D) -> D:
        with self._lock:
            if doc.id in self._docs:
                raise ValueError(f"Duplicate id: {doc.id}")
            self._docs[doc.id] = doc
        return doc

    def get(self, doc_id: str, include_hidden: bool = False) -> Optional[D]:
        for doc in self._visible(include_hidden):
            if doc.id == doc_id:
                return doc
        return None

    def find(self, conditions: Sequence[Condition] = (), sort: Sequence[SortKey] = ()) -> list[D]:
        matched = [d for d in self._visible() if all(c.matches(d) for c in conditions)]
        return sort_documents(matched, sort)

    def find_one(self, *conditions: Condition, include_hidden: bool = False) -> Optional[D]:
        for doc in self._visible(include_hidden):
            if all(c.matches(doc) for c in conditions):
                return doc
        return None

    def query(self, spec: ListingQuerySpec) -> tuple[list[D], int]:
        return spec.apply(self._visible())

    def count(self, conditions: Sequence[Condition] = (), include_hidden: bool = False) -> int:
        return sum(1 for d in self._visible(include_hidden) if all(c.matches(d) for c in conditions))

    def count_by(self, field_name: str, include_hidden: bool = False) -> dict[str, int]:
        counts: Counter = Counter()
        for doc in self._visible(include_hidden):
            value = getattr(doc, field_name, None)
            counts[value.value if isinstance(value, Enum) else value] += 1
        return dict(counts)

    def update(self, doc_id: str, changes: dict[str, Any], include_hidden: bool = False) -> Optional[D]:
        """Apply `changes` and re-validate; pydantic's ValidationError propagates."""
        with self._lock:
            current = self.get(doc_id, include_hidden)
            if current is None:
                return None
            data = current.model_dump()
            data.update(changes)
            data["updated_at"] = utcnow()
            data["version"] = current.version + 1
            updated = self.model.model_validate(data)
            self._docs[doc_id] = updated
        return updated

    def delete(self, doc_id: str) -> Optional[D]:
        with self._lock:
            doc = self.get(doc_id)
            if doc is None:
                return None
            del self._docs[doc_id]
        return doc


class CommandStore(DocumentStore[CommandDefinition]):
    def __init__(self):
        super().__init__(CommandDefinition)

    def find_by_name(self, name: str, active_only: bool = True) -> Optional[CommandDefinition]:
        conditions = [Condition("name", Operator.EQ, name.strip().lower())]
        if active_only:
            conditions.append(Condition("is_active", Operator.EQ, True))
        return self.find_one(*conditions)

    def find_all(self, conditions: Sequence[Condition] = (), sort: Sequence[SortKey] = ()) -> list[CommandDefinition]:
        return self.find(conditions, sort)


class ProjectStore(DocumentStore[Project]):
    def __init__(self):
        # Inactive projects are invisible to every read
        super().__init__(Project, scope=[Condition("active", Operator.EQ, True)])

    def find_by_slug(self, slug: str, include_hidden: bool = False) -> Optional[Project]:
        return self.find_one(Condition("slug", Operator.EQ, slug.lower()), include_hidden=include_hidden)


class ContactStore(DocumentStore[Contact]):
    def __init__(self):
        super().__init__(Contact)


@dataclass
class Database:
    commands: CommandStore = field(default_factory=CommandStore)
    projects: ProjectStore = field(default_factory=ProjectStore)
    contacts: ContactStore = field(default_factory=ContactStore)


def create_database(
    commands: Iterable[CommandDefinition] = (),
    projects: Iterable[Project] = (),
    contacts: Iterable[Contact] = (),
) -> Database:
    db = Database()
    for cmd in commands:
        db.commands.insert(cmd)
    for project in projects:
        db.projects.insert(project)
    for contact in contacts:
        db.contacts.insert(contact)
    return db
