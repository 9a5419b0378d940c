from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Iterable, Mapping, Optional, Sequence, Union, get_args, get_origin

from pydantic import AfterValidator, BaseModel, BeforeValidator, TypeAdapter, ValidationError

from .config import Direction

RESERVED_PARAMS = ("page", "sort", "limit", "fields")
HIDDEN_FIELDS = ("version",)
DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10

BRACKET_RE = re.compile(r"^(\w+)\[(\w+)\]$")

ParamValue = Union[str, Mapping[str, str]]
VALIDATOR_TYPES = (AfterValidator, BeforeValidator)


class QueryError(ValueError):
    """Raised when a listing query parameter cannot be applied."""


class Operator(str, Enum):
    EQ = "eq"
    GTE = "gte"
    GT = "gt"
    LTE = "lte"
    LT = "lt"


RANGE_OPERATORS = {
    "gte": Operator.GTE,
    "gt": Operator.GT,
    "lte": Operator.LTE,
    "lt": Operator.LT,
}


@dataclass(frozen=True)
class Condition:
    """A single typed predicate `field <op> value` over a stored document."""
    field: str
    op: Operator
    value: Any

    def matches(self, doc: BaseModel) -> bool:
        actual = getattr(doc, self.field, None)
        if self.op == Operator.EQ:
            # Array fields match when any element equals the value
            if isinstance(actual, list):
                return self.value in actual
            return actual == self.value
        if actual is None:
            return False
        try:
            if self.op == Operator.GTE:
                return actual >= self.value
            if self.op == Operator.GT:
                return actual > self.value
            if self.op == Operator.LTE:
                return actual <= self.value
            return actual < self.value
        except TypeError:
            return False


@dataclass(frozen=True)
class SortKey:
    field: str
    direction: Direction = Direction.ASC


def sort_documents(docs: Iterable[BaseModel], sort: Sequence[SortKey]) -> list:
    """Stable multi-key sort; missing values order before any present value."""
    out = list(docs)
    for key in reversed(sort):
        out.sort(
            key=lambda d, f=key.field: _sort_value(getattr(d, f, None)),
            reverse=key.direction == Direction.DESC,
        )
    return out


def _sort_value(value: Any) -> tuple:
    if value is None:
        return (0, 0)
    if isinstance(value, Enum):
        value = value.value
    return (1, value)


@dataclass(frozen=True)
class ListingQuerySpec:
    conditions: tuple[Condition, ...] = ()
    sort: tuple[SortKey, ...] = ()
    include: Optional[tuple[str, ...]] = None
    exclude: tuple[str, ...] = HIDDEN_FIELDS
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    def total_pages(self, total: int) -> int:
        return math.ceil(total / self.limit)

    def matches(self, doc: BaseModel) -> bool:
        return all(c.matches(doc) for c in self.conditions)

    def apply(self, docs: Iterable[BaseModel]) -> tuple[list, int]:
        """Filter, sort and paginate; returns (page of documents, total matches)."""
        matched = sort_documents((d for d in docs if self.matches(d)), self.sort)
        return matched[self.skip:self.skip + self.limit], len(matched)

    def project(self, doc: BaseModel) -> dict:
        if self.include is not None:
            return doc.model_dump(mode="json", by_alias=True, include={"id", *self.include})
        return doc.model_dump(mode="json", by_alias=True, exclude=set(self.exclude))


def fold_query_params(items: Iterable[tuple[str, str]]) -> dict[str, ParamValue]:
    """Fold bracketed keys (`order[gte]=2`) into nested mappings (`{"order": {"gte": "2"}}`)."""
    out: dict[str, Any] = {}
    for key, value in items:
        m = BRACKET_RE.match(key)
        if m:
            field, op = m.group(1), m.group(2)
            nested = out.get(field)
            if not isinstance(nested, dict):
                nested = {}
                out[field] = nested
            nested[op] = value
        else:
            out[key] = value
    return out


def resolve_field(model: type[BaseModel], key: str) -> Optional[str]:
    """Map an API field name (alias or Python name) to the model attribute."""
    for name, info in model.model_fields.items():
        if key == name or key == info.alias:
            return name
    return None


def _field_adapter(model: type[BaseModel], field: str) -> TypeAdapter:
    info = model.model_fields[field]
    annotation = info.annotation
    # Filters on list fields compare against a single element
    if get_origin(annotation) is list:
        args = get_args(annotation)
        return TypeAdapter(args[0] if args else Any)
    # Normalising validators attached to the type (e.g. lower-cased email)
    validators = [m for m in info.metadata if isinstance(m, VALIDATOR_TYPES)]
    if validators:
        annotation = Annotated[(annotation, *validators)]
    return TypeAdapter(annotation)


def coerce_value(model: type[BaseModel], field: str, raw: Any) -> Any:
    try:
        value = _field_adapter(model, field).validate_python(raw)
    except ValidationError as e:
        raise QueryError(f"Invalid {field}: {raw}") from e
    if isinstance(value, datetime) and value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def parse_conditions(model: type[BaseModel], params: Mapping[str, ParamValue]) -> tuple[Condition, ...]:
    conditions = []
    for key, raw in params.items():
        if key in RESERVED_PARAMS:
            continue
        field = resolve_field(model, key)
        if field is None:
            continue
        if isinstance(raw, Mapping):
            for op_name, op_raw in raw.items():
                op = RANGE_OPERATORS.get(op_name)
                if op is None:
                    raise QueryError(f"Unsupported operator for {key}: {op_name}")
                conditions.append(Condition(field, op, coerce_value(model, field, op_raw)))
        else:
            conditions.append(Condition(field, Operator.EQ, coerce_value(model, field, raw)))
    return tuple(conditions)


def _split_list(raw: Any) -> list[str]:
    if not isinstance(raw, str):
        return []
    return [part for part in re.split(r"[,\s]+", raw) if part]


def parse_sort(model: type[BaseModel], raw: Any) -> tuple[SortKey, ...]:
    keys = []
    for part in _split_list(raw):
        direction = Direction.DESC if part.startswith("-") else Direction.ASC
        field = resolve_field(model, part.lstrip("-+"))
        if field is not None:
            keys.append(SortKey(field, direction))
    return tuple(keys)


def _positive_int(raw: Any, default: int) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return value if value >= 1 else default


def build_listing_query(
    params: Mapping[str, ParamValue],
    model: type[BaseModel],
    default_sort: Sequence[tuple[str, Direction]],
    default_limit: int = DEFAULT_LIMIT,
) -> ListingQuerySpec:
    """Build the filter/sort/projection/pagination spec for a list endpoint.

    Reserved keys (page, sort, limit, fields) drive paging and ordering; every
    other key naming a field of `model` becomes an equality filter, or a range
    filter when given as a mapping of gte/gt/lte/lt. Values are coerced to the
    field's declared type. Unknown keys are ignored.
    """
    sort = parse_sort(model, params.get("sort"))
    if not sort:
        sort = tuple(SortKey(field, direction) for field, direction in default_sort)

    include = None
    exclude = HIDDEN_FIELDS
    field_parts = _split_list(params.get("fields"))
    if field_parts:
        if all(p.startswith("-") for p in field_parts):
            exclude = tuple(f for f in (resolve_field(model, p[1:]) for p in field_parts) if f)
            exclude = tuple(dict.fromkeys(exclude + HIDDEN_FIELDS))
        else:
            include = tuple(
                f for f in (resolve_field(model, p) for p in field_parts if not p.startswith("-")) if f
            )

    return ListingQuerySpec(
        conditions=parse_conditions(model, params),
        sort=sort,
        include=include,
        exclude=exclude,
        page=_positive_int(params.get("page"), DEFAULT_PAGE),
        limit=_positive_int(params.get("limit"), default_limit),
    )
