"""Translate URL query parameters into a composed SQLAlchemy query.

``APIFeatures`` wraps a pending ``Select`` and applies, in order, the filter
parsed from the query string, the sort order, the field projection and the
page window. Nothing is executed here; the caller hands ``features.query`` to
the repository.

Query strings use the API's camelCase attribute names::

    ?duration[gte]=5&difficulty=easy&sort=-ratingsAverage,price
    &fields=name,price&page=2&limit=10
"""

import re
from datetime import datetime
from typing import Any, Mapping, NamedTuple
from uuid import UUID

from sqlalchemy import JSON, Select
from sqlalchemy.orm import load_only

from ..core.config import settings
from ..core.exceptions import InvalidQueryError
from ..core.observability import get_logger
from ..models.tour import Tour
from ..schemas.tour import DEFAULT_FIELDS, FIELD_ATTRIBUTES

logger = get_logger(__name__)

# Control parameters that never become filter clauses
RESERVED_PARAMS = frozenset({"page", "sort", "limit", "fields"})

# Range operators accepted as `field[op]=value`, mapped to column comparison methods
OPERATOR_MAP = {
    "gte": "__ge__",
    "gt": "__gt__",
    "lte": "__le__",
    "lt": "__lt__",
}

EQUALITY = "eq"
DEFAULT_SORT = "-createdAt"

_BRACKETED_KEY = re.compile(r"^(?P<field>[^\[\]]+)\[(?P<op>[^\[\]]*)\]$")
_TRUE_VALUES = frozenset({"true", "1"})
_FALSE_VALUES = frozenset({"false", "0"})

# Column types a query string value can be converted to
_FILTERABLE_TYPES = frozenset({bool, int, float, str, datetime, UUID})


class FilterClause(NamedTuple):
    """One condition parsed from a single query parameter."""
    field: str
    operator: str
    value: str


def parse_filter(params: Mapping[str, str]) -> list[FilterClause]:
    """
    Parse query parameters into filter clauses.

    Reserved control parameters are skipped. Every other key yields exactly
    one clause: ``field[op]`` with a supported range operator becomes a range
    comparison, a plain key becomes an equality.

    Raises:
        InvalidQueryError: A bracketed key has an unsupported operator or is
            malformed.
    """
    clauses = []
    for key, value in params.items():
        if key in RESERVED_PARAMS:
            continue

        if "[" not in key and "]" not in key:
            clauses.append(FilterClause(key, EQUALITY, value))
            continue

        match = _BRACKETED_KEY.match(key)
        if not match or match.group("op") not in OPERATOR_MAP:
            raise InvalidQueryError(
                f"Unsupported filter '{key}', operators are: {', '.join(OPERATOR_MAP)}"
            )
        clauses.append(FilterClause(match.group("field"), match.group("op"), value))

    return clauses


def coerce_value(column: Any, field: str, raw: str) -> Any:
    """Convert a query string value to the Python type the column compares against."""
    if isinstance(column.type, JSON):
        raise InvalidQueryError(f"Field '{field}' cannot be filtered")

    try:
        python_type = column.type.python_type
    except NotImplementedError:
        python_type = None

    if python_type not in _FILTERABLE_TYPES:
        raise InvalidQueryError(f"Field '{field}' cannot be filtered")

    try:
        if python_type is bool:
            lowered = raw.lower()
            if lowered in _TRUE_VALUES:
                return True
            if lowered in _FALSE_VALUES:
                return False
            raise ValueError(raw)
        if python_type is datetime:
            return datetime.fromisoformat(raw)
        if python_type is UUID:
            return UUID(raw)
        return python_type(raw)
    except (TypeError, ValueError):
        raise InvalidQueryError(
            f"Invalid value {raw!r} for field '{field}'"
        ) from None


def resolve_column(model: Any, field: str, field_attributes: Mapping[str, str] = FIELD_ATTRIBUTES):
    """Map an API attribute name to the model's column attribute."""
    try:
        return getattr(model, field_attributes[field])
    except KeyError:
        raise InvalidQueryError(f"Unknown field '{field}'") from None


def build_filter_criteria(model: Any, clauses: list[FilterClause]) -> list[Any]:
    """Compile filter clauses into SQLAlchemy boolean expressions."""
    criteria = []
    for clause in clauses:
        column = resolve_column(model, clause.field)
        value = coerce_value(column, clause.field, clause.value)
        if clause.operator == EQUALITY:
            criteria.append(column == value)
        else:
            criteria.append(getattr(column, OPERATOR_MAP[clause.operator])(value))
    return criteria


def parse_sort(raw: str) -> list[tuple[str, bool]]:
    """Split ``-a,b`` into ``[("a", True), ("b", False)]``; True means descending."""
    keys = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        descending = part.startswith("-")
        keys.append((part.lstrip("-"), descending))
    return keys


def parse_fields(raw: str) -> list[str]:
    """
    Resolve a projection string into the list of attributes to return.

    Either every entry is an inclusion (``name,price``) or every entry is an
    exclusion (``-summary,-images``); mixing both is rejected.
    """
    entries = [part.strip() for part in raw.split(",") if part.strip()]
    if not entries:
        return list(DEFAULT_FIELDS)

    excluded = [entry[1:] for entry in entries if entry.startswith("-")]
    if excluded and len(excluded) != len(entries):
        raise InvalidQueryError("Projection cannot mix included and excluded fields")

    for name in excluded or entries:
        if name not in FIELD_ATTRIBUTES:
            raise InvalidQueryError(f"Unknown field '{name}'")

    if excluded:
        return [name for name in DEFAULT_FIELDS if name not in excluded]
    return list(dict.fromkeys(entries))


def parse_positive_int(params: Mapping[str, str], name: str, default: int) -> int:
    raw = params.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise InvalidQueryError(f"'{name}' must be a positive integer") from None
    if value < 1:
        raise InvalidQueryError(f"'{name}' must be a positive integer")
    return value


class APIFeatures:
    """
    Chainable builder applying query-string features to a pending query.

    Usage::

        features = (
            APIFeatures(select(Tour), request.query_params)
            .filter()
            .sort()
            .limit_fields()
            .paginate()
        )
        tours = await repository.fetch_all(features.query)
    """

    def __init__(
        self,
        query: Select,
        query_params: Mapping[str, str],
        model: Any = Tour,
        default_limit: int | None = None,
        max_limit: int | None = None,
    ):
        self.query = query
        self.query_params = query_params
        self.model = model
        self.default_limit = default_limit or settings.default_page_limit
        self.max_limit = max_limit or settings.max_page_limit

        # Set by limit_fields() and paginate()
        self.projection: list[str] | None = None
        self.page = 1
        self.limit = self.default_limit

    def filter(self) -> "APIFeatures":
        criteria = build_filter_criteria(self.model, parse_filter(self.query_params))
        if criteria:
            self.query = self.query.where(*criteria)
        return self

    def sort(self) -> "APIFeatures":
        keys = parse_sort(self.query_params.get("sort") or "") or parse_sort(DEFAULT_SORT)

        order_by = []
        for field, descending in keys:
            column = resolve_column(self.model, field)
            order_by.append(column.desc() if descending else column.asc())
        self.query = self.query.order_by(*order_by)
        return self

    def limit_fields(self) -> "APIFeatures":
        raw = self.query_params.get("fields")
        if not raw:
            return self

        self.projection = parse_fields(raw)
        columns = [resolve_column(self.model, name) for name in self.projection]
        self.query = self.query.options(load_only(self.model.id, *columns))
        return self

    def paginate(self) -> "APIFeatures":
        self.page = parse_positive_int(self.query_params, "page", 1)
        limit = parse_positive_int(self.query_params, "limit", self.default_limit)
        if limit > self.max_limit:
            logger.warning(
                "Page limit clamped",
                requested_limit=limit,
                max_limit=self.max_limit,
            )
            limit = self.max_limit
        self.limit = limit

        self.query = self.query.offset((self.page - 1) * self.limit).limit(self.limit)
        return self
