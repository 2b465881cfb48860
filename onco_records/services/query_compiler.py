"""Translate patient list parameters into a query descriptor.

The compiler builds SQLAlchemy expressions but never executes them, so it
can be used and tested without a database session. Bad sort parameters are
reported as field errors; every other unusable value falls back to "no
filter" or to the default.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy import and_, or_

from onco_records.models.patient_models import SEX_CHOICES, Patient


DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20
DEFAULT_SORT_BY = "created_at"
DEFAULT_SORT_ORDER = "desc"

# Client-facing sort keys -> columns. Nothing outside this mapping is ever
# used to build an ORDER BY.
SORTABLE_FIELDS = {
    "last_name": Patient.last_name,
    "first_name": Patient.first_name,
    "birth_date": Patient.birth_date,
    "city": Patient.city,
    "created_at": Patient.created_at,
    "updated_at": Patient.updated_at,
    "cancer_discovery_date": Patient.cancer_discovery_date,
}

SORT_ORDERS = ("asc", "desc")

_TRUE_VALUES = ("true", "1")
_FALSE_VALUES = ("false", "0")

LIKE_ESCAPE = "\\"

# LIMIT and OFFSET are bound as signed 64-bit integers
MAX_SQL_INTEGER = 2 ** 63 - 1


@dataclass
class PatientQuery:
    """Normalized description of one page of the patient list."""

    predicate: object
    order_by: list
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass
class QueryCompilation:
    query: Optional[PatientQuery] = None
    errors: dict = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def add_error(self, field_name: str, message: str) -> None:
        self.errors.setdefault(field_name, []).append(message)


def positive_int(value, default: int) -> int:
    """Coerce to a positive integer, falling back to ``default``."""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


def parse_flag(value) -> Optional[bool]:
    """Read a tri-state boolean filter; anything unrecognized means "no filter"."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_VALUES:
            return True
        if text in _FALSE_VALUES:
            return False
    return None


def _contains_pattern(text: str) -> str:
    escaped = (
        text.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


def _text_param(params, name) -> str:
    value = params.get(name)
    if not isinstance(value, str):
        return ""
    return value.strip()


def compile_patient_query(params=None, default_limit: int = DEFAULT_LIMIT,
                          max_limit: Optional[int] = None) -> QueryCompilation:
    """Build the predicate, ordering and page window for a patient list.

    Args:
        params: Mapping with any of ``q``, ``sex``, ``city``,
            ``has_diagnosis``, ``page``, ``limit``, ``sort_by``,
            ``sort_order``. ``request.args`` works as-is.
        default_limit: Page size used when ``limit`` is missing or unusable.
        max_limit: Upper bound applied to ``limit``, if given.

    Returns:
        QueryCompilation with either ``query`` set or ``errors`` filled.
    """
    if params is None:
        params = {}
    if not isinstance(params, Mapping):
        raise TypeError(f"query parameters must be a mapping, got {type(params).__name__}")

    compilation = QueryCompilation()

    # Archived records never appear in the list
    clauses = [Patient.is_archived.is_(False)]

    q = _text_param(params, "q")
    if q:
        pattern = _contains_pattern(q)
        clauses.append(or_(
            Patient.last_name.ilike(pattern, escape=LIKE_ESCAPE),
            Patient.first_name.ilike(pattern, escape=LIKE_ESCAPE),
            Patient.national_id.ilike(pattern, escape=LIKE_ESCAPE),
            Patient.phone.like(pattern, escape=LIKE_ESCAPE),
        ))

    sex = params.get("sex")
    if sex in SEX_CHOICES:
        clauses.append(Patient.sex == sex)

    city = _text_param(params, "city")
    if city:
        clauses.append(Patient.city.ilike(_contains_pattern(city), escape=LIKE_ESCAPE))

    has_diagnosis = parse_flag(params.get("has_diagnosis"))
    if has_diagnosis is True:
        clauses.append(Patient.primary_diagnosis.isnot(None))
    elif has_diagnosis is False:
        clauses.append(Patient.primary_diagnosis.is_(None))

    page = positive_int(params.get("page"), DEFAULT_PAGE)
    limit = positive_int(params.get("limit"), default_limit)
    if max_limit is not None:
        limit = min(limit, max_limit)
    limit = min(limit, MAX_SQL_INTEGER)
    # Past this page the offset no longer fits; every such page is empty anyway
    page = min(page, MAX_SQL_INTEGER // limit + 1)

    sort_by = params.get("sort_by") or DEFAULT_SORT_BY
    column = SORTABLE_FIELDS.get(sort_by) if isinstance(sort_by, str) else None
    if column is None:
        compilation.add_error(
            "sort_by", f"Must be one of: {', '.join(sorted(SORTABLE_FIELDS))}."
        )

    sort_order = params.get("sort_order") or DEFAULT_SORT_ORDER
    sort_order = sort_order.lower() if isinstance(sort_order, str) else None
    if sort_order not in SORT_ORDERS:
        compilation.add_error("sort_order", "Must be 'asc' or 'desc'.")

    if not compilation.is_valid:
        return compilation

    direction = column.asc() if sort_order == "asc" else column.desc()
    # id breaks ties so that pages do not overlap
    tie_breaker = Patient.id.asc() if sort_order == "asc" else Patient.id.desc()

    compilation.query = PatientQuery(
        predicate=and_(*clauses),
        order_by=[direction, tie_breaker],
        page=page,
        limit=limit,
    )
    return compilation
