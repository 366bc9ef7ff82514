"""
Query-string parsing for task listings.

Turns ``completed``, ``sortBy``, ``limit`` and ``skip`` into a
:class:`TaskQuery` and applies it to a SQLAlchemy ``select``.  Malformed
values are rejected with a 400 instead of being silently ignored.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass

from sqlalchemy import Select

from .errors import ValidationError
from .models import Task

# Public sort keys mapped onto model columns
SORTABLE_FIELDS = {
    "description": Task.description,
    "completed": Task.completed,
    "createdAt": Task.created_at,
    "updatedAt": Task.updated_at,
}

_SORT_PATTERN = re.compile(r"^(?P<field>\w+?)[_:](?P<direction>asc|desc)$")

# Signed 64-bit ceiling of the database integer type
MAX_PAGINATION_VALUE = 2**63 - 1


@dataclass(frozen=True)
class TaskQuery:
    completed: bool | None = None
    sort_field: str | None = None
    sort_direction: str = "asc"
    limit: int | None = None
    skip: int | None = None

    def apply(self, stmt: Select) -> Select:
        """Add the filter, ordering and pagination clauses to *stmt*."""
        if self.completed is not None:
            stmt = stmt.where(Task.completed.is_(self.completed))

        if self.sort_field is not None:
            column = SORTABLE_FIELDS[self.sort_field]
            stmt = stmt.order_by(
                column.desc() if self.sort_direction == "desc" else column.asc()
            )
        # Creation order is the default; id breaks timestamp ties
        stmt = stmt.order_by(Task.created_at.asc(), Task.id.asc())

        if self.skip:
            stmt = stmt.offset(self.skip)
        if self.limit:
            stmt = stmt.limit(self.limit)
        return stmt


def _parse_completed(raw: str | None) -> bool | None:
    if raw is None:
        return None
    value = raw.strip().lower()
    if value == "true":
        return True
    if value == "false":
        return False
    raise ValidationError("'completed' must be 'true' or 'false'")


def _parse_sort(raw: str | None) -> tuple[str | None, str]:
    if raw is None or not raw.strip():
        return None, "asc"
    match = _SORT_PATTERN.match(raw.strip())
    if not match or match.group("field") not in SORTABLE_FIELDS:
        raise ValidationError(
            "Invalid sortBy. Use <field>_<asc|desc> with field one of: "
            f"{sorted(SORTABLE_FIELDS)}"
        )
    return match.group("field"), match.group("direction")


def _parse_non_negative_int(name: str, raw: str | None) -> int | None:
    if raw is None or not raw.strip():
        return None
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValidationError(f"'{name}' must be a non-negative integer") from exc
    if value < 0:
        raise ValidationError(f"'{name}' must be a non-negative integer")
    if value > MAX_PAGINATION_VALUE:
        raise ValidationError(f"'{name}' must be at most {MAX_PAGINATION_VALUE}")
    return value


def parse_task_query(args: Mapping[str, str]) -> TaskQuery:
    """Build a :class:`TaskQuery` from request query-string arguments."""
    sort_field, sort_direction = _parse_sort(args.get("sortBy"))
    return TaskQuery(
        completed=_parse_completed(args.get("completed")),
        sort_field=sort_field,
        sort_direction=sort_direction,
        limit=_parse_non_negative_int("limit", args.get("limit")),
        skip=_parse_non_negative_int("skip", args.get("skip")),
    )
