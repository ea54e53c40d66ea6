"""
Listing request parser: turns raw query parameters into a ListingSpec.

Parsing is permissive: malformed values, unknown fields, disallowed operators
and out-of-whitelist values are dropped (and logged at DEBUG), never turned
into a client error.
"""

import json
import logging
import re
from typing import Any, List, Mapping, Optional

from enrollment_admin.core.config import settings
from enrollment_admin.core.enums import (
    ACADEMIC_YEAR_PATTERN,
    ALL_SENTINEL,
    ENROLLMENT_STATUSES,
    MAX_INT_VALUE,
    SEMESTERS,
    EnrollmentStatus,
)

from .fields import FIELD_COLUMNS, INTEGER_FIELDS
from .schemas import (
    BetweenRule,
    ContainsRule,
    EqualsRule,
    FilterLogic,
    FilterOperator,
    FilterRule,
    InRule,
    ListingSpec,
    SortDirection,
    SortRule,
    StartsWithRule,
)

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100
# Keeps OFFSET (page - 1) * page_size inside a signed 64-bit integer
MAX_PAGE = (2**63 - 1) // MAX_PAGE_SIZE

_ACADEMIC_YEAR_RE = re.compile(ACADEMIC_YEAR_PATTERN)


def _as_text(raw: Any) -> str:
    if raw is None:
        return ""
    return raw.strip() if isinstance(raw, str) else str(raw).strip()


def _parse_int(raw: Any, default: int) -> int:
    text = _as_text(raw)
    if not text:
        return default
    try:
        return int(text)
    except ValueError:
        return default


def _is_sentinel(text: str) -> bool:
    return text.upper() == ALL_SENTINEL


def _parse_status(raw: Any) -> Optional[EnrollmentStatus]:
    text = _as_text(raw).upper()
    if not text or text == ALL_SENTINEL or text not in ENROLLMENT_STATUSES:
        return None
    return EnrollmentStatus(text)


def _to_int(value: Any) -> Optional[int]:
    """
    Coerce a JSON / query value to int. None when it is not an integer or
    does not fit the database Integer columns.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        number = value
    elif isinstance(value, float):
        if not value.is_integer():
            return None
        number = int(value)
    elif isinstance(value, str):
        try:
            number = int(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if -MAX_INT_VALUE - 1 <= number <= MAX_INT_VALUE else None


def _to_text(value: Any) -> str:
    """Text operand for a string column; integral floats lose their trailing `.0`."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return value if isinstance(value, str) else str(value)


def _parse_semester(raw: Any) -> Optional[int]:
    text = _as_text(raw)
    if not text or _is_sentinel(text):
        return None
    semester = _to_int(text)
    return semester if semester in SEMESTERS else None


def _parse_academic_year(raw: Any) -> Optional[str]:
    text = _as_text(raw)
    if not text or _is_sentinel(text):
        return None
    return text if _ACADEMIC_YEAR_RE.match(text) else None


def _load_json_list(raw: Any, name: str) -> Optional[List[Any]]:
    """Decode a JSON array parameter; None when absent, malformed, or not an array."""
    if raw is None or raw == "":
        return None
    if isinstance(raw, list):
        return raw
    try:
        decoded = json.loads(raw)
    except (TypeError, ValueError, RecursionError):
        logger.debug("Ignoring %s: not valid JSON", name)
        return None
    if not isinstance(decoded, list):
        logger.debug("Ignoring %s: not a JSON array", name)
        return None
    return decoded


def _clean_scalar(field: str, value: Any) -> Any:
    """
    Validate a single equals/between operand. Returns None when the operand
    is null, empty, non-scalar, or not an integer for an integer column.
    """
    if value is None or isinstance(value, (bool, list, dict)):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    elif not isinstance(value, (int, float)):
        return None
    if field in INTEGER_FIELDS:
        return _to_int(value)
    return _to_text(value)


def _clean_in_values(field: str, values: List[Any]) -> List[Any]:
    cleaned: List[Any] = []
    for item in values:
        if field == "semester":
            item = _to_int(item)
            if item not in SEMESTERS:
                continue
        elif field == "status":
            if not isinstance(item, str) or item.strip().upper() not in ENROLLMENT_STATUSES:
                continue
            item = item.strip().upper()
        elif field in INTEGER_FIELDS:
            item = _to_int(item)
            if item is None:
                continue
        elif item is None or isinstance(item, (bool, list, dict)):
            continue
        else:
            item = _to_text(item)
        if item not in cleaned:
            cleaned.append(item)
    return cleaned


def parse_filter_rule(raw: Any) -> Optional[FilterRule]:
    """Validate one `{field, op, value}` rule. Returns None when the rule must be dropped."""
    if not isinstance(raw, dict):
        return None
    field = raw.get("field")
    op = raw.get("op")
    value = raw.get("value")
    if not isinstance(field, str) or field not in FIELD_COLUMNS:
        return None

    if op in (FilterOperator.CONTAINS.value, FilterOperator.STARTS_WITH.value):
        if not isinstance(value, str) or not value.strip():
            return None
        if op == FilterOperator.CONTAINS.value:
            return ContainsRule(field=field, value=value.strip())
        return StartsWithRule(field=field, value=value.strip())

    if op == FilterOperator.EQUALS.value:
        operand = _clean_scalar(field, value)
        if operand is None:
            return None
        return EqualsRule(field=field, value=operand)

    if op == FilterOperator.BETWEEN.value:
        if not isinstance(value, list) or len(value) != 2:
            return None
        low, high = _clean_scalar(field, value[0]), _clean_scalar(field, value[1])
        if low is None or high is None:
            return None
        return BetweenRule(field=field, value=(low, high))

    if op == FilterOperator.IN.value:
        if not isinstance(value, list) or not value:
            return None
        items = _clean_in_values(field, value)
        if not items:
            return None
        return InRule(field=field, value=items)

    return None


def parse_filter_rules(raw: Any) -> List[FilterRule]:
    """Parse the `filters` JSON parameter, keeping the valid subset of rules in order."""
    entries = _load_json_list(raw, "filters")
    if entries is None:
        return []
    rules: List[FilterRule] = []
    for entry in entries:
        rule = parse_filter_rule(entry)
        if rule is None:
            logger.debug("Dropping filter rule %r", entry)
            continue
        rules.append(rule)
    return rules


def parse_filter_logic(raw: Any) -> FilterLogic:
    return FilterLogic.OR if _as_text(raw).upper() == FilterLogic.OR.value else FilterLogic.AND


def _parse_direction(raw: Any, default: SortDirection) -> SortDirection:
    text = _as_text(raw).lower()
    if text == SortDirection.ASC.value:
        return SortDirection.ASC
    if text == SortDirection.DESC.value:
        return SortDirection.DESC
    return default


def parse_sort_rules(raw: Any) -> List[SortRule]:
    """Parse the `sorts` JSON parameter. Unknown fields, malformed entries and repeated fields are skipped."""
    entries = _load_json_list(raw, "sorts")
    if entries is None:
        return []
    rules: List[SortRule] = []
    seen = set()
    for entry in entries:
        field = entry.get("field") if isinstance(entry, dict) else None
        if not isinstance(field, str) or field not in FIELD_COLUMNS or field in seen:
            logger.debug("Dropping sort rule %r", entry)
            continue
        seen.add(field)
        rules.append(SortRule(field=field, dir=_parse_direction(entry.get("dir"), SortDirection.ASC)))
    return rules


def parse_fallback_sort(sort_by: Any, sort_dir: Any) -> SortRule:
    field = _as_text(sort_by)
    if field not in FIELD_COLUMNS:
        field = "id"
    direction = SortDirection.ASC if _as_text(sort_dir).lower() == SortDirection.ASC.value else SortDirection.DESC
    return SortRule(field=field, dir=direction)


def parse_listing_params(params: Mapping[str, Any]) -> ListingSpec:
    """Build a ListingSpec from raw request parameters (e.g. `request.query_params`)."""
    page = min(max(_parse_int(params.get("page"), 1), 1), MAX_PAGE)
    page_size = _parse_int(params.get("page_size"), settings.default_page_size)
    page_size = min(max(page_size, 1), MAX_PAGE_SIZE)

    search = _as_text(params.get("search")) or None

    return ListingSpec(
        page=page,
        page_size=page_size,
        status=_parse_status(params.get("status")),
        semester=_parse_semester(params.get("semester")),
        academic_year=_parse_academic_year(params.get("academic_year")),
        search=search,
        filters=parse_filter_rules(params.get("filters")),
        filter_logic=parse_filter_logic(params.get("filter_logic")),
        sorts=parse_sort_rules(params.get("sorts")),
        fallback_sort=parse_fallback_sort(params.get("sort_by"), params.get("sort_dir")),
    )
