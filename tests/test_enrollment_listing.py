"""GET /api/enrollments against the seeded data set (see conftest.seeded)."""

import json
from typing import Any, Dict, List

import pytest
from httpx import AsyncClient


async def _list(client: AsyncClient, **params: Any) -> Dict[str, Any]:
    for key in ("filters", "sorts"):
        if key in params and not isinstance(params[key], str):
            params[key] = json.dumps(params[key])
    response = await client.get("/api/enrollments", params=params)
    assert response.status_code == 200
    return response.json()


def _ids(body: Dict[str, Any]) -> List[int]:
    return [row["id"] for row in body["data"]]


@pytest.mark.asyncio
async def test_default_listing(client: AsyncClient, seeded) -> None:
    body = await _list(client)
    assert _ids(body) == [7, 6, 5, 4, 3, 2, 1]
    assert body["meta"] == {"page": 1, "page_size": 10, "total": 7, "total_pages": 1}

    row = body["data"][-1]
    assert row["student_nim"] == "2021000001"
    assert row["student_name"] == "Alice Wijaya"
    assert row["course_code"] == "IF101"
    assert row["course_name"] == "Algorithms"
    assert row["semester"] == 1
    assert row["academic_year"] == "2024/2025"
    assert row["status"] == "APPROVED"
    assert "created_at" in row and "updated_at" in row


@pytest.mark.asyncio
async def test_pagination(client: AsyncClient, seeded) -> None:
    body = await _list(client, page=2, page_size=3)
    assert _ids(body) == [4, 3, 2]
    assert body["meta"] == {"page": 2, "page_size": 3, "total": 7, "total_pages": 3}


@pytest.mark.asyncio
async def test_page_size_clamped(client: AsyncClient, seeded) -> None:
    body = await _list(client, page_size=500)
    assert body["meta"]["page_size"] == 100
    assert len(body["data"]) == 7

    body = await _list(client, page_size=0)
    assert body["meta"]["page_size"] == 1
    assert body["meta"]["total_pages"] == 7
    assert _ids(body) == [7]


@pytest.mark.asyncio
async def test_page_beyond_last_is_empty(client: AsyncClient, seeded) -> None:
    body = await _list(client, page=3, page_size=5)
    assert body["data"] == []
    assert body["meta"] == {"page": 3, "page_size": 5, "total": 7, "total_pages": 2}


@pytest.mark.asyncio
async def test_no_matches(client: AsyncClient, seeded) -> None:
    body = await _list(client, search="zzz")
    assert body["data"] == []
    assert body["meta"]["total"] == 0
    assert body["meta"]["total_pages"] == 0


@pytest.mark.asyncio
async def test_malformed_parameters_never_fail(client: AsyncClient, seeded) -> None:
    body = await _list(
        client,
        page="abc",
        page_size="x",
        status="PENDING",
        semester="9",
        academic_year="2025-2026",
        filters="{not json",
        filter_logic="XOR",
        sorts="[1, 2",
        sort_by="password",
        sort_dir="up",
    )
    assert body["meta"]["total"] == 7
    assert _ids(body) == [7, 6, 5, 4, 3, 2, 1]


@pytest.mark.asyncio
async def test_quick_filters(client: AsyncClient, seeded) -> None:
    assert sorted(_ids(await _list(client, status="approved"))) == [1, 3, 5, 7]
    assert sorted(_ids(await _list(client, semester="2"))) == [2, 4, 7]
    assert sorted(_ids(await _list(client, academic_year="2025/2026"))) == [3, 4, 6]
    assert sorted(_ids(await _list(client, status="APPROVED", semester="1", academic_year="2025/2026"))) == [3]
    assert len(_ids(await _list(client, status="ALL", semester="ALL", academic_year="ALL"))) == 7


@pytest.mark.asyncio
async def test_search(client: AsyncClient, seeded) -> None:
    assert sorted(_ids(await _list(client, search="2021000002"))) == [3, 4]
    assert sorted(_ids(await _list(client, search="  citra "))) == [5, 6]
    # course code, case-insensitive
    assert sorted(_ids(await _list(client, search="if10"))) == [1, 2, 3, 5, 7]
    # course name is not searched
    assert _ids(await _list(client, search="Calculus")) == []


@pytest.mark.asyncio
async def test_search_wildcards_match_literally(client: AsyncClient, seeded) -> None:
    assert _ids(await _list(client, search="_")) == [7]
    assert _ids(await _list(client, search="%")) == []


@pytest.mark.asyncio
async def test_between_with_quick_status(client: AsyncClient, seeded) -> None:
    body = await _list(
        client,
        status="APPROVED",
        filters=[{"field": "academic_year", "op": "between", "value": ["2024/2025", "2025/2026"]}],
    )
    assert sorted(_ids(body)) == [1, 3]
    for row in body["data"]:
        assert row["status"] == "APPROVED"
        assert "2024/2025" <= row["academic_year"] <= "2025/2026"


@pytest.mark.asyncio
async def test_or_logic_differs_from_and(client: AsyncClient, seeded) -> None:
    filters = [
        {"field": "semester", "op": "in", "value": [1, 2]},
        {"field": "status", "op": "in", "value": ["DRAFT", "SUBMITTED"]},
    ]
    body_or = await _list(client, filters=filters, filter_logic="OR")
    assert body_or["meta"]["total"] == 7

    body_and = await _list(client, filters=filters, filter_logic="AND")
    assert sorted(_ids(body_and)) == [2, 4]


@pytest.mark.asyncio
async def test_or_group_is_anded_with_quick_filters(client: AsyncClient, seeded) -> None:
    filters = [
        {"field": "course_code", "op": "equals", "value": "MA201"},
        {"field": "student_name", "op": "startsWith", "value": "alice"},
    ]
    body = await _list(client, filters=filters, filter_logic="OR", semester="2")
    assert sorted(_ids(body)) == [2, 4]


@pytest.mark.asyncio
async def test_invalid_rules_are_no_ops(client: AsyncClient, seeded) -> None:
    filters = [
        {"field": "password", "op": "equals", "value": "x"},
        {"field": "status", "op": "regex", "value": "A"},
        {"field": "course_code", "op": "startsWith", "value": "ma"},
        {"field": "semester", "op": "in", "value": [5]},
        {"field": "academic_year", "op": "between", "value": ["2024/2025"]},
    ]
    body = await _list(client, filters=filters)
    assert sorted(_ids(body)) == [4, 6]

    # an `in` rule emptied by validation is dropped, not "match nothing"
    body = await _list(client, filters=[{"field": "status", "op": "in", "value": ["PENDING"]}])
    assert body["meta"]["total"] == 7


@pytest.mark.asyncio
async def test_contains_on_integer_and_text_fields(client: AsyncClient, seeded) -> None:
    assert sorted(_ids(await _list(client, filters=[{"field": "semester", "op": "contains", "value": "2"}]))) == [2, 4, 7]
    assert sorted(_ids(await _list(client, filters=[{"field": "course_name", "op": "contains", "value": "BASE"}]))) == [2, 5]
    assert _ids(await _list(client, filters=[{"field": "student_name", "op": "contains", "value": "%"}])) == []


@pytest.mark.asyncio
async def test_multi_column_sort(client: AsyncClient, seeded) -> None:
    sorts = [{"field": "course_code", "dir": "asc"}, {"field": "student_nim", "dir": "desc"}]
    assert _ids(await _list(client, sorts=sorts)) == [7, 3, 1, 5, 2, 6, 4]


@pytest.mark.asyncio
async def test_sort_ties_broken_by_id_desc(client: AsyncClient, seeded) -> None:
    assert _ids(await _list(client, sorts=[{"field": "status", "dir": "asc"}])) == [7, 5, 3, 1, 2, 6, 4]


@pytest.mark.asyncio
async def test_sort_by_id_ascending(client: AsyncClient, seeded) -> None:
    assert _ids(await _list(client, sorts=[{"field": "id", "dir": "asc"}])) == [1, 2, 3, 4, 5, 6, 7]
    assert _ids(await _list(client, sort_by="id", sort_dir="asc")) == [1, 2, 3, 4, 5, 6, 7]


@pytest.mark.asyncio
async def test_fallback_sort(client: AsyncClient, seeded) -> None:
    body = await _list(client, sort_by="student_name", sort_dir="asc")
    assert _ids(body) == [2, 1, 4, 3, 6, 5, 7]


@pytest.mark.asyncio
async def test_fallback_used_when_no_sort_rule_is_valid(client: AsyncClient, seeded) -> None:
    body = await _list(client, sorts=[{"field": "password"}], sort_by="semester", sort_dir="asc")
    assert _ids(body) == [6, 5, 3, 1, 7, 4, 2]


@pytest.mark.asyncio
async def test_sorts_take_precedence_over_fallback(client: AsyncClient, seeded) -> None:
    body = await _list(client, sorts=[{"field": "id", "dir": "asc"}], sort_by="student_name", sort_dir="desc")
    assert _ids(body) == [1, 2, 3, 4, 5, 6, 7]


@pytest.mark.asyncio
async def test_listing_is_idempotent(client: AsyncClient, seeded) -> None:
    params = {
        "page": 1,
        "page_size": 4,
        "search": "20210",
        "filters": [{"field": "semester", "op": "in", "value": [1]}],
        "sorts": [{"field": "academic_year", "dir": "desc"}],
    }
    first = await _list(client, **params)
    second = await _list(client, **params)
    assert first == second


@pytest.mark.asyncio
async def test_huge_page_is_empty(client: AsyncClient, seeded) -> None:
    body = await _list(client, page="10000000000000000000")
    assert body["data"] == []
    assert body["meta"]["total"] == 7
    assert body["meta"]["total_pages"] == 1


@pytest.mark.asyncio
async def test_numeric_operand_on_text_field(client: AsyncClient, seeded) -> None:
    body = await _list(client, filters=[{"field": "student_nim", "op": "equals", "value": 2021000001}])
    assert sorted(_ids(body)) == [1, 2]


@pytest.mark.asyncio
async def test_out_of_range_id_rule_is_dropped(client: AsyncClient, seeded) -> None:
    body = await _list(client, filters=[{"field": "id", "op": "equals", "value": 10**20}])
    assert body["meta"]["total"] == 7
