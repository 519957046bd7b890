"""查询规格解析单元测试

测试内容：
1. page / limit 钳制与默认值
2. filter 解析与谓词构建
3. sort 解析与回落
4. forced 谓词优先
"""

import pytest
from missionctl.core.config import MAX_PAGE, MAX_PAGE_LIMIT
from missionctl.core.models import Role, TaskPriority, TaskStatus
from missionctl.core.query import (
    OrderBy,
    QueryParams,
    SortDirection,
    SortField,
    TaskPredicate,
    build_predicate,
    build_query_plan,
    parse_filter,
    parse_limit,
    parse_page,
    parse_sort,
)


class TestPaging:
    """page / limit 解析"""

    @pytest.mark.parametrize(
        "value,expected",
        [(None, 1), ("", 1), ("abc", 1), (0, 1), (-3, 1), ("0", 1), (1, 1), ("7", 7), (42, 42)],
    )
    def test_parse_page(self, value, expected):
        assert parse_page(value) == expected

    @pytest.mark.parametrize(
        "value,expected",
        [
            (None, 20),
            ("x", 20),
            ("2.5", 20),
            (0, 20),
            (-5, 1),
            (1, 1),
            (50, 50),
            ("100", 100),
            (500, 100),
        ],
    )
    def test_parse_limit(self, value, expected):
        assert parse_limit(value) == expected

    def test_offset_computed_from_page_and_limit(self):
        plan = build_query_plan(QueryParams(page="3", limit="10"))
        assert plan.page == 3
        assert plan.limit == 10
        assert plan.offset == 20

    def test_page_zero_behaves_as_first_page(self):
        plan = build_query_plan(QueryParams(page=0))
        assert plan.page == 1
        assert plan.offset == 0

    @pytest.mark.parametrize("value", ["99999999999999999999", str(2**63 - 1), 10**30])
    def test_huge_page_capped(self, value):
        assert parse_page(value) == MAX_PAGE

        plan = build_query_plan(QueryParams(page=value, limit=MAX_PAGE_LIMIT))
        # offset 必须仍可作为 SQLite INTEGER 绑定
        assert plan.offset <= 2**63 - 1


class TestFilter:
    """filter 解析"""

    def test_parse_multiple_pairs(self):
        assert parse_filter("status:done,owner:forge") == {"status": "done", "owner": "forge"}

    def test_split_on_first_colon(self):
        assert parse_filter("status:done:extra") == {"status": "done:extra"}

    def test_malformed_tokens_dropped(self):
        assert parse_filter("status,:done,owner:,,priority:high") == {"priority": "high"}

    def test_last_occurrence_wins(self):
        assert parse_filter("status:todo,status:done") == {"status": "done"}

    def test_empty_filter(self):
        assert parse_filter(None) == {}
        assert parse_filter("") == {}

    def test_recognized_keys_become_predicate(self):
        predicate = build_predicate({"status": "done", "owner": "forge", "priority": "high"})
        assert predicate == TaskPredicate(
            status=TaskStatus.DONE,
            owner=Role.FORGE,
            priority=TaskPriority.HIGH,
        )

    def test_unknown_key_ignored(self):
        """bogus:x 等价于无过滤"""
        plan = build_query_plan(QueryParams(filter="bogus:x"))
        assert plan.predicate == TaskPredicate()

    def test_out_of_set_value_matches_nothing(self):
        predicate = build_predicate({"status": "archived"})
        assert predicate.matches_nothing is True


class TestSort:
    """sort 解析"""

    def test_default_order(self):
        assert parse_sort(None) == OrderBy(
            field=SortField.CREATED_AT, direction=SortDirection.DESC
        )

    def test_priority_ascending(self):
        assert parse_sort("priority:asc") == OrderBy(
            field=SortField.PRIORITY, direction=SortDirection.ASC
        )

    @pytest.mark.parametrize("direction", ["desc", "DESC", "ASC", "up", ""])
    def test_anything_but_asc_is_descending(self, direction: str):
        assert parse_sort(f"updatedAt:{direction}").direction == SortDirection.DESC

    def test_missing_direction_is_descending(self):
        assert parse_sort("updatedAt") == OrderBy(
            field=SortField.UPDATED_AT, direction=SortDirection.DESC
        )

    def test_unsupported_field_falls_back(self):
        assert parse_sort("title:asc") == OrderBy()


class TestForcedPredicate:
    """forced 谓词在调用方 filter 之后合并"""

    def test_forced_value_wins(self):
        plan = build_query_plan(
            QueryParams(filter="owner:qa,status:done"),
            forced={"owner": Role.FORGE},
        )
        assert plan.predicate.owner == Role.FORGE
        assert plan.predicate.status == TaskStatus.DONE

    def test_forced_value_overrides_invalid_caller_value(self):
        plan = build_query_plan(
            QueryParams(filter="status:bogus"),
            forced={"status": TaskStatus.BLOCKED},
        )
        assert plan.predicate.status == TaskStatus.BLOCKED
        assert plan.predicate.matches_nothing is False
