"""查询规格解析 -- 将不可信的 page/limit/filter/sort 转换为有界的 QueryPlan

纯函数，无 I/O，永不抛出：畸形输入降级为默认值而非拒绝。
输出的是结构化谓词，Store 以绑定参数执行，从不拼接查询片段。
"""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .config import DEFAULT_PAGE_LIMIT, MAX_PAGE, MAX_PAGE_LIMIT
from .models.enums import Role, TaskPriority, TaskStatus

# 可作为过滤谓词的键及其取值集合
FILTERABLE_KEYS: dict[str, type[StrEnum]] = {
    "status": TaskStatus,
    "owner": Role,
    "priority": TaskPriority,
}


class SortField(StrEnum):
    """可排序字段（对外名称）"""

    CREATED_AT = "createdAt"
    UPDATED_AT = "updatedAt"
    PRIORITY = "priority"


class SortDirection(StrEnum):
    ASC = "asc"
    DESC = "desc"


class OrderBy(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: SortField = SortField.CREATED_AT
    direction: SortDirection = SortDirection.DESC


class TaskPredicate(BaseModel):
    """列表查询谓词，各字段之间为 AND 关系

    matches_nothing 为 True 表示某个可识别的键给出了集合外的取值，
    这样的条件不可能命中任何已存储的行。
    """

    model_config = ConfigDict(frozen=True)

    status: TaskStatus | None = None
    owner: Role | None = None
    priority: TaskPriority | None = None
    matches_nothing: bool = False


class QueryParams(BaseModel):
    """调用方原始输入，字段均可缺失或畸形"""

    page: int | str | None = None
    limit: int | str | None = None
    sort: str | None = None
    filter: str | None = None


class QueryPlan(BaseModel):
    """有界查询计划 -- 列表查询到达 Store 的唯一形式

    limit 为 None 表示不分页（仅用于内部固定查询）。
    """

    model_config = ConfigDict(frozen=True)

    predicate: TaskPredicate = Field(default_factory=TaskPredicate)
    order_by: OrderBy = Field(default_factory=OrderBy)
    limit: int | None = DEFAULT_PAGE_LIMIT
    offset: int = 0
    page: int = 1


def _coerce_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def parse_page(value: Any) -> int:
    """page 限制在 [1, MAX_PAGE]；缺失或非法时为 1"""
    page = _coerce_int(value)
    if page is None:
        return 1
    return min(MAX_PAGE, max(1, page))


def parse_limit(value: Any) -> int:
    """limit 限制在 [1, MAX_PAGE_LIMIT]；缺失、非法或 0 时为默认值"""
    limit = _coerce_int(value)
    if not limit:
        return DEFAULT_PAGE_LIMIT
    return min(MAX_PAGE_LIMIT, max(1, limit))


def parse_filter(filter_spec: str | None) -> dict[str, str]:
    """解析 "key:value,key2:value2"

    按第一个 ':' 切分；缺少任一侧的片段直接丢弃。
    重复键以最后一次出现为准。不在此处判断键是否可识别。
    """
    filters: dict[str, str] = {}
    if not filter_spec:
        return filters

    for token in filter_spec.split(","):
        key, sep, value = token.partition(":")
        key, value = key.strip(), value.strip()
        if not sep or not key or not value:
            continue
        filters[key] = value
    return filters


def parse_sort(sort_spec: str | None) -> OrderBy:
    """解析 "field:direction"

    direction 为 asc 时升序，其余一律降序；
    缺失或字段不支持时回落到 createdAt 降序。
    """
    if not sort_spec:
        return OrderBy()

    field, _, direction = sort_spec.partition(":")
    try:
        sort_field = SortField(field.strip())
    except ValueError:
        return OrderBy()

    sort_direction = (
        SortDirection.ASC if direction.strip() == SortDirection.ASC else SortDirection.DESC
    )
    return OrderBy(field=sort_field, direction=sort_direction)


def build_predicate(filters: dict[str, str]) -> TaskPredicate:
    """将键值对映射为结构化谓词，忽略不可识别的键"""
    values: dict[str, Any] = {}
    matches_nothing = False

    for key, raw_value in filters.items():
        enum_type = FILTERABLE_KEYS.get(key)
        if enum_type is None:
            continue
        try:
            values[key] = enum_type(raw_value)
        except ValueError:
            matches_nothing = True

    return TaskPredicate(**values, matches_nothing=matches_nothing)


def build_query_plan(
    params: QueryParams | None = None,
    forced: dict[str, str] | None = None,
) -> QueryPlan:
    """构建查询计划

    Args:
        params: 调用方原始输入
        forced: 强制附加的谓词，在调用方 filter 之后合并，同名键以其为准

    Returns:
        QueryPlan，offset = (page - 1) * limit
    """
    params = params or QueryParams()
    page = parse_page(params.page)
    limit = parse_limit(params.limit)

    filters = parse_filter(params.filter)
    if forced:
        filters.update(forced)

    return QueryPlan(
        predicate=build_predicate(filters),
        order_by=parse_sort(params.sort),
        limit=limit,
        offset=(page - 1) * limit,
        page=page,
    )
