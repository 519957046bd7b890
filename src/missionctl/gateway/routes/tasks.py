"""任务路由 -- /api/v1/tasks

POST   /                      创建任务（201）
GET    /                      列表查询（page / limit / sort / filter）
GET    /by-owner/{owner}      按负责角色查询
GET    /by-status/{status}    按状态查询
GET    /blocked/all           全部 blocked 任务，不分页
GET    /meta/enums            可选状态 / 角色 / 优先级
GET    /{task_id}             任务详情
PATCH  /{task_id}             部分字段更新
PATCH  /{task_id}/status      状态流转
PATCH  /{task_id}/assignee    指派 agent
DELETE /{task_id}             删除任务

page / limit 以原始字符串接收，由查询规格解析器降级处理，不在此处拒绝。
"""

from fastapi import APIRouter, Depends, Query, Request
from missionctl.core.models import (
    AssigneeUpdate,
    Role,
    StatusUpdate,
    Task,
    TaskDraft,
    TaskPatch,
    TaskStatus,
)
from missionctl.core.query import QueryParams
from missionctl.core.service import TaskPage, TaskService
from starlette.responses import JSONResponse

from ..deps import get_task_service
from ..responses import Pagination, error_response, serialize_task, success_response

router = APIRouter(prefix="/api/v1/tasks")


def list_query_params(
    page: str | None = Query(default=None, description="页码，最小为 1"),
    limit: str | None = Query(default=None, description="每页条数，范围 [1, 100]"),
    sort: str | None = Query(default=None, description="field:direction"),
    filter: str | None = Query(default=None, description="key:value,key2:value2"),
) -> QueryParams:
    return QueryParams(page=page, limit=limit, sort=sort, filter=filter)


def _page_response(request: Request, result: TaskPage) -> JSONResponse:
    pagination = Pagination(page=result.page, limit=result.limit, total=result.total)
    return success_response(
        request,
        {
            "tasks": [serialize_task(t) for t in result.tasks],
            "pagination": pagination.model_dump(),
        },
        pagination=pagination,
    )


def _task_response(
    request: Request,
    task: Task | None,
    status_code: int = 200,
) -> JSONResponse:
    if task is None:
        return error_response(request, "NOT_FOUND", "Task not found", 404)
    return success_response(request, serialize_task(task), status_code)


@router.post("")
async def create_task(
    request: Request,
    draft: TaskDraft,
    service: TaskService = Depends(get_task_service),
):
    """创建任务；未指定 status 时为 todo"""
    task = await service.create(draft)
    return _task_response(request, task, 201)


@router.get("")
async def list_tasks(
    request: Request,
    params: QueryParams = Depends(list_query_params),
    service: TaskService = Depends(get_task_service),
):
    """分页查询任务列表"""
    return _page_response(request, await service.list_tasks(params))


@router.get("/by-owner/{owner}")
async def list_tasks_by_owner(
    request: Request,
    owner: Role,
    params: QueryParams = Depends(list_query_params),
    service: TaskService = Depends(get_task_service),
):
    """按负责角色查询，路径中的 owner 优先于 filter"""
    return _page_response(request, await service.find_by_owner(owner, params))


@router.get("/by-status/{status}")
async def list_tasks_by_status(
    request: Request,
    status: TaskStatus,
    params: QueryParams = Depends(list_query_params),
    service: TaskService = Depends(get_task_service),
):
    """按状态查询，路径中的 status 优先于 filter"""
    return _page_response(request, await service.find_by_status(status, params))


@router.get("/blocked/all")
async def list_blocked_tasks(
    request: Request,
    service: TaskService = Depends(get_task_service),
):
    """全部 blocked 任务，按 updatedAt 倒序"""
    tasks = await service.find_blocked()
    return success_response(request, {"tasks": [serialize_task(t) for t in tasks]})


@router.get("/meta/enums")
async def get_enums(
    request: Request,
    service: TaskService = Depends(get_task_service),
):
    """供客户端渲染选项的枚举值"""
    return success_response(
        request,
        {
            "statuses": service.get_valid_statuses(),
            "roles": service.get_valid_roles(),
            "priorities": service.get_valid_priorities(),
        },
    )


@router.get("/{task_id}")
async def get_task(
    request: Request,
    task_id: str,
    service: TaskService = Depends(get_task_service),
):
    return _task_response(request, await service.find_by_id(task_id))


@router.patch("/{task_id}")
async def update_task(
    request: Request,
    task_id: str,
    patch: TaskPatch,
    service: TaskService = Depends(get_task_service),
):
    """部分字段更新，不触发状态副作用"""
    return _task_response(request, await service.update(task_id, patch))


@router.patch("/{task_id}/status")
async def update_task_status(
    request: Request,
    task_id: str,
    body: StatusUpdate,
    service: TaskService = Depends(get_task_service),
):
    """状态流转"""
    task = await service.update_status(task_id, body.status, body.blocker_reason)
    return _task_response(request, task)


@router.patch("/{task_id}/assignee")
async def assign_task(
    request: Request,
    task_id: str,
    body: AssigneeUpdate,
    service: TaskService = Depends(get_task_service),
):
    """指派或取消指派"""
    return _task_response(request, await service.assign(task_id, body.assignee_id))


@router.delete("/{task_id}")
async def delete_task(
    request: Request,
    task_id: str,
    service: TaskService = Depends(get_task_service),
):
    if not await service.delete(task_id):
        return error_response(request, "NOT_FOUND", "Task not found", 404)
    return success_response(request, {"deleted": True})
