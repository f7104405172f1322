"""FastAPI 路由定义。"""

from __future__ import annotations

import logging
from typing import Callable
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, status

from apps.chartsync.api.dependencies import get_api_recorder, get_session_store
from apps.chartsync.api.schemas import (
    CellEditRequest,
    ChartCreateRequest,
    ChartRevertRequest,
    ChartSizeRequest,
    ChartStateResponse,
    ChartTypeRequest,
    ColumnUpdateRequest,
    ColumnVisibilityRequest,
    RangeSelectRequest,
    SchemaExportResponse,
)
from apps.chartsync.contracts.cell_range import CellRange, RangeEdit, RangeSet
from apps.chartsync.contracts.chart_event import ChartModelUpdatedEvent
from apps.chartsync.contracts.chart_options import ChartOptions
from apps.chartsync.contracts.columns import ColState, ColumnRef, ColumnStateSnapshot
from apps.chartsync.contracts.datasource import ChartDatasourceParams
from apps.chartsync.infra.persistence import ApiRecorder
from apps.chartsync.stores import ChartSession, ChartSessionStore, build_chart_session

LOGGER = logging.getLogger(__name__)

router = APIRouter()

SCHEMA_EXPORT_MODELS: dict[str, type] = {
    ColumnRef.schema_name(): ColumnRef,
    ColState.schema_name(): ColState,
    ColumnStateSnapshot.schema_name(): ColumnStateSnapshot,
    CellRange.schema_name(): CellRange,
    RangeSet.schema_name(): RangeSet,
    RangeEdit.schema_name(): RangeEdit,
    ChartOptions.schema_name(): ChartOptions,
    ChartDatasourceParams.schema_name(): ChartDatasourceParams,
    ChartModelUpdatedEvent.schema_name(): ChartModelUpdatedEvent,
}


def _build_state(session: ChartSession) -> ChartStateResponse:
    """把图表模型的查询接口汇总为响应。"""

    model = session.model
    dimension_cols, value_cols = model.get_col_state_for_menu()
    last_event = session.events[-1] if session.events else None
    return ChartStateResponse(
        chart_id=session.chart_id,
        dimension_cols=dimension_cols,
        value_cols=value_cols,
        selected_category=model.get_selected_category(),
        fields=model.get_fields(),
        chart_type=model.get_chart_type(),
        width=model.get_width(),
        height=model.get_height(),
        show_tooltips=model.is_show_tooltips(),
        inside_dialog=model.is_inside_dialog(),
        ranges=model.get_range_set(),
        data=model.get_data(),
        history_depth=model.history_depth,
        last_origin=last_event.origin if last_event is not None else None,
        from_grid=last_event.from_grid if last_event is not None else False,
    )


def _record_error(
    api_recorder: ApiRecorder,
    endpoint: str,
    *,
    error: Exception,
    status_code: int,
) -> None:
    """落盘错误信息并记录日志。"""

    LOGGER.warning(
        "API 调用失败",
        extra={
            "endpoint": endpoint,
            "error_type": error.__class__.__name__,
            "status_code": status_code,
        },
    )
    api_recorder.record_error(
        endpoint=endpoint,
        payload={
            "error_type": error.__class__.__name__,
            "error_message": str(error),
            "status_code": status_code,
        },
    )


def _execute(
    *,
    endpoint: str,
    api_recorder: ApiRecorder,
    request: object,
    action: Callable[[], ChartStateResponse],
) -> ChartStateResponse:
    """统一的落盘与异常映射：KeyError→404，ValueError→400，RuntimeError→500。"""

    if request is not None:
        api_recorder.record(endpoint=endpoint, direction="request", payload=request)
    try:
        response = action()
    except KeyError as error:
        _record_error(api_recorder, endpoint, error=error, status_code=status.HTTP_404_NOT_FOUND)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error)) from error
    except ValueError as error:
        _record_error(api_recorder, endpoint, error=error, status_code=status.HTTP_400_BAD_REQUEST)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error)) from error
    except RuntimeError as error:
        _record_error(api_recorder, endpoint, error=error, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(error)) from error
    except Exception as error:  # noqa: BLE001 - 记录未知异常并抛出
        LOGGER.exception("图表会话操作失败", extra={"endpoint": endpoint})
        _record_error(api_recorder, endpoint, error=error, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
        raise
    api_recorder.record(endpoint=endpoint, direction="response", payload=response)
    return response


@router.post("/api/chart/create", response_model=ChartStateResponse)
def create_chart(
    request: ChartCreateRequest,
    session_store: ChartSessionStore = Depends(get_session_store),
    api_recorder: ApiRecorder = Depends(get_api_recorder),
) -> ChartStateResponse:
    """基于表格列、行与选区创建图表会话。"""

    def action() -> ChartStateResponse:
        chart_id = request.chart_id or f"chart_{uuid4()}"
        session = build_chart_session(
            chart_id=chart_id,
            columns=request.columns,
            rows=request.rows,
            cell_ranges=request.ranges,
            options=request.options,
        )
        try:
            session_store.save(session)
        except ValueError:
            session.model.destroy()
            raise
        return _build_state(session)

    return _execute(endpoint="api_chart_create", api_recorder=api_recorder, request=request, action=action)


@router.get("/api/chart/{chart_id}/state", response_model=ChartStateResponse)
def get_chart_state(
    chart_id: str,
    session_store: ChartSessionStore = Depends(get_session_store),
    api_recorder: ApiRecorder = Depends(get_api_recorder),
) -> ChartStateResponse:
    """返回菜单与渲染器所需的全部查询结果。"""

    def action() -> ChartStateResponse:
        return _build_state(session_store.require(chart_id))

    return _execute(endpoint="api_chart_state", api_recorder=api_recorder, request=None, action=action)


@router.post("/api/chart/{chart_id}/columns", response_model=ChartStateResponse)
def update_column(
    chart_id: str,
    request: ColumnUpdateRequest,
    session_store: ChartSessionStore = Depends(get_session_store),
    api_recorder: ApiRecorder = Depends(get_api_recorder),
) -> ChartStateResponse:
    """配置菜单勾选或取消勾选某列。"""

    def action() -> ChartStateResponse:
        session = session_store.require(chart_id)
        found = session.model.get_column_state().find(request.col_id)
        display_name = found[1].display_name if found is not None else request.col_id
        session.model.update(
            ColState(col_id=request.col_id, display_name=display_name, selected=request.selected),
        )
        return _build_state(session)

    return _execute(endpoint="api_chart_columns", api_recorder=api_recorder, request=request, action=action)


@router.post("/api/chart/{chart_id}/ranges", response_model=ChartStateResponse)
def select_ranges(
    chart_id: str,
    request: RangeSelectRequest,
    session_store: ChartSessionStore = Depends(get_session_store),
    api_recorder: ApiRecorder = Depends(get_api_recorder),
) -> ChartStateResponse:
    """转发表格上的用户选区变化。"""

    def action() -> ChartStateResponse:
        session = session_store.require(chart_id)
        session.range_controller.select_ranges(RangeSet(ranges=tuple(request.ranges)))
        return _build_state(session)

    return _execute(endpoint="api_chart_ranges", api_recorder=api_recorder, request=request, action=action)


@router.post("/api/chart/{chart_id}/visibility", response_model=ChartStateResponse)
def set_column_visibility(
    chart_id: str,
    request: ColumnVisibilityRequest,
    session_store: ChartSessionStore = Depends(get_session_store),
    api_recorder: ApiRecorder = Depends(get_api_recorder),
) -> ChartStateResponse:
    """切换列可见性。"""

    def action() -> ChartStateResponse:
        session = session_store.require(chart_id)
        session.directory.set_column_visible(request.col_id, request.visible)
        return _build_state(session)

    return _execute(endpoint="api_chart_visibility", api_recorder=api_recorder, request=request, action=action)


@router.post("/api/chart/{chart_id}/cells", response_model=ChartStateResponse)
def edit_cell(
    chart_id: str,
    request: CellEditRequest,
    session_store: ChartSessionStore = Depends(get_session_store),
    api_recorder: ApiRecorder = Depends(get_api_recorder),
) -> ChartStateResponse:
    """修改单元格值。"""

    def action() -> ChartStateResponse:
        session = session_store.require(chart_id)
        try:
            session.row_model.set_cell_value(request.row_index, request.col_id, request.value)
        except IndexError as error:
            raise ValueError(str(error)) from error
        return _build_state(session)

    return _execute(endpoint="api_chart_cells", api_recorder=api_recorder, request=request, action=action)


@router.post("/api/chart/{chart_id}/type", response_model=ChartStateResponse)
def set_chart_type(
    chart_id: str,
    request: ChartTypeRequest,
    session_store: ChartSessionStore = Depends(get_session_store),
    api_recorder: ApiRecorder = Depends(get_api_recorder),
) -> ChartStateResponse:
    """切换图表类型。"""

    def action() -> ChartStateResponse:
        session = session_store.require(chart_id)
        session.model.set_chart_type(request.chart_type)
        return _build_state(session)

    return _execute(endpoint="api_chart_type", api_recorder=api_recorder, request=request, action=action)


@router.post("/api/chart/{chart_id}/size", response_model=ChartStateResponse)
def set_chart_size(
    chart_id: str,
    request: ChartSizeRequest,
    session_store: ChartSessionStore = Depends(get_session_store),
    api_recorder: ApiRecorder = Depends(get_api_recorder),
) -> ChartStateResponse:
    """调整画布尺寸，不触发更新事件。"""

    def action() -> ChartStateResponse:
        session = session_store.require(chart_id)
        if request.width is not None:
            session.model.set_width(request.width)
        if request.height is not None:
            session.model.set_height(request.height)
        return _build_state(session)

    return _execute(endpoint="api_chart_size", api_recorder=api_recorder, request=request, action=action)


@router.post("/api/chart/{chart_id}/revert", response_model=ChartStateResponse)
def revert_chart(
    chart_id: str,
    request: ChartRevertRequest,
    session_store: ChartSessionStore = Depends(get_session_store),
    api_recorder: ApiRecorder = Depends(get_api_recorder),
) -> ChartStateResponse:
    """撤销最近的菜单编辑。"""

    def action() -> ChartStateResponse:
        session = session_store.require(chart_id)
        session.model.revert(steps=request.steps)
        return _build_state(session)

    return _execute(endpoint="api_chart_revert", api_recorder=api_recorder, request=request, action=action)


@router.delete("/api/chart/{chart_id}", status_code=status.HTTP_204_NO_CONTENT)
def close_chart(
    chart_id: str,
    session_store: ChartSessionStore = Depends(get_session_store),
    api_recorder: ApiRecorder = Depends(get_api_recorder),
) -> None:
    """关闭图表：销毁模型并清除表格高亮。"""

    endpoint = "api_chart_close"
    try:
        session_store.close(chart_id)
    except KeyError as error:
        _record_error(api_recorder, endpoint, error=error, status_code=status.HTTP_404_NOT_FOUND)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error)) from error


@router.get("/api/schema/export", response_model=SchemaExportResponse)
def export_contract_schemas() -> SchemaExportResponse:
    """导出全部契约的 JSONSchema。"""

    schemas = {name: model.model_json_schema() for name, model in SCHEMA_EXPORT_MODELS.items()}
    return SchemaExportResponse(schemas=schemas)
