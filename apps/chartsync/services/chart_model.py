"""图表模型：区域集合与列选择状态的双向同步。"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple, get_args

from apps.chartsync.contracts.cell_range import CellRange, RangeSet
from apps.chartsync.contracts.chart_event import ChartModelUpdatedEvent, Origin
from apps.chartsync.contracts.chart_options import ChartOptions, ChartType
from apps.chartsync.contracts.columns import Category, ColState, ColumnRef, ColumnStateSnapshot
from apps.chartsync.contracts.datasource import ChartDatasourceParams, ChartField
from apps.chartsync.infra.events import (
    EVENT_CELL_VALUE_CHANGED,
    EVENT_COLUMN_VISIBLE,
    EVENT_MODEL_UPDATED,
    EVENT_RANGE_SELECTION_CHANGED,
    EventService,
)
from apps.chartsync.infra.grid import ColumnDirectory, RangeController
from apps.chartsync.services.column_state import derive_column_state
from apps.chartsync.services.datasource import ChartDatasource, ChartRows
from apps.chartsync.services.range_splice import (
    apply_range_edit,
    plan_column_insert,
    remove_column_everywhere,
    strip_dimension_columns,
)

LOGGER = logging.getLogger(__name__)

ChartModelListener = Callable[[ChartModelUpdatedEvent], None]


class ChartModel:
    """单个图表实例的状态中心。

    模型是其区域集合的唯一写入者：菜单编辑被翻译为区域编辑并回写到表格，
    表格的选区变化被读取后重新派生列状态。每次状态迁移在一次事件处理内
    同步完成，随后调用数据源并广播 chartModelUpdated。
    """

    def __init__(
        self,
        *,
        options: ChartOptions,
        cell_ranges: Sequence[CellRange],
        event_service: EventService,
        column_directory: ColumnDirectory,
        range_controller: RangeController,
        datasource: ChartDatasource,
    ) -> None:
        """构造图表模型并完成首次取数。

        Parameters
        ----------
        options: ChartOptions
            图表展示配置与聚合开关。
        cell_ranges: Sequence[CellRange]
            创建图表时的选区，全部被视为 value 区域，至少一个。
        event_service: EventService
            表格事件总线，模型在其上注册生命周期内的监听器。
        column_directory: ColumnDirectory
            列目录。
        range_controller: RangeController
            表格区域控制器。
        datasource: ChartDatasource
            图表数据源，模型销毁时一并销毁。
        """

        if not cell_ranges:
            raise ValueError("创建图表至少需要一个单元格区域。")
        self._chart_type: ChartType = options.chart_type
        self._aggregate = options.aggregate
        self._width = options.width
        self._height = options.height
        self._show_tooltips = options.show_tooltips
        self._inside_dialog = options.inside_dialog

        self._event_service = event_service
        self._column_directory = column_directory
        self._range_controller = range_controller
        self._datasource = datasource

        # 区域创建时一律按 value 处理，类目由列状态派生。
        initial = tuple(cell_range.model_copy(update={"chart_mode": "value"}) for cell_range in cell_ranges)
        # 菜单删光所有列后，新区域沿用该区域的行区间。
        self._reference_range: CellRange = initial[0]
        self._range_set = RangeSet(ranges=initial)
        self._history: List[RangeSet] = []
        self._column_state = ColumnStateSnapshot()
        self._chart_data: ChartRows = []
        self._request_seq = 0
        self._pending: Optional[asyncio.Task] = None
        self._last_error: Optional[BaseException] = None
        self._listeners: List[ChartModelListener] = []
        self._grid_listener_removers: List[Callable[[], None]] = []
        self._destroyed = False

        self._range_controller.set_cell_ranges(self._range_set)
        self._refresh_column_state()
        self._update_model(origin=Origin.EXTERNAL_MODEL_UPDATE)

        self._add_grid_listener(EVENT_RANGE_SELECTION_CHANGED, self._on_range_selection_changed)
        self._add_grid_listener(EVENT_MODEL_UPDATED, self._on_model_updated)
        self._add_grid_listener(EVENT_CELL_VALUE_CHANGED, self._on_cell_value_changed)
        self._add_grid_listener(EVENT_COLUMN_VISIBLE, self._on_column_visible)

    # ------------------------------------------------------------------
    # 表格事件
    # ------------------------------------------------------------------
    def _add_grid_listener(self, event_type: str, handler: Callable[[Dict[str, Any]], None]) -> None:
        remover = self._event_service.add_event_listener(event_type, handler)
        self._grid_listener_removers.append(remover)

    def _on_range_selection_changed(self, event: Dict[str, Any]) -> None:
        if self._destroyed:
            return
        self._range_set = self._range_controller.get_cell_ranges()
        self._refresh_column_state()
        self._update_model(origin=Origin.GRID_SELECTION_CHANGE)

    def _on_model_updated(self, event: Dict[str, Any]) -> None:
        if self._destroyed:
            return
        self.update_for_column_change(origin=Origin.EXTERNAL_MODEL_UPDATE)

    def _on_cell_value_changed(self, event: Dict[str, Any]) -> None:
        if self._destroyed:
            return
        self._update_model(origin=Origin.EXTERNAL_MODEL_UPDATE)

    def _on_column_visible(self, event: Dict[str, Any]) -> None:
        if self._destroyed:
            return
        self.update_for_column_change(origin=Origin.EXTERNAL_MODEL_UPDATE)

    def update_for_column_change(self, origin: Origin = Origin.EXTERNAL_MODEL_UPDATE) -> None:
        """可见列变化后从头派生列状态并重新取数，不修改区域集合。"""

        self._refresh_column_state()
        self._update_model(origin=origin)

    # ------------------------------------------------------------------
    # 菜单编辑
    # ------------------------------------------------------------------
    def update(self, updated_col_state: ColState) -> None:
        """响应配置菜单中对某列的勾选或取消勾选。

        Parameters
        ----------
        updated_col_state: ColState
            菜单提交的列状态，selected 表示期望的新状态。

        Raises
        ------
        RangeSyncError
            取消勾选的列不在任何区域中。
        """

        self._ensure_alive()
        found = self._column_state.find(updated_col_state.col_id)
        if found is None:
            LOGGER.debug("忽略未知列的菜单编辑", extra={"col_id": updated_col_state.col_id})
            return
        role, current = found
        if current.is_placeholder or current.selected == updated_col_state.selected:
            LOGGER.debug(
                "菜单编辑未改变列状态",
                extra={"col_id": updated_col_state.col_id, "selected": updated_col_state.selected},
            )
            return
        col_id = updated_col_state.col_id
        range_set = self._range_set
        if updated_col_state.selected:
            is_dimension = role == "dimension"
            if is_dimension:
                # 只允许一个维度：先清理所有维度列留下的区域成员。
                range_set, _ = strip_dimension_columns(
                    range_set=range_set,
                    dimension_ids=self._dimension_ids_in(range_set),
                )
            edit = plan_column_insert(
                range_set=range_set,
                col_id=col_id,
                at_start=is_dimension,
                reference_range=self._reference_range,
                directory=self._column_directory,
            )
            range_set = apply_range_edit(range_set=range_set, edit=edit)
            edits = [edit]
        else:
            # 表格拖选可能产生重叠区域，同一列需从所有区域中移除。
            range_set, edits = remove_column_everywhere(range_set=range_set, col_id=col_id)
        LOGGER.debug(
            "应用区域编辑",
            extra={"op_types": [edit.op_type for edit in edits], "col_id": col_id},
        )
        self._history.append(self._range_set)
        self._commit(range_set=range_set, origin=Origin.USER_MENU_EDIT)

    def revert(self, steps: int = 1) -> None:
        """撤销最近的若干次菜单编辑。

        Parameters
        ----------
        steps: int
            需要回退的步数。
        """

        self._ensure_alive()
        if steps < 1:
            raise ValueError("steps 必须为正整数。")
        if steps > len(self._history):
            message = f"仅有 {len(self._history)} 步可回退，无法回退 {steps} 步。"
            raise ValueError(message)
        restored = self._history[-steps]
        del self._history[-steps:]
        self._commit(range_set=restored, origin=Origin.USER_MENU_EDIT)

    def _commit(self, *, range_set: RangeSet, origin: Origin) -> None:
        self._range_set = range_set
        self.set_cell_ranges()
        self._refresh_column_state()
        self._update_model(origin=origin)

    def _dimension_ids_in(self, range_set: RangeSet) -> List[str]:
        """区域中所有可作维度的列（含当前隐藏列），悬空 ID 跳过。"""

        dimension_ids: List[str] = []
        for col_id in range_set.column_ids():
            column = self._column_directory.get_grid_column(col_id)
            if column is not None and column.can_be_dimension:
                dimension_ids.append(col_id)
        return dimension_ids

    # ------------------------------------------------------------------
    # 重新计算
    # ------------------------------------------------------------------
    def _refresh_column_state(self) -> None:
        self._column_state = derive_column_state(
            displayed_columns=self._column_directory.get_all_displayed_columns(),
            range_set=self._range_set,
        )

    def _row_interval(self) -> Tuple[int, int]:
        last_range = self._range_set.last
        if last_range is None:
            return 0, 0
        start_row = self._range_controller.get_range_start_row(last_range)
        end_row = self._range_controller.get_range_end_row(last_range)
        return start_row, end_row

    def _selected_value_columns(self) -> Tuple[ColumnRef, ...]:
        columns: List[ColumnRef] = []
        for col_id in self._column_state.selected_value_ids():
            column = self._column_directory.get_grid_column(col_id)
            if column is not None:
                columns.append(column)
        return tuple(columns)

    def _update_model(self, *, origin: Origin) -> None:
        """按当前状态取数并广播更新事件。"""

        self._request_seq += 1
        request_seq = self._request_seq
        if not self._column_state.value_states:
            # 没有可选数值列时不取数，消费者渲染空图表。
            self._chart_data = []
            self._raise_chart_updated_event(origin=origin)
            return
        start_row, end_row = self._row_interval()
        params = ChartDatasourceParams(
            category=self._column_state.category,
            value_columns=self._selected_value_columns(),
            start_row=start_row,
            end_row=end_row,
            aggregate=self._aggregate,
        )
        result = self._datasource.get_data(params)
        if inspect.isawaitable(result):
            self._schedule(request_seq=request_seq, awaitable=result, origin=origin)
            return
        self._chart_data = list(result)
        self._raise_chart_updated_event(origin=origin)

    def _schedule(self, *, request_seq: int, awaitable: Awaitable[ChartRows], origin: Origin) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            raise RuntimeError("异步数据源需要在运行中的事件循环内使用。") from None
        self._pending = loop.create_task(
            self._resolve(request_seq=request_seq, awaitable=awaitable, origin=origin),
        )

    async def _resolve(self, *, request_seq: int, awaitable: Awaitable[ChartRows], origin: Origin) -> None:
        try:
            rows = await awaitable
        except Exception as exc:  # noqa: BLE001 - 记录失败并保留上一份数据
            if self._is_superseded(request_seq):
                LOGGER.debug(
                    "丢弃过期请求的取数失败",
                    extra={"request_seq": request_seq, "latest_seq": self._request_seq},
                )
                return
            LOGGER.exception("图表取数失败", extra={"request_seq": request_seq})
            self._last_error = exc
            return
        if self._is_superseded(request_seq):
            # 只接受最新请求的结果。
            LOGGER.debug(
                "丢弃过期的取数结果",
                extra={"request_seq": request_seq, "latest_seq": self._request_seq},
            )
            return
        self._last_error = None
        self._chart_data = list(rows)
        self._raise_chart_updated_event(origin=origin)

    def _is_superseded(self, request_seq: int) -> bool:
        return self._destroyed or request_seq != self._request_seq

    async def flush(self) -> None:
        """等待尚未完成的异步取数。"""

        pending = self._pending
        if pending is not None and not pending.done():
            await asyncio.wait([pending])

    def _raise_chart_updated_event(self, *, origin: Origin) -> None:
        if self._destroyed:
            return
        event = ChartModelUpdatedEvent(origin=origin, request_seq=self._request_seq)
        for listener in list(self._listeners):
            listener(event)

    # ------------------------------------------------------------------
    # 监听与生命周期
    # ------------------------------------------------------------------
    def add_listener(self, listener: ChartModelListener) -> Callable[[], None]:
        """订阅 chartModelUpdated，返回注销函数。"""

        self._ensure_alive()
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def destroy(self) -> None:
        """注销全部监听器并释放数据源，之后不会再触发任何回调。"""

        if self._destroyed:
            return
        self._destroyed = True
        removers = self._grid_listener_removers
        self._grid_listener_removers = []
        for remover in removers:
            remover()
        self._listeners.clear()
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._datasource.destroy()

    @property
    def is_destroyed(self) -> bool:
        return self._destroyed

    def _ensure_alive(self) -> None:
        """销毁后拒绝一切写操作，避免继续回写表格或调用已释放的数据源。"""

        if self._destroyed:
            raise RuntimeError("图表模型已销毁。")

    # ------------------------------------------------------------------
    # 区域回写
    # ------------------------------------------------------------------
    def set_cell_ranges(self) -> None:
        """把模型认定的区域集合写回表格。"""

        self._ensure_alive()
        self._range_controller.set_cell_ranges(self._range_set)

    def remove_ranges(self) -> None:
        """清除表格上的区域高亮，通常在关闭图表时调用。"""

        self._range_controller.set_cell_ranges(RangeSet())

    # ------------------------------------------------------------------
    # 查询接口
    # ------------------------------------------------------------------
    def get_col_state_for_menu(self) -> Tuple[List[ColState], List[ColState]]:
        """返回 (维度列状态, 数值列状态)，占位类目不出现在菜单中。"""

        dimension_cols = [state for state in self._column_state.dimension_states if not state.is_placeholder]
        return dimension_cols, list(self._column_state.value_states)

    def get_column_state(self) -> ColumnStateSnapshot:
        return self._column_state

    def get_range_set(self) -> RangeSet:
        return self._range_set

    def get_data(self) -> ChartRows:
        return self._chart_data

    def get_category(self) -> Category:
        return self._column_state.category

    def get_selected_category(self) -> str:
        return self._column_state.category.col_id

    def get_fields(self) -> List[ChartField]:
        """返回已选数值列的 ID 与展示名称。"""

        return [
            ChartField(col_id=state.col_id, display_name=state.display_name)
            for state in self._column_state.value_states
            if state.selected
        ]

    @property
    def history_depth(self) -> int:
        return len(self._history)

    @property
    def request_seq(self) -> int:
        return self._request_seq

    @property
    def last_error(self) -> Optional[BaseException]:
        return self._last_error

    def get_chart_type(self) -> ChartType:
        return self._chart_type

    def set_chart_type(self, chart_type: ChartType) -> None:
        """切换图表类型；只影响绘制方式，因此不重新取数。"""

        self._ensure_alive()
        if chart_type not in get_args(ChartType):
            message = f"未支持的图表类型: {chart_type}"
            raise ValueError(message)
        self._chart_type = chart_type
        self._raise_chart_updated_event(origin=Origin.USER_MENU_EDIT)

    def get_width(self) -> int:
        return self._width

    def set_width(self, width: int) -> None:
        self._ensure_alive()
        if width <= 0:
            raise ValueError("width 必须为正数。")
        self._width = width

    def get_height(self) -> int:
        return self._height

    def set_height(self, height: int) -> None:
        self._ensure_alive()
        if height <= 0:
            raise ValueError("height 必须为正数。")
        self._height = height

    def is_show_tooltips(self) -> bool:
        return self._show_tooltips

    def is_inside_dialog(self) -> bool:
        return self._inside_dialog
