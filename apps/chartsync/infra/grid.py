"""表格侧协作者：列目录与区域控制器的接口及内存实现。"""

from __future__ import annotations

from typing import Dict, List, Optional, Protocol, Sequence

from apps.chartsync.contracts.cell_range import CellRange, RangeSet
from apps.chartsync.contracts.columns import ColumnRef
from apps.chartsync.infra.events import (
    EVENT_CELL_VALUE_CHANGED,
    EVENT_COLUMN_VISIBLE,
    EVENT_MODEL_UPDATED,
    EVENT_RANGE_SELECTION_CHANGED,
    EventService,
)


class ColumnDirectory(Protocol):
    """权威的列目录，图表模型只通过 col_id 查询。"""

    def get_all_displayed_columns(self) -> List[ColumnRef]:
        """按展示顺序返回当前可见列。"""

    def get_grid_column(self, col_id: str) -> Optional[ColumnRef]:
        """按 ID 查找列（含隐藏列），不存在时返回 None。"""

    def get_displayed_col_before(self, col_id: str) -> Optional[ColumnRef]:
        """返回展示顺序中紧邻其前的可见列。"""

    def get_displayed_col_after(self, col_id: str) -> Optional[ColumnRef]:
        """返回展示顺序中紧邻其后的可见列。"""


class RangeController(Protocol):
    """表格的区域选择组件，只负责转发用户选区并展示模型回写的区域。"""

    def get_cell_ranges(self) -> RangeSet:
        """返回表格当前展示的区域集合。"""

    def set_cell_ranges(self, range_set: RangeSet) -> None:
        """写入模型认定的区域集合，不触发选区事件。"""

    def get_range_start_row(self, cell_range: CellRange) -> int:
        """解析区域的起始行索引。"""

    def get_range_end_row(self, cell_range: CellRange) -> int:
        """解析区域的结束行索引。"""


class InMemoryColumnDirectory:
    """基于有序列表的列目录，支持可见性切换。"""

    def __init__(self, columns: Sequence[ColumnRef], event_service: Optional[EventService] = None) -> None:
        """初始化列目录。

        Parameters
        ----------
        columns: Sequence[ColumnRef]
            按展示顺序排列的全部列。
        event_service: Optional[EventService]
            可见性变化时用于广播 columnVisible 事件。
        """

        col_ids = [column.col_id for column in columns]
        if len(set(col_ids)) != len(col_ids):
            raise ValueError("列 ID 不能重复。")
        self._columns: List[ColumnRef] = list(columns)
        self._hidden: set[str] = set()
        self._event_service = event_service

    def get_all_displayed_columns(self) -> List[ColumnRef]:
        return [column for column in self._columns if column.col_id not in self._hidden]

    def get_grid_column(self, col_id: str) -> Optional[ColumnRef]:
        for column in self._columns:
            if column.col_id == col_id:
                return column
        return None

    def get_displayed_col_before(self, col_id: str) -> Optional[ColumnRef]:
        return self._displayed_neighbour(col_id=col_id, offset=-1)

    def get_displayed_col_after(self, col_id: str) -> Optional[ColumnRef]:
        return self._displayed_neighbour(col_id=col_id, offset=1)

    def _displayed_neighbour(self, *, col_id: str, offset: int) -> Optional[ColumnRef]:
        """返回相邻的可见列；列本身不可见时没有邻居。"""

        displayed = self.get_all_displayed_columns()
        ids = [column.col_id for column in displayed]
        if col_id not in ids:
            return None
        index = ids.index(col_id) + offset
        if index < 0 or index >= len(displayed):
            return None
        return displayed[index]

    def set_column_visible(self, col_id: str, visible: bool) -> None:
        """切换列可见性，状态真正变化时广播事件。"""

        if self.get_grid_column(col_id) is None:
            message = f"col_id={col_id} 不存在。"
            raise KeyError(message)
        currently_visible = col_id not in self._hidden
        if currently_visible == visible:
            return
        if visible:
            self._hidden.discard(col_id)
        else:
            self._hidden.add(col_id)
        if self._event_service is not None:
            self._event_service.dispatch_event(
                {"type": EVENT_COLUMN_VISIBLE, "col_id": col_id, "visible": visible},
            )


class InMemoryRangeController:
    """保存表格选区并在用户编辑时广播 rangeSelectionChanged。"""

    def __init__(self, event_service: EventService, range_set: Optional[RangeSet] = None) -> None:
        self._event_service = event_service
        self._range_set = range_set or RangeSet()

    def get_cell_ranges(self) -> RangeSet:
        return self._range_set

    def set_cell_ranges(self, range_set: RangeSet) -> None:
        self._range_set = range_set

    def select_ranges(self, range_set: RangeSet) -> None:
        """模拟用户拖选：更新选区并通知监听者。"""

        self._range_set = range_set
        self._event_service.dispatch_event({"type": EVENT_RANGE_SELECTION_CHANGED})

    def get_range_start_row(self, cell_range: CellRange) -> int:
        return min(cell_range.start_row, cell_range.end_row)

    def get_range_end_row(self, cell_range: CellRange) -> int:
        return max(cell_range.start_row, cell_range.end_row)


class InMemoryRowModel:
    """行数据容器，负责单元格编辑与整体刷新事件。"""

    def __init__(self, rows: Sequence[Dict[str, object]], event_service: EventService) -> None:
        self._rows: List[Dict[str, object]] = [dict(row) for row in rows]
        self._event_service = event_service

    @property
    def rows(self) -> List[Dict[str, object]]:
        return self._rows

    def set_cell_value(self, row_index: int, col_id: str, value: object) -> None:
        """修改单元格并广播 cellValueChanged。"""

        if row_index < 0 or row_index >= len(self._rows):
            message = f"行索引 {row_index} 超出范围 0..{len(self._rows) - 1}。"
            raise IndexError(message)
        self._rows[row_index][col_id] = value
        self._event_service.dispatch_event(
            {"type": EVENT_CELL_VALUE_CHANGED, "row_index": row_index, "col_id": col_id},
        )

    def set_rows(self, rows: Sequence[Dict[str, object]]) -> None:
        """整体替换行数据并广播 modelUpdated。"""

        self._rows = [dict(row) for row in rows]
        self._event_service.dispatch_event({"type": EVENT_MODEL_UPDATED})
