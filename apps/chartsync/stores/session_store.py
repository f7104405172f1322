"""图表会话 Store，集中管理进程内的图表模型及其表格协作者。"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, Sequence

from apps.chartsync.contracts.cell_range import CellRange
from apps.chartsync.contracts.chart_event import ChartModelUpdatedEvent
from apps.chartsync.contracts.chart_options import ChartOptions
from apps.chartsync.contracts.columns import ColumnRef
from apps.chartsync.infra.events import EventService
from apps.chartsync.infra.grid import InMemoryColumnDirectory, InMemoryRangeController, InMemoryRowModel
from apps.chartsync.services.chart_model import ChartModel
from apps.chartsync.services.datasource import DataFrameDatasource


@dataclass
class ChartSession:
    """一个图表及其所依附的内存表格。"""

    chart_id: str
    model: ChartModel
    event_service: EventService
    directory: InMemoryColumnDirectory
    range_controller: InMemoryRangeController
    row_model: InMemoryRowModel
    # 只保留最近一次更新事件，供状态查询读取来源。
    events: Deque[ChartModelUpdatedEvent] = field(default_factory=lambda: deque(maxlen=1))


def build_chart_session(
    *,
    chart_id: str,
    columns: Sequence[ColumnRef],
    rows: Sequence[Dict[str, object]],
    cell_ranges: Sequence[CellRange],
    options: ChartOptions,
) -> ChartSession:
    """组装表格协作者并创建图表模型。

    Parameters
    ----------
    chart_id: str
        会话标识。
    columns: Sequence[ColumnRef]
        表格全部列，按展示顺序排列。
    rows: Sequence[Dict[str, object]]
        表格行数据。
    cell_ranges: Sequence[CellRange]
        创建图表时的选区。
    options: ChartOptions
        图表配置。

    Returns
    -------
    ChartSession
        已完成首次取数的会话。
    """

    event_service = EventService()
    directory = InMemoryColumnDirectory(columns, event_service=event_service)
    range_controller = InMemoryRangeController(event_service)
    row_model = InMemoryRowModel(rows, event_service)
    model = ChartModel(
        options=options,
        cell_ranges=cell_ranges,
        event_service=event_service,
        column_directory=directory,
        range_controller=range_controller,
        datasource=DataFrameDatasource(lambda: row_model.rows),
    )
    session = ChartSession(
        chart_id=chart_id,
        model=model,
        event_service=event_service,
        directory=directory,
        range_controller=range_controller,
        row_model=row_model,
    )
    model.add_listener(session.events.append)
    return session


@dataclass
class ChartSessionStore:
    """以 chart_id 为键缓存图表会话。"""

    _sessions: Dict[str, ChartSession] = field(default_factory=dict)

    def save(self, session: ChartSession) -> None:
        """写入会话，同名会话已存在时立即失败。"""

        if session.chart_id in self._sessions:
            message = f"chart_id={session.chart_id} 已存在。"
            raise ValueError(message)
        self._sessions[session.chart_id] = session

    def require(self, chart_id: str) -> ChartSession:
        """读取会话，不存在时立即失败。"""

        if chart_id not in self._sessions:
            message = f"chart_id={chart_id} 不存在或已关闭。"
            raise KeyError(message)
        return self._sessions[chart_id]

    def close(self, chart_id: str) -> None:
        """销毁图表模型、清除表格高亮并移除会话。"""

        session = self.require(chart_id)
        session.model.remove_ranges()
        session.model.destroy()
        del self._sessions[chart_id]
