"""测试前置配置与公共夹具。"""

from __future__ import annotations

import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Callable, Dict, List, Optional, Sequence

import pytest


def pytest_configure() -> None:
    """确保仓库根目录位于 Python 模块搜索路径。"""

    root = Path(__file__).resolve().parents[3]
    if str(root) not in sys.path:
        sys.path.insert(0, str(root))


class RecordingDatasource:
    """记录每次取数请求的同步数据源。"""

    def __init__(self) -> None:
        self.calls: List[object] = []
        self.destroyed = False

    def get_data(self, params) -> List[Dict[str, object]]:
        self.calls.append(params)
        if not params.value_columns:
            return []
        return [{"call": len(self.calls), "category": params.category.col_id}]

    def destroy(self) -> None:
        self.destroyed = True


@pytest.fixture
def grid_columns():
    """展示顺序：athlete | country | gold silver bronze total | sport | year。"""

    from apps.chartsync.contracts import ColumnRef

    return [
        ColumnRef(col_id="athlete", display_name="Athlete"),
        ColumnRef(col_id="country", display_name="Country", enable_row_group=True),
        ColumnRef(col_id="gold", display_name="Gold", enable_value=True),
        ColumnRef(col_id="silver", display_name="Silver", enable_value=True),
        ColumnRef(col_id="bronze", display_name="Bronze", enable_value=True),
        ColumnRef(col_id="total", display_name="Total", enable_value=True),
        ColumnRef(col_id="sport", display_name="Sport", enable_pivot=True),
        ColumnRef(col_id="year", display_name="Year", enable_row_group=True, enable_value=True),
    ]


@pytest.fixture
def chart_env(grid_columns) -> Callable[..., SimpleNamespace]:
    """构造图表模型及其内存协作者的工厂。"""

    from apps.chartsync.contracts import CellRange, ChartOptions
    from apps.chartsync.infra import EventService, InMemoryColumnDirectory, InMemoryRangeController
    from apps.chartsync.services import ChartModel

    def build(
        ranges: Sequence[CellRange],
        *,
        options: Optional[ChartOptions] = None,
        datasource: Optional[object] = None,
    ) -> SimpleNamespace:
        event_service = EventService()
        directory = InMemoryColumnDirectory(grid_columns, event_service=event_service)
        controller = InMemoryRangeController(event_service)
        source = datasource if datasource is not None else RecordingDatasource()
        model = ChartModel(
            options=options or ChartOptions(),
            cell_ranges=list(ranges),
            event_service=event_service,
            column_directory=directory,
            range_controller=controller,
            datasource=source,
        )
        events: List[object] = []
        model.add_listener(events.append)
        return SimpleNamespace(
            model=model,
            event_service=event_service,
            directory=directory,
            controller=controller,
            datasource=source,
            events=events,
        )

    return build
