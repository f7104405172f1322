"""事件总线、内存表格协作者与会话 Store 测试。"""

from __future__ import annotations

import pytest

from apps.chartsync.contracts import CellRange, ChartOptions, Origin, RangeSet
from apps.chartsync.infra import EventService, InMemoryColumnDirectory, InMemoryRangeController, InMemoryRowModel
from apps.chartsync.infra.events import EVENT_COLUMN_VISIBLE, EVENT_RANGE_SELECTION_CHANGED
from apps.chartsync.stores import ChartSessionStore, build_chart_session


def test_event_service_dispatch_and_remove() -> None:
    """注销函数可重复调用，缺少 type 的事件被拒绝。"""

    service = EventService()
    received = []
    remove = service.add_event_listener("custom", received.append)
    service.dispatch_event({"type": "custom", "value": 1})
    remove()
    remove()
    service.dispatch_event({"type": "custom", "value": 2})
    assert received == [{"type": "custom", "value": 1}]
    assert service.listener_count("custom") == 0
    with pytest.raises(ValueError):
        service.dispatch_event({"value": 3})


def test_directory_neighbours_skip_hidden_columns(grid_columns) -> None:
    """相邻关系只在可见列之间成立。"""

    service = EventService()
    events = []
    service.add_event_listener(EVENT_COLUMN_VISIBLE, events.append)
    directory = InMemoryColumnDirectory(grid_columns, event_service=service)
    assert directory.get_displayed_col_after("gold").col_id == "silver"
    directory.set_column_visible("silver", False)
    directory.set_column_visible("silver", False)
    assert len(events) == 1
    assert directory.get_displayed_col_after("gold").col_id == "bronze"
    assert directory.get_displayed_col_before("silver") is None
    assert directory.get_displayed_col_before("athlete") is None
    assert directory.get_grid_column("silver") is not None
    with pytest.raises(KeyError):
        directory.set_column_visible("ghost", True)


def test_directory_rejects_duplicate_ids(grid_columns) -> None:
    with pytest.raises(ValueError):
        InMemoryColumnDirectory([*grid_columns, grid_columns[0]])


def test_range_controller_only_user_selection_dispatches() -> None:
    """模型回写不触发事件，用户拖选触发。"""

    service = EventService()
    events = []
    service.add_event_listener(EVENT_RANGE_SELECTION_CHANGED, events.append)
    controller = InMemoryRangeController(service)
    range_set = RangeSet(ranges=(CellRange(start_row=7, end_row=2, columns=("gold",)),))
    controller.set_cell_ranges(range_set)
    assert events == []
    controller.select_ranges(range_set)
    assert len(events) == 1
    assert controller.get_range_start_row(range_set.ranges[0]) == 2
    assert controller.get_range_end_row(range_set.ranges[0]) == 7


def test_row_model_rejects_out_of_range_edit() -> None:
    model = InMemoryRowModel([{"gold": 1}], EventService())
    with pytest.raises(IndexError):
        model.set_cell_value(3, "gold", 2)


def test_session_store_lifecycle(grid_columns) -> None:
    """会话保存、重复保存、关闭与再次读取。"""

    session = build_chart_session(
        chart_id="medals",
        columns=grid_columns,
        rows=[{"country": "A", "gold": 1}],
        cell_ranges=[CellRange(start_row=0, end_row=0, columns=("country", "gold"))],
        options=ChartOptions(),
    )
    store = ChartSessionStore()
    store.save(session)
    with pytest.raises(ValueError):
        store.save(session)
    assert store.require("medals") is session

    session.row_model.set_rows([{"country": "B", "gold": 4}])
    assert session.model.get_data() == [{"country": "B", "gold": 4}]
    assert len(session.events) == 1
    session.model.set_chart_type("line")
    assert len(session.events) == 1
    assert session.events[-1].origin == Origin.USER_MENU_EDIT

    store.close("medals")
    assert session.model.is_destroyed
    assert session.range_controller.get_cell_ranges() == RangeSet()
    with pytest.raises(KeyError):
        store.require("medals")
