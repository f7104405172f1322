"""pandas 数据源取数与聚合测试。"""

from __future__ import annotations

import pytest

from apps.chartsync.contracts import (
    DEFAULT_CATEGORY_ID,
    ChartDatasourceParams,
    ColumnRef,
    NoCategory,
    RealColumn,
)
from apps.chartsync.services.datasource import DataFrameDatasource

ROWS = [
    {"country": "A", "gold": 1, "silver": 2},
    {"country": "B", "gold": 3, "silver": 4},
    {"country": "A", "gold": 5, "silver": 6},
]

GOLD = ColumnRef(col_id="gold", display_name="Gold", enable_value=True)
SILVER = ColumnRef(col_id="silver", display_name="Silver", enable_value=True)


def _params(**overrides) -> ChartDatasourceParams:
    values = {
        "category": RealColumn(col_id="country"),
        "value_columns": (GOLD, SILVER),
        "start_row": 0,
        "end_row": 2,
        "aggregate": False,
    }
    values.update(overrides)
    return ChartDatasourceParams(**values)


def test_rows_returned_in_order_without_aggregation() -> None:
    """未聚合时每行一条记录，仅保留类目与数值列。"""

    data = DataFrameDatasource(lambda: ROWS).get_data(_params())
    assert data == [
        {"country": "A", "gold": 1, "silver": 2},
        {"country": "B", "gold": 3, "silver": 4},
        {"country": "A", "gold": 5, "silver": 6},
    ]


def test_aggregate_sums_by_category_in_first_seen_order() -> None:
    """聚合时按类目求和，保持类目首次出现的顺序。"""

    data = DataFrameDatasource(lambda: ROWS).get_data(_params(aggregate=True))
    assert data == [
        {"country": "A", "gold": 6, "silver": 8},
        {"country": "B", "gold": 3, "silver": 4},
    ]


def test_no_category_uses_row_index_labels() -> None:
    """占位类目下以行索引作为类目值，聚合开关无效。"""

    data = DataFrameDatasource(lambda: ROWS).get_data(
        _params(category=NoCategory(), value_columns=(GOLD,), start_row=1, aggregate=True),
    )
    assert data == [
        {DEFAULT_CATEGORY_ID: "1", "gold": 3},
        {DEFAULT_CATEGORY_ID: "2", "gold": 5},
    ]


def test_reverse_row_window_is_normalized() -> None:
    """起止行颠倒时按闭区间 [min, max] 截取。"""

    data = DataFrameDatasource(lambda: ROWS).get_data(_params(start_row=1, end_row=0, value_columns=(GOLD,)))
    assert [row["gold"] for row in data] == [1, 3]


def test_non_numeric_values_become_none() -> None:
    """无法转为数值的单元格与缺失列都输出 None。"""

    rows = [{"country": "A", "gold": "x"}]
    data = DataFrameDatasource(lambda: rows).get_data(_params(end_row=0))
    assert data == [{"country": "A", "gold": None, "silver": None}]


def test_empty_value_columns_return_empty_data() -> None:
    """未选择数值列时直接返回空列表。"""

    assert DataFrameDatasource(lambda: ROWS).get_data(_params(value_columns=())) == []


def test_rows_are_reread_on_each_request() -> None:
    """每次取数都读取最新行数据。"""

    rows = [dict(row) for row in ROWS]
    datasource = DataFrameDatasource(lambda: rows)
    rows[0]["gold"] = 10
    assert datasource.get_data(_params(end_row=0))[0]["gold"] == 10


def test_destroyed_datasource_rejects_requests() -> None:
    """销毁后继续取数视为调用方错误。"""

    datasource = DataFrameDatasource(lambda: ROWS)
    datasource.destroy()
    with pytest.raises(RuntimeError):
        datasource.get_data(_params())
