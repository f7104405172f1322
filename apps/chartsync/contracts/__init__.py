"""数据契约模型包。

图表同步引擎在表格、菜单、数据源与 HTTP 层之间传递的全部结构化数据
都定义在这里。区域与列状态均为不可变快照，每次状态迁移产生新实例，
便于相等性比较与撤销。
"""

from apps.chartsync.contracts.cell_range import CellRange, ChartMode, RangeEdit, RangeSet
from apps.chartsync.contracts.chart_event import (
    EVENT_CHART_MODEL_UPDATED,
    ChartModelUpdatedEvent,
    Origin,
)
from apps.chartsync.contracts.chart_options import ChartOptions, ChartType
from apps.chartsync.contracts.columns import (
    DEFAULT_CATEGORY_ID,
    DEFAULT_CATEGORY_LABEL,
    Category,
    ColState,
    ColumnRef,
    ColumnStateSnapshot,
    NoCategory,
    RealColumn,
)
from apps.chartsync.contracts.datasource import ChartDatasourceParams, ChartField

__all__ = [
    "CellRange",
    "ChartMode",
    "RangeEdit",
    "RangeSet",
    "EVENT_CHART_MODEL_UPDATED",
    "ChartModelUpdatedEvent",
    "Origin",
    "ChartOptions",
    "ChartType",
    "DEFAULT_CATEGORY_ID",
    "DEFAULT_CATEGORY_LABEL",
    "Category",
    "ColState",
    "ColumnRef",
    "ColumnStateSnapshot",
    "NoCategory",
    "RealColumn",
    "ChartDatasourceParams",
    "ChartField",
]
