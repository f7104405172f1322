"""服务层导出。"""

from apps.chartsync.services.chart_model import ChartModel
from apps.chartsync.services.column_state import derive_column_state
from apps.chartsync.services.datasource import AsyncDataFrameDatasource, DataFrameDatasource
from apps.chartsync.services.range_splice import (
    RangeSyncError,
    apply_range_edit,
    plan_column_insert,
    plan_column_remove,
    remove_column_everywhere,
    replay_range_edits,
)

__all__ = [
    "ChartModel",
    "derive_column_state",
    "AsyncDataFrameDatasource",
    "DataFrameDatasource",
    "RangeSyncError",
    "apply_range_edit",
    "plan_column_insert",
    "plan_column_remove",
    "remove_column_everywhere",
    "replay_range_edits",
]
