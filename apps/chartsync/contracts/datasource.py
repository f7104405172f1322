"""图表数据源请求契约。"""

from __future__ import annotations

from typing import Tuple

from pydantic import Field

from apps.chartsync.contracts.columns import Category, ColumnRef
from apps.chartsync.contracts.metadata import SnapshotContractModel


class ChartField(SnapshotContractModel):
    """图例菜单使用的已选数值字段。"""

    @classmethod
    def schema_name(cls) -> str:
        """返回字段契约名称。"""

        return "chart_field"

    col_id: str = Field(description="列唯一标识。", min_length=1)
    display_name: str = Field(description="展示名称。", min_length=1)


class ChartDatasourceParams(SnapshotContractModel):
    """一次取数请求：类目、数值列、行区间与聚合开关。"""

    @classmethod
    def schema_name(cls) -> str:
        """返回取数请求契约名称。"""

        return "chart_datasource_params"

    category: Category = Field(description="当前类目，可能为占位类目。", discriminator="kind")
    value_columns: Tuple[ColumnRef, ...] = Field(default=(), description="按展示顺序排列的已选数值列。")
    start_row: int = Field(description="起始行索引（含）。", ge=0)
    end_row: int = Field(description="结束行索引（含）。", ge=0)
    aggregate: bool = Field(description="是否按类目聚合。")

    @property
    def category_ids(self) -> Tuple[str, ...]:
        return (self.category.col_id,)
