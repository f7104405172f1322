"""图表展示配置契约。"""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from apps.chartsync.contracts.metadata import ContractModel

ChartType = Literal["groupedBar", "stackedBar", "line", "pie", "doughnut"]


class ChartOptions(ContractModel):
    """单个图表实例的构造参数，aggregate 在实例生命周期内固定。"""

    @classmethod
    def schema_name(cls) -> str:
        """返回图表配置契约名称。"""

        return "chart_options"

    chart_type: ChartType = Field(default="groupedBar", description="图表类型。")
    width: int = Field(default=800, description="画布宽度（像素）。", gt=0)
    height: int = Field(default=400, description="画布高度（像素）。", gt=0)
    show_tooltips: bool = Field(default=True, description="是否显示提示框。")
    inside_dialog: bool = Field(default=True, description="是否嵌入在对话框中展示。")
    aggregate: bool = Field(default=False, description="是否按类目聚合数值。")
