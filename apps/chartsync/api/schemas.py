"""图表会话 API 请求与响应模型。"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from apps.chartsync.contracts.cell_range import CellRange, RangeSet
from apps.chartsync.contracts.chart_event import Origin
from apps.chartsync.contracts.chart_options import ChartOptions, ChartType
from apps.chartsync.contracts.columns import ColState, ColumnRef
from apps.chartsync.contracts.datasource import ChartField


class ApiModel(BaseModel):
    """统一约束的 API 模型基类，强制禁止额外字段。"""

    model_config = ConfigDict(extra="forbid")


class ChartCreateRequest(ApiModel):
    """基于表格选区创建图表的请求。"""

    chart_id: Optional[str] = Field(
        default=None,
        description="可选的自定义图表 ID，缺省时自动生成。",
    )
    columns: List[ColumnRef] = Field(description="表格全部列，按展示顺序排列。", min_length=1)
    rows: List[Dict[str, object]] = Field(default_factory=list, description="表格行数据。")
    ranges: List[CellRange] = Field(description="创建图表时的选区。", min_length=1)
    options: ChartOptions = Field(default_factory=ChartOptions, description="图表配置。")


class ChartStateResponse(ApiModel):
    """图表模型对菜单与渲染器公开的查询结果。"""

    chart_id: str = Field(description="图表 ID。", min_length=1)
    dimension_cols: List[ColState] = Field(description="维度列状态，不含占位类目。")
    value_cols: List[ColState] = Field(description="数值列状态。")
    selected_category: str = Field(description="当前类目列 ID，可能为占位 ID。")
    fields: List[ChartField] = Field(description="已选数值字段。")
    chart_type: ChartType = Field(description="图表类型。")
    width: int = Field(description="画布宽度。", gt=0)
    height: int = Field(description="画布高度。", gt=0)
    show_tooltips: bool = Field(description="是否显示提示框。")
    inside_dialog: bool = Field(description="是否嵌入对话框。")
    ranges: RangeSet = Field(description="模型认定的区域集合。")
    data: List[Dict[str, object]] = Field(description="最近一次取数结果。")
    history_depth: int = Field(description="可撤销的菜单编辑步数。", ge=0)
    last_origin: Optional[Origin] = Field(default=None, description="最近一次更新事件的来源。")
    from_grid: bool = Field(default=False, description="最近一次更新是否来自表格选区。")


class ColumnUpdateRequest(ApiModel):
    """配置菜单勾选/取消勾选某列。"""

    col_id: str = Field(description="列 ID。", min_length=1)
    selected: bool = Field(description="期望的勾选状态。")


class RangeSelectRequest(ApiModel):
    """表格转发的用户选区。"""

    ranges: List[CellRange] = Field(default_factory=list, description="新的选区集合。")


class ColumnVisibilityRequest(ApiModel):
    """列显隐切换。"""

    col_id: str = Field(description="列 ID。", min_length=1)
    visible: bool = Field(description="是否可见。")


class CellEditRequest(ApiModel):
    """单元格编辑。"""

    row_index: int = Field(description="行索引。", ge=0)
    col_id: str = Field(description="列 ID。", min_length=1)
    value: Any = Field(default=None, description="新值。")


class ChartTypeRequest(ApiModel):
    """切换图表类型。"""

    chart_type: ChartType = Field(description="目标图表类型。")


class ChartSizeRequest(ApiModel):
    """调整画布尺寸，至少提供一个维度。"""

    width: Optional[int] = Field(default=None, description="新宽度。", gt=0)
    height: Optional[int] = Field(default=None, description="新高度。", gt=0)

    @model_validator(mode="after")
    def ensure_dimension(self) -> "ChartSizeRequest":
        """width 与 height 至少需要一个。"""

        if self.width is None and self.height is None:
            raise ValueError("width 与 height 至少需要提供一个。")
        return self


class ChartRevertRequest(ApiModel):
    """撤销最近的菜单编辑。"""

    steps: int = Field(default=1, description="回退步数。", ge=1)


class SchemaExportResponse(ApiModel):
    """契约 JSONSchema 导出响应。"""

    schemas: Dict[str, object] = Field(description="按 schema_name 索引的 JSONSchema 内容。")
