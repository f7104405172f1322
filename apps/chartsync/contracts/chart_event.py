"""图表模型更新事件契约。"""

from __future__ import annotations

from enum import Enum

from pydantic import Field

from apps.chartsync.contracts.metadata import SnapshotContractModel

EVENT_CHART_MODEL_UPDATED: str = "chartModelUpdated"


class Origin(str, Enum):
    """触发重新计算的来源。"""

    USER_MENU_EDIT = "user_menu_edit"
    GRID_SELECTION_CHANGE = "grid_selection_change"
    EXTERNAL_MODEL_UPDATE = "external_model_update"


class ChartModelUpdatedEvent(SnapshotContractModel):
    """图表数据或展示类型变化后对外广播的事件。"""

    @classmethod
    def schema_name(cls) -> str:
        """返回事件契约名称。"""

        return "chart_model_updated_event"

    type: str = Field(default=EVENT_CHART_MODEL_UPDATED, description="事件类型。")
    origin: Origin = Field(description="本次更新的来源。")
    request_seq: int = Field(description="对应的数据源请求序号，类型变更沿用上一序号。", ge=0)

    @property
    def from_grid(self) -> bool:
        """是否由表格自身的选区变化触发，消费者据此避免回环。"""

        return self.origin is Origin.GRID_SELECTION_CHANGE
