"""列引用、列选择状态与类目选择契约。"""

from __future__ import annotations

from typing import Literal, Tuple, Union

from pydantic import Field

from apps.chartsync.contracts.metadata import SnapshotContractModel

DEFAULT_CATEGORY_ID: str = "CHARTSYNC-DEFAULT-CATEGORY"
"""占位类目的保留列 ID，不与任何真实列共享命名空间。"""

DEFAULT_CATEGORY_LABEL: str = "(None)"


class ColumnRef(SnapshotContractModel):
    """列目录中的单列描述，核心只按 col_id 持有引用。"""

    @classmethod
    def schema_name(cls) -> str:
        """返回列引用契约名称。"""

        return "column_ref"

    col_id: str = Field(description="列唯一标识。", min_length=1)
    display_name: str = Field(description="图表中展示的列名。", min_length=1)
    enable_row_group: bool = Field(default=False, description="是否允许作为行分组维度。")
    enable_pivot: bool = Field(default=False, description="是否允许作为透视维度。")
    enable_value: bool = Field(default=False, description="是否允许作为数值序列。")

    @property
    def can_be_dimension(self) -> bool:
        return self.enable_row_group or self.enable_pivot

    @property
    def can_be_value(self) -> bool:
        return self.enable_value


class ColState(SnapshotContractModel):
    """配置菜单中单列的选择状态。"""

    @classmethod
    def schema_name(cls) -> str:
        """返回列状态契约名称。"""

        return "col_state"

    col_id: str = Field(description="列唯一标识。", min_length=1)
    display_name: str = Field(description="菜单展示名称。", min_length=1)
    selected: bool = Field(description="当前是否被选中。")

    @property
    def is_placeholder(self) -> bool:
        """是否为“无类目”占位项。"""

        return self.col_id == DEFAULT_CATEGORY_ID


class RealColumn(SnapshotContractModel):
    """以真实维度列作为类目。"""

    @classmethod
    def schema_name(cls) -> str:
        """返回真实类目契约名称。"""

        return "real_column"

    kind: Literal["column"] = "column"
    col_id: str = Field(description="维度列标识。", min_length=1)


class NoCategory(SnapshotContractModel):
    """没有可用维度列时使用的合成类目。"""

    @classmethod
    def schema_name(cls) -> str:
        """返回空类目契约名称。"""

        return "no_category"

    kind: Literal["none"] = "none"

    @property
    def col_id(self) -> str:
        return DEFAULT_CATEGORY_ID


Category = Union[RealColumn, NoCategory]


class ColumnStateSnapshot(SnapshotContractModel):
    """一次派生得到的维度/数值列状态集合。"""

    @classmethod
    def schema_name(cls) -> str:
        """返回列状态快照契约名称。"""

        return "column_state_snapshot"

    dimension_states: Tuple[ColState, ...] = Field(
        default=(),
        description="维度候选列状态，末尾可能包含占位类目。",
    )
    value_states: Tuple[ColState, ...] = Field(
        default=(),
        description="数值候选列状态，按展示顺序排列。",
    )

    @property
    def category(self) -> Category:
        """返回当前被选中的类目。"""

        for state in self.dimension_states:
            if state.selected:
                if state.is_placeholder:
                    return NoCategory()
                return RealColumn(col_id=state.col_id)
        return NoCategory()

    def selected_value_ids(self) -> Tuple[str, ...]:
        """按展示顺序返回被选中的数值列 ID。"""

        return tuple(state.col_id for state in self.value_states if state.selected)

    def find(self, col_id: str) -> Tuple[str, ColState] | None:
        """查找列状态，返回 (角色, 状态)；未知列返回 None。"""

        for state in self.dimension_states:
            if state.col_id == col_id:
                return "dimension", state
        for state in self.value_states:
            if state.col_id == col_id:
                return "value", state
        return None
