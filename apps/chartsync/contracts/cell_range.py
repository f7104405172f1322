"""单元格区域、区域集合与区域编辑契约。"""

from __future__ import annotations

from typing import List, Literal, Optional, Tuple

from pydantic import Field, model_validator

from apps.chartsync.contracts.metadata import SnapshotContractModel

ChartMode = Literal["category", "value"]


class CellRange(SnapshotContractModel):
    """行区间 × 有序列组成的矩形选区，带有其在图表中的角色。"""

    @classmethod
    def schema_name(cls) -> str:
        """返回单元格区域契约名称。"""

        return "cell_range"

    start_row: int = Field(description="起始行索引。", ge=0)
    end_row: int = Field(description="结束行索引，可小于起始行（反向拖选）。", ge=0)
    columns: Tuple[str, ...] = Field(
        description="按展示顺序排列的列 ID，至少一列。",
        json_schema_extra={"minItems": 1},
    )
    chart_mode: ChartMode = Field(default="value", description="区域角色。")

    @model_validator(mode="after")
    def ensure_columns(self) -> "CellRange":
        """区域必须至少包含一列。"""

        if not self.columns:
            raise ValueError("columns 至少需要一列，空区域应直接移除。")
        return self

    @property
    def start_column(self) -> str:
        return self.columns[0]

    @property
    def last_column(self) -> str:
        return self.columns[-1]

    def with_columns(self, columns: Tuple[str, ...]) -> "CellRange":
        """复制行区间与角色，替换列序列。"""

        return CellRange(
            start_row=self.start_row,
            end_row=self.end_row,
            columns=columns,
            chart_mode=self.chart_mode,
        )


class RangeSet(SnapshotContractModel):
    """有序的区域集合；每次编辑都产生新的集合实例。"""

    @classmethod
    def schema_name(cls) -> str:
        """返回区域集合契约名称。"""

        return "range_set"

    ranges: Tuple[CellRange, ...] = Field(default=(), description="按时间顺序排列的区域。")

    @property
    def last(self) -> Optional[CellRange]:
        """最近一次加入的区域。"""

        if not self.ranges:
            return None
        return self.ranges[-1]

    def value_range_indexes(self) -> List[int]:
        """返回所有 value 区域在集合中的下标。"""

        return [index for index, cell_range in enumerate(self.ranges) if cell_range.chart_mode == "value"]

    def column_ids(self) -> List[str]:
        """按区域顺序展开全部列 ID（保留首次出现顺序）。"""

        seen: List[str] = []
        for cell_range in self.ranges:
            for col_id in cell_range.columns:
                if col_id not in seen:
                    seen.append(col_id)
        return seen

    def value_column_ids(self) -> List[str]:
        """返回出现在 value 区域中的列 ID。"""

        seen: List[str] = []
        for cell_range in self.ranges:
            if cell_range.chart_mode != "value":
                continue
            for col_id in cell_range.columns:
                if col_id not in seen:
                    seen.append(col_id)
        return seen

    def index_of_column(self, col_id: str) -> Optional[int]:
        """返回首个包含该列的区域下标。"""

        for index, cell_range in enumerate(self.ranges):
            if col_id in cell_range.columns:
                return index
        return None


RangeEditOp = Literal[
    "prepend_range",
    "append_range",
    "merge_before",
    "merge_after",
    "split",
    "remove_range",
    "remove_column",
]


class RangeEdit(SnapshotContractModel):
    """对区域集合的单步编辑描述。"""

    @classmethod
    def schema_name(cls) -> str:
        """返回区域编辑契约名称。"""

        return "range_edit"

    op_type: RangeEditOp = Field(description="编辑类型。")
    col_id: str = Field(description="被插入或移除的列 ID。", min_length=1)
    range_index: Optional[int] = Field(
        default=None,
        description="目标区域下标；prepend_range/append_range 不需要。",
        ge=0,
    )
    new_range: Optional[CellRange] = Field(
        default=None,
        description="prepend_range/append_range 插入的新区域。",
    )

    @model_validator(mode="after")
    def validate_target(self) -> "RangeEdit":
        """新增区域类操作必须携带 new_range，其余操作必须指定 range_index。"""

        if self.op_type in {"prepend_range", "append_range"}:
            if self.new_range is None:
                raise ValueError(f"{self.op_type} 操作必须提供 new_range。")
            return self
        if self.range_index is None:
            raise ValueError(f"{self.op_type} 操作必须提供 range_index。")
        if self.new_range is not None:
            raise ValueError(f"{self.op_type} 操作不应提供 new_range。")
        return self
