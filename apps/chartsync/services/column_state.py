"""根据可见列与区域集合派生维度/数值列状态。"""

from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

from apps.chartsync.contracts.cell_range import RangeSet
from apps.chartsync.contracts.columns import (
    DEFAULT_CATEGORY_ID,
    DEFAULT_CATEGORY_LABEL,
    ColState,
    ColumnRef,
    ColumnStateSnapshot,
)

LOGGER = logging.getLogger(__name__)


def split_chart_columns(displayed_columns: Sequence[ColumnRef]) -> Tuple[List[ColumnRef], List[ColumnRef]]:
    """把可见列划分为维度候选与数值候选。

    同时满足两种条件的列按维度处理；两种都不满足的列被忽略。
    """

    dimension_cols: List[ColumnRef] = []
    value_cols: List[ColumnRef] = []
    for column in displayed_columns:
        if column.can_be_dimension:
            dimension_cols.append(column)
        elif column.can_be_value:
            value_cols.append(column)
    return dimension_cols, value_cols


def derive_column_state(
    *,
    displayed_columns: Sequence[ColumnRef],
    range_set: RangeSet,
) -> ColumnStateSnapshot:
    """派生菜单所需的列状态。

    Parameters
    ----------
    displayed_columns: Sequence[ColumnRef]
        当前按展示顺序排列的可见列。
    range_set: RangeSet
        当前区域集合；只读取，不修改。

    Returns
    -------
    ColumnStateSnapshot
        维度列状态恰有一项被选中（必要时追加占位类目）；数值列仅当出现在
        value 区域中时被选中。没有任何可见数值列时 value_states 为空。
    """

    dimension_cols, value_cols = split_chart_columns(displayed_columns)
    in_ranges = range_set.column_ids()
    in_value_ranges = set(range_set.value_column_ids())

    if not value_cols:
        LOGGER.warning(
            "图表至少需要一个 enable_value=True 的可见列",
            extra={"displayed_columns": [column.col_id for column in displayed_columns]},
        )
    value_states = tuple(
        ColState(
            col_id=column.col_id,
            display_name=column.display_name,
            selected=column.col_id in in_value_ranges,
        )
        for column in value_cols
    )

    dimension_ids = {column.col_id for column in dimension_cols}
    # 按区域顺序选择第一个出现的维度列。
    selected_dimension = next((col_id for col_id in in_ranges if col_id in dimension_ids), None)
    dimension_states = [
        ColState(
            col_id=column.col_id,
            display_name=column.display_name,
            selected=column.col_id == selected_dimension,
        )
        for column in dimension_cols
    ]
    if selected_dimension is None:
        dimension_states.append(
            ColState(col_id=DEFAULT_CATEGORY_ID, display_name=DEFAULT_CATEGORY_LABEL, selected=True),
        )
    return ColumnStateSnapshot(dimension_states=tuple(dimension_states), value_states=value_states)
