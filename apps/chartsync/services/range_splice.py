"""区域集合的插入、合并、拆分与移除。

所有函数都是纯函数：先根据当前 RangeSet 规划出一个 RangeEdit，
再由 apply_range_edit 生成新的 RangeSet，原集合保持不变。
"""

from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple

from apps.chartsync.contracts.cell_range import CellRange, RangeEdit, RangeSet
from apps.chartsync.infra.grid import ColumnDirectory


class RangeSyncError(RuntimeError):
    """列状态与区域集合不一致时抛出的内部错误。"""


def new_single_column_range(*, reference_range: CellRange, col_id: str, at_start: bool) -> CellRange:
    """以参考区域的行区间创建只含一列的新区域。

    Parameters
    ----------
    reference_range: CellRange
        构造图表时的首个区域，提供行区间。
    col_id: str
        新区域中的唯一列。
    at_start: bool
        为 True 时新区域作为类目区域插入到最前。

    Returns
    -------
    CellRange
        新建的区域。
    """

    return CellRange(
        start_row=reference_range.start_row,
        end_row=reference_range.end_row,
        columns=(col_id,),
        chart_mode="category" if at_start else "value",
    )


def plan_column_insert(
    *,
    range_set: RangeSet,
    col_id: str,
    at_start: bool,
    reference_range: CellRange,
    directory: ColumnDirectory,
) -> RangeEdit:
    """规划把一列加入图表所需的编辑。

    依次扫描 value 区域：新列紧邻某区域首列之前则并入其头部，紧邻末列
    之后则并入其尾部；第一个命中的区域胜出。没有 value 区域或没有相邻区域
    时新建独立区域，at_start 决定插到最前还是追加到末尾。

    Parameters
    ----------
    range_set: RangeSet
        当前区域集合。
    col_id: str
        需要加入的列。
    at_start: bool
        是否作为类目列插入。
    reference_range: CellRange
        新区域复制行区间所用的参考区域。
    directory: ColumnDirectory
        提供展示顺序相邻关系的列目录。

    Returns
    -------
    RangeEdit
        描述插入方式的编辑。
    """

    for index in range_set.value_range_indexes():
        value_range = range_set.ranges[index]
        col_before = directory.get_displayed_col_before(value_range.start_column)
        if col_before is not None and col_before.col_id == col_id:
            return RangeEdit(op_type="merge_before", col_id=col_id, range_index=index)
        col_after = directory.get_displayed_col_after(value_range.last_column)
        if col_after is not None and col_after.col_id == col_id:
            return RangeEdit(op_type="merge_after", col_id=col_id, range_index=index)
    new_range = new_single_column_range(reference_range=reference_range, col_id=col_id, at_start=at_start)
    op_type = "prepend_range" if at_start else "append_range"
    return RangeEdit(op_type=op_type, col_id=col_id, new_range=new_range)


def plan_column_remove(*, range_set: RangeSet, col_id: str) -> RangeEdit:
    """规划把一列移出图表所需的编辑。

    单列区域整体删除；两列区域只移除该列；三列及以上且该列位于内部时
    拆分为前后两段，否则原地移除首列或末列。

    Parameters
    ----------
    range_set: RangeSet
        当前区域集合。
    col_id: str
        需要移除的列。

    Returns
    -------
    RangeEdit
        描述移除方式的编辑。

    Raises
    ------
    RangeSyncError
        没有任何区域包含该列。
    """

    index = range_set.index_of_column(col_id)
    if index is None:
        message = f"col_id={col_id} 不在任何区域中，列状态与区域集合已失去同步。"
        raise RangeSyncError(message)
    columns = range_set.ranges[index].columns
    if len(columns) == 1:
        return RangeEdit(op_type="remove_range", col_id=col_id, range_index=index)
    position = columns.index(col_id)
    if len(columns) > 2 and 0 < position < len(columns) - 1:
        return RangeEdit(op_type="split", col_id=col_id, range_index=index)
    return RangeEdit(op_type="remove_column", col_id=col_id, range_index=index)


def apply_range_edit(*, range_set: RangeSet, edit: RangeEdit) -> RangeSet:
    """将单个编辑应用到区域集合，返回新的集合。

    Parameters
    ----------
    range_set: RangeSet
        当前区域集合。
    edit: RangeEdit
        需要应用的编辑。

    Returns
    -------
    RangeSet
        编辑后的新集合。
    """

    ranges: List[CellRange] = list(range_set.ranges)
    if edit.op_type == "prepend_range":
        return RangeSet(ranges=(edit.new_range, *ranges))
    if edit.op_type == "append_range":
        return RangeSet(ranges=(*ranges, edit.new_range))
    index = _ensure_index(index=edit.range_index, upper=len(ranges))
    target = ranges[index]
    if edit.op_type == "merge_before":
        _ensure_absent(cell_range=target, col_id=edit.col_id)
        ranges[index] = target.with_columns((edit.col_id, *target.columns))
        return RangeSet(ranges=tuple(ranges))
    if edit.op_type == "merge_after":
        _ensure_absent(cell_range=target, col_id=edit.col_id)
        ranges[index] = target.with_columns((*target.columns, edit.col_id))
        return RangeSet(ranges=tuple(ranges))
    if edit.op_type == "remove_range":
        _ensure_present(cell_range=target, col_id=edit.col_id)
        del ranges[index]
        return RangeSet(ranges=tuple(ranges))
    if edit.op_type == "remove_column":
        _ensure_present(cell_range=target, col_id=edit.col_id)
        remaining = tuple(col for col in target.columns if col != edit.col_id)
        if remaining:
            ranges[index] = target.with_columns(remaining)
        else:
            del ranges[index]
        return RangeSet(ranges=tuple(ranges))
    if edit.op_type == "split":
        _ensure_present(cell_range=target, col_id=edit.col_id)
        position = target.columns.index(edit.col_id)
        if position == 0 or position == len(target.columns) - 1:
            message = f"col_id={edit.col_id} 位于区域边缘，无法拆分。"
            raise ValueError(message)
        # 两段都继承原区域的行区间与角色，并占据原区域的位置。
        first = target.with_columns(target.columns[:position])
        second = target.with_columns(target.columns[position + 1:])
        ranges[index:index + 1] = [first, second]
        return RangeSet(ranges=tuple(ranges))
    message = f"未支持的编辑类型: {edit.op_type}"
    raise ValueError(message)


def replay_range_edits(*, base: RangeSet, edits: Iterable[RangeEdit]) -> RangeSet:
    """在基础集合上依次重放编辑序列。"""

    current = base
    for edit in edits:
        current = apply_range_edit(range_set=current, edit=edit)
    return current


def remove_column_everywhere(*, range_set: RangeSet, col_id: str) -> Tuple[RangeSet, List[RangeEdit]]:
    """从所有包含该列的区域中移除它。

    表格拖选可能产生互相重叠的区域，只移除第一处会让该列仍然保持选中。

    Raises
    ------
    RangeSyncError
        没有任何区域包含该列。
    """

    current = range_set
    applied: List[RangeEdit] = [plan_column_remove(range_set=current, col_id=col_id)]
    current = apply_range_edit(range_set=current, edit=applied[0])
    while current.index_of_column(col_id) is not None:
        edit = plan_column_remove(range_set=current, col_id=col_id)
        current = apply_range_edit(range_set=current, edit=edit)
        applied.append(edit)
    return current, applied


def strip_dimension_columns(
    *,
    range_set: RangeSet,
    dimension_ids: Sequence[str],
) -> Tuple[RangeSet, List[RangeEdit]]:
    """移除所有因维度列而存在的区域成员。

    category 区域整体删除；出现在 value 区域中的维度列按移除规则摘除，
    同一区域内剩余的数值列保持不变。同一维度列出现在多个区域时全部清理。

    Parameters
    ----------
    range_set: RangeSet
        当前区域集合。
    dimension_ids: Sequence[str]
        所有维度候选列的 ID。

    Returns
    -------
    Tuple[RangeSet, List[RangeEdit]]
        清理后的集合与实际应用的编辑列表。
    """

    current = range_set
    applied: List[RangeEdit] = []
    for col_id in dimension_ids:
        index = current.index_of_column(col_id)
        while index is not None:
            if current.ranges[index].chart_mode == "category":
                edit = RangeEdit(op_type="remove_range", col_id=col_id, range_index=index)
            else:
                edit = plan_column_remove(range_set=current, col_id=col_id)
            current = apply_range_edit(range_set=current, edit=edit)
            applied.append(edit)
            index = current.index_of_column(col_id)
    return current, applied


def _ensure_index(*, index: int | None, upper: int) -> int:
    """校验并返回合法的区域下标。"""

    if index is None or index < 0 or index >= upper:
        message = f"区域下标 {index} 超出范围 0..{upper - 1}。"
        raise IndexError(message)
    return index


def _ensure_present(*, cell_range: CellRange, col_id: str) -> None:
    if col_id not in cell_range.columns:
        message = f"col_id={col_id} 不在目标区域 {list(cell_range.columns)} 中。"
        raise ValueError(message)


def _ensure_absent(*, cell_range: CellRange, col_id: str) -> None:
    if col_id in cell_range.columns:
        message = f"col_id={col_id} 已在目标区域 {list(cell_range.columns)} 中。"
        raise ValueError(message)
