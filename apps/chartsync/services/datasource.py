"""图表数据源：根据类目、数值列与行区间生成图表数据。"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Sequence, Union

from apps.chartsync.contracts.columns import NoCategory
from apps.chartsync.contracts.datasource import ChartDatasourceParams

LOGGER = logging.getLogger(__name__)

ChartRows = List[Dict[str, Any]]
RowSource = Callable[[], Sequence[Dict[str, Any]]]

_PD_MODULE: Optional[Any] = None


def _get_pandas() -> Any:
    """延迟加载 pandas，避免在仅使用状态机的场景下提前导入。"""

    global _PD_MODULE
    if _PD_MODULE is None:
        import pandas as pd  # noqa: WPS433 - 延迟导入

        _PD_MODULE = pd
    return _PD_MODULE


class ChartDatasource(Protocol):
    """图表模型依赖的取数接口，可同步返回，也可返回 awaitable。"""

    def get_data(self, params: ChartDatasourceParams) -> Union[ChartRows, Awaitable[ChartRows]]:
        """执行一次取数。"""

    def destroy(self) -> None:
        """释放数据源持有的资源。"""


class DataFrameDatasource:
    """基于 pandas 的内存数据源。"""

    def __init__(self, row_source: RowSource) -> None:
        """初始化数据源。

        Parameters
        ----------
        row_source: RowSource
            返回当前全部行（按行索引排列）的回调，每次取数都会重新读取。
        """

        self._row_source: Optional[RowSource] = row_source

    def get_data(self, params: ChartDatasourceParams) -> ChartRows:
        """截取行区间并组装图表数据。

        Parameters
        ----------
        params: ChartDatasourceParams
            取数请求。

        Returns
        -------
        ChartRows
            每个类目值一行，每个数值列一个字段；未选数值列时返回空列表。
        """

        if self._row_source is None:
            raise RuntimeError("数据源已销毁，不能继续取数。")
        if not params.value_columns:
            LOGGER.debug("未选择数值列，返回空图表数据。")
            return []
        pd = _get_pandas()
        rows = list(self._row_source())
        start_row = min(params.start_row, params.end_row)
        end_row = max(params.start_row, params.end_row)
        window = rows[start_row:end_row + 1]
        if not window:
            return []
        category_key = params.category.col_id
        field_keys = [column.col_id for column in params.value_columns]
        frame = pd.DataFrame(window, index=range(start_row, start_row + len(window)))
        if isinstance(params.category, NoCategory):
            # 无类目时以行索引作为类目值。
            frame[category_key] = [str(index) for index in frame.index]
        elif category_key not in frame.columns:
            frame[category_key] = None
        for key in field_keys:
            if key not in frame.columns:
                frame[key] = None
            frame[key] = pd.to_numeric(frame[key], errors="coerce")
        frame = frame[[category_key, *field_keys]]
        if params.aggregate and not isinstance(params.category, NoCategory):
            frame = (
                frame.groupby(category_key, sort=False, dropna=False)[field_keys]
                .sum(min_count=1)
                .reset_index()
            )
        cleaned = frame.astype(object).where(frame.notna(), None)
        return cleaned.to_dict(orient="records")

    def destroy(self) -> None:
        self._row_source = None


class AsyncDataFrameDatasource:
    """在线程池中执行取数的异步数据源，返回协程。"""

    def __init__(self, delegate: DataFrameDatasource) -> None:
        self._delegate = delegate

    async def get_data(self, params: ChartDatasourceParams) -> ChartRows:
        """在工作线程中执行同步取数。"""

        return await asyncio.to_thread(self._delegate.get_data, params)

    def destroy(self) -> None:
        self._delegate.destroy()
