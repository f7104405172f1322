"""FastAPI 依赖注入配置。"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from apps.chartsync.infra.persistence import ApiRecorder
from apps.chartsync.stores import ChartSessionStore


@lru_cache
def get_session_store() -> ChartSessionStore:
    """提供进程级图表会话缓存。"""

    return ChartSessionStore()


@lru_cache
def get_api_recorder() -> ApiRecorder:
    """提供 API 请求/响应落盘器。"""

    base_path = Path("var/api_logs")
    return ApiRecorder(base_path=base_path)
