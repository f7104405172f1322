"""Store 层导出。"""

from apps.chartsync.stores.session_store import ChartSession, ChartSessionStore, build_chart_session

__all__ = [
    "ChartSession",
    "ChartSessionStore",
    "build_chart_session",
]
