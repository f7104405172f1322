"""基础设施组件导出。"""

from apps.chartsync.infra.events import EventService
from apps.chartsync.infra.grid import InMemoryColumnDirectory, InMemoryRangeController, InMemoryRowModel
from apps.chartsync.infra.persistence import ApiRecorder

__all__ = [
    "EventService",
    "InMemoryColumnDirectory",
    "InMemoryRangeController",
    "InMemoryRowModel",
    "ApiRecorder",
]
