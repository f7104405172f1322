"""进程内同步事件总线。"""

from __future__ import annotations

from typing import Any, Callable, Dict, List

EVENT_RANGE_SELECTION_CHANGED: str = "rangeSelectionChanged"
EVENT_MODEL_UPDATED: str = "modelUpdated"
EVENT_CELL_VALUE_CHANGED: str = "cellValueChanged"
EVENT_COLUMN_VISIBLE: str = "columnVisible"

Listener = Callable[[Dict[str, Any]], None]


class EventService:
    """按事件类型分发的同步事件服务。

    监听器在 dispatch 调用内按注册顺序依次执行，执行完毕后 dispatch 才返回，
    因此任何一次状态迁移都在下一个事件到来前完成。
    """

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Listener]] = {}

    def add_event_listener(self, event_type: str, listener: Listener) -> Callable[[], None]:
        """注册监听器并返回对应的注销函数。

        Parameters
        ----------
        event_type: str
            事件类型名称。
        listener: Listener
            接收事件字典的回调。

        Returns
        -------
        Callable[[], None]
            调用后移除该监听器；重复调用无副作用。
        """

        if not event_type:
            raise ValueError("event_type 不能为空。")
        self._listeners.setdefault(event_type, []).append(listener)

        def remove() -> None:
            self.remove_event_listener(event_type, listener)

        return remove

    def remove_event_listener(self, event_type: str, listener: Listener) -> None:
        """移除监听器，不存在时忽略。"""

        listeners = self._listeners.get(event_type)
        if not listeners:
            return
        if listener in listeners:
            listeners.remove(listener)

    def dispatch_event(self, event: Dict[str, Any]) -> None:
        """向该类型的全部监听器派发事件。"""

        event_type = event.get("type")
        if not event_type:
            raise ValueError("事件缺少 type 字段。")
        # 复制列表，允许监听器在回调中注销自身。
        for listener in list(self._listeners.get(event_type, [])):
            listener(event)

    def listener_count(self, event_type: str) -> int:
        """返回某事件类型当前的监听器数量。"""

        return len(self._listeners.get(event_type, []))
