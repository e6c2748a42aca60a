import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

logger = logging.getLogger(__name__)

EventCallback = Callable[[Any], None]


class EventKind(str, Enum):
    DEPLOY_START = "deployStart"
    DEPLOY_SUCCESS = "deploySuccess"
    DEPLOY_ERROR = "deployError"
    STATUS_UPDATE = "statusUpdate"
    DEPLOYMENT_DELETED = "deploymentDeleted"


class EventEmitter:
    """Per-kind ordered callback lists. A failing callback never stops the ones after it."""

    def __init__(self):
        self._listeners: Dict[EventKind, List[EventCallback]] = {}

    def on(self, event: Union[EventKind, str], callback: EventCallback) -> None:
        kind = EventKind(event)
        self._listeners.setdefault(kind, []).append(callback)
        logger.debug(f"Event listener added: {kind.value}")

    def off(self, event: Union[EventKind, str], callback: Optional[EventCallback] = None) -> None:
        kind = EventKind(event)
        if kind not in self._listeners:
            return
        if callback is None:
            self._listeners[kind] = []
        else:
            self._listeners[kind] = [cb for cb in self._listeners[kind] if cb != callback]
        logger.debug(f"Event listener removed: {kind.value}")

    def emit(self, event: EventKind, data: Any = None) -> None:
        # copy so callbacks may subscribe/unsubscribe while we iterate
        for callback in list(self._listeners.get(event, [])):
            try:
                callback(data)
            except Exception as e:
                logger.error(f"Event callback error ({event.value}): {e}", exc_info=True)

    def listeners(self, event: Union[EventKind, str]) -> List[EventCallback]:
        return list(self._listeners.get(EventKind(event), []))
