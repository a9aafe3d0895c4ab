from datetime import datetime
from typing import Callable, Dict, List, NamedTuple

from ledger.logging_setup import get_logger

__all__ = [
    'STATE_CHANGED', 'IMPORT_COMPLETED', 'BUDGET_ALERT',
    'Event', 'EventBus', 'persist_handler', 'log_import_handler',
]

logger = get_logger("ledger.events")


class Event(NamedTuple):
    name: str
    ts: str
    payload: dict


Handler = Callable[[Event, dict], dict]


class EventBus:
    """Synchronous publish/subscribe; handlers run in subscription order."""

    def __init__(self):
        self._subscribers: Dict[str, List[Handler]] = {}

    def subscribe(self, name: str, handler: Handler) -> None:
        self._subscribers.setdefault(name, []).append(handler)

    def publish(self, name: str, payload: dict) -> List[dict]:
        handlers = self._subscribers.get(name)
        if not handlers:
            return []

        event = Event(name=name, ts=datetime.now().isoformat(), payload=payload)
        return [handler(event, payload) for handler in list(handlers)]

    def unsubscribe(self, name: str, handler: Handler) -> None:
        if handler in self._subscribers.get(name, []):
            self._subscribers[name].remove(handler)


STATE_CHANGED = "STATE_CHANGED"
IMPORT_COMPLETED = "IMPORT_COMPLETED"
BUDGET_ALERT = "BUDGET_ALERT"


def persist_handler(storage) -> Handler:
    """Save the new aggregate after every transition.

    A failed write is logged and leaves the in-memory state as it is.
    """
    def _handler(event: Event, payload: dict) -> dict:
        try:
            storage.save(payload["data"])
        except OSError:
            logger.exception("Saving ledger after %s failed", payload.get("action"))
            return {"saved": False}
        return {"saved": True}

    return _handler


def log_import_handler(event: Event, payload: dict) -> dict:
    logger.info(
        "Imported %d of %d %s records into account %s",
        payload.get("imported", 0),
        payload.get("parsed", 0),
        payload.get("source", "?"),
        payload.get("account_id"),
    )
    return {}
