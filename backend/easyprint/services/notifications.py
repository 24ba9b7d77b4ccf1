import itertools
import logging
from dataclasses import asdict, dataclass
from typing import Callable, Dict, List, Tuple

logger = logging.getLogger(__name__)

TOAST_LIMIT = 3


@dataclass(frozen=True)
class Toast:
    id: str
    title: str
    description: str = ""
    variant: str = "default"

    def as_dict(self) -> dict:
        return asdict(self)


Listener = Callable[[Tuple[Toast, ...]], None]


class Notifier:
    """Observable list of user-facing toasts.

    One instance per checkout session, handed to whoever needs to report to the
    user. Listeners get the current toasts after every change.
    """

    def __init__(self, limit: int = TOAST_LIMIT):
        self.limit = limit
        self._toasts: List[Toast] = []
        self._listeners: Dict[int, Listener] = {}
        self._ids = itertools.count(1)
        self._listener_ids = itertools.count(1)

    @property
    def toasts(self) -> Tuple[Toast, ...]:
        return tuple(self._toasts)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        key = next(self._listener_ids)
        self._listeners[key] = listener

        def unsubscribe() -> None:
            self._listeners.pop(key, None)

        return unsubscribe

    def notify(self, title: str, description: str = "", variant: str = "default") -> Toast:
        toast = Toast(id=str(next(self._ids)), title=title, description=description, variant=variant)
        # newest first, oldest dropped past the limit
        self._toasts = [toast] + self._toasts[: self.limit - 1]
        logger.debug("Toast %s [%s] %s: %s", toast.id, variant, title, description)
        self._publish()
        return toast

    def dismiss(self, toast_id: str) -> bool:
        remaining = [t for t in self._toasts if t.id != toast_id]
        if len(remaining) == len(self._toasts):
            return False
        self._toasts = remaining
        self._publish()
        return True

    def clear(self) -> None:
        self._toasts = []
        self._publish()

    def _publish(self) -> None:
        snapshot = self.toasts
        for listener in list(self._listeners.values()):
            listener(snapshot)
