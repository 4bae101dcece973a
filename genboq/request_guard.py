# genboq/request_guard.py

import itertools
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, Optional, TypeVar

from genboq.errors import OperationInProgressError, StaleResultError

logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass(frozen=True)
class RequestToken:
    room_id: str
    operation: str
    generation: int
    serial: int


class RoomOperationGuard:
    """
    One generate/refine/validate at a time per room, and no stale results.

    begin() hands out a token and rejects a second in-flight call on the same
    room. Any edit to the room calls invalidate(), which bumps the room's
    generation; a token from an older generation is stale and its result must
    be discarded.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._serials = itertools.count(1)
        self._generations: Dict[str, int] = {}
        self._in_flight: Dict[str, RequestToken] = {}

    def begin(self, room_id: str, operation: str) -> RequestToken:
        with self._lock:
            running = self._in_flight.get(room_id)
            if running is not None:
                raise OperationInProgressError(
                    f"A {running.operation} operation is already running for room '{room_id}'")
            token = RequestToken(room_id, operation, self._generations.get(room_id, 0), next(self._serials))
            self._in_flight[room_id] = token
            return token

    def finish(self, token: RequestToken) -> None:
        with self._lock:
            if self._in_flight.get(token.room_id) == token:
                del self._in_flight[token.room_id]

    def invalidate(self, room_id: str) -> None:
        """The room changed (user edit, navigation); results already in flight are stale."""
        with self._lock:
            self._generations[room_id] = self._generations.get(room_id, 0) + 1

    def is_current(self, token: RequestToken) -> bool:
        with self._lock:
            return self._generations.get(token.room_id, 0) == token.generation

    def in_flight(self, room_id: str) -> Optional[RequestToken]:
        with self._lock:
            return self._in_flight.get(room_id)

    def apply_if_current(self, token: RequestToken, apply: Callable[[], T]) -> T:
        """Run apply() only if the token is still current; raise StaleResultError otherwise."""
        if not self.is_current(token):
            logger.info(f"Discarding stale {token.operation} result for room '{token.room_id}'")
            raise StaleResultError(f"Room '{token.room_id}' changed while {token.operation} was running")
        return apply()

    def run(self, room_id: str, operation: str, call: Callable[[], T], apply: Callable[[T], None]) -> T:
        """begin -> call -> apply only when still current -> finish."""
        token = self.begin(room_id, operation)
        try:
            result = call()
            self.apply_if_current(token, lambda: apply(result))
            return result
        finally:
            self.finish(token)
