from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet, List, Optional

from ai_say.core.logging import get_logger


class SessionState(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    STREAMING = "streaming"
    DRAINING = "draining"
    CLOSED = "closed"
    FAILED = "failed"


_TRANSITIONS: Dict[SessionState, FrozenSet[SessionState]] = {
    SessionState.IDLE: frozenset({SessionState.CONNECTING}),
    SessionState.CONNECTING: frozenset({SessionState.STREAMING}),
    SessionState.STREAMING: frozenset({SessionState.DRAINING}),
    SessionState.DRAINING: frozenset({SessionState.CLOSED}),
    SessionState.CLOSED: frozenset(),
    SessionState.FAILED: frozenset(),
}

TERMINAL_STATES = frozenset({SessionState.CLOSED, SessionState.FAILED})


class InvalidTransition(RuntimeError):
    pass


class SessionStateMachine:
    """
    Lifecycle of one synthesis session.

    idle -> connecting -> streaming -> draining -> closed, and any non-terminal
    state may drop into failed.
    """

    def __init__(self) -> None:
        self._state = SessionState.IDLE
        self._history: List[SessionState] = [SessionState.IDLE]
        self._error: Optional[BaseException] = None
        self._log = get_logger(component="session_state")

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def history(self) -> List[SessionState]:
        return list(self._history)

    @property
    def error(self) -> Optional[BaseException]:
        return self._error

    @property
    def is_terminal(self) -> bool:
        return self._state in TERMINAL_STATES

    def transition(self, target: SessionState) -> None:
        if target == SessionState.FAILED:
            raise InvalidTransition("use fail() to enter the failed state")
        if target not in _TRANSITIONS[self._state]:
            raise InvalidTransition("%s -> %s" % (self._state.value, target.value))
        self._set(target)

    def fail(self, error: BaseException) -> None:
        if self.is_terminal:
            return
        self._error = error
        self._set(SessionState.FAILED)

    def _set(self, target: SessionState) -> None:
        self._log.debug("state", state=target.value, previous=self._state.value)
        self._state = target
        self._history.append(target)
