from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

logger = logging.getLogger("markupcapture.capture")


class CaptureState(Enum):
    RECEIVED = "received"
    BROWSER_LAUNCHING = "browser_launching"
    NAVIGATING = "navigating"
    WAITING = "waiting"
    CAPTURING = "capturing"
    ANNOTATING = "annotating"
    ENCODING = "encoding"
    DONE = "done"
    FAILED = "failed"


_FORWARD: dict[CaptureState, tuple[CaptureState, ...]] = {
    CaptureState.RECEIVED: (CaptureState.BROWSER_LAUNCHING,),
    CaptureState.BROWSER_LAUNCHING: (CaptureState.NAVIGATING,),
    CaptureState.NAVIGATING: (CaptureState.WAITING,),
    CaptureState.WAITING: (CaptureState.CAPTURING,),
    CaptureState.CAPTURING: (CaptureState.ANNOTATING, CaptureState.ENCODING),
    CaptureState.ANNOTATING: (CaptureState.ENCODING,),
    CaptureState.ENCODING: (CaptureState.DONE,),
}

TERMINAL_STATES = frozenset({CaptureState.DONE, CaptureState.FAILED})


class InvalidTransition(RuntimeError):
    pass


@dataclass(slots=True)
class CaptureProgress:
    state: CaptureState = CaptureState.RECEIVED
    history: list[CaptureState] = field(default_factory=lambda: [CaptureState.RECEIVED])

    @property
    def finished(self) -> bool:
        return self.state in TERMINAL_STATES

    def advance(self, target: CaptureState) -> None:
        if target not in _FORWARD.get(self.state, ()):
            raise InvalidTransition(f"Cannot move from {self.state.value} to {target.value}")
        self._enter(target)

    def fail(self) -> None:
        if self.finished:
            raise InvalidTransition(f"Capture already finished as {self.state.value}")
        self._enter(CaptureState.FAILED)

    def _enter(self, target: CaptureState) -> None:
        logger.debug("Capture state %s -> %s", self.state.value, target.value)
        self.state = target
        self.history.append(target)
