from __future__ import annotations

"""Local notification planning, scoped cancellation and delivery backends."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable

from PyQt6.QtCore import QTimer

from studytimer.core.collaborators import CUE_REST_COMPLETE, CUE_SESSION_COMPLETE, NotificationScheduler
from studytimer.core.schedule import IntervalKind


logger = logging.getLogger(__name__)

MAX_BATCH_NOTIFICATIONS = 10
BATCH_IDENTIFIER_SPAN = 20

COMPLETION_TITLE = "🎉 Session Complete!"
COMPLETION_BODY = "Great work! You've completed your study session."


@dataclass(frozen=True)
class NotificationRequest:
    identifier: str
    session_id: str
    fire_after: int
    title: str
    body: str
    sound: str
    is_completion: bool = False


def single_identifier(session_id: str) -> str:
    return f"interval-end-{session_id}"


def batch_identifier(position: int, session_id: str) -> str:
    return f"interval-{position}-{session_id}"


def completion_identifier(session_id: str) -> str:
    return f"completion-{session_id}"


def session_identifiers(session_id: str) -> list[str]:
    """Every identifier a session can own, rebuilt from its id alone."""
    identifiers = [single_identifier(session_id)]
    identifiers.extend(batch_identifier(position, session_id) for position in range(BATCH_IDENTIFIER_SPAN))
    return identifiers


def interval_end_request(
    identifier: str,
    session_id: str,
    fire_after: int,
    kind: IntervalKind,
    next_kind: IntervalKind | None,
) -> NotificationRequest:
    if next_kind is None:
        return NotificationRequest(
            identifier=identifier,
            session_id=session_id,
            fire_after=max(fire_after, 1),
            title=COMPLETION_TITLE,
            body=COMPLETION_BODY,
            sound=CUE_SESSION_COMPLETE,
            is_completion=True,
        )
    return NotificationRequest(
        identifier=identifier,
        session_id=session_id,
        fire_after=max(fire_after, 1),
        title=f"{kind.value} Complete!",
        body=f"Time for {next_kind.value.lower()}",
        sound=CUE_SESSION_COMPLETE if next_kind is IntervalKind.REST else CUE_REST_COMPLETE,
    )


def plan_batch(
    session_id: str,
    remaining_seconds: int,
    kind: IntervalKind,
    index: int,
    total_study_sessions: int,
    study_seconds: int,
    rest_seconds: int,
    limit: int = MAX_BATCH_NOTIFICATIONS,
) -> list[NotificationRequest]:
    """Lays out wake-ups for the rest of the session.

    The first entry fires when the current interval ends; each later one adds the
    full length of the interval in between. Rest is skipped when its length is
    zero, and the list stops at the completion entry or at ``limit``.
    """
    requests: list[NotificationRequest] = []
    offset = remaining_seconds
    while len(requests) < limit:
        identifier = batch_identifier(len(requests), session_id)
        if kind is IntervalKind.STUDY and index >= total_study_sessions:
            requests.append(interval_end_request(completion_identifier(session_id), session_id, offset, kind, None))
            break

        if kind is IntervalKind.STUDY:
            next_kind = IntervalKind.REST if rest_seconds > 0 else IntervalKind.STUDY
        else:
            next_kind = IntervalKind.STUDY
        requests.append(interval_end_request(identifier, session_id, offset, kind, next_kind))

        if next_kind is IntervalKind.REST:
            offset += rest_seconds
        else:
            index += 1
            offset += study_seconds
        kind = next_kind
    return requests


class NotificationCenter(ABC):
    """Delivery backend: holds pending requests and shows them when due."""

    @abstractmethod
    def add(self, request: NotificationRequest) -> None:
        ...

    @abstractmethod
    def remove_pending(self, identifiers: list[str]) -> None:
        ...

    @abstractmethod
    def remove_delivered(self, identifiers: list[str]) -> None:
        ...

    @abstractmethod
    def remove_all(self) -> None:
        ...

    @abstractmethod
    def is_delivered(self, identifier: str) -> bool:
        ...


class InMemoryNotificationCenter(NotificationCenter):
    def __init__(self) -> None:
        self.pending: dict[str, NotificationRequest] = {}
        self.delivered: dict[str, NotificationRequest] = {}

    def add(self, request: NotificationRequest) -> None:
        if request.fire_after <= 0:
            self.delivered[request.identifier] = request
            return
        self.pending[request.identifier] = request

    def deliver(self, identifier: str) -> NotificationRequest | None:
        request = self.pending.pop(identifier, None)
        if request is not None:
            self.delivered[identifier] = request
        return request

    def is_delivered(self, identifier: str) -> bool:
        return identifier in self.delivered

    def remove_pending(self, identifiers: list[str]) -> None:
        for identifier in identifiers:
            self.pending.pop(identifier, None)

    def remove_delivered(self, identifiers: list[str]) -> None:
        for identifier in identifiers:
            self.delivered.pop(identifier, None)

    def remove_all(self) -> None:
        self.pending.clear()
        self.delivered.clear()


class QtNotificationCenter(InMemoryNotificationCenter):
    """Fires each request from a single-shot ``QTimer`` on the Qt event loop."""

    def __init__(
        self,
        show_message: Callable[[NotificationRequest], None],
        on_delivered: Callable[[str], None] | None = None,
    ) -> None:
        super().__init__()
        self._show_message = show_message
        self._on_delivered = on_delivered
        self._timers: dict[str, QTimer] = {}

    def set_on_delivered(self, fn: Callable[[str], None] | None) -> None:
        self._on_delivered = fn

    def add(self, request: NotificationRequest) -> None:
        self._drop_timer(request.identifier)
        super().add(request)
        if request.fire_after <= 0:
            self._present(request)
            return
        timer = QTimer()
        timer.setSingleShot(True)
        timer.setInterval(request.fire_after * 1000)
        timer.timeout.connect(lambda identifier=request.identifier: self._fire(identifier))
        self._timers[request.identifier] = timer
        timer.start()

    def has_timer(self, identifier: str) -> bool:
        timer = self._timers.get(identifier)
        return timer is not None and timer.isActive()

    def remove_pending(self, identifiers: list[str]) -> None:
        for identifier in identifiers:
            self._drop_timer(identifier)
        super().remove_pending(identifiers)

    def remove_all(self) -> None:
        for identifier in list(self._timers):
            self._drop_timer(identifier)
        super().remove_all()

    def _fire(self, identifier: str) -> None:
        self._timers.pop(identifier, None)
        request = self.deliver(identifier)
        if request is None:
            return
        self._present(request)
        if self._on_delivered is not None:
            self._on_delivered(request.session_id)

    def _present(self, request: NotificationRequest) -> None:
        try:
            self._show_message(request)
        except Exception:
            logger.exception("Failed to show notification %s", request.identifier)

    def _drop_timer(self, identifier: str) -> None:
        timer = self._timers.pop(identifier, None)
        if timer is not None:
            timer.stop()
            timer.deleteLater()


class LocalNotificationScheduler(NotificationScheduler):
    """Turns controller requests into notification center operations."""

    def __init__(self, center: NotificationCenter, limit: int = MAX_BATCH_NOTIFICATIONS) -> None:
        self.center = center
        self.limit = limit
        self._completed: list[str] = []

    def schedule_single(
        self,
        session_id: str,
        after_seconds: int,
        kind: IntervalKind,
        next_kind: IntervalKind | None,
    ) -> None:
        self._trim_completions(session_id)
        identifier = single_identifier(session_id) if next_kind is not None else completion_identifier(session_id)
        self.center.remove_pending([single_identifier(session_id), completion_identifier(session_id)])
        self.center.add(interval_end_request(identifier, session_id, after_seconds, kind, next_kind))
        logger.debug("Scheduled notification in %ss for session %s", max(after_seconds, 1), session_id[:8])

    def schedule_batch(
        self,
        session_id: str,
        remaining_seconds: int,
        kind: IntervalKind,
        index: int,
        total_study_sessions: int,
        study_seconds: int,
        rest_seconds: int,
    ) -> None:
        self._trim_completions(session_id)
        self.center.remove_pending([*session_identifiers(session_id), completion_identifier(session_id)])
        requests = plan_batch(
            session_id,
            remaining_seconds,
            kind,
            index,
            total_study_sessions,
            study_seconds,
            rest_seconds,
            limit=self.limit,
        )
        for request in requests:
            self.center.add(request)
        logger.info(
            "Scheduled %s background notifications for session %s (last at %ss)",
            len(requests),
            session_id[:8],
            requests[-1].fire_after if requests else 0,
        )

    def send_completion(self, session_id: str) -> None:
        identifier = completion_identifier(session_id)
        if identifier not in self._completed:
            self._completed.append(identifier)
        if self.center.is_delivered(identifier):
            logger.debug("Completion for session %s already shown", session_id[:8])
            return
        self.center.remove_pending([identifier])
        self.center.add(
            NotificationRequest(
                identifier=completion_identifier(session_id),
                session_id=session_id,
                fire_after=0,
                title=COMPLETION_TITLE,
                body=COMPLETION_BODY,
                sound=CUE_SESSION_COMPLETE,
                is_completion=True,
            )
        )

    def cancel(self, session_id: str) -> None:
        identifiers = session_identifiers(session_id)
        self.center.remove_pending([*identifiers, completion_identifier(session_id)])
        self.center.remove_delivered(identifiers)
        logger.debug("Cancelled notifications for session %s", session_id[:8])

    def cancel_all(self) -> None:
        self.center.remove_all()
        self._completed.clear()
        logger.info("All notifications cancelled")

    def _trim_completions(self, session_id: str) -> None:
        """Drops completion banners of earlier sessions once a new one is running."""
        current = completion_identifier(session_id)
        stale = [identifier for identifier in self._completed if identifier != current]
        if not stale:
            return
        self.center.remove_delivered(stale)
        self._completed = [identifier for identifier in self._completed if identifier == current]
