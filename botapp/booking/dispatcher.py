"""Turn action requests into automation calls and chat replies."""

from __future__ import annotations
from tracking import t

import asyncio
import logging
from typing import Any, Dict, Mapping, Optional, Set

from automation.shared.booking_contracts import (
    ActionRequest,
    BookingAction,
    RequestValidationError,
)
from botapp.calendar_sync import GoogleCalendarSync
from botapp.messages.formatting import (
    CALENDAR_ADDED_MESSAGE,
    CONFIGURATION_ERROR_MESSAGE,
    TIME_REQUIRED_MESSAGE,
    format_availability,
    format_booking_failure,
    format_booking_success,
    format_invalid_request,
)
from botapp.sessions.registry import Session, SessionRegistry, UnknownSession
from infrastructure.settings import ConfigurationError


class ActionDispatcher:
    """Runs one request per session through the registry.

    After a confirmed booking the automation session is closed before the
    reply is returned, and the calendar sync runs in the background; its
    success is announced with a separate follow-up message.
    """

    def __init__(
        self,
        registry: SessionRegistry,
        calendar_sync: Optional[GoogleCalendarSync] = None,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        t('botapp.booking.dispatcher.ActionDispatcher.__init__')
        self.registry = registry
        self.calendar_sync = calendar_sync
        self.logger = logger or logging.getLogger('ActionDispatcher')
        self._background: Set[asyncio.Task] = set()

    async def dispatch(self, session_id: str, request: ActionRequest) -> str:
        """Validate ``request``, run it exclusively for the session and reply."""

        t('botapp.booking.dispatcher.ActionDispatcher.dispatch')
        session = self.registry.get(session_id)
        if request.missing_fields():
            self.logger.info("Rejecting %s for %s: missing %s", request.action.value, session_id, request.missing_fields())
            await self.registry.deliver(session, "validation", TIME_REQUIRED_MESSAGE)
            return TIME_REQUIRED_MESSAGE

        booked: Dict[str, str] = {}

        async def _run(current: Session) -> str:
            return await self._execute(current, request, booked)

        reply = await self.registry.dispatch(session_id, _run, origin=request.action.value)
        if booked:
            # after the reply so the follow-up never overtakes it
            self._schedule_calendar(session_id, request, booked["label"], booked["companion"])
        return reply

    async def dispatch_payload(self, session_id: str, payload: Mapping[str, Any]) -> str:
        """Same as :meth:`dispatch` for a raw ``{action, sport, date, time}`` mapping."""

        t('botapp.booking.dispatcher.ActionDispatcher.dispatch_payload')
        try:
            request = ActionRequest.from_payload(payload)
        except RequestValidationError as exc:
            message = format_invalid_request(str(exc))
            await self.registry.deliver(self.registry.get(session_id), "validation", message)
            return message
        return await self.dispatch(session_id, request)

    async def _execute(self, session: Session, request: ActionRequest, booked: Dict[str, str]) -> str:
        t('botapp.booking.dispatcher.ActionDispatcher._execute')
        self.logger.info(
            "Session %s: %s %s on %s%s",
            session.session_id,
            request.action.value,
            request.sport.value,
            request.target_date.isoformat(),
            f" at {request.time}" if request.time else "",
        )
        try:
            automation = self.registry.automation_for(session)
        except ConfigurationError as exc:
            self.logger.error("Cannot create automation session: %s", exc)
            return CONFIGURATION_ERROR_MESSAGE

        if request.action is BookingAction.QUERY_TIMES:
            result = await automation.query(request.sport, request.target_date, request.time)
            if not result.ok:
                return result.error
            return format_availability(request.sport, request.target_date, result.times)

        outcome = await automation.book(request.sport, request.target_date, request.time)
        if outcome.slot_unavailable:
            return format_booking_failure(request.sport, request.target_date, request.time)
        if not outcome.success:
            return outcome.error

        companion = outcome.companion or automation.companion_name
        await self.registry.release_automation(session)
        booked["companion"] = companion
        booked["label"] = outcome.label or request.time
        return format_booking_success(request.sport, request.target_date, request.time, companion)

    def _schedule_calendar(self, session_id: str, request: ActionRequest, label: str, companion: str) -> None:
        if self.calendar_sync is None:
            return
        task = asyncio.get_running_loop().create_task(self._sync_calendar(session_id, request, label, companion))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _sync_calendar(self, session_id: str, request: ActionRequest, label: str, companion: str) -> None:
        t('botapp.booking.dispatcher.ActionDispatcher._sync_calendar')
        try:
            added = await self.calendar_sync.add_booking(request.sport, request.target_date, label, companion)
        except Exception:
            self.logger.exception("Calendar sync failed for session %s", session_id)
            return
        if not added:
            self.logger.info("Booking for session %s was not added to the calendar", session_id)
            return
        # the chat may have been evicted and reattached while the sync ran
        try:
            session = self.registry.get(session_id)
        except UnknownSession:
            self.logger.info("Session %s ended before its calendar confirmation", session_id)
            return
        await self.registry.deliver(session, "calendar", CALENDAR_ADDED_MESSAGE)

    async def wait_background(self) -> None:
        """Wait for pending calendar syncs (shutdown and tests)."""

        t('botapp.booking.dispatcher.ActionDispatcher.wait_background')
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)


__all__ = ["ActionDispatcher"]
