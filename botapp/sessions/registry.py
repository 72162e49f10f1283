"""Process-wide map of durable chat sessions to their automation state.

A session outlives any single transport connection: detaching only starts an
idle-eviction timer, and output produced while detached is buffered and
flushed in order on the next attach. All mutation happens on the event loop
thread, and the steps that must be atomic (create-on-attach, the busy check,
lazy automation creation) run without an intervening ``await``.
"""

from __future__ import annotations
from tracking import t

import asyncio
import logging
import weakref
from dataclasses import dataclass, field
from datetime import datetime
from typing import Awaitable, Callable, Dict, List, Optional

from automation.session import AutomationSession
from infrastructure.settings import Credentials

AutomationFactory = Callable[[], AutomationSession]
SessionAction = Callable[["Session"], Awaitable[str]]

BUSY_MESSAGE = "⏳ I'm still working on your previous request. Please wait for it to finish."


class TransportError(Exception):
    """Raised by a transport when a message could not be delivered."""


class Transport:
    """Outbound channel for one connected client."""

    async def send(self, text: str) -> None:  # pragma: no cover - interface
        raise NotImplementedError


class UnknownSession(KeyError):
    """Raised when an operation names a session that was never attached."""


@dataclass(frozen=True)
class PendingOutput:
    """Message produced while no transport was attached."""

    origin: str
    text: str
    timestamp: datetime


@dataclass(eq=False)
class Session:
    """State kept for one durable client identity."""

    session_id: str
    automation: Optional[AutomationSession] = None
    pending_outputs: List[PendingOutput] = field(default_factory=list)
    busy: bool = False
    eviction_task: Optional[asyncio.Task] = None
    _transport_ref: Optional[weakref.ReferenceType] = None

    @property
    def transport(self) -> Optional[Transport]:
        if self._transport_ref is None:
            return None
        return self._transport_ref()

    @property
    def attached(self) -> bool:
        return self.transport is not None

    def bind(self, transport: Optional[Transport]) -> None:
        self._transport_ref = weakref.ref(transport) if transport is not None else None


class SessionRegistry:
    """Owns every live :class:`Session` from process start until ``drain``."""

    def __init__(
        self,
        automation_factory: AutomationFactory,
        *,
        idle_seconds: float = 600,
        credentials: Optional[Credentials] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        t('botapp.sessions.registry.SessionRegistry.__init__')
        self._automation_factory = automation_factory
        self.idle_seconds = idle_seconds
        self._credentials = credentials
        self._sessions: Dict[str, Session] = {}
        self.logger = logger or logging.getLogger('SessionRegistry')

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def sessions(self) -> List[Session]:
        return list(self._sessions.values())

    def get(self, session_id: str) -> Session:
        t('botapp.sessions.registry.SessionRegistry.get')
        try:
            return self._sessions[session_id]
        except KeyError:
            raise UnknownSession(session_id) from None

    async def attach(self, session_id: str, transport: Transport) -> Session:
        """Bind ``transport`` to the session, creating it on first sight.

        Raises :class:`ConfigurationError` when a new session cannot be
        created because credentials are missing.
        """

        t('botapp.sessions.registry.SessionRegistry.attach')
        session = self._sessions.get(session_id)
        if session is None:
            if self._credentials is not None:
                self._credentials.require()
            session = Session(session_id=session_id)
            self._sessions[session_id] = session
            self.logger.info("Session %s created", session_id)
        else:
            self.logger.info("Session %s reattached", session_id)

        self._cancel_eviction(session)
        session.bind(transport)
        await self._flush(session)
        return session

    def detach(self, session_id: str, transport: Optional[Transport] = None) -> None:
        """Forget the session's transport and start its idle-eviction window.

        When ``transport`` is given and a different transport is attached
        (the client already reconnected elsewhere) nothing happens.
        """

        t('botapp.sessions.registry.SessionRegistry.detach')
        session = self._sessions.get(session_id)
        if session is None:
            return
        if transport is not None and session.transport is not transport:
            self.logger.debug("Ignoring stale detach for session %s", session_id)
            return
        session.bind(None)
        self.logger.info("Session %s detached, eviction in %ss", session_id, self.idle_seconds)
        self._schedule_eviction(session)

    async def deliver(self, session: Session, origin: str, text: str) -> bool:
        """Send ``text`` now, or buffer it until the next attach.

        Returns True when it was sent immediately.
        """

        t('botapp.sessions.registry.SessionRegistry.deliver')
        transport = session.transport
        if transport is not None:
            try:
                await transport.send(text)
                return True
            except TransportError as exc:
                self.logger.warning("Delivery to session %s failed, buffering: %s", session.session_id, exc)
        session.pending_outputs.append(PendingOutput(origin=origin, text=text, timestamp=datetime.now()))
        return False

    def automation_for(self, session: Session) -> AutomationSession:
        """Return the session's automation session, creating it on first use."""

        t('botapp.sessions.registry.SessionRegistry.automation_for')
        if session.automation is None:
            session.automation = self._automation_factory()
            self.logger.info("Automation session created for %s", session.session_id)
        return session.automation

    async def release_automation(self, session: Session) -> None:
        """Close and forget the session's automation session, if any."""

        t('botapp.sessions.registry.SessionRegistry.release_automation')
        automation, session.automation = session.automation, None
        if automation is not None:
            await automation.close()

    async def dispatch(self, session_id: str, action: SessionAction, *, origin: str = "action") -> str:
        """Run ``action`` exclusively for the session and deliver its reply.

        A second call while one is in flight gets :data:`BUSY_MESSAGE` and
        leaves the running action untouched.
        """

        t('botapp.sessions.registry.SessionRegistry.dispatch')
        session = self.get(session_id)
        if session.busy:
            self.logger.info("Session %s busy, rejecting concurrent request", session_id)
            await self.deliver(session, "busy", BUSY_MESSAGE)
            return BUSY_MESSAGE

        session.busy = True
        try:
            reply = await action(session)
        finally:
            session.busy = False
            if not session.attached and self._sessions.get(session_id) is session:
                self._schedule_eviction(session)

        await self.deliver(session, origin, reply)
        return reply

    async def evict(self, session_id: str) -> None:
        """Remove the session and close its automation session."""

        t('botapp.sessions.registry.SessionRegistry.evict')
        session = self._sessions.pop(session_id, None)
        if session is None:
            return
        self._cancel_eviction(session)
        if session.pending_outputs:
            self.logger.warning(
                "Dropping %s undelivered messages for session %s",
                len(session.pending_outputs),
                session_id,
            )
        await self.release_automation(session)
        self.logger.info("Session %s evicted", session_id)

    async def drain(self) -> None:
        """Shut down: cancel every timer and close every automation session."""

        t('botapp.sessions.registry.SessionRegistry.drain')
        sessions = list(self._sessions.values())
        self._sessions.clear()
        timers = [session.eviction_task for session in sessions if session.eviction_task is not None]
        for session in sessions:
            self._cancel_eviction(session)
        if timers:
            await asyncio.gather(*timers, return_exceptions=True)
        for session in sessions:
            await self.release_automation(session)
        self.logger.info("Session registry drained (%s sessions)", len(sessions))

    async def _flush(self, session: Session) -> None:
        t('botapp.sessions.registry.SessionRegistry._flush')
        transport = session.transport
        if transport is None or not session.pending_outputs:
            return
        pending, session.pending_outputs = session.pending_outputs, []
        self.logger.info("Flushing %s buffered messages to session %s", len(pending), session.session_id)
        for index, output in enumerate(pending):
            try:
                await transport.send(output.text)
            except TransportError as exc:
                self.logger.warning("Flush to session %s interrupted: %s", session.session_id, exc)
                session.pending_outputs[:0] = pending[index:]
                return

    def _schedule_eviction(self, session: Session) -> None:
        t('botapp.sessions.registry.SessionRegistry._schedule_eviction')
        self._cancel_eviction(session)
        session.eviction_task = asyncio.get_running_loop().create_task(self._evict_when_idle(session))

    def _cancel_eviction(self, session: Session) -> None:
        task, session.eviction_task = session.eviction_task, None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    async def _evict_when_idle(self, session: Session) -> None:
        t('botapp.sessions.registry.SessionRegistry._evict_when_idle')
        await asyncio.sleep(self.idle_seconds)
        if session.attached or self._sessions.get(session.session_id) is not session:
            return
        if session.busy:
            # dispatch reschedules once the action finishes
            return
        session.eviction_task = None
        await self.evict(session.session_id)


__all__ = [
    "BUSY_MESSAGE",
    "PendingOutput",
    "Session",
    "SessionRegistry",
    "Transport",
    "TransportError",
    "UnknownSession",
]
