"""Lifecycle orchestration for the Telegram bot runtime."""

from __future__ import annotations
from tracking import t

import asyncio
import logging
from typing import Optional

from botapp.booking.dispatcher import ActionDispatcher
from botapp.sessions.registry import SessionRegistry

METRICS_INTERVAL_SECONDS = 300


class LifecycleManager:
    """Manage startup, shutdown, and periodic tasks for the bot runtime."""

    def __init__(
        self,
        registry: SessionRegistry,
        dispatcher: ActionDispatcher,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        t('botapp.runtime.lifecycle.LifecycleManager.__init__')
        self.registry = registry
        self.dispatcher = dispatcher
        self.logger = logger or logging.getLogger('LifecycleManager')
        self.application = None
        self.metrics_task: Optional[asyncio.Task] = None

    async def post_init(self, application) -> None:
        """Start periodic tasks once the Telegram application is ready."""

        t('botapp.runtime.lifecycle.LifecycleManager.post_init')
        self.application = application
        self.metrics_task = asyncio.create_task(self._metrics_loop())
        self.logger.info("Metrics monitoring started (5-minute intervals)")
        self.logger.info("Bot started successfully - awaiting messages...")

    async def post_stop(self, application) -> None:
        """Stop periodic tasks, finish calendar syncs and close every browser."""

        t('botapp.runtime.lifecycle.LifecycleManager.post_stop')
        self.logger.info("🔴 Starting bot shutdown sequence...")

        if self.metrics_task:
            self.metrics_task.cancel()
            try:
                await self.metrics_task
            except asyncio.CancelledError:
                pass
            self.logger.info("✅ Metrics monitoring stopped")
            self.metrics_task = None

        await self.dispatcher.wait_background()

        self.logger.info("🔄 Closing automation sessions...")
        await self.registry.drain()

        self.logger.info("✅ Bot shutdown sequence completed")
        self.application = None

    def log_metrics(self) -> None:
        """Log how many sessions exist and what they are doing."""

        t('botapp.runtime.lifecycle.LifecycleManager.log_metrics')
        sessions = self.registry.sessions()
        attached = sum(1 for session in sessions if session.attached)
        busy = sum(1 for session in sessions if session.busy)
        browsers = sum(1 for session in sessions if session.automation is not None and session.automation.initialized)
        buffered = sum(len(session.pending_outputs) for session in sessions)
        self.logger.info(
            "=== BOT METRICS REPORT ===\n"
            f"   Sessions: {len(sessions)} ({attached} attached, {busy} busy)\n"
            f"   Open browsers: {browsers}\n"
            f"   Buffered messages: {buffered}\n"
            "=========================="
        )

    async def _metrics_loop(self) -> None:
        """Periodic metrics logging loop."""

        t('botapp.runtime.lifecycle.LifecycleManager._metrics_loop')
        try:
            while True:
                self.log_metrics()
                await asyncio.sleep(METRICS_INTERVAL_SECONDS)
        except asyncio.CancelledError:
            self.logger.info("Metrics logging task cancelled")
            raise


__all__ = ['LifecycleManager']
