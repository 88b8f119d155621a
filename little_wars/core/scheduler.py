"""
Background housekeeping: drops idle sessions from the engine registry.
"""

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from little_wars.core.logger import get_logger
from little_wars.core.sessions import EngineRegistry

logger = get_logger("scheduler")


class SessionJanitor:
    def __init__(self, registry: EngineRegistry, interval_seconds: int = 300):
        self.registry = registry
        self.interval_seconds = interval_seconds
        self.scheduler = BackgroundScheduler()

    def start(self):
        if self.scheduler.running:
            return
        self.scheduler.add_job(
            self.cleanup,
            IntervalTrigger(seconds=self.interval_seconds),
            id="session_cleanup",
            name="Idle session cleanup",
            replace_existing=True,
        )
        self.scheduler.start()
        logger.info(f"Session janitor started (every {self.interval_seconds}s)")

    def shutdown(self):
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Session janitor shutdown")

    def cleanup(self) -> int:
        """Run one sweep. Errors are logged so the scheduler keeps running."""
        try:
            return self.registry.cleanup_expired()
        except Exception as e:
            logger.error(f"Error cleaning up sessions: {e}", exc_info=True)
            return 0
