"""
Scheduler module for periodic scan-and-score cycles.

This module runs the pipeline at a fixed interval using APScheduler so
that snapshot history accumulates between runs. It prevents overlapping
runs and keeps going when a single run fails.
"""

import logging
import threading
from typing import Callable, Optional
from datetime import datetime

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from apscheduler.events import EVENT_JOB_EXECUTED, EVENT_JOB_ERROR
import pytz

from scorebot.config import Config
from scorebot.utils import utc_now

# Configure module logger
logger = logging.getLogger(__name__)


class Scheduler:
    """
    Scheduler for automated pipeline execution.

    Manages scheduled execution of the pipeline with overlap prevention,
    error handling, and graceful shutdown support.
    """

    def __init__(self):
        self.scheduler: Optional[BackgroundScheduler] = None
        self.pipeline_function: Optional[Callable] = None
        self.interval_minutes: Optional[int] = None
        self.is_running = False
        self._execution_lock = threading.Lock()
        self._job_id = "scan_job"

    def start(
        self,
        pipeline_function: Callable,
        interval_minutes: Optional[int] = None
    ) -> bool:
        """
        Start the scheduler with the given pipeline function.

        Args:
            pipeline_function: Callable that runs one scan-and-score cycle
            interval_minutes: Minutes between runs. If None, uses Config.SCAN_INTERVAL_MINUTES

        Returns:
            True if scheduler started successfully, False otherwise
        """
        if self.is_running:
            logger.warning("Scheduler is already running")
            return False

        if not callable(pipeline_function):
            logger.error("pipeline_function must be callable")
            return False

        if interval_minutes is None:
            interval_minutes = Config.SCAN_INTERVAL_MINUTES

        if interval_minutes < 1:
            logger.error(f"Invalid interval_minutes: {interval_minutes}. Must be >= 1")
            return False

        self.pipeline_function = pipeline_function
        self.interval_minutes = interval_minutes

        try:
            timezone = pytz.timezone(Config.SCHEDULER_TIMEZONE)
            self.scheduler = BackgroundScheduler(timezone=timezone)

            self.scheduler.add_listener(
                self._on_job_executed,
                EVENT_JOB_EXECUTED | EVENT_JOB_ERROR
            )

            self.scheduler.add_job(
                func=self._safe_execute_pipeline,
                trigger=IntervalTrigger(minutes=interval_minutes),
                id=self._job_id,
                name="Scan Pipeline",
                replace_existing=True,
                max_instances=1  # Prevent overlapping runs
            )

            self.scheduler.start()
            self.is_running = True

            logger.info(f"Scheduler started with {interval_minutes} minute interval")
            return True

        except pytz.UnknownTimeZoneError:
            logger.error(f"Unknown SCHEDULER_TIMEZONE: {Config.SCHEDULER_TIMEZONE}")
            self.is_running = False
            return False

    def stop(self, wait: bool = True) -> bool:
        """
        Stop the scheduler gracefully.

        Args:
            wait: Whether to wait for running jobs to complete

        Returns:
            True if scheduler stopped, False if it was not running
        """
        if not self.is_running or not self.scheduler:
            logger.warning("Scheduler is not running")
            return False

        logger.info("Stopping scheduler...")
        self.scheduler.shutdown(wait=wait)

        self.is_running = False
        self.scheduler = None

        logger.info("Scheduler stopped successfully")
        return True

    def _safe_execute_pipeline(self) -> None:
        """
        Execute the pipeline function with overlap prevention.

        A failing run is logged and swallowed so the next interval still fires.
        """
        if not self._execution_lock.acquire(blocking=False):
            logger.warning("Pipeline execution skipped: previous run still in progress")
            return

        start_time = utc_now()

        try:
            logger.info(f"Scheduled pipeline execution started at {start_time.isoformat()}")

            if not self.pipeline_function:
                logger.error("Pipeline function not set")
                return

            result = self.pipeline_function()

            duration = (utc_now() - start_time).total_seconds()
            if result is not None:
                logger.info(f"Pipeline execution completed: {len(result)} markets scored")
            else:
                logger.warning("Pipeline execution completed with no scores")
            logger.info(f"Duration: {duration:.2f} seconds")

        except Exception as e:
            duration = (utc_now() - start_time).total_seconds()
            logger.error(f"Pipeline execution failed after {duration:.2f} seconds: {e}", exc_info=True)

        finally:
            self._execution_lock.release()

    def _on_job_executed(self, event) -> None:
        """Log APScheduler job execution events."""
        if event.exception:
            logger.error(f"Job {event.job_id} raised an exception: {event.exception}")
        else:
            logger.debug(f"Job {event.job_id} executed successfully")

    def get_next_run_time(self) -> Optional[datetime]:
        if not self.is_running or not self.scheduler:
            return None

        job = self.scheduler.get_job(self._job_id)
        return job.next_run_time if job else None

    def is_job_running(self) -> bool:
        """Check if a pipeline run is currently in progress."""
        return self._execution_lock.locked()

    def get_status(self) -> dict:
        """
        Get current scheduler status.

        Returns:
            Dictionary with scheduler status information
        """
        status = {
            "is_running": self.is_running,
            "has_pipeline_function": self.pipeline_function is not None,
            "job_running": self.is_job_running(),
            "next_run_time": None,
            "interval_minutes": self.interval_minutes if self.is_running else None
        }

        next_run = self.get_next_run_time()
        if next_run:
            status["next_run_time"] = next_run.isoformat()

        return status


# Global scheduler instance
_scheduler_instance: Optional[Scheduler] = None


def start_scheduler(
    run_pipeline_callable: Callable,
    interval_minutes: Optional[int] = None
) -> bool:
    """
    Start the global scheduler instance.

    Args:
        run_pipeline_callable: Callable that runs one scan-and-score cycle
        interval_minutes: Minutes between runs. If None, uses Config.SCAN_INTERVAL_MINUTES

    Returns:
        True if scheduler started successfully, False otherwise
    """
    global _scheduler_instance

    if _scheduler_instance is None:
        _scheduler_instance = Scheduler()

    return _scheduler_instance.start(run_pipeline_callable, interval_minutes)


def stop_scheduler(wait: bool = True) -> bool:
    """Stop the global scheduler instance."""
    if _scheduler_instance is None:
        logger.warning("Scheduler instance does not exist")
        return False

    return _scheduler_instance.stop(wait)


def get_scheduler_status() -> dict:
    """Get status of the global scheduler instance."""
    if _scheduler_instance is None:
        return {
            "is_running": False,
            "has_pipeline_function": False,
            "job_running": False,
            "next_run_time": None,
            "interval_minutes": None
        }

    return _scheduler_instance.get_status()
