import pytest

from scorebot.config import Config
from scorebot.scheduler import Scheduler


@pytest.fixture
def scheduler():
    instance = Scheduler()
    yield instance
    if instance.is_running:
        instance.stop(wait=False)


def test_rejects_invalid_interval(scheduler):
    assert not scheduler.start(lambda: [], interval_minutes=0)
    assert not scheduler.is_running


def test_rejects_non_callable(scheduler):
    assert not scheduler.start("run", interval_minutes=5)


def test_rejects_unknown_timezone(scheduler, monkeypatch):
    monkeypatch.setattr(Config, "SCHEDULER_TIMEZONE", "Mars/Olympus_Mons")

    assert not scheduler.start(lambda: [], interval_minutes=5)
    assert not scheduler.is_running


def test_status_before_start(scheduler):
    assert scheduler.get_status() == {
        "is_running": False,
        "has_pipeline_function": False,
        "job_running": False,
        "next_run_time": None,
        "interval_minutes": None,
    }
    assert not scheduler.stop()


def test_start_and_stop(scheduler):
    assert scheduler.start(lambda: [], interval_minutes=5)

    status = scheduler.get_status()
    assert status["is_running"]
    assert status["interval_minutes"] == 5
    assert status["next_run_time"] is not None

    assert not scheduler.start(lambda: [], interval_minutes=5)
    assert scheduler.stop(wait=False)
    assert not scheduler.is_running


def test_failed_run_is_contained(scheduler):
    def failing():
        raise RuntimeError("boom")

    scheduler.pipeline_function = failing
    scheduler._safe_execute_pipeline()

    assert not scheduler.is_job_running()


def test_overlapping_run_is_skipped(scheduler):
    calls = []
    scheduler.pipeline_function = lambda: calls.append(1)

    scheduler._execution_lock.acquire()
    try:
        scheduler._safe_execute_pipeline()
    finally:
        scheduler._execution_lock.release()

    assert calls == []
