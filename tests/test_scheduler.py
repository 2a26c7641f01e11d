# -*- coding: utf-8 -*-

import threading

import pytest

from scheduler.scheduler import QuotaScheduler


def test_run_once():
    calls = []
    scheduler = QuotaScheduler(lambda: calls.append(1), interval=60)

    assert scheduler.run_once()
    assert calls == [1]
    status = scheduler.get_status()
    assert status['run_count'] == 1
    assert status['last_error'] is None
    assert status['last_run_at'] is not None


def test_run_once_error_is_recorded():
    def failing():
        raise RuntimeError('boom')

    scheduler = QuotaScheduler(failing, interval=60)

    assert not scheduler.run_once()
    assert scheduler.get_status()['last_error'] == 'boom'
    assert not scheduler.busy


def test_start_runs_immediately_and_stops():
    ran = threading.Event()
    scheduler = QuotaScheduler(ran.set, interval=3600)

    scheduler.start()
    try:
        assert ran.wait(timeout=5)
        assert scheduler.get_status()['thread_alive']
    finally:
        scheduler.stop()

    assert not scheduler.running


def test_invalid_interval():
    with pytest.raises(ValueError):
        QuotaScheduler(lambda: None, interval=0)
