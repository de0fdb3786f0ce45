import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from django.db import connections

from infrastructure.container import container


@pytest.fixture(autouse=True)
def test_container():
    """Every test gets fresh mock payment, mock email and in-memory event bus handles."""
    container.configure_for_testing()
    yield container
    container.reset()


@pytest.fixture
def payment_provider(test_container):
    return test_container.payment()


@pytest.fixture
def email_service(test_container):
    return test_container.email()


@pytest.fixture
def event_bus(test_container):
    return test_container.event_bus()


@pytest.fixture
def run_concurrently():
    """
    Run callables on separate threads released together by a barrier.

    Each thread gets its own database connection and closes it on exit.
    Results come back in call order; a raised exception re-raises here.
    """

    def run(*calls):
        barrier = threading.Barrier(len(calls))

        def worker(call):
            barrier.wait()
            try:
                return call()
            finally:
                connections.close_all()

        with ThreadPoolExecutor(max_workers=len(calls)) as pool:
            futures = [pool.submit(worker, call) for call in calls]
            return [future.result() for future in futures]

    return run
