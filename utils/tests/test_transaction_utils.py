from unittest.mock import MagicMock, patch

import pytest
from django.db import OperationalError

from utils.transaction_utils import DeadlockError, is_deadlock, retry_on_deadlock


pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def outside_transaction():
    """Pretend no atomic block is open so retries are allowed."""
    with patch("utils.transaction_utils.connection") as connection, patch("utils.transaction_utils.time.sleep") as sleep:
        connection.in_atomic_block = False
        yield sleep


@pytest.mark.parametrize(
    "message",
    [
        "(1213, 'Deadlock found when trying to get lock; try restarting transaction')",
        "(1205, 'Lock wait timeout exceeded')",
        "deadlock detected",
        "database is locked",
    ],
)
def test_recognises_lock_errors(message):
    assert is_deadlock(OperationalError(message))


def test_other_operational_errors_are_not_deadlocks():
    assert not is_deadlock(OperationalError("no such table: auctions_bid"))


def test_retries_until_success(outside_transaction):
    operation = MagicMock(side_effect=[OperationalError("Deadlock found"), OperationalError("1213"), "done"])

    assert retry_on_deadlock(max_retries=3, delay=0.1, backoff=2.0)(operation)() == "done"
    assert operation.call_count == 3
    assert [c.args[0] for c in outside_transaction.call_args_list] == [0.1, 0.2]


def test_gives_up_after_max_retries():
    operation = MagicMock(side_effect=OperationalError("Deadlock found"))

    with pytest.raises(DeadlockError):
        retry_on_deadlock(max_retries=2)(operation)()
    assert operation.call_count == 3


def test_other_errors_propagate_immediately():
    operation = MagicMock(side_effect=OperationalError("no such table"))

    with pytest.raises(OperationalError):
        retry_on_deadlock()(operation)()
    assert operation.call_count == 1


def test_no_retry_inside_an_open_transaction():
    operation = MagicMock(side_effect=OperationalError("Deadlock found"))

    with patch("utils.transaction_utils.connection") as connection:
        connection.in_atomic_block = True
        with pytest.raises(DeadlockError):
            retry_on_deadlock()(operation)()
    assert operation.call_count == 1
