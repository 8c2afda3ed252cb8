import pytest

from boardstream.reconnect import GiveUp, Retry, linear_policy, next_action


def test_backoff_schedule():
    assert next_action(1) == Retry(after_delay=2.0)
    assert next_action(2) == Retry(after_delay=4.0)
    assert next_action(3) == Retry(after_delay=6.0)
    assert isinstance(next_action(4), GiveUp)


@pytest.mark.parametrize("attempt", [4, 5, 10, 100])
def test_gives_up_beyond_budget(attempt):
    action = next_action(attempt)
    assert isinstance(action, GiveUp)
    assert action.attempts == attempt


def test_attempts_start_at_one():
    with pytest.raises(ValueError):
        next_action(0)


def test_policy_is_stateless():
    # Same input, same answer, no matter how often or in which order it is asked
    assert [next_action(n) for n in (3, 1, 3, 2, 1)] == [
        Retry(6.0),
        Retry(2.0),
        Retry(6.0),
        Retry(4.0),
        Retry(2.0),
    ]


def test_custom_budget():
    policy = linear_policy(max_retries=1, step=0.5)
    assert policy(1) == Retry(after_delay=0.5)
    assert isinstance(policy(2), GiveUp)
