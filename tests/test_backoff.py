import pytest

from canelink.core.patterns.backoff import LinearBackoff


def test_delay_grows_linearly():
    backoff = LinearBackoff(base_delay=3.0, max_attempts=5)
    assert [backoff.delay(n) for n in range(1, 6)] == [3.0, 6.0, 9.0, 12.0, 15.0]


def test_exhausted_at_ceiling():
    backoff = LinearBackoff(base_delay=1.0, max_attempts=5)
    assert not backoff.exhausted(0)
    assert not backoff.exhausted(4)
    assert backoff.exhausted(5)
    assert backoff.exhausted(6)


def test_zero_attempts_means_no_retries():
    assert LinearBackoff(max_attempts=0).exhausted(0)


def test_attempts_are_one_indexed():
    with pytest.raises(ValueError):
        LinearBackoff().delay(0)


@pytest.mark.parametrize("kwargs", [{"base_delay": -1}, {"max_attempts": -1}])
def test_rejects_negative_configuration(kwargs):
    with pytest.raises(ValueError):
        LinearBackoff(**kwargs)
