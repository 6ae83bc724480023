import pytest

from roomclimate.common.pacing import TokenBucket, fixed_interval_bucket, paced


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def test_token_bucket_first_acquire_does_not_wait():
    clock = FakeClock()
    bucket = TokenBucket(rate_per_sec=10.0, capacity=1.0, clock=clock, sleep=clock.sleep)

    bucket.acquire()

    assert clock.sleeps == []


def test_token_bucket_spaces_consecutive_acquires():
    clock = FakeClock()
    bucket = TokenBucket(rate_per_sec=10.0, capacity=1.0, clock=clock, sleep=clock.sleep)

    bucket.acquire()
    bucket.acquire()

    assert sum(clock.sleeps) == pytest.approx(0.1)


def test_paced_yields_every_item_in_order_with_fixed_delay():
    clock = FakeClock()
    bucket = fixed_interval_bucket(0.1, clock=clock, sleep=clock.sleep)

    items = list(paced(["a", "b", "c"], bucket))

    assert items == ["a", "b", "c"]
    assert sum(clock.sleeps) == pytest.approx(0.2)


def test_paced_with_no_items_never_waits():
    clock = FakeClock()
    bucket = fixed_interval_bucket(0.1, clock=clock, sleep=clock.sleep)

    assert list(paced([], bucket)) == []
    assert clock.sleeps == []


def test_fixed_interval_bucket_rejects_non_positive_interval():
    with pytest.raises(ValueError):
        fixed_interval_bucket(0)
