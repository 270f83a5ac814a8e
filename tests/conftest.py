from datetime import datetime, timedelta, timezone

import pytest

ISS_NAME = "ISS (ZARYA)"
ISS_LINE1 = "1 25544U 98067A   08264.51782528 -.00002182  00000-0 -11606-4 0  2927"
ISS_LINE2 = "2 25544  51.6416 247.4627 0006703 130.5360 325.0288 15.72125391563537"
ISS_INCLINATION_DEG = 51.6416
ISS_PERIOD_MIN = 1440.0 / 15.72125391

# Element set epoch: 2008, day-of-year 264.51782528
ISS_EPOCH_MS = (
    datetime(2008, 1, 1, tzinfo=timezone.utc) + timedelta(days=264.51782528 - 1)
).timestamp() * 1000.0


def make_tle(satnum, name):
    """ISS elements relabelled with another catalog number."""
    tag = f"{satnum:05d}"
    return (name, ISS_LINE1.replace("25544", tag, 1), ISS_LINE2.replace("25544", tag, 1))


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start=ISS_EPOCH_MS):
        self.now = float(start)

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def iss_tle():
    return (ISS_NAME, ISS_LINE1, ISS_LINE2)


@pytest.fixture
def small_feed():
    return [
        (ISS_NAME, ISS_LINE1, ISS_LINE2),
        make_tle(11111, "TIANGONG"),
        make_tle(22222, "NOAA 19"),
        make_tle(33333, "NOAA 18"),
    ]
