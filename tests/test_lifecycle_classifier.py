from datetime import date

import pytest

from busdesk.schemas.booking import Booking
from busdesk.schemas.common.enums import Stage
from busdesk.services.booking import LifecycleClassifier

from conftest import TIMEZONE, colombo


def _classifier(now):
    return LifecycleClassifier(TIMEZONE, clock=lambda: now)


def _booking(journey_date, stage=Stage.ACTIVE, booking_id="BK-1"):
    return Booking(id=booking_id, journey_date=journey_date, stage=stage)


def test_yesterdays_journey_expires_after_cutoff():
    booking = _booking(date(2025, 3, 9))

    assert _classifier(colombo(2025, 3, 10, 5, 29)).is_expired(booking) is False
    assert _classifier(colombo(2025, 3, 10, 5, 31)).is_expired(booking) is True


@pytest.mark.parametrize("hour, minute", [(0, 0), (5, 31), (12, 0), (23, 59)])
def test_todays_journey_is_always_shown(hour, minute):
    booking = _booking(date(2025, 3, 10))
    assert _classifier(colombo(2025, 3, 10, hour, minute)).is_expired(booking) is False


def test_unparseable_date_fails_open():
    booking = Booking(id="BK-1", journey_date_raw="someday", stage=Stage.ACTIVE)
    assert _classifier(colombo(2030, 1, 1, 12, 0)).is_expired(booking) is False


def test_classify_filters_only_active_stage():
    classifier = _classifier(colombo(2025, 3, 10, 10, 0))
    old = date(2025, 1, 1)

    pending = [_booking(old, Stage.PENDING)]
    archived = [_booking(old, Stage.ARCHIVED)]
    active = [
        _booking(old, booking_id="BK-1"),
        _booking(date(2025, 3, 10), booking_id="BK-2"),
    ]

    assert classifier.classify(pending, Stage.PENDING) == pending
    assert classifier.classify(archived, Stage.ARCHIVED) == archived
    assert [b.id for b in classifier.classify(active, Stage.ACTIVE)] == ["BK-2"]
