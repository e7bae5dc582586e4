import re
from datetime import date, datetime, time

import pytest
import pytz

from busdesk.utils.date_utils import (
    expiry_moment,
    format_display_date,
    format_remote_date,
    localize,
    normalize_time,
    parse_calendar_date,
)

CANONICAL_TIME = re.compile(r"^\d{2}\.\d{2} (AM|PM)$")


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("00:00", "12.00 AM"),
        ("13:05", "01.05 PM"),
        ("23:59", "11.59 PM"),
        ("12:30", "12.30 PM"),
        ("07:15", "07.15 AM"),
    ],
)
def test_24_hour_times_convert_to_12_hour(raw, expected):
    result = normalize_time(raw)
    assert result == expected
    assert CANONICAL_TIME.match(result)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("9:00 PM", "09.00 PM"),
        ("9:00pm", "09.00 PM"),
        ("10:15 AM", "10.15 AM"),
        ("8.45  PM", "08.45 PM"),
    ],
)
def test_free_form_times_are_cleaned(raw, expected):
    assert normalize_time(raw) == expected


def test_normalize_time_is_stable_on_canonical_input():
    assert normalize_time("09.00 PM") == "09.00 PM"


def test_iso_instant_time_is_rendered_in_timezone():
    assert normalize_time("2025-03-05T15:30:00.000Z", "Asia/Colombo") == "09.00 PM"


def test_blank_time_is_empty():
    assert normalize_time(None) == ""
    assert normalize_time("   ") == ""


def test_parse_calendar_date_accepts_common_shapes():
    assert parse_calendar_date("2025-03-05") == date(2025, 3, 5)
    assert parse_calendar_date("03/05/2025") == date(2025, 3, 5)
    assert parse_calendar_date(date(2025, 3, 5)) == date(2025, 3, 5)


def test_parse_calendar_date_converts_instants_to_timezone():
    # Midnight in Colombo serialized as the previous evening in UTC
    assert parse_calendar_date("2025-03-04T18:30:00.000Z", "Asia/Colombo") == date(2025, 3, 5)


@pytest.mark.parametrize("raw", ["", None, "soon", "32/13/2025"])
def test_parse_calendar_date_never_raises(raw):
    assert parse_calendar_date(raw) is None


def test_display_date_falls_back_to_raw_text():
    assert format_display_date(date(2025, 3, 5)) == "2025/03/05"
    assert format_display_date(None, "5-Mar-soon") == "5/Mar/soon"
    assert format_display_date(None, "") == "-"


def test_remote_date_uses_month_first():
    assert format_remote_date(date(2025, 3, 5)) == "03/05/2025"
    assert format_remote_date(None, "sometime") == "sometime"


def test_localize_attaches_zone_to_naive_datetimes():
    result = localize(datetime(2025, 3, 5, 9, 0), "Asia/Colombo")
    assert result.utcoffset().total_seconds() == 5.5 * 3600


def test_expiry_moment_is_morning_after_journey():
    moment = expiry_moment(date(2025, 3, 9), time(5, 30), "Asia/Colombo")
    expected = pytz.timezone("Asia/Colombo").localize(datetime(2025, 3, 10, 5, 30))
    assert moment == expected
