import pytest

from nonstop_run.services.courses.formatting import estimate_time, format_distance, format_pace, format_time


@pytest.mark.parametrize(
    ("seconds", "expected"),
    [(0, "0:00"), (59.9, "0:59"), (61, "1:01"), (1800, "30:00"), (4504, "75:04")],
)
def test_format_time(seconds, expected):
    assert format_time(seconds) == expected


def test_format_pace():
    assert format_pace(360) == "6'00\""
    assert format_pace(335.5) == "5'35\""


def test_format_distance_switches_to_km():
    assert format_distance(850) == "850m"
    assert format_distance(999.4) == "999m"
    assert format_distance(1000) == "1.0km"
    assert format_distance(5049) == "5.0km"


def test_estimate_time_uses_pace_per_km():
    assert estimate_time(5000, 360) == 1800
