"""ETA formatting tests."""

import pytest

from delivery_routing.domain.eta import eta_from_distance, format_eta, format_eta_range


class TestFormatEta:
    @pytest.mark.parametrize(
        "minutes, text",
        [
            (None, "Arriving soon"),
            (0, "Arriving soon"),
            (-3, "Arriving soon"),
            (0.4, "Less than a minute"),
            (1, "1 min"),
            (12, "12 mins"),
            (12.5, "13 mins"),
            (59.4, "59 mins"),
            (60, "1 hr"),
            (61, "1 hr 1 min"),
            (135, "2 hrs 15 mins"),
        ],
    )
    def test_format(self, minutes, text):
        assert format_eta(minutes) == text


class TestEtaFromDistance:
    def test_default_speed(self):
        assert eta_from_distance(15.0) == pytest.approx(30.0)

    def test_custom_speed(self):
        assert eta_from_distance(10.0, avg_speed_kmh=60) == pytest.approx(10.0)

    @pytest.mark.parametrize("distance", [None, 0, -1])
    def test_no_distance(self, distance):
        assert eta_from_distance(distance) == 0.0


def test_format_eta_range():
    assert format_eta_range(9.6, 14.2) == "10-14 mins"
