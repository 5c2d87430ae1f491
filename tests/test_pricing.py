"""Unit tests for the delivery fee engine."""

import pytest

from delivery_routing.domain.pricing import (
    LinearDeliveryFee,
    TieredDeliveryFee,
    calculate_delivery_fee,
    calculate_delivery_time,
    format_price,
)


class TestTieredDeliveryFee:
    @pytest.mark.parametrize(
        "distance, fee",
        [
            (0.5, 50),
            (1.0, 50),
            (1.5, 80),
            (2.0, 80),
            (2.5, 87),
            (2.6, 89.3),  # 87 + 1 x 2.3
            (3.5, 110.0),  # 87 + 10 x 2.3
        ],
    )
    def test_tiers(self, distance, fee):
        assert calculate_delivery_fee(distance) == pytest.approx(fee)

    def test_unknown_distance_has_no_fee(self):
        assert calculate_delivery_fee(None) is None

    @pytest.mark.parametrize("distance", [float("inf"), float("nan")])
    def test_non_finite_distance_has_no_fee(self, distance):
        assert calculate_delivery_fee(distance) is None
        assert LinearDeliveryFee().calculate(distance) is None

    def test_zero_distance_is_lowest_tier(self):
        assert calculate_delivery_fee(0) == 50

    def test_partial_block_billed_as_full(self):
        assert calculate_delivery_fee(2.501) == pytest.approx(89.3)
        assert calculate_delivery_fee(2.55) == pytest.approx(89.3)
        assert calculate_delivery_fee(2.65) == pytest.approx(91.6)

    def test_long_distance(self):
        # 7.5 km past the flat tiers = 75 blocks
        assert calculate_delivery_fee(10.0) == pytest.approx(87 + 75 * 2.3)

    def test_fee_never_decreases_with_distance(self):
        distances = [i / 20 for i in range(0, 200)]
        fees = [calculate_delivery_fee(d) for d in distances]
        assert fees == sorted(fees)

    def test_custom_tariff(self):
        strategy = TieredDeliveryFee(tiers=((5.0, 100.0),), block_m=1000, rate_per_block=10)
        assert strategy.calculate(4.0) == 100.0
        assert strategy.calculate(6.5) == 120.0  # 2 started km


class TestLinearDeliveryFee:
    def test_base_plus_per_km(self):
        assert LinearDeliveryFee().calculate(3.0) == 60.0  # 30 + 3*10

    def test_free_below_threshold(self):
        strategy = LinearDeliveryFee(free_threshold_km=2.0)
        assert strategy.calculate(1.5) == 0.0
        assert strategy.calculate(2.5) == 55.0

    def test_unknown_distance(self):
        assert LinearDeliveryFee().calculate(None) is None


class TestDeliveryTime:
    def test_default_assumptions(self):
        # 15 km at 30 km/h = 30 min, + 10 pickup + 5 buffer
        assert calculate_delivery_time(15.0) == 45

    def test_rounds_up(self):
        assert calculate_delivery_time(0.1, pickup_minutes=0, buffer_minutes=0) == 1


class TestFormatPrice:
    def test_two_decimals(self):
        assert format_price(89.3) == "Rs. 89.30"
        assert format_price("110") == "Rs. 110.00"

    @pytest.mark.parametrize("value", [None, "n/a", float("nan")])
    def test_invalid_is_zero(self, value):
        assert format_price(value) == "Rs. 0.00"
