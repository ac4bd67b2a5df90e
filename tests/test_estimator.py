"""
Estimator Tests
===============
Dryout rate, pump regression, anchors and clamping.
"""
import copy
import random

from plantcare.domain.estimator import Estimate, collect_samples, estimate, trimmed_dryout
from plantcare.domain.measurements import PumpModel

# Waterings of 2500 ms and 5000 ms gaining 400 and 800 units: 6.25 ms per unit
REGRESSION_WEIGHTS = [1000, 1400, 1000, 1800, 1000, 1400, 1000, 1800]
REGRESSION_WATERINGS = [2500, 0, 5000, 0, 2500, 0, 5000, 0]


class TestAlignment:
    def test_weight_tail_is_aligned_with_waterings(self):
        # Only the last two weights pair with the two waterings
        dryout, gains, times = collect_samples([9999, 9999, 1000, 1100], [500, 0])
        assert dryout == []
        assert gains == [100]
        assert times == [500]

    def test_watering_of_previous_hour_explains_gain(self):
        dryout, gains, times = collect_samples([1000, 1400, 1390], [2500, 0, 0])
        assert gains == [400]
        assert times == [2500]
        assert dryout == [10]

    def test_first_overlapping_watering_is_included(self):
        # numW - i == numM must still pair waterings[2] with weights[0]
        dryout, gains, times = collect_samples([1000, 990], [0, 300, 0, 0])
        assert dryout == [10]
        assert gains == []
        assert times == []

    def test_first_sample_has_no_predecessor(self):
        dryout, gains, _ = collect_samples([1000], [0])
        assert dryout == []
        assert gains == []

    def test_zero_weights_are_not_used_as_reference(self):
        dryout, _, _ = collect_samples([0, 1000, 990], [0, 0, 0])
        assert dryout == [10]


class TestDryout:
    def test_constant_slope_gives_daily_dryout(self):
        weights = [2000 - 10 * i for i in range(24)]
        result = estimate(weights, [0] * 24, PumpModel())
        assert result.dryout == 240

    def test_outliers_are_trimmed(self):
        samples = [10] * 10 + [1000, -1000]
        assert trimmed_dryout(samples) == 240

    def test_rounds_half_up(self):
        middle = [0] * 15
        assert trimmed_dryout([-100] * 3 + middle + [1] + [100] * 3) == 2
        assert trimmed_dryout([-100] * 3 + middle + [-1] + [100] * 3) == -1

    def test_no_samples_is_zero(self):
        assert trimmed_dryout([]) == 0
        assert estimate([], [], PumpModel()).dryout == 0


class TestPumpRegression:
    def test_least_squares_fit(self):
        result = estimate(REGRESSION_WEIGHTS, REGRESSION_WATERINGS, PumpModel())
        assert result == Estimate(dryout=12800, scale=6, offset=0)

    def test_identical_gains_keep_previous_model(self):
        weights = [1000, 1400] * 10
        waterings = [2500, 0] * 10
        result = estimate(weights, waterings, PumpModel(scale=0, offset=0))
        assert (result.scale, result.offset) == (0, 0)
        assert result.dryout == 400 * 24

    def test_anchors_from_previous_model_make_fit_possible(self):
        weights = [1000, 1400] * 10
        waterings = [2500, 0] * 10
        result = estimate(weights, waterings, PumpModel(scale=6, offset=0))
        assert result.scale == 6
        assert result.offset == 83

    def test_anchors_need_real_samples(self):
        weights = [2000 - 10 * i for i in range(10)]
        result = estimate(weights, [0] * 10, PumpModel(scale=6, offset=100))
        assert (result.scale, result.offset) == (6, 100)

    def test_anchors_pull_fit_towards_previous_model(self):
        result = estimate(REGRESSION_WEIGHTS, REGRESSION_WATERINGS, PumpModel(scale=6, offset=0))
        assert (result.scale, result.offset) == (6, 0)


class TestClamping:
    def test_negative_offset_goes_through_centroid(self):
        weights = [1000, 1100, 1000, 1300]
        waterings = [1000, 0, 5000, 0]
        result = estimate(weights, waterings, PumpModel())
        assert (result.scale, result.offset) == (15, 0)

    def test_negative_scale_uses_half_average(self):
        weights = [1000, 1100, 1000, 1300]
        waterings = [3000, 0, 1000, 0]
        result = estimate(weights, waterings, PumpModel())
        assert (result.scale, result.offset) == (5, 1000)
        assert result.dryout == 2400

    def test_parameters_never_negative(self):
        rng = random.Random(1234)
        for _ in range(300):
            n = rng.randint(0, 80)
            weights = [rng.randint(0, 3000) for _ in range(n)]
            waterings = [rng.choice([0, 0, 0, rng.randint(0, 20000)]) for _ in range(rng.randint(0, 80))]
            model = PumpModel(scale=rng.randint(0, 20), offset=rng.randint(0, 3000))
            result = estimate(weights, waterings, model)
            assert result.scale >= 0
            assert result.offset >= 0


def test_estimate_is_pure():
    weights = list(REGRESSION_WEIGHTS)
    waterings = list(REGRESSION_WATERINGS)
    model = PumpModel(scale=6, offset=10)
    before = (copy.deepcopy(weights), copy.deepcopy(waterings))

    first = estimate(weights, waterings, model)
    second = estimate(weights, waterings, model)

    assert first == second
    assert (weights, waterings) == before
    assert model == PumpModel(scale=6, offset=10)


def test_estimate_serialises():
    assert Estimate(240, 6, 0).to_dict() == {"dryout": 240, "scale": 6, "offset": 0}
    assert Estimate(240, 6, 0).pump_model == PumpModel(6, 0)
