import pytest

from core.stats import (
    Crossover,
    ExponentialMovingAverage,
    MovingAverage,
    crossover,
    mean,
    stddev,
    z_score,
)


def test_ema_first_value_seeds_average():
    ema = ExponentialMovingAverage(5)
    assert ema.add(0.4) == 0.4
    assert ema.initialized


def test_ema_smoothing_factor():
    ema = ExponentialMovingAverage(3)  # alpha = 0.5
    ema.add(1.0)
    assert ema.add(0.0) == pytest.approx(0.5)
    assert ema.add(0.0) == pytest.approx(0.25)


def test_ema_reset_and_restore():
    ema = ExponentialMovingAverage(5)
    ema.add(1.0)
    ema.reset()
    assert not ema.initialized
    assert ema.value == 0.0

    ema.restore(0.3)
    assert ema.value == 0.3
    assert ema.add(0.3) == pytest.approx(0.3)


def test_ema_rejects_bad_window():
    with pytest.raises(ValueError):
        ExponentialMovingAverage(0)


def test_moving_average_window():
    ma = MovingAverage(3)
    assert ma.value == 0.0
    ma.add(1)
    ma.add(2)
    ma.add(3)
    assert ma.add(4) == pytest.approx(3.0)


def test_population_stddev():
    # Population (N) not sample (N-1)
    assert stddev([2, 4, 4, 4, 5, 5, 7, 9]) == pytest.approx(2.0)
    assert stddev([]) == 0.0
    assert mean([]) == 0.0
    assert mean([1, 2, 3]) == pytest.approx(2.0)


def test_z_score_zero_stddev():
    assert z_score(5.0, 5.0, 0.0) == 0.0
    assert z_score(3.0, 1.0, 2.0) == pytest.approx(1.0)


@pytest.mark.parametrize(
    "fast,slow,expected",
    [
        ([10, 4], [8, 8], Crossover.DOWN),
        ([4, 10], [8, 8], Crossover.UP),
        ([10, 10], [8, 8], Crossover.NONE),
        ([0.5, 0.3], [0.4, 0.4], Crossover.DOWN),
        ([0.3, 0.5], [0.4, 0.4], Crossover.UP),
        ([0.4, 0.3], [0.4, 0.4], Crossover.DOWN),
        ([0.5, 0.6], [0.4, 0.4], Crossover.NONE),
        ([0.5], [0.4], Crossover.NONE),
        ([], [], Crossover.NONE),
    ],
)
def test_crossover(fast, slow, expected):
    assert crossover(fast, slow) == expected


def test_z_score_treats_rounding_noise_as_flat():
    # np.std of a constant series of 0.1 is ~1.4e-17, not 0
    assert z_score(0.1, 0.1, 1.3877787807814457e-17) == 0.0
    assert z_score(0.1, 0.1, stddev([0.1, 0.1, 0.1])) == 0.0
