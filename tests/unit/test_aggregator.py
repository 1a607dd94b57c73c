import pytest

from core.models import SentimentSample, Topic
from decision.aggregator import SignalAggregator


def sample(value, confidence=1.0, weight=1.0, topic=Topic.GENERAL_MARKET):
    return SentimentSample(value=value, confidence=confidence, weight=weight, topic=topic)


def make_aggregator(**kwargs):
    return SignalAggregator(now=lambda: 1_700_000_000.0, **kwargs)


def test_empty_batch_leaves_state_unchanged():
    agg = make_aggregator()
    agg.aggregate([sample(0.5)])
    before_history = agg.history
    before_emas = agg.current_emas()

    mood = agg.aggregate([])

    assert mood.volume == 0
    assert mood.raw_score == 0.0
    assert mood.z_score == 0.0
    assert agg.history == before_history
    assert agg.current_emas() == before_emas


def test_weighted_raw_score():
    agg = make_aggregator()
    mood = agg.aggregate([sample(1.0, confidence=1.0, weight=3.0), sample(-1.0, confidence=0.5, weight=2.0)])

    # (1*3 - 1*1) / (3 + 1)
    assert mood.raw_score == pytest.approx(0.5)
    assert mood.volume == 2


def test_zero_total_weight_gives_zero_score():
    agg = make_aggregator()
    mood = agg.aggregate([sample(0.8, confidence=0.0), sample(-0.3, weight=0.0)])
    assert mood.raw_score == 0.0
    assert mood.volume == 2


def test_first_batch_seeds_emas_and_zero_z():
    agg = make_aggregator()
    mood = agg.aggregate([sample(0.4)])

    assert mood.z_score == 0.0
    assert mood.ema5 == pytest.approx(0.4)
    assert mood.ema15 == pytest.approx(0.4)
    assert mood.ema60 == pytest.approx(0.4)


def test_z_score_against_history():
    agg = make_aggregator()
    agg.aggregate([sample(0.0)])
    mood = agg.aggregate([sample(1.0)])

    # history [0, 1]: mean 0.5, population stddev 0.5
    assert mood.z_score == pytest.approx(1.0)


def test_flat_feed_keeps_z_at_zero():
    agg = make_aggregator()
    moods = [agg.aggregate([sample(0.1)]) for _ in range(10)]
    assert [m.z_score for m in moods] == [0.0] * 10


def test_history_is_capped():
    agg = make_aggregator(history_size=3)
    for v in (0.1, 0.2, 0.3, 0.4):
        agg.aggregate([sample(v)])
    assert agg.history == pytest.approx((0.2, 0.3, 0.4))


def test_topic_breakdown():
    agg = make_aggregator()
    mood = agg.aggregate(
        [
            sample(0.1, topic=Topic.OWN_ASSET),
            sample(0.1, topic=Topic.GENERAL_MARKET),
            sample(0.1, topic=Topic.GENERAL_MARKET),
            sample(0.1, topic=Topic.GENERAL_MARKET),
        ]
    )
    assert mood.topic_breakdown.own_asset == pytest.approx(0.25)
    assert mood.topic_breakdown.general_market == pytest.approx(0.75)


def test_snapshot_restore():
    agg = make_aggregator()
    for v in (0.1, -0.2, 0.3):
        agg.aggregate([sample(v)])

    restored = make_aggregator()
    assert restored.restore(agg.snapshot()) is True
    assert restored.history == agg.history
    assert restored.current_emas() == agg.current_emas()

    # Both continue identically
    assert restored.aggregate([sample(0.5)]) == agg.aggregate([sample(0.5)])


@pytest.mark.parametrize("snapshot", [None, {}, {"history": "abc"}, {"ema5": 0.1}])
def test_restore_bad_snapshot_starts_empty(snapshot):
    agg = make_aggregator()
    agg.aggregate([sample(0.5)])

    assert agg.restore(snapshot) is False
    assert agg.history == ()
    assert agg.current_emas() == {"ema5": 0.0, "ema15": 0.0, "ema60": 0.0}
