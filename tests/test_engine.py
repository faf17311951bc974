"""
MultiDivergence Engine Tests

Tests critical properties of the full batch scan:
1. Concrete two-oscillator scenario
2. Determinism
3. Non-repaint under truncation
4. Count consistency with the per-oscillator classifiers
5. Range, threshold, flag and warm-up gating
6. Input contract validation
"""

from __future__ import annotations

from dataclasses import replace

import numpy as np
import polars as pl
import pytest

from conftest import bullish_scenario, generate_test_ohlcv, make_bars, timestamps
from multidiv import (
    DivergenceConfig,
    DivergenceKind,
    InputContractError,
    MarkerPosition,
    MarkerShape,
    MultiDivergence,
    signals_to_frame,
)
from multidiv.divergence.signals import SIGNAL_STYLES
from multidiv.models import SIGNAL_KINDS


SCENARIO_CONFIG = DivergenceConfig(
    lookback_left=3,
    lookback_right=1,
    range_lower=1,
    range_upper=60,
    min_div_count=2,
)


def run_scenario(**overrides):
    df, series = bullish_scenario()
    config = replace(SCENARIO_CONFIG, **overrides)
    return MultiDivergence(config=config).run(df, series)


# =============================================================================
# Scenario
# =============================================================================


class TestScenario:

    def test_single_regular_bullish_signal_at_confirmation_bar(self, scenario):
        df, series = scenario
        signals = MultiDivergence(config=SCENARIO_CONFIG).detect(df, series)

        assert len(signals) == 1
        signal = signals[0]
        assert signal.bar_index == 21
        assert signal.time == df["timestamp"][21]
        assert signal.kind is DivergenceKind.REGULAR_BULLISH
        assert signal.count == 2
        assert signal.text == "2"
        assert signal.position is MarkerPosition.BELOW_BAR
        assert signal.shape is MarkerShape.LABEL_UP
        assert signal.color == "#008080"

    def test_divergences_reference_both_pivots(self):
        result = run_scenario()
        divergences = result.divergences()

        assert {d.oscillator for d in divergences} == {"a", "b"}
        for d in divergences:
            assert d.previous.bar_index == 10
            assert d.current.bar_index == 20
            assert d.confirm_index == 21
            assert d.distance == 10
            assert d.current.price == 90.0
            assert d.previous.price == 100.0

    def test_threshold_above_agreement(self):
        assert run_scenario(min_div_count=3).signals == []

    def test_single_oscillator_threshold(self):
        df, series = bullish_scenario()
        config = replace(SCENARIO_CONFIG, min_div_count=1)
        signals = MultiDivergence(config=config).detect(df, {"a": series["a"]})

        assert [(s.bar_index, s.count) for s in signals] == [(21, 1)]

    def test_disabled_kind_never_emits(self):
        result = run_scenario(show_regular_bullish=False)

        assert result.signals == []
        assert result.counts.regular_bullish[21] == 2

    @pytest.mark.parametrize(
        "range_lower,range_upper,fires",
        [(1, 9, False), (10, 10, True), (11, 60, False), (1, 10, True)],
    )
    def test_range_gating_boundaries(self, range_lower, range_upper, fires):
        result = run_scenario(range_lower=range_lower, range_upper=range_upper)
        assert bool(result.signals) is fires

    @pytest.mark.parametrize("warmup,fires", [(0, True), (11, True), (12, False), (22, False)])
    def test_warmup_skips_early_pivots_entirely(self, warmup, fires):
        # Bar 10 confirms at 11: below warm-up it is never recorded
        result = run_scenario(warmup=warmup)
        assert bool(result.signals) is fires
        assert result.warmup == warmup

    def test_price_must_pivot_with_oscillator(self):
        df, series = bullish_scenario()
        flat = df.with_columns(pl.lit(110.0).alias("low"))

        result = MultiDivergence(config=SCENARIO_CONFIG).run(flat, series)
        assert result.signals == []
        assert all(scan.pivots == 0 for scan in result.scans)

    def test_nan_at_pivot_is_ineligible(self):
        df, series = bullish_scenario()
        series["a"] = series["a"].copy()
        series["a"][9] = np.nan

        result = MultiDivergence(config=SCENARIO_CONFIG).run(df, series)
        assert result.signals == []
        assert result.counts.regular_bullish[21] == 1

    def test_all_nan_oscillator(self):
        df, series = bullish_scenario()
        series["warming"] = np.full(len(df), np.nan)

        result = MultiDivergence(config=SCENARIO_CONFIG).run(df, series)
        assert len(result.signals) == 1
        assert result.scans[-1].divergences == []

    def test_sequence_input_is_named_by_position(self):
        df, series = bullish_scenario()
        result = MultiDivergence(config=SCENARIO_CONFIG).run(df, [series["a"], series["b"]])
        assert [scan.name for scan in result.scans] == ["osc_0", "osc_1"]
        assert len(result.signals) == 1

    def test_compute_pair_adds_count_columns(self, scenario):
        df, series = scenario
        out = MultiDivergence(config=SCENARIO_CONFIG).compute_pair(df, series)

        for column in MultiDivergence.outputs:
            assert column in out.columns
        assert out["multi_div_regular_bullish"][21] == 2
        assert out["multi_div_regular_bullish"].sum() == 2
        assert out["multi_div_hidden_bearish"].sum() == 0


class TestEachKind:

    @staticmethod
    def high_scenario(prev_price, price, prev_osc, osc):
        n = 30
        lows = np.full(n, 80.0)
        highs = np.full(n, 110.0)
        highs[10], highs[20] = prev_price, price
        osc_series = np.full(n, 50.0)
        osc_series[10], osc_series[20] = prev_osc, osc
        return make_bars(lows, highs), {"x": osc_series, "y": osc_series + 1.0}

    @pytest.mark.parametrize(
        "prices,oscs,expected",
        [
            ((120.0, 130.0), (80.0, 70.0), DivergenceKind.REGULAR_BEARISH),
            ((130.0, 120.0), (70.0, 80.0), DivergenceKind.HIDDEN_BEARISH),
        ],
    )
    def test_bearish_kinds(self, prices, oscs, expected):
        df, series = self.high_scenario(*prices, *oscs)
        signals = MultiDivergence(config=SCENARIO_CONFIG).detect(df, series)

        assert len(signals) == 1
        position, shape, color = SIGNAL_STYLES[expected]
        assert signals[0].kind is expected
        assert signals[0].position is position is MarkerPosition.ABOVE_BAR
        assert signals[0].shape is shape
        assert signals[0].color == color

    def test_hidden_bullish(self):
        df, series = bullish_scenario()
        lows = df["low"].to_numpy().copy()
        lows[10], lows[20] = 90.0, 100.0
        df = df.with_columns(pl.Series("low", lows))

        swapped = {}
        for name, values in series.items():
            values = values.copy()
            values[10], values[20] = values[20], values[10]
            swapped[name] = values
        signals = MultiDivergence(config=SCENARIO_CONFIG).detect(df, swapped)
        assert [(s.kind, s.bar_index) for s in signals] == [(DivergenceKind.HIDDEN_BULLISH, 21)]


# =============================================================================
# Properties on realistic data
# =============================================================================


@pytest.fixture
def engine() -> MultiDivergence:
    return MultiDivergence(config=DivergenceConfig(min_div_count=2))


class TestDeterminism:

    def test_identical_runs(self, engine, test_data):
        first = engine.detect(test_data)
        second = engine.detect(test_data)
        assert first == second

    def test_default_suite(self, engine, test_data):
        result = engine.run(test_data)

        assert len(result.scans) == 10
        assert result.warmup == engine.warmup == 34
        assert all(len(scan.kinds) == len(test_data) for scan in result.scans)
        assert sum(len(scan.divergences) for scan in result.scans) > 0


class TestNonRepaint:

    @pytest.mark.parametrize("k", [200, 517, 800])
    def test_truncated_prefix_matches(self, engine, test_data, k):
        right = engine.config.lookback_right
        full = engine.detect(test_data)
        truncated = engine.detect(test_data.head(k))

        cutoff = k - right
        assert [s for s in truncated if s.bar_index < cutoff] == [
            s for s in full if s.bar_index < cutoff
        ]


class TestCountConsistency:

    def test_counts_equal_per_oscillator_classifications(self, engine, test_data):
        result = engine.run(test_data)

        for kind in SIGNAL_KINDS:
            expected = np.zeros(len(test_data), dtype=np.int64)
            for d in result.divergences():
                if d.kind is kind:
                    expected[d.confirm_index] += 1
            np.testing.assert_array_equal(result.counts.for_kind(kind), expected)

            fired = sum(scan.fired(kind).astype(np.int64) for scan in result.scans)
            np.testing.assert_array_equal(result.counts.for_kind(kind), fired)

    def test_nothing_counted_before_warmup(self, engine, test_data):
        result = engine.run(test_data)
        for kind in SIGNAL_KINDS:
            assert not result.counts.for_kind(kind)[: result.warmup].any()
        assert all(d.confirm_index >= result.warmup for d in result.divergences())

    def test_no_future_pivot_feeds_a_bar(self, engine, test_data):
        right = engine.config.lookback_right
        for d in engine.run(test_data).divergences():
            assert d.confirm_index == d.current.bar_index + right
            assert d.previous.bar_index < d.current.bar_index


class TestGating:

    @pytest.mark.parametrize("range_lower,range_upper", [(1, 60), (5, 20), (15, 15)])
    def test_range_gating(self, test_data, range_lower, range_upper):
        config = DivergenceConfig(range_lower=range_lower, range_upper=range_upper, min_div_count=1)
        for d in MultiDivergence(config=config).run(test_data).divergences():
            assert range_lower <= d.distance <= range_upper

    @pytest.mark.parametrize("min_div_count", [1, 2, 3])
    def test_threshold_gating(self, test_data, min_div_count):
        config = DivergenceConfig(min_div_count=min_div_count)
        result = MultiDivergence(config=config).run(test_data)

        emitted = [(s.bar_index, s.kind) for s in result.signals]
        assert len(emitted) == len(set(emitted))
        assert all(s.count >= min_div_count for s in result.signals)

        expected = {
            (i, kind)
            for kind in SIGNAL_KINDS
            for i in np.flatnonzero(result.counts.for_kind(kind) >= min_div_count)
        }
        assert set(emitted) == expected

    def test_signals_ordered_by_bar_then_kind(self, test_data):
        config = DivergenceConfig(min_div_count=1)
        signals = MultiDivergence(config=config).detect(test_data)
        order = [(s.bar_index, SIGNAL_KINDS.index(s.kind)) for s in signals]
        assert order == sorted(order)

    def test_signals_to_frame(self, test_data):
        config = DivergenceConfig(min_div_count=1)
        signals = MultiDivergence(config=config).detect(test_data)
        frame = signals_to_frame(signals)

        assert len(frame) == len(signals)
        assert frame["text"].to_list() == [s.text for s in signals]
        assert set(frame["position"].unique()) <= {"belowBar", "aboveBar"}

    def test_signals_to_frame_empty(self):
        frame = signals_to_frame([])
        assert len(frame) == 0
        assert "color" in frame.columns

    def test_empty_and_filled_frames_share_time_type(self, scenario):
        df, series = scenario
        ts_dtype = df["timestamp"].dtype

        filled = MultiDivergence(config=SCENARIO_CONFIG).signal_frame(df, series)
        empty = MultiDivergence(config=DivergenceConfig(min_div_count=3)).signal_frame(df, series)

        assert len(filled) == 1
        assert len(empty) == 0
        assert filled["time"].dtype == ts_dtype
        assert empty.schema == filled.schema


# =============================================================================
# Input contract
# =============================================================================


class TestInputContract:

    def test_length_mismatch(self, scenario):
        df, series = scenario
        series["a"] = series["a"][:-1]
        with pytest.raises(InputContractError, match="'a' has 29 values for 30 bars"):
            MultiDivergence(config=SCENARIO_CONFIG).run(df, series)

    def test_two_dimensional_series(self, scenario):
        df, _ = scenario
        with pytest.raises(InputContractError):
            MultiDivergence(config=SCENARIO_CONFIG).run(df, {"bad": np.zeros((30, 2))})

    def test_empty_frame(self, scenario):
        df, series = scenario
        with pytest.raises(InputContractError, match="empty"):
            MultiDivergence(config=SCENARIO_CONFIG).run(df.head(0), series)

    def test_missing_column(self, scenario):
        df, series = scenario
        with pytest.raises(InputContractError, match="high"):
            MultiDivergence(config=SCENARIO_CONFIG).run(df.drop("high"), series)

    @pytest.mark.parametrize("column", ["open", "close"])
    def test_missing_ohlc_column_rejected_before_scan(self, column):
        df = generate_test_ohlcv(n_rows=100).drop(column)
        with pytest.raises(InputContractError, match=column):
            MultiDivergence().run(df)

    @pytest.mark.parametrize("swap", [(3, 4), (0, 29)])
    def test_unordered_timestamps(self, scenario, swap):
        df, series = scenario
        ts = timestamps(len(df))
        ts[swap[0]], ts[swap[1]] = ts[swap[1]], ts[swap[0]]
        with pytest.raises(InputContractError, match="strictly increasing"):
            MultiDivergence(config=SCENARIO_CONFIG).run(df.with_columns(pl.Series("timestamp", ts)), series)

    def test_duplicate_timestamps(self, scenario):
        df, series = scenario
        ts = timestamps(len(df))
        ts[5] = ts[4]
        with pytest.raises(InputContractError):
            MultiDivergence(config=SCENARIO_CONFIG).run(df.with_columns(pl.Series("timestamp", ts)), series)

    def test_contract_error_is_value_error(self):
        assert issubclass(InputContractError, ValueError)

    def test_frame_without_volume(self):
        df = generate_test_ohlcv(n_rows=300).drop("volume")
        result = MultiDivergence().run(df)
        assert len(result.scans) == 10
