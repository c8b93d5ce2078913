"""Tests for the MACD alpha model."""

import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest

from alpha_core.alpha import (
    AlphaModel,
    create_alpha_model,
    get_alpha_model_class,
    list_alpha_models,
    register_alpha_model,
)
from alpha_core.alpha.macd import (
    MACD_ALPHA_MODEL_NAME,
    MacdAlphaConfig,
    MacdAlphaModel,
    SymbolData,
)
from alpha_core.errors import (
    ConfigurationError,
    StaleRemovalWarning,
    UniverseConsistencyError,
)
from alpha_core.models import AlphaDirection, AlphaType, PriceObservation, Symbol
from alpha_core.subscriptions import SubscriptionManager

T0 = datetime(2013, 10, 7, 9, 30, tzinfo=timezone.utc)
BAR = timedelta(minutes=10)

X = Symbol.create("X")
Y = Symbol.create("Y")
Z = Symbol.create("Z")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _rising_prices(n: int = 45) -> list[Decimal]:
    """100, 101, 103, 108, 115, then +3% per bar."""
    head = [Decimal(p) for p in ("100", "101", "103", "108", "115")]
    tail = [Decimal(str(round(115 * 1.03 ** k, 4))) for k in range(1, n - len(head) + 1)]
    return (head + tail)[:n]


def _falling_prices(start: Decimal, n: int) -> list[Decimal]:
    return [Decimal(str(round(float(start) * 0.97 ** k, 4))) for k in range(1, n + 1)]


def _make_model(threshold: str = "0.01") -> tuple[MacdAlphaModel, SubscriptionManager]:
    subscriptions = SubscriptionManager()
    config = MacdAlphaConfig(
        consolidator_period=BAR,
        alpha_period=timedelta(minutes=30),
        bounce_threshold_percent=Decimal(threshold),
    )
    return MacdAlphaModel(subscriptions, config), subscriptions


def _push(subscriptions: SubscriptionManager, symbol: Symbol, bar_index: int, price) -> None:
    """Push one observation at the start of bar ``bar_index``.

    Each push at a new bar start closes the previous bar.
    """
    subscriptions.push(
        PriceObservation(symbol=symbol, time=T0 + BAR * bar_index, price=Decimal(price))
    )


def _run(model, subscriptions, symbol, prices, start_bar: int = 0) -> list[list]:
    """Push prices one bar apart, ticking the model after each; returns alphas per tick."""
    emitted = []
    for i, price in enumerate(prices):
        bar_index = start_bar + i
        _push(subscriptions, symbol, bar_index, price)
        emitted.append(model.update(T0 + BAR * bar_index + timedelta(minutes=1)))
    return emitted


# ---------------------------------------------------------------------------
# Registry / Protocol tests
# ---------------------------------------------------------------------------

class TestRegistry:
    """Test that the MACD model is properly registered."""

    def test_registered(self):
        assert MACD_ALPHA_MODEL_NAME in list_alpha_models()
        assert get_alpha_model_class("macd") is MacdAlphaModel

    def test_create_by_name(self):
        model = create_alpha_model("macd", subscriptions=SubscriptionManager())
        assert isinstance(model, MacdAlphaModel)
        assert model.name == "macd"
        assert model.version == "1.0.0"

    def test_satisfies_protocol(self):
        assert isinstance(MacdAlphaModel(), AlphaModel)

    def test_unknown_name_raises(self):
        with pytest.raises(KeyError, match="Unknown alpha model"):
            create_alpha_model("does_not_exist")

    def test_duplicate_registration_raises(self):
        with pytest.raises(ValueError, match="already registered"):
            register_alpha_model("macd")(type("Other", (), {}))


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

class TestMacdAlphaConfig:
    """Test configuration defaults and validation."""

    def test_defaults(self):
        config = MacdAlphaConfig()
        assert config.consolidator_period == timedelta(minutes=10)
        assert config.alpha_period == timedelta(minutes=30)
        assert config.bounce_threshold_percent == Decimal("0.01")
        assert (config.fast_period, config.slow_period, config.signal_period) == (12, 26, 9)

    def test_threshold_stored_as_absolute(self):
        config = MacdAlphaConfig(bounce_threshold_percent=Decimal("-0.02"))
        assert config.bounce_threshold_percent == Decimal("0.02")

    def test_zero_alpha_period_allowed(self):
        assert MacdAlphaConfig(alpha_period=timedelta(0)).alpha_period == timedelta(0)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"consolidator_period": timedelta(0)},
            {"consolidator_period": timedelta(minutes=-10)},
            {"alpha_period": timedelta(minutes=-1)},
            {"fast_period": 0},
            {"slow_period": -26},
            {"signal_period": 0},
        ],
    )
    def test_invalid_values_raise(self, kwargs):
        with pytest.raises(ConfigurationError):
            MacdAlphaConfig(**kwargs)


# ---------------------------------------------------------------------------
# SymbolData
# ---------------------------------------------------------------------------

class TestSymbolData:
    """Test the per-symbol tracker."""

    def test_binds_consolidator_to_macd(self):
        subs = SubscriptionManager()
        data = SymbolData(subs.add_security(X), subs, MacdAlphaConfig())

        assert subs.consolidators(X) == [data.consolidator]
        assert data.consolidator.subscriber_count == 1

        _push(subs, X, 0, "100")
        assert data.macd.samples == 0  # raw observations do not reach the MACD
        _push(subs, X, 1, "101")
        assert data.macd.samples == 1
        assert data.price == Decimal("101")

    def test_cleanup_detaches(self):
        subs = SubscriptionManager()
        data = SymbolData(subs.add_security(X), subs, MacdAlphaConfig())

        assert data.cleanup() is True

        assert not data.is_attached
        assert subs.consolidators(X) == []
        assert data.consolidator.subscriber_count == 0

        _push(subs, X, 0, "100")
        _push(subs, X, 1, "101")
        assert data.macd.samples == 0

    def test_second_cleanup_is_noop(self, caplog):
        subs = SubscriptionManager()
        data = SymbolData(subs.add_security(X), subs, MacdAlphaConfig())
        data.cleanup()

        with caplog.at_level(logging.WARNING):
            assert data.cleanup() is False
        assert "already cleaned up" in caplog.text


# ---------------------------------------------------------------------------
# Universe changes
# ---------------------------------------------------------------------------

class TestUniverseChanges:
    """Test tracker lifecycle driven by universe changes."""

    def test_add_creates_tracker(self):
        model, subs = _make_model()

        result = model.on_universe_changed(added={X, Y}, removed=set())

        assert set(result.added) == {X, Y}
        assert result.ok
        assert model.symbols == {X, Y}
        assert len(model) == 2
        assert X in model
        assert len(subs.consolidators(X)) == 1

    def test_remove_cleans_up(self):
        model, subs = _make_model()
        model.on_universe_changed(added={X}, removed=set())
        data = model.get_symbol_data(X)

        result = model.on_universe_changed(added=set(), removed={X})

        assert result.removed == [X]
        assert X not in model
        assert not data.is_attached
        assert subs.consolidators(X) == []

    def test_duplicate_add_reported(self, caplog):
        model, _ = _make_model()
        model.on_universe_changed(added={X}, removed=set())
        original = model.get_symbol_data(X)

        with caplog.at_level(logging.ERROR):
            result = model.on_universe_changed(added={X, Y}, removed=set())

        assert len(result.errors) == 1
        assert isinstance(result.errors[0], UniverseConsistencyError)
        assert result.errors[0].context["symbol"] == X
        assert result.added == [Y]
        assert model.get_symbol_data(X) is original
        assert "already tracked" in caplog.text

    def test_stale_removal_reported(self, caplog):
        model, _ = _make_model()

        with caplog.at_level(logging.WARNING):
            result = model.on_universe_changed(added=set(), removed={Z})

        assert result.removed == []
        assert len(result.warnings) == 1
        assert isinstance(result.warnings[0], StaleRemovalWarning)
        assert "not tracked" in caplog.text

    def test_add_then_remove_then_update(self):
        """Z is added and removed before any tick: no alpha, no error."""
        model, subs = _make_model()
        model.on_universe_changed(added={Z}, removed=set())
        model.on_universe_changed(added=set(), removed={Z})

        assert model.update(T0) == []
        assert Z not in model
        assert Z not in model.symbol_data

    def test_remove_and_readd_resets_warm_up(self):
        model, subs = _make_model()
        model.on_universe_changed(added={X}, removed=set())
        _run(model, subs, X, _rising_prices(30))
        old = model.get_symbol_data(X)
        assert old.is_ready

        model.on_universe_changed(added=set(), removed={X})
        model.on_universe_changed(added={X}, removed=set())
        fresh = model.get_symbol_data(X)

        assert fresh is not old
        assert fresh.macd.samples == 0
        assert not fresh.is_ready
        assert fresh.previous_alpha is None
        assert subs.consolidators(X) == [fresh.consolidator]

        # Old tracker no longer receives bars
        old_samples = old.macd.samples
        _push(subs, X, 30, "200")
        _push(subs, X, 31, "201")
        assert old.macd.samples == old_samples
        assert fresh.macd.samples == 1

    def test_tracked_symbol_in_both_sets_ends_untracked(self):
        """Additions apply first: the add is a duplicate, then the removal applies."""
        model, subs = _make_model()
        model.on_universe_changed(added={X}, removed=set())
        old = model.get_symbol_data(X)

        result = model.on_universe_changed(added={X}, removed={X})

        assert len(result.errors) == 1
        assert isinstance(result.errors[0], UniverseConsistencyError)
        assert result.added == []
        assert result.removed == [X]
        assert result.warnings == []
        assert X not in model
        assert not old.is_attached
        assert subs.consolidators(X) == []

    def test_untracked_symbol_in_both_sets_ends_untracked(self):
        model, subs = _make_model()

        result = model.on_universe_changed(added={X}, removed={X})

        assert result.ok
        assert result.added == [X]
        assert result.removed == [X]
        assert X not in model
        assert subs.consolidators(X) == []
        assert model.update(T0) == []


# ---------------------------------------------------------------------------
# Alpha generation
# ---------------------------------------------------------------------------

class TestClassify:
    """Test the threshold policy."""

    @pytest.mark.parametrize(
        "signal,expected",
        [
            ("2", AlphaDirection.UP),
            ("-2", AlphaDirection.DOWN),
            ("0.5", AlphaDirection.FLAT),
            ("1", AlphaDirection.FLAT),  # exactly at threshold
            ("-1", AlphaDirection.FLAT),
        ],
    )
    def test_direction(self, signal, expected):
        model, _ = _make_model("0.01")
        data = SimpleNamespace(signal=Decimal(signal), price=Decimal("100"))
        assert model.classify(data) == expected

    def test_negative_threshold_uses_absolute_value(self):
        model, _ = _make_model("-0.01")
        data = SimpleNamespace(signal=Decimal("0.5"), price=Decimal("100"))
        assert model.classify(data) == AlphaDirection.FLAT


class TestUpdate:
    """Test alpha emission on scheduler ticks."""

    def test_rising_prices_emit_single_up(self):
        """10m bars, (12, 26, 9), threshold 0.01, rising prices."""
        model, subs = _make_model("0.01")
        model.on_universe_changed(added={X}, removed=set())

        emitted = _run(model, subs, X, _rising_prices(45))
        non_empty = [(i, alphas) for i, alphas in enumerate(emitted) if alphas]

        assert len(non_empty) == 1
        tick, alphas = non_empty[0]
        assert len(alphas) == 1
        alpha = alphas[0]
        assert alpha.symbol == X
        assert alpha.type == AlphaType.PRICE
        assert alpha.direction == AlphaDirection.UP
        assert alpha.period == timedelta(minutes=30)
        assert alpha.source_model == "macd"
        assert alpha.generated_time_utc == T0 + BAR * tick + timedelta(minutes=1)

        # Nothing before the 26 bars of warm-up have closed
        assert tick >= 26

    def test_no_alpha_during_warm_up(self):
        model, subs = _make_model()
        model.on_universe_changed(added={X}, removed=set())

        emitted = _run(model, subs, X, _rising_prices(26))  # 25 closed bars

        assert all(alphas == [] for alphas in emitted)

    def test_direction_changes_are_emitted_once(self):
        model, subs = _make_model()
        model.on_universe_changed(added={X}, removed=set())
        rising = _rising_prices(45)
        falling = _falling_prices(rising[-1], 60)

        emitted = _run(model, subs, X, rising + falling)
        directions = [a.direction for alphas in emitted for a in alphas]

        assert directions[0] == AlphaDirection.UP
        assert directions[-1] == AlphaDirection.DOWN
        for previous, current in zip(directions, directions[1:]):
            assert previous != current

    def test_repeated_ticks_suppressed(self):
        model, subs = _make_model()
        model.on_universe_changed(added={X}, removed=set())
        _run(model, subs, X, _rising_prices(45))

        tick = T0 + BAR * 50
        assert model.update(tick) == []
        assert model.update(tick + BAR) == []
        assert model.get_symbol_data(X).previous_alpha.direction == AlphaDirection.UP

    def test_never_priced_symbol_is_silent(self):
        """Y is added but never observed: no alpha, no error."""
        model, subs = _make_model()
        model.on_universe_changed(added={Y}, removed=set())

        for i in range(50):
            assert model.update(T0 + BAR * i) == []

    def test_deferred_evaluation_logged_at_debug(self, caplog):
        model, subs = _make_model()
        model.on_universe_changed(added=[X, Y], removed=set())
        _push(subs, X, 0, "100")
        caplog.clear()

        with caplog.at_level(logging.DEBUG, logger="alpha_core.alpha.macd.generator"):
            assert model.update(T0 + timedelta(minutes=1)) == []

        assert "Y has no price yet, deferred" in caplog.text
        assert "X warming up (0/26 bars), deferred" in caplog.text
        assert all(r.levelno == logging.DEBUG for r in caplog.records)

    def test_zero_price_deferred_even_when_ready(self):
        model, subs = _make_model()
        model.on_universe_changed(added={Y}, removed=set())
        data = model.get_symbol_data(Y)
        for i, price in enumerate(_rising_prices(30)):
            data.macd.update(T0 + BAR * i, price)
        assert data.is_ready
        assert data.price == 0

        assert model.update(T0) == []

        _push(subs, Y, 40, "200")
        alphas = model.update(T0 + BAR * 40)
        assert [a.symbol for a in alphas] == [Y]

    def test_one_symbol_failure_does_not_block_others(self, caplog):
        model, subs = _make_model()
        model.on_universe_changed(added=[X, Y], removed=set())
        for i, price in enumerate(_rising_prices(30)):
            _push(subs, X, i, price)
            _push(subs, Y, i, price)

        # Corrupt X's price so evaluation raises
        model.get_symbol_data(X).security.price = Decimal("NaN")

        with caplog.at_level(logging.ERROR):
            alphas = model.update(T0 + BAR * 30)

        assert [a.symbol for a in alphas] == [Y]
        assert "evaluation failed" in caplog.text

    def test_iteration_order_is_tracking_order(self):
        model, subs = _make_model()
        model.on_universe_changed(added=[Y, X], removed=set())
        for i, price in enumerate(_rising_prices(30)):
            _push(subs, X, i, price)
            _push(subs, Y, i, price)

        alphas = model.update(T0 + BAR * 30)

        assert [a.symbol for a in alphas] == [Y, X]


class TestAlphaListeners:
    """Test alpha callbacks."""

    def test_listener_receives_alphas(self):
        model, subs = _make_model()
        received = []
        model.on_alpha(received.append)
        model.on_universe_changed(added={X}, removed=set())

        emitted = _run(model, subs, X, _rising_prices(45))

        assert received == [a for alphas in emitted for a in alphas]
        assert len(received) == 1

    def test_off_alpha(self):
        model, subs = _make_model()
        received = []
        model.on_alpha(received.append)
        model.off_alpha(received.append)
        model.on_universe_changed(added={X}, removed=set())

        _run(model, subs, X, _rising_prices(45))

        assert received == []

    def test_failing_listener_logged(self, caplog):
        model, subs = _make_model()

        def broken(alpha):
            raise RuntimeError("listener down")

        model.on_alpha(broken)
        model.on_universe_changed(added={X}, removed=set())

        with caplog.at_level(logging.ERROR):
            emitted = _run(model, subs, X, _rising_prices(45))

        assert sum(len(a) for a in emitted) == 1
        assert "listener down" in caplog.text
