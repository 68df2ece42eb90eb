"""Tests for signal lifecycle evaluation."""

import pytest
from decimal import Decimal

from app.models import (
    EvaluatorConfig,
    PriceSummary,
    Signal,
    SignalStatus,
    SignalType,
)
from core.signal_evaluator import (
    apply_evaluation,
    build_price_index,
    calculate_pnl,
    evaluate_signal,
    price_differs,
    within_entry_tolerance,
)


def make_signal(**overrides) -> Signal:
    fields = dict(
        id="sig-1",
        pair="XAU/USD",
        type=SignalType.BUY,
        entry_price=Decimal("2000"),
        take_profit_levels=[Decimal("2020"), Decimal("2040"), Decimal("2060")],
        stop_loss=Decimal("1980"),
        status=SignalStatus.ACTIVE,
    )
    fields.update(overrides)
    return Signal(**fields)


class TestSignalModel:
    """Tests for the Signal model."""

    def test_defaults(self):
        signal = make_signal(status=SignalStatus.PENDING)
        assert signal.tp_hit is False
        assert signal.sl_hit is False
        assert signal.pnl == Decimal("0")
        assert signal.current_price is None
        assert not signal.is_terminal

    def test_empty_take_profit_levels_rejected(self):
        with pytest.raises(ValueError, match="take_profit_levels"):
            make_signal(take_profit_levels=[])


class TestActivation:
    """Tests for pending -> active transitions."""

    def test_activates_within_tolerance(self):
        signal = make_signal(status=SignalStatus.PENDING)
        result = evaluate_signal(signal, Decimal("2001.5"))

        assert result.status == SignalStatus.ACTIVE
        assert result.status_changed
        assert not result.tp_hit and not result.sl_hit

    def test_stays_pending_outside_tolerance(self):
        signal = make_signal(status=SignalStatus.PENDING)
        result = evaluate_signal(signal, Decimal("2003"))

        assert result.status == SignalStatus.PENDING
        assert not result.status_changed

    def test_tolerance_boundary_is_inclusive(self):
        # 0.1% of 2000 is exactly 2.0
        assert within_entry_tolerance(Decimal("2000"), Decimal("2002"))
        assert within_entry_tolerance(Decimal("2000"), Decimal("1998"))
        assert not within_entry_tolerance(Decimal("2000"), Decimal("2002.01"))

    def test_active_signal_is_not_reactivated(self):
        signal = make_signal(status=SignalStatus.ACTIVE)
        result = evaluate_signal(signal, Decimal("2000"))

        assert result.status == SignalStatus.ACTIVE
        assert not result.status_changed

    def test_custom_tolerance(self):
        signal = make_signal(status=SignalStatus.PENDING)
        config = EvaluatorConfig(entry_tolerance=Decimal("0.01"))
        result = evaluate_signal(signal, Decimal("2015"), config)

        assert result.status == SignalStatus.ACTIVE


class TestTakeProfit:
    """Tests for take-profit closure."""

    def test_buy_closes_on_first_level(self):
        signal = make_signal()
        result = evaluate_signal(signal, Decimal("2025"))

        assert result.status == SignalStatus.CLOSED
        assert result.tp_hit is True
        assert result.sl_hit is False
        assert result.pnl == Decimal("2500")  # (2025 - 2000) * 100

    def test_buy_below_all_levels_stays_open(self):
        signal = make_signal()
        result = evaluate_signal(signal, Decimal("2010"))

        assert result.status == SignalStatus.ACTIVE
        assert not result.tp_hit

    def test_buy_between_levels_closes_once(self):
        signal = make_signal(
            entry_price=Decimal("95"),
            take_profit_levels=[Decimal("100"), Decimal("105"), Decimal("110")],
            stop_loss=Decimal("90"),
        )
        result = evaluate_signal(signal, Decimal("107"))

        assert result.status == SignalStatus.CLOSED
        assert result.tp_hit is True
        assert result.sl_hit is False
        assert result.pnl == Decimal("1200")  # (107 - 95) * 100

    def test_sell_closes_when_price_falls_to_level(self):
        signal = make_signal(
            type=SignalType.SELL,
            entry_price=Decimal("2000"),
            take_profit_levels=[Decimal("1980"), Decimal("1960")],
            stop_loss=Decimal("2020"),
        )
        result = evaluate_signal(signal, Decimal("1980"))

        assert result.status == SignalStatus.CLOSED
        assert result.tp_hit is True
        assert result.pnl == Decimal("2000")  # (2000 - 1980) * 100

    def test_pending_signal_can_close_without_activating(self):
        signal = make_signal(status=SignalStatus.PENDING)
        result = evaluate_signal(signal, Decimal("2050"))

        assert result.status == SignalStatus.CLOSED
        assert result.tp_hit is True

    def test_close_wins_over_activation(self):
        # TP level inside the entry tolerance band
        signal = make_signal(
            status=SignalStatus.PENDING,
            take_profit_levels=[Decimal("2001")],
        )
        result = evaluate_signal(signal, Decimal("2001.5"))

        assert result.status == SignalStatus.CLOSED
        assert result.tp_hit is True


class TestStopLoss:
    """Tests for stop-loss closure."""

    def test_buy_closes_at_stop_loss(self):
        signal = make_signal()
        result = evaluate_signal(signal, Decimal("1980"))

        assert result.status == SignalStatus.CLOSED
        assert result.sl_hit is True
        assert result.tp_hit is False
        assert result.pnl == Decimal("-2000")

    def test_sell_closes_above_stop_loss(self):
        signal = make_signal(
            type=SignalType.SELL,
            take_profit_levels=[Decimal("1980")],
            stop_loss=Decimal("2020"),
        )
        result = evaluate_signal(signal, Decimal("2030"))

        assert result.status == SignalStatus.CLOSED
        assert result.sl_hit is True
        assert result.pnl == Decimal("-3000")  # (2000 - 2030) * 100

    def test_take_profit_wins_ties(self):
        # Malformed levels: one tick satisfies both TP and SL
        signal = make_signal(
            take_profit_levels=[Decimal("1970")],
            stop_loss=Decimal("1980"),
        )
        result = evaluate_signal(signal, Decimal("1975"))

        assert result.tp_hit is True
        assert result.sl_hit is False
        assert result.status == SignalStatus.CLOSED


class TestTerminality:
    """Closed signals are never mutated."""

    def test_closed_signal_is_skipped(self):
        signal = make_signal(status=SignalStatus.CLOSED, tp_hit=True)
        assert evaluate_signal(signal, Decimal("1000")) is None

    def test_rerun_after_tp_is_stable(self):
        signal = make_signal()
        first = evaluate_signal(signal, Decimal("2030"))
        closed = apply_evaluation(signal, first)

        for price in (Decimal("2030"), Decimal("2100"), Decimal("1900")):
            assert evaluate_signal(closed, price) is None
        assert closed.status == SignalStatus.CLOSED
        assert closed.tp_hit is True
        assert closed.sl_hit is False

    def test_tp_flag_blocks_stop_loss(self):
        # Inconsistent row: tp_hit set but still open
        signal = make_signal(tp_hit=True)
        result = evaluate_signal(signal, Decimal("1900"))

        assert result.sl_hit is False
        assert result.status == SignalStatus.ACTIVE


class TestPnlSign:
    """P&L sign follows favorable movement."""

    @pytest.mark.parametrize(
        "signal_type,entry,price,positive",
        [
            (SignalType.BUY, "100", "110", True),
            (SignalType.BUY, "100", "90", False),
            (SignalType.SELL, "100", "90", True),
            (SignalType.SELL, "100", "110", False),
        ],
    )
    def test_pnl_direction(self, signal_type, entry, price, positive):
        pnl = calculate_pnl(signal_type, Decimal(entry), Decimal(price))
        assert (pnl > 0) == positive


class TestPersistenceDecision:
    """When an evaluation must be written back."""

    def test_price_refresh_only(self):
        signal = make_signal(current_price=Decimal("2005"))
        result = evaluate_signal(signal, Decimal("2006"))

        assert not result.status_changed
        assert result.price_changed
        assert result.needs_persist

    def test_nothing_changed(self):
        signal = make_signal(current_price=Decimal("2005"))
        result = evaluate_signal(signal, Decimal("2005"))

        assert not result.needs_persist

    def test_first_observation_is_persisted(self):
        signal = make_signal(current_price=None)
        result = evaluate_signal(signal, Decimal("2005"))

        assert result.needs_persist

    def test_extra_precision_matches_stored_price(self):
        # Stored price read back from an 8-decimal column
        signal = make_signal(current_price=Decimal("2005.12345679"))
        result = evaluate_signal(signal, Decimal("2005.123456789"))

        assert not result.price_changed
        assert not result.needs_persist

    def test_change_beyond_storage_precision_is_ignored(self):
        assert not price_differs(Decimal("1.00000000"), Decimal("1.000000004"))
        assert price_differs(Decimal("1.00000000"), Decimal("1.00000001"))
        assert price_differs(None, Decimal("1"))


class TestPriceIndex:
    def test_index_is_case_insensitive(self):
        prices = [
            PriceSummary.from_bar(
                pair="xau/usd",
                open_price=Decimal("1"),
                high_price=Decimal("1"),
                low_price=Decimal("1"),
                close_price=Decimal("2"),
            )
        ]
        index = build_price_index(prices)
        assert index == {"XAU/USD": Decimal("2")}
