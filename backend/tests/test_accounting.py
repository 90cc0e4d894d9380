"""
Tests for the bookkeeping helpers.

Pure functions only: payment allocation, rounding, code sequences, line
splitting, period parsing and paging.
"""
from datetime import date

import pytest

from utils.accounting import (
    CREDIT,
    DEBIT,
    accept_voucher_type,
    compute_allocation,
    default_payment,
    guess_voucher_type,
    next_code,
    normalize_side,
    normalize_side_or,
    rank_with_weights,
    round_money,
    split_by_ratios,
    split_evenly,
    top_key,
    voucher_type_in_code,
)
from utils.pagination import resolve_page, slice_page
from utils.periods import first_of_month, month_key, parse_period, period_range
from utils.tenancy import database_code


# =============================================================================
# Allocation
# =============================================================================


class TestComputeAllocation:

    def test_full_payment(self):
        assert compute_allocation(1110, 110, 1110) == {"cash": 1110.0, "dpp": 1000.0, "tax": 110.0}

    def test_half_payment_is_proportional(self):
        result = compute_allocation(1110, 110, 555)
        assert result["dpp"] == 500.0
        assert result["tax"] == 55.0
        assert result["dpp"] + result["tax"] == result["cash"]

    def test_overpayment_is_clamped_to_the_invoice(self):
        result = compute_allocation(1110, 110, 2000)
        assert result["dpp"] == 1000.0
        assert result["tax"] == 110.0
        assert result["cash"] == 2000.0

    def test_zero_total_allocates_everything(self):
        assert compute_allocation(0, 0, 100) == {"cash": 100.0, "dpp": 0.0, "tax": 0.0}

    def test_negative_tax_is_ignored(self):
        result = compute_allocation(1000, -5, 1000)
        assert result["tax"] == 0.0
        assert result["dpp"] == 1000.0

    def test_default_payment_prefers_paid_amount(self):
        assert default_payment(500, 1110) == 500.0
        assert default_payment(0, 1110) == 1110.0
        assert default_payment(None, None) == 0.0


# =============================================================================
# Rounding, sides and voucher types
# =============================================================================


class TestRoundingAndSides:

    def test_round_half_up(self):
        assert round_money(2.675) == 2.68
        assert round_money(-2.675) == -2.68
        assert round_money(None) == 0.0

    @pytest.mark.parametrize("raw,expected", [
        ("kredit", CREDIT), ("Credit", CREDIT), ("DEBIT", DEBIT), ("", DEBIT), (None, DEBIT),
    ])
    def test_normalize_side(self, raw, expected):
        assert normalize_side(raw) == expected

    def test_normalize_side_or_keeps_default(self):
        assert normalize_side_or("bogus", "") == ""
        assert normalize_side_or(" Kredit ", DEBIT) == CREDIT

    def test_voucher_type_guess(self):
        assert guess_voucher_type("1101AD") == "GV"
        assert guess_voucher_type("1103AD") == "BV"
        assert guess_voucher_type(None) == "BV"

    def test_accept_voucher_type(self):
        assert accept_voucher_type(" gv ") == "GV"
        assert accept_voucher_type("CV") is None

    def test_voucher_type_in_code(self):
        assert voucher_type_in_code("SJA/GV/00000001") == "GV"
        assert voucher_type_in_code("bv00000001") == "BV"
        assert voucher_type_in_code("SJA/JP/00000001") is None


# =============================================================================
# Code sequences
# =============================================================================


class TestNextCode:

    def test_first_code(self):
        assert next_code(None, "SJA/BV/") == "SJA/BV/00000001"

    def test_continues_from_last(self):
        assert next_code("SJA/BV/00000009", "SJA/BV/") == "SJA/BV/00000010"

    def test_step_reserves_a_pair(self):
        assert next_code("SJA/GV/00000009", "SJA/GV/", step=2) == "SJA/GV/00000011"

    def test_malformed_last_code_restarts(self):
        assert next_code("SJA/BV/12", "SJA/BV/") == "SJA/BV/00000001"
        assert next_code("FI-OLD", "FI") == "FI00000001"


# =============================================================================
# Line splitting and ranking
# =============================================================================


class TestSplitting:

    def test_split_evenly_last_line_takes_remainder(self):
        lines = split_evenly(["6101", "6102", "6103"], 100)
        assert [line["amount"] for line in lines] == [33.33, 33.33, 33.34]
        assert all(line["side"] == DEBIT for line in lines)

    def test_split_evenly_skips_blank_accounts(self):
        assert split_evenly(["", None], 100) == []

    def test_split_by_ratios(self):
        lines = split_by_ratios(["6101", "6102"], [3, 1], 100, sides={"6102": "Kredit"})
        assert [line["amount"] for line in lines] == [75.0, 25.0]
        assert lines[1]["side"] == CREDIT

    def test_split_by_ratios_without_ratios_puts_all_on_first(self):
        lines = split_by_ratios(["6101", "6102"], [0, 0], 100)
        assert [line["amount"] for line in lines] == [100.0, 0.0]

    def test_rank_with_weights_breaks_ties_on_balance(self):
        assert rank_with_weights({"6101": 1, "6102": 1}, {"6102": 5000}) == ["6102", "6101"]

    def test_top_key(self):
        assert top_key({"": 9, "a": 1, "b": 3}) == "b"
        assert top_key({}) is None


# =============================================================================
# Periods, paging and tenant codes
# =============================================================================


class TestPeriods:

    def test_month_period(self):
        assert parse_period("month", "202402") == (date(2024, 2, 1), date(2024, 2, 29))

    def test_year_period(self):
        assert parse_period("year", "2018") == (date(2018, 1, 1), date(2018, 12, 31))

    @pytest.mark.parametrize("period_type,period", [("month", "2024"), ("month", "202413"), ("year", "18")])
    def test_invalid_period_raises(self, period_type, period):
        with pytest.raises(ValueError, match="Invalid period"):
            parse_period(period_type, period)

    def test_period_range_is_lenient(self):
        assert period_range("202401") == (date(2024, 1, 1), date(2024, 1, 31))
        assert period_range("all") is None

    def test_month_helpers(self):
        assert month_key(date(2024, 3, 17)) == "202403"
        assert first_of_month("202403") == date(2024, 3, 1)


class TestPaging:

    def test_resolve_page(self):
        assert resolve_page(2, "10") == (10, 10)
        assert resolve_page(3, "all") == (0, None)
        assert resolve_page(None, "junk") == (0, 10)

    def test_slice_page(self):
        rows = list(range(25))
        assert slice_page(rows, 3, "10") == [20, 21, 22, 23, 24]
        assert slice_page(rows, 1, "all") == rows


class TestDatabaseCode:

    @pytest.mark.parametrize("tenant,expected", [
        ("dbsja", "SJA"), ("db-stg", "STG"), ("DBati", "ATI"), ("", "SJA"), (None, "SJA"),
    ])
    def test_database_code(self, tenant, expected):
        assert database_code(tenant) == expected
