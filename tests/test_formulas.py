"""Tests for spreadsheet-style formula evaluation."""

import pytest
from bizsuite.core.exceptions import FormulaError
from bizsuite.services.formulas import (
    calculate_formula,
    format_formula_result,
    internal_rate_of_return,
    matches_criteria,
)

ROWS = [
    {"region": "North", "product": "Cement", "amount": 100},
    {"region": "South", "product": "cement bags", "amount": "250.50"},
    {"region": "North", "product": "Steel", "amount": "n/a"},
    {"region": "East", "product": "Timber", "amount": 40},
    {"region": "North", "product": "Sand", "amount": None},
]


def test_aggregates_skip_non_numeric_cells():
    assert calculate_formula("SUM", ROWS, "amount") == pytest.approx(390.5)
    assert calculate_formula("AVERAGE", ROWS, "amount") == pytest.approx(390.5 / 3)
    assert calculate_formula("COUNT", ROWS, "amount") == 3
    assert calculate_formula("MIN", ROWS, "amount") == 40
    assert calculate_formula("MAX", ROWS, "amount") == pytest.approx(250.5)
    assert calculate_formula("MEDIAN", ROWS, "amount") == 100


def test_aggregates_of_empty_data_are_zero():
    for formula in ("SUM", "AVERAGE", "COUNT", "MIN", "MAX", "MEDIAN", "COUNTA"):
        assert calculate_formula(formula, [], "amount") == 0


def test_median_of_even_count():
    rows = [{"x": 1}, {"x": 4}, {"x": 2}, {"x": 10}]
    assert calculate_formula("MEDIAN", rows, "x") == 3


def test_counta_counts_non_blank():
    rows = [{"x": "a"}, {"x": ""}, {"x": None}, {}, {"x": 0}]
    assert calculate_formula("COUNTA", rows, "x") == 2


def test_formula_names_are_case_insensitive():
    assert calculate_formula("sum", ROWS, "amount") == pytest.approx(390.5)


def test_countif_substring_and_comparisons():
    assert calculate_formula("COUNTIF", ROWS, "product", {"criteria": "cement"}) == 2
    assert calculate_formula("COUNTIF", ROWS, "amount", {"criteria": ">50"}) == 2
    assert calculate_formula("COUNTIF", ROWS, "amount", {"criteria": "<50"}) == 1
    assert calculate_formula("COUNTIF", ROWS, "amount", {"criteria": "=100"}) == 1


def test_countif_uses_criteria_column():
    params = {"criteria_col1": "region", "criteria_val1": "north"}
    assert calculate_formula("COUNTIF", ROWS, "amount", params) == 3


def test_countif_without_criteria_is_zero():
    assert calculate_formula("COUNTIF", ROWS, "amount") == 0


def test_sumif_sums_numeric_values_of_matching_rows():
    params = {"criteria_column": "region", "criteria": "North"}
    assert calculate_formula("SUMIF", ROWS, "amount", params) == 100


def test_ifs_family():
    params = {"criteria_column": "product", "criteria": "CEMENT"}
    assert calculate_formula("COUNTIFS", ROWS, "amount", params) == 2
    assert calculate_formula("SUMIFS", ROWS, "amount", params) == pytest.approx(350.5)
    assert calculate_formula("AVERAGEIFS", ROWS, "amount", params) == pytest.approx(175.25)


def test_ifs_non_numeric_targets_count_as_zero():
    params = {"criteria_column": "region", "criteria": "north"}
    assert calculate_formula("AVERAGEIFS", ROWS, "amount", params) == pytest.approx(100 / 3)


def test_ifs_require_criteria_column():
    assert calculate_formula("SUMIFS", ROWS, "amount", {"criteria": "north"}) == 0
    params = {"criteria_column": "region", "criteria": "west"}
    assert calculate_formula("AVERAGEIFS", ROWS, "amount", params) == 0


def test_time_value_of_money():
    assert calculate_formula("FV", [], "", {"pv": 1000, "rate": 0.05, "periods": 2}) == (
        pytest.approx(1102.5)
    )
    assert calculate_formula("PV", [], "", {"fv": 1102.5, "rate": 0.05, "periods": 2}) == (
        pytest.approx(1000)
    )
    assert calculate_formula("PV", [], "", {"fv": 110}) == pytest.approx(100)


def test_pmt():
    value = calculate_formula("PMT", [], "", {"pv": 10000, "rate": 0.01, "periods": 12})
    assert value == pytest.approx(888.49, abs=0.01)
    assert calculate_formula("PMT", [], "", {"pv": 1200, "rate": 0, "periods": 12}) == 100


def test_npv_from_params_or_column():
    params = {"rate": 0.1, "cashflows": [110, 121]}
    assert calculate_formula("NPV", [], "", params) == pytest.approx(200)

    rows = [{"cf": 110}, {"cf": 121}]
    assert calculate_formula("NPV", rows, "cf", {"rate": 0.1}) == pytest.approx(200)


def test_irr_converges():
    rate = internal_rate_of_return([-1000, 300, 400, 500])
    assert rate == pytest.approx(0.0889, abs=0.0005)


def test_irr_needs_two_cashflows():
    assert calculate_formula("IRR", [], "", {"cashflows": [100]}) == 0


def test_irr_zero_derivative_raises():
    with pytest.raises(FormulaError):
        internal_rate_of_return([0, 0, 0])


def test_rate():
    params = {"pv": 1000, "fv": 1210, "periods": 2}
    assert calculate_formula("RATE", [], "", params) == pytest.approx(0.1)
    assert calculate_formula("RATE", [], "", {"pv": 0, "fv": 100, "periods": 2}) == 0


def test_rate_with_mixed_signs_raises():
    with pytest.raises(FormulaError):
        calculate_formula("RATE", [], "", {"pv": -100, "fv": 100, "periods": 2})


def test_unknown_formula_raises():
    with pytest.raises(FormulaError):
        calculate_formula("VLOOKUP", ROWS, "amount")


@pytest.mark.parametrize(
    "formula, params",
    [
        ("PV", {"fv": 100, "rate": -1, "periods": 1}),
        ("FV", {"pv": 100, "rate": 10, "periods": 1000}),
        ("FV", {"pv": 100, "rate": -2, "periods": 0.5}),
        ("NPV", {"rate": -1, "cashflows": [100, 200]}),
        ("PMT", {"pv": 1000, "rate": 1e-20, "periods": 12}),
    ],
)
def test_unsolvable_financial_inputs_raise(formula, params):
    with pytest.raises(FormulaError):
        calculate_formula(formula, [], "", params)


def test_non_finite_cells_are_ignored():
    rows = [{"a": "inf"}, {"a": 1}, {"a": float("-inf")}, {"a": "nan"}]
    assert calculate_formula("SUM", rows, "a") == 1
    assert calculate_formula("COUNT", rows, "a") == 1


def test_matches_criteria_equality_on_text():
    assert matches_criteria("North", "=North")
    assert not matches_criteria("Northern", "=North")
    assert not matches_criteria("abc", ">5")


def test_format_formula_result():
    assert format_formula_result(0.1234, "IRR") == "12.34%"
    assert format_formula_result(3.0, "COUNTIF") == "3"
    assert format_formula_result(1234567.891, "SUM") == "1,234,567.89"
