"""Formula Calculations

Spreadsheet-style aggregate and time-value-of-money functions evaluated over
a list of row dicts, as used by dashboard widgets and custom reports.
"""

import math
from typing import Any, Iterable, Optional

from bizsuite.core.exceptions import FormulaError

FORMULA_FUNCTIONS = {
    # Math functions
    "SUM": "Sum all values",
    "AVERAGE": "Average of values",
    "COUNT": "Count numeric values",
    "COUNTA": "Count all non-blank values",
    "COUNTIF": "Count values matching criteria",
    "SUMIF": "Sum values matching criteria",
    "COUNTIFS": "Count rows whose criteria column contains a value",
    "SUMIFS": "Sum values whose criteria column contains a value",
    "AVERAGEIFS": "Average values whose criteria column contains a value",
    "MIN": "Minimum value",
    "MAX": "Maximum value",
    "MEDIAN": "Median value",
    # Financial functions
    "PV": "Present Value",
    "FV": "Future Value",
    "PMT": "Payment",
    "NPV": "Net Present Value",
    "IRR": "Internal Rate of Return",
    "RATE": "Interest Rate",
}

COUNT_FORMULAS = {"COUNT", "COUNTA", "COUNTIF", "COUNTIFS"}
PERCENT_FORMULAS = {"IRR", "RATE"}

IRR_MAX_ITERATIONS = 100
IRR_TOLERANCE = 0.0001


def to_number(value: Any) -> Optional[float]:
    """Parse a cell as a number, returning None for blanks and text."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        try:
            number = float(str(value).strip().replace(",", ""))
        except ValueError:
            return None
    if not math.isfinite(number):
        return None
    return number


def numeric_values(data: Iterable[dict], column: str) -> list[float]:
    values = []
    for row in data:
        number = to_number(row.get(column))
        if number is not None:
            values.append(number)
    return values


def matches_criteria(value: Any, criteria: str) -> bool:
    """Evaluate a COUNTIF/SUMIF criteria string against one cell.

    ``>n`` and ``<n`` compare numerically, ``=x`` tests equality and anything
    else is a case-insensitive substring match.
    """
    if criteria.startswith(">") or criteria.startswith("<"):
        left = to_number(value)
        right = to_number(criteria[1:])
        if left is None or right is None:
            return False
        return left > right if criteria[0] == ">" else left < right
    if criteria.startswith("="):
        expected = criteria[1:]
        left = to_number(value)
        right = to_number(expected)
        if left is not None and right is not None:
            return left == right
        return value is not None and str(value) == expected
    return str(criteria).lower() in _cell_text(value).lower()


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _criteria(params: dict, default_column: Optional[str] = None):
    column = params.get("criteria_col1") or params.get("criteria_column") or default_column
    criteria = params.get("criteria_val1")
    if criteria in (None, ""):
        criteria = params.get("criteria")
    return column, criteria


def _ifs(formula_type: str, data: list[dict], column: str, params: dict) -> float:
    criteria_column, criteria = _criteria(params)
    if not criteria_column or criteria is None:
        return 0.0

    needle = str(criteria).lower()
    filtered = [
        row for row in data if needle in _cell_text(row.get(criteria_column)).lower()
    ]
    if formula_type == "COUNTIFS":
        return float(len(filtered))

    values = [to_number(row.get(column)) or 0.0 for row in filtered]
    total = sum(values)
    if formula_type == "SUMIFS":
        return total
    return total / len(values) if values else 0.0


def present_value(fv: float, rate: float = 0.1, periods: float = 1) -> float:
    return fv / math.pow(1 + rate, periods)


def future_value(pv: float, rate: float = 0.1, periods: float = 1) -> float:
    return pv * math.pow(1 + rate, periods)


def payment(pv: float, rate: float = 0.1, periods: float = 1) -> float:
    """Level payment that amortises ``pv`` over ``periods``."""
    if periods == 0:
        raise FormulaError("PMT requires a non-zero number of periods")
    if rate == 0:
        return pv / periods
    factor = math.pow(1 + rate, periods)
    return pv * (rate * factor) / (factor - 1)


def net_present_value(rate: float, cashflows: list[float]) -> float:
    """NPV with the first cashflow discounted one full period."""
    return sum(cf / math.pow(1 + rate, i + 1) for i, cf in enumerate(cashflows))


def internal_rate_of_return(cashflows: list[float], guess: float = 0.1) -> float:
    """IRR by Newton-Raphson; the first cashflow is undiscounted."""
    if len(cashflows) < 2:
        return 0.0

    rate = guess
    for _ in range(IRR_MAX_ITERATIONS):
        npv = 0.0
        dnpv = 0.0
        try:
            for j, cf in enumerate(cashflows):
                power = math.pow(1 + rate, j)
                npv += cf / power
                dnpv -= j * cf / (power * (1 + rate))
        except (ZeroDivisionError, OverflowError) as e:
            raise FormulaError(f"IRR diverged at rate {rate}") from e

        if dnpv == 0:
            raise FormulaError("IRR cannot be solved: derivative is zero")
        new_rate = rate - npv / dnpv
        if abs(new_rate - rate) < IRR_TOLERANCE:
            return new_rate
        rate = new_rate
    return rate


def compound_rate(pv: float, fv: float, periods: float) -> float:
    """Per-period growth rate taking ``pv`` to ``fv``."""
    if pv == 0 or periods == 0:
        return 0.0
    ratio = fv / pv
    if ratio < 0:
        raise FormulaError("RATE requires present and future values of the same sign")
    return math.pow(ratio, 1 / periods) - 1


def calculate_formula(
    formula_type: str,
    data: list[dict],
    column: str,
    params: Optional[dict] = None,
) -> float:
    """Evaluate ``formula_type`` over ``data[*][column]``.

    Raises:
        FormulaError: unknown formula, inputs the formula cannot solve, or
            a result that is not a finite number
    """
    try:
        result = _evaluate(formula_type, data, column, params or {})
    except FormulaError:
        raise
    except (ZeroDivisionError, OverflowError, ValueError, TypeError) as e:
        raise FormulaError(
            f"{formula_type.upper()} cannot be evaluated for these inputs"
        ) from e
    if not math.isfinite(result):
        raise FormulaError(f"{formula_type.upper()} result is not a finite number")
    return result


def _evaluate(formula_type: str, data: list[dict], column: str, params: dict) -> float:
    formula_type = formula_type.upper()

    if formula_type in ("SUMIFS", "COUNTIFS", "AVERAGEIFS"):
        return _ifs(formula_type, data, column, params)

    values = numeric_values(data, column)

    if formula_type == "SUM":
        return sum(values)
    if formula_type == "AVERAGE":
        return sum(values) / len(values) if values else 0.0
    if formula_type == "COUNT":
        return float(len(values))
    if formula_type == "COUNTA":
        return float(
            sum(1 for row in data if row.get(column) is not None and row.get(column) != "")
        )
    if formula_type == "COUNTIF":
        criteria_column, criteria = _criteria(params, column)
        if not criteria:
            return 0.0
        return float(
            sum(1 for row in data if matches_criteria(row.get(criteria_column), str(criteria)))
        )
    if formula_type == "SUMIF":
        criteria_column, criteria = _criteria(params, column)
        if not criteria:
            return 0.0
        total = 0.0
        for row in data:
            number = to_number(row.get(column))
            if number is None:
                continue
            if matches_criteria(row.get(criteria_column), str(criteria)):
                total += number
        return total
    if formula_type == "MIN":
        return min(values) if values else 0.0
    if formula_type == "MAX":
        return max(values) if values else 0.0
    if formula_type == "MEDIAN":
        if not values:
            return 0.0
        ordered = sorted(values)
        mid = len(ordered) // 2
        if len(ordered) % 2 == 0:
            return (ordered[mid - 1] + ordered[mid]) / 2
        return ordered[mid]

    if formula_type == "PV":
        return present_value(
            params.get("fv", 0), params.get("rate", 0.1), params.get("periods", 1)
        )
    if formula_type == "FV":
        return future_value(
            params.get("pv", 0), params.get("rate", 0.1), params.get("periods", 1)
        )
    if formula_type == "PMT":
        return payment(
            params.get("pv", 0), params.get("rate", 0.1), params.get("periods", 1)
        )
    if formula_type == "NPV":
        cashflows = params.get("cashflows") or values
        return net_present_value(params.get("rate", 0.1), cashflows)
    if formula_type == "IRR":
        return internal_rate_of_return(params.get("cashflows") or values)
    if formula_type == "RATE":
        return compound_rate(
            params.get("pv", 0), params.get("fv", 0), params.get("periods", 1)
        )

    raise FormulaError(f"Unknown formula: {formula_type}")


def format_formula_result(value: float, formula_type: str) -> str:
    formula_type = formula_type.upper()
    if formula_type in PERCENT_FORMULAS:
        return f"{value * 100:.2f}%"
    if formula_type in COUNT_FORMULAS:
        return str(round(value))
    return f"{value:,.2f}"
