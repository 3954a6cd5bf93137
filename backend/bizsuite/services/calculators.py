"""Business Calculators

Accounting and business-metric calculators. Each returns a plain dict ready
to serialise; ratios are rounded to two decimals.
"""

from bizsuite.core.exceptions import BusinessRuleError


def _ratio(numerator: float, denominator: float, label: str) -> float:
    if denominator == 0:
        raise BusinessRuleError(f"{label} cannot be zero")
    return numerator / denominator


def depreciation_schedule(
    cost: float,
    salvage_value: float,
    useful_life: int,
    method: str = "straight-line",
) -> dict:
    """Yearly depreciation for straight-line or 200% declining balance."""
    if useful_life <= 0:
        raise BusinessRuleError("Useful life must be at least one year")
    if salvage_value > cost:
        raise BusinessRuleError("Salvage value cannot exceed cost")

    schedule = []
    book_value = cost
    if method == "straight-line":
        annual = (cost - salvage_value) / useful_life
        for year in range(1, useful_life + 1):
            book_value -= annual
            schedule.append(
                {
                    "year": year,
                    "depreciation": round(annual, 2),
                    "book_value": round(max(book_value, salvage_value), 2),
                }
            )
        return {
            "method": "Straight-Line",
            "annual_depreciation": round(annual, 2),
            "total_depreciation": round(cost - salvage_value, 2),
            "schedule": schedule,
        }

    if method != "declining-balance":
        raise BusinessRuleError(f"Unknown depreciation method: {method}")

    rate = 2 / useful_life
    for year in range(1, useful_life + 1):
        depreciation = min(book_value * rate, book_value - salvage_value)
        book_value -= depreciation
        schedule.append(
            {
                "year": year,
                "depreciation": round(depreciation, 2),
                "book_value": round(book_value, 2),
            }
        )
    return {
        "method": "Declining Balance",
        "annual_depreciation": None,
        "total_depreciation": round(cost - salvage_value, 2),
        "schedule": schedule,
    }


def markup_margin(cost: float, selling_price: float) -> dict:
    profit = selling_price - cost
    return {
        "cost": cost,
        "selling_price": selling_price,
        "profit": round(profit, 2),
        "markup": round(_ratio(profit, cost, "Cost") * 100, 2),
        "margin": round(_ratio(profit, selling_price, "Selling price") * 100, 2),
    }


def working_capital(current_assets: float, current_liabilities: float) -> dict:
    current_ratio = _ratio(current_assets, current_liabilities, "Current liabilities")
    if current_ratio >= 2:
        health = "Healthy"
    elif current_ratio >= 1:
        health = "Adequate"
    else:
        health = "Poor"
    return {
        "current_assets": current_assets,
        "current_liabilities": current_liabilities,
        "working_capital": round(current_assets - current_liabilities, 2),
        "current_ratio": round(current_ratio, 2),
        "health": health,
    }


def profit_margin(revenue: float, cost_of_goods: float, operating_expenses: float) -> dict:
    gross_profit = revenue - cost_of_goods
    net_profit = gross_profit - operating_expenses
    return {
        "revenue": revenue,
        "gross_profit": round(gross_profit, 2),
        "gross_margin": round(_ratio(gross_profit, revenue, "Revenue") * 100, 2),
        "net_profit": round(net_profit, 2),
        "net_margin": round(_ratio(net_profit, revenue, "Revenue") * 100, 2),
    }


def cash_flow(operating: float, investing: float, financing: float, beginning_cash: float) -> dict:
    net = operating + investing + financing
    return {
        "operating": operating,
        "investing": investing,
        "financing": financing,
        "net_cash_flow": round(net, 2),
        "beginning_cash": beginning_cash,
        "ending_cash": round(beginning_cash + net, 2),
        "status": "Positive" if net > 0 else "Negative",
    }


def revenue_growth(previous_revenue: float, current_revenue: float) -> dict:
    growth = _ratio(current_revenue - previous_revenue, previous_revenue, "Previous revenue") * 100
    if growth > 0:
        status = "Growth"
    elif growth < 0:
        status = "Decline"
    else:
        status = "Stagnant"
    return {
        "previous_revenue": previous_revenue,
        "current_revenue": current_revenue,
        "growth": round(growth, 2),
        "increase": round(current_revenue - previous_revenue, 2),
        "status": status,
    }


def customer_acquisition_cost(marketing_cost: float, sales_cost: float, new_customers: int) -> dict:
    total = marketing_cost + sales_cost
    cac = _ratio(total, new_customers, "New customers")
    if cac < 100:
        rating = "Excellent"
    elif cac < 500:
        rating = "Good"
    elif cac < 1000:
        rating = "Moderate"
    else:
        rating = "High"
    return {
        "total_cost": round(total, 2),
        "new_customers": new_customers,
        "cac": round(cac, 2),
        "recommendation": rating,
    }


def customer_lifetime_value(
    avg_purchase_value: float,
    avg_purchase_frequency: float,
    avg_customer_lifespan: float,
) -> dict:
    customer_value = avg_purchase_value * avg_purchase_frequency
    ltv = customer_value * avg_customer_lifespan
    return {
        "avg_purchase_value": avg_purchase_value,
        "customer_value": round(customer_value, 2),
        "ltv": round(ltv, 2),
        "monthly_value": round(_ratio(ltv, avg_customer_lifespan * 12, "Customer lifespan"), 2),
    }


def burn_rate(monthly_cash_spent: float, cash_reserves: float) -> dict:
    runway = cash_reserves / monthly_cash_spent if monthly_cash_spent > 0 else 0.0
    if runway > 12:
        status = "Healthy"
    elif runway > 6:
        status = "Moderate"
    else:
        status = "Critical"
    return {
        "monthly_burn_rate": round(monthly_cash_spent, 2),
        "cash_reserves": round(cash_reserves, 2),
        "runway_months": round(runway, 1),
        "status": status,
    }


def gross_profit_margin(revenue: float, cost_of_goods: float) -> dict:
    gross_profit = revenue - cost_of_goods
    margin = _ratio(gross_profit, revenue, "Revenue") * 100
    if margin > 70:
        quality = "Excellent"
    elif margin > 50:
        quality = "Good"
    elif margin > 30:
        quality = "Average"
    else:
        quality = "Low"
    return {
        "revenue": revenue,
        "cogs": cost_of_goods,
        "gross_profit": round(gross_profit, 2),
        "margin": round(margin, 2),
        "quality": quality,
    }


def budget_variance(budget: float, actual: float) -> dict:
    """Variance of actual against budget; at or above budget is favorable."""
    variance = actual - budget
    return {
        "budget": budget,
        "actual": actual,
        "variance": round(variance, 2),
        "variance_pct": round(_ratio(variance, budget, "Budget") * 100, 2),
        "status": "favorable" if variance >= 0 else "unfavorable",
    }


CALCULATORS = {
    "depreciation": depreciation_schedule,
    "markup-margin": markup_margin,
    "working-capital": working_capital,
    "profit-margin": profit_margin,
    "cash-flow": cash_flow,
    "revenue-growth": revenue_growth,
    "cac": customer_acquisition_cost,
    "ltv": customer_lifetime_value,
    "burn-rate": burn_rate,
    "gross-profit-margin": gross_profit_margin,
    "budget-variance": budget_variance,
}
