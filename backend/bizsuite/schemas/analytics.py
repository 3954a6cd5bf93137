"""Analytics Schemas

Formula evaluation, calculators, VAT report and dashboard summaries.
"""

from pydantic import BaseModel, Field
from typing import Any, Optional, List
from datetime import date


class FormulaParams(BaseModel):
    """Optional parameters used by criteria and financial formulas"""

    criteria_col1: Optional[str] = None
    criteria_column: Optional[str] = None
    criteria_val1: Optional[str] = None
    criteria: Optional[str] = None
    rate: Optional[float] = None
    periods: Optional[float] = None
    pv: Optional[float] = None
    fv: Optional[float] = None
    cashflows: Optional[List[float]] = None


class FormulaRequest(BaseModel):
    formula: str = Field(..., min_length=1, max_length=20)
    column: str = ""
    data: List[dict[str, Any]] = Field(default_factory=list)
    params: FormulaParams = Field(default_factory=FormulaParams)


class FormulaResponse(BaseModel):
    formula: str
    value: float
    formatted: str


class DepreciationRequest(BaseModel):
    cost: float = Field(..., gt=0)
    salvage_value: float = Field(0.0, ge=0)
    useful_life: int = Field(..., gt=0, le=100)
    method: str = Field("straight-line", pattern="^(straight-line|declining-balance)$")


class MarkupMarginRequest(BaseModel):
    cost: float
    selling_price: float


class WorkingCapitalRequest(BaseModel):
    current_assets: float
    current_liabilities: float


class ProfitMarginRequest(BaseModel):
    revenue: float
    cost_of_goods: float
    operating_expenses: float


class CashFlowRequest(BaseModel):
    operating: float
    investing: float
    financing: float
    beginning_cash: float


class RevenueGrowthRequest(BaseModel):
    previous_revenue: float
    current_revenue: float


class CACRequest(BaseModel):
    marketing_cost: float = Field(..., ge=0)
    sales_cost: float = Field(..., ge=0)
    new_customers: int = Field(..., ge=0)


class LTVRequest(BaseModel):
    avg_purchase_value: float = Field(..., ge=0)
    avg_purchase_frequency: float = Field(..., ge=0)
    avg_customer_lifespan: float = Field(..., ge=0)


class BurnRateRequest(BaseModel):
    monthly_cash_spent: float
    cash_reserves: float


class GrossProfitMarginRequest(BaseModel):
    revenue: float
    cost_of_goods: float


class BudgetVarianceRequest(BaseModel):
    budget: float
    actual: float


CALCULATOR_REQUESTS = {
    "depreciation": DepreciationRequest,
    "markup-margin": MarkupMarginRequest,
    "working-capital": WorkingCapitalRequest,
    "profit-margin": ProfitMarginRequest,
    "cash-flow": CashFlowRequest,
    "revenue-growth": RevenueGrowthRequest,
    "cac": CACRequest,
    "ltv": LTVRequest,
    "burn-rate": BurnRateRequest,
    "gross-profit-margin": GrossProfitMarginRequest,
    "budget-variance": BudgetVarianceRequest,
}


class VATTransaction(BaseModel):
    date: date
    reference: str
    description: str
    taxable_amount: float
    vat_amount: float


class VATSection(BaseModel):
    transactions: List[VATTransaction]
    total_taxable: float
    total_vat: float


class VATReportResponse(BaseModel):
    """Output VAT on sales against input VAT on purchases"""

    start_date: date
    end_date: date
    output_vat: VATSection
    input_vat: VATSection
    net_vat: float


class DashboardResponse(BaseModel):
    invoice_count: int
    total_invoiced: float
    total_outstanding: float
    overdue_count: int
    purchase_count: int
    total_purchases: float
    open_deals: int
    pipeline_value: float
    weighted_pipeline_value: float
    low_stock_items: int


class AgingAmounts(BaseModel):
    current: float
    days_30: float
    days_60: float
    days_90: float
    days_120_plus: float
    total: float


class AgingRow(AgingAmounts):
    contact_name: str


class AgingReportResponse(BaseModel):
    """Outstanding balances per contact, bucketed by age in days"""

    as_at: date
    rows: List[AgingRow]
    totals: AgingAmounts
