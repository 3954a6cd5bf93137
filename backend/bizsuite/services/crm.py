"""CRM Services"""

from typing import Iterable

from bizsuite.schemas.crm import DEAL_STAGES


def pipeline_summary(deals: Iterable) -> dict:
    """Deal count and value per stage, with probability-weighted total"""
    stages = {stage: {"stage": stage, "count": 0, "value": 0.0} for stage in DEAL_STAGES}
    total_deals = 0
    total_value = 0.0
    weighted = 0.0
    for deal in deals:
        value = deal.value or 0.0
        bucket = stages.setdefault(deal.stage, {"stage": deal.stage, "count": 0, "value": 0.0})
        bucket["count"] += 1
        bucket["value"] += value
        total_deals += 1
        total_value += value
        weighted += value * (deal.probability or 0) / 100

    for bucket in stages.values():
        bucket["value"] = round(bucket["value"], 2)
    return {
        "stages": list(stages.values()),
        "total_deals": total_deals,
        "total_value": round(total_value, 2),
        "weighted_value": round(weighted, 2),
    }
