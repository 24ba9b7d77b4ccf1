import logging
from typing import Any, Dict

from fastapi import APIRouter

from easyprint.models.draft import OrderDraft
from easyprint.services.pricing import PriceEngine

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/")
async def estimate_draft(draft: OrderDraft) -> Dict[str, Any]:
    """Price a draft snapshot without starting a checkout."""
    pricing = PriceEngine().estimate(draft)
    logger.info("Estimate service=%s total=%s", pricing.get("service_type"), pricing.get("final_price"))
    return pricing
