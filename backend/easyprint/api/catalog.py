from fastapi import APIRouter

from easyprint.models.enums import CheckoutStep
from easyprint.services.pricing import PriceEngine
from easyprint.services.validation import CAMPUS_LOCATIONS

router = APIRouter()


@router.get("/prices")
async def prices():
    engine = PriceEngine()
    return {
        "price_per_page": {
            size.value: {mode.value: price for mode, price in modes.items()}
            for size, modes in engine.PRINT_PRICES.items()
        },
        "binding_tiers": {
            binding.value: [{"max_pages": max_pages, "price": price} for max_pages, price in tiers]
            for binding, tiers in engine.BINDING_TIERS.items()
        },
        "delivery": {
            delivery.value: {"fee": fee, "label": engine.delivery_label(delivery)}
            for delivery, fee in engine.DELIVERY_FEES.items()
        },
        "campus_locations": CAMPUS_LOCATIONS,
        "steps": [s.label for s in CheckoutStep],
    }


@router.get("/rush-packages")
async def rush_packages():
    return PriceEngine.RUSH_ID_PACKAGES
