import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional, Tuple

from easyprint.models.enums import BindingType, DeliveryType, PaperSize, PrintMode, ServiceType

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


def _dec(value: float) -> Decimal:
    return Decimal(str(value))


class PriceEngine:
    """Rule-based pricing engine for document printing and rush ID packages.

    Works on any draft-like object exposing ``service_type``, ``files`` (items with
    ``pages``), ``paper_size``, ``print_mode``, ``copies``, ``binding``,
    ``rush_package`` and ``delivery_type``. Holds no state between calls.
    """

    # price per page in PHP, by paper size then print mode
    PRINT_PRICES = {
        PaperSize.LETTER: {
            PrintMode.BLACK_AND_WHITE: 1.75,
            PrintMode.PARTIAL_COLOR: 2.75,
            PrintMode.FULL_COLOR: 8.5,
            PrintMode.BORDERLESS: 17.0,
        },
        PaperSize.A4: {
            PrintMode.BLACK_AND_WHITE: 2.0,
            PrintMode.PARTIAL_COLOR: 3.0,
            PrintMode.FULL_COLOR: 9.0,
            PrintMode.BORDERLESS: 18.0,
        },
        PaperSize.LEGAL: {
            PrintMode.BLACK_AND_WHITE: 2.5,
            PrintMode.PARTIAL_COLOR: 4.0,
            PrintMode.FULL_COLOR: 10.0,
            PrintMode.BORDERLESS: 20.0,
        },
        PaperSize.A3: {
            PrintMode.BLACK_AND_WHITE: 10.0,
            PrintMode.PARTIAL_COLOR: 15.0,
            PrintMode.FULL_COLOR: 20.0,
            PrintMode.BORDERLESS: 30.0,
        },
    }

    # (max pages, price per copy) bands; the last band has no upper bound
    BINDING_TIERS: Dict[BindingType, List[Tuple[Optional[int], float]]] = {
        BindingType.BOOK_SOFT: [(150, 300.0), (300, 350.0), (None, 400.0)],
        BindingType.BOOK_HARD: [(150, 400.0), (300, 450.0), (None, 500.0)],
        BindingType.WIRE_SOFT: [(50, 60.0), (None, 80.0)],
        BindingType.WIRE_HARD: [(50, 110.0), (None, 130.0)],
    }

    # None means the fee is quoted by the courier after the order is placed
    DELIVERY_FEES: Dict[DeliveryType, Optional[float]] = {
        DeliveryType.PICKUP: 0.0,
        DeliveryType.CAMPUS: 10.0,
        DeliveryType.COURIER: None,
    }

    RUSH_ID_PACKAGES = [
        {"id": "1x1-basic", "name": "1x1 Basic ID", "copies": 4, "price": 50.0, "turnaround": "30 minutes"},
        {"id": "1x1-rush", "name": "1x1 Rush ID", "copies": 4, "price": 70.0, "turnaround": "15 minutes"},
        {"id": "2x2-basic", "name": "2x2 Basic ID", "copies": 4, "price": 60.0, "turnaround": "30 minutes"},
        {"id": "2x2-rush", "name": "2x2 Rush ID", "copies": 4, "price": 80.0, "turnaround": "15 minutes"},
        {"id": "passport-basic", "name": "Passport Size Basic", "copies": 4, "price": 70.0, "turnaround": "30 minutes"},
        {"id": "passport-rush", "name": "Passport Size Rush", "copies": 4, "price": 90.0, "turnaround": "15 minutes"},
    ]

    DEFAULT_PAPER_SIZE = PaperSize.A4
    DEFAULT_PRINT_MODE = PrintMode.BLACK_AND_WHITE

    @classmethod
    def find_package(cls, package_id: Optional[str]) -> Optional[Dict[str, Any]]:
        if not package_id:
            return None
        for pkg in cls.RUSH_ID_PACKAGES:
            if pkg["id"] == package_id:
                return pkg
        return None

    def price_per_page(self, paper_size: Optional[PaperSize], print_mode: Optional[PrintMode]) -> float:
        size = paper_size or self.DEFAULT_PAPER_SIZE
        mode = print_mode or self.DEFAULT_PRINT_MODE
        return self.PRINT_PRICES[size][mode]

    def binding_tier(self, binding: BindingType, total_pages: int) -> float:
        """Per-copy binding price for ``total_pages``.

        Page counts under the first band (zero included) clamp to the lowest tier.
        """
        if binding is BindingType.NONE:
            return 0.0
        for max_pages, price in self.BINDING_TIERS[binding]:
            if max_pages is None or total_pages <= max_pages:
                return price
        return self.BINDING_TIERS[binding][-1][1]

    def delivery_fee(self, delivery_type: Optional[DeliveryType]) -> Optional[float]:
        if delivery_type is None:
            return 0.0
        return self.DELIVERY_FEES[delivery_type]

    def delivery_label(self, delivery_type: Optional[DeliveryType]) -> str:
        fee = self.delivery_fee(delivery_type)
        if fee is None:
            return "Varies"
        if fee == 0:
            return "FREE"
        return "₱%.2f" % fee

    @staticmethod
    def total_pages(files) -> int:
        return sum(max(int(getattr(f, "pages", 1) or 1), 1) for f in files or [])

    @staticmethod
    def _copies(draft) -> int:
        copies = getattr(draft, "copies", 1) or 1
        return copies if copies > 0 else 1

    def estimate(self, draft) -> Dict[str, Any]:
        delivery = self.delivery_fee(draft.delivery_type)
        delivery_cost = _dec(delivery) if delivery is not None else Decimal("0")

        if draft.service_type is ServiceType.RUSH_ID:
            pkg = self.find_package(draft.rush_package)
            package_cost = _dec(pkg["price"]) if pkg else Decimal("0")
            total = (package_cost + delivery_cost).quantize(CENTS, rounding=ROUND_HALF_UP)
            return {
                "service_type": ServiceType.RUSH_ID.value,
                "package": pkg,
                "package_cost": float(package_cost),
                "delivery_cost": delivery,
                "delivery_label": self.delivery_label(draft.delivery_type),
                "delivery_fee_pending": delivery is None,
                "final_price": float(total),
            }

        total_pages = self.total_pages(draft.files)
        copies = self._copies(draft)
        per_page = self.price_per_page(draft.paper_size, draft.print_mode)
        printing_cost = total_pages * copies * _dec(per_page)
        binding = draft.binding or BindingType.NONE
        binding_cost = _dec(self.binding_tier(binding, total_pages)) * copies

        total = (printing_cost + binding_cost + delivery_cost).quantize(CENTS, rounding=ROUND_HALF_UP)
        logger.debug(
            "Price breakdown pages=%s copies=%s per_page=%s printing=%s binding=%s delivery=%s total=%s",
            total_pages, copies, per_page, printing_cost, binding_cost, delivery, total,
        )
        return {
            "service_type": ServiceType.DOCUMENT_PRINTING.value,
            "total_pages": total_pages,
            "copies": copies,
            "price_per_page": per_page,
            "printing_cost": float(printing_cost),
            "binding_cost": float(binding_cost),
            "delivery_cost": delivery,
            "delivery_label": self.delivery_label(draft.delivery_type),
            "delivery_fee_pending": delivery is None,
            "final_price": float(total),
        }

    def compute_total(self, draft) -> float:
        return self.estimate(draft)["final_price"]
