import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from easyprint.models.draft import DraftFile, OrderDraft
from easyprint.models.enums import (
    BindingType,
    CheckoutStep,
    DeliveryType,
    PaperSize,
    PrintMode,
    ServiceType,
)
from easyprint.services.notifications import Notifier
from easyprint.services.pricing import PriceEngine
from easyprint.services.submission import OrderSubmissionError, OrderSubmitter
from easyprint.services.validation import StepIssue, Validator, normalize_phone

logger = logging.getLogger(__name__)

MAX_FILES = 10

EDITABLE_FIELDS = {
    "paper_size",
    "print_mode",
    "copies",
    "binding",
    "rush_package",
    "delivery_type",
    "delivery_location",
    "special_instructions",
    "contact",
    "payment_proof",
}


class CheckoutError(Exception):
    """An action the current checkout state does not allow."""

    def __init__(self, title: str, description: str):
        super().__init__(f"{title}: {description}")
        self.title = title
        self.description = description


@dataclass
class TransitionResult:
    advanced: bool
    step: CheckoutStep
    issue: Optional[StepIssue] = None
    error: Optional[str] = None
    order_number: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "advanced": self.advanced,
            "step": int(self.step),
            "issue": self.issue.as_dict() if self.issue else None,
            "error": self.error,
            "order_number": self.order_number,
        }


class CheckoutStateMachine:
    """Seven-step order wizard: Upload, Configure, Delivery, Contact, Review, Payment, Confirmation.

    Forward moves are gated by ``Validator``; the payment gate submits the draft
    through the injected ``OrderSubmitter`` and only a successful submission
    reaches Confirmation. Pricing is never cached here, ``draft.computed_total``
    is read whenever a total is needed.
    """

    def __init__(self, submitter: OrderSubmitter, notifier: Optional[Notifier] = None,
                 validator: Optional[Validator] = None):
        self.submitter = submitter
        self.notifier = notifier or Notifier()
        self.validator = validator or Validator()
        self.draft = OrderDraft()
        self.step = CheckoutStep.UPLOAD
        self.submitting = False
        self.order_number: Optional[str] = None
        self.last_error: Optional[str] = None
        self.service_locked = False

    # --- draft mutation ---

    def _ensure_editable(self) -> None:
        if self.step is CheckoutStep.CONFIRMATION:
            raise CheckoutError("Order Complete", "Start a new order to make changes.")
        if self.submitting:
            raise CheckoutError("Submission In Progress", "Please wait for the current submission to finish.")

    def choose_service_type(self, service_type: ServiceType) -> None:
        self._ensure_editable()
        service_type = ServiceType(service_type)
        if self.service_locked and service_type is not self.draft.service_type:
            raise CheckoutError("Service Type Locked", "Start a new order to change the service type.")
        self.draft.service_type = service_type
        logger.debug("Service type set to %s", service_type.value)

    def update_draft(self, **fields: Any) -> OrderDraft:
        self._ensure_editable()
        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            raise CheckoutError("Unknown Field", "Cannot set: " + ", ".join(sorted(unknown)))

        # applied to a copy so a rejected value leaves the draft as it was
        candidate = self.draft.model_copy(deep=True)
        for name, value in fields.items():
            if name in ("contact", "payment_proof") and isinstance(value, dict):
                current = getattr(candidate, name)
                for key, sub in value.items():
                    setattr(current, key, sub)
            else:
                setattr(candidate, name, value)
        self.draft = candidate
        return self.draft

    def add_file(self, file: DraftFile) -> None:
        self._ensure_editable()
        if len(self.draft.files) >= MAX_FILES:
            raise CheckoutError("Upload Failed", f"Maximum {MAX_FILES} files allowed")
        self.draft.files.append(file)
        logger.info("Attached file %s pages=%s (%s files)", file.name, file.pages, len(self.draft.files))

    def remove_file(self, index: int) -> DraftFile:
        self._ensure_editable()
        try:
            removed = self.draft.files.pop(index)
        except IndexError:
            raise CheckoutError("File Not Found", "That file is no longer part of this order.")
        logger.info("Removed file %s (%s files left)", removed.name, len(self.draft.files))
        return removed

    def attach_payment_screenshot(self, url: str) -> None:
        self._ensure_editable()
        self.draft.payment_proof.screenshot_url = url

    # --- transitions ---

    def next_step(self) -> TransitionResult:
        if self.step is CheckoutStep.CONFIRMATION:
            raise CheckoutError("Order Complete", "Start a new order to continue.")
        if self.submitting:
            return TransitionResult(False, self.step, error="Submission already in progress")

        issue = self.validator.first_issue(self.step, self.draft)
        if issue is not None:
            logger.warning("Step %s blocked: %s (%s)", self.step.label, issue.title, issue.field)
            self.notifier.notify(issue.title, issue.description, variant="destructive")
            return TransitionResult(False, self.step, issue=issue)

        if self.step is CheckoutStep.PAYMENT:
            return self._submit()

        if self.step is CheckoutStep.UPLOAD:
            self.service_locked = True
        self.step = CheckoutStep(self.step + 1)
        logger.info("Checkout advanced to step %s (%s)", int(self.step), self.step.label)
        return TransitionResult(True, self.step)

    def prev_step(self) -> CheckoutStep:
        if self.step is CheckoutStep.CONFIRMATION:
            raise CheckoutError("Order Complete", "Start a new order instead of going back.")
        if self.submitting:
            raise CheckoutError("Submission In Progress", "Please wait for the current submission to finish.")
        if self.step > CheckoutStep.UPLOAD:
            self.step = CheckoutStep(self.step - 1)
        return self.step

    def reset(self) -> None:
        if self.submitting:
            raise CheckoutError("Submission In Progress", "Please wait for the current submission to finish.")
        self.draft = OrderDraft()
        self.step = CheckoutStep.UPLOAD
        self.order_number = None
        self.last_error = None
        self.service_locked = False
        self.notifier.clear()
        logger.debug("Checkout reset")

    # --- submission ---

    def _submit(self) -> TransitionResult:
        self.submitting = True
        try:
            payload = self.build_payload()
            logger.debug("Submitting order payload: %s", payload)
            order_number = self.submitter.submit(payload)
        except OrderSubmissionError as e:
            self.last_error = e.reason
            logger.warning("Order submission failed: %s", e.reason)
            self.notifier.notify("Order Failed", e.reason, variant="destructive")
            return TransitionResult(False, self.step, error=e.reason)
        finally:
            self.submitting = False

        self.order_number = order_number
        self.last_error = None
        self.step = CheckoutStep.CONFIRMATION
        kind = "Rush ID" if self.draft.service_type is ServiceType.RUSH_ID else "printing"
        self.notifier.notify("Order Placed!", f"Your {kind} order has been submitted successfully.", variant="success")
        logger.info("Order %s submitted", order_number)
        return TransitionResult(True, self.step, order_number=order_number)

    def _admin_notes(self, package: Optional[Dict[str, Any]]) -> str:
        draft = self.draft
        lines = [
            f"Payment Ref: {draft.payment_proof.reference_number.strip()}",
            f"Screenshot: {draft.payment_proof.screenshot_url}",
            f"Service: {draft.service_type.value if draft.service_type else 'N/A'}",
        ]
        if package:
            lines.append(f"Package: {package['name']}")
        lines.append(f"Delivery: {draft.delivery_type.value}")
        if draft.delivery_type is not DeliveryType.PICKUP and draft.delivery_location.strip():
            lines.append(f"Location: {draft.delivery_location.strip()}")
        if draft.delivery_type is DeliveryType.COURIER:
            lines.append("Delivery fee: to be confirmed with customer")
        if draft.special_instructions.strip():
            lines.append(f"Instructions: {draft.special_instructions.strip()}")
        return "\n".join(lines)

    def build_payload(self) -> Dict[str, Any]:
        """Flatten the draft into the shape the orders API stores."""
        draft = self.draft
        breakdown = draft.price_breakdown()
        files: List[DraftFile] = draft.files
        package = None

        payload: Dict[str, Any] = {
            "customer_name": draft.contact.name.strip(),
            "customer_email": draft.contact.email.strip(),
            "customer_phone": normalize_phone(draft.contact.phone),
            "service_type": (draft.service_type or ServiceType.DOCUMENT_PRINTING).persisted,
            "total_price": breakdown["final_price"],
            "file_url": files[0].url if files else "",
            "file_name": files[0].name if files else "document.pdf",
            "file_urls": [f.url for f in files],
            "delivery_type": draft.delivery_type.persisted,
            "delivery_location": draft.delivery_location.strip() or None,
            "delivery_fee_pending": breakdown["delivery_fee_pending"],
            "notes": draft.special_instructions.strip(),
            "payment_proof_url": draft.payment_proof.screenshot_url,
            "payment_reference": draft.payment_proof.reference_number.strip(),
        }

        if draft.service_type is ServiceType.RUSH_ID:
            package = PriceEngine.find_package(draft.rush_package)
            if package is None:
                raise OrderSubmissionError("Please select a Rush ID package.")
            payload.update({
                "paper_size": PaperSize.A4.persisted,
                "color_type": PrintMode.FULL_COLOR.persisted,
                "copies": package["copies"],
                "pages": 1,
                "binding_type": BindingType.NONE.persisted,
                "price_per_page": 0.0,
            })
        else:
            payload.update({
                "paper_size": (draft.paper_size or PaperSize.A4).persisted,
                "color_type": (draft.print_mode or PrintMode.BLACK_AND_WHITE).persisted,
                "copies": breakdown["copies"],
                "pages": breakdown["total_pages"],
                "binding_type": draft.binding.persisted,
                "price_per_page": breakdown["price_per_page"],
            })

        payload["admin_notes"] = self._admin_notes(package)
        return payload

    # --- read model ---

    def state(self) -> Dict[str, Any]:
        return {
            "step": int(self.step),
            "step_label": self.step.label,
            "steps": [s.label for s in CheckoutStep],
            "draft": self.draft.model_dump(mode="json"),
            "pricing": self.draft.price_breakdown(),
            "submitting": self.submitting,
            "order_number": self.order_number,
            "last_error": self.last_error,
            "toasts": [t.as_dict() for t in self.notifier.toasts],
        }
