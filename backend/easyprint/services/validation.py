import re
from dataclasses import asdict, dataclass
from typing import List, Optional

from easyprint.models.draft import OrderDraft
from easyprint.models.enums import CheckoutStep, DeliveryType, ServiceType
from easyprint.services.pricing import PriceEngine

CAMPUS_LOCATIONS = [
    "University of San Carlos - Main Campus",
    "University of San Carlos - Talamban Campus",
    "Cebu Institute of Technology - Main",
    "University of Cebu - Main",
    "Cebu Normal University",
    "University of San Jose Recoletos",
    "Southwestern University - Urgello",
    "University of the Philippines Cebu",
]

PHONE_RE = re.compile(r"^09\d{9}$")
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
REFERENCE_RE = re.compile(r"^\d+$")
WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class StepIssue:
    title: str
    description: str
    field: str

    def as_dict(self) -> dict:
        return asdict(self)


def normalize_phone(phone: str) -> str:
    return WHITESPACE_RE.sub("", phone or "")


class Validator:
    """Gate checks for each checkout step.

    Rules, in the order they are reported:
    - upload: at least one file, then a service type
    - configure: rush ID needs a catalog package; printing needs size, mode and copies >= 1
    - delivery: campus needs a listed location; courier needs an address
    - contact: name, then Philippine mobile (09XXXXXXXXX), then email
    - review: nothing
    - payment: numeric reference number, uploaded screenshot, files still attached

    Issues come back in rule order; callers show the first one.
    """

    def _add_issue(self, issues: List[StepIssue], issue: StepIssue) -> None:
        if issue not in issues:
            issues.append(issue)

    def validate_step(self, step: CheckoutStep, draft: OrderDraft) -> List[StepIssue]:
        checks = {
            CheckoutStep.UPLOAD: self._upload,
            CheckoutStep.CONFIGURE: self._configure,
            CheckoutStep.DELIVERY: self._delivery,
            CheckoutStep.CONTACT: self._contact,
            CheckoutStep.PAYMENT: self._payment,
        }
        issues: List[StepIssue] = []
        check = checks.get(step)
        if check is not None:
            check(draft, issues)
        return issues

    def first_issue(self, step: CheckoutStep, draft: OrderDraft) -> Optional[StepIssue]:
        issues = self.validate_step(step, draft)
        return issues[0] if issues else None

    def _upload(self, draft: OrderDraft, issues: List[StepIssue]) -> None:
        if not draft.files:
            self._add_issue(issues, StepIssue("No Files", "Please upload at least one file.", "files"))
        if draft.service_type is None:
            self._add_issue(issues, StepIssue(
                "Service Type Required", "Please select Document Printing or Rush ID.", "service_type"))

    def _configure(self, draft: OrderDraft, issues: List[StepIssue]) -> None:
        if draft.service_type is ServiceType.RUSH_ID:
            if PriceEngine.find_package(draft.rush_package) is None:
                self._add_issue(issues, StepIssue(
                    "Package Required", "Please select a Rush ID package.", "rush_package"))
            return

        if draft.paper_size is None:
            self._add_issue(issues, StepIssue(
                "Incomplete Options", "Please configure all print options.", "paper_size"))
        if draft.print_mode is None:
            self._add_issue(issues, StepIssue(
                "Incomplete Options", "Please configure all print options.", "print_mode"))
        if draft.copies is None or draft.copies < 1:
            self._add_issue(issues, StepIssue(
                "Incomplete Options", "Please configure all print options.", "copies"))

    def _delivery(self, draft: OrderDraft, issues: List[StepIssue]) -> None:
        location = (draft.delivery_location or "").strip()
        if draft.delivery_type is DeliveryType.CAMPUS:
            if not location:
                self._add_issue(issues, StepIssue(
                    "Location Required", "Please select a campus location for delivery.", "delivery_location"))
            elif location not in CAMPUS_LOCATIONS:
                self._add_issue(issues, StepIssue(
                    "Invalid Location", "Please choose one of the listed campus locations.", "delivery_location"))
        elif draft.delivery_type is DeliveryType.COURIER:
            if not location:
                self._add_issue(issues, StepIssue(
                    "Address Required", "Please enter the delivery address for the courier.", "delivery_location"))

    def _contact(self, draft: OrderDraft, issues: List[StepIssue]) -> None:
        contact = draft.contact
        if not contact.name.strip():
            self._add_issue(issues, StepIssue("Name Required", "Please enter your full name.", "contact.name"))

        if not contact.phone.strip():
            self._add_issue(issues, StepIssue("Phone Required", "Please enter your phone number.", "contact.phone"))
        elif not PHONE_RE.match(normalize_phone(contact.phone)):
            self._add_issue(issues, StepIssue(
                "Invalid Phone",
                "Please enter a valid Philippine mobile number (e.g., 09XX XXX XXXX).",
                "contact.phone",
            ))

        if not contact.email.strip():
            self._add_issue(issues, StepIssue("Email Required", "Please enter your email address.", "contact.email"))
        elif not EMAIL_RE.match(contact.email.strip()):
            self._add_issue(issues, StepIssue("Invalid Email", "Please enter a valid email address.", "contact.email"))

    def _payment(self, draft: OrderDraft, issues: List[StepIssue]) -> None:
        proof = draft.payment_proof
        ref = proof.reference_number.strip()
        if not ref:
            self._add_issue(issues, StepIssue(
                "Reference Number Required", "Please enter the GCash reference number.",
                "payment_proof.reference_number"))
        elif not REFERENCE_RE.match(ref):
            self._add_issue(issues, StepIssue(
                "Invalid Reference Number", "Reference number should contain only numbers.",
                "payment_proof.reference_number"))

        if not proof.screenshot_url:
            self._add_issue(issues, StepIssue(
                "Payment Screenshot Required", "Please upload your payment screenshot.",
                "payment_proof.screenshot_url"))

        if not draft.files:
            self._add_issue(issues, StepIssue(
                "No Files Uploaded", "Please go back and upload your files.", "files"))
