from enum import Enum, IntEnum


class ServiceType(str, Enum):
    DOCUMENT_PRINTING = "DOCUMENT_PRINTING"
    RUSH_ID = "RUSH_ID"

    @property
    def persisted(self) -> str:
        return self.name


class PaperSize(str, Enum):
    LETTER = "short"
    A4 = "a4"
    LEGAL = "long"
    A3 = "a3"

    @property
    def persisted(self) -> str:
        return self.name


class PrintMode(str, Enum):
    BLACK_AND_WHITE = "black"
    PARTIAL_COLOR = "partial"
    FULL_COLOR = "full"
    BORDERLESS = "borderless"

    @property
    def persisted(self) -> str:
        # the orders table has always stored full color as plain COLOR
        if self is PrintMode.FULL_COLOR:
            return "COLOR"
        return self.name


class BindingType(str, Enum):
    NONE = "none"
    BOOK_SOFT = "book-soft"
    BOOK_HARD = "book-hard"
    WIRE_SOFT = "wire-soft"
    WIRE_HARD = "wire-hard"

    @property
    def persisted(self) -> str:
        return self.name


class DeliveryType(str, Enum):
    PICKUP = "pickup"
    CAMPUS = "campus"
    COURIER = "courier"

    @property
    def persisted(self) -> str:
        return self.name


class UploadFolder(str, Enum):
    DOCUMENTS = "documents"
    PAYMENTS = "payments"


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    READY = "READY"
    ON_DELIVERY = "ON_DELIVERY"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class MessageStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    RESPONDED = "RESPONDED"
    RESOLVED = "RESOLVED"


class UserRole(str, Enum):
    USER = "USER"
    STAFF = "STAFF"
    ADMIN = "ADMIN"


class CheckoutStep(IntEnum):
    UPLOAD = 1
    CONFIGURE = 2
    DELIVERY = 3
    CONTACT = 4
    REVIEW = 5
    PAYMENT = 6
    CONFIRMATION = 7

    @property
    def label(self) -> str:
        return STEP_LABELS[self]


STEP_LABELS = {
    CheckoutStep.UPLOAD: "Upload",
    CheckoutStep.CONFIGURE: "Configure & Pricing",
    CheckoutStep.DELIVERY: "Delivery",
    CheckoutStep.CONTACT: "Contact",
    CheckoutStep.REVIEW: "Review",
    CheckoutStep.PAYMENT: "Payment",
    CheckoutStep.CONFIRMATION: "Confirmation",
}
