from datetime import datetime
from typing import Any

from paygate.models.schema import ApplicationStatus

from .serde_base import RawPayload, SerdeBase


class SubmitPaymentRequest(RawPayload):
    recipient_name: Any = None
    recipient_account_number: Any = None
    swift_code: Any = None
    amount: Any = None
    currency: Any = None
    payment_provider: Any = None


class ReviewRequest(RawPayload):
    decision: Any = None
    comments: Any = None


class ApplicationView(SerdeBase):
    """Decrypted projection of a stored payment application.

    A sensitive field that could not be decrypted is None and named in
    ``undecryptable_fields``.
    """

    id: str
    submitted_by: str
    submitted_by_name: str
    recipient_name: str | None
    recipient_account_number: str | None
    swift_code: str | None
    amount: str | None
    currency: str | None
    payment_provider: str | None
    status: ApplicationStatus
    submitted_at: datetime
    reviewed_at: datetime | None = None
    reviewed_by: str | None = None
    reviewer_name: str | None = None
    review_comments: str | None = None
    undecryptable_fields: list[str] = []


class ApplicationResponse(SerdeBase):
    message: str
    application: ApplicationView


class ApplicationListResponse(SerdeBase):
    message: str
    applications: list[ApplicationView]
