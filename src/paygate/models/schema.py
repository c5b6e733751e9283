from datetime import datetime, timezone
from enum import StrEnum
from uuid import uuid4

from sqlmodel import Field, SQLModel


def new_id() -> str:
    return uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Role(StrEnum):
    CLIENT = "Client"
    EMPLOYEE = "Employee"


class ApplicationStatus(StrEnum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


# Columns holding "iv:ciphertext" envelopes rather than plaintext
USER_ENCRYPTED_FIELDS = ("full_name", "account_number", "national_id_number")
PAYMENT_ENCRYPTED_FIELDS = (
    "recipient_name",
    "recipient_account_number",
    "swift_code",
    "amount",
    "currency",
    "payment_provider",
)


class User(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    username: str = Field(..., unique=True, index=True, description="Unique username")
    password_hash: str = Field(..., description="bcrypt hash with embedded salt")
    full_name: str = Field(..., description="Encrypted full name")
    account_number: str = Field(..., description="Encrypted account number")
    national_id_number: str = Field(..., description="Encrypted national ID number")
    role: Role = Field(default=Role.CLIENT, description="Fixed at creation")
    created_at: datetime = Field(
        default_factory=utcnow, description="Timestamp when the account was created"
    )


class PaymentApplication(SQLModel, table=True):
    __tablename__ = "payment_applications"

    id: str = Field(default_factory=new_id, primary_key=True)
    submitted_by: str = Field(
        ..., foreign_key="user.id", index=True, description="Id of the submitting user"
    )
    submitted_by_name: str = Field(..., description="Username of the submitting user")

    recipient_name: str = Field(..., description="Encrypted recipient name")
    recipient_account_number: str = Field(
        ..., description="Encrypted recipient account number"
    )
    swift_code: str = Field(..., description="Encrypted SWIFT/BIC code")
    amount: str = Field(..., description="Encrypted amount")
    currency: str = Field(..., description="Encrypted ISO currency code")
    payment_provider: str = Field(..., description="Encrypted payment provider")

    status: ApplicationStatus = Field(default=ApplicationStatus.PENDING, index=True)
    submitted_at: datetime = Field(
        default_factory=utcnow, description="Timestamp when the application was submitted"
    )

    # Review group: written once, together with status
    reviewed_at: datetime | None = Field(default=None)
    reviewed_by: str | None = Field(default=None, foreign_key="user.id")
    reviewer_name: str | None = Field(default=None)
    review_comments: str | None = Field(default=None)
