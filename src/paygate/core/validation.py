"""
Whitelist gate and format validation for inbound payloads.

``sanitize`` is the only thing standing between a client and extra columns
such as ``role`` or ``status``; every service runs it before ``validate``.
Schemas are ordered, and the first failing field in declaration order is the
one reported to the caller.
"""

import re
from collections.abc import Iterable, Mapping
from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel, ConfigDict

from paygate.core.errors import ValidationError
from paygate.shared.logger import Logger

logger = Logger(__name__).get_logger()


class FieldError(BaseModel):
    field: str
    message: str


class Rule:
    def check(self, value: Any) -> bool:
        raise NotImplementedError


class Pattern(Rule):
    def __init__(self, pattern: str):
        self.regex = re.compile(pattern, re.ASCII)

    def check(self, value: Any) -> bool:
        return isinstance(value, str) and self.regex.fullmatch(value) is not None


class Present(Rule):
    def check(self, value: Any) -> bool:
        return isinstance(value, str)


class Amount(Pattern):
    """Decimal with at most two places, strictly positive."""

    def __init__(self):
        super().__init__(r"\d+(\.\d{1,2})?")

    def check(self, value: Any) -> bool:
        if not super().check(value):
            return False
        try:
            return Decimal(value) > 0
        except InvalidOperation:
            return False


class OneOf(Rule):
    def __init__(self, *choices: str):
        self.choices = choices

    def check(self, value: Any) -> bool:
        return isinstance(value, str) and value in self.choices


class FieldSpec(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    label: str
    rule: Rule
    message: str


type Schema = dict[str, FieldSpec]

USERNAME = Pattern(r"[A-Za-z0-9_]{3,16}")
NAME = Pattern(r"[A-Za-z0-9 .,'-]{2,50}")
ACCOUNT_NUMBER = Pattern(r"\d{6,20}")
NATIONAL_ID = Pattern(r"\d{13}")
PASSWORD = Pattern(r"(?=.*[A-Za-z])(?=.*\d)[A-Za-z\d@$!%*?&]{6,}")
SWIFT_CODE = Pattern(r"[A-Z]{6}[A-Z0-9]{2}([A-Z0-9]{3})?")
CURRENCY = Pattern(r"[A-Z]{3}")
DECISION = OneOf("Approved", "Rejected")
MAX_COMMENT_LENGTH = 500

USERNAME_MESSAGE = (
    "Username must be 3-16 characters and contain only letters, numbers, or underscores"
)
PASSWORD_MESSAGE = (
    "Password must be at least 6 characters and contain at least one letter and one number"
)

REGISTRATION_SCHEMA: Schema = {
    "username": FieldSpec(label="Username", rule=USERNAME, message=USERNAME_MESSAGE),
    "full_name": FieldSpec(
        label="Full name", rule=NAME, message="Full name contains invalid characters"
    ),
    "account_number": FieldSpec(
        label="Account number",
        rule=ACCOUNT_NUMBER,
        message="Account number must be 6-20 digits",
    ),
    "national_id_number": FieldSpec(
        label="ID number",
        rule=NATIONAL_ID,
        message="ID number must be exactly 13 digits",
    ),
    "password": FieldSpec(label="Password", rule=PASSWORD, message=PASSWORD_MESSAGE),
}

# Login only checks presence; formats are not revealed to a guessing client
LOGIN_MESSAGE = "Username and password are required"
LOGIN_SCHEMA: Schema = {
    "username": FieldSpec(label="Username", rule=Present(), message=LOGIN_MESSAGE),
    "password": FieldSpec(label="Password", rule=Present(), message=LOGIN_MESSAGE),
}

PAYMENT_SCHEMA: Schema = {
    "recipient_name": FieldSpec(
        label="Recipient name", rule=NAME, message="Invalid recipient name format"
    ),
    "recipient_account_number": FieldSpec(
        label="Recipient account number",
        rule=ACCOUNT_NUMBER,
        message="Invalid account number format",
    ),
    "swift_code": FieldSpec(
        label="SWIFT code", rule=SWIFT_CODE, message="Invalid SWIFT code format"
    ),
    "amount": FieldSpec(
        label="Amount", rule=Amount(), message="Amount must be a positive number"
    ),
    "currency": FieldSpec(
        label="Currency", rule=CURRENCY, message="Invalid currency format"
    ),
    "payment_provider": FieldSpec(
        label="Payment provider", rule=NAME, message="Invalid payment provider format"
    ),
}


def sanitize(raw: Mapping[str, Any], allowed: Iterable[str]) -> dict[str, Any]:
    """Drop every key that is not in ``allowed``; keep the rest untouched."""
    allowed = set(allowed)
    dropped = [key for key in raw if key not in allowed]
    if dropped:
        logger.warning("Dropped unexpected fields: %s", ", ".join(sorted(map(str, dropped))))
    return {key: value for key, value in raw.items() if key in allowed}


def validate(fields: Mapping[str, Any], schema: Schema) -> list[FieldError]:
    errors = []
    for name, spec in schema.items():
        value = fields.get(name)
        if value is None or value == "":
            errors.append(FieldError(field=name, message=f"{spec.label} is required"))
        elif not spec.rule.check(value):
            errors.append(FieldError(field=name, message=spec.message))
    return errors


def ensure_valid(fields: Mapping[str, Any], schema: Schema) -> None:
    errors = validate(fields, schema)
    if errors:
        first = errors[0]
        logger.info("Rejected request: %s (%d field errors)", first.field, len(errors))
        raise ValidationError(first.field, first.message, errors)
