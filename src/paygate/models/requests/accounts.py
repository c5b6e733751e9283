from datetime import datetime
from typing import Any

from paygate.models.schema import Role

from .serde_base import RawPayload, SerdeBase


class SignupRequest(RawPayload):
    username: Any = None
    full_name: Any = None
    account_number: Any = None
    national_id_number: Any = None
    password: Any = None


class LoginRequest(RawPayload):
    username: Any = None
    password: Any = None


class AccountSummary(SerdeBase):
    id: str
    username: str
    role: Role


class SignupResponse(SerdeBase):
    message: str
    user: AccountSummary


class LoginResponse(SerdeBase):
    message: str
    token: str
    user: AccountSummary


class ProfileView(SerdeBase):
    id: str
    username: str
    role: Role
    full_name: str | None
    account_number: str | None
    national_id_number: str | None
    created_at: datetime
    undecryptable_fields: list[str] = []
