from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Header
from sqlalchemy import Engine

from paygate.core.accounts import AccountService
from paygate.core.cipher import FieldCipher
from paygate.core.credentials import CredentialManager
from paygate.core.policy import AuthorizationPolicy
from paygate.core.tokens import Identity, TokenService
from paygate.core.workflow import PaymentWorkflow
from paygate.models.schema import PaymentApplication, User
from paygate.shared import load_config
from paygate.shared.store import Repository

config = load_config()


@lru_cache
def get_engine() -> Engine:
    # Deferred so importing the routers does not open the database
    from paygate.shared.db import engine

    return engine


@lru_cache
def get_cipher() -> FieldCipher:
    return FieldCipher.from_config(config.security)


@lru_cache
def get_token_service() -> TokenService:
    return TokenService.from_config(config.security)


@lru_cache
def get_credential_manager() -> CredentialManager:
    return CredentialManager.from_config(config.security)


def get_account_service() -> AccountService:
    return AccountService(
        Repository(get_engine(), User),
        get_cipher(),
        get_credential_manager(),
        get_token_service(),
        AuthorizationPolicy(),
    )


def get_workflow() -> PaymentWorkflow:
    return PaymentWorkflow(
        Repository(get_engine(), PaymentApplication),
        get_cipher(),
        AuthorizationPolicy(),
    )


def current_identity(
    tokens: Annotated[TokenService, Depends(get_token_service)],
    authorization: Annotated[str | None, Header()] = None,
) -> Identity:
    return tokens.verify_header(authorization)


CurrentIdentity = Annotated[Identity, Depends(current_identity)]
Accounts = Annotated[AccountService, Depends(get_account_service)]
Workflow = Annotated[PaymentWorkflow, Depends(get_workflow)]
