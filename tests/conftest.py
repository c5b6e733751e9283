import os
from pathlib import Path

# Resolve config.toml regardless of the directory pytest is started from
os.environ.setdefault("PAYGATE_CONFIG", str(Path(__file__).parent.parent / "config.toml"))

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from paygate.core.accounts import AccountService  # noqa: E402
from paygate.core.cipher import FieldCipher, ScryptParams  # noqa: E402
from paygate.core.credentials import CredentialManager  # noqa: E402
from paygate.core.tokens import Identity, TokenService  # noqa: E402
from paygate.core.workflow import PaymentWorkflow  # noqa: E402
from paygate.models.schema import PaymentApplication, Role, User  # noqa: E402
from paygate.shared.store import Repository, build_engine  # noqa: E402

ENCRYPTION_SECRET = "test-encryption-secret-for-field-cipher"
JWT_SECRET = "test-jwt-secret-that-is-long-enough-for-hs256"

# scrypt at 2^10 keeps the suite fast; production uses 2^14
FAST_SCRYPT = ScryptParams(n=2**10, r=8, p=1)

VALID_PAYMENT = {
    "recipient_name": "Jane O'Neil",
    "recipient_account_number": "1234567890",
    "swift_code": "ABCDZAJJ",
    "amount": "1500.50",
    "currency": "ZAR",
    "payment_provider": "SWIFT",
}


def signup_payload(username: str) -> dict:
    return {
        "username": username,
        "full_name": "Test User",
        "account_number": "12345678",
        "national_id_number": "9001015009087",
        "password": "Passw0rd!",
    }


def corrupt_envelope(repository: Repository, record_id: str, field: str) -> None:
    """Keep the stored iv but make the ciphertext half undecodable."""
    iv_hex = getattr(repository.get(record_id), field).partition(":")[0]
    repository.update_if_match(record_id, {}, {field: f"{iv_hex}:zz"})


@pytest.fixture
def engine(tmp_path):
    database_uri = f"sqlite:///{tmp_path / 'paygate_test.db'}"
    engine = build_engine(database_uri)
    yield engine
    engine.dispose()


@pytest.fixture
def cipher():
    return FieldCipher(ENCRYPTION_SECRET, FAST_SCRYPT)


@pytest.fixture
def credentials():
    return CredentialManager(rounds=10)


@pytest.fixture
def tokens():
    return TokenService(JWT_SECRET)


@pytest.fixture
def users(engine):
    return Repository(engine, User)


@pytest.fixture
def applications(engine):
    return Repository(engine, PaymentApplication)


@pytest.fixture
def accounts(users, cipher, credentials, tokens):
    return AccountService(users, cipher, credentials, tokens)


@pytest.fixture
def workflow(applications, cipher):
    return PaymentWorkflow(applications, cipher)


@pytest.fixture
def client_identity(accounts):
    summary = accounts.register(signup_payload("alice"))
    return Identity(**summary.model_dump())


@pytest.fixture
def other_client_identity(accounts):
    summary = accounts.register(signup_payload("mallory"))
    return Identity(**summary.model_dump())


@pytest.fixture
def employee_identity(accounts):
    summary = accounts.register(signup_payload("bob_reviewer"), role=Role.EMPLOYEE)
    return Identity(**summary.model_dump())


@pytest.fixture
def api(accounts, workflow, tokens):
    from paygate.main import create_app
    from paygate.routers.deps import get_account_service, get_token_service, get_workflow

    app = create_app(rate_limit=False)
    app.dependency_overrides[get_account_service] = lambda: accounts
    app.dependency_overrides[get_workflow] = lambda: workflow
    app.dependency_overrides[get_token_service] = lambda: tokens

    with TestClient(app) as client:
        yield client
