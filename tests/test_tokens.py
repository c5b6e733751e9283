import time
from datetime import timedelta

import jwt
import pytest

from paygate.core.errors import AuthInvalid
from paygate.core.tokens import Identity, TokenService, bearer_token
from paygate.models.schema import Role

ALICE = Identity(id="a" * 32, username="alice", role=Role.CLIENT)


def test_issue_and_verify(tokens):
    token = tokens.issue(ALICE)

    assert tokens.verify(token) == ALICE


def test_role_is_embedded(tokens):
    employee = Identity(id="b" * 32, username="bob", role=Role.EMPLOYEE)

    assert tokens.verify(tokens.issue(employee)).role == Role.EMPLOYEE


def test_expired_token_rejected(tokens):
    token = tokens.issue(ALICE, ttl=timedelta(seconds=1))
    time.sleep(2)

    with pytest.raises(AuthInvalid):
        tokens.verify(token)


def test_foreign_signature_rejected(tokens):
    forged = TokenService("another-secret-that-is-long-enough-for-hs256").issue(ALICE)

    with pytest.raises(AuthInvalid):
        tokens.verify(forged)


@pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
def test_malformed_token_rejected(tokens, token):
    with pytest.raises(AuthInvalid):
        tokens.verify(token)


def test_unknown_role_rejected(tokens):
    from tests.conftest import JWT_SECRET

    token = jwt.encode(
        {
            "sub": ALICE.id,
            "username": "alice",
            "role": "Admin",
            "iat": int(time.time()),
            "exp": int(time.time()) + 60,
        },
        JWT_SECRET,
        algorithm="HS256",
    )

    with pytest.raises(AuthInvalid):
        tokens.verify(token)


def test_missing_claims_rejected(tokens):
    from tests.conftest import JWT_SECRET

    token = jwt.encode({"sub": ALICE.id}, JWT_SECRET, algorithm="HS256")

    with pytest.raises(AuthInvalid):
        tokens.verify(token)


def test_auth_invalid_detail_is_generic(tokens):
    with pytest.raises(AuthInvalid) as excinfo:
        tokens.verify("garbage")

    assert excinfo.value.detail == "Authentication failed"


class TestBearerHeader:
    def test_extracts_token(self):
        assert bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"

    @pytest.mark.parametrize(
        "header", [None, "", "Bearer", "Basic abc", "Bearer a b", "bearer abc"]
    )
    def test_missing_or_malformed(self, header):
        with pytest.raises(AuthInvalid):
            bearer_token(header)

    def test_verify_header(self, tokens):
        assert tokens.verify_header(f"Bearer {tokens.issue(ALICE)}") == ALICE
