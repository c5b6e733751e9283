from datetime import timedelta

from fastapi.testclient import TestClient

from paygate.core.errors import InvalidDecision
from paygate.core.tokens import Identity
from paygate.main import create_app
from paygate.models.schema import Role
from tests.conftest import VALID_PAYMENT, corrupt_envelope, signup_payload


def auth(tokens, identity: Identity, ttl=None) -> dict:
    return {"Authorization": f"Bearer {tokens.issue(identity, ttl=ttl)}"}


def test_index(api):
    response = api.get("/")

    assert response.status_code == 200
    assert response.headers["X-Frame-Options"] == "DENY"


class TestUserRoutes:
    def test_signup_and_login(self, api):
        response = api.post("/user/signup", json=signup_payload("carol"))
        assert response.status_code == 201
        assert response.json()["user"]["role"] == "Client"

        response = api.post("/user/login", json={"username": "carol", "password": "Passw0rd!"})
        assert response.status_code == 200
        token = response.json()["token"]

        response = api.get("/user/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200
        assert response.json()["full_name"] == "Test User"

    def test_signup_cannot_self_promote(self, api):
        response = api.post("/user/signup", json={**signup_payload("carol"), "role": "Employee"})

        assert response.status_code == 201
        assert response.json()["user"]["role"] == "Client"

    def test_signup_validation_message(self, api):
        response = api.post("/user/signup", json={**signup_payload("carol"), "password": "short"})

        assert response.status_code == 400
        assert response.json()["field"] == "password"
        assert response.json()["detail"].startswith("Password must be at least 6 characters")

    def test_duplicate_signup(self, api):
        api.post("/user/signup", json=signup_payload("carol"))
        response = api.post("/user/signup", json=signup_payload("carol"))

        assert response.status_code == 409
        assert response.json()["detail"] == "Username already exists"

    def test_bad_login(self, api, client_identity):
        response = api.post("/user/login", json={"username": "alice", "password": "nope123"})

        assert response.status_code == 401
        assert response.json() == {"detail": "Authentication failed"}
    def test_login_without_body(self, api):
        response = api.post("/user/login")

        assert response.status_code == 400
        assert response.json()["field"] == "username"
        assert response.json()["detail"] == "Username is required"

    def test_profile_with_undecryptable_field(self, api, tokens, users, client_identity):
        corrupt_envelope(users, client_identity.id, "national_id_number")

        response = api.get("/user/me", headers=auth(tokens, client_identity))

        assert response.status_code == 200
        assert response.json()["national_id_number"] is None
        assert response.json()["undecryptable_fields"] == ["national_id_number"]



class TestAuthentication:
    def test_missing_header(self, api):
        response = api.get("/payments/my-applications")

        assert response.status_code == 401
        assert response.json() == {"detail": "Authentication failed"}

    def test_malformed_header(self, api):
        response = api.get("/payments/my-applications", headers={"Authorization": "Token x"})

        assert response.status_code == 401

    def test_expired_token(self, api, tokens, client_identity):
        headers = auth(tokens, client_identity, ttl=timedelta(seconds=-1))

        response = api.get("/payments/my-applications", headers=headers)

        assert response.status_code == 401
        assert response.json() == {"detail": "Authentication failed"}


class TestPaymentRoutes:
    def test_submit_then_get(self, api, tokens, client_identity):
        headers = auth(tokens, client_identity)

        response = api.post("/payments/submit", json=VALID_PAYMENT, headers=headers)
        assert response.status_code == 201
        application = response.json()["application"]
        assert application["status"] == "Pending"

        response = api.get(f"/payments/{application['id']}", headers=headers)
        assert response.status_code == 200
        fetched = response.json()["application"]
        for field, value in VALID_PAYMENT.items():
            assert fetched[field] == value

    def test_numeric_amount_accepted(self, api, tokens, client_identity):
        response = api.post(
            "/payments/submit",
            json={**VALID_PAYMENT, "amount": 250},
            headers=auth(tokens, client_identity),
        )

        assert response.status_code == 201
        assert response.json()["application"]["amount"] == "250"

    def test_negative_amount(self, api, tokens, client_identity, applications):
        response = api.post(
            "/payments/submit",
            json={**VALID_PAYMENT, "amount": "-5"},
            headers=auth(tokens, client_identity),
        )

        assert response.status_code == 400
        assert response.json()["field"] == "amount"
        assert applications.find() == []

    def test_review_flow(self, api, tokens, client_identity, employee_identity):
        submitted = api.post(
            "/payments/submit", json=VALID_PAYMENT, headers=auth(tokens, client_identity)
        ).json()["application"]

        response = api.patch(
            f"/payments/review/{submitted['id']}",
            json={"decision": "Approved", "comments": "ok"},
            headers=auth(tokens, employee_identity),
        )
        assert response.status_code == 200
        assert response.json()["message"] == "Payment application approved successfully"
        assert response.json()["application"]["reviewer_name"] == "bob_reviewer"

        response = api.patch(
            f"/payments/review/{submitted['id']}",
            json={"decision": "Rejected"},
            headers=auth(tokens, employee_identity),
        )
        assert response.status_code == 409

    def test_client_review_forbidden(self, api, tokens, client_identity, applications):
        submitted = api.post(
            "/payments/submit", json=VALID_PAYMENT, headers=auth(tokens, client_identity)
        ).json()["application"]

        response = api.patch(
            f"/payments/review/{submitted['id']}",
            json={"decision": "Approved"},
            headers=auth(tokens, client_identity),
        )

        assert response.status_code == 403
        assert applications.get(submitted["id"]).status == "Pending"

    def test_invalid_decision(self, api, tokens, employee_identity):
        response = api.patch(
            "/payments/review/anything",
            json={"decision": "approved"},
            headers=auth(tokens, employee_identity),
        )

        assert response.status_code == 400

    def test_unknown_application(self, api, tokens, employee_identity):
        response = api.get("/payments/does-not-exist", headers=auth(tokens, employee_identity))

        assert response.status_code == 404

    def test_listings(self, api, tokens, client_identity, employee_identity):
        api.post("/payments/submit", json=VALID_PAYMENT, headers=auth(tokens, client_identity))

        mine = api.get("/payments/my-applications", headers=auth(tokens, client_identity))
        everything = api.get("/payments/all", headers=auth(tokens, employee_identity))
        pending = api.get("/payments/status/Pending", headers=auth(tokens, employee_identity))

        assert len(mine.json()["applications"]) == 1
        assert len(everything.json()["applications"]) == 1
        assert len(pending.json()["applications"]) == 1

    def test_client_cannot_list_all(self, api, tokens, client_identity):
        response = api.get("/payments/all", headers=auth(tokens, client_identity))

        assert response.status_code == 403

    def test_bad_status(self, api, tokens, employee_identity):
        response = api.get("/payments/status/done", headers=auth(tokens, employee_identity))

        assert response.status_code == 400
    def test_boolean_amount(self, api, tokens, client_identity, applications):
        response = api.post(
            "/payments/submit",
            json={**VALID_PAYMENT, "amount": True},
            headers=auth(tokens, client_identity),
        )

        assert response.status_code == 400
        assert response.json()["field"] == "amount"
        assert response.json()["detail"] == "Amount must be a positive number"
        assert applications.find() == []

    def test_submit_without_body(self, api, tokens, client_identity):
        response = api.post("/payments/submit", headers=auth(tokens, client_identity))

        assert response.status_code == 400
        assert response.json()["field"] == "recipient_name"
        assert response.json()["detail"] == "Recipient name is required"

    def test_body_must_be_an_object(self, api, tokens, client_identity):
        response = api.post(
            "/payments/submit", json=["SWIFT"], headers=auth(tokens, client_identity)
        )

        assert response.status_code == 400
        assert response.json()["field"] == "body"

    def test_malformed_json(self, api, tokens, client_identity):
        headers = {**auth(tokens, client_identity), "Content-Type": "application/json"}

        response = api.post("/payments/submit", content=b'{"amount": ', headers=headers)

        assert response.status_code == 400
        assert response.json()["field"] == "body"

    def test_numeric_decision(
        self, api, tokens, client_identity, employee_identity, applications
    ):
        submitted = api.post(
            "/payments/submit", json=VALID_PAYMENT, headers=auth(tokens, client_identity)
        ).json()["application"]

        for body in ({"decision": 1}, None):
            response = api.patch(
                f"/payments/review/{submitted['id']}",
                json=body,
                headers=auth(tokens, employee_identity),
            )

            assert response.status_code == 400
            assert response.json()["detail"] == InvalidDecision.detail
        assert applications.get(submitted["id"]).status == "Pending"

    def test_undecryptable_field_in_response(
        self, api, tokens, client_identity, applications
    ):
        headers = auth(tokens, client_identity)
        submitted = api.post("/payments/submit", json=VALID_PAYMENT, headers=headers).json()
        application_id = submitted["application"]["id"]
        corrupt_envelope(applications, application_id, "amount")

        response = api.get(f"/payments/{application_id}", headers=headers)

        assert response.status_code == 200
        fetched = response.json()["application"]
        assert fetched["amount"] is None
        assert fetched["undecryptable_fields"] == ["amount"]
        assert fetched["currency"] == VALID_PAYMENT["currency"]

    def test_removed_account_cannot_submit(self, api, tokens):
        ghost = Identity(id="f" * 32, username="ghost", role=Role.CLIENT)

        response = api.post(
            "/payments/submit", json=VALID_PAYMENT, headers=auth(tokens, ghost)
        )

        assert response.status_code == 401
        assert response.json() == {"detail": "Authentication failed"}



def test_rate_limit():
    """Sending many requests quickly is throttled with 429."""
    client = TestClient(create_app())

    responses = [client.get("/") for _ in range(30)]

    assert any(response.status_code == 429 for response in responses)
