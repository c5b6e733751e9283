"""
Payment application lifecycle.

    Pending --review(Approved)--> Approved
    Pending --review(Rejected)--> Rejected

Approved and Rejected are terminal. The review transition is a single
conditional update on ``status == Pending``, so of two concurrent reviewers
exactly one wins and the other sees AlreadyReviewed.
"""

from typing import Any

from sqlalchemy.exc import IntegrityError

from paygate.core.cipher import FieldCipher
from paygate.core.errors import (
    AlreadyReviewed,
    AuthInvalid,
    InvalidDecision,
    NotFound,
    ValidationError,
)
from paygate.core.policy import AuthorizationPolicy, Operation
from paygate.core.tokens import Identity
from paygate.core.validation import (
    DECISION,
    MAX_COMMENT_LENGTH,
    PAYMENT_SCHEMA,
    ensure_valid,
    sanitize,
)
from paygate.models.requests import ApplicationView
from paygate.models.schema import (
    PAYMENT_ENCRYPTED_FIELDS,
    ApplicationStatus,
    PaymentApplication,
    utcnow,
)
from paygate.shared.http import server_error_handler
from paygate.shared.logger import Logger
from paygate.shared.store import Repository

logger = Logger(__name__).get_logger()

STATUS_MESSAGE = "Invalid status. Must be Pending, Approved, or Rejected"


class PaymentWorkflow:
    def __init__(
        self,
        applications: Repository[PaymentApplication],
        cipher: FieldCipher,
        policy: AuthorizationPolicy | None = None,
    ):
        self.applications = applications
        self.cipher = cipher
        self.policy = policy or AuthorizationPolicy()

    def submit(self, identity: Identity, raw: dict[str, Any]) -> ApplicationView:
        self.policy.require(identity, Operation.SUBMIT_PAYMENT)

        fields = sanitize(raw, PAYMENT_SCHEMA)
        ensure_valid(fields, PAYMENT_SCHEMA)

        with server_error_handler():
            encrypted = self.cipher.encrypt_fields(fields, PAYMENT_ENCRYPTED_FIELDS)
            application = PaymentApplication(
                **encrypted,
                submitted_by=identity.id,
                submitted_by_name=identity.username,
                status=ApplicationStatus.PENDING,
            )
            try:
                self.applications.insert(application)
            except IntegrityError as e:
                raise self._stale_identity(identity) from e

        logger.info(
            "Payment application %s submitted by %s", application.id, identity.username
        )
        return self._view(application)

    def review(
        self,
        identity: Identity,
        application_id: str,
        decision: Any,
        comments: Any = None,
    ) -> ApplicationView:
        self.policy.require(identity, Operation.REVIEW_PAYMENT)

        if not DECISION.check(decision):
            raise InvalidDecision()

        if comments is not None and not isinstance(comments, str):
            raise ValidationError("comments", "Comments must be text")
        if comments and len(comments) > MAX_COMMENT_LENGTH:
            raise ValidationError(
                "comments", f"Comments must be at most {MAX_COMMENT_LENGTH} characters"
            )

        patch = {
            "status": ApplicationStatus(decision),
            "reviewed_at": utcnow(),
            "reviewed_by": identity.id,
            "reviewer_name": identity.username,
            "review_comments": comments or None,
        }

        with server_error_handler():
            try:
                changed = self.applications.update_if_match(
                    application_id, {"status": ApplicationStatus.PENDING}, patch
                )
            except IntegrityError as e:
                raise self._stale_identity(identity) from e
            application = self.applications.get(application_id)

        if application is None:
            raise NotFound()

        if not changed:
            logger.warning(
                "Review of %s by %s refused: already %s",
                application_id,
                identity.username,
                application.status,
            )
            raise AlreadyReviewed(application.status)

        logger.info(
            "Payment application %s %s by %s",
            application_id,
            application.status,
            identity.username,
        )
        return self._view(application)

    def get(self, identity: Identity, application_id: str) -> ApplicationView:
        self.policy.require(identity, Operation.VIEW_PAYMENT)

        with server_error_handler():
            application = self.applications.get(application_id)

        # Foreign applications look exactly like missing ones
        if application is None or not self.policy.can_view(
            identity, application.submitted_by
        ):
            raise NotFound()

        return self._view(application)

    def list_by_status(self, identity: Identity, status: Any) -> list[ApplicationView]:
        self.policy.require(identity, Operation.LIST_PAYMENTS_BY_STATUS)

        try:
            status = ApplicationStatus(status)
        except ValueError as e:
            raise ValidationError("status", STATUS_MESSAGE) from e

        with server_error_handler():
            applications = self.applications.find(status=status)
        return [self._view(application) for application in applications]

    def list_mine(self, identity: Identity) -> list[ApplicationView]:
        self.policy.require(identity, Operation.LIST_OWN_PAYMENTS)

        with server_error_handler():
            applications = self.applications.find(submitted_by=identity.id)
        return [self._view(application) for application in applications]

    def list_all(self, identity: Identity) -> list[ApplicationView]:
        self.policy.require(identity, Operation.LIST_ALL_PAYMENTS)

        with server_error_handler():
            applications = self.applications.find()
        return [self._view(application) for application in applications]

    def _stale_identity(self, identity: Identity) -> AuthInvalid:
        # A token can outlive the account it was issued for
        logger.warning("Account %s no longer exists", identity.username)
        return AuthInvalid("unknown subject")

    def _view(self, application: PaymentApplication) -> ApplicationView:
        values, undecryptable = self.cipher.decrypt_fields(
            application.model_dump(), PAYMENT_ENCRYPTED_FIELDS
        )
        if undecryptable:
            logger.error(
                "Application %s has undecryptable fields: %s",
                application.id,
                ", ".join(undecryptable),
            )
        return ApplicationView(**values, undecryptable_fields=undecryptable)
