from functools import cached_property
from typing import Any

from sqlalchemy.exc import IntegrityError

from paygate.core.cipher import FieldCipher
from paygate.core.credentials import CredentialManager
from paygate.core.errors import AuthInvalid, UsernameTaken
from paygate.core.policy import AuthorizationPolicy, Operation
from paygate.core.tokens import Identity, TokenService
from paygate.core.validation import (
    LOGIN_SCHEMA,
    REGISTRATION_SCHEMA,
    ensure_valid,
    sanitize,
)
from paygate.models.requests import AccountSummary, ProfileView
from paygate.models.schema import USER_ENCRYPTED_FIELDS, Role, User
from paygate.shared.http import server_error_handler
from paygate.shared.logger import Logger
from paygate.shared.store import Repository

logger = Logger(__name__).get_logger()


class AccountService:
    """Registration, login and profile reads for Identities."""

    def __init__(
        self,
        users: Repository[User],
        cipher: FieldCipher,
        credentials: CredentialManager,
        tokens: TokenService,
        policy: AuthorizationPolicy | None = None,
    ):
        self.users = users
        self.cipher = cipher
        self.credentials = credentials
        self.tokens = tokens
        self.policy = policy or AuthorizationPolicy()

    @cached_property
    def _decoy_hash(self) -> str:
        # Checked against when the username is unknown so both failures cost one bcrypt
        return self.credentials.hash_password("decoy-password-never-issued")

    def register(self, raw: dict[str, Any], role: Role = Role.CLIENT) -> AccountSummary:
        """
        Create an account from a signup payload.
        The role comes from the caller, never from the payload; the HTTP route
        always passes Client.
        """
        fields = sanitize(raw, REGISTRATION_SCHEMA)
        ensure_valid(fields, REGISTRATION_SCHEMA)

        username = fields["username"]

        with server_error_handler():
            if self.users.find_one(username=username) is not None:
                logger.info("Signup refused, username %s is taken", username)
                raise UsernameTaken()

            password_hash = self.credentials.hash_password(fields.pop("password"))
            encrypted = self.cipher.encrypt_fields(fields, USER_ENCRYPTED_FIELDS)
            user = User(**encrypted, password_hash=password_hash, role=role)

            try:
                self.users.insert(user)
            except IntegrityError as e:
                # Lost a race with a concurrent signup for the same username
                logger.info("Signup refused by unique constraint for %s", username)
                raise UsernameTaken() from e

        logger.info("Registered %s account %s", role, username)
        return AccountSummary(id=user.id, username=user.username, role=user.role)

    def login(self, raw: dict[str, Any]) -> tuple[str, AccountSummary]:
        fields = sanitize(raw, LOGIN_SCHEMA)
        ensure_valid(fields, LOGIN_SCHEMA)

        with server_error_handler():
            user = self.users.find_one(username=fields["username"])

            if user is None:
                self.credentials.verify_password(fields["password"], self._decoy_hash)
                logger.info("Login failed for unknown username")
                raise AuthInvalid("unknown user")

            if not self.credentials.verify_password(fields["password"], user.password_hash):
                logger.info("Login failed for %s", user.username)
                raise AuthInvalid("bad password")

            summary = AccountSummary(id=user.id, username=user.username, role=user.role)
            token = self.tokens.issue(Identity(**summary.model_dump()))

        logger.info("Login succeeded for %s", user.username)
        return token, summary

    def profile(self, identity: Identity) -> ProfileView:
        self.policy.require(identity, Operation.VIEW_OWN_PROFILE)

        with server_error_handler():
            user = self.users.get(identity.id)

        if user is None:
            # Token outlived its account
            raise AuthInvalid("unknown subject")

        values, undecryptable = self.cipher.decrypt_fields(
            user.model_dump(exclude={"password_hash"}), USER_ENCRYPTED_FIELDS
        )
        return ProfileView(**values, undecryptable_fields=undecryptable)
