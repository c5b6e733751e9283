import bcrypt

from paygate.core.errors import InvalidHashFormat
from paygate.shared.config import Security
from paygate.shared.logger import Logger

logger = Logger(__name__).get_logger()

# bcrypt cost 10 means 2^10 key expansion rounds
MIN_ROUNDS = 10
# bcrypt only reads the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72


class CredentialManager:
    def __init__(self, rounds: int = MIN_ROUNDS):
        if rounds < MIN_ROUNDS:
            raise ValueError(f"bcrypt rounds must be at least {MIN_ROUNDS}, got {rounds}")
        self.rounds = rounds

    @classmethod
    def from_config(cls, security: Security) -> "CredentialManager":
        return cls(rounds=security.bcrypt_rounds)

    @staticmethod
    def _encode(plaintext: str) -> bytes:
        return plaintext.encode("utf-8")[:MAX_PASSWORD_BYTES]

    def hash_password(self, plaintext: str) -> str:
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(self._encode(plaintext), salt).decode("utf-8")

    def verify_password(self, plaintext: str, hashed: str) -> bool:
        """
        Compare ``plaintext`` against a stored bcrypt hash.
        A mismatch returns False; only an unparseable hash raises.
        """
        try:
            hashed_bytes = hashed.encode("utf-8")
        except AttributeError as e:
            raise InvalidHashFormat() from e

        try:
            return bcrypt.checkpw(self._encode(plaintext), hashed_bytes)
        except ValueError as e:
            logger.error("Stored password hash is malformed: %s", e)
            raise InvalidHashFormat() from e
