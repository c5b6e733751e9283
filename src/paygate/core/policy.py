from enum import StrEnum

from paygate.core.errors import PermissionDenied
from paygate.core.tokens import Identity
from paygate.models.schema import Role
from paygate.shared.logger import Logger

logger = Logger(__name__).get_logger()


class Operation(StrEnum):
    SUBMIT_PAYMENT = "submit_payment"
    LIST_OWN_PAYMENTS = "list_own_payments"
    VIEW_PAYMENT = "view_payment"
    REVIEW_PAYMENT = "review_payment"
    LIST_ALL_PAYMENTS = "list_all_payments"
    LIST_PAYMENTS_BY_STATUS = "list_payments_by_status"
    VIEW_OWN_PROFILE = "view_own_profile"


PERMISSIONS: dict[Role, frozenset[Operation]] = {
    Role.CLIENT: frozenset(
        {
            Operation.SUBMIT_PAYMENT,
            Operation.LIST_OWN_PAYMENTS,
            Operation.VIEW_PAYMENT,
            Operation.VIEW_OWN_PROFILE,
        }
    ),
    Role.EMPLOYEE: frozenset(
        {
            Operation.VIEW_PAYMENT,
            Operation.REVIEW_PAYMENT,
            Operation.LIST_ALL_PAYMENTS,
            Operation.LIST_PAYMENTS_BY_STATUS,
            Operation.VIEW_OWN_PROFILE,
        }
    ),
}


class AuthorizationPolicy:
    """Maps a verified role to the operations it may invoke."""

    def __init__(self, permissions: dict[Role, frozenset[Operation]] = PERMISSIONS):
        self.permissions = permissions

    def permits(self, role: Role, operation: Operation) -> bool:
        return operation in self.permissions.get(role, frozenset())

    def require(self, identity: Identity, operation: Operation) -> None:
        if not self.permits(identity.role, operation):
            logger.warning(
                "Denied %s to %s (%s)", operation, identity.username, identity.role
            )
            raise PermissionDenied()

    def can_view(self, identity: Identity, owner_id: str) -> bool:
        # Employees see every application, clients only their own
        if identity.role == Role.EMPLOYEE:
            return True
        return identity.id == owner_id
