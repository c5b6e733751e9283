from fastapi import APIRouter

from paygate.models.requests import (
    LoginRequest,
    LoginResponse,
    ProfileView,
    SignupRequest,
    SignupResponse,
)
from paygate.routers.deps import Accounts, CurrentIdentity
from paygate.shared import Logger

logger = Logger(__name__).get_logger()

router = APIRouter(prefix="/user", tags=["user"])


@router.post("/signup", status_code=201, response_model=SignupResponse)
def signup(accounts: Accounts, data: SignupRequest | None = None):
    """
    Register a Client account.
    Sensitive attributes are encrypted before they reach the database and the
    password is stored as a bcrypt hash. Any ``role`` in the body is dropped.
    """
    data = data or SignupRequest()
    logger.debug("Signup request for %s", data.username)
    user = accounts.register(data.fields())
    return SignupResponse(message="User created successfully", user=user)


@router.post("/login", response_model=LoginResponse)
def login(accounts: Accounts, data: LoginRequest | None = None):
    data = data or LoginRequest()
    logger.debug("Login request for %s", data.username)
    token, user = accounts.login(data.fields())
    return LoginResponse(message="Authentication successful", token=token, user=user)


@router.get("/me", response_model=ProfileView)
def me(identity: CurrentIdentity, accounts: Accounts):
    return accounts.profile(identity)
