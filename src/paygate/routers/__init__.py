from .auth import router as auth_router
from .payments import router as payments_router

_routers = [auth_router, payments_router]

__all__ = ["get_routers"]


def get_routers():
    return _routers
