from .rate_limit import RateLimit
from .security_headers import SecurityHeaders

__all__ = ["RateLimit", "SecurityHeaders"]
