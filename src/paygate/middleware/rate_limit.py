from collections import deque
from time import monotonic

from fastapi import HTTPException, Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from paygate.shared import Config, Logger, load_config

logger = Logger(__name__).get_logger()
config: Config = load_config()
config_rate_limit = config.network.rate_limit


class RateLimit(BaseHTTPMiddleware):
    """Rate Limit middleware for FastApi endpoints
    Based loosely on sliding window rate limiting.
    Keyed on the client IP, so login and signup are throttled too.
    """

    def __init__(
        self,
        app,
        dispatch=None,
        timeout_period_s=config_rate_limit.timeout_period,
        max_per_second=config_rate_limit.requests_per_second,
    ):
        super().__init__(app, dispatch)

        # Params
        self.__max_per_second = max_per_second
        self.__timeout_period_s = timeout_period_s

        # Checks
        self.__bucket: dict[str, deque[float]] = {}
        self.__timeout_club: dict[str, float] = {}

        # Time
        self.__now = monotonic()
        self.__last_sweep = self.__now

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        # Skip rate limiting for OPTIONS requests (CORS preflight)
        if request.method == "OPTIONS" or request.client is None:
            return await call_next(request)

        try:
            self.__now = monotonic()
            self.__check(request.client.host)
        except HTTPException as e:
            logger.warning("Rate limited %s on %s", request.client.host, request.url.path)
            return JSONResponse(status_code=e.status_code, content={"detail": e.detail})

        return await call_next(request)

    def __check(self, key: str):
        # if key is in timeout; then reject
        # record the request timestamp
        # lazily prune records older than one second
        # if what remains exceeds `max_per_second` then time out the key

        self.__sweep()
        self.__create_deque(key)
        self.__timeout_check(key)

        queue = self.__bucket[key]
        queue.append(self.__now)

        while self.__now - queue[0] > 1:
            queue.popleft()

        if len(queue) > self.__max_per_second:
            self.__timeout(key)
            raise HTTPException(status_code=429, detail="Too many requests.")

    def __sweep(self):
        # At most once per window, forget clients that have gone quiet
        if self.__now - self.__last_sweep < 1:
            return
        self.__last_sweep = self.__now

        idle = [
            k
            for k, queue in self.__bucket.items()
            if not queue or self.__now - queue[-1] > 1
        ]
        for k in idle:
            del self.__bucket[k]

        served = [
            k
            for k, timestamp in self.__timeout_club.items()
            if self.__now - timestamp > self.__timeout_period_s
        ]
        for k in served:
            del self.__timeout_club[k]

    @property
    def tracked_clients(self) -> int:
        return len(self.__bucket.keys() | self.__timeout_club.keys())

    def __create_deque(self, key: str):
        if key not in self.__bucket:
            self.__bucket[key] = deque()

    def __timeout_check(self, key: str):
        if key not in self.__timeout_club:
            return

        timeout_timestamp = self.__timeout_club[key]

        if self.__now - timeout_timestamp > self.__timeout_period_s:
            del self.__timeout_club[key]
        else:
            raise HTTPException(status_code=429, detail="Too many requests.")

    def __timeout(self, key: str):
        self.__timeout_club[key] = monotonic()
