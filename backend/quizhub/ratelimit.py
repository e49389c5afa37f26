import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests, please try again later."


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
	# SlowAPIMiddleware calls this without awaiting it, so it must stay synchronous
	logger.warning("Rate limit %s exceeded by %s on %s", exc.detail, get_remote_address(request), request.url.path)
	return JSONResponse(status_code=status.HTTP_429_TOO_MANY_REQUESTS, content={"error": RATE_LIMIT_MESSAGE})


def install_rate_limit(app: FastAPI, limit: str) -> Limiter:
	"""Apply ``limit`` (e.g. ``"100/15 minutes"``) per client IP to every route of ``app``."""
	limiter = Limiter(key_func=get_remote_address, default_limits=[limit])
	app.state.limiter = limiter
	app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
	app.add_middleware(SlowAPIMiddleware)
	return limiter
