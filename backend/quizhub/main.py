from contextlib import asynccontextmanager
import logging
import time

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .db import Base, engine, check_database
from .errors import AppError
from .llm_client import CompletionClient
from .ratelimit import install_rate_limit
from .settings import settings
from .tokens import TokenService
from .routers import auth
from .routers import dashboard
from .routers import platform
from .routers import profile
from .routers import quiz

logging.basicConfig(
	level=getattr(logging, settings.log_level.upper(), logging.INFO),
	format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
	# Refuse to serve when the database is unreachable
	check_database()
	Base.metadata.create_all(bind=engine)
	app.state.token_service = TokenService(
		settings.jwt_secret_key,
		algorithm=settings.jwt_algorithm,
		expire_minutes=settings.access_token_expire_minutes,
	)
	app.state.llm_client = CompletionClient()
	logger.info("QuizHub API ready on port %s", settings.port)
	try:
		yield
	finally:
		await app.state.llm_client.aclose()
		logger.info("QuizHub API stopped")


app = FastAPI(title="QuizHub API", lifespan=lifespan)


# Innermost middleware, so unexpected-error responses still pass through CORSMiddleware
@app.middleware("http")
async def catch_unhandled_errors(request: Request, call_next):
	try:
		return await call_next(request)
	except Exception as exc:
		logger.error("Unhandled exception during %s %s", request.method, request.url.path, exc_info=exc)
		return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Something went wrong!!")


install_rate_limit(app, settings.rate_limit)
app.add_middleware(
	CORSMiddleware,
	allow_origins=[settings.frontend_url],
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)
app.include_router(auth.router)
app.include_router(profile.router)
app.include_router(dashboard.router)
app.include_router(quiz.router)
app.include_router(platform.router)


@app.middleware("http")
async def log_requests(request: Request, call_next):
	started = time.perf_counter()
	response = await call_next(request)
	elapsed_ms = (time.perf_counter() - started) * 1000
	logger.info("%s %s -> %s (%.1f ms)", request.method, request.url.path, response.status_code, elapsed_ms)
	return response


def _error(status_code: int, message: str) -> JSONResponse:
	return JSONResponse(status_code=status_code, content={"error": message})


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
	return _error(exc.status_code, exc.message)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
	return _error(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
	problems = []
	for err in exc.errors():
		loc = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
		problems.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
	return _error(status.HTTP_400_BAD_REQUEST, "; ".join(problems) or "Invalid request")


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
	logger.error(
		"Database error during %s %s (user_id=%s)",
		request.method,
		request.url.path,
		getattr(request.state, "user_id", None),
		exc_info=exc,
	)
	return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


@app.get("/")
def root():
	return {"status": "ok", "message": "QuizHub backend is running"}


@app.get("/health")
def health():
	try:
		check_database()
	except SQLAlchemyError as err:
		logger.error("Health check could not reach the database: %s", err)
		return JSONResponse(
			status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
			content={"status": "degraded", "db": "disconnected"},
		)
	return {"status": "ok", "db": "connected"}


def run() -> None:
	import uvicorn

	uvicorn.run(
		"quizhub.main:app",
		host=settings.host,
		port=settings.port,
		log_level=settings.log_level.lower(),
	)


if __name__ == "__main__":
	run()
