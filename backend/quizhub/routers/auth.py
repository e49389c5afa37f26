from typing import Optional
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from passlib.context import CryptContext
from pydantic import BaseModel, EmailStr, Field, field_validator
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..db import get_db
from ..errors import Conflict, InvalidToken, Unauthenticated
from ..models import User
from ..settings import settings
from ..tokens import TokenService

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)

logging.getLogger('passlib').setLevel(logging.ERROR)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.bcrypt_rounds)
bearer_scheme = HTTPBearer(auto_error=False)


class CurrentUser(BaseModel):
	id: str


class AuthResponse(BaseModel):
	token: str
	name: str
	id: str


def _lower_email(value: str) -> str:
	# EmailStr only normalizes the domain; accounts are keyed on the fully lower-cased address
	return value.lower()


class SignupRequest(BaseModel):
	name: str = Field(max_length=128)
	email: EmailStr
	password: str = Field(min_length=6)

	@field_validator("name")
	@classmethod
	def name_required(cls, value: str) -> str:
		value = value.strip()
		if not value:
			raise ValueError("name is required")
		return value

	@field_validator("email")
	@classmethod
	def valid_email(cls, value: str) -> str:
		return _lower_email(value)


class LoginRequest(BaseModel):
	email: EmailStr
	password: str = Field(min_length=1)

	@field_validator("email")
	@classmethod
	def valid_email(cls, value: str) -> str:
		return _lower_email(value)


def _bcrypt_secret(password: str) -> str:
	# bcrypt only looks at the first 72 bytes
	password_bytes = password.encode('utf-8')
	if len(password_bytes) > 72:
		password_bytes = password_bytes[:72]
	return password_bytes.decode('utf-8', errors='ignore')


def hash_password(password: str) -> str:
	return pwd_context.hash(_bcrypt_secret(password))


def verify_password(plain_password: str, hashed_password: str) -> bool:
	return pwd_context.verify(_bcrypt_secret(plain_password), hashed_password)


def get_token_service(request: Request) -> TokenService:
	return request.app.state.token_service


def get_current_user(
	request: Request,
	credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
	tokens: TokenService = Depends(get_token_service),
) -> CurrentUser:
	if credentials is None:
		raise Unauthenticated("Please login!")
	try:
		user_id = tokens.verify(credentials.credentials)
	except InvalidToken as err:
		logger.info("Rejected bearer token: %s", err)
		raise Unauthenticated("Invalid token!")
	request.state.user_id = user_id
	return CurrentUser(id=user_id)


@router.post("/signup", response_model=AuthResponse, status_code=201)
def signup(req: SignupRequest, db: Session = Depends(get_db), tokens: TokenService = Depends(get_token_service)):
	existing = db.query(User).filter(User.email == req.email).first()
	if existing:
		raise Conflict("Email is already registered")
	row = User(name=req.name, email=req.email, password_hash=hash_password(req.password), score=0, bio="")
	db.add(row)
	try:
		db.commit()
	except IntegrityError:
		# lost a race with a concurrent signup for the same email
		db.rollback()
		raise Conflict("Email is already registered")
	db.refresh(row)
	logger.info("Created user id=%s", row.id)
	return AuthResponse(token=tokens.issue(row.id), name=row.name, id=row.id)


@router.post("/login", response_model=AuthResponse)
def login(req: LoginRequest, db: Session = Depends(get_db), tokens: TokenService = Depends(get_token_service)):
	user = db.query(User).filter(User.email == req.email).first()
	if not user or not verify_password(req.password, user.password_hash):
		raise Unauthenticated("Invalid email or password")
	return AuthResponse(token=tokens.issue(user.id), name=user.name, id=user.id)
