from __future__ import annotations
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from .errors import InvalidToken, MissingSecret


def _resolve_expiry(issued_at: datetime, minutes: Optional[int]) -> datetime:
	"""Return a safe JWT expiry timestamp.

	Non-positive or missing lifetimes fall back to 30 days; an overflowing
	lifetime is capped at ``datetime.max`` rather than raising.
	"""
	if isinstance(minutes, int) and minutes > 0:
		delta = timedelta(minutes=minutes)
	else:
		delta = timedelta(days=30)
	try:
		return issued_at + delta
	except OverflowError:
		return datetime.max.replace(tzinfo=timezone.utc)


class TokenService:
	"""Issues and verifies stateless bearer tokens.

	Tokens carry the user id (``sub``) and the issue time (``iat``) and are
	signed with the server-held secret. There is no revocation list: rotating
	the secret invalidates every outstanding token.
	"""

	def __init__(self, secret: Optional[str], *, algorithm: str = "HS256", expire_minutes: Optional[int] = None) -> None:
		if not secret:
			raise MissingSecret("JWT_SECRET_KEY is not configured")
		self._secret = secret
		self.algorithm = algorithm
		self.expire_minutes = expire_minutes

	def issue(self, user_id: str, *, now: Optional[datetime] = None) -> str:
		issued_at = now or datetime.now(timezone.utc)
		expire = _resolve_expiry(issued_at, self.expire_minutes)
		claims = {
			"sub": user_id,
			"iat": int(issued_at.timestamp()),
			"exp": int(expire.timestamp()),
		}
		return jwt.encode(claims, self._secret, algorithm=self.algorithm)

	def verify(self, token: str) -> str:
		if not token:
			raise InvalidToken("token is empty")
		try:
			payload = jwt.decode(token, self._secret, algorithms=[self.algorithm])
		except JWTError as err:
			raise InvalidToken(str(err)) from err
		user_id = payload.get("sub")
		if not isinstance(user_id, str) or not user_id:
			raise InvalidToken("token has no subject")
		return user_id
