from __future__ import annotations


class AppError(Exception):
	"""Error that reaches the client as ``{"error": message}`` with ``status_code``."""

	status_code: int = 500

	def __init__(self, message: str, *, status_code: int | None = None) -> None:
		super().__init__(message)
		self.message = message
		if status_code is not None:
			self.status_code = status_code


class BadRequest(AppError):
	status_code = 400


class LengthMismatch(BadRequest):
	pass


class Unauthenticated(AppError):
	status_code = 401


class NotFound(AppError):
	status_code = 404


class Conflict(AppError):
	status_code = 409


# Token errors; the auth gate turns InvalidToken into Unauthenticated
class InvalidToken(Exception):
	pass


class MissingSecret(RuntimeError):
	pass


# Generation pipeline errors never reach the client, routes fall back instead
class GenerationUnavailable(Exception):
	pass


class NoValidQuestions(Exception):
	pass
