from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..db import get_db
from ..errors import BadRequest, NotFound
from ..models import User
from ..scoring import list_attempts
from .auth import CurrentUser, get_current_user

router = APIRouter(prefix="/profile", tags=["profile"])

BIO_MAX_LENGTH = 300


class UpdateProfileRequest(BaseModel):
	# Optional here so a missing name gets the same message as a blank one
	name: Optional[str] = None
	bio: Optional[str] = None


def load_user(db: Session, user_id: str) -> User:
	user = db.get(User, user_id)
	if not user:
		raise NotFound("User not found")
	return user


@router.get("/me")
def me(user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)) -> Dict[str, Any]:
	row = load_user(db, user.id)
	return {
		"id": row.id,
		"name": row.name,
		"email": row.email,
		"score": row.score,
		"bio": row.bio,
		"attempts": list_attempts(db, row.id),
	}


@router.put("")
def update_profile(req: UpdateProfileRequest, user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
	name = (req.name or "").strip()
	if not name:
		raise BadRequest("Name is required and must be a string")
	if len(name) > 128:
		raise BadRequest("Name must be at most 128 characters")
	bio = (req.bio or "").strip()
	if len(bio) > BIO_MAX_LENGTH:
		raise BadRequest(f"Bio must be at most {BIO_MAX_LENGTH} characters")
	row = load_user(db, user.id)
	row.name = name
	row.bio = bio
	db.commit()
	return {"message": "Profile updated successfully"}
