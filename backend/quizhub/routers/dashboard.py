from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..db import get_db
from ..scoring import list_attempts
from .auth import CurrentUser, get_current_user
from .profile import load_user

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("")
def dashboard(user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
	row = load_user(db, user.id)
	return {
		"name": row.name,
		"email": row.email,
		"score": row.score,
		"attempts": list_attempts(db, row.id),
	}
