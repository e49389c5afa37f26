from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Integer, Text, ForeignKey
from .db import Base


def _new_id() -> str:
	return uuid.uuid4().hex


class User(Base):
	__tablename__ = "users"
	id = Column(String(32), primary_key=True, default=_new_id)
	name = Column(String(128), nullable=False)
	# Stored lower-cased; uniqueness is enforced by the database as well as at signup
	email = Column(String(256), nullable=False, unique=True, index=True)
	password_hash = Column(String(256), nullable=False)
	# Cumulative score, only ever changed through an atomic SQL increment
	score = Column(Integer, default=0, nullable=False)
	bio = Column(String(300), default="", nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class QuizAttempt(Base):
	__tablename__ = "quiz_attempts"
	id = Column(Integer, primary_key=True, autoincrement=True)
	user_id = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)
	topic = Column(String(256), nullable=False)
	course = Column(String(128), nullable=False)
	score = Column(Integer, default=0, nullable=False)
	total = Column(Integer, default=0, nullable=False)
	attempted_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)


class SavedQuiz(Base):
	__tablename__ = "saved_quizzes"
	id = Column(String(32), primary_key=True, default=_new_id)
	user_id = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)
	title = Column(String(200), nullable=False)
	questions_json = Column(Text, nullable=False)  # JSON array of question objects
	saved_at = Column(DateTime, default=datetime.utcnow, nullable=False)
