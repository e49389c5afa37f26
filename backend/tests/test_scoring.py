import threading

import pytest

from quizhub.db import SessionLocal
from quizhub.errors import LengthMismatch, NotFound
from quizhub.models import QuizAttempt, User
from quizhub.scoring import list_attempts, record_attempt, score


def _make_user(db, user_id="u1", email="u1@example.com"):
    db.add(User(id=user_id, name="U", email=email, password_hash="x"))
    db.commit()


def test_score_counts_index_wise_matches():
    assert score(["A", "B", "C"], ["A", "X", "C"]) == 2


def test_score_edge_cases():
    assert score([], []) == 0
    assert score([None, "b"], ["a", "b"]) == 1
    assert score(["a", "b"], ["b", "a"]) == 0


def test_score_length_mismatch():
    with pytest.raises(LengthMismatch):
        score(["A"], ["A", "B"])


def test_record_attempt_appends_and_increments(db_session):
    _make_user(db_session)
    record_attempt(db_session, "u1", "Fractions", "Math", 3, 5)
    record_attempt(db_session, "u1", "Cells", "Biology", 4, 5)

    db_session.expire_all()
    assert db_session.get(User, "u1").score == 7
    attempts = list_attempts(db_session, "u1")
    assert [a["topic"] for a in attempts] == ["Cells", "Fractions"]
    assert attempts[0]["score"] == 4
    assert attempts[0]["total"] == 5
    assert attempts[0]["course"] == "Biology"


def test_record_attempt_for_unknown_user_writes_nothing(db_session):
    with pytest.raises(NotFound):
        record_attempt(db_session, "ghost", "T", "C", 1, 1)
    assert db_session.query(QuizAttempt).count() == 0


def test_concurrent_submissions_do_not_lose_updates(db_session):
    _make_user(db_session)
    errors = []
    start = threading.Barrier(2)

    def submit(points):
        db = SessionLocal()
        try:
            start.wait()
            record_attempt(db, "u1", "Topic", "Course", points, 10)
        except Exception as err:  # surfaced through the errors list below
            errors.append(err)
        finally:
            db.close()

    threads = [threading.Thread(target=submit, args=(points,)) for points in (5, 3)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    db_session.expire_all()
    assert db_session.get(User, "u1").score == 8
    assert db_session.query(QuizAttempt).filter(QuizAttempt.user_id == "u1").count() == 2
