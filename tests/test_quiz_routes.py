from datetime import datetime, timedelta

import pytz

from quiz_arena.models.quiz_attempt import QuizAttemptModel
from quiz_arena.models.submission import SubmissionModel

from conftest import SAMPLE_QUESTIONS

ALL_CORRECT = {q["text"]: q["correct_answer"] for q in SAMPLE_QUESTIONS}


def _unlock(client, user, quiz_id, password="quizpass"):
    return client.post(
        f"/api/quizzes/get/{quiz_id}", json={"password": password}, headers=user["headers"]
    )


def test_teacher_creates_quiz(client, make_user, make_quiz):
    teacher = make_user("teacher")
    quiz = make_quiz(teacher, title="  Science  ")
    assert quiz["title"] == "Science"
    assert quiz["question_count"] == 3
    assert quiz["created_by"] == teacher["user_id"]
    assert quiz["author_name"] == teacher["name"]


def test_student_cannot_create_quiz(client, make_user):
    student = make_user("student")
    resp = client.post(
        "/api/quizzes/create",
        json={"title": "T", "duration": 30, "password": "pass1", "questions": SAMPLE_QUESTIONS},
        headers=student["headers"],
    )
    assert resp.status_code == 403


def test_quiz_validation(client, make_user):
    teacher = make_user("teacher")

    def create(**overrides):
        payload = {"title": "T", "duration": 30, "password": "pass1", "questions": SAMPLE_QUESTIONS}
        payload.update(overrides)
        return client.post("/api/quizzes/create", json=payload, headers=teacher["headers"])

    bad_answer = [{"text": "Q", "options": ["a", "b"], "correct_answer": "c"}]
    one_option = [{"text": "Q", "options": ["a"], "correct_answer": "a"}]
    duplicate = [{"text": "Q", "options": ["a", "a"], "correct_answer": "a"}]
    empty_option = [{"text": "Q", "options": ["a", " "], "correct_answer": "a"}]

    assert create(questions=bad_answer).status_code == 400
    assert create(questions=one_option).status_code == 400
    assert create(questions=duplicate).status_code == 400
    assert create(questions=empty_option).status_code == 400
    assert create(questions=[]).status_code == 400
    assert create(title="").status_code == 400
    assert create(title="x" * 201).status_code == 400
    assert create(duration=0).status_code == 400
    assert create().status_code == 201


def test_listing_has_no_question_content(client, make_user, make_quiz):
    teacher = make_user("teacher")
    student = make_user("student")
    make_quiz(teacher)

    assert client.get("/api/quizzes").status_code == 401
    resp = client.get("/api/quizzes", headers=student["headers"])
    assert resp.status_code == 200
    [entry] = resp.json()
    assert "questions" not in entry
    assert "password_hash" not in entry


def test_wrong_password_returns_no_questions(client, make_user, make_quiz):
    teacher = make_user("teacher")
    student = make_user("student")
    quiz = make_quiz(teacher)

    resp = _unlock(client, student, quiz["quiz_id"], password="not-it")
    assert resp.status_code == 403
    assert "questions" not in resp.json()


def test_unknown_quiz_is_404(client, make_user):
    student = make_user("student")
    assert _unlock(client, student, "missing").status_code == 404
    resp = client.post(
        "/api/quizzes/submit",
        json={"quiz_id": "missing", "answers": [{"question_id": "x", "selected_option": "y"}]},
        headers=student["headers"],
    )
    assert resp.status_code == 404


def test_unlocked_quiz_hides_correct_answers(client, make_user, make_quiz):
    teacher = make_user("teacher")
    student = make_user("student")
    quiz = make_quiz(teacher, duration=90)

    resp = _unlock(client, student, quiz["quiz_id"])
    assert resp.status_code == 200
    body = resp.json()
    assert body["duration"] == 90
    assert [q["text"] for q in body["questions"]] == [q["text"] for q in SAMPLE_QUESTIONS]
    assert [q["options"] for q in body["questions"]] == [q["options"] for q in SAMPLE_QUESTIONS]
    for question in body["questions"]:
        assert set(question) == {"question_id", "text", "options"}

    started = datetime.fromisoformat(body["started_at"])
    deadline = datetime.fromisoformat(body["deadline"])
    assert deadline - started == timedelta(seconds=90)


def test_submission_score(client, make_user, make_quiz, take_quiz):
    teacher = make_user("teacher")
    student = make_user("student")
    quiz = make_quiz(teacher)

    choices = dict(ALL_CORRECT)
    choices["Largest planet?"] = "Mars"
    resp = take_quiz(student, quiz["quiz_id"], choices)
    assert resp.status_code == 200
    body = resp.json()
    assert body["score"] == 2
    assert body["total"] == 3
    assert body["submission"]["student_id"] == student["user_id"]
    assert len(body["submission"]["answers"]) == 3

    me = client.get("/api/auth/me", headers=student["headers"]).json()["user"]
    assert me["last_score"] == 2


def test_partial_answers_are_scored(client, make_user, make_quiz, take_quiz):
    teacher = make_user("teacher")
    student = make_user("student")
    quiz = make_quiz(teacher)

    resp = take_quiz(student, quiz["quiz_id"], {"2 + 2 = ?": "4"})
    assert resp.json()["score"] == 1


def test_stored_score_matches_correct_answers(client, make_user, make_quiz, take_quiz, db_session):
    teacher = make_user("teacher")
    quiz = make_quiz(teacher)
    picks = [
        ALL_CORRECT,
        {"2 + 2 = ?": "3", "Capital of France?": "Paris", "Largest planet?": "Venus"},
        {"2 + 2 = ?": "5", "Capital of France?": "Rome", "Largest planet?": "Mars"},
    ]
    for choices in picks:
        assert take_quiz(make_user("student"), quiz["quiz_id"], choices).status_code == 200

    correct = {q["text"]: q["correct_answer"] for q in SAMPLE_QUESTIONS}
    unlocked = _unlock(client, make_user("student"), quiz["quiz_id"]).json()["questions"]
    correct_by_id = {q["question_id"]: correct[q["text"]] for q in unlocked}

    submissions = db_session.query(SubmissionModel).all()
    assert sorted(s.score for s in submissions) == [0, 1, 3]
    for submission in submissions:
        expected = sum(
            1 for a in submission.answers
            if a["selected_option"] == correct_by_id[a["question_id"]]
        )
        assert submission.score == expected


def test_unknown_question_rejects_whole_submission(client, make_user, make_quiz, db_session):
    teacher = make_user("teacher")
    student = make_user("student")
    quiz = make_quiz(teacher)
    questions = _unlock(client, student, quiz["quiz_id"]).json()["questions"]

    resp = client.post(
        "/api/quizzes/submit",
        json={
            "quiz_id": quiz["quiz_id"],
            "answers": [
                {"question_id": questions[0]["question_id"], "selected_option": "4"},
                {"question_id": "bogus-id", "selected_option": "4"},
            ],
        },
        headers=student["headers"],
    )
    assert resp.status_code == 400
    assert "bogus-id" in resp.json()["detail"]
    assert db_session.query(SubmissionModel).count() == 0

    me = client.get("/api/auth/me", headers=student["headers"]).json()["user"]
    assert me["last_score"] is None


def test_question_from_another_quiz_is_rejected(client, make_user, make_quiz):
    teacher = make_user("teacher")
    student = make_user("student")
    quiz_a = make_quiz(teacher, title="A")
    quiz_b = make_quiz(teacher, title="B")
    foreign = _unlock(client, student, quiz_b["quiz_id"]).json()["questions"][0]
    _unlock(client, student, quiz_a["quiz_id"])

    resp = client.post(
        "/api/quizzes/submit",
        json={
            "quiz_id": quiz_a["quiz_id"],
            "answers": [{"question_id": foreign["question_id"], "selected_option": "4"}],
        },
        headers=student["headers"],
    )
    assert resp.status_code == 400


def test_non_string_option_is_rejected(client, make_user, make_quiz):
    teacher = make_user("teacher")
    student = make_user("student")
    quiz = make_quiz(teacher)
    questions = _unlock(client, student, quiz["quiz_id"]).json()["questions"]

    for bad in (4, None, ["4"]):
        resp = client.post(
            "/api/quizzes/submit",
            json={
                "quiz_id": quiz["quiz_id"],
                "answers": [{"question_id": questions[0]["question_id"], "selected_option": bad}],
            },
            headers=student["headers"],
        )
        assert resp.status_code == 400


def test_empty_answers_rejected(client, make_user, make_quiz):
    teacher = make_user("teacher")
    student = make_user("student")
    quiz = make_quiz(teacher)
    _unlock(client, student, quiz["quiz_id"])
    resp = client.post(
        "/api/quizzes/submit",
        json={"quiz_id": quiz["quiz_id"], "answers": []},
        headers=student["headers"],
    )
    assert resp.status_code == 400


def test_submit_requires_unlocked_quiz(client, make_user, make_quiz, take_quiz):
    teacher = make_user("teacher")
    student = make_user("student")
    quiz = make_quiz(teacher)
    questions = _unlock(client, make_user("student"), quiz["quiz_id"]).json()["questions"]
    body = {
        "quiz_id": quiz["quiz_id"],
        "answers": [{"question_id": questions[0]["question_id"], "selected_option": "4"}],
    }

    resp = client.post("/api/quizzes/submit", json=body, headers=student["headers"])
    assert resp.status_code == 400

    # An attempt is consumed by its submission
    assert take_quiz(student, quiz["quiz_id"], ALL_CORRECT).status_code == 200
    resp = client.post("/api/quizzes/submit", json=body, headers=student["headers"])
    assert resp.status_code == 400


def test_late_submission_is_rejected(client, make_user, make_quiz, db_session):
    teacher = make_user("teacher")
    student = make_user("student")
    quiz = make_quiz(teacher, duration=30)
    questions = _unlock(client, student, quiz["quiz_id"]).json()["questions"]

    expired = (datetime.now(pytz.utc) - timedelta(minutes=5)).isoformat()
    db_session.query(QuizAttemptModel).update({QuizAttemptModel.deadline: expired})
    db_session.commit()

    resp = client.post(
        "/api/quizzes/submit",
        json={
            "quiz_id": quiz["quiz_id"],
            "answers": [{"question_id": questions[0]["question_id"], "selected_option": "4"}],
        },
        headers=student["headers"],
    )
    assert resp.status_code == 400
    assert "closed" in resp.json()["detail"]
    assert db_session.query(SubmissionModel).count() == 0


def test_only_students_submit(client, make_user, make_quiz, take_quiz):
    teacher = make_user("teacher")
    quiz = make_quiz(teacher)
    resp = take_quiz(teacher, quiz["quiz_id"], ALL_CORRECT)
    assert resp.status_code == 403


def test_last_score_is_most_recent_not_best(client, make_user, make_quiz, take_quiz):
    teacher = make_user("teacher")
    student = make_user("student")
    quiz = make_quiz(teacher)

    take_quiz(student, quiz["quiz_id"], ALL_CORRECT)
    take_quiz(student, quiz["quiz_id"], {"2 + 2 = ?": "4"})

    me = client.get("/api/auth/me", headers=student["headers"]).json()["user"]
    assert me["last_score"] == 1

    history = client.get("/api/quizzes/submissions/me", headers=student["headers"]).json()
    assert [s["score"] for s in history] == [1, 3]
    assert history[0]["quiz_title"] == quiz["title"]


def test_quiz_submissions_visible_to_author_only(client, make_user, make_quiz, take_quiz):
    author = make_user("teacher")
    other_teacher = make_user("teacher")
    admin = make_user("admin")
    student = make_user("student")
    quiz = make_quiz(author)
    take_quiz(student, quiz["quiz_id"], ALL_CORRECT)

    url = f"/api/quizzes/{quiz['quiz_id']}/submissions"
    resp = client.get(url, headers=author["headers"])
    assert resp.status_code == 200
    [entry] = resp.json()
    assert entry["student_name"] == student["name"]
    assert entry["score"] == 3

    assert client.get(url, headers=admin["headers"]).status_code == 200
    assert client.get(url, headers=other_teacher["headers"]).status_code == 403
    assert client.get(url, headers=student["headers"]).status_code == 403
    assert client.get("/api/quizzes/missing/submissions", headers=author["headers"]).status_code == 404


def test_reunlock_keeps_the_original_deadline(client, make_user, make_quiz, db_session):
    teacher = make_user("teacher")
    student = make_user("student")
    quiz = make_quiz(teacher, duration=30)

    first = _unlock(client, student, quiz["quiz_id"]).json()
    second = _unlock(client, student, quiz["quiz_id"]).json()
    assert second["started_at"] == first["started_at"]
    assert second["deadline"] == first["deadline"]

    open_attempts = (
        db_session.query(QuizAttemptModel)
        .filter(QuizAttemptModel.closed_at.is_(None))
        .count()
    )
    assert open_attempts == 1


def test_reunlock_after_deadline_cannot_extend_window(client, make_user, make_quiz, db_session):
    teacher = make_user("teacher")
    student = make_user("student")
    quiz = make_quiz(teacher, duration=30)
    _unlock(client, student, quiz["quiz_id"])

    expired = (datetime.now(pytz.utc) - timedelta(hours=1)).isoformat()
    db_session.query(QuizAttemptModel).update({QuizAttemptModel.deadline: expired})
    db_session.commit()

    body = _unlock(client, student, quiz["quiz_id"]).json()
    assert body["deadline"] == expired

    resp = client.post(
        "/api/quizzes/submit",
        json={
            "quiz_id": quiz["quiz_id"],
            "answers": [{"question_id": body["questions"][0]["question_id"], "selected_option": "4"}],
        },
        headers=student["headers"],
    )
    assert resp.status_code == 400
    assert db_session.query(SubmissionModel).count() == 0

    # The rejected attempt is closed; unlocking again starts a fresh one
    fresh = _unlock(client, student, quiz["quiz_id"]).json()
    assert fresh["deadline"] != expired
    db_session.expire_all()
    assert db_session.query(QuizAttemptModel).count() == 2
    assert (
        db_session.query(QuizAttemptModel)
        .filter(QuizAttemptModel.closed_at.is_(None))
        .count()
    ) == 1


def test_attempt_is_closed_by_its_submission(client, make_user, make_quiz, take_quiz, db_session):
    teacher = make_user("teacher")
    student = make_user("student")
    quiz = make_quiz(teacher)
    take_quiz(student, quiz["quiz_id"], ALL_CORRECT)

    [attempt] = db_session.query(QuizAttemptModel).all()
    assert attempt.closed_at is not None
    assert attempt.submission_id is not None
