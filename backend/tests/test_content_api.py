from sqlalchemy import func, select

from quizdeck.db import session as session_module
from quizdeck.models.quiz_set import Option

from conftest import headers_for


def _question(text="What is 2 + 2?", **overrides):
    body = {
        "questionText": text,
        "questionType": "single_choice",
        "explanation": "Arithmetic.",
        "options": [{"text": "4", "isCorrect": True}, {"text": "5", "isCorrect": False}],
    }
    body.update(overrides)
    return body


def test_quiz_set_crud(client, auth_headers):
    r = client.post("/quiz-sets", json={"title": "  Networking  ", "description": "OSI"}, headers=auth_headers)
    assert r.status_code == 201
    qs = r.json()["data"]
    assert qs["title"] == "Networking"
    assert qs["questionCount"] == 0

    r = client.put(f"/quiz-sets/{qs['id']}", json={"title": "Networking 101"}, headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["data"]["title"] == "Networking 101"

    r = client.get("/quiz-sets", headers=auth_headers)
    assert qs["id"] in [x["id"] for x in r.json()["data"]]

    r = client.delete(f"/quiz-sets/{qs['id']}", headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["success"] is True
    assert client.get(f"/quiz-sets/{qs['id']}", headers=auth_headers).status_code == 404


def test_quiz_set_requires_title(client, auth_headers):
    r = client.post("/quiz-sets", json={"title": " "}, headers=auth_headers)
    assert r.status_code == 400
    assert r.json()["errorCode"] == "invalid_argument"


def test_quiz_sets_are_owner_only(client, auth_headers, other_user, quiz_set):
    other = headers_for(other_user.id)
    assert client.get(f"/quiz-sets/{quiz_set.id}", headers=other).status_code == 403
    assert client.get(f"/quiz-sets/{quiz_set.id}/questions", headers=other).status_code == 403
    assert client.delete(f"/quiz-sets/{quiz_set.id}", headers=other).status_code == 403
    assert quiz_set.id not in [x["id"] for x in client.get("/quiz-sets", headers=other).json()["data"]]


def test_question_create_update_delete(client, auth_headers, quiz_set):
    r = client.post(f"/quiz-sets/{quiz_set.id}/questions", json=_question(), headers=auth_headers)
    assert r.status_code == 201
    q = r.json()["data"]
    assert q["questionType"] == "single_choice"
    assert [o["isCorrect"] for o in q["options"]] == [True, False]

    body = _question(
        "Pick the even numbers",
        questionType="multi_choice",
        options=[
            {"text": "2", "isCorrect": True},
            {"text": "3", "isCorrect": False},
            {"text": "4", "isCorrect": True},
        ],
    )
    r = client.put(f"/questions/{q['id']}", json=body, headers=auth_headers)
    assert r.status_code == 200
    updated = r.json()["data"]
    assert updated["questionText"] == "Pick the even numbers"
    assert updated["questionType"] == "multi_choice"
    assert [o["text"] for o in updated["options"]] == ["2", "3", "4"]

    # Replaced options do not linger.
    with session_module.SessionLocal() as s:
        n = s.scalar(select(func.count(Option.id)).where(Option.question_id == q["id"]))
    assert n == 3

    r = client.delete(f"/questions/{q['id']}", headers=auth_headers)
    assert r.status_code == 200
    assert client.put(f"/questions/{q['id']}", json=body, headers=auth_headers).status_code == 404


def test_question_validation(client, auth_headers, quiz_set):
    url = f"/quiz-sets/{quiz_set.id}/questions"
    bad = [
        _question(""),
        _question(options=[]),
        _question(options=[{"text": "", "isCorrect": True}, {"text": "B", "isCorrect": False}]),
        _question(options=[{"text": "A", "isCorrect": False}, {"text": "B", "isCorrect": False}]),
        _question(questionType="essay"),
    ]
    for body in bad:
        r = client.post(url, json=body, headers=auth_headers)
        assert r.status_code == 400, body
        assert r.json()["errorCode"] == "invalid_argument"


def test_deleting_quiz_set_cascades(client, db, user, auth_headers):
    r = client.post("/quiz-sets", json={"title": "Temp"}, headers=auth_headers)
    qs_id = r.json()["data"]["id"]
    q_id = client.post(f"/quiz-sets/{qs_id}/questions", json=_question(), headers=auth_headers).json()["data"]["id"]

    client.delete(f"/quiz-sets/{qs_id}", headers=auth_headers)
    with session_module.SessionLocal() as s:
        assert s.scalar(select(func.count(Option.id)).where(Option.question_id == q_id)) == 0


def test_practice_submit_and_stats(client, auth_headers, quiz_set):
    qid = quiz_set.question_ids[0]

    r = client.post(f"/questions/{qid}/submit", json={"selectedOptions": quiz_set.correct[qid]}, headers=auth_headers)
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["isCorrect"] is True
    assert data["correctOptions"] == quiz_set.correct[qid]
    assert data["explanation"]

    r = client.post(
        f"/questions/{qid}/submit", json={"selectedOptions": quiz_set.wrong[qid][:1]}, headers=auth_headers
    )
    assert r.json()["data"]["isCorrect"] is False

    r = client.get(f"/quiz-sets/{quiz_set.id}/stats", headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["data"] == {"totalAttempts": 2, "correctCount": 1, "accuracy": 50.0}

    r = client.get("/wrong-questions/stats", headers=auth_headers)
    assert r.json()["data"]["totalWrong"] == 1


def test_practice_on_foreign_question(client, other_user, quiz_set):
    qid = quiz_set.question_ids[0]
    r = client.post(f"/questions/{qid}/submit", json={"selectedOptions": []}, headers=headers_for(other_user.id))
    assert r.status_code == 404
