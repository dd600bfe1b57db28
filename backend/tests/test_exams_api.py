from conftest import headers_for, seed_quiz_set


def _create_exam(client, headers, quiz_set_id, **body):
    payload = {"title": "Final", "durationMinutes": 30}
    payload.update(body)
    return client.post(f"/quiz-sets/{quiz_set_id}/exams", json=payload, headers=headers)


def test_full_exam_flow(client, auth_headers, quiz_set):
    r = _create_exam(client, auth_headers, quiz_set.id, questionCount=5)
    assert r.status_code == 201
    body = r.json()
    assert body["success"] is True
    exam = body["data"]
    assert exam["status"] == "not_started"
    assert exam["totalQuestions"] == 5

    r = client.post(f"/exams/{exam['id']}/start", headers=auth_headers)
    assert r.status_code == 200
    started = r.json()["data"]
    assert len(started["questions"]) == 5
    for q in started["questions"]:
        assert q["options"]
        assert all(set(o) == {"id", "text"} for o in q["options"])
    assert "isCorrect" not in r.text

    answers = [
        {"questionId": q["id"], "selectedOptions": quiz_set.correct[q["id"]]} for q in started["questions"][:4]
    ]
    r = client.post(f"/exams/{exam['id']}/submit", json={"answers": answers}, headers=auth_headers)
    assert r.status_code == 200
    result = r.json()["data"]
    assert result["correctCount"] == 4
    assert result["totalQuestions"] == 5
    assert result["score"] == 80.0

    r = client.get(f"/exams/{exam['id']}/results", headers=auth_headers)
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["exam"]["status"] == "completed"
    assert data["exam"]["score"] == 80.0
    assert data["exam"]["quizSetTitle"]
    assert [a["questionId"] for a in data["answers"]] == [q["id"] for q in started["questions"]]
    assert [a["answered"] for a in data["answers"]] == [True] * 4 + [False]
    assert all(any(o["isCorrect"] for o in a["options"]) for a in data["answers"])

    r = client.get("/exams", headers=auth_headers)
    assert r.status_code == 200
    assert exam["id"] in [e["id"] for e in r.json()["data"]]


def test_error_envelope_and_status_codes(client, auth_headers, other_user, quiz_set):
    r = _create_exam(client, auth_headers, 999999)
    assert r.status_code == 404
    body = r.json()
    assert body["success"] is False
    assert body["errorCode"] == "not_found"
    assert body["message"]
    assert body["requestId"]

    r = _create_exam(client, headers_for(other_user.id), quiz_set.id)
    assert r.status_code == 403
    assert r.json()["errorCode"] == "forbidden"

    r = _create_exam(client, auth_headers, quiz_set.id, durationMinutes=0)
    assert r.status_code == 400
    assert r.json()["errorCode"] == "invalid_argument"

    r = _create_exam(client, auth_headers, quiz_set.id, durationMinutes="30")
    assert r.status_code == 400
    assert r.json()["errorCode"] == "invalid_argument"


def test_state_errors(client, auth_headers, quiz_set):
    exam_id = _create_exam(client, auth_headers, quiz_set.id).json()["data"]["id"]

    r = client.post(f"/exams/{exam_id}/submit", json={"answers": []}, headers=auth_headers)
    assert r.status_code == 400
    assert r.json()["errorCode"] == "invalid_state"

    assert client.post(f"/exams/{exam_id}/start", headers=auth_headers).status_code == 200
    r = client.post(f"/exams/{exam_id}/start", headers=auth_headers)
    assert r.status_code == 400
    assert r.json()["errorCode"] == "invalid_state"


def test_malformed_submission(client, auth_headers, quiz_set):
    exam_id = _create_exam(client, auth_headers, quiz_set.id).json()["data"]["id"]
    client.post(f"/exams/{exam_id}/start", headers=auth_headers)

    r = client.post(f"/exams/{exam_id}/submit", json={"answers": "all of them"}, headers=auth_headers)
    assert r.status_code == 400
    assert r.json()["errorCode"] == "invalid_argument"

    qid = quiz_set.question_ids[0]
    dup = [{"questionId": qid, "selectedOptions": []}, {"questionId": qid, "selectedOptions": []}]
    r = client.post(f"/exams/{exam_id}/submit", json={"answers": dup}, headers=auth_headers)
    assert r.status_code == 400
    assert r.json()["errorCode"] == "invalid_argument"

    # Still open after rejected submissions.
    r = client.post(f"/exams/{exam_id}/submit", json={"answers": []}, headers=auth_headers)
    assert r.status_code == 200


def test_exams_require_auth(client, quiz_set):
    r = client.get("/exams")
    assert r.status_code == 401
    assert r.json()["errorCode"] == "unauthorized"

    r = client.get("/exams", headers={"Authorization": "Bearer not-a-token"})
    assert r.status_code == 401


def test_exam_on_empty_quiz_set(client, db, user, auth_headers):
    seeded = seed_quiz_set(db, owner_id=user.id, n_questions=0)
    r = _create_exam(client, auth_headers, seeded.id)
    assert r.status_code == 400
    assert r.json()["errorCode"] == "invalid_argument"


def test_results_flag_question_deleted_mid_exam(client, db, user, auth_headers):
    seeded = seed_quiz_set(db, owner_id=user.id, n_questions=3)
    exam_id = _create_exam(client, auth_headers, seeded.id).json()["data"]["id"]
    shown = [q["id"] for q in client.post(f"/exams/{exam_id}/start", headers=auth_headers).json()["data"]["questions"]]

    assert client.delete(f"/questions/{shown[1]}", headers=auth_headers).status_code == 200

    answers = [{"questionId": qid, "selectedOptions": seeded.correct[qid]} for qid in shown]
    r = client.post(f"/exams/{exam_id}/submit", json={"answers": answers}, headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["data"]["correctCount"] == 2
    assert r.json()["data"]["score"] == 66.67

    data = client.get(f"/exams/{exam_id}/results", headers=auth_headers).json()["data"]
    assert [a["questionId"] for a in data["answers"]] == shown
    assert [a["removed"] for a in data["answers"]] == [False, True, False]
    assert data["answers"][1]["options"] == []
    assert data["answers"][1]["isCorrect"] is False


def test_exam_start_is_rate_limited_per_user(client, db, user, other_user, auth_headers, quiz_set):
    exam_id = _create_exam(client, auth_headers, quiz_set.id).json()["data"]["id"]

    statuses = [client.post(f"/exams/{exam_id}/start", headers=auth_headers).status_code for _ in range(31)]
    assert statuses[0] == 200
    assert statuses[1:30] == [400] * 29
    assert statuses[30] == 429

    r = client.post(f"/exams/{exam_id}/start", headers=auth_headers)
    assert r.status_code == 429
    assert r.json()["errorCode"] == "rate_limited"
    assert int(r.headers["Retry-After"]) > 0

    # Another user's budget is untouched.
    other = headers_for(other_user.id)
    assert client.post(f"/exams/{exam_id}/start", headers=other).status_code == 403


def test_exam_submit_is_rate_limited(client, auth_headers, quiz_set):
    exam_id = _create_exam(client, auth_headers, quiz_set.id).json()["data"]["id"]

    statuses = [
        client.post(f"/exams/{exam_id}/submit", json={"answers": []}, headers=auth_headers).status_code
        for _ in range(21)
    ]
    assert statuses[:20] == [400] * 20
    assert statuses[20] == 429


def test_rate_limit_can_be_disabled(client, monkeypatch, auth_headers, quiz_set):
    from quizdeck.core.config import settings

    monkeypatch.setattr(settings, "rate_limit_enabled", False)
    exam_id = _create_exam(client, auth_headers, quiz_set.id).json()["data"]["id"]
    statuses = {
        client.post(f"/exams/{exam_id}/submit", json={"answers": []}, headers=auth_headers).status_code
        for _ in range(25)
    }
    assert statuses == {400}
