import pytest

from numbly.config import settings
from numbly.models import QuizAttempt, QuizQuestion


def new_question(**overrides):
    body = {
        "question": "  What is 7 x 8?  ",
        "options": ["54", "56", "58", "64"],
        "correctAnswer": 1,
        "explanation": "7 x 8 = 56",
        "topic": "multiplication",
        "difficulty": "Intermediate",
    }
    body.update(overrides)
    return body


class TestCreate:
    def test_creates_and_trims(self, client):
        response = client.post("/api/quiz-questions", json=new_question())

        assert response.status_code == 201
        data = response.json()
        assert data["question"] == "What is 7 x 8?"
        assert data["options"] == ["54", "56", "58", "64"]
        assert data["correctAnswer"] == 1
        assert "createdAt" in data

    @pytest.mark.parametrize("overrides,code", [
        ({"question": "   "}, "INVALID_QUESTION"),
        ({"options": ["1", "2", "3"]}, "INVALID_OPTIONS"),
        ({"options": ["1", "2", "3", " "]}, "INVALID_OPTIONS"),
        ({"correctAnswer": 4}, "INVALID_CORRECT_ANSWER"),
        ({"correctAnswer": "1"}, "INVALID_CORRECT_ANSWER"),
        ({"difficulty": "Expert"}, "INVALID_DIFFICULTY"),
        ({"explanation": ""}, "INVALID_EXPLANATION"),
    ])
    def test_validation(self, client, overrides, code):
        response = client.post("/api/quiz-questions", json=new_question(**overrides))

        assert response.status_code == 400
        assert response.json()["code"] == code

    def test_missing_field(self, client):
        body = new_question()
        del body["topic"]

        response = client.post("/api/quiz-questions", json=body)

        assert response.status_code == 400
        assert response.json()["code"] == "MISSING_TOPIC"


class TestRead:
    def test_get_by_id(self, client, make_question):
        question = make_question()

        response = client.get(f"/api/quiz-questions?id={question.id}")

        assert response.status_code == 200
        assert response.json()["id"] == question.id

    def test_get_missing(self, client):
        response = client.get("/api/quiz-questions?id=999")

        assert response.status_code == 404
        assert response.json() == {"error": "Quiz question not found", "code": "NOT_FOUND"}

    def test_invalid_id(self, client):
        response = client.get("/api/quiz-questions?id=abc")

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_ID"

    def test_list_filters_and_search(self, client, make_question):
        make_question(topic="addition", difficulty="Beginner", text="What is 2 + 2?")
        make_question(topic="addition", difficulty="Advanced", text="What is 250 + 475?")
        make_question(topic="division", difficulty="Beginner", text="What is 8 / 2?")

        by_topic = client.get("/api/quiz-questions?topic=addition").json()
        by_both = client.get("/api/quiz-questions?topic=addition&difficulty=Advanced").json()
        searched = client.get("/api/quiz-questions?search=8 / 2").json()

        assert len(by_topic) == 2
        assert [q["question"] for q in by_both] == ["What is 250 + 475?"]
        assert [q["topic"] for q in searched] == ["division"]

    def test_search_treats_wildcards_literally(self, client, make_question):
        make_question(text="What is 50% of 10?")
        make_question(text="What is 500 / 5?")
        make_question(text="What is 3_000 - 1?")
        make_question(text="What is 300 + 1?")

        percent = client.get("/api/quiz-questions", params={"search": "50%"}).json()
        underscore = client.get("/api/quiz-questions", params={"search": "3_0"}).json()

        assert [q["question"] for q in percent] == ["What is 50% of 10?"]
        assert [q["question"] for q in underscore] == ["What is 3_000 - 1?"]

    def test_list_pagination(self, client, make_question):
        ids = [make_question().id for _ in range(5)]

        page = client.get("/api/quiz-questions?limit=2&offset=2").json()

        assert [q["id"] for q in page] == ids[2:4]


class TestRandom:
    def test_draws_requested_count(self, client, make_question):
        for _ in range(6):
            make_question()

        response = client.get("/api/quiz-questions/random?count=4")

        assert response.status_code == 200
        assert len(response.json()) == 4

    def test_filters(self, client, make_question):
        make_question(topic="fractions")
        make_question(topic="decimals")

        data = client.get("/api/quiz-questions/random?topic=fractions").json()

        assert [q["topic"] for q in data] == ["fractions"]

    @pytest.mark.parametrize("count", ["0", "21", "lots"])
    def test_invalid_count(self, client, count):
        response = client.get(f"/api/quiz-questions/random?count={count}")

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_COUNT"


class TestUpdate:
    def test_partial_update(self, client, make_question):
        question = make_question()

        response = client.put(
            f"/api/quiz-questions?id={question.id}",
            json={"correctAnswer": 3, "difficulty": "Advanced"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["correctAnswer"] == 3
        assert data["difficulty"] == "Advanced"
        assert data["question"] == "What is 2 + 2?"

    def test_empty_update_returns_existing(self, client, make_question):
        question = make_question()

        response = client.put(f"/api/quiz-questions?id={question.id}", json={})

        assert response.status_code == 200
        assert response.json()["id"] == question.id

    def test_invalid_options(self, client, make_question):
        question = make_question()

        response = client.put(f"/api/quiz-questions?id={question.id}", json={"options": ["a"]})

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_OPTIONS"

    def test_missing_question(self, client):
        response = client.put("/api/quiz-questions?id=42", json={"topic": "mixed"})

        assert response.status_code == 404


class TestDelete:
    def test_delete_cascades_to_attempts(self, client, db, user, make_question, make_attempt):
        question = make_question()
        make_attempt(user, question)

        response = client.delete(f"/api/quiz-questions?id={question.id}")

        assert response.status_code == 200
        assert response.json()["message"] == "Quiz question deleted successfully"
        assert response.json()["deleted"]["id"] == question.id
        db.expire_all()
        assert db.query(QuizQuestion).count() == 0
        assert db.query(QuizAttempt).count() == 0

    def test_delete_requires_id(self, client):
        response = client.delete("/api/quiz-questions")

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_ID"


def test_options_column_rejects_wrong_length(db):
    db.add(QuizQuestion(
        question="?", options=["only", "three", "options"], correct_answer=0,
        explanation="-", topic="mixed", difficulty="Beginner",
    ))

    with pytest.raises(Exception, match="exactly 4 options"):
        db.commit()
    db.rollback()


def test_random_count_capped_by_settings(client):
    response = client.get(f"/api/quiz-questions/random?count={settings.MAX_QUIZ_QUESTIONS + 1}")

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_COUNT"
