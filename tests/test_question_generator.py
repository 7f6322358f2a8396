import json

import httpx
import pytest
from google.api_core import exceptions as google_exceptions

from conftest import question_payload
from numbly.config import settings
from numbly.errors import AuthInvalidError, RateLimitedError, ServiceError
from numbly.schemas.quiz import DifficultyLevel, MathTopic
from numbly.services import question_generator
from numbly.services.gemini_service import GeminiQuestionGenerator
from numbly.services.openai_service import OpenAIQuestionGenerator
from numbly.services.question_generator import (
    build_quiz_prompt,
    extract_json,
    get_question_generator,
    parse_questions,
)


def questions_json(count, difficulty="easy"):
    return json.dumps({"questions": [question_payload(i, "addition", difficulty) for i in range(count)]})


class TestParsing:
    def test_prompt_mentions_topic_difficulty_and_count(self):
        prompt = build_quiz_prompt(MathTopic.DIVISION, DifficultyLevel.HARD, 4)

        assert "Generate exactly 4 unique multiple-choice math quiz questions on division" in prompt
        assert "Splitting into equal parts" in prompt
        assert "Complex problems" in prompt

    def test_extract_json_from_fenced_reply(self):
        text = "Here you go:\n```json\n{\"questions\": []}\n```"

        assert extract_json(text) == {"questions": []}

    def test_extract_json_from_surrounding_prose(self):
        assert extract_json('Sure! {"questions": [1]} Enjoy.') == {"questions": [1]}

    def test_extract_json_failure(self):
        with pytest.raises(ServiceError):
            extract_json("no json here")

    def test_topic_and_difficulty_come_from_request(self):
        payload = {"questions": [question_payload(1, "fractions", "hard")]}

        questions = parse_questions(payload, MathTopic.ADDITION, DifficultyLevel.EASY, 1)

        assert questions[0].topic == MathTopic.ADDITION
        assert questions[0].difficulty == DifficultyLevel.EASY

    def test_wrong_count_rejected(self):
        payload = json.loads(questions_json(2))

        with pytest.raises(ServiceError, match="Expected 3 questions, got 2"):
            parse_questions(payload, MathTopic.ADDITION, DifficultyLevel.EASY, 3)

    def test_two_correct_options_rejected(self):
        payload = json.loads(questions_json(1))
        payload["questions"][0]["options"][0]["isCorrect"] = True

        with pytest.raises(ServiceError, match="Question 1 is malformed"):
            parse_questions(payload, MathTopic.ADDITION, DifficultyLevel.EASY, 1)

    def test_missing_questions_key_rejected(self):
        with pytest.raises(ServiceError):
            parse_questions({"items": []}, MathTopic.ADDITION, DifficultyLevel.EASY, 1)


def openai_generator(handler):
    return OpenAIQuestionGenerator(
        api_key="sk-test",
        base_url="https://api.openai.test/v1",
        transport=httpx.MockTransport(handler),
    )


class TestOpenAIQuestionGenerator:
    def test_generates_with_json_mode(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={
                "choices": [{"message": {"content": questions_json(2, "medium")}}]
            })

        questions = openai_generator(handler).generate(MathTopic.ADDITION, DifficultyLevel.MEDIUM, 2)

        assert len(questions) == 2
        assert seen["url"] == "https://api.openai.test/v1/chat/completions"
        assert seen["auth"] == "Bearer sk-test"
        assert seen["body"]["response_format"] == {"type": "json_object"}
        assert seen["body"]["messages"][0]["role"] == "system"

    @pytest.mark.parametrize("status,error", [
        (429, RateLimitedError),
        (401, AuthInvalidError),
        (500, ServiceError),
        (503, ServiceError),
    ])
    def test_http_errors_are_typed(self, status, error):
        generator = openai_generator(lambda request: httpx.Response(status, json={"error": {}}))

        with pytest.raises(error):
            generator.generate(MathTopic.ADDITION, DifficultyLevel.EASY, 1)

    def test_timeout_is_a_service_error(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(ServiceError, match="timed out"):
            openai_generator(handler).generate(MathTopic.ADDITION, DifficultyLevel.EASY, 1)

    def test_empty_content(self):
        generator = openai_generator(lambda request: httpx.Response(200, json={
            "choices": [{"message": {"content": None}}]
        }))

        with pytest.raises(ServiceError):
            generator.generate(MathTopic.ADDITION, DifficultyLevel.EASY, 1)

    def test_missing_api_key(self):
        generator = OpenAIQuestionGenerator(api_key="")

        with pytest.raises(AuthInvalidError):
            generator.generate(MathTopic.ADDITION, DifficultyLevel.EASY, 1)


class StubResponse:
    def __init__(self, text):
        self.text = text


class StubModel:
    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.kwargs = None

    def generate_content(self, prompt, **kwargs):
        self.prompt = prompt
        self.kwargs = kwargs
        if self.error:
            raise self.error
        return StubResponse(self.text)


class TestGeminiQuestionGenerator:
    def test_parses_fenced_json_reply(self):
        model = StubModel(text=f"```json\n{questions_json(3, 'hard')}\n```")

        questions = GeminiQuestionGenerator(model=model, timeout=12).generate(
            MathTopic.ADDITION, DifficultyLevel.HARD, 3
        )

        assert [q.difficulty for q in questions] == [DifficultyLevel.HARD] * 3
        assert model.kwargs["request_options"] == {"timeout": 12}
        assert "Return ONLY valid JSON" in model.prompt

    @pytest.mark.parametrize("raised,error", [
        (google_exceptions.ResourceExhausted("quota"), RateLimitedError),
        (google_exceptions.PermissionDenied("key"), AuthInvalidError),
        (google_exceptions.Unauthenticated("key"), AuthInvalidError),
        (google_exceptions.DeadlineExceeded("slow"), ServiceError),
        (google_exceptions.InternalServerError("boom"), ServiceError),
    ])
    def test_api_errors_are_typed(self, raised, error):
        generator = GeminiQuestionGenerator(model=StubModel(error=raised))

        with pytest.raises(error):
            generator.generate(MathTopic.ADDITION, DifficultyLevel.EASY, 1)

    def test_unparseable_reply(self):
        generator = GeminiQuestionGenerator(model=StubModel(text="I cannot help with that."))

        with pytest.raises(ServiceError):
            generator.generate(MathTopic.ADDITION, DifficultyLevel.EASY, 1)


class TestProviderSelection:
    @pytest.fixture(autouse=True)
    def reset_cache(self, monkeypatch):
        question_generator._build_generator.cache_clear()
        yield
        question_generator._build_generator.cache_clear()

    def test_openai_selected(self, monkeypatch):
        monkeypatch.setattr(settings, "QUIZ_PROVIDER", "openai")

        assert isinstance(get_question_generator(), OpenAIQuestionGenerator)

    def test_gemini_without_key_is_a_config_error(self, monkeypatch):
        monkeypatch.setattr(settings, "QUIZ_PROVIDER", "gemini")
        monkeypatch.setattr(settings, "GEMINI_API_KEY", "")

        with pytest.raises(AuthInvalidError):
            get_question_generator()

    def test_unknown_provider(self, monkeypatch):
        monkeypatch.setattr(settings, "QUIZ_PROVIDER", "claude")

        with pytest.raises(ServiceError) as excinfo:
            get_question_generator()

        assert excinfo.value.code == "PROVIDER_CONFIG_ERROR"
