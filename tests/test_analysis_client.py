import json

import httpx
import pytest
from openai import APIConnectionError

from ai_service_client import (
    DEFAULT_ITEM_NAME,
    DEFAULT_MODIFICATION,
    DEFAULT_SUMMARY,
    MenuAnalysisClient,
    get_openai_client,
    parse_menu_analysis,
)
from config import Settings
from errors import UpstreamError
from menu_scan.request_builder import build_model_request
from models.health_profile import HealthProfile
from models.menu_analysis import MenuStatus

from conftest import SAMPLE_ANALYSIS, FakeOpenAI


def test_parses_valid_reply():
    result = parse_menu_analysis(json.dumps(SAMPLE_ANALYSIS))

    assert [item.status for item in result.items] == [MenuStatus.SAFE, MenuStatus.CAUTION, MenuStatus.AVOID]
    assert result.items[1].modification == "Ask for no bacon and the dressing on the side."
    assert result.summary == SAMPLE_ANALYSIS["summary"]


def test_rejects_zero_items():
    with pytest.raises(UpstreamError, match="No menu items"):
        parse_menu_analysis(json.dumps({"items": [], "summary": "Nothing here."}))


@pytest.mark.parametrize(
    "content",
    [None, "", "not json at all", "[1, 2, 3]", json.dumps({"summary": "no items"}), json.dumps({"items": "x"})],
)
def test_rejects_unusable_replies(content):
    with pytest.raises(UpstreamError):
        parse_menu_analysis(content)


def test_accepts_fenced_json():
    content = "```json\n" + json.dumps(SAMPLE_ANALYSIS) + "\n```"
    assert len(parse_menu_analysis(content).items) == 3


def test_normalizes_loose_items():
    reply = {
        "items": [
            {"status": "safe", "modification": "Add lemon."},
            {"name": "Soup of the Day", "status": "MAYBE", "reasoning": "Broth is likely salty."},
        ]
    }

    result = parse_menu_analysis(json.dumps(reply))

    first, second = result.items
    assert first.name == DEFAULT_ITEM_NAME
    assert first.status == MenuStatus.SAFE
    assert first.modification is None
    assert second.status == MenuStatus.CAUTION
    assert second.modification == DEFAULT_MODIFICATION
    assert second.nutrition_gaps == []
    assert result.summary == DEFAULT_SUMMARY


async def test_analyze_sends_vision_request():
    fake = FakeOpenAI()
    client = MenuAnalysisClient(fake, max_tokens=1234)
    request = build_model_request(HealthProfile(conditions=["CKD3"]), b"menu", "image/png", model="vision-x")

    result = await client.analyze(request)

    assert len(result.items) == 3
    call = fake.completions.calls[0]
    assert call["model"] == "vision-x"
    assert call["max_tokens"] == 1234
    assert call["response_format"] == {"type": "json_object"}
    assert call["messages"] == request.to_messages()


async def test_analyze_wraps_sdk_errors():
    fake = FakeOpenAI()
    fake.completions.error = APIConnectionError(request=httpx.Request("POST", "https://api.openai.test"))
    client = MenuAnalysisClient(fake)
    request = build_model_request(HealthProfile(), b"menu", "image/png")

    with pytest.raises(UpstreamError) as exc_info:
        await client.analyze(request)
    assert isinstance(exc_info.value.__cause__, APIConnectionError)
    assert len(fake.completions.calls) == 1


async def test_failed_model_call_is_not_retried():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(500, json={"error": {"message": "upstream exploded"}})

    settings = Settings(
        secret_key="test-secret",
        openai_api_key="sk-test",
        openai_base_url="http://model.test/v1",
    )
    openai_client = get_openai_client(settings).with_options(
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
    )
    client = MenuAnalysisClient(openai_client)
    request = build_model_request(HealthProfile(), b"menu", "image/png")

    with pytest.raises(UpstreamError):
        await client.analyze(request)
    assert openai_client.max_retries == 0
    assert len(requests) == 1
