import json
import logging
from functools import lru_cache
from typing import Any, Dict, Optional

from openai import AsyncOpenAI, APIError
from pydantic import ValidationError

from config import Settings
from errors import UpstreamError
from menu_scan.request_builder import ModelRequest
from models.menu_analysis import MenuAnalysisResult, MenuStatus

logger = logging.getLogger(__name__)

DEFAULT_ITEM_NAME = "Unknown Item"
DEFAULT_REASONING = "Unable to determine reasoning"
DEFAULT_SUMMARY = "Menu analysis complete. Review each item carefully."
DEFAULT_MODIFICATION = "Ask your server how this dish is prepared and request a smaller portion."


@lru_cache
def get_openai_client(settings: Settings) -> AsyncOpenAI:
    """
    Returns one AsyncOpenAI client per settings object.
    The entry point calls this once and hands the client to the app.
    """
    if not settings.openai_api_key:
        # AsyncOpenAI also falls back to the env var and raises if neither is set.
        logger.critical("The OPENAI_API_KEY environment variable is not set.")

    return AsyncOpenAI(
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
        timeout=settings.timeout_seconds,
        # One upstream call per scan; failures surface immediately.
        max_retries=0,
    )


def _strip_code_fence(content: str) -> str:
    text = content.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]
    return text.strip()


def _normalize_item(item: Dict[str, Any]) -> Dict[str, Any]:
    """Fills the gaps the model is known to leave in individual items."""
    status = str(item.get("status") or "").strip().upper()
    if status not in MenuStatus.__members__:
        status = MenuStatus.CAUTION.value

    modification = item.get("modification")
    if not isinstance(modification, str) or not modification.strip():
        modification = None
    if status == MenuStatus.CAUTION.value:
        modification = modification or DEFAULT_MODIFICATION
    else:
        modification = None

    gaps = item.get("nutrition_gaps")
    if isinstance(gaps, str):
        gaps = [gaps]
    elif not isinstance(gaps, list):
        gaps = []

    description = item.get("description")
    return {
        "name": str(item.get("name") or "").strip() or DEFAULT_ITEM_NAME,
        "status": status,
        "reasoning": str(item.get("reasoning") or "").strip() or DEFAULT_REASONING,
        "description": description if isinstance(description, str) and description.strip() else None,
        "modification": modification,
        "nutrition_gaps": [str(gap) for gap in gaps if gap],
    }


def parse_menu_analysis(content: Optional[str]) -> MenuAnalysisResult:
    """
    Turns the model's reply into a MenuAnalysisResult.
    The reply is untrusted: anything that isn't a JSON object with a
    non-empty `items` list raises UpstreamError.
    """
    if not content or not content.strip():
        raise UpstreamError("Model returned empty content for menu analysis")

    try:
        parsed = json.loads(_strip_code_fence(content))
    except ValueError as e:
        raise UpstreamError(f"Failed to parse menu analysis results: {e}") from e

    if not isinstance(parsed, dict):
        raise UpstreamError("Invalid response format: expected a JSON object")

    items = parsed.get("items")
    if not isinstance(items, list):
        raise UpstreamError("Invalid response format: missing items array")

    items = [_normalize_item(item) for item in items if isinstance(item, dict)]
    if not items:
        raise UpstreamError("No menu items were detected in the image")

    summary = parsed.get("summary")
    if not isinstance(summary, str) or not summary.strip():
        summary = DEFAULT_SUMMARY

    try:
        return MenuAnalysisResult.model_validate({"items": items, "summary": summary})
    except ValidationError as e:
        raise UpstreamError(f"Invalid response format: {e}") from e


class MenuAnalysisClient:
    """Sends a ModelRequest to the vision model and parses its JSON reply."""

    def __init__(self, client: AsyncOpenAI, max_tokens: int = 2000, temperature: float = 0.2):
        self.client = client
        self.max_tokens = max_tokens
        self.temperature = temperature

    async def analyze(self, request: ModelRequest) -> MenuAnalysisResult:
        try:
            response = await self.client.chat.completions.create(
                model=request.model,
                messages=request.to_messages(),
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                response_format={"type": "json_object"},
            )
        except APIError as e:
            logger.error(f"An OpenAI API error occurred: {e}")
            raise UpstreamError(f"Model request failed: {e}") from e

        if not response.choices:
            raise UpstreamError("Model returned no choices for menu analysis")

        content = response.choices[0].message.content
        result = parse_menu_analysis(content)
        logger.info(
            f"Menu analysis ({request.prompt_version}) returned {len(result.items)} item(s)"
        )
        return result
