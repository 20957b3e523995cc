import base64
import json
from typing import Any, Dict, List

from pydantic import BaseModel

from config import DEFAULT_VISION_MODEL
from menu_scan.prompts import MENU_ANALYSIS_SYSTEM_PROMPT, PROMPT_VERSION, USER_PROMPT_TEMPLATE
from models.health_profile import HealthProfile


class ModelRequest(BaseModel):
    """Everything the analysis client needs for one model call."""

    model: str
    system_instruction: str
    profile_context: str
    image_data_uri: str
    prompt_version: str = PROMPT_VERSION

    def to_messages(self) -> List[Dict[str, Any]]:
        """Chat-completions messages: the system prompt, then the profile text and the image."""
        return [
            {"role": "system", "content": self.system_instruction},
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": USER_PROMPT_TEMPLATE.format(profile_context=self.profile_context)},
                    {"type": "image_url", "image_url": {"url": self.image_data_uri}},
                ],
            },
        ]


def to_data_uri(image_bytes: bytes, mime_type: str) -> str:
    encoded = base64.b64encode(image_bytes).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def render_profile_context(profile: HealthProfile) -> str:
    """Renders the profile as stable plain text for the prompt."""
    medications = []
    for medication in profile.medications:
        line = medication.name
        notes = medication.interactions + medication.warnings
        if notes:
            line += f" ({'; '.join(notes)})"
        medications.append(line)

    biometrics = profile.biometrics
    lines = [
        f"Conditions: {', '.join(profile.conditions) or 'None reported'}",
        f"Medications: {', '.join(medications) or 'None reported'}",
        f"Nutrition Limits: {json.dumps(profile.nutrition_limits, sort_keys=True) if profile.nutrition_limits else 'Not set'}",
        f"Biometrics: Age {biometrics.age}, {biometrics.gender}, "
        f"Weight {biometrics.weight:g}kg, Height {biometrics.height:g}cm",
    ]
    return "\n".join(lines)


def build_model_request(
    profile: HealthProfile,
    image_bytes: bytes,
    mime_type: str,
    model: str = DEFAULT_VISION_MODEL,
) -> ModelRequest:
    return ModelRequest(
        model=model,
        system_instruction=MENU_ANALYSIS_SYSTEM_PROMPT,
        profile_context=render_profile_context(profile),
        image_data_uri=to_data_uri(image_bytes, mime_type),
    )
