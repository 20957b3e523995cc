import json
import logging
from typing import Any, List, Optional, Tuple

from pydantic import ValidationError

from models.health_profile import (
    Biometrics,
    HealthProfile,
    Medication,
    PartialDegradeWarning,
    ProfileAssembly,
    UserHealthRecord,
    DEFAULT_AGE,
)

logger = logging.getLogger(__name__)


def _decode_json(raw: Optional[str], field: str, warnings: List[PartialDegradeWarning]) -> Any:
    """Returns the decoded value, or None (with a warning) when `raw` isn't valid JSON."""
    if not raw:
        return None
    try:
        return json.loads(raw)
    except (TypeError, ValueError) as e:
        logger.warning(f"Failed to parse stored {field}: {e}")
        warnings.append(PartialDegradeWarning(field=field, reason=f"invalid JSON: {e}"))
        return None


def _parse_conditions(raw: Optional[str], warnings: List[PartialDegradeWarning]) -> List[str]:
    decoded = _decode_json(raw, "conditions", warnings)
    if decoded is None:
        return []
    if not isinstance(decoded, list):
        warnings.append(PartialDegradeWarning(field="conditions", reason="expected a list"))
        return []

    # Ordered set: first occurrence wins.
    conditions: List[str] = []
    for condition in decoded:
        if isinstance(condition, str) and condition and condition not in conditions:
            conditions.append(condition)
    return conditions


def _merge_biometrics(stored: Any, age: int, warnings: List[PartialDegradeWarning]) -> Biometrics:
    """
    Overlays whatever stored biometrics are usable on top of the defaults.
    Each field is checked on its own, so one bad value doesn't discard the rest.
    """
    biometrics = Biometrics(age=age)
    if stored is None:
        return biometrics
    if not isinstance(stored, dict):
        warnings.append(PartialDegradeWarning(field="biometrics", reason="expected an object"))
        return biometrics

    merged = biometrics.model_dump()
    for key in Biometrics.model_fields:
        if key not in stored or stored[key] is None:
            continue
        candidate = {**merged, key: stored[key]}
        try:
            merged = Biometrics.model_validate(candidate).model_dump()
        except ValidationError:
            warnings.append(
                PartialDegradeWarning(field=f"biometrics.{key}", reason=f"unusable value {stored[key]!r}")
            )
    return Biometrics.model_validate(merged)


def _parse_medications(stored: Any, warnings: List[PartialDegradeWarning]) -> List[Medication]:
    if stored is None:
        return []
    if not isinstance(stored, list):
        warnings.append(PartialDegradeWarning(field="medical.medications", reason="expected a list"))
        return []

    medications: List[Medication] = []
    for index, entry in enumerate(stored):
        if isinstance(entry, str):
            entry = {"name": entry}
        try:
            medication = Medication.model_validate(entry)
        except ValidationError:
            warnings.append(
                PartialDegradeWarning(field=f"medical.medications[{index}]", reason="missing a usable name")
            )
            continue
        if medication.name.strip():
            medications.append(medication)
    return medications


def _parse_onboarding(
    raw: Optional[str], age: int, warnings: List[PartialDegradeWarning]
) -> Tuple[Biometrics, List[Medication]]:
    onboarding = _decode_json(raw, "onboardingData", warnings)
    if onboarding is None:
        return Biometrics(age=age), []
    if not isinstance(onboarding, dict):
        warnings.append(PartialDegradeWarning(field="onboardingData", reason="expected an object"))
        return Biometrics(age=age), []

    biometrics = _merge_biometrics(onboarding.get("biometrics"), age, warnings)

    medical = onboarding.get("medical")
    medications: List[Medication] = []
    if isinstance(medical, dict):
        medications = _parse_medications(medical.get("medications"), warnings)
    elif medical is not None:
        warnings.append(PartialDegradeWarning(field="medical", reason="expected an object"))
    return biometrics, medications


def _parse_nutrition_limits(raw: Optional[str], warnings: List[PartialDegradeWarning]) -> dict:
    decoded = _decode_json(raw, "nutritionLimits", warnings)
    if decoded is None:
        return {}
    if not isinstance(decoded, dict):
        warnings.append(PartialDegradeWarning(field="nutritionLimits", reason="expected an object"))
        return {}
    return decoded


def assemble_profile(record: UserHealthRecord) -> ProfileAssembly:
    """
    Builds the HealthProfile for a stored user record.

    Never raises: every stored blob is decoded on its own and anything that
    can't be read falls back to its default. The fields that were degraded
    are returned alongside the profile so callers can report them.
    """
    warnings: List[PartialDegradeWarning] = []
    age = record.age if record.age else DEFAULT_AGE

    conditions = _parse_conditions(record.conditions, warnings)
    biometrics, medications = _parse_onboarding(record.onboarding_data, age, warnings)
    nutrition_limits = _parse_nutrition_limits(record.nutrition_limits, warnings)

    if warnings:
        logger.info(
            f"Profile for user {record.id} assembled with defaults for: "
            f"{', '.join(w.field for w in warnings)}"
        )

    profile = HealthProfile(
        conditions=conditions,
        medications=medications,
        biometrics=biometrics,
        nutrition_limits=nutrition_limits,
    )
    return ProfileAssembly(profile=profile, warnings=warnings)


def assemble(record: UserHealthRecord) -> HealthProfile:
    return assemble_profile(record).profile
