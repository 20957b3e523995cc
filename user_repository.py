import json
import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

from models.health_profile import UserHealthRecord

if TYPE_CHECKING:
    from prisma import Prisma

logger = logging.getLogger(__name__)

ONBOARDING_SECTIONS = ("biometrics", "medical", "dietary")


class UserRepository:
    """
    Read/write access to the user columns the menu scan depends on.
    Wraps the Prisma client handle owned by the entry point.
    """

    def __init__(self, db: "Prisma"):
        self.db = db

    async def get_health_record(self, user_id: str) -> Optional[UserHealthRecord]:
        user = await self.db.user.find_unique(where={"id": user_id})
        if user is None:
            return None
        return UserHealthRecord(
            id=user.id,
            conditions=user.conditions,
            onboarding_data=user.onboardingData,
            age=user.age,
            nutrition_limits=user.nutritionLimits,
        )

    async def get_by_email(self, email: str) -> Any:
        return await self.db.user.find_unique(where={"email": email})

    async def update_health_fields(self, user_id: str, changes: Dict[str, Any]) -> Optional[UserHealthRecord]:
        """
        Applies a partial profile update to the user row.

        `biometrics`, `medical` and `dietary` are merged into the stored
        onboarding blob section by section (biometrics field by field);
        `conditions` and `nutritionLimits` replace the stored JSON. Returns
        None when the user doesn't exist.
        """
        user = await self.db.user.find_unique(where={"id": user_id})
        if user is None:
            return None

        data: Dict[str, Any] = {}
        sections = {key: changes[key] for key in ONBOARDING_SECTIONS if changes.get(key) is not None}
        if sections:
            current: Dict[str, Any] = {}
            if user.onboardingData:
                try:
                    decoded = json.loads(user.onboardingData)
                    if isinstance(decoded, dict):
                        current = decoded
                except ValueError:
                    logger.warning(f"Discarding unreadable onboardingData for user {user_id}")
            merged = {**current, **sections}
            # Biometrics are merged field by field so a partial update keeps the rest.
            if "biometrics" in sections and isinstance(current.get("biometrics"), dict):
                merged["biometrics"] = {**current["biometrics"], **sections["biometrics"]}
            data["onboardingData"] = json.dumps(merged)

        if changes.get("age") is not None:
            data["age"] = changes["age"]
        elif isinstance(sections.get("biometrics"), dict) and sections["biometrics"].get("age") is not None:
            data["age"] = sections["biometrics"]["age"]

        if changes.get("conditions") is not None:
            data["conditions"] = json.dumps(changes["conditions"])
        if changes.get("nutritionLimits") is not None:
            data["nutritionLimits"] = json.dumps(changes["nutritionLimits"])

        if data:
            await self.db.user.update(where={"id": user_id}, data=data)
            logger.info(f"Updated {', '.join(sorted(data))} for user {user_id}")
        return await self.get_health_record(user_id)
