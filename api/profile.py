from typing import Annotated, Any, Dict, List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field, field_validator

from api.auth import get_current_user_id
from api.dependencies import get_user_repository
from errors import NotFound
from menu_scan.profile_assembler import assemble_profile
from models.health_profile import HealthProfile, PartialDegradeWarning
from user_repository import UserRepository

router = APIRouter(
    prefix="/user",
    tags=["user"],
)


class HealthProfileResponse(BaseModel):
    success: bool = True
    data: HealthProfile
    warnings: List[PartialDegradeWarning] = Field(default_factory=list)


class MedicalData(BaseModel):
    medications: List[Dict[str, Any]] = Field(default_factory=list)


class BiometricsUpdate(BaseModel):
    weight: Optional[float] = Field(default=None, gt=0)
    height: Optional[float] = Field(default=None, gt=0)
    age: Optional[int] = Field(default=None, ge=0, le=130)
    gender: Optional[str] = None


class HealthProfileUpdate(BaseModel):
    conditions: Optional[List[str]] = None
    age: Optional[int] = Field(default=None, ge=0, le=130)
    biometrics: Optional[BiometricsUpdate] = None
    medical: Optional[MedicalData] = None
    dietary: Optional[Dict[str, Any]] = None
    nutritionLimits: Optional[Dict[str, Any]] = None

    @field_validator("conditions", mode="before")
    @classmethod
    def split_string(cls, v: object) -> Optional[List[str]]:
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v


@router.get("/health-profile", response_model=HealthProfileResponse)
async def get_health_profile(
    user_id: Annotated[str, Depends(get_current_user_id)],
    users: Annotated[UserRepository, Depends(get_user_repository)],
):
    """Returns the profile menu scans use, and which stored fields fell back to defaults."""
    record = await users.get_health_record(user_id)
    if record is None:
        raise NotFound(f"No user record for {user_id}")

    assembly = assemble_profile(record)
    return HealthProfileResponse(data=assembly.profile, warnings=assembly.warnings)


@router.patch("/profile", status_code=status.HTTP_200_OK, response_model=HealthProfileResponse)
async def update_health_profile(
    profile_data: HealthProfileUpdate,
    user_id: Annotated[str, Depends(get_current_user_id)],
    users: Annotated[UserRepository, Depends(get_user_repository)],
):
    changes = profile_data.model_dump(exclude_unset=True)
    if profile_data.biometrics is not None:
        changes["biometrics"] = profile_data.biometrics.model_dump(exclude_none=True)
    record = await users.update_health_fields(user_id, changes)
    if record is None:
        raise NotFound(f"No user record for {user_id}")

    assembly = assemble_profile(record)
    return HealthProfileResponse(data=assembly.profile, warnings=assembly.warnings)
