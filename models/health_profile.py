from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_WEIGHT_KG = 70.0
DEFAULT_HEIGHT_CM = 170.0
DEFAULT_AGE = 30
DEFAULT_GENDER = "Male"


class Biometrics(BaseModel):
    """Body measurements used to contextualize the analysis."""

    weight: float = DEFAULT_WEIGHT_KG
    height: float = DEFAULT_HEIGHT_CM
    age: int = DEFAULT_AGE
    gender: str = DEFAULT_GENDER


class Medication(BaseModel):
    """A medication entry as captured during onboarding."""

    model_config = ConfigDict(extra="allow")

    name: str
    interactions: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class HealthProfile(BaseModel):
    """Normalized view of a user's conditions, medications and biometrics."""

    conditions: List[str] = Field(default_factory=list)
    medications: List[Medication] = Field(default_factory=list)
    biometrics: Biometrics = Field(default_factory=Biometrics)
    nutrition_limits: Dict[str, Any] = Field(default_factory=dict)


class PartialDegradeWarning(BaseModel):
    """A stored field that could not be decoded and fell back to its default."""

    field: str
    reason: str


class ProfileAssembly(BaseModel):
    """The assembled profile together with any fields that were degraded."""

    profile: HealthProfile
    warnings: List[PartialDegradeWarning] = Field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return bool(self.warnings)


class UserHealthRecord(BaseModel):
    """The slice of the stored user row that profile assembly reads."""

    id: str
    conditions: Optional[str] = None
    onboarding_data: Optional[str] = None
    age: Optional[int] = None
    nutrition_limits: Optional[str] = None
