from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class MenuStatus(str, Enum):
    SAFE = "SAFE"
    CAUTION = "CAUTION"
    AVOID = "AVOID"


class MenuAnalysisItem(BaseModel):
    """One dish from the menu and how it fits the patient's profile."""

    name: str
    status: MenuStatus
    reasoning: str
    description: Optional[str] = None
    modification: Optional[str] = None
    nutrition_gaps: List[str] = Field(default_factory=list)


class MenuAnalysisResult(BaseModel):
    items: List[MenuAnalysisItem] = Field(min_length=1)
    summary: str


class MenuScanResponse(BaseModel):
    success: bool = True
    data: MenuAnalysisResult
