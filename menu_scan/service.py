import logging
from typing import Optional

from pydantic import BaseModel

from ai_service_client import MenuAnalysisClient
from config import DEFAULT_VISION_MODEL
from errors import NotFound, Unauthenticated, UpstreamError
from menu_scan.image_validator import validate_image
from menu_scan.profile_assembler import assemble_profile
from menu_scan.request_builder import build_model_request
from models.health_profile import HealthProfile
from models.menu_analysis import MenuAnalysisResult
from user_repository import UserRepository

logger = logging.getLogger(__name__)

SCAN_FAILED_MESSAGE = "Failed to analyze menu. Please try with a clearer image or different angle."


class ScanRequest(BaseModel):
    image_bytes: bytes
    mime_type: str
    profile: HealthProfile


class MenuScanService:
    """
    Runs one menu scan: validate the image, assemble the caller's profile,
    build the model request and relay the analysis.
    No retries: the first upstream failure is reported.
    """

    def __init__(
        self,
        users: UserRepository,
        analysis_client: MenuAnalysisClient,
        model: str = DEFAULT_VISION_MODEL,
    ):
        self.users = users
        self.analysis_client = analysis_client
        self.model = model

    async def scan(self, user_id: Optional[str], image_bytes: Optional[bytes], mime_type: str) -> MenuAnalysisResult:
        if not user_id:
            raise Unauthenticated("Please sign in to use menu scanning")

        validate_image(image_bytes, mime_type)

        record = await self.users.get_health_record(user_id)
        if record is None:
            raise NotFound(f"No user record for {user_id}")

        assembly = assemble_profile(record)
        if assembly.degraded:
            logger.warning(
                f"Scanning for user {user_id} with a degraded profile "
                f"({len(assembly.warnings)} field(s) defaulted)"
            )

        return await self._analyze(
            ScanRequest(image_bytes=image_bytes, mime_type=mime_type, profile=assembly.profile)
        )

    async def scan_request(self, request: ScanRequest) -> MenuAnalysisResult:
        """Scans for a caller whose profile has already been assembled."""
        validate_image(request.image_bytes, request.mime_type)
        return await self._analyze(request)

    async def _analyze(self, request: ScanRequest) -> MenuAnalysisResult:
        # Callers have validated the image.
        model_request = build_model_request(
            request.profile, request.image_bytes, request.mime_type, model=self.model
        )

        try:
            return await self.analysis_client.analyze(model_request)
        except UpstreamError as e:
            logger.error(f"[MenuScanService] Error scanning menu: {e}")
            raise UpstreamError(SCAN_FAILED_MESSAGE) from e
