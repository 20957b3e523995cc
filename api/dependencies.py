from fastapi import Request

from ai_service_client import MenuAnalysisClient
from config import Settings
from menu_scan.service import MenuScanService
from user_repository import UserRepository


# Handles are created by the entry point and attached to app.state by create_app().

def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_user_repository(request: Request) -> UserRepository:
    return UserRepository(request.app.state.db)


def get_menu_scan_service(request: Request) -> MenuScanService:
    settings: Settings = request.app.state.settings
    return MenuScanService(
        users=UserRepository(request.app.state.db),
        analysis_client=MenuAnalysisClient(request.app.state.ai_client, max_tokens=settings.max_tokens),
        model=settings.vision_model,
    )
