import json

import pytest

from ai_service_client import MenuAnalysisClient
from config import MAX_IMAGE_SIZE
from errors import InvalidInput, NotFound, Unauthenticated, UpstreamError
import menu_scan.service as service_module
from menu_scan.service import SCAN_FAILED_MESSAGE, MenuScanService, ScanRequest
from models.health_profile import HealthProfile
from user_repository import UserRepository

from conftest import make_user


@pytest.fixture
def service(db, ai_client) -> MenuScanService:
    return MenuScanService(
        users=UserRepository(db),
        analysis_client=MenuAnalysisClient(ai_client),
        model="vision-x",
    )


async def test_scan_uses_stored_profile(service, db, ai_client):
    db.user.add(make_user(conditions=json.dumps(["CKD3"]), age=61))

    result = await service.scan("user-1", b"\xff\xd8" * 1024, "image/jpeg")

    assert len(result.items) == 3
    call = ai_client.completions.calls[0]
    assert call["model"] == "vision-x"
    text = call["messages"][1]["content"][0]["text"]
    assert "Conditions: CKD3" in text
    assert "Age 61" in text


async def test_scan_requires_identity(service, ai_client):
    with pytest.raises(Unauthenticated):
        await service.scan(None, b"menu", "image/jpeg")
    assert ai_client.completions.calls == []


async def test_invalid_image_never_reaches_model(service, db, ai_client):
    db.user.add(make_user())

    with pytest.raises(InvalidInput):
        await service.scan("user-1", b"\x00" * (MAX_IMAGE_SIZE + 1), "image/jpeg")
    with pytest.raises(InvalidInput):
        await service.scan("user-1", b"menu", "image/gif")
    assert ai_client.completions.calls == []


async def test_unknown_user_is_not_found(service):
    with pytest.raises(NotFound):
        await service.scan("ghost", b"menu", "image/png")


async def test_degraded_profile_still_scans(service, db, ai_client):
    db.user.add(make_user(conditions="{broken", onboardingData="[also broken"))

    result = await service.scan("user-1", b"menu", "image/png")

    assert result.items
    assert len(ai_client.completions.calls) == 1


async def test_zero_items_is_an_upstream_failure(service, db, ai_client):
    db.user.add(make_user())
    ai_client.completions.content = json.dumps({"items": [], "summary": "Empty."})

    with pytest.raises(UpstreamError) as exc_info:
        await service.scan("user-1", b"menu", "image/png")

    assert exc_info.value.message == SCAN_FAILED_MESSAGE
    assert "No menu items" in str(exc_info.value.__cause__)
    # No retry on failure.
    assert len(ai_client.completions.calls) == 1


async def test_scan_request_with_assembled_profile(service, ai_client):
    request = ScanRequest(image_bytes=b"menu", mime_type="image/webp", profile=HealthProfile(conditions=["htn"]))

    result = await service.scan_request(request)

    assert result.summary
    assert ai_client.completions.calls[0]["messages"][1]["content"][1]["image_url"]["url"].startswith(
        "data:image/webp;base64,"
    )


async def test_scan_request_validates_image(service, ai_client):
    request = ScanRequest(image_bytes=b"GIF89a", mime_type="image/gif", profile=HealthProfile())

    with pytest.raises(InvalidInput, match="Unsupported image format"):
        await service.scan_request(request)
    assert ai_client.completions.calls == []


async def test_scan_validates_image_once(service, db, monkeypatch):
    db.user.add(make_user())
    checked = []
    monkeypatch.setattr(service_module, "validate_image", lambda *args: checked.append(args))

    await service.scan("user-1", b"menu", "image/png")

    assert checked == [(b"menu", "image/png")]
