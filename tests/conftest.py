"""Pytest configuration and fixtures."""

import json
from types import SimpleNamespace
from typing import Any, AsyncGenerator, Dict, List, Optional

import pytest
from httpx import ASGITransport, AsyncClient

from api.auth import create_access_token
from config import Settings
from server import create_app

SAMPLE_ANALYSIS = {
    "items": [
        {
            "name": "Grilled Salmon",
            "status": "SAFE",
            "reasoning": "Lean protein, no added salt.",
            "modification": None,
            "nutrition_gaps": [],
        },
        {
            "name": "Cobb Salad",
            "status": "CAUTION",
            "reasoning": "Bacon and blue cheese add sodium and phosphorus.",
            "modification": "Ask for no bacon and the dressing on the side.",
            "nutrition_gaps": ["Sodium"],
        },
        {
            "name": "Bacon Cheeseburger",
            "status": "AVOID",
            "reasoning": "Processed meat and cheese are high in phosphorus additives.",
            "modification": None,
            "nutrition_gaps": ["High Sodium", "High Phosphorus"],
        },
    ],
    "summary": "Good seafood options; watch the salty sides.",
}


def make_user(**fields: Any) -> SimpleNamespace:
    defaults = {
        "id": "user-1",
        "email": "pat@example.com",
        "name": "Pat",
        "passwordHash": None,
        "age": None,
        "conditions": None,
        "onboardingData": None,
        "nutritionLimits": None,
    }
    defaults.update(fields)
    return SimpleNamespace(**defaults)


class FakeUserDelegate:
    """Stands in for `prisma.user` with the calls the repository makes."""

    def __init__(self) -> None:
        self.users: Dict[str, SimpleNamespace] = {}
        self.updates: List[Dict[str, Any]] = []

    def add(self, user: SimpleNamespace) -> SimpleNamespace:
        self.users[user.id] = user
        return user

    async def find_unique(self, where: Dict[str, Any]) -> Optional[SimpleNamespace]:
        if "id" in where:
            return self.users.get(where["id"])
        for user in self.users.values():
            if user.email == where.get("email"):
                return user
        return None

    async def update(self, where: Dict[str, Any], data: Dict[str, Any]) -> Optional[SimpleNamespace]:
        user = self.users.get(where["id"])
        if user is None:
            return None
        self.updates.append(data)
        for key, value in data.items():
            setattr(user, key, value)
        return user


class FakePrisma:
    def __init__(self) -> None:
        self.user = FakeUserDelegate()
        self.connected = False

    async def connect(self) -> None:
        self.connected = True

    async def disconnect(self) -> None:
        self.connected = False


class FakeCompletions:
    """Records chat.completions.create calls and replies with canned content."""

    def __init__(self) -> None:
        self.content: Optional[str] = json.dumps(SAMPLE_ANALYSIS)
        self.error: Optional[Exception] = None
        self.calls: List[Dict[str, Any]] = []

    async def create(self, **kwargs: Any) -> SimpleNamespace:
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeOpenAI:
    def __init__(self) -> None:
        self.completions = FakeCompletions()
        self.chat = SimpleNamespace(completions=self.completions)


@pytest.fixture
def settings() -> Settings:
    return Settings(secret_key="test-secret", vision_model="test-vision-model")


@pytest.fixture
def db() -> FakePrisma:
    return FakePrisma()


@pytest.fixture
def ai_client() -> FakeOpenAI:
    return FakeOpenAI()


@pytest.fixture
def app(settings: Settings, db: FakePrisma, ai_client: FakeOpenAI):
    return create_app(settings=settings, db=db, ai_client=ai_client)


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def auth_headers(settings: Settings) -> Dict[str, str]:
    token = create_access_token(data={"sub": "user-1"}, settings=settings)
    return {"Authorization": f"Bearer {token}"}
