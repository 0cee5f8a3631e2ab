import pytest
from fastapi.testclient import TestClient

from database import CitationStore
from main import create_app
from settings import Settings

OFFICER_HEADERS = {"X-User-Id": "111222333", "X-User-Name": "Deputy Dawg", "X-User-Roles": "Officer"}


class FakeNotifier:
    def __init__(self):
        self.citations = []
        self.arrests = []

    async def deliver_citation(self, record):
        self.citations.append(record)
        return True

    async def deliver_arrest(self, record):
        self.arrests.append(record)
        return True


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'citations.db'}",
        session_secret_key="test-secret",
        log_level="DEBUG",
    )


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def app(settings, notifier):
    return create_app(settings, store=CitationStore(settings.database_url), notifier=notifier)


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


@pytest.fixture
def citation_payload():
    return {
        "officerBadges": ["1234"],
        "officerUsernames": ["Deputy Dawg"],
        "officerRanks": ["Sergeant 2"],
        "officerUserIds": ["111222333"],
        "violatorUsername": "444555666",
        "violatorSignature": "444555666",
        "violationType": "Citation",
        "penalCodes": ["(8)15", "(2)08"],
        "amountsDue": ["250.00", "1000.00"],
        "totalAmount": "1250.00",
        "additionalNotes": "Pulled over on Route 9",
    }


@pytest.fixture
def arrest_payload():
    return {
        "officerBadges": ["1234", "5678"],
        "officerUsernames": ["Deputy Dawg", "Officer Dibble"],
        "officerRanks": ["Sergeant", "Officer"],
        "officerUserIds": ["111222333", "777888999"],
        "officerSignatures": ["111222333", "777888999"],
        "suspectSignature": "444555666",
        "description": "Tall, red jacket",
        "penalCodes": ["(1)04", "(2)01"],
        "amountsDue": ["1000.00", "0.00"],
        "jailTimes": ["60 Seconds", "210 Seconds"],
        "totalAmount": "1000.00",
        "totalJailTime": "120 Seconds",
        "timeServed": False,
    }


@pytest.fixture
def officer_headers():
    return dict(OFFICER_HEADERS)
