import copy
from typing import Any, Callable, Union
from unittest.mock import patch

import httpx
import pytest

from tool_intel.config.settings import Settings
from tool_intel.models.schemas import Backlinks, HistoricalPoint, RankOverview
from tool_intel.utils.logger import setup_logging

# Route value: (http_status, json_body) or a callable taking the request
Route = Union[tuple[int, Any], Callable[[httpx.Request], httpx.Response]]

RANK_OVERVIEW_PAYLOAD = {
    "status_code": 20000,
    "status_message": "Ok.",
    "result": [
        {
            "target": "cursor.com",
            "items": [
                {
                    "metrics": {
                        "organic": {
                            "etv": 1_200_000,
                            "count": 60_000,
                            "pos_1": 2_500,
                            "pos_2_3": 1_500,
                            "pos_4_10": 6_000,
                            "pos_11_20": 8_000,
                            "is_new": 120,
                            "is_up": 300,
                            "is_down": 80,
                            "is_lost": 40,
                            "estimated_paid_traffic_cost": 350_000.5,
                        }
                    }
                }
            ],
        }
    ],
}

BACKLINKS_PAYLOAD = {
    "status_code": 20000,
    "status_message": "Ok.",
    "tasks": [
        {
            "id": "task-backlinks-1",
            "status_code": 20000,
            "status_message": "Ok.",
            "result": [
                {
                    "target": "cursor.com",
                    "rank": 85,
                    "backlinks": 600_000,
                    "referring_domains": 25_000,
                    "referring_main_domains": 20_000,
                    "referring_ips": 15_000,
                    "referring_subnets": 9_000,
                    "backlinks_spam_score": 12,
                    "target_spam_score": 0,
                    "first_seen": "2019-01-01 00:00:00 +00:00",
                }
            ],
        }
    ],
}

HISTORY_PAYLOAD = {
    "status_code": 20000,
    "status_message": "Ok.",
    "tasks": [
        {
            "id": "task-history-1",
            "status_code": 20000,
            "result": [
                {
                    "target": "cursor.com",
                    "items": [
                        {"year": 2025, "month": 3, "metrics": {"organic": {"etv": 800_000, "count": 40_000}}},
                        {"year": 2024, "month": 12, "metrics": {"organic": {"etv": 500_000, "count": 30_000}}},
                        {"year": 2025, "month": 6, "metrics": {"organic": {"etv": 1_000_000, "count": 50_000}}},
                    ],
                }
            ],
        }
    ],
}

PAYMENT_REQUIRED_PAYLOAD = {
    "status_code": 40200,
    "status_message": "Payment Required.",
}


def make_settings(**overrides) -> Settings:
    """Build Settings from explicit values only, ignoring any .env file."""
    values = {
        "DATAFORSEO_API_KEY": "dGVzdDp0ZXN0",
        "DATAFORSEO_USERNAME": "",
        "DATAFORSEO_PASSWORD": "",
        "REQUEST_TIMEOUT_SECONDS": 5,
        "MAX_RETRIES": 0,
        "APP_ENV": "development",
        "LOG_LEVEL": "INFO",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_transport(routes: dict[str, Route]) -> httpx.MockTransport:
    """MockTransport that answers by URL path suffix; unknown paths get a 404."""
    def handler(request: httpx.Request) -> httpx.Response:
        for suffix, route in routes.items():
            if request.url.path.endswith(suffix):
                if callable(route):
                    return route(request)
                status, body = route
                return httpx.Response(status, json=body)
        return httpx.Response(404, json={"status_code": 40400, "status_message": "Not Found."})

    return httpx.MockTransport(handler)


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def unconfigured_settings():
    return make_settings(DATAFORSEO_API_KEY="")


@pytest.fixture(autouse=True)
def configure_logging():
    """Route log events through the stderr handler for the test session."""
    setup_logging(level="WARNING", json_format=True)


@pytest.fixture(autouse=True)
def patch_get_settings(settings):
    """Keep every module away from the real environment."""
    with patch("tool_intel.services.seo_service.get_settings", return_value=settings):
        with patch("tool_intel.pipeline.orchestrator.get_settings", return_value=settings):
            yield settings


@pytest.fixture
def rank_overview_payload():
    return copy.deepcopy(RANK_OVERVIEW_PAYLOAD)


@pytest.fixture
def backlinks_payload():
    return copy.deepcopy(BACKLINKS_PAYLOAD)


@pytest.fixture
def history_payload():
    return copy.deepcopy(HISTORY_PAYLOAD)


@pytest.fixture
def all_routes(rank_overview_payload, backlinks_payload, history_payload):
    return {
        "/domain_rank_overview/live": (200, rank_overview_payload),
        "/backlinks/summary/live": (200, backlinks_payload),
        "/historical_rank_overview/live": (200, history_payload),
    }


@pytest.fixture
def rank_overview():
    return RankOverview(
        target="cursor.com",
        etv=1_200_000,
        keyword_count=60_000,
        position_buckets={"pos_1": 4_000},
    )


@pytest.fixture
def backlinks():
    return Backlinks(
        target="cursor.com",
        domain_rank=85,
        backlink_count=600_000,
        referring_domains=25_000,
    )


@pytest.fixture
def history():
    return [
        HistoricalPoint(year=2024, month=12, etv=500_000, keyword_count=30_000),
        HistoricalPoint(year=2025, month=3, etv=800_000, keyword_count=40_000),
        HistoricalPoint(year=2025, month=6, etv=1_000_000, keyword_count=50_000),
    ]


@pytest.fixture
def capabilities_text():
    return (
        "Cursor is an AI-first code editor.\n\n"
        "Pricing Details:\n"
        "**Free**\n"
        "Price: Free\n"
        "Best For: individuals\n"
        "**Pro**\n"
        "Price: $20/mo\n"
        "Key Features:\n"
        "- Feature A\n"
        "- Feature B\n"
        "Value Rating: Good"
    )


@pytest.fixture
def settings_factory():
    return make_settings


@pytest.fixture
def transport_factory():
    return make_transport


@pytest.fixture
def payment_required_payload():
    return copy.deepcopy(PAYMENT_REQUIRED_PAYLOAD)
