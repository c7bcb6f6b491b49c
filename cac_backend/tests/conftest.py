"""
Pytest Configuration and Shared Fixtures for CAC Calculator Backend Tests.

This module provides fixtures and configuration for all backend tests:
- Custom marker registration
- Raw marketing / revenue rows shaped like parsed uploads
- The single-row Google Ads example with hand-checked metrics
- A 14-day daily series factory for trend tests
- A FastAPI TestClient with a fresh upload cache per test

Dependencies:
- pytest
- pytest-asyncio (async API tests)
- httpx (FastAPI TestClient / AsyncClient transport)
"""

from datetime import date, timedelta
from typing import Any, Callable, Dict, Generator, List

import pytest
from fastapi.testclient import TestClient

from cac_backend.core.dependencies import get_upload_cache
from cac_backend.services.ingestion import UploadCache


# ============================================================
# PYTEST HOOKS
# ============================================================

def pytest_configure(config) -> None:
    """
    Configure custom pytest markers for test organization.

    Custom markers defined:
    - api: Tests that exercise the HTTP surface through TestClient
    - slow: Marks tests as slow (deselect with -m "not slow")
    """
    config.addinivalue_line(
        'markers',
        'api: marks tests that go through the FastAPI application'
    )
    config.addinivalue_line(
        'markers',
        'slow: marks tests as slow (deselect with -m "not slow")'
    )


# ============================================================
# RAW ROW FIXTURES
# ============================================================

@pytest.fixture
def google_ads_marketing() -> List[Dict[str, Any]]:
    """One Google Ads day: cac 50, ctr 5, cvr 4, cpc 2 with the matching revenue."""
    return [{
        'date': '2024-01-01',
        'channel': 'Google Ads',
        'spend': 1000,
        'clicks': 500,
        'impressions': 10000,
        'customers': 20,
    }]


@pytest.fixture
def google_ads_revenue() -> List[Dict[str, Any]]:
    """Revenue for the Google Ads day; roas 5."""
    return [{'date': '2024-01-01', 'channel': 'Google Ads', 'revenue': 5000}]


@pytest.fixture
def underperforming_facebook() -> List[Dict[str, Any]]:
    """Facebook day far below benchmark on every metric; scores 3 with no revenue."""
    return [{
        'date': '2024-01-01',
        'channel': 'Facebook',
        'spend': 1000,
        'clicks': 100,
        'impressions': 100000,
        'customers': 1,
    }]


@pytest.fixture
def sample_marketing_rows() -> List[Dict[str, Any]]:
    """
    Two channels across two months, using mixed column names the normalizer
    must resolve (source/amount/conversions, campaign).
    """
    return [
        {
            'date': '2024-01-05', 'channel': 'Google Ads', 'campaign': 'Brand',
            'spend': 600, 'clicks': 300, 'impressions': 12000, 'customers': 6,
        },
        {
            'date': '2024-01-06', 'channel': 'Google Ads', 'campaign': 'Generic',
            'spend': 400, 'clicks': 200, 'impressions': 8000, 'customers': 4,
        },
        {
            'date': '2024-02-10', 'source': 'Facebook', 'campaign': 'Retargeting',
            'amount': '500', 'clicks': '250', 'impressions': '50000', 'conversions': '5',
        },
    ]


@pytest.fixture
def sample_revenue_rows() -> List[Dict[str, Any]]:
    """Revenue-side customers per channel plus one undated LinkedIn row."""
    return [
        {'date': '2024-01-20', 'channel': 'Google Ads', 'revenue': 3000, 'customers': 10},
        {'date': '2024-02-15', 'channel': 'Facebook', 'revenue': 750, 'new_customers': 5},
        {'channel': 'LinkedIn', 'revenue': 900, 'acquisitions': 5},
    ]


@pytest.fixture
def daily_series() -> Callable[..., List[Dict[str, Any]]]:
    """
    Factory for consecutive daily marketing rows.

    Usage:
        rows = daily_series(first_spend=100, second_spend=120)

    The first 7 days use first_spend, the rest second_spend; every day has
    `customers` customers.
    """
    def _build(
        first_spend: float = 100.0,
        second_spend: float = 100.0,
        days: int = 14,
        customers: float = 2,
        start: date = date(2024, 1, 1),
    ) -> List[Dict[str, Any]]:
        rows = []
        for offset in range(days):
            rows.append({
                'date': (start + timedelta(days=offset)).isoformat(),
                'channel': 'Google Ads',
                'spend': first_spend if offset < 7 else second_spend,
                'customers': customers,
            })
        return rows

    return _build


# ============================================================
# API FIXTURES
# ============================================================

@pytest.fixture
def upload_cache() -> UploadCache:
    """A fresh upload cache, isolated from other tests."""
    return UploadCache(ttl_seconds=300)


@pytest.fixture
def client(upload_cache: UploadCache) -> Generator[TestClient, None, None]:
    """TestClient with the upload cache dependency overridden."""
    from cac_backend.main import app

    app.dependency_overrides[get_upload_cache] = lambda: upload_cache
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
