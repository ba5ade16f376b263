# tests/conftest.py

"""
Pytest configuration and shared fixtures for testing.
"""

import pytest
from fastapi.testclient import TestClient
from typing import Generator

from main import create_app
from core.evaluator import PermissionEvaluator, get_evaluator
from core.filtering import get_default_registry
from core.permissions import build_default_config
from models.permissions import FeatureCapabilities, PermissionMatrix


USER_ID = "user-123"
OTHER_USER_ID = "user-456"
ADMIN_USER_ID = "admin-789"


@pytest.fixture(scope="function")
def app():
    """Create a test FastAPI application instance."""
    return create_app()


@pytest.fixture(scope="function")
def client(app) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI application."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def evaluator() -> PermissionEvaluator:
    """Evaluator over the built-in matrix, constructed explicitly."""
    matrix, features = build_default_config()
    return PermissionEvaluator(matrix, features)


@pytest.fixture
def tiny_evaluator() -> PermissionEvaluator:
    """Fixture matrix unrelated to the built-in one, to prove injection works."""
    matrix = PermissionMatrix.from_mapping({
        "member": ["tasks:read:all", "financial:read:own"],
        "guest": ["lofts:read:assigned"],
    })
    features = FeatureCapabilities({"beta-reports": ["member"]})
    return PermissionEvaluator(matrix, features)


@pytest.fixture
def tasks():
    return [
        {
            "id": "1",
            "title": "Public Task",
            "status": "todo",
            "user_id": USER_ID,
            "assigned_to": USER_ID,
            "created_at": "2024-01-01",
            "loft_id": "loft-1",
        },
        {
            "id": "2",
            "title": "Sensitive Admin Task",
            "status": "in_progress",
            "user_id": ADMIN_USER_ID,
            "assigned_to": ADMIN_USER_ID,
            "created_at": "2024-01-02",
            "loft_id": "loft-2",
            "description": "Contains sensitive admin information",
        },
        {
            "id": "3",
            "title": "Other User Task",
            "status": "completed",
            "user_id": OTHER_USER_ID,
            "assigned_to": OTHER_USER_ID,
            "created_at": "2024-01-03",
            "loft_id": "loft-3",
        },
        {
            "id": "4",
            "title": "Cross-assigned Task",
            "status": "todo",
            "user_id": OTHER_USER_ID,
            "assigned_to": USER_ID,
            "created_at": "2024-01-04",
            "loft_id": "loft-1",
        },
    ]


@pytest.fixture
def lofts():
    return [
        {
            "id": "loft-1",
            "name": "Standard Loft",
            "address": "123 Main St",
            "status": "available",
            "price_per_month": 1000,
            "owner_id": "owner-1",
            "company_percentage": 70,
            "owner_percentage": 30,
            "water_customer_code": "SENSITIVE_WATER_123",
            "electricity_customer_number": "SENSITIVE_ELEC_456",
        },
        {
            "id": "loft-2",
            "name": "Premium Loft",
            "address": "456 Oak Ave",
            "status": "occupied",
            "price_per_month": 2000,
            "owner_id": "owner-2",
            "company_percentage": 60,
            "owner_percentage": 40,
            "water_customer_code": "SENSITIVE_WATER_789",
            "electricity_customer_number": "SENSITIVE_ELEC_012",
        },
    ]


@pytest.fixture
def notifications():
    return [
        {
            "id": "1",
            "type": "task_assigned",
            "user_id": USER_ID,
            "is_read": False,
            "title": "Task assigned to you",
            "message": "You have been assigned a new task",
        },
        {
            "id": "2",
            "type": "financial_report",
            "user_id": USER_ID,
            "is_read": False,
            "title": "Financial Report Available",
            "message": "Monthly financial report is ready - CONFIDENTIAL",
        },
        {
            "id": "3",
            "type": "system_alert",
            "user_id": OTHER_USER_ID,
            "is_read": True,
            "title": "System Maintenance",
            "message": "System maintenance scheduled",
        },
        {
            "id": "4",
            "type": "admin_alert",
            "user_id": ADMIN_USER_ID,
            "is_read": False,
            "title": "Security Alert",
            "message": "Unauthorized access attempt detected - ADMIN ONLY",
        },
    ]


@pytest.fixture
def transactions():
    return [
        {"id": "1", "amount": 1000, "transaction_type": "income", "status": "completed", "loft_id": "loft-1"},
        {"id": "2", "amount": 50000, "transaction_type": "income", "status": "completed", "loft_id": "loft-2"},
        {"id": "3", "amount": 500, "transaction_type": "expense", "status": "pending", "loft_id": "loft-1"},
    ]


@pytest.fixture(autouse=True)
def reset_engine_caches():
    """Rebuild the process-wide evaluator / registry for each test."""
    get_evaluator.cache_clear()
    get_default_registry.cache_clear()
    yield
    get_evaluator.cache_clear()
    get_default_registry.cache_clear()
