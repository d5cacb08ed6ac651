"""Shared fixtures for the batch pipeline tests (no external services required)."""

from __future__ import annotations

import pytest

from src.extraction.normalize import ExtractionError
from tests.fakes import FakeExtractionService, FakeRecordStore


@pytest.fixture
def fake_service() -> FakeExtractionService:
    return FakeExtractionService()


@pytest.fixture
def fake_store() -> FakeRecordStore:
    return FakeRecordStore()


@pytest.fixture
def failing_service() -> FakeExtractionService:
    return FakeExtractionService({"https://bad.example": ExtractionError("boom")})
