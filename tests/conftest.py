"""
Pytest fixtures for LoveScan tests. Collaborator keys are blanked so no
test ever reaches the network unless it patches requests itself.
"""

from __future__ import annotations

import pytest


@pytest.fixture(autouse=True)
def offline_collaborators(monkeypatch):
    """Disable LLM, vision, webhook and auth regardless of the local .env."""
    import lovescan.llm.llm_client as llm_client
    import lovescan.main as main
    import lovescan.reporting.report_client as report_client
    import lovescan.security as security
    import lovescan.vision.vision_client as vision_client

    monkeypatch.setattr(llm_client, "OPENROUTER_API_KEY", "")
    monkeypatch.setattr(vision_client, "GOOGLE_VISION_API_KEY", "")
    monkeypatch.setattr(main, "REPORT_WEBHOOK_URL", "")
    monkeypatch.setattr(report_client, "REPORT_WEBHOOK_URL", "")
    monkeypatch.setattr(security, "API_KEY", "")


@pytest.fixture
def client():
    """FastAPI TestClient for the LoveScan app."""
    from fastapi.testclient import TestClient

    from lovescan.main import app

    return TestClient(app)


@pytest.fixture
def romance_chat() -> str:
    return "I need money urgently, my dad is in hospital"
