import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from langchain_core.messages import AIMessage

from content_studio.core.config import Settings
from content_studio.core.container import build_container, get_container
from content_studio.core.defaults import default_instructions_document
from content_studio.core.telemetry import events
from content_studio.main import app
from content_studio.models.domain import BrandInstructions
from content_studio.services.instructions import deep_merge
from content_studio.tools.blob_storage import InMemoryBlobStorage
from content_studio.tools.document_store import InMemoryDocumentStore


@pytest.fixture
def container():
    """A service container backed by in-memory stores."""
    return build_container(
        settings=Settings(),
        store=InMemoryDocumentStore(),
        blobs=InMemoryBlobStorage(),
    )


@pytest.fixture
def client(container):
    """
    Create a TestClient instance for testing FastAPI endpoints.
    """
    app.dependency_overrides[get_container] = lambda: container
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def reset_events():
    events.reset()
    yield
    events.reset()


@pytest.fixture
def make_llm():
    """Build a chat model double whose ainvoke replies with the given payload.

    Dicts are sent as JSON text; strings are sent as-is.
    """

    def _make(payload):
        content = payload if isinstance(payload, str) else json.dumps(payload)
        llm = MagicMock()
        llm.ainvoke = AsyncMock(return_value=AIMessage(content=content))
        return llm

    return _make


def _block(system_prompt: str, examples: list | None = None) -> dict:
    return {
        "systemPrompt": system_prompt,
        "requirements": "Keep it tight.",
        "dos": ["Be specific"],
        "donts": ["Use exclamation marks"],
        "examples": examples or [],
    }


@pytest.fixture
def configured_instructions():
    """Instructions for `cga` with every field filled in by a marketer."""

    def _make(brand_id: str = "cga", **overrides) -> BrandInstructions:
        doc = deep_merge(default_instructions_document(brand_id), {
            "brandIntroduction": "CGA is an online high school with a global campus.",
            "personas": [{
                "name": "Ambitious Parent",
                "description": "Parent of a 14 year old",
                "painPoints": ["Limited local options"],
                "solution": "World-class teachers online",
            }],
            "coreValues": ["Excellence", "Flexibility"],
            "toneOfVoice": "Confident and warm",
            "keyMessaging": ["Learn from anywhere"],
            "campaignInstructions": {
                "tofu": "Spark curiosity. CTA: Learn more",
                "mofu": "Build trust. CTA: Book a call",
                "bofu": "Drive applications. CTA: Apply now",
            },
            "adCopyInstructions": _block("You write CGA ad copy."),
            "blogInstructions": _block("You write CGA blog posts."),
            "landingPageInstructions": _block("You write CGA landing pages."),
            "emailInstructions": {
                "invitation": _block("You write CGA invitations."),
                "nurturingDrip": _block("You write CGA nurture emails."),
                "emailBlast": _block("You write CGA announcements."),
            },
        })
        doc = deep_merge(doc, overrides)
        return BrandInstructions.model_validate(doc)

    return _make
