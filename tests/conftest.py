"""Pytest configuration and fixtures."""

import os
from typing import Any

import pytest

from clients.base import GeneratedContent
from clients.providers import BackendConfig
from core import Settings
from generation.invoker import RetryingInvoker, RetryPolicy
from generation.writer import OutputWriter
from planner.models import UnitSpec


# ============================================================================
# Pytest Hooks
# ============================================================================

def pytest_configure(config):
    """Configure pytest with environment variables."""
    os.environ["FORGE_LOG_LEVEL"] = "DEBUG"
    os.environ["FORGE_HOSTED_API_URL"] = "https://hosted.test/v1"


# ============================================================================
# Core Fixtures
# ============================================================================

@pytest.fixture
def settings(tmp_path):
    """Test settings writing under a temporary directory."""
    return Settings(
        output_dir=str(tmp_path / "out"),
        project_root=str(tmp_path),
        hosted_api_url="https://hosted.test/v1",
        max_attempts=4,
        base_delay_ms=2000,
        jitter_ms=1000,
    )


@pytest.fixture
def local_config(settings):
    """Backend config with one local credential."""
    return BackendConfig.from_environ({"GEMINI_API_KEY": "test-api-key"}, settings)


@pytest.fixture
def hosted_config(settings):
    """Backend config without local credentials."""
    return BackendConfig.from_environ({}, settings)


@pytest.fixture
def writer(tmp_path):
    return OutputWriter(tmp_path / "out")


# ============================================================================
# Backend Fixtures
# ============================================================================

class StubBackend:
    """Backend replaying scripted outcomes: an exception is raised, a string is returned."""

    def __init__(self, outcomes: list[Any], name: str = "stub"):
        self.name = name
        self.outcomes = list(outcomes)
        self.calls: list[str] = []

    async def generate(self, unit: UnitSpec, context: dict[str, Any]) -> GeneratedContent:
        self.calls.append(unit.name)
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        if callable(outcome):
            return await outcome(unit, context)
        return GeneratedContent(content=outcome, backend=self.name)


class FakeSleep:
    """Records requested delays instead of sleeping."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def stub_backend():
    return StubBackend


@pytest.fixture
def fake_sleep():
    return FakeSleep()


@pytest.fixture
def make_invoker(local_config, fake_sleep):
    """Invoker over a stub local backend with zero jitter and no real sleeping."""

    def make(backend, policy: RetryPolicy | None = None, timeout_ms: int = 60_000) -> RetryingInvoker:
        return RetryingInvoker(
            config=local_config,
            policy=policy or RetryPolicy(max_attempts=4, base_delay_ms=2000, jitter_ms=1000),
            local=backend,
            timeout_ms=timeout_ms,
            sleep=fake_sleep,
            rng=lambda: 0.0,
        )

    return make


@pytest.fixture
def unit():
    return UnitSpec(name="LoginForm", description="Email and password sign in", kind="form", group="Auth")


def fenced(code: str) -> str:
    return f"Here you go:\n```tsx\n{code}\n```\n"


@pytest.fixture
def fence():
    return fenced


# ============================================================================
# Data Fixtures
# ============================================================================

@pytest.fixture
def legacy_spec():
    """Flat groups specification."""
    return {
        "groups": [
            {
                "name": "Forms",
                "description": "d",
                "components": [{"name": "Login", "kind": "form"}],
            }
        ]
    }


@pytest.fixture
def hierarchical_spec():
    """Hierarchical specification with nested groups."""
    return {
        "metadata": {"version": 1},
        "App": {
            "description": "Storefront",
            "children": {
                "Dashboard": {
                    "kind": "layout",
                    "description": "Main dashboard",
                    "children": {
                        "StatsCard": {"kind": "display", "description": "Key numbers"},
                        "ProductList": {"kind": "data", "description": "List of products"},
                    },
                },
                "Forms": {
                    "description": "Input forms",
                    "children": {
                        "ProductForm": {"kind": "form", "description": "Create a product"},
                        "Card": {
                            "children": {
                                "Header": {"kind": "layout", "description": "Card header"},
                                "Notes": {"description": "No kind, never generated"},
                            }
                        },
                    },
                },
                "Empty": {"description": "Nothing here", "children": {}},
            },
        },
    }
