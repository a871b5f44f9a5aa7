"""Shared fixtures: isolated settings and a gateway over fake providers."""

import pytest

from config import VENDOR_KEY_FALLBACKS, Settings
from providers import LLMProvider, ModelGateway


@pytest.fixture(autouse=True)
def no_vendor_keys(monkeypatch):
    """Keep real credentials from leaking into tests."""
    for env_vars in VENDOR_KEY_FALLBACKS.values():
        for env_var in env_vars:
            monkeypatch.delenv(env_var, raising=False)
    for field_name in VENDOR_KEY_FALLBACKS:
        monkeypatch.delenv(f"BUILDMIND_{field_name.upper()}", raising=False)


@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        _env_file=None,
        retry_base_delay_seconds=0.0,
        asset_dir=str(tmp_path / "assets"),
        output_dir=str(tmp_path / "outputs"),
    )


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def make_gateway(test_settings, sleeps):
    async def fake_sleep(seconds):
        sleeps.append(seconds)

    def factory(*providers: LLMProvider) -> ModelGateway:
        return ModelGateway(providers=list(providers), settings=test_settings, sleep=fake_sleep)

    return factory


@pytest.fixture
def empty_gateway(make_gateway):
    return make_gateway()
