"""
Unit test configuration.

Settings classes read a .env file; unit tests must only see what they set
with monkeypatch.setenv(), so dotenv parsing is stubbed to return nothing.
Repository, clock and email fakes live in tests/conftest.py.
"""

import pytest


@pytest.fixture(autouse=True)
def no_dotenv(monkeypatch):
    import pydantic_settings.sources.providers.dotenv as ps_dotenv

    monkeypatch.setattr(ps_dotenv, "dotenv_values", lambda *a, **kw: {})
