"""Shared fixtures for chezpanel tests."""

import pytest

from fakes import FakeRunner


@pytest.fixture
def fake_runner():
    return FakeRunner()
