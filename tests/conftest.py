"""
Shared fixtures: a known-good signature produced by the webhook sender.
"""

import pytest


@pytest.fixture
def secret() -> str:
    return "test"


@pytest.fixture
def payload() -> str:
    return '{"_id":"resume"}'


@pytest.fixture
def signature() -> str:
    return "t=1633519811129,v1=tLa470fx7qkLLEcMOcEUFuBbRSkGujyskxrNXcoh0N0"
