import pytest

from rule_validator.message_store import reset_message_templates


@pytest.fixture(autouse=True)
def fresh_message_store(monkeypatch):
    """Each test starts without a loaded template store or env override."""
    monkeypatch.delenv("RULE_VALIDATOR_MESSAGES", raising=False)
    reset_message_templates()
    yield
    reset_message_templates()
