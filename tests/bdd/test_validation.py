"""BDD step definitions for prompt validation."""

import pytest
from pytest_bdd import given, parsers, scenario, then, when

from promptguard import validate
from promptguard.config import parse_delimiters
from promptguard.domain.builder import PolicyBuilder
from promptguard.domain.models import Policy, ThreatCategory
from promptguard.domain.results import Rejection, Success


@scenario("features/validation.feature", "Instruction override is blocked")
def test_instruction_override_blocked() -> None:
    pass


@scenario("features/validation.feature", "Role manipulation is sanitized")
def test_role_manipulation_sanitized() -> None:
    pass


@scenario("features/validation.feature", "Delimiter tags are caught case-insensitively")
def test_delimiter_tags_caught() -> None:
    pass


@scenario("features/validation.feature", "A single delimiter tag is caught under the lenient preset")
def test_delimiter_tags_lenient() -> None:
    pass


@scenario("features/validation.feature", "System prompt requests are blocked under every preset")
def test_system_prompt_leak_blocked() -> None:
    pass


@scenario("features/validation.feature", "Benign text passes untouched")
def test_benign_text() -> None:
    pass


@scenario("features/validation.feature", "Oversized input is rejected before detection")
def test_oversized_input() -> None:
    pass


@pytest.fixture
def context() -> dict:
    """Shared test context."""
    return {}


@given(parsers.parse('the "{preset}" preset'))
def given_preset(context: dict, preset: str) -> None:
    context["builder"] = PolicyBuilder.from_preset(preset)


@given(parsers.parse('"{category}" is set to "{action}"'))
def given_action(context: dict, category: str, action: str) -> None:
    context["builder"] = context["builder"].with_action(category, action)


@given(parsers.parse('the delimiters "{delimiters}"'))
def given_delimiters(context: dict, delimiters: str) -> None:
    context["builder"] = context["builder"].with_delimiters(parse_delimiters(delimiters))


@given(parsers.parse("a maximum length of {max_length:d}"))
def given_max_length(context: dict, max_length: int) -> None:
    context["builder"] = context["builder"].with_max_length(max_length)


@when(parsers.parse('I validate "{text}"'))
def validate_text(context: dict, text: str) -> None:
    policy = context["builder"].build()
    assert isinstance(policy, Policy), f"Expected a policy, got {policy!r}"
    context["text"] = text
    context["result"] = validate(text, policy)


@then(parsers.parse('the input should be rejected for "{category}"'))
def rejected_for(context: dict, category: str) -> None:
    result = context["result"]
    assert isinstance(result, Rejection), f"Expected rejection, got {result!r}"
    assert result.category is ThreatCategory(category)


@then("the input should be rejected by the length guard")
def rejected_by_length(context: dict) -> None:
    result = context["result"]
    assert isinstance(result, Rejection)
    assert result.category is None
    assert "exceeds maximum" in result.reason


@then(parsers.parse('the input should be accepted as "{text}"'))
def accepted_as(context: dict, text: str) -> None:
    result = context["result"]
    assert isinstance(result, Success), f"Expected success, got {result!r}"
    assert result.text == text


@then("the input should be accepted unchanged")
def accepted_unchanged(context: dict) -> None:
    result = context["result"]
    assert isinstance(result, Success), f"Expected success, got {result!r}"
    assert result.text == context["text"]


@then(parsers.parse("the score should be {score:f}"))
def score_is(context: dict, score: float) -> None:
    assert context["result"].score == pytest.approx(score)


@then("there should be no warnings")
def no_warnings(context: dict) -> None:
    assert context["result"].warnings == ()
