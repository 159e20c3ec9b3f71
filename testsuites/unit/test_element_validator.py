import pytest

from browser_automation.maps.element_validator import (
    IssueCategory,
    IssueSeverity,
    validate_element_map,
)


def _render_all(page, element_map):
    for element in element_map.flatten():
        page.add(element.selector)


@pytest.mark.asyncio
async def test_all_elements_present(page, element_map):
    _render_all(page, element_map)

    result = await validate_element_map(page, element_map)

    assert result.valid is True
    assert result.passed_elements == result.total_elements == 10
    assert result.issues == []


@pytest.mark.asyncio
async def test_fallback_warning_names_working_alternative(page, element_map):
    _render_all(page, element_map)
    del page.elements["[data-testid='tab-jobs']"]
    page.add("text=Jobs")

    result = await validate_element_map(page, element_map)

    assert result.valid is True
    assert result.warning_elements == 1
    warning = result.warnings[0]
    assert warning.category == IssueCategory.FALLBACK
    assert warning.element == "navigation.tabs.jobs"
    assert warning.working_selector == "text=Jobs"
    assert "text=Jobs" in warning.message


@pytest.mark.asyncio
async def test_ambiguous_selector_and_strict_mode(page, element_map):
    _render_all(page, element_map)
    page.add("[data-testid='chat-input']", count=2)

    lenient = await validate_element_map(page, element_map)
    strict = await validate_element_map(page, element_map, strict=True)

    assert lenient.valid is True
    assert lenient.warnings[0].category == IssueCategory.AMBIGUOUS
    assert lenient.warnings[0].to_dict()["matchCount"] == 2
    assert strict.valid is False


@pytest.mark.asyncio
async def test_missing_element_is_an_error(page, element_map):
    _render_all(page, element_map)
    del page.elements["[data-testid='chat-send']"]

    result = await validate_element_map(page, element_map)

    assert result.valid is False
    assert result.error_elements == 1
    error = result.errors[0]
    assert error.severity == IssueSeverity.ERROR
    assert error.category == IssueCategory.MISSING
    assert error.element == "chat.sendButton"


@pytest.mark.asyncio
async def test_selector_exception_is_reported(page, element_map):
    _render_all(page, element_map)
    page.broken_selectors.add("[data-testid='chat-panel']")

    result = await validate_element_map(page, element_map)

    assert result.errors[0].category == IssueCategory.EXCEPTION
    assert result.errors[0].message.startswith("Validation failed: Unexpected token")


@pytest.mark.asyncio
async def test_exhausted_budget_marks_remaining_elements(page, element_map):
    _render_all(page, element_map)

    result = await validate_element_map(page, element_map, timeout=0)

    assert result.timed_out is True
    assert result.error_elements == 10
    assert result.to_dict()["timedOut"] is True
