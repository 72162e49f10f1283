from tracking import t
import pytest

from automation.executors.booking import (
    click_matching_slot,
    collect_slot_labels,
    confirm_booking,
    enumerate_slot_elements,
    select_companion,
)
from infrastructure import constants
from tests.fakes import FakeElement, FakePage, add_slots, playwright_error
from tests.helpers import DummyLogger


@pytest.mark.asyncio
async def test_enumerate_prefers_tag_selector():
    t('tests.unit.test_booking_steps.test_enumerate_prefers_tag_selector')
    page = FakePage()
    add_slots(page, "9:00 - 10:30 AM", "2:30 - 4:00 PM")

    result = await enumerate_slot_elements(page, DummyLogger())

    assert result.strategy == "tag selector"
    assert len(result.element) == 2


@pytest.mark.asyncio
async def test_enumerate_falls_back_to_container():
    t('tests.unit.test_booking_steps.test_enumerate_falls_back_to_container')
    page = FakePage()
    slot = FakeElement("2:30 - 4:00 PM")
    page.add(
        constants.TIME_SLOT_CONTAINER_SELECTOR,
        FakeElement("", children={constants.TIME_SLOT_ITEM_SELECTOR: [slot]}),
    )

    result = await enumerate_slot_elements(page)

    assert result.strategy == "container scoped"
    assert result.element == [slot]


@pytest.mark.asyncio
async def test_enumerate_generic_scan_filters_blocks():
    t('tests.unit.test_booking_steps.test_enumerate_generic_scan_filters_blocks')
    page = FakePage()
    keep = FakeElement("2:30 - 4:00 PM")
    page.add(
        constants.GENERIC_BLOCK_SELECTOR,
        keep,
        FakeElement("Hidden 1:00 PM", visible=False),
        FakeElement("Courts open from 2:30 - 4:00 PM today"),
        FakeElement("Tennis"),
    )

    result = await enumerate_slot_elements(page)

    assert result.strategy == "generic block scan"
    assert result.element == [keep]


@pytest.mark.asyncio
async def test_enumerate_reports_nothing_found():
    t('tests.unit.test_booking_steps.test_enumerate_reports_nothing_found')
    result = await enumerate_slot_elements(FakePage())
    assert not result.found


@pytest.mark.asyncio
async def test_collect_slot_labels_filters_and_dedupes():
    t('tests.unit.test_booking_steps.test_collect_slot_labels_filters_and_dedupes')
    elements = [
        FakeElement(" 2:30 - 4:00 PM "),
        FakeElement("2:30 - 4:00 PM"),
        FakeElement("Select"),
        FakeElement("9:00 - 10:30 AM"),
    ]
    assert await collect_slot_labels(elements) == ["2:30 - 4:00 PM", "9:00 - 10:30 AM"]


@pytest.mark.asyncio
async def test_click_matching_slot_clicks_first_visible_match_only():
    t('tests.unit.test_booking_steps.test_click_matching_slot_clicks_first_visible_match_only')
    page = FakePage()
    hidden, first, duplicate = add_slots(page, "2:30 - 4:00 PM", "2:30 - 4:00 PM", "2:30 - 4:00 PM")
    hidden.visible = False

    label = await click_matching_slot(page, "2:30 PM", DummyLogger())

    assert label == "2:30 - 4:00 PM"
    assert not hidden.clicked
    assert first.clicks == ["click"]
    assert first.scrolled == 1
    assert not duplicate.clicked


@pytest.mark.asyncio
async def test_click_matching_slot_never_cross_matches():
    t('tests.unit.test_booking_steps.test_click_matching_slot_never_cross_matches')
    page = FakePage()
    (only,) = add_slots(page, "12:30 - 2:00 PM")

    assert await click_matching_slot(page, "2:30 PM") is None
    assert not only.clicked


@pytest.mark.asyncio
async def test_click_matching_slot_forces_intercepted_click():
    t('tests.unit.test_booking_steps.test_click_matching_slot_forces_intercepted_click')
    page = FakePage()
    (slot,) = add_slots(page, "2:30 - 4:00 PM")
    slot.click_error = playwright_error("element intercepts pointer events")

    assert await click_matching_slot(page, "2:30") == "2:30 - 4:00 PM"
    assert slot.clicks == ["force"]


@pytest.mark.asyncio
async def test_companion_falls_back_through_positions_then_list():
    t('tests.unit.test_booking_steps.test_companion_falls_back_through_positions_then_list')
    page = FakePage()
    person = page.add(constants.COMPANION_ITEM_SELECTOR, FakeElement("Samuel Wang"))[0]

    result = await select_companion(page, ("Samuel", "Wang"), DummyLogger())

    assert result.strategy == "first listed person"
    assert person.clicked


@pytest.mark.asyncio
async def test_companion_uses_second_list_position():
    t('tests.unit.test_booking_steps.test_companion_uses_second_list_position')
    page = FakePage()
    second = page.add(constants.COMPANION_XPATHS[1], FakeElement("Samuel Wang"))[0]

    result = await select_companion(page, ("Samuel",))

    assert result.strategy == "list position 2"
    assert second.clicked


@pytest.mark.asyncio
async def test_companion_matches_name_text_last():
    t('tests.unit.test_booking_steps.test_companion_matches_name_text_last')
    page = FakePage()
    name = page.add_text("Sam Wang (buddy)")

    result = await select_companion(page, ("Samuel", "Wang"))

    assert result.strategy == "name text"
    assert name.clicked


@pytest.mark.asyncio
async def test_companion_not_found():
    t('tests.unit.test_booking_steps.test_companion_not_found')
    logger = DummyLogger()
    result = await select_companion(FakePage(), ("Samuel",), logger)
    assert not result.found
    assert logger.last("error") is not None


@pytest.mark.asyncio
async def test_confirm_prefers_keyword_buttons():
    t('tests.unit.test_booking_steps.test_confirm_prefers_keyword_buttons')
    page = FakePage()
    cancel, hidden, confirm = page.add(
        "button",
        FakeElement("Cancel"),
        FakeElement("Book", visible=False),
        FakeElement("Complete Booking"),
    )

    assert await confirm_booking(page) == "Complete Booking"
    assert confirm.clicked
    assert not cancel.clicked
    assert not hidden.clicked


@pytest.mark.asyncio
async def test_confirm_falls_back_to_any_visible_button():
    t('tests.unit.test_booking_steps.test_confirm_falls_back_to_any_visible_button')
    page = FakePage()
    (fallback,) = page.add("button", FakeElement("Continue"))

    assert await confirm_booking(page) == "Continue"
    assert fallback.clicked


@pytest.mark.asyncio
async def test_confirm_missing_is_none():
    t('tests.unit.test_booking_steps.test_confirm_missing_is_none')
    assert await confirm_booking(FakePage()) is None
