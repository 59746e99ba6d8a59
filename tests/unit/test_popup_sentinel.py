import pytest

from replayninja.replication.errors import UnexpectedPopup
from replayninja.replication.popup_sentinel import PopupSentinel, PopupState
from replayninja.schemas.session import ActionKind, AlertDecision
from tests.fixtures.models.session_factories import InputPayloadFactory, RecordedEventFactory
from tests.mocks.browser_mocks import FakeBrowserControl


class TestPopupSentinelCheck:
    """Test suite for `PopupSentinel.check`.

    The sentinel runs before every step and only reports; it must never
    dismiss or close anything by itself.
    """

    @pytest.fixture
    def browser(self) -> FakeBrowserControl:
        return FakeBrowserControl()

    @pytest.fixture
    def sentinel(self, browser: FakeBrowserControl) -> PopupSentinel:
        return PopupSentinel(browser)

    # ? VALID CASE
    @pytest.mark.asyncio
    async def test_quiet_page(self, sentinel: PopupSentinel) -> None:
        assert await sentinel.check() == PopupState.NONE
        assert sentinel.expected_window_count == 1, "First check calibrates the window baseline"

    @pytest.mark.asyncio
    async def test_alert_wins_over_other_states(
        self, sentinel: PopupSentinel, browser: FakeBrowserControl
    ) -> None:
        browser.alert = "Leave site?"
        browser.windows.append("popup")
        browser.visible_modal = ".modal.show"

        assert await sentinel.check() == PopupState.ALERT
        assert "Leave site?" in (sentinel.last_detail or "")
        assert browser.alert == "Leave site?", "The sentinel must not dismiss the alert"

    @pytest.mark.asyncio
    async def test_new_window(self, sentinel: PopupSentinel, browser: FakeBrowserControl) -> None:
        await sentinel.calibrate()
        browser.windows.append("popup")

        assert await sentinel.check() == PopupState.NEW_WINDOW

    @pytest.mark.asyncio
    async def test_window_switch_moves_the_baseline(
        self, sentinel: PopupSentinel, browser: FakeBrowserControl
    ) -> None:
        await sentinel.calibrate()
        browser.windows.append("popup")
        await sentinel.acknowledge_window_switch()

        assert await sentinel.check() == PopupState.NONE

    @pytest.mark.asyncio
    async def test_closed_window_lowers_the_baseline(
        self, sentinel: PopupSentinel, browser: FakeBrowserControl
    ) -> None:
        browser.windows = ["main", "popup"]
        await sentinel.calibrate()
        browser.windows = ["main"]

        assert await sentinel.check() == PopupState.NONE
        assert sentinel.expected_window_count == 1

    @pytest.mark.asyncio
    async def test_visible_modal(self, sentinel: PopupSentinel, browser: FakeBrowserControl) -> None:
        browser.visible_modal = "[role='alertdialog']"

        assert await sentinel.check() == PopupState.MODAL

    @pytest.mark.asyncio
    async def test_modal_script_error_is_not_a_modal(
        self, sentinel: PopupSentinel, browser: FakeBrowserControl
    ) -> None:
        browser.modal_script_error = RuntimeError("navigation in progress")

        assert await sentinel.check() == PopupState.NONE


class TestPopupSentinelEnforce:
    """Test suite for which steps tolerate which interruption."""

    @pytest.fixture
    def sentinel(self) -> PopupSentinel:
        return PopupSentinel(FakeBrowserControl())

    # ? VALID CASE
    def test_alert_step_tolerates_alert(self, sentinel: PopupSentinel) -> None:
        event = RecordedEventFactory.custom_build(
            action=ActionKind.ALERT_ACTION,
            target=None,
            payload=InputPayloadFactory.custom_build(alert_action=AlertDecision.ACCEPT),
        )

        sentinel.enforce(event, PopupState.ALERT)

    def test_window_switch_tolerates_new_window(self, sentinel: PopupSentinel) -> None:
        event = RecordedEventFactory.custom_build(action=ActionKind.WINDOW_SWITCH, target=None)

        sentinel.enforce(event, PopupState.NEW_WINDOW)

    @pytest.mark.parametrize(
        "event_builder",
        [
            lambda: RecordedEventFactory.click(),
            lambda: RecordedEventFactory.navigate("https://example.com"),
        ],
    )
    def test_modal_tolerated_by_targeted_and_navigate_steps(
        self, sentinel: PopupSentinel, event_builder
    ) -> None:
        sentinel.enforce(event_builder(), PopupState.MODAL)

    # ! INVALID CASE
    def test_click_blocked_by_alert(self, sentinel: PopupSentinel) -> None:
        with pytest.raises(UnexpectedPopup) as exc_info:
            sentinel.enforce(RecordedEventFactory.click(), PopupState.ALERT)

        assert exc_info.value.popup_state == PopupState.ALERT
        assert exc_info.value.kind == "UnexpectedPopup"
        assert exc_info.value.component == "PopupSentinel"

    def test_click_blocked_by_new_window(self, sentinel: PopupSentinel) -> None:
        with pytest.raises(UnexpectedPopup):
            sentinel.enforce(RecordedEventFactory.click(), PopupState.NEW_WINDOW)

    def test_targetless_key_press_blocked_by_modal(self, sentinel: PopupSentinel) -> None:
        event = RecordedEventFactory.custom_build(
            action=ActionKind.KEY_PRESS,
            target=None,
            payload=InputPayloadFactory.custom_build(key="ENTER"),
        )

        with pytest.raises(UnexpectedPopup):
            sentinel.enforce(event, PopupState.MODAL)
