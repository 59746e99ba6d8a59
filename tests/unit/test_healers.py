from unittest.mock import AsyncMock, MagicMock

import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel
from langchain_core.messages import HumanMessage, SystemMessage

from replayninja.config.settings import ReplayNinjaSettings
from replayninja.healing import (
    CANNOT_HEAL_SENTINEL,
    DomComparisonHealer,
    HealingRequest,
    HealingResponse,
    LLMLocatorHealer,
    clean_llm_locator,
    create_healing_service,
    strategy_for_locator,
)
from replayninja.prompts import (
    DOM_TRUNCATION_MARKER,
    get_healer_system_prompt,
    get_healer_user_prompt,
    render_prompt,
    truncate_dom,
)
from replayninja.schemas.session import LocatorStrategy
from tests.fixtures.models.session_factories import ElementDescriptorFactory

PAGE_HTML = (
    "<html><body><form>"
    "<input name='email' type='email'/>"
    "<button data-testid='submit' class='btn primary'>Submit</button>"
    "<button class='btn'>Cancel</button>"
    "</form></body></html>"
)


def make_request(**descriptor_overrides) -> HealingRequest:
    descriptor = ElementDescriptorFactory.custom_build(**descriptor_overrides)
    return HealingRequest(
        descriptor=descriptor, dom_snapshot=PAGE_HTML, url="https://example.com/form"
    )


class TestHealingResponse:
    """Test suite for `HealingResponse` construction helpers."""

    # ? VALID CASE
    def test_suggest_keeps_hints_and_only_the_new_locator(self) -> None:
        original = ElementDescriptorFactory.custom_build(
            id="submit-btn", css="#submit-btn", attributes={"data-testid": "submit"}
        )

        response = HealingResponse.suggest(original, LocatorStrategy.CSS, "[data-testid='submit']")

        assert response.available
        healed = response.descriptor
        assert healed is not None
        assert healed.populated_strategies() == [(LocatorStrategy.CSS, "[data-testid='submit']")]
        assert healed.tag_name == "button"
        assert healed.attributes == {"data-testid": "submit"}

    # ! INVALID CASE
    def test_unavailable(self) -> None:
        response = HealingResponse.unavailable("nothing similar", "test")

        assert not response.available
        assert response.reason == "nothing similar"


class TestLocatorCleaning:
    """Test suite for normalising raw model answers into locators."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("#submit", "#submit"),
            ("  button.primary \n", "button.primary"),
            ("```css\n[data-testid='submit']\n```", "[data-testid='submit']"),
            ("```\n//button[text()='Submit']\n```", "//button[text()='Submit']"),
            ('"#submit"', "#submit"),
            ("`#submit`", "#submit"),
        ],
    )
    def test_clean_llm_locator(self, raw: str, expected: str) -> None:
        assert clean_llm_locator(raw) == expected

    @pytest.mark.parametrize(
        "locator,expected",
        [
            ("//button", LocatorStrategy.XPATH),
            ("(//button)[2]", LocatorStrategy.XPATH),
            ("button.primary", LocatorStrategy.CSS),
            ("#submit", LocatorStrategy.CSS),
        ],
    )
    def test_strategy_for_locator(self, locator: str, expected: LocatorStrategy) -> None:
        assert strategy_for_locator(locator) == expected


class TestDomComparisonHealer:
    """Test suite for the offline DOM comparison healer."""

    # ? VALID CASE
    @pytest.mark.asyncio
    async def test_stable_attribute_yields_unique_xpath(self) -> None:
        request = make_request(id="submit-btn-3f9a", attributes={"data-testid": "submit"})

        response = await DomComparisonHealer().heal(request)

        assert response.available
        assert response.descriptor is not None
        assert response.descriptor.xpath == "//button[@data-testid='submit']"
        assert response.source == "dom_comparison"

    @pytest.mark.asyncio
    async def test_visible_text_is_used_when_attributes_are_gone(self) -> None:
        request = make_request(id="old-id", text="Cancel", attributes={})

        response = await DomComparisonHealer().heal(request)

        assert response.descriptor is not None
        assert response.descriptor.xpath == "//button[normalize-space(.)='Cancel']"

    # ! INVALID CASE
    @pytest.mark.asyncio
    async def test_no_hints(self) -> None:
        request = make_request(id=None, css="#gone", tag_name=None, text=None, attributes={})

        response = await DomComparisonHealer().heal(request)

        assert not response.available

    @pytest.mark.asyncio
    async def test_ambiguous_candidates_are_refused(self) -> None:
        """Test that a candidate matching several elements is never suggested."""
        request = make_request(id="x1", text=None, attributes={"title": "none"}, tag_name="button")
        ambiguous_html = (
            "<html><body><button title='none'>A</button>"
            "<button title='none'>B</button></body></html>"
        )
        request = request.model_copy(update={"dom_snapshot": ambiguous_html})

        response = await DomComparisonHealer().heal(request)

        assert not response.available


class TestLLMLocatorHealer:
    """Test suite for `LLMLocatorHealer`.

    The chat model is replaced by langchain's fake chat model so the prompt
    plumbing and answer handling run exactly as in production.
    """

    # ? VALID CASE
    @pytest.mark.asyncio
    async def test_model_answer_becomes_descriptor(self) -> None:
        llm = FakeListChatModel(responses=["```css\n[data-testid='submit']\n```"])
        healer = LLMLocatorHealer(llm=llm)

        response = await healer.heal(make_request())

        assert response.descriptor is not None
        assert response.descriptor.css == "[data-testid='submit']"
        assert response.source == "llm"

    @pytest.mark.asyncio
    async def test_xpath_answer(self) -> None:
        healer = LLMLocatorHealer(llm=FakeListChatModel(responses=["//form/button[1]"]))

        response = await healer.heal(make_request())

        assert response.descriptor is not None
        assert response.descriptor.xpath == "//form/button[1]"

    @pytest.mark.asyncio
    async def test_prompt_contains_descriptor_and_truncated_dom(self) -> None:
        llm = MagicMock()
        llm.ainvoke = AsyncMock(return_value=MagicMock(content="#submit"))
        healer = LLMLocatorHealer(llm=llm, dom_snippet_chars=40)

        await healer.heal(make_request(id="submit-btn"))

        messages = llm.ainvoke.call_args.args[0]
        assert isinstance(messages[0], SystemMessage)
        assert isinstance(messages[1], HumanMessage)
        assert "submit-btn" in messages[1].content
        assert "https://example.com/form" in messages[1].content
        assert DOM_TRUNCATION_MARKER in messages[1].content

    # ! INVALID CASE
    @pytest.mark.asyncio
    async def test_sentinel_without_fallback(self) -> None:
        healer = LLMLocatorHealer(llm=FakeListChatModel(responses=[CANNOT_HEAL_SENTINEL]))

        response = await healer.heal(make_request())

        assert not response.available
        assert CANNOT_HEAL_SENTINEL in (response.reason or "")

    @pytest.mark.asyncio
    async def test_sentinel_falls_back_to_dom_comparison(self) -> None:
        healer = LLMLocatorHealer(
            llm=FakeListChatModel(responses=[CANNOT_HEAL_SENTINEL]),
            fallback=DomComparisonHealer(),
        )

        response = await healer.heal(make_request(attributes={"data-testid": "submit"}))

        assert response.source == "dom_comparison"
        assert response.descriptor is not None

    @pytest.mark.asyncio
    async def test_model_error_is_unavailable(self) -> None:
        llm = MagicMock()
        llm.ainvoke = AsyncMock(side_effect=RuntimeError("rate limited"))
        healer = LLMLocatorHealer(llm=llm)

        response = await healer.heal(make_request())

        assert not response.available
        assert "rate limited" in (response.reason or "")

    @pytest.mark.asyncio
    async def test_empty_answer_is_unavailable(self) -> None:
        healer = LLMLocatorHealer(llm=FakeListChatModel(responses=["   "]))

        response = await healer.heal(make_request())

        assert not response.available


class TestPrompts:
    """Test suite for the healer prompt templates."""

    def test_system_prompt_names_the_sentinel(self) -> None:
        assert CANNOT_HEAL_SENTINEL in get_healer_system_prompt()

    def test_user_prompt_fills_every_placeholder(self) -> None:
        descriptor = ElementDescriptorFactory.custom_build(
            id="submit-btn", css=None, attributes={"data-testid": "submit"}
        )

        prompt = get_healer_user_prompt(descriptor, url="https://example.com", dom_snippet="<html/>")

        assert "[[" not in prompt, "No placeholder may be left unfilled"
        assert "- ID: submit-btn" in prompt
        assert "- CSS: null" in prompt
        assert '{"data-testid": "submit"}' in prompt

    @pytest.mark.parametrize(
        "dom,limit,expected",
        [
            (None, 10, ""),
            ("<html/>", 10, "<html/>"),
            ("abcdefghij", 4, "abcd" + DOM_TRUNCATION_MARKER),
        ],
    )
    def test_truncate_dom(self, dom, limit: int, expected: str) -> None:
        assert truncate_dom(dom, limit) == expected

    def test_page_html_is_not_expanded(self) -> None:
        descriptor = ElementDescriptorFactory.custom_build(id="submit-btn")

        prompt = get_healer_user_prompt(
            descriptor, url="https://example.com", dom_snippet="<p>[[TAG]]</p>"
        )

        assert "<p>[[TAG]]</p>" in prompt

    # ! INVALID CASE
    def test_missing_placeholder_value(self) -> None:
        with pytest.raises(KeyError, match="TAG"):
            render_prompt("healer_user_prompt.md", {"ID": "x"})

    def test_unknown_template(self) -> None:
        with pytest.raises(FileNotFoundError):
            render_prompt("no_such_prompt.md", {})


class TestCreateHealingService:
    """Test suite for building the healing service from settings."""

    def test_disabled(self) -> None:
        settings = ReplayNinjaSettings(_env_file=None, healing_enabled=False)

        assert create_healing_service(settings) is None

    def test_missing_api_key_falls_back_to_dom(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        settings = ReplayNinjaSettings(
            _env_file=None,
            healing_enabled=True,
            llm_provider="openai",
            healing_use_dom_fallback=True,
        )

        service = create_healing_service(settings)

        assert isinstance(service, DomComparisonHealer)

    def test_missing_api_key_without_fallback_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        settings = ReplayNinjaSettings(
            _env_file=None,
            healing_enabled=True,
            llm_provider="openai",
            healing_use_dom_fallback=False,
        )

        with pytest.raises(ValueError):
            create_healing_service(settings)

    def test_ollama_needs_no_key(self) -> None:
        settings = ReplayNinjaSettings(_env_file=None, healing_enabled=True, llm_provider="ollama")

        service = create_healing_service(settings)

        assert isinstance(service, LLMLocatorHealer)
        assert isinstance(service.fallback, DomComparisonHealer)
