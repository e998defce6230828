from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from deadline.errors import EmptyCompletionError, MalformedJSONError, NoJSONObjectError, SynthesisError
from deadline.llm_client import Completion, Usage
from deadline.models.interfaces import ScrapedArticle, ScrapedData, SearchResult
from deadline.pipeline.synthesis import (
    SYSTEM_PROMPT,
    SynthesisEngine,
    build_prompt,
    ensure_event_fields,
    parse_llm_json,
    strip_code_fences,
    to_event_details,
)

VALID = '{"location": "Springfield, IL, USA", "details": "A fire.", "accused": [], "victims": ["A"], "timeline": []}'


def _completion(text: str | None) -> Completion:
    return Completion(text=text, usage=Usage(), model="test-model")


def _scraped() -> ScrapedData:
    return ScrapedData(
        results=[SearchResult(title=f"T{i}", link=f"https://s{i}.com", snippet=f"snip {i}", display_link=f"s{i}.com") for i in range(20)],
        articles=[
            ScrapedArticle(url="https://a.com/1", title="Short", content="a" * 200, source="a.com"),
            ScrapedArticle(url="https://b.com/1", title="Long", content="b" * 6000, source="b.com"),
        ],
        images=[],
    )


def test_parse_fenced_json():
    assert parse_llm_json(f"```json\n{VALID}\n```")["location"] == "Springfield, IL, USA"
    assert parse_llm_json(f"```\n{VALID}\n```")["victims"] == ["A"]


def test_parse_json_wrapped_in_prose():
    parsed = parse_llm_json(f"Here is the extracted data:\n{VALID}\nLet me know if you need more.")
    assert parsed["details"] == "A fire."


def test_parse_fence_between_prose_defaults_missing_lists():
    text = "Sure:\n```json\n{\"location\": \"X\", \"details\": \"Y\"}\n```\nThanks"

    details = to_event_details(parse_llm_json(text))

    assert details.location == "X"
    assert details.details == "Y"
    assert details.accused == []
    assert details.victims == []
    assert details.timeline == []


def test_parse_without_object_raises_no_json_object():
    with pytest.raises(NoJSONObjectError):
        parse_llm_json("I could not find any information about this event.")
    with pytest.raises(NoJSONObjectError):
        parse_llm_json("} reversed {")


def test_parse_malformed_object_raises_malformed_json():
    with pytest.raises(MalformedJSONError) as exc_info:
        parse_llm_json('{"location": "Springfield", "details": "unterminated}')
    assert "length=" in str(exc_info.value)
    assert isinstance(exc_info.value, SynthesisError)


def test_missing_fields_are_defaulted():
    data = ensure_event_fields({"details": "Only details"})
    assert data == {"details": "Only details", "location": "", "accused": [], "victims": [], "timeline": []}


def test_strip_code_fences_leaves_plain_text():
    assert strip_code_fences("  {\"a\": 1}  ") == '{"a": 1}'


def test_build_prompt_orders_sources_by_length_and_truncates():
    prompt = build_prompt(_scraped(), "warehouse fire", article_chars=4000, max_snippets=15)

    assert 'about: "warehouse fire"' in prompt
    assert prompt.index("=== SOURCE 1: B.COM ===") < prompt.index("=== SOURCE 2: A.COM ===")
    assert "b" * 4000 in prompt
    assert "b" * 4001 not in prompt
    assert "15. [s14.com] T14: snip 14" in prompt
    assert "[s15.com]" not in prompt


@pytest.mark.asyncio
async def test_synthesize_returns_event_details():
    completion_client = AsyncMock()
    completion_client.complete.return_value = _completion(f"```json\n{VALID}\n```")

    details = await SynthesisEngine(completion_client).synthesize(_scraped(), "warehouse fire")

    assert details.location == "Springfield, IL, USA"
    assert details.victims == ["A"]
    assert details.sources == []
    system, user = completion_client.complete.await_args.args
    assert system == SYSTEM_PROMPT
    assert "warehouse fire" in user


@pytest.mark.asyncio
async def test_synthesize_fills_missing_list_fields():
    completion_client = AsyncMock()
    completion_client.complete.return_value = _completion('{"location": "X", "details": "Y"}')

    details = await SynthesisEngine(completion_client).synthesize(_scraped(), "q")

    assert details.accused == [] and details.victims == [] and details.timeline == []


@pytest.mark.asyncio
@pytest.mark.parametrize("text", [None, "", "   "])
async def test_synthesize_rejects_empty_completion(text):
    completion_client = AsyncMock()
    completion_client.complete.return_value = _completion(text)

    with pytest.raises(EmptyCompletionError):
        await SynthesisEngine(completion_client).synthesize(_scraped(), "q")


@pytest.mark.asyncio
async def test_synthesize_tags_completion_with_event_id():
    completion_client = AsyncMock()
    completion_client.complete.return_value = _completion(VALID)

    await SynthesisEngine(completion_client).synthesize(_scraped(), "q", event_id="evt-1")

    kwargs = completion_client.complete.await_args.kwargs
    assert kwargs == {"caller": "synthesis", "event_id": "evt-1"}
