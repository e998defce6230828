from __future__ import annotations

import json
import re
from typing import Any

from deadline.errors import EmptyCompletionError, MalformedJSONError, NoJSONObjectError
from deadline.llm_client import CompletionClient
from deadline.models.interfaces import EventDetails, ScrapedArticle, ScrapedData, SearchResult
from deadline.services.logger import logger

LIST_FIELDS = ("accused", "victims", "timeline")
TEXT_FIELDS = ("location", "details")
REQUIRED_FIELDS = ("location", "details", "accused", "victims", "timeline")

SYSTEM_PROMPT = (
    "You are a precise data extraction system. You MUST respond with ONLY valid JSON. "
    "No markdown, no backticks, no preamble, no explanation. Start your response with { "
    "and end with }. Ensure all strings are properly escaped."
)

EXTRACTION_PROMPT = """You are a factual data extraction system. Extract comprehensive information about: "{query}"

SOURCES:
{sources}

SNIPPETS:
{snippets}

CRITICAL: You must respond with ONLY valid JSON. No preamble, no explanation, no markdown formatting, no backticks. Start with {{ and end with }}.

EXTRACTION RULES:
- Extract ONLY verifiable facts from sources
- Include all specifics: names, ages, numbers, dates, charges, statute codes, amounts, locations
- Each person = separate array entry (accused and victims)
- Use **highlights** on 2-3 word phrases ONLY for the most critical facts (charges, verdicts, death counts, bail amounts)
- Keep highlights sparse: 2-3 in details section, at least 1 in accused/victims/timeline entries
- Write complete, detailed sentences with maximum factual density
- Escape all quotes inside strings using backslash

JSON STRUCTURE (respond with this exact format):
{{
  "location": "string",
  "details": "string",
  "accused": ["string per person"],
  "victims": ["string per person"],
  "timeline": ["string per event"]
}}

FIELD SPECIFICATIONS:

location: City, State/Province, Country. For lesser-known places add (X km from Major City).

details: One compelling headline sentence, then 800-1200 words covering background context, the incident in chronological order with exact times and locations, all parties involved, investigation specifics including evidence and testimonies, legal proceedings with exact charges and statute numbers, official statements, witness accounts, media coverage and public reaction, and the current status of all proceedings.

accused: One entry per person, 150-250 words each: full legal name and aliases, age, occupation and employer, specific role in the incident, relationship to victims and co-accused, complete charges with statute numbers, plea, bail amount and status, legal representation, custody location, prior record, trial date and statements made.

victims: One entry per person, 150-250 words each: name if released, age, gender, occupation, residence, family details, relationship to the accused, location during the incident, injuries or cause of death, medical response and hospitals, current condition, long-term impact on the victim and dependents, and impact statements.

timeline: One entry per date, formatted "Month Day, Year: 6-10 detailed sentences" covering what happened, who was involved, precise locations, actions step by step, evidence discovered, official responses, legal filings with case numbers, media reports and community reactions.

REQUIREMENTS:
- Details: 800-1200 words minimum
- Accused and victim entries: 150-250 words each
- Timeline entries: 6-10 sentences each
- Highlights: 2-3 words max, used sparingly
- No speculation, only verified facts
- Escape all quotes in strings

RESPOND WITH ONLY THE JSON OBJECT. NO OTHER TEXT."""

_LEADING_JSON_FENCE = re.compile(r"^```json\s*", re.IGNORECASE)
_LEADING_FENCE = re.compile(r"^```\s*")
_TRAILING_FENCE = re.compile(r"```\s*$")


def strip_code_fences(text: str) -> str:
    cleaned = text.strip()
    if cleaned.lower().startswith("```json"):
        cleaned = _TRAILING_FENCE.sub("", _LEADING_JSON_FENCE.sub("", cleaned))
    elif cleaned.startswith("```"):
        cleaned = _TRAILING_FENCE.sub("", _LEADING_FENCE.sub("", cleaned))
    return cleaned.strip()


def parse_llm_json(text: str) -> dict[str, Any]:
    """Repair and parse a model response that should hold one JSON object.

    Strips Markdown fences, slices from the first ``{`` to the last ``}`` and
    parses the slice. Raises :class:`NoJSONObjectError` when there is no
    ``{...}`` span and :class:`MalformedJSONError` when the span is not a JSON
    object.
    """
    cleaned = strip_code_fences(text)

    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end <= start:
        logger.error(f"No JSON object found in response. First 500 chars: {cleaned[:500]!r}")
        raise NoJSONObjectError(
            f"No JSON object found in model response (length {len(cleaned)})"
        )

    json_string = cleaned[start : end + 1]
    try:
        parsed = json.loads(json_string)
    except json.JSONDecodeError as exc:
        head = json_string[:1000]
        tail = json_string[-500:]
        logger.error(
            f"JSON parse error: {exc}. Length {len(json_string)}. "
            f"First 1000 chars: {head!r}. Last 500 chars: {tail!r}"
        )
        raise MalformedJSONError(
            f"Invalid JSON in model response ({exc}); length={len(json_string)}, "
            f"head={head[:200]!r}, tail={tail[-200:]!r}"
        ) from exc

    if not isinstance(parsed, dict):
        raise MalformedJSONError(f"Model response is a JSON {type(parsed).__name__}, not an object")
    return parsed


def ensure_event_fields(data: dict[str, Any]) -> dict[str, Any]:
    """Fill any missing event field: lists with ``[]``, text with ``""``."""
    for field_name in REQUIRED_FIELDS:
        if field_name not in data:
            data[field_name] = [] if field_name in LIST_FIELDS else ""
    return data


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if value is None:
        return ""
    return json.dumps(value, ensure_ascii=False) if isinstance(value, (dict, list)) else str(value)


def _as_text_list(value: Any) -> list[str]:
    if isinstance(value, list):
        return [_as_text(item) for item in value if item is not None]
    if isinstance(value, str) and value.strip():
        return [value]
    return []


def to_event_details(data: dict[str, Any]) -> EventDetails:
    data = ensure_event_fields(data)
    return EventDetails(
        location=_as_text(data["location"]),
        details=_as_text(data["details"]),
        accused=_as_text_list(data["accused"]),
        victims=_as_text_list(data["victims"]),
        timeline=_as_text_list(data["timeline"]),
    )


def format_sources(articles: list[ScrapedArticle], *, max_articles: int, max_chars: int) -> str:
    ranked = sorted(articles, key=lambda article: len(article.content), reverse=True)[:max_articles]
    blocks = [
        f"=== SOURCE {index}: {article.source.upper()} ===\n"
        f"Title: {article.title}\n"
        f"URL: {article.url}\n"
        f"Content: {article.content[:max_chars]}\n"
        "---"
        for index, article in enumerate(ranked, 1)
    ]
    return "\n\n".join(blocks)


def format_snippets(results: list[SearchResult], *, max_snippets: int) -> str:
    return "\n".join(
        f"{index}. [{result.display_link}] {result.title}: {result.snippet}"
        for index, result in enumerate(results[:max_snippets], 1)
    )


def build_prompt(
    scraped: ScrapedData,
    query: str,
    *,
    max_articles: int = 15,
    article_chars: int = 4000,
    max_snippets: int = 15,
) -> str:
    return EXTRACTION_PROMPT.format(
        query=query,
        sources=format_sources(scraped.articles, max_articles=max_articles, max_chars=article_chars),
        snippets=format_snippets(scraped.results, max_snippets=max_snippets),
    )


class SynthesisEngine:
    """Turns scraped articles into a structured :class:`EventDetails` via the LLM."""

    def __init__(
        self,
        completion_client: CompletionClient,
        *,
        max_articles: int = 15,
        article_chars: int = 4000,
        max_snippets: int = 15,
    ):
        self.completion_client = completion_client
        self.max_articles = max(int(max_articles), 1)
        self.article_chars = max(int(article_chars), 1)
        self.max_snippets = max(int(max_snippets), 0)

    async def synthesize(
        self, scraped: ScrapedData, query: str, *, event_id: str | None = None
    ) -> EventDetails:
        prompt = build_prompt(
            scraped,
            query,
            max_articles=self.max_articles,
            article_chars=self.article_chars,
            max_snippets=self.max_snippets,
        )
        completion = await self.completion_client.complete(
            SYSTEM_PROMPT, prompt, caller="synthesis", event_id=event_id
        )
        if not completion.text or not completion.text.strip():
            raise EmptyCompletionError("No response content from the completion API")

        details = to_event_details(parse_llm_json(completion.text))
        logger.info(
            "Synthesis complete: "
            f"details={len(details.details)} chars, accused={len(details.accused)}, "
            f"victims={len(details.victims)}, timeline={len(details.timeline)}"
        )
        return details
