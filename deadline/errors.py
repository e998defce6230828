"""Exceptions raised by the search-and-synthesize pipeline."""
from __future__ import annotations


class PipelineError(Exception):
    """Base class for every error that aborts a pipeline run."""


class ConfigurationError(PipelineError):
    """A required credential or endpoint is not configured."""


class EventNotFoundError(PipelineError):
    """The event does not exist or has no search query."""


class SearchError(PipelineError):
    """Every web search page request failed."""


class NoArticlesError(PipelineError):
    """Scraping produced no article with usable content."""


class SynthesisError(PipelineError):
    """The LLM step could not produce a structured record."""


class CompletionTransportError(SynthesisError):
    """The completion request itself failed."""


class EmptyCompletionError(SynthesisError):
    """The completion returned no content."""


class NoJSONObjectError(SynthesisError):
    """The completion contains no ``{...}`` span."""


class MalformedJSONError(SynthesisError):
    """The ``{...}`` span of the completion is not valid JSON."""


class PersistenceError(PipelineError):
    """A read or write against the backing store failed."""
