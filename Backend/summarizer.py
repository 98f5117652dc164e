"""
Document summarization through Gemini.

Summaries are a convenience for reviewers, never a precondition: a missing API
key, an upstream error or a timeout all produce an empty summary.
"""
import logging

from google import genai
from google.genai import types

from config import settings

logger = logging.getLogger(__name__)

SUMMARY_PROMPT = (
    "Summarize this document and extract: date of issue, who issued it, to whom it is "
    "addressed, important details, important names, and any critical information. "
    "Return a concise, structured summary.\n\n"
    "Document Text:\n"
)


def build_prompt(text: str, limit: int) -> str:
    return SUMMARY_PROMPT + text[:limit]


def fallback_description(file_url: str) -> str:
    """Stand-in input used when no text could be extracted from the file."""
    return f"The document is at {file_url}. Summarize based on its content."


def first_candidate_text(response) -> str:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return ""
    content = getattr(candidates[0], "content", None)
    parts = getattr(content, "parts", None) or []
    if not parts:
        return ""
    return (getattr(parts[0], "text", None) or "").strip()


class Summarizer:
    def __init__(self, api_key: str, model: str, input_limit: int = 120_000, timeout_seconds: float = 30.0):
        self.model = model
        self.input_limit = input_limit
        self.client = None
        if api_key:
            # HttpOptions.timeout is expressed in milliseconds.
            self.client = genai.Client(
                api_key=api_key,
                http_options=types.HttpOptions(timeout=int(timeout_seconds * 1000)),
            )

    @property
    def enabled(self) -> bool:
        return self.client is not None

    def summarize(self, text: str) -> str:
        if self.client is None:
            return ""

        prompt = build_prompt(text, self.input_limit)
        try:
            response = self.client.models.generate_content(model=self.model, contents=prompt)
        except Exception as e:
            # Covers API errors and timeouts alike.
            logger.warning(f"Summarization failed: {e}")
            return ""

        summary = first_candidate_text(response)
        if not summary:
            logger.warning("Summarization returned no candidate text")
        return summary


summarizer = Summarizer(
    api_key=settings.gemini_api_key,
    model=settings.gemini_model,
    input_limit=settings.summary_input_limit,
    timeout_seconds=settings.summary_timeout_seconds,
)
