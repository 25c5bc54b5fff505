"""Turn model output and failures into chat-ready text."""

from __future__ import annotations

import re

import openai

from vexcel.ai.mutations import KIND_DESCRIPTIONS, MutationKind, MutationReport
from vexcel.core.errors import ConfigurationError, StoreError, StoreUnavailable

MIN_NARRATIVE_CHARS = 50

_FENCE_RE = re.compile(r"```[\w]*\n?")
_BOLD_RE = re.compile(r"\*\*(.*?)\*\*")
_ITALIC_RE = re.compile(r"\*(.*?)\*")
_INLINE_CODE_RE = re.compile(r"`([^`]+)`")

SUGGESTIONS = (
    "Would you like me to create a summary of the changes?",
    "Should I generate a chart to visualize this data?",
    "Would you like to perform any additional analysis?",
    "Need me to export this data in a different format?",
)

MODIFIED_CONFIRMATION = (
    "Your Excel file has been updated successfully! You can see the changes in the viewer on the right."
)
STALE_VIEW_NOTICE = (
    "Note: the spreadsheet view could not be refreshed, so it may not show these changes yet."
)


def strip_markdown(text: str) -> str:
    text = _FENCE_RE.sub("", text).replace("```", "")
    text = _BOLD_RE.sub(r"\1", text)
    text = _ITALIC_RE.sub(r"\1", text)
    text = _INLINE_CODE_RE.sub(r"\1", text)
    return text.strip()


def summarize_calls(report: MutationReport, filename: str) -> str:
    """Fallback narrative built from the classified tool calls."""
    if not report.calls:
        return (
            "I processed your request, but I'm not sure what specific action was taken. Could you please try "
            "rephrasing your request or be more specific about what you'd like me to do?"
        )
    parts = [KIND_DESCRIPTIONS[kind] for kind in report.kinds if kind is not MutationKind.UNKNOWN]
    parts.extend(f"performed {name.replace('_', ' ')}" for name in report.unclassified)
    summary = ", ".join(parts) or "worked on your file"
    text = f'I {summary} on your Excel file "{filename}". '
    if report.file_modified:
        text += "The changes have been applied and your file has been updated. "
    return text + "Is there anything else you'd like me to do with your data?"


def compose_reply(narrative: str, report: MutationReport, filename: str, view_stale: bool = False) -> str:
    text = narrative or ""
    for error in report.errors:
        text += f"\n\nI encountered an issue: {error}"
    if len(text.strip()) < MIN_NARRATIVE_CHARS:
        text = summarize_calls(report, filename)
    text = strip_markdown(text)
    if report.file_modified:
        text += f"\n\n{MODIFIED_CONFIRMATION}"
        text += f"\n\n{SUGGESTIONS[len(report.calls) % len(SUGGESTIONS)]}"
        if view_stale:
            text += f"\n\n{STALE_VIEW_NOTICE}"
    return text.strip()


def friendly_error(exc: BaseException) -> str:
    """Plain-language chat message for a failed AI turn."""
    if isinstance(exc, (ConfigurationError, openai.AuthenticationError)):
        return "There's an issue with the OpenAI API key. Please make sure it's configured correctly."
    if isinstance(exc, openai.RateLimitError):
        if "quota" in str(exc).lower():
            return "The OpenAI API quota has been exceeded. Please check your OpenAI account billing."
        return "I'm getting too many requests right now. Please wait a moment and try again."
    if isinstance(exc, (StoreUnavailable, StoreError, openai.APIConnectionError)):
        return (
            "I'm having trouble connecting to the Excel processing server. Please try again in a moment, and if "
            "the issue persists, the server might be temporarily unavailable."
        )
    return (
        f"I encountered an error while processing your request: {exc}. Please try rephrasing your request or "
        "try a simpler operation first."
    )


__all__ = [
    "MODIFIED_CONFIRMATION",
    "STALE_VIEW_NOTICE",
    "compose_reply",
    "friendly_error",
    "strip_markdown",
    "summarize_calls",
]
