"""LLM tool-use call that edits the remote working copy."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Sequence

from openai import OpenAI

from vexcel.ai.mutations import MutationReport
from vexcel.core.config import Settings
from vexcel.core.errors import ConfigurationError
from vexcel.core.logging import get_logger, log_context

logger = get_logger(__name__)

PROMPT_TEMPLATE = """You are VExcel, an expert Excel data manipulation assistant. You help users work with their Excel files using natural language commands.

FILE DETAILS:
- File: {filename}
- MCP File Path: {remote_path}
- Available columns: {columns}
- Total rows: {total_rows} (excluding header)

USER REQUEST: "{user_message}"

INSTRUCTIONS:
1. Use the Excel MCP tools to perform the requested operation on the file at path "{remote_path}"
2. Always use the exact filepath parameter: "{remote_path}"
3. After performing operations, provide a clear, friendly explanation of what you did
4. If you made changes, describe the specific changes made
5. If you encountered any issues, explain them clearly
6. Be conversational and helpful in your response

Focus on explaining what you accomplished rather than technical details: what operation was performed, what data was affected, what the results mean, and any next steps worth considering."""


def build_prompt(
    user_message: str,
    remote_path: str,
    filename: str,
    headers: Sequence[str],
    total_rows: int,
) -> str:
    return PROMPT_TEMPLATE.format(
        filename=filename,
        remote_path=remote_path,
        columns=", ".join(headers) or "unknown",
        total_rows=max(total_rows, 0),
        user_message=user_message,
    )


@dataclass(slots=True)
class AIStepResult:
    narrative: str
    report: MutationReport
    response_id: str | None = None

    @property
    def file_modified(self) -> bool:
        return self.report.file_modified


class AIMutationStep:
    """Run one natural-language instruction against the file through the MCP tool server."""

    def __init__(self, settings: Settings, client: Any | None = None) -> None:
        self.settings = settings
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            api_key = os.environ.get("OPENAI_API_KEY")
            if not api_key:
                raise ConfigurationError(
                    "OpenAI API key is not configured. Please add OPENAI_API_KEY to your environment variables."
                )
            self._client = OpenAI(api_key=api_key, timeout=self.settings.http_timeout)
        return self._client

    def run(
        self,
        user_message: str,
        remote_path: str,
        filename: str,
        headers: Sequence[str] = (),
        total_rows: int = 0,
    ) -> AIStepResult:
        prompt = build_prompt(user_message, remote_path, filename, headers, total_rows)
        logger.info(
            "Calling model with MCP tools",
            extra=log_context(action="ai.responses", remote_path=remote_path, model=self.settings.openai_model),
        )
        response = self.client.responses.create(
            model=self.settings.openai_model,
            tools=[
                {
                    "type": "mcp",
                    "server_label": self.settings.mcp_server_label,
                    "server_url": self.settings.resolved_tool_url,
                    "require_approval": "never",
                }
            ],
            input=prompt,
        )
        result = parse_response(response)
        logger.info(
            "Model finished",
            extra=log_context(
                action="ai.responses",
                tool_calls=[call.name for call in result.report.calls],
                file_modified=result.file_modified,
                unclassified=result.report.unclassified,
            ),
        )
        return result


def parse_response(response: Any) -> AIStepResult:
    """Collect narrative text and classified tool calls from a Responses API result."""
    report = MutationReport()
    narrative = getattr(response, "output_text", None) or ""
    collect_text = not narrative
    for item in getattr(response, "output", None) or []:
        item_type = _field(item, "type")
        if item_type == "mcp_call":
            name = _field(item, "name")
            if name:
                report.add(name, error=_field(item, "error") or None)
        elif collect_text and item_type == "message":
            for part in _field(item, "content") or []:
                text = _field(part, "text")
                if text:
                    narrative += text
    return AIStepResult(narrative=narrative, report=report, response_id=getattr(response, "id", None))


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


__all__ = ["AIMutationStep", "AIStepResult", "build_prompt", "parse_response"]
