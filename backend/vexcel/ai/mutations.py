"""Explicit categories for the spreadsheet tools the model may call."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class MutationKind(str, Enum):
    READ = "read"
    CELL_DATA = "cell_data"
    FORMULA = "formula"
    FORMAT = "format"
    STRUCTURE = "structure"
    CHART = "chart"
    UNKNOWN = "unknown"

    @property
    def mutates(self) -> bool:
        return self not in (MutationKind.READ, MutationKind.UNKNOWN)


# Tools exposed by the processing server's MCP endpoint, matched by exact name.
TOOL_KINDS: dict[str, MutationKind] = {
    "read_data_from_excel": MutationKind.READ,
    "get_workbook_metadata": MutationKind.READ,
    "get_merged_cells": MutationKind.READ,
    "get_data_validation_info": MutationKind.READ,
    "validate_formula_syntax": MutationKind.READ,
    "validate_excel_range": MutationKind.READ,
    "write_data_to_excel": MutationKind.CELL_DATA,
    "copy_range": MutationKind.CELL_DATA,
    "delete_range": MutationKind.CELL_DATA,
    "sort_data": MutationKind.CELL_DATA,
    "apply_formula": MutationKind.FORMULA,
    "format_range": MutationKind.FORMAT,
    "merge_cells": MutationKind.FORMAT,
    "unmerge_cells": MutationKind.FORMAT,
    "create_workbook": MutationKind.STRUCTURE,
    "create_worksheet": MutationKind.STRUCTURE,
    "copy_worksheet": MutationKind.STRUCTURE,
    "delete_worksheet": MutationKind.STRUCTURE,
    "rename_worksheet": MutationKind.STRUCTURE,
    "insert_rows": MutationKind.STRUCTURE,
    "insert_columns": MutationKind.STRUCTURE,
    "delete_sheet_rows": MutationKind.STRUCTURE,
    "delete_sheet_columns": MutationKind.STRUCTURE,
    "create_table": MutationKind.STRUCTURE,
    "create_chart": MutationKind.CHART,
    "create_pivot_table": MutationKind.CHART,
}

KIND_DESCRIPTIONS: dict[MutationKind, str] = {
    MutationKind.READ: "read your Excel data",
    MutationKind.CELL_DATA: "updated cell values",
    MutationKind.FORMULA: "applied formulas",
    MutationKind.FORMAT: "applied formatting",
    MutationKind.STRUCTURE: "changed the sheet layout",
    MutationKind.CHART: "created a chart or pivot table",
}


def classify_tool(name: str) -> MutationKind:
    return TOOL_KINDS.get(name, MutationKind.UNKNOWN)


@dataclass(slots=True)
class ToolCall:
    name: str
    kind: MutationKind
    succeeded: bool
    error: str | None = None


@dataclass(slots=True)
class MutationReport:
    """What the model did to the file, as far as its tool calls tell us."""

    calls: list[ToolCall] = field(default_factory=list)

    def add(self, name: str, error: str | None = None) -> ToolCall:
        call = ToolCall(name=name, kind=classify_tool(name), succeeded=error is None, error=error)
        self.calls.append(call)
        return call

    @property
    def file_modified(self) -> bool:
        return any(call.succeeded and call.kind.mutates for call in self.calls)

    @property
    def kinds(self) -> list[MutationKind]:
        seen: list[MutationKind] = []
        for call in self.calls:
            if call.succeeded and call.kind not in seen:
                seen.append(call.kind)
        return seen

    @property
    def unclassified(self) -> list[str]:
        return [call.name for call in self.calls if call.kind is MutationKind.UNKNOWN]

    @property
    def errors(self) -> list[str]:
        return [call.error for call in self.calls if call.error]


__all__ = [
    "KIND_DESCRIPTIONS",
    "MutationKind",
    "MutationReport",
    "TOOL_KINDS",
    "ToolCall",
    "classify_tool",
]
