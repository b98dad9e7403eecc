"""Workspace text search backed by ripgrep."""

from __future__ import annotations

import asyncio
import json
import os
import shutil
from pathlib import Path
from typing import Any, Iterable

from loguru import logger

from editorbridge.host.context import BridgeContext
from editorbridge.tools.base import Tool, ToolResult, tool_error_handler
from editorbridge.utils.exceptions import ToolError

DEFAULT_MAX_RESULTS = 100
CONTEXT_LINES = 2


def find_ripgrep() -> str | None:
    """Path of the ``rg`` binary, honouring ``EDITORBRIDGE_RG_PATH``."""
    override = os.environ.get("EDITORBRIDGE_RG_PATH")
    if override and Path(override).exists():
        return override
    return shutil.which("rg")


def build_ripgrep_args(
    query: str,
    root: str,
    include: str | None = None,
    exclude: str | None = None,
    is_regex: bool = False,
    is_case_sensitive: bool = False,
    is_word_match: bool = False,
    max_results: int = DEFAULT_MAX_RESULTS,
) -> list[str]:
    args = ["--json", "--max-count", str(max_results), "--context", str(CONTEXT_LINES)]
    if not is_case_sensitive:
        args.append("--ignore-case")
    if is_word_match:
        args.append("--word-regexp")
    if not is_regex:
        args.append("--fixed-strings")
    for pattern in _split_globs(include):
        args.extend(["--glob", pattern])
    for pattern in _split_globs(exclude):
        args.extend(["--glob", f"!{pattern}"])
    # "--" keeps a query starting with "-" from being read as a flag
    args.extend(["--", query, root])
    return args


def _split_globs(value: str | None) -> list[str]:
    if not value:
        return []
    return [p.strip() for p in value.split(",") if p.strip()]


def parse_ripgrep_events(lines: Iterable[str], root: str) -> dict[str, Any]:
    """
    Fold ``rg --json`` events into ``{totalMatches, results: [{path, matches}]}``.

    Each match keeps up to two context lines before and after it.
    """
    results: list[dict[str, Any]] = []
    total = 0
    current: dict[str, Any] | None = None
    before: list[str] = []
    last_match_line = -1

    for line in lines:
        if not line.strip():
            continue
        try:
            event = json.loads(line)
        except json.JSONDecodeError as e:
            logger.debug(f"Skipping unparsable ripgrep line: {e}")
            continue
        kind = event.get("type")
        data = event.get("data") or {}

        if kind == "begin":
            if current and current["matches"]:
                results.append(current)
            path_text = (data.get("path") or {}).get("text", "")
            current = {"path": os.path.relpath(path_text, root) if path_text else path_text, "matches": []}
            before = []
            last_match_line = -1
        elif kind == "match" and current is not None:
            line_number = data.get("line_number") or 0
            text = ((data.get("lines") or {}).get("text") or "").rstrip()
            submatches = data.get("submatches") or []
            column = submatches[0].get("start", 0) + 1 if submatches else 1
            total += 1
            current["matches"].append(
                {
                    "line": line_number,
                    "column": column,
                    "text": text,
                    "preview": {"before": list(before), "match": text, "after": []},
                }
            )
            last_match_line = line_number
            before = []
        elif kind == "context" and current is not None:
            line_number = data.get("line_number") or 0
            text = ((data.get("lines") or {}).get("text") or "").rstrip()
            if current["matches"] and line_number > last_match_line:
                after = current["matches"][-1]["preview"]["after"]
                if len(after) < CONTEXT_LINES:
                    after.append(text)
                    continue
            before.append(text)
            if len(before) > CONTEXT_LINES:
                before.pop(0)

    if current and current["matches"]:
        results.append(current)
    return {"totalMatches": total, "results": results}


class SearchCodeTool(Tool):
    """Text or regex search across workspace files."""

    group = "search"

    def __init__(self, context: BridgeContext, timeout: float = 60.0):
        self._context = context
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "search_code"

    @property
    def description(self) -> str:
        return (
            "Searches for text or patterns across workspace files using ripgrep. Supports literal "
            "text and regex, comma-separated include/exclude globs, case sensitivity and whole-word "
            "options. Returns matches with 2 lines of context and respects .gitignore."
        )

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "The search text or regex pattern"},
                "include": {
                    "type": "string",
                    "description": 'Globs to include, comma-separated (e.g. "*.py,*.toml")',
                },
                "exclude": {
                    "type": "string",
                    "description": 'Globs to exclude, comma-separated (e.g. "dist/**")',
                },
                "isRegex": {"type": "boolean", "default": False},
                "isCaseSensitive": {"type": "boolean", "default": False},
                "isWordMatch": {"type": "boolean", "default": False},
                "maxResults": {
                    "type": "integer",
                    "description": "Maximum matches per file",
                    "minimum": 1,
                    "default": DEFAULT_MAX_RESULTS,
                },
            },
            "required": ["query"],
        }

    @tool_error_handler("Error performing search")
    async def execute(
        self,
        query: str,
        include: str | None = None,
        exclude: str | None = None,
        isRegex: bool = False,
        isCaseSensitive: bool = False,
        isWordMatch: bool = False,
        maxResults: int = DEFAULT_MAX_RESULTS,
        **kwargs: Any,
    ) -> ToolResult:
        rg = find_ripgrep()
        if not rg:
            raise ToolError(self.name, "ripgrep (rg) is not installed")
        root = self._context.host.workspace_root
        args = build_ripgrep_args(
            query,
            root,
            include=include,
            exclude=exclude,
            is_regex=isRegex,
            is_case_sensitive=isCaseSensitive,
            is_word_match=isWordMatch,
            max_results=maxResults,
        )
        logger.info(f"Running ripgrep for {query!r} in {root}")
        process = await asyncio.create_subprocess_exec(
            rg,
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=root,
        )
        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self._timeout)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise
        # 0 = matches, 1 = no matches
        if process.returncode not in (0, 1):
            message = stderr.decode("utf-8", errors="replace").strip()
            raise ToolError(self.name, f"ripgrep exited with code {process.returncode}: {message}")

        response = parse_ripgrep_events(stdout.decode("utf-8", errors="replace").splitlines(), root)
        logger.info(
            f"Search completed: {response['totalMatches']} matches in {len(response['results'])} files"
        )
        return ToolResult.json(response)
