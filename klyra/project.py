"""The project_map tool: a token-budgeted map of ranked files and symbols."""

from __future__ import annotations

import ast
import os
import re
import time
from collections import Counter
from dataclasses import dataclass, field

from klyra.base import (
    Invocation,
    Result,
    Tool,
    ToolSpec,
    integer_property,
    object_schema,
    optional_int_arg,
    string_property,
)
from klyra.files import _walk_workspace, should_skip_file

_LOCK_FILES = frozenset(
    {
        "package-lock.json",
        "yarn.lock",
        "pnpm-lock.yaml",
        "bun.lockb",
        "go.sum",
        "cargo.lock",
        "poetry.lock",
    }
)
_BINARY_EXTS = frozenset(
    {".png", ".jpg", ".jpeg", ".gif", ".webp", ".ico", ".pdf", ".zip", ".gz", ".tar", ".mp4", ".mov", ".wasm"}
)
_MAX_CONTEXT_FILE_SIZE = 256 * 1024
_TERM_PUNCTUATION = ".,:;!?()[]{}\"'"
_IDENT_CLEANER = re.compile(r"[^A-Za-z0-9_.$:#<>-]+")
_MAX_IMPORTS = 6
_MAX_SYMBOLS = 12
_MAX_SUMMARIES = 32
_AST_DEPTH = 8
_AST_TIME_BUDGET = 2.0


def _ext(path: str) -> str:
    base = path.rsplit("/", 1)[-1]
    idx = base.rfind(".")
    return base[idx:] if idx >= 0 else ""


def should_skip_context_path(path: str, size: int | None) -> bool:
    """Report whether a file is lock, generated, binary or too large to be useful context."""
    lower = path.replace(os.sep, "/").lower()
    name = lower.rsplit("/", 1)[-1]
    if name in _LOCK_FILES:
        return True
    if name.endswith((".min.js", ".min.css", ".snap")):
        return True
    if "__snapshots__/" in lower or ".generated." in name or ".gen." in name:
        return True
    if _ext(name) in _BINARY_EXTS:
        return True
    return size is not None and size > _MAX_CONTEXT_FILE_SIZE


def sorted_counts(counts: dict[str, int]) -> list[tuple[str, int]]:
    """Return (name, count) pairs, most frequent first, ties by name."""
    return sorted(counts.items(), key=lambda pair: (-pair[1], pair[0]))


def query_terms(query: str) -> list[str]:
    """Split a query into lower-case terms of at least three bytes."""
    terms = []
    for raw in query.lower().split():
        term = raw.strip(_TERM_PUNCTUATION)
        if len(term.encode("utf-8")) >= 3:
            terms.append(term)
    return terms


def important_files(files: list[str], limit: int, focus: str) -> list[str]:
    """Rank files by shallowness and focus-term matches and keep the top limit."""
    if limit <= 0 or not files:
        return []
    terms = query_terms(focus)

    def score(path: str) -> int:
        slashed = path.replace(os.sep, "/")
        depth = os.path.normpath(slashed).replace(os.sep, "/").count("/")
        value = 12 - depth if depth < 12 else 0
        lower = slashed.lower()
        return value + sum(40 for term in terms if term in lower)

    ranked = sorted(files, key=lambda path: (-score(path), path))
    return ranked[:limit]


def estimate_tokens(text: str) -> int:
    """A rough token count: about four bytes per token."""
    if not text:
        return 0
    return len(text.encode("utf-8")) // 4 + 1


def trim_lines_to_token_budget(lines: list[str], max_tokens: int) -> str:
    """Join lines until the token budget is spent, then add a truncation marker."""
    if max_tokens <= 0:
        max_tokens = 1000
    out: list[str] = []
    tokens = 0
    for line in lines:
        cost = estimate_tokens(line) + 1
        if tokens + cost > max_tokens:
            out.append(f"... repo map truncated at ~{max_tokens} tokens")
            break
        out.append(line)
        tokens += cost
    return "\n".join(out)


def is_import_node(node_type: str) -> bool:
    return node_type in {
        "import_declaration",
        "import_statement",
        "import_from_statement",
        "use_declaration",
        "using_directive",
        "include_directive",
        "package_clause",
        "require",
    } or "import" in node_type


_SYMBOL_NODE_TYPES = frozenset(
    {
        "function_declaration", "method_declaration", "function_definition", "function_item", "function",
        "method_definition", "class_declaration", "class_definition", "interface_declaration", "interface_item",
        "struct_item", "struct_declaration", "enum_item", "enum_declaration", "trait_item", "impl_item",
        "type_declaration", "type_alias_declaration", "type_item", "module", "mod_item",
        "lexical_declaration", "variable_declaration", "const_declaration",
    }
)


def is_symbol_node(node_type: str) -> bool:
    if node_type in _SYMBOL_NODE_TYPES:
        return True
    return any(word in node_type for word in ("function", "method", "class", "interface", "struct", "enum"))


def symbol_kind(node_type: str) -> str:
    """Map a syntax node type to a short symbol kind."""
    lower = node_type.lower()
    for word, kind in (
        ("class", "class"),
        ("interface", "interface"),
        ("struct", "struct"),
        ("enum", "enum"),
        ("trait", "trait"),
        ("type", "type"),
        ("const", "const"),
        ("variable", "var"),
        ("lexical", "var"),
        ("method", "method"),
    ):
        if word in lower:
            return kind
    return "func"


def _symbol_score(node_type: str) -> int:
    if any(word in node_type for word in ("class", "interface", "struct")):
        return 5
    return 1


def symbol_name_matches(name: str, symbol: str) -> bool:
    """Match a declared name against a symbol that may be qualified on either side."""
    name = name.strip()
    symbol = symbol.strip()
    if not name or not symbol:
        return False
    if name == symbol:
        return True
    return symbol.endswith("." + name) or name.endswith("." + symbol)


def clean_identifier(value: str) -> str:
    value = value.strip().strip("`'\"")
    return _IDENT_CLEANER.sub("", value)


def one_line(value: str) -> str:
    """Collapse whitespace and cap at 120 characters."""
    value = " ".join(value.split())
    if len(value) > 120:
        value = value[:117] + "..."
    return value


def _add_unique(items: list[str], value: str, limit: int) -> None:
    value = value.strip()
    if not value or value in items:
        return
    if limit > 0 and len(items) >= limit:
        return
    items.append(value)


@dataclass
class _FileSummary:
    path: str
    language: str
    imports: list[str] = field(default_factory=list)
    symbols: list[str] = field(default_factory=list)
    score: int = 0

    def lines(self) -> list[str]:
        header = f"- {self.path} language={self.language}"
        if self.imports:
            header += " imports=" + " | ".join(self.imports)
        return [header, *(f"  - {symbol}" for symbol in self.symbols)]


_PY_NODE_TYPES = {
    ast.ClassDef: "class_definition",
    ast.FunctionDef: "function_definition",
    ast.AsyncFunctionDef: "function_definition",
    ast.Import: "import_statement",
    ast.ImportFrom: "import_from_statement",
}


def _walk_python(node: ast.AST, source: str, depth: int, summary: _FileSummary) -> None:
    if depth > _AST_DEPTH:
        return
    node_type = _PY_NODE_TYPES.get(type(node), "")
    if node_type and is_import_node(node_type):
        _add_unique(summary.imports, one_line(ast.get_source_segment(source, node) or ""), _MAX_IMPORTS)
    if node_type and is_symbol_node(node_type):
        name = clean_identifier(getattr(node, "name", ""))
        if name:
            _add_unique(summary.symbols, f"{symbol_kind(node_type)} {name} line={node.lineno}", _MAX_SYMBOLS)
            summary.score += _symbol_score(node_type)
    for child in ast.iter_child_nodes(node):
        _walk_python(child, source, depth + 1, summary)


def _parse_file_summary(path: str, rel: str, terms: list[str]) -> _FileSummary | None:
    if _ext(rel).lower() != ".py":
        return None
    try:
        with open(path, "rb") as handle:
            source = handle.read().decode("utf-8", errors="replace")
        tree = ast.parse(source)
    except (OSError, SyntaxError, ValueError):
        return None
    summary = _FileSummary(path=rel.replace(os.sep, "/"), language="python")
    _walk_python(tree, source, 0, summary)
    haystack = " ".join([summary.path, " ".join(summary.symbols), " ".join(summary.imports)]).lower()
    summary.score += sum(10 for term in terms if term in haystack)
    return summary


def _symbol_summaries(root: str, files: list[str], focus: str) -> list[_FileSummary]:
    terms = query_terms(focus)
    deadline = time.monotonic() + _AST_TIME_BUDGET
    summaries = []
    for rel in files:
        if time.monotonic() > deadline:
            break
        summary = _parse_file_summary(os.path.join(root, rel), rel, terms)
        if summary is not None and summary.symbols:
            summaries.append(summary)
    summaries.sort(key=lambda item: (-item.score, item.path))
    return summaries[:_MAX_SUMMARIES]


class ProjectMap(Tool):
    """Builds a compact, ranked overview of the workspace."""

    def spec(self) -> ToolSpec:
        return ToolSpec(
            name="project_map",
            description="Token-budgeted repo map with ranked files and AST symbols. Use before broad exploration.",
            parameters=object_schema(
                {
                    "max_files": integer_property("Maximum important files to include.", 1),
                    "max_tokens": integer_property("Approximate token budget for the map.", 1),
                    "focus": string_property("Optional task/query to rank relevant files and symbols."),
                }
            ),
        )

    def run(self, inv: Invocation) -> Result:
        max_files = optional_int_arg(inv.args, "max_files", 80)
        max_tokens = optional_int_arg(inv.args, "max_tokens", 1000)
        focus = inv.args.get("focus")
        focus = focus if isinstance(focus, str) else ""

        files: list[str] = []
        by_ext: Counter[str] = Counter()
        total_bytes = 0
        for rel, entry in _walk_workspace(inv.cwd):
            if should_skip_file(entry.name):
                continue
            try:
                size: int | None = entry.stat(follow_symlinks=False).st_size
                total_bytes += size
            except OSError:
                size = None
            if should_skip_context_path(rel, size):
                continue
            files.append(rel)
            by_ext[_ext(rel) or "[no extension]"] += 1

        files.sort()
        important = important_files(files, max_files, focus)
        summaries = _symbol_summaries(inv.cwd, important, focus)

        out = [f"root: {inv.cwd}", f"files: {len(files)}", f"bytes: {total_bytes}"]
        if focus.strip():
            out.append(f"focus: {focus}")
        out.append("languages/extensions:")
        out += [f"- {name}: {count}" for name, count in sorted_counts(by_ext)]
        out.append("important_files:")
        out += [f"- {file}" for file in important]
        if summaries:
            out.append("ast_symbols:")
            for summary in summaries:
                out += summary.lines()
        return Result(trim_lines_to_token_budget(out, max_tokens))