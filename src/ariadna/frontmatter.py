"""YAML frontmatter for planning documents.

Plans, summaries and verification reports start with a `---` delimited YAML
block. Values are read with every scalar kept as a string (`phase: 01` stays
"01", `wave: 2` is "2"); callers coerce where they need numbers or booleans.
"""

import json
import logging
import re
from pathlib import Path
from typing import Any

import yaml

from ariadna.errors import AriadnaError, ErrorCode, file_not_found, file_unreadable, usage_error
from ariadna.utils import write_text_atomic

logger = logging.getLogger(__name__)

FRONTMATTER_RE = re.compile(r"\A---\n(.*?)\n---", re.DOTALL)

SCHEMAS: dict[str, tuple[str, ...]] = {
    "plan": ("phase", "plan", "type"),
    "summary": ("phase", "plan", "subsystem"),
    "verification": ("phase",),
}


def extract(content: str) -> dict[str, Any]:
    """Parse the frontmatter block of a document.

    Blocks that are not strict YAML (`objective: Build auth: login`) are read
    line by line instead, see `parse_lines`.

    Returns:
        Mapping of fields, or {} when there is no block
    """
    match = FRONTMATTER_RE.match(content)
    if not match:
        return {}

    block = match.group(1)
    try:
        data = yaml.load(block, Loader=yaml.BaseLoader)
    except yaml.YAMLError as e:
        logger.debug("Frontmatter is not strict YAML, reading it line by line: %s", e)
        return parse_lines(block)

    return data if isinstance(data, dict) else parse_lines(block)


_KEY_LINE_RE = re.compile(r"^\s*([A-Za-z0-9_-]+):\s*(.*)$")


def _unquote(text: str) -> str:
    return re.sub(r"^[\"']|[\"']$", "", text.strip())


def parse_lines(block: str) -> dict[str, Any]:
    """Lenient reader for frontmatter YAML rejects.

    Handles `key: value` (split on the first colon), indented `- item` lists,
    inline `[a, b]` lists and nested mappings. Lines it cannot place are
    skipped.
    """
    result: dict[str, Any] = {}
    # Each frame: [container, indent, parent, key in parent]
    stack: list[list[Any]] = [[result, -1, None, None]]

    for line in block.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue

        indent = len(line) - len(line.lstrip())
        while len(stack) > 1 and indent <= stack[-1][1]:
            stack.pop()
        frame = stack[-1]
        container = frame[0]

        key_match = _KEY_LINE_RE.match(line)
        if key_match and not stripped.startswith("- "):
            if not isinstance(container, dict):
                continue
            key, value = key_match.group(1), key_match.group(2).strip()
            if not value or value == "[":
                container[key] = [] if value == "[" else {}
                stack.append([container[key], indent, container, key])
            elif value.startswith("[") and value.endswith("]"):
                items = (_unquote(part) for part in value[1:-1].split(","))
                container[key] = [item for item in items if item]
            else:
                container[key] = _unquote(value)
        elif stripped.startswith("- "):
            item = _unquote(stripped[2:])
            if isinstance(container, list):
                container.append(item)
            elif not container and frame[2] is not None:
                # an empty mapping opened by `key:` turns out to be a list
                frame[0] = frame[2][frame[3]] = [item]

    return result


def body(content: str) -> str:
    """Return the document text after the frontmatter block."""
    match = FRONTMATTER_RE.match(content)
    if not match:
        return content
    return content[match.end():].lstrip()


def _natural(value: Any) -> Any:
    """Turn round-tripped strings back into plain YAML scalars where lossless."""
    if isinstance(value, dict):
        return {k: _natural(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [_natural(v) for v in value]
    if value in ("true", "false"):
        return value == "true"
    if isinstance(value, str) and value.isdigit() and (value == "0" or not value.startswith("0")):
        return int(value)
    return value


def dump(data: dict[str, Any]) -> str:
    """Serialize a mapping as a frontmatter body (without delimiters).

    Key order is preserved and None values are dropped.
    """
    cleaned = {k: _natural(v) for k, v in data.items() if v is not None}
    if not cleaned:
        return ""
    return yaml.safe_dump(
        cleaned,
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
        width=1000,
    ).rstrip("\n")


def render(data: dict[str, Any], text: str) -> str:
    """Build a full document from frontmatter and body text."""
    return f"---\n{dump(data)}\n---\n\n{text}\n"


def splice(content: str, data: dict[str, Any]) -> str:
    """Replace the frontmatter block of `content` (or prepend one)."""
    block = f"---\n{dump(data)}\n---"
    if FRONTMATTER_RE.match(content):
        return FRONTMATTER_RE.sub(lambda _: block, content, count=1)
    return f"{block}\n\n{content}"


def parse_value(text: str) -> bool | int | float | str:
    """Coerce a command-line value: booleans, integers, decimals, else text."""
    if text == "true":
        return True
    if text == "false":
        return False
    if re.fullmatch(r"\d+", text):
        return int(text)
    if re.fullmatch(r"\d+\.\d+", text):
        return float(text)
    return text


def required_fields(schema: str) -> tuple[str, ...]:
    """Look up the required fields of a named schema.

    Raises:
        AriadnaError: If the schema name is unknown
    """
    required = SCHEMAS.get(schema)
    if required is None:
        raise AriadnaError(
            ErrorCode.UNKNOWN_SCHEMA,
            {"schema": schema, "available": ", ".join(SCHEMAS)},
        )
    return required


def missing_fields(data: dict[str, Any], schema: str) -> list[str]:
    """List required fields of `schema` absent from `data`."""
    return [f for f in required_fields(schema) if f not in data]


# =============================================================================
# File operations
# =============================================================================


def _read(path: Path, display: str) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise file_not_found(display, cause=e) from e
    except UnicodeDecodeError as e:
        raise file_unreadable(display, e) from e


def _editable(content: str, display: str) -> dict[str, Any]:
    """Frontmatter about to be rewritten; refuses blocks that read as empty but are not."""
    fm = extract(content)
    match = FRONTMATTER_RE.match(content)
    if not fm and match and match.group(1).strip():
        raise AriadnaError(ErrorCode.FRONTMATTER_UNREADABLE, {"path": display})
    return fm


def get_fields(path: Path, field: str | None = None, display: str = "") -> dict[str, Any]:
    """Read frontmatter from a file, optionally narrowed to one field."""
    fm = extract(_read(path, display or str(path)))
    if field:
        return {field: fm.get(field)}
    return fm


def set_field(path: Path, field: str | None, value: str | None, display: str = "") -> dict[str, Any]:
    """Set one frontmatter field, coercing the value with `parse_value`."""
    if not field or value is None:
        raise usage_error("field and value required")

    content = _read(path, display or str(path))
    fm = _editable(content, display or str(path))
    parsed = parse_value(value)
    fm[field] = parsed
    write_text_atomic(path, splice(content, fm))
    logger.info("Set %s=%r in %s", field, parsed, path)
    return {"updated": True, "field": field, "value": parsed}


def merge_fields(path: Path, data: str | None, display: str = "") -> dict[str, Any]:
    """Merge a JSON object into a file's frontmatter."""
    if not data:
        raise usage_error("--data required")

    content = _read(path, display or str(path))
    try:
        merge_data = json.loads(data)
    except json.JSONDecodeError as e:
        raise AriadnaError(ErrorCode.INVALID_JSON, {"flag": "--data"}, cause=e) from e
    if not isinstance(merge_data, dict):
        raise AriadnaError(ErrorCode.INVALID_JSON, {"flag": "--data"})

    fm = _editable(content, display or str(path))
    fm.update(merge_data)
    write_text_atomic(path, splice(content, fm))
    return {"merged": True, "fields": list(merge_data)}


def validate_file(path: Path, schema: str | None, display: str = "") -> dict[str, Any]:
    """Check a file's frontmatter against a named schema."""
    if not schema:
        raise usage_error("--schema required")

    required_fields(schema)  # unknown schema fails before the file is read
    missing = missing_fields(extract(_read(path, display or str(path))), schema)
    return {"valid": not missing, "missing": missing, "schema": schema}
