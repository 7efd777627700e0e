"""Extract JSON directives from free-form model replies."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from .state import Directive, Final, NoDirective, ToolCall

logger = logging.getLogger(__name__)

FINAL_KEYS = frozenset({"final", "summary", "artifacts", "notes"})

_FENCE_RE = re.compile(r"```[\w+-]*[ \t]*\r?\n?(.*?)```", re.DOTALL)


def _loads_object(candidate: str) -> dict[str, Any] | None:
    try:
        value = json.loads(candidate)
    except ValueError:
        return None
    return value if isinstance(value, dict) else None


def extract_json_object(text: Any) -> dict[str, Any] | None:
    """Locate and parse one JSON object in model output.

    The candidate is the inner content of the first fenced code block if
    there is one, otherwise the whole trimmed text. A direct parse is tried
    first, then the span from the first ``{`` to the last ``}``.

    Returns:
        The parsed mapping, or None. Never raises.
    """
    if not isinstance(text, str):
        return None
    candidate = text.strip()
    if not candidate:
        return None

    fence = _FENCE_RE.search(candidate)
    if fence:
        candidate = fence.group(1).strip()

    parsed = _loads_object(candidate)
    if parsed is not None:
        return parsed

    start = candidate.find("{")
    end = candidate.rfind("}")
    if start != -1 and end > start:
        return _loads_object(candidate[start : end + 1])
    return None


def classify(data: dict[str, Any] | None) -> Directive:
    """Turn a parsed mapping into exactly one directive variant."""
    if data is None:
        return NoDirective()

    tool = data.get("tool")
    if data.get("final") is True:
        if tool is not None:
            logger.warning(
                "Reply carries both 'final: true' and tool '%s'; treating it as final",
                tool,
            )
        artifacts = data.get("artifacts") or []
        if not isinstance(artifacts, list):
            artifacts = [artifacts]
        notes = data.get("notes")
        return Final(
            summary=str(data.get("summary", "")),
            artifacts=tuple(str(a) for a in artifacts),
            notes=str(notes) if notes is not None else None,
            extra={k: v for k, v in data.items() if k not in FINAL_KEYS},
        )

    if tool:
        params = data.get("params")
        expect = data.get("expect") or []
        call_id = data.get("id")
        reasoning = data.get("reasoning")
        return ToolCall(
            tool=str(tool),
            params={} if params is None else params,
            id=str(call_id) if call_id is not None else None,
            reasoning=str(reasoning) if reasoning is not None else None,
            expect=tuple(str(k) for k in expect) if isinstance(expect, list) else (),
        )

    return NoDirective()


def parse_directive(text: Any) -> Directive:
    """Extract and classify the directive in one model reply."""
    return classify(extract_json_object(text))
