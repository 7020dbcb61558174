"""Parsing of the rewrite service's structured array.

Text generators sometimes wrap JSON in a Markdown code fence even when told
not to, so the raw text goes through `strip_code_fence` before `json.loads`.
Every failure is reported as RewriteUnavailable with a `kind` describing
which step rejected the response.
"""

import json
from typing import List

from pydantic import ValidationError

from ..errors import RewriteUnavailable
from ..models.news import RewriteResult


_FENCE = "```"


def strip_code_fence(text: str) -> str:
    """Remove one enclosing code fence, if present.

    The opening fence may carry a language tag (```json). Text that is not
    fenced is returned stripped but otherwise unchanged.
    """

    stripped = text.strip()
    if not stripped.startswith(_FENCE):
        return stripped

    newline = stripped.find("\n")
    if newline == -1:
        # Single line such as ```[...]```
        body = stripped[len(_FENCE):]
        if body.endswith(_FENCE):
            body = body[: -len(_FENCE)]
        return body.strip()

    body = stripped[newline + 1:]
    body = body.rstrip()
    if body.endswith(_FENCE):
        body = body[: -len(_FENCE)]
    return body.strip()


def parse_rewrite_response(text: str, expected_count: int) -> List[RewriteResult]:
    """Parse `text` into exactly `expected_count` RewriteResult objects."""

    cleaned = strip_code_fence(text or "")
    if not cleaned:
        raise RewriteUnavailable("rewrite response was empty", kind="parse")

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise RewriteUnavailable(
            f"could not parse rewrite response as JSON ({exc.msg})",
            kind="parse",
        ) from exc

    if not isinstance(data, list):
        raise RewriteUnavailable(
            f"could not parse rewrite response: expected a JSON array, got {type(data).__name__}",
            kind="parse",
        )

    if len(data) != expected_count:
        raise RewriteUnavailable(
            f"rewrite response has {len(data)} items for {expected_count} articles",
            kind="alignment",
        )

    results: List[RewriteResult] = []
    for index, element in enumerate(data):
        if not isinstance(element, dict):
            raise RewriteUnavailable(
                f"rewrite item {index + 1} is not an object",
                kind="fields",
            )
        try:
            results.append(RewriteResult.model_validate(element))
        except ValidationError as exc:
            missing = sorted({str(err["loc"][0]) for err in exc.errors() if err["loc"]})
            raise RewriteUnavailable(
                f"rewrite item {index + 1} is missing or has empty fields: {', '.join(missing)}",
                kind="fields",
            ) from exc
    return results
