"""Same-turn substitution of generated media identifiers into later tool params."""

import re
from typing import Any, Dict, Sequence

from ..models import ToolCallResult
from ..schema.traversal import DEFAULT_MAX_DEPTH, Path, walk
from ...logger import get_logger

logger = get_logger(__name__)

LEGACY_IMAGE_PHRASE = "mediaId from generate_image result"

PLACEHOLDER_PATTERN = re.compile(
    r"\bGENERATED_(?P<kind>IMAGE|VIDEO)_ID(?:_(?P<index>\d+))?\b|" + re.escape(LEGACY_IMAGE_PHRASE)
)


def build_media_map(results: Sequence[ToolCallResult]) -> Dict[str, str]:
    """Collect placeholder tokens for the media created by ``results``.

    Only successful results of media-producing tools count. ``GENERATED_<KIND>_ID_<n>`` names
    the media created by the n-th (0-based) result of the turn, whatever the kind of the
    earlier results. ``GENERATED_<KIND>_ID`` names the most recent one of that kind.

    Args:
        results: The results accumulated so far within the current turn.

    Returns:
        A mapping from token to media identifier.
    """
    tokens: Dict[str, str] = {}
    for index, result in enumerate(results):
        if not (result.success and result.media_kind and result.created_id):
            continue
        prefix = f"GENERATED_{result.media_kind.upper()}_ID"
        tokens[f"{prefix}_{index}"] = result.created_id
        tokens[prefix] = result.created_id
        if result.media_kind == "image":
            tokens[LEGACY_IMAGE_PHRASE] = result.created_id
    return tokens


class _MediaTokenVisitor:
    def __init__(self, tokens: Dict[str, str]) -> None:
        self.tokens = tokens

    def visit_string(self, value: str, path: Path) -> Any:
        return PLACEHOLDER_PATTERN.sub(self._substitute, value)

    def _substitute(self, match: "re.Match[str]") -> str:
        return self.tokens.get(match.group(0), match.group(0))


class PlaceholderResolver:
    """Replaces generated-media placeholder tokens in tool params.

    Unresolvable tokens stay in place; the resolver never fails on them.
    """

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        self.max_depth = max_depth

    def resolve(self, params: Any, prior_results: Sequence[ToolCallResult]) -> Any:
        """Return a copy of ``params`` with known tokens substituted.

        Args:
            params: The upcoming call's params (any JSON-like value).
            prior_results: Results of earlier calls in the same turn, in execution order.

        Returns:
            The resolved params. ``params`` itself is left untouched.
        """
        tokens = build_media_map(prior_results)
        if not tokens:
            return params
        resolved = walk(params, _MediaTokenVisitor(tokens), max_depth=self.max_depth)
        if resolved != params:
            logger.debug(f"Resolved media placeholders: {resolved}")
        return resolved
