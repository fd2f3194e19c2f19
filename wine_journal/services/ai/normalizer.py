"""
Normalization of vision-model replies into WineAnalysis values.

The model is asked to answer with a JSON object but usually wraps it in prose
or a markdown fence, and sometimes returns nothing usable at all. The JSON is
located with a brace-matching scan that ignores braces inside string literals.
This is a best-effort heuristic, not a streaming parser: prose containing
balanced braces before the real object is skipped only if it fails to decode.

``parse_analysis`` is the strict path and raises ``AnalysisError``.
``normalize_analysis`` never raises and returns a fallback placeholder
(confidence 0) on failure.
"""

import json
import logging
import math
import re
from datetime import UTC, datetime
from typing import Any

from wine_journal.core.enums import AnalysisErrorKind
from wine_journal.core.schema import TasteProfile, WineAnalysis

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE = 0.5
FALLBACK_WINE_NAME = "Analysis failed"
FALLBACK_WINE_TYPE = "Unknown"
FALLBACK_FACT = (
    "Wine analysis requires a clear photo of the wine bottle label and proper API configuration."
)
ERROR_PREFIX = "Unable to analyze the wine photo. "

_ERROR_FRAGMENTS = {
    AnalysisErrorKind.AUTHENTICATION: "API authentication failed. Please check configuration.",
    AnalysisErrorKind.RATE_LIMITED: "API rate limit exceeded. Please try again later.",
    AnalysisErrorKind.QUOTA_EXCEEDED: "API quota exceeded. Please contact support.",
    AnalysisErrorKind.NO_STRUCTURED_CONTENT: (
        "Unable to read the wine label. Please ensure the label is clearly visible and try again."
    ),
    AnalysisErrorKind.MALFORMED_JSON: (
        "Unable to parse the wine label analysis. Please try again with a clearer photo."
    ),
    AnalysisErrorKind.UNKNOWN: "Unknown server error occurred.",
}

_ERROR_STATUS_CODES = {
    AnalysisErrorKind.AUTHENTICATION: 500,
    AnalysisErrorKind.RATE_LIMITED: 429,
    AnalysisErrorKind.QUOTA_EXCEEDED: 500,
    AnalysisErrorKind.NO_STRUCTURED_CONTENT: 400,
    AnalysisErrorKind.MALFORMED_JSON: 400,
    AnalysisErrorKind.UNKNOWN: 500,
}

_PROFILE_SCORES = (
    "fruit", "citrus", "floral", "herbal", "earthy", "mineral", "spice", "oak",
    "sweetness", "acidity", "tannin", "alcohol", "body",
)

# Leading integer, as in "2018" or "2018 (estimated)"
_LEADING_INT = re.compile(r"^\s*([+-]?\d{1,9})(?!\d)")


class AnalysisError(Exception):
    """A model reply that could not be turned into an analysis."""

    def __init__(self, kind: AnalysisErrorKind, message: str = ""):
        super().__init__(message or kind.value)
        self.kind = kind


def _utc_now() -> datetime:
    """Return current UTC datetime (timezone-aware)."""
    return datetime.now(UTC)


def _balanced_blocks(text: str) -> list[str]:
    """
    Return every balanced ``{...}`` substring, ordered by start position.

    Double-quoted strings inside a block are skipped so braces in string
    values do not affect nesting. Unclosed braces produce no block.
    """
    pairs: list[tuple[int, int]] = []
    stack: list[int] = []
    in_string = False
    escaped = False

    for i, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"' and stack:
            in_string = True
        elif ch == "{":
            stack.append(i)
        elif ch == "}" and stack:
            start = stack.pop()
            pairs.append((start, i))

    pairs.sort()
    return [text[start:end + 1] for start, end in pairs]


def extract_json_object(text: str) -> str | None:
    """
    Locate the JSON object embedded in a model reply.

    Args:
        text: Raw model reply, possibly with surrounding prose or fences.

    Returns:
        The first balanced block that decodes as JSON, else the first
        balanced block, else None when the text has no balanced braces.
    """
    blocks = _balanced_blocks(text)
    if not blocks:
        return None

    for block in blocks:
        try:
            json.loads(block)
        except (ValueError, RecursionError):
            continue
        return block

    return blocks[0]


def _pick(data: dict[str, Any], camel: str, snake: str) -> Any:
    """Read a field by its camelCase name, falling back to snake_case."""
    if camel in data:
        return data[camel]
    return data.get(snake)


def _text(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _string_list(value: Any) -> list[str] | None:
    # Scalars are never wrapped into a one-item list
    if not isinstance(value, list):
        return None
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def _vintage(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        year = value
    elif isinstance(value, float):
        year = int(value) if math.isfinite(value) else None
    elif isinstance(value, str):
        match = _LEADING_INT.match(value)
        year = int(match.group(1)) if match else None
    else:
        year = None
    return year if year is not None and year > 0 else None


def _score(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if not isinstance(value, (int, float, str)):
        return None
    try:
        number = float(value.strip() if isinstance(value, str) else value)
    except (ValueError, OverflowError):
        return None
    if not math.isfinite(number):
        return None
    return min(max(number, 0.0), 5.0)


def _confidence(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return DEFAULT_CONFIDENCE
    try:
        number = float(value)
    except OverflowError:
        return DEFAULT_CONFIDENCE
    if not math.isfinite(number):
        return DEFAULT_CONFIDENCE
    return number


def _taste_profile(value: Any) -> TasteProfile | None:
    if not isinstance(value, dict):
        return None

    fields: dict[str, Any] = {}
    for name in _PROFILE_SCORES:
        score = _score(value.get(name))
        if score is not None:
            fields[name] = score

    primary = _string_list(_pick(value, "primaryFlavors", "primary_flavors"))
    secondary = _string_list(_pick(value, "secondaryFlavors", "secondary_flavors"))
    if primary is not None:
        fields["primary_flavors"] = primary
    if secondary is not None:
        fields["secondary_flavors"] = secondary

    if not fields:
        return None
    return TasteProfile(**fields)


def parse_analysis(text: str | None) -> WineAnalysis:
    """
    Parse a model reply into a WineAnalysis.

    Each field is coerced on its own; a bad value drops only that field.
    ``analysis_date`` is always the current time.

    Args:
        text: Raw model reply.

    Returns:
        The parsed analysis.

    Raises:
        AnalysisError: NO_STRUCTURED_CONTENT if no JSON object is present,
            MALFORMED_JSON if the object does not decode.
    """
    if not text or not text.strip():
        raise AnalysisError(AnalysisErrorKind.NO_STRUCTURED_CONTENT, "Empty analysis response")

    block = extract_json_object(text)
    if block is None:
        raise AnalysisError(
            AnalysisErrorKind.NO_STRUCTURED_CONTENT,
            f"Could not parse analysis response: {text[:200]}",
        )

    try:
        data = json.loads(block)
    except (ValueError, RecursionError) as e:
        raise AnalysisError(AnalysisErrorKind.MALFORMED_JSON, f"JSON parse error: {e}") from e

    return WineAnalysis(
        wine_name=_text(_pick(data, "wineName", "wine_name")),
        wine_type=_text(_pick(data, "wineType", "wine_type")),
        region=_text(data.get("region")),
        vintage=_vintage(data.get("vintage")),
        grape_varieties=_string_list(_pick(data, "grapeVarieties", "grape_varieties")),
        tasting_notes=_text(_pick(data, "tastingNotes", "tasting_notes")),
        taste_profile=_taste_profile(_pick(data, "tasteProfile", "taste_profile")),
        interesting_fact=_text(_pick(data, "interestingFact", "interesting_fact")),
        confidence=_confidence(data.get("confidence")),
        analysis_date=_utc_now(),
    )


def normalize_analysis(text: str | None) -> WineAnalysis:
    """
    Turn any model reply into a WineAnalysis without raising.

    Args:
        text: Raw model reply, possibly empty or malformed.

    Returns:
        The parsed analysis, or a fallback placeholder with confidence 0.
    """
    try:
        return parse_analysis(text)
    except AnalysisError as e:
        logger.warning(f"Falling back after unparseable analysis ({e.kind.value}): {e}")
        return fallback_analysis(e.kind)
    except (ValueError, TypeError, OverflowError, RecursionError) as e:
        logger.error(f"Falling back after unexpected analysis failure: {e}")
        return fallback_analysis(AnalysisErrorKind.UNKNOWN, detail=str(e))


def error_message(kind: AnalysisErrorKind, detail: str | None = None) -> str:
    """User-facing explanation for a failed analysis."""
    fragment = _ERROR_FRAGMENTS[kind]
    if kind == AnalysisErrorKind.UNKNOWN and detail:
        fragment = detail
    return ERROR_PREFIX + fragment


def error_status_code(kind: AnalysisErrorKind) -> int:
    """HTTP status to report alongside a fallback analysis."""
    return _ERROR_STATUS_CODES[kind]


def classify_error(exc: BaseException) -> AnalysisErrorKind:
    """
    Map an exception raised while analyzing a photo to an error kind.

    Provider SDK errors carry an HTTP ``status_code``; anything else is
    matched on its message text.
    """
    if isinstance(exc, AnalysisError):
        return exc.kind

    status = getattr(exc, "status_code", None)
    if status in (401, 403):
        return AnalysisErrorKind.AUTHENTICATION
    if status == 429:
        return AnalysisErrorKind.RATE_LIMITED
    if status == 402:
        return AnalysisErrorKind.QUOTA_EXCEEDED

    message = str(exc).lower()
    if "api key" in message or "authentication" in message or "401" in message:
        return AnalysisErrorKind.AUTHENTICATION
    if "rate limit" in message or "429" in message:
        return AnalysisErrorKind.RATE_LIMITED
    if "quota" in message or "402" in message or "credit balance" in message:
        return AnalysisErrorKind.QUOTA_EXCEEDED
    return AnalysisErrorKind.UNKNOWN


def fallback_analysis(kind: AnalysisErrorKind, detail: str | None = None) -> WineAnalysis:
    """
    Build the placeholder shown when analysis fails.

    Args:
        kind: Why the analysis failed.
        detail: Optional error text, used only for UNKNOWN failures.

    Returns:
        A WineAnalysis with confidence 0 and an explanation in its notes.
    """
    return WineAnalysis(
        wine_name=FALLBACK_WINE_NAME,
        wine_type=FALLBACK_WINE_TYPE,
        tasting_notes=f"{error_message(kind, detail)} Please try again or enter details manually.",
        interesting_fact=FALLBACK_FACT,
        confidence=0,
        analysis_date=_utc_now(),
    )


def configuration_error_analysis() -> WineAnalysis:
    """Placeholder returned when no AI provider key is configured."""
    return WineAnalysis(
        wine_name="Configuration Error",
        wine_type=FALLBACK_WINE_TYPE,
        tasting_notes=(
            "Wine analysis requires API configuration. Please enter wine details manually."
        ),
        interesting_fact="Contact your administrator to enable wine photo analysis.",
        confidence=0,
        analysis_date=_utc_now(),
    )
