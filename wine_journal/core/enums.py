"""Enums for wine journal fields and AI analysis outcomes."""

from enum import Enum


class WineType(str, Enum):
    """Wine type classification."""

    RED = "red"
    WHITE = "white"
    ROSE = "rose"
    SPARKLING = "sparkling"
    DESSERT = "dessert"
    FORTIFIED = "fortified"
    ORANGE = "orange"
    OTHER = "other"


class AnalysisErrorKind(str, Enum):
    """Why a photo analysis could not produce a real result."""

    AUTHENTICATION = "authentication"
    RATE_LIMITED = "rate_limited"
    QUOTA_EXCEEDED = "quota_exceeded"
    NO_STRUCTURED_CONTENT = "no_structured_content"
    MALFORMED_JSON = "malformed_json"
    UNKNOWN = "unknown"


class ImageMediaType(str, Enum):
    """Image formats accepted by the vision providers."""

    JPEG = "image/jpeg"
    PNG = "image/png"
    GIF = "image/gif"
    WEBP = "image/webp"
