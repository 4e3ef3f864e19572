"""
Value classification for string scalars.

Two checks:
- content patterns: recognizers are tried in registry order, first match wins
- embedded documents: a string holding a JSON object/array is decoded so the
  caller can mask inside it and re-encode it in the same textual form
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Optional
import json

from pii_detection.key_classifier import normalize_field_name
from pii_detection.pii_patterns import PiiCategory, Policy, Recognizer, recognizers_for


@dataclass(frozen=True, slots=True)
class DecodeResult:
    """Outcome of decoding a string as a JSON container; `document` is None unless ok."""

    ok: bool
    document: Any = None


_NOT_A_DOCUMENT = DecodeResult(ok=False)

# (item separator, key separator, ensure_ascii); first entry is the default.
_ENCODINGS: tuple[tuple[str, str, bool], ...] = (
    (",", ":", False),
    (", ", ": ", False),
    (",", ":", True),
    (", ", ": ", True),
)


def decode_document(value: str) -> DecodeResult:
    """
    Try to decode `value` as a JSON object or array.

    Scalars at the top level ("42", "\"x\"", "null") are not documents.
    Malformed input yields DecodeResult(ok=False); nothing is raised.
    """
    stripped = value.strip()
    if not stripped or stripped[0] not in "{[":
        return _NOT_A_DOCUMENT
    try:
        document = json.loads(stripped)
    except (ValueError, RecursionError):
        return _NOT_A_DOCUMENT
    if not isinstance(document, (dict, list)):
        return _NOT_A_DOCUMENT
    return DecodeResult(ok=True, document=document)


def encode_document(document: Any, *, like: Optional[str] = None) -> str:
    """
    Encode `document` as JSON.

    When `like` is given, reuse whichever separator/escaping style reproduces
    `like` from its own decoded form; otherwise use the compact style.
    """
    item_sep, key_sep, ensure_ascii = _ENCODINGS[0]
    if like is not None:
        decoded = decode_document(like)
        if decoded.ok:
            stripped = like.strip()
            for candidate in _ENCODINGS:
                if _dumps(decoded.document, candidate) == stripped:
                    item_sep, key_sep, ensure_ascii = candidate
                    break
    return _dumps(document, (item_sep, key_sep, ensure_ascii))


def _dumps(document: Any, encoding: tuple[str, str, bool]) -> str:
    item_sep, key_sep, ensure_ascii = encoding
    return json.dumps(document, separators=(item_sep, key_sep), ensure_ascii=ensure_ascii)


class ValueClassifier:
    def __init__(self, recognizers: Iterable[Recognizer]) -> None:
        self._recognizers: tuple[Recognizer, ...] = tuple(recognizers)

    @classmethod
    def for_policy(cls, policy: Policy) -> "ValueClassifier":
        return cls(recognizers_for(policy))

    @property
    def recognizers(self) -> tuple[Recognizer, ...]:
        return self._recognizers

    def match_value(self, value: str) -> Optional[PiiCategory]:
        """
        Return the category of the first recognizer that matches, or None.

        Recognizers flagged `normalize` see the key-style normalized value;
        the others always see the original string.
        """
        normalized: Optional[str] = None
        for recognizer in self._recognizers:
            candidate = value
            if recognizer.normalize:
                if normalized is None:
                    normalized = normalize_field_name(value)
                candidate = normalized
            if recognizer.pattern.search(candidate):
                return recognizer.category
        return None

    def is_sensitive_value(self, value: str) -> bool:
        return self.match_value(value) is not None

    def looks_like_serialized_document(self, value: str) -> bool:
        return decode_document(value).ok
