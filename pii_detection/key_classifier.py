"""
Field-name classification.

A field name is sensitive when its normalized form *contains* any keyword of
the active policy (substring match, so `secretApiKey` matches `secret`).
This trades precision for recall; callers narrow it with preserve overrides.
"""

from __future__ import annotations

from typing import Iterable, Optional
import re

from pii_detection.pii_patterns import Policy, keywords_for


_NON_ALNUM_RE = re.compile(r"[^a-zA-Z0-9]")


def normalize_field_name(name: str) -> str:
    """
    Strip every non-ASCII-alphanumeric character, then lower-case.

    Idempotent: normalize_field_name(normalize_field_name(x)) == normalize_field_name(x).
    """
    return _NON_ALNUM_RE.sub("", name).lower()


class KeyClassifier:
    def __init__(self, keywords: Iterable[str]) -> None:
        self._keywords: tuple[str, ...] = tuple(k for k in (normalize_field_name(w) for w in keywords) if k)

    @classmethod
    def for_policy(cls, policy: Policy) -> "KeyClassifier":
        return cls(keywords_for(policy))

    @property
    def keywords(self) -> tuple[str, ...]:
        return self._keywords

    def match_key(self, name: str) -> Optional[str]:
        """
        Return the first keyword contained in the normalized name, or None.
        """
        normalized = normalize_field_name(name)
        if not normalized:
            return None
        for keyword in self._keywords:
            if keyword in normalized:
                return keyword
        return None

    def is_sensitive_key(self, name: str) -> bool:
        return self.match_key(name) is not None
