"""
Masking engine configuration.

Options are validated once, when they are built, and are read-only afterwards:
- policy: strict ("remove") or permissive ("hide")
- logger / log_level: observability sink and its threshold
- preserve_fields / redact_fields: caller overrides, normalized like field names
- max_depth: nesting ceiling for a single traversal

Typical usage:
1) `build_options({...})` or `load_options_from_json(path)`
2) `PiiMasker.from_options(options)`
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional, Union
import json

from pii_detection.key_classifier import normalize_field_name
from pii_detection.pii_patterns import Policy, coerce_policy
from pii_masking.errors import ConfigurationError
from utils.mask_logger import LogLevel, LogSink, coerce_log_level


DEFAULT_MAX_DEPTH = 200

# Accepted spellings per option; the first one is the canonical name.
_OPTION_KEYS: Mapping[str, tuple[str, ...]] = {
    "policy": ("policy", "mask_level", "maskLevel"),
    "log_level": ("log_level", "logLevel"),
    "preserve_fields": ("preserve_fields", "preserveFields", "saveFields"),
    "redact_fields": ("redact_fields", "redactFields", "removeFields"),
    "max_depth": ("max_depth", "maxDepth"),
}


@dataclass(frozen=True, slots=True)
class OverrideTable:
    """
    Caller-supplied field-name overrides, already normalized.

    Preserve is consulted first, so a name in both sets is preserved.
    """

    preserve: frozenset[str] = frozenset()
    redact: frozenset[str] = frozenset()

    def lookup(self, normalized_name: str) -> Optional[str]:
        """Return "preserve_fields", "redact_fields" or None."""
        if normalized_name in self.preserve:
            return "preserve_fields"
        if normalized_name in self.redact:
            return "redact_fields"
        return None


@dataclass(frozen=True, slots=True)
class MaskOptions:
    policy: Policy = Policy.STRICT
    logger: Optional[LogSink] = None
    log_level: LogLevel = LogLevel.WARN
    overrides: OverrideTable = field(default_factory=OverrideTable)
    max_depth: int = DEFAULT_MAX_DEPTH


def normalize_field_set(fields: Optional[Iterable[str]], *, option: str) -> frozenset[str]:
    """
    Normalize raw override field names into a set.

    A bare string is rejected (it would otherwise be iterated per character),
    as are non-string entries and entries with no alphanumeric characters.
    """
    if fields is None:
        return frozenset()
    if isinstance(fields, (str, bytes)):
        raise ConfigurationError(f"{option} must be a list of field names, not a single string: {fields!r}")
    try:
        items = list(fields)
    except TypeError as e:
        raise ConfigurationError(f"{option} must be a list of field names, got {type(fields).__name__}") from e

    out: set[str] = set()
    for item in items:
        if not isinstance(item, str):
            raise ConfigurationError(f"{option} entries must be strings, got {item!r}")
        normalized = normalize_field_name(item)
        if not normalized:
            raise ConfigurationError(f"{option} entry {item!r} has no letters or digits")
        out.add(normalized)
    return frozenset(out)


def build_options(
    raw: Optional[Mapping[str, Any]] = None,
    *,
    logger: Optional[LogSink] = None,
) -> MaskOptions:
    """
    Create validated MaskOptions from a plain mapping.

    Unknown keys are rejected so typos fail fast instead of silently
    falling back to defaults.
    """
    raw = dict(raw or {})
    values: dict[str, Any] = {}
    for canonical, spellings in _OPTION_KEYS.items():
        for spelling in spellings:
            if spelling in raw:
                if canonical in values:
                    raise ConfigurationError(f"Option {canonical!r} given more than once")
                values[canonical] = raw.pop(spelling)
    if "logger" in raw:
        if logger is not None:
            raise ConfigurationError("Option 'logger' given more than once")
        logger = raw.pop("logger")
    if raw:
        raise ConfigurationError(f"Unknown masking option(s): {sorted(raw)!r}")

    return make_options(
        policy=values.get("policy", Policy.STRICT),
        logger=logger,
        log_level=values.get("log_level", LogLevel.WARN),
        preserve_fields=values.get("preserve_fields"),
        redact_fields=values.get("redact_fields"),
        max_depth=values.get("max_depth", DEFAULT_MAX_DEPTH),
    )


def make_options(
    *,
    policy: Union[Policy, str] = Policy.STRICT,
    logger: Optional[LogSink] = None,
    log_level: Union[LogLevel, int, str] = LogLevel.WARN,
    preserve_fields: Optional[Iterable[str]] = None,
    redact_fields: Optional[Iterable[str]] = None,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> MaskOptions:
    try:
        resolved_policy = coerce_policy(policy)
    except ValueError as e:
        raise ConfigurationError(str(e)) from e

    try:
        resolved_level = coerce_log_level(log_level)
    except ValueError as e:
        raise ConfigurationError(str(e)) from e

    if logger is not None and not callable(logger):
        raise ConfigurationError(f"logger must be callable, got {type(logger).__name__}")

    if isinstance(max_depth, bool) or not isinstance(max_depth, int) or max_depth < 1:
        raise ConfigurationError(f"max_depth must be a positive integer, got {max_depth!r}")

    overrides = OverrideTable(
        preserve=normalize_field_set(preserve_fields, option="preserve_fields"),
        redact=normalize_field_set(redact_fields, option="redact_fields"),
    )
    return MaskOptions(
        policy=resolved_policy,
        logger=logger,
        log_level=resolved_level,
        overrides=overrides,
        max_depth=max_depth,
    )


def load_options_from_json(path: str, *, logger: Optional[LogSink] = None) -> MaskOptions:
    """
    Load masking options from a JSON file.

    Expected JSON shape:
    {
      "policy": "permissive",
      "log_level": "debug",
      "preserve_fields": ["userAgent"],
      "redact_fields": ["internalNotes"],
      "max_depth": 100
    }

    The logger cannot come from JSON; pass it as a keyword.
    """
    with open(path, "r", encoding="utf-8") as f:
        try:
            raw = json.load(f)
        except ValueError as e:
            raise ConfigurationError(f"Masking options file {path!r} is not valid JSON: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigurationError(f"Masking options file {path!r} must contain a JSON object")
    if "logger" in raw:
        raise ConfigurationError("logger cannot be set from a JSON options file")
    return build_options(raw, logger=logger)
