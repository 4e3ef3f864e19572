"""
Structured-data PII masker.

Walks a decoded tree (mappings, lists/tuples, scalars) depth-first and
returns a new tree in which sensitive nodes are replaced by MASK_TOKEN.

Per mapping entry, the first rule that applies wins:
1. field name in preserve overrides  -> value kept as is (no descent)
2. field name in redact overrides    -> masked
3. field name matches a keyword      -> masked
4. string holding a JSON document    -> masked inside, re-encoded
5. string matching a content pattern -> masked
6. mapping / sequence                -> rebuilt from masked children
7. anything else                     -> kept as is

Sequence elements skip rules 1-3 (an index carries no name signal).
The input is never mutated and the output never shares containers with it.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Iterable, Literal, Optional, TypedDict, Union
import copy

from pii_detection.key_classifier import KeyClassifier, normalize_field_name
from pii_detection.pii_patterns import Policy
from pii_detection.value_classifier import ValueClassifier, decode_document, encode_document
from pii_masking.errors import ResourceExhaustedError
from pii_masking.mask_options import DEFAULT_MAX_DEPTH, MaskOptions, make_options
from utils.mask_logger import LogLevel, LogSink, MaskLogger


# Output contract: downstream consumers detect redaction by this exact string.
MASK_TOKEN = "*********"


MaskChannel = Literal["override", "key", "value"]


@dataclass(frozen=True, slots=True)
class MaskFinding:
    """
    One masked node. Never carries the original value.

    - path: dotted/bracketed location, e.g. "user.contacts[2].email"
    - channel: which check fired
    - category: override set name, matched keyword, or pattern category
    """

    path: str
    channel: MaskChannel
    category: str

    def to_dict(self) -> "MaskFindingDict":
        return {"path": self.path, "channel": self.channel, "category": self.category}


class MaskFindingDict(TypedDict):
    path: str
    channel: MaskChannel
    category: str


@dataclass(frozen=True, slots=True)
class MaskResult:
    masked: Any
    findings: list[MaskFinding] = field(default_factory=list)


def _child_path(path: str, key: Any) -> str:
    if isinstance(key, int) and not isinstance(key, bool):
        return f"{path}[{key}]"
    return f"{path}.{key}" if path else str(key)


class PiiMasker:
    """
    Masks sensitive values in a decoded tree.

    Configuration is fixed at construction and never mutated, so one instance
    may be shared between threads; each `mask` call keeps its state on the stack.

    Example:
        masker = PiiMasker(Policy.PERMISSIVE, preserve_fields=["userAgent"])
        masker.mask({"email": "a@b.com", "userAgent": "curl/8.0"})
        # {"email": "*********", "userAgent": "curl/8.0"}
    """

    def __init__(
        self,
        policy: Union[Policy, str] = Policy.STRICT,
        *,
        logger: Optional[LogSink] = None,
        log_level: Union[LogLevel, int, str] = LogLevel.WARN,
        preserve_fields: Optional[Iterable[str]] = None,
        redact_fields: Optional[Iterable[str]] = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        options = make_options(
            policy=policy,
            logger=logger,
            log_level=log_level,
            preserve_fields=preserve_fields,
            redact_fields=redact_fields,
            max_depth=max_depth,
        )
        self._configure(options)

    @classmethod
    def from_options(cls, options: MaskOptions) -> "PiiMasker":
        masker = cls.__new__(cls)
        masker._configure(options)
        return masker

    def _configure(self, options: MaskOptions) -> None:
        self.options = options
        self.logger = MaskLogger(options.logger, options.log_level)
        self._keys = KeyClassifier.for_policy(options.policy)
        self._values = ValueClassifier.for_policy(options.policy)
        self.logger.debug(
            f"masker ready: policy={options.policy.value} "
            f"preserve={len(options.overrides.preserve)} redact={len(options.overrides.redact)} "
            f"max_depth={options.max_depth}"
        )

    @property
    def policy(self) -> Policy:
        return self.options.policy

    def is_sensitive_key(self, name: str) -> bool:
        return self._keys.is_sensitive_key(name)

    def is_sensitive_value(self, value: str) -> bool:
        return self._values.is_sensitive_value(value)

    def mask(self, tree: Any) -> Any:
        """
        Return a masked copy of `tree`.

        Raises ResourceExhaustedError for cyclic or too-deeply nested input;
        no partial result is returned in that case.
        """
        return self._run(tree, None)

    def mask_with_findings(self, tree: Any) -> MaskResult:
        """
        Like `mask`, but also report where and why each node was masked.
        """
        findings: list[MaskFinding] = []
        masked = self._run(tree, findings)
        return MaskResult(masked=masked, findings=findings)

    def _run(self, tree: Any, findings: Optional[list[MaskFinding]]) -> Any:
        try:
            return self._mask_value(tree, "", 0, findings)
        except ResourceExhaustedError as e:
            self.logger.error(f"traversal aborted at path: {e.path or '<root>'} depth: {e.depth}")
            raise
        except RecursionError as e:
            self.logger.error("traversal aborted: interpreter recursion limit reached")
            raise ResourceExhaustedError(
                "Interpreter recursion limit reached while masking; input is cyclic or too deep"
            ) from e

    def _record(
        self,
        findings: Optional[list[MaskFinding]],
        path: str,
        channel: MaskChannel,
        category: str,
    ) -> str:
        self.logger.debug(f"detected pii on object path: {path or '<root>'} {channel}: {category}")
        if findings is not None:
            findings.append(MaskFinding(path=path, channel=channel, category=category))
        return MASK_TOKEN

    def _mask_entry(
        self,
        key: Any,
        value: Any,
        path: str,
        depth: int,
        findings: Optional[list[MaskFinding]],
    ) -> Any:
        name = normalize_field_name(str(key))

        override = self.options.overrides.lookup(name)
        if override == "preserve_fields":
            self.logger.trace(f"preserved by override on object path: {path}")
            return copy.deepcopy(value)
        if override == "redact_fields":
            return self._record(findings, path, "override", override)

        keyword = self._keys.match_key(name)
        if keyword is not None:
            return self._record(findings, path, "key", keyword)

        return self._mask_value(value, path, depth, findings)

    def _mask_value(
        self,
        value: Any,
        path: str,
        depth: int,
        findings: Optional[list[MaskFinding]],
    ) -> Any:
        if isinstance(value, str):
            return self._mask_string(value, path, depth, findings)

        if isinstance(value, Mapping):
            self._check_depth(path, depth)
            return {
                key: self._mask_entry(key, child, _child_path(path, key), depth + 1, findings)
                for key, child in value.items()
            }

        if isinstance(value, (list, tuple)):
            self._check_depth(path, depth)
            items = [
                self._mask_value(child, _child_path(path, index), depth + 1, findings)
                for index, child in enumerate(value)
            ]
            return tuple(items) if isinstance(value, tuple) else items

        return value

    def _mask_string(
        self,
        value: str,
        path: str,
        depth: int,
        findings: Optional[list[MaskFinding]],
    ) -> str:
        decoded = decode_document(value)
        if decoded.ok:
            masked = self._mask_value(decoded.document, path, depth, findings)
            if masked == decoded.document:
                return value
            return encode_document(masked, like=value)

        category = self._values.match_value(value)
        if category is not None:
            return self._record(findings, path, "value", category)
        return value

    def _check_depth(self, path: str, depth: int) -> None:
        if depth >= self.options.max_depth:
            raise ResourceExhaustedError(
                f"Maximum nesting depth {self.options.max_depth} exceeded at path {path or '<root>'!r}; "
                "input is cyclic or too deep",
                path=path,
                depth=depth,
            )


def mask_pii(tree: Any, policy: Union[Policy, str] = Policy.STRICT, **options: Any) -> Any:
    """
    Convenience wrapper: build a one-off PiiMasker and mask `tree`.
    """
    return PiiMasker(policy, **options).mask(tree)
