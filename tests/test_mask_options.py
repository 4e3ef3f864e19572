import json

import pytest

from pii_detection.pii_patterns import Policy
from pii_masking.errors import ConfigurationError
from pii_masking.mask_options import (
    DEFAULT_MAX_DEPTH,
    MaskOptions,
    OverrideTable,
    build_options,
    load_options_from_json,
    make_options,
    normalize_field_set,
)
from pii_masking.pii_masker import MASK_TOKEN, PiiMasker
from utils.mask_logger import LogLevel


def test_defaults():
    options = build_options()

    assert options == MaskOptions()
    assert options.policy is Policy.STRICT
    assert options.log_level is LogLevel.WARN
    assert options.logger is None
    assert options.max_depth == DEFAULT_MAX_DEPTH
    assert options.overrides == OverrideTable()


def test_build_options_accepts_camel_case_spellings():
    options = build_options(
        {
            "maskLevel": "hide",
            "logLevel": "debug",
            "saveFields": ["userAgent"],
            "removeFields": ["Internal-Notes"],
        }
    )

    assert options.policy is Policy.PERMISSIVE
    assert options.log_level is LogLevel.DEBUG
    assert options.overrides.preserve == frozenset({"useragent"})
    assert options.overrides.redact == frozenset({"internalnotes"})


def test_override_lookup_prefers_preserve():
    table = OverrideTable(preserve=frozenset({"a"}), redact=frozenset({"a", "b"}))

    assert table.lookup("a") == "preserve_fields"
    assert table.lookup("b") == "redact_fields"
    assert table.lookup("c") is None


def test_normalize_field_set_is_idempotent():
    once = normalize_field_set(["User-Agent", "e_mail"], option="preserve_fields")
    assert normalize_field_set(once, option="preserve_fields") == once


@pytest.mark.parametrize(
    "raw",
    [
        {"policy": "paranoid"},
        {"policy": 3},
        {"log_level": "verbose"},
        {"log_level": 42},
        {"preserve_fields": "email"},
        {"redact_fields": ["ok", 7]},
        {"redact_fields": ["---"]},
        {"preserve_fields": 5},
        {"max_depth": 0},
        {"max_depth": "10"},
        {"max_depth": True},
        {"maskLevel": "hide", "policy": "strict"},
        {"colour": "blue"},
        {"logger": "print"},
    ],
)
def test_invalid_options_fail_fast(raw):
    with pytest.raises(ConfigurationError):
        build_options(raw)


def test_configuration_error_is_a_value_error():
    with pytest.raises(ValueError):
        make_options(policy="nope")


def test_masker_constructor_validates_options():
    with pytest.raises(ConfigurationError):
        PiiMasker("nope")
    with pytest.raises(ConfigurationError):
        PiiMasker(redact_fields="password")
    with pytest.raises(ConfigurationError):
        PiiMasker(logger=object())


def test_load_options_from_json(tmp_path):
    path = tmp_path / "masking.json"
    path.write_text(
        json.dumps(
            {
                "policy": "permissive",
                "log_level": "info",
                "preserve_fields": ["city"],
                "redact_fields": ["nickname"],
                "max_depth": 50,
            }
        ),
        encoding="utf-8",
    )
    events = []

    options = load_options_from_json(str(path), logger=lambda level, message: events.append(level))
    masker = PiiMasker.from_options(options)

    assert options.max_depth == 50
    assert options.log_level is LogLevel.INFO
    assert masker.mask({"city": "Boston", "nickname": "bob", "zip": "x"}) == {
        "city": "Boston",
        "nickname": MASK_TOKEN,
        "zip": "x",
    }


def test_load_options_from_json_rejects_bad_files(tmp_path):
    not_json = tmp_path / "bad.json"
    not_json.write_text("{policy: strict", encoding="utf-8")
    not_object = tmp_path / "list.json"
    not_object.write_text("[]", encoding="utf-8")
    with_logger = tmp_path / "logger.json"
    with_logger.write_text('{"logger": "print"}', encoding="utf-8")

    for path in (not_json, not_object, with_logger):
        with pytest.raises(ConfigurationError):
            load_options_from_json(str(path))


def test_load_options_from_json_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_options_from_json(str(tmp_path / "missing.json"))


def test_options_are_frozen():
    options = build_options()
    with pytest.raises(AttributeError):
        options.policy = Policy.PERMISSIVE
