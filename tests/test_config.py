from pathlib import Path

import pytest

from cblayout.config import ConfigError, ParserConfig, load_config
from cblayout.copybook.errors import CopybookError


def test_defaults() -> None:
    cfg = ParserConfig()
    assert cfg.fixed_format is False
    assert cfg.honor_record_length is True
    assert cfg.default_usage == "DISPLAY"
    assert cfg.extract_variants is True


def test_load_yaml(tmp_path: Path) -> None:
    path = tmp_path / "parser.yaml"
    path.write_text("fixed_format: true\ndefault_usage: computational-3\n")
    cfg = load_config(path)
    assert cfg.fixed_format is True
    assert cfg.default_usage == "COMP-3"
    assert cfg.honor_record_length is True


def test_load_json(tmp_path: Path) -> None:
    path = tmp_path / "parser.json"
    path.write_text('{"honor_record_length": false, "extract_variants": false}')
    cfg = load_config(path)
    assert cfg.honor_record_length is False
    assert cfg.extract_variants is False


def test_empty_yaml_means_defaults(tmp_path: Path) -> None:
    path = tmp_path / "empty.yml"
    path.write_text("")
    assert load_config(path) == ParserConfig()


def test_unknown_keys_rejected() -> None:
    with pytest.raises(ConfigError, match="fixedformat"):
        ParserConfig.from_mapping({"fixedformat": True})


def test_bad_usage_rejected() -> None:
    with pytest.raises(ConfigError):
        ParserConfig.from_mapping({"default_usage": "PACKED"})


def test_missing_and_malformed_files(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_config(tmp_path / "nope.yaml")
    broken = tmp_path / "broken.json"
    broken.write_text("{not json")
    with pytest.raises(CopybookError):
        load_config(broken)
    listing = tmp_path / "list.yaml"
    listing.write_text("- a\n- b\n")
    with pytest.raises(ConfigError, match="mapping"):
        load_config(listing)


def test_undecodable_config_is_a_config_error(tmp_path: Path) -> None:
    path = tmp_path / "latin.yaml"
    path.write_bytes(b"\xff\xfe\x00fixed_format: true\n")
    with pytest.raises(ConfigError):
        load_config(path)
