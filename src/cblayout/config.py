"""Parser options, optionally loaded from a YAML or JSON file."""

from __future__ import annotations

import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from cblayout.copybook.errors import CopybookError
from cblayout.copybook.picture import normalize_usage


class ConfigError(CopybookError):
    pass


@dataclass
class ParserConfig:
    fixed_format: bool = False  # columns 1-6 sequence area, 7 indicator, cut at 72
    honor_record_length: bool = True  # apply "* REC LEN : n" comment directives
    default_usage: str = "DISPLAY"
    extract_variants: bool = True  # discriminator + REDEFINES sibling layouts

    @staticmethod
    def from_mapping(payload: dict[str, Any]) -> ParserConfig:
        known = {f.name for f in fields(ParserConfig)}
        unknown = sorted(set(payload) - known)
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")
        usage = normalize_usage(str(payload.get("default_usage", "DISPLAY")))
        if usage is None:
            raise ConfigError(f"Unsupported default_usage: {payload['default_usage']!r}")
        return ParserConfig(
            fixed_format=bool(payload.get("fixed_format", False)),
            honor_record_length=bool(payload.get("honor_record_length", True)),
            default_usage=usage,
            extract_variants=bool(payload.get("extract_variants", True)),
        )


def load_config(path: Path) -> ParserConfig:
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")
    try:
        if path.suffix.lower() in {".yml", ".yaml"}:
            payload = yaml.safe_load(path.read_text())
        else:
            payload = json.loads(path.read_text())
    except (yaml.YAMLError, json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Cannot parse config {path}: {exc}") from exc
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ConfigError(f"Config {path} must be a mapping")
    return ParserConfig.from_mapping(payload)
