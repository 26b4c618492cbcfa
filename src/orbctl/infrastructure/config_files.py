"""User configuration files (round-trip YAML).

Configs are read with ruamel's round-trip loader so comments, quoting,
and key order survive a ``migrate --write``.
"""

from __future__ import annotations

import io
from pathlib import Path
from typing import Any

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from orbctl.domain.errors import ConfigReadError


def _new_yaml() -> YAML:
    """Create a fresh round-trip YAML parser.

    ruamel's YAML object is stateful; one instance per call keeps a failed
    dump from poisoning later ones.
    """
    y = YAML()
    y.preserve_quotes = True
    y.default_flow_style = False
    y.indent(mapping=2, sequence=4, offset=2)
    return y


def load_config_text(text: str, source: str = "<string>") -> Any:
    """Parse a config document, keeping round-trip metadata."""
    try:
        data = _new_yaml().load(text)
    except YAMLError as exc:
        msg = f"Invalid YAML in {source}: {exc}"
        raise ConfigReadError(msg) from exc
    return {} if data is None else data


def load_config(path: Path) -> Any:
    """Read and parse the config file at *path*."""
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeError) as exc:
        msg = f"Failed to read {path}: {exc}"
        raise ConfigReadError(msg) from exc
    return load_config_text(text, str(path))


def dump_config(data: Any) -> str:
    """Render a (possibly round-trip) config document back to YAML."""
    stream = io.StringIO()
    _new_yaml().dump(data, stream)
    return stream.getvalue()


def write_config(path: Path, data: Any) -> None:
    """Persist *data* to *path*."""
    path.write_text(dump_config(data), encoding="utf-8")
