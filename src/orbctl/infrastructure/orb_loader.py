"""Orb YAML loading: packed ``orb.yml`` or an unpacked source directory.

Unpacked layout::

    src/
      @orb.yml
      commands/<name>.yml
      jobs/<name>.yml
      executors/<name>.yml

Entity names come from the file stem.  Known keys map onto the schema
models; everything else is kept in the entity's ``extra`` bag.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from orbctl.domain.errors import OrbParseError
from orbctl.domain.schema import ENTITY_TYPES, Collection, OrbDefinition, OrbEntity, Parameter

ORB_ROOT_FILE = "@orb.yml"
_YAML_SUFFIXES = (".yml", ".yaml")


def parse_yaml(text: str, source: str) -> Any:
    """Parse one YAML document with the safe loader."""
    try:
        return YAML(typ="safe").load(text)
    except YAMLError as exc:
        msg = f"Invalid YAML in {source}: {exc}"
        raise OrbParseError(msg) from exc


def _read(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        msg = f"Missing required file: {path}"
        raise OrbParseError(msg) from exc
    except (OSError, UnicodeError) as exc:
        msg = f"Failed to read {path}: {exc}"
        raise OrbParseError(msg) from exc


def _mapping(value: Any, source: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        msg = f"Expected a mapping in {source}, got {type(value).__name__}"
        raise OrbParseError(msg)
    return {str(k): v for k, v in value.items()}


# ---------------------------------------------------------------------------
# Document -> model conversion
# ---------------------------------------------------------------------------


def _parameter(name: str, body: Any, source: str) -> Parameter:
    fields = _mapping(body, f"{source} parameter {name!r}")
    # CircleCI has no explicit flag: a parameter without a default is required.
    required = "default" not in fields
    return Parameter(
        name=name,
        type=str(fields.pop("type", "string")),
        description=fields.pop("description", None),
        default=fields.pop("default", None),
        required=required,
        extra=fields,
    )


def entity_from_document(
    collection: Collection, name: str, body: Any, source: str
) -> OrbEntity:
    """Build a command, job, or executor from its YAML body."""
    fields = _mapping(body, source)
    params = _mapping(fields.pop("parameters", None), f"{source} parameters")
    description = fields.pop("description", None)
    try:
        return ENTITY_TYPES[collection](
            name=name,
            description=description,
            parameters=[_parameter(str(p), b, source) for p, b in params.items()],
            extra=fields,
        )
    except ValidationError as exc:
        msg = f"Invalid {collection[:-1]} {name!r} in {source}: {exc}"
        raise OrbParseError(msg) from exc


def definition_from_parts(
    root: Any,
    parts: Mapping[Collection, Mapping[str, Any]] | None = None,
    *,
    source: str = "<orb>",
) -> OrbDefinition:
    """Build a definition from the root document plus per-entity documents.

    Entities in *parts* replace same-named collections of *root*, matching
    how an unpacked orb is assembled.
    """
    fields = _mapping(root, source)
    collections: dict[str, dict[str, OrbEntity]] = {}
    for collection in Collection:
        bodies = _mapping(fields.pop(str(collection), None), f"{source} {collection}")
        if parts is not None and collection in parts:
            bodies = dict(parts[collection])
        collections[str(collection)] = {
            str(name): entity_from_document(collection, str(name), body, source)
            for name, body in bodies.items()
        }
    description = fields.pop("description", None)
    try:
        return OrbDefinition(description=description, extra=fields, **collections)
    except ValidationError as exc:
        msg = f"Invalid orb definition in {source}: {exc}"
        raise OrbParseError(msg) from exc


def load_orb_text(text: str, source: str = "<string>") -> OrbDefinition:
    """Parse a packed orb from YAML text."""
    return definition_from_parts(parse_yaml(text, source), source=source)


# ---------------------------------------------------------------------------
# Filesystem entry points
# ---------------------------------------------------------------------------


def load_packed(path: Path) -> OrbDefinition:
    """Parse a single packed ``orb.yml``."""
    return load_orb_text(_read(path), str(path))


def load_unpacked(orb_dir: Path) -> OrbDefinition:
    """Parse an unpacked orb directory containing ``@orb.yml``.

    Raises:
        OrbParseError: ``@orb.yml`` is missing, or any file is unreadable
            or invalid.
    """
    root_path = orb_dir / ORB_ROOT_FILE
    root = parse_yaml(_read(root_path), str(root_path))
    parts: dict[Collection, dict[str, Any]] = {}
    for collection in Collection:
        directory = orb_dir / str(collection)
        if not directory.is_dir():
            continue
        try:
            files = sorted(p for p in directory.iterdir() if p.suffix in _YAML_SUFFIXES)
        except OSError as exc:
            msg = f"Failed to read directory {directory}: {exc}"
            raise OrbParseError(msg) from exc
        parts[collection] = {
            path.stem: parse_yaml(_read(path), str(path)) for path in files if path.is_file()
        }
    return definition_from_parts(root, parts, source=str(root_path))


def load_orb(path: Path) -> OrbDefinition:
    """Parse an orb from a packed file, an ``@orb.yml`` path, or a directory."""
    if path.is_dir():
        return load_unpacked(path)
    if path.name == ORB_ROOT_FILE:
        return load_unpacked(path.parent)
    return load_packed(path)
