"""Version history readers.

Each reader yields ``(Version, OrbDefinition)`` pairs in ascending
version order, ready to feed :meth:`VersionStore.extend`.

- :class:`DirectorySnapshotReader` reads ``<root>/<version>/`` (packed
  ``orb.yml`` or unpacked ``@orb.yml`` layout) and ``<root>/<version>.yml``.
- :class:`GitTagSnapshotReader` reads the orb at every semver tag of a git
  repository via ``git show`` / ``git ls-tree``.

Entries whose name does not parse as a version are skipped.
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Iterator
from pathlib import Path
from typing import Protocol

from orbctl.domain.errors import OrbParseError
from orbctl.domain.schema import Collection, OrbDefinition
from orbctl.domain.versions import InvalidVersion, Version, parse_version
from orbctl.infrastructure.orb_loader import (
    ORB_ROOT_FILE,
    definition_from_parts,
    load_orb,
    load_orb_text,
    parse_yaml,
)

logger = logging.getLogger(__name__)

_YAML_SUFFIXES = (".yml", ".yaml")


class SnapshotReader(Protocol):
    """Source of orb history."""

    def read(self) -> Iterator[tuple[Version, OrbDefinition]]: ...


def _try_version(text: str, *, prefix: str = "") -> Version | None:
    if prefix and not text.startswith(prefix):
        return None
    try:
        return parse_version(text[len(prefix) :])
    except InvalidVersion:
        return None


# ---------------------------------------------------------------------------
# Directory snapshots
# ---------------------------------------------------------------------------


class DirectorySnapshotReader:
    """Read versioned orb snapshots from a directory tree."""

    def __init__(self, root: Path) -> None:
        self._root = root

    def locate(self) -> list[tuple[Version, Path]]:
        """Versioned entries under the root, ascending."""
        if not self._root.is_dir():
            msg = f"Snapshot directory not found: {self._root}"
            raise OrbParseError(msg)
        found: dict[Version, Path] = {}
        for entry in sorted(self._root.iterdir()):
            if entry.is_file():
                if entry.suffix not in _YAML_SUFFIXES:
                    continue
                name = entry.stem
            else:
                name = entry.name
            version = _try_version(name)
            if version is None:
                logger.debug("Skipping non-version snapshot entry %s", entry)
                continue
            if version in found:
                msg = f"Duplicate snapshots for {version}: {found[version]} and {entry}"
                raise OrbParseError(msg)
            found[version] = entry
        return sorted(found.items())

    @staticmethod
    def orb_path(entry: Path) -> Path:
        """The loadable orb inside one snapshot entry."""
        if entry.is_file():
            return entry
        for candidate in (entry / ORB_ROOT_FILE, entry / "src" / ORB_ROOT_FILE):
            if candidate.is_file():
                return candidate.parent
        for name in ("orb.yml", "orb.yaml"):
            if (entry / name).is_file():
                return entry / name
        msg = f"No orb found in snapshot {entry}"
        raise OrbParseError(msg)

    def read(self) -> Iterator[tuple[Version, OrbDefinition]]:
        for version, entry in self.locate():
            logger.debug("Reading snapshot %s from %s", version, entry)
            yield version, load_orb(self.orb_path(entry))


# ---------------------------------------------------------------------------
# Git tags
# ---------------------------------------------------------------------------


class GitTagSnapshotReader:
    """Read the orb at every ``<prefix>X.Y.Z`` tag of a git repository."""

    def __init__(self, repo: Path, *, orb_path: str = "src", tag_prefix: str = "v") -> None:
        self._repo = repo
        self._orb_path = orb_path.strip("/")
        self._prefix = tag_prefix

    def _run_git(self, *args: str) -> subprocess.CompletedProcess[str]:
        """Run a git command in the repository. Raises on failure."""
        return subprocess.run(
            ["git", *args],
            cwd=self._repo,
            capture_output=True,
            text=True,
            check=True,
        )

    def _git_output(self, *args: str) -> str:
        try:
            return self._run_git(*args).stdout
        except (OSError, subprocess.CalledProcessError) as exc:
            stderr = getattr(exc, "stderr", "") or str(exc)
            msg = f"git {' '.join(args)} failed in {self._repo}: {stderr.strip()}"
            raise OrbParseError(msg) from exc

    def tags(self) -> list[tuple[Version, str]]:
        """Version tags, ascending."""
        output = self._git_output("tag", "--list", f"{self._prefix}*")
        found: dict[Version, str] = {}
        for tag in output.split():
            version = _try_version(tag, prefix=self._prefix)
            if version is None:
                logger.debug("Skipping non-version tag %s", tag)
                continue
            found.setdefault(version, tag)
        return sorted(found.items())

    def _object_type(self, revpath: str) -> str | None:
        try:
            return self._run_git("cat-file", "-t", revpath).stdout.strip()
        except (OSError, subprocess.CalledProcessError):
            return None

    def _tree_files(self, revpath: str) -> list[str]:
        if self._object_type(revpath) != "tree":
            return []
        names = self._git_output("ls-tree", "--name-only", revpath).splitlines()
        return sorted(n for n in names if n.endswith(_YAML_SUFFIXES))

    def load_tag(self, tag: str) -> OrbDefinition:
        """Load the orb as it exists at *tag*."""
        revpath = f"{tag}:{self._orb_path}"
        kind = self._object_type(revpath)
        if kind == "blob":
            return load_orb_text(self._git_output("show", revpath), revpath)
        if kind != "tree":
            msg = f"No orb at {revpath}"
            raise OrbParseError(msg)

        root_revpath = f"{revpath}/{ORB_ROOT_FILE}"
        if self._object_type(root_revpath) != "blob":
            msg = f"Missing required file: {root_revpath}"
            raise OrbParseError(msg)
        root = parse_yaml(self._git_output("show", root_revpath), root_revpath)
        parts: dict[Collection, dict[str, object]] = {}
        for collection in Collection:
            folder = f"{revpath}/{collection}"
            files = self._tree_files(folder)
            if not files:
                continue
            parts[collection] = {
                Path(name).stem: parse_yaml(
                    self._git_output("show", f"{folder}/{name}"), f"{folder}/{name}"
                )
                for name in files
            }
        return definition_from_parts(root, parts, source=root_revpath)

    def read(self) -> Iterator[tuple[Version, OrbDefinition]]:
        for version, tag in self.tags():
            logger.debug("Reading orb at tag %s", tag)
            yield version, self.load_tag(tag)
