"""Locate orb invocations inside a user's CircleCI configuration.

The configuration is a generic parsed document (plain dicts/lists, or
ruamel round-trip containers).  Two shapes are recognised:

- **Structured**: a CircleCI config with ``workflows`` / ``jobs`` /
  ``commands``.  Job invocations come from ``workflows.<wf>.jobs``,
  command invocations from ``steps`` / ``pre-steps`` / ``post-steps``
  lists (recursing into ``when`` / ``unless``), executor invocations
  from ``jobs.<job>.executor``.
- **Flat**: every non-reserved top-level key invokes the orb entity of
  that name, e.g. ``{"build": {"node_version": "18"}}``.

An :class:`Invocation` holds a live reference to its parameter mapping,
so the migration engine edits the working copy in place.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, MutableMapping
from dataclasses import dataclass, field
from typing import Any

from orbctl.domain.schema import Collection

# Top-level CircleCI keys that are never entity invocations.
RESERVED_TOP_LEVEL = frozenset(
    {"version", "setup", "orbs", "jobs", "workflows", "commands", "executors", "parameters"}
)

# Steps provided by CircleCI itself.
BUILTIN_STEPS = frozenset(
    {
        "checkout",
        "run",
        "save_cache",
        "restore_cache",
        "when",
        "unless",
        "persist_to_workspace",
        "attach_workspace",
        "store_test_results",
        "store_artifacts",
        "add_ssh_keys",
        "setup_remote_docker",
        "deploy",
    }
)

# Invocation keys that configure the call rather than pass a parameter.
RESERVED_INVOCATION_KEYS: dict[Collection | None, frozenset[str]] = {
    Collection.JOBS: frozenset(
        {"requires", "context", "filters", "name", "matrix", "pre-steps", "post-steps", "type"}
    ),
    Collection.EXECUTORS: frozenset({"name"}),
    Collection.COMMANDS: frozenset(),
    None: frozenset(),
}

_STEP_LIST_KEYS = ("steps", "pre-steps", "post-steps")


@dataclass
class Invocation:
    """One place in the config that calls an orb entity."""

    location: str
    ref: str
    name: str
    collection: Collection | None
    params: MutableMapping[str, Any] | None = None
    reserved: frozenset[str] = field(default_factory=frozenset)

    def has(self, key: str) -> bool:
        return self.params is not None and key not in self.reserved and key in self.params

    def parameter_items(self) -> list[tuple[str, Any]]:
        """Passed parameters, excluding reserved invocation keys."""
        if self.params is None:
            return []
        return [(k, v) for k, v in self.params.items() if k not in self.reserved]


def is_structured(config: Mapping[str, Any]) -> bool:
    """Whether *config* is a CircleCI-shaped document rather than flat form."""
    return any(key in config for key in ("workflows", "jobs", "commands"))


def effective_alias(config: Mapping[str, Any], orb_alias: str | None) -> str | None:
    """The orb alias to match, falling back to a single declared ``orbs`` entry."""
    if orb_alias:
        return orb_alias
    orbs = config.get("orbs")
    if isinstance(orbs, Mapping) and len(orbs) == 1:
        return str(next(iter(orbs)))
    return None


def find_invocations(config: Any, *, orb_alias: str | None = None) -> list[Invocation]:
    """Return every orb invocation in *config*, in document order."""
    if not isinstance(config, MutableMapping):
        return []
    finder = _Finder(config, effective_alias(config, orb_alias))
    return list(finder.walk())


class _Finder:
    def __init__(self, config: MutableMapping[str, Any], alias: str | None) -> None:
        self._config = config
        self._alias = alias
        self._flat = not is_structured(config)
        self._local: dict[Collection, set[str]] = {
            coll: set(config.get(str(coll)) or {})
            if isinstance(config.get(str(coll)), Mapping)
            else set()
            for coll in Collection
        }

    def walk(self) -> Iterator[Invocation]:
        if self._flat:
            yield from self._flat_invocations()
            return
        yield from self._workflow_invocations()
        for coll in (Collection.JOBS, Collection.COMMANDS):
            definitions = self._config.get(str(coll))
            if not isinstance(definitions, Mapping):
                continue
            for name, body in definitions.items():
                if not isinstance(body, MutableMapping):
                    continue
                base = f"{coll}.{name}"
                if coll is Collection.JOBS and "executor" in body:
                    yield from self._executor_invocation(body, f"{base}.executor")
                for key in _STEP_LIST_KEYS:
                    yield from self._step_invocations(body.get(key), f"{base}.{key}")

    # -- flat form ---------------------------------------------------------

    def _flat_invocations(self) -> Iterator[Invocation]:
        for key, value in self._config.items():
            if key in RESERVED_TOP_LEVEL:
                continue
            name = self._resolve(str(key), None)
            if name is None:
                continue
            params = value if isinstance(value, MutableMapping) else None
            yield Invocation(str(key), str(key), name, None, params)

    # -- structured form ---------------------------------------------------

    def _workflow_invocations(self) -> Iterator[Invocation]:
        workflows = self._config.get("workflows")
        if not isinstance(workflows, Mapping):
            return
        for wf_name, workflow in workflows.items():
            if not isinstance(workflow, Mapping):
                continue
            entries = workflow.get("jobs")
            if not isinstance(entries, list):
                continue
            for index, entry in enumerate(entries):
                location = f"workflows.{wf_name}.jobs[{index}]"
                ref, params = _unpack_entry(entry)
                if ref is None:
                    continue
                if params is not None:
                    for key in ("pre-steps", "post-steps"):
                        yield from self._step_invocations(params.get(key), f"{location}.{key}")
                name = self._resolve(ref, Collection.JOBS)
                if name is not None:
                    yield self._make(location, ref, name, Collection.JOBS, params)

    def _step_invocations(self, steps: Any, location: str) -> Iterator[Invocation]:
        if not isinstance(steps, list):
            return
        for index, step in enumerate(steps):
            here = f"{location}[{index}]"
            ref, params = _unpack_entry(step)
            if ref is None:
                continue
            if ref in ("when", "unless") and params is not None:
                yield from self._step_invocations(params.get("steps"), f"{here}.{ref}.steps")
                continue
            name = self._resolve(ref, Collection.COMMANDS)
            if name is not None:
                yield self._make(here, ref, name, Collection.COMMANDS, params)

    def _executor_invocation(self, job: Mapping[str, Any], location: str) -> Iterator[Invocation]:
        executor = job.get("executor")
        if isinstance(executor, str):
            ref, params = executor, None
        elif isinstance(executor, MutableMapping) and isinstance(executor.get("name"), str):
            ref, params = executor["name"], executor
        else:
            return
        name = self._resolve(ref, Collection.EXECUTORS)
        if name is not None:
            yield self._make(location, ref, name, Collection.EXECUTORS, params)

    # -- helpers -----------------------------------------------------------

    def _make(
        self,
        location: str,
        ref: str,
        name: str,
        collection: Collection,
        params: MutableMapping[str, Any] | None,
    ) -> Invocation:
        reserved = RESERVED_INVOCATION_KEYS[collection]
        return Invocation(location, ref, name, collection, params, reserved)

    def _resolve(self, ref: str, collection: Collection | None) -> str | None:
        """Map a written reference to an orb entity name, or None if not an orb ref."""
        if "/" in ref:
            prefix, _, name = ref.partition("/")
            if not name or "/" in name:
                return None
            if self._alias is not None and prefix != self._alias:
                return None
            return name
        if self._flat:
            return ref
        if ref in BUILTIN_STEPS:
            return None
        if collection is not None and ref in self._local[collection]:
            return None
        return ref


def _unpack_entry(entry: Any) -> tuple[str | None, MutableMapping[str, Any] | None]:
    """Split ``"name"`` or ``{"name": {params}}`` into ``(name, params)``."""
    if isinstance(entry, str):
        return entry, None
    if isinstance(entry, Mapping) and len(entry) == 1:
        ref, params = next(iter(entry.items()))
        return str(ref), params if isinstance(params, MutableMapping) else None
    return None, None


# ---------------------------------------------------------------------------
# In-place edits on parameter mappings
# ---------------------------------------------------------------------------

_MISSING = object()


def get_path(mapping: Mapping[str, Any], dotted: str) -> Any:
    """Return the value at a dotted path, or the ``_MISSING`` sentinel."""
    current: Any = mapping
    for part in dotted.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return _MISSING
        current = current[part]
    return current


def has_path(mapping: Mapping[str, Any], dotted: str) -> bool:
    return get_path(mapping, dotted) is not _MISSING


def pop_path(mapping: MutableMapping[str, Any], dotted: str) -> Any:
    """Remove and return the value at a dotted path.

    Intermediate mappings left empty by the removal are pruned.
    """
    parts = dotted.split(".")
    parents: list[MutableMapping[str, Any]] = [mapping]
    for part in parts[:-1]:
        parents.append(parents[-1][part])
    value = parents[-1].pop(parts[-1])
    for depth in range(len(parts) - 1, 0, -1):
        if parents[depth]:
            break
        del parents[depth - 1][parts[depth - 1]]
    return value


def set_path(mapping: MutableMapping[str, Any], dotted: str, value: Any) -> None:
    """Set the value at a dotted path, creating intermediate mappings."""
    parts = dotted.split(".")
    current = mapping
    for part in parts[:-1]:
        child = current.get(part)
        if not isinstance(child, MutableMapping):
            child = type(mapping)()
            current[part] = child
        current = child
    current[parts[-1]] = value


def rename_key(mapping: MutableMapping[str, Any], old: str, new: str) -> None:
    """Rename *old* to *new* keeping the key's position."""
    insert = getattr(mapping, "insert", None)
    if callable(insert):
        position = list(mapping).index(old)
        value = mapping.pop(old)
        insert(position, new, value)
        return
    items = [(new if k == old else k, v) for k, v in mapping.items()]
    mapping.clear()
    mapping.update(items)
