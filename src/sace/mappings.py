"""
Mapping registry and resolver.

Every survey key resolves to exactly one mapping and exactly one entity kind:

    DirectMapping     answer value goes to one engine variable
    DispatchMapping   a dispatch function fans the answer out
    ExcludedMapping   the key only drives survey logic; it is skipped

The registry is built once (from mappings.yaml by default), is immutable,
and is checked on construction: a key declared for two entity kinds is a
RegistryError, not something discovered per lookup.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from importlib import resources
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml

from sace.dispatchers import DISPATCHERS, DispatchFunction
from sace.entities import ENTITY_ORDER, EntityKind
from sace.errors import RegistryError, UnknownPeriodError
from sace.periods import PeriodType, parse_period_type

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DirectMapping:
    variable_name: str
    period: PeriodType


@dataclass(frozen=True)
class DispatchMapping:
    dispatch: DispatchFunction
    period: PeriodType
    name: str = ""


@dataclass(frozen=True)
class ExcludedMapping:
    pass


AnswerMapping = Union[DirectMapping, DispatchMapping, ExcludedMapping]
MappingTable = Dict[str, AnswerMapping]


class MappingRegistry:
    """
    Immutable answer-key -> mapping tables, one per entity kind.

    Each kind's table is the union of its "answers" and "questions" parts.

    Raises:
        RegistryError: On construction, if any key is declared more than
            once (across kinds, or in both parts of one kind)
    """

    def __init__(self, answers: Mapping[EntityKind, MappingTable],
                 questions: Optional[Mapping[EntityKind, MappingTable]] = None):
        questions = questions or {}
        owners: Dict[str, List[str]] = {}
        tables: Dict[EntityKind, Mapping[str, AnswerMapping]] = {}

        for kind in ENTITY_ORDER:
            table: Dict[str, AnswerMapping] = {}
            for part_name, part in (("answers", answers.get(kind, {})), ("questions", questions.get(kind, {}))):
                for key, mapping in part.items():
                    owners.setdefault(key, []).append(f"{kind.value}.{part_name}")
                    table[key] = mapping
            tables[kind] = MappingProxyType(table)

        duplicates = {key: places for key, places in owners.items() if len(places) > 1}
        if duplicates:
            details = "; ".join(f"{key}: {', '.join(places)}" for key, places in sorted(duplicates.items()))
            raise RegistryError(f"Keys mapped more than once: {details}")

        self._tables: Mapping[EntityKind, Mapping[str, AnswerMapping]] = MappingProxyType(tables)

    def table(self, kind: EntityKind) -> Mapping[str, AnswerMapping]:
        return self._tables[kind]

    def items(self):
        """(kind, table) pairs in fixed scan order."""
        return [(kind, self._tables[kind]) for kind in ENTITY_ORDER]

    def keys(self) -> List[str]:
        return [key for _, table in self.items() for key in table]

    def excluded_keys(self) -> set:
        return {key for _, table in self.items() for key, m in table.items() if isinstance(m, ExcludedMapping)}

    def __len__(self) -> int:
        return sum(len(table) for _, table in self.items())


def mapping_from_dict(key: str, d: Any, dispatchers: Mapping[str, DispatchFunction] = DISPATCHERS) -> AnswerMapping:
    """
    Build one mapping from its declarative form.

    Raises:
        RegistryError: Unknown shape, unknown dispatcher or unknown period
    """
    if not isinstance(d, dict):
        raise RegistryError(f"Mapping for '{key}' must be a mapping, got {d!r}")

    if d.get("exclude") is True:
        return ExcludedMapping()

    try:
        period = parse_period_type(d.get("period", PeriodType.MONTH.value))
    except UnknownPeriodError as e:
        raise RegistryError(f"Mapping for '{key}': {e}")

    if "variable" in d:
        return DirectMapping(variable_name=d["variable"], period=period)

    if "dispatch" in d:
        name = d["dispatch"]
        if name not in dispatchers:
            raise RegistryError(f"Mapping for '{key}' refers to unknown dispatcher '{name}'")
        return DispatchMapping(dispatch=dispatchers[name], period=period, name=name)

    raise RegistryError(f"Mapping for '{key}' has no variable, dispatch or exclude: {d!r}")


def registry_from_dict(d: Mapping[str, Any], dispatchers: Mapping[str, DispatchFunction] = DISPATCHERS) -> MappingRegistry:
    unknown = set(d) - {kind.value for kind in EntityKind}
    if unknown:
        raise RegistryError(f"Unknown entity kinds in registry: {sorted(unknown)}")

    answers: Dict[EntityKind, MappingTable] = {}
    questions: Dict[EntityKind, MappingTable] = {}
    for kind in ENTITY_ORDER:
        section = d.get(kind.value) or {}
        answers[kind] = {k: mapping_from_dict(k, v, dispatchers) for k, v in (section.get("answers") or {}).items()}
        questions[kind] = {k: mapping_from_dict(k, v, dispatchers) for k, v in (section.get("questions") or {}).items()}
    return MappingRegistry(answers, questions)


class _UniqueKeyLoader(yaml.SafeLoader):
    """SafeLoader that refuses a key repeated inside one mapping."""

    def construct_mapping(self, node, deep=False):
        seen = set()
        for key_node, _ in node.value:
            key = self.construct_object(key_node, deep=deep)
            if isinstance(key, (list, dict)):
                continue
            if key in seen:
                raise yaml.constructor.ConstructorError(
                    "while constructing a mapping", node.start_mark,
                    f"found duplicate key {key!r}", key_node.start_mark)
            seen.add(key)
        return super().construct_mapping(node, deep=deep)


def load_registry(path: Optional[str] = None,
                  dispatchers: Mapping[str, DispatchFunction] = DISPATCHERS) -> MappingRegistry:
    """
    Load a registry from a YAML document (the packaged mappings.yaml by default).

    Raises:
        FileNotFoundError: If path doesn't exist
        RegistryError: If the document is not a valid registry
    """
    if path is None:
        content = resources.files("sace").joinpath("data/mappings.yaml").read_text(encoding="utf-8")
    else:
        with open(path, "r", encoding="utf-8") as f:
            content = f.read()

    try:
        d = yaml.load(content, Loader=_UniqueKeyLoader)
    except yaml.YAMLError as e:
        raise RegistryError(f"Invalid registry document: {e}")
    if not isinstance(d, dict):
        raise RegistryError("Registry document must be a mapping of entity kinds")

    registry = registry_from_dict(d, dispatchers)
    logger.debug("Loaded mapping registry with %d keys", len(registry))
    return registry


@functools.lru_cache(maxsize=1)
def default_registry() -> MappingRegistry:
    """The packaged registry, built once per process."""
    return load_registry()


class MappingResolver:
    """
    Looks survey keys up in a MappingRegistry.

    Kinds are scanned in fixed order (individus, menages, foyers_fiscaux,
    familles); the registry guarantees at most one hit.
    """

    def __init__(self, registry: Optional[MappingRegistry] = None):
        self.registry = registry if registry is not None else default_registry()

    def resolve(self, answer_key: str) -> Optional[AnswerMapping]:
        for _, table in self.registry.items():
            mapping = table.get(answer_key)
            if mapping is not None:
                return mapping
        return None

    def resolve_entity(self, answer_key: str) -> Optional[EntityKind]:
        for kind, table in self.registry.items():
            if answer_key in table:
                return kind
        return None

    def has_mapping(self, answer_key: str) -> bool:
        return self.resolve(answer_key) is not None

    def mappings_for(self, kind: EntityKind) -> Mapping[str, AnswerMapping]:
        return self.registry.table(kind)
