"""
Entity Managers.

The external engine partitions variables into four relational entity kinds:

    individus       one person (the respondent)
    menages         the household the person lives in
    foyers_fiscaux  the tax household the person declares in
    familles        the family (benefit unit) the person belongs to

Each kind has one canonical entity per compilation. An EntityManager owns
that entity: its membership lists and its variable bag
(variable name -> {period -> value}).

INVARIANT:
    A (variable, period) pair holds at most one value per compilation.
    A second write to an occupied pair is refused and reported
    as a MAPPING_ERROR, unless REFINEMENT_RULES explicitly allows it.

    Membership lists are never written through add_variable(); they
    change only through add_member().
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from sace.constants import FAMILLE_ID, FOYER_FISCAL_ID, INDIVIDU_ID, LogementStatus, MENAGE_ID
from sace.errors import BuildError, BuildErrorType

logger = logging.getLogger(__name__)


class EntityKind(Enum):
    """Entity kinds, valued with the engine's top-level request keys."""

    INDIVIDUS = "individus"
    MENAGES = "menages"
    FOYERS_FISCAUX = "foyers_fiscaux"
    FAMILLES = "familles"


@dataclass(frozen=True)
class EntityConfig:
    """
    Per-kind configuration of the generic EntityManager.

    Properties:
        kind: EntityKind
        entity_id: Canonical id of the entity in the request
        member_fields: Membership list names, in request order
        seeded_fields: Membership lists that start with the individual
    """

    kind: EntityKind
    entity_id: str
    member_fields: Tuple[str, ...] = ()
    seeded_fields: Tuple[str, ...] = ()


INDIVIDU_CONFIG = EntityConfig(EntityKind.INDIVIDUS, INDIVIDU_ID)
MENAGE_CONFIG = EntityConfig(
    EntityKind.MENAGES,
    MENAGE_ID,
    member_fields=("personne_de_reference", "conjoint", "enfants"),
    seeded_fields=("personne_de_reference",),
)
FOYER_FISCAL_CONFIG = EntityConfig(
    EntityKind.FOYERS_FISCAUX,
    FOYER_FISCAL_ID,
    member_fields=("declarants", "personnes_a_charge"),
    seeded_fields=("declarants",),
)
FAMILLE_CONFIG = EntityConfig(
    EntityKind.FAMILLES,
    FAMILLE_ID,
    member_fields=("parents", "enfants"),
    seeded_fields=("parents",),
)

ENTITY_CONFIGS: Dict[EntityKind, EntityConfig] = {
    config.kind: config
    for config in (INDIVIDU_CONFIG, MENAGE_CONFIG, FOYER_FISCAL_CONFIG, FAMILLE_CONFIG)
}

# Order in which kinds are scanned, reported and assembled
ENTITY_ORDER: Tuple[EntityKind, ...] = (
    EntityKind.INDIVIDUS,
    EntityKind.MENAGES,
    EntityKind.FOYERS_FISCAUX,
    EntityKind.FAMILLES,
)


RefinementPredicate = Callable[[Any, Any], bool]

# Variables whose already-set value may be replaced by a later, more
# specific answer. Never inferred: only the entries below are allowed.
REFINEMENT_RULES: Mapping[str, RefinementPredicate] = {
    # "situation-logement=locataire" yields locataire_vide until
    # "type-logement" tells furnished/unfurnished/foyer apart
    "statut_occupation_logement": lambda old, new: old == LogementStatus.LOCATAIRE_VIDE,
}


def is_refinement(variable_name: str, old_value: Any, new_value: Any,
                  rules: Mapping[str, RefinementPredicate] = REFINEMENT_RULES) -> bool:
    rule = rules.get(variable_name)
    return rule is not None and rule(old_value, new_value)


class EntityManager:
    """
    Owns the state of one entity for the duration of one compilation.

    Example:
        manager = EntityManager(MENAGE_CONFIG)
        manager.add_variable("loyer", 600, "2025-10", "loyer")
        manager.get_entity()
        # {"personne_de_reference": ["usager"], "conjoint": [], "enfants": [],
        #  "loyer": {"2025-10": 600}}
    """

    def __init__(self, config: EntityConfig, individu_id: str = INDIVIDU_ID,
                 refinement_rules: Mapping[str, RefinementPredicate] = REFINEMENT_RULES):
        self.config = config
        self.individu_id = individu_id
        self.refinement_rules = refinement_rules
        self._members: Dict[str, List[str]] = {}
        self._variables: Dict[str, Dict[str, Any]] = {}
        self._errors: List[BuildError] = []
        self.reset()

    @property
    def kind(self) -> EntityKind:
        return self.config.kind

    @property
    def entity_id(self) -> str:
        return self.config.entity_id

    def reset(self) -> None:
        """Back to the freshly seeded state, without errors."""
        self._members = {
            name: [self.individu_id] if name in self.config.seeded_fields else []
            for name in self.config.member_fields
        }
        self._variables = {}
        self._errors = []

    # ------------------------------------------------------------------
    # Variables
    # ------------------------------------------------------------------

    def add_variable(self, variable_name: str, value: Any, period: str, answer_key: str) -> Optional[BuildError]:
        """
        Record `value` for `variable_name` at `period`.

        A None value is a probe: it asks the engine to compute the variable.

        Args:
            variable_name: Engine variable name
            value: bool, int, float, str, or None for a probe
            period: Period string
            answer_key: Survey key the value comes from (for error tracing)

        Returns:
            The BuildError recorded for a refused conflicting write, else None
        """
        if variable_name in self._members:
            logger.warning(
                "Cannot set variable '%s' on %s - it's a member list (from '%s')",
                variable_name, self.kind.value, answer_key,
            )
            return None

        periods = self._variables.get(variable_name)
        if periods is None:
            self._variables[variable_name] = {period: value}
            return None

        existing = periods.get(period)
        if existing is None:
            periods[period] = value
            return None

        if value is None:
            logger.debug(
                "Probe for '%s' at %s ignored: value '%s' already set",
                variable_name, period, existing,
            )
            return None

        if is_refinement(variable_name, existing, value, self.refinement_rules):
            logger.warning(
                "Transcription updated for '%s': '%s' after input '%s': '%s'",
                variable_name, existing, answer_key, value,
            )
            periods[period] = value
            return None

        logger.error(
            "Variable '%s' already exists with value '%s' for entity '%s' and ID '%s'. "
            "Not updating with new value '%s' from '%s'.",
            variable_name, existing, self.kind.value, self.entity_id, value, answer_key,
        )
        error = BuildError(
            type=BuildErrorType.MAPPING_ERROR,
            answer_key=answer_key,
            message=(
                f"Variable '{variable_name}' already has value {existing!r} at period "
                f"{period}; refused new value {value!r}"
            ),
        )
        self._errors.append(error)
        return error

    def replace_variable(self, variable_name: str, value: Any, period: str) -> None:
        """
        Overwrite `variable_name` with the single pair {period: value}.

        Skips conflict detection. Only the permissive construction uses it,
        to force engine-required values.

        Raises:
            ValueError: If variable_name is a membership list
        """
        if variable_name in self._members:
            raise ValueError(f"'{variable_name}' is a member list of {self.kind.value}")
        self._variables[variable_name] = {period: value}

    def has_variable(self, variable_name: str) -> bool:
        return variable_name in self._variables

    def get_value(self, variable_name: str, period: str) -> Any:
        return self._variables.get(variable_name, {}).get(period)

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------

    def add_member(self, member_field: str, entity_id: str) -> None:
        """
        Add an individual to a membership list (no duplicates).

        Raises:
            ValueError: If member_field is not a membership list of this kind
        """
        if member_field not in self._members:
            raise ValueError(f"'{member_field}' is not a member list of {self.kind.value}")
        if entity_id not in self._members[member_field]:
            self._members[member_field].append(entity_id)

    def add_conjoint(self, individu_id: str) -> None:
        self.add_member("conjoint", individu_id)

    def add_enfant(self, individu_id: str) -> None:
        self.add_member("enfants", individu_id)

    def add_parent(self, individu_id: str) -> None:
        self.add_member("parents", individu_id)

    def add_declarant(self, individu_id: str) -> None:
        self.add_member("declarants", individu_id)

    def add_personne_a_charge(self, individu_id: str) -> None:
        self.add_member("personnes_a_charge", individu_id)

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def get_entity(self) -> Dict[str, Any]:
        """Snapshot: membership lists first, then variables in insertion order."""
        entity: Dict[str, Any] = {name: list(ids) for name, ids in self._members.items()}
        entity.update(copy.deepcopy(self._variables))
        return entity

    def get_errors(self) -> List[BuildError]:
        return list(self._errors)

    def has_errors(self) -> bool:
        return len(self._errors) > 0

    def clear_errors(self) -> None:
        self._errors = []


def create_managers(individu_id: str = INDIVIDU_ID) -> Dict[EntityKind, EntityManager]:
    """One fresh manager per kind, in ENTITY_ORDER."""
    return {kind: EntityManager(ENTITY_CONFIGS[kind], individu_id) for kind in ENTITY_ORDER}
