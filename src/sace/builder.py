"""
Request Builder.

Compiles survey answers into a calculation request for the external
rules engine:

    answers --MappingResolver--> (mapping, entity kind)
            --mapping expansion--> {variable: {period: value}}
            --EntityManager.add_variable--> per-entity state
    build() --> BuildSuccess(request) | BuildFailure(errors)

The builder never raises on bad input (unless throw_on_error is set).
It runs to completion and reports every problem in one pass.

One builder per compilation: it is mutated while answers are added and
discarded once build() has been called.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from sace.answers import AnswerValue, is_scalar, is_unanswered, unwrap_answer
from sace.config import BuilderOptions
from sace.constants import (
    DEFAULT_NATIONALITY,
    DEFAULT_UNIVERSITY_LEVEL_MASTER,
    DEFAULT_UNIVERSITY_LEVEL_TERMINALE,
    INDIVIDU_ID,
)
from sace.dispatchers import VariableValues
from sace.entities import ENTITY_ORDER, EntityKind, EntityManager, create_managers
from sace.errors import (
    BuildError,
    BuildErrorType,
    DispatchError,
    RequestBuildException,
    UnknownPeriodError,
)
from sace.mappings import (
    AnswerMapping,
    DirectMapping,
    DispatchMapping,
    ExcludedMapping,
    MappingRegistry,
    MappingResolver,
)
from sace.periods import DatePeriods

logger = logging.getLogger(__name__)

CalculationRequest = Dict[str, Dict[str, Dict[str, Any]]]


@dataclass(frozen=True)
class BuildSuccess:
    request: CalculationRequest
    success: bool = field(default=True, init=False)


@dataclass(frozen=True)
class BuildFailure:
    errors: List[BuildError]
    success: bool = field(default=False, init=False)


BuildResult = Union[BuildSuccess, BuildFailure]


class RequestBuilder:
    """
    Fluent builder for calculation requests.

    Example:
        result = (
            RequestBuilder()
            .add_answer("date-naissance", "2000-01-01")
            .add_answer("boursier", True)
            .build()
        )
        if not result.success:
            for error in result.errors:
                print(error.type, error.answer_key, error.message)
    """

    def __init__(self, options: Optional[BuilderOptions] = None,
                 registry: Optional[MappingRegistry] = None,
                 periods: Optional[DatePeriods] = None):
        self.options = options or BuilderOptions()
        self.resolver = MappingResolver(registry)
        self.periods = periods or DatePeriods.from_date(self.options.reference_date)
        self._managers: Dict[EntityKind, EntityManager] = create_managers(INDIVIDU_ID)
        self._errors: List[BuildError] = []

    def manager(self, kind: EntityKind) -> EntityManager:
        return self._managers[kind]

    # ------------------------------------------------------------------
    # Answers
    # ------------------------------------------------------------------

    def add_answer(self, answer_key: str, answer_value: AnswerValue) -> RequestBuilder:
        """
        Compile one answer into the request.

        Args:
            answer_key: Survey key (question id)
            answer_value: Raw answer; combobox selections are unwrapped

        Returns:
            self, for chaining
        """
        if is_unanswered(answer_value):
            if self.options.allow_undefined_values:
                return self
            self._add_error(BuildErrorType.UNDEFINED_VALUE, answer_key,
                            f"Undefined value for answer key: {answer_key}")
            return self

        value = unwrap_answer(answer_value)

        if not is_scalar(value):
            # checkbox lists are expected to be expanded upstream, except
            # for keys that never reach the engine
            if isinstance(self.resolver.resolve(answer_key), ExcludedMapping):
                return self
            self._add_error(BuildErrorType.UNEXPECTED_VALUE, answer_key,
                            f"Unexpected value type for answer key: {answer_key} ({type(value).__name__})")
            return self

        mapping = self.resolver.resolve(answer_key)
        if mapping is None:
            self._add_error(BuildErrorType.UNKNOWN_VARIABLE, answer_key,
                            f"No mapping found for answer key: {answer_key}")
            return self

        if isinstance(mapping, ExcludedMapping):
            logger.debug("Answer '%s' excluded from the calculation", answer_key)
            return self

        kind = self.resolver.resolve_entity(answer_key)
        if kind is None:
            self._add_error(BuildErrorType.UNKNOWN_ENTITY, answer_key,
                            f"No entity found for answer key: {answer_key}")
            return self

        variables = self._expand_mapping(answer_key, value, mapping)
        if variables is not None:
            self._route(kind, answer_key, variables)
        return self

    def add_answers(self, answers: Mapping[str, AnswerValue]) -> RequestBuilder:
        """Add answers in the mapping's iteration order."""
        for key, value in answers.items():
            self.add_answer(key, value)
        return self

    def _expand_mapping(self, answer_key: str, value: Any, mapping: AnswerMapping) -> Optional[VariableValues]:
        try:
            if isinstance(mapping, DirectMapping):
                period = self.periods.resolve(mapping.period)
                return {mapping.variable_name: {period: value}}
            if isinstance(mapping, DispatchMapping):
                return mapping.dispatch(answer_key, value, mapping.period, self.periods)
        except DispatchError as e:
            self._add_error(BuildErrorType.UNEXPECTED_VALUE, answer_key, str(e))
            return None
        except UnknownPeriodError as e:
            self._add_error(BuildErrorType.MAPPING_ERROR, answer_key, str(e))
            return None

        self._add_error(BuildErrorType.MAPPING_ERROR, answer_key,
                        f"Invalid mapping for answer key: {answer_key}")
        return None

    def _route(self, kind: EntityKind, answer_key: str, variables: VariableValues) -> None:
        manager = self._managers.get(kind)
        if manager is None:
            self._add_error(BuildErrorType.UNKNOWN_ENTITY, answer_key,
                            f"No entity manager found for entity: {kind}")
            return

        for variable_name, by_period in variables.items():
            for period, value in by_period.items():
                if value is not None and not is_scalar(value):
                    self._add_error(BuildErrorType.MAPPING_ERROR, answer_key,
                                    f"Mapping produced a non-scalar value for '{variable_name}'")
                    continue
                error = manager.add_variable(variable_name, value, period, answer_key)
                if error is not None:
                    self._raise_if_needed(error)

    # ------------------------------------------------------------------
    # Questions (probes)
    # ------------------------------------------------------------------

    def add_question(self, question_key: str) -> RequestBuilder:
        """
        Ask the engine to compute the variable behind `question_key`.

        The variable is added with a None value at its period. Only direct
        mappings can be probed.
        """
        mapping = self.resolver.resolve(question_key)
        if mapping is None:
            self._add_error(BuildErrorType.UNKNOWN_VARIABLE, question_key,
                            f"No mapping found for question key: {question_key}")
            return self

        if not isinstance(mapping, DirectMapping):
            self._add_error(BuildErrorType.MAPPING_ERROR, question_key,
                            f"Question key must have direct mapping: {question_key}")
            return self

        kind = self.resolver.resolve_entity(question_key)
        if kind is None:
            self._add_error(BuildErrorType.UNKNOWN_ENTITY, question_key,
                            f"No entity found for question key: {question_key}")
            return self

        try:
            period = self.periods.resolve(mapping.period)
        except UnknownPeriodError as e:
            self._add_error(BuildErrorType.MAPPING_ERROR, question_key, str(e))
            return self

        self._route(kind, question_key, {mapping.variable_name: {period: None}})
        return self

    def add_questions(self, question_keys: Iterable[str]) -> RequestBuilder:
        for key in question_keys:
            self.add_question(key)
        return self

    # ------------------------------------------------------------------
    # Defaults
    # ------------------------------------------------------------------

    def apply_default_values(self) -> RequestBuilder:
        """
        Inject engine-required values the survey does not ask for.

        - nationality defaults to FR
        - housing entry date defaults to next month
        - a student leaving their academy after Parcoursup is in terminale
        - a student changing academic region for a master is in master_1

        Reads the entity state built so far; call after all answers.
        """
        period = self.periods.MONTH
        individu = self._managers[EntityKind.INDIVIDUS]
        menage = self._managers[EntityKind.MENAGES]

        if not individu.has_variable("nationalite"):
            self._route(EntityKind.INDIVIDUS, "default_nationalite",
                        {"nationalite": {period: DEFAULT_NATIONALITY}})

        if not menage.has_variable("date_entree_logement"):
            self._route(EntityKind.MENAGES, "default_date_entree_logement",
                        {"date_entree_logement": {period: self.periods.MONTH_NEXT}})

        if individu.get_value("sortie_academie", period) is True:
            self._route(EntityKind.INDIVIDUS, "mobility_annee_etude",
                        {"annee_etude": {period: DEFAULT_UNIVERSITY_LEVEL_TERMINALE}})

        if individu.get_value("sortie_region_academique", period) is True:
            self._route(EntityKind.INDIVIDUS, "mobility_annee_etude",
                        {"annee_etude": {period: DEFAULT_UNIVERSITY_LEVEL_MASTER}})

        return self

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def get_request(self) -> CalculationRequest:
        """Current request, whatever the errors (useful for debugging)."""
        return {
            kind.value: {manager.entity_id: manager.get_entity()}
            for kind, manager in ((k, self._managers[k]) for k in ENTITY_ORDER)
        }

    def build(self) -> BuildResult:
        """
        Assemble the request.

        Returns:
            BuildFailure with every error (builder's own first, then each
            entity's in kind order) if any; else BuildSuccess with a fresh
            copy of the request.
        """
        errors = self.get_errors()
        if errors:
            logger.debug("Request build failed with %d error(s)", len(errors))
            return BuildFailure(errors=errors)
        return BuildSuccess(request=copy.deepcopy(self.get_request()))

    def get_errors(self) -> List[BuildError]:
        errors = list(self._errors)
        for kind in ENTITY_ORDER:
            errors.extend(self._managers[kind].get_errors())
        return errors

    def has_errors(self) -> bool:
        return len(self.get_errors()) > 0

    def clear_errors(self) -> None:
        self._errors = []
        for manager in self._managers.values():
            manager.clear_errors()

    def _add_error(self, error_type: BuildErrorType, answer_key: str, message: str) -> None:
        error = BuildError(type=error_type, answer_key=answer_key, message=message)
        self._errors.append(error)
        self._raise_if_needed(error)

    def _raise_if_needed(self, error: BuildError) -> None:
        if self.options.throw_on_error:
            raise RequestBuildException(error)
