"""
Permissive request construction.

Best effort version of the builder, used as a fallback when the strict
compilation fails: every answer that can be transcribed is, the others
are logged and dropped. It never fails on bad input.

Differences with RequestBuilder.build():
    - errors are logged, not returned
    - engine-required values (nationality, housing entry date, academic
      year after a mobility) are forced, overwriting any answer
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Iterable, Mapping, Optional

from sace.answers import AnswerValue
from sace.builder import CalculationRequest, RequestBuilder
from sace.config import BuilderOptions
from sace.constants import (
    DEFAULT_NATIONALITY,
    DEFAULT_UNIVERSITY_LEVEL_MASTER,
    DEFAULT_UNIVERSITY_LEVEL_TERMINALE,
    FormValues,
)
from sace.entities import EntityKind
from sace.mappings import MappingRegistry
from sace.periods import DatePeriods

logger = logging.getLogger(__name__)

SCHOLARSHIP_ANSWER_KEY = "montant-bourse-lycee"


def needs_scholarship_amount(answers: Mapping[str, AnswerValue]) -> bool:
    """
    A scholarship holder moving to another region after Parcoursup keeps
    their high-school scholarship: the engine needs a non-zero amount.
    """
    return (
        answers.get("boursier") is True
        and answers.get("etudiant-mobilite") == FormValues.PARCOURSUP_NOUVELLE_REGION
        and SCHOLARSHIP_ANSWER_KEY not in answers
    )


def apply_scholarship_rule(builder: RequestBuilder, answers: Mapping[str, AnswerValue]) -> None:
    if needs_scholarship_amount(answers):
        logger.debug("Adding high-school scholarship amount for Parcoursup mobility")
        builder.add_answer(SCHOLARSHIP_ANSWER_KEY, 1)


def clamp_defaults(builder: RequestBuilder) -> None:
    """Force the engine-required values, whatever was answered."""
    periods = builder.periods
    individu = builder.manager(EntityKind.INDIVIDUS)
    menage = builder.manager(EntityKind.MENAGES)

    individu.replace_variable("nationalite", DEFAULT_NATIONALITY, periods.MONTH)
    menage.replace_variable("date_entree_logement", periods.MONTH_NEXT, periods.MONTH)

    if individu.get_value("sortie_academie", periods.MONTH):
        individu.replace_variable("annee_etude", DEFAULT_UNIVERSITY_LEVEL_TERMINALE, periods.MONTH)

    if individu.get_value("sortie_region_academique", periods.MONTH):
        individu.replace_variable("annee_etude", DEFAULT_UNIVERSITY_LEVEL_MASTER, periods.MONTH)


def build_legacy_request(answers: Mapping[str, AnswerValue],
                         questions: Iterable[str] = (),
                         options: Optional[BuilderOptions] = None,
                         registry: Optional[MappingRegistry] = None,
                         periods: Optional[DatePeriods] = None) -> CalculationRequest:
    """
    Build a request from whatever can be transcribed.

    Args:
        answers: Survey answers, in survey order
        questions: Question keys the engine should compute
        options: Only reference_date is used; the construction is always
            permissive
        registry: Mapping registry (packaged one by default)
        periods: Precomputed periods (from options.reference_date by default)

    Returns:
        The calculation request; never raises for unknown keys or values
    """
    options = dataclasses.replace(
        options or BuilderOptions(),
        allow_undefined_values=True,
        throw_on_error=False,
    )
    builder = RequestBuilder(options=options, registry=registry, periods=periods)

    builder.add_answers(answers)
    apply_scholarship_rule(builder, answers)
    builder.add_questions(questions)

    for error in builder.get_errors():
        logger.warning(
            "Input '%s' not transcribed in the calculation request: %s (%s)",
            error.answer_key, error.message, error.type.value,
        )

    clamp_defaults(builder)
    return builder.get_request()
