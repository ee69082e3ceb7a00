"""
Dispatch functions.

A dispatch function turns ONE answer into one or more engine variables:

    dispatch(answer_key, value, period_type, periods)
        -> {variable_name: {period: value}, ...}

They are pure: same input, same output, no access to other answers.
Unknown answer values raise UnexpectedDispatchValue.

Dispatchers are registered by name in DISPATCHERS; mapping tables refer
to them by that name.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict

from sace.constants import FormValues, LogementStatus
from sace.errors import UnexpectedDispatchValue
from sace.periods import DatePeriods, PeriodType

logger = logging.getLogger(__name__)

VariableValues = Dict[str, Dict[str, Any]]
DispatchFunction = Callable[[str, Any, PeriodType, DatePeriods], VariableValues]


def format_answer(variable_name: str, period: str, value: Any) -> VariableValues:
    """{variable_name: {period: value}}"""
    return {variable_name: {period: value}}


def dispatch_situation_professionnelle(answer_key: str, value: Any, period_type: PeriodType,
                                       periods: DatePeriods) -> VariableValues:
    """
    Internship and work-study flags for students.

    Salaried or unemployed students produce nothing: their `activite`
    stays the one given by "statut-professionnel".
    """
    period = periods.resolve(period_type)
    if value == FormValues.STAGE:
        return {"stagiaire": {period: True}, "alternant": {period: False}}
    if value == FormValues.ALTERNANCE:
        return {"alternant": {period: True}, "stagiaire": {period: False}}
    if value in (FormValues.SALARIE_HORS_ALTERNANCE, FormValues.SANS_EMPLOI):
        return {}
    logger.debug("Unexpected value %s: %s", answer_key, value)
    raise UnexpectedDispatchValue(answer_key, value)


def dispatch_situation_logement(answer_key: str, value: Any, period_type: PeriodType,
                                periods: DatePeriods) -> VariableValues:
    period = periods.resolve(period_type)
    variable_name = "statut_occupation_logement"

    if value == FormValues.LOCATAIRE:
        logger.debug(
            "Simplified transcription of '%s': '%s' as '%s': '%s' (refined by 'type-logement')",
            answer_key, value, variable_name, LogementStatus.LOCATAIRE_VIDE,
        )
        return format_answer(variable_name, period, LogementStatus.LOCATAIRE_VIDE)
    if value == FormValues.PROPRIETAIRE:
        return format_answer(variable_name, period, LogementStatus.PROPRIETAIRE)
    if value == FormValues.HEBERGE:
        return format_answer(variable_name, period, LogementStatus.LOGE_GRATUITEMENT)
    if value == FormValues.SANS_DOMICILE:
        return format_answer(variable_name, period, LogementStatus.SANS_DOMICILE)
    logger.debug("Unexpected value %s: %s", answer_key, value)
    raise UnexpectedDispatchValue(answer_key, value)


def dispatch_type_logement(answer_key: str, value: Any, period_type: PeriodType,
                           periods: DatePeriods) -> VariableValues:
    period = periods.resolve(period_type)
    variable_name = "statut_occupation_logement"

    if value == FormValues.LOGEMENT_NON_MEUBLE:
        return format_answer(variable_name, period, LogementStatus.LOCATAIRE_VIDE)
    if value == FormValues.LOGEMENT_MEUBLE:
        return format_answer(variable_name, period, LogementStatus.LOCATAIRE_MEUBLE)
    if value == FormValues.LOGEMENT_FOYER:
        return format_answer(variable_name, period, LogementStatus.LOCATAIRE_FOYER)
    logger.debug("Unexpected value %s: %s", answer_key, value)
    raise UnexpectedDispatchValue(answer_key, value)


def dispatch_etudiant_mobilite(answer_key: str, value: Any, period_type: PeriodType,
                               periods: DatePeriods) -> VariableValues:
    period = periods.resolve(period_type)

    if value == FormValues.PARCOURSUP_NOUVELLE_REGION:
        return format_answer("sortie_academie", period, True)
    if value == FormValues.MASTER_NOUVELLE_ZONE:
        return format_answer("sortie_region_academique", period, True)
    if value == FormValues.PAS_DE_MOBILITE:
        return format_answer("sortie_region_academique", period, False)
    logger.debug("Unexpected value %s: %s", answer_key, value)
    raise UnexpectedDispatchValue(answer_key, value)


DISPATCHERS: Dict[str, DispatchFunction] = {
    "situation_professionnelle": dispatch_situation_professionnelle,
    "situation_logement": dispatch_situation_logement,
    "type_logement": dispatch_type_logement,
    "etudiant_mobilite": dispatch_etudiant_mobilite,
}
