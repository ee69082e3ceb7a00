"""
Compilation entry point.

    compile_request(answers, questions)
        1. strict pass: RequestBuilder (answers, scholarship rule, probes,
           defaults) -> BuildResult
        2. on failure: every error is logged and, when allowed, the
           permissive construction provides the request instead
        3. optional birth-date standardization of the returned request

The caller always learns what went wrong through CompilationOutcome.errors,
even when a fallback request was produced.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Mapping, Optional

from sace.answers import AnswerValue
from sace.builder import CalculationRequest, RequestBuilder
from sace.config import BuilderOptions
from sace.errors import BuildError
from sace.legacy import apply_scholarship_rule, build_legacy_request
from sace.mappings import MappingRegistry
from sace.periods import DatePeriods
from sace.standardize import standardize_birth_date

logger = logging.getLogger(__name__)


@dataclass
class CompilationOutcome:
    """
    Properties:
        request: The request to send, or None when the strict pass failed
            and no fallback was allowed
        errors: Errors of the strict pass (empty on success)
        used_fallback: True if request comes from the permissive construction
    """

    request: Optional[CalculationRequest]
    errors: List[BuildError] = field(default_factory=list)
    used_fallback: bool = False

    @property
    def success(self) -> bool:
        return not self.errors


def compile_request(answers: Mapping[str, AnswerValue],
                    questions: Iterable[str] = (),
                    options: Optional[BuilderOptions] = None,
                    registry: Optional[MappingRegistry] = None) -> CompilationOutcome:
    """
    Compile survey answers (and question probes) into a calculation request.

    Raises:
        RequestBuildException: Only when options.throw_on_error is set
    """
    options = options or BuilderOptions()
    questions = list(questions)
    periods = DatePeriods.from_date(options.reference_date)

    builder = RequestBuilder(options=options, registry=registry, periods=periods)
    builder.add_answers(answers)
    apply_scholarship_rule(builder, answers)
    builder.add_questions(questions)
    builder.apply_default_values()
    result = builder.build()

    if result.success:
        outcome = CompilationOutcome(request=result.request)
    else:
        if options.log_warnings:
            for error in result.errors:
                logger.warning("[%s] %s: %s", error.type.value, error.answer_key, error.message)

        if options.fallback_to_legacy:
            logger.warning(
                "Strict compilation failed with %d error(s), using the permissive construction",
                len(result.errors),
            )
            request = build_legacy_request(answers, questions, options=options,
                                           registry=registry, periods=periods)
            outcome = CompilationOutcome(request=request, errors=result.errors, used_fallback=True)
        else:
            outcome = CompilationOutcome(request=None, errors=result.errors)

    if outcome.request is not None and options.standardize_birth_date:
        standardize_birth_date(outcome.request, options.reference_date)

    return outcome
