"""Command-line interface.

    sace compile ANSWERS [--questions-file SCHEMA] [--question KEY ...]
                 [--options OPTIONS.yaml] [--date YYYY-MM-DD]
                 [--format json|yaml] [--strict] [--registry MAPPINGS.yaml]
    sace validate ANSWERS --questions-file SCHEMA
    sace check-registry [--registry MAPPINGS.yaml]
"""

import argparse
import dataclasses
import logging
import sys
from datetime import date
from typing import List, Optional

from sace.compiler import compile_request
from sace.conditions import ConditionEvaluator
from sace.config import BuilderOptions, load_options
from sace.entities import ENTITY_ORDER
from sace.errors import RegistryError, SaceError
from sace.mappings import ExcludedMapping, load_registry
from sace.serialization import (
    answers_from_json,
    answers_from_yaml,
    questions_from_json,
    questions_from_yaml,
    request_to_json,
    request_to_yaml,
)
from sace.validation import validate_answers
from sace.visibility import expand_checkbox_answers, filter_visible_answers, get_visible_questions

logger = logging.getLogger(__name__)


def _read(path: str) -> str:
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


def _is_json(path: str) -> bool:
    return path.lower().endswith('.json')


def _load_answers(path: str):
    text = _read(path)
    return answers_from_json(text) if _is_json(path) else answers_from_yaml(text)


def _load_questions(path: str):
    text = _read(path)
    return questions_from_json(text) if _is_json(path) else questions_from_yaml(text)


def _build_options(args: argparse.Namespace) -> BuilderOptions:
    options = load_options(args.options) if args.options else BuilderOptions()
    changes = {}
    if args.date:
        changes['reference_date'] = date.fromisoformat(args.date)
    if args.strict:
        changes['fallback_to_legacy'] = False
    return dataclasses.replace(options, **changes)


def cmd_compile(args: argparse.Namespace) -> int:
    """CLI: compile an answers file into a calculation request."""
    options = _build_options(args)
    registry = load_registry(args.registry)

    answers = _load_answers(args.answers)

    if args.questions_file:
        questions = _load_questions(args.questions_file)
        evaluator = ConditionEvaluator(strict=options.strict_conditions)
        answers = filter_visible_answers(questions, answers, evaluator)
        answers = expand_checkbox_answers(questions, answers, keep_keys=registry.excluded_keys())
        logger.debug('%d answer(s) left after visibility filtering', len(answers))

    outcome = compile_request(answers, args.question or [], options=options, registry=registry)

    for error in outcome.errors:
        print(f'{error.type.value} {error.answer_key}: {error.message}', file=sys.stderr)

    if outcome.request is None:
        print(f'Compilation failed with {len(outcome.errors)} error(s)', file=sys.stderr)
        return 1

    if outcome.used_fallback:
        print('Request built by the permissive construction', file=sys.stderr)

    if args.format == 'yaml':
        print(request_to_yaml(outcome.request), end='')
    else:
        print(request_to_json(outcome.request, indent=2))
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    """CLI: check the answers to the visible questions against their definitions."""
    answers = _load_answers(args.answers)
    questions = _load_questions(args.questions_file)
    visible = get_visible_questions(questions, answers, ConditionEvaluator())

    result = validate_answers(visible, answers)
    for error in result.errors:
        print(f'{error.code.value} {error.question_id}: {error.message}')
    if not result.valid:
        print(f'{len(result.errors)} invalid answer(s)', file=sys.stderr)
        return 1
    print(f'{len(visible)} visible question(s), all answers valid')
    return 0


def cmd_check_registry(args: argparse.Namespace) -> int:
    """CLI: load the mapping registry and report its size per entity kind."""
    try:
        registry = load_registry(args.registry)
    except RegistryError as e:
        print(f'Invalid registry: {e}', file=sys.stderr)
        return 1

    for kind in ENTITY_ORDER:
        table = registry.table(kind)
        excluded = sum(1 for m in table.values() if isinstance(m, ExcludedMapping))
        print(f'{kind.value}: {len(table)} key(s), {excluded} excluded')
    print(f'total: {len(registry)} key(s)')
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog='sace', description='Compile survey answers into calculation requests')
    ap.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    sub = ap.add_subparsers(dest='cmd', required=True)

    c = sub.add_parser('compile', help='Compile an answers file (JSON or YAML)')
    c.add_argument('answers', help='Path to the answers file')
    c.add_argument('--questions-file', help='Question definitions used to drop hidden answers')
    c.add_argument('--question', action='append', metavar='KEY', help='Question key to compute (repeatable)')
    c.add_argument('--options', help='Builder options (YAML)')
    c.add_argument('--date', help='Reference date, YYYY-MM-DD (default: today)')
    c.add_argument('--format', choices=('json', 'yaml'), default='json')
    c.add_argument('--strict', action='store_true', help='Fail instead of falling back to the permissive construction')
    c.add_argument('--registry', help='Mapping registry (default: packaged mappings.yaml)')
    c.set_defaults(func=cmd_compile)

    v = sub.add_parser('validate', help='Check answers against the question definitions')
    v.add_argument('answers', help='Path to the answers file')
    v.add_argument('--questions-file', required=True, help='Question definitions (JSON or YAML)')
    v.set_defaults(func=cmd_validate)

    r = sub.add_parser('check-registry', help='Validate the mapping registry')
    r.add_argument('--registry', help='Mapping registry (default: packaged mappings.yaml)')
    r.set_defaults(func=cmd_check_registry)

    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )
    try:
        return args.func(args)
    except (SaceError, OSError, ValueError) as e:
        print(f'Error: {e}', file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
