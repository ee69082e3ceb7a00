#!/usr/bin/env python3
"""
Complete Pipeline Demo: Answers → Visible Answers → Calculation Request

Shows the full workflow:
1. Load the example student survey and answers
2. Drop answers to hidden questions
3. Compile them (with probes for the aids to compute)
4. Print the request sent to the rules engine
"""

from sace.compiler import compile_request
from sace.config import BuilderOptions
from sace.examples import (
    EXAMPLE_QUESTION_KEYS,
    build_example_student_answers,
    build_example_student_questions,
)
from sace.serialization import request_to_json
from sace.visibility import filter_visible_answers


def main():
    print("=" * 80)
    print("COMPLETE PIPELINE DEMO: Answers → Visibility → Request")
    print("=" * 80)

    # =========================================================================
    # STEP 1: Load survey
    # =========================================================================
    print("\n1. LOADING SURVEY...")
    questions = build_example_student_questions()
    answers = build_example_student_answers()
    print(f"   ✓ Questions: {len(questions)}")
    print(f"   ✓ Answers: {len(answers)}")

    # =========================================================================
    # STEP 2: Visibility
    # =========================================================================
    print("\n2. FILTERING HIDDEN ANSWERS...")
    visible = filter_visible_answers(questions, answers)
    dropped = sorted(set(answers) - set(visible))
    print(f"   ✓ Kept: {len(visible)}")
    print(f"   ✓ Dropped: {dropped}")

    # =========================================================================
    # STEP 3: Compile
    # =========================================================================
    print("\n3. COMPILING...")
    outcome = compile_request(visible, EXAMPLE_QUESTION_KEYS, options=BuilderOptions(standardize_birth_date=True))
    print(f"   ✓ Success: {outcome.success}")
    if outcome.errors:
        print(f"\n   Errors ({len(outcome.errors)}):")
        for error in outcome.errors:
            print(f"      - {error.type.value} {error.answer_key}: {error.message}")
    if outcome.used_fallback:
        print("   ! Request built by the permissive construction")

    # =========================================================================
    # STEP 4: Request
    # =========================================================================
    print("\n4. CALCULATION REQUEST:")
    if outcome.request is not None:
        print(request_to_json(outcome.request, indent=2))

    print("\n" + "=" * 80)
    print("✓ PIPELINE COMPLETE")
    print("=" * 80)


if __name__ == "__main__":
    main()
