"""
Survey Answer Compilation Engine (SACE) Package

Turns the answers of an eligibility survey into a calculation request for
an external tax-and-benefit rules engine.

    answers --visibility--> visible answers
            --RequestBuilder--> BuildSuccess(request) | BuildFailure(errors)

ARCHITECTURAL GUARANTEE:
------------------------
This package contains ZERO knowledge of:
    - the rules engine's own formulas
    - how the request is sent or the results displayed
    - survey rendering and navigation

Only the survey -> request translation lives here. Which answer key feeds
which engine variable is data (sace/data/mappings.yaml), not code.
"""

__version__ = "0.1.0"
