"""
Fixed identifiers and business values shared across the engine.

Entity ids are canonical: every compilation describes exactly one
individual and the one household, tax household and family it belongs to.
"""

INDIVIDU_ID = "usager"
MENAGE_ID = f"menage_{INDIVIDU_ID}"
FOYER_FISCAL_ID = f"foyer_fiscal_{INDIVIDU_ID}"
FAMILLE_ID = f"famille_{INDIVIDU_ID}"

ETERNITY_PERIOD = "ETERNITY"

# Defaults injected by RequestBuilder.apply_default_values()
DEFAULT_NATIONALITY = "FR"
DEFAULT_UNIVERSITY_LEVEL_TERMINALE = "terminale"
# could as well be "licence_3": the survey does not ask for the level
DEFAULT_UNIVERSITY_LEVEL_MASTER = "master_1"


class LogementStatus:
    """Values of the engine variable `statut_occupation_logement`."""

    LOCATAIRE_VIDE = "locataire_vide"
    LOCATAIRE_MEUBLE = "locataire_meuble"
    LOCATAIRE_FOYER = "locataire_foyer"
    PROPRIETAIRE = "proprietaire"
    LOGE_GRATUITEMENT = "loge_gratuitement"
    SANS_DOMICILE = "sans_domicile"


class FormValues:
    """Answer values emitted by the survey for dispatched questions."""

    STAGE = "stage"
    ALTERNANCE = "alternance"
    SALARIE_HORS_ALTERNANCE = "salarie-hors-alternance"
    SANS_EMPLOI = "sans-emploi"
    LOCATAIRE = "locataire"
    PROPRIETAIRE = "proprietaire"
    HEBERGE = "heberge"
    SANS_DOMICILE = "sans-domicile"
    LOGEMENT_NON_MEUBLE = "logement-non-meuble"
    LOGEMENT_MEUBLE = "logement-meuble"
    LOGEMENT_FOYER = "logement-foyer"
    PARCOURSUP_NOUVELLE_REGION = "parcoursup-nouvelle-region"
    MASTER_NOUVELLE_ZONE = "master-nouvelle-zone"
    PAS_DE_MOBILITE = "pas-de-mobilite"
