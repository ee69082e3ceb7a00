"""
Example student housing survey.

A small questionnaire in the shape of the real simulators (status,
scholarship, mobility, housing) with one respondent's answers. Used by
the demo script and as a fixture for end-to-end tests.
"""
from typing import List

from sace.answers import ComboboxAnswer, SurveyAnswers
from sace.questions import QuestionType, SurveyChoice, SurveyQuestion


def build_example_student_questions() -> List[SurveyQuestion]:
    return [
        SurveyQuestion(id="date-naissance", title="Quelle est votre date de naissance ?", type=QuestionType.DATE),
        SurveyQuestion(
            id="statut-professionnel",
            title="Quel est votre statut ?",
            type=QuestionType.RADIO,
            choices=[SurveyChoice("etudiant", "Étudiant"), SurveyChoice("actif", "Actif")],
        ),
        SurveyQuestion(
            id="boursier",
            title="Êtes-vous boursier ?",
            type=QuestionType.BOOLEAN,
            visible_when="statut-professionnel=etudiant",
        ),
        SurveyQuestion(
            id="situation-professionnelle",
            title="Quelle est votre situation professionnelle ?",
            type=QuestionType.RADIO,
            visible_when="statut-professionnel=etudiant",
            choices=[
                SurveyChoice("stage", "En stage"),
                SurveyChoice("alternance", "En alternance"),
                SurveyChoice("salarie-hors-alternance", "Salarié"),
                SurveyChoice("sans-emploi", "Sans emploi"),
            ],
        ),
        SurveyQuestion(
            id="etudiant-mobilite",
            title="Changez-vous de région pour vos études ?",
            type=QuestionType.RADIO,
            visible_when="statut-professionnel=etudiant",
            choices=[
                SurveyChoice("parcoursup-nouvelle-region", "Après Parcoursup"),
                SurveyChoice("master-nouvelle-zone", "Pour un master"),
                SurveyChoice("pas-de-mobilite", "Non"),
            ],
        ),
        SurveyQuestion(
            id="situation-logement",
            title="Quelle est votre situation de logement ?",
            type=QuestionType.RADIO,
            choices=[
                SurveyChoice("locataire", "Locataire"),
                SurveyChoice("proprietaire", "Propriétaire"),
                SurveyChoice("heberge", "Hébergé"),
                SurveyChoice("sans-domicile", "Sans domicile"),
            ],
        ),
        SurveyQuestion(
            id="type-logement",
            title="Quel type de logement ?",
            type=QuestionType.RADIO,
            visible_when="situation-logement=locataire",
            choices=[
                SurveyChoice("logement-non-meuble", "Non meublé"),
                SurveyChoice("logement-meuble", "Meublé"),
                SurveyChoice("logement-foyer", "Foyer"),
            ],
        ),
        SurveyQuestion(
            id="loyer-montant-mensuel",
            title="Montant du loyer",
            type=QuestionType.NUMBER,
            visible_when="situation-logement=locataire",
            min=0,
        ),
        SurveyQuestion(
            id="commune-logement",
            title="Commune du logement",
            type=QuestionType.COMBOBOX,
        ),
        SurveyQuestion(
            id="type-revenus",
            title="Quels revenus percevez-vous ?",
            type=QuestionType.CHECKBOX,
            visible_when="statut-professionnel=actif",
            choices=[SurveyChoice("salaire", "Salaire"), SurveyChoice("chomage", "Chômage")],
        ),
    ]


def build_example_student_answers() -> SurveyAnswers:
    return {
        "date-naissance": "2005-06-12",
        "statut-professionnel": "etudiant",
        "boursier": True,
        "situation-professionnelle": "sans-emploi",
        "etudiant-mobilite": "parcoursup-nouvelle-region",
        "situation-logement": "locataire",
        "type-logement": "logement-meuble",
        "loyer-montant-mensuel": 450,
        "commune-logement": ComboboxAnswer(text="Rennes", value="35238"),
        # hidden for students, dropped by visibility filtering
        "type-revenus": ["salaire"],
    }


EXAMPLE_QUESTION_KEYS = ["aide-mobilite-parcoursup", "aide-personnalisee-logement", "locapass"]
