"""
Tests for entity managers.

These tests verify:
    - Seeded membership lists per entity kind
    - Variables recorded per period
    - Conflict detection and the refinement table
    - Probes (None values) never clobbering answered values
"""

import pytest

from sace.constants import INDIVIDU_ID
from sace.entities import (
    ENTITY_ORDER,
    FAMILLE_CONFIG,
    FOYER_FISCAL_CONFIG,
    INDIVIDU_CONFIG,
    MENAGE_CONFIG,
    EntityKind,
    EntityManager,
    create_managers,
    is_refinement,
)
from sace.errors import BuildErrorType


class TestMembership:
    """Test seeded membership lists."""

    def test_individu_has_no_members(self):
        assert EntityManager(INDIVIDU_CONFIG).get_entity() == {}

    def test_menage_seeded(self):
        assert EntityManager(MENAGE_CONFIG).get_entity() == {
            "personne_de_reference": [INDIVIDU_ID],
            "conjoint": [],
            "enfants": [],
        }

    def test_foyer_fiscal_seeded(self):
        assert EntityManager(FOYER_FISCAL_CONFIG).get_entity() == {
            "declarants": [INDIVIDU_ID],
            "personnes_a_charge": [],
        }

    def test_famille_seeded(self):
        assert EntityManager(FAMILLE_CONFIG).get_entity() == {"parents": [INDIVIDU_ID], "enfants": []}

    def test_add_member_no_duplicates(self):
        manager = EntityManager(FAMILLE_CONFIG)
        manager.add_enfant("enfant_1")
        manager.add_enfant("enfant_1")
        manager.add_parent(INDIVIDU_ID)
        assert manager.get_entity() == {"parents": [INDIVIDU_ID], "enfants": ["enfant_1"]}

    def test_menage_helpers(self):
        manager = EntityManager(MENAGE_CONFIG)
        manager.add_conjoint("conjoint_1")
        manager.add_enfant("enfant_1")
        assert manager.get_entity() == {
            "personne_de_reference": [INDIVIDU_ID],
            "conjoint": ["conjoint_1"],
            "enfants": ["enfant_1"],
        }

    def test_foyer_fiscal_helpers(self):
        manager = EntityManager(FOYER_FISCAL_CONFIG)
        manager.add_declarant("conjoint_1")
        manager.add_personne_a_charge("enfant_1")
        assert manager.get_entity() == {
            "declarants": [INDIVIDU_ID, "conjoint_1"],
            "personnes_a_charge": ["enfant_1"],
        }

    def test_famille_helpers(self):
        manager = EntityManager(FAMILLE_CONFIG)
        manager.add_parent("conjoint_1")
        manager.add_enfant("enfant_1")
        assert manager.get_entity() == {"parents": [INDIVIDU_ID, "conjoint_1"], "enfants": ["enfant_1"]}

    def test_add_member_to_unknown_list(self):
        with pytest.raises(ValueError, match="not a member list"):
            EntityManager(FOYER_FISCAL_CONFIG).add_conjoint("conjoint_1")

    def test_member_list_cannot_be_a_variable(self):
        manager = EntityManager(MENAGE_CONFIG)
        assert manager.add_variable("enfants", 2, "2025-10", "k") is None
        assert manager.get_entity()["enfants"] == []
        assert not manager.has_errors()

    def test_custom_individu_id(self):
        manager = EntityManager(MENAGE_CONFIG, individu_id="demandeur")
        assert manager.get_entity()["personne_de_reference"] == ["demandeur"]


class TestAddVariable:
    """Test per-period variable recording and conflicts."""

    def test_different_periods(self):
        manager = EntityManager(INDIVIDU_CONFIG)
        manager.add_variable("v", 10, "2025-01", "k1")
        manager.add_variable("v", 10, "2025-02", "k2")
        assert not manager.has_errors()
        assert manager.get_entity()["v"] == {"2025-01": 10, "2025-02": 10}

    def test_conflict_keeps_first_value(self):
        manager = EntityManager(INDIVIDU_CONFIG)
        manager.add_variable("age", 25, "2025-01", "age")
        error = manager.add_variable("age", 30, "2025-01", "age-bis")
        assert manager.has_errors()
        assert error is not None
        assert error.type is BuildErrorType.MAPPING_ERROR
        assert error.answer_key == "age-bis"
        assert manager.get_errors() == [error]
        assert manager.get_value("age", "2025-01") == 25

    def test_identical_rewrite_is_a_conflict(self):
        manager = EntityManager(INDIVIDU_CONFIG)
        manager.add_variable("age", 25, "2025-01", "a")
        manager.add_variable("age", 25, "2025-01", "b")
        assert manager.has_errors()

    def test_refinement_allowed(self):
        manager = EntityManager(MENAGE_CONFIG)
        manager.add_variable("statut_occupation_logement", "locataire_vide", "2025-01", "situation-logement")
        error = manager.add_variable("statut_occupation_logement", "proprietaire", "2025-01", "type-logement")
        assert error is None
        assert not manager.has_errors()
        assert manager.get_value("statut_occupation_logement", "2025-01") == "proprietaire"

    def test_refinement_only_from_locataire_vide(self):
        manager = EntityManager(MENAGE_CONFIG)
        manager.add_variable("statut_occupation_logement", "proprietaire", "2025-01", "a")
        manager.add_variable("statut_occupation_logement", "locataire_meuble", "2025-01", "b")
        assert manager.has_errors()
        assert manager.get_value("statut_occupation_logement", "2025-01") == "proprietaire"

    def test_custom_refinement_rules(self):
        manager = EntityManager(INDIVIDU_CONFIG, refinement_rules={"age": lambda old, new: new > old})
        manager.add_variable("age", 25, "2025-01", "a")
        manager.add_variable("age", 26, "2025-01", "b")
        assert not manager.has_errors()
        assert manager.get_value("age", "2025-01") == 26

    def test_is_refinement(self):
        assert is_refinement("statut_occupation_logement", "locataire_vide", "locataire_meuble")
        assert not is_refinement("statut_occupation_logement", "proprietaire", "locataire_meuble")
        assert not is_refinement("loyer", "locataire_vide", 500)

    def test_reset(self):
        manager = EntityManager(INDIVIDU_CONFIG)
        manager.add_variable("age", 25, "2025-01", "a")
        manager.add_variable("age", 30, "2025-01", "b")
        manager.reset()
        assert manager.get_entity() == {}
        assert not manager.has_errors()


class TestProbes:
    """None values ask the engine to compute a variable."""

    def test_probe_on_empty(self):
        manager = EntityManager(FAMILLE_CONFIG)
        manager.add_variable("ppa", None, "2025-10", "prime-activite")
        assert manager.get_entity()["ppa"] == {"2025-10": None}

    def test_probe_does_not_clobber_value(self):
        manager = EntityManager(INDIVIDU_CONFIG)
        manager.add_variable("boursier", True, "2025-10", "boursier")
        manager.add_variable("boursier", None, "2025-10", "boursier-question")
        assert not manager.has_errors()
        assert manager.get_value("boursier", "2025-10") is True

    def test_value_fills_probe(self):
        manager = EntityManager(INDIVIDU_CONFIG)
        manager.add_variable("boursier", None, "2025-10", "q")
        manager.add_variable("boursier", False, "2025-10", "boursier")
        assert not manager.has_errors()
        assert manager.get_value("boursier", "2025-10") is False

    def test_probe_other_period_merges(self):
        manager = EntityManager(INDIVIDU_CONFIG)
        manager.add_variable("salaire_net", 1200, "2025-09", "a")
        manager.add_variable("salaire_net", None, "2025-10", "q")
        assert manager.get_entity()["salaire_net"] == {"2025-09": 1200, "2025-10": None}


class TestSnapshot:
    """get_entity() returns an independent snapshot."""

    def test_snapshot_is_a_copy(self):
        manager = EntityManager(MENAGE_CONFIG)
        manager.add_variable("loyer", 600, "2025-10", "loyer")
        snapshot = manager.get_entity()
        snapshot["loyer"]["2025-10"] = 0
        snapshot["enfants"].append("x")
        assert manager.get_value("loyer", "2025-10") == 600
        assert manager.get_entity()["enfants"] == []

    def test_members_first(self):
        manager = EntityManager(MENAGE_CONFIG)
        manager.add_variable("loyer", 600, "2025-10", "loyer")
        assert list(manager.get_entity()) == ["personne_de_reference", "conjoint", "enfants", "loyer"]

    def test_replace_variable(self):
        manager = EntityManager(INDIVIDU_CONFIG)
        manager.add_variable("nationalite", "DE", "2025-10", "nationalite")
        manager.replace_variable("nationalite", "FR", "2025-10")
        assert manager.get_entity()["nationalite"] == {"2025-10": "FR"}
        with pytest.raises(ValueError):
            EntityManager(MENAGE_CONFIG).replace_variable("enfants", [], "2025-10")


class TestCreateManagers:
    def test_one_per_kind(self):
        managers = create_managers()
        assert list(managers) == list(ENTITY_ORDER)
        assert managers[EntityKind.FAMILLES].entity_id == "famille_usager"
        assert managers[EntityKind.MENAGES].entity_id == "menage_usager"
        assert managers[EntityKind.FOYERS_FISCAUX].entity_id == "foyer_fiscal_usager"
        assert managers[EntityKind.INDIVIDUS].entity_id == INDIVIDU_ID
