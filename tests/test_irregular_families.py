import pytest

from conjuga.services.irregular_families import IRREGULAR_FAMILIES, categorize_verb, is_irregular


@pytest.mark.parametrize("lemma,expected", [
    ("buscar", ["ORTH_CAR"]),
    ("llegar", ["ORTH_GAR"]),
    ("construir", ["UIR_Y", "HIATUS_Y"]),
    ("distinguir", ["GU_DROP"]),
    ("conocer", ["ZCO_VERBS"]),
    ("vencer", ["ZO_VERBS"]),
    ("proteger", ["JO_VERBS"]),
    ("pensar", ["DIPHT_E_IE"]),
])
def test_categorize(lemma, expected):
    assert categorize_verb(lemma) == expected


def test_multiple_families_without_duplicates():
    families = categorize_verb("tener")
    assert families == ["G_VERBS", "DIPHT_E_IE", "PRET_UV", "IRREG_CONDITIONAL"]

    seguir = categorize_verb("seguir")
    assert "GU_DROP" in seguir
    assert "E_I_IR" in seguir
    assert len(seguir) == len(set(seguir))


def test_c_stem_exceptions():
    assert "ZCO_VERBS" not in categorize_verb("hacer")
    assert "ZCO_VERBS" not in categorize_verb("decir")
    assert "ZO_VERBS" not in categorize_verb("hacer")


def test_conducir_gets_both_stem_and_preterite():
    assert categorize_verb("conducir") == ["ZCO_VERBS", "PRET_J"]


def test_regular_verbs():
    for lemma in ("hablar", "comer", "vivir", ""):
        assert categorize_verb(lemma) == []
        assert not is_irregular(lemma)


def test_taxonomy_integrity():
    for family_id, family in IRREGULAR_FAMILIES.items():
        assert family.id == family_id
        assert family.examples
        assert family.affected_tenses
        assert set(family.paradigmatic_verbs) <= set(family.examples)
