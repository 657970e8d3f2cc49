"""Static taxonomy of Spanish irregular-verb families.

A family groups lemmas that share one morphological irregularity
(e.g. e→ie diphthongization). The table is read-only reference data;
categorize_verb maps a lemma to every family it belongs to, combining
ending-based rules with a hand-curated lemma list.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Family:
    id: str
    name: str
    pattern: str
    examples: tuple[str, ...]
    affected_tenses: tuple[str, ...] = ()
    paradigmatic_verbs: tuple[str, ...] = field(default=())


def _family(id, name, pattern, examples, affected_tenses, paradigmatic_verbs=()):
    return Family(
        id=id,
        name=name,
        pattern=pattern,
        examples=tuple(examples),
        affected_tenses=tuple(affected_tenses),
        paradigmatic_verbs=tuple(paradigmatic_verbs),
    )


IRREGULAR_FAMILIES: dict[str, Family] = {
    f.id: f
    for f in [
        # Stem vowel changes
        _family(
            "DIPHT_E_IE", "Diphthong e→ie",
            "e→ie in stressed stems: present (except nosotros/vosotros), present subjunctive, imperative",
            ["pensar", "cerrar", "empezar", "comenzar", "despertar", "sentir"],
            ["pres", "subjPres"],
            ["pensar", "cerrar", "empezar"],
        ),
        _family(
            "DIPHT_O_UE", "Diphthong o→ue",
            "o→ue in stressed stems: present (except nosotros/vosotros), present subjunctive, imperative",
            ["volver", "poder", "contar", "mostrar", "dormir", "morir"],
            ["pres", "subjPres"],
            ["volver", "poder", "contar"],
        ),
        _family(
            "DIPHT_U_UE", "Diphthong u→ue",
            "u→ue in stressed stems: present, present subjunctive, imperative",
            ["jugar", "amuar", "desaguar", "menguar", "fraguar", "atestiguar"],
            ["pres", "subjPres"],
            ["jugar"],
        ),
        _family(
            "E_I_IR", "e→i (-ir verbs)",
            "e→i in present, present subjunctive, gerund and 3rd-person preterite",
            ["pedir", "servir", "repetir", "seguir", "sentir", "preferir",
             "mentir", "competir", "medir", "vestir"],
            ["pres", "subjPres", "pretIndef"],
            ["pedir", "servir", "repetir"],
        ),
        _family(
            "O_U_GER_IR", "o→u in gerund and preterite (-ir)",
            "o→u in gerund and 3rd-person preterite of diphthongizing -ir verbs",
            ["dormir", "morir", "adormir", "adormecerse", "redormir", "gruñir"],
            ["pretIndef"],
            ["dormir", "morir"],
        ),
        # First-person consonant alternations
        _family(
            "G_VERBS", "Irregular yo (-go)",
            "irregular 1st person present (tengo, pongo), propagated to the whole present subjunctive",
            ["tener", "poner", "salir", "hacer", "venir", "decir", "oír", "traer",
             "caer", "valer"],
            ["pres", "subjPres"],
            ["tener", "poner", "salir", "hacer", "venir"],
        ),
        _family(
            "JO_VERBS", "-ger/-gir → -jo",
            "-ger/-gir → -jo in 1st person present, propagated to the subjunctive",
            ["proteger", "elegir", "coger", "recoger", "dirigir", "corregir"],
            ["pres", "subjPres"],
            ["proteger", "elegir", "coger"],
        ),
        _family(
            "GU_DROP", "-guir (u drop)",
            "-guir → -go in 1st person present, propagated to the subjunctive",
            ["seguir", "distinguir", "extinguir", "conseguir", "perseguir", "proseguir"],
            ["pres", "subjPres"],
            ["seguir", "distinguir"],
        ),
        _family(
            "ZCO_VERBS", "-cer/-cir → -zco",
            "vowel + cer/cir → -zco in 1st person present: conozco, nazco, conduzco",
            ["conocer", "nacer", "parecer", "crecer", "conducir", "traducir",
             "producir", "reducir"],
            ["pres", "subjPres"],
            ["conocer", "parecer", "conducir"],
        ),
        _family(
            "ZO_VERBS", "-cer → -zo",
            "consonant + cer → -zo in 1st person present: venzo, ejerzo, tuerzo",
            ["vencer", "ejercer", "torcer", "cocer", "convencer", "retorcer"],
            ["pres", "subjPres"],
            ["vencer", "ejercer", "torcer"],
        ),
        # y insertion and hiatus
        _family(
            "UIR_Y", "-uir (y insertion)",
            "-y- inserted in present (except nosotros/vosotros) and present subjunctive",
            ["construir", "huir", "destruir", "incluir", "excluir", "concluir", "sustituir"],
            ["pres", "subjPres"],
            ["construir", "huir", "destruir"],
        ),
        _family(
            "HIATUS_Y", "Hiatus y (3rd person preterite)",
            "unstressed i between vowels becomes y: leyó, creyeron, construyó",
            ["leer", "creer", "poseer", "proveer", "construir", "huir", "caer"],
            ["pretIndef", "subjImpf"],
            ["leer", "creer"],
        ),
        # Strong preterites
        _family(
            "PRET_UV", "Strong preterite -uv-",
            "preterite stem in -uv-: tuve, estuve, anduve",
            ["tener", "estar", "andar", "obtener", "contener", "sostener"],
            ["pretIndef", "subjImpf"],
            ["tener", "estar", "andar"],
        ),
        _family(
            "PRET_U", "Strong preterite -u-",
            "preterite stem with u: puse, pude, supe, cupe, hube",
            ["poner", "poder", "saber", "caber", "haber"],
            ["pretIndef", "subjImpf"],
            ["poner", "poder", "saber"],
        ),
        _family(
            "PRET_I", "Strong preterite -i-",
            "preterite stem with i: hice, quise, vine",
            ["hacer", "querer", "venir", "convenir", "prevenir", "rehacer"],
            ["pretIndef", "subjImpf"],
            ["hacer", "querer", "venir"],
        ),
        _family(
            "PRET_J", "Strong preterite -j-",
            "preterite stem in -j- with -eron: dije, traje, conduje",
            ["decir", "traer", "conducir", "traducir", "producir"],
            ["pretIndef", "subjImpf"],
            ["decir", "traer", "conducir"],
        ),
        _family(
            "PRET_SUPPL", "Suppletive preterites",
            "fully irregular preterites: fui, di, vi",
            ["ir", "ser", "dar", "ver"],
            ["pretIndef", "subjImpf"],
            ["ir", "ser", "dar"],
        ),
        # Orthographic changes
        _family(
            "ORTH_CAR", "-car → -qué",
            "c→qu before e: busqué, toque",
            ["buscar", "tocar", "practicar", "explicar", "sacar"],
            ["pretIndef", "subjPres"],
            ["buscar", "tocar"],
        ),
        _family(
            "ORTH_GAR", "-gar → -gué",
            "g→gu before e: llegué, pague",
            ["llegar", "pagar", "jugar", "entregar", "obligar"],
            ["pretIndef", "subjPres"],
            ["llegar", "pagar"],
        ),
        _family(
            "ORTH_ZAR", "-zar → -cé",
            "z→c before e: empecé, almuerce",
            ["empezar", "comenzar", "almorzar", "utilizar", "cruzar"],
            ["pretIndef", "subjPres"],
            ["empezar", "almorzar"],
        ),
        # Future/conditional
        _family(
            "IRREG_CONDITIONAL", "Irregular future/conditional stems",
            "shortened stems in future and conditional: tendré, pondría, diré",
            ["tener", "poner", "salir", "venir", "decir", "hacer", "poder",
             "saber", "querer", "haber"],
            ["fut", "cond"],
            ["tener", "decir", "hacer"],
        ),
    ]
}

_KNOWN_VERBS: dict[str, list[str]] = {
    "tener": ["G_VERBS", "DIPHT_E_IE", "PRET_UV", "IRREG_CONDITIONAL"],
    "poner": ["G_VERBS", "PRET_U", "IRREG_CONDITIONAL"],
    "salir": ["G_VERBS", "IRREG_CONDITIONAL"],
    "hacer": ["G_VERBS", "PRET_I", "IRREG_CONDITIONAL"],
    "venir": ["G_VERBS", "DIPHT_E_IE", "PRET_I", "IRREG_CONDITIONAL"],
    "decir": ["G_VERBS", "E_I_IR", "PRET_J", "IRREG_CONDITIONAL"],
    "oír": ["G_VERBS"],
    "traer": ["G_VERBS", "PRET_J"],
    "caer": ["G_VERBS", "HIATUS_Y"],
    "valer": ["G_VERBS"],
    "pensar": ["DIPHT_E_IE"],
    "cerrar": ["DIPHT_E_IE"],
    "empezar": ["DIPHT_E_IE"],
    "comenzar": ["DIPHT_E_IE"],
    "despertar": ["DIPHT_E_IE"],
    "sentir": ["DIPHT_E_IE", "E_I_IR"],
    "preferir": ["DIPHT_E_IE", "E_I_IR"],
    "mentir": ["DIPHT_E_IE", "E_I_IR"],
    "querer": ["DIPHT_E_IE", "PRET_I", "IRREG_CONDITIONAL"],
    "volver": ["DIPHT_O_UE"],
    "poder": ["DIPHT_O_UE", "PRET_U", "IRREG_CONDITIONAL"],
    "contar": ["DIPHT_O_UE"],
    "mostrar": ["DIPHT_O_UE"],
    "dormir": ["DIPHT_O_UE", "O_U_GER_IR"],
    "morir": ["DIPHT_O_UE", "O_U_GER_IR"],
    "almorzar": ["DIPHT_O_UE"],
    "jugar": ["DIPHT_U_UE"],
    "pedir": ["E_I_IR"],
    "servir": ["E_I_IR"],
    "repetir": ["E_I_IR"],
    "seguir": ["E_I_IR"],
    "conseguir": ["E_I_IR"],
    "perseguir": ["E_I_IR"],
    "proseguir": ["E_I_IR"],
    "elegir": ["E_I_IR"],
    "corregir": ["E_I_IR"],
    "medir": ["E_I_IR"],
    "competir": ["E_I_IR"],
    "vestir": ["E_I_IR"],
    "estar": ["PRET_UV"],
    "andar": ["PRET_UV"],
    "obtener": ["G_VERBS", "DIPHT_E_IE", "PRET_UV", "IRREG_CONDITIONAL"],
    "contener": ["G_VERBS", "DIPHT_E_IE", "PRET_UV", "IRREG_CONDITIONAL"],
    "sostener": ["G_VERBS", "DIPHT_E_IE", "PRET_UV", "IRREG_CONDITIONAL"],
    "saber": ["PRET_U", "IRREG_CONDITIONAL"],
    "caber": ["PRET_U"],
    "haber": ["PRET_U", "IRREG_CONDITIONAL"],
    "conducir": ["PRET_J"],
    "traducir": ["PRET_J"],
    "producir": ["PRET_J"],
    "ir": ["PRET_SUPPL"],
    "ser": ["PRET_SUPPL"],
    "dar": ["PRET_SUPPL"],
    "ver": ["PRET_SUPPL"],
    "leer": ["HIATUS_Y"],
    "creer": ["HIATUS_Y"],
    "poseer": ["HIATUS_Y"],
    "proveer": ["HIATUS_Y"],
    "gruñir": ["O_U_GER_IR"],
    "cocer": ["ZO_VERBS"],
}

# -cer/-cir verbs whose 1st person is not -zco/-zo
_C_STEM_EXCEPTIONS = {"hacer", "rehacer", "deshacer", "satisfacer", "decir", "cocer", "mecer"}


def categorize_verb(lemma: str) -> list[str]:
    """Return every family id the lemma belongs to, without duplicates."""
    families: list[str] = []
    if not lemma:
        return families

    if lemma.endswith("car"):
        families.append("ORTH_CAR")
    if lemma.endswith("gar"):
        families.append("ORTH_GAR")
    if lemma.endswith("zar"):
        families.append("ORTH_ZAR")

    if lemma.endswith("uir") and not lemma.endswith("guir"):
        families.append("UIR_Y")
        families.append("HIATUS_Y")
    if lemma.endswith("guir"):
        families.append("GU_DROP")

    if (lemma.endswith("cer") or lemma.endswith("cir")) and lemma not in _C_STEM_EXCEPTIONS:
        before = lemma[-4:-3]
        if before and before in "aeiou":
            families.append("ZCO_VERBS")
        else:
            families.append("ZO_VERBS")

    if lemma.endswith("ger") or lemma.endswith("gir"):
        families.append("JO_VERBS")

    families.extend(_KNOWN_VERBS.get(lemma, []))

    # dict.fromkeys keeps first-seen order
    return [f for f in dict.fromkeys(families) if f in IRREGULAR_FAMILIES]


def is_irregular(lemma: str) -> bool:
    return bool(categorize_verb(lemma))
