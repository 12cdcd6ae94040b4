# ═════════════════════════════════════════════════════════════════════════════════
# BEIDER-MORSE RULE DATA
# ═════════════════════════════════════════════════════════════════════════════════
#
# Rule tables are keyed by resource name "<convention>_<stage>_<language>":
#   convention: gen (generic), ash (ashkenazi), sep (sephardic)
#   stage:      rules (main), approx, exact (final normalization)
#   language:   a language tag, "any" (non-singleton language sets) or "common"
#               (final rules applied to every language)
#
# Each entry is either a rule tuple (pattern, left_context, right_context, phoneme)
# or an "#include <table>" line that splices another table in place.
#
# Phoneme syntax:
#   "ts"                        single phoneme, valid for every language
#   "ts[german+polish]"         single phoneme restricted to some languages
#   "(ts|tS[polish]|)"          alternatives; a trailing "|" adds an empty alternative
#
# Contexts are regular expression fragments. The left context has to match the text
# that ends where the pattern starts; the right context has to match the text that
# starts where the pattern ends. Within a lead-character bucket the first matching
# rule wins, so longer and more specific patterns come first.
# ═════════════════════════════════════════════════════════════════════════════════

from types import MappingProxyType

ANY_LANGUAGE = "any"
COMMON_RULES = "common"
INCLUDE_PREFIX = "#include "

# Languages each convention distinguishes
LANGUAGES = {
    "gen": ("english", "french", "german", "italian", "polish", "spanish"),
    "ash": ("english", "german", "hebrew", "polish", "russian"),
    "sep": ("french", "hebrew", "italian", "portuguese", "spanish"),
}

# Name prefixes stripped or split off before encoding. The generic split takes the first
# prefix that matches, so "de" is checked before "dela" and "dela" before "de la".
NAME_PREFIXES = {
    "gen": ("de", "van", "di", "dos", "del", "do", "dal", "della", "du", "des", "von", "dela", "de la", "da"),
    "ash": ("bar", "ben", "da", "de", "van", "von"),
    "sep": (
        "de la",
        "della",
        "dela",
        "dal",
        "del",
        "des",
        "dos",
        "al",
        "el",
        "da",
        "de",
        "di",
        "do",
        "du",
        "van",
        "von",
    ),
}

# ═════════════════════════════════════════════════════════════════════════════════
# LANGUAGE GUESSING HEURISTICS
# ═════════════════════════════════════════════════════════════════════════════════
#
# Format: (regex, "lang1+lang2", accept_on_match)
# A matching accepting heuristic scores one point for each of its languages; a
# matching rejecting heuristic disqualifies its languages.

LANGUAGE_HEURISTICS = {
    "gen": (
        ("sch", "german", True),
        ("[äöüß]", "german", True),
        ("(mann|berg|stein|feld)$", "german", True),
        ("^(mc|mac)", "english", True),
        ("(oo|ee|wh|sh)", "english", True),
        ("(eau|eux$|oux$|ç)", "french", True),
        ("^d'", "french+italian", True),
        ("(gli|cci|zz|ini$|elli$)", "italian", True),
        ("(ñ|ez$|^ll)", "spanish", True),
        ("(sz|cz|rz)", "polish", True),
        ("(ski$|wicz$|[łśżźćńąę])", "polish", True),
        ("w", "french+italian+spanish", False),
        ("k", "french+italian+spanish", False),
    ),
    "ash": (
        ("sch", "german", True),
        ("(mann|berg|stein|feld)$", "german", True),
        ("(sz|cz|rz)", "polish", True),
        ("(ski$|wicz$)", "polish+russian", True),
        ("(ov$|ev$|sky$|zh|kh)", "russian", True),
        ("(tz|ch$)", "hebrew", True),
        ("^(ben|bar|bat)", "hebrew", True),
        ("(oo|ee|wh)", "english", True),
        ("w", "russian+hebrew", False),
    ),
    "sep": (
        ("(ão|õe|lh|nh)", "portuguese", True),
        ("(eira$|inho$|ção$)", "portuguese", True),
        ("(ñ|ez$|^ll)", "spanish", True),
        ("(eau|eux$|ç)", "french+portuguese", True),
        ("(gli|cci|zz|elli$)", "italian", True),
        ("(ben|abu|^ibn)", "hebrew", True),
        ("k", "french+italian+spanish+portuguese", False),
    ),
}

# ═════════════════════════════════════════════════════════════════════════════════
# GENERIC MAIN RULES
# ═════════════════════════════════════════════════════════════════════════════════

GENERIC_MAIN_RULES = {
    # Used when the language set is not a single language: alternatives carry the
    # languages they are valid for, so incompatible branches get pruned.
    "gen_rules_any": (
        ("tsch", "", "", "tS"),
        ("szcz", "", "", "StS[polish]"),
        ("sch", "", "", "(S|sk[english+italian])"),
        ("sz", "", "", "(S[polish]|s)"),
        ("sh", "", "", "S"),
        ("rz", "", "", "(Z[polish]|rz)"),
        ("cz", "", "", "(tS[polish]|ts[german]|k)"),
        ("ch", "", "", "(x[german+polish]|S[french]|tS[english+spanish]|k[italian])"),
        ("ck", "", "", "k"),
        ("c", "", "[eiy]", "(ts[german+polish]|tS[italian]|s)"),
        ("c", "", "", "k"),
        ("ph", "", "", "f"),
        ("th", "", "", "t"),
        ("gh", "", "", "g"),
        ("gn", "", "", "(nj[french+italian]|gn)"),
        ("gl", "", "i", "(lj[italian]|gl)"),
        ("g", "", "[eiy]", "(g|dZ[english+italian]|x[spanish]|Z[french])"),
        ("qu", "", "", "(kv[german+polish]|k)"),
        ("ll", "", "", "(j[spanish]|l)"),
        ("eau", "", "", "o"),
        ("ei", "", "", "(aj[german]|ej)"),
        ("ie", "", "", "(i[german]|ie)"),
        ("oo", "", "", "u"),
        ("ou", "", "", "(u|ou[english+polish])"),
        ("ee", "", "", "i"),
        ("h", "", "", "(h[english+german+polish]|[french+italian+spanish])"),
        ("j", "", "", "(j|dZ[english]|Z[french]|x[spanish])"),
        ("w", "", "", "(v|w[english])"),
        ("x", "", "", "ks"),
        ("y", "", "[aeiou]", "j"),
        ("y", "", "", "i"),
        ("z", "", "", "(ts[german+italian]|z[english+french+polish]|s[spanish])"),
        ("ł", "", "", "(w[polish]|l)"),
        ("ñ", "", "", "nj"),
        ("ß", "", "", "s"),
        ("ä", "", "", "e"),
        ("ö", "", "", "o"),
        ("ü", "", "", "i"),
        ("é", "", "", "e"),
        ("è", "", "", "e"),
    ),
    "gen_rules_english": (
        ("tch", "", "", "tS"),
        ("th", "", "", "t"),
        ("sch", "", "", "sk"),
        ("sh", "", "", "S"),
        ("ch", "", "", "tS"),
        ("ck", "", "", "k"),
        ("c", "", "[eiy]", "s"),
        ("c", "", "", "k"),
        ("ph", "", "", "f"),
        ("gh", "", "$", ""),
        ("gh", "", "", "g"),
        ("g", "", "[eiy]", "(g|dZ)"),
        ("wh", "", "", "v"),
        ("wr", "^", "", "r"),
        ("w", "", "", "v"),
        ("kn", "^", "", "n"),
        ("qu", "", "", "kv"),
        ("oo", "", "", "u"),
        ("ou", "", "", "(u|au)"),
        ("ee", "", "", "i"),
        ("ea", "", "", "i"),
        ("ey", "", "$", "i"),
        ("e", "[bcdfgklmnprstvz]", "$", "(e|)"),
        ("ay", "", "", "ej"),
        ("j", "", "", "dZ"),
        ("x", "", "", "ks"),
        ("y", "", "[aeiou]", "j"),
        ("y", "", "", "i"),
    ),
    "gen_rules_french": (
        ("eaux", "", "", "o"),
        ("eau", "", "", "o"),
        ("ei", "", "", "e"),
        ("en", "", "[bcdfgjklmpqrstvwxz]", "an"),
        ("er", "", "$", "e"),
        ("aux", "", "$", "o"),
        ("au", "", "", "o"),
        ("ai", "", "", "e"),
        ("ou", "", "", "u"),
        ("oi", "", "", "va"),
        ("ille", "", "$", "(ij|il)"),
        ("ch", "", "", "S"),
        ("c", "", "[eiy]", "s"),
        ("c", "", "", "k"),
        ("ph", "", "", "f"),
        ("th", "", "", "t"),
        ("gn", "", "", "nj"),
        ("g", "", "[eiy]", "Z"),
        ("qu", "", "", "k"),
        ("j", "", "", "Z"),
        ("h", "", "", ""),
        ("w", "", "", "v"),
        ("y", "", "", "i"),
        ("x", "", "$", ""),
        ("s", "", "$", ""),
        ("t", "", "$", ""),
        ("d", "", "$", ""),
        ("z", "", "$", ""),
        ("ç", "", "", "s"),
        ("é", "", "", "e"),
        ("è", "", "", "e"),
        ("ê", "", "", "e"),
    ),
    "gen_rules_german": (
        ("tsch", "", "", "tS"),
        ("th", "", "", "t"),
        ("tz", "", "", "ts"),
        ("sch", "", "", "S"),
        ("sp", "^", "", "Sp"),
        ("st", "^", "", "St"),
        ("s", "^", "[aeiou]", "z"),
        ("ch", "", "", "x"),
        ("ck", "", "", "k"),
        ("c", "", "[eiy]", "ts"),
        ("c", "", "", "k"),
        ("ph", "", "", "f"),
        ("ei", "", "", "aj"),
        ("ey", "", "", "aj"),
        ("eu", "", "", "oj"),
        ("ie", "", "", "i"),
        ("äu", "", "", "oj"),
        ("qu", "", "", "kv"),
        ("d", "", "$", "t"),
        ("h", "[aeiouäöü]", "", ""),
        ("v", "", "", "f"),
        ("w", "", "", "v"),
        ("x", "", "", "ks"),
        ("y", "", "", "i"),
        ("z", "", "", "ts"),
        ("ß", "", "", "s"),
        ("ä", "", "", "e"),
        ("ö", "", "", "e"),
        ("ü", "", "", "i"),
    ),
    "gen_rules_italian": (
        ("sci", "", "[aeiou]", "S"),
        ("sc", "", "[ei]", "S"),
        ("gli", "", "", "lj"),
        ("gn", "", "", "nj"),
        ("gh", "", "", "g"),
        ("gi", "", "[aeiou]", "dZ"),
        ("g", "", "[ei]", "dZ"),
        ("ch", "", "", "k"),
        ("cci", "", "[aeiou]", "tS"),
        ("cc", "", "[ei]", "tS"),
        ("ci", "", "[aeiou]", "tS"),
        ("c", "", "[ei]", "tS"),
        ("c", "", "", "k"),
        ("h", "", "", ""),
        ("qu", "", "", "kv"),
        ("zz", "", "", "ts"),
        ("z", "", "", "(ts|dz)"),
        ("x", "", "", "ks"),
    ),
    "gen_rules_polish": (
        ("szcz", "", "", "StS"),
        ("sz", "", "", "S"),
        ("ski", "", "$", "(ski|skij)"),
        ("si", "", "[aeiou]", "S"),
        ("cz", "", "", "tS"),
        ("ch", "", "", "x"),
        ("ci", "", "[aeiou]", "tS"),
        ("c", "", "", "ts"),
        ("rz", "", "", "Z"),
        ("dż", "", "", "dZ"),
        ("dz", "", "", "dz"),
        ("zi", "", "[aeiou]", "Z"),
        ("ni", "", "[aeiou]", "nj"),
        ("wicz", "", "$", "vitS"),
        ("w", "", "", "v"),
        ("y", "", "", "i"),
        ("ć", "", "", "tS"),
        ("ś", "", "", "S"),
        ("ź", "", "", "Z"),
        ("ż", "", "", "Z"),
        ("ń", "", "", "nj"),
        ("ł", "", "", "v"),
        ("ą", "", "", "on"),
        ("ę", "", "", "en"),
        ("ó", "", "", "u"),
    ),
    "gen_rules_spanish": (
        ("ch", "", "", "tS"),
        ("c", "", "[ei]", "s"),
        ("c", "", "", "k"),
        ("ll", "", "", "(j|l)"),
        ("qu", "", "", "k"),
        ("gu", "", "[ei]", "g"),
        ("g", "", "[ei]", "x"),
        ("ez", "", "$", "es"),
        ("j", "", "", "x"),
        ("h", "", "", ""),
        ("z", "", "", "s"),
        ("v", "", "", "b"),
        ("y", "", "$", "i"),
        ("y", "", "", "j"),
        ("x", "", "", "(ks|x)"),
        ("ñ", "", "", "nj"),
        ("á", "", "", "a"),
        ("é", "", "", "e"),
        ("í", "", "", "i"),
        ("ó", "", "", "o"),
        ("ú", "", "", "u"),
    ),
}

# ═════════════════════════════════════════════════════════════════════════════════
# GENERIC FINAL RULES
# ═════════════════════════════════════════════════════════════════════════════════

GENERIC_FINAL_RULES = {
    "gen_approx_common": (
        ("dz", "", "", "ts"),
        ("d", "", "$", "t"),
        ("b", "", "$", "p"),
        ("g", "", "$", "k"),
        ("v", "", "$", "f"),
        ("z", "", "$", "s"),
        ("h", "", "$", ""),
        ("ss", "", "", "s"),
        ("tt", "", "", "t"),
        ("ll", "", "", "l"),
        ("nn", "", "", "n"),
        ("mm", "", "", "m"),
        ("rr", "", "", "r"),
        ("kk", "", "", "k"),
        ("pp", "", "", "p"),
        ("ff", "", "", "f"),
        ("ou", "", "", "u"),
        ("ej", "", "", "e"),
        ("w", "", "", "v"),
        ("y", "", "", "i"),
    ),
    "gen_exact_common": (
        ("h", "", "$", ""),
        ("ss", "", "", "s"),
        ("tt", "", "", "t"),
        ("ll", "", "", "l"),
        ("nn", "", "", "n"),
        ("w", "", "", "v"),
        ("y", "", "", "i"),
    ),
    "gen_approx_any": (),
    "gen_exact_any": (),
    "gen_approx_english": (("au", "", "", "o"),),
    "gen_exact_english": (),
    "gen_approx_french": (("e", "", "$", ""),),
    "gen_exact_french": (),
    "gen_approx_german": (("aj", "", "", "(aj|ej)"),),
    "gen_exact_german": (),
    "gen_approx_italian": (),
    "gen_exact_italian": (),
    "gen_approx_polish": ("#include gen_exact_polish",),
    "gen_exact_polish": (("ij", "", "$", "i"),),
    "gen_approx_spanish": (("b", "", "", "(b|v)"),),
    "gen_exact_spanish": (),
}

# ═════════════════════════════════════════════════════════════════════════════════
# ASHKENAZI RULES
# ═════════════════════════════════════════════════════════════════════════════════

ASHKENAZI_RULES = {
    "ash_rules_any": (
        ("sch", "", "", "S"),
        ("sh", "", "", "S"),
        ("sz", "", "", "S"),
        ("ch", "", "", "(x|tS[english+polish+russian])"),
        ("cz", "", "", "tS"),
        ("c", "", "[eiy]", "ts"),
        ("c", "", "", "k"),
        ("rz", "", "", "(Z|rz)"),
        ("zh", "", "", "Z"),
        ("z", "", "", "(z|ts[german])"),
        ("kh", "", "", "x"),
        ("tz", "", "", "ts"),
        ("th", "", "", "t"),
        ("ph", "", "", "f"),
        ("ei", "", "", "(aj[german]|ej)"),
        ("ie", "", "", "(i|ie[polish+russian])"),
        ("oo", "", "", "u"),
        ("j", "", "", "(j|dZ[english])"),
        ("w", "", "", "v"),
        ("x", "", "", "ks"),
        ("y", "", "[aeiou]", "j"),
        ("y", "", "", "i"),
        ("ł", "", "", "v"),
    ),
    "ash_rules_english": ("#include gen_rules_english",),
    "ash_rules_german": ("#include gen_rules_german",),
    "ash_rules_polish": ("#include gen_rules_polish",),
    "ash_rules_hebrew": (
        ("tz", "", "", "ts"),
        ("ch", "", "", "x"),
        ("kh", "", "", "x"),
        ("sh", "", "", "S"),
        ("ph", "", "", "f"),
        ("ei", "", "", "ej"),
        ("ai", "", "", "aj"),
        ("oo", "", "", "u"),
        ("c", "", "", "k"),
        ("w", "", "", "v"),
        ("y", "", "", "j"),
    ),
    "ash_rules_russian": (
        ("shch", "", "", "StS"),
        ("sh", "", "", "S"),
        ("zh", "", "", "Z"),
        ("kh", "", "", "x"),
        ("ch", "", "", "tS"),
        ("c", "", "", "k"),
        ("ts", "", "", "ts"),
        ("ya", "", "", "ja"),
        ("yu", "", "", "ju"),
        ("ye", "", "", "je"),
        ("yo", "", "", "jo"),
        ("y", "", "", "i"),
        ("iy", "", "$", "i"),
        ("ii", "", "$", "i"),
        ("ov", "", "$", "(ov|of)"),
        ("ev", "", "$", "(ev|ef)"),
        ("w", "", "", "v"),
    ),
    "ash_approx_common": (
        "#include gen_approx_common",
        ("x", "", "", "(x|h)"),
    ),
    "ash_exact_common": ("#include gen_exact_common",),
    "ash_approx_any": (),
    "ash_exact_any": (),
    "ash_approx_english": ("#include gen_approx_english",),
    "ash_exact_english": (),
    "ash_approx_german": ("#include gen_approx_german",),
    "ash_exact_german": (),
    "ash_approx_polish": ("#include gen_approx_polish",),
    "ash_exact_polish": ("#include gen_exact_polish",),
    "ash_approx_hebrew": (("ej", "", "", "(ej|aj)"),),
    "ash_exact_hebrew": (),
    "ash_approx_russian": (("of", "", "$", "ov"),),
    "ash_exact_russian": (),
}

# ═════════════════════════════════════════════════════════════════════════════════
# SEPHARDIC RULES
# ═════════════════════════════════════════════════════════════════════════════════

SEPHARDIC_RULES = {
    "sep_rules_any": (
        ("ch", "", "", "(S[french+portuguese]|tS[spanish]|k[italian]|x[hebrew])"),
        ("c", "", "[eiy]", "(s|tS[italian])"),
        ("c", "", "", "k"),
        ("lh", "", "", "(lj[portuguese]|l)"),
        ("ll", "", "", "(j[spanish]|l)"),
        ("nh", "", "", "(nj[portuguese]|n)"),
        ("gn", "", "", "nj"),
        ("g", "", "[eiy]", "(Z[french+portuguese]|dZ[italian]|x[spanish]|g)"),
        ("qu", "", "", "k"),
        ("j", "", "", "(Z[french+portuguese]|x[spanish]|j)"),
        ("h", "", "", ""),
        ("x", "", "", "(S[portuguese]|ks)"),
        ("z", "", "", "(s|ts[italian]|z)"),
        ("w", "", "", "v"),
        ("y", "", "", "i"),
        ("ñ", "", "", "nj"),
        ("ç", "", "", "s"),
    ),
    "sep_rules_french": ("#include gen_rules_french",),
    "sep_rules_italian": ("#include gen_rules_italian",),
    "sep_rules_spanish": ("#include gen_rules_spanish",),
    "sep_rules_hebrew": ("#include ash_rules_hebrew",),
    "sep_rules_portuguese": (
        ("lh", "", "", "lj"),
        ("nh", "", "", "nj"),
        ("ch", "", "", "S"),
        ("c", "", "[ei]", "s"),
        ("c", "", "", "k"),
        ("qu", "", "[ei]", "k"),
        ("qu", "", "", "kv"),
        ("g", "", "[ei]", "Z"),
        ("j", "", "", "Z"),
        ("h", "", "", ""),
        ("x", "", "", "S"),
        ("z", "", "$", "S"),
        ("s", "", "$", "S"),
        ("o", "", "$", "(u|o)"),
        ("e", "", "$", "(i|e)"),
        ("ç", "", "", "s"),
        ("ão", "", "", "on"),
        ("õe", "", "", "on"),
    ),
    "sep_approx_common": ("#include gen_approx_common",),
    "sep_exact_common": ("#include gen_exact_common",),
    "sep_approx_any": (),
    "sep_exact_any": (),
    "sep_approx_french": ("#include gen_approx_french",),
    "sep_exact_french": (),
    "sep_approx_italian": (),
    "sep_exact_italian": (),
    "sep_approx_spanish": ("#include gen_approx_spanish",),
    "sep_exact_spanish": (),
    "sep_approx_hebrew": ("#include ash_approx_hebrew",),
    "sep_exact_hebrew": (),
    "sep_approx_portuguese": (("S", "", "$", "s"),),
    "sep_exact_portuguese": (),
}

# Merge sub-tables into the single resource namespace
RULE_TABLES = {}
RULE_TABLES.update(GENERIC_MAIN_RULES)
RULE_TABLES.update(GENERIC_FINAL_RULES)
RULE_TABLES.update(ASHKENAZI_RULES)
RULE_TABLES.update(SEPHARDIC_RULES)

# ═════════════════════════════════════════════════════════════════════════════════
# VALIDATION AND IMMUTABLE CREATION
# ═════════════════════════════════════════════════════════════════════════════════


def _assert_well_formed_entries(tables):
    """Validate the shape of every table entry."""
    for name, entries in tables.items():
        for entry in entries:
            if isinstance(entry, str):
                if not entry.startswith(INCLUDE_PREFIX):
                    raise ValueError(f"Unknown directive in {name}: {entry!r}")
                target = entry[len(INCLUDE_PREFIX) :].strip()
                if target not in tables:
                    raise ValueError(f"{name} includes unknown table {target!r}")
                continue
            if len(entry) != 4 or not all(isinstance(part, str) for part in entry):
                raise ValueError(f"Malformed rule in {name}: {entry!r}")
            if not entry[0]:
                raise ValueError(f"Empty rule pattern in {name}: {entry!r}")


def _assert_complete_tables(tables, languages):
    """Validate that every (convention, stage, language) combination has a table."""
    for convention, langs in languages.items():
        required = [f"{convention}_rules_{lang}" for lang in langs + (ANY_LANGUAGE,)]
        for stage in ("approx", "exact"):
            required.extend(f"{convention}_{stage}_{lang}" for lang in langs + (ANY_LANGUAGE, COMMON_RULES))
        missing = [name for name in required if name not in tables]
        if missing:
            raise ValueError(f"Missing rule tables for {convention}: {missing}")


def _assert_known_heuristic_languages(heuristics, languages):
    """Validate that heuristics only name languages of their convention."""
    for convention, entries in heuristics.items():
        known = set(languages[convention])
        for pattern, langs, _accept in entries:
            unknown = set(langs.split("+")) - known
            if unknown:
                raise ValueError(f"Heuristic {pattern!r} for {convention} names unknown languages {unknown}")


_assert_well_formed_entries(RULE_TABLES)
_assert_complete_tables(RULE_TABLES, LANGUAGES)
_assert_known_heuristic_languages(LANGUAGE_HEURISTICS, LANGUAGES)


# Create immutable versions

LANGUAGES = MappingProxyType(LANGUAGES)
NAME_PREFIXES = MappingProxyType(NAME_PREFIXES)
LANGUAGE_HEURISTICS = MappingProxyType(LANGUAGE_HEURISTICS)
RULE_TABLES = MappingProxyType(RULE_TABLES)
