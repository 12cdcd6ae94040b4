"""
Test Suite for the Beider-Morse phonetic engine

Covers the value types (LanguageSet, Phoneme, PhonemeExpr, PhonemeBuilder), rule matching
and the engine pipeline against the pinned rule set from conftest.py, whose outputs
can be traced by hand.
"""

import pytest

from phonetic_names.beider_morse import (
    ANY_LANGUAGES,
    NO_LANGUAGES,
    BeiderMorseConfig,
    LanguageSet,
    NameConvention,
    Phoneme,
    PhonemeBuilder,
    PhonemeExpr,
    PhoneticEngine,
    Rule,
    RuleFormatError,
    RuleStage,
    RuleTable,
)


# ════════════════════════════════════════════════════════════════════════════════
# LANGUAGE SETS
# ════════════════════════════════════════════════════════════════════════════════


def test_language_set_parse():
    assert LanguageSet.parse("any") is ANY_LANGUAGES
    assert LanguageSet.parse("german+polish") == LanguageSet.of("german", "polish")
    assert LanguageSet.parse("english") == LanguageSet.of(["english"])
    assert LanguageSet.parse("").is_empty


def test_restrict_to_any_is_identity():
    german = LanguageSet.of("german")
    assert ANY_LANGUAGES.restrict_to(german) == german
    assert german.restrict_to(ANY_LANGUAGES) == german
    assert ANY_LANGUAGES.restrict_to(ANY_LANGUAGES).is_any


def test_restrict_to_empty_intersection_stays_empty():
    result = LanguageSet.of("german").restrict_to(LanguageSet.of("polish"))
    assert result.is_empty
    assert not result.is_any
    assert result.restrict_to(ANY_LANGUAGES).is_empty


def test_restrict_to_never_grows():
    left = LanguageSet.of("german", "polish", "english")
    right = LanguageSet.of("polish", "english", "french")
    result = left.restrict_to(right)
    assert result == LanguageSet.of("polish", "english")
    assert len(result.languages) <= min(len(left.languages), len(right.languages))


def test_merge():
    assert LanguageSet.of("german").merge(LanguageSet.of("polish")) == LanguageSet.of("german", "polish")
    assert LanguageSet.of("german").merge(ANY_LANGUAGES).is_any
    assert NO_LANGUAGES.merge(LanguageSet.of("german")) == LanguageSet.of("german")


def test_language_set_predicates_and_str():
    german = LanguageSet.of("german")
    assert german.is_singleton
    assert german.first_language() == "german"
    assert not LanguageSet.of("german", "polish").is_singleton
    assert not ANY_LANGUAGES.is_singleton
    assert ANY_LANGUAGES.contains("hebrew")
    assert not german.contains("hebrew")
    assert str(ANY_LANGUAGES) == "any"
    assert str(LanguageSet.of("polish", "german")) == "german+polish"

    with pytest.raises(ValueError):
        NO_LANGUAGES.first_language()


# ════════════════════════════════════════════════════════════════════════════════
# PHONEMES AND EXPRESSIONS
# ════════════════════════════════════════════════════════════════════════════════


def test_phoneme_join_concatenates_and_intersects():
    left = Phoneme("S", LanguageSet.of("german", "polish"))
    right = Phoneme("v", LanguageSet.of("german"))
    joined = left.join(right)
    assert joined == Phoneme("Sv", LanguageSet.of("german"))
    assert str(joined) == "Sv[german]"


def test_phoneme_expr_single():
    expr = PhonemeExpr.parse("ts")
    assert expr.phonemes == (Phoneme("ts", ANY_LANGUAGES),)


def test_phoneme_expr_with_languages():
    expr = PhonemeExpr.parse("tS[english+spanish]")
    assert expr.phonemes == (Phoneme("tS", LanguageSet.of("english", "spanish")),)


def test_phoneme_expr_alternatives_keep_order():
    expr = PhonemeExpr.parse("(x[german]|S[french]|k)")
    assert [ph.text for ph in expr] == ["x", "S", "k"]
    assert len(expr) == 3
    assert expr.phonemes[2].languages.is_any


def test_phoneme_expr_trailing_pipe_adds_empty_alternative():
    expr = PhonemeExpr.parse("(e|)")
    assert [ph.text for ph in expr] == ["e", ""]


def test_phoneme_expr_empty_text_with_languages():
    expr = PhonemeExpr.parse("(h[english]|[french])")
    assert expr.phonemes[1] == Phoneme("", LanguageSet.of("french"))


@pytest.mark.parametrize("bad_expr", ["(a|b", "a[german", "(a|b[german)"])
def test_phoneme_expr_malformed(bad_expr):
    with pytest.raises(RuleFormatError):
        PhonemeExpr.parse(bad_expr)


# ════════════════════════════════════════════════════════════════════════════════
# PHONEME BUILDER
# ════════════════════════════════════════════════════════════════════════════════


def test_builder_empty_and_append():
    builder = PhonemeBuilder.empty(LanguageSet.of("german"))
    builder.append("ab")
    assert builder.phonemes == (Phoneme("ab", LanguageSet.of("german")),)
    assert builder.make_string() == "ab"


def test_builder_apply_cross_product_in_order():
    builder = PhonemeBuilder.empty(ANY_LANGUAGES)
    builder.apply(PhonemeExpr.parse("(a|b)"), 20)
    builder.apply(PhonemeExpr.parse("(x|y)"), 20)
    assert builder.make_string() == "ax|ay|bx|by"


def test_builder_apply_drops_incompatible_languages():
    builder = PhonemeBuilder.empty(ANY_LANGUAGES)
    builder.apply(PhonemeExpr.parse("(S[german]|sk[english])"), 20)
    builder.apply(PhonemeExpr.parse("(v[german]|w[english])"), 20)
    assert builder.phonemes == (
        Phoneme("Sv", LanguageSet.of("german")),
        Phoneme("skw", LanguageSet.of("english")),
    )


def test_builder_apply_respects_max_phonemes():
    builder = PhonemeBuilder.empty(ANY_LANGUAGES)
    builder.apply(PhonemeExpr.parse("(a|b|c)"), 2)
    assert builder.make_string() == "a|b"
    assert len(builder) == 2

    builder.apply(PhonemeExpr.parse("(x|y|z)"), 2)
    assert builder.make_string() == "ax|ay"


def test_builder_apply_can_become_empty():
    builder = PhonemeBuilder.empty(LanguageSet.of("french"))
    builder.apply(PhonemeExpr.parse("(v[german]|w[english])"), 20)
    assert len(builder) == 0
    assert builder.make_string() == ""

    builder.append("a")
    assert len(builder) == 0


def test_builder_merges_equal_texts():
    builder = PhonemeBuilder([Phoneme("a", LanguageSet.of("german")), Phoneme("a", LanguageSet.of("english"))])
    assert builder.phonemes == (Phoneme("a", LanguageSet.of("english", "german")),)


def test_builder_apply_merges_equal_texts():
    builder = PhonemeBuilder.empty(ANY_LANGUAGES)
    builder.apply(PhonemeExpr.parse("(a[german]|a[polish]|b)"), 20)
    assert builder.phonemes == (
        Phoneme("a", LanguageSet.of("german", "polish")),
        Phoneme("b", ANY_LANGUAGES),
    )


# ════════════════════════════════════════════════════════════════════════════════
# RULES
# ════════════════════════════════════════════════════════════════════════════════


def test_rule_contexts():
    rule = Rule.create("c", "", "[eiy]", "ts")
    assert rule.matches("ce", 0)
    assert not rule.matches("ca", 0)
    assert not rule.matches("c", 0)

    start_only = Rule.create("wr", "^", "", "r")
    assert start_only.matches("wright", 0)
    assert not start_only.matches("awright", 1)

    after_vowel = Rule.create("h", "[aeiou]", "", "")
    assert after_vowel.matches("ah", 1)
    assert not after_vowel.matches("th", 1)

    word_end = Rule.create("e", "[bcd]", "$", "(e|)")
    assert word_end.matches("abe", 2)
    assert not word_end.matches("abet", 2)


def test_rule_table_first_match_wins():
    table = RuleTable.from_rules(
        "test",
        [
            Rule.create("c", "", "[ei]", "ts"),
            Rule.create("ch", "", "", "x"),
            Rule.create("c", "", "", "k"),
            Rule.create("s", "", "", "s"),
        ],
    )
    assert len(table) == 4
    assert [rule.pattern for rule in table.rules_for("c")] == ["c", "ch", "c"]
    assert table.find_match("ce", 0).phoneme == PhonemeExpr.parse("ts")
    assert table.find_match("ch", 0).phoneme == PhonemeExpr.parse("x")
    assert table.find_match("ca", 0).phoneme == PhonemeExpr.parse("k")
    assert table.find_match("a", 0) is None


def test_rule_invalid_context():
    with pytest.raises(RuleFormatError):
        Rule.create("a", "[", "", "a")


# ════════════════════════════════════════════════════════════════════════════════
# LANGUAGE GUESSING
# ════════════════════════════════════════════════════════════════════════════════

# (name, expected languages)
GUESS_CASES = [
    ("schwa", LanguageSet.of("german")),
    ("Schwa", LanguageSet.of("german")),
    ("smith", LanguageSet.of("english")),
    ("schth", LanguageSet.of("english", "german")),
    ("abc", ANY_LANGUAGES),
    # "k" disqualifies english
    ("kowa", LanguageSet.of("german")),
    ("thk", ANY_LANGUAGES),
]


@pytest.mark.parametrize("name,expected", GUESS_CASES)
def test_guess_languages(pinned_registry, name, expected):
    guesser = pinned_registry.get_guesser(NameConvention.GENERIC)
    assert guesser.guess_languages(name) == expected


def test_guess_scores(pinned_registry):
    guesser = pinned_registry.get_guesser(NameConvention.GENERIC)
    assert guesser.scores("schwa") == {"english": 0, "german": 2}
    assert guesser.scores("thk") == {"german": 0}


def test_guesser_without_heuristics(pinned_registry):
    guesser = pinned_registry.get_guesser(NameConvention.ASHKENAZI)
    assert guesser.languages == ("english", "german")
    assert guesser.guess_languages("schwa").is_any


# ════════════════════════════════════════════════════════════════════════════════
# ENGINE
# ════════════════════════════════════════════════════════════════════════════════


def _engine(registry, convention=NameConvention.GENERIC, stage=RuleStage.APPROX, concatenate=True, **kwargs):
    return PhoneticEngine(convention, stage, concatenate, registry=registry, **kwargs)


# (name, language set or None to guess, expected encoding)
GENERIC_APPROX_CASES = [
    ("", None, ""),
    ("   ", None, ""),
    ("abc", None, "abk"),
    ("ABC", None, "abk"),
    ("ce", None, "tse"),
    # main rules branch per language, final rules merge "ah" endings
    ("schwa", ANY_LANGUAGES, "Sva|skwa"),
    ("schwa", LanguageSet.of("english", "german"), "Sva|skwa"),
    ("schth", None, "Sth|skth"),
    # guessed german uses the german table
    ("schwa", None, "Sva"),
    ("kowa", None, "kova"),
    ("thwa", LanguageSet.of("german"), "thva"),
    # english main table then english final table
    ("smith", None, "smit"),
    ("sha", LanguageSet.of("english"), "sa"),
    ("schwa", LanguageSet.of("english"), "schwa"),
    # every branch pruned
    ("wa", LanguageSet.of("french", "italian"), ""),
    # concatenated words and hyphens
    ("abc ca", None, "abk ka"),
    ("abc-ca", None, "abk ka"),
    # prefixes
    ("d'abc", None, "(abk)-(dabk)"),
    ("van abc", None, "(abk)-(vanabk)"),
]


@pytest.mark.parametrize("name,language_set,expected", GENERIC_APPROX_CASES)
def test_generic_approx_encoding(pinned_registry, name, language_set, expected):
    engine = _engine(pinned_registry)
    assert engine.encode(name, language_set) == expected


def test_exact_stage_skips_approx_rules(pinned_registry):
    engine = _engine(pinned_registry, stage=RuleStage.EXACT)
    assert engine.encode("sha", LanguageSet.of("english")) == "Sa"
    assert engine.encode("schwa", ANY_LANGUAGES) == "Sva|Svah|skwa|skwah"


def test_generic_prefix_structure(pinned_registry):
    engine = _engine(pinned_registry)
    assert engine.encode("d'angelo") == "(" + engine.encode("angelo") + ")-(" + engine.encode("dangelo") + ")"
    assert engine.encode("D'Angelo") == "(angelo)-(dangelo)"


def test_multi_word_without_concatenation(pinned_registry):
    engine = _engine(pinned_registry, concatenate=False)
    assert engine.encode("abc ca") == "abk-ka"
    assert engine.encode("abc ca") == "-".join(engine.encode(word) for word in ("abc", "ca"))
    assert engine.encode("abc") == "abk"


def test_max_phonemes_one(pinned_registry):
    engine = _engine(pinned_registry, max_phonemes=1)
    result = engine.encode("schwa", ANY_LANGUAGES)
    assert result == "Sva"
    assert "|" not in result


def test_final_rules_merge_language_sets(pinned_registry):
    engine = _engine(pinned_registry)
    final_rules = RuleTable.from_rules("test", [Rule.create("b", "", "", "a")])
    builder = PhonemeBuilder([Phoneme("a", LanguageSet.of("german")), Phoneme("b", LanguageSet.of("polish"))])

    result = engine._apply_final_rules(builder, final_rules)
    assert result.phonemes == (Phoneme("a", LanguageSet.of("german", "polish")),)


def test_final_rules_sort_by_text(pinned_registry):
    engine = _engine(pinned_registry)
    final_rules = RuleTable.from_rules("test", [Rule.create("z", "", "", "s")])
    builder = PhonemeBuilder([Phoneme("bz", LanguageSet.of("german")), Phoneme("a", ANY_LANGUAGES)])

    result = engine._apply_final_rules(builder, final_rules)
    assert result.phonemes == (Phoneme("a", ANY_LANGUAGES), Phoneme("bs", LanguageSet.of("german")))


def test_empty_final_table_keeps_order(pinned_registry):
    engine = _engine(pinned_registry)
    builder = PhonemeBuilder([Phoneme("b"), Phoneme("a")])
    assert engine._apply_final_rules(builder, RuleTable.from_rules("empty", [])) is builder
    assert builder.make_string() == "b|a"


def test_encoding_is_deterministic(pinned_registry):
    engine = _engine(pinned_registry)
    first = [engine.encode(name) for name in ("schwa", "schth", "d'abc", "abc ca")]
    second = [engine.encode(name) for name in ("schwa", "schth", "d'abc", "abc ca")]
    assert first == second


# (convention, concatenate, name, expected)
PREFIX_WORD_CASES = [
    (NameConvention.ASHKENAZI, True, "ben abc", "abk"),
    (NameConvention.ASHKENAZI, True, "van de abc", "abk"),
    (NameConvention.ASHKENAZI, True, "ben", ""),
    (NameConvention.ASHKENAZI, False, "abc ca", "abk-ka"),
    # one surviving word: the first original word is encoded
    (NameConvention.ASHKENAZI, False, "ben abc", "ben"),
    (NameConvention.ASHKENAZI, False, "von ben", ""),
    (NameConvention.SEPHARDIC, True, "al abc", "abk"),
    (NameConvention.SEPHARDIC, True, "d'abc", "abk"),
    (NameConvention.SEPHARDIC, True, "el d'abc", "abk"),
    (NameConvention.SEPHARDIC, False, "abc d'ca", "abk-ka"),
    # only the generic convention splits prefixes into two encodings
    (NameConvention.ASHKENAZI, True, "abc van", "abk"),
    # "de" is checked before "dela" and "de la"
    (NameConvention.GENERIC, True, "de la cruz", "(la kruz)-((kruz)-(delakruz))"),
    (NameConvention.GENERIC, True, "dela cruz", "(kruz)-(delakruz)"),
]


@pytest.mark.parametrize("convention,concatenate,name,expected", PREFIX_WORD_CASES)
def test_prefix_words(pinned_registry, convention, concatenate, name, expected):
    engine = _engine(pinned_registry, convention=convention, concatenate=concatenate)
    assert engine.encode(name) == expected


def test_custom_prefixes(pinned_registry):
    config = BeiderMorseConfig.create_default().with_name_prefixes(NameConvention.GENERIC, ("zu",))
    engine = _engine(pinned_registry, config=config)
    assert engine.encode("zu abc") == "(abk)-(zuabk)"
    assert engine.encode("van abc") == "van abk"


def test_config_default_max_phonemes(pinned_registry):
    config = BeiderMorseConfig.create_default().with_default_max_phonemes(1)
    engine = _engine(pinned_registry, config=config)
    assert engine.max_phonemes == 1
    assert engine.encode("schwa", ANY_LANGUAGES) == "Sva"


def test_engine_properties(pinned_registry):
    engine = _engine(pinned_registry, stage=RuleStage.EXACT, concatenate=False)
    assert engine.convention is NameConvention.GENERIC
    assert engine.final_stage is RuleStage.EXACT
    assert engine.concatenate is False
    assert engine.max_phonemes == 20
    assert engine.guesser.convention is NameConvention.GENERIC


def test_main_stage_rejected(pinned_registry):
    with pytest.raises(ValueError):
        _engine(pinned_registry, stage=RuleStage.MAIN)


@pytest.mark.parametrize("max_phonemes", [0, -3])
def test_invalid_max_phonemes(pinned_registry, max_phonemes):
    with pytest.raises(ValueError):
        _engine(pinned_registry, max_phonemes=max_phonemes)
