"""Beider-Morse phonetic encoding of personal names."""

from phonetic_names.beider_morse import (
    ANY_LANGUAGES,
    NO_LANGUAGES,
    BeiderMorseConfig,
    BeiderMorseError,
    BuiltinRuleSource,
    DirectoryRuleSource,
    LanguageGuesser,
    LanguageSet,
    NameConvention,
    Phoneme,
    PhonemeBuilder,
    PhonemeExpr,
    PhoneticEngine,
    Rule,
    RuleConfigurationError,
    RuleFormatError,
    RuleStage,
    RuleTable,
    RuleTableRegistry,
    clear_cache,
    encode_name,
    get_cache_info,
    guess_languages,
)

__all__ = [
    "ANY_LANGUAGES",
    "NO_LANGUAGES",
    "BeiderMorseConfig",
    "BeiderMorseError",
    "BuiltinRuleSource",
    "DirectoryRuleSource",
    "LanguageGuesser",
    "LanguageSet",
    "NameConvention",
    "Phoneme",
    "PhonemeBuilder",
    "PhonemeExpr",
    "PhoneticEngine",
    "Rule",
    "RuleConfigurationError",
    "RuleFormatError",
    "RuleStage",
    "RuleTable",
    "RuleTableRegistry",
    "clear_cache",
    "encode_name",
    "get_cache_info",
    "guess_languages",
]
