"""Text matching for wake phrases in noisy transcriptions."""

import re

_PUNCTUATION = re.compile(r"[.,!?]")
_WHITESPACE = re.compile(r"\s+")

# Known misrecognitions of the canonical wake word
PHONETIC_VARIANTS = {
    "clanker": ("flanker", "clank her", "clanger", "clencher", "clinker"),
}


def normalize(text: str) -> str:
    """Lower-case, drop .,!? and collapse whitespace."""
    text = _PUNCTUATION.sub("", text.lower())
    return _WHITESPACE.sub(" ", text).strip()


def phrase_variants(phrase: str) -> list[str]:
    """Alternate spellings of a wake phrase from the known confusions."""
    variants = []
    for canonical, alternates in PHONETIC_VARIANTS.items():
        if canonical in phrase:
            variants.extend(phrase.replace(canonical, alt) for alt in alternates)
    return variants


def matches_wake_phrase(text: str, phrase: str) -> bool:
    """True if normalized text contains, starts with, or fuzzily contains phrase."""
    clean_text = normalize(text)
    clean_phrase = _WHITESPACE.sub(" ", phrase.lower()).strip()
    if not clean_phrase:
        return False
    if clean_phrase in clean_text:
        return True
    if clean_text.startswith(clean_phrase):
        return True
    return any(v in clean_text for v in phrase_variants(clean_phrase))


def find_wake_phrase(text: str, phrases) -> str | None:
    """Return the first configured phrase found in text, or None."""
    for phrase in phrases:
        if matches_wake_phrase(text, phrase):
            return phrase
    return None


def is_wake_word_only(transcript: str, phrases) -> bool:
    """True if the transcript is just a wake phrase, optionally trailed by "." or "...".

    Comparison ignores case, surrounding whitespace and the punctuation
    that normalize() strips.
    """
    cleaned = transcript.lower().strip()
    stripped = normalize(cleaned)
    for phrase in phrases:
        ww = _WHITESPACE.sub(" ", phrase.lower()).strip()
        if cleaned in (ww, ww + ".", ww + "..."):
            return True
        if stripped == ww:
            return True
    return False
