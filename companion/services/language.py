"""Response-language selection for companion replies.

Text messages carry an explicit language picked in the chat UI. Voice
transcripts do not, so the language is inferred from script and from a small
vocabulary of romanized Hindi and English function words.
"""

from __future__ import annotations

import re

ENGLISH = "english"
HINGLISH = "hinglish"
HINDI = "hindi"
CHINESE = "chinese"

SUPPORTED_LANGUAGES = (ENGLISH, HINGLISH, HINDI, CHINESE)

_CJK_RE = re.compile(r"[\u4e00-\u9fff]")
_DEVANAGARI_RE = re.compile(r"[\u0900-\u097f]")

# Romanized Hindi words that do not double as common English words.
_ROMAN_HINDI_WORDS = (
    "aap", "kaise", "kaisa", "kaisi", "hai", "hain", "hoon", "hoga", "hogi",
    "tha", "thi", "kya", "koi", "mera", "meri", "tera", "teri", "tumhara",
    "uska", "kuch", "nahi", "nahin", "haan", "theek", "accha", "acha", "bura",
    "ghar", "paani", "khana", "kaam", "dil", "dost", "namaste", "kaha", "kahan",
    "kab", "kyun", "kitna", "kaun", "kiska", "kar", "karna", "karo", "kiya",
    "kiye", "mila", "gaya", "gayi", "gaye", "dekh", "dekha", "dekho",
    "suna", "suno", "bola", "bolo", "aaya", "aayi", "jaa", "jao", "jaana",
    "chalo", "ruko", "yaar", "bhai", "behen", "mujhe", "tumse",
    "pyaar", "raha", "rahi", "rahe", "bahut", "abhi", "aaj",
)

_ENGLISH_WORDS = (
    "the", "and", "or", "but", "with", "for", "you", "me", "my", "your", "his",
    "her", "this", "that", "what", "when", "where", "why", "how", "can", "will",
    "would", "should", "could", "have", "has", "had", "do", "does", "did", "get",
    "got", "make", "made", "take", "took", "give", "gave", "go", "went", "come",
    "came", "see", "saw", "know", "knew", "think", "thought", "want", "like",
    "love", "need", "help", "work", "time", "good", "bad", "big", "small", "new",
    "old", "right", "wrong", "yes", "no", "ok", "okay", "nice", "great",
    "awesome", "cool", "hello", "hi", "bye", "thanks", "thank", "sorry",
    "please", "welcome", "today", "are", "is", "am",
)

_ROMAN_HINDI_RE = re.compile(r"\b(?:%s)\b" % "|".join(_ROMAN_HINDI_WORDS), re.IGNORECASE)
_ENGLISH_WORD_RE = re.compile(r"\b(?:%s)\b" % "|".join(_ENGLISH_WORDS), re.IGNORECASE)

_INSTRUCTIONS = {
    ENGLISH: (
        "MANDATORY: Respond ONLY in English. Do not mix in Hindi or any other "
        "language."
    ),
    HINGLISH: (
        "MANDATORY: Respond ONLY in Hinglish: Hindi words written in the Latin "
        "alphabet, mixed naturally with English the way friends text in India "
        "(for example 'kya kar rahe ho aaj', 'main theek hoon')."
    ),
    HINDI: (
        "MANDATORY: Respond ONLY in Hindi written in Devanagari script. Do not "
        "use English words or Latin script."
    ),
    CHINESE: (
        "MANDATORY: Respond ONLY in Chinese (中文). Do not mix in English words."
    ),
}


def normalize_language(language: str | None) -> str:
    """Map a client-supplied language tag onto a supported one."""
    value = (language or "").strip().lower()
    return value if value in SUPPORTED_LANGUAGES else ENGLISH


def detect_language(text: str) -> str:
    """Classify *text* as english, hinglish, hindi or chinese."""
    if _CJK_RE.search(text):
        return CHINESE
    if _DEVANAGARI_RE.search(text):
        return HINDI

    if _ROMAN_HINDI_RE.search(text):
        if _ENGLISH_WORD_RE.search(text):
            return HINGLISH
        return HINDI

    return ENGLISH


def language_instruction(language: str) -> str:
    return _INSTRUCTIONS[normalize_language(language)]
