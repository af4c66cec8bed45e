"""Versioned multilingual phrase and keyword tables used by the classifiers.

One table per detection concern so each can be tested and extended per language
without touching classifier logic. Bump `PHRASE_TABLE_VERSION` when a table
changes meaning (not when adding a synonym).

Matching conventions (applied by the classifiers, not here):
    - Substring tables: lowercase text contains the phrase.
    - Exact tables: whole trimmed lowercase message equals the phrase.
    - Token tables: counted per whitespace/punctuation-separated token.
"""

PHRASE_TABLE_VERSION = "2024.2"


# =========================================================
# LANGUAGE MARKERS (Devanagari disambiguation, token match)
# =========================================================
# Checked in priority order: Marathi first, then Hindi. "कृपया" is omitted
# from the Marathi list because it is common in Hindi.

MARATHI_MARKERS = (
    "आहे", "काय", "मी", "तुम्ही", "कसे", "शेती", "पीक", "माहिती", "होते",
    "आहेत", "नाही", "माझ्या", "करावे",
)

HINDI_MARKERS = (
    "है", "कैसे", "कृपया", "मौसम", "खेती", "फसल", "बारिश", "गर्मी", "क्यों", "क्या",
    "हैं", "मेरी", "मेरे", "करूं",
)


# =========================================================
# COMPLEXITY SIGNALS (token match)
# =========================================================

CONJUNCTION_WORDS = frozenset({
    # English
    "and", "or", "but", "then", "because", "so", "also",
    # Hindi
    "और", "या", "लेकिन", "क्योंकि", "फिर",
    # Marathi
    "आणि", "किंवा", "पण",
})

DOMAIN_KEYWORDS = frozenset({
    "weather", "rain", "soil", "fertilizer", "pest", "pests", "disease",
    "irrigation", "yield", "variety", "spray", "dose", "market",
    "मौसम", "बारिश", "मिट्टी", "खाद", "कीट", "रोग", "सिंचाई", "उपज", "छिड़काव",
})


# =========================================================
# DETAIL REQUEST (substring match)
# =========================================================

DETAIL_PHRASES = (
    "elaborate",
    "in detail",
    "detailed",
    "step by step",
    "explain",
    "विस्तार",
    "विस्तृत",
    "समझाएं",
    "डिटेल",
)


# =========================================================
# ELABORATION-ONLY (exact match)
# =========================================================

ELABORATION_ONLY_PHRASES = frozenset({
    "elaborate",
    "expand",
    "more detail",
    "detail",
    "in detail",
    "विस्तार",
    "विस्तृत",
    "समझाएं",
    "और बताएं",
    "और बताइए",
})


# =========================================================
# FOLLOW-UP (substring match)
# =========================================================

FOLLOW_UP_PHRASES = (
    "what should i do",
    "what do i do",
    "next step",
    "next steps",
    "how do i fix",
    "how to fix",
    "what can i do",
    "what now",
    "what should i do next",
    "how do i proceed",
    "solution",
    "treatment",
    "fix this",
    "what about it",
    "क्या करूं",
    "अब क्या करूं",
    "क्या करना चाहिए",
    "अगला कदम",
    "मैं क्या करूं",
    "उपाय क्या है",
)


# =========================================================
# AGRICULTURE TOPICS (substring match)
# =========================================================

TOPIC_KEYWORDS = (
    "wheat", "rice", "cotton", "soy", "soybean", "mustard", "maize",
    "sugarcane", "tomato", "potato",
    "pest", "disease", "fungus", "insect",
    "fertilizer", "nutrient", "irrigation", "water", "soil", "rain", "weather",
    "फसल", "कीट", "रोग", "खाद", "सिंचाई", "मिट्टी", "बारिश", "मौसम",
    "पीक", "किड",
    "કૃષિ",
)
