"""
Romance-Scam Pattern Catalog
=============================
Static, versioned table of keyword/phrase rules used by the chat
classifier. Each rule belongs to one risk category and carries the
fixed warning text shown to the user when it is the first rule of
its category to match.

Categories (declaration order is the order concerns are reported in):
- Urgency:          false deadlines, emergencies, stranded-abroad stories
- Financial:        money requests, untraceable payment channels, investment pitches
- EmotionalAppeal:  love-bombing, sickness/accident stories, scammer personas
- GuiltTrip:        "if you really loved me" pressure
- GrammarAnomaly:   scripted or non-native stock phrases

All patterns are matched against lower-cased text. Rules are loaded
once at import and never mutated.
"""

import re
from dataclasses import dataclass

from lovescan.schemas import Category

CATALOG_VERSION = "2024.06.1"

CATEGORY_ORDER = (
    Category.URGENCY,
    Category.FINANCIAL,
    Category.EMOTIONAL_APPEAL,
    Category.GUILT_TRIP,
    Category.GRAMMAR_ANOMALY,
)


@dataclass(frozen=True)
class PatternRule:
    label: str
    category: Category
    matcher: re.Pattern
    warning: str


# ==============================
# RULE TABLE
# ==============================

PATTERN_RULES = (
    # --- Urgency ---
    PatternRule(
        label="false_urgency",
        category=Category.URGENCY,
        # no trailing boundary so "urgently" and "hurrying" still count
        matcher=re.compile(r"\b(?:urgent|emergenc|asap\b|quickly|hurry|immediately)"),
        warning="Message creates false urgency - common in scams.",
    ),
    PatternRule(
        label="stranded_abroad",
        category=Category.URGENCY,
        matcher=re.compile(
            r"\b(?:stuck abroad|stranded|stuck at the airport|held at customs|customs fee)"
        ),
        warning="Claims of being stranded abroad are a classic pretext for urgent money.",
    ),

    # --- Financial ---
    PatternRule(
        label="money_request",
        category=Category.FINANCIAL,
        matcher=re.compile(r"\$|\busd\b|\bmoney\b|\bpayments?\b|\btransfer|\bbank\b|\baccount\b"),
        warning="Suspicious financial request detected.",
    ),
    PatternRule(
        label="untraceable_payment",
        category=Category.FINANCIAL,
        matcher=re.compile(
            r"\b(?:western union|moneygram|wire (?:money|transfer)|gift ?cards?|itunes cards?"
            r"|steam cards?|bitcoin|btc|usdt|crypto(?:currency)?)\b"
        ),
        warning="Request involves an untraceable payment channel such as gift cards or crypto.",
    ),
    PatternRule(
        label="investment_pitch",
        category=Category.FINANCIAL,
        matcher=re.compile(
            r"\b(?:investment opportunity|business proposal|guaranteed returns?|trading platform)\b"
        ),
        warning="Investment pitch detected - romance scams often pivot to fake investments.",
    ),

    # --- Emotional appeal ---
    PatternRule(
        label="emotional_manipulation",
        category=Category.EMOTIONAL_APPEAL,
        # "ill" is matched separately so that "i'll" is not read as sickness
        matcher=re.compile(
            r"\b(?:lov(?:e|es|ed|ing)|trust|believe|help|sick|hospital(?:ized)?|surgery|accident)\b"
            r"|(?<!')\bill\b"
        ),
        warning="Emotional manipulation detected - common in scams.",
    ),
    PatternRule(
        label="love_bombing",
        category=Category.EMOTIONAL_APPEAL,
        matcher=re.compile(r"\b(?:my darling|my heart|soul ?mate|my queen|my king|my everything)\b"),
        warning="Excessive terms of endearment early in contact.",
    ),
    PatternRule(
        label="scammer_persona",
        category=Category.EMOTIONAL_APPEAL,
        matcher=re.compile(
            r"\b(?:military|deployed|peacekeeping|army|soldier|oil rig|offshore|contractor"
            r"|widow(?:er)?|lost my (?:wife|husband))\b"
        ),
        warning="Story matches a common scammer persona such as a deployed soldier or widower.",
    ),

    # --- Guilt trip ---
    PatternRule(
        label="guilt_trip",
        category=Category.GUILT_TRIP,
        matcher=re.compile(r"don['’]?t care|thought you|if you really|\bprove\b"),
        warning="Guilt-tripping tactics detected.",
    ),

    # --- Grammar anomaly ---
    PatternRule(
        label="scripted_phrasing",
        category=Category.GRAMMAR_ANOMALY,
        matcher=re.compile(
            r"\b(?:am from|i am loving you|how are you doing|how was your night"
            r"|good morning my love|good night my love|i miss you so much)\b"
        ),
        warning="Scripted or non-native phrasing often seen in scam messages.",
    ),
)


def rules_for(category: Category) -> tuple:
    """All rules of one category, in declaration order."""
    return tuple(rule for rule in PATTERN_RULES if rule.category == category)
