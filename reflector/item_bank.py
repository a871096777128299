"""
Item Bank — Immutable Reference Data

The Baseline Mirror assessment: 36 scored items balanced across
four constructs.

  - EAI (Epistemic Autonomy Index):     12 items
  - RF  (Reflective Flexibility):         8 items
  - SA  (Source Awareness):               8 items
  - ARD (Affect Regulation in Debate):    8 items

Each construct mixes forward and reverse-coded rating items (1-7)
with scenario items whose options carry a pre-assigned 1-7 score.

The bank is data, not logic. It is loaded once at import, validated
once, and never mutated. A broken bank is a configuration error and
fails at import time, not at scoring time.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

from reflector.exceptions import ItemBankError

BANK_VERSION = "baseline_mirror_v1"

Construct = Literal["EAI", "RF", "SA", "ARD"]
ItemType = Literal["rating", "scenario"]

CONSTRUCTS: tuple[str, ...] = ("EAI", "RF", "SA", "ARD")

SCALE_MIN = 1
SCALE_MAX = 7


# ============================================================
# DATA STRUCTURES
# ============================================================

@dataclass(frozen=True)
class ScenarioOption:
    """One labeled choice of a scenario item."""
    id: str
    text: str
    score: int                 # 1-7, pre-assigned
    mechanism: str = ""        # What choosing this option reveals


@dataclass(frozen=True)
class ScoredItem:
    """A single scored assessment item."""
    id: str
    construct: str
    item_type: str             # "rating" | "scenario"
    prompt: str
    reverse_coded: bool = False
    options: tuple[ScenarioOption, ...] = ()
    schema_tag: Optional[str] = None


def _rating(
    item_id: str, construct: str, prompt: str,
    reverse: bool = False, schema_tag: Optional[str] = None,
) -> ScoredItem:
    return ScoredItem(
        id=item_id, construct=construct, item_type="rating",
        prompt=prompt, reverse_coded=reverse, schema_tag=schema_tag,
    )


def _scenario(
    item_id: str, construct: str, prompt: str,
    options: list[tuple[str, str, int, str]],
) -> ScoredItem:
    return ScoredItem(
        id=item_id, construct=construct, item_type="scenario", prompt=prompt,
        options=tuple(ScenarioOption(*opt) for opt in options),
    )


# ============================================================
# BASELINE MIRROR ITEMS
# ============================================================

BASELINE_MIRROR_ITEMS: tuple[ScoredItem, ...] = (
    # --- Epistemic Autonomy Index (EAI) ---
    _rating("eai_01", "EAI", "Before sharing an opinion, I scan for whether it's truly mine."),
    _rating("eai_02", "EAI", "When my favorite commentator changes their view, I usually update mine too.",
            reverse=True, schema_tag="dependence"),
    _rating("eai_03", "EAI", "If my group stopped agreeing with a belief, I'd keep my view if the evidence still supports it."),
    _rating("eai_04", "EAI", "I find it hard to hold an opinion that my community would disapprove of.",
            reverse=True, schema_tag="approval_seeking"),
    _rating("eai_05", "EAI", "I can tell when an idea is mine versus something I absorbed from others."),
    _rating("eai_06", "EAI", "My beliefs mostly match those of people I admire.",
            reverse=True, schema_tag="dependence"),
    _rating("eai_07", "EAI", "When evaluating information, I prioritize whether it's true over whether it supports my side."),
    _rating("eai_08", "EAI", "If everyone around me believes something, I assume it's probably correct.",
            reverse=True),
    _rating("eai_09", "EAI", "I regularly check whether my positions come from my own reasoning or from tribal loyalty."),
    _rating("eai_10", "EAI", "Disagreeing with authority figures makes me feel anxious or guilty.",
            reverse=True, schema_tag="punitive_parent"),
    _scenario("eai_11", "EAI", "A highly respected leader in your community takes a position you initially disagreed with.", [
        ("a", "I reconsider; they probably see something I don't", 2, "authority_deference"),
        ("b", "I investigate their reasoning while maintaining my initial doubt", 7, "autonomous_inquiry"),
        ("c", "I assume they've been captured by bad incentives", 4, "defensive_certainty"),
        ("d", "I check if this changes my respect for them before evaluating the claim", 3, "identity_first_reasoning"),
    ]),
    _scenario("eai_12", "EAI", "You realize a belief you hold is unpopular with both your in-group and people you respect.", [
        ("a", "I quietly drop it; the social cost isn't worth it", 1, "social_pressure_capitulation"),
        ("b", "I keep it but stop mentioning it publicly", 4, "private_autonomy"),
        ("c", "I double-check my reasoning, then keep or revise based on evidence alone", 7, "evidence_primary"),
        ("d", "I get more vocal about it; consensus is often wrong", 5, "contrarian_identity"),
    ]),

    # --- Reflective Flexibility (RF) ---
    _rating("rf_01", "RF", "I can list specific evidence that would change my mind about my strongest beliefs."),
    _rating("rf_02", "RF", "Once I've formed a strong opinion, new evidence rarely shifts it.", reverse=True),
    _rating("rf_03", "RF", "I enjoy listing what could prove me wrong about a belief I hold."),
    _rating("rf_04", "RF", "Changing my mind feels like weakness or failure.",
            reverse=True, schema_tag="unrelenting_standards"),
    _rating("rf_05", "RF", "I've meaningfully updated at least one major belief in the past year."),
    _rating("rf_06", "RF", "When I encounter strong counter-evidence, I look for flaws in it before considering its merit.",
            reverse=True),
    _scenario("rf_07", "RF", "A trusted friend presents compelling evidence against one of your core positions.", [
        ("a", "I immediately point out weaknesses in their evidence", 2, "defensive_refutation"),
        ("b", "I acknowledge it's interesting and say I'll think about it", 5, "polite_deflection"),
        ("c", "I ask them to help me understand what I might be missing", 7, "genuine_inquiry"),
        ("d", "I feel hurt that they'd challenge something important to me", 1, "emotional_fusion"),
    ]),
    _scenario("rf_08", "RF", "You discover data that contradicts a position you've publicly defended.", [
        ("a", "I look for methodological flaws in the data", 2, "motivated_skepticism"),
        ("b", "I revise my view and publicly acknowledge the update", 7, "intellectual_honesty"),
        ("c", "I privately update but don't mention it; too embarrassing", 4, "private_revision"),
        ("d", "I seek out data that re-confirms my original position", 1, "confirmation_seeking"),
    ]),

    # --- Source Awareness (SA) ---
    _rating("sa_01", "SA", "I can name the first three places I heard the claims I repeat most often."),
    _rating("sa_02", "SA", "I rarely think about where my information comes from; I just know it.", reverse=True),
    _rating("sa_03", "SA", "Before sharing a claim, I trace it back to a primary source."),
    _rating("sa_04", "SA", "Most of my news and information comes from 3 or fewer sources.", reverse=True),
    _rating("sa_05", "SA", "I actively seek out sources that disagree with my current views."),
    _rating("sa_06", "SA", "I trust information more when it confirms what I already believe.", reverse=True),
    _scenario("sa_07", "SA", "Someone asks you where you learned a fact you just stated.", [
        ("a", "I can immediately name the source and approximate date", 7, "high_source_tracking"),
        ("b", "I remember the general source (podcast, article, friend)", 5, "moderate_source_tracking"),
        ("c", "I'm not sure; it's just something I know", 2, "source_amnesia"),
        ("d", "I realize I may have absorbed it without verification", 4, "source_awareness_emerging"),
    ]),
    _scenario("sa_08", "SA", "You notice all your information on a topic comes from sources that share your perspective.", [
        ("a", "That makes sense; they're the ones who understand it correctly", 1, "epistemic_closure"),
        ("b", "I seek out at least one high-quality dissenting source", 7, "deliberate_diversification"),
        ("c", "I note it but don't change my reading habits", 3, "awareness_without_action"),
        ("d", "I look for a \"neutral\" source to balance it out", 5, "centrist_correction"),
    ]),

    # --- Affect Regulation in Debate (ARD) ---
    _rating("ard_01", "ARD", "When someone refutes \"my side,\" I can stay curious for at least one minute."),
    _rating("ard_02", "ARD", "Hearing someone praise a figure I dislike makes me feel angry or disgusted.", reverse=True),
    _rating("ard_03", "ARD", "I notice my emotional reaction to information before deciding if it's true."),
    _rating("ard_04", "ARD", "When my values are challenged, I feel it physically (tension, heat, racing heart).",
            reverse=True),
    _rating("ard_05", "ARD", "I can engage with ideas I find morally repugnant without losing my composure."),
    _rating("ard_06", "ARD", "If someone from \"the other side\" makes a good point, I feel betrayed or confused.",
            reverse=True, schema_tag="identity_fusion"),
    _scenario("ard_07", "ARD", "During a discussion, someone misrepresents a position you care deeply about.", [
        ("a", "I feel anger rise and immediately correct them with edge in my voice", 2, "reactive_defense"),
        ("b", "I notice my emotion, pause, then offer a clarification", 7, "regulated_response"),
        ("c", "I disengage; this person isn't worth engaging with", 3, "defensive_withdrawal"),
        ("d", "I correct them but feel tense and upset for the next hour", 4, "lingering_dysregulation"),
    ]),
    _scenario("ard_08", "ARD", "You read a news headline that triggers strong negative emotion about \"the other side.\"", [
        ("a", "I share it immediately with a commentary expressing my outrage", 1, "emotional_contagion"),
        ("b", "I notice the emotional pull and check the source before reacting", 7, "metacognitive_regulation"),
        ("c", "I read it, feel validated, and move on", 3, "confirmation_comfort"),
        ("d", "I check if the headline matches the article content", 6, "critical_verification"),
    ]),
)


# ============================================================
# CONSTRUCT METADATA
# ============================================================

CONSTRUCT_METADATA: dict[str, dict] = {
    "EAI": {
        "name": "Epistemic Autonomy Index",
        "description": "Measures independence in belief formation from external identities and authorities",
        "interpretation": {
            "high": "You demonstrate strong independence in forming and maintaining beliefs based on evidence rather than social pressure",
            "moderate": "You show some autonomy but may defer to group consensus or authority in certain domains",
            "low": "Your beliefs are substantially shaped by social identity, authority figures, or group expectations",
        },
    },
    "RF": {
        "name": "Reflective Flexibility",
        "description": "Measures willingness and ability to revise beliefs in light of counter-evidence",
        "interpretation": {
            "high": "You actively seek disconfirmation and update beliefs when evidence warrants",
            "moderate": "You're open to revision in theory but may resist in practice, especially for core beliefs",
            "low": "You tend to defend existing positions and experience belief revision as threatening",
        },
    },
    "SA": {
        "name": "Source Awareness",
        "description": "Measures conscious tracking of information provenance and source diversity",
        "interpretation": {
            "high": "You actively track where beliefs originate and deliberately diversify information sources",
            "moderate": "You have some awareness of sources but don't consistently track or diversify",
            "low": "You experience beliefs as \"just known\" without clear memory of their origins",
        },
    },
    "ARD": {
        "name": "Affect Regulation in Debate",
        "description": "Measures capacity to manage emotional reactivity when beliefs are challenged",
        "interpretation": {
            "high": "You notice emotional triggers and maintain curiosity even when values are challenged",
            "moderate": "You can regulate affect in low-stakes debates but struggle when identity is threatened",
            "low": "Counter-evidence or out-group arguments trigger strong emotional reactivity",
        },
    },
}

# Target internal consistency per construct
RELIABILITY_TARGETS: dict[str, float] = {c: 0.70 for c in CONSTRUCTS}


# ============================================================
# STARTUP VALIDATION
# ============================================================

def validate_item_bank(items: tuple[ScoredItem, ...] | list[ScoredItem]) -> None:
    """
    Check an item bank for configuration errors.

    Raises ItemBankError on duplicate ids, unknown constructs, constructs
    with no items, scenario items without options, option scores off the
    1-7 scale, or rating items that carry options.
    """
    seen: set[str] = set()
    per_construct = {c: 0 for c in CONSTRUCTS}

    for item in items:
        if item.id in seen:
            raise ItemBankError(f"Duplicate item id: {item.id}", {"item_id": item.id})
        seen.add(item.id)

        if item.construct not in per_construct:
            raise ItemBankError(
                f"Item {item.id} references unknown construct {item.construct!r}",
                {"item_id": item.id, "construct": item.construct},
            )
        per_construct[item.construct] += 1

        if item.item_type == "scenario":
            if not item.options:
                raise ItemBankError(f"Scenario item {item.id} has no options", {"item_id": item.id})
            for opt in item.options:
                if not SCALE_MIN <= opt.score <= SCALE_MAX:
                    raise ItemBankError(
                        f"Option {item.id}/{opt.id} score {opt.score} is off the "
                        f"{SCALE_MIN}-{SCALE_MAX} scale",
                        {"item_id": item.id, "option_id": opt.id},
                    )
        elif item.item_type == "rating":
            if item.options:
                raise ItemBankError(f"Rating item {item.id} must not carry options", {"item_id": item.id})
        else:
            raise ItemBankError(
                f"Item {item.id} has unknown type {item.item_type!r}", {"item_id": item.id},
            )

    empty = [c for c, n in per_construct.items() if n == 0]
    if empty:
        raise ItemBankError(f"Constructs with no registered items: {', '.join(empty)}", {"constructs": empty})


validate_item_bank(BASELINE_MIRROR_ITEMS)

_ITEM_INDEX: dict[str, ScoredItem] = {item.id: item for item in BASELINE_MIRROR_ITEMS}


def get_item(item_id: str) -> Optional[ScoredItem]:
    """Look up a bank item by id. Unknown ids return None."""
    return _ITEM_INDEX.get(item_id)


def items_for(construct: str) -> list[ScoredItem]:
    """All bank items measuring one construct, in bank order."""
    return [item for item in BASELINE_MIRROR_ITEMS if item.construct == construct]
