"""
Fixed sentence banks for the V1 classification.

Every string here is part of the verifiable output. Changing any of them
changes what verification expects, so edits require a schema version bump.
"""

from types import MappingProxyType


# Orientation labels
HYBRID = "Civic Institutional Hybrid"
STEWARD = "Institutional Steward"
PARTICIPATION = "Civic Participation Advocate"
COHESION = "Civic Cohesion Builder"
BALANCE = "Civic Balance Profile"
HYBRID_COHESION = "Civic Institutional Hybrid (Cohesion Emphasis)"

# Declaration order is the tie-break order.
CANDIDATE_ORDER = (HYBRID, STEWARD, PARTICIPATION, COHESION, BALANCE)

MEANINGS = MappingProxyType({
    HYBRID: (
        "You value strong institutions and reform, while also strongly supporting structured citizen "
        "input beyond elections. You tend to prefer transparency and accountability over ideological alignment."
    ),
    STEWARD: (
        "You prioritize stability and reform within existing institutions. You tend to prefer measured change "
        "and credible governance structures over disruptive approaches."
    ),
    PARTICIPATION: (
        "You strongly support ongoing citizen input. You may be skeptical of institutions when they feel "
        "unresponsive, and you favor mechanisms that increase transparency and feedback."
    ),
    COHESION: (
        "You emphasize both shared civic identity and practical support systems that promote national "
        "stability. You tend to value unity, responsibility, and constructive reform."
    ),
    BALANCE: (
        "Your responses suggest a balanced approach to civic tradeoffs, with context-dependent views across "
        "institutions, liberty, and collective needs."
    ),
    HYBRID_COHESION: (
        "You balance institutional reform and citizen voice, with a strong emphasis on national cohesion "
        "and shared civic values."
    ),
})

# Tendencies
PARTICIPATORY_HIGH = "Strong preference for structured citizen input beyond elections."
INSTITUTIONAL_HIGH = "High value on institutional stability and reform over disruption."
COMMUNITARIAN_HIGH = "Strong emphasis on shared civic identity and national cohesion."
SAFETY_NET_HIGH = "Strong support for a safety net to ensure dignity and stability."

MARKETS_MED_HIGH = "Tends to favor market mechanisms, with regulation as a guardrail rather than a default."
LIBERTY_MED_HIGH = "Tends to prioritize individual liberty when tradeoffs arise."
SPEECH_MED_HIGH = "Leans toward broad free speech protections even when content is unpopular."
MERIT_MED_HIGH = "Leans toward merit and effort as key drivers of outcomes."

MANY_CENTER = "Frequently chooses middle values, suggesting conditional or context-dependent views."
EXPERTISE_CENTER = "Balances expert guidance with public input rather than strongly favoring one."
LIBERTY_CENTER = "Weighs individual liberty against collective outcomes case-by-case."

FALLBACK_PRAGMATIC = "Generally supports pragmatic solutions over rigid ideology."
FALLBACK_TRADEOFFS = "Tends to weigh tradeoffs carefully and avoid absolutist positions."
FALLBACK_CIVIC_HEALTH = "Values civic health and accountability as long-term priorities."

# Tensions
INSTITUTIONS_OVER_VOICE = "Leans toward institutional stability over direct citizen input."
VOICE_OVER_INSTITUTIONS = "Leans toward direct citizen input over institutional gatekeeping."
INSTITUTIONS_VOICE_BALANCED = "Balances institutional stability with strong citizen input."

MARKETS_OVER_SAFETY_NET = "Leans toward market solutions more than expanding safety-net protections."
SAFETY_NET_OVER_MARKETS = "Leans toward safety-net protections more than market-first approaches."
MARKETS_SAFETY_NET_BALANCED = "Balances market mechanisms with safety-net protections."
