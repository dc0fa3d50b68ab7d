"""
Domain enums for the PantryLedger application.
Contains all enumeration types used across the domain models.
"""

import enum


class IngredientCategory(str, enum.Enum):
    """Master ingredient categories"""

    PRODUCE = "produce"
    PROTEIN = "protein"
    DAIRY = "dairy"
    PANTRY = "pantry"
    FROZEN = "frozen"
    BEVERAGE = "beverage"
    CONDIMENT = "condiment"
    GRAIN = "grain"
    SPICE = "spice"
    UNKNOWN = "unknown"


class ContainerStatus(str, enum.Enum):
    """Lifecycle of a physical container"""

    SEALED = "SEALED"
    OPEN = "OPEN"
    LOW = "LOW"
    EMPTY = "EMPTY"
    DELETED = "DELETED"


class ContainerSource(str, enum.Enum):
    """How a container entered the inventory"""

    VISION = "vision"
    MANUAL = "manual"
    COOKED = "cooked"


class Confidence(str, enum.Enum):
    """Extraction confidence attached to a container"""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TransactionOperation(str, enum.Enum):
    """Kinds of ledger mutation recorded in the transaction log"""

    ADD = "ADD"
    DEDUCT = "DEDUCT"
    ADJUST = "ADJUST"
    MERGE = "MERGE"
    DELETE = "DELETE"
    STATUS_CHANGE = "STATUS_CHANGE"


class AliasSource(str, enum.Enum):
    """Who taught the system an alias"""

    AGENT = "agent"
    USER_CORRECTION = "user_correction"


class MatchType(str, enum.Enum):
    """Outcome of ingredient resolution"""

    EXACT = "exact"
    ALIAS = "alias"
    FUZZY = "fuzzy"
    AMBIGUOUS = "ambiguous"
    UNKNOWN = "unknown"


class DuplicateType(str, enum.Enum):
    """How certain the duplicate detector is"""

    DEFINITE = "DEFINITE"
    LIKELY = "LIKELY"
    POSSIBLE = "POSSIBLE"
    NONE = "NONE"


class DuplicateRecommendation(str, enum.Enum):
    """What the caller should do with a candidate purchase"""

    SKIP = "SKIP"
    MERGE = "MERGE"
    ADD_NEW = "ADD_NEW"
    ASK_USER = "ASK_USER"
