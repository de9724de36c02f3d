"""
Configuration: field candidate keys, severity thresholds, constants.

FIELD_CANDIDATES maps each logical row field to the ordered list of
spreadsheet header spellings tried when reading a row. The first header
holding a present value wins.
"""

from pathlib import Path

# ---------------------------------------------------------------------------
# File paths, adjust these if source files move
# ---------------------------------------------------------------------------
DATA_DIR = Path(__file__).resolve().parent.parent

DEFAULT_EXPORT_DIR = DATA_DIR / "export"

SUPPORTED_EXTENSIONS = (".xlsx", ".csv")

# ---------------------------------------------------------------------------
# Field candidates
# ---------------------------------------------------------------------------
# Exports come from several shop-floor tools; header spelling is not
# normalised, so each logical field lists every spelling seen so far.
FIELD_CANDIDATES: dict[str, list[str]] = {
    "station": ["Nom", "Station", "Poste de travail"],
    "macro_stage": ["Poste", "Etape", "Étape", "Stage"],
    "planned_time": ["Temps Prévu", "Temps_Prévu", "Temps Prevu", "Planned Time"],
    "actual_time": ["Temps Réel", "Temps_Réel", "Temps Reel", "Actual Time"],
    "cost_risk": ["Coût/Risque", "Cout/Risque", "Catégorie", "Cost Risk"],
    "anomaly": ["Aléas Industriels", "Aléas_Industriels", "Aleas Industriels", "Anomaly"],
    "cause": ["Cause Potentielle", "Cause_Potentielle", "Cause"],
}

STATION_ID_PREFIX = "P"
MACRO_ID_PREFIX = "M"
ISSUE_ID_PREFIX = "issue_"
ISSUE_LEVEL = "station"

UNKNOWN_LABEL = "Unknown"
NOT_SPECIFIED = "Not specified"

# ---------------------------------------------------------------------------
# Severity and issue thresholds (minutes of delta, strict ">")
# ---------------------------------------------------------------------------
CRITICAL_DELTA_MIN = 10.0
MAJOR_DELTA_MIN = 5.0

SEVERITY_MINOR = "Minor"
SEVERITY_MAJOR = "Major"
SEVERITY_CRITICAL = "Critical"
SEVERITY_LEVELS = (SEVERITY_MINOR, SEVERITY_MAJOR, SEVERITY_CRITICAL)

ISSUE_BOTTLENECK = "bottleneck"
ISSUE_HIGH_RISK_PART = "high_risk_part"

# Cost per affected piece; the currency is a display concern
UNIT_COST = 50_000
DEFAULT_EXPERIENCE_LEVEL = "Operator"

TOP_BOTTLENECK_COUNT = 3

# ---------------------------------------------------------------------------
# WIP index: fixed placeholders, not derived from input data
# ---------------------------------------------------------------------------
WIP_INDEX_BASELINE = 18_400
WIP_INDEX_SCENARIO = 15_200
DELTA_WIP_INDEX = 3_200

# ---------------------------------------------------------------------------
# Analytics
# ---------------------------------------------------------------------------
HOURLY_GROSS_EUR = 38.53
OTHER_MACRO_LABEL = "Other"

# ---------------------------------------------------------------------------
# Production assistant (Mistral chat completions)
# ---------------------------------------------------------------------------
MISTRAL_API_URL = "https://api.mistral.ai/v1/chat/completions"
MISTRAL_API_KEY_ENV = "MISTRAL_API_KEY"
MISTRAL_MODEL = "mistral-small-latest"
ASSISTANT_TEMPERATURE = 0.7
ASSISTANT_MAX_TOKENS = 1000
ASSISTANT_TIMEOUT_S = 60
ASSISTANT_HISTORY_LIMIT = 5
ASSISTANT_LANGUAGE = "French"
ASSISTANT_MAX_ISSUES = 5
ASSISTANT_MAX_STATIONS = 10
ASSISTANT_GREETING = (
    "Hello! I am your production analysis assistant. Ask me about your KPIs, "
    "bottlenecks, or the issues detected in the last import."
)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
MINUTES_PER_DAY = 1440
EXCEL_EPOCH = "1899-12-30"
