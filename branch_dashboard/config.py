"""
Configuration: metric registry, synthetic metric names, constants.

METRIC_REGISTRY maps each product metric name to its category
(Amount / Account / Other) and display unit. It is the default catalog
used when a caller does not supply one.
"""

# ---------------------------------------------------------------------------
# Synthetic grand-total metrics
# ---------------------------------------------------------------------------
GRAND_TOTAL_AMOUNT = "GRAND TOTAL AMT"
GRAND_TOTAL_ACCOUNT = "GRAND TOTAL AC"
GRAND_TOTAL_METRICS = frozenset({GRAND_TOTAL_AMOUNT, GRAND_TOTAL_ACCOUNT})

# Categorised "Other" but counted towards GRAND TOTAL AC
ACCOUNT_EXCEPTION_METRIC = "NEW-SS/AGNT"

AMOUNT_SUFFIX = "AMT"
ACCOUNT_SUFFIX = "AC"

# Product label used for the grand-total row in target-vs-achievement tables
GRAND_TOTAL_PRODUCT = "GRAND TOTAL"

# ---------------------------------------------------------------------------
# Roles, record kinds, sentinels
# ---------------------------------------------------------------------------
ROLE_ADMIN = "admin"
ROLE_MANAGER = "manager"
ROLE_USER = "user"
ROLES = (ROLE_ADMIN, ROLE_MANAGER, ROLE_USER)

RECORD_KINDS = ("achievement", "target", "projection")

METRIC_CATEGORIES = ("Amount", "Account", "Other")

# Display sentinel for KPIs with no qualifying data
NO_DATA = "N/A"

# Placeholder the directory uses for "no branch"
UNASSIGNED_BRANCH = "N/A"

# ---------------------------------------------------------------------------
# Metric registry
# ---------------------------------------------------------------------------
# category: "Amount", "Account" or "Other"
# unit: display unit string
METRIC_REGISTRY: dict[str, dict] = {
    "DDS AMT": {"category": "Amount", "unit": "INR"},
    "DDS AC": {"category": "Account", "unit": "Units"},
    "FD AMT": {"category": "Amount", "unit": "INR"},
    "FD AC": {"category": "Account", "unit": "Units"},
    "RD AMT": {"category": "Amount", "unit": "INR"},
    "RD AC": {"category": "Account", "unit": "Units"},
    "SAVS-AMT": {"category": "Amount", "unit": "INR"},
    "SAVS-AC": {"category": "Account", "unit": "Units"},
    "DAM AMT": {"category": "Amount", "unit": "INR"},
    "DAM AC": {"category": "Account", "unit": "Units"},
    "MIS AMT": {"category": "Amount", "unit": "INR"},
    "MIS AC": {"category": "Account", "unit": "Units"},
    "SMBG AMT": {"category": "Amount", "unit": "INR"},
    "SMBG AC": {"category": "Account", "unit": "Units"},
    "CUR-GOLD-AMT": {"category": "Amount", "unit": "INR"},
    "CUR-GOLD-AC": {"category": "Account", "unit": "Units"},
    "CUR-WEL-AMT": {"category": "Amount", "unit": "INR"},
    "CUR-WEL-AC": {"category": "Account", "unit": "Units"},
    "INSU AMT": {"category": "Amount", "unit": "INR"},
    "INSU AC": {"category": "Account", "unit": "Units"},
    "TASC AMT": {"category": "Amount", "unit": "INR"},
    "TASC AC": {"category": "Account", "unit": "Units"},
    "SHARE AMT": {"category": "Amount", "unit": "INR"},
    "SHARE AC": {"category": "Account", "unit": "Units"},
    "NEW-SS/AGNT": {"category": "Other", "unit": "Units"},
    "GRAND TOTAL AMT": {"category": "Amount", "unit": "INR"},
    "GRAND TOTAL AC": {"category": "Account", "unit": "Units"},
}

# ---------------------------------------------------------------------------
# Upload layout
# ---------------------------------------------------------------------------
UPLOAD_DATE_COLUMNS = ("DATE", "date")
UPLOAD_STAFF_COLUMN = "STAFF NAME"
UPLOAD_BRANCH_COLUMN = "BRANCH NAME"

# Columns in an uploaded sheet that are not metrics
UPLOAD_META_COLUMNS = frozenset({
    "id", "DATE", "date", "priority", UPLOAD_STAFF_COLUMN, UPLOAD_BRANCH_COLUMN,
})

# Row-level summary columns recomputed by the aggregator
UPLOAD_DERIVED_COLUMNS = frozenset({"TOTAL AMOUNTS", "TOTAL ACCOUNTS"})

# ---------------------------------------------------------------------------
# Target tracking
# ---------------------------------------------------------------------------
# Lower bound (percent achieved) for each progress band, highest first
PROGRESS_BANDS: tuple[tuple[str, float], ...] = (
    ("green", 100.0),
    ("amber", 75.0),
    ("orange", 50.0),
)

DUE_SOON_DAYS = 7

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
EXCEL_EPOCH = "1899-12-30"
