APP_NAME = "Recurring Budget"
APP_WIDTH = 1100
APP_HEIGHT = 680
DB_FILE = "budget.db"

DATE_FORMAT = "%Y-%m-%d"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

TRANSACTION_TYPES = ["income", "expense"]
FREQUENCIES = ["daily", "weekly", "biweekly", "monthly", "quarterly", "yearly"]
DAYS_OF_WEEK = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]   # index = anchor day
UPCOMING_PREVIEW_COUNT = 3

MAX_DESCRIPTION_LENGTH = 100
MAX_NOTES_LENGTH = 500
RECURRING_NOTE_MARKER = "[Recurring Transaction]"

# Generation report reasons
REASON_INACTIVE = "inactive"
REASON_NOT_STARTED = "start date is in the future"
REASON_EXHAUSTED = "past end date"
REASON_NOTHING_DUE = "no occurrences due"
REASON_DELETED = "definition no longer exists"
REASON_ALREADY_GENERATED = "already generated"

DEFAULT_SETTINGS = [
    ("appearance_mode", "system"),
    ("currency_symbol", "$"),
    ("date_format", "MM/DD/YYYY"),
    ("deactivate_exhausted", "0"),
    ("generate_on_startup", "1"),
]

DEFAULT_CATEGORIES = [
    {"name": "Salary",         "type": "income",   "color_hex": "#4CAF50"},
    {"name": "Freelance",      "type": "income",   "color_hex": "#8BC34A"},
    {"name": "Rent/Mortgage",  "type": "expense",  "color_hex": "#F44336"},
    {"name": "Utilities",      "type": "expense",  "color_hex": "#9C27B0"},
    {"name": "Subscriptions",  "type": "expense",  "color_hex": "#FF9800"},
    {"name": "Insurance",      "type": "expense",  "color_hex": "#2196F3"},
    {"name": "Savings",        "type": "both",     "color_hex": "#009688"},
    {"name": "Other",          "type": "both",     "color_hex": "#888888"},
]

BANNER_COLORS = {
    "generated": "#2196F3",
    "idle":      "#607D8B",
    "failed":    "#F44336",
}
