APP_NAME = "Travel Office"
DATA_DIR = "data"
DB_FILE_NAME = "travel_office.db"
LOG_DIR = "logs"

# schema bookkeeping
TABLE_SCHEMA_VERSION = "schema_version"
SCHEMA_VERSION = "1.0.0"

# money
BASE_CURRENCY = "JOD"
DEFAULT_RATES = {
    "JOD": 1.0,
    "USD": 1.41,
    "EUR": 1.32,
    "ILS": 5.25,
    "SAR": 5.29,
}
PAYMENT_EPSILON = 0.01

# listing
BOOKINGS_PAGE_SIZE = 25
MAX_ALERTS = 20
RECENT_AUDIT_LIMIT = 50

# transaction categories with special meaning
CATEGORY_BOOKING_RECEIPTS = "Booking Receipts"
CATEGORY_CLIENT_RECEIPTS = "Client Receipts"
CATEGORY_SUPPLIER_PAYMENTS = "Supplier Payments"
CATEGORY_INTERNAL_TRANSFER = "Internal Transfer"

FIRST_PAYMENT_NOTE = "First payment on opening file"

# AI assistant
AI_MODEL_NAME = "gemini-2.5-flash"

# default login created on an empty database
DEFAULT_ADMIN_USERNAME = "admin"
DEFAULT_ADMIN_PASSWORD = "admin"
