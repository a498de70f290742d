# Configuration constants
import os
import streamlit as st

# App Configuration
APP_TITLE = "Trading Dashboards"
PAGE_LAYOUT = "wide"
INITIAL_SIDEBAR_STATE = "expanded"


def get_log_level() -> str:
    try:
        level = st.secrets.get("LOG_LEVEL", "")
    except FileNotFoundError:
        level = ""
    return (level or os.environ.get("LOG_LEVEL", "INFO")).upper()


# Google Sheets Configuration
def get_spreadsheet_config():
    return {
        'spreadsheet_id': st.secrets["SPREADSHEET_ID"],
        'invoices_sheet': st.secrets.get("INVOICES_SHEET_NAME", "Invoices"),
        'sales_sheet': st.secrets.get("SALES_SHEET_NAME", "Sales - Invoices"),
        'inventory_sheet': st.secrets.get("INVENTORY_SHEET_NAME", "Inventory - Chipsy"),
        'transfers_sheet': st.secrets.get("TRANSFERS_SHEET_NAME", "TRANSFERS - Chipsy"),
        'receipts_sheet': st.secrets.get("RECEIPTS_SHEET_NAME", "Cash Receipt"),
        'scopes': [
            "https://www.googleapis.com/auth/spreadsheets",
            "https://www.googleapis.com/auth/drive.readonly",
        ]
    }

# Sheet layouts (sheet column order)
INVOICE_COLUMNS = ["date", "dueDate", "number", "customerName", "salesRep", "debit", "credit", "matching"]

SALES_COLUMNS = [
    "invoiceDate", "invoiceNumber", "customerId", "customerMainName", "customerName",
    "area", "market", "merchandiser", "salesRep", "productId", "barcode", "product",
    "productTag", "productCost", "productPrice", "amount", "qty",
]

INVENTORY_COLUMNS = ["barcode", "productName", "qtyPcs", "pcsInCtn", "price"]

TRANSFER_COLUMNS = [
    "user", "number", "date", "locFrom", "locTo", "customerName", "receiverName",
    "barcode", "productName", "qtyPcs", "price", "total", "description",
]

RECEIPT_COLUMNS = ["date", "receiptNumber", "receivedFrom", "sendBy", "amount", "amountInWords", "reason"]

# Data Processing Configuration (column -> value used when the cell is blank)
NUMERIC_COLUMNS = {
    "debit": 0.0,
    "credit": 0.0,
    "productCost": 0.0,
    "productPrice": 0.0,
    "amount": 0.0,
    "qty": 0.0,
    "qtyPcs": 0,
    "pcsInCtn": 1,
    "price": 0.0,
    "total": 0.0,
}

INTEGER_COLUMNS = ["qtyPcs", "pcsInCtn"]

STRING_COLUMNS = [
    "number", "customerName", "salesRep", "matching", "invoiceNumber", "customerId",
    "customerMainName", "area", "market", "merchandiser", "productId", "barcode",
    "product", "productTag", "productName", "user", "locFrom", "locTo", "receiverName",
    "description", "receiptNumber", "receivedFrom", "sendBy", "amountInWords", "reason",
]

# Invoice number prefixes -> type, checked in order
INVOICE_TYPE_PREFIXES = [
    ("SAL", "Sale"),
    ("RSAL", "Return"),
    ("OB", "Opening Balance"),
    ("BIL", "Discount"),
    ("JV", "Discount"),
]
PAYMENT_TYPE = "Payment"
OTHER_TYPE = "Invoice/Txn"
PAYMENT_CREDIT_THRESHOLD = 0.01

# Inventory
MAIN_LOCATIONS = ["Main Inventory", "MAIN"]
MAIN_LOCATION = "Main Inventory"
LEGACY_IN = "IN"
LEGACY_OUT = "OUT"
TRANSACTION_TYPES = ["OUT", "IN"]
UNITS = ["CTN", "PCS"]
TRANSACTION_PREFIX = "TRX"

# Cash receipts
RECEIPT_PREFIX = "CAH"
RECEIPT_DEFAULT_LAST = "CAH-000"
CURRENCY_NAME = "UAE Dirhams"
CURRENCY_FRACTION = "Fils"

# UI Configuration
CHART_STYLES = ["Bar", "Line"]
PERIOD_TYPES = ["daily", "weekly", "monthly", "yearly"]
INVOICE_TYPE_FILTERS = {"All": "all", "Sales": "sales", "Returns": "returns"}
SALES_GROUPINGS = {"Area": "area", "Merchandiser": "merchandiser", "Sales Rep": "salesRep"}
MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
TOP_N_OPTIONS = [10, 20, 50]

# Date Range Quick Filters
DATE_RANGE_OPTIONS = {
    "All time": None,
    "Today": 0,
    "Yesterday": 1,
    "Last 7 days": 7,
    "Last 30 days": 30,
    "Last 90 days": 90,
    "Last 365 days": 365,
    "Custom range": None
}

DEFAULT_DATE_RANGE = "All time"

# Payment dashboard windows
DASHBOARD_MONTHS = 12
DASHBOARD_MAX_MONTHS = 24
AVERAGE_WEEKS = 52

# Inactive customer thresholds (days since the last SAL invoice)
INACTIVE_MIN_DAYS = 10
INACTIVE_STATUSES = [("At Risk", 30), ("Inactive", 60), ("Lost", None)]

# Cache Configuration
CACHE_TTL = {
    "data": 300,  # 5 minutes
    "inventory": 60  # 1 minute
}

# Timezone
TIMEZONE = "Asia/Dubai"
