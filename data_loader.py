import json
import base64
import logging
import streamlit as st
import gspread
from google.oauth2 import service_account
from typing import Any, Dict, List
import pandas as pd

from data_processor import (
    rows_to_frame, process_invoice_rows, process_sales_rows, process_inventory_rows,
    process_transfer_rows, process_receipt_rows,
)
from config import (
    get_spreadsheet_config, CACHE_TTL, INVOICE_COLUMNS, SALES_COLUMNS, INVENTORY_COLUMNS,
    TRANSFER_COLUMNS, RECEIPT_COLUMNS, RECEIPT_DEFAULT_LAST,
)

logger = logging.getLogger(__name__)


@st.cache_resource
def get_google_client():
    """Initialize and return Google Sheets client."""
    config = get_spreadsheet_config()

    # Try split JSON variables format
    if all(key in st.secrets for key in ["GCP_TYPE", "GCP_PROJECT_ID", "GCP_PRIVATE_KEY", "GCP_CLIENT_EMAIL"]):
        service_account_info = {
            "type": st.secrets["GCP_TYPE"],
            "project_id": st.secrets["GCP_PROJECT_ID"],
            "private_key_id": st.secrets["GCP_PRIVATE_KEY_ID"],
            "private_key": st.secrets["GCP_PRIVATE_KEY"].replace("\\n", "\n"),
            "client_email": st.secrets["GCP_CLIENT_EMAIL"],
            "client_id": st.secrets["GCP_CLIENT_ID"],
            "auth_uri": st.secrets["GCP_AUTH_URI"],
            "token_uri": st.secrets["GCP_TOKEN_URI"],
            "auth_provider_x509_cert_url": st.secrets["GCP_AUTH_PROVIDER_X509_CERT_URL"],
            "client_x509_cert_url": st.secrets["GCP_CLIENT_X509_CERT_URL"],
            "universe_domain": st.secrets.get("GCP_UNIVERSE_DOMAIN", "googleapis.com")
        }
        creds = service_account.Credentials.from_service_account_info(
            service_account_info,
            scopes=config['scopes']
        )
    # Try structured secrets format
    elif "gcp_service_account" in st.secrets:
        creds = service_account.Credentials.from_service_account_info(
            dict(st.secrets["gcp_service_account"]),
            scopes=config['scopes']
        )
    # Try base64 encoded JSON format
    elif "GOOGLE_SERVICE_ACCOUNT_B64" in st.secrets:
        sa_json = base64.b64decode(st.secrets["GOOGLE_SERVICE_ACCOUNT_B64"]).decode('utf-8')
        creds = service_account.Credentials.from_service_account_info(
            json.loads(sa_json),
            scopes=config['scopes']
        )
    elif "GOOGLE_SERVICE_ACCOUNT" in st.secrets:
        creds = service_account.Credentials.from_service_account_info(
            json.loads(st.secrets["GOOGLE_SERVICE_ACCOUNT"]),
            scopes=config['scopes']
        )
    elif "GOOGLE_SERVICE_ACCOUNT_JSON_FILE" in st.secrets:
        creds = service_account.Credentials.from_service_account_file(
            st.secrets["GOOGLE_SERVICE_ACCOUNT_JSON_FILE"],
            scopes=config['scopes']
        )
    else:
        raise ValueError("No service account credentials provided in secrets.toml")

    return gspread.authorize(creds)


def open_worksheet(sheet_key: str):
    """Open one of the configured worksheets by its config key."""
    config = get_spreadsheet_config()
    spreadsheet = get_google_client().open_by_key(config['spreadsheet_id'])
    return spreadsheet.worksheet(config[sheet_key])


def _load_sheet(sheet_key: str, columns: List[str], with_row_index: bool = False) -> pd.DataFrame:
    config = get_spreadsheet_config()
    try:
        worksheet = open_worksheet(sheet_key)
        values = worksheet.get_all_values()
    except Exception as e:
        logger.exception("Failed to load worksheet %s", config[sheet_key])
        st.error(f"Failed to load {config[sheet_key]}: {str(e)}")
        raise

    logger.info("Loaded %d rows from %s", max(len(values) - 1, 0), config[sheet_key])
    return rows_to_frame(values, columns, with_row_index=with_row_index)


@st.cache_data(ttl=CACHE_TTL["data"])
def load_invoices() -> pd.DataFrame:
    """Customer ledger used by the payment tracker."""
    return process_invoice_rows(_load_sheet('invoices_sheet', INVOICE_COLUMNS))


@st.cache_data(ttl=CACHE_TTL["data"])
def load_sales() -> pd.DataFrame:
    """Line-level sales invoices used by the sales reports."""
    return process_sales_rows(_load_sheet('sales_sheet', SALES_COLUMNS))


@st.cache_data(ttl=CACHE_TTL["inventory"])
def load_inventory() -> pd.DataFrame:
    """Inventory sheet as stored (baseline stock, before transfers)."""
    return process_inventory_rows(_load_sheet('inventory_sheet', INVENTORY_COLUMNS, with_row_index=True))


@st.cache_data(ttl=CACHE_TTL["inventory"])
def load_transfers() -> pd.DataFrame:
    """Transfer log, newest first."""
    return process_transfer_rows(_load_sheet('transfers_sheet', TRANSFER_COLUMNS))


@st.cache_data(ttl=CACHE_TTL["data"])
def load_receipts() -> pd.DataFrame:
    return process_receipt_rows(_load_sheet('receipts_sheet', RECEIPT_COLUMNS, with_row_index=True))


class TransferLog:
    """Appends inventory transfer rows to the transfers worksheet."""

    def __init__(self, worksheet=None):
        self._worksheet = worksheet

    @property
    def worksheet(self):
        if self._worksheet is None:
            self._worksheet = open_worksheet('transfers_sheet')
        return self._worksheet

    def existing_numbers(self) -> List[str]:
        # Column B holds the transaction number
        return self.worksheet.col_values(2)[1:]

    def append_transfers(self, transfers: List[Dict[str, Any]]) -> None:
        """Append all rows of one transaction in a single request."""
        values = [[t.get(col, "") for col in TRANSFER_COLUMNS] for t in transfers]
        try:
            self.worksheet.append_rows(values, value_input_option="USER_ENTERED")
        except Exception:
            logger.exception("Failed to append %d transfer rows", len(values))
            raise

        logger.info("Appended %d transfer rows for %s", len(values),
                    transfers[0].get("number", "") if transfers else "")
        load_transfers.clear()


class ReceiptBook:
    """Reads receipt numbers from and appends receipts to the cash receipt worksheet."""

    def __init__(self, worksheet=None):
        self._worksheet = worksheet

    @property
    def worksheet(self):
        if self._worksheet is None:
            self._worksheet = open_worksheet('receipts_sheet')
        return self._worksheet

    def last_receipt_number(self) -> str:
        """Last NUMBER-like value in column B, or the default when the book is empty."""
        try:
            values = self.worksheet.col_values(2)[1:]
        except Exception:
            logger.exception("Failed to read receipt numbers")
            return RECEIPT_DEFAULT_LAST

        numbers = [v for v in values if v and "-" in v]
        return numbers[-1] if numbers else RECEIPT_DEFAULT_LAST

    def save_receipt(self, receipt: Dict[str, Any]) -> None:
        row = [receipt.get(col, "") for col in RECEIPT_COLUMNS]
        row[RECEIPT_COLUMNS.index("amount")] = str(receipt.get("amount", ""))
        try:
            self.worksheet.append_row(row, value_input_option="USER_ENTERED")
        except Exception:
            logger.exception("Failed to save receipt %s", receipt.get("receiptNumber"))
            raise

        logger.info("Saved cash receipt %s", receipt.get("receiptNumber"))
        load_receipts.clear()
