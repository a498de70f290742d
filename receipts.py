import pandas as pd
from typing import Any, Dict
from data_processor import coerce_num, text_search_mask
from config import RECEIPT_PREFIX, CURRENCY_NAME, CURRENCY_FRACTION

UNITS = ["", "One", "Two", "Three", "Four", "Five", "Six", "Seven", "Eight", "Nine"]
TEENS = ["Ten", "Eleven", "Twelve", "Thirteen", "Fourteen", "Fifteen", "Sixteen",
         "Seventeen", "Eighteen", "Nineteen"]
TENS = ["", "", "Twenty", "Thirty", "Forty", "Fifty", "Sixty", "Seventy", "Eighty", "Ninety"]


class ReceiptError(ValueError):
    """Raised when a cash receipt is missing required fields."""


def _words(n: int) -> str:
    if n < 10:
        return UNITS[n]
    if n < 20:
        return TEENS[n - 10]
    if n < 100:
        return TENS[n // 10] + (" " + UNITS[n % 10] if n % 10 else "")
    if n < 1000:
        rest = n % 100
        return UNITS[n // 100] + " Hundred" + (" and " + _words(rest) if rest else "")
    if n < 1000000:
        rest = n % 1000
        return _words(n // 1000) + " Thousand" + (" " + _words(rest) if rest else "")
    return ""


def amount_to_words(amount: float) -> str:
    """English amount for the receipt, e.g. 'One Hundred UAE Dirhams and Fifty Fils Only'."""
    if amount == 0:
        return "Zero"

    whole = int(amount)
    fraction = int(round((amount - whole) * 100))
    if fraction == 100:
        whole, fraction = whole + 1, 0

    result = f"{_words(whole)} {CURRENCY_NAME}".strip()
    if fraction > 0:
        result += f" and {_words(fraction)} {CURRENCY_FRACTION}"
    return result + " Only"


def next_receipt_number(last_number: str) -> str:
    """CAH-nnn following the last number in the book."""
    parts = str(last_number or "").split("-")
    next_num = 1
    if len(parts) > 1:
        try:
            next_num = int(parts[1]) + 1
        except ValueError:
            pass
    return f"{RECEIPT_PREFIX}-{next_num:03d}"


def build_receipt(date: Any, receipt_number: str, received_from: str, amount: Any,
                  send_by: str = "", reason: str = "") -> Dict[str, Any]:
    """Validate form input and return the receipt row."""
    value = coerce_num(amount)
    date_text = date.strftime("%d/%m/%Y") if hasattr(date, "strftime") else str(date or "").strip()

    if not date_text or not str(receipt_number or "").strip() or not str(received_from or "").strip():
        raise ReceiptError("Date, receipt number and received from are required")
    if value <= 0:
        raise ReceiptError("Amount must be greater than zero")

    return {
        "date": date_text,
        "receiptNumber": str(receipt_number).strip(),
        "receivedFrom": str(received_from).strip(),
        "sendBy": str(send_by or "").strip(),
        "amount": value,
        "amountInWords": amount_to_words(value),
        "reason": str(reason or "").strip(),
    }


def search_receipts(df: pd.DataFrame, query: str) -> pd.DataFrame:
    if df.empty:
        return df
    mask = text_search_mask(df, query, ["receiptNumber", "receivedFrom", "sendBy", "reason"])
    return df[mask].sort_values("rowIndex", ascending=False).reset_index(drop=True)


def receipts_by_month(df: pd.DataFrame) -> pd.DataFrame:
    """Receipt count and total amount per month, newest first."""
    columns = ["month", "receipts", "amount"]
    dated = df[df["parsedDate"].notna()] if not df.empty else df
    if dated.empty:
        return pd.DataFrame(columns=columns)

    result = (dated.assign(month=dated["parsedDate"].dt.strftime("%Y-%m"))
              .groupby("month", as_index=False)
              .agg(receipts=("receiptNumber", "count"), amount=("amount", "sum")))
    return result.sort_values("month", ascending=False).reset_index(drop=True)[columns]
