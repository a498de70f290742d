import pandas as pd
import re
from datetime import datetime
from typing import Any, List, Optional, Sequence
from config import (
    NUMERIC_COLUMNS, INTEGER_COLUMNS, STRING_COLUMNS, INVOICE_TYPE_PREFIXES,
    PAYMENT_TYPE, OTHER_TYPE, PAYMENT_CREDIT_THRESHOLD,
)

ISO_DATE_RE = re.compile(r"^\d{4}-\d{1,2}-\d{1,2}")


def coerce_num(value: Any, default: float = 0.0) -> float:
    """Parse sheet numbers, stripping thousands separators and currency symbols."""
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return default

    if isinstance(value, (int, float)):
        return float(value)

    string_val = str(value).strip()
    if not string_val:
        return default

    # Handle parentheses (negative values)
    is_negative = string_val.startswith("(") and string_val.endswith(")")
    if is_negative:
        string_val = string_val[1:-1].strip()

    cleaned = re.sub(r"[^0-9.\-]", "", string_val)
    if cleaned in ("", "-", "."):
        return default

    try:
        numeric_value = float(cleaned)
    except ValueError:
        return default

    return -numeric_value if is_negative else numeric_value


def parse_sheet_date(value: Any) -> Optional[pd.Timestamp]:
    """Parse a sheet date: ISO first, then day-first DD/MM/YYYY or DD-MM-YYYY."""
    if value is None:
        return None
    if isinstance(value, (pd.Timestamp, datetime)):
        return _naive(pd.Timestamp(value))

    text = str(value).strip()
    if not text:
        return None

    if ISO_DATE_RE.match(text):
        parsed = pd.to_datetime(text, errors="coerce")
        return None if pd.isna(parsed) else _naive(parsed)

    parts = re.split(r"[/\-]", text.split(" ")[0])
    if len(parts) == 3:
        try:
            day, month, year = (int(p) for p in parts)
            if year < 100:
                year += 2000
            return pd.Timestamp(year=year, month=month, day=day)
        except ValueError:
            return None

    parsed = pd.to_datetime(text, errors="coerce")
    return None if pd.isna(parsed) else _naive(parsed)


def _naive(ts: pd.Timestamp) -> pd.Timestamp:
    # Offset cells keep their local wall time so they sit beside naive sheet dates
    if ts.tzinfo is not None:
        return ts.tz_localize(None)
    return ts


def parse_date_column(series: pd.Series) -> pd.Series:
    return pd.to_datetime(series.apply(parse_sheet_date), errors="coerce")


def rows_to_frame(values: List[List[Any]], columns: Sequence[str], with_row_index: bool = False) -> pd.DataFrame:
    """Turn raw worksheet values (header row first) into a DataFrame of fixed shape."""
    if not values or len(values) < 2:
        base = (["rowIndex"] if with_row_index else []) + list(columns)
        return pd.DataFrame(columns=base)

    width = len(columns)
    body = [(list(row) + [""] * width)[:width] for row in values[1:]]
    df = pd.DataFrame(body, columns=list(columns))

    if with_row_index:
        # Sheet rows are 1-based and row 1 is the header
        df.insert(0, "rowIndex", range(2, len(df) + 2))

    return df


def process_string_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Process string columns to ensure consistent formatting."""
    df_processed = df.copy()

    for col in STRING_COLUMNS:
        if col in df_processed.columns:
            df_processed[col] = (df_processed[col]
                               .fillna("")
                               .astype(str)
                               .replace({"nan": "", "None": ""})
                               .str.strip())

    return df_processed


def process_numeric_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Process numeric columns, filling blanks with each column's default."""
    df_processed = df.copy()

    for col, default in NUMERIC_COLUMNS.items():
        if col in df_processed.columns:
            df_processed[col] = df_processed[col].apply(lambda v: coerce_num(v, default))
            if col in INTEGER_COLUMNS:
                df_processed[col] = df_processed[col].astype(int)

    return df_processed


def classify_invoice_type(number: Any, credit: Any) -> str:
    """Classify a ledger row by its number prefix, falling back to credit for payments."""
    num = str(number or "").strip().upper()

    for prefix, label in INVOICE_TYPE_PREFIXES:
        if num.startswith(prefix):
            return label

    if coerce_num(credit) > PAYMENT_CREDIT_THRESHOLD:
        return PAYMENT_TYPE
    return OTHER_TYPE


def process_invoice_rows(df: pd.DataFrame) -> pd.DataFrame:
    """Customer ledger rows: drop blanks, type each row, parse dates."""
    if df.empty:
        return df.assign(parsedDate=pd.Series(dtype="datetime64[ns]"), type=pd.Series(dtype=str))

    df = process_string_columns(df)
    df = process_numeric_columns(df)
    df = df[df["customerName"] != ""].reset_index(drop=True)

    df["parsedDate"] = parse_date_column(df["date"])
    df["type"] = [classify_invoice_type(n, c) for n, c in zip(df["number"], df["credit"])]
    return df


def process_sales_rows(df: pd.DataFrame) -> pd.DataFrame:
    """Line-level sales rows: keep rows with a customer and a product."""
    if df.empty:
        return df.assign(parsedDate=pd.Series(dtype="datetime64[ns]"))

    df = process_string_columns(df)
    df = process_numeric_columns(df)
    keep = (df["customerId"] != "") & (df["customerName"] != "") & (df["product"] != "")
    df = df[keep].reset_index(drop=True)

    df["parsedDate"] = parse_date_column(df["invoiceDate"])
    return df


def process_inventory_rows(df: pd.DataFrame) -> pd.DataFrame:
    if df.empty:
        return df

    df = process_string_columns(df)
    df = process_numeric_columns(df)
    return df[df["productName"] != ""].reset_index(drop=True)


def process_transfer_rows(df: pd.DataFrame) -> pd.DataFrame:
    """Transfer log rows, newest first, with blank locations defaulting to MAIN."""
    if df.empty:
        return df.assign(parsedDate=pd.Series(dtype="datetime64[ns]"))

    df = process_string_columns(df)
    df = process_numeric_columns(df)
    for col in ["locFrom", "locTo"]:
        df[col] = df[col].replace("", "MAIN")

    df["parsedDate"] = parse_date_column(df["date"])
    return df.iloc[::-1].reset_index(drop=True)


def process_receipt_rows(df: pd.DataFrame) -> pd.DataFrame:
    if df.empty:
        return df.assign(parsedDate=pd.Series(dtype="datetime64[ns]"))

    df = process_string_columns(df)
    df = process_numeric_columns(df)
    df = df[df["receiptNumber"] != ""].reset_index(drop=True)

    df["parsedDate"] = parse_date_column(df["date"])
    return df


def contains_any(series: pd.Series, needles: List[str]) -> pd.Series:
    """Check if series contains any of the needle strings (case-insensitive)."""
    series_lower = series.astype(str).str.lower().fillna("")

    if not needles:
        return pd.Series(False, index=series.index)

    condition = pd.Series(False, index=series.index)
    for needle in needles:
        needle_clean = str(needle).strip().lower()
        if needle_clean:
            condition |= series_lower.str.contains(re.escape(needle_clean), na=False)

    return condition


def text_search_mask(df: pd.DataFrame, text: str, columns: List[str]) -> pd.Series:
    """Rows where any of the given columns contains the search text (case-insensitive)."""
    needle = (text or "").strip()
    if not needle or df.empty:
        return pd.Series(True, index=df.index)

    mask = pd.Series(False, index=df.index)
    for col in columns:
        if col in df.columns:
            mask |= contains_any(df[col], [needle])
    return mask


def next_sequence_number(numbers: List[str], prefix: str, width: int) -> str:
    """Next PREFIX-nnnn after the highest existing number with that prefix."""
    pattern = re.compile(rf"^{re.escape(prefix)}-(\d+)$")
    highest = 0
    for number in numbers:
        match = pattern.match(str(number or "").strip())
        if match:
            highest = max(highest, int(match.group(1)))
    return f"{prefix}-{str(highest + 1).zfill(width)}"


def unique_non_empty(df: pd.DataFrame, column: str) -> List[str]:
    """Sorted distinct non-empty values of a column, for filter dropdowns."""
    if column not in df.columns or df.empty:
        return []
    values = df[column].astype(str).str.strip()
    return sorted(v for v in values.unique() if v)
