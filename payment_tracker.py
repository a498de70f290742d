"""
Payment tracker analytics over the customer ledger.

Payments are ledger rows typed as Payment; their amount is credit - debit.
Each payment is classified by its matching id against the opening-balance (OB)
invoices and the current year's SAL invoices, and bucketed into daily, weekly,
monthly or yearly periods.
"""
import pandas as pd
from typing import Any, Dict, Optional, Set, Tuple
from data_processor import parse_sheet_date, text_search_mask
from config import (
    PAYMENT_TYPE, PAYMENT_CREDIT_THRESHOLD, MONTH_NAMES, DASHBOARD_MONTHS,
    DASHBOARD_MAX_MONTHS, AVERAGE_WEEKS, TIMEZONE,
)

PAYMENT_COLUMNS = [
    "date", "number", "customerName", "salesRep", "matching", "parsedDate",
    "rawCredit", "rawDebit", "amount", "matchedOpeningBalance",
]

SEARCH_COLUMNS = ["customerName", "number"]


def period_key(date: pd.Timestamp, period_type: str) -> str:
    """Bucket key for a date: DD/MM/YYYY, YYYY-Wnn, YYYY-MM or YYYY."""
    if period_type == "daily":
        return date.strftime("%d/%m/%Y")
    if period_type == "weekly":
        week = (date.dayofyear - 1) // 7 + 1
        return f"{date.year}-W{week:02d}"
    if period_type == "monthly":
        return date.strftime("%Y-%m")
    if period_type == "yearly":
        return str(date.year)
    raise ValueError(f"Unknown period type: {period_type}")


def period_label(key: str, period_type: str) -> str:
    if period_type == "weekly":
        year, week = key.split("-W")
        return f"Week {week}, {year}"
    if period_type == "monthly":
        year, month = key.split("-")
        index = int(month) - 1
        name = MONTH_NAMES[index] if 0 <= index < 12 else month
        return f"{name} {year}"
    return key


def _month_start(ts: pd.Timestamp, months_back: int = 0) -> pd.Timestamp:
    return (pd.Period(ts, freq="M") - months_back).start_time


def _month_end(ts: pd.Timestamp) -> pd.Timestamp:
    # Last calendar day at midnight; ledger dates carry no time
    return pd.Period(ts, freq="M").end_time.normalize()


def _parse_filter_date(value: Any) -> Optional[pd.Timestamp]:
    if value is None or value == "":
        return None
    parsed = parse_sheet_date(value)
    return parsed.normalize() if parsed is not None else None


class PaymentTracker:
    """Classifies and aggregates payments from the invoice ledger."""

    def __init__(self, df: pd.DataFrame, today: Any = None):
        self.df = df
        if today is None:
            today = pd.Timestamp.now(tz=TIMEZONE).tz_localize(None)
        self.today = pd.Timestamp(today).normalize()
        self.ob_matching_ids = self._matching_ids(self._number_prefix("OB"))
        dates = self.df.get("parsedDate", pd.Series(dtype="datetime64[ns]"))
        self.current_year_matching_ids = self._matching_ids(
            self._number_prefix("SAL") & (dates.dt.year == self.today.year)
        )

    def _number_prefix(self, prefix: str) -> pd.Series:
        if self.df.empty:
            return pd.Series(False, index=self.df.index)
        return self.df["number"].str.upper().str.startswith(prefix)

    def _matching_ids(self, mask: pd.Series) -> Set[str]:
        if self.df.empty:
            return set()
        ids = self.df.loc[mask.fillna(False), "matching"].astype(str).str.lower()
        return {i for i in ids if i.strip()}

    def sales_reps(self):
        if self.df.empty:
            return []
        reps = self.df["salesRep"].astype(str).str.strip()
        return sorted(r for r in reps.unique() if r)

    def _filtered(self, types=None, sales_rep: str = "", search: str = "") -> pd.DataFrame:
        df = self.df
        if df.empty:
            return df

        mask = pd.Series(True, index=df.index)
        if types is not None:
            mask &= df["type"].isin(types)
        if sales_rep:
            mask &= df["salesRep"].str.strip() == sales_rep
        mask &= text_search_mask(df, search, SEARCH_COLUMNS)
        return df[mask]

    @staticmethod
    def _between(df: pd.DataFrame, start: Optional[pd.Timestamp], end: Optional[pd.Timestamp]) -> pd.DataFrame:
        """Rows dated within [start, end] (whole days); undated rows are dropped."""
        dates = df["parsedDate"]
        mask = dates.notna()
        if start is not None:
            mask &= dates >= start
        if end is not None:
            mask &= dates < end + pd.Timedelta(days=1)
        return df[mask]

    def _payment_rows(self, sales_rep: str = "", date_from: Any = None, date_to: Any = None,
                      search: str = "") -> pd.DataFrame:
        payments = self._filtered([PAYMENT_TYPE], sales_rep, search)
        start, end = _parse_filter_date(date_from), _parse_filter_date(date_to)
        if start is not None or end is not None:
            payments = self._between(payments, start, end)
        return payments

    def payments(self, sales_rep: str = "", date_from: Any = None, date_to: Any = None,
                 show_ob_closed: bool = True, show_other: bool = True) -> pd.DataFrame:
        """Payment entries with amount = credit - debit and the OB-closed flag."""
        rows = self._payment_rows(sales_rep, date_from, date_to)
        if rows.empty:
            return pd.DataFrame(columns=PAYMENT_COLUMNS)

        payments = rows.assign(
            rawCredit=rows["credit"],
            rawDebit=rows["debit"],
            amount=rows["credit"] - rows["debit"],
            matchedOpeningBalance=rows["matching"].astype(str).str.lower().isin(self.ob_matching_ids),
        )[PAYMENT_COLUMNS]

        if not (show_ob_closed and show_other):
            closed = payments["matchedOpeningBalance"]
            payments = payments[(closed & show_ob_closed) | (~closed & show_other)]

        return payments.reset_index(drop=True)

    def classify_matching(self, matching: Any) -> str:
        """Closure category of a payment's matching id."""
        match_id = str(matching or "").lower()
        if not match_id.strip():
            return "Unmatched"

        is_ob = match_id in self.ob_matching_ids
        is_current = match_id in self.current_year_matching_ids
        if is_ob and is_current:
            return "Mixed"
        if is_ob:
            return "OB Only"
        if is_current:
            return "Current Year Only"
        return "Other"

    def closure_stats(self, sales_rep: str = "", date_from: Any = None, date_to: Any = None,
                      search: str = "") -> Dict[str, float]:
        """Split payments by what their matching id closes; percentages sum to 100."""
        rows = self._payment_rows(sales_rep, date_from, date_to, search)
        categories = {"OB Only": "obOnly", "Current Year Only": "currentYearOnly",
                      "Mixed": "mixed", "Unmatched": "unmatched"}

        stats: Dict[str, float] = {"totalCount": int(len(rows))}
        if rows.empty:
            amounts = pd.Series(dtype=float)
            counts = pd.Series(dtype=int)
        else:
            net = rows["credit"] - rows["debit"]
            category = rows["matching"].apply(self.classify_matching)
            amounts = net.groupby(category).sum()
            counts = category.value_counts()

        total = float(sum(amounts.get(c, 0.0) for c in categories))
        stats["totalAmount"] = total
        for label, prefix in categories.items():
            amount = float(amounts.get(label, 0.0))
            stats[f"{prefix}Amount"] = amount
            stats[f"{prefix}Count"] = int(counts.get(label, 0))
            stats[f"{prefix}Percent"] = (amount / total * 100) if total != 0 else 0.0

        return stats

    def dashboard_window(self, date_from: Any = None, date_to: Any = None) -> Tuple[pd.Timestamp, pd.Timestamp]:
        """Month-aligned window for the sales vs collections dashboard."""
        start, end = _parse_filter_date(date_from), _parse_filter_date(date_to)
        default_start = _month_start(self.today, DASHBOARD_MONTHS - 1)

        if date_from or date_to:
            if date_from:
                window_start = start if start is not None else default_start
                window_end = _month_end(end if end is not None else self.today)
            else:
                anchor = end if end is not None else self.today
                window_start = _month_start(anchor, DASHBOARD_MONTHS - 1)
                window_end = _month_end(anchor)
            return window_start, window_end

        latest = self.df["parsedDate"].max() if not self.df.empty else pd.NaT
        anchor = self.today if pd.isna(latest) else latest
        return _month_start(anchor, DASHBOARD_MONTHS - 1), _month_end(anchor)

    def monthly_dashboard(self, date_from: Any = None, date_to: Any = None, search: str = "",
                          sales_rep: str = "") -> Tuple[pd.DataFrame, Dict[str, float]]:
        """Per-month gross sales, returns, discounts and collections over the window."""
        window_start, window_end = self.dashboard_window(date_from, date_to)
        months = pd.period_range(pd.Period(window_start, freq="M"),
                                 pd.Period(window_end, freq="M"), freq="M")[:DASHBOARD_MAX_MONTHS]
        keys = [str(m) for m in months]

        rows = self._filtered(None, sales_rep, search)
        if not rows.empty:
            rows = self._between(rows, window_start, window_end)

        stats = pd.DataFrame({"yearMonth": keys})
        for col in ["grossSales", "returns", "discounts", "collections"]:
            stats[col] = 0.0
        net_payment_count = 0

        if not rows.empty:
            rows = rows.assign(yearMonth=rows["parsedDate"].dt.strftime("%Y-%m"))
            rows = rows[rows["yearMonth"].isin(keys)]
            negative_debit = rows["debit"].where(rows["debit"] < 0, 0).abs()
            rows = rows.assign(
                grossSales=rows["debit"].where(rows["type"] == "Sale", 0.0),
                returns=(rows["credit"] + negative_debit).where(rows["type"] == "Return", 0.0),
                discounts=(rows["credit"] + negative_debit).where(rows["type"] == "Discount", 0.0),
                collections=(rows["credit"] - rows["debit"]).where(rows["type"] == PAYMENT_TYPE, 0.0),
            )
            monthly = rows.groupby("yearMonth")[["grossSales", "returns", "discounts", "collections"]].sum()
            stats = stats.set_index("yearMonth")
            stats.update(monthly)
            stats = stats.reset_index()

            payment_net = rows.loc[rows["type"] == PAYMENT_TYPE, "collections"]
            net_payment_count = int((payment_net > 0).sum())

        stats["monthLabel"] = stats["yearMonth"].apply(lambda k: period_label(k, "monthly"))
        stats["netSales"] = stats["grossSales"] - stats["returns"]
        stats["netSalesMinusDiscounts"] = stats["netSales"] - stats["discounts"]

        total_sales = float(stats["netSalesMinusDiscounts"].sum())
        total_collections = float(stats["collections"].sum())
        totals = {
            "totalNetSalesMinusDiscounts": total_sales,
            "totalCollections": total_collections,
            "difference": total_sales - total_collections,
            "netPaymentCount": net_payment_count,
        }
        return stats, totals

    def average_collections(self, sales_rep: str = "", search: str = "") -> Dict[str, float]:
        """Average monthly and weekly collections over the last 12 months of payments."""
        payments = self._filtered([PAYMENT_TYPE], sales_rep, search)
        latest = payments["parsedDate"].max() if not payments.empty else pd.NaT
        anchor = self.today if pd.isna(latest) else latest

        total = 0.0
        if not payments.empty:
            window = self._between(payments, _month_start(anchor, DASHBOARD_MONTHS - 1), _month_end(anchor))
            total = float((window["credit"] - window["debit"]).sum())

        return {
            "averageMonthly": total / DASHBOARD_MONTHS,
            "averageWeekly": total / AVERAGE_WEEKS,
            "monthsCount": DASHBOARD_MONTHS,
            "weeksCount": AVERAGE_WEEKS,
        }

    def average_collection_days(self, date_from: Any = None, date_to: Any = None,
                                sales_rep: str = "", search: str = "") -> Dict[str, float]:
        """Mean over customers of the average day gap between consecutive payments."""
        start, end = _parse_filter_date(date_from), _parse_filter_date(date_to)
        if start is not None and end is not None:
            window = (start, _month_end(end))
        elif start is not None:
            window = (start, _month_end(self.today))
        elif end is not None:
            window = (_month_start(end, DASHBOARD_MONTHS - 1), _month_end(end))
        else:
            window = (_month_start(self.today, DASHBOARD_MONTHS - 1), _month_end(self.today))

        payments = self._filtered([PAYMENT_TYPE], sales_rep, search)
        if not payments.empty:
            payments = self._between(payments, *window)
            payments = payments[payments["customerName"].str.strip() != ""]

        customer_averages = []
        if not payments.empty:
            for _, group in payments.groupby(payments["customerName"].str.strip()):
                if len(group) < 2:
                    continue
                gaps = group["parsedDate"].sort_values().diff().dt.days.dropna()
                gaps = gaps[gaps > 0]
                if not gaps.empty:
                    customer_averages.append(float(gaps.mean()))

        return {
            "averageDays": sum(customer_averages) / len(customer_averages) if customer_averages else 0.0,
            "customersCount": len(customer_averages),
            "totalPayments": int(len(payments)),
        }

    @staticmethod
    def _payment_count(payments: pd.DataFrame) -> int:
        # Reversals and debit-only adjustments are not counted as payments
        return int((payments["rawCredit"] > PAYMENT_CREDIT_THRESHOLD).sum())

    @classmethod
    def by_customer(cls, payments: pd.DataFrame, search: str = "") -> pd.DataFrame:
        """Payments grouped by customer name (case and whitespace insensitive)."""
        columns = ["customerKey", "customerName", "totalPayments", "paymentCount"]
        if payments.empty:
            return pd.DataFrame(columns=columns)

        keyed = payments.assign(customerKey=payments["customerName"].str.strip().str.lower())
        rows = []
        for key, group in keyed.groupby("customerKey", sort=False):
            rows.append({
                "customerKey": key,
                "customerName": group["customerName"].iloc[0],
                "totalPayments": float(group["amount"].sum()),
                "paymentCount": cls._payment_count(group),
            })

        result = pd.DataFrame(rows, columns=columns)
        result = result[text_search_mask(result, search, ["customerName"])]
        return result.sort_values("totalPayments", ascending=False).reset_index(drop=True)

    @classmethod
    def by_period(cls, payments: pd.DataFrame, period_type: str, search: str = "") -> pd.DataFrame:
        """Payments bucketed by period; daily newest first, others by key descending."""
        columns = ["periodKey", "period", "totalPayments", "paymentCount", "customerCount", "latest"]
        base = payments[text_search_mask(payments, search, SEARCH_COLUMNS)] if not payments.empty else payments
        base = base[base["parsedDate"].notna()] if not base.empty else base
        if base.empty:
            return pd.DataFrame(columns=columns)

        keyed = base.assign(periodKey=base["parsedDate"].apply(lambda d: period_key(d, period_type)))
        rows = []
        for key, group in keyed.groupby("periodKey", sort=False):
            rows.append({
                "periodKey": key,
                "period": period_label(key, period_type),
                "totalPayments": float(group["amount"].sum()),
                "paymentCount": cls._payment_count(group),
                "customerCount": int(group["customerName"].str.strip().str.lower().nunique()),
                "latest": group["parsedDate"].max(),
            })

        result = pd.DataFrame(rows, columns=columns)
        sort_column = "latest" if period_type == "daily" else "periodKey"
        return result.sort_values(sort_column, ascending=False).reset_index(drop=True)

    @staticmethod
    def period_detail(payments: pd.DataFrame, period_type: str, key: str) -> pd.DataFrame:
        """All visible payments in one period, newest first, ignoring search."""
        if payments.empty:
            return payments
        dated = payments[payments["parsedDate"].notna()]
        keys = dated["parsedDate"].apply(lambda d: period_key(d, period_type))
        return dated[keys == key].sort_values("parsedDate", ascending=False).reset_index(drop=True)

    @staticmethod
    def customer_detail(payments: pd.DataFrame, customer_name: str) -> pd.DataFrame:
        if payments.empty:
            return payments
        key = str(customer_name).strip().lower()
        mine = payments[payments["customerName"].str.strip().str.lower() == key]
        return mine.sort_values("parsedDate", ascending=False, na_position="last").reset_index(drop=True)

    @staticmethod
    def total_collected(payments: pd.DataFrame, search: str = "", view: str = "dashboard") -> float:
        """Sum of visible payment amounts matching the search for the active view."""
        if payments.empty:
            return 0.0
        columns = ["customerName"] if view == "customer" else SEARCH_COLUMNS
        return float(payments.loc[text_search_mask(payments, search, columns), "amount"].sum())
