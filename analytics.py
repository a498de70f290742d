import pandas as pd
import numpy as np
from datetime import datetime
from typing import Any, Dict, List, Optional
from data_processor import text_search_mask, parse_sheet_date, next_sequence_number, coerce_num
from config import (
    MAIN_LOCATIONS, MAIN_LOCATION, LEGACY_IN, LEGACY_OUT, TRANSACTION_TYPES, UNITS,
    TRANSACTION_PREFIX, MONTH_NAMES, DASHBOARD_MONTHS, INACTIVE_MIN_DAYS, INACTIVE_STATUSES, TIMEZONE,
)


class TransactionError(ValueError):
    """Raised when an inventory transaction cannot be recorded."""


def _safe_pcs_in_ctn(value: Any) -> int:
    try:
        value = int(value)
    except (TypeError, ValueError):
        return 1
    return value if value > 0 else 1


def _is_main(location: str) -> bool:
    return str(location or "").strip() in MAIN_LOCATIONS


class InventoryAnalyzer:
    """Stock levels, people holdings and transaction history for the Chipsy sheet."""

    def __init__(self, products: pd.DataFrame, transfers: pd.DataFrame):
        self.products = products
        self.transfers = transfers

    def current_stock(self) -> pd.DataFrame:
        """Apply every transfer to the sheet baseline to get live stock per product."""
        if self.products.empty:
            return pd.DataFrame(columns=["rowIndex", "barcode", "productName", "qtyPcs",
                                         "pcsInCtn", "price", "qtyCtns"])

        stock = self.products.copy()
        if not self.transfers.empty:
            t = self.transfers
            stock_in = t["locTo"].apply(_is_main) | (t["locFrom"] == LEGACY_IN)
            stock_out = ~stock_in & (t["locFrom"].apply(_is_main) | (t["locFrom"] == LEGACY_OUT))
            delta = (t["qtyPcs"].where(stock_in, 0) - t["qtyPcs"].where(stock_out, 0))
            by_barcode = delta.groupby(t["barcode"]).sum()
            stock["qtyPcs"] = stock["qtyPcs"] + stock["barcode"].map(by_barcode).fillna(0).astype(int)

        stock["qtyCtns"] = stock["qtyPcs"] / stock["pcsInCtn"].apply(_safe_pcs_in_ctn)
        return stock

    def stock_summary(self) -> Dict[str, float]:
        stock = self.current_stock()
        return {
            "total_products": int(len(stock)),
            "total_pcs": int(stock["qtyPcs"].sum()) if not stock.empty else 0,
            "total_ctns": float(stock["qtyCtns"].sum()) if not stock.empty else 0.0,
        }

    def search_products(self, query: str) -> pd.DataFrame:
        stock = self.current_stock()
        return stock[text_search_mask(stock, query, ["productName", "barcode"])]

    def search_transfers(self, query: str) -> pd.DataFrame:
        return self.transfers[text_search_mask(
            self.transfers, query,
            ["number", "productName", "barcode", "locFrom", "locTo", "customerName", "user"]
        )]

    def _person_movements(self) -> pd.DataFrame:
        """Signed piece movements per (person, barcode) from the transfer log."""
        rows = []
        for t in self.transfers.itertuples(index=False):
            loc_from = str(t.locFrom).strip()
            loc_to = str(t.locTo).strip()
            qty = int(t.qtyPcs)

            if loc_from in (LEGACY_IN, LEGACY_OUT):
                # Legacy rows: type in LOC FROM, person in LOC TO
                if loc_to and not _is_main(loc_to):
                    rows.append((loc_to, t.barcode, qty if loc_from == LEGACY_OUT else -qty))
                continue

            if not _is_main(loc_from) and loc_from:
                rows.append((loc_from, t.barcode, -qty))
            if not _is_main(loc_to) and loc_to:
                rows.append((loc_to, t.barcode, qty))

        return pd.DataFrame(rows, columns=["person", "barcode", "qtyPcs"])

    def _pcs_in_ctn_map(self) -> pd.Series:
        if self.products.empty:
            return pd.Series(dtype=int)
        return self.products.drop_duplicates("barcode").set_index("barcode")["pcsInCtn"]

    def people_inventory(self) -> pd.DataFrame:
        """Per person: total pieces, cartons and number of products currently held."""
        columns = ["person", "totalPcs", "totalCtns", "productCount"]
        movements = self._person_movements()
        if movements.empty:
            return pd.DataFrame(columns=columns)

        holdings = movements.groupby(["person", "barcode"], as_index=False)["qtyPcs"].sum()
        holdings = holdings[holdings["qtyPcs"] != 0]
        if holdings.empty:
            return pd.DataFrame(columns=columns)

        pcs_in_ctn = holdings["barcode"].map(self._pcs_in_ctn_map()).apply(_safe_pcs_in_ctn)
        holdings = holdings.assign(qtyCtns=holdings["qtyPcs"] / pcs_in_ctn)

        result = holdings.groupby("person", as_index=False).agg(
            totalPcs=("qtyPcs", "sum"),
            totalCtns=("qtyCtns", "sum"),
            productCount=("barcode", "nunique"),
        )
        return result.sort_values("totalPcs", ascending=False).reset_index(drop=True)

    def person_details(self, person: str) -> pd.DataFrame:
        """Products held by one person, with names from the inventory sheet."""
        columns = ["barcode", "productName", "qtyPcs", "qtyCtns"]
        movements = self._person_movements()
        if movements.empty:
            return pd.DataFrame(columns=columns)

        mine = movements[movements["person"] == str(person).strip()]
        held = mine.groupby("barcode", as_index=False)["qtyPcs"].sum()
        held = held[held["qtyPcs"] != 0]

        names = (self.products.drop_duplicates("barcode").set_index("barcode")["productName"]
                 if not self.products.empty else pd.Series(dtype=str))
        held["productName"] = held["barcode"].map(names).fillna("")
        held["qtyCtns"] = held["qtyPcs"] / held["barcode"].map(self._pcs_in_ctn_map()).apply(_safe_pcs_in_ctn)
        return held[columns].sort_values("qtyPcs", ascending=False).reset_index(drop=True)

    def transaction_details(self, number: str) -> pd.DataFrame:
        if self.transfers.empty:
            return self.transfers
        return self.transfers[self.transfers["number"] == str(number).strip()].reset_index(drop=True)

    def transactions(self) -> pd.DataFrame:
        """One row per transaction number, newest first."""
        columns = ["number", "date", "user", "locFrom", "locTo", "customerName",
                   "items", "totalPcs", "total"]
        if self.transfers.empty:
            return pd.DataFrame(columns=columns)

        numbered = self.transfers[self.transfers["number"] != ""]
        result = numbered.groupby("number", as_index=False, sort=False).agg(
            date=("date", "first"),
            user=("user", "first"),
            locFrom=("locFrom", "first"),
            locTo=("locTo", "first"),
            customerName=("customerName", "first"),
            items=("barcode", "count"),
            totalPcs=("qtyPcs", "sum"),
            total=("total", "sum"),
        )
        return result[columns]

    def build_transaction(self, transaction_type: str, person: str, items: List[Dict[str, Any]],
                          number: str, user: str = "", customer_name: str = "",
                          description: str = "", when: Optional[datetime] = None) -> List[Dict[str, Any]]:
        """Validate a batch of items and turn it into transfer rows (quantities in pieces)."""
        if transaction_type not in TRANSACTION_TYPES:
            raise TransactionError(f"Unknown transaction type: {transaction_type}")
        person = (person or "").strip()
        if not person:
            raise TransactionError("Person name is required")

        catalog = {p["barcode"]: p for p in self.products.to_dict("records")}
        when = when or datetime.now()
        date_text = when.strftime("%d/%m/%Y %H:%M")

        rows = []
        for item in items:
            barcode = str(item.get("barcode") or "").strip()
            unit = str(item.get("unit") or "CTN").upper()
            qty = coerce_num(item.get("qty"))
            if not barcode or qty <= 0:
                continue

            product = catalog.get(barcode)
            if product is None:
                raise TransactionError(f"Product not found in inventory: {barcode}")
            if unit not in UNITS:
                raise TransactionError(f"Unknown unit: {unit}")

            qty_pcs = int(round(qty * _safe_pcs_in_ctn(product["pcsInCtn"]))) if unit == "CTN" else int(round(qty))
            price = coerce_num(item.get("price")) or coerce_num(product.get("price"))
            rows.append({
                "user": user or "Unknown",
                "number": number,
                "date": date_text,
                "locFrom": MAIN_LOCATION if transaction_type == "OUT" else person,
                "locTo": person if transaction_type == "OUT" else MAIN_LOCATION,
                "customerName": customer_name or "",
                "receiverName": "",
                "barcode": barcode,
                "productName": product["productName"],
                "qtyPcs": qty_pcs,
                "price": price,
                "total": round(qty_pcs * price, 2),
                "description": description or "",
            })

        if not rows:
            raise TransactionError("Add at least one product with a quantity")
        return rows


def record_transaction(analyzer: InventoryAnalyzer, log, transaction_type: str, person: str,
                       items: List[Dict[str, Any]], **kwargs) -> Dict[str, Any]:
    """Assign the next transaction number, validate and append the batch to the log."""
    number = next_sequence_number(log.existing_numbers(), TRANSACTION_PREFIX, 4)
    rows = analyzer.build_transaction(transaction_type, person, items, number, **kwargs)
    log.append_transfers(rows)
    return {"success": True, "transactionNumber": number, "rows": rows}


def _month_label(month_key: str, short_year: bool = False) -> str:
    year, month = month_key.split("-")
    name = MONTH_NAMES[int(month) - 1]
    return f"{name} {year[-2:] if short_year else year}"


def _product_key(df: pd.DataFrame) -> pd.Series:
    return df["productId"].where(df["productId"] != "",
                                 df["barcode"].where(df["barcode"] != "", df["product"]))


def _customer_key(df: pd.DataFrame) -> pd.Series:
    return df["customerId"].where(df["customerId"] != "", df["customerName"])


def _is_sal(df: pd.DataFrame) -> pd.Series:
    return df["invoiceNumber"].str.strip().str.upper().str.startswith("SAL")


def _inactive_status(days: int) -> str:
    for status, below in INACTIVE_STATUSES:
        if below is None or days < below:
            return status
    return INACTIVE_STATUSES[-1][0]


def _monthly_breakdown(rows: pd.DataFrame) -> pd.DataFrame:
    """Month totals for a detail view, newest month first."""
    columns = ["monthKey", "month", "amount", "qty", "count"]
    dated = rows[rows["parsedDate"].notna()]
    if dated.empty:
        return pd.DataFrame(columns=columns)

    result = (dated.assign(monthKey=dated["parsedDate"].dt.strftime("%Y-%m"),
                           _invoice=dated["invoiceNumber"].replace("", np.nan))
              .groupby("monthKey", as_index=False)
              .agg(amount=("amount", "sum"), qty=("qty", "sum"), count=("_invoice", "nunique")))
    result["month"] = result["monthKey"].apply(lambda k: _month_label(k, short_year=True))
    return result.sort_values("monthKey", ascending=False).reset_index(drop=True)[columns]


def _detail_metrics(rows: pd.DataFrame, monthly: pd.DataFrame, unique_key: pd.Series) -> Dict[str, float]:
    total_amount = float(rows["amount"].sum()) if not rows.empty else 0.0
    total_qty = float(rows["qty"].sum()) if not rows.empty else 0.0
    months = len(monthly)
    return {
        "totalAmount": total_amount,
        "totalQty": total_qty,
        "uniqueCount": int(unique_key.nunique()),
        "uniqueMonths": months,
        "avgMonthlyAmount": total_amount / months if months else 0.0,
        "avgMonthlyQty": total_qty / months if months else 0.0,
    }


class SalesAnalyzer:
    """Reports over line-level sales invoices."""

    def __init__(self, df: pd.DataFrame, today: Any = None):
        self.df = df
        if today is None:
            today = pd.Timestamp.now(tz=TIMEZONE).tz_localize(None)
        self.today = pd.Timestamp(today).normalize()

    def filter(self, year: Optional[int] = None, month: Optional[int] = None,
               date_from: Any = None, date_to: Any = None, area: str = "",
               market: str = "", merchandiser: str = "", sales_rep: str = "",
               search: str = "") -> pd.DataFrame:
        """Apply the sales sidebar filters; any date filter drops undated rows."""
        df = self.df
        if df.empty:
            return df

        mask = pd.Series(True, index=df.index)
        dates = df["parsedDate"]

        if year:
            mask &= dates.dt.year == int(year)
        if month and 1 <= int(month) <= 12:
            mask &= dates.dt.month == int(month)

        start = parse_sheet_date(date_from) if date_from else None
        end = parse_sheet_date(date_to) if date_to else None
        if start is not None:
            mask &= dates >= start.normalize()
        if end is not None:
            mask &= dates < end.normalize() + pd.Timedelta(days=1)

        for col, value in [("area", area), ("market", market),
                           ("merchandiser", merchandiser), ("salesRep", sales_rep)]:
            if value:
                mask &= df[col] == value

        mask &= text_search_mask(df, search, ["invoiceNumber", "customerName", "product", "barcode"])
        return df[mask.fillna(False)]

    def overview_metrics(self) -> Dict[str, float]:
        df = self.df
        if df.empty:
            return {
                "total_amount": 0.0, "total_qty": 0.0, "total_customers": 0,
                "total_products": 0, "avg_amount_per_sale": 0.0, "avg_qty_per_sale": 0.0,
                "avg_monthly_amount": 0.0, "avg_monthly_qty": 0.0,
            }

        total_amount = float(df["amount"].sum())
        total_qty = float(df["qty"].sum())

        dated = df[df["parsedDate"].notna()]
        months = dated["parsedDate"].dt.strftime("%Y-%m")
        month_count = max(months.nunique(), 1)

        return {
            "total_amount": total_amount,
            "total_qty": total_qty,
            "total_customers": int(df["customerName"].nunique()),
            "total_products": int(df["product"].nunique()),
            "avg_amount_per_sale": total_amount / len(df),
            "avg_qty_per_sale": total_qty / len(df),
            "avg_monthly_amount": float(dated["amount"].sum()) / month_count,
            "avg_monthly_qty": float(dated["qty"].sum()) / month_count,
        }

    def monthly_sales(self, fill_last_12: bool = True) -> pd.DataFrame:
        """Monthly totals; zero-filled last 12 months, or just the months present."""
        columns = ["monthKey", "month", "amount", "qty", "amountDiff"]
        dated = self.df[self.df["parsedDate"].notna()] if not self.df.empty else self.df
        if dated.empty:
            return pd.DataFrame(columns=columns)

        monthly = (dated.assign(monthKey=dated["parsedDate"].dt.strftime("%Y-%m"))
                   .groupby("monthKey", as_index=False)
                   .agg(amount=("amount", "sum"), qty=("qty", "sum")))

        if fill_last_12:
            latest = pd.Period(monthly["monthKey"].max(), freq="M")
            keys = [str(latest - i) for i in range(DASHBOARD_MONTHS - 1, -1, -1)]
            monthly = (monthly.set_index("monthKey")
                       .reindex(keys, fill_value=0.0)
                       .rename_axis("monthKey")
                       .reset_index())
        else:
            monthly = monthly.sort_values("monthKey").reset_index(drop=True)

        monthly["month"] = monthly["monthKey"].apply(lambda k: _month_label(k, short_year=True))
        monthly["amountDiff"] = monthly["amount"].diff().fillna(0.0)
        return monthly[columns]

    def top_products(self, n: int = 10, by: str = "totalAmount") -> pd.DataFrame:
        columns = ["productId", "barcode", "products", "totalAmount", "totalQty", "transactions"]
        df = self.df
        if df.empty:
            return pd.DataFrame(columns=columns)

        key = _product_key(df)
        grouped = df.assign(_key=key).groupby("_key", sort=False)

        result = grouped.agg(
            productId=("productId", "first"),
            barcode=("barcode", lambda s: ", ".join(dict.fromkeys(v for v in s if v)) or "-"),
            products=("product", lambda s: ", ".join(dict.fromkeys(v for v in s if v))),
            totalAmount=("amount", "sum"),
            totalQty=("qty", "sum"),
            transactions=("invoiceNumber", lambda s: s[s != ""].nunique()),
        ).reset_index(drop=True)

        return result.sort_values(by, ascending=False).head(n).reset_index(drop=True)[columns]

    def top_customers(self, n: int = 10, by: str = "totalAmount") -> pd.DataFrame:
        columns = ["customer", "totalAmount", "totalQty", "transactions"]
        df = self.df
        if df.empty:
            return pd.DataFrame(columns=columns)

        key = _customer_key(df)
        result = df.assign(_key=key).groupby("_key", sort=False).agg(
            customer=("customerName", "first"),
            totalAmount=("amount", "sum"),
            totalQty=("qty", "sum"),
            transactions=("invoiceNumber", lambda s: s[s != ""].nunique()),
        ).reset_index(drop=True)

        return result.sort_values(by, ascending=False).head(n).reset_index(drop=True)[columns]

    def invoices(self, invoice_type: str = "all") -> pd.DataFrame:
        """Sales lines rolled up per invoice number, newest first."""
        columns = ["invoiceDate", "invoiceNumber", "customerName", "amount", "qty",
                   "productsCount", "avgCost", "avgPrice", "parsedDate"]
        df = self.df[self.df["invoiceNumber"] != ""] if not self.df.empty else self.df
        if df.empty:
            return pd.DataFrame(columns=columns)

        product_key = _product_key(df)
        df = df.assign(
            _product=product_key,
            _cost=df["productCost"].where(df["productCost"] != 0),
            _price=df["productPrice"].where(df["productPrice"] != 0),
        )

        result = df.groupby("invoiceNumber", as_index=False, sort=False).agg(
            invoiceDate=("invoiceDate", "first"),
            customerName=("customerName", "first"),
            parsedDate=("parsedDate", "first"),
            amount=("amount", "sum"),
            qty=("qty", "sum"),
            productsCount=("_product", lambda s: s[s != ""].nunique()),
            avgCost=("_cost", "mean"),
            avgPrice=("_price", "mean"),
        )
        result[["avgCost", "avgPrice"]] = result[["avgCost", "avgPrice"]].fillna(0.0)

        number = result["invoiceNumber"].str.strip().str.upper()
        if invoice_type == "sales":
            result = result[number.str.startswith("SAL")]
        elif invoice_type == "returns":
            result = result[number.str.startswith("RSAL")]

        result = result.sort_values(["parsedDate", "invoiceNumber"], ascending=[False, False],
                                    na_position="last")
        return result[columns].reset_index(drop=True)

    @staticmethod
    def invoice_stats(invoices: pd.DataFrame) -> Dict[str, float]:
        if invoices.empty:
            return {"net_sales": 0.0, "total_sales": 0.0, "total_returns": 0.0,
                    "sales_count": 0, "returns_count": 0}

        number = invoices["invoiceNumber"].str.upper()
        sales = invoices[number.str.startswith("SAL")]
        returns = invoices[number.str.startswith("RSAL")]
        return {
            "net_sales": float(invoices["amount"].sum()),
            "total_sales": float(sales["amount"].sum()),
            "total_returns": float(returns["amount"].abs().sum()),
            "sales_count": int(len(sales)),
            "returns_count": int(len(returns)),
        }

    def sales_by_day(self) -> pd.DataFrame:
        """Daily totals and distinct counts, with SAL-only counts alongside."""
        columns = ["date", "amount", "qty", "invoicesCount", "productsCount",
                   "customersCount", "salInvoicesCount", "salProductsCount", "salCustomersCount"]
        df = self.df[self.df["parsedDate"].notna()] if not self.df.empty else self.df
        if df.empty:
            return pd.DataFrame(columns=columns)

        product_key = _product_key(df)
        customer_key = _customer_key(df)
        is_sal = _is_sal(df)

        df = df.assign(
            day=df["parsedDate"].dt.normalize(),
            _product=product_key,
            _customer=customer_key,
            _sal_invoice=df["invoiceNumber"].where(is_sal),
            _sal_product=product_key.where(is_sal),
            _sal_customer=customer_key.where(is_sal),
            _invoice=df["invoiceNumber"].replace("", np.nan),
        )

        result = df.groupby("day", as_index=False).agg(
            amount=("amount", "sum"),
            qty=("qty", "sum"),
            invoicesCount=("_invoice", "nunique"),
            productsCount=("_product", "nunique"),
            customersCount=("_customer", "nunique"),
            salInvoicesCount=("_sal_invoice", "nunique"),
            salProductsCount=("_sal_product", "nunique"),
            salCustomersCount=("_sal_customer", "nunique"),
        )
        result["date"] = result["day"].dt.strftime("%d/%m/%Y")
        # "day" is kept for the monthly averages
        return result.sort_values("day", ascending=False).reset_index(drop=True)[columns + ["day"]]

    def avg_sales_by_day(self) -> pd.DataFrame:
        """Per month, the average of each daily metric over the days with sales."""
        columns = ["monthKey", "monthYear", "days", "avgAmount", "avgQty",
                   "avgInvoices", "avgCustomers", "avgProducts"]
        daily = self.sales_by_day()
        if daily.empty:
            return pd.DataFrame(columns=columns)

        daily = daily.assign(monthKey=daily["day"].dt.strftime("%Y-%m"))
        result = daily.groupby("monthKey", as_index=False).agg(
            days=("day", "count"),
            avgAmount=("amount", "mean"),
            avgQty=("qty", "mean"),
            avgInvoices=("salInvoicesCount", "mean"),
            avgCustomers=("salCustomersCount", "mean"),
            avgProducts=("salProductsCount", "mean"),
        )
        result["monthYear"] = result["monthKey"].apply(_month_label).str.upper()
        return result.sort_values("monthKey", ascending=False).reset_index(drop=True)[columns]

    def group_stats(self, column: str) -> pd.DataFrame:
        """Totals per area, merchandiser or sales rep; undated or unassigned rows are skipped."""
        columns = ["name", "totalAmount", "totalQty", "invoiceCount", "averageMonthly",
                   "averageMonthlyGrowth", "percentageOfTotal"]
        df = self.df
        if df.empty:
            return pd.DataFrame(columns=columns)

        df = df[(df[column].str.strip() != "") & df["parsedDate"].notna()]
        if df.empty:
            return pd.DataFrame(columns=columns)

        df = df.assign(name=df[column].str.strip(), monthKey=df["parsedDate"].dt.strftime("%Y-%m"))
        result = df.groupby("name").agg(
            totalAmount=("amount", "sum"),
            totalQty=("qty", "sum"),
            invoiceCount=("amount", "count"),
            months=("monthKey", "nunique"),
        )
        result["averageMonthly"] = result["totalAmount"] / result["months"]

        # mean month-over-month change across the months with sales
        monthly = df.groupby(["name", "monthKey"])["amount"].sum()
        growth = monthly.groupby(level="name").diff().groupby(level="name").mean()
        result["averageMonthlyGrowth"] = growth.reindex(result.index).fillna(0.0)

        total = result["totalAmount"].sum()
        result["percentageOfTotal"] = result["totalAmount"] / total * 100 if total > 0 else 0.0

        return (result.reset_index()
                .sort_values("totalAmount", ascending=False)
                .reset_index(drop=True)[columns])

    def customers(self, by_main_name: bool = False) -> pd.DataFrame:
        """Per-customer totals; product and transaction counts cover SAL invoices only.

        Monthly averages divide by the months from the customer's first sale up to
        the current month, inclusive.
        """
        columns = ["customerKey", "customer", "merchandiser", "salesRep", "totalAmount",
                   "totalQty", "averageAmount", "averageQty", "productsCount", "transactions"]
        df = self.df
        if df.empty:
            return pd.DataFrame(columns=columns)

        if by_main_name:
            key = df["customerMainName"].where(df["customerMainName"] != "", df["customerName"])
            display = key
        else:
            key = _customer_key(df)
            display = df["customerName"]

        is_sal = _is_sal(df)
        df = df.assign(
            customerKey=key,
            _display=display,
            _sal_invoice=df["invoiceNumber"].where(is_sal),
            _sal_product=_product_key(df).where(is_sal),
        )

        result = df.groupby("customerKey", as_index=False, sort=False).agg(
            customer=("_display", "first"),
            merchandiser=("merchandiser", "first"),
            salesRep=("salesRep", "first"),
            totalAmount=("amount", "sum"),
            totalQty=("qty", "sum"),
            productsCount=("_sal_product", "nunique"),
            transactions=("_sal_invoice", "nunique"),
            firstDate=("parsedDate", "min"),
        )

        first = result["firstDate"]
        span = (self.today.year - first.dt.year) * 12 + (self.today.month - first.dt.month) + 1
        span = span.fillna(1).clip(lower=1)
        result["averageAmount"] = result["totalAmount"] / span
        result["averageQty"] = result["totalQty"] / span

        return result.sort_values("totalAmount", ascending=False).reset_index(drop=True)[columns]

    def customer_details(self, customer_key: str, search: str = "") -> Dict[str, Any]:
        """Drill-down for one customer: headline metrics, months and products bought."""
        product_columns = ["productKey", "barcode", "product", "amount", "qty"]
        df = self.df
        rows = df[_customer_key(df) == customer_key] if not df.empty else df
        if not rows.empty:
            rows = rows[text_search_mask(rows, search, ["product", "barcode", "merchandiser", "salesRep"])]

        monthly = _monthly_breakdown(rows)
        if rows.empty:
            products = pd.DataFrame(columns=product_columns)
            metrics = _detail_metrics(rows, monthly, pd.Series(dtype=str))
        else:
            keys = _product_key(rows)
            products = (rows.assign(productKey=keys)
                        .groupby("productKey", as_index=False, sort=False)
                        .agg(barcode=("barcode", "first"), product=("product", "first"),
                             amount=("amount", "sum"), qty=("qty", "sum"))
                        .sort_values("amount", ascending=False)
                        .reset_index(drop=True)[product_columns])
            metrics = _detail_metrics(rows, monthly, keys)

        name = rows["customerName"].iloc[0] if not rows.empty else customer_key
        return {"name": name, "metrics": metrics, "monthly": monthly, "products": products}

    def products(self) -> pd.DataFrame:
        """Per-product totals; transactions count distinct SAL invoices."""
        columns = ["productKey", "barcode", "product", "amount", "qty", "transactions"]
        df = self.df
        if df.empty:
            return pd.DataFrame(columns=columns)

        df = df.assign(productKey=_product_key(df),
                       _sal_invoice=df["invoiceNumber"].where(_is_sal(df)))
        result = df.groupby("productKey", as_index=False, sort=False).agg(
            barcode=("barcode", "first"),
            product=("product", "first"),
            amount=("amount", "sum"),
            qty=("qty", "sum"),
            transactions=("_sal_invoice", "nunique"),
        )
        return result.sort_values("amount", ascending=False).reset_index(drop=True)[columns]

    def product_details(self, product_key: str, search: str = "") -> Dict[str, Any]:
        """Drill-down for one product: headline metrics, months and the customers buying it."""
        customer_columns = ["customerKey", "customer", "amount", "qty", "transactions"]
        df = self.df
        rows = df[_product_key(df) == product_key] if not df.empty else df
        if not rows.empty:
            rows = rows[text_search_mask(rows, search, ["customerName", "merchandiser", "salesRep"])]

        monthly = _monthly_breakdown(rows)
        if rows.empty:
            customers = pd.DataFrame(columns=customer_columns)
            metrics = _detail_metrics(rows, monthly, pd.Series(dtype=str))
        else:
            keys = _customer_key(rows)
            customers = (rows.assign(customerKey=keys, _invoice=rows["invoiceNumber"].replace("", np.nan))
                         .groupby("customerKey", as_index=False, sort=False)
                         .agg(customer=("customerName", "first"), amount=("amount", "sum"),
                              qty=("qty", "sum"), transactions=("_invoice", "nunique"))
                         .sort_values("amount", ascending=False)
                         .reset_index(drop=True)[customer_columns])
            metrics = _detail_metrics(rows, monthly, keys)

        name = rows["product"].iloc[0] if not rows.empty else product_key
        return {"name": name, "metrics": metrics, "monthly": monthly, "customers": customers}

    def inactive_customers(self, status: str = "", min_days: int = 0,
                           min_amount: float = 0.0) -> pd.DataFrame:
        """Customers whose last SAL invoice is at least INACTIVE_MIN_DAYS old, longest idle first."""
        columns = ["customerKey", "customerName", "area", "merchandiser", "salesRep",
                   "lastPurchaseDate", "daysSinceLastPurchase", "totalAmount", "orderCount",
                   "averageOrderValue", "status"]
        df = self.df
        if df.empty:
            return pd.DataFrame(columns=columns)

        sal = df[_is_sal(df) & df["parsedDate"].notna()]
        if sal.empty:
            return pd.DataFrame(columns=columns)

        result = sal.assign(customerKey=_customer_key(sal)).groupby(
            "customerKey", as_index=False, sort=False).agg(
            customerName=("customerName", "first"),
            area=("area", "first"),
            merchandiser=("merchandiser", "first"),
            salesRep=("salesRep", "first"),
            lastPurchaseDate=("parsedDate", "max"),
            totalAmount=("amount", "sum"),
            orderCount=("invoiceNumber", "nunique"),
        )

        days = (self.today - result["lastPurchaseDate"].dt.normalize()).dt.days
        result = result.assign(daysSinceLastPurchase=days)
        result = result[result["daysSinceLastPurchase"] >= INACTIVE_MIN_DAYS]
        result = result.assign(
            averageOrderValue=(result["totalAmount"] / result["orderCount"]).fillna(0.0),
            status=result["daysSinceLastPurchase"].apply(_inactive_status),
        )

        if status:
            result = result[result["status"] == status]
        if min_days:
            result = result[result["daysSinceLastPurchase"] >= min_days]
        if min_amount:
            result = result[result["totalAmount"] >= min_amount]

        return (result.sort_values("daysSinceLastPurchase", ascending=False)
                .reset_index(drop=True)[columns])
