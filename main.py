"""
Trading Dashboards - Main Application

Chipsy inventory, sales reports, payment tracker and cash receipts over the
company's Google Sheets.
"""

# Standard library
import logging
from datetime import datetime

# Third-party
import streamlit as st
import pandas as pd
from streamlit import column_config as cc

# Local modules
from config import (
    APP_TITLE, PAGE_LAYOUT, INITIAL_SIDEBAR_STATE, CHART_STYLES, TOP_N_OPTIONS,
    INVOICE_TYPE_FILTERS, SALES_GROUPINGS, INACTIVE_STATUSES, DASHBOARD_MONTHS,
    TRANSACTION_TYPES, UNITS, get_log_level,
)
from utils import create_exportable_table_section, format_date, format_money
from auth import AuthManager
from data_loader import (
    load_invoices, load_sales, load_inventory, load_transfers, load_receipts,
    TransferLog, ReceiptBook,
)
from analytics import InventoryAnalyzer, SalesAnalyzer, TransactionError, record_transaction
from payment_tracker import PaymentTracker
from receipts import (
    ReceiptError, build_receipt, next_receipt_number, search_receipts, receipts_by_month,
)
from ui_components import FilterManager, ChartRenderer, selectable_grid

logger = logging.getLogger(__name__)

DASHBOARDS = ["📦 Inventory", "📈 Sales", "💰 Payments", "🧾 Cash Receipts"]

PAYMENT_DISPLAY_COLUMNS = ["date", "number", "customerName", "salesRep", "matching",
                           "amount", "matchedOpeningBalance"]


def setup_page():
    """Configure Streamlit page settings and logging."""
    st.set_page_config(
        page_title=APP_TITLE,
        layout=PAGE_LAYOUT,
        initial_sidebar_state=INITIAL_SIDEBAR_STATE,
    )
    logging.basicConfig(
        level=get_log_level(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def load_or_stop(loader, label: str) -> pd.DataFrame:
    """Run a cached loader; stop the page when the sheet can't be read."""
    try:
        return loader()
    except Exception as e:
        st.error(f"Couldn't load {label}. Check sharing, ID, and tab name.")
        st.exception(e)
        st.stop()


# ---------------------------------------------------------------- Inventory

def render_inventory_dashboard(auth_manager: AuthManager):
    """Chipsy inventory: stock, people holdings, history and new transactions."""
    products = load_or_stop(load_inventory, "the inventory sheet")
    transfers = load_or_stop(load_transfers, "the transfers sheet")
    analyzer = InventoryAnalyzer(products, transfers)

    summary = analyzer.stock_summary()
    col1, col2, col3 = st.columns(3)
    with col1: st.metric("Products", f"{summary['total_products']:,}")
    with col2: st.metric("Total Pieces", f"{summary['total_pcs']:,}")
    with col3: st.metric("Total Cartons", f"{summary['total_ctns']:,.1f}")

    tab1, tab2, tab3, tab4 = st.tabs(["📦 Stock", "👥 People", "🕘 History", "➕ New Transaction"])

    with tab1:
        query = st.text_input("Search products", placeholder="Name or barcode", key="inv_product_search")
        stock = analyzer.search_products(query)
        create_exportable_table_section(
            "Current Stock",
            stock[["barcode", "productName", "qtyPcs", "qtyCtns", "pcsInCtn", "price"]],
            "chipsy_stock", "inv_stock",
            column_config={
                "qtyPcs": cc.NumberColumn("Pieces", format="%d"),
                "qtyCtns": cc.NumberColumn("Cartons", format="%.2f"),
                "pcsInCtn": cc.NumberColumn("Pcs/Ctn", format="%d"),
                "price": cc.NumberColumn("Price", format="%.2f"),
            },
        )

    with tab2:
        render_people_inventory(analyzer)

    with tab3:
        render_transfer_history(analyzer)

    with tab4:
        render_transaction_form(analyzer, products, auth_manager)


def render_people_inventory(analyzer: InventoryAnalyzer):
    st.markdown("### Stock Held by People")
    people = analyzer.people_inventory()
    selected = selectable_grid(people, key="inv_people_grid")

    if selected:
        person = selected[0]["person"]
        st.markdown(f"#### {person}")
        st.dataframe(
            analyzer.person_details(person),
            use_container_width=True,
            hide_index=True,
            column_config={
                "qtyPcs": cc.NumberColumn("Pieces", format="%d"),
                "qtyCtns": cc.NumberColumn("Cartons", format="%.2f"),
            },
        )
    elif not people.empty:
        st.caption("Select a person to see the products they hold.")


def render_transfer_history(analyzer: InventoryAnalyzer):
    query = st.text_input("Search transfers", placeholder="Number, product, person or customer",
                          key="inv_transfer_search")

    transactions = analyzer.transactions()
    if query:
        matching_numbers = set(analyzer.search_transfers(query)["number"])
        transactions = transactions[transactions["number"].isin(matching_numbers)]

    st.markdown("### Transactions")
    selected = selectable_grid(transactions.reset_index(drop=True), key="inv_transactions_grid",
                               money_columns=["total"])

    if selected:
        number = selected[0]["number"]
        details = analyzer.transaction_details(number)
        st.markdown(f"#### {number}")
        st.dataframe(
            details[["date", "user", "locFrom", "locTo", "customerName", "barcode",
                     "productName", "qtyPcs", "price", "total", "description"]],
            use_container_width=True,
            hide_index=True,
        )


def render_transaction_form(analyzer: InventoryAnalyzer, products: pd.DataFrame,
                            auth_manager: AuthManager):
    """OUT gives stock from main inventory to a person; IN takes it back."""
    if products.empty:
        st.info("No products in the inventory sheet.")
        return

    with st.form("inv_transaction_form", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            transaction_type = st.radio("Type", TRANSACTION_TYPES, horizontal=True,
                                        format_func=lambda t: "OUT (to person)" if t == "OUT" else "IN (return to main)")
            person = st.text_input("Person")
        with col2:
            customer_name = st.text_input("Customer (optional)")
            description = st.text_input("Description (optional)")

        items = st.data_editor(
            pd.DataFrame({"barcode": pd.Series(dtype=str), "qty": pd.Series(dtype=float),
                          "unit": pd.Series(dtype=str)}),
            num_rows="dynamic",
            use_container_width=True,
            hide_index=True,
            key="inv_transaction_items",
            column_config={
                "barcode": cc.SelectboxColumn("Barcode", options=products["barcode"].tolist(), required=True),
                "qty": cc.NumberColumn("Qty", min_value=0.0, step=1.0),
                "unit": cc.SelectboxColumn("Unit", options=UNITS, default="CTN"),
            },
        )
        submitted = st.form_submit_button("Save Transaction", type="primary")

    if not submitted:
        return

    try:
        result = record_transaction(
            analyzer, TransferLog(), transaction_type, person,
            items.fillna({"unit": "CTN"}).to_dict("records"),
            user=auth_manager.current_user(),
            customer_name=customer_name,
            description=description,
            when=datetime.now(),
        )
    except TransactionError as e:
        st.error(str(e))
        return
    except Exception as e:
        st.error("Couldn't save the transaction to the sheet.")
        st.exception(e)
        return

    st.success(f"Saved {result['transactionNumber']} ({len(result['rows'])} items)")
    st.rerun()


# ---------------------------------------------------------------- Sales

def render_sales_dashboard():
    """Sales reports over the line-level invoices sheet."""
    df = load_or_stop(load_sales, "the sales sheet")
    if df.empty:
        st.info("No sales found in the sheet.")
        return

    filters = FilterManager(df, "sales").render_sales_filters()
    filtered = SalesAnalyzer(df).filter(**filters)
    has_filters = any(v for v in filters.values())

    if filtered.empty:
        st.warning("No rows match your filters.")
        return

    analyzer = SalesAnalyzer(filtered)
    tab1, tab2, tab3, tab4, tab5, tab6, tab7, tab8, tab9, tab10 = st.tabs([
        "📊 Overview", "📅 Monthly", "🏆 Top 10", "🧾 Invoices", "📆 By Day", "📐 Avg by Day",
        "📋 Statistics", "👤 Customers", "🥔 Products", "💤 Inactive Customers",
    ])

    with tab1:
        render_sales_overview(analyzer)

    with tab2:
        monthly = analyzer.monthly_sales(fill_last_12=not has_filters)
        st.plotly_chart(ChartRenderer.create_monthly_sales(monthly), use_container_width=True)
        create_exportable_table_section(
            "Monthly Sales", monthly.drop(columns=["monthKey"]), "monthly_sales", "sales_monthly",
            column_config={
                "amount": cc.NumberColumn("Amount", format="%.2f"),
                "qty": cc.NumberColumn("Qty", format="%.0f"),
                "amountDiff": cc.NumberColumn("Change", format="%+.2f"),
            },
        )

    with tab3:
        col1, col2 = st.columns(2)
        with col1:
            top_n = st.selectbox("Show", TOP_N_OPTIONS, key="sales_top_n")
        with col2:
            by = st.radio("Rank by", ["totalAmount", "totalQty"], horizontal=True, key="sales_top_by",
                          format_func=lambda v: "Amount" if v == "totalAmount" else "Qty")
        money = {"totalAmount": cc.NumberColumn("Amount", format="%.2f"),
                 "totalQty": cc.NumberColumn("Qty", format="%.0f")}
        create_exportable_table_section("Top Products", analyzer.top_products(top_n, by),
                                        "top_products", "sales_top_products", column_config=money)
        create_exportable_table_section("Top Customers", analyzer.top_customers(top_n, by),
                                        "top_customers", "sales_top_customers", column_config=money)

    with tab4:
        render_sales_invoices(analyzer)

    with tab5:
        daily = analyzer.sales_by_day()
        chart_type = st.radio("Chart", CHART_STYLES, horizontal=True, key="sales_day_chart")
        st.plotly_chart(
            ChartRenderer.create_time_series(chart_type, daily.sort_values("day"), "day", "amount", "Sales by Day"),
            use_container_width=True,
        )
        create_exportable_table_section(
            "Sales by Day", daily.drop(columns=["day"]), "sales_by_day", "sales_by_day",
            column_config={"amount": cc.NumberColumn("Amount", format="%.2f")},
        )

    with tab6:
        render_avg_sales_by_day(analyzer)

    with tab7:
        render_sales_statistics(analyzer)

    with tab8:
        render_sales_customers(analyzer)

    with tab9:
        render_sales_products(analyzer)

    with tab10:
        render_inactive_customers(analyzer)


def render_sales_overview(analyzer: SalesAnalyzer):
    metrics = analyzer.overview_metrics()

    col1, col2, col3, col4 = st.columns(4)
    with col1: st.metric("Total Amount", format_money(metrics["total_amount"]))
    with col2: st.metric("Total Qty", f"{metrics['total_qty']:,.0f}")
    with col3: st.metric("Customers", f"{metrics['total_customers']:,}")
    with col4: st.metric("Products", f"{metrics['total_products']:,}")

    col1, col2, col3, col4 = st.columns(4)
    with col1: st.metric("Avg Amount / Line", format_money(metrics["avg_amount_per_sale"]))
    with col2: st.metric("Avg Qty / Line", f"{metrics['avg_qty_per_sale']:,.2f}")
    with col3: st.metric("Avg Monthly Amount", format_money(metrics["avg_monthly_amount"]))
    with col4: st.metric("Avg Monthly Qty", f"{metrics['avg_monthly_qty']:,.0f}")


def render_sales_invoices(analyzer: SalesAnalyzer):
    label = st.radio("Invoices", list(INVOICE_TYPE_FILTERS.keys()), horizontal=True, key="sales_invoice_type")
    invoices = analyzer.invoices(INVOICE_TYPE_FILTERS[label])
    stats = SalesAnalyzer.invoice_stats(invoices)

    col1, col2, col3 = st.columns(3)
    with col1: st.metric("Net Sales", format_money(stats["net_sales"]))
    with col2: st.metric(f"Sales ({stats['sales_count']})", format_money(stats["total_sales"]))
    with col3: st.metric(f"Returns ({stats['returns_count']})", format_money(stats["total_returns"]))

    create_exportable_table_section(
        "Invoices", invoices.drop(columns=["parsedDate"]), "sales_invoices", "sales_invoices",
        column_config={
            "amount": cc.NumberColumn("Amount", format="%.2f"),
            "avgCost": cc.NumberColumn("Avg Cost", format="%.2f"),
            "avgPrice": cc.NumberColumn("Avg Price", format="%.2f"),
        },
    )


def render_avg_sales_by_day(analyzer: SalesAnalyzer):
    """Monthly averages of daily sales, shaded against each column's range."""
    averages = analyzer.avg_sales_by_day()
    if averages.empty:
        st.info("No data to display")
        return

    def shaded(col: str, label: str, fmt: str):
        return cc.ProgressColumn(label, format=fmt,
                                 min_value=float(averages[col].min()),
                                 max_value=float(averages[col].max()) or 1.0)

    create_exportable_table_section(
        "Average Sales by Day", averages.drop(columns=["monthKey"]), "avg_sales_by_day", "sales_avg_day",
        column_config={
            "monthYear": "Month",
            "days": cc.NumberColumn("Days", format="%d"),
            "avgAmount": shaded("avgAmount", "Avg Amount", "%.2f"),
            "avgQty": shaded("avgQty", "Avg Qty", "%.1f"),
            "avgInvoices": shaded("avgInvoices", "Avg Invoices", "%.1f"),
            "avgCustomers": shaded("avgCustomers", "Avg Customers", "%.1f"),
            "avgProducts": shaded("avgProducts", "Avg Products", "%.1f"),
        },
    )


def render_sales_statistics(analyzer: SalesAnalyzer):
    """Totals, monthly averages and growth per area, merchandiser and sales rep."""
    label = st.radio("Group by", list(SALES_GROUPINGS.keys()), horizontal=True, key="sales_stats_group")
    stats = analyzer.group_stats(SALES_GROUPINGS[label])
    if stats.empty:
        st.info("No data to display")
        return

    st.plotly_chart(
        ChartRenderer.create_time_series("Bar", stats, "name", "totalAmount", f"Sales by {label}"),
        use_container_width=True,
    )
    create_exportable_table_section(
        f"Sales by {label}", stats, f"sales_by_{SALES_GROUPINGS[label]}", "sales_stats",
        column_config={
            "name": label,
            "totalAmount": cc.NumberColumn("Amount", format="%.2f"),
            "totalQty": cc.NumberColumn("Qty", format="%.0f"),
            "invoiceCount": cc.NumberColumn("Lines", format="%d"),
            "averageMonthly": cc.NumberColumn("Avg Monthly", format="%.2f"),
            "averageMonthlyGrowth": cc.NumberColumn("Avg Monthly Growth", format="%+.2f"),
            "percentageOfTotal": cc.ProgressColumn("Share", format="%.1f%%", min_value=0.0, max_value=100.0),
        },
    )


def render_sales_customers(analyzer: SalesAnalyzer):
    by_main_name = st.radio("Customers", ["Branches", "Main accounts"], horizontal=True,
                            key="sales_customers_view") == "Main accounts"
    customers = analyzer.customers(by_main_name)

    col1, col2, col3 = st.columns(3)
    with col1: st.metric("Customers", f"{len(customers):,}")
    with col2: st.metric("Total Amount", format_money(customers["totalAmount"].sum() if not customers.empty else 0))
    with col3: st.metric("Total Qty", f"{customers['totalQty'].sum() if not customers.empty else 0:,.0f}")

    selected = selectable_grid(customers, key=f"sales_customers_grid_{by_main_name}",
                               money_columns=["totalAmount", "averageAmount"])
    # main-account rows have no single customer id to drill into
    if selected and not by_main_name:
        search = st.text_input("Search products", key="sales_customer_detail_search")
        details = analyzer.customer_details(selected[0]["customerKey"], search)
        render_sales_details(details, "products", "Products", "sales_customer_detail")


def render_sales_products(analyzer: SalesAnalyzer):
    products = analyzer.products()

    col1, col2 = st.columns(2)
    with col1: st.metric("Products", f"{len(products):,}")
    with col2: st.metric("Total Amount", format_money(products["amount"].sum() if not products.empty else 0))

    selected = selectable_grid(products, key="sales_products_grid", money_columns=["amount"])
    if selected:
        search = st.text_input("Search customers", key="sales_product_detail_search")
        details = analyzer.product_details(selected[0]["productKey"], search)
        render_sales_details(details, "customers", "Customers", "sales_product_detail")


def render_sales_details(details: dict, breakdown: str, label: str, key_prefix: str):
    """Drill-down view shared by the customer and product tabs."""
    st.subheader(details["name"])
    metrics = details["metrics"]

    col1, col2, col3 = st.columns(3)
    with col1: st.metric("Total Amount", format_money(metrics["totalAmount"]))
    with col2: st.metric("Total Qty", f"{metrics['totalQty']:,.0f}")
    with col3: st.metric(label, f"{metrics['uniqueCount']:,}")

    col1, col2, col3 = st.columns(3)
    with col1: st.metric("Months", f"{metrics['uniqueMonths']:,}")
    with col2: st.metric("Avg Monthly Amount", format_money(metrics["avgMonthlyAmount"]))
    with col3: st.metric("Avg Monthly Qty", f"{metrics['avgMonthlyQty']:,.0f}")

    monthly = details["monthly"]
    if not monthly.empty:
        recent = monthly.head(DASHBOARD_MONTHS).iloc[::-1]
        st.plotly_chart(ChartRenderer.create_monthly_sales(recent), use_container_width=True)

    money = {"amount": cc.NumberColumn("Amount", format="%.2f"),
             "qty": cc.NumberColumn("Qty", format="%.0f")}
    create_exportable_table_section("Monthly Sales", monthly.drop(columns=["monthKey"]),
                                    f"{key_prefix}_monthly", f"{key_prefix}_monthly", column_config=money)
    table = details[breakdown]
    key_column = "productKey" if breakdown == "products" else "customerKey"
    create_exportable_table_section(label, table.drop(columns=[key_column]),
                                    f"{key_prefix}_{breakdown}", f"{key_prefix}_{breakdown}",
                                    column_config=money)


def render_inactive_customers(analyzer: SalesAnalyzer):
    """Customers with no SAL invoice for a while, longest idle first."""
    col1, col2, col3 = st.columns(3)
    with col1:
        status = st.selectbox("Status", ["All"] + [s for s, _ in INACTIVE_STATUSES], key="sales_inactive_status")
    with col2:
        min_days = st.number_input("Min days", min_value=0, value=0, step=1, key="sales_inactive_days")
    with col3:
        min_amount = st.number_input("Min amount", min_value=0.0, value=0.0, step=100.0,
                                     key="sales_inactive_amount")

    inactive = analyzer.inactive_customers("" if status == "All" else status, int(min_days), float(min_amount))

    counts = inactive["status"].value_counts() if not inactive.empty else pd.Series(dtype=int)
    cols = st.columns(len(INACTIVE_STATUSES) + 1)
    with cols[0]: st.metric("Customers", f"{len(inactive):,}")
    for col, (label, _) in zip(cols[1:], INACTIVE_STATUSES):
        with col: st.metric(label, f"{int(counts.get(label, 0)):,}")

    display = inactive.drop(columns=["customerKey"])
    if not display.empty:
        display = display.assign(lastPurchaseDate=display["lastPurchaseDate"].apply(format_date))
    create_exportable_table_section(
        "Inactive Customers", display, "inactive_customers", "sales_inactive",
        column_config={
            "daysSinceLastPurchase": cc.NumberColumn("Days Idle", format="%d"),
            "totalAmount": cc.NumberColumn("Amount", format="%.2f"),
            "averageOrderValue": cc.NumberColumn("Avg Order", format="%.2f"),
        },
    )


# ---------------------------------------------------------------- Payments

def render_payments_dashboard():
    """Payment tracker over the customer ledger."""
    df = load_or_stop(load_invoices, "the invoices sheet")
    if df.empty:
        st.info("No invoices found in the sheet.")
        return

    tracker = PaymentTracker(df)
    filters = FilterManager(df, "payments").render_payment_filters(tracker.sales_reps())
    search = filters["search"]

    payments = tracker.payments(
        sales_rep=filters["sales_rep"],
        date_from=filters["date_from"],
        date_to=filters["date_to"],
        show_ob_closed=filters["show_ob_closed"],
        show_other=filters["show_other"],
    )

    tab1, tab2, tab3 = st.tabs(["📊 Dashboard", "👤 By Customer", "📅 By Period"])

    with tab1:
        st.metric("Total Collected", format_money(PaymentTracker.total_collected(payments, search, "dashboard")))
        render_payment_overview(tracker, filters)

    with tab2:
        summary = PaymentTracker.by_customer(payments, search)
        st.metric("Total Collected", format_money(PaymentTracker.total_collected(payments, search, "customer")))
        selected = selectable_grid(summary.drop(columns=["customerKey"]), key="payments_customer_grid",
                                   money_columns=["totalPayments"])
        if selected:
            name = selected[0]["customerName"]
            render_payment_detail(f"Payments from {name}", PaymentTracker.customer_detail(payments, name),
                                  "customer_payments")

    with tab3:
        period_type = filters["period_type"]
        summary = PaymentTracker.by_period(payments, period_type, search)
        st.metric("Total Collected", format_money(PaymentTracker.total_collected(payments, search, "period")))
        display = summary.assign(latest=summary["latest"].apply(format_date))
        selected = selectable_grid(display, key=f"payments_period_grid_{period_type}",
                                   money_columns=["totalPayments"])
        if selected:
            row = selected[0]
            render_payment_detail(f"Payments in {row['period']}",
                                  PaymentTracker.period_detail(payments, period_type, row["periodKey"]),
                                  "period_payments")


def render_payment_overview(tracker: PaymentTracker, filters: dict):
    search, sales_rep = filters["search"], filters["sales_rep"]
    date_from, date_to = filters["date_from"], filters["date_to"]

    stats, totals = tracker.monthly_dashboard(date_from, date_to, search, sales_rep)

    col1, col2, col3, col4 = st.columns(4)
    with col1: st.metric("Net Sales - Discounts", format_money(totals["totalNetSalesMinusDiscounts"]))
    with col2: st.metric("Collections", format_money(totals["totalCollections"]))
    with col3: st.metric("Difference", format_money(totals["difference"]))
    with col4: st.metric("Payments", f"{totals['netPaymentCount']:,}")

    st.plotly_chart(ChartRenderer.create_sales_vs_collections(stats), use_container_width=True)

    st.divider()
    st.subheader("What the payments closed")
    closure = tracker.closure_stats(sales_rep, date_from, date_to, search)

    left, right = st.columns([2, 1])
    with left:
        closure_table = pd.DataFrame([
            {"category": label,
             "amount": closure[f"{prefix}Amount"],
             "count": closure[f"{prefix}Count"],
             "percent": closure[f"{prefix}Percent"]}
            for label, prefix in [("OB Only", "obOnly"), ("Current Year Only", "currentYearOnly"),
                                  ("Mixed", "mixed"), ("Unmatched", "unmatched")]
        ])
        st.dataframe(
            closure_table,
            use_container_width=True,
            hide_index=True,
            column_config={
                "amount": cc.NumberColumn("Amount", format="%.2f"),
                "percent": cc.ProgressColumn("Share", format="%.1f%%", min_value=0.0, max_value=100.0),
            },
        )
        st.caption(f"{closure['totalCount']:,} payments, {format_money(closure['totalAmount'])} classified")
    with right:
        if closure["totalAmount"]:
            st.plotly_chart(ChartRenderer.create_closure_pie(closure), use_container_width=True)

    st.divider()
    averages = tracker.average_collections(sales_rep, search)
    days = tracker.average_collection_days(date_from, date_to, sales_rep, search)

    col1, col2, col3 = st.columns(3)
    with col1: st.metric(f"Avg Monthly Collection ({averages['monthsCount']} mo)",
                         format_money(averages["averageMonthly"]))
    with col2: st.metric(f"Avg Weekly Collection ({averages['weeksCount']} wk)",
                         format_money(averages["averageWeekly"]))
    with col3: st.metric("Avg Days Between Payments", f"{days['averageDays']:.1f}",
                         help=f"{days['customersCount']} customers, {days['totalPayments']} payments")

    create_exportable_table_section(
        "Monthly Breakdown",
        stats[["monthLabel", "grossSales", "returns", "discounts", "netSales",
               "netSalesMinusDiscounts", "collections"]],
        "payments_monthly", "payments_monthly",
        column_config={col: cc.NumberColumn(format="%.2f")
                       for col in ["grossSales", "returns", "discounts", "netSales",
                                   "netSalesMinusDiscounts", "collections"]},
    )


def render_payment_detail(title: str, detail: pd.DataFrame, key_prefix: str):
    create_exportable_table_section(
        title, detail[PAYMENT_DISPLAY_COLUMNS] if not detail.empty else detail,
        key_prefix, key_prefix,
        column_config={
            "amount": cc.NumberColumn("Amount", format="%.2f"),
            "matchedOpeningBalance": cc.CheckboxColumn("OB Closed"),
        },
    )


# ---------------------------------------------------------------- Cash receipts

def render_receipts_dashboard():
    """Cash receipt book: new receipts, history and monthly totals."""
    receipts = load_or_stop(load_receipts, "the cash receipt sheet")
    book = ReceiptBook()

    tab1, tab2, tab3 = st.tabs(["➕ New Receipt", "🧾 Receipts", "📅 By Month"])

    with tab1:
        render_receipt_form(book)

    with tab2:
        query = st.text_input("Search receipts", placeholder="Number, name or reason", key="receipt_search")
        found = search_receipts(receipts, query)
        total = float(found["amount"].sum()) if not found.empty else 0.0
        st.metric(f"Total ({len(found)} receipts)", format_money(total))
        create_exportable_table_section(
            "Receipts",
            found.drop(columns=["rowIndex", "parsedDate"]) if not found.empty else found,
            "cash_receipts", "receipts_list",
            column_config={"amount": cc.NumberColumn("Amount", format="%.2f")},
        )

    with tab3:
        create_exportable_table_section(
            "Receipts by Month", receipts_by_month(receipts), "receipts_by_month", "receipts_month",
            column_config={"amount": cc.NumberColumn("Amount", format="%.2f")},
        )


def render_receipt_form(book: ReceiptBook):
    receipt_number = next_receipt_number(book.last_receipt_number())

    with st.form("receipt_form", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            receipt_date = st.date_input("Date", value=datetime.now().date())
            received_from = st.text_input("Received From")
            amount = st.number_input("Amount", min_value=0.0, step=1.0, format="%.2f")
        with col2:
            number = st.text_input("Receipt Number", value=receipt_number)
            send_by = st.text_input("Send By")
            reason = st.text_input("Reason")
        submitted = st.form_submit_button("Save Receipt", type="primary")

    if not submitted:
        return

    try:
        receipt = build_receipt(receipt_date, number, received_from, amount, send_by, reason)
        book.save_receipt(receipt)
    except ReceiptError as e:
        st.error(str(e))
        return
    except Exception as e:
        st.error("Couldn't save the receipt to the sheet.")
        st.exception(e)
        return

    st.success(f"Saved {receipt['receiptNumber']}: {receipt['amountInWords']}")


def main():
    """Main application entry point."""
    # Setup
    setup_page()

    # Authentication
    auth_manager = AuthManager()
    auth_manager.require_login()

    with st.sidebar:
        st.title(APP_TITLE)
        dashboard = st.radio("Dashboard", DASHBOARDS, key="dashboard")
        col1, col2 = st.columns(2)
        with col1:
            if st.button("🔄 Refresh", use_container_width=True):
                st.cache_data.clear()
                st.rerun()
        with col2:
            if auth_manager.is_auth_enabled() and st.button("Logout", use_container_width=True):
                auth_manager.logout()
                st.rerun()
        st.divider()

    st.title(dashboard)
    logger.debug("Rendering %s for %s", dashboard, auth_manager.current_user())

    if dashboard == DASHBOARDS[0]:
        render_inventory_dashboard(auth_manager)
    elif dashboard == DASHBOARDS[1]:
        render_sales_dashboard()
    elif dashboard == DASHBOARDS[2]:
        render_payments_dashboard()
    else:
        render_receipts_dashboard()


if __name__ == "__main__":
    main()
