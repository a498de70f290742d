import streamlit as st
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
from plotly.subplots import make_subplots
from st_aggrid import AgGrid, GridOptionsBuilder, GridUpdateMode
from typing import Any, Dict, List, Optional, Tuple
from data_processor import unique_non_empty
from config import DATE_RANGE_OPTIONS, DEFAULT_DATE_RANGE, PERIOD_TYPES, MONTH_NAMES
from utils import get_date_range_from_option, get_table_height


class FilterManager:
    """Sidebar filters for one dashboard; widget keys are namespaced by key_prefix."""

    def __init__(self, df: pd.DataFrame, key_prefix: str, date_column: str = "parsedDate"):
        self.df = df
        self.key_prefix = key_prefix
        self.date_column = date_column

    def _key(self, name: str) -> str:
        return f"{self.key_prefix}_{name}"

    def render_date_range(self) -> Tuple[Optional[Any], Optional[Any]]:
        """Quick date range selector; (None, None) means all dates."""
        dates = self.df[self.date_column] if self.date_column in self.df.columns else pd.Series(dtype="datetime64[ns]")
        date_min, date_max = dates.min(), dates.max()
        options = list(DATE_RANGE_OPTIONS.keys())

        date_option = st.selectbox(
            "Date Range",
            options=options,
            index=options.index(st.session_state.get(self._key("date_option"), DEFAULT_DATE_RANGE)),
            key=self._key("date_option_select"),
        )
        st.session_state[self._key("date_option")] = date_option

        if date_option == "Custom range":
            default_range = get_date_range_from_option(date_option, date_min, date_max)
            picked = st.date_input("Custom Date Range", value=default_range, key=self._key("date_range"))
            if isinstance(picked, tuple) and len(picked) == 2:
                return picked
            return default_range

        start_date, end_date = get_date_range_from_option(date_option, date_min, date_max)
        if start_date is not None:
            st.caption(f"📅 {start_date.strftime('%d %b %Y')} to {end_date.strftime('%d %b %Y')}")
        return start_date, end_date

    def _select(self, label: str, column: str, name: str) -> str:
        options = [""] + unique_non_empty(self.df, column)
        return st.selectbox(label, options=options, key=self._key(name),
                            format_func=lambda v: v or "All")

    def render_sales_filters(self) -> Dict[str, Any]:
        """Sidebar filters for the sales reports."""
        with st.sidebar:
            st.header("Filters")
            search = st.text_input("Search", key=self._key("search"),
                                   placeholder="Invoice, customer or product")
            date_from, date_to = self.render_date_range()

            years = sorted({int(y) for y in self.df[self.date_column].dt.year.dropna()}, reverse=True) \
                if not self.df.empty else []
            year = st.selectbox("Year", options=[None] + years, key=self._key("year"),
                                format_func=lambda v: "All" if v is None else str(v))
            month = st.selectbox("Month", options=[None] + list(range(1, 13)), key=self._key("month"),
                                 format_func=lambda v: "All" if v is None else MONTH_NAMES[v - 1])

            area = self._select("Area", "area", "area")
            market = self._select("Market", "market", "market")
            merchandiser = self._select("Merchandiser", "merchandiser", "merchandiser")
            sales_rep = self._select("Sales Rep", "salesRep", "sales_rep")

            if st.button("Clear filters", key=self._key("clear"), use_container_width=True):
                self._clear_all_filters()
                st.rerun()

        return {
            "search": search,
            "year": year,
            "month": month,
            "date_from": date_from,
            "date_to": date_to,
            "area": area,
            "market": market,
            "merchandiser": merchandiser,
            "sales_rep": sales_rep,
        }

    def render_payment_filters(self, sales_reps: List[str]) -> Dict[str, Any]:
        """Sidebar filters for the payment tracker."""
        with st.sidebar:
            st.header("Filters")
            search = st.text_input("Search", key=self._key("search"), placeholder="Customer or number")
            sales_rep = st.selectbox("Sales Rep", options=[""] + sales_reps, key=self._key("sales_rep"),
                                     format_func=lambda v: v or "All Sales Reps")
            date_from, date_to = self.render_date_range()

            st.markdown("**Payments shown**")
            show_ob_closed = st.checkbox("OB Closed Payments", value=True, key=self._key("show_ob"))
            show_other = st.checkbox("Other / Open Payments", value=True, key=self._key("show_other"))

            period_type = st.radio("Period", options=PERIOD_TYPES, horizontal=True,
                                   key=self._key("period_type"), format_func=str.capitalize)

            if st.button("Clear filters", key=self._key("clear"), use_container_width=True):
                self._clear_all_filters()
                st.rerun()

        return {
            "search": search,
            "sales_rep": sales_rep,
            "date_from": date_from,
            "date_to": date_to,
            "show_ob_closed": show_ob_closed,
            "show_other": show_other,
            "period_type": period_type,
        }

    def _clear_all_filters(self) -> None:
        """Clear all filter states of this dashboard."""
        for key in [k for k in st.session_state.keys() if str(k).startswith(f"{self.key_prefix}_")]:
            st.session_state.pop(key, None)


def selectable_grid(df: pd.DataFrame, key: str, money_columns: Optional[List[str]] = None,
                    height: Optional[int] = None) -> List[Dict[str, Any]]:
    """AgGrid table with single-row selection; returns the selected rows as dicts."""
    if df.empty:
        st.info("No data to display")
        return []

    grid_builder = GridOptionsBuilder.from_dataframe(df)
    grid_builder.configure_selection(selection_mode="single", use_checkbox=True)
    for col in money_columns or []:
        grid_builder.configure_column(
            col, valueFormatter="value != null ? Intl.NumberFormat('en-US', {minimumFractionDigits: 2, maximumFractionDigits: 2}).format(value) : ''"
        )
    grid_builder.configure_grid_options(domLayout="normal")

    grid_result = AgGrid(
        df,
        gridOptions=grid_builder.build(),
        update_mode=GridUpdateMode.SELECTION_CHANGED,
        height=height or get_table_height(len(df), min_height=300, max_height=520),
        fit_columns_on_grid_load=True,
        theme="alpine",
        key=key,
    )

    selected = grid_result["selected_rows"]
    if selected is None:
        return []
    if isinstance(selected, pd.DataFrame):
        return selected.to_dict("records")
    return list(selected)


class ChartRenderer:
    """Handles chart rendering for the dashboards."""

    @staticmethod
    def format_axes(fig):
        """Apply consistent axis formatting."""
        fig.update_xaxes(showgrid=False)
        fig.update_yaxes(showgrid=True)
        fig.update_layout(margin=dict(l=10, r=10, t=50, b=10))
        return fig

    @staticmethod
    def create_time_series(chart_type: str, data: pd.DataFrame, x: str, y: str,
                          title: str, is_count: bool = False):
        """Create a time series chart (line or bar)."""
        texttemplate = "%{y:,.0f}" if is_count else "%{y:,.2f}"
        if chart_type == "Bar":
            fig = px.bar(data, x=x, y=y, title=title, text=y)
            fig.update_traces(texttemplate=texttemplate, textposition="outside", cliponaxis=False)
        else:
            fig = px.line(data, x=x, y=y, title=title)
            fig.update_traces(mode="lines+markers+text", texttemplate=texttemplate, textposition="top center")

        return ChartRenderer.format_axes(fig)

    @staticmethod
    def create_sales_vs_collections(stats: pd.DataFrame) -> go.Figure:
        """Grouped monthly bars: net sales after discounts against collections."""
        fig = go.Figure()
        fig.add_trace(go.Bar(x=stats["monthLabel"], y=stats["netSalesMinusDiscounts"].round(2),
                             name="Net Sales - Discounts"))
        fig.add_trace(go.Bar(x=stats["monthLabel"], y=stats["collections"].round(2),
                             name="Collections"))
        fig.update_layout(
            title="Sales vs Collections",
            barmode="group",
            hovermode="x unified",
            legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1),
        )
        return ChartRenderer.format_axes(fig)

    @staticmethod
    def create_monthly_sales(monthly: pd.DataFrame) -> go.Figure:
        """Monthly amount bars with quantity on a secondary axis."""
        fig = make_subplots(specs=[[{"secondary_y": True}]])
        fig.add_trace(go.Bar(x=monthly["month"], y=monthly["amount"], name="Amount"), secondary_y=False)
        fig.add_trace(go.Scatter(x=monthly["month"], y=monthly["qty"], name="Qty", mode="lines+markers"),
                      secondary_y=True)
        fig.update_layout(title="Monthly Sales", hovermode="x unified")
        fig.update_yaxes(title_text="Amount", secondary_y=False)
        fig.update_yaxes(title_text="Qty", secondary_y=True)
        return ChartRenderer.format_axes(fig)

    @staticmethod
    def create_closure_pie(stats: Dict[str, float]) -> go.Figure:
        """Share of collected amount by what the payments closed."""
        data = pd.DataFrame({
            "category": ["OB Only", "Current Year Only", "Mixed", "Unmatched"],
            "amount": [stats["obOnlyAmount"], stats["currentYearOnlyAmount"],
                       stats["mixedAmount"], stats["unmatchedAmount"]],
        })
        fig = px.pie(data[data["amount"] > 0], names="category", values="amount",
                     title="Payment Closure", hole=0.45)
        fig.update_layout(margin=dict(l=10, r=10, t=50, b=10))
        return fig
