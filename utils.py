"""
Utility functions for the dashboards
"""
import pandas as pd
import streamlit as st
from datetime import date, datetime, timedelta
from typing import Optional, Tuple
from config import DATE_RANGE_OPTIONS


def get_date_range_from_option(option: str, data_min: pd.Timestamp, data_max: pd.Timestamp,
                               today: Optional[date] = None) -> Tuple[Optional[date], Optional[date]]:
    """Calculate date range based on quick filter option; (None, None) means no date filter."""
    today = today or datetime.now().date()

    if option == "All time":
        return None, None

    if option == "Custom range":
        # Return data bounds for custom range
        return data_min.date() if pd.notna(data_min) else today, data_max.date() if pd.notna(data_max) else today

    days_back = DATE_RANGE_OPTIONS.get(option, 7)

    if days_back == 0:  # Today
        return today, today
    elif days_back == 1:  # Yesterday
        yesterday = today - timedelta(days=1)
        return yesterday, yesterday
    else:  # Last N days
        start_date = today - timedelta(days=days_back - 1)  # -1 to include today
        return start_date, today


def format_money(value: float) -> str:
    return f"{value:,.2f}" if pd.notna(value) else ""


def format_date(date_val, fmt: str = "%d/%m/%Y") -> str:
    """Format date for display."""
    if date_val is None or pd.isna(date_val):
        return "—"
    return pd.to_datetime(date_val).strftime(fmt)


def create_download_buttons(df: pd.DataFrame, filename_prefix: str, key_prefix: str):
    """Create download buttons for CSV and JSON export."""
    if df.empty:
        st.info("No data to export")
        return

    export_df = df.drop(columns=[c for c in df.columns if c.startswith("_")])
    stamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    col1, col2 = st.columns(2)

    # CSV download
    with col1:
        st.download_button(
            label="📥 Download CSV",
            data=export_df.to_csv(index=False).encode('utf-8'),
            file_name=f"{filename_prefix}_{stamp}.csv",
            mime="text/csv",
            key=f"{key_prefix}_csv"
        )

    # JSON download
    with col2:
        st.download_button(
            label="📥 Download JSON",
            data=export_df.to_json(orient='records', indent=2, date_format='iso').encode('utf-8'),
            file_name=f"{filename_prefix}_{stamp}.json",
            mime="application/json",
            key=f"{key_prefix}_json"
        )


def create_exportable_table_section(title: str, df: pd.DataFrame, filename_prefix: str,
                                  key_prefix: str, column_config: Optional[dict] = None,
                                  show_download: bool = True):
    """Create a table section with export capabilities."""
    st.markdown(f"### {title}")

    if df.empty:
        st.info("No data to display")
        return

    st.dataframe(df, use_container_width=True, hide_index=True, column_config=column_config,
                 height=get_table_height(len(df)))

    if show_download:
        with st.expander("📥 Export"):
            create_download_buttons(df, filename_prefix, key_prefix)


def get_table_height(num_rows: int, min_height: int = 300, max_height: int = 600,
                    row_height: int = 35) -> int:
    """Calculate optimal table height based on number of rows."""
    calculated_height = min_height + (num_rows * row_height)
    return min(max(calculated_height, min_height), max_height)
