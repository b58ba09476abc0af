"""
Imihigo Tracker: Interactive Dashboard

Run with:  streamlit run app.py
"""

import sys
from pathlib import Path

import streamlit as st
import plotly.graph_objects as go
import pandas as pd

sys.path.insert(0, str(Path(__file__).resolve().parent))

from imihigo_tracker.config import (
    CATALOGUE_WORKBOOK_FILE,
    DISTRICT_NAME,
    QUARTER_IDS,
    QUARTERS,
    SUBMISSIONS_FILE,
)
from imihigo_tracker.loaders import (
    load_catalogue_workbook,
    load_default_catalogue,
    load_submissions,
)
from imihigo_tracker.transforms import build_fact_entries, entries_from_frame
from imihigo_tracker.simulator import generate_submissions
from imihigo_tracker.dashboard import (
    get_available_quarters,
    get_district_summary,
    get_indicator_progress_table,
    get_pillar_overview,
    get_sub_indicator_breakdown,
)
from imihigo_tracker.progress import classify_trend

# ---------------------------------------------------------------------------
# Page config
# ---------------------------------------------------------------------------
st.set_page_config(
    page_title="Imihigo Tracker",
    page_icon="📊",
    layout="wide",
    initial_sidebar_state="expanded",
)

TREND_COLORS = {
    "on-track": "#2ecc71",
    "improving": "#f39c12",
    "needs-attention": "#e74c3c",
}


# ---------------------------------------------------------------------------
# Data loading (cached)
# ---------------------------------------------------------------------------
# Catalogue holds MappingProxyType views, which cache_data cannot pickle
@st.cache_resource
def load_all_data():
    if CATALOGUE_WORKBOOK_FILE.exists():
        catalogue = load_catalogue_workbook(CATALOGUE_WORKBOOK_FILE)
    else:
        catalogue = load_default_catalogue()

    if SUBMISSIONS_FILE.exists():
        raw = load_submissions(SUBMISSIONS_FILE)
        source = SUBMISSIONS_FILE.name
    else:
        raw = generate_submissions(catalogue)
        source = "simulated submissions"

    entries = entries_from_frame(build_fact_entries(raw))
    return {"catalogue": catalogue, "entries": entries, "source": source}


data = load_all_data()
catalogue = data["catalogue"]
entries = data["entries"]

# ---------------------------------------------------------------------------
# Sidebar
# ---------------------------------------------------------------------------
st.sidebar.title("Imihigo Tracker")
st.sidebar.markdown(DISTRICT_NAME)
st.sidebar.divider()

available_quarters = get_available_quarters(entries) or list(QUARTER_IDS)
selected_quarter = st.sidebar.selectbox(
    "Select Quarter",
    available_quarters,
    index=len(available_quarters) - 1,
    format_func=lambda q: QUARTERS[q]["name"],
)

page = st.sidebar.radio("Navigate", ["Pillar Overview", "Indicator Details"])

st.sidebar.divider()
st.sidebar.caption(f"Data: {data['source']}")


def progress_card(label: str, value: float, trend: str, caption: str = ""):
    color = TREND_COLORS.get(trend, "#95a5a6")
    st.markdown(
        f"""
        <div style="background: linear-gradient(135deg, {color}22, {color}11);
                    border-left: 4px solid {color};
                    border-radius: 8px; padding: 16px; margin-bottom: 8px;">
            <div style="font-size: 13px; color: #888; font-weight: 600; text-transform: uppercase;">{label}</div>
            <div style="font-size: 28px; font-weight: 700; color: #222; margin: 4px 0;">{value:.2f}%</div>
            <div style="font-size: 12px; color: #666;">{caption}</div>
        </div>
        """,
        unsafe_allow_html=True,
    )


# ===========================================================================
# PAGE: Pillar Overview
# ===========================================================================
if page == "Pillar Overview":
    st.title("Pillar Overview")
    st.caption(f"Quarter: **{QUARTERS[selected_quarter]['name']}**")

    overview = get_pillar_overview(catalogue, entries, selected_quarter)
    district = get_district_summary(catalogue, entries, selected_quarter)

    if not district.empty:
        row = district.iloc[0]
        progress_card("District progress", row["district_progress"], row["trend"],
                      f"{catalogue.total_indicator_count} indicators across all pillars")

    cols = st.columns(max(len(overview), 1))
    for i, row in enumerate(overview.itertuples(index=False)):
        with cols[i]:
            if row.error:
                st.error(row.error)
                continue
            progress_card(row.pillar_name, row.pillar_progress, classify_trend(row.pillar_progress),
                          f"{row.pillar_indicator_count} indicators | "
                          f"{row.annual_progress:.2f}% of district")

    st.divider()

    st.subheader("Progress by pillar and quarter")
    all_quarters = get_pillar_overview(catalogue, entries)
    fig = go.Figure()
    for _, group in all_quarters.groupby("pillar_id", sort=False):
        fig.add_trace(go.Bar(
            x=[QUARTERS[q]["name"] for q in group["quarter_id"]],
            y=group["pillar_progress"],
            name=group["pillar_name"].iloc[0],
            text=group["pillar_progress"].apply(lambda x: f"{x:.1f}%"),
            textposition="outside",
        ))
    fig.update_layout(
        barmode="group",
        height=420,
        yaxis_title="Pillar progress %",
        yaxis_range=[0, 110],
        plot_bgcolor="rgba(0,0,0,0)",
        margin=dict(l=10, r=10, t=10, b=40),
    )
    st.plotly_chart(fig, use_container_width=True)

    st.subheader("District contribution")
    st.dataframe(
        overview[["pillar_name", "pillar_progress", "annual_progress", "indicator_sum",
                  "pillar_indicator_count", "total_indicators_across_all_pillars"]],
        use_container_width=True,
        hide_index=True,
    )


# ===========================================================================
# PAGE: Indicator Details
# ===========================================================================
elif page == "Indicator Details":
    st.title("Indicator Details")

    pillar_ids = [p.id for p in catalogue.pillars]
    pillar_id = st.selectbox(
        "Select Pillar",
        pillar_ids,
        format_func=lambda pid: catalogue.pillar(pid).name,
    )

    table = get_indicator_progress_table(catalogue, entries, pillar_id, selected_quarter)
    if table.empty:
        st.info("No indicators for this pillar.")
    else:
        def color_trend(val):
            color = TREND_COLORS.get(val, "#333")
            return f"background-color: {color}22; color: {color}"

        styled = table.style.map(color_trend, subset=["trend"])
        st.dataframe(styled, use_container_width=True, hide_index=True)

        chart_df = table.sort_values("performance")
        fig = go.Figure(go.Bar(
            x=chart_df["performance"],
            y=chart_df["number"].astype(str) + ". " + chart_df["indicator"].str.slice(0, 60),
            orientation="h",
            marker_color=[TREND_COLORS.get(t, "#95a5a6") for t in chart_df["trend"]],
            text=chart_df["performance"].apply(lambda x: f"{x:.1f}%"),
            textposition="outside",
        ))
        fig.update_layout(
            height=max(300, 40 * len(chart_df)),
            xaxis_title="Performance %",
            xaxis_range=[0, 110],
            yaxis_title="",
            plot_bgcolor="rgba(0,0,0,0)",
            margin=dict(l=10, r=10, t=10, b=40),
        )
        fig.add_vline(x=90, line_dash="dash", line_color="#888")
        st.plotly_chart(fig, use_container_width=True)

        composites = table[table["indicator_id"].map(
            lambda i: bool(catalogue.get(i).children)
        )]
        if not composites.empty:
            st.subheader("Sub-indicator breakdown")
            indicator_id = st.selectbox(
                "Select composite indicator",
                composites["indicator_id"].tolist(),
                format_func=lambda i: f"{catalogue.indicator_number(i)}. {catalogue.get(i).name}",
            )
            breakdown = get_sub_indicator_breakdown(catalogue, entries, indicator_id, selected_quarter)
            breakdown["performance"] = breakdown["performance"].apply(
                lambda x: f"{x:.2f}%" if pd.notna(x) else ""
            )
            st.dataframe(breakdown, use_container_width=True, hide_index=True)

        warnings = [w for i in table["indicator_id"] for w in catalogue.warnings_for(i)]
        if warnings:
            with st.expander(f"Catalogue warnings ({len(warnings)})"):
                for warning in warnings:
                    st.markdown(f"- **{warning.kind}**: {warning.message}")
