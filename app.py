"""
Production Flow Dashboard: Interactive Dashboard

Run with:  streamlit run app.py
"""

import sys
from pathlib import Path

import streamlit as st
import plotly.graph_objects as go
import plotly.express as px
import pandas as pd

sys.path.insert(0, str(Path(__file__).resolve().parent))

from prodflow_dashboard.assistant import (
    SUGGESTED_QUESTIONS,
    AssistantError,
    ask_assistant,
)
from prodflow_dashboard.config import SEVERITY_LEVELS, SUPPORTED_EXTENSIONS
from prodflow_dashboard.dashboard import (
    get_analytics,
    get_graph_frames,
    get_issue_table,
    get_overview,
)
from prodflow_dashboard.simulator import generate_cycle_time_rows
from prodflow_dashboard.state import AppState
from prodflow_dashboard.transforms import process_rows

# ---------------------------------------------------------------------------
# Page config
# ---------------------------------------------------------------------------
st.set_page_config(
    page_title="Production Flow Dashboard",
    page_icon="⚙️",
    layout="wide",
    initial_sidebar_state="expanded",
)

SEVERITY_COLORS = {
    "Critical": "#F44336",
    "Major": "#FF9800",
    "Minor": "#FFC107",
}
ISSUE_TYPE_COLORS = {
    "bottleneck": "#F44336",
    "high_risk_part": "#FF9800",
}


def macro_node_color(delta: float) -> str:
    if delta <= 20:
        return "#4CAF50"
    if delta <= 40:
        return "#FFC107"
    if delta <= 60:
        return "#FF9800"
    return "#F44336"


def delta_color(delta: float, max_delta: float = 20) -> str:
    # green (0) to red (max_delta)
    ratio = min(max(delta, 0) / max_delta, 1)
    return f"hsl({(1 - ratio) * 120:.0f}, 70%, 50%)"


# ---------------------------------------------------------------------------
# Session state
# ---------------------------------------------------------------------------
if "app_state" not in st.session_state:
    state = AppState.from_env()
    state.replace_snapshot(
        process_rows(generate_cycle_time_rows(), source_name="simulated demo data")
    )
    st.session_state["app_state"] = state

app_state: AppState = st.session_state["app_state"]

# ---------------------------------------------------------------------------
# Sidebar
# ---------------------------------------------------------------------------
st.sidebar.title("⚙️ Production")
st.sidebar.markdown("Analytics dashboard")
st.sidebar.divider()

page = st.sidebar.radio(
    "Navigate",
    ["Macro View", "Detail View", "KPIs", "Issues", "Analytics", "Assistant"],
)

st.sidebar.divider()
uploaded = st.sidebar.file_uploader(
    "Import cycle times",
    type=[ext.lstrip(".") for ext in SUPPORTED_EXTENSIONS],
)
if uploaded is not None:
    app_state.import_upload(uploaded.file_id, uploaded, uploaded.name)
    if app_state.import_error:
        st.sidebar.error(f"Could not read the file: {app_state.import_error}")
        st.sidebar.caption("Showing the previously loaded data.")

snapshot = app_state.snapshot
st.sidebar.caption(f"Data: {snapshot.source_name} ({snapshot.row_count} rows)")


# ---------------------------------------------------------------------------
# Helper: graph figure
# ---------------------------------------------------------------------------
def graph_figure(nodes: pd.DataFrame, edges: pd.DataFrame, colors: list[str], text: list[str]):
    positions = {row.id: (row.x, -row.y) for row in nodes.itertuples()}

    fig = go.Figure()
    for edge in edges.itertuples():
        (x0, y0), (x1, y1) = positions[edge.source], positions[edge.target]
        fig.add_annotation(
            x=x1, y=y1, ax=x0, ay=y0,
            xref="x", yref="y", axref="x", ayref="y",
            showarrow=True, arrowhead=2, arrowwidth=1.5, arrowcolor="#888",
        )
    fig.add_trace(go.Scatter(
        x=[p[0] for p in positions.values()],
        y=[p[1] for p in positions.values()],
        mode="markers+text",
        marker=dict(size=46, color=colors, line=dict(color="#333", width=2)),
        text=nodes["label"],
        textposition="bottom center",
        hovertext=text,
        hoverinfo="text",
    ))
    fig.update_layout(
        height=550,
        showlegend=False,
        xaxis=dict(visible=False),
        yaxis=dict(visible=False),
        plot_bgcolor="rgba(0,0,0,0)",
        margin=dict(l=10, r=10, t=10, b=10),
    )
    return fig


# ===========================================================================
# PAGE: Macro View
# ===========================================================================
if page == "Macro View":
    st.title("Macro View")
    nodes, edges = get_graph_frames(snapshot, "macro")

    if nodes.empty:
        st.info("No macro stages in the current data.")
    else:
        hover = [
            f"<b>{r.label}</b><br>Δ: {r.delta_min:.1f} min<br>LT: {r.leadtime_min:.1f} min"
            for r in nodes.itertuples()
        ]
        colors = [macro_node_color(d) for d in nodes["delta_min"]]
        st.plotly_chart(graph_figure(nodes, edges, colors, hover), use_container_width=True)


# ===========================================================================
# PAGE: Detail View
# ===========================================================================
elif page == "Detail View":
    st.title("Detail View")
    nodes, edges = get_graph_frames(snapshot, "detail")

    if nodes.empty:
        st.info("No stations in the current data.")
    else:
        hover = [
            f"<b>{r.label}</b> ({r.macro_stage})<br>"
            f"Planned: {r.planned_min:.1f} min<br>Actual: {r.actual_min:.2f} min<br>"
            f"Δ: {r.delta_min:.2f} min<br>{r.piece_count} pieces<br>{r.severity}"
            for r in nodes.itertuples()
        ]
        colors = [delta_color(d) for d in nodes["delta_min"]]
        st.plotly_chart(graph_figure(nodes, edges, colors, hover), use_container_width=True)
        st.dataframe(nodes.drop(columns=["x", "y"]), use_container_width=True, hide_index=True)


# ===========================================================================
# PAGE: KPIs
# ===========================================================================
elif page == "KPIs":
    st.title("Global KPIs")
    overview = get_overview(snapshot)

    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Planned lead time", f"{overview['leadtime_planned_min']:,} min")
    with col2:
        st.metric("Actual lead time", f"{overview['leadtime_actual_min']:,} min")
    with col3:
        st.metric("Lead time gap", f"{overview['delta_leadtime_min']:+,} min")

    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("WIP index (baseline)", f"{overview['wip_index_baseline']:,}")
    with col2:
        st.metric("WIP index (scenario)", f"{overview['wip_index_scenario']:,}")
    with col3:
        st.metric("WIP delta", f"{overview['delta_wip_index']:,}")

    st.divider()
    st.subheader("Top macro bottlenecks")
    top = pd.DataFrame(overview["top_bottlenecks"])
    if top.empty:
        st.info("No bottleneck data.")
    else:
        fig = px.bar(
            top, x="delta_leadtime_total_min", y="macro_stage", orientation="h",
            labels={"delta_leadtime_total_min": "Summed delta (min)", "macro_stage": ""},
        )
        fig.update_layout(height=300, plot_bgcolor="rgba(0,0,0,0)")
        st.plotly_chart(fig, use_container_width=True)


# ===========================================================================
# PAGE: Issues
# ===========================================================================
elif page == "Issues":
    st.title("Issues")
    issues = get_issue_table(snapshot)

    if issues.empty:
        st.success("No station drifts more than 5 minutes from its planned time.")
    else:
        for issue in issues.itertuples():
            color = ISSUE_TYPE_COLORS.get(issue.issue_type, "#FFC107")
            st.markdown(
                f"<div style='border-left: 4px solid {color}; padding: 8px 12px; margin: 6px 0;'>"
                f"<b>{issue.station_id}</b> · {issue.macro_stage} · {issue.issue_type} "
                f"({issue.severity})<br>{issue.summary}<br>"
                f"Δ {issue.delta_min:.2f} min · {issue.piece_count} pieces · "
                f"est. cost {issue.estimated_cost:,.0f}</div>",
                unsafe_allow_html=True,
            )
        st.dataframe(issues, use_container_width=True, hide_index=True)


# ===========================================================================
# PAGE: Analytics
# ===========================================================================
elif page == "Analytics":
    st.title("Detailed Analysis")
    analytics = get_analytics(snapshot)

    summary = analytics["savings_summary"]
    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric("Recoverable time", f"{summary['total_saved_min']:,.1f} min")
    with col2:
        st.metric("Recoverable cost", f"€{summary['total_saved_eur']:,.2f}")
    with col3:
        st.metric("Average per station", f"€{summary['avg_saved_eur']:,.2f}")
    with col4:
        st.metric("Largest station", f"€{summary['max_saved_eur']:,.2f}")

    cycle = analytics["cycle_times"]
    if not cycle.empty:
        fig = go.Figure()
        fig.add_trace(go.Bar(x=cycle["station"], y=cycle["planned_min"], name="Planned",
                             marker_color="#3498db"))
        fig.add_trace(go.Bar(x=cycle["station"], y=cycle["actual_min"], name="Actual",
                             marker_color="#e74c3c"))
        fig.update_layout(title="Planned vs actual cycle time", barmode="group",
                          yaxis_title="min", height=400, plot_bgcolor="rgba(0,0,0,0)")
        st.plotly_chart(fig, use_container_width=True)

    col1, col2 = st.columns(2)
    with col1:
        macro = analytics["macro_leadtime"]
        if not macro.empty:
            fig = px.bar(macro, x="macro_stage", y=["leadtime_min", "delta_min"],
                         barmode="group", title="Lead time per macro stage")
            fig.update_layout(height=350, plot_bgcolor="rgba(0,0,0,0)")
            st.plotly_chart(fig, use_container_width=True)
    with col2:
        severity = analytics["severity"]
        if not severity.empty:
            fig = px.pie(severity, names="severity", values="count", title="Severity",
                         color="severity", color_discrete_map=SEVERITY_COLORS,
                         category_orders={"severity": list(SEVERITY_LEVELS)})
            fig.update_layout(height=350)
            st.plotly_chart(fig, use_container_width=True)

    savings = analytics["savings"]
    if not savings.empty:
        top10 = savings.sort_values("saved_eur", ascending=False).head(10)
        fig = px.bar(top10, x="saved_eur", y="station", orientation="h",
                     title="Top 10 savings opportunities (€)")
        fig.update_layout(height=400, plot_bgcolor="rgba(0,0,0,0)")
        st.plotly_chart(fig, use_container_width=True)
        st.dataframe(analytics["savings_by_macro"], use_container_width=True, hide_index=True)


# ===========================================================================
# PAGE: Assistant
# ===========================================================================
elif page == "Assistant":
    st.title("🤖 Production Assistant")

    with st.expander("API key", expanded=not app_state.has_api_key):
        key_input = st.text_input("Mistral API key", type="password")
        col1, col2 = st.columns(2)
        with col1:
            if st.button("Save key") and app_state.set_api_key(key_input):
                st.success("Key saved for this session.")
        with col2:
            if st.button("Clear key"):
                app_state.clear_api_key()
        if st.button("New conversation"):
            app_state.reset_conversation()

    for message in app_state.messages:
        with st.chat_message(message["role"]):
            st.markdown(message["content"])

    suggestion = None
    cols = st.columns(len(SUGGESTED_QUESTIONS))
    for col, question in zip(cols, SUGGESTED_QUESTIONS):
        with col:
            if st.button(question):
                suggestion = question

    prompt = st.chat_input("Ask about KPIs, bottlenecks or issues") or suggestion
    if prompt:
        history = list(app_state.messages)
        app_state.add_message("user", prompt)
        with st.chat_message("user"):
            st.markdown(prompt)

        with st.chat_message("assistant"):
            with st.spinner("Thinking..."):
                try:
                    reply = ask_assistant(prompt, history, snapshot, app_state.api_key)
                except AssistantError as e:
                    reply = f"❌ Error: {e}. Check your API key in the settings."
            st.markdown(reply)
        app_state.add_message("assistant", reply)
