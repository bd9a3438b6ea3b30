# ! Fire-hose pressure calculator: Streamlit result dashboard
# * Sidebar: layout JSON upload + flow override + KPI dashboard + 4 tabs

import sys
import os
import streamlit as st
import numpy as np
import plotly.graph_objects as go

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from constants import (
    REFERENCE_FLOW_LPM, NON_TERMINAL_MIN_PRESSURE_BAR,
)
from calculation import ErrorType
from equipment import DEFAULT_CATALOG, HOSE
from friction import friction_curve
from layout import (
    LayoutFormatError, create_initial_layout, layout_from_json, layout_to_json,
)
from pressure import calculate_layout, estimate_flow_rate
from analysis import (
    nodes_dataframe, paths_dataframe, errors_dataframe,
    path_profile, find_critical_flow,
)


# ──────────────────────────────────────────────
# ? Page setup
# ──────────────────────────────────────────────
st.set_page_config(
    page_title="Hose Layout Pressure",
    page_icon="🚒",
    layout="wide",
    initial_sidebar_state="expanded",
)
st.title("Hose Layout Pressure Calculator")
st.caption("Pressure and flow through a fire-hose layout (bar · l/min · moh)")

STATUS_COLORS = {"good": "#00CC96", "ok": "#FFA15A", "low": "#EF553B"}


# ══════════════════════════════════════════════
#  Sidebar: input
# ══════════════════════════════════════════════
st.sidebar.header("Layout")
uploaded = st.sidebar.file_uploader("Layout JSON", type=["json"])

if uploaded is not None:
    try:
        layout = layout_from_json(uploaded.getvalue().decode("utf-8"))
    except (LayoutFormatError, UnicodeDecodeError) as e:
        st.error(f"Could not read layout: {e}")
        st.stop()
else:
    if "default_layout" not in st.session_state:
        st.session_state["default_layout"] = create_initial_layout()
    layout = st.session_state["default_layout"]
    st.sidebar.info("No file uploaded: showing the initial layout (source + water cannon).")

estimated = estimate_flow_rate(layout, DEFAULT_CATALOG)
override_flow = st.sidebar.checkbox("Override network flow", value=False)
flow_rate = None
if override_flow:
    flow_rate = st.sidebar.number_input(
        "Network flow (l/min)", min_value=0.0, max_value=10000.0,
        value=float(estimated), step=50.0,
    )
check_limits = st.sidebar.checkbox("Check pump flow capacity", value=False)

result = calculate_layout(
    layout, flow_rate_lpm=flow_rate, catalog=DEFAULT_CATALOG,
    check_flow_limits=check_limits,
)


# ══════════════════════════════════════════════
#  KPI dashboard
# ══════════════════════════════════════════════
terminal_pressures = [p.terminal_pressure for p in result.paths]

kpi1, kpi2, kpi3, kpi4 = st.columns(4)
with kpi1:
    st.metric("Network flow", f"{flow_rate if flow_rate is not None else estimated:.0f} l/min")
with kpi2:
    st.metric("Terminals reached", f"{len(result.paths)}")
with kpi3:
    if terminal_pressures:
        st.metric("Lowest terminal pressure", f"{min(terminal_pressures):.2f} bar")
    else:
        st.metric("Lowest terminal pressure", "N/A")
with kpi4:
    st.metric("Layout", "VALID ✔" if result.is_valid else "ISSUES ✘")

# ── Warnings ──
for err in result.errors:
    nodes_txt = f" ({', '.join(err.node_ids)})" if err.node_ids else ""
    if err.type in (ErrorType.NO_PUMP, ErrorType.NO_PATH, ErrorType.INVALID_CONNECTION):
        st.error(f"**{err.type.value}**: {err.message}{nodes_txt}")
    else:
        st.warning(f"**{err.type.value}**: {err.message}{nodes_txt}")

st.markdown("---")

tab1, tab2, tab3, tab4 = st.tabs([
    ":material/table: Nodes",
    ":material/show_chart: Path profiles",
    ":material/ssid_chart: Hose friction",
    ":material/download: Export",
])

# ═══ Tab 1: node table ═══
with tab1:
    df_nodes = nodes_dataframe(result, layout, DEFAULT_CATALOG)
    st.dataframe(
        df_nodes.style.map(
            lambda s: f"color: {STATUS_COLORS.get(s, '#888')}", subset=["status"],
        ),
        use_container_width=True, hide_index=True,
    )
    st.subheader("Paths")
    st.dataframe(paths_dataframe(result), use_container_width=True, hide_index=True)

# ═══ Tab 2: pressure profile per path ═══
with tab2:
    if not result.paths:
        st.info("No start-to-terminal path was found.")
    else:
        fig_p = go.Figure()
        for i, path in enumerate(result.paths):
            prof = path_profile(result, path, layout)
            fig_p.add_trace(go.Scatter(
                x=prof["positions"], y=prof["pressures_bar"],
                text=prof["node_ids"],
                name=f"Path #{i+1} → {path.node_ids[-1][:8]}",
                mode="lines+markers", marker=dict(size=8),
                hovertemplate="%{text}<br>%{y:.2f} bar<extra></extra>",
            ))
        fig_p.add_hline(y=NON_TERMINAL_MIN_PRESSURE_BAR,
                        line_dash="dot", line_color="orange",
                        annotation_text=f"{NON_TERMINAL_MIN_PRESSURE_BAR:g} bar branch threshold")
        fig_p.update_layout(
            xaxis_title="Position along path", yaxis_title="Pressure (bar)",
            template="plotly_white", height=500,
            legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1),
        )
        st.plotly_chart(fig_p, use_container_width=True)

        crit = find_critical_flow(layout, DEFAULT_CATALOG)
        if crit:
            st.markdown(
                f"**Critical flow**: every reached terminal keeps its minimum pressure "
                f"up to **{crit['flow_lpm']:.0f} l/min**."
            )
        else:
            st.markdown("**Critical flow**: N/A (no sign change in the search range)")

# ═══ Tab 3: catalog hose friction curves ═══
with tab3:
    Q = np.linspace(0, 2000, 101)
    fig_f = go.Figure()
    for hose in DEFAULT_CATALOG.get_equipment_by_category(HOSE):
        fig_f.add_trace(go.Scatter(
            x=Q, y=friction_curve(hose.friction_coefficient, Q),
            name=f"{hose.id} ({hose.diameter_label})", mode="lines",
        ))
    fig_f.add_vline(x=REFERENCE_FLOW_LPM, line_dash="dot", line_color="gray",
                    annotation_text="reference flow")
    fig_f.update_layout(
        xaxis_title="Flow (l/min)", yaxis_title="Loss per 20 m section (bar)",
        template="plotly_white", height=450,
    )
    st.plotly_chart(fig_f, use_container_width=True)

# ═══ Tab 4: export ═══
with tab4:
    st.download_button(
        "Layout JSON", layout_to_json(layout),
        file_name=f"layout_{layout.id}.json", mime="application/json",
    )
    st.download_button(
        "Node results (CSV)", df_nodes.to_csv(index=False).encode("utf-8-sig"),
        file_name="node_results.csv", mime="text/csv",
    )
    st.download_button(
        "Path results (CSV)", paths_dataframe(result).to_csv(index=False).encode("utf-8-sig"),
        file_name="path_results.csv", mime="text/csv",
    )
    st.download_button(
        "Warnings (CSV)", errors_dataframe(result).to_csv(index=False).encode("utf-8-sig"),
        file_name="warnings.csv", mime="text/csv",
    )
