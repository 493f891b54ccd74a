"""
Streamlit visualization interface for split flows.

This module provides an interactive web-based view of how a balance is split
from one source into weighted recipients. Users can edit recipients and
weights, highlight a recipient the way hovering does in the browser, and
scrub through a simulated particle timeline.

Interface includes:
- Route editing (recipients, weights, root identifier and balance)
- Flow diagram rendered to SVG with gradients, endpoints and labels
- Recipient highlight selector driving the hover opacity policy
- Particle snapshot at any simulated time, reproducible by seed
- Flow record table with percentages and band thicknesses
"""

import os
import random
import sys

# Add project root to Python path BEFORE any imports
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

import streamlit as st

from splitflow_core.config import FlowConfig
from splitflow_core.inputs import FlowInput
from splitflow_core.visualization import FlowVisualization
from viz.utils import recipient_rows_html, scene_to_svg

DEFAULT_ROUTE_TEXT = """0xA11ce00000000000000000000000000000001234, 50
0xB0b0000000000000000000000000000000005678, 30
0xCa7010000000000000000000000000000000abcd, 20"""

st.set_page_config(layout="wide", page_title="Split Flow Demo")

st.markdown(
    """
    <style>
    .block-container { padding-top: 3rem; padding-bottom: 2rem; }
    .source-panel { background: #374151; border-radius: 8px; padding: 1rem; text-align: center; color: #fff; }
    .source-panel .balance { font-size: 1.5rem; font-weight: 700; }
    .recipient-row { background: #1f2937; border-radius: 8px; padding: .6rem; margin-bottom: .5rem;
                     display: flex; gap: .6rem; align-items: center; color: #fff; }
    .recipient-row.highlighted { background: #374151; transform: scale(1.05); }
    .recipient-row .swatch { width: 12px; height: 12px; border-radius: 50%; display: inline-block; }
    .recipient-row .percentage { margin-left: auto; font-weight: 700; }
    </style>
    """,
    unsafe_allow_html=True,
)


def parse_route_lines(text):
    """Parse `identifier, weight` lines into (recipients, allocations).

    Blank lines are skipped; a line without a weight counts as weight 0.
    Raises ValueError for a weight that is not a number.
    """
    recipients = []
    allocations = []
    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            continue
        ident, _, weight = line.partition(",")
        recipients.append(ident.strip())
        weight = weight.strip()
        allocations.append(float(weight) if weight else 0.0)
    return recipients, allocations


def simulate_particles(viz, until_ms, interval_ms):
    """Run spawn ticks on a simulated clock up to `until_ms` and sample there."""
    if viz.particles is None:
        return []
    t = interval_ms
    while t <= until_ms:
        viz.particles.tick(t)
        t += interval_ms
    return viz.particle_frames(until_ms)


with st.sidebar:
    st.header("Route")
    root_identifier = st.text_input("Root identifier", "0x5p1170000000000000000000000000000000beef")
    balance = st.text_input("Total balance", "1.5")
    route_text = st.text_area("Recipients (identifier, weight)", DEFAULT_ROUTE_TEXT, height=160)

    st.header("Particles")
    seed = st.number_input("Seed", min_value=0, value=0, step=1)
    sim_time = st.slider("Simulated time (ms)", min_value=0, max_value=10000, value=3000, step=100)

cfg = FlowConfig()
try:
    recipients, allocations = parse_route_lines(route_text)
except ValueError as exc:
    st.error(f"Could not parse weights: {exc}")
    recipients, allocations = [], []

viz = FlowVisualization(cfg, rng=random.Random(int(seed)), animate=False)
viz.update(FlowInput.create(recipients, allocations, root_identifier, balance))

if viz.last_error is not None:
    st.error(str(viz.last_error))

options = ["None"] + [f"{i}: {r}" for i, r in enumerate(recipients)] if viz.records else ["None"]
highlight = st.sidebar.selectbox("Highlight recipient", options)
if highlight != "None":
    viz.pointer_enter(int(highlight.split(":", 1)[0]))

st.title("Split Flow")

frames = simulate_particles(viz, sim_time, cfg.tick_interval_ms)
col_source, col_canvas, col_rows = st.columns([1, 3, 2])
elements = viz.surface.elements
panel = [e for e in elements if e["kind"] == "source_panel"]
rows = [e for e in elements if e["kind"] == "recipient_row"]
with col_source:
    st.markdown(recipient_rows_html(panel), unsafe_allow_html=True)
with col_canvas:
    st.markdown(scene_to_svg(elements, cfg.width, cfg.height, frames), unsafe_allow_html=True)
with col_rows:
    st.markdown(recipient_rows_html(rows), unsafe_allow_html=True)

st.subheader("Flow records")
st.dataframe(
    [
        {
            "Index": r.index,
            "Recipient": r.identifier,
            "Allocation": r.allocation,
            "Percentage": round(r.percentage_of_total, 3),
            "Band thickness": round(r.band_thickness, 3),
            "Target y": round(r.target_point[1], 2),
        }
        for r in viz.records
    ],
    use_container_width=True,
)

col_flows, col_particles = st.columns(2)
with col_flows:
    st.metric("Flows", len(viz.records))
with col_particles:
    st.metric("Particles in flight", len(frames))
