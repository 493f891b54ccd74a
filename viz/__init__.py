"""
Visualization Package.

This package provides host-side tools for split-flow diagrams: SVG export of
a rendered scene and an interactive Streamlit demo for exploring how weights
map onto flow bands, hover highlighting and particle animation.
"""

# Visualization Package
