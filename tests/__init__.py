"""
Split-flow Test Suite.

This package contains tests for the split-flow visualization engine: layout
geometry, gradients, rendering and hover, particle scheduling, the lifecycle
manager, input/config adapters and the host integrations.
"""

# Split-flow Test Suite
