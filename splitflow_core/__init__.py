"""
Split-flow Core Package.

This package contains the visualization engine for a value split from one
source into several weighted recipients, including:

- Geometry for weighted flow bands (LayoutEngine)
- Deterministic per-flow colors and gradients (GradientCatalog)
- A retained, rebuildable scene with hover opacities (RenderSurface)
- Hover handling with a stale-leave guard (InteractionController)
- Animated particles with owned, cancellable timers (ParticleSystem)
- The lifecycle manager hosts mount (FlowVisualization)
"""

__version__ = "0.1.0"

from .config import FlowConfig, load_config
from .errors import AllocationValueError, FlowInputError, InputShapeError
from .gradients import ColorPair, GradientCatalog, GradientDef
from .inputs import FlowInput, load_route_file
from .interaction import HoverState, InteractionController
from .layout import FlowRecord, LayoutEngine, ease_cubic_in_out
from .particles import Particle, ParticleSystem
from .render import RenderSurface
from .visualization import FlowVisualization
