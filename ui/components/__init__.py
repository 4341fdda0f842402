"""UI component modules."""

from ui.components.banner_display import render_banner_display
from ui.components.header import render_header
from ui.components.pull_section import render_pull_section
from ui.components.simulation_section import render_simulation_section

__all__ = [
    "render_header",
    "render_banner_display",
    "render_pull_section",
    "render_simulation_section",
]
