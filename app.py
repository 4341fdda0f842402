import logging

import streamlit as st

from ui.components import (
    render_banner_display,
    render_header,
    render_pull_section,
    render_simulation_section,
)
from ui.state import initialize_session_state

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)

st.set_page_config(page_title="Gacha Pull Simulator", layout="wide")

initialize_session_state()
render_header()
banner = render_banner_display()
render_pull_section(banner)
render_simulation_section(banner)
