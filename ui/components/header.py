"""Header component with title and share/import/reset buttons."""

import streamlit as st

from player import serialize_state
from ui.state import reset_player


def render_header():
    """Render the header with title and action buttons."""
    st.title("Gacha Pull Simulator")

    col_buttons, _ = st.columns([1, 4])
    with col_buttons:
        c1, c2, c3 = st.columns(3)
        with c1:
            with st.popover("Share"):
                st.code(serialize_state(st.session_state.player), language=None)
                st.caption("Copy the string above to share your pity and collection")
        with c2:
            with st.popover("Import"):
                load_input = st.text_area("Paste a shared state string", height=100)
                if st.button("Load"):
                    if load_input.strip():
                        st.session_state.clear()
                        st.query_params["player"] = load_input.strip()
                        st.rerun()
                    else:
                        st.warning("Paste a state string first")
        with c3:
            with st.popover("Reset"):
                st.warning("This clears pity counters and owned items.")
                if st.button("Confirm reset", type="primary"):
                    reset_player()
                    st.rerun()
