"""Manual pull component."""

import streamlit as st

from banner import Banner
from errors import GachaError
from rng import DefaultRNG
from ui.constants import RARITY_COLORS, RARITY_LABELS
from ui.state import update_url


def _pull(banner: Banner, count: int):
    try:
        st.session_state.last_pulls = st.session_state.player.pull(
            banner,
            st.session_state.catalog,
            count,
            DefaultRNG(),
            history=st.session_state.history,
        )
    except GachaError as e:
        st.error(f"Pull failed: {e}")
        return
    update_url()


def render_pull_section(banner: Banner):
    """Render single and ten pull buttons and the latest results."""
    st.header("Pull")
    col1, col2, _ = st.columns([1, 1, 6])
    with col1:
        if st.button("Pull x1"):
            _pull(banner, 1)
    with col2:
        if st.button("Pull x10"):
            _pull(banner, 10)

    catalog = st.session_state.catalog
    for result in st.session_state.get("last_pulls", []):
        item = catalog.get(result.item_id)
        name = item.display_name if item else result.item_id
        tags = ["NEW" if result.is_new else "duplicate"]
        if result.pity_triggered:
            tags.append("pity")
        st.markdown(
            f"<span style='color:{RARITY_COLORS[result.rarity]}'>"
            f"<b>{RARITY_LABELS[result.rarity]}</b> {name}</span> ({', '.join(tags)})",
            unsafe_allow_html=True,
        )

    history = st.session_state.history
    if history.total_pulls:
        st.caption(
            f"{history.total_pulls} pulls this session, "
            f"{history.legendary_count} legendary, "
            f"{history.pity_trigger_count} from pity, "
            f"{history.duplicate_count} duplicates"
        )
