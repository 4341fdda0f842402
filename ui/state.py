"""Session state management and URL sharing."""

import logging

import streamlit as st

from player import PlayerGachaState, PullHistory, deserialize_state, serialize_state
from ui.defaults import create_default_banners, create_default_catalog

logger = logging.getLogger(__name__)


def update_url():
    """Store the current player state in the URL so it can be shared."""
    st.query_params["player"] = serialize_state(st.session_state.player)


def _load_player_from_url() -> PlayerGachaState:
    encoded = st.query_params.get("player")
    if not encoded:
        return PlayerGachaState()
    try:
        return deserialize_state(encoded)
    except ValueError as e:
        logger.warning("Ignoring unreadable player state in URL: %s", e)
        st.warning(f"Could not load shared state: {e}")
        return PlayerGachaState()


def initialize_session_state():
    """Initialize session state from URL or defaults."""
    if "initialized" in st.session_state:
        return
    st.session_state.initialized = True
    st.session_state.catalog = create_default_catalog()
    st.session_state.banners = create_default_banners(st.session_state.catalog)
    st.session_state.player = _load_player_from_url()
    st.session_state.history = PullHistory()
    st.session_state.simulation_results = None


def reset_player():
    st.session_state.player = PlayerGachaState()
    st.session_state.history = PullHistory()
    update_url()
