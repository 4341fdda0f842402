"""Banner selection and details component."""

import streamlit as st

from banner import DRAW_ORDER, Banner
from ui.constants import RARITY_COLORS, RARITY_LABELS
from validation import validate_banner


def render_banner_display() -> Banner:
    """Render the banner picker and return the selected banner."""
    st.header("Banners")
    banners = st.session_state.banners
    banner_names = [b.name for b in banners]
    selected_idx = st.selectbox(
        "Banner",
        range(len(banners)),
        format_func=lambda x: banner_names[x],
        key="selected_banner_idx",
    )
    banner = banners[selected_idx]
    catalog = st.session_state.catalog

    with st.expander(banner.name, expanded=True):
        for rarity in DRAW_ORDER:
            color = RARITY_COLORS[rarity]
            rate = banner.rate_table.get(rarity)
            names = []
            for item_id in banner.item_pool:
                item = catalog.get(item_id)
                if item is None or item.rarity != rarity:
                    continue
                if banner.is_featured(item_id):
                    names.append(f"**{item.display_name}(UP)**")
                else:
                    names.append(item.display_name)
            st.markdown(
                f"<span style='color:{color}'><b>{RARITY_LABELS[rarity]} "
                f"{rate * 100:.2f}%:</b> {len(names)} items</span>",
                unsafe_allow_html=True,
            )
            featured = [name for name in names if name.startswith("**")]
            if featured:
                st.markdown(", ".join(featured))

        st.divider()
        pity = st.session_state.player.pity_for(banner.id).pulls_since_last_legendary
        st.progress(
            min(pity / banner.pity_threshold, 1.0),
            text=f"Pity {pity}/{banner.pity_threshold}, "
            f"legendary guaranteed within {banner.pulls_until_guaranteed(pity)} pulls",
        )

        for issue in validate_banner(banner, catalog):
            if issue.is_error:
                st.error(issue.message)
            else:
                st.warning(issue.message)
    return banner
