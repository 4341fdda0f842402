"""Simulation control and results display component."""

import asyncio

import pandas as pd
import streamlit as st

from banner import Banner
from errors import GachaError
from pull_stats import (
    popular_items,
    rarity_frequencies,
    results_to_frame,
    summarize,
)
from simulation import Simulation


def _run_simulation(banner: Banner, experiments: int, pulls: int, seed):
    simulation = Simulation(
        banner=banner,
        catalog=st.session_state.catalog,
        pulls=pulls,
        experiments=experiments,
        seed=seed,
    )
    progress_bar = st.progress(0, text="Running simulation...")

    def update_progress(current: int, total: int):
        progress_bar.progress(current / total, text=f"Running simulation... {current}/{total}")

    async def run_async():
        return await simulation.run_async(
            yield_every=max(1, experiments // 100),
            progress_callback=update_progress,
        )

    try:
        result = asyncio.run(run_async())
    except GachaError as e:
        progress_bar.empty()
        st.error(f"Simulation failed: {e}")
        return
    progress_bar.empty()
    st.session_state.simulation_results = {
        "banner_id": banner.id,
        "frame": results_to_frame(result.runs),
    }


def render_simulation_section(banner: Banner):
    """Render simulation controls and empirical vs declared rates."""
    st.header("Simulation")
    col1, col2, col3 = st.columns(3)
    with col1:
        experiments = st.number_input(
            "Players", min_value=1, max_value=10000, value=100, step=10
        )
    with col2:
        pulls = st.number_input(
            "Pulls per player", min_value=1, max_value=1000, value=100, step=10
        )
    with col3:
        seed_text = st.text_input("Seed (blank = random)", value="")

    if st.button("Run simulation", type="primary"):
        seed = int(seed_text) if seed_text.strip().lstrip("-").isdigit() else None
        _run_simulation(banner, int(experiments), int(pulls), seed)

    results = st.session_state.get("simulation_results")
    if not results or results["banner_id"] != banner.id:
        return

    frame: pd.DataFrame = results["frame"]
    soft_pity = banner.soft_pity_start is not None
    summary = summarize(frame, banner.rate_table, compare_rates=not soft_pity)
    m1, m2, m3, m4, m5 = st.columns(5)
    m1.metric("Total pulls", summary["total_pulls"])
    m2.metric("Legendaries", summary["legendary_count"])
    m3.metric("Pity rate", f"{summary['pity_trigger_rate'] * 100:.2f}%")
    per_legendary = summary["pulls_per_legendary"]
    m4.metric(
        "Pulls per legendary",
        f"{per_legendary:.1f}" if per_legendary is not None else "-",
    )
    within = summary["within_5_percent"]
    m5.metric("Within 5% of rates", "-" if within is None else ("Yes" if within else "No"))

    frequencies = rarity_frequencies(frame, banner.rate_table)
    if soft_pity:
        st.caption("Expected column shows base rates; soft pity raises the legendary rate")
    st.dataframe(frequencies, use_container_width=True)
    chart_df = frequencies[["observed", "expected"]] * 100
    chart_df.index = pd.CategoricalIndex(
        chart_df.index, categories=list(chart_df.index), ordered=True
    )
    st.bar_chart(chart_df, stack=False, height=250)

    st.subheader("Most drawn items")
    st.dataframe(
        popular_items(frame, st.session_state.catalog, top=10),
        use_container_width=True,
        hide_index=True,
    )
