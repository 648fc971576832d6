"""Streamlit dashboard for the pit strategy optimizer.

Author: João Pedro Cunha
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import json
import streamlit as st
import logging

from pitstrategy import config, degrade_model, orchestrator, report, viz
from pitstrategy.errors import StrategyError
from pitstrategy.store import ConfigStore

logging.basicConfig(level=logging.INFO)

st.set_page_config(
    page_title="Pit Strategy Optimizer",
    page_icon="🏎️",
    layout="wide",
)

# Initialize session state
if 'analysis_complete' not in st.session_state:
    st.session_state.analysis_complete = False
if 'loaded_config' not in st.session_state:
    st.session_state.loaded_config = {}


def get_store():
    return ConfigStore(config.DEFAULT_CONFIG.store_path)


def saved_config_controls():
    """Load, save and delete named configurations."""
    store = get_store()
    st.sidebar.subheader("Saved Configurations")

    names = [entry.name for entry in store.list()]
    if names:
        selected = st.sidebar.selectbox("Saved", names)
        col1, col2 = st.sidebar.columns(2)
        if col1.button("Load", use_container_width=True):
            st.session_state.loaded_config = store.get(selected).config or {}
            st.rerun()
        if col2.button("Delete", use_container_width=True):
            store.delete(selected)
            st.rerun()
    else:
        st.sidebar.caption("No saved configurations yet")


def sidebar_inputs():
    """Render sidebar controls."""
    st.sidebar.title("🏎️ Pit Strategy Optimizer")
    st.sidebar.markdown("---")

    saved_config_controls()
    loaded = config.RaceConfig.from_dict(st.session_state.loaded_config) \
        if st.session_state.loaded_config else None

    st.sidebar.markdown("---")
    st.sidebar.subheader("Race")
    total_laps = st.sidebar.number_input(
        "Total Laps", 1, 100, loaded.total_laps if loaded else 57
    )
    base_lap_time = st.sidebar.number_input(
        "Base Lap Time (s)", 30.0, 200.0, loaded.base_lap_time if loaded else 92.0, 0.1
    )
    fuel_load = st.sidebar.number_input(
        "Fuel Load (kg)", 0.0, 150.0, loaded.fuel_load if loaded else 110.0, 1.0
    )
    pit_stop_loss = st.sidebar.number_input(
        "Pit Stop Loss (s)", 0.0, 60.0, loaded.pit_stop_loss if loaded else 20.0, 0.5
    )

    st.sidebar.markdown("---")
    st.sidebar.subheader("Conditions")
    levels = list(config.DEGRADATION_LEVELS)
    degradation = st.sidebar.selectbox(
        "Track Degradation", levels,
        index=levels.index(loaded.degradation_level) if loaded else 1,
    )
    temperature = st.sidebar.slider(
        "Track Temperature (°C)", 10.0, 55.0, float(loaded.temperature) if loaded else 25.0, 0.5
    )
    total_rainfall = st.sidebar.number_input(
        "Total Rainfall (mm)", 0.0, 500.0, loaded.total_rainfall if loaded else 0.0, 1.0
    )

    st.sidebar.markdown("---")
    save_name = st.sidebar.text_input("Save as", "")
    save_button = st.sidebar.button("💾 Save Configuration", use_container_width=True)
    run_button = st.sidebar.button("🚀 Optimize", type="primary", use_container_width=True)

    return {
        'totalLaps': total_laps,
        'baseLapTime': base_lap_time,
        'fuelLoad': fuel_load,
        'pitStopLoss': pit_stop_loss,
        'degradation': degradation,
        'temperature': temperature,
        'totalRainfall': total_rainfall,
        'save_name': save_name,
        'save_button': save_button,
        'run_button': run_button,
    }


def save_configuration(params):
    try:
        race = config.RaceConfig.from_dict(params)
        get_store().save(params['save_name'], race.to_dict())
        st.sidebar.success(f"Saved '{params['save_name'].strip()}'")
    except StrategyError as e:
        st.sidebar.error(str(e))


def run_analysis(params):
    """Run the strategy optimization."""
    try:
        with st.spinner("Optimizing strategies..."):
            cfg = config.DEFAULT_CONFIG
            race = config.RaceConfig.from_dict(params)
            result = orchestrator.optimize_race(race, cfg)

        # Store in session state
        st.session_state.analysis_complete = True
        st.session_state.result = result
        st.session_state.cfg = cfg

        st.success("✅ Optimization complete!")

    except StrategyError as e:
        st.session_state.analysis_complete = False
        st.error(f"❌ {e}")


def main():
    """Main application."""
    params = sidebar_inputs()

    if params['save_button']:
        save_configuration(params)

    if params['run_button']:
        run_analysis(params)

    st.title("🏎️ Pit Strategy Optimizer")

    if not st.session_state.analysis_complete:
        st.info("👈 Configure race parameters and click 'Optimize' to begin")

        st.markdown("""
        ### About This Tool

        This optimizer plans tyre and pit stop strategy using:
        - **Tyre Wear Curves**: Linear, exponential and cliff phases per compound
        - **Track Conditions**: Degradation level and temperature scale tyre wear
        - **Fuel Effect**: Cars get faster as fuel burns off
        - **Exact Search**: Dynamic programming over stint lengths and compounds

        Rainfall decides the compound set: dry races must use two different
        compounds, wet races may run Intermediates or Wets throughout.
        """)
        return

    # Display results
    result = st.session_state.result
    cfg = st.session_state.cfg
    race = result.race
    best = result.overall_best
    comparison_df = result.comparison()

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric("Race Time", report.format_race_time(best.total_time))
    with col2:
        st.metric("Stops", best.num_stops)
    with col3:
        fastest = best.fastest_lap
        st.metric("Fastest Lap", f"{fastest.time:.3f}s" if fastest else "-",
                  f"L{fastest.lap}" if fastest else None, delta_color="off")
    with col4:
        st.metric("Conditions", result.compound_class.name.replace("_", " ").title())

    # Best strategy recommendation
    st.success(f"**💡 Recommended Strategy:** {best.description}")

    # Tabs
    tab1, tab2, tab3, tab4 = st.tabs([
        "Stop Count Comparison",
        "Lap Times",
        "Tyre Wear",
        "Data & Export"
    ])

    with tab1:
        st.subheader("Best Strategy per Stop Count")
        fig_comp = viz.plot_stop_count_comparison(comparison_df, cfg)
        st.plotly_chart(fig_comp, use_container_width=True)

        st.dataframe(comparison_df, use_container_width=True)

    with tab2:
        st.subheader("Lap Times")
        st.plotly_chart(viz.plot_lap_times(result.best_by_stops, cfg), use_container_width=True)

        st.subheader("Best Strategy Telemetry")
        st.plotly_chart(viz.plot_strategy_telemetry(best, cfg), use_container_width=True)

        for stint in best.to_dict()["stints"]:
            with st.expander(f"Stint {stint['stint']} - {stint['compound']}"):
                col1, col2, col3 = st.columns(3)
                with col1:
                    st.metric("Laps", f"{stint['start_lap']}-{stint['end_lap']}")
                with col2:
                    st.metric("Length", stint['laps'])
                with col3:
                    st.metric("Tyre Life Left", f"{stint['tyre_life_remaining_pct']}%")

    with tab3:
        env_factor = degrade_model.environment_factor(race.degradation_level, race.temperature, cfg)
        st.subheader(f"Tyre Wear Curves (factor {env_factor:.3f})")
        fig_wear = viz.plot_wear_curves(env_factor, min(race.total_laps, 50), config=cfg)
        st.plotly_chart(fig_wear, use_container_width=True)

        compound = st.selectbox("Breakdown for", list(result.compound_class.compounds))
        table = degrade_model.wear_breakdown_table(
            compound, min(race.total_laps, 50), env_factor, config=cfg
        )
        st.dataframe(table, use_container_width=True)

    with tab4:
        st.subheader("Optimization Data")
        st.markdown(f"**Minimum Stint:** {result.min_stint} laps")
        st.markdown(f"**Solver:** {', '.join(f'{k}-stop {v}' for k, v in sorted(result.solver_by_stops.items()))}")

        st.download_button(
            "Download JSON Summary",
            json.dumps(result.to_dict(), indent=2),
            file_name="strategy_summary.json",
            mime="application/json",
        )

        if st.button("Generate HTML Report"):
            html = report.generate_report(result, config=cfg)

            st.download_button(
                "Download Report",
                html,
                file_name=f"strategy_report_{race.total_laps}_laps.html",
                mime="text/html",
            )

    st.sidebar.markdown("---")
    st.sidebar.markdown("**Author:** João Pedro Cunha")


if __name__ == "__main__":
    main()
