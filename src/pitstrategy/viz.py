"""Visualization module for the pit strategy optimizer.

Professional F1-themed visualizations with consistent styling:
- F1 red color scheme (#FF1E1E)
- Dark theme (plotly_dark)
- Clean, professional charts suitable for race engineers

Author: João Pedro Cunha
"""

import logging
from typing import Mapping, Optional

import numpy as np
import pandas as pd
import plotly.graph_objects as go
from plotly.subplots import make_subplots

from pitstrategy.compounds import DEFAULT_COMPOUNDS, CompoundProfile
from pitstrategy.config import DEFAULT_CONFIG, OptimizerConfig
from pitstrategy.degrade_model import wear_curve
from pitstrategy.simulator import Strategy

logger = logging.getLogger(__name__)

# F1 Professional Color Palette
F1_RED = "#FF1E1E"
F1_BLUE = "#1E90FF"
F1_GREEN = "#00D856"
F1_YELLOW = "#FFA800"
F1_PURPLE = "#9B4DFF"
F1_COLORS = [F1_RED, F1_BLUE, F1_GREEN, F1_YELLOW, F1_PURPLE]

# Pirelli sidewall colors
COMPOUND_COLORS = {
    "Soft": "#FF1E1E",
    "Medium": "#FFD700",
    "Hard": "#F0F0F0",
    "Intermediate": "#00D856",
    "Wet": "#1E90FF",
}


def _dark_layout(fig: go.Figure, title: str, config: OptimizerConfig, **axes) -> go.Figure:
    fig.update_layout(
        title=dict(text=title, font=dict(size=20, color="white")),
        template=config.plot_theme,
        width=config.plot_width,
        height=config.plot_height,
        plot_bgcolor="rgba(0,0,0,0)",
        paper_bgcolor="rgba(0,0,0,0)",
        font=dict(color="white"),
        legend=dict(
            bgcolor="rgba(0,0,0,0.5)",
            bordercolor="rgba(255,255,255,0.2)",
            borderwidth=1,
        ),
        **axes,
    )
    return fig


def plot_wear_curves(
    env_factor: float = 1.0,
    max_age: int = 40,
    max_stint_lap: Optional[int] = None,
    profiles: Mapping[str, CompoundProfile] = DEFAULT_COMPOUNDS,
    config: OptimizerConfig = DEFAULT_CONFIG,
) -> go.Figure:
    """Plot per-lap wear penalty against tyre age for every compound."""
    fig = go.Figure()
    ages = np.arange(1, max_age + 1)

    for compound, profile in profiles.items():
        penalties = wear_curve(compound, max_age, env_factor, max_stint_lap, profiles, config)
        color = COMPOUND_COLORS.get(compound, F1_PURPLE)

        fig.add_trace(
            go.Scatter(
                x=ages,
                y=penalties,
                mode="lines",
                name=f"{compound} (life {profile.max_useful_laps})",
                line=dict(width=3, color=color),
                hovertemplate="<b>%{fullData.name}</b><br>"
                + "Tyre Age: %{x} laps<br>"
                + "Wear: %{y:.3f}s<extra></extra>",
            )
        )

    reject = config.wear_reject_threshold
    fig.add_hline(
        y=reject,
        line_dash="dot",
        line_color=F1_RED,
        annotation=dict(text=f"Reject threshold ({reject:.1f}s)", font=dict(color=F1_RED)),
    )

    return _dark_layout(
        fig,
        f"Tyre Wear Curves (factor {env_factor:.2f})",
        config,
        xaxis=dict(title="Tyre Age (laps)", gridcolor="rgba(255,255,255,0.1)"),
        yaxis=dict(title="Wear Penalty (seconds)", gridcolor="rgba(255,255,255,0.1)"),
        hovermode="x unified",
    )


def plot_lap_times(
    best_by_stops: Mapping[int, Strategy],
    config: OptimizerConfig = DEFAULT_CONFIG,
) -> go.Figure:
    """Overlay the lap time series of the best strategy per stop count."""
    fig = go.Figure()

    for idx, (stops, strategy) in enumerate(sorted(best_by_stops.items())):
        color = F1_COLORS[idx % len(F1_COLORS)]
        frame = strategy.to_frame()

        fig.add_trace(
            go.Scatter(
                x=frame["Lap"],
                y=frame["LapTime"],
                mode="lines",
                name=f"{stops} stop{'s' if stops != 1 else ''}",
                line=dict(width=2, color=color),
                customdata=frame["Compound"],
                hovertemplate="Lap %{x}<br>%{y:.3f}s on %{customdata}<extra></extra>",
            )
        )

        for pit_lap in strategy.pit_laps:
            fig.add_vline(x=pit_lap + 0.5, line_dash="dot", line_color=color, line_width=1)

    return _dark_layout(
        fig,
        "Lap Times by Strategy",
        config,
        xaxis=dict(title="Lap", gridcolor="rgba(255,255,255,0.1)"),
        yaxis=dict(title="Lap Time (seconds)", gridcolor="rgba(255,255,255,0.1)"),
        hovermode="x unified",
    )


def plot_strategy_telemetry(
    strategy: Strategy,
    config: OptimizerConfig = DEFAULT_CONFIG,
) -> go.Figure:
    """Lap time, wear penalty and fuel load for a single strategy."""
    frame = strategy.to_frame()

    fig = make_subplots(
        rows=3,
        cols=1,
        shared_xaxes=True,
        subplot_titles=("Lap Time", "Tyre Wear Penalty", "Fuel Load"),
        vertical_spacing=0.08,
    )

    for stint_number, stint_frame in frame.groupby("Stint"):
        compound = stint_frame["Compound"].iloc[0]
        color = COMPOUND_COLORS.get(compound, F1_PURPLE)
        name = f"Stint {stint_number}: {compound}"

        fig.add_trace(
            go.Scatter(
                x=stint_frame["Lap"],
                y=stint_frame["LapTime"],
                mode="lines+markers",
                name=name,
                line=dict(color=color, width=2),
                marker=dict(size=4),
            ),
            row=1,
            col=1,
        )
        fig.add_trace(
            go.Scatter(
                x=stint_frame["Lap"],
                y=stint_frame["WearPenalty"],
                mode="lines",
                name=name,
                line=dict(color=color, width=2),
                showlegend=False,
            ),
            row=2,
            col=1,
        )

    fig.add_trace(
        go.Scatter(
            x=frame["Lap"],
            y=frame["FuelLoad"],
            mode="lines",
            name="Fuel",
            line=dict(color=F1_BLUE, width=2),
            showlegend=False,
        ),
        row=3,
        col=1,
    )

    fig.update_yaxes(title_text="Seconds", row=1, col=1)
    fig.update_yaxes(title_text="Seconds", row=2, col=1)
    fig.update_yaxes(title_text="kg", row=3, col=1)
    fig.update_xaxes(title_text="Lap", row=3, col=1)

    fig = _dark_layout(fig, strategy.description, config)
    fig.update_layout(height=config.plot_height + 300)
    return fig


def plot_stop_count_comparison(
    comparison_df: pd.DataFrame,
    config: OptimizerConfig = DEFAULT_CONFIG,
) -> go.Figure:
    """Bar chart of the gap to the best strategy for each stop count."""
    fig = go.Figure()

    df_sorted = comparison_df.sort_values("Total Time (s)")

    # Color gradient: best=green, next=blue, rest=red
    colors = []
    for i in range(len(df_sorted)):
        if i == 0:
            colors.append(F1_GREEN)
        elif i == 1:
            colors.append(F1_BLUE)
        else:
            colors.append(F1_RED)

    fig.add_trace(
        go.Bar(
            x=df_sorted["Strategy"],
            y=df_sorted["Gap to Best (s)"],
            marker=dict(color=colors, line=dict(color="white", width=1)),
            customdata=df_sorted["Total Time (s)"],
            hovertemplate="<b>%{x}</b><br>"
            + "Gap: +%{y:.3f}s<br>"
            + "Total: %{customdata:.3f}s<extra></extra>",
        )
    )

    fig = _dark_layout(
        fig,
        "Stop Count Comparison",
        config,
        xaxis=dict(title="Strategy", tickangle=-30, gridcolor="rgba(255,255,255,0.1)"),
        yaxis=dict(title="Gap to Best (seconds)", gridcolor="rgba(255,255,255,0.1)"),
    )
    fig.update_layout(showlegend=False)
    return fig
