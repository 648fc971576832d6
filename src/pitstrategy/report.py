"""HTML report generation for the pit strategy optimizer.

Author: João Pedro Cunha
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from jinja2 import Template

from pitstrategy import viz
from pitstrategy.config import DEFAULT_CONFIG, OptimizerConfig
from pitstrategy.degrade_model import environment_factor
from pitstrategy.orchestrator import OptimizationResult

logger = logging.getLogger(__name__)

HTML_TEMPLATE = """
<!DOCTYPE html>
<html>
<head>
    <title>Pit Strategy Report - {{ title }}</title>
    <style>
        body { font-family: Arial; max-width: 1400px; margin: 0 auto; padding: 20px;
               background: #0f0f0f; color: #e0e0e0; }
        h1 { color: #ff1e1e; border-bottom: 3px solid #ff1e1e; }
        h2 { color: #1e90ff; margin-top: 30px; }
        .header { background: #1a1a1a; padding: 20px; border-radius: 10px; margin-bottom: 30px; }
        .info-grid { display: grid; grid-template-columns: repeat(4, 1fr); gap: 15px; margin: 20px 0; }
        .info-item { background: #1a1a1a; padding: 15px; border-radius: 8px; }
        .recommendation { background: #1a3a1a; padding: 20px; border-radius: 10px;
                         border-left: 5px solid #00ff00; margin: 20px 0; }
        .plot { margin: 30px 0; text-align: center; }
        table { border-collapse: collapse; width: 100%; margin: 20px 0; }
        th, td { border: 1px solid #333; padding: 8px; text-align: center; }
        th { background: #1a1a1a; color: #1e90ff; }
        .assumptions { background: #2d1a1a; padding: 15px; border-radius: 5px;
                      border-left: 4px solid #ff6b6b; margin: 20px 0; }
    </style>
</head>
<body>
    <div class="header">
        <h1>🏎️ Pit Strategy Optimizer</h1>
        <h2>{{ title }}</h2>
        <div class="info-grid">
            <div class="info-item"><strong>Laps:</strong> {{ race.total_laps }}</div>
            <div class="info-item"><strong>Base Lap:</strong> {{ "%.3f"|format(race.base_lap_time) }}s</div>
            <div class="info-item"><strong>Fuel:</strong> {{ race.fuel_load }} kg</div>
            <div class="info-item"><strong>Pit Loss:</strong> {{ race.pit_stop_loss }}s</div>
            <div class="info-item"><strong>Degradation:</strong> {{ race.degradation_level }}</div>
            <div class="info-item"><strong>Track Temp:</strong> {{ race.temperature }}°C</div>
            <div class="info-item"><strong>Rainfall:</strong> {{ race.total_rainfall }} mm</div>
            <div class="info-item"><strong>Compounds:</strong> {{ compound_class }}</div>
        </div>
        <p><strong>Generated:</strong> {{ generation_time }}</p>
    </div>

    <div class="recommendation">
        <h3>💡 Recommended Strategy</h3>
        <p><strong>{{ best.description }}</strong></p>
        <p>Expected race time: {{ best_time }}</p>
        {% if fastest %}
        <p>Fastest lap: L{{ fastest.lap }} {{ "%.3f"|format(fastest.time) }}s on {{ fastest.compound }}</p>
        {% endif %}
    </div>

    <h2>Stints</h2>
    <table>
        <tr><th>Stint</th><th>Compound</th><th>Laps</th><th>Length</th><th>Tyre Life Left</th></tr>
        {% for stint in best_stints %}
        <tr>
            <td>{{ stint.stint }}</td>
            <td>{{ stint.compound }}</td>
            <td>{{ stint.start_lap }} - {{ stint.end_lap }}</td>
            <td>{{ stint.laps }}</td>
            <td>{{ stint.tyre_life_remaining_pct }}%</td>
        </tr>
        {% endfor %}
    </table>

    <h2>Stop Count Comparison</h2>
    {{ comparison_table }}
    <div class="plot">{{ plot_comparison }}</div>

    <h2>Lap Times</h2>
    <div class="plot">{{ plot_lap_times }}</div>

    <h2>Best Strategy Telemetry</h2>
    <div class="plot">{{ plot_telemetry }}</div>

    <h2>Tyre Wear Curves</h2>
    <div class="plot">{{ plot_wear }}</div>

    <div class="assumptions">
        <h3>⚠️ Modeling Assumptions</h3>
        <ul>
            <li>Deterministic lap time model, no safety cars or traffic</li>
            <li>Fuel burns linearly at {{ fuel_benefit }}s per kg</li>
            <li>Laps with more than {{ reject_threshold }}s of tyre wear are not driveable</li>
            <li>Minimum stint length: {{ min_stint }} laps</li>
            {% if require_two %}<li>At least two different dry compounds must be used</li>{% endif %}
        </ul>
    </div>

    <div style="margin-top: 50px; text-align: center; color: #666;">
        <p><strong>Pit Strategy Optimizer</strong> | Author: João Pedro Cunha</p>
    </div>
</body>
</html>
"""


def format_race_time(seconds: float) -> str:
    """Format seconds as ``H:MM:SS.mmm``."""
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{int(hours)}:{int(minutes):02d}:{secs:06.3f}"


def generate_report(
    result: OptimizationResult,
    title: str = "Race Strategy",
    config: OptimizerConfig = DEFAULT_CONFIG,
    output_path: Optional[Path] = None,
) -> str:
    """Generate HTML strategy report."""
    logger.info("Generating HTML report...")

    comparison_df = result.comparison()
    best = result.overall_best

    # Create plots
    plot_comp = viz.plot_stop_count_comparison(comparison_df, config).to_html(
        include_plotlyjs="cdn", div_id="comp_plot"
    )
    plot_laps = viz.plot_lap_times(result.best_by_stops, config).to_html(
        include_plotlyjs=False, div_id="laps_plot"
    )
    plot_tel = viz.plot_strategy_telemetry(best, config).to_html(
        include_plotlyjs=False, div_id="telemetry_plot"
    )
    plot_wear = viz.plot_wear_curves(
        env_factor=environment_factor(result.race.degradation_level, result.race.temperature, config),
        max_age=min(result.race.total_laps, 50),
        max_stint_lap=result.race.max_stint_lap,
        config=config,
    ).to_html(include_plotlyjs=False, div_id="wear_plot")

    comparison_html = comparison_df.to_html(index=False, float_format=lambda x: f"{x:.3f}")

    # Render template
    template = Template(HTML_TEMPLATE)
    html = template.render(
        title=title,
        race=result.race,
        compound_class=", ".join(result.compound_class.compounds),
        best=best,
        best_time=format_race_time(best.total_time),
        best_stints=best.to_dict()["stints"],
        fastest=best.fastest_lap,
        comparison_table=comparison_html,
        plot_comparison=plot_comp,
        plot_lap_times=plot_laps,
        plot_telemetry=plot_tel,
        plot_wear=plot_wear,
        fuel_benefit=config.fuel_per_kg_benefit,
        reject_threshold=(
            config.wear_reject_threshold
            if result.race.wear_reject_threshold is None
            else result.race.wear_reject_threshold
        ),
        min_stint=result.min_stint,
        require_two=result.compound_class.require_two_distinct,
        generation_time=datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
    )

    if output_path:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(html, encoding="utf-8")
        logger.info(f"Report saved to: {output_path}")

    return html
