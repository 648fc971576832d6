"""Command-line interface for the pit strategy optimizer.

Commands:
- optimize: best strategy per stop count, JSON summary and HTML report
- simulate: replay a hand-written stint plan
- wear: tyre wear breakdown for one compound
- configs: save, list, show and delete named race configurations

Author: João Pedro Cunha
"""

import argparse
import json
import logging
import sys
import uuid
from datetime import datetime

from pitstrategy import (
    config as cfg,
    degrade_model,
    orchestrator,
    report,
    simulator,
)
from pitstrategy.candidates import min_stint_length
from pitstrategy.compounds import get_profile, select_compound_class
from pitstrategy.errors import InvalidConfig, StrategyError
from pitstrategy.laptime import LapTimeEngine
from pitstrategy.store import ConfigStore

logger = logging.getLogger(__name__)


def _add_race_arguments(parser: argparse.ArgumentParser, required: bool = True) -> None:
    parser.add_argument("--laps", type=int, required=required, help="Race distance in laps")
    parser.add_argument(
        "--base-lap-time", type=float, required=required, help="Reference lap time (s)"
    )
    parser.add_argument("--fuel", type=float, default=0.0, help="Fuel load at start (kg)")
    parser.add_argument("--pit-loss", type=float, default=0.0, help="Time lost per stop (s)")
    parser.add_argument(
        "--degradation",
        type=str,
        default="Medium",
        choices=list(cfg.DEGRADATION_LEVELS),
        help="Track degradation level",
    )
    parser.add_argument("--temperature", type=float, default=25.0, help="Track temperature (C)")
    parser.add_argument("--rainfall", type=float, default=0.0, help="Total race rainfall (mm)")
    parser.add_argument("--out-lap-penalty", type=float, help="Out-lap penalty override (s)")
    parser.add_argument("--max-stint-lap", type=int, help="Wear overage cutoff override (laps)")
    parser.add_argument("--deg-threshold", type=float, help="Wear reject threshold override (s)")


def _race_payload(args: argparse.Namespace) -> dict:
    return {
        "totalLaps": args.laps,
        "baseLapTime": args.base_lap_time,
        "fuelLoad": args.fuel,
        "pitStopLoss": args.pit_loss,
        "degradation": args.degradation,
        "temperature": args.temperature,
        "totalRainfall": args.rainfall,
        "outLapPenalty": args.out_lap_penalty,
        "maxStintLap": args.max_stint_lap,
        "degThreshold": args.deg_threshold,
    }


def _load_race(args: argparse.Namespace, config: cfg.OptimizerConfig) -> cfg.RaceConfig:
    """Race from a saved configuration name or from the command-line values."""
    if getattr(args, "config_name", None):
        saved = ConfigStore(args.store or config.store_path).get(args.config_name)
        logger.info(f"Loaded saved config '{saved.name}'")
        return cfg.RaceConfig.from_dict(saved.config)

    if args.laps is None or args.base_lap_time is None:
        raise InvalidConfig("--laps and --base-lap-time are required without --config-name")
    return cfg.RaceConfig.from_dict(_race_payload(args))


def parse_plan(text: str) -> list[tuple[str, int]]:
    """Parse ``Soft:18,Hard:39`` into (compound, laps) pairs."""
    plan = []
    for chunk in text.split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        compound, sep, laps = chunk.partition(":")
        if not sep:
            raise ValueError(f"Expected COMPOUND:LAPS, got '{chunk}'")
        plan.append((compound.strip(), int(laps)))
    return plan


def run_optimization(args: argparse.Namespace) -> int:
    """Run the full optimization from CLI arguments."""
    try:
        config = cfg.OptimizerConfig(min_stint_laps=args.min_stint)
        race = _load_race(args, config)

        result = orchestrator.optimize_race(race, config, show_progress=args.progress)
        comparison_df = result.comparison()

        print(f"\n{'='*80}")
        print(f"PIT STRATEGY: {race.total_laps} laps, {result.compound_class.name} conditions")
        print(f"{'='*80}\n")
        print(comparison_df.to_string(index=False, float_format=lambda x: f"{x:.3f}"))
        print(f"\nBest: {result.overall_best.description}")
        print(f"Race time: {report.format_race_time(result.overall_best.total_time)}")

        # Generate output directory
        run_id = args.run_id or str(uuid.uuid4())[:8]
        output_dir = config.output_dir / run_id
        output_dir.mkdir(parents=True, exist_ok=True)

        summary = result.to_dict()
        summary["comparison"] = comparison_df.to_dict("records")
        summary["generated_at"] = datetime.now().isoformat(timespec="seconds")

        json_path = output_dir / "summary.json"
        with open(json_path, "w") as f:
            json.dump(summary, f, indent=2)

        logger.info(f"Summary saved to: {json_path}")

        if not args.no_report:
            report.generate_report(
                result,
                title=args.config_name or f"{race.total_laps}-lap race",
                config=config,
                output_path=output_dir / "report.html",
            )

        logger.info(f"✅ Optimization complete! Output: {output_dir}")
        return 0

    except (StrategyError, OSError) as e:
        logger.error(f"❌ Optimization failed: {e}", exc_info=args.verbose)
        return 1


def run_simulation(args: argparse.Namespace) -> int:
    """Replay a user-supplied stint plan."""
    try:
        config = cfg.OptimizerConfig(min_stint_laps=args.min_stint)
        race = _load_race(args, config)
        engine = LapTimeEngine(race, config=config)
        compound_class = select_compound_class(race, config)
        min_stint = min_stint_length(race.total_laps, config)

        plan = parse_plan(args.plan)
        stints = []
        start = 1
        for compound, laps in plan:
            stints.append(simulator.Stint(get_profile(compound).name, start, start + laps - 1))
            start += laps

        # Surface rule violations instead of silently returning nothing
        simulator.check_plan(
            stints, race.total_laps, min_stint, engine.profiles, compound_class.require_two_distinct
        )
        strategy = simulator.simulate_strategy(
            race,
            stints,
            min_stint,
            compound_class.require_two_distinct,
            engine=engine,
            config=config,
        )
        if strategy is None:
            logger.error("Tyres wear past the reject threshold on this plan")
            return 1

        print(f"\n{strategy.description}")
        print(f"Race time: {report.format_race_time(strategy.total_time)}")
        fastest = strategy.fastest_lap
        if fastest is not None:
            print(f"Fastest lap: L{fastest.lap} {fastest.time:.3f}s ({fastest.compound})\n")

        frame = strategy.to_frame()
        print(frame.to_string(index=False, float_format=lambda x: f"{x:.3f}"))
        return 0

    except ValueError as e:
        logger.error(f"Simulation failed: {e}", exc_info=args.verbose)
        return 1


def run_wear_breakdown(args: argparse.Namespace) -> int:
    """Print the wear curve decomposition for one compound."""
    try:
        config = cfg.DEFAULT_CONFIG
        env_factor = degrade_model.environment_factor(args.degradation, args.temperature, config)
        table = degrade_model.wear_breakdown_table(
            args.compound,
            args.max_age,
            env_factor,
            args.max_stint_lap,
            config=config,
        )

        print(f"\n{get_profile(args.compound).name} wear, environment factor {env_factor:.3f}\n")
        print(table.to_string(index=False, float_format=lambda x: f"{x:.3f}"))
        return 0

    except StrategyError as e:
        logger.error(f"Wear breakdown failed: {e}", exc_info=args.verbose)
        return 1


def run_configs(args: argparse.Namespace) -> int:
    """Manage named race configurations."""
    try:
        store = ConfigStore(args.store or cfg.DEFAULT_CONFIG.store_path)

        if args.configs_command == "save":
            race = cfg.RaceConfig.from_dict(_race_payload(args))
            saved = store.save(args.name, race.to_dict())
            print(f"Saved '{saved.name}'")

        elif args.configs_command == "list":
            entries = store.list()
            if not entries:
                print("No saved configurations")
            for entry in entries:
                created = datetime.fromtimestamp(entry.created_at / 1000)
                print(f"{entry.name:<30} {created:%Y-%m-%d %H:%M:%S}")

        elif args.configs_command == "show":
            saved = store.get(args.name)
            print(json.dumps(saved.config, indent=2))

        elif args.configs_command == "delete":
            if not store.delete(args.name):
                logger.error(f"No saved config named '{args.name}'")
                return 1
            print(f"Deleted '{args.name}'")

        return 0

    except StrategyError as e:
        logger.error(f"Config command failed: {e}", exc_info=args.verbose)
        return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Pit Strategy Optimizer - Tyre and Pit Stop Planning Tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Full strategy optimization
  pitstrategy optimize --laps 57 --base-lap-time 92.0 --fuel 110 --pit-loss 20

  # Replay a fixed plan
  pitstrategy simulate --laps 57 --base-lap-time 92.0 --plan Soft:18,Hard:39

  # Wear breakdown
  pitstrategy wear --compound Soft --max-age 25 --temperature 38

  # Saved configurations
  pitstrategy configs save bahrain --laps 57 --base-lap-time 92.0 --pit-loss 20
  pitstrategy optimize --config-name bahrain

Author: João Pedro Cunha
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Optimize command
    opt_parser = subparsers.add_parser("optimize", help="Find the optimal pit strategy")
    _add_race_arguments(opt_parser, required=False)
    opt_parser.add_argument("--config-name", type=str, help="Use a saved configuration")
    opt_parser.add_argument("--store", type=str, help="Path to the configuration database")
    opt_parser.add_argument("--min-stint", type=int, help="Minimum stint length override")
    opt_parser.add_argument("--run-id", type=str, help="Custom run identifier")
    opt_parser.add_argument("--no-report", action="store_true", help="Skip the HTML report")
    opt_parser.add_argument("--progress", action="store_true", help="Show enumeration progress")
    opt_parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    # Simulate command
    sim_parser = subparsers.add_parser("simulate", help="Replay a stint plan")
    _add_race_arguments(sim_parser, required=False)
    sim_parser.add_argument(
        "--plan", type=str, required=True, help="Stints as COMPOUND:LAPS,COMPOUND:LAPS"
    )
    sim_parser.add_argument("--config-name", type=str, help="Use a saved configuration")
    sim_parser.add_argument("--store", type=str, help="Path to the configuration database")
    sim_parser.add_argument("--min-stint", type=int, help="Minimum stint length override")
    sim_parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    # Wear command
    wear_parser = subparsers.add_parser("wear", help="Tyre wear breakdown for a compound")
    wear_parser.add_argument("--compound", type=str, required=True, help="Compound name")
    wear_parser.add_argument("--max-age", type=int, default=30, help="Last tyre age to show")
    wear_parser.add_argument(
        "--degradation", type=str, default="Medium", choices=list(cfg.DEGRADATION_LEVELS)
    )
    wear_parser.add_argument("--temperature", type=float, default=25.0)
    wear_parser.add_argument("--max-stint-lap", type=int, help="Wear overage cutoff override")
    wear_parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

    # Configs command
    configs_parser = subparsers.add_parser("configs", help="Manage saved race configurations")
    configs_parser.add_argument("--store", type=str, help="Path to the configuration database")
    configs_parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    configs_sub = configs_parser.add_subparsers(dest="configs_command", required=True)

    save_parser = configs_sub.add_parser("save", help="Save a race configuration")
    save_parser.add_argument("name", type=str)
    _add_race_arguments(save_parser)

    configs_sub.add_parser("list", help="List saved configurations")

    show_parser = configs_sub.add_parser("show", help="Show a saved configuration")
    show_parser.add_argument("name", type=str)

    delete_parser = configs_sub.add_parser("delete", help="Delete a saved configuration")
    delete_parser.add_argument("name", type=str)

    return parser


def main(argv=None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if getattr(args, "verbose", False):
        logging.getLogger("pitstrategy").setLevel(logging.DEBUG)

    # Route to appropriate handler
    if args.command == "optimize":
        return run_optimization(args)
    elif args.command == "simulate":
        return run_simulation(args)
    elif args.command == "wear":
        return run_wear_breakdown(args)
    elif args.command == "configs":
        return run_configs(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
