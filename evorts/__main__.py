"""Entry point: ``python -m evorts``.

Supports two modes:
  - ``python -m evorts``            → Launch the FastAPI server with the simulation running
  - ``python -m evorts cli``        → Headless run for a fixed amount of game time
"""

from __future__ import annotations

import argparse
import logging

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="EvoRTS simulation core")
    sub = parser.add_subparsers(dest="command")

    # --- Server mode (default) ---
    srv = sub.add_parser("serve", help="Start the FastAPI server (default)")
    srv.add_argument("--host", type=str, default="127.0.0.1")
    srv.add_argument("--port", type=int, default=8000)
    srv.add_argument("--seed", type=int, default=None)
    srv.add_argument("--workers", type=int, default=4, help="Worker units to spawn")
    srv.add_argument("--tick-rate", type=int, default=30)
    srv.add_argument("--log-level", type=str, default="INFO", choices=["DEBUG", "INFO", "WARNING"])

    # --- Headless CLI mode ---
    cli = sub.add_parser("cli", help="Run a headless simulation")
    cli.add_argument("--seed", type=int, default=None)
    cli.add_argument("--seconds", type=float, default=60.0, help="Host seconds to simulate")
    cli.add_argument("--workers", type=int, default=4, help="Worker units to spawn")
    cli.add_argument("--tick-rate", type=int, default=30)
    cli.add_argument("--time-scale", type=float, default=1.0)
    cli.add_argument("--no-pathfinding", action="store_true", help="Move units in straight lines")
    cli.add_argument("--no-fog", action="store_true", help="Disable fog of war")
    cli.add_argument("--log-level", type=str, default="INFO", choices=["DEBUG", "INFO", "WARNING"])

    return parser


def _run_server(args: argparse.Namespace) -> None:
    import uvicorn

    from evorts.api.app import create_app
    from evorts.config import SimulationConfig

    config = SimulationConfig(
        world_seed=args.seed,
        initial_worker_count=args.workers,
        tick_rate=args.tick_rate,
        log_level=args.log_level,
    )
    app = create_app(config)
    uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level.lower())


def _run_cli(args: argparse.Namespace) -> None:
    from evorts.config import SimulationConfig
    from evorts.engine.simulation import Simulation
    from evorts.utils.logging import setup_logging

    config = SimulationConfig(
        world_seed=args.seed,
        initial_worker_count=args.workers,
        tick_rate=args.tick_rate,
        time_scale=args.time_scale,
        use_pathfinding=not args.no_pathfinding,
        fog_of_war=not args.no_fog,
        log_level=args.log_level,
    )
    setup_logging(config.log_level)

    sim = Simulation(config)
    ticks = sim.run_for(args.seconds * 1000)

    metrics = sim.scheduler.get_performance_metrics()
    logger.info(
        "Ran %d ticks (%.1f s game time), avg tick %.3f ms",
        ticks, metrics.elapsed_game_time / 1000, metrics.average_tick_time,
    )
    for engine in sim.engines.values():
        e = engine.entity
        logger.info(
            "Worker #%d: %s at %s, lvl %d, collected %d, explored %d cells, knows %d objects",
            e.id, e.state.name.lower(), e.pos, e.stats.level, e.resources_collected,
            len(engine.fog.explored), len(e.memory),
        )
    logger.info("Base stockpile: %d energy, %d matter", sim.base.energy, sim.base.matter)


def main() -> None:
    parser = _build_parser()
    args = parser.parse_args()

    # Default to serve mode if no subcommand given
    if args.command is None or args.command == "serve":
        if args.command is None:
            args = parser.parse_args(["serve"])
        _run_server(args)
    elif args.command == "cli":
        _run_cli(args)


if __name__ == "__main__":
    main()
