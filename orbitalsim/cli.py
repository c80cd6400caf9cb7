"""Command line entry point."""
import argparse
import logging
import math

from . import constants as C
from .logging_config import setup_logging
from .presets import PRESETS
from .simulation import Simulation
from .state_io import save_snapshot
from .utils import distance_to_display, speed_to_display, time_to_display


def build_parser():
    parser = argparse.ArgumentParser(description="Headless N-body gravity simulation")
    parser.add_argument("--preset", default="Earth & Moon", choices=sorted(PRESETS), help="Preset system")
    parser.add_argument("--frames", type=int, default=10, help="Frames to run")
    parser.add_argument(
        "--seconds", type=float, default=C.ITERATION_SECONDS, help="Seconds requested per tick"
    )
    parser.add_argument(
        "--compression", type=int, default=C.TIME_COMPRESSION, help="Ticks per frame"
    )
    parser.add_argument(
        "--gravity",
        type=float,
        default=C.GRAVITY_MULTIPLIER,
        help="G multiplier: 0 standard, negative divides, positive multiplies",
    )
    parser.add_argument("--merge", action="store_true", help="Merge bodies on collision")
    parser.add_argument("--swept", action="store_true", help="Detect approaches along each step")
    parser.add_argument("--snapshot", help="Write the approach snapshot JSON to this path")
    parser.add_argument("--csv", help="Write per-pair approach statistics CSV to this path")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    parser.add_argument("--log-file", help="Also write log records to this file")
    return parser


def _summary_lines(sim):
    lines = [f"Elapsed: {time_to_display(sim.elapsed_seconds)} over {sim.ticks} ticks"]
    status = sim.status()
    if status["closest"] is not None:
        a, b = status["closest"]["bodies"]
        lines.append(
            f"Closest surfaces: {a} / {b} at {distance_to_display(status['closest']['surface_distance_km'])}"
        )
    for s, lo, hi in sim.pair_index.pairs():
        closest = sim.approaches.closest_sq[s]
        if not math.isfinite(closest):
            continue
        speed = math.sqrt(float(sim.approaches.closest_velocity[s] @ sim.approaches.closest_velocity[s]))
        lines.append(
            f"  {sim.approaches.names[lo]} - {sim.approaches.names[hi]}: "
            f"closest {distance_to_display(math.sqrt(closest))} "
            f"at {time_to_display(sim.approaches.closest_seconds[s])}, "
            f"relative speed {speed_to_display(speed)}"
        )
    if status["degraded_steps"]:
        lines.append(f"Degraded steps: {status['degraded_steps']}")
    return lines


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(getattr(logging, args.log_level), args.log_file)

    try:
        sim = Simulation.from_preset(
            args.preset,
            iteration_seconds=args.seconds,
            time_compression=args.compression,
            gravity_multiplier=args.gravity,
            merge_on_collision=args.merge,
            swept_detection=args.swept,
        )
        sim.run(args.frames)
    except ValueError as exc:
        parser.error(str(exc))

    for line in _summary_lines(sim):
        print(line)
    if args.snapshot:
        save_snapshot(args.snapshot, sim.approaches, sim.elapsed_seconds)
    if args.csv:
        sim.approaches.export_csv(args.csv)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
