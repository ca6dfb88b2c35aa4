from __future__ import annotations

import argparse
import dataclasses
import sys
from typing import Dict, List, Optional, Tuple

import pandas as pd
from colorama import Fore, Style, init as colorama_init

from cpu_scheduler_simulator.backend.config import (
    AgingMode, SchedulerConfig, RoundRobinConfig, PriorityConfig,
    MultilevelQueueConfig, MultilevelFeedbackQueueConfig,
)
from cpu_scheduler_simulator.backend.core import PCB
from cpu_scheduler_simulator.backend.errors import SchedulerError
from cpu_scheduler_simulator.backend.simulator import (
    Scheduler, simulate, compare_strategies, default_strategies,
)
from cpu_scheduler_simulator.backend.utils import sample_workload, parse_process_spec
from cpu_scheduler_simulator.backend.visualizer import (
    plot_gantt, render_text_gantt, format_results_table, format_metrics,
)


def level_quantum(raw: str) -> Tuple[int, int]:
    try:
        level, quantum = raw.split("=")
        return int(level), int(quantum)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected LEVEL=QUANTUM, got {raw!r}") from None


# dest -> (flag, policies it applies to)
POLICY_FLAGS: Dict[str, Tuple[str, Tuple[str, ...]]] = {
    "policy": ("--policy", Scheduler.ALL),
    "quantum": ("--quantum", (Scheduler.RR,)),
    "preemptive": ("--preemptive", (Scheduler.PRIORITY,)),
    "aging": ("--aging/--no-aging", (Scheduler.PRIORITY, Scheduler.MLFQ)),
    "aging_interval": ("--aging-interval", (Scheduler.PRIORITY, Scheduler.MLFQ)),
    "aging_mode": ("--aging-mode", (Scheduler.PRIORITY, Scheduler.MLFQ)),
    "levels": ("--levels", (Scheduler.MLFQ,)),
    "level_quantum": ("--level-quantum", (Scheduler.MLFQ,)),
    "aging_threshold": ("--aging-threshold", (Scheduler.MLFQ,)),
    "plot": ("--plot", Scheduler.ALL),
    "log": ("--log", Scheduler.ALL),
}


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="CPU Scheduler Simulator")
    p.add_argument("--policy", choices=list(Scheduler.ALL), default=Scheduler.RR)
    p.add_argument("--quantum", type=int, default=None, help="Time quantum (RR only)")
    p.add_argument("--overhead", type=int, default=0, help="Context switch overhead in time units")
    p.add_argument("--preemptive", action="store_true", help="Preemptive priority scheduling (PRIORITY only)")
    p.add_argument("--aging", action=argparse.BooleanOptionalAction, default=None,
                   help="Enable aging (PRIORITY, MLFQ)")
    p.add_argument("--aging-interval", type=int, default=None, help="Aging interval (PRIORITY, MLFQ)")
    p.add_argument("--aging-mode", choices=[m.value for m in AgingMode], default=None,
                   help="Aging boundary detection (PRIORITY, MLFQ)")
    p.add_argument("--levels", type=int, default=None, help="Level count (MLFQ only)")
    p.add_argument("--level-quantum", type=level_quantum, action="append", default=[],
                   metavar="LEVEL=Q", help="Override one level quantum (MLFQ only)")
    p.add_argument("--aging-threshold", type=int, default=None, help="Promotion threshold (MLFQ only)")
    p.add_argument("--process", action="append", default=[], metavar="NAME:ARRIVAL:BURST[:PRIORITY]",
                   help="Add a process; the sample workload is used when none are given")
    p.add_argument("--compare", action="store_true",
                   help="Run every default strategy and compare metrics; only --overhead and --process apply")
    p.add_argument("--plot", type=str, default=None, help="Save a Gantt chart PNG to this path")
    p.add_argument("--log", type=str, default=None, help="Export the event log as JSON")
    args = p.parse_args(argv)

    for dest, (flag, policies) in POLICY_FLAGS.items():
        if getattr(args, dest) == p.get_default(dest):
            continue
        if args.compare:
            p.error(f"{flag} cannot be combined with --compare")
        if args.policy not in policies:
            p.error(f"{flag} does not apply to --policy {args.policy}")
    return args


def build_workload(args: argparse.Namespace) -> List[PCB]:
    if not args.process:
        return sample_workload()
    return [parse_process_spec(raw, pid) for pid, raw in enumerate(args.process, start=1)]


def build_config(args: argparse.Namespace) -> SchedulerConfig:
    options: Dict[str, object] = {"context_switch_overhead": args.overhead}
    if args.policy == Scheduler.RR:
        if args.quantum is not None:
            options["time_quantum"] = args.quantum
        return RoundRobinConfig(**options)

    if args.policy == Scheduler.MLQ:
        return MultilevelQueueConfig(**options)

    if args.aging is not None:
        options["aging_enabled"] = args.aging
    if args.aging_interval is not None:
        options["aging_interval"] = args.aging_interval
    if args.aging_mode is not None:
        options["aging_mode"] = args.aging_mode

    if args.policy == Scheduler.PRIORITY:
        return PriorityConfig(preemptive=args.preemptive, **options)

    if args.levels is not None:
        options["num_levels"] = args.levels
    if args.aging_threshold is not None:
        options["aging_threshold"] = args.aging_threshold
    if args.level_quantum:
        options["level_quanta"] = dict(args.level_quantum)
    return MultilevelFeedbackQueueConfig(**options)


def run_single(args: argparse.Namespace, processes: List[PCB]) -> None:
    result = simulate(processes, policy=args.policy, config=build_config(args))

    print(Style.BRIGHT + Fore.CYAN + f"=== {result.algorithm} ===")
    print(format_results_table(result.processes))
    print()
    print(Fore.GREEN + format_metrics(result.metrics))
    print()
    print(Style.BRIGHT + "Gantt Chart:")
    print(render_text_gantt(result.trace, result.start_time))

    if args.plot:
        plot_gantt(result.processes, result.logger, args.plot)
        print(Fore.CYAN + f"Saved plot to {args.plot}")
    if args.log:
        result.logger.export_json(args.log)
        print(Fore.CYAN + f"Saved event log to {args.log}")


def run_compare(args: argparse.Namespace, processes: List[PCB]) -> None:
    strategies = [
        (policy, dataclasses.replace(config, context_switch_overhead=args.overhead))
        for policy, config in default_strategies()
    ]
    frame = compare_strategies(processes, strategies)
    print(Style.BRIGHT + Fore.CYAN + "=== Algorithm Comparison ===")
    with pd.option_context("display.width", 200, "display.max_columns", None):
        print(frame.drop(columns=["policy"]).round(2).to_string())

    best = frame["average_waiting_time"].idxmin()
    print(Fore.GREEN + f"Lowest average waiting time: {best}")


def main(argv: Optional[List[str]] = None) -> int:
    colorama_init(autoreset=True)
    args = parse_args(argv)
    try:
        processes = build_workload(args)
        if args.compare:
            run_compare(args, processes)
        else:
            run_single(args, processes)
    except SchedulerError as e:
        print(Fore.RED + f"Error: {e}")
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
