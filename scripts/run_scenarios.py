#!/usr/bin/env python3
"""
Scenario runner for the speculative-execution simulator.

Usage:
    python scripts/run_scenarios.py --list
    python scripts/run_scenarios.py --scenario branchTrain --defended --seed 7
    python scripts/run_scenarios.py --scenario branchTrain --compare 50 -o results/
    python scripts/run_scenarios.py --seed 7 --disable jitter --save-config my.yaml
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from specsim.defence.toolkit import TOGGLES
from specsim.errors import SimulatorError
from specsim.simulation.comparison import compare_modes
from specsim.simulation.config import SimulatorConfig
from specsim.simulation.runner import ScenarioRunner
from specsim.simulation.scenarios import ATTACK_PATTERNS, get_pattern, load_scenarios
from specsim.utils.helpers import save_results, setup_logging
from specsim.visualization.renderer import NullRenderer, TextRenderer


def list_scenarios(catalog: dict) -> None:
    """Print the scenario catalog."""
    print(f"\n{'Key':<16} {'Training':<28} {'Trigger':<8} Name")
    print("-" * 80)
    for key, pattern in catalog.items():
        training = ''.join('T' if t else 'N' for t in pattern.training)
        print(f"{key:<16} {training:<28} {str(pattern.trigger):<8} {pattern.name}")


async def run_once(runner: ScenarioRunner, pattern, defended: bool) -> dict:
    result = await runner.run(pattern, defended)
    runner.renderer.log(result.summary)
    print()
    print(result.get_summary())
    return result.to_dict()


def main():
    parser = argparse.ArgumentParser(description='Run speculative-execution scenarios')
    parser.add_argument('--scenario', '-s', type=str, default='branchTrain',
                        help='Scenario key from the catalog')
    parser.add_argument('--scenarios-file', type=str, default=None,
                        help='YAML scenario catalog (default: built-in catalog)')
    parser.add_argument('--config', '-c', type=str, default=None,
                        help='YAML simulator config')
    parser.add_argument('--defended', '-d', action='store_true',
                        help='Apply mitigations')
    parser.add_argument('--disable', action='append', default=[], choices=TOGGLES,
                        help='Turn a mitigation off (repeatable)')
    parser.add_argument('--seed', type=int, default=None,
                        help='Seed for the jitter random source')
    parser.add_argument('--compare', type=int, default=0, metavar='N',
                        help='Run N baseline/defended pairs and compare')
    parser.add_argument('--list', action='store_true',
                        help='List scenarios and exit')
    parser.add_argument('--save-config', type=str, default=None, metavar='PATH',
                        help='Write the effective simulator config to PATH')
    parser.add_argument('--output', '-o', type=str, default=None,
                        help='Directory to save results in')
    parser.add_argument('--log-level', type=str, default='INFO',
                        help='Logging level')

    args = parser.parse_args()
    if args.compare < 0:
        parser.error("--compare must not be negative")

    logger = setup_logging(args.log_level)

    try:
        catalog = load_scenarios(args.scenarios_file) if args.scenarios_file \
            else dict(ATTACK_PATTERNS)

        if args.list:
            list_scenarios(catalog)
            return

        config = SimulatorConfig.from_file(args.config) if args.config \
            else SimulatorConfig()
        if args.seed is not None:
            config.seed = args.seed
        for toggle in args.disable:
            config.defences = {**config.defences, toggle: False}
        config.validate()

        if args.save_config:
            config.to_file(args.save_config)
            print(f"Config saved to: {args.save_config}")

        pattern = get_pattern(args.scenario, catalog)
        renderer = NullRenderer() if args.compare else TextRenderer(sys.stdout)
        runner = ScenarioRunner.from_config(config, renderer, logger=logger)

        if args.compare:
            report = asyncio.run(compare_modes(runner, pattern, args.compare, verbose=True))
            print()
            print(report.get_summary())
            results = report.to_dict()
        else:
            results = asyncio.run(run_once(runner, pattern, args.defended))

    except (SimulatorError, KeyError, FileNotFoundError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    if args.output:
        paths = save_results(results, args.output, name=args.scenario,
                             formats=('json', 'yaml'))
        for fmt, path in paths.items():
            print(f"Results saved to: {path}")


if __name__ == '__main__':
    main()
