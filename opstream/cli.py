#!/usr/bin/env python3
"""
Command-line interface for the operation stream harness
Provides commands for running tests from configuration files and validating them.
"""
import sys
import argparse
import json
import yaml
import traceback
import logging
from pathlib import Path
from typing import Dict, Any, List
from datetime import datetime
from .main import OpStream
from .models import RunConfig, RunResult, RunSpec
from .runner_engine import ConfigLoader, ArgumentError


class OpStreamCLI:
    """Command-line interface for the operation stream harness"""

    def __init__(self):
        self.opstream = OpStream()

    def load_spec(self, args) -> RunSpec:
        """Build a RunSpec from the config file and command line overrides"""
        if args.config:
            spec = ConfigLoader.load_from_file(args.config)
            print(f"Loaded configuration from {args.config}")
        else:
            spec = RunSpec(config=RunConfig(), ops=100)

        if args.threads is not None:
            spec.config.threads = args.threads
        if args.seed is not None:
            spec.config.seed = args.seed
        if args.time_limit is not None:
            spec.time_limit = args.time_limit
        if args.ops is not None:
            spec.ops = args.ops

        ConfigLoader.validate(spec)
        return spec

    def run_test(self, args) -> int:
        """Run the configured test ``args.iterations`` times; exit code 0 iff every run passed"""
        self._print_header("Operation Stream Test")

        try:
            spec = self.load_spec(args)
        except (FileNotFoundError, ArgumentError) as e:
            print(f"Error: Cannot load configuration: {e}")
            print("\nConfigurations are YAML (.yaml, .yml) or JSON (.json) files, for example:")
            print("  opstream run --config examples/sqlite_list_append.yaml")
            return 1

        seed = spec.config.seed
        print(f"Seed: {seed if seed is not None else 'random'}")
        print(f"Workload: {spec.workload} | Client: {spec.client} | Threads: {spec.config.threads}")
        if args.iterations > 1:
            print(f"Iterations: {args.iterations}")

        results = []
        for i in range(1, args.iterations + 1):
            if args.iterations > 1:
                print(f"\n--- Run {i} of {args.iterations} ---")
                # Every iteration gets its own run directory
                spec.config.run_id = None

            result = self.opstream.run_spec(spec)
            results.append(result)
            self._print_summary_result(result, verbose=args.verbose)

        summary = summarize(results)
        if len(results) > 1:
            self._print_aggregate_results(summary)
        if args.output:
            self._save_results(results, summary, args.output, args.format)

        return 0 if summary['failed'] == 0 else 1

    def validate_config(self, args) -> int:
        """Load and validate a configuration file without running it"""
        self._print_header("Configuration Validation")

        if not Path(args.file).exists():
            print(f"Error: Config file not found: {args.file}")
            return 1

        try:
            spec = ConfigLoader.load_from_file(args.file)
        except ArgumentError as e:
            print(f"Error: Validation failed: {e}")
            return 1

        bounds = []
        if spec.ops is not None:
            bounds.append(f"at most {spec.ops} operations")
        if spec.time_limit is not None:
            bounds.append(f"at most {spec.time_limit}s")

        print(f"Workload: {spec.workload} {spec.workload_params or ''}".rstrip())
        print(f"Client: {spec.client} {spec.client_params or ''}".rstrip())
        print(f"Threads: {spec.config.threads} on {', '.join(spec.config.nodes)}")
        print(f"Bounds: {', '.join(bounds)}")
        print("\nConfiguration is valid!")
        return 0

    def _print_header(self, title: str):
        print("\n" + "=" * 80)
        print(title)
        print("=" * 80 + "\n")

    def _print_summary_result(self, result: RunResult, verbose: bool = False):
        lines = [
            f"Run: {result.run_id}",
            f"Status: {'PASSED' if result.success else 'FAILED'}",
            f"Elapsed: {result.end_time - result.start_time:.2f}s",
            f"Operations: {result.operations_invoked}",
            f"History Records: {len(result.history)}",
        ]
        if result.seed is not None:
            lines.append(f"Seed: {result.seed}")
        if result.artifacts:
            lines.append(f"History: {result.artifacts.get('text')}")
        if result.error_message:
            lines.append(f"Error: {result.error_message}")
        print("\n" + "\n".join(lines))

        if verbose:
            print("Workers:")
            for worker in result.worker_results:
                print(f"  [{worker.process}] {worker.state.value:<12} {worker.address} "
                      f"invoked={worker.operations_invoked} completed={worker.operations_completed}")
                if worker.error_message:
                    print(f"      error: {worker.error_message}")
                for error in worker.teardown_errors:
                    print(f"      teardown: {error}")

    def _print_aggregate_results(self, summary: Dict[str, Any]):
        self._print_header("Aggregate Results")
        total = summary['total_runs']
        print(f"Runs: {total}")
        print(f"Passed: {summary['passed']}/{total}")
        print(f"Failed: {summary['failed']}/{total}")
        print(f"Mean Elapsed: {summary['mean_duration']:.2f}s")
        print(f"Mean Operations: {summary['mean_operations']:.1f}")

    def _save_results(self, results: List[RunResult], summary: Dict[str, Any], output_path: str, format: str):
        data = dict(summary, timestamp=datetime.now().isoformat(), results=[result_to_dict(r) for r in results])
        output = Path(output_path)
        try:
            output.parent.mkdir(parents=True, exist_ok=True)
            with open(output, 'w') as f:
                if format == 'yaml':
                    yaml.safe_dump(data, f, default_flow_style=False)
                else:
                    json.dump(data, f, indent=2)
        except OSError as e:
            print(f"\nCould not write results to {output}: {e}")
            return
        print(f"\nResults written to {output}")


def summarize(results: List[RunResult]) -> Dict[str, Any]:
    """Pass/fail counts and means over several runs"""
    total = len(results)
    passed = sum(r.success for r in results)
    return {
        'total_runs': total,
        'passed': passed,
        'failed': total - passed,
        'mean_duration': sum(r.end_time - r.start_time for r in results) / total if total else 0.0,
        'mean_operations': sum(r.operations_invoked for r in results) / total if total else 0.0,
    }


def result_to_dict(result: RunResult) -> Dict[str, Any]:
    return {
        'run_id': result.run_id,
        'success': result.success,
        'elapsed': result.end_time - result.start_time,
        'operations_invoked': result.operations_invoked,
        'history_records': len(result.history),
        'seed': result.seed,
        'error_message': result.error_message,
        'artifacts': dict(result.artifacts),
        'workers': [
            {
                'process': w.process,
                'address': w.address,
                'state': w.state.value,
                'operations_invoked': w.operations_invoked,
                'error_message': w.error_message,
            }
            for w in result.worker_results
        ]
    }


def create_parser() -> argparse.ArgumentParser:
    """Argument parser for the ``opstream`` command"""
    parser = argparse.ArgumentParser(
        prog='opstream',
        description='Operation stream harness - run generated operations against a database and record the history',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run the default list-append workload against the no-op client
  opstream run --ops 100

  # Run a configuration file with 4 workers for 2 seconds
  opstream run --config examples/sqlite_list_append.yaml --threads 4 --time-limit 2

  # Save the results of 5 iterations
  opstream run --config examples/sqlite_list_append.yaml --iterations 5 --output results.json

  # Validate a configuration file
  opstream validate examples/sqlite_list_append.yaml
        """
    )

    parser.add_argument(
        '--version',
        action='version',
        version='opstream 0.1.0'
    )

    subparsers = parser.add_subparsers(dest='command', help='Command')

    run_parser = subparsers.add_parser(
        'run',
        help='Run a test'
    )
    run_parser.add_argument(
        '--config',
        type=str,
        help='YAML or JSON run configuration'
    )
    run_parser.add_argument(
        '--threads',
        type=int,
        help='Number of client processes'
    )
    run_parser.add_argument(
        '--seed',
        type=int,
        help='Seed for node choice and built-in workloads'
    )
    run_parser.add_argument(
        '--time-limit',
        type=float,
        help='Stop generating operations after this many seconds'
    )
    run_parser.add_argument(
        '--ops',
        type=int,
        help='Maximum number of operations to generate'
    )
    run_parser.add_argument(
        '--iterations',
        type=int,
        default=1,
        help='Number of runs (default: 1)'
    )
    run_parser.add_argument(
        '--output',
        type=str,
        help='Write run results to this file'
    )
    run_parser.add_argument(
        '--format',
        choices=['json', 'yaml'],
        default='json',
        help='Format of --output (default: json)'
    )
    run_parser.add_argument(
        '--verbose',
        action='store_true',
        help='Per-worker results and debug logging'
    )

    validate_parser = subparsers.add_parser(
        'validate',
        help='Validate a configuration file'
    )
    validate_parser.add_argument(
        'file',
        help='Path to configuration file'
    )
    validate_parser.add_argument(
        '--verbose',
        action='store_true',
        help='Debug logging'
    )

    return parser


def main(argv=None):
    """Console entry point; returns the process exit code"""
    parser = create_parser()
    args = parser.parse_args(argv)
    verbose = getattr(args, 'verbose', False)

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(levelname)-5s | %(filename)s:%(lineno)-3d | %(message)s',
        handlers=[logging.StreamHandler()]
    )

    if not args.command:
        print("Error: No command specified\n")
        parser.print_help()
        return 1
    if args.command == 'run' and args.iterations < 1:
        print("Error: --iterations must be at least 1")
        return 1

    cli = OpStreamCLI()
    commands = {
        'run': cli.run_test,
        'validate': cli.validate_config,
    }

    try:
        return commands[args.command](args)
    except KeyboardInterrupt:
        print("\nInterrupted")
        return 130
    except Exception as e:
        print(f"\nUnexpected error: {e}")
        if verbose:
            traceback.print_exc()
        return 1


if __name__ == '__main__':
    sys.exit(main())
