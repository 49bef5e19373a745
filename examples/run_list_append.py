#!/usr/bin/env python3
"""
Example script demonstrating how to drive opstream from Python
"""
import sys
import random
import argparse
from pathlib import Path

# Add the project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from opstream import generator as gen
from opstream.main import OpStream
from opstream.models import RunConfig
from opstream.clients import SqliteListAppendClient


def list_append_ops(seed=None):
    """Reads and appends over three keys, mixed at random"""
    rng = random.Random(seed)
    reads = gen.rands(3, rng=rng).map(lambda k: {"f": "txn", "value": [["r", k, None]]})
    appends = gen.zip(gen.rands(3, rng=rng), gen.tabulate(lambda i: i + 1)).map(
        lambda kv: {"f": "txn", "value": [["append", kv[0], kv[1]]]})
    return gen.mix(reads, appends, rng=rng)


def print_result(result):
    print("\n" + "=" * 80)
    print("Run Results")
    print("=" * 80)
    print(f"Run ID: {result.run_id}")
    print(f"Success: {result.success}")
    print(f"Duration: {result.end_time - result.start_time:.2f}s")
    print(f"Operations Invoked: {result.operations_invoked}")
    print(f"History Records: {len(result.history)}")

    if result.artifacts:
        print(f"History: {result.artifacts['text']}")

    if result.seed is not None:
        print(f"\nReproduction Seed: {result.seed}")

    if result.error_message:
        print(f"\nError: {result.error_message}")


def run_generator_test(database, threads, seconds, seed=None):
    """Run a hand-built generator against a SQLite database"""
    print("=" * 80)
    print(f"Running list-append against {database} for {seconds}s")
    print("=" * 80)

    config = RunConfig(threads=threads, nodes=[database], seed=seed)
    generator = gen.time_limit(list_append_ops(seed), seconds)

    result = OpStream().run(generator, SqliteListAppendClient, config)
    print_result(result)

    print("\nLast operations:")
    for op in result.history.operations[-6:]:
        print(f"  {op.to_string()}")
    return result


def run_config_test(config_file):
    """Run a test described by a configuration file"""
    print("=" * 80)
    print(f"Running configuration: {config_file}")
    print("=" * 80)

    result = OpStream().run_from_config(config_file)
    print_result(result)
    return result


def main():
    parser = argparse.ArgumentParser(
        description="opstream examples - record concurrent list-append histories",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run a mixed read/append generator against a SQLite file
  python run_list_append.py generator --threads 4 --seconds 2

  # Run a configuration file
  python run_list_append.py config sqlite_list_append.yaml
        """
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to execute')

    generator_parser = subparsers.add_parser('generator', help='Run a hand-built generator')
    generator_parser.add_argument('--database', default='/tmp/opstream/example.db', help='SQLite database file')
    generator_parser.add_argument('--threads', type=int, default=4, help='Number of client processes')
    generator_parser.add_argument('--seconds', type=float, default=1.0, help='Time limit in seconds')
    generator_parser.add_argument('--seed', type=int, help='Seed for reproducibility')

    config_parser = subparsers.add_parser('config', help='Run a configuration file')
    config_parser.add_argument('file', help='Path to YAML or JSON configuration')

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    if args.command == 'generator':
        Path(args.database).parent.mkdir(parents=True, exist_ok=True)
        result = run_generator_test(args.database, args.threads, args.seconds, seed=args.seed)
    else:
        result = run_config_test(args.file)

    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
