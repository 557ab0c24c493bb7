"""
datamover CLI

Usage:
    datamover run --config configs/example.yaml --input records.jsonl --output converted.jsonl
    datamover run -c configs/example.yaml -i records.jsonl --max-records 1000
    datamover list
"""

import argparse
import json
import logging
import sys
from collections.abc import Iterator

# Import converters to register them
from datamover import __version__, converters  # noqa: F401
from datamover.framework import ConverterRegistry, PipelineConfig, RunStats, TaskRunner

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)


def read_json_lines(path: str) -> Iterator[object]:
    """Yield one decoded JSON value per non-empty line."""
    with open(path, encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line:
                yield json.loads(line)


def cmd_run(args):
    """Run the converter chain over a JSON lines file."""
    try:
        print(f"Loading configuration from {args.config}...")
        config = PipelineConfig.from_yaml(args.config)

        if args.max_records is not None:
            config.task.max_records = args.max_records

        runner = TaskRunner.from_config(config)

        print("Starting conversion...")
        print(f"  - Converters: {', '.join(c.name for c in config.enabled_converters())}")
        print(f"  - Max records: {config.task.max_records or 'unlimited'}")
        print()

        if args.output:
            with open(args.output, "w", encoding="utf-8") as out:
                stats = runner.run(
                    read_json_lines(args.input),
                    input_schema=config.task.input_schema,
                    sink=lambda record: out.write(json.dumps(record, default=str) + "\n"),
                )
        else:
            stats = runner.run(read_json_lines(args.input), input_schema=config.task.input_schema)

        _print_stats(stats)

    except KeyboardInterrupt:
        print("\nInterrupted by user")
        sys.exit(1)
    except FileNotFoundError as e:
        print(f"\nError: File not found: {e}")
        sys.exit(1)
    except Exception as e:
        print(f"\nError: {e}")
        import traceback

        traceback.print_exc()
        sys.exit(1)


def cmd_list(args):
    """List registered converters."""
    for name in ConverterRegistry.list_converters():
        print(name)


def _print_stats(stats: RunStats):
    """Print run summary and converter metrics."""
    print("\n" + "=" * 60)
    print("Conversion completed:")
    print(f"  Input records: {stats.input_records}")
    print(f"  Output records: {stats.output_records}")
    print(f"  Failed records: {stats.failed_records}")
    print(f"  Duration: {stats.duration:.2f}s")
    print("=" * 60)

    if not stats.metrics:
        return

    print("Converter Metrics:")
    for name, m in stats.metrics.items():
        print(f"  {name}:")
        print(f"    Records in/out/failed: {m['records_in']} / {m['records_out']} / {m['records_failed']}")
        print(f"    Pass rate: {m['pass_rate']:.1f}%")
        print(f"    Avg latency: {m['avg_latency'] * 1000:.3f}ms")
        print(
            f"    P50/P95/P99: {m['p50_latency'] * 1000:.3f}ms / "
            f"{m['p95_latency'] * 1000:.3f}ms / "
            f"{m['p99_latency'] * 1000:.3f}ms"
        )
        print(f"    Throughput: {m['throughput']:.2f} records/sec")
    print("=" * 60)


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="datamover",
        description="datamover - Instrumented record conversion",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run_parser = subparsers.add_parser(
        "run",
        help="Convert a JSON lines file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    datamover run -c configs/example.yaml -i records.jsonl -o converted.jsonl
    datamover run -c configs/example.yaml -i records.jsonl --max-records 1000
        """,
    )
    run_parser.add_argument(
        "-c",
        "--config",
        type=str,
        required=True,
        help="Path to pipeline configuration YAML file",
    )
    run_parser.add_argument(
        "-i",
        "--input",
        type=str,
        required=True,
        help="Input JSON lines file",
    )
    run_parser.add_argument(
        "-o",
        "--output",
        type=str,
        default=None,
        help="Output JSON lines file (default: discard output)",
    )
    run_parser.add_argument(
        "--max-records",
        type=int,
        default=None,
        help="Override max input records (default: from config)",
    )

    subparsers.add_parser("list", help="List registered converters")

    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "run":
        cmd_run(args)
    elif args.command == "list":
        cmd_list(args)


if __name__ == "__main__":
    main()
