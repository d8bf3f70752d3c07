"""
Command-line interface for OffsetOverlap.

Provides commands for running offset-overlap jobs and writing a default
configuration.
"""

import argparse
import sys

from offsetoverlap.config import load_config, save_default_config
from offsetoverlap.tracer import configure_tracer, get_tracer


def _add_job_arguments(parser):
    parser.add_argument(
        "--job", "-j",
        required=True,
        help="Path to the JSON job file",
    )
    parser.add_argument(
        "--out", "-o",
        required=True,
        help="Output directory",
    )
    parser.add_argument(
        "--config", "-c",
        default=None,
        help="Path to YAML configuration file",
    )
    parser.add_argument(
        "--offset",
        type=float,
        default=None,
        help="Signed offset distance (overrides job and config)",
    )
    parser.add_argument(
        "--reverse",
        action="store_true",
        default=None,
        help="Offset into the part instead of away from it",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable per-candidate debug artifacts",
    )
    parser.add_argument(
        "--trace",
        action="store_true",
        help="Enable runtime tracing",
    )
    parser.add_argument(
        "--trace-level",
        default="INFO",
        choices=["ERROR", "WARN", "INFO", "DEBUG"],
        help="Trace log level",
    )
    parser.add_argument(
        "--trace-file",
        default=None,
        help="Path to write trace logs",
    )
    parser.add_argument(
        "--trace-json",
        action="store_true",
        help="Enable JSON trace output",
    )


def build_parser():
    parser = argparse.ArgumentParser(
        prog="offsetoverlap",
        description="OffsetOverlap: offset the arcs of candidate curves that coincide with a part boundary",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run_parser = subparsers.add_parser("run", help="Build one closed relief curve per overlapping candidate")
    _add_job_arguments(run_parser)

    offsets_parser = subparsers.add_parser("offsets", help="Offset the overlapping arcs only, without stitching")
    _add_job_arguments(offsets_parser)

    init_parser = subparsers.add_parser("init-config", help="Create default config file")
    init_parser.add_argument(
        "--out", "-o",
        default="offsetoverlap_config.yaml",
        help="Output path for config file",
    )

    return parser


def main(argv=None):
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "run":
        return handle_run(args)
    elif args.command == "offsets":
        return handle_run(args, overlap_only=True)
    elif args.command == "init-config":
        return handle_init_config(args)

    return 0


def handle_run(args, overlap_only=False):
    """Handle the run and offsets commands."""
    config = load_config(args.config)

    # Command-line trace flags win over the config file
    tracer = get_tracer()
    if args.trace:
        configure_tracer(
            enabled=True,
            level=args.trace_level,
            file_path=args.trace_file,
            json_output=args.trace_json,
        )
    else:
        tracer.apply(config.tracing)

    try:
        from offsetoverlap.pipeline import run_job

        with tracer.span(f"cli_{args.command}", module="cli"):
            result = run_job(
                job_path=args.job,
                out_dir=args.out,
                config=config,
                offset=args.offset,
                reverse=args.reverse,
                debug=args.debug,
                overlap_only=overlap_only,
            )
    except ValueError as e:
        tracer.event(f"Job failed: {str(e)}", level="ERROR")
        print(f"\nError: {str(e)}", file=sys.stderr)
        return 1

    report = result.report

    if not report.is_valid:
        print(f"\n[!] Validation failed: {report.state.value}", file=sys.stderr)
        if report.message:
            print(f"    {report.message}", file=sys.stderr)
        return 1

    print("\nJob completed.")
    print(f"  Candidates: {report.candidate_count}")
    print(f"  Output curves: {report.output_count}")
    print(f"  Skipped (no overlap): {report.skipped_count}")
    print(f"  Failed: {report.failed_count}")
    print(f"\nOutputs saved to: {args.out}/")
    print("  - offsets.json")
    print("  - offsets.svg")
    print("  - report.json")
    print("  - report_summary.txt")

    return 0


def handle_init_config(args):
    """Handle the init-config command."""
    save_default_config(args.out)
    print(f"Default configuration saved to: {args.out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
