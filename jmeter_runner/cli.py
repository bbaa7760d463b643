"""CLI entry point for running JMeter test plans."""

import argparse
import json
import logging
import signal
import sys
import threading
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path
from typing import Any

from jmeter_runner.engines.loading import load_engine_manifest
from jmeter_runner.models.result import RunResult
from jmeter_runner.models.settings import RunSettings
from jmeter_runner.orchestrator import TestOrchestrator, TestRunError
from jmeter_runner.settings_loader import load_run_settings

STATUS_SYMBOLS = {
    "success": "✓",
    "incomplete": "⏱",
    "skipped": "-",
}

RESULTS_TIMESTAMP_FORMAT = "%y%m%d-%H%M%S"

# argparse destinations that map one to one onto RunSettings fields
SETTINGS_OPTIONS = (
    "test_dir",
    "results_dir",
    "logs_dir",
    "includes",
    "excludes",
    "remote_stop",
    "remote_start_all",
    "remote_start",
    "remote_start_and_stop_once",
    "suppress_output",
    "exit_check_pause",
    "poll_interval",
    "completion_timeout",
)


def log_results_summary(log: logging.Logger, results: Sequence[RunResult]) -> None:
    """Log a formatted summary of run results with results file paths."""
    log.info("=" * 80)
    log.info("Test Results Summary:")
    log.info("=" * 80)

    for result in results:
        symbol = STATUS_SYMBOLS.get(result.status, "?")
        log.info(
            "%s %s: %s (%.2fs)",
            symbol,
            result.test_plan,
            result.status,
            result.duration,
        )
        log.info("  Results file: %s", result.results_file)
        if result.message:
            log.info("  Message: %s", result.message)


def format_output(results: Sequence[RunResult]) -> dict[str, Any]:
    """Format run results for JSON output."""
    all_results = [
        {
            "test_plan": str(result.test_plan),
            "status": result.status,
            "duration": result.duration,
            "results_file": str(result.results_file),
            "message": result.message,
        }
        for result in results
    ]

    return {
        "total": len(all_results),
        "passed": sum(1 for r in all_results if r["status"] == "success"),
        "incomplete": sum(1 for r in all_results if r["status"] == "incomplete"),
        "skipped": sum(1 for r in all_results if r["status"] == "skipped"),
        "results": all_results,
    }


def build_settings(args: argparse.Namespace) -> RunSettings:
    """Merge the optional settings file with options given on the command line."""
    base = load_run_settings(args.settings) if args.settings else RunSettings()
    data = base.model_dump()

    for name in SETTINGS_OPTIONS:
        if (value := getattr(args, name)) is not None:
            data[name] = value

    if args.append_timestamp:
        data["jmeter"]["results_timestamp"] = datetime.now().strftime(
            RESULTS_TIMESTAMP_FORMAT
        )

    return RunSettings.model_validate(data)


def run(
    engine_key: str,
    engine_config_json: str,
    settings: RunSettings,
    cancel_event: threading.Event | None = None,
) -> int:
    """Run the selected test plans and return exit code."""
    log = logging.getLogger("jmeter_runner")

    log.info("Loading engine: %s", engine_key)
    manifest = load_engine_manifest(engine_key)

    config_dict = json.loads(engine_config_json)
    config = manifest.config_cls(**config_dict)

    with manifest.engine_factory(config) as engine:
        orchestrator = TestOrchestrator(
            engine=engine,
            settings=settings,
            cancel_event=cancel_event or threading.Event(),
        )
        try:
            results = orchestrator.execute_tests()
        except TestRunError as exc:
            log.error("Test run failed: %s", exc, exc_info=exc.__cause__)
            print(json.dumps({"error": str(exc), "test_plan": str(exc.test_plan)}))
            return 1

    if not results:
        log.info("No test plans found in %s", settings.test_dir)
        print(json.dumps(format_output(results)))
        return 0

    log_results_summary(log, results)

    output = format_output(results)
    print(json.dumps(output, indent=2))

    return 0 if all(result.status == "success" for result in results) else 1


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(description="Run JMeter test plans in sequence")
    parser.add_argument(
        "--engine",
        default="subprocess",
        help="Engine key (subprocess, in-process)",
    )
    parser.add_argument(
        "--engine-config",
        default="{}",
        help="JSON configuration for the engine",
    )
    parser.add_argument(
        "--settings",
        type=Path,
        help="YAML file with run settings; options below override it",
    )
    parser.add_argument("--test-dir", type=Path, help="Directory holding test plans")
    parser.add_argument("--results-dir", type=Path, help="Directory for results files")
    parser.add_argument("--logs-dir", type=Path, help="Directory for JMeter logs")
    parser.add_argument(
        "--include",
        dest="includes",
        action="append",
        help="Include pattern, repeat to run plans in the given order",
    )
    parser.add_argument(
        "--exclude",
        dest="excludes",
        action="append",
        help="Exclude pattern, may be repeated",
    )
    parser.add_argument(
        "--remote-stop",
        action=argparse.BooleanOptionalAction,
        help="Stop remote agents at the end of the run",
    )
    parser.add_argument(
        "--remote-start-all",
        action=argparse.BooleanOptionalAction,
        help="Start all configured remote agents",
    )
    parser.add_argument(
        "--remote-start",
        help="Comma separated remote agents to start",
    )
    parser.add_argument(
        "--remote-start-and-stop-once",
        action=argparse.BooleanOptionalAction,
        help="Start agents with the first plan and stop them after the last",
    )
    parser.add_argument(
        "--suppress-output",
        action=argparse.BooleanOptionalAction,
        help="Discard what JMeter prints to stdout",
    )
    parser.add_argument(
        "--exit-check-pause",
        type=int,
        help="Milliseconds to wait after each test (minimum 2000)",
    )
    parser.add_argument(
        "--poll-interval",
        type=int,
        help="Milliseconds between log file checks",
    )
    parser.add_argument(
        "--completion-timeout",
        type=float,
        help="Seconds to wait for a test to end before failing",
    )
    parser.add_argument(
        "--append-timestamp",
        action="store_true",
        help="Append a timestamp to results file names",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


def main() -> None:
    """CLI entry point."""
    args = build_parser().parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    cancel_event = threading.Event()
    signal.signal(signal.SIGTERM, lambda signum, frame: cancel_event.set())

    try:
        exit_code = run(
            engine_key=args.engine,
            engine_config_json=args.engine_config,
            settings=build_settings(args),
            cancel_event=cancel_event,
        )
    except KeyboardInterrupt:
        logging.getLogger("jmeter_runner").error("Test run interrupted")
        exit_code = 130
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
