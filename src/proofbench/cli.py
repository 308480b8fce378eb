"""Command-line entry point: ``proofbench [FILTER ...] [options]``."""

from __future__ import annotations

import argparse
import logging
import sys

from proofbench.compiler.world import PrintConfig, TestWorld
from proofbench.harness.runner import FileReport, RunOptions, TestRunner, discover, summarize
from proofbench.settings import Settings


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="proofbench",
        description="Regression tests for the document compiler",
    )
    parser.add_argument("filter", nargs="*", help="Only run tests whose path contains a filter")
    parser.add_argument("-s", "--subtest", type=int, default=None,
                        help="Run only the subtest with this index (negative counts from the end)")
    parser.add_argument("--exact", action="store_true",
                        help="Filters must match the file name exactly")
    parser.add_argument("--update", action=argparse.BooleanOptionalAction,
                        default=settings.update_expect,
                        help="Update reference images that do not match")
    parser.add_argument("--pdf", action="store_true", help="Also export a PDF per test file")
    parser.add_argument("--syntax", action="store_true", help="Print the syntax tree")
    parser.add_argument("--model", action="store_true", help="Print the evaluated content")
    parser.add_argument("--frames", action="store_true", help="Print the laid-out frames")
    parser.add_argument("--nocapture", action="store_true",
                        help="Accepted for compatibility with test harnesses; ignored")
    return parser


def main(argv: list[str] | None = None) -> int:
    settings = Settings()
    logging.basicConfig(level=settings.log_level.upper())

    args = build_parser(settings).parse_args(argv)
    print_config = PrintConfig(syntax=args.syntax, model=args.model, frames=args.frames)
    options = RunOptions(
        update=args.update,
        pdf=args.pdf,
        subtest=args.subtest,
        print=print_config,
    )

    world = TestWorld.new(settings, print_config)
    paths = discover(settings.fixture_dir, settings.fixture_suffix, args.filter, args.exact)

    def show(report: FileReport) -> None:
        print(report.render(), flush=True)

    print("Running tests...")
    reports = TestRunner(settings, options).run_all(world, paths, on_report=show)
    for line in summarize(reports):
        print(line)

    return 0 if all(report.ok for report in reports) else 1


if __name__ == "__main__":
    sys.exit(main())
