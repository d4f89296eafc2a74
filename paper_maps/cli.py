"""``paper-maps`` command line.

Subcommands:
    build          assemble ``sources/`` into ``out/``
    check-links    probe every URL in the archive (exit 1 if any is broken)
    check-geojson  validate a FeatureCollection file (exit 1 on violations)

Configuration comes from ``PAPER_MAPS_*`` environment variables (see
``paper_maps.core.config``); the flags below override the directories.
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import logging
import shlex
import sys
from pathlib import Path

from paper_maps import __version__
from paper_maps.activities.validate_feature import validate_collection
from paper_maps.core.config import PaperMapsConfig
from paper_maps.core.exceptions import PipelineError
from paper_maps.orchestrators.build import run_build
from paper_maps.orchestrators.link_check import run_link_check

logger = logging.getLogger("paper_maps.cli")

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        force=True,
    )
    # httpx logs every request at INFO.
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def _cmd_build(args: argparse.Namespace, config: PaperMapsConfig) -> int:
    overrides = {}
    if args.sources:
        overrides["sources_dir"] = args.sources
    if args.out:
        overrides["output_dir"] = args.out
    config = dataclasses.replace(config, **overrides)

    result = run_build(config, seed=args.seed)
    logger.info("Tile command | argv=%s", shlex.join(result.tile_job.to_args()))
    logger.info("All done")
    return EXIT_OK


def _cmd_check_links(args: argparse.Namespace, config: PaperMapsConfig) -> int:
    report = asyncio.run(run_link_check(config, args.archive))
    if report.ok:
        logger.info("ALL OK")
        return EXIT_OK
    sys.stderr.write(report.format() + "\n")
    return EXIT_FAILURE


def _cmd_check_geojson(args: argparse.Namespace, config: PaperMapsConfig) -> int:
    path = Path(args.file)
    try:
        collection = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        sys.stderr.write(f"{path}: invalid JSON: {exc.msg} (line {exc.lineno})\n")
        return EXIT_FAILURE

    violations = validate_collection(collection)
    if violations:
        for violation in violations:
            sys.stderr.write(f"{violation}\n")
        sys.stderr.write(f"{path}: {len(violations)} violation(s)\n")
        return EXIT_FAILURE
    sys.stdout.write("JSON is valid\n")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="paper-maps",
        description="Assemble and check the paper maps dataset.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level")
    sub = parser.add_subparsers(dest="command", required=True)

    build = sub.add_parser("build", help="Assemble sources into the output directory")
    build.add_argument("--sources", help="Sources directory (default: $PAPER_MAPS_SOURCES_DIR)")
    build.add_argument("--out", help="Output directory (default: $PAPER_MAPS_OUTPUT_DIR)")
    build.add_argument("--seed", type=int, default=None, help="Seed for the sample")
    build.set_defaults(handler=_cmd_build)

    links = sub.add_parser("check-links", help="Check every URL in the archive")
    links.add_argument("archive", nargs="?", default=None, help="Archive to check")
    links.set_defaults(handler=_cmd_check_links)

    geojson = sub.add_parser("check-geojson", help="Validate a FeatureCollection file")
    geojson.add_argument("file", help="GeoJSON FeatureCollection")
    geojson.set_defaults(handler=_cmd_check_geojson)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the CLI and return the process exit status."""
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)

    try:
        config = PaperMapsConfig.from_env()
        return args.handler(args, config)
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return EXIT_INTERRUPTED
    except PipelineError as exc:
        logger.error("%s failed | %s", args.command, exc.to_error_dict())
        sys.stderr.write(f"{exc}\n")
        return EXIT_FAILURE
    except (OSError, ValueError) as exc:
        logger.error("%s failed | error=%s", args.command, exc)
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
