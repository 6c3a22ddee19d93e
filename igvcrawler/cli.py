"""
Command line front end: igv-crawler.

Parses options into a CrawlConfig, runs one crawl, prints the chosen report
and writes the long report to the project log file.
"""

import argparse
import sys
import uuid
from typing import List, Optional

from igvcrawler import __version__
from igvcrawler.core.config import REPORT_MODES, CrawlConfig, SiteConfig, split_scan_dirs
from igvcrawler.core.crawler import CrawlResult, IgvCrawler
from igvcrawler.core.errors import IgvCrawlerError
from igvcrawler.services.reports import ReportGenerator
from igvcrawler.utils.format import printable_text
from igvcrawler.utils.logger import get_logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="igv-crawler",
        description="Find IGV-relevant files below the scan directories, group them and publish them as "
        "symlinks with an IGV listing page.",
    )
    parser.add_argument("--project", required=True, help="Project name; lower-cased for the output directory")
    parser.add_argument(
        "--scandir",
        action="append",
        default=[],
        metavar="DIR[,DIR]",
        help="Directory to scan; repeat the option or separate directories with commas",
    )
    parser.add_argument(
        "--groupregex",
        "--pidformat",
        dest="group_pattern",
        required=True,
        metavar="REGEX",
        help="Regex applied to the full path; its first capture group is the group id",
    )
    parser.add_argument(
        "--display",
        default="nameonly",
        metavar="MODE",
        help='Display label for listed files: "nameonly", "fullpath" or "regex:REGEX"',
    )
    parser.add_argument("--report", choices=REPORT_MODES, default="counts", help="Report printed after the crawl")
    parser.add_argument("--followlinks", action="store_true", help="Follow symlinked directories while scanning")
    parser.add_argument(
        "--prunedir", action="append", default=[], metavar="GLOB", help="Skip directories whose name matches GLOB"
    )
    parser.add_argument(
        "--prunefile", action="append", default=[], metavar="GLOB", help="Skip files whose name matches GLOB"
    )
    parser.add_argument(
        "--link-depth",
        type=int,
        default=None,
        metavar="N",
        help="Keep only the last N parent directory names in link names (default: all, 0: basename only)",
    )
    parser.add_argument("--site-config", metavar="FILE", help="JSON file overriding the site settings")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "NOTICE", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: INFO)",
    )
    parser.add_argument("--log-dir", default=None, help="Write a dated debug log into this directory")
    parser.add_argument(
        "--dry-run", action="store_true", help="Crawl and report without touching the link directory or page"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def config_from_args(args: argparse.Namespace) -> CrawlConfig:
    """
    Build a CrawlConfig from parsed arguments.

    Raises:
        ConfigurationError: If the site config file cannot be loaded
    """
    site = SiteConfig.from_json(args.site_config) if args.site_config else SiteConfig()
    return CrawlConfig(
        project_name=args.project,
        scan_dirs=split_scan_dirs(args.scandir),
        group_pattern=args.group_pattern,
        display_mode=args.display,
        report_mode=args.report,
        follow_symlinks=args.followlinks,
        prune_dirs=args.prunedir,
        prune_files=args.prunefile,
        link_depth=args.link_depth,
        dry_run=args.dry_run,
        site=site,
    )


def write_reports(config: CrawlConfig, result: CrawlResult) -> None:
    """Print the chosen report, write the long report to the log file and, unless dry-running, the JSON report."""
    logger = get_logger()
    stats = result.stats
    reporter = ReportGenerator(config.project_name, config.display_mode)

    print(reporter.render(stats, config.report_mode), end="")

    log_file = reporter.write_log_file(config.log_file, stats)
    if log_file:
        logger.info(f"Long report written to {log_file}")

    if config.dry_run:
        return
    try:
        json_path = reporter.write_json(
            config.json_report_path,
            stats,
            result.listing,
            scan_dirs=config.absolute_scan_dirs(),
            run_uuid=str(uuid.uuid4()),
        )
        logger.info(f"JSON report written to {json_path}")
    except OSError as e:
        logger.error(f"Couldn't write JSON report {config.json_report_path}: {e}")


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run one crawl from the command line.

    Returns:
        Exit code: 0 on success, 1 on a fatal error
    """
    args = build_parser().parse_args(argv)

    logger = get_logger()
    logger.configure(log_level=args.log_level, log_dir=args.log_dir or "logs", enable_file=bool(args.log_dir))

    try:
        config = config_from_args(args)
        result = IgvCrawler(config).crawl()
    except IgvCrawlerError as e:
        logger.error(str(e))
        print(printable_text(f"Error: {e}"), file=sys.stderr)
        return 1
    except OSError as e:
        logger.error(f"Publishing failed: {e}")
        print(printable_text(f"Error: {e}"), file=sys.stderr)
        return 1

    write_reports(config, result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
