# ============================================
# file: src/siteinfo/cli.py
# ============================================
from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import List, Optional

from siteinfo.controllers.extract_controller import ExtractController
from siteinfo.exceptions import InvalidUrlError
from siteinfo.managers.config_manager import config_manager
from siteinfo.model import LoaderSettings
from siteinfo.site_info import SiteInfo
from siteinfo.utils.configure_logging import configure_logger

logger = logging.getLogger(__name__)

FIELDS = ("title", "description", "keywords", "icon", "image")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="siteinfo", description="Extract preview metadata from web pages.")
    parser.add_argument("urls", metavar="URL", nargs="+", help="Page URL(s) to inspect.")
    g = parser.add_mutually_exclusive_group(required=False)
    g.add_argument("--field", choices=FIELDS, help="Print a single field as plain text.")
    g.add_argument("--tag", nargs=4, metavar=("TAG", "MATCH_ATTR", "MATCH_VALUE", "RESULT_ATTR"),
                   help="Print the value of a custom tag lookup.")
    parser.add_argument("--timeout", type=float, default=None, help="Request timeout in seconds.")
    parser.add_argument("--max-redirects", type=int, default=None, help="Maximum redirects to follow.")
    parser.add_argument("--workers", type=int, default=None, help="Parallel workers for several URLs.")
    parser.add_argument("--output", type=str, default=None, help="Write results to a .csv or .json file.")
    parser.add_argument("--log-level", type=str, default=None, help="Root log level (default from settings).")
    return parser


def _single(url: str, pargs: argparse.Namespace, settings: LoaderSettings) -> int:
    info = SiteInfo(url, settings=settings)
    if pargs.field:
        print(getattr(info, f"get_{pargs.field}")())
    elif pargs.tag:
        print(info.get_tag_value(*pargs.tag))
    else:
        print(json.dumps(info.extract().model_dump(exclude_none=True), indent=2, ensure_ascii=False))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    try:
        pargs = parser.parse_args(argv)
    except SystemExit as e:
        return 0 if e.code == 0 else 1

    configure_logger(
        pargs.log_level or config_manager.get_nested("debug.level", "WARNING"),
        silenced_loggers=config_manager.get_nested("debug.silenced_loggers", {}),
    )

    if pargs.tag and (len(pargs.urls) > 1 or pargs.output):
        print("❌ Error: --tag works on a single URL without --output.")
        return 1

    settings = LoaderSettings.from_config(timeout=pargs.timeout, max_redirects=pargs.max_redirects)

    try:
        if len(pargs.urls) == 1 and not pargs.output:
            return _single(pargs.urls[0], pargs, settings)

        controller = ExtractController(settings=settings, default_workers=pargs.workers)
        results = controller.extract_many(pargs.urls, show_progress=sys.stderr.isatty())
    except InvalidUrlError as e:
        print(f"❌ Error: {e}")
        return 1

    if pargs.output:
        out = controller.export(results, pargs.output)
        print(f"✅ Wrote {len(results)} rows to {out}.")
        return 0

    for meta in results:
        if pargs.field:
            print(f"{meta.url}\t{getattr(meta, pargs.field)}")
        else:
            print(json.dumps(meta.model_dump(exclude_none=True), ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
