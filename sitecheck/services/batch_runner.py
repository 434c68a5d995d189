"""
Batch runner — discovers site folders under a root and scans them one by one.

Run directly to scan a folder and write its report:

    python -m sitecheck.services.batch_runner /srv/exports
"""
import argparse
import logging
import os
import sys
from typing import List, Optional

from ..config import get_settings
from ..models import SiteResult
from ..utils.paths import natural_key, normalize_root
from .site_scanner import scan_site

logger = logging.getLogger(__name__)

EXCLUDED_FOLDERS = {"node_modules", "css", "js", "images", "image", "img"}


def find_site_folders(base_path: str) -> List[str]:
    """Immediate sub-folders of `base_path` that can hold a site, naturally sorted."""
    with os.scandir(base_path) as entries:
        names = [
            entry.name for entry in entries
            if entry.is_dir()
            and not entry.name.startswith(".")
            and entry.name.lower() not in EXCLUDED_FOLDERS
        ]
    return sorted(names, key=natural_key)


def check_sites(base_path: str) -> List[SiteResult]:
    print("🔍 Searching for site folders...")
    sites = find_site_folders(base_path)
    print(f"📁 Found {len(sites)} folders")
    print("🧪 Checking sites...\n")

    results: List[SiteResult] = []
    for site in sites:
        result = scan_site(os.path.join(base_path, site), site)
        print(f"{'OK' if result.exists else 'NOT FOUND'}: {site}")
        results.append(result)

    results.sort(key=lambda r: natural_key(r.site))
    return results


def main(argv: Optional[List[str]] = None) -> int:
    from .report_generator import generate_report

    settings = get_settings()
    parser = argparse.ArgumentParser(
        prog="sitecheck-scan",
        description="Scan a folder of static site exports and write structure_report.html",
    )
    parser.add_argument("root", nargs="?", default=settings.base_path, help="folder holding one sub-folder per site")
    parser.add_argument("-v", "--verbose", action="store_true", help="log detector diagnostics")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    root = normalize_root(args.root)
    if not os.path.isdir(root):
        print(f"❌ Folder not found: {root}", file=sys.stderr)
        return 1

    results = check_sites(root)
    outcome = generate_report(results, root)
    if outcome.path:
        print(f"\n📄 Report written to {outcome.path}")
    else:
        print("\n⚠️  Could not write the report file; it was kept in memory only")
    print(outcome.output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
