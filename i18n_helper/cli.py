"""
Command-line front end.

Usage:
    i18n-helper app                         # Translate every locale of ./app
    i18n-helper app --lang fr --lang zh-rCN # Only these locales
    i18n-helper app --dry-run               # Show what is missing
    i18n-helper --list-languages
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .client import TranslationClient
from .config import ClientConfig, ENV_PREFIX
from .discovery import discover, split_baseline
from .errors import ConfigurationError, I18nHelperError
from .orchestrator import RunReport, TranslationOrchestrator
from .prompts import LANGUAGE_CONFIG

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_PARTIAL = 2


def safe_print(text: str) -> None:
    """Print text safely, handling Unicode encoding errors on Windows."""
    try:
        print(text)
    except UnicodeEncodeError:
        safe_text = text.encode('ascii', 'replace').decode('ascii')
        print(safe_text)


def parse_args(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog='i18n-helper',
        description='Translate the strings missing from Android strings.xml locales with an LLM',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Examples:
  i18n-helper app                          # Translate all locales of module ./app
  i18n-helper app --lang fr --lang de      # Only French and German
  i18n-helper app --dry-run                # List missing strings, no requests
  i18n-helper app --max-workers 4          # At most 4 requests at a time

Configuration (flags override these):
  {ENV_PREFIX}API_URL          Chat completions endpoint
  {ENV_PREFIX}API_TOKEN        Bearer token
  {ENV_PREFIX}MODEL            Model identifier
  {ENV_PREFIX}CONNECT_TIMEOUT  Seconds (default: 600)
  {ENV_PREFIX}READ_TIMEOUT     Seconds (default: 600)
  {ENV_PREFIX}MAX_WORKERS      Concurrent requests (default: one per locale)
        """
    )
    parser.add_argument('module_dir', nargs='?', type=Path, help='Module directory containing src/main/res')
    parser.add_argument('--lang', '-l', action='append', dest='langs', metavar='TAG', help='Only translate this locale tag (repeatable)')
    parser.add_argument('--api-url', help='Chat completions endpoint URL')
    parser.add_argument('--api-token', help='Bearer token for the endpoint')
    parser.add_argument('--model', '-m', help='Model identifier')
    parser.add_argument('--connect-timeout', type=float, help='Connect timeout in seconds')
    parser.add_argument('--read-timeout', type=float, help='Read timeout in seconds')
    parser.add_argument('--max-workers', '-w', type=int, help='Maximum concurrent requests')
    parser.add_argument('--timeout', type=float, help='Give up waiting for the whole run after this many seconds')
    parser.add_argument('--no-stream', action='store_true', help='Use a single blocking request instead of streaming')
    parser.add_argument('--backup', action='store_true', help='Copy each strings.xml before changing it')
    parser.add_argument('--dry-run', action='store_true', help='Show missing strings without calling the model')
    parser.add_argument('--strict', action='store_true', help='Exit with status 2 when any locale fails')
    parser.add_argument('--verbose', '-v', action='store_true', help='Verbose output, including streamed text')
    parser.add_argument('--list-languages', action='store_true', help='List locale tags with a known language name')

    args = parser.parse_args(argv)
    if not args.list_languages and args.module_dir is None:
        parser.error('module_dir is required')
    return args


def print_report(report: RunReport) -> None:
    """Print the per-locale outcome of a run."""
    safe_print("\n" + "=" * 60)
    safe_print("Translation Summary")
    safe_print("=" * 60)

    for result in sorted(report.results, key=lambda r: r.locale):
        line = f"  {result.locale:10} {result.status:10}"
        if result.requested:
            line += f" added {len(result.added)}/{len(result.requested)}"
        if result.error:
            line += f" - {result.error}"
        safe_print(line)
        if result.missing and result.ok:
            safe_print(f"    missing: {', '.join(result.missing)}")

    safe_print(f"\nSucceeded: {len(report.succeeded)}")
    safe_print(f"Failed: {len(report.failed)}")
    safe_print(f"Time: {report.duration:.1f}s")

    if report.is_partial:
        safe_print("\nPartial success: re-run to retry the failed locales.")


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    if args.list_languages:
        safe_print("\nLocale tags with a known language name:")
        safe_print("-" * 60)
        for tag in sorted(LANGUAGE_CONFIG):
            safe_print(f"  {tag:8} - {LANGUAGE_CONFIG[tag]['name']}")
        safe_print("\nOther tags are sent to the model as they are.")
        return EXIT_OK

    safe_print("\n" + "=" * 60)
    safe_print("Android strings.xml translation")
    safe_print("=" * 60)
    safe_print(f"Module: {args.module_dir.resolve()}")

    try:
        baseline, targets = split_baseline(discover(args.module_dir))
    except I18nHelperError as e:
        safe_print(f"\nError: {e}")
        return EXIT_ERROR

    if args.langs:
        unknown = sorted(set(args.langs) - {t.locale for t in targets})
        if unknown:
            safe_print(f"Warning: no strings.xml for: {', '.join(unknown)}")
        targets = [t for t in targets if t.locale in args.langs]

    if not targets:
        safe_print("\nNothing to translate: no locale besides the default one.")
        return EXIT_ERROR

    safe_print(f"Baseline: {baseline.file_path} ({len(baseline.entries)} strings)")
    safe_print(f"Locales: {', '.join(t.locale for t in targets)}")

    client = None
    if not args.dry_run:
        try:
            config = ClientConfig.from_env(
                api_url=args.api_url,
                api_token=args.api_token,
                model=args.model,
                connect_timeout=args.connect_timeout,
                read_timeout=args.read_timeout,
                max_workers=args.max_workers,
            )
        except ConfigurationError as e:
            safe_print(f"\nError: {e}")
            return EXIT_ERROR
        client = TranslationClient(config)
        safe_print(f"Model: {config.model}")
        max_workers = config.max_workers
    else:
        safe_print("\n[DRY RUN MODE]")
        max_workers = args.max_workers

    def echo_chunk(locale, fragment):
        sys.stdout.write(fragment)
        sys.stdout.flush()

    orchestrator = TranslationOrchestrator(
        client,
        max_workers=max_workers,
        stream=not args.no_stream,
        backup=args.backup,
        dry_run=args.dry_run,
        on_chunk=echo_chunk if args.verbose else None,
    )
    report = orchestrator.run(baseline, targets, timeout=args.timeout)
    print_report(report)

    if report.failed and not report.succeeded:
        return EXIT_ERROR
    if args.strict and report.failed:
        return EXIT_PARTIAL
    return EXIT_OK


if __name__ == '__main__':
    sys.exit(main())
