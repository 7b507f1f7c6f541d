"""
Command-line interface for the file searcher.
"""

import argparse
import logging
import sys
import time

from file_searcher.config import (
    DEFAULT_CONCURRENCY,
    DEFAULT_ENV_LIST,
    DEFAULT_MAX_CONTENT_READ,
    DEFAULT_MEMORY_CEILING_MB,
    DEFAULT_TIMEOUT,
    ScanConfig,
    parse_csv,
    parse_headers,
    parse_status_codes,
)
from file_searcher.core.scanner import InputError, Scanner
from file_searcher.utils.inputs import load_base_paths, load_hosts, read_lines
from file_searcher.utils.log import log, setup_logging


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Dynamic file searcher – scans hosts for interesting files "
                    "using paths combined with words derived from each hostname.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  file-searcher --domain https://api.example.com --paths paths.txt --markers markers.txt\n"
            "  file-searcher --domains hosts.txt --paths paths.txt --status 200 --min-content-size 100\n"
            "  file-searcher --domains hosts.txt --paths paths.txt --markers m.txt --use-fasthttp\n"
        ),
    )
    target = parser.add_argument_group("input")
    target.add_argument("--domain", help="Single domain to scan")
    target.add_argument("--domains", help="File containing list of domains")
    target.add_argument("--paths", required=True, help="File containing list of paths")
    target.add_argument("--markers", help="File containing list of markers "
                                          "(prefix a line with 'regex:' for a pattern)")
    target.add_argument("--base-paths", help="File containing list of base paths")

    net = parser.add_argument_group("requests")
    net.add_argument("--concurrency", type=int, default=DEFAULT_CONCURRENCY,
                     help=f"Number of concurrent requests (default: {DEFAULT_CONCURRENCY})")
    net.add_argument("--rate-limit", type=float, default=0, metavar="RPS",
                     help="Maximum requests per second (default: same as --concurrency)")
    net.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT,
                     help=f"Timeout for each request in seconds (default: {DEFAULT_TIMEOUT:g})")
    net.add_argument("--max-content-read", type=int, default=DEFAULT_MAX_CONTENT_READ,
                     help="Maximum bytes of content to read per response "
                          f"(default: {DEFAULT_MAX_CONTENT_READ})")
    net.add_argument("--headers",
                     help="Extra headers, format: 'Header1:Value1,Header2:Value2'")
    net.add_argument("--proxy", help="Proxy URL (e.g. http://127.0.0.1:8080)")
    net.add_argument("--force-http", action="store_true",
                     help="Use http:// instead of https://")
    net.add_argument("--use-fasthttp", dest="fast_http", action="store_true",
                     help="Use the curl_cffi transport instead of requests")

    rules = parser.add_argument_group("matching")
    rules.add_argument("--status", default="",
                       help="Comma-separated HTTP status codes to accept (e.g. 200,206)")
    rules.add_argument("--min-content-size", type=int, default=0,
                       help="Minimum total file size to accept (bytes)")
    rules.add_argument("--content-types", default="",
                       help="Comma-separated content-type substrings to accept")
    rules.add_argument("--disallowed-content-types", default="",
                       help="Comma-separated content-type substrings to reject")
    rules.add_argument("--disallowed-content-strings", default="",
                       help="Comma-separated body substrings to reject")
    rules.add_argument("--disable-duplicate-check", action="store_true",
                       help="Report every match, even with an already seen size")

    gen = parser.add_argument_group("generation")
    gen.add_argument("--host-depth", type=int, default=0,
                     help="Use only the first N host labels for words (0 = all)")
    gen.add_argument("--env-append-words", default=",".join(DEFAULT_ENV_LIST),
                     help="Comma-separated environment words to append/strip")
    gen.add_argument("--skip-root-folder-check", dest="skip_root", action="store_true",
                     help="Do not request paths directly under the host root")
    gen.add_argument("--dont-generate-paths", action="store_true",
                     help="Do not combine paths with generated words")
    gen.add_argument("--dont-append-envs", dest="no_env_appending", action="store_true",
                     help="Do not append environment words to generated words")
    gen.add_argument("--remove-envs", dest="env_removing", action="store_true",
                     help="Also emit words with a trailing environment word removed")
    gen.add_argument("--append-bypasses-to-words", dest="append_bypasses", action="store_true",
                     help="Also emit words with ';' and '..;' appended")
    gen.add_argument("--ignore-base-path-slash", action="store_true",
                     help="Do not insert '/' between host and base path")
    gen.add_argument("--max-words-per-host", type=int, default=0,
                     help="Cap on generated words per host (0 = unlimited)")

    run = parser.add_argument_group("run")
    run.add_argument("--memory-ceiling", type=int, default=DEFAULT_MEMORY_CEILING_MB,
                     metavar="MB",
                     help="Pause URL generation above this RSS (0 disables, "
                          f"default: {DEFAULT_MEMORY_CEILING_MB})")
    run.add_argument("--verbose", action="store_true",
                     help="Log every skipped and failed URL with its reason")
    run.add_argument("--debug", action="store_true", help="Enable debug logging")
    run.add_argument("--log-file", help="Write detailed logs to this file (always at DEBUG level)")
    run.add_argument("--no-progress", action="store_true", help="Disable the progress bar")

    args = parser.parse_args(argv)
    if not args.domain and not args.domains:
        parser.error("either --domain or --domains is required")
    if args.concurrency < 1:
        parser.error("--concurrency must be at least 1")
    return args


def build_config(args: argparse.Namespace) -> ScanConfig:
    return ScanConfig(
        concurrency=args.concurrency,
        timeout=args.timeout,
        max_content_read=args.max_content_read,
        min_content_size=args.min_content_size,
        status_codes=parse_status_codes(args.status),
        content_types=parse_csv(args.content_types, lower=True),
        disallowed_content_types=parse_csv(args.disallowed_content_types, lower=True),
        disallowed_content_strings=parse_csv(args.disallowed_content_strings, lower=True),
        host_depth=args.host_depth,
        env_list=parse_csv(args.env_append_words, lower=True),
        skip_root=args.skip_root,
        dont_generate_paths=args.dont_generate_paths,
        no_env_appending=args.no_env_appending,
        env_removing=args.env_removing,
        append_bypasses=args.append_bypasses,
        force_http=args.force_http,
        disable_duplicate_check=args.disable_duplicate_check,
        ignore_base_path_slash=args.ignore_base_path_slash,
        max_words_per_host=args.max_words_per_host,
        extra_headers=parse_headers(args.headers),
        proxy=args.proxy,
        base_paths=load_base_paths(args.base_paths),
        fast_http=args.fast_http,
        rate_limit=args.rate_limit,
        memory_ceiling_mb=args.memory_ceiling,
        verbose=args.verbose,
    )


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)

    setup_logging(debug=args.debug or args.verbose, log_file=args.log_file)
    if args.debug:
        logging.getLogger("urllib3").setLevel(logging.DEBUG)

    try:
        hosts = load_hosts(args.domains, args.domain)
        paths = read_lines(args.paths)
        markers = read_lines(args.markers) if args.markers else []
        config = build_config(args)
    except OSError as exc:
        log.error("Could not read input file: %s", exc)
        sys.exit(1)

    try:
        scanner = Scanner(config, hosts, paths, markers,
                          show_progress=not args.no_progress)
    except InputError as exc:
        log.error("%s", exc)
        sys.exit(1)

    t0 = time.monotonic()
    stats = scanner.run()
    log.info("Scan completed: %d finding(s) in %.1f s",
             len(stats.findings), time.monotonic() - t0)
    if stats.producer_error:
        sys.exit(1)


if __name__ == "__main__":
    main()
