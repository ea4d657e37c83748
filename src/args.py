"""Argument parsing functionality for DepDedupe."""

import argparse
from constants import Constants


def _add_common_options(parser):
    """Options shared by every subcommand."""
    parser.add_argument("-d", "--directory",
                        dest="DIRECTORY",
                        help="Project root containing node_modules and the lockfile (default: current directory)",
                        action="store",
                        type=str)
    parser.add_argument("-s", "--strategy",
                        dest="STRATEGY",
                        help="Dedupe strategy: exact, patch-compatible, minor-compatible "
                             "(aliases: sameVersion, patch, minor). Default: exact",
                        action="store",
                        type=str,
                        choices=Constants.STRATEGIES + list(Constants.STRATEGY_ALIASES))
    parser.add_argument("-i", "--ignore",
                        dest="IGNORE",
                        help="Glob pattern of paths to exclude from the scan (can be used multiple times)",
                        action="append",
                        type=str,
                        default=[])
    parser.add_argument("--lockfile",
                        dest="LOCKFILE",
                        help="Lockfile to fingerprint (default: discovered in the project root)",
                        action="store",
                        type=str)
    parser.add_argument("--cache-dir",
                        dest="CACHE_DIR",
                        help=f"Directory for cached maps (default: <project>/{Constants.CACHE_DIR})",
                        action="store",
                        type=str)
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML, YML, or JSON)",
                        action="store",
                        type=str)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default='INFO')
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)


def build_parser():
    """Build the top-level parser with its subcommands."""
    parser = argparse.ArgumentParser(
        prog="depdedupe",
        description=(
            "DepDedupe - Duplicate package detection and version resolution for node_modules trees"
        ),
        add_help=True,
    )
    subparsers = parser.add_subparsers(dest="COMMAND", metavar="{build,resolve,serve}")
    subparsers.required = True

    build = subparsers.add_parser("build", help="Build (or load) the duplicate map for the current lockfile")
    _add_common_options(build)
    build.add_argument("-o", "--output",
                       dest="OUTPUT",
                       help="Path to report file (JSON or CSV)",
                       action="store",
                       type=str)
    build.add_argument("-f", "--format",
                       dest="OUTPUT_FORMAT",
                       help="Report format (json or csv). If not specified, inferred from --output extension; defaults to json.",
                       action="store",
                       type=str.lower,
                       choices=['json', 'csv'])
    build.add_argument("--list-duplicates",
                       dest="LIST_DUPLICATES",
                       help="Print every package installed at more than one version.",
                       action="store_true")
    build.add_argument("--error-on-duplicates",
                       dest="ERROR_ON_DUPLICATES",
                       help="Exit with a non-zero status code if duplicate packages are present.",
                       action="store_true")

    resolve = subparsers.add_parser("resolve", help="Print the canonical location for package@version")
    _add_common_options(resolve)
    resolve.add_argument("PACKAGE", help="Package name or module request (e.g. @scope/name/sub)")
    resolve.add_argument("VERSION", help="Installed version at the requesting location")

    serve = subparsers.add_parser("serve", help="Run the local resolution server")
    _add_common_options(serve)
    serve.add_argument("--host",
                       dest="SERVER_HOST",
                       help=f"Bind address (default: {Constants.SERVER_HOST})",
                       action="store",
                       type=str,
                       default=Constants.SERVER_HOST)
    serve.add_argument("--port",
                       dest="SERVER_PORT",
                       help=f"Port (default: {Constants.SERVER_PORT})",
                       action="store",
                       type=int,
                       default=Constants.SERVER_PORT)
    serve.add_argument("--allow-external",
                       dest="ALLOW_EXTERNAL",
                       help="Allow binding to non-loopback addresses.",
                       action="store_true")
    serve.add_argument("--no-warm-start",
                       dest="NO_WARM_START",
                       help="Do not build the map until the first ready/resolve call.",
                       action="store_true")

    return parser


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    return build_parser().parse_args(argv)
