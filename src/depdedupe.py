"""DepDedupe - Duplicate package detection and version resolution

    Scans nested node_modules trees, groups installed packages by name and
    version, resolves each version to a canonical installed sibling and caches
    the result keyed by the project lockfile.

    Returns:
        int: Exit code
"""
import logging
import sys

from args import parse_args
from common.logging_utils import extra_context, is_debug_enabled
from constants import ExitCodes


def main(argv=None):
    """Main function of the program."""
    logger = logging.getLogger(__name__)
    args = parse_args(argv)

    if args.COMMAND == "build":
        from cli_build import run_build  # pylint: disable=import-outside-toplevel
        code = run_build(args)
    elif args.COMMAND == "resolve":
        from cli_build import run_resolve  # pylint: disable=import-outside-toplevel
        code = run_resolve(args)
    elif args.COMMAND == "serve":
        from cli_serve import run_server  # pylint: disable=import-outside-toplevel
        code = run_server(args)
    else:
        logger.error("Unknown command: %s", args.COMMAND)
        code = ExitCodes.CONFIG_ERROR.value

    if is_debug_enabled(logger):
        logger.debug(
            "CLI finished",
            extra=extra_context(
                event="function_exit",
                component="cli",
                action="main",
                target=args.COMMAND,
                outcome="success" if code == ExitCodes.SUCCESS.value else "failure",
            ),
        )
    sys.exit(code)


if __name__ == "__main__":
    main()
