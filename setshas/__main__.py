import argparse
import logging
import sys

from setshas import api, config, context, gitutils, outputs, shas
from argparse import RawTextHelpFormatter

logging.basicConfig(stream=sys.stdout, level=logging.WARNING)
logger = logging.getLogger(__name__)

# Anything the run can fail with that should become a failed step rather
# than a traceback
FAILURES = (
    api.ApiError,
    config.ConfigError,
    context.ContextError,
    gitutils.GitError,
    shas.MergeQueueError,
    shas.NoSuccessfulCommitError,
)


def make_parser():
    argparser = argparse.ArgumentParser(
        prog="set-shas",
        formatter_class=RawTextHelpFormatter,
        description="Find the base and head commits to diff for this CI run.",
    )

    argparser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Enable tool debug output."
    )
    argparser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output."
    )
    argparser.add_argument(
        "--config",
        default=None,
        help="Path to a set-shas.yaml config file. Defaults to set-shas.yaml " +
        "in the current directory, if it exists."
    )

    argparser.add_argument(
        "token",
        nargs="?",
        default=None,
        help="Token for the code hosting API. Defaults to $GITHUB_TOKEN."
    )
    argparser.add_argument(
        "main_branch_name",
        nargs="?",
        default=None,
        help="The branch to look for successful commits on. Defaults to main."
    )
    argparser.add_argument(
        "error_on_no_successful_workflow",
        nargs="?",
        default=None,
        help="'true' to fail instead of falling back to HEAD~1 when no " +
        "successful commit is found."
    )
    argparser.add_argument(
        "last_successful_event",
        nargs="?",
        default=None,
        help="Unused, kept for compatibility."
    )
    argparser.add_argument(
        "working_directory",
        nargs="?",
        default=None,
        help="Directory of the git checkout. Defaults to the current directory."
    )
    argparser.add_argument(
        "workflow_id",
        nargs="?",
        default=None,
        help="Unused, kept for compatibility."
    )
    argparser.add_argument(
        "base_url",
        nargs="?",
        default=None,
        help="URL of the code hosting server. Defaults to $GITHUB_SERVER_URL."
    )
    return argparser


def run(args):
    """
    Resolve and emit the base and head commits, return the exit code.
    """
    try:
        settings = config.build_settings(
            args, config.get_config(args.config, args.debug, args.verbose)
        )
        event_context = context.load_context()
        client = api.GiteaClient(settings.base_url, settings.token)
        result = shas.resolve_shas(
            event_context, settings, client, args.debug, args.verbose
        )
    except FAILURES as e:
        logger.debug("Resolving commits failed", exc_info=True)
        return outputs.set_failed(e)

    logger.info(f"Resolved {result}")
    if result.no_previous_build:
        outputs.set_output("noPreviousBuild", "true")
    outputs.set_output("base", result.base)
    outputs.set_output("head", result.head)
    return 0


def main():
    args = make_parser().parse_args()

    if args.verbose:
        logger.setLevel(logging.INFO)
    elif args.debug:
        logger.setLevel(logging.DEBUG)

    sys.exit(run(args))


if __name__ == "__main__":
    main()
