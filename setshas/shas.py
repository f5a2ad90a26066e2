"""
Find the base and head commits (resolve_shas) that a downstream step should
diff to know what changed in this CI run.

For unmerged pull requests and merge queue runs the base is where the branch
forked off the main branch. For everything else (pushes, mostly) it's the last
commit on the branch with a successful combined status, falling back to the
commit before the tip of the main branch.
"""
import logging
import os
import re
import textwrap

from setshas import gitutils

logger = logging.getLogger(__name__)


class MergeQueueError(Exception):
    pass


class NoSuccessfulCommitError(Exception):
    def __init__(self, branch_name, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.branch_name = branch_name

    def __str__(self):
        return textwrap.dedent(
            f"""
            Unable to find a successful workflow run on 'origin/{self.branch_name}'
            NOTE: You have set 'error-on-no-successful-workflow' on the action so this is a hard error.

            Is it possible that you have no runs currently on 'origin/{self.branch_name}'?
            - If yes, then you should run the workflow without this flag first.
            - If no, then you might have changed your git history and those commits no longer exist."""
        )


class ShaResult:
    def __init__(self, base, head, no_previous_build=False):
        self.base = base
        self.head = head
        self.no_previous_build = no_previous_build

    def __repr__(self):
        return (
            f"ShaResult(base={self.base!r}, head={self.head!r}, "
            f"no_previous_build={self.no_previous_build!r})"
        )

    def __eq__(self, other):
        if not isinstance(other, ShaResult):
            return NotImplemented
        return (self.base, self.head, self.no_previous_build) == (
            other.base,
            other.head,
            other.no_previous_build,
        )


def enter_working_directory(working_directory):
    """
    chdir into `working_directory` unless it's the default. A missing
    directory only gets a warning, git then runs in the current one.
    """
    if working_directory == ".":
        return
    if os.path.isdir(working_directory):
        logger.info(f"Changing into working directory {working_directory}")
        os.chdir(working_directory)
    else:
        print()
        print(f"WARNING: Working directory '{working_directory}' doesn't exist.")


def find_merge_queue_pr(payload, main_branch_name):
    """
    Return the PR number encoded in a merge queue branch name, e.g.

        refs/heads/gh-readonly-queue/main/pr-42-<base sha> -> "42"

    or None if the branch doesn't look like one.
    """
    merge_group = payload.get("merge_group") or {}
    head_ref = merge_group.get("head_ref") or ""
    base_sha = merge_group.get("base_sha") or ""
    match = re.match(
        rf"^refs/heads/gh-readonly-queue/{re.escape(main_branch_name)}"
        rf"/pr-(\d+)-{re.escape(base_sha)}$",
        head_ref,
    )
    return match.group(1) if match else None


def find_merge_queue_branch(context, settings, client):
    pull_number = find_merge_queue_pr(context.payload, settings.main_branch_name)
    if not pull_number:
        raise MergeQueueError("Failed to determine PR number")
    print()
    print(f"Found PR #{pull_number} from merge queue branch")

    pull_request = client.get_pull_request(context.owner, context.repo, int(pull_number))
    head_ref = (pull_request.get("head") or {}).get("ref")
    if not head_ref:
        raise MergeQueueError(f"Pull request #{pull_number} has no head branch")
    return head_ref


def find_merge_base_ref(context, settings, client):
    if context.is_merge_group:
        return f"origin/{find_merge_queue_branch(context, settings, client)}"
    return "HEAD"


def find_successful_commit(client, owner, repo, sha, page_limit=10, max_pages=None):
    """
    Walk the commits reachable from `sha`, newest first, and return the first
    one whose combined status is a success and that exists in the local clone.
    None if there is no such commit.
    """
    page = 1
    while max_pages is None or page <= max_pages:
        logger.info(f"Scanning page {page} of commits from {sha}")
        commits = client.list_commits(owner, repo, sha, page=page, limit=page_limit)
        if not commits:
            return None

        for commit in commits:
            commit_sha = commit["sha"]
            status = client.get_combined_status(owner, repo, commit_sha)
            logger.debug(f"Commit {commit_sha} has state {status.get('state')}")
            if status.get("state") != "success":
                continue
            if not gitutils.is_commit(commit_sha):
                logger.info(f"Commit {commit_sha} is green but not in this clone, skipping")
                continue
            return commit_sha
        page += 1

    logger.info(f"Gave up looking for a successful commit after {max_pages} page(s)")
    return None


def fallback_base(main_branch_name):
    """
    HEAD~1 on the main branch, or its only commit if there is just one.
    """
    print()
    print(
        f"WARNING: Unable to find a successful workflow run on 'origin/{main_branch_name}', "
        "or the latest successful workflow was connected to a commit which no longer "
        "exists on that branch (e.g. if that branch was rebased)"
    )
    print(f"We are therefore defaulting to use HEAD~1 on 'origin/{main_branch_name}'")
    print()
    print(
        "NOTE: You can instead make this a hard error by setting "
        "'error-on-no-successful-workflow' on the action in your workflow."
    )
    print()

    ref = f"origin/{main_branch_name}"
    if gitutils.commit_count(ref) > 1:
        ref += "~1"
    return gitutils.rev_parse(ref)


def resolve_shas(context, settings, client, debug=False, verbose=False):
    """
    Determine the base and head commits for this run.
    """
    if verbose:
        logger.setLevel(logging.INFO)
    elif debug:
        logger.setLevel(logging.DEBUG)

    enter_working_directory(settings.working_directory)
    main_branch = settings.main_branch_name

    head = gitutils.rev_parse("HEAD")

    if context.is_unmerged_pull_request or context.is_merge_group:
        logger.info(f"{context.event_name} event, using the merge base with {main_branch}")
        merge_base_ref = find_merge_base_ref(context, settings, client)
        base = gitutils.merge_base(f"origin/{main_branch}", merge_base_ref)
        return ShaResult(base, head)

    ref = context.push_ref() or main_branch
    logger.info(f"{context.event_name} event, looking for a successful commit from {ref}")
    base = find_successful_commit(
        client,
        context.owner,
        context.repo,
        ref,
        page_limit=settings.page_limit,
        max_pages=settings.max_pages,
    )

    if base:
        print()
        print(f"Found the last successful workflow run on 'origin/{main_branch}'")
        print(f"Commit: {base}")
        return ShaResult(base, head)

    if settings.error_on_no_successful_workflow:
        raise NoSuccessfulCommitError(main_branch)

    return ShaResult(fallback_base(main_branch), head, no_previous_build=True)
