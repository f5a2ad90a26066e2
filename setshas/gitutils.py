"""
Utilities for calling out to git
"""
import logging
import subprocess

logger = logging.getLogger(__name__)


class GitError(Exception):
    def __init__(self, cmd, stderr, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.cmd = cmd
        self.stderr = stderr

    def __str__(self):
        return f"Command '{' '.join(self.cmd)}' failed: {self.stderr.strip()}"


def git(*args, cwd=None):
    """Run git with the given arguments, return its stripped stdout"""
    cmd = ["git", *args]
    logger.debug("Running git command: " + " ".join(cmd))
    try:
        output = subprocess.check_output(cmd, cwd=cwd, stderr=subprocess.PIPE)
    except subprocess.CalledProcessError as e:
        raise GitError(cmd, (e.stderr or b"").decode("utf-8")) from e
    return output.decode("utf-8").strip()


def rev_parse(ref="HEAD", cwd=None):
    return git("rev-parse", ref, cwd=cwd)


def merge_base(a, b, cwd=None):
    """Get the best common ancestor of `a` and `b`"""
    return git("merge-base", a, b, cwd=cwd)


def commit_count(ref, cwd=None):
    """Number of commits reachable from `ref`"""
    return int(git("rev-list", "--count", ref, cwd=cwd))


def is_commit(ref, cwd=None):
    try:
        git("cat-file", "-e", f"{ref}^{{commit}}", cwd=cwd)
        return True
    except GitError:
        return False
