import contextlib
import os
import pathlib
import subprocess
import tempfile

import pytest


@pytest.fixture
def git_repo():
    """
    Fixture to create a git repo with `main` as its initial branch
    """
    with tempfile.TemporaryDirectory() as d:
        subprocess.check_output(['git', 'init'], cwd=d)
        subprocess.check_output(['git', 'symbolic-ref', 'HEAD', 'refs/heads/main'], cwd=d)
        subprocess.check_output(['git', 'config', 'user.email', 'ci@example.com'], cwd=d)
        subprocess.check_output(['git', 'config', 'user.name', 'CI'], cwd=d)
        subprocess.check_output(['git', 'config', 'commit.gpgsign', 'false'], cwd=d)
        yield pathlib.Path(d)


def git(repo_dir, *cmd):
    return subprocess.check_output(['git'] + list(cmd), cwd=repo_dir).decode('utf-8').strip()


@contextlib.contextmanager
def cwd(new_dir):
    curdir = os.getcwd()
    try:
        os.chdir(new_dir)
        yield
    finally:
        os.chdir(curdir)


def commit_file(repo_dir, path, contents):
    """
    Commit `contents` to `path`, return the new commit's sha
    """
    full_path = repo_dir / path
    os.makedirs(os.path.dirname(full_path), exist_ok=True)

    with open(full_path, 'w') as f:
        f.write(contents)

    git(repo_dir, 'add', path)
    git(repo_dir, 'commit', '-m', f'Added {path}')
    return git(repo_dir, 'rev-parse', 'HEAD')


def publish(repo_dir, branch='main'):
    """
    Pretend `branch` was fetched from origin
    """
    git(repo_dir, 'update-ref', f'refs/remotes/origin/{branch}', branch)
