"""
gitpop git bindings: the configuration store and branch lookup.

All calls go through `git` on PATH in the current working directory (or
`cwd` when given). Failures other than "key not set" propagate as
subprocess.CalledProcessError.
"""
import logging
import subprocess

from .stores import ConfigEntry

logger = logging.getLogger(__name__)

# `git config` exit status when the key is absent (--get) or cannot be unset.
_NOT_SET = (1, 5)


def git(*args, cwd=None, check=True):
    """
    Run git with args and return the CompletedProcess (text mode, output captured).
    """
    logger.debug(f"Running git {' '.join(args)}")
    return subprocess.run(["git", *args], cwd=cwd, capture_output=True, text=True, check=check)


class GitConfig:
    """
    Configuration store backed by `git config`.

    - get(name) -> ConfigEntry | None (None when the key is not set)
    - set(name, value): "unset" or "" removes the key; removing an absent key is fine
    """

    def __init__(self, cwd=None):
        self.cwd = cwd

    def get(self, name):
        process = git("config", "--get", name, cwd=self.cwd, check=False)
        if process.returncode in _NOT_SET:
            return None
        if process.returncode:
            raise subprocess.CalledProcessError(process.returncode, process.args, process.stdout, process.stderr)
        return ConfigEntry(process.stdout.rstrip("\n"))

    def set(self, name, value):
        if value in ("", "unset"):
            process = git("config", "--unset", name, cwd=self.cwd, check=False)
            if process.returncode and process.returncode not in _NOT_SET:
                raise subprocess.CalledProcessError(process.returncode, process.args, process.stdout, process.stderr)
            return
        git("config", name, value, cwd=self.cwd)


def current_branch(cwd=None):
    """
    Name of the checked-out branch, or None when detached, outside a
    repository, or when git is not installed.
    """
    try:
        process = git("branch", "--show-current", cwd=cwd, check=False)
    except FileNotFoundError:
        logger.debug("git executable not found")
        return None
    if process.returncode:
        logger.debug(f"Not inside a git work tree: {process.stderr.strip()}")
        return None
    return process.stdout.strip() or None


__all__ = (
    "git",
    "GitConfig",
    "current_branch",
)
