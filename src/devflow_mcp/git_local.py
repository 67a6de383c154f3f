"""Local git subprocess runner.

Every operation checks the repository path first, then spawns exactly one `git` process and
captures stdout and stderr separately. Concurrent calls against the same path are not serialized
here; git's own index lock guards the working tree.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path

from .errors import AdapterError, ErrorKind

logger = logging.getLogger(__name__)

PROTECTED_BRANCH = "main"


@dataclass(frozen=True, slots=True)
class GitCommandResult:
    stdout: str
    stderr: str


def ensure_repo_path(repo_path: str) -> Path:
    """Resolve `repo_path` and check it is an existing git work tree."""
    if not repo_path or not repo_path.strip():
        raise AdapterError(
            kind=ErrorKind.VALIDATION,
            message="Repository path is required for local git commands.",
        )

    resolved = Path(repo_path).expanduser().resolve()
    if not resolved.exists():
        raise AdapterError(
            kind=ErrorKind.CONFIGURATION,
            message=f"Repository path does not exist: {resolved}",
        )
    if not (resolved / ".git").exists():
        raise AdapterError(
            kind=ErrorKind.CONFIGURATION,
            message=f"Path is not a git repository (missing .git directory): {resolved}",
        )
    return resolved


class LocalGit:
    """Runs git commands against caller-supplied working directories."""

    def __init__(self, *, executable: str = "git") -> None:
        self._executable = executable

    async def run(self, repo_path: str, args: list[str]) -> GitCommandResult:
        """Run `git <args>` in `repo_path`."""
        cwd = ensure_repo_path(repo_path)
        command = f"git {' '.join(args)}"
        logger.debug("Running %s in %s", command, cwd)

        try:
            proc = await asyncio.create_subprocess_exec(
                self._executable,
                *args,
                cwd=str(cwd),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            out, err = await proc.communicate()
        except OSError as exc:
            raise AdapterError(
                kind=ErrorKind.PROCESS_FAILURE,
                message=f"Failed to execute git command: {command}",
                details=str(exc),
            ) from exc

        stdout = out.decode("utf-8", errors="replace").strip()
        stderr = err.decode("utf-8", errors="replace").strip()

        if proc.returncode != 0:
            raise AdapterError(
                kind=ErrorKind.PROCESS_FAILURE,
                message=f"{command} exited with code {proc.returncode}",
                details=stderr or None,
            )

        return GitCommandResult(stdout=stdout, stderr=stderr)

    async def create_branch(self, *, repo_path: str, branch: str, start_point: str | None = None) -> GitCommandResult:
        """`git checkout -b <branch> [start_point]`."""
        args = ["checkout", "-b", branch]
        if start_point:
            args.append(start_point)
        return await self.run(repo_path, args)

    async def status(self, *, repo_path: str) -> GitCommandResult:
        """Short status with the branch header line."""
        return await self.run(repo_path, ["status", "--short", "--branch"])

    async def stage(self, *, repo_path: str, paths: list[str] | None = None) -> GitCommandResult:
        """Stage the given paths, or everything under the work tree when none are given."""
        return await self.run(repo_path, ["add", "--", *(paths or ["."])])

    async def commit(
        self,
        *,
        repo_path: str,
        message: str,
        allow_empty: bool = False,
        signoff: bool = False,
    ) -> GitCommandResult:
        """Commit staged changes with `message`."""
        args = ["commit", "-m", message]
        if allow_empty:
            args.append("--allow-empty")
        if signoff:
            args.append("--signoff")
        return await self.run(repo_path, args)

    async def delete_branch(self, *, repo_path: str, branch: str, force: bool = False) -> GitCommandResult:
        """Delete a local branch. `main` is refused before anything is spawned."""
        normalized = branch.strip()
        if not normalized:
            raise AdapterError(
                kind=ErrorKind.VALIDATION,
                message="Branch name is required to delete a local branch.",
            )
        if normalized == PROTECTED_BRANCH:
            raise AdapterError(
                kind=ErrorKind.VALIDATION,
                message="Refusing to delete the main branch locally.",
            )
        return await self.run(repo_path, ["branch", "-D" if force else "-d", normalized])
