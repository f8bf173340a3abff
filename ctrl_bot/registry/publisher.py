"""Git publishing for the registry file.

After every save the registry file is committed and pushed so the
deployment's configuration lives in version control. Each git step runs
as an async subprocess bounded by a timeout.
"""

import asyncio
from pathlib import Path
from typing import List, Optional, Tuple

import structlog

from ..exceptions import PersistenceError

logger = structlog.get_logger()

DEFAULT_GIT_TIMEOUT_SECONDS = 30.0


class GitPublisher:
    """Commit and push a single file from its working tree."""

    def __init__(
        self,
        remote: str = "origin",
        branch: str = "master",
        commit_message: str = "Updated config",
        timeout_seconds: float = DEFAULT_GIT_TIMEOUT_SECONDS,
        git_binary: str = "git",
    ) -> None:
        self.remote = remote
        self.branch = branch
        self.commit_message = commit_message
        self.timeout_seconds = timeout_seconds
        self.git_binary = git_binary

    async def publish(self, path: Path) -> None:
        """Stage, commit and push ``path``.

        A clean tree (nothing to commit) still pushes so that a previous
        failed push is retried.
        """
        cwd = path.resolve().parent
        await self._git(cwd, "add", path.name)

        code, output = await self._run(
            cwd, "commit", "-m", self.commit_message, "--", path.name
        )
        if code != 0:
            if "nothing to commit" in output or "no changes added" in output:
                logger.debug("Registry unchanged, nothing to commit", path=str(path))
            else:
                raise PersistenceError(f"git commit failed: {output.strip()}")

        await self._git(cwd, "push", self.remote, f"HEAD:refs/heads/{self.branch}")
        logger.info(
            "Registry published", path=str(path), remote=self.remote, branch=self.branch
        )

    async def _git(self, cwd: Path, *args: str) -> str:
        code, output = await self._run(cwd, *args)
        if code != 0:
            raise PersistenceError(f"git {args[0]} failed: {output.strip()}")
        return output

    async def _run(self, cwd: Path, *args: str) -> Tuple[int, str]:
        cmd: List[str] = [self.git_binary, *args]
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                cwd=str(cwd),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except OSError as e:
            raise PersistenceError(f"Could not run git: {e}") from e

        try:
            stdout, _ = await asyncio.wait_for(
                process.communicate(), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError:
            try:
                process.kill()
            except ProcessLookupError:
                pass
            raise PersistenceError(
                f"git {args[0]} timed out after {self.timeout_seconds}s"
            )

        returncode: Optional[int] = process.returncode
        return (returncode if returncode is not None else -1), stdout.decode(
            "utf-8", errors="replace"
        )
