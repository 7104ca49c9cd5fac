"""Git repository destination."""

import os
import re
import subprocess
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from loguru import logger

from ..config.config import DestinationConfig
from ..models.transform import TransformResult
from .base import Destination, DestinationError, format_message


def _git_date(timestamp: datetime) -> str:
    """Render a timestamp in git's raw ``<seconds> <+hhmm>`` format."""
    offset = timestamp.utcoffset()
    minutes = int(offset.total_seconds() // 60) if offset else 0
    sign = '-' if minutes < 0 else '+'
    minutes = abs(minutes)
    return f'{int(timestamp.timestamp())} {sign}{minutes // 60:02d}{minutes % 60:02d}'


class GitDestination(Destination):
    """Publishes transform results as commits on a branch of a local repository.

    The new tree is assembled in a private index and committed with
    ``commit-tree``; the branch then moves with a compare-and-swap
    ``update-ref``. Nothing is visible on the branch until that last step, so
    a failed publish leaves the branch where it was.

    Use a bare repository, or a branch that is not checked out: the branch is
    moved without touching any working tree.
    """

    def __init__(
        self,
        repo_path: str,
        branch: str = 'main',
        label_name: str = 'GitOrigin-RevId',
        committer_name: str = 'Migration Publisher',
        committer_email: str = 'publisher@migration.local',
        create: bool = False,
        git_binary: str = 'git',
        timeout: int = 3600,
    ):
        """Initialize git destination.

        Args:
            repo_path: Path to a bare repository or a work tree
            branch: Branch receiving the commits
            label_name: Trailer recording the origin reference of each commit
            committer_name: Committer name for created commits
            committer_email: Committer email for created commits
            create: Initialize a bare repository if ``repo_path`` does not exist
            git_binary: Git executable
            timeout: Git command timeout in seconds
        """
        self.repo_path = Path(repo_path).absolute()
        self.branch = branch
        self.label_name = label_name
        self.committer_name = committer_name
        self.committer_email = committer_email
        self.git_binary = git_binary
        self.timeout = timeout
        self.logger = logger.bind(component='GitDestination')

        if create and not self.repo_path.exists():
            self._init_bare_repository()

    @classmethod
    def from_config(cls, config: DestinationConfig) -> 'GitDestination':
        return cls(
            config.path,
            branch=config.branch,
            label_name=config.label_name,
            committer_name=config.committer_name,
            committer_email=config.committer_email,
            create=config.create,
        )

    @property
    def git_dir(self) -> Path:
        dot_git = self.repo_path / '.git'
        return dot_git if dot_git.is_dir() else self.repo_path

    @property
    def ref(self) -> str:
        return f'refs/heads/{self.branch}'

    def _init_bare_repository(self) -> None:
        self.repo_path.parent.mkdir(parents=True, exist_ok=True)
        self._run_git(['init', '--bare', '--quiet', str(self.repo_path)], git_dir=False)
        self.logger.info(f'Initialized bare repository at {self.repo_path}')

    def _run_git(
        self,
        args: List[str],
        env: Optional[Dict[str, str]] = None,
        input: Optional[str] = None,
        cwd: Optional[Path] = None,
        check: bool = True,
        git_dir: bool = True,
    ) -> subprocess.CompletedProcess:
        """Run a git command against the destination repository.

        Raises:
            DestinationError: If git fails (when ``check``) or cannot be run
        """
        cmd = [self.git_binary]
        if git_dir:
            cmd += ['--git-dir', str(self.git_dir)]
        cmd += args

        try:
            process = subprocess.run(
                cmd,
                input=input,
                capture_output=True,
                text=True,
                cwd=cwd,
                env=env,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise DestinationError(
                f'Git command timed out after {self.timeout} seconds: {" ".join(args)}'
            ) from e
        except OSError as e:
            raise DestinationError(f'Git command execution failed: {e}') from e

        if check and process.returncode != 0:
            error_output = process.stderr.strip() or 'Unknown error'
            raise DestinationError(f'Git command failed: {" ".join(args)} - {error_output}')
        return process

    def head(self) -> Optional[str]:
        """Commit the destination branch points to, or None if it has none."""
        if not self.git_dir.exists():
            return None
        process = self._run_git(
            ['rev-parse', '--verify', '--quiet', f'{self.ref}^{{commit}}'], check=False
        )
        if process.returncode != 0:
            return None
        return process.stdout.strip()

    def process(self, transform_result: TransformResult) -> None:
        """Commit the workdir on the destination branch.

        Raises:
            DestinationError: If any git step fails; the branch is unchanged
        """
        origin_ref = transform_result.origin_ref
        self.logger.info(f'Publishing {origin_ref} to {self.repo_path} ({self.branch})')

        try:
            commit = self._commit(transform_result)
        except DestinationError as e:
            e.origin_ref = origin_ref
            self.logger.error(f'Publish of {origin_ref} failed: {e}')
            raise

        self.logger.info(f'Published {origin_ref} as {commit[:12]}')

    def _commit(self, transform_result: TransformResult) -> str:
        if not self.git_dir.exists():
            raise DestinationError(f'Destination repository not found: {self.repo_path}')

        parent = self.head()
        excluded = transform_result.excluded_destination_paths
        workdir = transform_result.path.absolute()
        if not workdir.is_dir():
            raise DestinationError(f'Workdir does not exist: {workdir}')

        with tempfile.TemporaryDirectory(prefix='migrate_publish_') as temp_dir:
            env = dict(os.environ, GIT_INDEX_FILE=os.path.join(temp_dir, 'index'))

            if parent:
                self._run_git(['read-tree', parent], env=env)
            else:
                self._run_git(['read-tree', '--empty'], env=env)

            # Excluded paths keep the destination's version; everything else
            # comes from the workdir.
            tracked = self._run_git(['ls-files', '-z'], env=env).stdout.split('\0')
            removed = [path for path in tracked if path and not excluded.matches(path)]
            if removed:
                self._run_git(
                    [
                        '--work-tree',
                        str(workdir),
                        'update-index',
                        '--force-remove',
                        '-z',
                        '--stdin',
                    ],
                    env=env,
                    input='\0'.join(removed) + '\0',
                    cwd=workdir,
                )

            added = [relative for relative, _ in transform_result.files()]
            if added:
                self._run_git(
                    ['--work-tree', str(workdir), 'update-index', '--add', '-z', '--stdin'],
                    env=env,
                    input='\0'.join(added) + '\0',
                    cwd=workdir,
                )

            tree = self._run_git(['write-tree'], env=env).stdout.strip()

        if parent and tree == self._run_git(['rev-parse', f'{parent}^{{tree}}']).stdout.strip():
            self.logger.warning(
                f'{transform_result.origin_ref} does not change the destination tree'
            )

        author = transform_result.author
        commit_env = dict(
            os.environ,
            GIT_AUTHOR_NAME=author.name,
            GIT_AUTHOR_EMAIL=author.email,
            GIT_AUTHOR_DATE=_git_date(transform_result.timestamp),
            GIT_COMMITTER_NAME=self.committer_name,
            GIT_COMMITTER_EMAIL=self.committer_email,
        )
        message = format_message(
            transform_result.summary, {self.label_name: transform_result.origin_ref}
        )
        args = ['commit-tree', tree]
        if parent:
            args += ['-p', parent]
        commit = self._run_git(args + ['-F', '-'], env=commit_env, input=message)
        commit_sha = commit.stdout.strip()

        # Compare-and-swap: fails if another writer moved the branch meanwhile
        self._run_git(
            [
                'update-ref',
                '-m',
                f'migrate-publish: {transform_result.origin_ref}',
                self.ref,
                commit_sha,
                parent or '',
            ]
        )
        return commit_sha

    def get_previous_ref(self, label_name: str) -> Optional[str]:
        """Origin reference in the newest first-parent commit carrying the label."""
        if self.head() is None:
            return None

        process = self._run_git(
            [
                'log',
                '-z',
                '--first-parent',
                '--format=%B',
                '--fixed-strings',
                f'--grep={label_name}:',
                self.ref,
            ]
        )
        pattern = re.compile(rf'^{re.escape(label_name)}:[ \t]*(\S.*?)\s*$', re.MULTILINE)
        for message in process.stdout.split('\0'):
            values = pattern.findall(message)
            if values:
                return values[-1]
        return None
