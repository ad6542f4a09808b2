"""
Repository manager for cloning selected GitHub repositories and scaffolding them.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Union

from git import Repo
from git.exc import GitError, GitCommandError

from ..config import AppConfig, CloneConfig, get_config
from ..error_handling import CloneError, LfsError, ScaffoldError
from ..generators import (
    package_name_for, manifest_from_config, write_assembly_definition,
    write_package_manifest, copy_template_files
)
from ..logging import CredentialRedactionFilter
from ..models import RepositoryIdentifier, CloneStatus, CloneOutcome, BatchResult

logger = logging.getLogger(__name__)

GITATTRIBUTES_FILENAME = ".gitattributes"
LFS_MARKER = "filter=lfs"
LFS_MISSING_MARKERS = ("git-lfs: command not found", "'lfs' is not a git command")
LICENSE_FILENAME = "LICENSE"
LICENSE_EXTENSION = ".md"

ProgressCallback = Callable[[int, int, RepositoryIdentifier], None]


@dataclass
class CloneOptions:
    """Post-clone steps to run for every repository in a batch."""
    create_assembly_definition: bool = True
    create_package_manifest: bool = True
    copy_template_files: bool = True
    template_folder: str = "Assets/Templates"

    @classmethod
    def from_config(cls, config: CloneConfig) -> 'CloneOptions':
        return cls(
            create_assembly_definition=config.create_assembly_definition,
            create_package_manifest=config.create_package_manifest,
            copy_template_files=config.copy_template_files,
            template_folder=config.template_folder
        )


class RepositoryManager:
    """
    Clones repositories one at a time and scaffolds each successful clone.

    A batch never aborts because of a single repository: every failure is
    recorded in that repository's :class:`CloneOutcome` and the next
    repository is processed.
    """

    def __init__(self, access_token: Optional[str] = None, config: Optional[AppConfig] = None):
        """
        Initialize repository manager.

        Args:
            access_token: GitHub token embedded in clone URLs
            config: Application configuration (global configuration if omitted)
        """
        self.config = config or get_config()
        self.access_token = access_token if access_token is not None else self.config.github.access_token
        self.clone_host = self.config.github.clone_host
        self.clone_timeout = self.config.clone.timeout
        self.lfs_timeout = self.config.clone.lfs_timeout

    def _redact(self, text: str) -> str:
        return CredentialRedactionFilter([self.access_token]).redact(text)

    def clone_selected(
        self,
        identifiers: Iterable[RepositoryIdentifier],
        target_directory: Union[str, Path],
        options: Optional[CloneOptions] = None,
        progress_callback: Optional[ProgressCallback] = None
    ) -> BatchResult:
        """
        Clone and scaffold every identifier, strictly in order.

        Args:
            identifiers: Repositories to clone
            target_directory: Directory the repositories are cloned into
            options: Post-clone steps (configuration defaults if omitted)
            progress_callback: Called with ``(index, total, identifier)`` before each repository

        Returns:
            BatchResult with exactly one outcome per identifier
        """
        identifiers = list(identifiers)
        options = options or CloneOptions.from_config(self.config.clone)
        target_directory = Path(target_directory)

        result = BatchResult(target_directory=str(target_directory), started_at=datetime.now())
        logger.info(f"Cloning {len(identifiers)} repositories into {target_directory}")

        for index, identifier in enumerate(identifiers):
            if progress_callback:
                progress_callback(index, len(identifiers), identifier)
            result.outcomes.append(self.clone_repository(identifier, target_directory, options))

        result.completed_at = datetime.now()
        summary = ", ".join(f"{status}: {count}" for status, count in result.summary().items() if count)
        logger.info(f"Clone batch complete ({summary or 'nothing to do'})")
        return result

    def clone_repository(
        self,
        identifier: RepositoryIdentifier,
        target_directory: Union[str, Path],
        options: CloneOptions
    ) -> CloneOutcome:
        """
        Run the clone pipeline for a single repository.

        Returns:
            CloneOutcome for the repository; this method does not raise for
            git or file system failures
        """
        local_path = Path(target_directory) / identifier.folder_name

        if local_path.exists():
            logger.warning(f"Repository folder already exists, skipping: {local_path}")
            return CloneOutcome(
                identifier=identifier,
                status=CloneStatus.SKIPPED_EXISTING,
                message=f"{local_path} already exists",
                local_path=str(local_path)
            )

        try:
            git_repo = self._clone(identifier, local_path)
        except CloneError as e:
            logger.error(f"Failed to clone repository {identifier}: {e.message}")
            return CloneOutcome(
                identifier=identifier,
                status=CloneStatus.FAILED_CLONE,
                message=e.stderr or e.message,
                local_path=str(local_path)
            )

        outcome = CloneOutcome(identifier=identifier, status=CloneStatus.CLONED, local_path=str(local_path))
        logger.info(f"Cloned {identifier} into {local_path}")

        if self.uses_lfs(local_path):
            try:
                self._pull_lfs(git_repo, identifier)
            except LfsError as e:
                if e.lfs_missing:
                    logger.warning("Git LFS is required but not installed. LFS files were not pulled.")
                    outcome.warnings.append(e.message)
                else:
                    logger.error(f"Git LFS pull failed for {identifier}: {e.stderr or e.message}")
                    outcome.status = CloneStatus.FAILED_LFS
                    outcome.message = e.stderr or e.message
                    return outcome

        self._run_post_clone_steps(local_path, identifier, options, outcome)
        return outcome

    def _clone(self, identifier: RepositoryIdentifier, local_path: Path) -> Repo:
        """
        Clone a repository with the token embedded in the URL.

        Raises:
            CloneError: If git fails or cannot be started
        """
        clone_url = identifier.clone_url(self.access_token or "", self.clone_host)
        env = {
            "GIT_TERMINAL_PROMPT": "0",
            "GIT_HTTP_LOW_SPEED_LIMIT": "1000",
            "GIT_HTTP_LOW_SPEED_TIME": str(self.clone_timeout),
        }

        logger.debug(f"Cloning {identifier} to {local_path}")
        try:
            return Repo.clone_from(clone_url, str(local_path), env=env)
        except GitCommandError as e:
            stderr = self._redact(str(e.stderr or e)).strip()
            raise CloneError(
                f"Git clone failed for {identifier}",
                repository=identifier.full_name,
                stderr=stderr
            ) from e
        except (GitError, OSError) as e:
            raise CloneError(
                f"Exception cloning repository {identifier}: {self._redact(str(e))}",
                repository=identifier.full_name
            ) from e

    @staticmethod
    def uses_lfs(repo_path: Union[str, Path]) -> bool:
        """Check whether ``.gitattributes`` at the repository root routes files through LFS."""
        gitattributes = Path(repo_path) / GITATTRIBUTES_FILENAME
        if not gitattributes.is_file():
            return False

        try:
            content = gitattributes.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            logger.warning(f"Failed to read {gitattributes}: {e}")
            return False

        return any(LFS_MARKER in line for line in content.splitlines())

    def _pull_lfs(self, git_repo: Repo, identifier: RepositoryIdentifier) -> None:
        """
        Run ``git lfs pull`` inside the cloned repository.

        Raises:
            LfsError: If the pull fails; ``lfs_missing`` is set when the
                extension is not installed
        """
        logger.info(f"Pulling LFS objects for {identifier}")
        try:
            git_repo.git.lfs("pull", kill_after_timeout=self.lfs_timeout)
        except GitCommandError as e:
            stderr = self._redact(str(e.stderr or e)).strip()
            lfs_missing = any(marker in stderr for marker in LFS_MISSING_MARKERS)
            raise LfsError(
                "Git LFS is not installed" if lfs_missing else f"Git LFS pull failed for {identifier}",
                lfs_missing=lfs_missing,
                repository=identifier.full_name,
                stderr=stderr
            ) from e
        except (GitError, OSError) as e:
            raise LfsError(
                f"Exception pulling LFS objects for {identifier}: {self._redact(str(e))}",
                repository=identifier.full_name
            ) from e

    def _run_post_clone_steps(
        self,
        local_path: Path,
        identifier: RepositoryIdentifier,
        options: CloneOptions,
        outcome: CloneOutcome
    ) -> None:
        """Run each enabled post-clone step; a failing step never blocks the others."""
        scaffold = self.config.scaffold
        package_name = package_name_for(identifier.folder_name, scaffold.exclude_string)

        steps = [("license", lambda: self.rename_license_file(local_path))]
        if options.create_assembly_definition:
            steps.append(("assembly_definition", lambda: write_assembly_definition(
                local_path, package_name, scaffold.organization_name)))
        if options.create_package_manifest:
            steps.append(("package_manifest", lambda: write_package_manifest(
                local_path, manifest_from_config(package_name, scaffold))))
        if options.copy_template_files:
            steps.append(("template_files", lambda: copy_template_files(options.template_folder, local_path)))

        for step_name, step in steps:
            try:
                step()
            except (ScaffoldError, OSError) as e:
                logger.error(f"Post-clone step {step_name} failed for {identifier}: {e}")
                outcome.warnings.append(f"{step_name}: {e}")

    def rename_license_file(self, repo_path: Union[str, Path]) -> Optional[Path]:
        """
        Rename an extension-less ``LICENSE`` file to ``LICENSE.md``.

        Returns:
            The new path, or None if there was nothing to rename

        Raises:
            ScaffoldError: If the rename fails
        """
        license_path = Path(repo_path) / LICENSE_FILENAME
        if not license_path.is_file() or license_path.suffix:
            return None

        new_path = license_path.with_name(LICENSE_FILENAME + LICENSE_EXTENSION)
        if new_path.exists():
            raise ScaffoldError(
                f"Cannot rename {LICENSE_FILENAME}: {new_path.name} already exists",
                step="license",
                file_path=str(new_path)
            )

        try:
            license_path.rename(new_path)
        except OSError as e:
            raise ScaffoldError(
                f"Failed to rename {LICENSE_FILENAME} file",
                step="license",
                file_path=str(license_path),
                cause=e
            ) from e

        logger.info(f"Renamed {LICENSE_FILENAME} to {new_path.name} in {Path(repo_path).name}")
        return new_path
