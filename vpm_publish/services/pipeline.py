"""Release pipeline: validate, package, publish and bump a package.

Usage:
    pipeline = ReleasePipeline(
        package_root,
        options=PublishOptions(listing_url="https://example.github.io/listing/"),
        console=RichConsole(),
        repo=Repository(package_root),
        host=GitHubReleaseHost(package_root),
    )
    match pipeline.publish(Terminal.PUBLISHED):
        case Ok(ctx):
            ...
        case Err(error):
            print_publish_error(error, console)

Every stage returns ``Result[None, PublishError]`` and the first Err ends
the run. Anything raised is a bug and propagates after teardown. Teardown
always runs: the archive handle is closed first, then the temp directory is
removed (kept for package-only runs so the archive can be inspected).
"""

from __future__ import annotations

import shutil
import tempfile
from collections.abc import Callable
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import Protocol
from zipfile import ZipFile

from vpm_publish.changelog.draft import (
    ChangelogDraft,
    commit_log_format,
    plan_draft,
    synthesize_draft,
)
from vpm_publish.changelog.parser import ChangelogEntry, utc_today, validate_top_entry
from vpm_publish.core.config import (
    CHANGELOG_FILE,
    DEFAULT_MAIN_BRANCH,
    RELEASE_NOTES_FILE,
    TEMP_DIR_PREFIX,
)
from vpm_publish.core.errors import PublishError
from vpm_publish.core.result import Err, Ok, Result
from vpm_publish.git.repository import GitError
from vpm_publish.manifest.model import PackageManifest, load_manifest, write_manifest
from vpm_publish.manifest.semver import SemVer
from vpm_publish.manifest.validate import UrlMismatch, match_download_url, validate_manifest
from vpm_publish.output.console import ConsoleProtocol
from vpm_publish.platform.files import atomic_write_text, read_text_exact
from vpm_publish.services.archive import (
    collect_package_files,
    format_checksum_tag_message,
    load_ignore_patterns,
    open_archive,
    sha256_file,
    write_archive,
)
from vpm_publish.services.notes import write_release_notes
from vpm_publish.services.release_host import ensure_tools_available
from vpm_publish.services.stages import (
    CHANGELOG_DRAFT_STAGES,
    NORMALIZE_STAGES,
    Stage,
    StageHandler,
    Terminal,
    run_stages,
    stages_until,
)

__all__ = [
    "PublishOptions",
    "ReleaseContext",
    "ReleaseHost",
    "ReleasePipeline",
    "VersionControl",
]


class VersionControl(Protocol):
    def current_branch(self) -> Result[str, GitError]: ...

    def status_lines(self) -> Result[list[str], GitError]: ...

    def fetch_dry_run(self) -> Result[None, GitError]: ...

    def tag_exists(self, tag: str) -> Result[bool, GitError]: ...

    def log_lines(
        self, pretty: str, *, since_tag: str | None = None
    ) -> Result[list[str], GitError]: ...

    def create_annotated_tag(self, tag: str, message: str) -> Result[None, GitError]: ...

    def push(self) -> Result[None, GitError]: ...

    def push_tags(self) -> Result[None, GitError]: ...

    def commit_all(self, message: str) -> Result[None, GitError]: ...


class ReleaseHost(Protocol):
    def ensure_auth(self) -> Result[None, PublishError]: ...

    def create_release(
        self, tag: str, archive: Path, notes_file: Path
    ) -> Result[None, PublishError]: ...


@dataclass(frozen=True, slots=True)
class PublishOptions:
    main_branch: str = DEFAULT_MAIN_BRANCH
    listing_url: str | None = None
    allow_dirty: bool = False


@dataclass(slots=True)
class ReleaseContext:
    """Per-run state, filled in stage by stage.

    Attributes:
        expected_date: UTC date captured once when the run starts.
        manifest: Loaded manifest (the bumped one after INCREMENT_VERSION).
        version: Parsed version of the manifest being released.
        changelog: Whole changelog text, None when the file is missing.
        entry: Validated top changelog entry.
        temp_dir: Working directory holding the archive and release notes.
        archive_path: The package zip inside temp_dir.
        archive: Open archive handle while the zip is being written.
        checksum: SHA-256 of the finished archive.
        notes_path: Release notes file inside temp_dir.
        draft: Changelog draft written by changelog_draft.
        manifest_path: package.json written by normalize_manifest.
    """

    expected_date: str
    manifest: PackageManifest | None = None
    version: SemVer | None = None
    changelog: str | None = None
    entry: ChangelogEntry | None = None
    temp_dir: Path | None = None
    archive_path: Path | None = None
    archive: ZipFile | None = None
    checksum: str | None = None
    notes_path: Path | None = None
    draft: ChangelogDraft | None = None
    manifest_path: Path | None = None

    @property
    def tag(self) -> str:
        if self.version is None:
            raise RuntimeError("manifest is not validated yet")
        return self.version.to_tag()

    def require_manifest(self) -> PackageManifest:
        if self.manifest is None:
            raise RuntimeError("manifest is not loaded yet")
        return self.manifest


def _git_failed(error: GitError, message: str | None = None) -> Err[PublishError]:
    return Err(
        PublishError(
            kind="process_failed",
            message=message or f"git {error.command} failed.",
            hint=error.describe(),
        )
    )


class ReleasePipeline:
    """Publish, changelog-draft and normalize runs for one package root.

    Attributes:
        package_root: Directory holding package.json; its name is the package name.
        options: Branch, listing URL and dirty-tree settings for the run.
        console: Operator output.
        repo: Git gateway rooted at package_root.
        host: Release host gateway.
    """

    def __init__(
        self,
        package_root: Path,
        *,
        options: PublishOptions,
        console: ConsoleProtocol,
        repo: VersionControl,
        host: ReleaseHost,
        ensure_tools: Callable[[], Result[None, PublishError]] = ensure_tools_available,
        today: Callable[[], str] = utc_today,
    ) -> None:
        self.package_root = package_root
        self.options = options
        self.console = console
        self.repo = repo
        self.host = host
        self._ensure_tools = ensure_tools
        self._today = today

    # -- entry points ---------------------------------------------------

    def publish(self, terminal: Terminal = Terminal.PUBLISHED) -> Result[ReleaseContext, PublishError]:
        if terminal == Terminal.PUBLISHED and not self.options.listing_url:
            return Err(
                PublishError(
                    kind="invalid_input",
                    message="A listing URL is required to publish a release.",
                    hint="Pass --listing-url or set listing_url in vpm-publish.toml.",
                )
            )

        ctx = ReleaseContext(expected_date=self._today())
        keep_temp_dir = terminal == Terminal.PACKAGED
        try:
            result = run_stages(stages_until(terminal), self._handlers(ctx))
        finally:
            self._teardown(ctx, keep_temp_dir=keep_temp_dir)
        if isinstance(result, Err):
            return result

        if terminal == Terminal.PACKAGED:
            self.console.print(f"Temp dir:       {ctx.temp_dir}")
            self.console.print(f"Package:        {ctx.archive_path}")
            self.console.print(f"Package sha256: {ctx.checksum}")
        elif terminal == Terminal.PUBLISHED:
            self.console.success(f"Published {ctx.tag}")
        else:
            self.console.success("Validation passed")
        return Ok(ctx)

    def changelog_draft(self) -> Result[ChangelogDraft, PublishError]:
        ctx = ReleaseContext(expected_date=self._today())
        handlers = self._handlers(ctx)
        handlers[Stage.PREFLIGHT] = partial(
            self._preflight, check_clean=not self.options.allow_dirty, probe_remote=False
        )
        handlers[Stage.LOAD_CHANGELOG] = partial(self._load_changelog, ctx, accept_missing=True)
        result = run_stages(CHANGELOG_DRAFT_STAGES, handlers)
        if isinstance(result, Err):
            return result
        if ctx.draft is None:
            raise RuntimeError("changelog draft stage did not produce a draft")
        return Ok(ctx.draft)

    def normalize_manifest(self) -> Result[Path, PublishError]:
        ctx = ReleaseContext(expected_date=self._today())
        result = run_stages(NORMALIZE_STAGES, self._handlers(ctx))
        if isinstance(result, Err):
            return result
        if ctx.manifest_path is None:
            raise RuntimeError("normalize did not write the manifest")
        return Ok(ctx.manifest_path)

    # -- wiring ---------------------------------------------------------

    def _handlers(self, ctx: ReleaseContext) -> dict[Stage, StageHandler]:
        return {
            Stage.PREFLIGHT: partial(self._preflight, check_clean=True, probe_remote=True),
            Stage.LOAD_MANIFEST: partial(self._load_manifest, ctx),
            Stage.VALIDATE_MANIFEST: partial(self._validate_manifest, ctx),
            Stage.ENSURE_NO_EXISTING_TAG: partial(self._ensure_no_existing_tag, ctx),
            Stage.LOAD_CHANGELOG: partial(self._load_changelog, ctx, accept_missing=False),
            Stage.VALIDATE_CHANGELOG: partial(self._validate_changelog, ctx),
            Stage.PREPARE_WORKSPACE: partial(self._prepare_workspace, ctx),
            Stage.BUILD_ARCHIVE: partial(self._build_archive, ctx),
            Stage.COMPUTE_CHECKSUM: partial(self._compute_checksum, ctx),
            Stage.WRITE_RELEASE_NOTES: partial(self._write_release_notes, ctx),
            Stage.CREATE_TAG: partial(self._create_tag, ctx),
            Stage.PUBLISH_RELEASE: partial(self._publish_release, ctx),
            Stage.INCREMENT_VERSION: partial(self._increment_version, ctx),
            Stage.DRAFT_CHANGELOG: partial(self._draft_changelog, ctx),
            Stage.WRITE_MANIFEST: partial(self._write_manifest, ctx),
        }

    def _teardown(self, ctx: ReleaseContext, *, keep_temp_dir: bool) -> None:
        if ctx.archive is not None:
            archive, ctx.archive = ctx.archive, None
            try:
                archive.close()
            except OSError as e:
                self.console.warning(f"failed to close the package archive: {e}")

        if ctx.temp_dir is None or keep_temp_dir or not ctx.temp_dir.exists():
            return
        self.console.info("Deleting the temp directory.")
        try:
            shutil.rmtree(ctx.temp_dir)
        except OSError as e:
            self.console.warning(f"failed to delete the temp directory {ctx.temp_dir}: {e}")

    # -- stages ---------------------------------------------------------

    def _preflight(self, *, check_clean: bool, probe_remote: bool) -> Result[None, PublishError]:
        self.console.info("Ensuring that 'git' and 'gh' (GitHub CLI) programs are available.")
        tools = self._ensure_tools()
        if isinstance(tools, Err):
            return tools

        self.console.info("Ensuring 'gh' is authenticated with github.com.")
        auth = self.host.ensure_auth()
        if isinstance(auth, Err):
            return auth

        main_branch = self.options.main_branch
        self.console.info(f"Ensuring the git branch '{main_branch}' is checked out.")
        branch = self.repo.current_branch()
        if isinstance(branch, Err):
            return _git_failed(branch.error)
        if branch.value != main_branch:
            return Err(
                PublishError(
                    kind="wrong_branch",
                    message=(
                        f"Must only publish from the '{main_branch}' branch, "
                        f"the currently checked out branch is '{branch.value}'."
                    ),
                    hint=f"Run 'git switch {main_branch}' or pass --main-branch.",
                )
            )

        if check_clean:
            self.console.info("Ensuring the git working tree is clean.")
            status = self.repo.status_lines()
            if isinstance(status, Err):
                return _git_failed(status.error)
            if status.value:
                return Err(
                    PublishError(
                        kind="dirty_tree",
                        message="The working tree must be clean, with no uncommitted changes.",
                        hint="Current changes:\n" + "\n".join(status.value),
                    )
                )

        if probe_remote:
            self.console.info("Ensuring the git remote for the current branch is reachable.")
            fetched = self.repo.fetch_dry_run()
            if isinstance(fetched, Err):
                return Err(
                    PublishError(
                        kind="remote_unreachable",
                        message=(
                            "Unable to reach the remote, make sure git authentication "
                            "(https or ssh) is set up correctly. If you are using ssh, make "
                            "sure to run 'ssh-add' if you haven't already this session."
                        ),
                        hint=fetched.error.describe(),
                    )
                )

        return Ok(None)

    def _load_manifest(self, ctx: ReleaseContext) -> Result[None, PublishError]:
        self.console.info("Loading the package.json.")
        loaded = load_manifest(self.package_root)
        if isinstance(loaded, Err):
            return loaded
        ctx.manifest = loaded.value
        return Ok(None)

    def _validate_manifest(self, ctx: ReleaseContext) -> Result[None, PublishError]:
        validated = validate_manifest(
            self.package_root, ctx.require_manifest(), console=self.console
        )
        if isinstance(validated, Err):
            return validated
        ctx.version = validated.value
        return Ok(None)

    def _ensure_no_existing_tag(self, ctx: ReleaseContext) -> Result[None, PublishError]:
        tag = ctx.tag
        self.console.info(f"Ensuring that the git tag '{tag}' doesn't already exist.")
        exists = self.repo.tag_exists(tag)
        if isinstance(exists, Err):
            return _git_failed(exists.error)
        if exists.value:
            return Err(
                PublishError(
                    kind="tag_exists",
                    message=(
                        f"The git tag '{tag}' already exists. If you are rerunning this program "
                        "after an error occurred, all you most likely have to do is run "
                        f"'git tag --delete {tag}' and, if it has already been pushed, also "
                        f"'git push origin :refs/tags/{tag}'."
                    ),
                    hint="See https://stackoverflow.com/questions/5480258/how-can-i-delete-a-remote-tag",
                )
            )
        return Ok(None)

    def _load_changelog(
        self, ctx: ReleaseContext, *, accept_missing: bool
    ) -> Result[None, PublishError]:
        path = self.package_root / CHANGELOG_FILE
        self.console.info("Loading the CHANGELOG.md.")
        if not path.is_file():
            if accept_missing:
                ctx.changelog = None
                return Ok(None)
            return Err(
                PublishError(
                    kind="missing_file",
                    message=(
                        "The CHANGELOG.md file should be directly inside the 'package-root'."
                    ),
                    hint="Run 'vpm-publish changelog-draft' to create one.",
                )
            )
        try:
            ctx.changelog = read_text_exact(path, encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as e:
            return Err(PublishError(kind="io_failed", message=f"Unable to read {path}: {e}"))
        return Ok(None)

    def _validate_changelog(self, ctx: ReleaseContext) -> Result[None, PublishError]:
        if ctx.changelog is None:
            raise RuntimeError("changelog is not loaded yet")
        validated = validate_top_entry(
            ctx.changelog, ctx.require_manifest(), ctx.expected_date, console=self.console
        )
        if isinstance(validated, Err):
            return validated
        ctx.entry = validated.value
        return Ok(None)

    def _prepare_workspace(self, ctx: ReleaseContext) -> Result[None, PublishError]:
        self.console.info(
            "Creating folder in the system's temp directory and creating the zip file inside."
        )
        try:
            ctx.temp_dir = Path(tempfile.mkdtemp(prefix=TEMP_DIR_PREFIX))
            ctx.archive_path = ctx.temp_dir / f"{ctx.require_manifest().name}.zip"
            ctx.archive = open_archive(ctx.archive_path)
        except OSError as e:
            return Err(
                PublishError(kind="io_failed", message=f"Unable to create the package zip: {e}")
            )
        ctx.notes_path = ctx.temp_dir / RELEASE_NOTES_FILE
        return Ok(None)

    def _build_archive(self, ctx: ReleaseContext) -> Result[None, PublishError]:
        self.console.info("Adding all files from the package to the zip archive.")
        if ctx.archive is None:
            raise RuntimeError("archive is not open")
        try:
            patterns = load_ignore_patterns(self.package_root)
            files = collect_package_files(self.package_root, patterns)
            write_archive(ctx.archive, files)
        except OSError as e:
            return Err(
                PublishError(kind="io_failed", message=f"Unable to write the package zip: {e}")
            )
        ctx.archive = None
        return Ok(None)

    def _compute_checksum(self, ctx: ReleaseContext) -> Result[None, PublishError]:
        self.console.info("Calculating the sha256 checksum of the complete zip file.")
        if ctx.archive_path is None:
            raise RuntimeError("archive path is not set")
        try:
            ctx.checksum = sha256_file(ctx.archive_path)
        except OSError as e:
            return Err(
                PublishError(kind="io_failed", message=f"Unable to read the package zip: {e}")
            )
        return Ok(None)

    def _write_release_notes(self, ctx: ReleaseContext) -> Result[None, PublishError]:
        self.console.info("Generating release notes for the GitHub release.")
        if ctx.notes_path is None or ctx.entry is None or ctx.checksum is None:
            raise RuntimeError("release notes inputs are missing")
        written = write_release_notes(
            ctx.notes_path,
            listing_url=self.options.listing_url or "",
            entry=ctx.entry,
            sha256=ctx.checksum,
        )
        if isinstance(written, Err):
            return written
        return Ok(None)

    def _create_tag(self, ctx: ReleaseContext) -> Result[None, PublishError]:
        tag = ctx.tag
        self.console.info(
            f"Creating the git tag '{tag}' with the sha256 checksum in its message, "
            "for listing generation."
        )
        if ctx.checksum is None:
            raise RuntimeError("checksum is not computed")
        created = self.repo.create_annotated_tag(tag, format_checksum_tag_message(ctx.checksum))
        if isinstance(created, Err):
            return _git_failed(created.error, f"Failed to create the git tag '{tag}'.")
        return Ok(None)

    def _publish_release(self, ctx: ReleaseContext) -> Result[None, PublishError]:
        # Pushing the branch keeps the tag from being ahead of the main branch.
        self.console.info("Pushing the current branch and pushing tags.")
        pushed = self.repo.push()
        if isinstance(pushed, Err):
            return _git_failed(pushed.error, "Failed to push the current branch.")
        pushed = self.repo.push_tags()
        if isinstance(pushed, Err):
            return _git_failed(pushed.error, "Failed to push tags.")

        self.console.info("Creating the GitHub release with the zip file and release notes attached.")
        if ctx.archive_path is None or ctx.notes_path is None:
            raise RuntimeError("release assets are missing")
        return self.host.create_release(ctx.tag, ctx.archive_path, ctx.notes_path)

    def _increment_version(self, ctx: ReleaseContext) -> Result[None, PublishError]:
        self.console.info(
            "Incrementing version (including url and changelogUrl) in package.json "
            "and creating a commit locally."
        )
        if ctx.version is None:
            raise RuntimeError("version is not validated")
        next_version = str(ctx.version.next_patch())
        bumped = ctx.require_manifest().with_version(next_version)
        written = write_manifest(self.package_root, bumped)
        if isinstance(written, Err):
            return written
        ctx.manifest = bumped

        committed = self.repo.commit_all(f"Move to version `v{next_version}`")
        if isinstance(committed, Err):
            return _git_failed(committed.error, "Failed to commit the version increment.")
        return Ok(None)

    def _draft_changelog(self, ctx: ReleaseContext) -> Result[None, PublishError]:
        manifest = ctx.require_manifest()
        planned = plan_draft(ctx.changelog, manifest)
        if isinstance(planned, Err):
            return planned
        url_match = match_download_url(manifest.url)
        if isinstance(url_match, UrlMismatch):
            raise RuntimeError("manifest url was not validated")

        last = planned.value.last_version
        if last is None:
            self.console.info("Generating a changelog draft from the whole git history.")
        else:
            self.console.info(f"Generating a changelog draft from the commits since 'v{last}'.")
        log = self.repo.log_lines(
            commit_log_format(url_match.user, url_match.repo),
            since_tag=None if last is None else f"v{last}",
        )
        if isinstance(log, Err):
            return _git_failed(log.error, "Failed to read the git log.")

        drafted = synthesize_draft(ctx.changelog, manifest, log.value, ctx.expected_date)
        if isinstance(drafted, Err):
            return drafted

        path = self.package_root / CHANGELOG_FILE
        try:
            atomic_write_text(path, drafted.value.text)
        except OSError as e:
            return Err(PublishError(kind="io_failed", message=f"Unable to write {path}: {e}"))
        ctx.draft = drafted.value

        self.console.success(f"Wrote the changelog draft for v{manifest.version} to {path}")
        self.console.print(
            f"Suggested commit message: {drafted.value.commit_message}",
        )
        return Ok(None)

    def _write_manifest(self, ctx: ReleaseContext) -> Result[None, PublishError]:
        self.console.info("Serializing package.json data and writing back to the file.")
        written = write_manifest(self.package_root, ctx.require_manifest())
        if isinstance(written, Err):
            return written
        ctx.manifest_path = written.value
        return Ok(None)
