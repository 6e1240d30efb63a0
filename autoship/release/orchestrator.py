"""Release orchestration.

`ReleaseOrchestrator` sequences a run through

    IDLE -> CONFIG_READY -> VERSION_COMPUTED -> CHANGELOG_GENERATED
         -> PUBLISHED -> RELEASED        (base branch)
         -> CANARY_PUBLISHED             (any other branch)
         -> DONE

calling the extension points of `ReleaseHooks` at fixed positions. Every
step returns a Result; the first Err ends the run and nothing already done on
the hosting platform is rolled back.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum, auto
from pathlib import Path

from autoship.core.result import Err, Ok, Result
from autoship.git.repository import Repository
from autoship.hooks.points import ReleaseHooks
from autoship.output.console import ConsoleProtocol, Style
from autoship.release.canary import canary_identifier, suffix_for
from autoship.release.changelog import ChangelogGenerator, add_to_changelog
from autoship.release.ci import CiContext
from autoship.release.comments import upsert_body_section
from autoship.release.config import AutoConfig
from autoship.release.errors import ReleaseError
from autoship.release.hosting import HostingClient
from autoship.release.log import CommitLog
from autoship.release.model import (
    AfterRelease,
    CanaryFailure,
    ChangelogLifecycle,
    Commit,
    NotesDraft,
    ReleaseBump,
    ReleaseContext,
    ReleaseInfo,
    RepoIdentity,
)
from autoship.release.semver import (
    bump_for_commits,
    compute_bump,
    increment,
    is_prerelease,
    parse_version,
    prefix_release,
)

_BARE_VERSION_RE = re.compile(r"^\d+\.\d+\.\d+")

DEFAULT_CANARY_MESSAGE = "Published PR with canary version: %v"
CANARY_BODY_CONTEXT = "canary-version"


class RunState(Enum):
    IDLE = auto()
    CONFIG_READY = auto()
    VERSION_COMPUTED = auto()
    CHANGELOG_GENERATED = auto()
    PUBLISHED = auto()
    RELEASED = auto()
    CANARY_PUBLISHED = auto()
    DONE = auto()


@dataclass(frozen=True, slots=True)
class Collaborators:
    hosting: HostingClient
    log: CommitLog
    changelog: ChangelogGenerator


Connect = Callable[[AutoConfig, RepoIdentity], Collaborators]


@dataclass(frozen=True, slots=True)
class PublishInfo:
    new_version: str | None
    commits: tuple[Commit, ...] = ()


@dataclass(frozen=True, slots=True)
class ChangelogOptions:
    from_ref: str | None = None
    to_ref: str | None = None
    message: str | None = None


@dataclass(frozen=True, slots=True)
class ReleaseOptions:
    from_ref: str | None = None
    use_version: str | None = None


@dataclass(frozen=True, slots=True)
class CanaryOptions:
    request: int | None = None
    build: str | None = None
    message: str | None = None


def _not_loaded() -> RuntimeError:
    return RuntimeError("orchestrator is not loaded; call load() first")


@dataclass
class ReleaseOrchestrator:
    """One command invocation worth of release state.

    Plugins are applied to `hooks` before `load()`; they reach the hosting
    client and configuration through this object at call time.
    """

    hooks: ReleaseHooks
    config: AutoConfig
    console: ConsoleProtocol
    repo: Repository
    ci: CiContext = field(default_factory=CiContext)
    dry_run: bool = False
    today: Callable[[], date] = date.today
    state: RunState = field(default=RunState.IDLE, init=False)
    transitions: list[RunState] = field(default_factory=list, init=False)
    identity: RepoIdentity | None = field(default=None, init=False)
    _collaborators: Collaborators | None = field(default=None, init=False, repr=False)
    _bump: ReleaseBump | None = field(default=None, init=False, repr=False)

    # Collaborators

    @property
    def hosting(self) -> HostingClient:
        if self._collaborators is None:
            raise _not_loaded()
        return self._collaborators.hosting

    @property
    def log(self) -> CommitLog:
        if self._collaborators is None:
            raise _not_loaded()
        return self._collaborators.log

    @property
    def changelog_generator(self) -> ChangelogGenerator:
        if self._collaborators is None:
            raise _not_loaded()
        return self._collaborators.changelog

    def _enter(self, state: RunState) -> None:
        self.state = state
        self.transitions.append(state)
        self.console.debug(f"state: {state.name.lower()}")

    def prefix_release(self, version: str) -> str:
        return prefix_release(version, no_version_prefix=self.config.no_version_prefix)

    # IDLE -> CONFIG_READY

    async def load(self, *, connect: Connect) -> Result[AutoConfig, ReleaseError]:
        """Let plugins amend the config, resolve the repository and connect."""
        config = self.hooks.modify_config.waterfall(self.config)
        conflict = config.labels.conflict()
        if conflict is not None:
            name, first, second = conflict
            return Err(
                ReleaseError(
                    kind="config_invalid",
                    message=f"label '{name}' is configured for both '{first}' and '{second}'",
                    hint="A plugin amended the labels through modify_config",
                )
            )
        self.config = config
        self.console.debug(f"loaded config: {config}")
        self.hooks.before_run.call(config)

        identity = await self._repository(config)
        if isinstance(identity, Err):
            return identity
        self.identity = identity.value

        self._collaborators = connect(config, identity.value)
        self._enter(RunState.CONFIG_READY)
        return Ok(config)

    async def _repository(self, config: AutoConfig) -> Result[RepoIdentity, ReleaseError]:
        if config.owner and config.repo:
            return Ok(RepoIdentity(owner=config.owner, repo=config.repo))

        found = await self.hooks.get_repository.bail()
        if isinstance(found, Err):
            return found
        if found.value is None:
            return Err(
                ReleaseError(
                    kind="config_invalid",
                    message="could not determine the repository owner and name",
                    hint="Set owner and repo in .autoshiprc.toml or pass --owner/--repo",
                )
            )
        identity = found.value
        self.config = replace(config, owner=identity.owner, repo=identity.repo)
        return Ok(identity)

    # Versions

    async def current_version(self, last_release: str) -> Result[str, ReleaseError]:
        """The project version: what plugins report, or the last release if newer."""
        reported = await self.hooks.get_previous_version.bail(self.prefix_release)
        if isinstance(reported, Err):
            return reported

        last_version = reported.value
        if last_version is None:
            self.console.debug("No previous release found, using 0.0.0 as previous version.")
            last_version = self.prefix_release("0.0.0")

        lr = parse_version(last_release)
        lv = parse_version(last_version)
        if lr is not None and lv is not None and lr > lv:
            self.console.debug("Using latest release as previous version")
            return Ok(last_release)
        return Ok(last_version)

    async def version(self, *, from_ref: str | None = None) -> Result[ReleaseBump | None, ReleaseError]:
        """Compute the bump for everything since the last release."""
        last_release = self._from_ref(from_ref)
        if isinstance(last_release, Err):
            return last_release

        bump = compute_bump(log=self.log, label_map=self.config.labels, last_release_ref=last_release.value)
        if isinstance(bump, Err):
            return bump
        self._bump = bump.value
        self._enter(RunState.VERSION_COMPUTED)
        return bump

    def _from_ref(self, from_ref: str | None) -> Result[str, ReleaseError]:
        if from_ref:
            return Ok(from_ref)
        return self.log.latest_release_ref()

    # VERSION_COMPUTED -> CHANGELOG_GENERATED

    async def changelog(self, options: ChangelogOptions = ChangelogOptions()) -> Result[str, ReleaseError]:
        """Generate release notes, prepend them to the changelog and commit."""
        last_release = self._from_ref(options.from_ref)
        if isinstance(last_release, Err):
            return last_release

        commits = self.log.commits_between(last_release.value, options.to_ref)
        if isinstance(commits, Err):
            return commits

        bump = bump_for_commits(commits.value, self.config.labels)
        self._bump = bump
        return await self._make_changelog(
            last_release=last_release.value,
            commits=tuple(commits.value),
            bump=bump,
            message=options.message,
        )

    async def _make_changelog(
        self,
        *,
        last_release: str,
        commits: tuple[Commit, ...],
        bump: ReleaseBump | None,
        message: str | None,
    ) -> Result[str, ReleaseError]:
        await self.set_git_user()

        notes = self.changelog_generator.generate(list(commits), last_release, bump)
        self.console.info("New Release Notes")
        self.console.print(notes, Style.DIM)

        if self.dry_run:
            self.console.debug("`changelog` dry run complete.")
            return Ok(notes)

        current = await self.current_version(last_release)
        if isinstance(current, Err):
            return current

        context = ReleaseContext(
            bump=bump,
            commits=commits,
            release_notes=notes,
            current_version=current.value,
            last_release=last_release,
        )
        lifecycle = ChangelogLifecycle(context=context, draft=NotesDraft(text=notes))

        before = await self.hooks.before_commit_changelog.promise(lifecycle)
        if isinstance(before, Err):
            return before

        title = current.value
        if bump is not None:
            title = increment(current.value, bump, no_version_prefix=self.config.no_version_prefix) or title

        path = self.repo.path / self.config.changelog_path
        written = add_to_changelog(path=path, notes=lifecycle.draft.text, version=title, today=self.today())
        if isinstance(written, Err):
            return written

        committed = self._commit_changelog(path, message or self.config.changelog_message)
        if isinstance(committed, Err):
            return committed
        self.console.debug("Committed new changelog.")

        after = await self.hooks.after_add_to_changelog.promise(lifecycle)
        if isinstance(after, Err):
            return after

        self._enter(RunState.CHANGELOG_GENERATED)
        return Ok(lifecycle.draft.text)

    def _commit_changelog(self, path: Path, message: str) -> Result[None, ReleaseError]:
        rel = str(path.relative_to(self.repo.path)) if path.is_relative_to(self.repo.path) else str(path)
        for step in (lambda: self.repo.add(rel), lambda: self.repo.commit(message)):
            done = step()
            if isinstance(done, Err):
                return Err(
                    ReleaseError(
                        kind="git_failed",
                        message=f"failed to commit {rel}",
                        hint=done.error.message,
                    )
                )
        return Ok(None)

    # CHANGELOG_GENERATED -> RELEASED

    async def release(
        self,
        options: ReleaseOptions = ReleaseOptions(),
        *,
        commits: tuple[Commit, ...] | None = None,
        notes: str | None = None,
    ) -> Result[str | None, ReleaseError]:
        """Create the hosting release for everything since the last release.

        Returns the released version, or None when nothing was released.
        """
        last = self._from_ref(options.from_ref)
        if isinstance(last, Err):
            return last
        last_release = last.value
        if _BARE_VERSION_RE.match(last_release):
            last_release = self.prefix_release(last_release)
        self.console.info(f"Last used release: {last_release}")

        if commits is None:
            found = self.log.commits_between(last_release)
            if isinstance(found, Err):
                return found
            commits = tuple(found.value)

        if notes is None:
            notes = self.changelog_generator.generate(list(commits), last_release, self._bump)
        self.console.debug(f"Using release notes:\n{notes}")

        raw_version = options.use_version
        if not raw_version:
            current = await self.current_version(last_release)
            if isinstance(current, Err):
                return current
            raw_version = current.value

        new_version = self.prefix_release(raw_version) if parse_version(raw_version) else raw_version

        if not self.dry_run and _same_version(new_version, last_release):
            self.console.warning(
                "Nothing released to GitHub. Version to be released is the same as "
                f"the latest release on GitHub: {new_version}"
            )
            return Ok(None)

        release: ReleaseInfo | None = None
        if self.dry_run:
            self.console.info(f"Would have released (unless ran with \"shipit\"): {new_version}")
        else:
            self.console.info(f"Releasing {new_version} to GitHub.")
            created = self.hosting.create_release(
                tag=new_version, notes=notes, prerelease=is_prerelease(new_version)
            )
            if isinstance(created, Err):
                return created
            release = created.value
            self._enter(RunState.RELEASED)

        announced = await self.hooks.after_release.promise(
            AfterRelease(
                last_release=last_release,
                new_version=new_version,
                commits=commits,
                release_notes=notes,
                release=release,
            )
        )
        if isinstance(announced, Err):
            return announced
        return Ok(new_version)

    async def _publish_latest(self) -> Result[PublishInfo | None, ReleaseError]:
        last = self.log.latest_release_ref()
        if isinstance(last, Err):
            return last
        last_release = last.value

        bump = await self.version(from_ref=last_release)
        if isinstance(bump, Err):
            return bump
        if bump.value is None:
            self.console.info("No version published.")
            return Ok(None)

        found = self.log.commits_between(last_release)
        if isinstance(found, Err):
            return found
        commits = tuple(found.value)

        notes = await self._make_changelog(
            last_release=last_release, commits=commits, bump=bump.value, message=None
        )
        if isinstance(notes, Err):
            return notes

        if not self.dry_run:
            stages = (
                (self.hooks.version, (bump.value,)),
                (self.hooks.after_version, ()),
                (self.hooks.publish, (bump.value,)),
                (self.hooks.after_publish, ()),
            )
            for point, args in stages:
                self.console.debug(f"Calling {point.name} hook")
                done = await point.promise(*args)
                if isinstance(done, Err):
                    return done
            self._enter(RunState.PUBLISHED)

        new_version = await self.release(
            ReleaseOptions(from_ref=last_release), commits=commits, notes=notes.value
        )
        if isinstance(new_version, Err):
            return new_version

        if self.dry_run:
            self.console.warning(
                "The version reported in the line above hasn't been incremented during `dry-run`"
            )
            current = await self.current_version(last_release)
            if isinstance(current, Err):
                return current
            would_be = increment(current.value, bump.value, no_version_prefix=self.config.no_version_prefix)
            if would_be is not None:
                self.console.warning(f"Published version would be: {would_be}")

        return Ok(PublishInfo(new_version=new_version.value, commits=commits))

    # CHANGELOG_GENERATED -> CANARY_PUBLISHED

    async def canary(self, options: CanaryOptions = CanaryOptions()) -> Result[PublishInfo | None, ReleaseError]:
        """Publish a uniquely suffixed test version through the `canary` hook."""
        if not self.hooks.canary.is_used():
            return Err(
                ReleaseError(
                    kind="canary_unsupported",
                    message="None of the plugins that you are using implement the `canary` command!",
                    hint=(
                        "Canary releases only make sense for package managers that support "
                        "them; enable a plugin that does."
                    ),
                )
            )

        sha = self.log.current_head_short_sha()
        if isinstance(sha, Err):
            return sha
        identifier = canary_identifier(
            ci=self.ci, short_sha=sha.value, request=options.request, build=options.build
        )
        self.console.debug(f"Canary info found: pr={identifier.request} build={identifier.build}")

        head = self.log.commits_between("HEAD^")
        if isinstance(head, Err):
            return head
        bump: ReleaseBump = bump_for_commits(head.value, self.config.labels) or "patch"
        suffix = suffix_for(identifier)

        new_version = ""
        if self.dry_run:
            self.console.warning(f'Published canary identifier would be: "-canary{suffix}"')
        else:
            self.console.debug("Calling canary hook")
            published = await self.hooks.canary.bail(bump, suffix)
            if isinstance(published, Err):
                return published
            if isinstance(published.value, CanaryFailure):
                self.console.warning(published.value.error)
                return Ok(None)

            new_version = published.value or ""
            message = options.message or DEFAULT_CANARY_MESSAGE
            if message != "false" and identifier.request is not None:
                shown = new_version if not new_version or "\n" in new_version else f"`{new_version}`"
                updated = upsert_body_section(
                    hosting=self.hosting,
                    number=identifier.request,
                    context=CANARY_BODY_CONTEXT,
                    message=message.replace("%v", shown),
                )
                if isinstance(updated, Err):
                    return updated

            self.console.success(f"Published canary version{': ' + new_version if new_version else ''}")
            self._enter(RunState.CANARY_PUBLISHED)

        latest = self.log.latest_release_ref()
        if isinstance(latest, Err):
            return latest
        commits = self.log.commits_between(latest.value)
        if isinstance(commits, Err):
            return commits
        return Ok(PublishInfo(new_version=new_version, commits=tuple(commits.value)))

    # Full run

    async def shipit(self, options: CanaryOptions = CanaryOptions()) -> Result[PublishInfo | None, ReleaseError]:
        """Version, changelog, publish and release on the base branch; canary elsewhere."""
        self.hooks.before_ship_it.call()

        branch = self.ci.branch or self.repo.current_branch()
        on_base = not self.ci.is_pr and branch == self.config.base_branch
        self.console.debug(f"branch: {branch} (base: {self.config.base_branch})")

        info = await (self._publish_latest() if on_base else self.canary(options))
        if isinstance(info, Err) or info.value is None:
            return info

        self.hooks.after_ship_it.call(info.value.new_version, info.value.commits)
        self._enter(RunState.DONE)
        return info

    # Git identity

    async def set_git_user(self) -> None:
        """Configure a git identity in CI when none is set. Never fails the run."""
        if self.repo.config_get("user.email") and self.repo.config_get("user.name"):
            return

        self.console.debug("Could not find git user or email configured in environment")
        if not self.ci.is_ci:
            self.console.info(
                "Detected local environment, will not set git user. If a command fails run: "
                'git config user.email your@email.com && git config user.name "Your Name"'
            )
            return

        email, name = self.config.email, self.config.name
        author = await self.hooks.get_author.bail()
        if isinstance(author, Err):
            self.console.warning(f"could not read package author: {author.error.pretty()}")
        elif author.value is not None:
            email = email or author.value.email
            name = name or author.value.name

        for key, value in (("user.email", email), ("user.name", name)):
            if not value:
                continue
            done = self.repo.config_set(key, value)
            if isinstance(done, Err):
                self.console.warning(f"could not set git {key}: {done.error.message}")
            else:
                self.console.debug(f"Set git {key} to {value}")


def _same_version(a: str, b: str) -> bool:
    if parse_version(a) is None or parse_version(b) is None:
        return False
    return a.lstrip("v") == b.lstrip("v")
