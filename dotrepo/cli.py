from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from dotrepo.context import WorkspaceSession
    from dotrepo.settings import DotrepoSettings


class _Options:
    """Global options shared by every command."""

    def __init__(self, workspace: Path, settings: DotrepoSettings) -> None:
        self.workspace = workspace
        self.settings = settings


pass_options = click.make_pass_decorator(_Options)


@click.group()
@click.option(
    "--workspace",
    "-w",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    show_default=True,
    help="Workspace root (the directory holding dotrepo.json).",
)
@click.option("--ci", is_flag=True, default=False, help="Non-interactive run: no colors, no prompts.")
@click.pass_context
def main(ctx: click.Context, workspace: Path, ci: bool) -> None:
    """dotrepo - monorepo tooling for .NET workspaces."""
    import os

    from dotrepo.log import setup_logging
    from dotrepo.settings import get_settings

    settings = get_settings()
    if ci or os.environ.get("CI", "").lower() in ("1", "true"):
        settings = settings.model_copy(update={"ci": True})
    setup_logging(settings.log_level, colorize=False if settings.ci else None)

    ctx.obj = _Options(workspace, settings)


# ---------------------------------------------------------------------------
# Command runner
# ---------------------------------------------------------------------------


def _run(
    options: _Options,
    action: Callable[[WorkspaceSession], Awaitable[object]],
    *,
    create_config: bool = False,
) -> object:
    """Load the workspace, run ``action`` against it and map failures to exit codes."""
    import anyio
    import httpx
    from loguru import logger

    from dotrepo.context import open_session
    from dotrepo.execution.mode import ModeError
    from dotrepo.execution.process import ToolError
    from dotrepo.execution.release import ReleaseError
    from dotrepo.graph.graph import CycleError
    from dotrepo.managers.config import ConfigurationError
    from dotrepo.managers.projects import ProjectParseError, ProjectRewriteError
    from dotrepo.managers.versions import InvalidVersionError

    async def _main() -> object:
        session = await open_session(options.workspace, settings=options.settings, create_config=create_config)
        return await action(session)

    try:
        return anyio.run(_main)
    except ToolError as exc:
        logger.error("{}", exc)
        if exc.output:
            logger.error("{}", exc.output.rstrip())
        raise SystemExit(exc.exit_code or 1) from None
    except ProjectRewriteError as exc:
        logger.error("{}", exc)
        logger.error("Fix the cause and rerun the same command, it is safe to repeat.")
        raise SystemExit(1) from None
    except (
        ConfigurationError,
        CycleError,
        InvalidVersionError,
        ModeError,
        ProjectParseError,
        ReleaseError,
        httpx.HTTPError,
    ) as exc:
        logger.error("{}", exc)
        raise SystemExit(1) from None


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@main.command()
@pass_options
def init(options: _Options) -> None:
    """Create dotrepo.json (unless present) and prepare the local package feed."""
    from dotrepo.managers.nuget import prepare_projects

    async def _init(session: WorkspaceSession) -> None:
        await prepare_projects(
            session.projects,
            session.root,
            session.config,
            staging_dir=session.settings.staging_dir,
        )

    _run(options, _init, create_config=True)
    click.echo(f"Workspace initialised at {options.workspace.resolve()}")


@main.command()
@pass_options
def build(options: _Options) -> None:
    """Build and pack every project in dependency order."""
    from dotrepo.execution.build import build_workspace

    result = _run(options, build_workspace)
    click.echo(f"Built {len(result.built)} projects in {result.duration_ms}ms.")


@main.command()
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Download the rendered graph image to this file.",
)
@pass_options
def graph(options: _Options, output: Path | None) -> None:
    """Print the project dependency graph as mermaid."""
    from dotrepo.graph.graphics import get_graph_image_url, save_graph_image

    async def _graph(session: WorkspaceSession) -> str:
        diagram = session.graph.to_mermaid()
        if output is not None:
            await save_graph_image(diagram, output)
        return diagram

    diagram = _run(options, _graph)
    click.echo(diagram, nl=False)
    click.echo(get_graph_image_url(diagram))
    if output is not None:
        click.echo(f"Saved graph image to {output}")


@main.command("start-development")
@pass_options
def start_development(options: _Options) -> None:
    """Switch local package references to project references."""
    from dotrepo.execution.mode import enter_development

    _run(options, enter_development)
    click.echo("Development mode started.")


@main.command("stop-development")
@pass_options
def stop_development(options: _Options) -> None:
    """Switch local project references back to pinned package references."""
    from dotrepo.execution.mode import exit_development

    _run(options, exit_development)
    click.echo("Development mode stopped.")


main.add_command(start_development, "start")
main.add_command(start_development, "dev")
main.add_command(stop_development, "stop")


@main.command()
@click.argument("bump")
@click.option("--yes", "-y", is_flag=True, default=False, help="Do not ask for confirmation.")
@click.option("--preid", default="rc", show_default=True, help="Prerelease identifier for the pre* keywords.")
@click.option(
    "--git-tag-version/--no-git-tag-version",
    "commit_and_tag",
    default=True,
    show_default=True,
    help="Commit the bump and tag it v{version}.",
)
@click.option("--push/--no-push", default=True, show_default=True, help="Push the commit and tag.")
@click.option("--git-remote", default="origin", show_default=True, help="Remote to push to.")
@click.option("--message", "-m", default=None, help="Commit message. %s is replaced by the tag, %v by the version.")
@pass_options
def version(
    options: _Options,
    bump: str,
    yes: bool,
    preid: str,
    commit_and_tag: bool,
    push: bool,
    git_remote: str,
    message: str | None,
) -> None:
    """Bump the workspace version, then commit, tag and push it.

    BUMP is an explicit version or one of major, premajor, minor, preminor,
    patch, prepatch, prerelease.
    """
    from dotrepo.execution.release import ReleaseOptions, release_version

    release = ReleaseOptions(
        commit_and_tag=commit_and_tag,
        push=push,
        remote=git_remote,
        message=message,
        preid=preid,
    )

    async def _version(session: WorkspaceSession) -> str | None:
        def _confirm(current: str, target: str) -> bool:
            click.echo("\nChanges:")
            for project in session.projects.values():
                click.echo(f" - {project.id}: {project.version} => {target}")
            click.echo("")
            return click.confirm(f"Bump version {current} -> {target}?", default=True)

        interactive = not (yes or options.settings.ci)
        return await release_version(session, bump, release, confirm=_confirm if interactive else None)

    new_version = _run(options, _version)
    if new_version is None:
        click.echo("Aborted.")
        return
    click.echo(f"Workspace version is now {new_version}.")


if __name__ == "__main__":
    main()
