#!/usr/bin/env python3

"""
Stack Selection CLI for Terramate Projects

Thin command line shell around the selection core: it parses flags, builds
the invocation context and prints the result. All selection logic lives in
pure functions, all I/O in the project, git and cloud layers.
"""

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List

import click

from .cloud_client import CloudClient, CloudStatusSource
from .credentials import load_credential
from .environment import EnvironmentConfig
from .exceptions import ConfigurationError, SelectorError
from .health_filter import StackStatusSource, parse_status_filter
from .models import FilterCriteria, RemoteStackStatus, split_tag_values
from .project import Project
from .stack_selector import select_stacks
from .utils import parse_log_level, setup_logging


@dataclass
class CliContext:
    """State shared by all commands of one invocation."""
    wd: Path
    env: EnvironmentConfig


def _fail(error: Exception) -> None:
    click.echo(f"Error: {error}", err=True)
    sys.exit(1)


class _EnvStatusSource:
    """Cloud status source configured from the environment.

    Credentials are loaded when records are first requested.
    """

    def __init__(self, env: EnvironmentConfig):
        self.env = env

    def list_stacks(self) -> List[RemoteStackStatus]:
        credential = load_credential(self.env)
        client = CloudClient(self.env.cloud_api_url, credential)
        return CloudStatusSource(client, organization=self.env.cloud_organization).list_stacks()


def _status_source(env: EnvironmentConfig) -> StackStatusSource:
    return _EnvStatusSource(env)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("-C", "--chdir", "chdir", default=".", type=click.Path(file_okay=False),
              help="Run as if started in this directory.")
@click.option("--log-level", "log_level", default=None,
              help="Log level (debug, info, warning, error). Defaults to TM_LOG_LEVEL or warning.")
@click.version_option(package_name="terramate-selector")
@click.pass_context
def cli(ctx: click.Context, chdir: str, log_level: str) -> None:
    """Select the Terramate stacks a command should act on."""
    env = EnvironmentConfig.from_env(os.environ)
    errors = env.validate()
    if errors:
        for error in errors:
            click.echo(f"Error: {error}", err=True)
        sys.exit(1)

    try:
        setup_logging(parse_log_level(log_level or env.log_level))
    except ValueError as e:
        _fail(ConfigurationError(str(e)))

    ctx.obj = CliContext(wd=Path(chdir), env=env)


@cli.command("list")
@click.option("--tags", "tags", multiple=True, help="Only stacks having all these tags (repeatable, comma separated).")
@click.option("--no-tags", "no_tags", multiple=True, help="Skip stacks having any of these tags (repeatable, comma separated).")
@click.option("--experimental-status", "status", default=None, help="Filter by cloud status; only 'unhealthy' is supported.")
@click.pass_obj
def list_cmd(obj: CliContext, tags, no_tags, status) -> None:
    """List the selected stacks, one path per line."""
    try:
        criteria = FilterCriteria(
            include_tags=split_tag_values(tags),
            exclude_tags=split_tag_values(no_tags),
            status=parse_status_filter(status),
        )
        project = Project.load(obj.wd)

        repository = ""
        status_source = None
        if criteria.status is not None:
            repository = project.normalized_repository()
            status_source = _status_source(obj.env)

        result = select_stacks(project.list_stacks(), criteria, repository, status_source)
    except SelectorError as e:
        _fail(e)

    click.echo(result.render(), nl=False)


@cli.command("git-base")
@click.option("--git-change-base", "git_change_base", default="",
              help="Use this revision instead of the computed one.")
@click.pass_obj
def git_base_cmd(obj: CliContext, git_change_base: str) -> None:
    """Check the repository and print the revision changes are compared against."""
    try:
        project = Project.load(obj.wd)
        project.check_repository()
        base = project.base_revision(git_change_base)
    except SelectorError as e:
        _fail(e)

    click.echo(base)


def main():
    """Main entry point."""
    cli(prog_name="terramate-selector")


if __name__ == "__main__":
    main()
