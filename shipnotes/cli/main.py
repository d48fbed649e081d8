"""Main CLI entry point for Shipnotes."""

import logging
import sys
from datetime import datetime

import click

from .. import __version__
from ..config import (
    create_sample_config,
    get_settings,
    merge_configuration,
    parse_configuration,
    resolve_configuration,
)
from ..errors import ShipnotesError
from ..releasenote.builder import BuildResult, ReleaseNotesBuilder
from ..repositories import create_repository
from .output import set_output, write_output


@click.group()
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.version_option(version=__version__, prog_name="shipnotes")
@click.pass_context
def cli(ctx, debug):
    """Shipnotes - release notes from pull requests between two tags."""
    
    # Setup logging
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    
    ctx.ensure_object(dict)
    ctx.obj['logger'] = logging.getLogger('shipnotes')


def report(result: BuildResult) -> None:
    """Emit the action outputs for a finished run."""
    set_output('changelog', result.changelog)
    set_output('failed', 'true' if result.failed else 'false')
    if result.message:
        set_output('message', result.message)


@cli.command()
@click.option('--platform', help='Hosting platform: github or gitlab (default: github)')
@click.option('--token', help='API token (or SHIPNOTES_TOKEN)')
@click.option('--base-url', help='API base URL for self-hosted instances')
@click.option('--owner', help='Repository owner or group')
@click.option('--repo', help='Repository name')
@click.option('--from-tag', '-f', default='', help='Tag the release starts after (default: previous tag)')
@click.option('--to-tag', '-t', default='', help='Tag of the release (default: newest tag)')
@click.option('--include-open', is_flag=True, help='Add still open pull requests')
@click.option('--ignore-pre-releases', is_flag=True, help='Skip pre-release tags when picking the previous tag')
@click.option('--fail-on-error', is_flag=True, help='Abort without output on any API failure')
@click.option('--fetch-via-commits', is_flag=True, help='Find pull requests through merge commits')
@click.option('--fetch-release-information', is_flag=True, help='Fetch release name and body of the tag')
@click.option('--commit-mode', is_flag=True, help='Use commits instead of pull requests')
@click.option('--fetch-reviewers', is_flag=True, help='Fetch reviewers of every pull request')
@click.option('--configuration-json', help='Inline JSON configuration')
@click.option('--configuration', '-c', help='Path to JSON configuration file')
@click.option('--output-file', '-o', help='Write the release notes to this file')
@click.pass_context
def build(ctx, platform, token, base_url, owner, repo, from_tag, to_tag, include_open,
          ignore_pre_releases, fail_on_error, fetch_via_commits, fetch_release_information,
          commit_mode, fetch_reviewers, configuration_json, configuration, output_file):
    """Build release notes for a tag range."""
    logger = ctx.obj['logger']
    set_output('failed', 'false')

    try:
        settings = get_settings(platform=platform, token=token, base_url=base_url,
                                owner=owner, repo=repo, configuration=configuration)

        json_config = None
        if configuration_json and configuration_json.strip():
            json_config = parse_configuration(configuration_json)
            logger.info("Using configuration from --configuration-json")
        file_config = resolve_configuration(settings.configuration)
        if json_config is None and file_config is None:
            logger.info("No configuration provided, using defaults")
        config = merge_configuration(json_config, file_config)

        if not settings.owner or not settings.repo:
            raise ShipnotesError("Owner and repo are required. Use --owner/--repo or SHIPNOTES_OWNER/SHIPNOTES_REPO")

        repository = create_repository(settings.platform, settings.token, settings.owner,
                                       settings.repo, base_url=settings.base_url, logger=logger)

        result = ReleaseNotesBuilder(
            repository,
            config,
            from_tag=from_tag,
            to_tag=to_tag,
            include_open=include_open,
            fail_on_error=fail_on_error,
            ignore_pre_releases=ignore_pre_releases,
            fetch_via_commits=fetch_via_commits,
            fetch_release_information=fetch_release_information,
            commit_mode=commit_mode,
            fetch_reviewers=fetch_reviewers,
            logger=logger,
        ).build()
    except ShipnotesError as e:
        logger.error(f"Error: {e}")
        click.echo(f"Error: {e}", err=True)
        set_output('failed', 'true')
        set_output('message', str(e))
        ctx.exit(1)

    report(result)
    click.echo(result.changelog)

    if output_file:
        logger.debug("Writing the changelog to disk")
        try:
            path = write_output(output_file, result.changelog)
        except OSError as e:
            click.echo(f"Error writing to file {output_file}: {e}", err=True)
            ctx.exit(1)
        click.echo(f"Release notes saved to: {path}", err=True)

    if result.failed:
        click.echo(f"Warning: release notes are incomplete: {result.message}", err=True)


@cli.command()
@click.option('--path', '-p', default='shipnotes.json', help='Path for the config file')
def init_config(path):
    """Create a sample configuration file."""
    try:
        create_sample_config(path)
    except OSError as e:
        click.echo(f"Error creating config file: {e}", err=True)
        sys.exit(1)


@cli.command()
def version():
    """Show version information."""
    build_date = datetime.now().strftime('%Y-%m-%d')
    click.echo(f"Shipnotes version {__version__} (built {build_date})")


def main():
    """Main entry point for console script."""
    cli()


if __name__ == '__main__':
    main()
