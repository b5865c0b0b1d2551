"""CLI interface for humanqa."""

import click
import json
import logging
import sys
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union
from pydantic import ValidationError
from .errors import ApiError, AuthenticationFailed, TransportError
from .inputs import (
    API_KEY_HELP,
    parse_api_key,
    parse_max_extension,
    parse_output_schema,
    parse_screen_size,
)
from .models import JobRequest, JobStatusSnapshot, ScreenDimensions, ScreenPreset
from .poller import JobOrchestrator
from .report import failure_reason, outcome_outputs, render_summary, write_outputs
from .settings import CIContext, Settings
from .transport import ApiTransport


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )


def _parsed(parser: Callable[[Optional[str]], Any]):
    """Option callback running one of the input parsers."""
    def callback(ctx, param, value):
        return parser(value)
    return callback


def _describe_error(error: ApiError) -> str:
    """Error message with a hint on how to fix it."""
    message = str(error)
    if isinstance(error, TransportError):
        message += "\nCheck your api-url and network connectivity."
    elif isinstance(error, AuthenticationFailed):
        message += f"\nMake sure your RUNHUMAN_API_KEY is set correctly. {API_KEY_HELP}"
    return message


def _fail(message: str) -> None:
    click.echo(f"✗ {message}", err=True)
    sys.exit(1)


def _print_status_change(snapshot: JobStatusSnapshot, previous) -> None:
    click.echo(f"• Job status: {snapshot.status.value}")


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool):
    """humanqa - human-performed QA tests from the command line"""
    _configure_logging(verbose)


@cli.command()
@click.option("--api-key", help="API key (default: $RUNHUMAN_API_KEY)")
@click.option("--api-url", help="API base URL (default: $RUNHUMAN_API_URL or https://runhuman.com)")
@click.option("--url", required=True, help="URL to test")
@click.option("--description", required=True, help="What the tester should do")
@click.option("--output-schema", callback=_parsed(parse_output_schema),
              help="JSON object describing the data to extract")
@click.option("--target-duration-minutes", type=click.IntRange(1, 60), help="Target test duration (1-60)")
@click.option("--allow-duration-extension/--no-allow-duration-extension", default=None,
              help="Let the tester request more time")
@click.option("--max-extension-minutes", callback=_parsed(parse_max_extension),
              help='Extension cap in minutes, or "false" for no cap')
@click.option("--additional-validation-instructions", help="Extra instructions for validating results")
@click.option("--can-create-github-issues/--no-can-create-github-issues", default=None,
              help="Allow the service to open issues for findings")
@click.option("--repo", help="Repository name (default: $GITHUB_REPOSITORY)")
@click.option("--screen-size", callback=_parsed(parse_screen_size),
              help="desktop, laptop, tablet, mobile, WIDTHxHEIGHT or JSON")
@click.option("--fail-on-error/--no-fail-on-error", default=True, help="Exit 1 when the test does not pass")
@click.option("--output-file", type=click.Path(dir_okay=False, path_type=Path),
              help="Append outputs here (default: $GITHUB_OUTPUT)")
@click.option("--summary-file", type=click.Path(dir_okay=False, path_type=Path),
              help="Append the Markdown summary here (default: $GITHUB_STEP_SUMMARY, else stdout)")
def run(
    api_key: Optional[str],
    api_url: Optional[str],
    url: str,
    description: str,
    output_schema: Optional[Dict[str, Any]],
    target_duration_minutes: Optional[int],
    allow_duration_extension: Optional[bool],
    max_extension_minutes: Optional[Union[int, bool]],
    additional_validation_instructions: Optional[str],
    can_create_github_issues: Optional[bool],
    repo: Optional[str],
    screen_size: Optional[Union[ScreenPreset, ScreenDimensions]],
    fail_on_error: bool,
    output_file: Optional[Path],
    summary_file: Optional[Path],
):
    """Submit a QA test and wait for the tester's verdict.

    Example:
        humanqa run --url https://example.com --description "Log in and out"
    """
    settings = Settings()
    ci = CIContext()

    api_key = api_key or settings.api_key
    if not api_key:
        raise click.UsageError("Missing API key: pass --api-key or set RUNHUMAN_API_KEY")
    repo = repo or ci.repository
    if not repo:
        raise click.UsageError("Missing repository: pass --repo or set GITHUB_REPOSITORY")

    try:
        api_key = parse_api_key(api_key)
    except click.BadParameter as e:
        e.param_hint = "'--api-key'"
        raise

    try:
        request = JobRequest(
            url=url,
            description=description,
            repo_name=repo,
            output_schema=output_schema,
            target_duration_minutes=target_duration_minutes,
            allow_duration_extension=allow_duration_extension,
            max_extension_minutes=max_extension_minutes,
            additional_validation_instructions=additional_validation_instructions,
            can_create_github_issues=can_create_github_issues,
            screen_size=screen_size,
            metadata=ci.metadata(),
        )
    except ValidationError as e:
        raise click.UsageError(f"Invalid job request: {e}")

    base_url = api_url or settings.api_url
    config = settings.poll_config()
    click.echo(f"🚀 Testing URL: {url}")
    click.echo(f"⏱️  Target duration: {target_duration_minutes or 5} minutes")
    click.echo(f"🔗 API endpoint: {base_url}")

    try:
        with ApiTransport(base_url, api_key, timeout_seconds=config.request_timeout_seconds) as transport:
            orchestrator = JobOrchestrator(
                transport, config, on_status_change=_print_status_change
            )
            outcome = orchestrator.run(request)
    except ApiError as e:
        _fail(_describe_error(e))
        return

    output_file = output_file or (Path(ci.output) if ci.output else None)
    if output_file:
        write_outputs(output_file, outcome_outputs(outcome))

    summary = render_summary(outcome, url)
    summary_file = summary_file or (Path(ci.step_summary) if ci.step_summary else None)
    if summary_file:
        with open(summary_file, "a", encoding="utf-8") as f:
            f.write(summary)
    else:
        click.echo(summary)

    reason = failure_reason(outcome)
    if reason is None:
        click.echo("✓ Test passed successfully!")
    elif fail_on_error:
        _fail(reason)
    else:
        click.echo(f"⚠ {reason}")


@cli.command()
@click.argument("job_id")
@click.option("--api-key", help="API key (default: $RUNHUMAN_API_KEY)")
@click.option("--api-url", help="API base URL (default: $RUNHUMAN_API_URL or https://runhuman.com)")
def status(job_id: str, api_key: Optional[str], api_url: Optional[str]):
    """Show the current status of a job.

    Example:
        humanqa status job_123
    """
    settings = Settings()
    api_key = api_key or settings.api_key
    if not api_key:
        raise click.UsageError("Missing API key: pass --api-key or set RUNHUMAN_API_KEY")

    config = settings.poll_config()
    try:
        with ApiTransport(api_url or settings.api_url, api_key,
                          timeout_seconds=config.request_timeout_seconds) as transport:
            snapshot = JobOrchestrator(transport, config).fetch_status(job_id)
    except ApiError as e:
        _fail(_describe_error(e))
        return

    click.echo(json.dumps(snapshot.to_payload(), indent=2))


if __name__ == "__main__":
    cli()
