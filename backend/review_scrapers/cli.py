#!/usr/bin/env python3
"""
CLI for Review Scrape Orchestrator

Commands:
    validate  - Build and validate actor input for an identifier
    estimate  - Show the memory estimate admission control would use
    run       - Create and execute one scrape job against Apify

Usage:
    review-scrapers validate google ChIJN1t_tDeuEmsRUsoyG83frY4
    review-scrapers estimate google ChIJN1t_tDeuEmsRUsoyG83frY4 --max-reviews 500
    review-scrapers run booking team-1 https://www.booking.com/hotel/gb/x.html --business-id biz-1

Examples:
    # Initialization scrape (defaults to 1000 reviews)
    review-scrapers run google team-1 ChIJN1t_tDeuEmsRUsoyG83frY4 --init

    # Machine-readable output
    review-scrapers run facebook team-1 https://facebook.com/mypage --json
"""

import json
import logging
import sys

import click

from .actors import build_default_actors
from .apify_client import ApifyAPIError, ApifyClient
from .config import load_settings
from .errors import ActorInputError, ConfigError
from .models.job import Job, JobOptions
from .orchestrator import ReviewScrapeOrchestrator
from .persistence import InMemoryPersistenceGateway
from .platforms import PLATFORM_ALIASES, parse_platform

PLATFORM_CHOICES = sorted(set(PLATFORM_ALIASES) | {"google_maps"})


def _load_settings_or_exit(config_path):
    try:
        return load_settings(config_path)
    except ConfigError as e:
        click.secho(f"Config error: {e}", fg="red")
        sys.exit(1)


def _actor_and_input(settings, platform_name, identifier, max_reviews=None, init=False):
    platform = parse_platform(platform_name)
    actor = build_default_actors(None, settings)[platform]
    job = Job.create(platform, "cli", identifier, JobOptions(is_initialization=init, max_reviews=max_reviews))
    return actor, actor.build_input(job)


@click.group()
@click.version_option(version="1.0.0", prog_name="review-scrapers")
@click.option("--config", "config_path", type=click.Path(), default=None, help="YAML config path")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    help="Logging level",
)
@click.pass_context
def cli(ctx, config_path, log_level):
    """Review Scrape Orchestrator CLI - Run and inspect review scrape jobs."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


@cli.command()
@click.argument("platform", type=click.Choice(PLATFORM_CHOICES, case_sensitive=False))
@click.argument("identifier")
@click.pass_context
def validate(ctx, platform, identifier):
    """
    Build actor input and check it against the platform rules.

    PLATFORM: google, facebook, tripadvisor or booking
    IDENTIFIER: Place id, page id or URL
    """
    settings = _load_settings_or_exit(ctx.obj["config_path"])
    actor, actor_input = _actor_and_input(settings, platform, identifier)

    click.echo(json.dumps(actor_input, indent=2))
    try:
        payload = actor.prepare_payload(actor_input)
    except ActorInputError as e:
        click.secho(f"Invalid: {e}", fg="red")
        sys.exit(1)

    click.secho("Valid", fg="green", bold=True)
    click.echo(f"Actor {actor.actor_id} payload:")
    click.echo(json.dumps(payload, indent=2))


@cli.command()
@click.argument("platform", type=click.Choice(PLATFORM_CHOICES, case_sensitive=False))
@click.argument("identifier")
@click.option("--max-reviews", type=click.IntRange(min=1), default=None, help="Requested review count")
@click.option("--init", is_flag=True, help="Initialization scrape (larger default volume)")
@click.pass_context
def estimate(ctx, platform, identifier, max_reviews, init):
    """Show the memory estimate for a job."""
    settings = _load_settings_or_exit(ctx.obj["config_path"])
    actor, actor_input = _actor_and_input(settings, platform, identifier, max_reviews, init)

    click.echo(f"Platform:    {actor.platform.value}")
    click.echo(f"Max reviews: {actor_input['maxReviews']}")
    click.echo(f"Estimate:    {actor.get_memory_estimate(actor_input)}MB")
    click.echo(f"Budget:      {settings.memory_limit_mb}MB / {settings.max_concurrent_jobs} jobs")


@cli.command()
@click.argument("platform", type=click.Choice(PLATFORM_CHOICES, case_sensitive=False))
@click.argument("team_id")
@click.argument("identifier")
@click.option("--max-reviews", type=click.IntRange(min=1), default=None, help="Requested review count")
@click.option("--init", is_flag=True, help="Initialization scrape (larger default volume)")
@click.option("--business-id", default=None, help="Store results under this business id")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def run(ctx, platform, team_id, identifier, max_reviews, init, business_id, output_json):
    """
    Create and execute one scrape job.

    Results go to an in-memory gateway; without --business-id nothing is stored.
    """
    settings = _load_settings_or_exit(ctx.obj["config_path"])
    try:
        client = ApifyClient(
            token=settings.apify_token,
            base_url=settings.apify_base_url,
            run_timeout_secs=settings.run_timeout_secs,
        )
    except ApifyAPIError as e:
        click.secho(f"Error: {e}", fg="red")
        sys.exit(1)

    gateway = InMemoryPersistenceGateway()
    platform = parse_platform(platform)
    if business_id:
        gateway.register_profile(team_id, platform, business_id)

    orchestrator = ReviewScrapeOrchestrator.from_settings(settings, client, gateway)
    job = orchestrator.create_job(
        platform, team_id, identifier,
        JobOptions(
            is_initialization=init,
            max_reviews=max_reviews,
            max_retries=settings.default_max_retries,
        ),
    )
    result = orchestrator.execute_job(job)

    if output_json:
        click.echo(json.dumps({
            "result": result.to_dict(),
            "job": job.to_dict(),
            "statistics": orchestrator.get_job_statistics().to_dict(),
        }, indent=2, default=str))
    else:
        click.echo("=" * 60)
        click.secho("SCRAPE JOB", fg="cyan", bold=True)
        click.echo("=" * 60)
        click.echo(f"Job ID:   {job.id}")
        click.echo(f"Platform: {platform.value}")
        click.echo(f"Status:   {job.status.value}")
        click.echo(f"Time:     {result.processing_time_ms}ms")
        if result.success:
            click.secho(f"  Reviews processed: {result.reviews_processed}", fg="green")
            if business_id:
                click.echo(f"  Stored for business {business_id}: {len(gateway.reviews_for(business_id))}")
        else:
            click.secho(f"  Failed ({result.error_type.value}): {result.error}", fg="red")

    if not result.success:
        sys.exit(1)


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
