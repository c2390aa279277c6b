# cli.py - Command line wrapper for sunbird-bulk
"""
sunbird-bulk CLI - Bulk provisioning for a Sunbird learning platform

COMMANDS:
    Phases:
        sunbird-bulk profiles                     Create and publish learner profiles
        sunbird-bulk enroll                       Enroll learners in their profiles' courses
        sunbird-bulk quizzes                      Create questions, then quizzes

    Other:
        sunbird-bulk init                         Write a sunbird.yaml template
        sunbird-bulk info                         Show resolved configuration
        sunbird-bulk version                      Show version information

EXAMPLES:
    # Create learner profiles, then enroll learners (two separate runs)
    sunbird-bulk profiles
    sunbird-bulk enroll

    # Same, with debug logging
    sunbird-bulk -v profiles

Each phase reads its CSV from the path in the configuration and writes
a status report into the reports directory.
"""

from pathlib import Path

import click

from sunbird_bulk import __version__
from sunbird_bulk import enrollments, learner_profiles, quizzes
from sunbird_bulk.config_utils import BulkConfig, create_config_template, get_config
from sunbird_bulk.errors import SunbirdBulkError
from sunbird_bulk.log_utils import mask_sensitive


# ============================================================================
# Click Group Setup
# ============================================================================

class BulkContext:
    """Shared context for CLI commands"""

    def __init__(self, verbose: int = 0):
        self.work_dir = Path.cwd()
        self.verbose = verbose

    def load_config(self) -> BulkConfig:
        try:
            return get_config(self.work_dir)
        except SunbirdBulkError as e:
            raise click.ClickException(e.message)


@click.group()
@click.option('--verbose', '-v', count=True, help='Show debug logging')
@click.pass_context
def cli(ctx, verbose):
    """
    sunbird-bulk - Bulk provisioning for Sunbird

    Creates learner profiles, enrollments and quizzes from CSV files.
    """
    ctx.obj = BulkContext(verbose)


# ============================================================================
# Phase Commands
# ============================================================================

@cli.command()
@click.pass_obj
def profiles(ctx: BulkContext):
    """
    Create learner profiles from the learner / course CSV

    Writes reports/learner-profile-status.csv and the course / batch
    mappings the enroll command needs.
    """
    learner_profiles.main(ctx.verbose)


@cli.command()
@click.pass_obj
def enroll(ctx: BulkContext):
    """
    Enroll learners in the courses of their learner profiles

    Run after `sunbird-bulk profiles`. Writes reports/enrollment-status.csv.
    """
    enrollments.main(ctx.verbose)


@cli.command('quizzes')
@click.pass_obj
def quizzes_command(ctx: BulkContext):
    """
    Create questions, then quizzes from them, and publish the quizzes

    Writes reports/questions_status.csv, reports/quiz_question_status.csv
    and reports/quiz_report.csv.
    """
    quizzes.main(ctx.verbose)


# ============================================================================
# Setup & Information
# ============================================================================

@cli.command()
@click.option('--force', is_flag=True, help='Overwrite an existing sunbird.yaml')
@click.pass_obj
def init(ctx: BulkContext, force: bool):
    """Write a sunbird.yaml template into the current directory"""
    target = ctx.work_dir / "sunbird.yaml"
    if target.exists() and not force:
        click.echo(f"[!] {target.name} already exists (use --force to overwrite)", err=True)
        raise SystemExit(1)
    target.write_text(create_config_template(), encoding="utf-8")
    click.echo(f"[v] Created: {target}")
    click.echo("[*] Put credentials in .env, not in sunbird.yaml")


@cli.command()
@click.pass_obj
def info(ctx: BulkContext):
    """
    Show resolved configuration

    Displays each setting with the place it came from. Secrets are masked.
    """
    config = ctx.load_config()

    click.echo("[list] sunbird-bulk configuration\n")
    click.echo("=" * 60)

    click.echo("\n[*] Remote API")
    click.echo("-" * 60)
    for name in ("base_url", "channel_id", "created_by", "client_id", "grant_type"):
        _show(config, name, getattr(config, name) or "Not set")
    for name in ("api_key", "username", "password", "client_secret"):
        value = getattr(config, name)
        _show(config, name, mask_sensitive(value) if value else "Not set")
    _show(config, "request_timeout", f"{config.request_timeout:g}s")
    _show(config, "wait_interval", f"{config.wait_interval:g}s")

    click.echo("\n[*] Files")
    click.echo("-" * 60)
    for name in ("learner_course_csv", "user_learner_csv", "question_csv", "quiz_csv"):
        path = getattr(config, name)
        marker = "" if path.exists() else "  (missing)"
        _show(config, name, f"{path}{marker}")
    for name in ("reports_dir", "data_dir", "env_file"):
        _show(config, name, getattr(config, name))


def _show(config: BulkConfig, name: str, value) -> None:
    click.echo(f"{name:<20} {value}  [{config.source_of(name)}]")


# ============================================================================
# Version
# ============================================================================

@cli.command()
def version():
    """Show sunbird-bulk version"""
    click.echo(f"sunbird-bulk v{__version__}")
    click.echo("Bulk provisioning for Sunbird learning platforms")


# ============================================================================
# Entry Point
# ============================================================================

if __name__ == '__main__':
    cli()
