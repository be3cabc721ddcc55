"""
Vortex CLI - Command line interface for running digest jobs.

Usage:
    vortex --help              Show all commands
    vortex run-hour            Run the digest pass for the current UTC hour
    vortex run-hour --hour 1   Run the digest pass for UTC hour 1
    vortex trigger USER_ID     Generate and send one user's digest now
    vortex test-grounding      Check the content provider connection
"""

import asyncio

import typer

app = typer.Typer(
    name="vortex",
    help="Vortex CLI - Job runner for scheduled digests",
    no_args_is_help=True,
)


# --- Step printer helpers ---


def _print_success(message: str) -> None:
    """Print a success message."""
    typer.echo(f"  ✅ {message}")


def _print_warning(message: str) -> None:
    """Print a warning message."""
    typer.echo(f"  ⚠️ {message}")


def _print_error(message: str) -> None:
    """Print an error message to stderr."""
    typer.echo(f"❌ {message}", err=True)


@app.command("run-hour")
def run_hour(
    hour: int | None = typer.Option(
        None, "--hour", "-H", min=0, max=23, help="UTC hour to run (defaults to now)"
    ),
):
    """Run the digest pass for one UTC hour."""
    from vortex.jobs.hourly import main

    result = asyncio.run(main(hour=hour))

    _print_success(f"Delivered: {result.success_count}")
    if result.skipped_count:
        _print_warning(f"Skipped (already sent today): {result.skipped_count}")
    if result.failed_count:
        _print_error(f"Failed: {result.failed_count}")
        raise typer.Exit(1)


@app.command()
def trigger(user_id: str = typer.Argument(..., help="User to send a digest to")):
    """Generate and send one user's digest, ignoring the schedule."""
    from vortex.core.exceptions import SettingsNotFoundError
    from vortex.core.logging import setup_logging
    from vortex.services.digest_scheduler import get_orchestrator

    setup_logging()

    async def run() -> bool:
        orchestrator = get_orchestrator()
        try:
            return await orchestrator.trigger_for_user(user_id)
        finally:
            await orchestrator.store.close()

    try:
        delivered = asyncio.run(run())
    except SettingsNotFoundError as e:
        _print_error(str(e))
        raise typer.Exit(1)

    if delivered:
        _print_success(f"Digest delivered to {user_id}")
    else:
        _print_error(f"Digest generation failed for {user_id}, see logs")
        raise typer.Exit(1)


@app.command("test-grounding")
def test_grounding():
    """Ask the grounding provider a short question to check the connection."""
    from vortex.core.exceptions import DigestError
    from vortex.core.logging import setup_logging
    from vortex.services.grounding import GeminiGroundingProvider, get_content_provider

    setup_logging()

    provider = get_content_provider()
    if not isinstance(provider, GeminiGroundingProvider):
        _print_error("Provider does not support probing")
        raise typer.Exit(1)

    try:
        text = asyncio.run(provider.probe())
    except DigestError as e:
        _print_error(str(e))
        raise typer.Exit(1)

    _print_success("Grounding connection OK")
    typer.echo(text)


if __name__ == "__main__":
    app()
