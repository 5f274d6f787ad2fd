"""Command-line interface for GraphiteTrust."""

import asyncio
import sys
from typing import Optional

import click

from graphite_trust.config.settings import GraphiteSettings
from graphite_trust.services.api_client import GraphiteAPIClient
from graphite_trust.services.queries import WalletQueries, is_address_ready, is_query_ready
from graphite_trust.services.query_cache import QueryClient
from graphite_trust.services.search_pipeline import SearchPipeline
from graphite_trust.services.wallet_dashboard import (
    Card,
    CardState,
    WalletDashboard,
    error_message,
)
from graphite_trust.utils.formatting import (
    compliance_label,
    kyc_label,
    trust_label,
)
from graphite_trust.utils.logging import setup_logging


def _run_with_queries(settings: GraphiteSettings, action):
    """Run ``action(queries)`` inside a fresh API client session."""

    async def runner():
        # One cache store per process, handed to everything that queries
        query_client = QueryClient.from_settings(settings)
        async with GraphiteAPIClient.from_settings(settings) as api:
            return await action(WalletQueries(api, query_client))

    return asyncio.run(runner())


def _echo_card(card: Card) -> None:
    click.echo(click.style(card.title, bold=True))

    if card.state != CardState.READY:
        click.echo(f"  {card.message}", err=card.state == CardState.ERROR)
        click.echo()
        return

    if card.headline:
        click.echo("  " + click.style(card.headline, fg=card.color))
    for row in card.rows:
        click.echo("  " + "  ".join(row))
    click.echo()


@click.group()
@click.option('--env-file', '-e', type=click.Path(exists=True),
              help='Path to a .env configuration file')
@click.option('--log-level', '-l', default=None,
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']),
              help='Logging level')
@click.pass_context
def cli(ctx, env_file: Optional[str], log_level: Optional[str]):
    """GraphiteTrust wallet trust and compliance dashboard."""
    ctx.ensure_object(dict)

    try:
        if env_file:
            settings = GraphiteSettings(_env_file=env_file)
        else:
            settings = GraphiteSettings()

        if log_level:
            settings.log_level = log_level

    except Exception as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        sys.exit(1)

    setup_logging(settings)
    ctx.obj['settings'] = settings


@cli.command()
@click.argument('address')
@click.pass_context
def wallet(ctx, address: str):
    """Show the trust, compliance and activity dashboard of a wallet."""
    settings = ctx.obj['settings']

    if not is_address_ready(address):
        click.echo("Address must be 42 characters long and start with 0x", err=True)
        sys.exit(1)

    view = _run_with_queries(
        settings,
        lambda queries: WalletDashboard(queries, page_size=settings.page_size).load(address)
    )

    click.echo(click.style(f"Wallet {view.address}", bold=True))
    click.echo()
    for card in view.cards:
        _echo_card(card)

    if any(card.state == CardState.ERROR for card in view.cards):
        sys.exit(1)


@cli.command()
@click.argument('query')
@click.pass_context
def search(ctx, query: str):
    """Search an entity and show the trust score of the first hit."""
    settings = ctx.obj['settings']

    if not is_query_ready(query):
        click.echo("Search query must not be empty", err=True)
        sys.exit(1)

    result = _run_with_queries(settings, lambda queries: SearchPipeline(queries).run(query))

    if result.search.is_error:
        click.echo(error_message("search results"), err=True)
        sys.exit(1)

    if not result.search_results:
        click.echo("No results found")
        return

    click.echo(click.style("Search Results", bold=True))
    for hit in result.search_results:
        click.echo(f"  {hit.name} [{hit.type}] {hit.description}")
    click.echo()

    if result.selected_address:
        click.echo(click.style(f"Trust Score of {result.selected_address}", bold=True))
        if result.trust_score.is_error:
            click.echo(f"  {error_message('trust score')}", err=True)
        elif result.trust_score.data:
            score = result.trust_score.data
            try:
                lines = [
                    f"  {trust_label(score.reputation)} (reputation {score.reputation})",
                    f"  {compliance_label(score.filter_level)}, KYC {kyc_label(score.kyc_level)}",
                ]
            except ValueError:
                click.echo(f"  {error_message('trust score')}", err=True)
                sys.exit(1)
            for line in lines:
                click.echo(line)
        if result.activity.is_error:
            click.echo(f"  {error_message('recent activity')}", err=True)

    if result.error is not None:
        sys.exit(1)


@cli.command('top-accounts')
@click.option('--offset', '-o', type=int, default=0, help='Ranking offset')
@click.option('--limit', '-n', type=int, default=10, help='Number of accounts')
@click.pass_context
def top_accounts(ctx, offset: int, limit: int):
    """Show accounts ranked by balance."""
    settings = ctx.obj['settings']

    result = _run_with_queries(settings, lambda queries: queries.top_accounts(offset=offset, limit=limit))
    card = WalletDashboard.top_accounts_card(result)

    if offset and card.state == CardState.READY:
        card.rows = [(str(int(row[0]) + offset),) + row[1:] for row in card.rows]

    _echo_card(card)

    if card.state == CardState.ERROR:
        sys.exit(1)


@cli.command()
@click.pass_context
def proxy(ctx):
    """Run the local CORS proxy."""
    import uvicorn

    from graphite_trust.proxy.server import create_app

    settings = ctx.obj['settings']

    uvicorn.run(
        create_app(settings),
        host=settings.proxy_host,
        port=settings.proxy_port,
        access_log=False,
        log_level=settings.log_level.lower()
    )


def main():
    cli(obj={})


if __name__ == '__main__':
    main()
