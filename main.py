import asyncio
import json

import click
from aiohttp import web

from core.http_api import create_app
from core.initialization import initialize_components, load_configuration


async def run_pipeline(env_path: str, source, strategy, broker, market_data) -> list:
    """
    Entrypoint coroutine for a single trading cycle.

    Loads the configuration, wires every provider into the registry and
    runs the pipeline once.  Names left unset fall back to the configured
    defaults.  Returns the settled orders as plain dicts.
    """
    config = load_configuration(env_path)
    components = initialize_components(config)
    defaults = components["defaults"]

    orders = await components["pipeline"].execute_full_pipeline(
        source or defaults["news_source"],
        strategy or defaults["strategy"],
        broker or defaults["broker"],
        market_data or defaults["market_data"],
    )
    return [o.model_dump(mode="json") for o in orders]


@click.group()
@click.option("--env-file", default="config.env", show_default=True, help="Path to the .env config")
@click.pass_context
def cli(ctx: click.Context, env_file: str) -> None:
    """News-driven crypto trading bot."""
    ctx.obj = {"env_file": env_file}


@cli.command()
@click.option("--source", default=None, help="News source name")
@click.option("--strategy", default=None, help="Strategy name")
@click.option("--broker", default=None, help="Broker name")
@click.option("--market-data", default=None, help="Market-data provider name")
@click.pass_context
def run(ctx: click.Context, source, strategy, broker, market_data) -> None:
    """Run one full pipeline cycle and print the resulting orders."""
    orders = asyncio.run(
        run_pipeline(ctx.obj["env_file"], source, strategy, broker, market_data)
    )
    click.echo(json.dumps(orders, indent=2))


@cli.command()
@click.option("--host", default=None, help="Bind address (defaults to API_HOST)")
@click.option("--port", default=None, type=int, help="Bind port (defaults to API_PORT)")
@click.pass_context
def serve(ctx: click.Context, host, port) -> None:
    """Serve the HTTP API."""
    config = load_configuration(ctx.obj["env_file"])
    components = initialize_components(config)
    default_host, default_port = components["config"].get_api_bind()
    app = create_app(components["registry"], components["pipeline"], components["defaults"])
    web.run_app(app, host=host or default_host, port=port or default_port)


def main():
    try:
        cli(standalone_mode=False)
    except click.ClickException as e:
        e.show()
        raise SystemExit(e.exit_code)
    except Exception as e:
        print(f"❌ Bot terminated due to error: {e}")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
