"""HTTP surface over the registry and the pipeline.

Endpoints (``?<name>=`` picks a provider, defaulting to the configured one):
  GET  /news                 - latest news             (source)
  POST /news/scrape          - same, as a trigger      (source)
  GET  /market/prices        - prices for symbols      (provider, symbols)
  GET  /market/price         - price for one symbol    (provider, symbol)
  GET  /market/providers     - registered market-data providers
  GET  /broker/portfolio     - balance snapshot        (brokerName)
  POST /broker/order         - place one order         (brokerName), body: Order
  POST /strategy/run         - run a strategy          (strategyName), body: DecisionContext
  POST /trade/execute        - full pipeline           (source, strategy, broker, marketData)

Unknown provider names and malformed bodies answer 400 with ``{"error": ...}``.
"""

from __future__ import annotations

from typing import Any, Dict, List

from aiohttp import web
from pydantic import BaseModel, ValidationError

from core.errors import ConfigurationError
from core.pipeline import TradingPipeline
from core.registry import CapabilityKind, CapabilityRegistry
from models.context import DecisionContext
from models.order import Order

REGISTRY_KEY = web.AppKey("registry", CapabilityRegistry)
PIPELINE_KEY = web.AppKey("pipeline", TradingPipeline)
DEFAULTS_KEY = web.AppKey("defaults", dict)


def create_app(
    registry: CapabilityRegistry,
    pipeline: TradingPipeline,
    defaults: Dict[str, str],
) -> web.Application:
    """Create the aiohttp web application."""
    app = web.Application(middlewares=[error_middleware])
    app[REGISTRY_KEY] = registry
    app[PIPELINE_KEY] = pipeline
    app[DEFAULTS_KEY] = dict(defaults)

    app.router.add_get("/news", handle_news)
    app.router.add_post("/news/scrape", handle_news)
    app.router.add_get("/market/prices", handle_prices)
    app.router.add_get("/market/price", handle_price)
    app.router.add_get("/market/providers", handle_providers)
    app.router.add_get("/broker/portfolio", handle_portfolio)
    app.router.add_post("/broker/order", handle_place_order)
    app.router.add_post("/strategy/run", handle_run_strategy)
    app.router.add_post("/trade/execute", handle_execute)
    return app


@web.middleware
async def error_middleware(request: web.Request, handler):
    try:
        return await handler(request)
    except ConfigurationError as exc:
        return web.json_response({"error": str(exc)}, status=400)
    except ValidationError as exc:
        return web.json_response({"error": exc.errors(include_url=False, include_context=False)}, status=400)
    except ValueError as exc:
        # malformed JSON body
        return web.json_response({"error": str(exc)}, status=400)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _resolve(request: web.Request, kind: CapabilityKind, param: str, default_key: str) -> Any:
    name = request.query.get(param) or request.app[DEFAULTS_KEY].get(default_key, "")
    return request.app[REGISTRY_KEY].resolve(kind, name)


def _dump(models: List[BaseModel]) -> List[Dict[str, Any]]:
    return [m.model_dump(mode="json") for m in models]


def _symbols(request: web.Request) -> List[str]:
    raw = request.query.getall("symbols", [])
    return [s.strip() for chunk in raw for s in chunk.split(",") if s.strip()]


# ---------------------------------------------------------------------------
# News / market data
# ---------------------------------------------------------------------------

async def handle_news(request: web.Request) -> web.Response:
    source = _resolve(request, CapabilityKind.NEWS_SOURCE, "source", "news_source")
    return web.json_response(_dump(await source.fetch_news()))


async def handle_prices(request: web.Request) -> web.Response:
    provider = _resolve(request, CapabilityKind.MARKET_DATA, "provider", "market_data")
    return web.json_response(await provider.get_prices(set(_symbols(request))))


async def handle_price(request: web.Request) -> web.Response:
    provider = _resolve(request, CapabilityKind.MARKET_DATA, "provider", "market_data")
    symbol = request.query.get("symbol")
    if not symbol:
        return web.json_response({"error": "symbol is required"}, status=400)
    return web.json_response(await provider.get_price(symbol))


async def handle_providers(request: web.Request) -> web.Response:
    return web.json_response(request.app[REGISTRY_KEY].names(CapabilityKind.MARKET_DATA))


# ---------------------------------------------------------------------------
# Broker / strategy / pipeline
# ---------------------------------------------------------------------------

async def handle_portfolio(request: web.Request) -> web.Response:
    broker = _resolve(request, CapabilityKind.BROKER, "brokerName", "broker")
    portfolio = await broker.get_portfolio()
    return web.json_response(portfolio.model_dump(mode="json"))


async def handle_place_order(request: web.Request) -> web.Response:
    broker = _resolve(request, CapabilityKind.BROKER, "brokerName", "broker")
    body = await request.json()
    if not isinstance(body, dict):
        return web.json_response({"error": "order body must be an object"}, status=400)
    # callers submit new orders only; status and ids are assigned here
    order = Order.model_validate(
        {k: v for k, v in body.items() if k in {"symbol", "type", "quantity", "price"}}
    )
    placed = await broker.place_order(order)
    return web.json_response(placed.model_dump(mode="json"))


async def handle_run_strategy(request: web.Request) -> web.Response:
    strategy = _resolve(request, CapabilityKind.STRATEGY, "strategyName", "strategy")
    context = DecisionContext.model_validate(await request.json())
    return web.json_response(_dump(await strategy.generate_signals(context)))


async def handle_execute(request: web.Request) -> web.Response:
    defaults = request.app[DEFAULTS_KEY]
    query = request.query
    orders = await request.app[PIPELINE_KEY].execute_full_pipeline(
        query.get("source") or defaults.get("news_source", ""),
        query.get("strategy") or defaults.get("strategy", ""),
        query.get("broker") or defaults.get("broker", ""),
        query.get("marketData") or defaults.get("market_data", ""),
    )
    return web.json_response(_dump(orders))
