#!/usr/bin/env python3
"""
FastAPI Web Server for the FinePool Swap Risk Dashboard
Serves pool reads, quotes, risk analytics, chart series and swap execution
to the browser dashboard.
"""

import os
from collections import deque
from decimal import Decimal
from typing import Any, Deque, List, Optional

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from dex.adapters import create_ledger, quote_swap
from dex.config import DashboardConfig, load_config
from dex.executor import SwapAttempt, execute_swap, normalize_amount_in
from dex.impermanent_loss import impermanent_loss_curve, impermanent_loss_scenario
from dex.ledger import PoolLedger
from dex.lp_position import analyze_lp_for_wallet
from dex.price_impact import analyze_price_impact, classify_impact, price_impact_curve
from dex.slippage import slippage_bound
from dex.types import SwapDirection
from swap_risk.exceptions import (
    ApprovalFailed,
    ConfigurationError,
    InvalidInput,
    NoLiquidity,
    SwapRejected,
    SwapRiskError,
    TransportError,
    ZeroOutput,
)
from swap_risk.metrics import SwapMetrics
from swap_risk.utils import from_base_units, get_logger, to_base_units, to_decimal
from swap_risk.version import __version__

logger = get_logger(__name__)

CONFIG_ENV_VAR = "SWAP_RISK_CONFIG"

# Most specific first; InvalidSlippage is an InvalidInput
_STATUS_CODES = (
    (InvalidInput, 400),
    (NoLiquidity, 409),
    (ZeroOutput, 422),
    (SwapRejected, 409),
    (ApprovalFailed, 502),
    (TransportError, 502),
    (ConfigurationError, 503),
)


def status_code_for(error: SwapRiskError) -> int:
    for error_type, status in _STATUS_CODES:
        if isinstance(error, error_type):
            return status
    return 500


# Pydantic models for API requests and responses
class HealthResponse(BaseModel):
    status: str
    version: str
    mode: str
    pool_address: str
    signer: Optional[str] = None


class ReservesResponse(BaseModel):
    reserve0: str
    reserve1: str
    total_supply: str
    token0: str
    token1: str
    reserve0_formatted: float
    reserve1_formatted: float
    price_0to1: float
    price_1to0: float


class QuoteRequest(BaseModel):
    direction: str = "0to1"
    amount_in: str
    max_slippage_pct: Optional[float] = None
    human: bool = False


class QuoteResponse(BaseModel):
    direction: str
    amount_in: str
    amount_in_with_fee: str
    amount_out: str
    amount_out_formatted: float
    min_out: str
    slippage_bps: int
    max_slippage_pct: float
    spot_price: float
    execution_price: float
    price_impact_pct: float
    risk_tier: str
    fee_pct: float


class ImpermanentLossResponse(BaseModel):
    price_change_pct: float
    relative_price: float
    hodl_value: float
    lp_value: float
    il_pct: float


class LPPositionResponse(BaseModel):
    wallet: str
    lp_balance: str
    pool_share_pct: float
    underlying0: float
    underlying1: float
    token0: str
    token1: str


class ChartPoint(BaseModel):
    x: float
    y: float
    label: Optional[str] = None


class ChartResponse(BaseModel):
    title: str
    x_label: str
    y_label: str
    points: List[ChartPoint]


class SwapRequest(BaseModel):
    direction: str = "0to1"
    amount_in: str
    max_slippage_pct: Optional[float] = None
    human: bool = False


class SwapResponse(BaseModel):
    state: str
    direction: Optional[str] = None
    amount_in: Optional[str] = None
    amount_out: Optional[str] = None
    min_out: Optional[str] = None
    price_impact_pct: Optional[float] = None
    tx_hash: Optional[str] = None
    approval_tx_hash: Optional[str] = None
    reason: Optional[str] = None
    error: Optional[str] = None
    message: Optional[str] = None
    history: List[str]
    elapsed_ms: Optional[float] = None


def swap_response(attempt: SwapAttempt) -> SwapResponse:
    return SwapResponse(
        state=attempt.state.value,
        direction=attempt.direction.value if attempt.direction else None,
        amount_in=str(attempt.amount_in) if attempt.amount_in is not None else None,
        amount_out=str(attempt.quote.amount_out) if attempt.quote else None,
        min_out=str(attempt.bound.min_out) if attempt.bound else None,
        price_impact_pct=(
            float(attempt.price_impact_pct) if attempt.price_impact_pct is not None else None
        ),
        tx_hash=attempt.tx_hash,
        approval_tx_hash=attempt.approval_tx_hash,
        reason=attempt.reason.value if attempt.reason else None,
        error=attempt.error.kind if attempt.error else None,
        message=str(attempt.error) if attempt.error else None,
        history=[state.value for state in attempt.history],
        elapsed_ms=attempt.elapsed_ms,
    )


class DashboardState:
    """Config, ledger and recent swap attempts shared by the endpoints."""

    def __init__(
        self,
        config: DashboardConfig,
        ledger: PoolLedger,
        metrics: SwapMetrics,
        max_swaps: int = 50,
    ):
        self.config = config
        self.ledger = ledger
        self.metrics = metrics
        self.swaps: Deque[SwapAttempt] = deque(maxlen=max_swaps)

    @property
    def mode(self) -> str:
        return "paper" if self.config.is_paper else "live"

    def symbol(self, index: int) -> str:
        return self.config.token(index)["symbol"]

    def parse_amount(self, raw: str, direction: SwapDirection, human: bool) -> Any:
        """Amount in smallest units; human amounts are scaled by token decimals."""
        if human:
            return to_base_units(raw, self.config.decimals_in(direction))
        return to_decimal(raw, "amount_in")


def _default_config() -> DashboardConfig:
    path = os.getenv(CONFIG_ENV_VAR)
    if path:
        return load_config(path)
    logger.info(f"{CONFIG_ENV_VAR} not set, serving the paper demo pool")
    return DashboardConfig.demo()


def create_app(
    config: Optional[DashboardConfig] = None,
    ledger: Optional[PoolLedger] = None,
    metrics: Optional[SwapMetrics] = None,
) -> FastAPI:
    """
    Build the dashboard API.

    Args:
        config: Dashboard config; loaded from SWAP_RISK_CONFIG or the paper
            demo when omitted
        ledger: Ledger override, e.g. a PaperLedger in tests
        metrics: Metrics collector; a fresh registry per app by default
    """
    config = config or _default_config()
    ledger = ledger or create_ledger(config)
    state = DashboardState(config, ledger, metrics or SwapMetrics())

    app = FastAPI(title="FinePool Swap Risk Dashboard", version=__version__)
    app.state.dashboard = state

    # CORS middleware for the browser frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api["cors_origins"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(SwapRiskError)
    async def swap_risk_error_handler(request: Request, exc: SwapRiskError):
        status = status_code_for(exc)
        if status >= 500:
            logger.error(f"{request.url.path} failed: {exc}")
        else:
            logger.warning(f"{request.url.path} rejected: {exc}")
        return JSONResponse(status_code=status, content={"error": exc.kind, "message": str(exc)})

    @app.get("/api/health", response_model=HealthResponse)
    async def health_check():
        """Health check endpoint"""
        return HealthResponse(
            status="healthy",
            version=__version__,
            mode=state.mode,
            pool_address=ledger.pool_address,
            signer=ledger.signer,
        )

    @app.get("/api/reserves", response_model=ReservesResponse)
    async def get_reserves():
        """Current pool reserves and LP supply"""
        pool = await ledger.get_reserves()
        decimals0 = config.token(0)["decimals"]
        decimals1 = config.token(1)["decimals"]
        price_0to1 = pool.reserve1 / pool.reserve0 if pool.reserve0 else 0.0
        price_1to0 = pool.reserve0 / pool.reserve1 if pool.reserve1 else 0.0
        return ReservesResponse(
            reserve0=str(pool.reserve0),
            reserve1=str(pool.reserve1),
            total_supply=str(pool.total_supply),
            token0=state.symbol(0),
            token1=state.symbol(1),
            reserve0_formatted=float(from_base_units(pool.reserve0, decimals0)),
            reserve1_formatted=float(from_base_units(pool.reserve1, decimals1)),
            price_0to1=price_0to1,
            price_1to0=price_1to0,
        )

    @app.post("/api/quote", response_model=QuoteResponse)
    async def get_quote(request: QuoteRequest):
        """Quote a swap against fresh reserves, with its slippage bound and risk tier"""
        direction = SwapDirection.parse(request.direction)
        amount_in = normalize_amount_in(
            state.parse_amount(request.amount_in, direction, request.human)
        )
        max_slippage_pct = (
            request.max_slippage_pct
            if request.max_slippage_pct is not None
            else config.max_slippage_pct
        )

        pool = await ledger.get_reserves()
        quote = quote_swap(pool.reserves, direction, amount_in, config.fees)
        bound = slippage_bound(quote.amount_out, max_slippage_pct)
        analysis = analyze_price_impact(
            quote.reserve_in, quote.reserve_out, amount_in, config.fees, config.risk_tiers
        )
        state.metrics.record_quote("api", direction.value, analysis.impact_pct)

        return QuoteResponse(
            direction=direction.value,
            amount_in=str(amount_in),
            amount_in_with_fee=str(quote.amount_in_with_fee),
            amount_out=str(quote.amount_out),
            amount_out_formatted=float(
                from_base_units(quote.amount_out, config.decimals_out(direction))
            ),
            min_out=str(bound.min_out),
            slippage_bps=bound.slippage_bps,
            max_slippage_pct=float(bound.max_slippage_pct),
            spot_price=float(quote.spot_price),
            execution_price=float(quote.execution_price),
            price_impact_pct=float(analysis.impact_pct),
            risk_tier=analysis.tier.value,
            fee_pct=float(config.fees.fee_pct),
        )

    @app.get("/api/impermanent-loss", response_model=ImpermanentLossResponse)
    async def get_impermanent_loss(price_change_pct: float):
        """Impermanent loss for a relative price move of token0 vs token1"""
        scenario = impermanent_loss_scenario(price_change_pct)
        return ImpermanentLossResponse(
            price_change_pct=float(scenario.price_change_pct),
            relative_price=float(scenario.relative_price),
            hodl_value=float(scenario.hodl_value),
            lp_value=float(scenario.lp_value),
            il_pct=float(scenario.il_pct),
        )

    @app.get("/api/lp/{wallet}", response_model=LPPositionResponse)
    async def get_lp_position(wallet: str):
        """A wallet's LP share and its claim on each reserve"""
        analysis = await analyze_lp_for_wallet(ledger, wallet)
        return LPPositionResponse(
            wallet=wallet,
            lp_balance=str(analysis.lp_balance),
            pool_share_pct=float(analysis.pool_share_pct),
            underlying0=float(from_base_units(analysis.underlying0, config.token(0)["decimals"])),
            underlying1=float(from_base_units(analysis.underlying1, config.token(1)["decimals"])),
            token0=state.symbol(0),
            token1=state.symbol(1),
        )

    @app.get("/api/charts/price-impact", response_model=ChartResponse)
    async def get_price_impact_chart(
        direction: str = "0to1",
        steps: int = Query(10, ge=1, le=200),
        max_fraction: float = Query(0.3, gt=0, le=1),
    ):
        """Price impact versus trade size, up to a fraction of the input reserve"""
        parsed = SwapDirection.parse(direction)
        pool = await ledger.get_reserves()
        reserve_in, reserve_out = pool.reserves.ordered(parsed)
        curve = price_impact_curve(
            reserve_in, reserve_out, Decimal(str(max_fraction)), steps, config.fees
        )
        points = [
            ChartPoint(
                x=float(size),
                y=float(impact),
                label=classify_impact(impact, config.risk_tiers).value,
            )
            for size, impact in curve
        ]
        return ChartResponse(
            title=f"Price impact ({parsed.value})",
            x_label=f"Trade size ({state.symbol(parsed.token_in_index)})",
            y_label="Price impact (%)",
            points=points,
        )

    @app.get("/api/charts/impermanent-loss", response_model=ChartResponse)
    async def get_impermanent_loss_chart(start: int = -50, stop: int = 200, step: int = 25):
        """Impermanent loss versus relative price change"""
        if stop < start:
            raise InvalidInput("stop must not be below start", field="stop", value=stop)
        points = [
            ChartPoint(x=float(pct), y=float(il))
            for pct, il in impermanent_loss_curve(start, stop, step)
        ]
        return ChartResponse(
            title="Impermanent loss",
            x_label="Price change (%)",
            y_label="Loss vs holding (%)",
            points=points,
        )

    @app.post("/api/swap")
    async def post_swap(request: SwapRequest):
        """Run one approve-then-swap attempt with the configured signer"""
        owner = ledger.signer
        if not owner:
            raise ConfigurationError("No signer configured; swaps are disabled")

        direction = SwapDirection.parse(request.direction)
        amount_in = state.parse_amount(request.amount_in, direction, request.human)
        max_slippage_pct = (
            request.max_slippage_pct
            if request.max_slippage_pct is not None
            else config.max_slippage_pct
        )

        attempt = await execute_swap(
            ledger,
            owner,
            direction,
            amount_in,
            max_slippage_pct,
            fees=config.fees,
            metrics=state.metrics,
        )
        state.swaps.appendleft(attempt)

        body = swap_response(attempt)
        status = 200 if attempt.confirmed else status_code_for(attempt.error)
        return JSONResponse(status_code=status, content=body.model_dump())

    @app.get("/api/swaps", response_model=List[SwapResponse])
    async def get_recent_swaps():
        """Most recent swap attempts, newest first"""
        return [swap_response(attempt) for attempt in state.swaps]

    @app.get("/metrics")
    async def get_prometheus_metrics():
        content, content_type = state.metrics.render()
        return Response(content=content, media_type=content_type)

    return app


def run(host: Optional[str] = None, port: Optional[int] = None, config_path: Optional[str] = None):
    """Serve the dashboard API with uvicorn."""
    import uvicorn

    import logging_config

    logging_config.setup()

    config = load_config(config_path) if config_path else _default_config()
    app = create_app(config)
    uvicorn.run(
        app,
        host=host or config.api["host"],
        port=port or config.api["port"],
        log_config=None,
    )


if __name__ == "__main__":
    run()
