"""HTTP API торгов

Все ответы имеют вид {"success": bool, ...}. Отказы (нет средств, низкая
ставка и т.п.) возвращаются со статусом 200 и success=False.
"""
import functools
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional
from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from config import Settings
from services.bidding import BiddingEngine, create_bidding_engine
from services.errors import BiddingError, StoreUnavailableError
from api.schemas import (
    AuctionOut,
    BalanceRequest,
    BidOut,
    PlaceBidRequest,
    RemoveBidRequest,
    UserBidsRequest,
    UserStats,
    dump,
)

logger = logging.getLogger(__name__)

# Допустимые источники помимо явного списка из настроек
CORS_ORIGIN_REGEX = "|".join([
    r"https://.*\.ngrok\.io",
    r"https://.*\.ngrok-free\.app",
    r"https://.*\.github\.io",
    r"http://localhost:\d+",
    r"http://127\.0\.0\.1:\d+",
])

router = APIRouter(prefix="/api")


def failure(message: str) -> dict:
    return {"success": False, "message": message}


def in_band(error_message: str):
    """Вернуть ошибки торгов в теле ответа вместо HTTP-ошибки"""
    def decorator(endpoint):
        @functools.wraps(endpoint)
        async def wrapper(*args, **kwargs):
            try:
                return await endpoint(*args, **kwargs)
            except StoreUnavailableError:
                logger.error(f"{error_message}: хранилище недоступно")
                return failure(error_message)
            except BiddingError as e:
                return failure(e.message)
            except Exception:
                logger.exception(error_message)
                return failure(error_message)
        return wrapper
    return decorator


def get_bidding(request: Request) -> BiddingEngine:
    return request.app.state.bidding


@router.post("/user/balance")
@in_band("Error retrieving balance")
async def api_user_balance(payload: BalanceRequest, bidding: BiddingEngine = Depends(get_bidding)):
    user = await bidding.get_balance(payload.user_id, payload.display_name)
    return {
        "success": True,
        "balance": user.balance,
        "user": dump(UserStats.model_validate(user)),
    }


@router.get("/auctions")
@in_band("Error retrieving auctions")
async def api_list_auctions(bidding: BiddingEngine = Depends(get_bidding)):
    auctions = await bidding.list_active_auctions()
    return {
        "success": True,
        "auctions": [dump(AuctionOut.model_validate(a)) for a in auctions],
    }


@router.post("/user/bids")
@in_band("Error retrieving bids")
async def api_user_bids(payload: UserBidsRequest, bidding: BiddingEngine = Depends(get_bidding)):
    bids = await bidding.list_user_bids(payload.user_id)
    return {
        "success": True,
        "bids": [dump(BidOut.model_validate(b)) for b in bids],
    }


@router.post("/bid")
@in_band("Error placing bid")
async def api_place_bid(payload: PlaceBidRequest, bidding: BiddingEngine = Depends(get_bidding)):
    result = await bidding.place_bid(
        payload.user_id,
        payload.display_name,
        payload.auction_id,
        payload.amount
    )
    return {
        "success": True,
        "message": "Bid placed successfully",
        "newBalance": result.new_balance,
        "bid": dump(BidOut.model_validate(result.bid)),
    }


@router.post("/bid/remove")
@in_band("Error removing bid")
async def api_remove_bid(payload: RemoveBidRequest, bidding: BiddingEngine = Depends(get_bidding)):
    result = await bidding.remove_bid(payload.user_id, payload.auction_id)
    return {
        "success": True,
        "message": f"Bid removed and {bidding.settings.CURRENCY_NAME} refunded",
        "refundedAmount": result.refunded_amount,
    }


@router.get("/health")
async def api_health(request: Request):
    settings = request.app.state.settings
    return {
        "success": True,
        "message": f"{settings.APP_NAME} server is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "appName": settings.APP_NAME,
        "currency": settings.CURRENCY_NAME,
    }


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.info(f"Некорректный запрос {request.method} {request.url.path}: {exc.errors()}")
    return JSONResponse(failure("Invalid request body"))


async def log_requests(request: Request, call_next):
    logger.info(f"{request.method} {request.url.path} (origin: {request.headers.get('origin')})")
    return await call_next(request)


def create_app(settings: Settings, bidding: Optional[BiddingEngine] = None) -> FastAPI:
    """Собрать приложение

    Если движок торгов не передан, он создается при запуске из настроек,
    вместе с таблицами и демонстрационными аукционами.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if bidding is not None:
            yield
            return

        engine, app.state.bidding = await create_bidding_engine(settings)
        logger.info(f"{settings.APP_NAME} запущен, стартовый баланс {settings.STARTING_BALANCE} {settings.CURRENCY_SYMBOL}")
        try:
            yield
        finally:
            await engine.dispose()

    app = FastAPI(
        title=settings.APP_NAME,
        description=settings.APP_DESCRIPTION,
        lifespan=lifespan
    )
    app.state.settings = settings
    if bidding is not None:
        app.state.bidding = bidding

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_origin_regex=CORS_ORIGIN_REGEX,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With", "ngrok-skip-browser-warning"],
        expose_headers=["*"],
        max_age=86400,
    )
    app.middleware("http")(log_requests)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.include_router(router)
    return app
