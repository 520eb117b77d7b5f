from typing import List

from fastapi import APIRouter, Depends, Query, Request
from pydantic import ValidationError

from luckybet.core.errors import InvalidInput
from luckybet.schemas.lucky_bet import (
    AccountBetsOut, BetIn, BetOut, BetReceiptOut, BlockInfoOut,
    LatestBetInfoOut, LeaderboardEntry, NonceOut, ResultOut, RewardOut, RoundOut,
)
from luckybet.services.context import LuckyBetContext

router = APIRouter(prefix="/api", tags=["luckyBet"])
nonce_router = APIRouter(tags=["nonce"])


def get_context(request: Request) -> LuckyBetContext:
    return request.app.state.ctx


def get_client_ip(req: Request) -> str:
    xff = req.headers.get("X-Forwarded-For") or req.headers.get("Iost_Remote_Addr")
    if xff:
        return xff.split(",")[0].strip()
    return req.client.host if req.client else ""


async def read_bet(request: Request) -> BetIn:
    """老客户端发表单，新客户端发 JSON，两种都收"""
    ctype = request.headers.get("content-type", "")
    try:
        if ctype.startswith("application/json"):
            data = await request.json()
        else:
            data = dict(await request.form())
        bet = BetIn.model_validate(data)
    except (ValueError, ValidationError) as e:
        raise InvalidInput(f"malformed request body: {e}") from e
    bet.client_ip = get_client_ip(request)
    return bet


@router.post("/luckyBet", response_model=BetReceiptOut)
async def lucky_bet(payload: BetIn = Depends(read_bet), ctx: LuckyBetContext = Depends(get_context)):
    """下注；失败时由全局异常处理返回 {ret, msg}"""
    receipt = await ctx.submit_bet(payload)
    return BetReceiptOut(
        tx_hash=receipt.tx_hash,
        bet=BetOut.model_validate(receipt.bet),
        warning=receipt.warning.to_dict() if receipt.warning else None,
    )


@router.get("/luckyBet/round/{round_id}", response_model=RoundOut)
async def bet_round(round_id: int, ctx: LuckyBetContext = Depends(get_context)):
    result = await ctx.result_for_round(round_id)
    rewards = await ctx.rewards_for_round(round_id)
    return RoundOut(
        result=ResultOut.model_validate(result) if result else None,
        rewards=[RewardOut.model_validate(r) for r in rewards],
    )


@router.get("/luckyBet/addressBet/{account}", response_model=AccountBetsOut)
async def address_bet(
        account: str,
        page: int = Query(1, ge=1),
        count: int = Query(20, ge=1, le=100),
        ctx: LuckyBetContext = Depends(get_context),
):
    bets = await ctx.bets_for_account(account, (page - 1) * count, count)
    total = await ctx.bet_count_for_account(account)
    return AccountBetsOut(account=account, total=total, list=[BetOut.model_validate(b) for b in bets])


@router.get("/luckyBet/latestBetInfo", response_model=LatestBetInfoOut)
async def latest_bet_info(limit: int = Query(10, ge=1, le=100), ctx: LuckyBetContext = Depends(get_context)):
    results = await ctx.list_results(limit)
    last = await ctx.last_settled_round()
    return LatestBetInfoOut(
        round=last if last is not None else -1,
        head_block=await ctx.head_height(),
        results=[ResultOut.model_validate(r) for r in results],
    )


@router.get("/luckyBet/todayRanking", response_model=List[LeaderboardEntry])
async def today_ranking(ctx: LuckyBetContext = Depends(get_context)):
    return await ctx.top_leaderboard()


@router.get("/luckyBetBlockInfo", response_model=BlockInfoOut | None)
async def block_info(height: int = Query(..., ge=0), ctx: LuckyBetContext = Depends(get_context)):
    info = await ctx.block_info(height)
    return BlockInfoOut.model_validate(info) if info else None


@nonce_router.get("/nonce", response_model=NonceOut)
async def last_nonce(account: str = Query(..., min_length=1), ctx: LuckyBetContext = Depends(get_context)):
    return NonceOut(account=account, nonce=await ctx.last_nonce(account))
