"""HTTP client for an IOST style node gateway."""

import json
import logging
from typing import Optional

import httpx

from luckybet.chain.base import ChainClient
from luckybet.core.errors import ChainTransportError
from luckybet.core.timeutil import from_nanos
from luckybet.schemas.chain import ChainBlock, ChainEvent, TxResult, TxStatus

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 10.0
RECEIPT_SUCCESS = "SUCCESS"


class IOSTChainClient(ChainClient):
    """
    Chain client talking to the node's JSON gateway.

    Endpoints used:
    - GET  /getAccount/{account}/true
    - POST /sendTx
    - GET  /getTxReceiptByTxHash/{hash}
    - GET  /getChainInfo
    - GET  /getBlockByNumber/{height}/true
    """

    def __init__(self, api_url: str, timeout: float = REQUEST_TIMEOUT,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_url = api_url
        self.timeout = timeout
        self.transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.api_url,
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
                transport=self.transport,
            )
        return self._client

    async def _request(self, method: str, path: str, payload: dict | None = None) -> dict:
        client = await self._get_client()
        try:
            resp = await client.request(method, path, json=payload)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError as e:
            raise ChainTransportError(f"{method} {path}: {e}") from e
        except ValueError as e:
            raise ChainTransportError(f"{method} {path}: bad json: {e}") from e
        if not isinstance(data, dict):
            raise ChainTransportError(f"{method} {path}: expected a json object, got {data!r}")
        return data

    async def get_balance(self, account: str) -> int:
        data = await self._request("GET", f"/getAccount/{account}/true")
        try:
            return int(float(data.get("balance", 0)))
        except (TypeError, ValueError) as e:
            raise ChainTransportError(f"bad balance for {account}: {data!r}") from e

    async def send_transaction(self, signed_tx: dict) -> str:
        data = await self._request("POST", "/sendTx", signed_tx)
        tx_hash = data.get("hash")
        if not tx_hash:
            raise ChainTransportError(f"sendTx returned no hash: {data!r}")
        return tx_hash

    async def get_transaction_result(self, tx_hash: str) -> TxResult:
        client = await self._get_client()
        try:
            resp = await client.get(f"/getTxReceiptByTxHash/{tx_hash}")
            # 节点还没有回执时返回 4xx
            if resp.status_code in (400, 404):
                return TxResult(status=TxStatus.PENDING, tx_hash=tx_hash)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError as e:
            raise ChainTransportError(f"receipt {tx_hash}: {e}") from e
        except ValueError as e:
            raise ChainTransportError(f"receipt {tx_hash}: bad json: {e}") from e
        if not isinstance(data, dict):
            raise ChainTransportError(f"receipt {tx_hash}: expected a json object, got {data!r}")

        code = str(data.get("status_code", ""))
        if code == RECEIPT_SUCCESS:
            return TxResult(status=TxStatus.SUCCESS, tx_hash=tx_hash, message=data.get("message", ""))
        return TxResult(status=TxStatus.FAILED, tx_hash=tx_hash,
                        message=f"{code}: {data.get('message', '')}")

    async def get_block_height(self) -> int:
        data = await self._request("GET", "/getChainInfo")
        # 只同步不可逆块
        height = data.get("lib_block", data.get("head_block"))
        if height is None:
            raise ChainTransportError(f"getChainInfo returned no height: {data!r}")
        return int(height)

    async def get_block(self, height: int) -> ChainBlock:
        data = await self._request("GET", f"/getBlockByNumber/{height}/true")
        block = data.get("block") or {}
        if not isinstance(block, dict) or not block:
            raise ChainTransportError(f"block {height} not available")

        events = []
        for tx in block.get("transactions") or []:
            receipt = tx.get("tx_receipt") or {}
            if receipt.get("status_code", RECEIPT_SUCCESS) != RECEIPT_SUCCESS:
                continue
            for r in receipt.get("receipts") or []:
                func_name = str(r.get("func_name", ""))
                if "/" not in func_name:
                    continue
                contract, action = func_name.split("/", 1)
                events.append(ChainEvent(contract=contract, action=action,
                                         data=_decode_content(r.get("content"))))

        return ChainBlock(
            height=int(block.get("number", height)),
            time=from_nanos(int(block.get("time", 0))),
            events=events,
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


def _decode_content(content) -> dict:
    if isinstance(content, dict):
        return content
    try:
        value = json.loads(content or "{}")
    except (TypeError, ValueError):
        return {"raw": content}
    if isinstance(value, list) and value and isinstance(value[0], dict):
        return value[0]
    if isinstance(value, dict):
        return value
    return {"raw": value}
