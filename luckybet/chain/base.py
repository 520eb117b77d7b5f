"""Abstract base class for blockchain clients."""

from abc import ABC, abstractmethod

from luckybet.schemas.chain import ChainBlock, TxResult


class ChainClient(ABC):
    """
    What the bet pipeline and the watchers need from a chain node.

    Implementations raise ``ChainTransportError`` for anything that looks like
    a network or protocol fault; callers decide whether to retry.
    """

    @abstractmethod
    async def get_balance(self, account: str) -> int:
        """Spendable balance of ``account`` in the game's token units."""

    @abstractmethod
    async def send_transaction(self, signed_tx: dict) -> str:
        """
        Submit an already signed transaction.

        Returns:
            Transaction hash assigned by the node
        """

    @abstractmethod
    async def get_transaction_result(self, tx_hash: str) -> TxResult:
        """Inclusion status of a transaction; PENDING while the node has no receipt."""

    @abstractmethod
    async def get_block_height(self) -> int:
        """Height of the latest block that is safe to mirror."""

    @abstractmethod
    async def get_block(self, height: int) -> ChainBlock:
        """Block header time plus the contract receipts it carries."""

    async def close(self) -> None:
        """Release transport resources. Override if the client holds any."""
        pass
