NONCE_PREFIX = "luckybet:nonce"

# 链上开奖事件
SETTLE_ACTION = "settle"
BET_ACTION = "bet"


def k_nonce(account: str) -> str:
    return f"{NONCE_PREFIX}:{account}"
