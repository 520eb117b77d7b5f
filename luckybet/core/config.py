import os
from dotenv import load_dotenv
load_dotenv()


def _csv(raw: str) -> list[str]:
    return [x.strip() for x in raw.split(",") if x.strip()]


class Settings:
    APP_NAME = os.getenv("APP_NAME", "luckybet-api")
    APP_ENV = os.getenv("APP_ENV", "dev")
    APP_HOST = os.getenv("APP_HOST", "0.0.0.0")
    APP_PORT = int(os.getenv("APP_PORT", "12345"))
    # 排行榜按这个时区切日
    DAY_TZ = os.getenv("DAY_TZ", "UTC")

    MYSQL_DSN = os.getenv("DATABASE_URL") or (
        f"mysql+aiomysql://{os.getenv('MYSQL_USER','root')}:{os.getenv('MYSQL_PASSWORD','123456')}"
        f"@{os.getenv('MYSQL_HOST','127.0.0.1')}:{os.getenv('MYSQL_PORT','3306')}/{os.getenv('MYSQL_DB','lucky_bet')}?charset=utf8mb4"
    )
    REDIS_URL = f"redis://{os.getenv('REDIS_HOST','127.0.0.1')}:{os.getenv('REDIS_PORT','6379')}/{os.getenv('REDIS_DB','0')}"

    # 链节点
    CHAIN_API_URL = os.getenv("CHAIN_API_URL", "http://127.0.0.1:30001")
    CHAIN_ID = int(os.getenv("CHAIN_ID", "1024"))
    CHAIN_TIMEOUT_SECONDS = float(os.getenv("CHAIN_TIMEOUT_SECONDS", "10"))
    CONTRACT_ID = os.getenv("CONTRACT_ID", "Contract3g9yVbNVS1UD4KxvUbv6F8oGUSe5yzgXGY2n3Fk4zRGn")
    GAS_RATIO = float(os.getenv("GAS_RATIO", "1"))
    GAS_LIMIT = int(os.getenv("GAS_LIMIT", "100000"))
    TX_EXPIRATION_SECONDS = int(os.getenv("TX_EXPIRATION_SECONDS", "90"))

    # 下注范围
    BET_AMOUNT_MIN = int(os.getenv("BET_AMOUNT_MIN", "1"))
    BET_AMOUNT_MAX = int(os.getenv("BET_AMOUNT_MAX", "5"))
    LUCKY_NUMBER_MIN = int(os.getenv("LUCKY_NUMBER_MIN", "0"))
    LUCKY_NUMBER_MAX = int(os.getenv("LUCKY_NUMBER_MAX", "9"))

    # 发送重试 / 确认轮询
    SEND_RETRY_TIMES = int(os.getenv("SEND_RETRY_TIMES", "3"))
    SEND_RETRY_INTERVAL = float(os.getenv("SEND_RETRY_INTERVAL", "0.5"))
    CONFIRM_POLLS = int(os.getenv("CONFIRM_POLLS", "30"))
    CONFIRM_INTERVAL = float(os.getenv("CONFIRM_INTERVAL", "1"))

    # 链上同步
    WATCH_ENABLED = os.getenv("WATCH_ENABLED", "false").lower() in ("1", "true", "yes")
    WATCH_POLL_SECONDS = int(os.getenv("WATCH_POLL_SECONDS", "1"))
    DAY_WATCH_POLL_SECONDS = int(os.getenv("DAY_WATCH_POLL_SECONDS", "30"))
    WATCH_START_HEIGHT = int(os.getenv("WATCH_START_HEIGHT", "0"))
    WATCH_BATCH = int(os.getenv("WATCH_BATCH", "100"))

    # 排行榜
    LEADERBOARD_SIZE = int(os.getenv("LEADERBOARD_SIZE", "10"))
    LEADERBOARD_TTL_SECONDS = int(os.getenv("LEADERBOARD_TTL_SECONDS", "120"))
    ROBOT_ACCOUNTS = _csv(os.getenv("ROBOT_ACCOUNTS", "23hJissnRLwMcGFcPwyDxDfj9FaB5Z7LkY13n5TGZ2gL5"))

settings = Settings()
