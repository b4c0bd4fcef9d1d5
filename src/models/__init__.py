from src.models.base import Base
from src.models.pool import (
    DailyPoolActivity,
    ModifyLiquidityV4,
    Pool,
    PoolV4,
    PoolV4Registry,
    Swap,
    SwapV4,
)
from src.models.token import Account, DailyTokenActivity, Token, Transfer

__all__ = [
    "Base",
    "Token",
    "Account",
    "Transfer",
    "DailyTokenActivity",
    "Pool",
    "PoolV4",
    "PoolV4Registry",
    "Swap",
    "SwapV4",
    "ModifyLiquidityV4",
    "DailyPoolActivity",
]
