import os
from typing import Dict, List, Optional

from fastmcp import Context
from mcp.shared.exceptions import McpError, ErrorData


def _require_env_vars(vars_list: List[str]) -> Dict[str, str]:
    """Check required environment variables and return their values."""
    missing = [v for v in vars_list if not os.getenv(v)]
    if missing:
        raise McpError(ErrorData(
            code=-32602,
            message=f"Missing required environment variables: {', '.join(missing)}"
        ))
    return {v: os.environ[v] for v in vars_list}


def mask_secret(value: str, visible: int = 8) -> str:
    return f"{value[:visible]}..."


async def _ctx_info(ctx: Optional[Context], msg: str) -> None:
    if ctx:
        await ctx.info(msg)


async def _ctx_debug(ctx: Optional[Context], msg: str) -> None:
    if ctx:
        await ctx.debug(msg)


async def _ctx_error(ctx: Optional[Context], msg: str) -> None:
    if ctx:
        await ctx.error(msg)
