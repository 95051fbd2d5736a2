from __future__ import annotations

import asyncio


async def wait(duration_ms: int) -> None:
    """Suspend the calling task for ``duration_ms`` milliseconds."""
    await asyncio.sleep(duration_ms / 1000)
