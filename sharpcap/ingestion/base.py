"""Shared plumbing for provider calls."""

from typing import Any, Callable
import asyncio
import functools
import inspect


async def call_provider(fetch: Callable[..., Any], *args: Any) -> Any:
    """Await ``fetch`` if it is a coroutine function, otherwise run it in the default executor."""
    if inspect.iscoroutinefunction(fetch):
        return await fetch(*args)
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, functools.partial(fetch, *args))
