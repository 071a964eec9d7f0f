# Copyright (c) 2023-2025, HaiyangLi <quantocean.li at gmail dot com>
# SPDX-License-Identifier: Apache-2.0

"""Concurrency helpers built on AnyIO task groups (asyncio or trio)."""

from __future__ import annotations

import inspect
from collections.abc import Awaitable
from typing import Any, TypeVar

import anyio

T = TypeVar("T")

__all__ = ("gather", "maybe_await")


async def gather(*aws: Awaitable[T]) -> list[T]:
    """Run awaitables concurrently, return list of results.

    Results are in the same order as the input awaitables. The first
    exception cancels the remaining tasks and is re-raised as is.
    """
    if not aws:
        return []

    results: list[T | None] = [None] * len(aws)

    async def _runner(idx: int, aw: Awaitable[T]) -> None:
        results[idx] = await aw

    try:
        async with anyio.create_task_group() as tg:
            for i, aw in enumerate(aws):
                tg.start_soon(_runner, i, aw)
    except BaseExceptionGroup as eg:
        rest = _non_cancel_subgroup(eg)
        if rest is not None:
            if len(rest.exceptions) == 1:
                raise rest.exceptions[0] from rest
            raise rest
        raise

    return results  # type: ignore


async def maybe_await(value: Any) -> Any:
    """Await ``value`` if it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value


def _non_cancel_subgroup(
    eg: BaseExceptionGroup,
) -> BaseExceptionGroup | None:
    cancelled = anyio.get_cancelled_exc_class()
    _, rest = eg.split(cancelled)
    return rest
