"""Lightweight Telegram notification for box selection outcomes.

Sends plain-text messages to a Telegram chat via the Bot API for:
- Successful selections (chosen box, fill rate)
- Infeasible selections and timeouts

No retry logic; notifications are non-critical.
"""

from __future__ import annotations

import logging
import os

import httpx

from cartonfit.monitoring.metrics import PackingMetrics

logger = logging.getLogger(__name__)

TELEGRAM_API = "https://api.telegram.org/bot{token}/sendMessage"


async def send_telegram(
    message: str,
    chat_id: str | None = None,
    token: str | None = None,
) -> bool:
    """Send a plain-text message to a Telegram chat.

    Args:
        message: Text to send.
        chat_id: Telegram chat ID. Defaults to TELEGRAM_CHAT_ID env var.
        token: Bot token. Defaults to TELEGRAM_BOT_TOKEN env var.

    Returns:
        True if the message was sent, False otherwise (including when no
        token or chat is configured).

    Example:
        >>> import asyncio
        >>> asyncio.run(send_telegram("Selection finished"))
        True
    """
    token = token or os.environ.get("TELEGRAM_BOT_TOKEN", "")
    if not token:
        return False

    chat_id = chat_id or os.environ.get("TELEGRAM_CHAT_ID", "")
    if not chat_id:
        return False

    url = TELEGRAM_API.format(token=token)
    payload = {"chat_id": chat_id, "text": message}

    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            resp = await client.post(url, json=payload)
            data = resp.json()
            return bool(data.get("ok", False))
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("telegram notification failed: %s", exc)
        return False


def format_selection_result(metrics: PackingMetrics) -> str:
    """Format a successful selection.

    Example:
        >>> print(format_selection_result(metrics))
        📦 Box Selected
        Box: b-20x10x10 (20 x 10 x 10 cm)
        Items: 2 via shelf_nfdh
        Fill: 100.0%
    """
    bw, bd, bh = metrics.box_dims
    return (
        f"📦 Box Selected\n"
        f"Box: {metrics.box_id} ({bw:g} x {bd:g} x {bh:g} cm)\n"
        f"Items: {metrics.items_placed} via {metrics.strategy}\n"
        f"Fill: {metrics.fill_rate * 100:.1f}%"
    )


def format_failure(reason: str, product_count: int, box_count: int) -> str:
    """Format an infeasible or timed-out selection.

    Example:
        >>> print(format_failure("No box fits", 3, 500))
        ⚠️ Selection Failed
        No box fits
        Products: 3, catalog: 500 boxes
    """
    return (
        f"⚠️ Selection Failed\n"
        f"{reason}\n"
        f"Products: {product_count}, catalog: {box_count} boxes"
    )
