"""Post-commit side effects of requisition changes.

Both the websocket broadcast and the stats cache eviction are queued
with ``transaction.on_commit`` so nothing is announced for a change
that rolled back.
"""
from __future__ import annotations

import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.core.cache import cache
from django.db import transaction
from django.utils import timezone

logger = logging.getLogger(__name__)

UPDATES_GROUP = 'requisitions'
STATS_CACHE_KEY = 'requisitions:stats'


def _broadcast(payload: dict) -> None:
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return
    try:
        async_to_sync(channel_layer.group_send)(UPDATES_GROUP, payload)
    except Exception:
        # the change is already committed; a lost notification is not fatal
        logger.warning("failed to broadcast requisition update", exc_info=True)


def requisition_changed(requisition, *, action: str) -> None:
    payload = {
        'type': 'requisition.updated',
        'action': action,
        'requisitionId': str(requisition.id),
        'reqNumber': requisition.req_number,
        'status': str(requisition.status),
        'ts': timezone.now().isoformat(),
    }

    def _after_commit():
        cache.delete(STATS_CACHE_KEY)
        _broadcast(payload)

    transaction.on_commit(_after_commit)


def broadcast_refresh(keys: list[str]) -> None:
    now = timezone.now()
    _broadcast({'type': 'requisition.refresh', 'version': int(now.timestamp()), 'ts': now.isoformat(), 'keys': keys})
