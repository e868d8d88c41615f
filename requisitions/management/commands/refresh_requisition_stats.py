from django.conf import settings
from django.core.cache import cache
from django.core.management.base import BaseCommand
from django.utils import timezone

from requisitions.services import get_requisition_stats
from requisitions.services.notify import STATS_CACHE_KEY, broadcast_refresh


class Command(BaseCommand):
    help = "Warm the requisition stats cache; broadcast WebSocket refresh event."

    def handle(self, *args, **options):
        now = timezone.now()
        stats = get_requisition_stats()
        cache.set(STATS_CACHE_KEY, stats, settings.REQUISITION_STATS_CACHE_SECONDS)
        broadcast_refresh([STATS_CACHE_KEY])
        self.stdout.write(self.style.SUCCESS(
            f"Refreshed {STATS_CACHE_KEY} ({stats['total']} requisitions) at {now}"
        ))
