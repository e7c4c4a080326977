"""Cache invalidation for order statistics"""
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver

from thrifthub.core.cache_utils import invalidate_order_stats
from .models import Order


@receiver(post_save, sender=Order)
@receiver(post_delete, sender=Order)
def order_changed(sender, instance, **kwargs):
    invalidate_order_stats()
