"""Cache invalidation for customer detail payloads"""
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver

from thrifthub.core.cache_utils import invalidate_customer_cache
from .models import Customer


@receiver(post_save, sender=Customer)
@receiver(post_delete, sender=Customer)
def customer_changed(sender, instance, **kwargs):
    invalidate_customer_cache(instance.pk)
