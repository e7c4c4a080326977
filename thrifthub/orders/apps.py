from django.apps import AppConfig


class OrdersConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'thrifthub.orders'
    label = 'orders'

    def ready(self):
        import thrifthub.orders.signals  # noqa: F401
