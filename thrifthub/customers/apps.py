from django.apps import AppConfig


class CustomersConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'thrifthub.customers'
    label = 'customers'

    def ready(self):
        import thrifthub.customers.signals  # noqa: F401
