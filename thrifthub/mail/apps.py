from django.apps import AppConfig


class MailConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'thrifthub.mail'
    label = 'mail'
    verbose_name = 'Mail'
