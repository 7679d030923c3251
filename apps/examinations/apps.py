from django.apps import AppConfig


class ExaminationsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.examinations'
    label = 'examinations'
    verbose_name = 'Examinations'
