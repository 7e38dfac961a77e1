import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "LineAgeProject.settings")

app = Celery("LineAgeProject")

# Broker, serializers and eager mode come from the CELERY_* settings
app.config_from_object("django.conf:settings", namespace="CELERY")

# Picks up lineage.tasks once the app registry is ready
app.autodiscover_tasks()
