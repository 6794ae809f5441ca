import os

from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'bidding_api.settings')

app = Celery('bidding_api')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()
app.autodiscover_tasks(['bidding_api'])
