from celery import Celery
from dotenv import load_dotenv
from app.config import settings

load_dotenv()

celery_app = Celery(
    "resultforge",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
)

# 監査ログのメタデータはJSONのみ。結果は投げっぱなしなので短期間で破棄する
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    result_expires=3600,
)

celery_app.autodiscover_tasks(["app.workers"])
