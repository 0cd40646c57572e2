"""
Health checks for the components a newsletter job depends on: the Redis
broker, the Celery worker pool and the Supabase job store.
"""

import logging
import time
from datetime import datetime
from typing import Callable, Dict, Any
import psutil
import redis

from ..utils.config import get_config


logger = logging.getLogger(__name__)


class HealthChecker:
    """Checks external components and reports their status."""

    def __init__(self):
        self.config = get_config()
        self._redis_client = None

    def _run_check(self, component: str, check: Callable[[], Dict[str, Any]]) -> Dict[str, Any]:
        """Run one check, timing it and turning any exception into an unhealthy status."""
        start = time.time()
        try:
            result = check()
        except Exception as e:
            logger.error(f"{component} health check failed: {str(e)}")
            return {"status": "unhealthy", "error": str(e)}

        result.setdefault("status", "healthy")
        result["response_time"] = round(time.time() - start, 3)
        return result

    def check_redis(self) -> Dict[str, Any]:
        def check():
            if self._redis_client is None:
                self._redis_client = redis.Redis.from_url(self.config.CELERY_BROKER_URL)
            self._redis_client.ping()
            info = self._redis_client.info()
            return {
                "version": info.get("redis_version", "unknown"),
                "memory_used": info.get("used_memory_human", "unknown"),
                "connected_clients": info.get("connected_clients", 0)
            }

        return self._run_check("Redis", check)

    def check_celery(self) -> Dict[str, Any]:
        def check():
            from ..tasks.celery_app import celery_app

            stats = celery_app.control.inspect(timeout=1.0).stats()
            if not stats:
                return {"status": "unhealthy", "error": "No Celery workers found"}

            return {
                "workers": len(stats),
                "pool_processes": sum(
                    worker.get('pool', {}).get('max-concurrency', 0) for worker in stats.values()
                )
            }

        return self._run_check("Celery", check)

    def check_store(self) -> Dict[str, Any]:
        if not self.config.SUPABASE_URL:
            return {"status": "not_configured", "message": "SUPABASE_URL not set"}

        def check():
            from ..integrations.supabase_store import NEWSLETTERS_TABLE, get_supabase_client

            get_supabase_client().table(NEWSLETTERS_TABLE).select('id').limit(1).execute()
            return {"table": NEWSLETTERS_TABLE}

        return self._run_check("Store", check)

    def get_system_metrics(self) -> Dict[str, Any]:
        """Process and host resource usage."""
        try:
            process = psutil.Process()
            memory = psutil.virtual_memory()
        except psutil.Error as e:
            logger.error(f"Failed to collect system metrics: {str(e)}")
            return {"error": str(e)}

        return {
            "cpu_percent": psutil.cpu_percent(interval=None),
            "memory_percent": memory.percent,
            "memory_available_mb": round(memory.available / 1024 / 1024, 1),
            "process_memory_mb": round(process.memory_info().rss / 1024 / 1024, 1),
            "process_threads": process.num_threads()
        }

    def get_detailed_status(self) -> Dict[str, Any]:
        """Status of every component plus system metrics."""
        return {
            "redis": self.check_redis(),
            "celery": self.check_celery(),
            "store": self.check_store(),
            "system": self.get_system_metrics(),
            "checked_at": datetime.utcnow().isoformat()
        }


def overall_status(components: Dict[str, Dict[str, Any]]) -> str:
    """
    Roll component statuses up into one value.

    Redis carries the job queue, so losing it makes the service unhealthy.
    A missing worker pool or an unreachable store only degrades it.
    """
    if components["redis"]["status"] != "healthy":
        return "unhealthy"
    if components["celery"]["status"] != "healthy" or components["store"]["status"] == "unhealthy":
        return "degraded"
    return "healthy"
