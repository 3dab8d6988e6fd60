"""
Websocket consumers forwarding change signals to browsers.

Clients receive ``{"event": "changed", "scope", "key", "reason"}`` and
re-fetch their own view. Nothing is replayed on reconnect.
"""

import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer

from apps.job.services.change_notifier import (
    company_group_name,
    job_activity_group_name,
)

logger = logging.getLogger(__name__)


class BaseChangeConsumer(AsyncJsonWebsocketConsumer):
    group_name: str = ""

    async def get_group_name(self, user) -> str | None:
        raise NotImplementedError

    async def connect(self) -> None:
        user = self.scope.get("user")
        if user is None or not user.is_authenticated or not user.company_id:
            await self.close(code=4401)
            return

        group_name = await self.get_group_name(user)
        if group_name is None:
            await self.close(code=4404)
            return

        self.group_name = group_name
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()
        logger.debug(f"Websocket {self.channel_name} joined {self.group_name}")

    async def disconnect(self, code) -> None:
        if self.group_name:
            await self.channel_layer.group_discard(self.group_name, self.channel_name)

    async def job_changed(self, message) -> None:
        await self.send_json(
            {
                "event": "changed",
                "scope": message["scope"],
                "key": message["key"],
                "reason": message.get("reason", "changed"),
            }
        )


class CompanyJobsConsumer(BaseChangeConsumer):
    """Signals for any job in the user's company."""

    async def get_group_name(self, user) -> str | None:
        return company_group_name(user.company_id)


class JobActivityConsumer(BaseChangeConsumer):
    """Signals for one job's activity log."""

    async def get_group_name(self, user) -> str | None:
        job_id = self.scope["url_route"]["kwargs"]["job_id"]
        if not await self._job_visible(job_id, user.company_id):
            return None
        return job_activity_group_name(job_id)

    @database_sync_to_async
    def _job_visible(self, job_id, company_id) -> bool:
        from apps.job.models import Job

        return Job.objects.filter(id=job_id, company_id=company_id).exists()
