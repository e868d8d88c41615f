import json
from channels.generic.websocket import AsyncWebsocketConsumer

from requisitions.services.notify import UPDATES_GROUP


class RequisitionUpdatesConsumer(AsyncWebsocketConsumer):
    GROUP = UPDATES_GROUP

    async def connect(self):
        await self.channel_layer.group_add(self.GROUP, self.channel_name)
        await self.accept()
        await self.send(json.dumps({"type": "welcome", "message": "connected"}))

    async def disconnect(self, close_code):
        await self.channel_layer.group_discard(self.GROUP, self.channel_name)

    async def requisition_updated(self, event):
        # event: {"type": "requisition.updated", "action", "requisitionId", "reqNumber", "status", "ts"}
        await self.send(json.dumps(event))

    async def requisition_refresh(self, event):
        # event: {"type": "requisition.refresh", "version": int, "ts": "...", "keys": [...]}
        await self.send(json.dumps(event))
