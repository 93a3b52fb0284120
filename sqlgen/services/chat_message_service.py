from typing import Any, Dict, List

from sqlgen.api.client import ApiClient
from sqlgen.api.envelope import unwrap


class ChatMessageService:
    def __init__(self, api: ApiClient):
        self.api = api

    def list_for_playground(self, playground_id: str) -> List[Dict[str, Any]]:
        return unwrap(self.api.get(f"/chat-messages/playground/{playground_id}"), "messages", default=[])

    def add_message(self, message: Dict[str, Any]) -> Dict[str, Any]:
        """message: playgroundId, sender ('user' | 'ai'), message, sql?, queryId?"""
        return unwrap(self.api.post("/chat-messages", message), "chatMessage")
