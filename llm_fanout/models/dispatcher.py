"""Routes each target to the sender registered for its provider"""

from typing import Dict, List, Mapping, Optional
import logging

from ..errors import ProviderError
from ..runners.results import SendResult, Target
from .base_sender import BaseRequestSender


class ProviderDispatcher:
    """
    Maps provider_id to a sender.

    An instance is awaitable as (target, prompt), so it can be handed to
    BoundedFanoutRunner as its send_request.
    """

    def __init__(self, senders: Optional[Mapping[str, BaseRequestSender]] = None):
        self.senders: Dict[str, BaseRequestSender] = dict(senders or {})
        self.logger = logging.getLogger(__name__)

    def register(self, provider_id: str, sender: BaseRequestSender):
        self.senders[provider_id] = sender
        self.logger.debug(f"Registered sender for {provider_id}")

    def get_sender(self, provider_id: str) -> Optional[BaseRequestSender]:
        return self.senders.get(provider_id)

    @property
    def providers(self) -> List[str]:
        return list(self.senders)

    async def __call__(self, target: Target, prompt: str) -> SendResult:
        sender = self.senders.get(target.provider_id)
        if sender is None:
            raise ProviderError(f"No sender registered for provider '{target.provider_id}'",
                                target.provider_id)
        return await sender.send(target, prompt)
