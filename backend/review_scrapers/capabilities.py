"""
Capability Registry - Platform -> {actor, persistence gateway}.

Populated once at startup; every platform dispatch in the orchestrator goes
through it.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from .actors.base import BaseActor
from .persistence import PersistenceGateway
from .platforms import Platform

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlatformCapability:
    """What the orchestrator can do for one platform."""
    actor: BaseActor
    gateway: Optional[PersistenceGateway] = None


class CapabilityRegistry:
    """Lookup of actor and gateway by platform."""

    def __init__(self):
        self._capabilities: Dict[Platform, PlatformCapability] = {}

    def register(
        self,
        platform: Platform,
        actor: BaseActor,
        gateway: Optional[PersistenceGateway] = None,
    ) -> None:
        """
        Register the actor (and optional gateway) for a platform.

        Raises:
            ValueError: If the actor serves a different platform
        """
        if actor.platform != platform:
            raise ValueError(
                f"Actor for {actor.platform.value} cannot be registered for {platform.value}"
            )
        self._capabilities[platform] = PlatformCapability(actor=actor, gateway=gateway)
        logger.debug(f"Registered {platform.value}: actor={actor.actor_id}")

    def actor_for(self, platform: Platform) -> Optional[BaseActor]:
        capability = self._capabilities.get(platform)
        return capability.actor if capability else None

    def gateway_for(self, platform: Platform) -> Optional[PersistenceGateway]:
        capability = self._capabilities.get(platform)
        return capability.gateway if capability else None

    def platforms(self) -> List[Platform]:
        return list(self._capabilities)

    def __contains__(self, platform: Platform) -> bool:
        return platform in self._capabilities
