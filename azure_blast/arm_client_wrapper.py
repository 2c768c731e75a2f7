"""
Thin wrapper over the Azure Resource Manager clients so they can be replaced in tests.
"""

import logging
from typing import Any, Callable, List, Optional

from azure.core.credentials import TokenCredential
from azure.mgmt.resource import ResourceManagementClient, SubscriptionClient


class ArmClientWrapper:
    """Creates subscription and resource management clients for one credential."""

    def __init__(self, credential: TokenCredential,
                 subscription_client_factory: Optional[Callable[[TokenCredential], SubscriptionClient]] = None,
                 resource_client_factory: Optional[Callable[[TokenCredential, str], ResourceManagementClient]] = None):
        self.credential = credential
        self.logger = logging.getLogger(__name__)
        self._subscription_client_factory = subscription_client_factory or SubscriptionClient
        self._resource_client_factory = resource_client_factory or ResourceManagementClient
        self._subscription_client: Optional[SubscriptionClient] = None

    def get_subscription_client(self) -> SubscriptionClient:
        if self._subscription_client is None:
            self._subscription_client = self._subscription_client_factory(self.credential)
            self.logger.debug("Subscription client created")
        return self._subscription_client

    def get_subscriptions(self) -> List[Any]:
        return list(self.get_subscription_client().subscriptions.list())

    def get_subscription(self, subscription_id: str) -> Any:
        return self.get_subscription_client().subscriptions.get(subscription_id)

    def get_resource_management_client(self, subscription_id: str) -> ResourceManagementClient:
        client = self._resource_client_factory(self.credential, subscription_id)
        self.logger.debug(f"Resource management client created for subscription {subscription_id}")
        return client
