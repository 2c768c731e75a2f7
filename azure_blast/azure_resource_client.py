"""
Resource queries against one Azure subscription.
Handles resource group, resource, tag and provider lookups through Azure Resource Manager.
"""

import logging
from collections import Counter
from typing import Any, Dict, List, Mapping, Optional

from azure.mgmt.resource import ResourceManagementClient

from .arm_client_wrapper import ArmClientWrapper
from .exceptions import NotConfiguredError


class AzureResourceClient:
    """Queries resources in the subscription selected with set_subscription_context()."""

    def __init__(self, arm_client_wrapper: ArmClientWrapper):
        self.arm_client_wrapper = arm_client_wrapper
        self.logger = logging.getLogger(__name__)
        self._subscription_id: Optional[str] = None
        self._resource_client: Optional[ResourceManagementClient] = None

    @property
    def current_subscription_id(self) -> Optional[str]:
        return self._subscription_id

    def set_subscription_context(self, subscription_id: str) -> None:
        """
        Selects the subscription all queries run against.

        Args:
            subscription_id: Subscription GUID

        Raises:
            ValueError: If subscription_id is empty or whitespace
        """
        if not subscription_id or not subscription_id.strip():
            raise ValueError("Subscription id cannot be None or empty")

        subscription = self.arm_client_wrapper.get_subscription(subscription_id)
        self._subscription_id = getattr(subscription, "subscription_id", None) or subscription_id
        self._resource_client = self.arm_client_wrapper.get_resource_management_client(self._subscription_id)

        self.logger.info(f"Subscription context set to {self._subscription_id}")

    def get_resource_groups_by_tag(self, tag_name: str, tag_value: str) -> List[Any]:
        client = self._ensure_subscription_context()
        odata_filter = f"tagName eq '{_quote(tag_name)}' and tagValue eq '{_quote(tag_value)}'"
        return list(client.resource_groups.list(filter=odata_filter))

    def get_resources_in_resource_group(self, resource_group_name: str) -> List[Any]:
        client = self._ensure_subscription_context()
        return list(client.resources.list_by_resource_group(resource_group_name))

    def get_resources_by_type(self, resource_type: str) -> List[Any]:
        client = self._ensure_subscription_context()
        return list(client.resources.list(filter=f"resourceType eq '{_quote(resource_type)}'"))

    def count_resources_by_location(self) -> Dict[str, int]:
        """Number of resources per Azure region."""
        client = self._ensure_subscription_context()
        counts = Counter(resource.location for resource in client.resources.list())
        return dict(counts)

    def get_resources_by_tags(self, tags: Mapping[str, str]) -> List[Any]:
        """Resources carrying every given tag with the given value."""
        client = self._ensure_subscription_context()
        matches = []
        for resource in client.resources.list():
            resource_tags = resource.tags or {}
            if all(resource_tags.get(name) == value for name, value in tags.items()):
                matches.append(resource)
        return matches

    def list_resource_providers(self) -> List[str]:
        client = self._ensure_subscription_context()
        return [provider.namespace for provider in client.providers.list()]

    def resource_exists(self, resource_group_name: str, resource_name: str) -> bool:
        client = self._ensure_subscription_context()
        return any(
            resource.name == resource_name
            for resource in client.resources.list_by_resource_group(resource_group_name)
        )

    def _ensure_subscription_context(self) -> ResourceManagementClient:
        if self._resource_client is None:
            raise NotConfiguredError(
                "Subscription context not set. Call set_subscription_context() before querying resources."
            )
        return self._resource_client


def _quote(value: str) -> str:
    return value.replace("'", "''")
