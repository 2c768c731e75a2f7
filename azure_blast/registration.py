"""
Collaborator registry and AzureBlast service registration.

plan_registrations() turns options into the list of services to construct;
add_azure_blast() applies that list with register-if-absent semantics so
registrations made earlier by the caller are never replaced.
"""

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Callable, Dict, Iterator, List, Optional, Type, TypeVar

from azure.core.credentials import TokenCredential
from azure.identity import DefaultAzureCredential

from .arm_client_wrapper import ArmClientWrapper
from .azure_key_vault import AzureKeyVault
from .azure_resource_client import AzureResourceClient
from .azure_service_bus import AzureServiceBus
from .azure_table_storage import AzureTableStorage
from .environment_validator import AzureBlastOptions
from .exceptions import ServiceNotRegisteredError
from .mssql_database import MssqlDatabase

logger = logging.getLogger(__name__)

T = TypeVar("T")
ServiceFactory = Callable[["ServiceProvider"], Any]


class Lifetime(Enum):
    """How long a resolved service lives."""

    SINGLETON = auto()
    TRANSIENT = auto()


@dataclass(frozen=True)
class ServiceDescriptor:
    """One registration: service type, factory and lifetime."""

    service_type: type
    factory: ServiceFactory
    lifetime: Lifetime = Lifetime.SINGLETON


class ServiceCollection:
    """Ordered list of service registrations keyed by service type."""

    def __init__(self):
        self._descriptors: List[ServiceDescriptor] = []

    def add(self, descriptor: ServiceDescriptor) -> "ServiceCollection":
        self._descriptors.append(descriptor)
        return self

    def try_add(self, descriptor: ServiceDescriptor) -> bool:
        """Adds the descriptor unless its service type is already registered."""
        if self.contains(descriptor.service_type):
            logger.debug(f"{descriptor.service_type.__name__} already registered; keeping existing registration")
            return False
        self._descriptors.append(descriptor)
        return True

    def add_singleton(self, service_type: type, factory: ServiceFactory) -> "ServiceCollection":
        return self.add(ServiceDescriptor(service_type, factory, Lifetime.SINGLETON))

    def add_transient(self, service_type: type, factory: ServiceFactory) -> "ServiceCollection":
        return self.add(ServiceDescriptor(service_type, factory, Lifetime.TRANSIENT))

    def try_add_singleton(self, service_type: type, factory: ServiceFactory) -> bool:
        return self.try_add(ServiceDescriptor(service_type, factory, Lifetime.SINGLETON))

    def try_add_transient(self, service_type: type, factory: ServiceFactory) -> bool:
        return self.try_add(ServiceDescriptor(service_type, factory, Lifetime.TRANSIENT))

    def contains(self, service_type: type) -> bool:
        return any(d.service_type is service_type for d in self._descriptors)

    @property
    def descriptors(self) -> List[ServiceDescriptor]:
        return list(self._descriptors)

    def build_service_provider(self) -> "ServiceProvider":
        return ServiceProvider(self._descriptors)

    def __contains__(self, service_type: type) -> bool:
        return self.contains(service_type)

    def __len__(self) -> int:
        return len(self._descriptors)

    def __iter__(self) -> Iterator[ServiceDescriptor]:
        return iter(list(self._descriptors))


class ServiceProvider:
    """Resolves services; the last registration of a type wins."""

    def __init__(self, descriptors: List[ServiceDescriptor]):
        self._descriptors: Dict[type, ServiceDescriptor] = {}
        for descriptor in descriptors:
            self._descriptors[descriptor.service_type] = descriptor
        self._singletons: Dict[type, Any] = {}

    def get_service(self, service_type: Type[T]) -> Optional[T]:
        descriptor = self._descriptors.get(service_type)
        if descriptor is None:
            return None

        if descriptor.lifetime is Lifetime.TRANSIENT:
            return descriptor.factory(self)

        if service_type not in self._singletons:
            self._singletons[service_type] = descriptor.factory(self)
        return self._singletons[service_type]

    def get_required_service(self, service_type: Type[T]) -> T:
        service = self.get_service(service_type)
        if service is None:
            raise ServiceNotRegisteredError(service_type)
        return service


def resolve_credential(credential: Optional[TokenCredential]) -> TokenCredential:
    return credential if credential is not None else DefaultAzureCredential()


def plan_registrations(options: AzureBlastOptions, credential: TokenCredential) -> List[ServiceDescriptor]:
    """
    Lists the services the options ask for, without registering anything.

    Args:
        options: Populated options; unset values disable their component
        credential: Credential for Key Vault and Resource Manager clients

    Returns:
        Descriptors in registration order (SQL, Key Vault, ARM, resource client,
        Service Bus, Table Storage)
    """
    planned = []

    if options.has_sql:
        sql_connection_string = options.sql_connection_string

        def create_database(_: ServiceProvider) -> MssqlDatabase:
            database = MssqlDatabase()
            database.setup(sql_connection_string)
            return database

        planned.append(ServiceDescriptor(MssqlDatabase, create_database, Lifetime.TRANSIENT))

    if options.has_key_vault:
        key_vault_url = options.key_vault_url

        def create_key_vault(_: ServiceProvider) -> AzureKeyVault:
            vault = AzureKeyVault(credential)
            vault.initialize_key_vault(key_vault_url)
            return vault

        planned.append(ServiceDescriptor(AzureKeyVault, create_key_vault))

    planned.append(ServiceDescriptor(ArmClientWrapper, lambda _: ArmClientWrapper(credential)))
    planned.append(ServiceDescriptor(
        AzureResourceClient,
        lambda provider: AzureResourceClient(provider.get_required_service(ArmClientWrapper))
    ))

    if options.has_service_bus:
        bus_connection_string = options.service_bus_connection_string
        queue_name = options.service_bus_queue_name

        def create_service_bus(_: ServiceProvider) -> AzureServiceBus:
            bus = AzureServiceBus()
            bus.setup(bus_connection_string, queue_name)
            return bus

        planned.append(ServiceDescriptor(AzureServiceBus, create_service_bus))

    if options.has_table_storage:
        table_connection_string = options.table_storage_connection_string
        table_name = options.table_name

        def create_table_storage(_: ServiceProvider) -> AzureTableStorage:
            table = AzureTableStorage()
            table.initialize(table_connection_string, table_name)
            return table

        planned.append(ServiceDescriptor(AzureTableStorage, create_table_storage))

    return planned


def add_azure_blast(services: ServiceCollection,
                    configure: Callable[[AzureBlastOptions], None]) -> ServiceCollection:
    """
    Registers the AzureBlast services enabled by configure().
    Services already present in the collection are left as they are.

    Example:
        add_azure_blast(services, lambda o: setattr(o, "key_vault_url", "https://contoso.vault.azure.net/"))
    """
    if services is None:
        raise ValueError("services cannot be None")
    if configure is None:
        raise ValueError("configure cannot be None")

    options = AzureBlastOptions()
    configure(options)
    return add_azure_blast_options(services, options)


def add_azure_blast_options(services: ServiceCollection, options: AzureBlastOptions) -> ServiceCollection:
    """Registers the services enabled by an already populated options object."""
    credential = resolve_credential(options.credential)

    added = [
        descriptor.service_type.__name__
        for descriptor in plan_registrations(options, credential)
        if services.try_add(descriptor)
    ]
    logger.info(f"Registered AzureBlast services: {', '.join(added) or 'none'}")
    return services


class AzureBlastBuilder:
    """Fluent configuration of AzureBlast services, applied by build()."""

    def __init__(self, services: Optional[ServiceCollection] = None,
                 credential: Optional[TokenCredential] = None):
        self._options = AzureBlastOptions()
        self._services = services
        self._options.credential = credential

    def with_credential(self, credential: TokenCredential) -> "AzureBlastBuilder":
        if credential is None:
            raise ValueError("credential cannot be None")
        self._options.credential = credential
        return self

    def with_sql(self, connection_string: str) -> "AzureBlastBuilder":
        _require(connection_string, "Connection string cannot be None or empty")
        self._options.sql_connection_string = connection_string
        return self

    def with_key_vault(self, vault_url: str) -> "AzureBlastBuilder":
        _require(vault_url, "Vault URL cannot be None or empty")
        self._options.key_vault_url = vault_url
        return self

    def with_table_storage(self, connection_string: str, table_name: Optional[str] = None) -> "AzureBlastBuilder":
        _require(connection_string, "Table Storage connection string is required")
        self._options.table_storage_connection_string = connection_string
        self._options.table_name = table_name
        return self

    def with_service_bus(self, connection_string: str, queue_name: str) -> "AzureBlastBuilder":
        _require(connection_string, "Service Bus connection string is required")
        _require(queue_name, "Queue name is required")
        self._options.service_bus_connection_string = connection_string
        self._options.service_bus_queue_name = queue_name
        return self

    def build(self, services: Optional[ServiceCollection] = None) -> ServiceCollection:
        """
        Registers the configured services into services, the collection given to the
        constructor, or a new collection, in that order of preference.
        Unlike add_azure_blast(), existing registrations are superseded.
        """
        if services is None:
            services = self._services if self._services is not None else ServiceCollection()

        credential = resolve_credential(self._options.credential)
        for descriptor in plan_registrations(self._options, credential):
            services.add(descriptor)
        return services

    def build_service_provider(self) -> ServiceProvider:
        return self.build().build_service_provider()


def use_azure_blast(services: ServiceCollection,
                    credential: Optional[TokenCredential] = None) -> AzureBlastBuilder:
    """Starts a fluent configuration bound to services."""
    if services is None:
        raise ValueError("services cannot be None")
    return AzureBlastBuilder(services, resolve_credential(credential))


def _require(value: Optional[str], message: str) -> None:
    if not value or not value.strip():
        raise ValueError(message)
