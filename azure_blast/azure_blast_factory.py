"""
Factory functions for creating AzureBlast services without a service collection.
Useful in scripts and notebooks; create_service_provider() still supports the registry.
"""

from typing import Callable, Optional

from azure.core.credentials import TokenCredential

from .arm_client_wrapper import ArmClientWrapper
from .azure_key_vault import AzureKeyVault
from .azure_resource_client import AzureResourceClient
from .azure_service_bus import AzureServiceBus
from .azure_table_storage import AzureTableStorage
from .environment_validator import AzureBlastOptions, EnvironmentValidator
from .mssql_database import MssqlDatabase
from .registration import (
    ServiceCollection,
    ServiceProvider,
    add_azure_blast,
    add_azure_blast_options,
    resolve_credential,
)


def create_service_provider(configure: Callable[[AzureBlastOptions], None]) -> ServiceProvider:
    """Builds a provider holding every service enabled by configure()."""
    return create_service_collection(configure).build_service_provider()


def create_service_collection(configure: Callable[[AzureBlastOptions], None]) -> ServiceCollection:
    """Creates a collection with AzureBlast services so callers can add their own before building."""
    return add_azure_blast(ServiceCollection(), configure)


def create_service_provider_from_environment(environ=None) -> ServiceProvider:
    """Builds a provider from AZURE_BLAST_* environment variables."""
    options = EnvironmentValidator(environ).load_options()
    return add_azure_blast_options(ServiceCollection(), options).build_service_provider()


def create_database(connection_string: str) -> MssqlDatabase:
    _require(connection_string, "Connection string cannot be None or empty")
    database = MssqlDatabase()
    database.setup(connection_string)
    return database


def create_key_vault(vault_url: str, credential: Optional[TokenCredential] = None) -> AzureKeyVault:
    """Creates and initializes a Key Vault helper (DefaultAzureCredential unless given)."""
    _require(vault_url, "Vault URL cannot be None or empty")
    vault = AzureKeyVault(resolve_credential(credential))
    vault.initialize_key_vault(vault_url)
    return vault


def create_service_bus(connection_string: str, queue_name: str) -> AzureServiceBus:
    _require(connection_string, "Service Bus connection string is required")
    _require(queue_name, "Queue name is required")
    bus = AzureServiceBus()
    bus.setup(connection_string, queue_name)
    return bus


def create_table_storage(connection_string: str, table_name: Optional[str] = None) -> AzureTableStorage:
    _require(connection_string, "Table Storage connection string is required")
    table = AzureTableStorage()
    table.initialize(connection_string, table_name)
    return table


def create_arm_client_wrapper(credential: Optional[TokenCredential] = None) -> ArmClientWrapper:
    return ArmClientWrapper(resolve_credential(credential))


def create_resource_client(credential: Optional[TokenCredential] = None) -> AzureResourceClient:
    return AzureResourceClient(create_arm_client_wrapper(credential))


def _require(value: Optional[str], message: str) -> None:
    if not value or not value.strip():
        raise ValueError(message)
