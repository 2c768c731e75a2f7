"""
AzureBlast: convenience wrappers over Azure SDK clients.
Service Bus, Key Vault, Table Storage, Resource Manager and SQL Server, plus
options-driven registration of those services.
"""

from .environment_validator import EnvironmentValidator, AzureBlastOptions
from .exceptions import AzureBlastError, NotConfiguredError, MessageTooLargeError, ServiceNotRegisteredError
from .models import OutgoingMessage, Entity, Relationship
from .interfaces import MessageBatch, MessageSender, Receiver, SessionReceiver
from .azure_service_bus import AzureServiceBus
from .azure_key_vault import AzureKeyVault
from .azure_table_storage import AzureTableStorage
from .arm_client_wrapper import ArmClientWrapper
from .azure_resource_client import AzureResourceClient
from .mssql_database import MssqlDatabase
from .registration import (
    Lifetime,
    ServiceDescriptor,
    ServiceCollection,
    ServiceProvider,
    AzureBlastBuilder,
    plan_registrations,
    add_azure_blast,
    use_azure_blast,
)
from . import header_factory, payload_factory, bus_send, azure_blast_factory

__version__ = "1.0.0"
__author__ = "AzureBlast Team"

__all__ = [
    'EnvironmentValidator',
    'AzureBlastOptions',
    'AzureBlastError',
    'NotConfiguredError',
    'MessageTooLargeError',
    'ServiceNotRegisteredError',
    'OutgoingMessage',
    'Entity',
    'Relationship',
    'MessageBatch',
    'MessageSender',
    'Receiver',
    'SessionReceiver',
    'AzureServiceBus',
    'AzureKeyVault',
    'AzureTableStorage',
    'ArmClientWrapper',
    'AzureResourceClient',
    'MssqlDatabase',
    'Lifetime',
    'ServiceDescriptor',
    'ServiceCollection',
    'ServiceProvider',
    'AzureBlastBuilder',
    'plan_registrations',
    'add_azure_blast',
    'use_azure_blast',
    'header_factory',
    'payload_factory',
    'bus_send',
    'azure_blast_factory',
]
