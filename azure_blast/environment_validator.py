"""
Options for AzureBlast registration and their loading from environment variables.
Only the components whose settings are present get registered.
"""

import os
import logging
from typing import Optional

from azure.core.credentials import TokenCredential


class AzureBlastOptions:
    """
    Configuration object listing which AzureBlast components to register.
    Unset or empty values mean the corresponding component is not registered.
    """

    def __init__(self):
        self.sql_connection_string: str = ""
        self.key_vault_url: Optional[str] = None
        self.table_storage_connection_string: Optional[str] = None
        self.table_name: Optional[str] = None
        self.service_bus_connection_string: Optional[str] = None
        self.service_bus_queue_name: Optional[str] = None
        # Falls back to DefaultAzureCredential when None
        self.credential: Optional[TokenCredential] = None

    @property
    def has_sql(self) -> bool:
        return _present(self.sql_connection_string)

    @property
    def has_key_vault(self) -> bool:
        return _present(self.key_vault_url)

    @property
    def has_table_storage(self) -> bool:
        return _present(self.table_storage_connection_string)

    @property
    def has_service_bus(self) -> bool:
        return _present(self.service_bus_connection_string) and _present(self.service_bus_queue_name)


def _present(value: Optional[str]) -> bool:
    return bool(value and value.strip())


class EnvironmentValidator:
    """Validates and loads AzureBlast options from environment variables."""

    SQL_CONNECTION_STRING = "AZURE_BLAST_SQL_CONNECTION_STRING"
    KEY_VAULT_URL = "AZURE_BLAST_KEY_VAULT_URL"
    TABLE_STORAGE_CONNECTION_STRING = "AZURE_BLAST_TABLE_STORAGE_CONNECTION_STRING"
    TABLE_NAME = "AZURE_BLAST_TABLE_NAME"
    SERVICE_BUS_CONNECTION_STRING = "AZURE_BLAST_SERVICE_BUS_CONNECTION_STRING"
    SERVICE_BUS_QUEUE_NAME = "AZURE_BLAST_SERVICE_BUS_QUEUE_NAME"

    SECRET_KEYWORDS = ['CONNECTION_STRING']

    def __init__(self, environ=None):
        self.environ = os.environ if environ is None else environ
        self.logger = logging.getLogger(__name__)

    def load_options(self) -> AzureBlastOptions:
        """
        Reads all AZURE_BLAST_* variables into an options object.

        Returns:
            AzureBlastOptions: Options with every present variable applied

        Raises:
            ValueError: If a present variable has an invalid value
        """
        self._log_environment_variables()

        options = AzureBlastOptions()
        options.sql_connection_string = self._get(self.SQL_CONNECTION_STRING) or ""
        options.key_vault_url = self._get_and_validate_vault_url()
        options.table_storage_connection_string = self._get(self.TABLE_STORAGE_CONNECTION_STRING)
        options.table_name = self._get(self.TABLE_NAME)
        options.service_bus_connection_string = self._get(self.SERVICE_BUS_CONNECTION_STRING)
        options.service_bus_queue_name = self._get(self.SERVICE_BUS_QUEUE_NAME)

        self._validate_service_bus_pair(options)
        self._log_configuration_summary(options)
        return options

    def _get(self, name: str) -> Optional[str]:
        """Gets a variable with surrounding whitespace removed; blank values count as missing."""
        value = self.environ.get(name)
        if value is None:
            return None
        value = value.strip()
        return value or None

    def _log_environment_variables(self) -> None:
        """Logs the AzureBlast variables that are set, masking connection strings."""
        relevant_vars = {k: v for k, v in self.environ.items() if k.upper().startswith('AZURE_BLAST_')}

        self.logger.info("=== AZURE BLAST ENVIRONMENT ===")
        for key, value in relevant_vars.items():
            if any(keyword in key.upper() for keyword in self.SECRET_KEYWORDS):
                self.logger.info(f"{key}: {'*' * 20}")
            else:
                self.logger.info(f"{key}: {value}")
        self.logger.info("=== END AZURE BLAST ENVIRONMENT ===")

    def _get_and_validate_vault_url(self) -> Optional[str]:
        """Gets and validates the Key Vault URL."""
        vault_url = self._get(self.KEY_VAULT_URL)
        if vault_url is None:
            return None

        if not vault_url.startswith('https://'):
            raise ValueError(f"Invalid {self.KEY_VAULT_URL} format: '{vault_url}' (should start with https://)")

        return vault_url

    def _validate_service_bus_pair(self, options: AzureBlastOptions) -> None:
        """Warns when only half of the Service Bus settings is present."""
        if bool(options.service_bus_connection_string) != bool(options.service_bus_queue_name):
            self.logger.warning(
                f"Service Bus needs both {self.SERVICE_BUS_CONNECTION_STRING} and "
                f"{self.SERVICE_BUS_QUEUE_NAME}; it will not be registered"
            )

    def _log_configuration_summary(self, options: AzureBlastOptions) -> None:
        """Logs which components the loaded options enable."""
        self.logger.info(f"SQL: {'enabled' if options.has_sql else 'disabled'}")
        self.logger.info(f"Key Vault: {options.key_vault_url or 'disabled'}")
        self.logger.info(f"Table Storage: {'enabled' if options.has_table_storage else 'disabled'}"
                         f" (table: {options.table_name or '-'})")
        self.logger.info(f"Service Bus: {options.service_bus_queue_name if options.has_service_bus else 'disabled'}")
        self.logger.info("Environment validation completed successfully")
