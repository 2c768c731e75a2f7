"""
Azure Key Vault secret helper.
Wraps SecretClient with an initialization guard and error logging.
"""

import logging
from typing import Callable, List, Optional

from azure.core.credentials import TokenCredential
from azure.keyvault.secrets import SecretClient

from .exceptions import NotConfiguredError

SecretClientFactory = Callable[[str, TokenCredential], SecretClient]


class AzureKeyVault:
    """Lists, reads, writes, deletes, purges and recovers Key Vault secrets."""

    def __init__(self, credential: TokenCredential, client_factory: Optional[SecretClientFactory] = None):
        """
        Args:
            credential: Credential used to authenticate against the vault
            client_factory: Builds a SecretClient from a vault URL and a credential
        """
        self.credential = credential
        self.logger = logging.getLogger(__name__)
        self._client_factory = client_factory or (lambda url, cred: SecretClient(vault_url=url, credential=cred))
        self._secret_client: Optional[SecretClient] = None

    @property
    def is_initialized(self) -> bool:
        return self._secret_client is not None

    def initialize_key_vault(self, vault_url: str) -> None:
        """
        Creates the secret client for a vault.

        Raises:
            ValueError: If vault_url is empty
        """
        if not vault_url or not vault_url.strip():
            raise ValueError("Vault URL cannot be None or empty")

        try:
            self._secret_client = self._client_factory(vault_url.strip(), self.credential)
            self.logger.debug(f"Key Vault client initialized for {vault_url}")
        except Exception as e:
            self.logger.error(f"Error initializing Key Vault client: {str(e)}")
            raise

    def list_secrets(self) -> List[str]:
        """Returns the names of all secrets in the vault."""
        client = self._ensure_client_initialized("list_secrets")
        try:
            names = [secret.name for secret in client.list_properties_of_secrets()]
            self.logger.debug(f"Retrieved {len(names)} secrets.")
            return names
        except Exception as e:
            self.logger.error(f"Error listing secrets: {str(e)}")
            raise

    def get_secret(self, name: str) -> str:
        client = self._ensure_client_initialized("get_secret")
        try:
            return client.get_secret(name).value
        except Exception as e:
            self.logger.error(f"Error getting secret {name}: {str(e)}")
            raise

    def set_secret(self, name: str, value: str) -> None:
        client = self._ensure_client_initialized("set_secret")
        try:
            client.set_secret(name, value)
            self.logger.debug(f"Set secret {name}.")
        except Exception as e:
            self.logger.error(f"Error setting secret {name}: {str(e)}")
            raise

    def delete_secret(self, name: str) -> None:
        """Deletes a secret and waits for the deletion to finish."""
        client = self._ensure_client_initialized("delete_secret")
        try:
            client.begin_delete_secret(name).wait()
            self.logger.debug(f"Deleted secret {name}.")
        except Exception as e:
            self.logger.error(f"Error deleting secret {name}: {str(e)}")
            raise

    def purge_secret(self, name: str) -> None:
        """Permanently removes a deleted secret (soft-delete vaults only)."""
        client = self._ensure_client_initialized("purge_secret")
        try:
            client.purge_deleted_secret(name)
            self.logger.debug(f"Purged secret {name}.")
        except Exception as e:
            self.logger.error(f"Error purging secret {name}: {str(e)}")
            raise

    def recover_deleted_secret(self, name: str) -> None:
        client = self._ensure_client_initialized("recover_deleted_secret")
        try:
            client.begin_recover_deleted_secret(name)
            self.logger.debug(f"Recovered secret {name}.")
        except Exception as e:
            self.logger.error(f"Error recovering secret {name}: {str(e)}")
            raise

    def _ensure_client_initialized(self, caller: str) -> SecretClient:
        if self._secret_client is None:
            raise NotConfiguredError(
                f"SecretClient not initialized. Call initialize_key_vault() before calling {caller}()."
            )
        return self._secret_client
