"""Tests for AzureKeyVault."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from azure.core.exceptions import ResourceNotFoundError

from azure_blast.azure_key_vault import AzureKeyVault
from azure_blast.exceptions import NotConfiguredError

VAULT_URL = "https://contoso.vault.azure.net/"


@pytest.fixture
def secret_client():
    return MagicMock()


@pytest.fixture
def vault(secret_client):
    key_vault = AzureKeyVault(MagicMock(), client_factory=lambda url, cred: secret_client)
    key_vault.initialize_key_vault(VAULT_URL)
    return key_vault


def test_initialize_passes_url_and_credential():
    credential = MagicMock()
    factory = MagicMock()

    key_vault = AzureKeyVault(credential, client_factory=factory)
    key_vault.initialize_key_vault(VAULT_URL)

    factory.assert_called_once_with(VAULT_URL, credential)
    assert key_vault.is_initialized


@pytest.mark.parametrize("url", ["", "  ", None])
def test_initialize_rejects_blank_url(url):
    with pytest.raises(ValueError):
        AzureKeyVault(MagicMock(), client_factory=MagicMock()).initialize_key_vault(url)


def test_initialize_propagates_factory_errors():
    factory = MagicMock(side_effect=ValueError("bad url"))
    with pytest.raises(ValueError, match="bad url"):
        AzureKeyVault(MagicMock(), client_factory=factory).initialize_key_vault("not-a-url")


@pytest.mark.parametrize("operation", [
    lambda v: v.list_secrets(),
    lambda v: v.get_secret("a"),
    lambda v: v.set_secret("a", "b"),
    lambda v: v.delete_secret("a"),
    lambda v: v.purge_secret("a"),
    lambda v: v.recover_deleted_secret("a"),
])
def test_operations_require_initialization(operation):
    factory = MagicMock()
    with pytest.raises(NotConfiguredError):
        operation(AzureKeyVault(MagicMock(), client_factory=factory))
    factory.assert_not_called()


def test_list_secrets_returns_names(vault, secret_client):
    secret_client.list_properties_of_secrets.return_value = [SimpleNamespace(name="a"), SimpleNamespace(name="b")]
    assert vault.list_secrets() == ["a", "b"]


def test_get_secret_returns_value(vault, secret_client):
    secret_client.get_secret.return_value = SimpleNamespace(value="s3cr3t")
    assert vault.get_secret("db-password") == "s3cr3t"
    secret_client.get_secret.assert_called_once_with("db-password")


def test_get_secret_propagates_not_found(vault, secret_client):
    secret_client.get_secret.side_effect = ResourceNotFoundError("missing")
    with pytest.raises(ResourceNotFoundError):
        vault.get_secret("missing")


def test_set_secret(vault, secret_client):
    vault.set_secret("name", "value")
    secret_client.set_secret.assert_called_once_with("name", "value")


def test_delete_secret_waits_for_completion(vault, secret_client):
    vault.delete_secret("name")
    secret_client.begin_delete_secret.assert_called_once_with("name")
    secret_client.begin_delete_secret.return_value.wait.assert_called_once()


def test_purge_and_recover(vault, secret_client):
    vault.purge_secret("old")
    vault.recover_deleted_secret("kept")

    secret_client.purge_deleted_secret.assert_called_once_with("old")
    secret_client.begin_recover_deleted_secret.assert_called_once_with("kept")
