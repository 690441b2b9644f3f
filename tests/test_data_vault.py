"""Unit tests for the data vault helpers."""

from __future__ import annotations

import pytest
from cryptography.fernet import Fernet

from socialgram.security import data_vault


@pytest.fixture(autouse=True)
def _fresh_vault(monkeypatch):
    monkeypatch.setenv("DATA_VAULT_MASTER_KEY", Fernet.generate_key().decode("utf-8"))
    data_vault.reset_vault()
    yield
    data_vault.reset_vault()


def test_encrypt_text_round_trip() -> None:
    plaintext = '{"state": {"is_authenticated": true}}'
    ciphertext = data_vault.encrypt_text(plaintext)
    assert ciphertext.startswith("vault.v1:")
    assert data_vault.is_ciphertext(ciphertext)
    assert data_vault.decrypt_text(ciphertext) == plaintext


def test_encrypt_is_idempotent_and_plaintext_passes_through() -> None:
    ciphertext = data_vault.encrypt_text("secret")
    assert data_vault.encrypt_text(ciphertext) == ciphertext
    assert data_vault.decrypt_text("plain value") == "plain value"
    assert data_vault.decrypt_text("") == ""


def test_rotated_key_cannot_decrypt(monkeypatch) -> None:
    ciphertext = data_vault.encrypt_text("secret")
    monkeypatch.setenv("DATA_VAULT_MASTER_KEY", Fernet.generate_key().decode("utf-8"))
    data_vault.reset_vault()

    with pytest.raises(data_vault.DataVaultError):
        data_vault.decrypt_text(ciphertext)


def test_placeholder_key_is_not_configured(monkeypatch) -> None:
    monkeypatch.setenv("DATA_VAULT_MASTER_KEY", "changeme")
    data_vault.reset_vault()

    assert data_vault.is_vault_configured() is False
    with pytest.raises(data_vault.DataVaultError):
        data_vault.encrypt_text("secret")
