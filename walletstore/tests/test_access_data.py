from bitcoinx import bip32_key_from_string
import pytest

from walletstore.access_data import (auth_derivation, bip44_account_derivation,
    generate_access_data_from_seed, generate_access_data_from_xpub, get_wallet_id_from_xpub,
    is_valid_seed)
from walletstore.constants import WalletFlag
from walletstore.crypto import decrypt_data, sha256d
from walletstore.exceptions import InvalidPassword, InvalidSeedError
from walletstore.networks import Mainnet, Privatenet, Testnet

from .util import TEST_ITERATIONS, TEST_PASSWORD, TEST_PIN, TEST_SEED


def _seed_access_data(network=Mainnet, seed=TEST_SEED, passphrase=''):
    return generate_access_data_from_seed(seed, TEST_PIN, TEST_PASSWORD, network,
        passphrase, iterations=TEST_ITERATIONS)


def test_derivation_paths() -> None:
    assert bip44_account_derivation(Mainnet) == "m/44'/280'/0'"
    assert bip44_account_derivation(Testnet, 1) == "m/44'/280'/1'"
    assert auth_derivation(Mainnet) == "m/280'/280'"


def test_is_valid_seed() -> None:
    assert is_valid_seed(TEST_SEED)
    assert is_valid_seed("  " + TEST_SEED.upper() + "  ")
    assert not is_valid_seed("abandon abandon abandon")
    assert not is_valid_seed(TEST_SEED.replace("about", "zoo"))
    assert not is_valid_seed("")


def test_generate_from_seed_mainnet() -> None:
    access_data = _seed_access_data()
    assert access_data["walletType"] == "p2pkh"
    assert access_data["walletFlags"] == 0
    assert access_data["xpubkey"].startswith("xpub")

    main_key = decrypt_data(access_data["mainKey"], TEST_PIN)
    assert main_key.startswith("xprv")
    assert bip32_key_from_string(main_key).public_key.to_extended_key_string() == \
        access_data["xpubkey"]
    assert decrypt_data(access_data["acctPathKey"], TEST_PIN).startswith("xprv")
    assert decrypt_data(access_data["authKey"], TEST_PIN).startswith("xprv")
    assert decrypt_data(access_data["words"], TEST_PASSWORD) == TEST_SEED


def test_generate_from_seed_key_depths() -> None:
    access_data = _seed_access_data()
    change_key = bip32_key_from_string(decrypt_data(access_data["mainKey"], TEST_PIN))
    account_key = bip32_key_from_string(decrypt_data(access_data["acctPathKey"], TEST_PIN))
    auth_key = bip32_key_from_string(decrypt_data(access_data["authKey"], TEST_PIN))
    assert change_key.derivation().depth == 4
    assert account_key.derivation().depth == 3
    assert auth_key.derivation().depth == 2
    assert account_key.child_safe(0).to_extended_key_string() == \
        change_key.to_extended_key_string()


@pytest.mark.parametrize("network", (Testnet, Privatenet))
def test_generate_from_seed_test_networks(network) -> None:
    access_data = _seed_access_data(network)
    assert access_data["xpubkey"].startswith("tpub")
    assert decrypt_data(access_data["mainKey"], TEST_PIN).startswith("tprv")


def test_generate_from_seed_is_deterministic() -> None:
    first = _seed_access_data()
    second = _seed_access_data(seed="  " + TEST_SEED.upper().replace(" ", "  "))
    assert first["xpubkey"] == second["xpubkey"]
    # Fresh salts every time.
    assert first["mainKey"]["salt"] != second["mainKey"]["salt"]


def test_generate_from_seed_passphrase() -> None:
    assert _seed_access_data()["xpubkey"] != _seed_access_data(passphrase="extra")["xpubkey"]


def test_generate_from_seed_invalid() -> None:
    with pytest.raises(InvalidSeedError):
        _seed_access_data(seed="not a valid seed")


def test_generate_from_seed_pin_and_password_are_separate() -> None:
    access_data = _seed_access_data()
    assert decrypt_data(access_data["words"], TEST_PASSWORD) == TEST_SEED
    with pytest.raises(InvalidPassword):
        decrypt_data(access_data["words"], TEST_PIN)


def test_generate_from_xpub_change_level() -> None:
    xpub = _seed_access_data()["xpubkey"]
    access_data = generate_access_data_from_xpub(xpub, Mainnet)
    assert access_data == {
        "walletType": "p2pkh",
        "walletFlags": WalletFlag.READONLY,
        "xpubkey": xpub,
    }


def test_generate_from_xpub_hardware() -> None:
    xpub = _seed_access_data()["xpubkey"]
    access_data = generate_access_data_from_xpub(xpub, Mainnet, hardware=True)
    assert access_data["walletFlags"] == WalletFlag.READONLY | WalletFlag.HARDWARE
    assert "mainKey" not in access_data
    assert "words" not in access_data


def test_generate_from_xpub_account_level() -> None:
    seed_access_data = _seed_access_data()
    account_key = bip32_key_from_string(decrypt_data(seed_access_data["acctPathKey"],
        TEST_PIN))
    account_xpub = account_key.public_key.to_extended_key_string()

    access_data = generate_access_data_from_xpub(account_xpub, Mainnet)
    assert access_data["xpubkey"] == seed_access_data["xpubkey"]


def test_generate_from_xpub_wrong_network() -> None:
    xpub = _seed_access_data(Testnet)["xpubkey"]
    with pytest.raises(ValueError):
        generate_access_data_from_xpub(xpub, Mainnet)


@pytest.mark.parametrize("text", ("", "xpub", "not base58 0OIl"))
def test_generate_from_xpub_invalid(text: str) -> None:
    with pytest.raises(ValueError):
        generate_access_data_from_xpub(text, Mainnet)


def test_generate_from_xpub_bad_depth() -> None:
    seed_access_data = _seed_access_data()
    auth_key = bip32_key_from_string(decrypt_data(seed_access_data["authKey"], TEST_PIN))
    with pytest.raises(ValueError):
        generate_access_data_from_xpub(auth_key.public_key.to_extended_key_string(), Mainnet)


def test_get_wallet_id_from_xpub() -> None:
    xpub = _seed_access_data()["xpubkey"]
    wallet_id = get_wallet_id_from_xpub(xpub)
    assert wallet_id == sha256d(xpub).hex()
    assert len(wallet_id) == 64
    assert wallet_id != get_wallet_id_from_xpub(_seed_access_data(Testnet)["xpubkey"])
