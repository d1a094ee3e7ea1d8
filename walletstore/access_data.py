# walletstore - local wallet credential storage
# Copyright (C) 2019-2020 The ElectrumSV Developers
#
# Permission is hereby granted, free of charge, to any person
# obtaining a copy of this software and associated documentation files
# (the "Software"), to deal in the Software without restriction,
# including without limitation the rights to use, copy, modify, merge,
# publish, distribute, sublicense, and/or sell copies of the Software,
# and to permit persons to whom the Software is furnished to do so,
# subject to the following conditions:
#
# The above copyright notice and this permission notice shall be
# included in all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND,
# EXPRESS OR IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF
# MERCHANTABILITY, FITNESS FOR A PARTICULAR PURPOSE AND
# NONINFRINGEMENT. IN NO EVENT SHALL THE AUTHORS OR COPYRIGHT HOLDERS
# BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER LIABILITY, WHETHER IN AN
# ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM, OUT OF OR IN
# CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

'''
Derivation of wallet access data.

Every function here takes the network explicitly. The credential store owns the choice of
network for its session and threads it through, so that the keys and the wallet identity
of a wallet are always derived against the network that was active when asked.
'''

from typing import Sequence

from bitcoinx import (BIP32PrivateKey, bip32_decompose_chain_string, bip32_key_from_string,
    base58_decode_check, Base58Error, BIP39Mnemonic, Wordlists)

from .constants import CHANGE_SUBPATH, HASH_ITERATIONS, WalletFlag, WalletType
from .crypto import encrypt_data, sha256d
from .exceptions import InvalidSeedError
from .logs import logs
from .networks import NetworkType
from .types import AccessData


logger = logs.get_logger("access-data")

# Version bytes, depth, parent fingerprint and child number precede the chain code and key.
XKEY_DEPTH_OFFSET = 4
ACCOUNT_DEPTH = 3
CHANGE_DEPTH = 4


def bip44_account_derivation(network: NetworkType, account_id: int=0) -> str:
    return "m/44'/%d'/%d'" % (network.BIP44_COIN_TYPE, int(account_id))


def auth_derivation(network: NetworkType) -> str:
    return "m/%d'/%d'" % (network.BIP44_COIN_TYPE, network.BIP44_COIN_TYPE)


def normalize_seed(seed: str) -> str:
    return " ".join(seed.split()).lower()


def is_valid_seed(seed: str) -> bool:
    try:
        return bool(BIP39Mnemonic.is_valid(normalize_seed(seed),
            Wordlists.bip39_wordlist("english.txt")))
    except (ValueError, BIP39Mnemonic.BadWords):
        return False


def private_key_from_bip32_seed(bip32_seed: bytes, derivation_text: str,
        network: NetworkType) -> BIP32PrivateKey:
    private_key = BIP32PrivateKey.from_seed(bip32_seed, network.COIN)
    for n in bip32_decompose_chain_string(derivation_text):
        private_key = private_key.child_safe(n)
    return private_key


def _derive_subpath(private_key: BIP32PrivateKey, subpath: Sequence[int]) -> BIP32PrivateKey:
    for n in subpath:
        private_key = private_key.child_safe(n)
    return private_key


def generate_access_data_from_seed(seed: str, pin: str, password: str, network: NetworkType,
        passphrase: str='', iterations: int=HASH_ITERATIONS) -> AccessData:
    """
    Derive the access data of a software wallet from its seed words.

    The change level private key, account level private key and authentication key are
    encrypted under the PIN. The seed words are encrypted under the password.
    """
    words = normalize_seed(seed)
    if not is_valid_seed(words):
        raise InvalidSeedError()

    bip32_seed = BIP39Mnemonic.to_seed(words, passphrase)
    account_key = private_key_from_bip32_seed(bip32_seed, bip44_account_derivation(network),
        network)
    change_key = _derive_subpath(account_key, CHANGE_SUBPATH)
    auth_key = private_key_from_bip32_seed(bip32_seed, auth_derivation(network), network)

    return {
        "walletType": WalletType.P2PKH.value,
        "walletFlags": int(WalletFlag.NONE),
        "xpubkey": change_key.public_key.to_extended_key_string(),
        "mainKey": encrypt_data(change_key.to_extended_key_string(), pin,
            iterations=iterations),
        "acctPathKey": encrypt_data(account_key.to_extended_key_string(), pin,
            iterations=iterations),
        "authKey": encrypt_data(auth_key.to_extended_key_string(), pin, iterations=iterations),
        "words": encrypt_data(words, password, iterations=iterations),
    }


def _decode_extended_key(xkey_text: str, network: NetworkType) -> bytes:
    try:
        raw = base58_decode_check(xkey_text)
    except Base58Error:
        raise ValueError("not an extended key")
    if len(raw) != 78:
        raise ValueError("not an extended key")
    if raw[:XKEY_DEPTH_OFFSET] != network.COIN.xpub_verbytes:
        raise ValueError(f"extended public key is not for the {network.NAME} network")
    return raw


def generate_access_data_from_xpub(xpub: str, network: NetworkType, hardware: bool=False) \
        -> AccessData:
    """
    Build the access data of a watch-only or hardware wallet from an extended public key.

    Account level keys are derived to the change level, which is the level the wallet
    addresses are generated from.
    """
    raw = _decode_extended_key(xpub, network)
    depth = raw[XKEY_DEPTH_OFFSET]
    if depth == ACCOUNT_DEPTH:
        logger.debug("deriving the change level key from an account level key")
        public_key = bip32_key_from_string(xpub)
        for n in CHANGE_SUBPATH:
            public_key = public_key.child_safe(n)
        xpub = public_key.to_extended_key_string()
    elif depth != CHANGE_DEPTH:
        raise ValueError(f"unexpected extended public key depth {depth}")

    wallet_flags = WalletFlag.READONLY
    if hardware:
        wallet_flags |= WalletFlag.HARDWARE
    return {
        "walletType": WalletType.P2PKH.value,
        "walletFlags": int(wallet_flags),
        "xpubkey": xpub,
    }


def get_wallet_id_from_xpub(xpub: str) -> str:
    return sha256d(xpub).hex()

