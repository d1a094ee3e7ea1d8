import os
from typing import Any, Dict

from walletstore.access_data import generate_access_data_from_seed
from walletstore.crypto import decrypt_data, hash_password, pw_encode
from walletstore.networks import Mainnet, NetworkType


TEST_SEED = ("abandon abandon abandon abandon abandon abandon abandon abandon abandon "
    "abandon abandon about")
TEST_PIN = "1234"
TEST_PASSWORD = "pw1"
# Low so that the key stretching does not dominate the test run.
TEST_ITERATIONS = 10


def make_legacy_access_data(pin: str=TEST_PIN, password: str=TEST_PASSWORD,
        seed: str=TEST_SEED, iterations: int=TEST_ITERATIONS,
        network: NetworkType=Mainnet) -> Dict[str, Any]:
    """
    Build access data the way versions of the wallet before the storage version persisted it.
    """
    access_data = generate_access_data_from_seed(seed, pin, password, network,
        iterations=iterations)
    pin_salt = os.urandom(16).hex()
    password_salt = os.urandom(16).hex()
    return {
        "xpubkey": access_data["xpubkey"],
        "words": pw_encode(seed, password),
        "mainKey": pw_encode(decrypt_data(access_data["mainKey"], pin), pin),
        "hash": hash_password(pin, pin_salt, iterations, "sha1"),
        "salt": pin_salt,
        "hashIterations": iterations,
        "pbkdf2Hasher": "sha1",
        "hashPasswd": hash_password(password, password_salt, iterations, "sha1"),
        "saltPasswd": password_salt,
        "acctPathMainKey": pw_encode(decrypt_data(access_data["acctPathKey"], pin), pin),
        "authKey": pw_encode(decrypt_data(access_data["authKey"], pin), pin),
    }
