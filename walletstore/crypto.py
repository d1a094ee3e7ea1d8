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

import base64
import os
import hashlib
from typing import Optional, Union

import pyaes

from .constants import HASH_ITERATIONS, Pbkdf2Hasher, SALT_SIZE
from .exceptions import InvalidPassword
from .types import EncryptedData
from .util import assert_bytes, constant_time_compare, to_bytes, to_string


try:
    from Cryptodome.Cipher import AES
except ImportError:
    AES = None # type: ignore


class InvalidPadding(Exception):
    pass


def append_PKCS7_padding(data: bytes) -> bytes:
    assert_bytes(data)
    padlen = 16 - (len(data) % 16)
    return data + bytes([padlen]) * padlen


def strip_PKCS7_padding(data: bytes) -> bytes:
    assert_bytes(data)
    if len(data) % 16 != 0 or len(data) == 0:
        raise InvalidPadding("invalid length")
    padlen = data[-1]
    if not 0 < padlen <= 16:
        raise InvalidPadding("invalid padding byte (out of range)")
    for i in data[-padlen:]:
        if i != padlen:
            raise InvalidPadding("invalid padding byte (inconsistent)")
    return data[0:-padlen]


def aes_encrypt_with_iv(key: bytes, iv: bytes, data: bytes) -> bytes:
    assert_bytes(key, iv, data)
    data = append_PKCS7_padding(data)
    if AES:
        e = AES.new(key, AES.MODE_CBC, iv).encrypt(data)
    else:
        aes_cbc = pyaes.AESModeOfOperationCBC(key, iv=iv)
        aes = pyaes.Encrypter(aes_cbc, padding=pyaes.PADDING_NONE)
        e = aes.feed(data) + aes.feed()  # empty aes.feed() flushes buffer
    return e


def aes_decrypt_with_iv(key: bytes, iv: bytes, data: bytes) -> bytes:
    assert_bytes(key, iv, data)
    if AES:
        cipher = AES.new(key, AES.MODE_CBC, iv)
        data = cipher.decrypt(data)
    else:
        aes_cbc = pyaes.AESModeOfOperationCBC(key, iv=iv)
        aes = pyaes.Decrypter(aes_cbc, padding=pyaes.PADDING_NONE)
        data = aes.feed(data) + aes.feed()  # empty aes.feed() flushes buffer
    try:
        return strip_PKCS7_padding(data)
    except InvalidPadding:
        raise InvalidPassword()


def EncodeAES_base64(secret: bytes, msg: bytes) -> bytes:
    """Returns base64 encoded ciphertext."""
    e = EncodeAES_bytes(secret, msg)
    return base64.b64encode(e)

def EncodeAES_bytes(secret: bytes, msg: bytes) -> bytes:
    assert_bytes(msg)
    iv = bytes(os.urandom(16))
    ct = aes_encrypt_with_iv(secret, iv, msg)
    return iv + ct

def DecodeAES_base64(secret: bytes, ciphertext_b64: Union[bytes, str]) -> bytes:
    ciphertext = bytes(base64.b64decode(ciphertext_b64))
    return DecodeAES_bytes(secret, ciphertext)

def DecodeAES_bytes(secret: bytes, ciphertext: bytes) -> bytes:
    assert_bytes(ciphertext)
    iv, e = ciphertext[:16], ciphertext[16:]
    s = aes_decrypt_with_iv(secret, iv, e)
    return s


def pw_encode(data: str, password: Union[bytes, str]) -> str:
    secret = sha256d(password)
    return EncodeAES_base64(secret, to_bytes(data, "utf8")).decode('utf8')


def pw_decode(data: str, password: Optional[Union[bytes, str]]) -> str:
    if password is None:
        raise InvalidPassword()
    secret = sha256d(password)
    try:
        d = to_string(DecodeAES_base64(secret, data), "utf8")
    except Exception:
        raise InvalidPassword()
    return d


def sha256(x: Union[bytes, str]) -> bytes:
    x = to_bytes(x, 'utf8')
    return hashlib.sha256(x).digest()


def sha256d(x: Union[bytes, str]) -> bytes:
    x = to_bytes(x, 'utf8')
    return sha256(sha256(x))


## Password records.
#
# An encrypted record carries the ciphertext alongside the salt, iteration count and hasher
# that produced its verification hash. The verification hash is the hex SHA256 of the hex
# PBKDF2 key, so that the password can be checked without attempting decryption.

def generate_salt() -> str:
    return os.urandom(SALT_SIZE).hex()


def hash_password(password: str, salt: str, iterations: int=HASH_ITERATIONS,
        hasher: str=Pbkdf2Hasher.SHA1.value) -> str:
    if hasher not in (Pbkdf2Hasher.SHA1.value, Pbkdf2Hasher.SHA256.value):
        raise ValueError(f"unsupported pbkdf2 hasher '{hasher}'")
    key = hashlib.pbkdf2_hmac(hasher, to_bytes(password), to_bytes(salt), iterations, dklen=32)
    return hashlib.sha256(key.hex().encode('ascii')).hexdigest()


def encrypt_data(data: str, password: str, salt: Optional[str]=None,
        iterations: int=HASH_ITERATIONS, hasher: str=Pbkdf2Hasher.SHA1.value) -> EncryptedData:
    if salt is None:
        salt = generate_salt()
    return {
        "data": pw_encode(data, password),
        "hash": hash_password(password, salt, iterations, hasher),
        "salt": salt,
        "iterations": iterations,
        "pbkdf2Hasher": hasher,
    }


def check_password(record: EncryptedData, password: str) -> bool:
    """
    Whether the password produced the verification hash of the given record.

    A wrong password is an expected outcome and is reported as `False`, never raised.
    """
    hasher = record.get("pbkdf2Hasher") or Pbkdf2Hasher.SHA1.value
    iterations = record.get("iterations") or HASH_ITERATIONS
    password_hash = hash_password(password, record["salt"], iterations, hasher)
    return constant_time_compare(password_hash, record["hash"])


def decrypt_data(record: EncryptedData, password: str) -> str:
    # Words carried over from legacy access data can lack a password hash, then only the
    # decryption itself can reject the password.
    if record.get("hash") and not check_password(record, password):
        raise InvalidPassword()
    return pw_decode(record["data"], password)
