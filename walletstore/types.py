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

from typing import Any, Dict, List, NamedTuple, Optional, TypedDict, Union

from .constants import AccessDataKind


class EncryptedData(TypedDict):
    data: str
    hash: str
    salt: str
    iterations: int
    pbkdf2Hasher: str


class _AccessDataBase(TypedDict):
    walletType: str
    walletFlags: int
    xpubkey: str


class AccessData(_AccessDataBase, total=False):
    # Hardware wallets never hold local secrets, so these are absent for them.
    words: EncryptedData
    mainKey: EncryptedData
    acctPathKey: EncryptedData
    authKey: EncryptedData


class _LegacyAccessDataBase(TypedDict):
    xpubkey: str
    words: str
    mainKey: str
    hash: str
    salt: str
    hashIterations: int
    pbkdf2Hasher: str


class LegacyAccessData(_LegacyAccessDataBase, total=False):
    hashPasswd: str
    saltPasswd: str
    acctPathMainKey: str
    authKey: str


class TokenData(TypedDict):
    uid: str
    name: str
    symbol: str


class AvailableAccessData(NamedTuple):
    '''The access data of a wallet as found on disk, tagged with its layout.'''
    kind: AccessDataKind
    data: Union[LegacyAccessData, AccessData]


class TokenMigrationFailure(NamedTuple):
    token: Any
    reason: str


class MigrationResult(NamedTuple):
    # Whether legacy data was found and converted, rather than only the version stamped.
    migrated: bool
    wallet_id: Optional[str]
    tokens_migrated: int
    failed_tokens: List[TokenMigrationFailure]


TokenSignatures = Dict[str, Any]
