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
Per-wallet structured storage.

Each wallet has its own database, named by its wallet id. It holds the access data of the
wallet and the tokens the user has registered with it. All access goes through the database
context's threads and is awaited.
'''

import os
from typing import Any, List, Optional

from electrumsv_database.sqlite import DatabaseContext

from .logs import logs
from .types import AccessData, TokenData
from .wallet_database import functions as db_functions
from .wallet_database.migration import prepare_database
from .wallet_database.types import TokenRow, WalletDataRow


logger = logs.get_logger("storage")

ACCESS_DATA_KEY = "access_data"


def validate_token(token: Any) -> TokenRow:
    if not isinstance(token, dict):
        raise ValueError("token descriptor is not a mapping")
    values = []
    for field_name in ("uid", "name", "symbol"):
        value = token.get(field_name)
        if not isinstance(value, str) or not value:
            raise ValueError(f"token descriptor has no valid '{field_name}'")
        values.append(value)
    return TokenRow(*values)


class WalletStorage:
    _keepalive_connection: Any = None

    def __init__(self, path: str, keep_alive: bool=False) -> None:
        self._path = path
        self._db_context: Optional[DatabaseContext] = DatabaseContext(path)

        connection = self._db_context.acquire_connection()
        try:
            prepare_database(connection)
        finally:
            if keep_alive:
                # In-memory databases only persist while a connection to them is open.
                self._keepalive_connection = connection
            else:
                self._db_context.release_connection(connection)
        logger.debug("opened wallet storage '%s'", path)

    @classmethod
    def in_memory(cls, name: Optional[str]=None) -> 'WalletStorage':
        if name is None:
            name = os.urandom(8).hex()
        return cls(DatabaseContext.shared_memory_uri(name), keep_alive=True)

    @classmethod
    def for_wallet(cls, wallet_directory: str, wallet_id: str) -> 'WalletStorage':
        os.makedirs(wallet_directory, exist_ok=True)
        return cls(os.path.join(wallet_directory, wallet_id))

    def get_path(self) -> str:
        return self._path

    def is_closed(self) -> bool:
        return self._db_context is None

    def close(self) -> None:
        if self._db_context is None:
            return
        if self._keepalive_connection is not None:
            self._db_context.release_connection(self._keepalive_connection)
            self._keepalive_connection = None
        # Wait for the database to finish writing, and verify that the context has been fully
        # released by all stores that make use of it.
        self._db_context.close()
        self._db_context = None
        logger.debug("closed wallet storage '%s'", self._path)

    def _get_db_context(self) -> DatabaseContext:
        assert self._db_context is not None, "wallet storage is closed"
        return self._db_context

    async def save_access_data(self, access_data: AccessData) -> None:
        # A single upsert, the previous access data remains until it is replaced.
        await self._get_db_context().run_in_thread_async(db_functions.update_wallet_datas,
            [ WalletDataRow(ACCESS_DATA_KEY, access_data) ])

    async def get_access_data(self) -> Optional[AccessData]:
        return await self._get_db_context().run_in_thread_async(db_functions.read_wallet_data,
            ACCESS_DATA_KEY)

    async def register_token(self, token: TokenData) -> None:
        row = validate_token(token)
        await self._get_db_context().run_in_thread_async(db_functions.create_or_update_tokens,
            [ row ])

    async def unregister_token(self, token_uid: str) -> bool:
        return await self._get_db_context().run_in_thread_async(db_functions.delete_token,
            token_uid)

    async def is_token_registered(self, token_uid: str) -> bool:
        row = await self._get_db_context().run_in_thread_async(db_functions.read_token,
            token_uid)
        return row is not None

    async def get_registered_tokens(self) -> List[TokenData]:
        rows = await self._get_db_context().run_in_thread_async(db_functions.read_tokens)
        return [ { "uid": row.token_id, "name": row.name, "symbol": row.symbol }
            for row in rows ]
