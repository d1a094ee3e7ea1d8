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

from .i18n import _


class InvalidPassword(Exception):
    def __str__(self):
        return _("Incorrect password")


class InvalidSeedError(Exception):
    def __str__(self):
        return _("Invalid seed words")


class WalletNotLoadedError(Exception):
    '''An operation that requires a loaded wallet was attempted without one.'''

    def __init__(self, message: str="") -> None:
        super().__init__(message)
        self.message = message

    def __str__(self):
        if self.message:
            return self.message
        return _("No wallet is loaded")


class StorageMigrationError(Exception):
    pass


class DatabaseMigrationError(Exception):
    pass


class UnknownNetworkError(ValueError):
    def __init__(self, network_name: str) -> None:
        super().__init__(network_name)
        self.network_name = network_name

    def __str__(self):
        return _("Unknown network '{}'").format(self.network_name)
