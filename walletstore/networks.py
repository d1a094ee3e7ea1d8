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

from typing import Dict, Tuple, Type, Union

from bitcoinx import Bitcoin, BitcoinRegtest, BitcoinTestnet

from .constants import HATHOR_BIP44_CODE
from .exceptions import UnknownNetworkError


class Mainnet(object):
    NAME = 'mainnet'
    COIN = Bitcoin
    BIP44_COIN_TYPE = HATHOR_BIP44_CODE


class Testnet(object):
    NAME = 'testnet'
    COIN = BitcoinTestnet
    BIP44_COIN_TYPE = HATHOR_BIP44_CODE


class Privatenet(object):
    NAME = 'privatenet'
    COIN = BitcoinRegtest
    BIP44_COIN_TYPE = HATHOR_BIP44_CODE


NetworkType = Union[Type[Mainnet], Type[Testnet], Type[Privatenet]]

NETWORKS: Tuple[NetworkType, ...] = (Mainnet, Testnet, Privatenet)
_NETWORKS_BY_NAME: Dict[str, NetworkType] = { net.NAME: net for net in NETWORKS }


def network_from_name(network_name: str) -> NetworkType:
    """
    Resolve a network name to its definition.

    Named test networks (for instance `testnet-golf`) share the testnet definition.
    """
    net = _NETWORKS_BY_NAME.get(network_name)
    if net is not None:
        return net
    if isinstance(network_name, str) and network_name.startswith(Testnet.NAME + '-'):
        return Testnet
    raise UnknownNetworkError(network_name)
