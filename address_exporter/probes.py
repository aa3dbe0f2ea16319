"""Call plans for every supported job type.

A probe describes what to ask the node for one address and how to turn the
raw answers into a metric value. The job engine in ``job.py`` runs the plan,
so adding a job type means adding a ``ContractProbe`` here and nothing else.
"""
from dataclasses import dataclass
from typing import Callable, Dict, List, Tuple, Union

from .codec import (
    SELECTOR_BALANCE_OF, SELECTOR_BALANCE_OF_ID, SELECTOR_CONVERT_TO_ASSETS,
    SELECTOR_GET_RESERVES, SELECTOR_LATEST_ANSWER, SELECTOR_SYMBOL,
    decode_abi_string, decode_numeric, decode_words, encode_call, pad_word
)
from .exceptions import DecodeError
from .labels import (
    LABEL_ADDRESS, LABEL_CONTRACT, LABEL_FROM, LABEL_NAME, LABEL_SYMBOL, LABEL_TO,
    LABEL_TOKEN_ID
)
from .models import AddressSpec

METHOD_CALL = 'eth_call'
METHOD_GET_BALANCE = 'eth_getBalance'

NAME_ACCOUNT = 'account'
NAME_ERC20 = 'erc20'
NAME_ERC721 = 'erc721'
NAME_ERC1155 = 'erc1155'
NAME_ERC4337 = 'erc4337'
NAME_ERC4626 = 'erc4626'
NAME_CHAINLINK_DATA_FEED = 'chainlink_data_feed'
NAME_UNISWAP_PAIR = 'uniswap_pair'

Payload = Union[str, Callable[[List[str]], str]]
Interpretation = Tuple[float, Dict[str, str]]


@dataclass(frozen=True)
class Call:
    """One RPC call in a plan.

    ``data`` is either a ready payload or a function of the raw results of
    the calls made before it in the same plan.
    """
    to: str
    data: Payload = ''
    method: str = METHOD_CALL

    def payload(self, previous: List[str]) -> str:
        if callable(self.data):
            return self.data(previous)
        return self.data


@dataclass(frozen=True)
class ContractProbe:
    name: str
    base_labels: Tuple[str, ...]
    required_fields: Tuple[str, ...]
    value_metric: str
    value_help: str
    error_help: str
    build_calls: Callable[[AddressSpec], List[Call]]
    interpret: Callable[[AddressSpec, List[str]], Interpretation]


def _single_value(spec: AddressSpec, results: List[str]) -> Interpretation:
    return decode_numeric(results[0]), {}


def _value_and_symbol(spec: AddressSpec, results: List[str]) -> Interpretation:
    # the last call of the plan is always symbol()
    symbol = decode_abi_string(results[-1])
    return decode_numeric(results[-2]), {LABEL_SYMBOL: symbol}


def _account_calls(spec: AddressSpec) -> List[Call]:
    return [Call(to=spec.address, method=METHOD_GET_BALANCE)]


def _balance_of_calls(spec: AddressSpec) -> List[Call]:
    return [Call(to=spec.contract, data=encode_call(SELECTOR_BALANCE_OF, spec.address))]


def _erc20_calls(spec: AddressSpec) -> List[Call]:
    return _balance_of_calls(spec) + [Call(to=spec.contract, data=encode_call(SELECTOR_SYMBOL))]


def _erc1155_calls(spec: AddressSpec) -> List[Call]:
    data = encode_call(SELECTOR_BALANCE_OF_ID, spec.address, spec.token_id)
    return [Call(to=spec.contract, data=data)]


def _convert_shares(previous: List[str]) -> str:
    # an empty result means no shares
    return encode_call(SELECTOR_CONVERT_TO_ASSETS, pad_word(previous[-1] or '0'))


def _erc4626_calls(spec: AddressSpec) -> List[Call]:
    return _balance_of_calls(spec) + [
        Call(to=spec.contract, data=_convert_shares),
        Call(to=spec.contract, data=encode_call(SELECTOR_SYMBOL)),
    ]


def _latest_answer_calls(spec: AddressSpec) -> List[Call]:
    return [Call(to=spec.contract, data=encode_call(SELECTOR_LATEST_ANSWER))]


def _get_reserves_calls(spec: AddressSpec) -> List[Call]:
    return [Call(to=spec.contract, data=encode_call(SELECTOR_GET_RESERVES))]


def _reserves_price(spec: AddressSpec, results: List[str]) -> Interpretation:
    reserve0, reserve1 = decode_words(results[0], 2)
    if reserve0 == 0:
        raise DecodeError(f'pair {spec.contract} has an empty reserve0')
    return reserve1 / reserve0, {}


ACCOUNT = ContractProbe(
    name=NAME_ACCOUNT,
    base_labels=(LABEL_NAME, LABEL_ADDRESS),
    required_fields=('address',),
    value_metric='balance',
    value_help='The balance of a account address.',
    error_help='The total errors when getting the balance of a account address.',
    build_calls=_account_calls,
    interpret=_single_value,
)

ERC20 = ContractProbe(
    name=NAME_ERC20,
    base_labels=(LABEL_NAME, LABEL_ADDRESS, LABEL_CONTRACT, LABEL_SYMBOL),
    required_fields=('address', 'contract'),
    value_metric='balance',
    value_help='The balance of a ethereum ERC20 token contract by address.',
    error_help='The total errors when getting the balance of a ethereum ERC20 token contract.',
    build_calls=_erc20_calls,
    interpret=_value_and_symbol,
)

ERC721 = ContractProbe(
    name=NAME_ERC721,
    base_labels=(LABEL_NAME, LABEL_ADDRESS, LABEL_CONTRACT),
    required_fields=('address', 'contract'),
    value_metric='balance',
    value_help='The number of ERC721 tokens owned by an address.',
    error_help='The total errors when getting the balance of a ethereum ERC721 contract.',
    build_calls=_balance_of_calls,
    interpret=_single_value,
)

ERC1155 = ContractProbe(
    name=NAME_ERC1155,
    base_labels=(LABEL_NAME, LABEL_ADDRESS, LABEL_CONTRACT, LABEL_TOKEN_ID),
    required_fields=('address', 'contract', 'token_id'),
    value_metric='balance',
    value_help='The number of ERC1155 tokens of one id owned by an address.',
    error_help='The total errors when getting the balance of a ethereum ERC1155 contract.',
    build_calls=_erc1155_calls,
    interpret=_single_value,
)

ERC4337 = ContractProbe(
    name=NAME_ERC4337,
    base_labels=(LABEL_NAME, LABEL_ADDRESS, LABEL_CONTRACT),
    required_fields=('address', 'contract'),
    value_metric='balance',
    value_help='The deposit balance of a ethereum ERC4337 account in the EntryPoint contract.',
    error_help='The total errors when getting the deposit balance of a ethereum ERC4337 account.',
    # EntryPoint exposes deposits through the ERC20 balanceOf signature
    build_calls=_balance_of_calls,
    interpret=_single_value,
)

ERC4626 = ContractProbe(
    name=NAME_ERC4626,
    base_labels=(LABEL_NAME, LABEL_ADDRESS, LABEL_CONTRACT, LABEL_SYMBOL),
    required_fields=('address', 'contract'),
    value_metric='assets',
    value_help='The asset value from ERC4626 vault convertToAssets function.',
    error_help='The total errors when calling ERC4626 vault functions.',
    build_calls=_erc4626_calls,
    interpret=_value_and_symbol,
)

CHAINLINK_DATA_FEED = ContractProbe(
    name=NAME_CHAINLINK_DATA_FEED,
    base_labels=(LABEL_NAME, LABEL_CONTRACT, LABEL_FROM, LABEL_TO),
    required_fields=('contract', 'from_', 'to'),
    value_metric='balance',
    value_help='The latest answer of a chainlink data feed.',
    error_help='The total errors when getting the latest answer of a chainlink data feed.',
    build_calls=_latest_answer_calls,
    interpret=_single_value,
)

UNISWAP_PAIR = ContractProbe(
    name=NAME_UNISWAP_PAIR,
    base_labels=(LABEL_NAME, LABEL_CONTRACT, LABEL_FROM, LABEL_TO),
    required_fields=('contract', 'from_', 'to'),
    value_metric='price',
    value_help='The price of a uniswap pair (reserve1 / reserve0).',
    error_help='The total errors when getting the reserves of a uniswap pair.',
    build_calls=_get_reserves_calls,
    interpret=_reserves_price,
)

PROBES: Dict[str, ContractProbe] = {
    probe.name: probe
    for probe in (
        ACCOUNT, ERC20, ERC721, ERC1155, ERC4337, ERC4626, CHAINLINK_DATA_FEED, UNISWAP_PAIR
    )
}


def get_probe(name: str) -> ContractProbe:
    try:
        return PROBES[name]
    except KeyError:
        known = ', '.join(sorted(PROBES))
        raise ValueError(f"Unknown job type '{name}'. Known job types: {known}") from None
