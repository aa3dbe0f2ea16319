from collections import namedtuple

LoggedCall = namedtuple('LoggedCall', ['method', 'to', 'data', 'block'])


def word(value: int) -> str:
    return format(value, '064x')


def uint_result(value: int) -> str:
    return '0x' + word(value)


def abi_string(text: str) -> str:
    data = text.encode('utf-8')
    padded_length = ((len(data) + 31) // 32) * 64
    return '0x' + word(32) + word(len(data)) + data.hex().ljust(padded_length, '0')


class FakeExecutionClient:
    """Answers eth_call by selector and records every request in order."""

    def __init__(self, responses=None, errors=None, balance='0x0', balance_error=None):
        self.responses = responses or {}
        self.errors = errors or {}
        self.balance = balance
        self.balance_error = balance_error
        self.call_log = []

    async def call(self, to, data, block='latest'):
        self.call_log.append(LoggedCall('eth_call', to, data, block))
        selector = data[:10]
        if selector in self.errors:
            raise self.errors[selector]
        return self.responses.get(selector, '0x')

    async def get_balance(self, address, block='latest'):
        self.call_log.append(LoggedCall('eth_getBalance', address, None, block))
        if self.balance_error:
            raise self.balance_error
        return self.balance

    async def block_number(self):
        return 1
