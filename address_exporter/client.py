import logging
import time
from typing import Any, Dict, Optional

from aiohttp import ClientTimeout
from web3.providers import AsyncHTTPProvider

from .exceptions import RPCError
from .metrics import ClientMetrics

logger = logging.getLogger(__name__)

BLOCK_LATEST = 'latest'

CODE_SUCCESS = 'success'
CODE_ERROR = 'error'


class ExecutionClient:
    """Read-only JSON-RPC access to an execution node.

    Every method returns the raw ``result`` field of the response. Transport
    failures, JSON-RPC error objects and missing results all raise
    ``RPCError``.
    """

    def __init__(self, url: str, timeout: float = 10, headers: Optional[Dict[str, str]] = None,
                 metrics: Optional[ClientMetrics] = None):
        self.url = url
        self.metrics = metrics
        self.headers = {'Content-Type': 'application/json', **(headers or {})}
        request_kwargs: Dict[str, Any] = {
            'timeout': ClientTimeout(total=timeout),
            'headers': self.headers,
        }
        # the next tick is the only retry
        self.provider = AsyncHTTPProvider(
            url, request_kwargs=request_kwargs, exception_retry_configuration=None
        )

    async def _request(self, method: str, params: list) -> Any:
        if self.metrics:
            self.metrics.observe_request(method)
        start = time.monotonic()
        code = CODE_ERROR
        try:
            try:
                response = await self.provider.make_request(method, params)
            except Exception as e:
                raise RPCError(f'{method} request to {self.url} failed: {type(e).__name__}: {e}') from e

            if response.get('error'):
                error = response['error']
                message = error.get('message', error) if isinstance(error, dict) else error
                raise RPCError(f'{method} returned an error: {message}')

            if response.get('result') is None:
                raise RPCError(f'{method} returned no result: {response}')

            code = CODE_SUCCESS
            return response['result']
        finally:
            if self.metrics:
                self.metrics.observe_response(method, code, time.monotonic() - start)

    async def call(self, to: str, data: str, block: str = BLOCK_LATEST) -> str:
        result = await self._request('eth_call', [{'to': to, 'data': data}, block])
        if not isinstance(result, str):
            raise RPCError(f'eth_call to {to} returned a non-string result: {result!r}')
        return result

    async def get_balance(self, address: str, block: str = BLOCK_LATEST) -> str:
        result = await self._request('eth_getBalance', [address, block])
        if not isinstance(result, str):
            raise RPCError(f'eth_getBalance for {address} returned a non-string result: {result!r}')
        return result

    async def block_number(self) -> int:
        result = await self._request('eth_blockNumber', [])
        return int(result, 16)
