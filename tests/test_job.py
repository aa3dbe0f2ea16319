import pytest

from address_exporter.codec import SELECTOR_BALANCE_OF, SELECTOR_SYMBOL
from address_exporter.exceptions import RPCError
from address_exporter.job import Job
from address_exporter.models import AddressSpec
from address_exporter.probes import ACCOUNT, ERC20, ERC721

from .helpers import FakeExecutionClient, abi_string, uint_result

CONTRACT = '0xAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAA'


def nft(name, address, labels=None):
    return AddressSpec(name=name, address=address, contract=CONTRACT, labels=labels or {})


class FlakyClient(FakeExecutionClient):
    """Fails eth_call for one owner address."""

    def __init__(self, failing_address, **kwargs):
        super().__init__(**kwargs)
        self.failing_address = failing_address.lower()[2:]

    async def call(self, to, data, block='latest'):
        result = await super().call(to, data, block)
        if data.endswith(self.failing_address):
            raise RPCError('connection refused')
        return result


class TestJob:
    def test_name_and_schema(self, registry):
        addresses = [nft('NFT 1', '0x1111111111111111111111111111111111111111', {'team': 'ops'})]
        job = Job(ERC721, FakeExecutionClient(), registry, addresses, check_interval=15,
                  namespace='eth_address')
        assert job.name == 'erc721'
        assert job.schema.names == ['name', 'address', 'contract', 'team']

    @pytest.mark.asyncio
    async def test_tick_probes_addresses_in_order(self, registry):
        addresses = [
            nft('NFT 1', '0x1111111111111111111111111111111111111111'),
            nft('NFT 2', '0x2222222222222222222222222222222222222222'),
        ]
        client = FakeExecutionClient(responses={SELECTOR_BALANCE_OF: uint_result(3)})
        job = Job(ERC721, client, registry, addresses, check_interval=15, namespace='eth_address')

        assert await job.tick() == 2
        assert [call.data[-40:] for call in client.call_log] == ['1' * 40, '2' * 40]

    @pytest.mark.asyncio
    async def test_failure_is_isolated_to_one_address(self, registry):
        addresses = [
            nft('NFT 1', '0x1111111111111111111111111111111111111111'),
            nft('NFT 2', '0x2222222222222222222222222222222222222222'),
            nft('NFT 3', '0x3333333333333333333333333333333333333333'),
        ]
        client = FlakyClient('0x2222222222222222222222222222222222222222',
                             responses={SELECTOR_BALANCE_OF: uint_result(7)})
        job = Job(ERC721, client, registry, addresses, check_interval=15, namespace='eth_address')

        assert await job.tick() == 2
        assert len(client.call_log) == 3

        def labels(spec):
            return {'name': spec.name, 'address': spec.address, 'contract': CONTRACT}

        assert registry.get_sample_value('eth_address_erc721_balance', labels(addresses[0])) == 7
        assert registry.get_sample_value('eth_address_erc721_balance', labels(addresses[1])) is None
        assert registry.get_sample_value('eth_address_erc721_errors_total', labels(addresses[1])) == 1
        assert registry.get_sample_value('eth_address_erc721_balance', labels(addresses[2])) == 7

    @pytest.mark.asyncio
    async def test_probe_is_idempotent(self, registry):
        spec = AddressSpec(name='Token', address='0x1111111111111111111111111111111111111111',
                           contract=CONTRACT)
        client = FakeExecutionClient(responses={
            SELECTOR_BALANCE_OF: uint_result(42),
            SELECTOR_SYMBOL: abi_string('TKN'),
        })
        job = Job(ERC20, client, registry, [spec], check_interval=15, namespace='eth_address')
        labels = {'name': 'Token', 'address': spec.address, 'contract': CONTRACT, 'symbol': 'TKN'}

        await job.probe(spec)
        first = registry.get_sample_value('eth_address_erc20_balance', labels)
        await job.probe(spec)
        assert registry.get_sample_value('eth_address_erc20_balance', labels) == first == 42.0

    @pytest.mark.asyncio
    async def test_error_counter_increments_once_per_failed_probe(self, registry, rpc_error):
        spec = AddressSpec(name='Wallet', address='0x1111111111111111111111111111111111111111')
        client = FakeExecutionClient(balance_error=rpc_error)
        job = Job(ACCOUNT, client, registry, [spec], check_interval=15, namespace='eth_address')
        labels = {'name': 'Wallet', 'address': spec.address}

        await job.probe(spec)
        await job.probe(spec)
        assert registry.get_sample_value('eth_address_account_errors_total', labels) == 2

    @pytest.mark.asyncio
    async def test_stale_value_kept_after_failure(self, registry, rpc_error):
        spec = AddressSpec(name='Wallet', address='0x1111111111111111111111111111111111111111')
        client = FakeExecutionClient(balance='0x10')
        job = Job(ACCOUNT, client, registry, [spec], check_interval=15, namespace='eth_address')
        labels = {'name': 'Wallet', 'address': spec.address}

        await job.probe(spec)
        client.balance_error = rpc_error
        await job.probe(spec)
        assert registry.get_sample_value('eth_address_account_balance', labels) == 16.0
        assert registry.get_sample_value('eth_address_account_errors_total', labels) == 1

    @pytest.mark.asyncio
    async def test_unexpected_error_counts_as_failure(self, registry):
        spec = AddressSpec(name='Wallet', address='0x1111111111111111111111111111111111111111')
        client = FakeExecutionClient(balance_error=RuntimeError('boom'))
        job = Job(ACCOUNT, client, registry, [spec], check_interval=15, namespace='eth_address')

        assert await job.probe(spec) is False
        assert registry.get_sample_value(
            'eth_address_account_errors_total', {'name': 'Wallet', 'address': spec.address}
        ) == 1

    @pytest.mark.asyncio
    async def test_const_labels_are_appended(self, registry):
        spec = AddressSpec(name='Wallet', address='0x1111111111111111111111111111111111111111')
        client = FakeExecutionClient(balance='0x1')
        job = Job(ACCOUNT, client, registry, [spec], check_interval=15, namespace='eth_address',
                  const_labels={'network': 'mainnet', 'name': 'ignored'})

        await job.probe(spec)
        assert registry.get_sample_value('eth_address_account_balance', {
            'name': 'Wallet', 'address': spec.address, 'network': 'mainnet',
        }) == 1.0

    @pytest.mark.asyncio
    async def test_custom_labels_on_metrics(self, registry):
        addresses = [
            AddressSpec(name='Hot', address='0x1111111111111111111111111111111111111111',
                        labels={'type': 'hot'}),
            AddressSpec(name='Cold', address='0x2222222222222222222222222222222222222222',
                        labels={'name': 'Cold Storage'}),
        ]
        client = FakeExecutionClient(balance='0x2')
        job = Job(ACCOUNT, client, registry, addresses, check_interval=15, namespace='eth_address')

        await job.tick()
        assert registry.get_sample_value('eth_address_account_balance', {
            'name': 'Hot', 'address': addresses[0].address, 'type': 'hot',
        }) == 2.0
        assert registry.get_sample_value('eth_address_account_balance', {
            'name': 'Cold Storage', 'address': addresses[1].address, 'type': '',
        }) == 2.0
