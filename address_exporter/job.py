import logging
from typing import Dict, Iterable, List, Optional

from prometheus_client import CollectorRegistry

from .client import BLOCK_LATEST
from .exceptions import ExporterError
from .labels import LabelSchema
from .metrics import JobMetrics
from .models import AddressSpec
from .probes import METHOD_GET_BALANCE, ContractProbe

logger = logging.getLogger(__name__)


class Job:
    """Polls every address of one job type and publishes the results.

    The label schema and both instruments are built once here. A tick walks
    the addresses in configuration order; each address either sets its
    value gauge or bumps its error counter, never both.
    """

    def __init__(self, contract_probe: ContractProbe, client, registry: CollectorRegistry,
                 addresses: Iterable[AddressSpec], check_interval: float, namespace: str,
                 const_labels: Optional[Dict[str, str]] = None):
        self.contract_probe = contract_probe
        self.client = client
        self.addresses: List[AddressSpec] = list(addresses)
        self.check_interval = check_interval
        self.schema = LabelSchema(contract_probe.base_labels, self.addresses)
        self.metrics = JobMetrics(registry, namespace, contract_probe, self.schema.names, const_labels)

    @property
    def name(self) -> str:
        return self.contract_probe.name

    async def tick(self) -> int:
        """Probe every address once and return how many values were updated."""
        updated = 0
        for spec in self.addresses:
            if await self.probe(spec):
                updated += 1
        logger.debug(f'{self.name} tick updated {updated}/{len(self.addresses)} addresses')
        return updated

    async def execute(self, spec: AddressSpec) -> List[str]:
        results: List[str] = []
        for call in self.contract_probe.build_calls(spec):
            if call.method == METHOD_GET_BALANCE:
                result = await self.client.get_balance(call.to, BLOCK_LATEST)
            else:
                result = await self.client.call(call.to, call.payload(results), BLOCK_LATEST)
            results.append(result)
        return results

    async def probe(self, spec: AddressSpec) -> bool:
        try:
            results = await self.execute(spec)
            value, computed = self.contract_probe.interpret(spec, results)
        except ExporterError as e:
            logger.error(f'Failed to probe {self.name} address {spec.name} '
                         f'({spec.address or spec.contract}): {e}')
            self.metrics.inc_error(self.schema.values_for(spec))
            return False
        except Exception as e:
            logger.exception(f'Unexpected error probing {self.name} address {spec.name}: {e}')
            self.metrics.inc_error(self.schema.values_for(spec))
            return False

        self.metrics.set_value(self.schema.values_for(spec, computed), value)
        return True
