import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Union

import yaml
from web3 import Web3

from .exceptions import ConfigError
from .models import AddressSpec
from .probes import PROBES

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = 'eth_address'
DEFAULT_CHECK_INTERVAL = 15.0

_TOP_LEVEL_KEYS = {'global', 'execution', 'addresses', 'jobs'}
_DURATION_RE = re.compile(r'^\s*(\d+(?:\.\d+)?)\s*(ms|s|m|h)?\s*$')
_DURATION_UNITS = {'ms': 0.001, 's': 1, 'm': 60, 'h': 3600, None: 1}
_LABEL_NAME_RE = re.compile(r'^[a-zA-Z_][a-zA-Z0-9_]*$')


@dataclass
class Settings:
    namespace: str = DEFAULT_NAMESPACE
    metrics_addr: str = '0.0.0.0'
    port: int = 9090
    log_level: str = 'info'
    check_interval: float = DEFAULT_CHECK_INTERVAL
    health_check_interval: float = 30
    labels: Dict[str, str] = field(default_factory=dict)


@dataclass
class ExecutionConfig:
    url: str
    timeout: float = 10
    headers: Dict[str, str] = field(default_factory=dict)


@dataclass
class JobConfig:
    name: str
    check_interval: float
    addresses: List[AddressSpec]


def parse_duration(value: Union[int, float, str], key: str) -> float:
    """Accept plain seconds or a ``15s``/``500ms``/``1m``/``1h`` string."""
    if isinstance(value, bool):
        raise ConfigError(f'{key} must be a duration, got {value!r}')
    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        match = _DURATION_RE.match(str(value))
        if not match:
            raise ConfigError(f'{key} must be a duration like 15s, got {value!r}')
        seconds = float(match.group(1)) * _DURATION_UNITS[match.group(2)]
    if seconds <= 0:
        raise ConfigError(f'{key} must be positive, got {value!r}')
    return seconds


def _string_map(raw: Any, key: str) -> Dict[str, str]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f'{key} must be a mapping, got {type(raw).__name__}')
    return {str(name): '' if value is None else str(value) for name, value in raw.items()}


def _label_map(raw: Any, key: str) -> Dict[str, str]:
    labels = _string_map(raw, key)
    for name in labels:
        if not _LABEL_NAME_RE.match(name) or name.startswith('__'):
            raise ConfigError(f'{key} has an invalid label name: {name!r}')
    return labels


def _port(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 < value < 65536:
        raise ConfigError(f'global.port must be a port number, got {value!r}')
    return value


def _check_address(value: Any, key: str) -> str:
    if isinstance(value, int):
        # unquoted 0x... values are read as integers by YAML
        raise ConfigError(f'{key} must be a quoted string, got the integer {value}')
    if not isinstance(value, str) or not Web3.is_address(value.lower()):
        raise ConfigError(f'{key} is not a valid address: {value!r}')
    return value


def parse_address(job_name: str, index: int, raw: Any) -> AddressSpec:
    key = f'addresses.{job_name}[{index}]'
    if not isinstance(raw, dict):
        raise ConfigError(f'{key} must be a mapping')
    if not raw.get('name'):
        raise ConfigError(f'{key} is missing a name')

    probe = PROBES[job_name]
    values: Dict[str, Any] = {
        'name': str(raw['name']),
        'address': raw.get('address') or '',
        'contract': raw.get('contract') or '',
        'token_id': raw.get('token_id', raw.get('tokenId')),
        'from_': '' if raw.get('from') is None else str(raw['from']),
        'to': '' if raw.get('to') is None else str(raw['to']),
    }

    for required in probe.required_fields:
        if values[required] in (None, ''):
            raise ConfigError(f"{key} ({values['name']}) is missing {required.rstrip('_')}")

    for address_key in ('address', 'contract'):
        if values[address_key]:
            values[address_key] = _check_address(values[address_key], f'{key}.{address_key}')

    if values['token_id'] is not None:
        try:
            values['token_id'] = int(values['token_id'])
        except (TypeError, ValueError):
            raise ConfigError(f"{key}.token_id must be an integer, got {values['token_id']!r}") from None
        if values['token_id'] < 0:
            raise ConfigError(f'{key}.token_id must not be negative')

    return AddressSpec(labels=_label_map(raw.get('labels'), f'{key}.labels'), **values)


class Config:
    def __init__(self, config_path: str):
        try:
            with open(config_path, 'r') as f:
                config = yaml.safe_load(f)
        except FileNotFoundError:
            raise ConfigError(f'Config file not found: {config_path}') from None
        except yaml.YAMLError as e:
            raise ConfigError(f'Invalid YAML in {config_path}: {e}') from e

        self.load(config or {}, source=config_path)
        logger.info(f'Configuration loaded from {config_path}')

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> 'Config':
        instance = cls.__new__(cls)
        instance.load(config, source='<dict>')
        return instance

    def load(self, config: Dict[str, Any], source: str):
        if not isinstance(config, dict):
            raise ConfigError(f'Expected a YAML mapping at the top level in {source}')

        unknown = set(config) - _TOP_LEVEL_KEYS
        if unknown:
            logger.warning(f"Ignoring unknown config keys in {source}: {', '.join(sorted(unknown))}")

        global_data = config.get('global') or {}
        if not isinstance(global_data, dict):
            raise ConfigError('global must be a mapping')
        self.settings = Settings(
            namespace=global_data.get('namespace', DEFAULT_NAMESPACE),
            metrics_addr=global_data.get('metrics_addr', '0.0.0.0'),
            port=_port(global_data.get('port', 9090)),
            log_level=str(global_data.get('logging', 'info')),
            check_interval=parse_duration(
                global_data.get('check_interval', DEFAULT_CHECK_INTERVAL), 'global.check_interval'
            ),
            health_check_interval=parse_duration(
                global_data.get('health_check_interval', 30), 'global.health_check_interval'
            ),
            labels=_label_map(global_data.get('labels'), 'global.labels'),
        )

        execution_data = config.get('execution') or {}
        if not isinstance(execution_data, dict):
            raise ConfigError('execution must be a mapping')
        if not execution_data.get('url'):
            raise ConfigError('execution.url is required')
        self.execution = ExecutionConfig(
            url=execution_data['url'],
            timeout=parse_duration(execution_data.get('timeout', 10), 'execution.timeout'),
            headers=_string_map(execution_data.get('headers'), 'execution.headers'),
        )

        job_overrides = config.get('jobs') or {}
        if not isinstance(job_overrides, dict):
            raise ConfigError('jobs must be a mapping of job type to settings')
        addresses_data = config.get('addresses') or {}
        if not isinstance(addresses_data, dict):
            raise ConfigError('addresses must be a mapping of job type to address list')

        # Parse job configurations
        self.jobs: List[JobConfig] = []
        for job_name, entries in addresses_data.items():
            if job_name not in PROBES:
                raise ConfigError(
                    f"Unknown job type '{job_name}'. Known job types: {', '.join(sorted(PROBES))}"
                )
            if not entries:
                continue
            if not isinstance(entries, list):
                raise ConfigError(f'addresses.{job_name} must be a list')

            override = job_overrides.get(job_name) or {}
            if not isinstance(override, dict):
                raise ConfigError(f'jobs.{job_name} must be a mapping, got {type(override).__name__}')
            check_interval = self.settings.check_interval
            if 'check_interval' in override:
                check_interval = parse_duration(override['check_interval'], f'jobs.{job_name}.check_interval')

            addresses = [parse_address(job_name, index, raw) for index, raw in enumerate(entries)]
            logger.info(f'Loaded {len(addresses)} {job_name} addresses')
            self.jobs.append(JobConfig(name=job_name, check_interval=check_interval, addresses=addresses))

        for job_name in job_overrides:
            if job_name not in PROBES:
                raise ConfigError(f"Unknown job type '{job_name}' in jobs")
