from typing import Dict, List, Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram

REQUEST_DURATION_BUCKETS = (0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10)


class JobMetrics:
    """The value gauge and error counter of one job.

    Both instruments share the job's label names. Global constant labels are
    appended after them unless the job already has a label of that name.
    """

    def __init__(self, registry: CollectorRegistry, namespace: str, probe, label_names: List[str],
                 const_labels: Optional[Dict[str, str]] = None):
        self.const_labels = {
            name: value for name, value in (const_labels or {}).items() if name not in label_names
        }
        names = list(label_names) + list(self.const_labels)

        self.value = Gauge(
            probe.value_metric,
            probe.value_help,
            names,
            namespace=namespace,
            subsystem=probe.name,
            registry=registry
        )
        self.errors = Counter(
            'errors_total',
            probe.error_help,
            names,
            namespace=namespace,
            subsystem=probe.name,
            registry=registry
        )

    def _label_values(self, values: List[str]) -> List[str]:
        return list(values) + list(self.const_labels.values())

    def set_value(self, values: List[str], value: float):
        self.value.labels(*self._label_values(values)).set(value)

    def inc_error(self, values: List[str]):
        self.errors.labels(*self._label_values(values)).inc()


class ExporterMetrics:
    def __init__(self, registry: CollectorRegistry, namespace: str):
        self.health = Gauge(
            'exporter_health',
            'Health status of the exporter (1 = healthy, 0 = unhealthy)',
            namespace=namespace,
            registry=registry
        )
        self.last_successful_tick = Gauge(
            'exporter_last_successful_tick_timestamp',
            'Timestamp of the last tick that updated at least one metric',
            namespace=namespace,
            registry=registry
        )
        self.rpc_health = Gauge(
            'exporter_rpc_health',
            'RPC endpoint health status (1 = healthy, 0 = unhealthy)',
            namespace=namespace,
            registry=registry
        )


class ClientMetrics:
    def __init__(self, registry: CollectorRegistry, namespace: str):
        self.requests = Counter(
            'execution_request_count',
            'Number of requests sent to the execution node',
            ['api_method'],
            namespace=namespace,
            registry=registry
        )
        self.responses = Counter(
            'execution_response_count',
            'Number of responses received from the execution node',
            ['api_method', 'code'],
            namespace=namespace,
            registry=registry
        )
        self.request_duration = Histogram(
            'execution_request_duration_seconds',
            'Request duration (in seconds.)',
            ['api_method', 'code'],
            namespace=namespace,
            buckets=REQUEST_DURATION_BUCKETS,
            registry=registry
        )

    def observe_request(self, api_method: str):
        self.requests.labels(api_method=api_method).inc()

    def observe_response(self, api_method: str, code: str, duration: float):
        self.responses.labels(api_method=api_method, code=code).inc()
        self.request_duration.labels(api_method=api_method, code=code).observe(duration)
