class ExporterError(Exception):
    """Base class for errors raised by the exporter."""


class RPCError(ExporterError):
    """The execution node could not be reached or answered with an error."""


class DecodeError(ExporterError):
    """A call result could not be decoded."""


class ConfigError(ExporterError):
    """The configuration file is malformed or incomplete."""
