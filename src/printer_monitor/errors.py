"""
Exceptions raised inside a single device poll.

None of these escape DevicePoller.poll_device(); the orchestrator turns
them into a degraded DeviceHealth carrying the message.
"""


class PollError(Exception):
    """Base exception for device poll failures."""
    pass


class ProbeUnreachable(PollError):
    """No candidate port accepted a TCP connection."""

    def __init__(self, address: str, ports: tuple[int, ...] = ()):
        self.address = address
        self.ports = ports
        super().__init__("Printer not reachable on any common port")


class MetricQueryError(PollError):
    """SNMP query stage failed."""
    pass


class QueryTimeout(MetricQueryError):
    """SNMP transport got no usable response within the retry budget."""
    pass


class QueryRejected(MetricQueryError):
    """Agent answered the GET with a non-zero error-status."""
    pass


class NoValidData(MetricQueryError):
    """Transport succeeded but every requested value was null or absent."""

    def __init__(self, message: str = "No valid SNMP responses received"):
        super().__init__(message)
