"""Sequential allocation of TCP ports for test processes."""

_MAX_PORT = 65535


class PortAllocator:
    """Hands out ports from a fixed range, in order.

    Nothing checks whether a port is already in use; give parallel users
    disjoint ranges.
    """

    def __init__(self, starting_port, ending_port):
        if ending_port > _MAX_PORT:
            raise ValueError(
                "Invalid port range requested. Ports can only be numbers between 0-65535"
            )
        self._next_port = starting_port
        self._ending_port = ending_port

    def claim_ports(self, num_ports):
        """Claim ``num_ports`` consecutive ports and return the first one.

        Raises RuntimeError when the range has too few ports left.
        """
        port = self._next_port
        if self._ending_port < port + num_ports - 1:
            raise RuntimeError("insufficient ports available")
        self._next_port = port + num_ports
        return port