"""Port value type."""

from dataclasses import dataclass
from typing import Union

PROTOCOLS = ("tcp", "udp", "sctp")
MIN_PORT = 1
MAX_PORT = 65535


@dataclass(frozen=True)
class Port:
    """A port number with its protocol.

    Renders as ``"80/tcp"``, the key format the Docker API uses for
    exposed ports and port bindings.
    """

    number: int
    protocol: str = "tcp"

    def __post_init__(self):
        if isinstance(self.number, bool) or not isinstance(self.number, int):
            raise ValueError(f"Port number must be an integer, got {self.number!r}")
        if not MIN_PORT <= self.number <= MAX_PORT:
            raise ValueError(
                f"Port number must be between {MIN_PORT} and {MAX_PORT}, got {self.number}"
            )
        if self.protocol not in PROTOCOLS:
            raise ValueError(
                f"Unsupported protocol {self.protocol!r}, expected one of {', '.join(PROTOCOLS)}"
            )

    @classmethod
    def of(cls, value: Union["Port", int, str]) -> "Port":
        """Coerce an int, ``"80"``/``"80/udp"`` string or Port into a Port."""
        if isinstance(value, Port):
            return value
        if isinstance(value, str):
            number, _, protocol = value.partition("/")
            try:
                parsed = int(number)
            except ValueError:
                raise ValueError(f"Invalid port specification: {value!r}") from None
            return cls(parsed, protocol.lower() or "tcp")
        return cls(value)

    def __int__(self) -> int:
        return self.number

    def __str__(self) -> str:
        return f"{self.number}/{self.protocol}"


PortLike = Union[Port, int, str]
