"""HTTP wait strategy."""

from typing import Callable, Collection, Optional

import httpx
import structlog

from ...config import settings
from ...core.container import Container
from ...core.ports import BoundPorts
from ...models.container import ContainerState
from ...models.errors import NotBoundError, WaitStrategyConfigurationError
from ...models.port import Port, PortLike
from .base import WaitStrategy

logger = structlog.get_logger(__name__)


class HttpWaitStrategy(WaitStrategy):
    """Ready when an HTTP request to a published port returns an accepted status.

    Each attempt has its own request timeout, separate from the overall
    startup timeout.
    """

    def __init__(
        self,
        path: str = "/",
        port: Optional[PortLike] = None,
        status_codes: Collection[int] = (200,),
        method: str = "GET",
        use_tls: bool = False,
        allow_insecure: bool = False,
        request_timeout: Optional[float] = None,
        response_predicate: Optional[Callable[[str], bool]] = None,
    ):
        """Initialize the strategy.

        Args:
            path: Request path, e.g. "/health"
            port: Container port to call; defaults to the first exposed port
            status_codes: Status codes that count as ready
            method: HTTP method
            use_tls: Use https instead of http
            allow_insecure: Skip TLS certificate verification
            request_timeout: Per-attempt timeout, defaults to settings.http_request_timeout
            response_predicate: Optional extra check on the response body
        """
        super().__init__()
        self.path = path if path.startswith("/") else f"/{path}"
        self.port = Port.of(port) if port is not None else None
        self.status_codes = frozenset(status_codes)
        self.method = method.upper()
        self.use_tls = use_tls
        self.allow_insecure = allow_insecure
        self.request_timeout = request_timeout
        self.response_predicate = response_predicate

    def _resolve_port(self, bound_ports: BoundPorts) -> Port:
        if self.port is None:
            internal_ports = bound_ports.internal_ports()
            if not internal_ports:
                raise WaitStrategyConfigurationError(
                    "HttpWaitStrategy needs at least one exposed port"
                )
            return bound_ports.get_binding(internal_ports[0])
        try:
            return bound_ports.get_binding(self.port)
        except NotBoundError as e:
            raise WaitStrategyConfigurationError(
                f"HttpWaitStrategy port {self.port} is not exposed"
            ) from e

    def _url(self, host: str, host_port: Port) -> str:
        scheme = "https" if self.use_tls else "http"
        if ":" in host and not host.startswith("["):
            host = f"[{host}]"
        return f"{scheme}://{host}:{host_port.number}{self.path}"

    async def check_ready(
        self, container: Container, state: ContainerState, bound_ports: BoundPorts
    ) -> bool:
        url = self._url(container.host, self._resolve_port(bound_ports))
        timeout = self.request_timeout or settings.wait.http_request_timeout

        try:
            async with httpx.AsyncClient(
                timeout=timeout, verify=not self.allow_insecure
            ) as client:
                response = await client.request(self.method, url)
        except httpx.HTTPError as e:
            logger.debug("HTTP probe failed", url=url, error=str(e))
            return False

        if response.status_code not in self.status_codes:
            logger.debug("HTTP probe not accepted", url=url, status=response.status_code)
            return False
        if self.response_predicate is not None:
            return bool(self.response_predicate(response.text))
        return True
