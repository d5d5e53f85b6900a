#!/usr/bin/env python3
"""
testbox CLI - start disposable containers from the shell.

Usage:
  python scripts/testbox_cli.py info                        # Engine version and capacity
  python scripts/testbox_cli.py run redis:7 -p 6379         # Start and keep until Ctrl+C
  python scripts/testbox_cli.py run nginx -p 80 --wait-http / --rm

Features:
  - Docker engine summary
  - Start any image with random host ports and a readiness check
  - Port mapping table for the started container
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Dict, List

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load .env file if it exists
from dotenv import load_dotenv
load_dotenv(Path(__file__).parent.parent / ".env")

from docker.errors import DockerException
from rich.console import Console
from rich.table import Table
from rich import box

from testbox import (
    GenericContainer,
    HttpWaitStrategy,
    ImageReference,
    LogMessageWaitStrategy,
    Port,
    StartedGenericContainer,
    TestboxException,
    WaitTimeoutError,
    create_docker_client,
)
from testbox.config import settings
from testbox.core.client import DockerEngineClient
from testbox.utils import run_in_executor, setup_logging

console = Console()


# ============================================================================
# Formatting Helpers
# ============================================================================

def parse_env(pairs: List[str]) -> Dict[str, str]:
    """Parse KEY=VALUE arguments."""
    env: Dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise argparse.ArgumentTypeError(f"Expected KEY=VALUE, got {pair!r}")
        env[key] = value
    return env


def format_ports(container: StartedGenericContainer, ports: List[Port]) -> Table:
    """Build the port mapping table."""
    table = Table(title=f"Container {container.get_name()}", box=box.ROUNDED)
    table.add_column("Container port", style="cyan")
    table.add_column("Host address", style="green")

    host = container.get_container_ip_address()
    for port in ports:
        table.add_row(str(port), f"{host}:{container.get_mapped_port(port)}")
    return table


async def remove_container(client: DockerEngineClient, container_id: str) -> None:
    """Force-remove a container that never became ready."""

    def _remove():
        client.docker.containers.get(container_id).remove(force=True)

    try:
        await run_in_executor(_remove)
    except DockerException as e:
        console.print(f"[yellow]Could not remove container {container_id[:12]}: {e}[/yellow]")
        return
    console.print(f"[dim]Removed container {container_id[:12]}[/dim]")


# ============================================================================
# Commands
# ============================================================================

async def cmd_info(args):
    """Show engine version and capacity."""
    client = create_docker_client()
    try:
        info = await client.info()
    finally:
        await client.close()

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_row("[cyan]Docker version[/cyan]", info.version)
    table.add_row("[cyan]Layer storage[/cyan]", f"{info.available_mb:,.1f} MB")
    table.add_row("[cyan]Published host[/cyan]", client.get_host())
    table.add_row("[cyan]Startup timeout[/cyan]", f"{settings.startup_timeout_seconds:g}s")
    console.print(table)


async def cmd_run(args):
    """Start a container, print its ports and stop it on exit."""
    image = ImageReference.parse(args.image)
    ports = [Port.of(port) for port in args.port]

    client = create_docker_client()
    try:
        container = GenericContainer(image.name, image.tag, client=client)
        container.with_exposed_ports(*ports)
        for key, value in parse_env(args.env).items():
            container.with_env(key, value)
        if args.name:
            container.with_name(args.name)
        if args.timeout:
            container.with_startup_timeout(args.timeout)
        if args.wait_log:
            container.with_wait_strategy(LogMessageWaitStrategy(args.wait_log))
        elif args.wait_http:
            container.with_wait_strategy(HttpWaitStrategy(args.wait_http))

        with console.status(f"Starting [bold]{image}[/bold]..."):
            try:
                started = await container.start()
            except WaitTimeoutError as e:
                if e.container_id:
                    await remove_container(client, e.container_id)
                raise

        async with started:
            console.print(format_ports(started, ports))
            if not args.rm:
                console.print("[dim]Press Ctrl+C to stop the container[/dim]")
                try:
                    await asyncio.Event().wait()
                except asyncio.CancelledError:
                    pass
        console.print(f"[yellow]Container {started.get_name()} stopped.[/yellow]")
    finally:
        await client.close()


# ============================================================================
# Main Entry Point
# ============================================================================

def main():
    parser = argparse.ArgumentParser(
        description="testbox - disposable Docker containers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s info                              # Engine summary
  %(prog)s run redis:7 -p 6379               # Run until Ctrl+C
  %(prog)s run postgres:16 -p 5432 -e POSTGRES_PASSWORD=pw \\
      --wait-log "ready to accept connections" --timeout 120
  %(prog)s run nginx -p 80 --wait-http / --rm
"""
    )
    parser.add_argument("--log-level", help="Log level (defaults to TESTBOX_LOG_LEVEL)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # info
    subparsers.add_parser("info", help="Docker engine summary")

    # run
    run_p = subparsers.add_parser("run", help="Start a container")
    run_p.add_argument("image", help="Image reference, e.g. redis:7")
    run_p.add_argument("-p", "--port", action="append", default=[], help="Container port to expose (e.g. 80 or 53/udp)")
    run_p.add_argument("-e", "--env", action="append", default=[], help="Environment variable KEY=VALUE")
    run_p.add_argument("--name", help="Container name")
    run_p.add_argument("--timeout", type=float, help="Startup timeout in seconds")
    wait_group = run_p.add_mutually_exclusive_group()
    wait_group.add_argument("--wait-log", metavar="REGEX", help="Wait for a log line matching REGEX")
    wait_group.add_argument("--wait-http", metavar="PATH", help="Wait for HTTP 200 on PATH of the first port")
    run_p.add_argument("--rm", action="store_true", help="Stop as soon as the container is ready")

    args = parser.parse_args()
    setup_logging(level=args.log_level)

    handlers = {
        "info": cmd_info,
        "run": cmd_run,
    }

    try:
        asyncio.run(handlers[args.command](args))
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled.[/yellow]")
        sys.exit(0)
    except (TestboxException, argparse.ArgumentTypeError, ValueError) as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
