"""
Multi-process launcher.

The primary process binds one listening socket, starts the aggregation
authority in a process of its own and forks WORKER_COUNT uvicorn workers
that all accept on the shared socket (the kernel spreads connections
between them). Each worker gets a ClusterHealthMonitor wired to the
authority.

Run with:
    python -m relay.cluster

Dead workers are not respawned.
"""

import logging
import multiprocessing
import socket
from multiprocessing.context import BaseContext
from multiprocessing.process import BaseProcess

import uvicorn

from relay.aggregator.authority import ClusterChannels, create_channels, run_authority
from relay.aggregator.client import ClusterHealthMonitor
from relay.config import Settings, settings as default_settings
from relay.main import create_app

logger = logging.getLogger(__name__)


def worker_main(worker_id: str, channels: ClusterChannels, sock: socket.socket, settings: Settings) -> None:
    monitor = ClusterHealthMonitor(
        worker_id,
        outbound=channels.inbox,
        inbound=channels.outboxes[worker_id],
        response_timeout=settings.AGGREGATOR_TIMEOUT_SECONDS,
        failure_threshold=settings.CB_FAILURE_THRESHOLD,
        recovery_timeout_seconds=settings.CB_RECOVERY_TIMEOUT_SECONDS,
    )
    monitor.start()
    try:
        server = uvicorn.Server(uvicorn.Config(create_app(settings, monitor=monitor)))
        server.run(sockets=[sock])
    finally:
        monitor.stop()


def bind_socket(host: str, port: int) -> socket.socket:
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    sock.bind((host, port))
    sock.listen(2048)
    sock.set_inheritable(True)
    return sock


def start_authority(ctx: BaseContext, channels: ClusterChannels, settings: Settings) -> BaseProcess:
    # Runs outside the primary so the primary holds no threads when it forks workers
    authority = ctx.Process(
        target=run_authority,
        args=(channels, settings.CB_FAILURE_THRESHOLD, settings.CB_RECOVERY_TIMEOUT_SECONDS),
        name="relay-authority",
    )
    authority.start()
    return authority


def run_cluster(settings: Settings = default_settings) -> None:
    ctx = multiprocessing.get_context("fork")
    worker_ids = [f"w{i}" for i in range(settings.WORKER_COUNT)]
    channels = create_channels(worker_ids, ctx)

    authority = start_authority(ctx, channels, settings)

    sock = bind_socket(settings.HOST, settings.PORT)
    workers = [
        ctx.Process(target=worker_main, args=(wid, channels, sock, settings), name=f"relay-{wid}")
        for wid in worker_ids
    ]
    for w in workers:
        w.start()

    logger.info(
        f"Primary process running | workers={len(workers)} | "
        f"listening on {settings.HOST}:{settings.PORT} | monitoring: aggregated"
    )

    try:
        for w in workers:
            w.join()
    except KeyboardInterrupt:
        logger.info("Shutting down cluster...")
        for w in workers:
            w.terminate()
        for w in workers:
            w.join()
    finally:
        channels.inbox.put(None)
        authority.join(5)
        sock.close()


if __name__ == "__main__":
    run_cluster()
