"""Request counter service: /count returns requests seen in the last W seconds.

Serves one route.  Each hit reads the current count (not including itself),
then records its own arrival.  On SIGINT/SIGTERM the server stops and the
window is dumped to the snapshot file so a restart picks up where it left off.

Usage:
    python -m counter.main
    python -m counter.main --window 30 --file /var/lib/counter/rs.json --address :8080
    python -m counter.main --config counter.yml --metrics-port 9090
"""

import argparse
import signal
import sys
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

from prometheus_client import start_http_server

from counter import metrics
from counter.config import (
    DEFAULT_WINDOW_SECONDS, Config, load_config, parse_address, validate_config,
)
from counter.persistence import PersistenceError
from counter.store import WindowStore

running = True


def _shutdown(sig, frame):
    global running
    print("\nShutting down request counter...")
    running = False


class CountHandler(BaseHTTPRequestHandler):
    server: "CountServer"

    def do_GET(self):
        self._serve()

    # Any method counts, as long as the path matches.
    do_POST = do_PUT = do_DELETE = do_PATCH = do_GET

    def do_HEAD(self):
        self._serve(send_body=False)

    def _serve(self, send_body: bool = True):
        # Exact match on the raw path: "/count?x=1" is a 404.
        if self.path != "/count":
            metrics.not_found_total.inc()
            self._reply(404, "Not Found\n", send_body)
            return

        store = self.server.store
        count = store.count()
        host, port = self.client_address[:2]
        store.record(f"{host}:{port}")
        metrics.requests_total.inc()

        self._reply(200, f"{count}\n", send_body)

    def _reply(self, status: int, body: str, send_body: bool = True):
        payload = body.encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "text/plain; charset=utf-8")
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        if send_body:
            self.wfile.write(payload)


class CountServer(ThreadingHTTPServer):
    daemon_threads = True

    def __init__(self, address, store: WindowStore):
        self.store = store
        super().__init__(address, CountHandler)


def build_config(args) -> Config:
    """Config file first (if any), then command-line overrides."""
    config = load_config(args.config) if args.config else Config()

    if args.window is not None:
        if args.window <= 0:
            print(f"Cannot use window '{args.window}', set to default value "
                  f"{DEFAULT_WINDOW_SECONDS} sec", file=sys.stderr)
            config.window_seconds = DEFAULT_WINDOW_SECONDS
        else:
            config.window_seconds = args.window
    if args.file is not None:
        config.persistence_path = args.file
    if args.address is not None:
        config.address = args.address
    if args.metrics_port is not None:
        config.metrics_port = args.metrics_port

    validate_config(config, "command line")
    return config


def _parse_args(argv):
    parser = argparse.ArgumentParser(description="Sliding-window request counter")
    parser.add_argument("-c", "--config", help="YAML config file")
    parser.add_argument(
        "-f", "--file",
        help="JSON snapshot file for the request store, '' disables (default rs.json)",
    )
    parser.add_argument(
        "-w", "--window", type=int,
        help=f"sliding window length in seconds (default {DEFAULT_WINDOW_SECONDS})",
    )
    parser.add_argument("-a", "--address", help="bind address (default :8080)")
    parser.add_argument(
        "--metrics-port", type=int, help="Prometheus metrics HTTP port, 0 disables",
    )
    return parser.parse_args(argv)


def dump_on_exit(store: WindowStore) -> bool:
    """Final snapshot.  Failure is reported, never raised."""
    store.wait_drained()
    try:
        store.dump()
    except PersistenceError as e:
        metrics.persistence_errors_total.inc()
        print(f"Snapshot not saved: {e}", file=sys.stderr)
        return False
    return True


def main(argv=None):
    args = _parse_args(argv)
    try:
        config = build_config(args)
    except (FileNotFoundError, ValueError) as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(2)

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    store = WindowStore(config.window_seconds, config.persistence_path)
    metrics.bind_store(store)

    if config.metrics_port:
        start_http_server(config.metrics_port)
        print(f"Prometheus metrics server started on :{config.metrics_port}")

    server = CountServer(parse_address(config.address), store)
    serve_thread = threading.Thread(target=server.serve_forever, daemon=True)
    serve_thread.start()

    snapshot = config.persistence_path or "disabled"
    print(f"Request counter started  address={config.address}  "
          f"window={config.window_seconds}s  snapshot={snapshot}")

    try:
        while running:
            time.sleep(0.5)
    finally:
        server.shutdown()
        server.server_close()
        if dump_on_exit(store):
            print(f"Done. {store.count()} requests in window at shutdown.")


if __name__ == "__main__":
    main()
