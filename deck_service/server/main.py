# deck_service/server/main.py
import argparse
from http.server import ThreadingHTTPServer
from typing import List, Optional

from deck_service.common.logging_utils import setup_logging, get_logger
from deck_service.server.config import ServerConfig
from deck_service.server.engine import DeckEngine
from deck_service.server.serializer import RequestSerializer
from deck_service.server.session import DeckRequestHandler
from deck_service.server.store import DeckStore


log = get_logger("server.main")


class DeckHTTPServer(ThreadingHTTPServer):
    """Thread-per-request HTTP server carrying the engine for its handlers."""

    daemon_threads = True

    def __init__(self, addr, engine: DeckEngine) -> None:
        self.engine = engine
        super().__init__(addr, DeckRequestHandler)


def build_server(config: ServerConfig) -> DeckHTTPServer:
    """
    Wire store -> serializer -> engine -> HTTP server.
    The serializer is started here; close_server() undoes everything.
    """
    store = DeckStore(config.db_path)
    serializer = RequestSerializer()
    serializer.start()
    engine = DeckEngine(store, serializer)
    return DeckHTTPServer((config.host, config.port), engine)


def close_server(server: DeckHTTPServer) -> None:
    server.server_close()
    server.engine.serializer.stop()
    server.engine.store.close()


def _parse_args(argv: Optional[List[str]], defaults: ServerConfig) -> ServerConfig:
    parser = argparse.ArgumentParser(description="Playing-card deck HTTP service")
    parser.add_argument("--host", default=defaults.host)
    parser.add_argument("--port", type=int, default=defaults.port)
    parser.add_argument("--db", dest="db_path", default=defaults.db_path)
    parser.add_argument("--log-level", default=defaults.log_level)
    args = parser.parse_args(argv)
    return ServerConfig(host=args.host, port=args.port, db_path=args.db_path,
                        log_level=args.log_level.upper())


def main(argv: Optional[List[str]] = None) -> None:
    config = _parse_args(argv, ServerConfig.from_env())
    setup_logging(config.log_level)

    server = build_server(config)
    host, port = server.server_address[:2]
    log.info(f"HTTP listening on {host}:{port} (db={config.db_path})")
    print(f"Deck service started, listening on {host}:{port}")

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        log.info("Shutting down...")
    finally:
        close_server(server)


if __name__ == "__main__":
    main()
