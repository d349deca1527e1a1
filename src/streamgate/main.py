"""Application entry point for StreamGate backend server."""

from streamgate.app import App
from streamgate.config import Config
from streamgate.logging import setup_logging
from streamgate.web.runner import run_server


def main() -> None:
    config = Config()
    setup_logging(config.debug)
    app = App(config)
    run_server(app, config)


if __name__ == "__main__":
    main()
