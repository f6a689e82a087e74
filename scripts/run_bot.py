"""Entry point for the Sibyl Slack bot.

Connects over Socket Mode, scores every message it sees and answers
`psychopass` commands until SIGINT/SIGTERM.
"""

import argparse
import signal
import sys
import threading
from pathlib import Path
from typing import Any

sys.path.insert(0, str(Path(__file__).parent.parent))

from slack_sdk import WebClient
from slack_sdk.socket_mode import SocketModeClient
from slack_sdk.socket_mode.request import SocketModeRequest
from slack_sdk.socket_mode.response import SocketModeResponse

from sibyl.adapters.slack_client import SlackClient
from sibyl.config.logging_config import get_logger, setup_logging
from sibyl.config.settings import Settings, get_settings
from sibyl.services.entity_registry import EntityRegistry
from sibyl.services.message_rating import compute_message_rating
from sibyl.use_cases.handle_message import handle_slack_event_use_case

logger = get_logger(__name__)

_shutdown = threading.Event()


def signal_handler(signum: int, frame: object) -> None:
    """Handle SIGTERM/SIGINT for graceful shutdown."""
    logger.info("shutdown_requested", signal=signal.Signals(signum).name)
    _shutdown.set()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the Sibyl Slack bot")
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit logs in JSON format",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override the configured log level",
    )
    return parser.parse_args(argv)


def build_listener(
    registry: EntityRegistry, slack_client: SlackClient, settings: Settings
) -> Any:
    def _listener(client: SocketModeClient, request: SocketModeRequest) -> None:
        if request.type != "events_api":
            return
        client.send_socket_mode_response(
            SocketModeResponse(envelope_id=request.envelope_id)
        )
        event = request.payload.get("event") or {}
        handle_slack_event_use_case(
            event,
            registry,
            slack_client,
            fetch_count=settings.history_fetch_count,
        )

    return _listener


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    setup_logging(
        log_level=args.log_level or settings.log_level,
        json_logs=args.json_logs or settings.json_logs,
    )

    try:
        bot_token, app_token = settings.require_slack_tokens()
    except ValueError as error:
        logger.error("slack_tokens_missing", error=str(error))
        return 1

    web_client = WebClient(token=bot_token)
    slack_client = SlackClient(
        bot_token, max_retries=settings.slack_max_retries, client=web_client
    )
    registry = EntityRegistry.from_settings(settings, compute_message_rating)

    socket_client = SocketModeClient(app_token=app_token, web_client=web_client)
    socket_client.socket_mode_request_listeners.append(
        build_listener(registry, slack_client, settings)
    )

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    socket_client.connect()
    logger.info("sibyl_started", leaderboard_size=settings.leaderboard_size)
    _shutdown.wait()

    socket_client.close()
    logger.info("sibyl_stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
