"""Bootstrap use case.

Looks users up in Slack and seeds their rating window from recent message
history, so a first query does not fall back to a near-empty window.
"""

from sibyl.config.logging_config import get_logger
from sibyl.domain.exceptions import RateLimitError, SlackAPIError
from sibyl.domain.models import EntityKind
from sibyl.domain.protocols import SlackClientProtocol
from sibyl.services.entity_registry import EntityRegistry

logger = get_logger(__name__)


def resolve_user_use_case(
    user_id: str, registry: EntityRegistry, slack_client: SlackClientProtocol
) -> bool:
    """Make sure a user's profile is known, fetching it from Slack if needed.

    Args:
        user_id: Slack user ID
        registry: Entity registry
        slack_client: Slack client

    Returns:
        True if the user exists, False if Slack does not know the ID

    Raises:
        SlackAPIError: On API communication errors
    """
    profile = registry.get_profile(user_id, EntityKind.USER)
    if profile is not None and profile.username:
        return True

    user = slack_client.get_user_info(user_id)
    if user is None:
        return False

    registry.register_profile(
        user_id,
        EntityKind.USER,
        username=user.get("name"),
        name=user.get("real_name") or None,
    )
    return True


def bootstrap_user_history_use_case(
    user_id: str,
    registry: EntityRegistry,
    slack_client: SlackClientProtocol,
    *,
    fetch_count: int,
) -> int:
    """Seed a user's window from Slack search if it is not full yet.

    A failed search keeps whatever the registry already recorded.

    Args:
        user_id: Slack user ID (must already be resolved)
        registry: Entity registry
        slack_client: Slack client
        fetch_count: Maximum messages to fetch

    Returns:
        The user's Psycho-Pass after bootstrapping
    """
    capacity = EntityKind.USER.window_capacity
    current = registry.query_score(user_id, EntityKind.USER)
    history_size = registry.history_size(user_id, EntityKind.USER)
    if current is not None and history_size >= capacity:
        return current

    profile = registry.get_profile(user_id, EntityKind.USER)
    username = profile.username if profile else None

    texts: list[str] = []
    if username:
        try:
            matches = slack_client.search_user_messages(
                username, min(fetch_count, capacity)
            )
            texts = [match["text"] for match in matches if match.get("text")]
        except (SlackAPIError, RateLimitError) as error:
            logger.warning(
                "history_bootstrap_failed",
                user_id=user_id,
                username=username,
                error=str(error),
            )
        else:
            logger.info(
                "history_fetched",
                user_id=user_id,
                message_count=len(texts),
            )

    if texts:
        ratings = [registry.rate(text) for text in texts]
        return registry.seed(user_id, ratings, EntityKind.USER)

    if current is not None:
        return current
    return registry.seed(user_id, [], EntityKind.USER)
