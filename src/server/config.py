"""Server configuration."""
import logging
import os
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

_RECOGNISED_BOOL_VALUES = frozenset(
    ("1", "true", "yes", "0", "false", "no")
)


@dataclass(frozen=True)
class LivenessConfig:
    """Liveness probing and idle eviction.

    ``probe_interval``: seconds between cycles; an unanswered probe is
        treated as a dead connection on the following cycle.
    ``idle_timeout``: seconds without activity before a session is swept.
    ``enabled``: start the monitor with the application lifespan.
    """

    enabled: bool = True
    probe_interval: float = 30.0
    idle_timeout: float = 300.0


@dataclass(frozen=True)
class RateLimitConfig:
    requests_per_minute: int = 600


@dataclass(frozen=True)
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 8080
    version: str = "0.1.0"
    liveness: LivenessConfig = field(default_factory=LivenessConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    poll_queue_max_size: int = 1000
    admin_secret: str = ""


def _parse_bool(value: str, default: bool) -> bool:
    """Parse a boolean environment variable with explicit default.

    Recognises ``true/1/yes`` and ``false/0/no`` (case-insensitive).
    Returns *default* when the value is empty or unset.
    Logs a warning and returns *default* for unrecognised values
    (e.g. typos like ``ture``).
    """
    if not value:
        return default
    normalised = value.lower()
    if normalised not in _RECOGNISED_BOOL_VALUES:
        logger.warning(
            "Unrecognised boolean value %r, using default %s. "
            "Expected one of: true/1/yes or false/0/no.",
            value,
            default,
        )
        return default
    return normalised in ("1", "true", "yes")


def _positive(name: str, raw: str, cast: type) -> float:
    try:
        value = cast(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


def load_config_from_env() -> ServerConfig:
    port = int(_positive("PORT", os.environ.get("PORT", "8080"), int))
    probe_interval = _positive(
        "PROBE_INTERVAL", os.environ.get("PROBE_INTERVAL", "30"), float
    )
    idle_timeout = _positive(
        "IDLE_TIMEOUT", os.environ.get("IDLE_TIMEOUT", "300"), float
    )
    if idle_timeout < probe_interval:
        logger.warning(
            "IDLE_TIMEOUT (%ss) is shorter than PROBE_INTERVAL (%ss); "
            "idle sessions are only swept once per probe cycle.",
            idle_timeout,
            probe_interval,
        )

    admin_secret = os.environ.get("ADMIN_SECRET", "")
    if not admin_secret:
        logger.info("ADMIN_SECRET not set, administrative close disabled")

    return ServerConfig(
        host=os.environ.get("RELAY_HOST", "0.0.0.0"),
        port=port,
        liveness=LivenessConfig(
            enabled=_parse_bool(os.environ.get("LIVENESS_ENABLED", ""), default=True),
            probe_interval=probe_interval,
            idle_timeout=idle_timeout,
        ),
        rate_limit=RateLimitConfig(
            requests_per_minute=int(_positive(
                "RATE_LIMIT_REQUESTS_PER_MINUTE",
                os.environ.get("RATE_LIMIT_REQUESTS_PER_MINUTE", "600"),
                int,
            )),
        ),
        poll_queue_max_size=int(_positive(
            "POLL_QUEUE_MAX_SIZE", os.environ.get("POLL_QUEUE_MAX_SIZE", "1000"), int
        )),
        admin_secret=admin_secret,
    )
