from typing import Any

from loguru import logger

from cubic.models.envelope import Envelope, validate
from cubic.utils.exception import SchemaValidationError


def parse_response(raw: Any, command: str | None = None) -> Envelope:
    """
    Validate a raw backend reply before anything else looks at it.

    Validation failures are logged with the full issue tree and re-raised
    unchanged. Replies that are well-formed but break the success/error
    invariant are accepted and logged as anomalies.

    :param raw: Reply as returned by the command gateway
    :param command: Backend command that produced the reply, for logging
    :return: The validated Envelope
    :raises SchemaValidationError: If the reply breaks the envelope contract
    """
    source = f"'{command}'" if command else "backend"
    try:
        envelope = validate(raw)
    except SchemaValidationError as e:
        logger.error(f"Response validation failed for {source}: {e.as_tree()}")
        for issue in e.issues:
            logger.debug(f"[{issue.kind.value}] {issue.path}: {issue.message}")
        raise

    for anomaly in envelope.anomalies:
        logger.warning(f"Anomalous reply from {source}: {anomaly}")
    return envelope
