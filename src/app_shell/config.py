import logging
import os
from pathlib import Path

from src.rules.models import Rules

logger = logging.getLogger(__name__)


def validate_ops_rules(rules: Rules, data_dir: Path) -> None:
    """
    Fail fast on a misconfigured deployment.

    Creates the data directory when the rules require one and checks it is
    writable, then checks every environment variable listed in
    ``ops.required_env`` is set. Raises ValueError describing the first
    problem found.
    """
    ops = rules.ops

    if ops.data_dir_required:
        data_dir.mkdir(parents=True, exist_ok=True)
        if not os.access(data_dir, os.W_OK):
            raise ValueError(f"Data directory is not writable: {data_dir}")

    missing = [name for name in ops.required_env if not os.environ.get(name)]
    if missing:
        raise ValueError(f"Missing required environment variables: {', '.join(missing)}")

    logger.info("Configuration validated (data_dir=%s)", data_dir)
