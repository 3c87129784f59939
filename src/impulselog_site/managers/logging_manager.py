"""
# Logging Manager

Central logger factory for the service. Every module obtains its logger through
`get_logger()`, optionally with a bracketed prefix so related log lines are easy to grep:

```python
logger = get_logger(prefix="[Blog Webhook]")
logger.info("Created post %s", slug)
# 2026-10-17 12:00:00 INFO impulselog_site [Blog Webhook] Created post hello-world
```

Handlers are attached once to the `impulselog_site` root logger; the level comes from
`settings.LOG_LEVEL`.
"""

import logging
import sys
from typing import Any, MutableMapping, Optional, Tuple

from impulselog_site.config import settings

ROOT_LOGGER_NAME = "impulselog_site"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

_configured = False


class PrefixLoggerAdapter(logging.LoggerAdapter):
    """Prepends a fixed prefix to every message."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        prefix = self.extra.get("prefix") if self.extra else None
        if prefix:
            return f"{prefix} {msg}", kwargs
        return msg, kwargs


def _configure_root_logger() -> None:
    global _configured
    if _configured:
        return

    root = logging.getLogger(ROOT_LOGGER_NAME)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    root.propagate = False
    _configured = True


def get_logger(name: Optional[str] = None, prefix: str = "") -> PrefixLoggerAdapter:
    """
    Return a logger under the service namespace.

    Args:
        name: Child logger name; defaults to the package root logger.
        prefix: Text prepended to every message, e.g. `"[Sitemap]"`.

    Returns:
        PrefixLoggerAdapter: Adapter exposing the usual `debug/info/warning/error` methods.
    """
    _configure_root_logger()
    if not name:
        logger_name = ROOT_LOGGER_NAME
    elif name.startswith(ROOT_LOGGER_NAME):
        logger_name = name
    else:
        logger_name = f"{ROOT_LOGGER_NAME}.{name}"
    return PrefixLoggerAdapter(logging.getLogger(logger_name), {"prefix": prefix})
