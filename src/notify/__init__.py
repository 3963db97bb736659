"""Mail transport registry with lazy loading.

Usage:
    from src.notify import get_mailer

    mailer = get_mailer("smtp", batch_size=500)
    report = mailer.send_batch(job, ["a@example.com", "b@example.com"])
"""

from __future__ import annotations

import importlib

from src.notify.mailer import MailDispatcher, SendReport

__all__ = ["MailDispatcher", "SendReport", "available_mailers", "get_mailer"]

# Lazy registry: maps transport name -> (module_path, class_name)
_REGISTRY: dict[str, tuple[str, str]] = {
    "log": ("src.notify.mailer", "LogMailer"),
    "smtp": ("src.notify.mailer", "SmtpMailer"),
}


def get_mailer(name: str, batch_size: int = 500) -> MailDispatcher:
    """Instantiate and return a mail transport by name.

    Raises:
        ValueError: If the transport name is unknown or it is not configured.
    """
    if name not in _REGISTRY:
        valid = ", ".join(sorted(_REGISTRY))
        msg = f"Unknown mail transport '{name}'. Available: {valid}"
        raise ValueError(msg)

    module_path, class_name = _REGISTRY[name]
    module = importlib.import_module(module_path)
    cls = getattr(module, class_name)
    return cls(batch_size=batch_size)  # type: ignore[no-any-return]


def available_mailers() -> list[str]:
    """Return sorted list of registered transport names."""
    return sorted(_REGISTRY)
