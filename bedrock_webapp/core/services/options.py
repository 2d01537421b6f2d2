"""
Install option normalization.

Turns caller-supplied InstallOptions into a complete, frozen
ResolvedInstallOptions. Runs before any side effect, so a bad option
aborts an install with nothing to clean up.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Mapping

from pydantic import ValidationError

from bedrock_webapp.core.errors import PreconditionError
from bedrock_webapp.core.models.panel import AccountSettings
from bedrock_webapp.core.models.target import InstallOptions, ResolvedInstallOptions
from bedrock_webapp.core.services.docroot import normalize_hostname
from bedrock_webapp.core.services.passwords import generate_password

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "A Random Blog for a Random Reason"

_VERSION = re.compile(r"^\d+(\.\d+){0,3}$")
_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_ADMIN_USER = re.compile(r"^[A-Za-z0-9_.@-]{1,60}$")
_CONTROL = re.compile(r"[\x00-\x1f\x7f]")


def coerce_options(options: InstallOptions | Mapping[str, Any] | None) -> InstallOptions:
    """Accept a model, a plain mapping or nothing."""
    if options is None:
        return InstallOptions()
    if isinstance(options, InstallOptions):
        return options
    try:
        return InstallOptions.model_validate(dict(options))
    except ValidationError as e:
        raise PreconditionError(f"Invalid install options: {e}") from e


def normalize_options(
    options: InstallOptions,
    hostname: str,
    path: str,
    account: AccountSettings,
    password_factory: Callable[[], str] = generate_password,
) -> ResolvedInstallOptions:
    """Validate ``options`` and fill in every default.

    Raises:
        PreconditionError: An option is malformed or a required default
            (admin email) is unavailable.
    """
    version = options.version.strip()
    if version and not _VERSION.match(version):
        raise PreconditionError(f"Invalid version {version!r}, expected e.g. 1.24.2")

    host = normalize_hostname(hostname)
    if host is None:
        raise PreconditionError(f"Invalid hostname {hostname!r}")

    email = (options.email or account.admin_email).strip()
    if not email:
        raise PreconditionError("No admin email given and none configured for the account")
    if not _EMAIL.match(email) or _CONTROL.search(email):
        raise PreconditionError(f"Invalid admin email {email!r}")

    user = (options.user or account.user).strip()
    if not _ADMIN_USER.match(user):
        raise PreconditionError(f"Invalid admin user {user!r}")

    password = options.password
    generated = not password
    if generated:
        password = password_factory()
    elif _CONTROL.search(password):
        raise PreconditionError("Admin password may not contain control characters")

    title = options.title if options.title else DEFAULT_TITLE
    if _CONTROL.search(title):
        raise PreconditionError(f"Invalid site title {title!r}: control characters")

    return ResolvedInstallOptions(
        version=version,
        title=title,
        email=email,
        user=user,
        password=password,
        password_generated=generated,
        ssl=options.ssl,
        hold=options.hold,
        url=f"{host}/{path.strip('/')}".rstrip("/"),
    )
