"""SQLAlchemy engine construction for the target database."""

from __future__ import annotations

import logging

from sqlalchemy import Engine, create_engine
from sqlalchemy.engine import make_url

from loader_engine.config import LoaderSettings

logger = logging.getLogger(__name__)


def create_loader_engine(settings: LoaderSettings) -> Engine:
    """Create a synchronous engine for ``settings.database_url``.

    ``settings.user`` and ``settings.password``, when set, replace the
    credentials embedded in the URL.

    Raises
    ------
    ValueError
        If no database URL is configured.
    """
    if settings.database_url is None:
        raise ValueError("No database URL configured (set SQLLOADER_DATABASE_URL or pass --url)")

    url = make_url(settings.database_url)
    if settings.user:
        url = url.set(username=settings.user)
    if settings.password is not None:
        url = url.set(password=settings.password.get_secret_value())

    engine = create_engine(url, echo=False)
    logger.info("Created engine: %s", url.render_as_string(hide_password=True))
    return engine
