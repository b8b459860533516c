"""API blueprint package aggregating the authentication endpoints."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from flask import Blueprint, Flask

from tickit.core.errors import APIError, error_response
from tickit.services._shared.base import BaseService
from tickit.services._shared.errors import ServiceError

log = logging.getLogger(__name__)


def register_blueprint_group(
    app: Flask,
    *,
    base_prefix: str,
    entries: Iterable[tuple[Blueprint, str]],
) -> None:
    """Register related blueprints beneath a common prefix.

    Parameters
    ----------
    app:
        Application instance receiving the blueprints.
    base_prefix:
        Prefix applied to all entries (``API_BASE_PREFIX``). May be empty, in
        which case the routes mount at the server root.
    entries:
        Iterable of ``(blueprint, relative_prefix)`` pairs where
        ``relative_prefix`` is appended to ``base_prefix``.
    """

    for bp, rel_prefix in entries:
        full_prefix = "/".join(
            segment for segment in [base_prefix.strip("/"), rel_prefix.strip("/")] if segment
        )
        app.register_blueprint(bp, url_prefix="/" + full_prefix)


def register_service_error_handler(app: Flask) -> None:
    """Render service-layer errors through ``BaseService.translate_exceptions``."""

    translator = BaseService()

    @app.errorhandler(ServiceError)
    def handle_service_error(err: ServiceError):
        translated = translator.translate_exceptions(err)
        if not isinstance(translated, APIError):  # pragma: no cover - every ServiceError maps
            raise err
        body = translated.to_body()
        level = log.error if translated.status_code >= 500 else log.info
        level(
            "ServiceError: type=%s code=%s status=%s request_id=%s",
            type(err).__name__,
            translated.code,
            translated.status_code,
            body.get("request_id"),
        )
        return error_response(body)


def init_app(app: Flask) -> None:
    """Register the endpoint blueprints and the service error handler."""

    from tickit.api.endpoints import REGISTRY

    register_blueprint_group(
        app, base_prefix=app.config.get("API_BASE_PREFIX", ""), entries=REGISTRY
    )
    register_service_error_handler(app)


__all__ = ["init_app", "register_blueprint_group"]
