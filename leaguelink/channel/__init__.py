"""The channel blueprint."""

from flask import Blueprint

bp = Blueprint("channel", __name__, url_prefix="/api/channels")

from . import routes  # noqa: E402

__all__ = ["routes"]
