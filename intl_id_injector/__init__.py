"""Inject content-derived ids into react-intl / FormatJS message declarations."""

__version__ = "0.1.0"

from .message_id import generate_override_id
from .transformer import FormatJsTransformer, transform_program
from .utils.site_config import RewriterConfig

__all__ = [
    "generate_override_id",
    "FormatJsTransformer",
    "transform_program",
    "RewriterConfig",
]
