# -*- coding: utf-8 -*-
"""
Field Census Utility Module
"""

from .logger import get_logger, setup_logger
from .datetime_utils import from_isoformat, to_isoformat, utc_now_isoformat

__all__ = [
    "get_logger",
    "setup_logger",
    "from_isoformat",
    "to_isoformat",
    "utc_now_isoformat",
]
