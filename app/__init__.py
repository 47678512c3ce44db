# -*- coding: utf-8 -*-
"""
Field Census Application Core Module
"""

from .config import Config, ExportKinds

__all__ = ["Config", "ExportKinds"]
