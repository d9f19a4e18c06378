# BimaHub Rating - Premium Rating and Policy Rules Engine
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Core infrastructure: settings, logging and result types."""

from .config import PrivateRateBasis, Settings, clear_settings_cache, get_settings
from .errors import InvalidInput, RatingError, RuleNotFound, RuleTableError
from .logging_utils import configure_logging, get_logger
from .result_types import Err, Ok, Result

__all__ = [
    "Settings",
    "PrivateRateBasis",
    "get_settings",
    "clear_settings_cache",
    "configure_logging",
    "get_logger",
    "Ok",
    "Err",
    "Result",
    "RatingError",
    "RuleNotFound",
    "InvalidInput",
    "RuleTableError",
]
