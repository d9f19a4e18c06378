# BimaHub Rating - Premium Rating and Policy Rules Engine
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Business logic service layer."""

from ..core.result_types import Err, Ok, Result
from .quote_service import QuoteIdGenerator, QuoteService, create_quote_service
from .rating import RatingEngine

__all__ = [
    "Result",
    "Ok",
    "Err",
    "RatingEngine",
    "QuoteService",
    "QuoteIdGenerator",
    "create_quote_service",
]
