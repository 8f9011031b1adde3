"""Donor eligibility, appointment lifecycle and blood sufficiency rules for the blood donation platform."""
from donation_engine.config import Settings, get_settings
from donation_engine.exceptions import (
    ConflictError,
    DonationEngineError,
    InvalidInputError,
    InvalidTransitionError,
    MissingAnswerError,
)

__version__ = "1.0.0"

__all__ = [
    "Settings",
    "get_settings",
    "ConflictError",
    "DonationEngineError",
    "InvalidInputError",
    "InvalidTransitionError",
    "MissingAnswerError",
]
