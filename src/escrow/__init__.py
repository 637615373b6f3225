"""Escrow — удержание взносов до reject/approve (cap-gated и KYC-gated)."""

from .base import Escrow, EscrowPolicy
from .cap_escrow import CapEscrow
from .kyc_escrow import KYCEscrow

__all__ = [
    "Escrow",
    "EscrowPolicy",
    "CapEscrow",
    "KYCEscrow",
]
