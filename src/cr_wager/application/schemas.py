"""Pydantic schemas for cr_wager API requests and responses.

Wager cursor: the last wager id of the page (snowflake ids sort by creation),
Base64-encoded so clients treat it as opaque.
"""

import base64
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from src.cr_account.domain.models import mask_owner_key
from src.cr_common.units import units_to_display
from src.cr_round.application.schemas import CurrentRoundResponse
from src.cr_wager.domain.models import Wager

# ---------------------------------------------------------------------------
# Cursor utilities
# ---------------------------------------------------------------------------


def cursor_encode(last_wager: Wager) -> str:
    return base64.urlsafe_b64encode(last_wager.id.encode()).decode()


def cursor_decode(cursor: str | None) -> str | None:
    """Decode cursor -> wager id, or None on missing/garbled input."""
    if cursor is None:
        return None
    try:
        decoded = base64.urlsafe_b64decode(cursor.encode()).decode()
    except Exception:
        return None
    return decoded if decoded.isdigit() else None


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class PlaceWagerRequest(BaseModel):
    symbol: str = Field(..., min_length=3, max_length=20)
    round_id: str = Field(..., min_length=1, max_length=64)
    side: Literal["GREEN", "RED"]
    owner_key: str = Field(..., min_length=8, max_length=128)
    paid_asset: str = Field("USDC", min_length=2, max_length=16)
    paid_amount: Decimal = Field(..., gt=0, max_digits=38, decimal_places=18)
    transaction_ref: str | None = Field(None, max_length=128)
    username: str | None = Field(None, max_length=32)
    is_anonymous: bool = False

    @field_validator("owner_key")
    @classmethod
    def no_whitespace(cls, v: str) -> str:
        if v != v.strip() or " " in v:
            raise ValueError("owner_key must not contain whitespace")
        return v

    @field_validator("symbol", "paid_asset")
    @classmethod
    def upper(cls, v: str) -> str:
        return v.strip().upper()


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class WagerResponse(BaseModel):
    id: str
    round_id: str
    owner_key: str
    side: str
    status: str
    net_amount_units: int
    net_amount_display: str
    payout_units: int
    payout_display: str
    paid_asset: str
    gross_paid: str
    platform_fee_units: int
    transaction_ref: str | None
    payout_confirmation: str | None
    created_at: str | None
    settled_at: str | None
    paid_at: str | None

    @classmethod
    def from_domain(cls, w: Wager) -> "WagerResponse":
        def _iso(dt: object) -> str | None:
            if dt is None:
                return None
            return dt.isoformat()  # type: ignore[attr-defined]

        return cls(
            id=w.id,
            round_id=w.round_id,
            owner_key=w.owner_key,
            side=w.side,
            status=w.status,
            net_amount_units=w.net_amount,
            net_amount_display=units_to_display(w.net_amount),
            payout_units=w.payout,
            payout_display=units_to_display(w.payout),
            paid_asset=w.paid_asset,
            gross_paid=str(w.gross_paid),
            platform_fee_units=w.platform_fee,
            transaction_ref=w.transaction_ref,
            payout_confirmation=w.payout_confirmation,
            created_at=_iso(w.created_at),
            settled_at=_iso(w.settled_at),
            paid_at=_iso(w.paid_at),
        )


class PlaceWagerResponse(BaseModel):
    wager: WagerResponse
    round: CurrentRoundResponse


class WagerListResponse(BaseModel):
    items: list[WagerResponse]
    next_cursor: str | None
    has_more: bool


class LiveWagerItem(BaseModel):
    """Public feed entry: owner shown as username, or masked when anonymous."""

    id: str
    round_id: str
    display_name: str
    side: str
    net_amount_units: int
    net_amount_display: str
    paid_asset: str
    created_at: str | None

    @classmethod
    def from_domain(cls, w: Wager) -> "LiveWagerItem":
        if w.is_anonymous or not w.username:
            display_name = mask_owner_key(w.owner_key)
        else:
            display_name = w.username
        return cls(
            id=w.id,
            round_id=w.round_id,
            display_name=display_name,
            side=w.side,
            net_amount_units=w.net_amount,
            net_amount_display=units_to_display(w.net_amount),
            paid_asset=w.paid_asset,
            created_at=w.created_at.isoformat() if w.created_at else None,
        )


class LiveWagerFeed(BaseModel):
    items: list[LiveWagerItem]


class ContributionEstimateResponse(BaseModel):
    """What a payment would add to a pool, priced by a rail quote (no swap)."""

    paid_asset: str
    paid_amount: str
    quote_units: int
    platform_fee_units: int
    fee_rate_bps: int
    net_amount_units: int
    net_amount_display: str
