"""
Prize Pool and Payout Calculation.

정산 흐름:
1. 총 상금 = 바이인 + 리바이 + 애드온
2. 하우스 수수료 차감 (정률 또는 정액)
3. 순위별 비율로 분배, 센트 단위 반올림
4. 반올림 오차는 마지막 순위에 반영 (합계 = 순 상금)
"""

import math
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pokerdirector.logging_config import get_logger

from .models import HouseFeeType, PayoutPlace, Player, TournamentState

logger = get_logger(__name__)

CENT = Decimal("0.01")
PERCENTAGE_TOLERANCE = Decimal("0.01")
HUNDRED = Decimal(100)

# 입상 인원별 추천 분배율 (각 행 합계 100)
PAYOUT_SUGGESTIONS: Dict[int, Tuple[float, ...]] = {
    1: (100,),
    2: (65, 35),
    3: (50, 30, 20),
    4: (45, 27, 18, 10),
    5: (40, 25, 15, 12, 8),
    6: (38, 24, 14, 10, 8, 6),
    7: (35, 22, 13, 10, 8, 7, 5),
    8: (34, 21, 13, 9, 8, 6, 5, 4),
    9: (33, 20, 13, 9, 7, 6, 5, 4, 3),
    10: (32, 19, 12.5, 8.5, 7, 6, 5, 4, 3.5, 2.5),
}


def to_money(amount: Any) -> Decimal:
    """Convert to Decimal via str so 0.1 stays 0.1."""
    if isinstance(amount, Decimal):
        return amount
    return Decimal(str(amount))


def round_currency(amount: Any) -> Decimal:
    """Round to cents, halves up."""
    return to_money(amount).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PayoutInput:
    """Entry counts and amounts feeding the prize pool."""

    total_buy_ins: int = 0
    buy_in_amount: Any = 0
    total_rebuys: int = 0
    rebuy_amount: Any = 0
    total_addons: int = 0
    addon_amount: Any = 0
    house_fee_type: HouseFeeType = HouseFeeType.NONE
    house_fee_value: Any = 0
    payout_places: Tuple[PayoutPlace, ...] = ()

    @classmethod
    def from_state(cls, state: TournamentState) -> "PayoutInput":
        """Count entries from the player list and take amounts from settings."""
        settings = state.settings
        return cls(
            total_buy_ins=sum(1 for p in state.players if p.buy_in),
            buy_in_amount=settings.buy_in_amount,
            total_rebuys=sum(p.rebuys for p in state.players),
            rebuy_amount=settings.rebuy_amount,
            total_addons=sum(p.add_ons for p in state.players),
            addon_amount=settings.add_on_amount,
            house_fee_type=settings.house_fee_type,
            house_fee_value=settings.house_fee_value,
            payout_places=settings.payout_places,
        )


@dataclass(frozen=True)
class PayoutDetail:
    """Amount paid to one finishing position."""

    position: int
    percentage: float
    amount: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "position": self.position,
            "percentage": self.percentage,
            "amount": float(self.amount),
        }


@dataclass(frozen=True)
class PayoutSummary:
    """Prize pool breakdown."""

    gross_prize_pool: Decimal
    house_cut: Decimal
    net_prize_pool: Decimal
    is_valid_structure: bool
    validation_message: str
    payout_details: Tuple[PayoutDetail, ...] = field(default_factory=tuple)

    def amount_for(self, position: int) -> Optional[Decimal]:
        for detail in self.payout_details:
            if detail.position == position:
                return detail.amount
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "gross_prize_pool": float(self.gross_prize_pool),
            "house_cut": float(self.house_cut),
            "net_prize_pool": float(self.net_prize_pool),
            "is_valid_structure": self.is_valid_structure,
            "validation_message": self.validation_message,
            "payout_details": [d.to_dict() for d in self.payout_details],
        }


def _validate_places(places: Sequence[PayoutPlace]) -> Tuple[bool, str]:
    if not places:
        return False, "Payout structure is empty or invalid."
    total = sum((to_money(p.percentage) for p in places), Decimal(0))
    if abs(total - HUNDRED) < PERCENTAGE_TOLERANCE:
        return True, "Payout structure is valid."
    shown = round_currency(total).normalize()
    return False, f"Payout percentages sum to {shown:f}%, but should sum to 100%."


def calculate_prize_pool_and_payouts(data: PayoutInput) -> PayoutSummary:
    """
    Calculate gross/net prize pool and per-place payouts.

    Args:
        data: Entry counts, amounts, house fee and payout places

    Returns:
        PayoutSummary; payout_details is empty when the structure is invalid
        (zero amounts when the pool is empty).
    """
    gross = (
        data.total_buy_ins * to_money(data.buy_in_amount)
        + data.total_rebuys * to_money(data.rebuy_amount)
        + data.total_addons * to_money(data.addon_amount)
    )

    fee_type = HouseFeeType.from_value(data.house_fee_type)
    house_cut = Decimal(0)
    if fee_type == HouseFeeType.PERCENTAGE:
        house_cut = gross * to_money(data.house_fee_value) / HUNDRED
    elif fee_type == HouseFeeType.FIXED:
        house_cut = to_money(data.house_fee_value)
    house_cut = max(Decimal(0), house_cut)

    net = round_currency(max(Decimal(0), gross - house_cut))
    places = tuple(sorted(data.payout_places, key=lambda p: p.position))
    is_valid, message = _validate_places(places)

    details: List[PayoutDetail] = []
    if is_valid and net > 0:
        details = [
            PayoutDetail(p.position, p.percentage, round_currency(net * to_money(p.percentage) / HUNDRED))
            for p in places
        ]
        # 반올림 오차는 가장 낮은 순위(최대 position)로
        residual = net - sum((d.amount for d in details), Decimal(0))
        if residual != 0:
            last = details[-1]
            details[-1] = PayoutDetail(last.position, last.percentage, last.amount + residual)
    elif net <= 0 and places:
        details = [PayoutDetail(p.position, p.percentage, Decimal("0.00")) for p in places]

    if not is_valid:
        logger.debug("payout_structure_invalid", message=message)

    return PayoutSummary(
        gross_prize_pool=round_currency(gross),
        house_cut=round_currency(house_cut),
        net_prize_pool=net,
        is_valid_structure=is_valid,
        validation_message=message,
        payout_details=tuple(details),
    )


def places_to_pay(num_participants: int) -> int:
    """How many finishing positions get paid for a field size."""
    n = num_participants
    if n >= 50:
        places = min(10, max(2, math.ceil(n * 0.15)))
    elif n >= 20:
        places = min(8, max(2, math.ceil(n * 0.18)))
    elif n >= 8:
        places = min(5, max(2, math.ceil(n * 0.22)))
    elif n >= 4:
        places = min(3, max(2, math.ceil(n * 0.30)))
    elif n >= 2:
        places = 2
    else:
        places = 1
    return min(n, places)


def suggest_payout_structure(num_participants: int) -> List[PayoutPlace]:
    """
    Suggest payout percentages for a field size.

    A field of one (or fewer) pays the winner 100%.
    """
    if num_participants <= 1:
        return [PayoutPlace(1, 100)]
    percentages = PAYOUT_SUGGESTIONS[places_to_pay(num_participants)]
    return [PayoutPlace(i + 1, pct) for i, pct in enumerate(percentages)]


# ─────────────────────────────────────────────────────────────────────────────
# Final standings
# ─────────────────────────────────────────────────────────────────────────────


def finishing_positions(players: Sequence[Player]) -> List[Tuple[int, Player]]:
    """
    Rank players for the scoreboard.

    Active players first by chip count, then eliminated players with the most
    recent elimination highest. For a fully played-out field a player's place
    is field size - elimination_position + 1.

    Returns:
        (place, player) pairs, place 1 first.
    """
    active = sorted((p for p in players if not p.eliminated), key=lambda p: p.chips, reverse=True)
    eliminated = sorted(
        (p for p in players if p.eliminated),
        key=lambda p: p.elimination_position or 0,
        reverse=True,
    )
    return [(place, player) for place, player in enumerate(active + eliminated, start=1)]


def assign_prizes(players: Sequence[Player], summary: PayoutSummary) -> Dict[str, Decimal]:
    """
    Map player ids to prize amounts by finishing place.

    Players finishing outside the paid places are omitted.
    """
    prizes: Dict[str, Decimal] = {}
    for place, player in finishing_positions(players):
        amount = summary.amount_for(place)
        if amount is not None and amount > 0:
            prizes[player.id] = amount
    return prizes
