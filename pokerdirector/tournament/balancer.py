"""
Table Assignment and Balancing.

Seats active players across tables and keeps table sizes even as players
bust out.

핵심 설계 원칙:
1. 테이블 간 인원 차이 최소화 (±1 이내 유지)
2. 최소 이동 원칙 (이미 균형인 테이블은 건드리지 않음)
3. 가장 높은 좌석의 플레이어를 가장 낮은 빈 좌석으로 이동
4. 인원이 줄면 번호가 큰 테이블부터 해체
"""

import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from pokerdirector.logging_config import get_logger

from .models import Player, Table

logger = get_logger(__name__)

DEFAULT_MAX_SEATS = 9


class BalancingPriority(Enum):
    """Balancing urgency levels."""

    NONE = 0  # 밸런싱 불필요
    MEDIUM = 2  # 인원 차이 2
    HIGH = 3  # 인원 차이 3 이상 또는 테이블 해체


@dataclass(frozen=True)
class PlayerMove:
    """Single player move instruction."""

    player_id: str
    from_table: int
    from_seat: int
    to_table: int
    to_seat: int
    priority: BalancingPriority = BalancingPriority.MEDIUM

    def to_dict(self) -> Dict:
        return {
            "player_id": self.player_id,
            "from_table": self.from_table,
            "from_seat": self.from_seat,
            "to_table": self.to_table,
            "to_seat": self.to_seat,
            "priority": self.priority.name,
        }


@dataclass
class BalancingPlan:
    """Ordered moves that bring the tables into balance."""

    moves: List[PlayerMove] = field(default_factory=list)
    tables_to_break: List[int] = field(default_factory=list)
    priority: BalancingPriority = BalancingPriority.NONE

    @property
    def total_moves(self) -> int:
        return len(self.moves)

    @property
    def is_empty(self) -> bool:
        return not self.moves and not self.tables_to_break

    def to_dict(self) -> Dict:
        return {
            "total_moves": self.total_moves,
            "tables_to_break": self.tables_to_break,
            "priority": self.priority.name,
            "moves": [m.to_dict() for m in self.moves],
        }


def _active_only(table: Table) -> Table:
    """Eliminated players hold no seat."""
    if all(not p.eliminated for p in table.players):
        return table
    return Table(
        id=table.id,
        players=tuple(p for p in table.players if not p.eliminated),
        max_seats=table.max_seats,
    )


class TableBalancer:
    """
    Table balancing engine.

    밸런싱 알고리즘:
    ─────────────────────────────────────────────────────────────────

    1. 가장 많은 테이블과 가장 적은 테이블을 찾는다 (동률은 번호가 낮은 테이블)
    2. 차이가 1 이하이면 종료
    3. 많은 테이블의 가장 높은 좌석 플레이어를
       적은 테이블의 가장 낮은 빈 좌석으로 이동
    4. 1로 돌아간다

    ─────────────────────────────────────────────────────────────────
    """

    def calculate_balancing_plan(self, tables: Sequence[Table]) -> BalancingPlan:
        """
        Calculate the moves that bring every table within one player of the others.

        Args:
            tables: Current tables

        Returns:
            BalancingPlan (empty when fewer than two tables or already balanced)
        """
        plan = BalancingPlan()
        if len(tables) < 2:
            return plan

        working: Dict[int, Table] = {t.id: _active_only(t) for t in tables}
        counts = [t.player_count for t in working.values()]
        imbalance = max(counts) - min(counts)
        if imbalance <= 1:
            return plan

        if imbalance >= 3:
            plan.priority = BalancingPriority.HIGH
        else:
            plan.priority = BalancingPriority.MEDIUM

        plan.moves = self._calculate_minimum_moves(working, plan.priority)
        return plan

    def _calculate_minimum_moves(
        self,
        working: Dict[int, Table],
        priority: BalancingPriority,
    ) -> List[PlayerMove]:
        moves: List[PlayerMove] = []

        while True:
            ordered = sorted(working.values(), key=lambda t: t.id)
            largest = max(ordered, key=lambda t: t.player_count)
            smallest = min(ordered, key=lambda t: t.player_count)
            if largest.player_count - smallest.player_count <= 1:
                break

            player = self._select_player_to_move(largest)
            dest_seat = smallest.lowest_free_seat()
            if player is None or dest_seat is None:
                logger.warning(
                    "balancing_stalled",
                    from_table=largest.id,
                    to_table=smallest.id,
                )
                break

            moves.append(
                PlayerMove(
                    player_id=player.id,
                    from_table=largest.id,
                    from_seat=player.seat_number or 0,
                    to_table=smallest.id,
                    to_seat=dest_seat,
                    priority=priority,
                )
            )
            working[largest.id] = largest.without_player(player.id)
            working[smallest.id] = smallest.with_player(player.at_seat(smallest.id, dest_seat))

        return moves

    def _select_player_to_move(self, table: Table) -> Optional[Player]:
        """Player in the highest occupied seat."""
        if not table.players:
            return None
        return max(table.players, key=lambda p: p.seat_number or 0)

    def calculate_break_plan(self, tables: Sequence[Table]) -> BalancingPlan:
        """
        Plan breaking the highest-numbered tables once the field fits in fewer.

        테이블 해체 알고리즘:
        ─────────────────────────────────────────────────────────────

        1. 남은 인원을 수용할 수 있는 최소 테이블 수 계산 (번호 순)
        2. 나머지 테이블을 해체 대상으로 지정
        3. 해체 테이블의 플레이어를 좌석 순으로
           가장 인원이 적은 테이블의 가장 낮은 빈 좌석에 배치

        ─────────────────────────────────────────────────────────────
        """
        plan = BalancingPlan()
        ordered = sorted((_active_only(t) for t in tables), key=lambda t: t.id)
        if len(ordered) < 2:
            return plan

        total_players = sum(t.player_count for t in ordered)
        needed = 0
        capacity = 0
        for table in ordered:
            if capacity >= total_players and needed > 0:
                break
            capacity += table.max_seats
            needed += 1

        if needed >= len(ordered):
            return plan

        keep = {t.id: t for t in ordered[:needed]}
        breaking = ordered[needed:]
        plan.tables_to_break = [t.id for t in breaking]
        plan.priority = BalancingPriority.HIGH

        for table in breaking:
            for player in table.players:
                open_tables = [t for t in keep.values() if t.lowest_free_seat() is not None]
                if not open_tables:
                    logger.warning("table_break_no_seat", player_id=player.id, table=table.id)
                    continue
                target = min(open_tables, key=lambda t: (t.player_count, t.id))
                dest_seat = target.lowest_free_seat()
                plan.moves.append(
                    PlayerMove(
                        player_id=player.id,
                        from_table=table.id,
                        from_seat=player.seat_number or 0,
                        to_table=target.id,
                        to_seat=dest_seat,
                        priority=BalancingPriority.HIGH,
                    )
                )
                keep[target.id] = target.with_player(player.at_seat(target.id, dest_seat))

        return plan

    def apply_plan(self, tables: Sequence[Table], plan: BalancingPlan) -> Tuple[Table, ...]:
        """
        Execute a plan against the given tables.

        Returns:
            New tables ordered by id, broken tables removed.
        """
        working: Dict[int, Table] = {t.id: _active_only(t) for t in tables}

        for move in plan.moves:
            source = working.get(move.from_table)
            target = working.get(move.to_table)
            if source is None or target is None:
                continue
            player = next((p for p in source.players if p.id == move.player_id), None)
            if player is None:
                continue
            working[source.id] = source.without_player(player.id)
            working[target.id] = working[target.id].with_player(
                player.at_seat(move.to_table, move.to_seat)
            )

        for table_id in plan.tables_to_break:
            working.pop(table_id, None)

        return tuple(sorted(working.values(), key=lambda t: t.id))


def assign_players_to_tables(
    players: Sequence[Player],
    num_tables: int,
    max_seats: int = DEFAULT_MAX_SEATS,
    rng: Optional[random.Random] = None,
) -> Tuple[Table, ...]:
    """
    Seat every active player round-robin across fresh tables.

    Args:
        players: Registered players (eliminated ones are skipped)
        num_tables: Tables to open, numbered from 1
        max_seats: Seats per table
        rng: Shuffles the seating order when given; registration order otherwise

    Returns:
        Tables with each player in the lowest free seat of its table.
    """
    if num_tables <= 0:
        return ()

    tables: List[Table] = [Table(id=i + 1, max_seats=max_seats) for i in range(num_tables)]
    active = [p for p in players if not p.eliminated]
    if rng is not None:
        rng.shuffle(active)

    for index, player in enumerate(active):
        # 라운드 로빈, 만석이면 다음 테이블
        for offset in range(num_tables):
            table_index = (index + offset) % num_tables
            seat = tables[table_index].lowest_free_seat()
            if seat is not None:
                table = tables[table_index]
                tables[table_index] = table.with_player(player.at_seat(table.id, seat))
                break
        else:
            logger.warning("player_not_seated", player_id=player.id, num_tables=num_tables)

    return tuple(tables)


def balance_tables(tables: Sequence[Table]) -> Tuple[Table, ...]:
    """Move players until no two tables differ by more than one player."""
    if len(tables) < 2:
        return tuple(tables)
    balancer = TableBalancer()
    plan = balancer.calculate_balancing_plan(tables)
    if plan.is_empty:
        return tuple(tables)
    logger.info("tables_balanced", moves=plan.total_moves, priority=plan.priority.name)
    return balancer.apply_plan(tables, plan)


def consolidate_tables(tables: Sequence[Table]) -> Tuple[Table, ...]:
    """Break surplus tables, then balance the rest."""
    balancer = TableBalancer()
    plan = balancer.calculate_break_plan(tables)
    if plan.is_empty:
        return balance_tables(tables)
    logger.info("tables_consolidated", broken=plan.tables_to_break, moves=plan.total_moves)
    return balance_tables(balancer.apply_plan(tables, plan))
