"""
Blind Generator Tests.

동적 블라인드 구조 생성 및 셋업 플로우 테스트.
"""

import pytest
from hypothesis import given, settings, strategies as st

from pokerdirector.tournament.blind_generator import (
    BlindStructureRequest,
    generate_dynamic_blinds,
    generate_fallback_blinds,
    generator_format_for,
    plan_blind_structure,
)
from pokerdirector.tournament.models import (
    ANTE_DISABLED,
    GenerationOptions,
    TournamentFormat,
)


# =============================================================================
# Dynamic generator
# =============================================================================


class TestGenerateDynamicBlinds:
    """generateDynamicBlinds 기본 시나리오 (9명, 10000칩, 240분)."""

    @pytest.fixture
    def levels(self):
        return generate_dynamic_blinds(9, 10000, 240)

    def test_level_count_and_numbering(self, levels):
        assert len(levels) == 12
        assert [lv.level for lv in levels] == list(range(1, 13))

    def test_breaks_every_fourth_level(self, levels):
        breaks = [lv.level for lv in levels if lv.is_break]
        assert breaks == [4, 8, 12]
        for lv in levels:
            if lv.is_break:
                assert (lv.small_blind, lv.big_blind, lv.ante) == (0, 0, 0)
                assert lv.duration == 15

    def test_small_blind_progression(self, levels):
        blinds = [lv.small_blind for lv in levels if not lv.is_break]
        assert blinds == [50, 75, 100, 200, 300, 400, 500, 1000, 1000]

    def test_big_blind_is_double_small_blind(self, levels):
        for lv in levels:
            if not lv.is_break:
                assert lv.big_blind == lv.small_blind * 2
                assert lv.duration == 20

    def test_antes_start_at_level_four(self, levels):
        antes = {lv.level: lv.ante for lv in levels if not lv.is_break}
        assert antes[1] == antes[2] == antes[3] == 0
        assert antes[5] == 50
        assert antes[7] == 75
        assert antes[9] == 100
        assert antes[10] == 200

    def test_total_duration(self, levels):
        # 9레벨 * 20분 + 휴식 3회 * 15분
        assert sum(lv.duration for lv in levels) == 225

    @pytest.mark.parametrize(
        "player_count,stack,minutes",
        [(1, 10000, 240), (0, 10000, 240), (9, 0, 240), (9, 10000, 0), (9, 10000, -30)],
    )
    def test_degenerate_input_returns_empty(self, player_count, stack, minutes):
        assert generate_dynamic_blinds(player_count, stack, minutes) == []

    def test_zero_level_duration_returns_empty(self):
        options = GenerationOptions(level_duration_minutes=0)
        assert generate_dynamic_blinds(9, 10000, 240, options) == []

    def test_duration_shorter_than_one_level(self):
        assert generate_dynamic_blinds(9, 10000, 15) == []

    def test_antes_disabled(self):
        options = GenerationOptions(ante_start_level=ANTE_DISABLED)
        levels = generate_dynamic_blinds(9, 10000, 240, options)
        assert all(lv.ante == 0 for lv in levels)

    def test_include_ante_false(self):
        options = GenerationOptions(include_ante=False)
        levels = generate_dynamic_blinds(9, 10000, 240, options)
        assert all(lv.ante == 0 for lv in levels)

    def test_no_breaks_when_interval_zero(self):
        options = GenerationOptions(break_interval_levels=0)
        levels = generate_dynamic_blinds(9, 10000, 240, options)
        assert not any(lv.is_break for lv in levels)
        assert sum(lv.duration for lv in levels) == 240

    def test_explicit_factor_overrides_format(self):
        options = GenerationOptions(
            tournament_format=TournamentFormat.DEEPSTACK,
            blind_increase_factor=2.0,
            break_interval_levels=0,
        )
        levels = generate_dynamic_blinds(9, 10000, 60, options)
        assert [lv.small_blind for lv in levels] == [50, 100, 200]

    @settings(max_examples=50)
    @given(
        players=st.integers(min_value=2, max_value=500),
        stack=st.integers(min_value=100, max_value=500000),
        minutes=st.integers(min_value=20, max_value=900),
        fmt=st.sampled_from(list(TournamentFormat)),
    )
    def test_blinds_never_decrease(self, players, stack, minutes, fmt):
        """휴식이 아닌 레벨의 스몰 블라인드는 감소하지 않는다."""
        levels = generate_dynamic_blinds(players, stack, minutes, GenerationOptions(tournament_format=fmt))
        blinds = [lv.small_blind for lv in levels if not lv.is_break]
        assert blinds == sorted(blinds)
        assert all(sb > 0 for sb in blinds)
        assert len(levels) == minutes // 20

    @settings(max_examples=50)
    @given(
        players=st.integers(min_value=2, max_value=500),
        stack=st.integers(min_value=100, max_value=500000),
        minutes=st.integers(min_value=0, max_value=900),
        options=st.builds(
            GenerationOptions,
            level_duration_minutes=st.integers(min_value=5, max_value=40),
            tournament_format=st.sampled_from(list(TournamentFormat)),
            chipset=st.lists(st.sampled_from([1, 5, 25, 100, 500, 1000, 5000]), min_size=1, unique=True).map(
                lambda chips: tuple(sorted(chips))
            ),
            ante_start_level=st.one_of(st.just(ANTE_DISABLED), st.integers(min_value=1, max_value=10)),
            break_interval_levels=st.integers(min_value=0, max_value=6),
            blind_increase_factor=st.one_of(st.none(), st.floats(min_value=1.1, max_value=2.5)),
        ),
    )
    def test_same_inputs_same_schedule(self, players, stack, minutes, options):
        """동일 입력이면 동일 구조."""
        first = generate_dynamic_blinds(players, stack, minutes, options)
        second = generate_dynamic_blinds(players, stack, minutes, options)
        assert first == second
        assert first is not second


# =============================================================================
# Fallback generator
# =============================================================================


class TestGenerateFallbackBlinds:
    """칩셋이 없을 때의 고정 비율 생성기."""

    def test_two_hour_schedule(self):
        levels = generate_fallback_blinds(10000, 2)
        assert len(levels) == 6
        assert [lv.small_blind for lv in levels] == [50, 75, 100, 0, 150, 225]
        assert levels[3].is_break

    def test_small_stack_starts_at_25(self):
        levels = generate_fallback_blinds(1000, 1)
        assert levels[0].small_blind == 25
        assert levels[0].big_blind == 50

    def test_blinds_are_multiples_of_25(self):
        for lv in generate_fallback_blinds(25000, 6):
            assert lv.small_blind % 25 == 0

    def test_invalid_input(self):
        assert generate_fallback_blinds(0, 4) == []
        assert generate_fallback_blinds(10000, 0) == []


# =============================================================================
# Setup flow
# =============================================================================


class TestGeneratorFormatFor:
    """셋업 폼 형식 -> 생성기 형식 매핑."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("Freezeout", TournamentFormat.STANDARD),
            ("Rebuy", TournamentFormat.STANDARD),
            ("Bounty", TournamentFormat.STANDARD),
            ("Deepstack", TournamentFormat.DEEPSTACK),
            ("Turbo", TournamentFormat.TURBO),
            ("Hyper-Turbo", TournamentFormat.HYPER),
            ("Sit & Go", TournamentFormat.STANDARD),
            ("", TournamentFormat.STANDARD),
        ],
    )
    def test_mapping(self, name, expected):
        assert generator_format_for(name) is expected


class TestPlanBlindStructure:
    """planBlindStructure 셋업 플로우."""

    def test_computed_stack_and_levels(self):
        plan = plan_blind_structure(BlindStructureRequest(player_count=9, duration_hours=4))
        assert plan.starting_stack == 25000
        assert plan.rebuy_chips == 25000
        assert plan.add_on_chips == 25000
        assert len(plan.levels) == 12
        assert plan.small_blind == plan.levels[0].small_blind
        assert plan.big_blind == plan.small_blind * 2
        assert not plan.used_fallback

    def test_explicit_stack_matches_generator(self):
        plan = plan_blind_structure(
            BlindStructureRequest(player_count=9, duration_hours=4, starting_stack=10000)
        )
        assert list(plan.levels) == generate_dynamic_blinds(9, 10000, 240)
        assert (plan.small_blind, plan.big_blind) == (50, 100)
        assert plan.total_minutes == 225

    def test_rebuy_format_doubles_add_on(self):
        plan = plan_blind_structure(
            BlindStructureRequest(
                player_count=20,
                duration_hours=3,
                tournament_format="Rebuy",
                allow_rebuy=True,
                max_rebuys=2,
                starting_stack=10000,
            )
        )
        assert plan.rebuy_chips == 10000
        assert plan.add_on_chips == 20000

    def test_unparseable_chipset_uses_fallback(self):
        plan = plan_blind_structure(
            BlindStructureRequest(player_count=9, duration_hours=4, chipset="custom")
        )
        assert plan.used_fallback
        assert plan.starting_stack == 5000
        assert plan.small_blind == 25
        assert len(plan.levels) == 12

    def test_missing_player_count_returns_empty_plan(self):
        plan = plan_blind_structure(BlindStructureRequest(player_count=0, duration_hours=4))
        assert plan.levels == ()
        assert (plan.small_blind, plan.big_blind) == (0, 0)

    def test_without_antes(self):
        plan = plan_blind_structure(
            BlindStructureRequest(player_count=9, duration_hours=4, include_ante=False)
        )
        assert all(lv.ante == 0 for lv in plan.levels)

    def test_to_dict(self):
        plan = plan_blind_structure(
            BlindStructureRequest(player_count=9, duration_hours=1, starting_stack=10000)
        )
        data = plan.to_dict()
        assert data["starting_stack"] == 10000
        assert len(data["levels"]) == 3
        assert data["levels"][0]["small_blind"] == 50
