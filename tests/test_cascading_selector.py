"""
Tests for CascadingSelector: lookup order, reload handling, retries.
"""

import json

import pytest

from config import COURSE_FIELD, REGION_FIELD
from core.errors import NavigationInterrupted, SessionLost
from core.models import FieldSelector, LookupKind, LookupStrategy, SelectionOutcome
from executors.cascading_selector import CascadingSelector
from executors.element_resolver import ElementResolver
from tests.conftest import FakeElement, FakeProbe, make_select, set_options


@pytest.fixture
def selector(logger):
    return CascadingSelector(ElementResolver(logger), logger, max_attempts=5, backoff_seconds=0)


def _actions(logger, action_type):
    lines = logger.action_log_file.read_text(encoding="utf-8").splitlines()
    return [a for a in map(json.loads, lines) if a["action_type"] == action_type]


class TestSelect:
    @pytest.mark.asyncio
    async def test_selects_by_id_and_confirms(self, selector):
        region = make_select("ddl_reg", ["Eastern", "Southern"])
        probe = FakeProbe([region])

        result = await selector.select(probe, REGION_FIELD, "southern")

        assert result.outcome is SelectionOutcome.CONFIRMED
        assert result.option.label == "Southern"
        assert region.value == "2"
        assert probe.events == [("ddl_reg", "change"), ("ddl_reg", "blur")]

    @pytest.mark.asyncio
    async def test_falls_back_to_name_pattern(self, selector):
        region = make_select("ctl00_regionList", ["Southern"], name="ctl00$main$ddlReg")
        probe = FakeProbe([region])

        result = await selector.select(probe, REGION_FIELD, "Southern")

        assert result.outcome is SelectionOutcome.CONFIRMED
        assert result.source == "select[name~reg]"

    @pytest.mark.asyncio
    async def test_full_scan_finds_unhinted_control(self, selector, logger):
        field = FieldSelector(
            name="course",
            strategies=(LookupStrategy(LookupKind.BY_ID, "ddl_course"),),
        )
        other = make_select("x1", ["Eastern", "Western"])
        target = make_select("x2", ["Foundation", "Advanced (ICITSS) MCS"])
        probe = FakeProbe([other, target])

        result = await selector.select(probe, field, "Advanced (ICITSS) MCS")

        assert result.outcome is SelectionOutcome.CONFIRMED
        assert result.source == "select:*[1]"
        assert target.value == "2"
        assert other.value == "0"
        # every scanned control had its option set logged
        dumped = [a["details"]["source"] for a in _actions(logger, "option_set")]
        assert "select:*[0]" in dumped and "select:*[1]" in dumped
        assert _actions(logger, "control_missing")

    @pytest.mark.asyncio
    async def test_reload_during_dispatch_is_likely_navigated(self, selector):
        region = make_select("ddl_reg", ["Southern"])
        probe = FakeProbe([region])

        def reload(p, element):
            raise NavigationInterrupted("Execution context was destroyed")

        probe.on("ddl_reg", "change", reload)

        result = await selector.select(probe, REGION_FIELD, "Southern")

        assert result.outcome is SelectionOutcome.LIKELY_NAVIGATED
        assert result.succeeded
        assert result.option.label == "Southern"

    @pytest.mark.asyncio
    async def test_waits_for_late_population(self, selector):
        course = make_select("ddl_course", [])

        class LateProbe(FakeProbe):
            async def read_options(self, handle):
                if self.option_reads == 2:
                    set_options(handle, ["Course A"])
                return await super().read_options(handle)

        probe = LateProbe([course])

        result = await selector.select(probe, COURSE_FIELD, "Course A")

        assert result.outcome is SelectionOutcome.CONFIRMED
        assert course.value == "1"

    @pytest.mark.asyncio
    async def test_fails_after_max_attempts(self, selector, logger):
        region = make_select("ddl_reg", ["Eastern", "Western"])
        probe = FakeProbe([region])

        result = await selector.select(probe, REGION_FIELD, "Southern", max_attempts=3)

        assert result.outcome is SelectionOutcome.FAILED
        assert not result.succeeded
        assert region.value == "0"
        assert "SelectionNotFound" in logger.error_log_file.read_text(encoding="utf-8")
        failed = [a for a in _actions(logger, "selection") if a["details"]["outcome"] == "failed"]
        assert failed[0]["details"]["attempt"] == 3

    @pytest.mark.asyncio
    async def test_value_not_kept_moves_on(self, selector):
        stubborn = make_select("ddl_reg", ["Southern"])

        class StubbornProbe(FakeProbe):
            async def set_value(self, handle, value):
                if handle is stubborn:
                    return
                await super().set_value(handle, value)

        probe = StubbornProbe([stubborn])

        result = await selector.select(probe, REGION_FIELD, "Southern", max_attempts=2)

        assert result.outcome is SelectionOutcome.FAILED

    @pytest.mark.asyncio
    async def test_no_select_elements_at_all(self, selector):
        probe = FakeProbe([FakeElement("input", {"id": "q"})])

        result = await selector.select(probe, REGION_FIELD, "Southern", max_attempts=2)

        assert result.outcome is SelectionOutcome.FAILED

    @pytest.mark.asyncio
    async def test_each_control_read_once_per_attempt(self, selector, logger):
        # id, name pattern, position and full scan all land on this one select
        region = make_select("ddl_reg", ["Eastern", "Western"])
        probe = FakeProbe([region])

        result = await selector.select(probe, REGION_FIELD, "Southern", max_attempts=1)

        assert result.outcome is SelectionOutcome.FAILED
        assert probe.option_reads == 1
        assert len(_actions(logger, "option_set")) == 1

    @pytest.mark.asyncio
    async def test_lost_session_is_not_a_missing_option(self, selector, logger):
        probe = FakeProbe([make_select("ddl_reg", ["Southern"])])
        probe.session_lost = True

        with pytest.raises(SessionLost):
            await selector.select(probe, REGION_FIELD, "Southern")

        assert "SelectionNotFound" not in logger.error_log_file.read_text(encoding="utf-8")


class TestConfirm:
    @pytest.mark.asyncio
    async def test_confirm_reads_current_selection(self, selector):
        region = make_select("ddl_reg", ["Eastern", "Southern"])
        region.value = "2"
        probe = FakeProbe([region])

        assert await selector.confirm(probe, REGION_FIELD, "Southern")
        assert not await selector.confirm(probe, REGION_FIELD, "Eastern")

    @pytest.mark.asyncio
    async def test_confirm_after_control_replaced(self, selector):
        old = make_select("ddl_reg", ["Southern"])
        old.value = "1"
        probe = FakeProbe([old])
        probe.remove("ddl_reg")
        fresh = make_select("ddl_reg", ["Southern"])
        fresh.value = "1"
        probe.elements.append(fresh)

        assert await selector.confirm(probe, REGION_FIELD, "Southern")

    @pytest.mark.asyncio
    async def test_confirm_uses_full_scan_only_without_hinted_control(self, selector):
        field = FieldSelector(name="region", strategies=(LookupStrategy(LookupKind.BY_ID, "ddl_reg"),))
        other = make_select("somewhere", ["Southern"])
        other.value = "1"
        probe = FakeProbe([other])

        assert await selector.confirm(probe, field, "Southern")

        hinted = make_select("ddl_reg", ["Southern"])
        probe.elements.insert(0, hinted)

        assert not await selector.confirm(probe, field, "Southern")
