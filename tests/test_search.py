"""Tests for the mock search stage."""

from datetime import date

import pytest

from knowledge_search.models import MockSearchResult, SearchIntent
from knowledge_search.search import (
    CANNED_RULES,
    CannedRule,
    MockSearchBackend,
    canned_results,
    format_search_results,
    mock_search,
)

TODAY = date(2025, 1, 2)


def _sources(results):
    return [r.source for r in results]


class TestSourceResults:
    def test_one_result_per_data_source_in_order(self) -> None:
        results = mock_search("weekly report", ["Database", "API"], today=TODAY)

        assert _sources(results) == ["Database", "API"]
        assert results[0].title == "Relevant Document from Database"
        assert results[0].snippet == (
            'This is a mock search result for the query "weekly report" from the Database. '
            "It contains relevant keywords and information."
        )
        assert results[0].updated == TODAY
        assert results[0].link == "#"

    def test_no_sources_and_no_triggers_is_empty(self) -> None:
        assert mock_search("hello", [], today=TODAY) == []


class TestCannedRules:
    @pytest.mark.parametrize(
        "query, expected",
        [
            ("AiU 의료비 자동화 검토는?", ["Knowledge Base"]),
            ("aiu 의료비", ["Knowledge Base"]),
            ("지난달 PE 생산량", ["PE-Master"]),
            ("PE 제품 MI 지수", ["PE-Master"]),
            ("PP 판매 현황", ["PP-Sales/Inventory"]),
            ("PP 재고", ["PP-Sales/Inventory"]),
            ("CDU 정기보수 일정", ["Analytics"]),
            ("CDU 생산 차질", ["Analytics"]),
            ("BOP 단가", ["BOP-Pricing"]),
            ("bop 가격 추이", ["BOP-Pricing"]),
        ],
    )
    def test_trigger_maps_to_exactly_one_record(self, query: str, expected: list) -> None:
        assert _sources(canned_results(query)) == expected

    def test_cdu_utilization_reason(self) -> None:
        assert _sources(canned_results("CDU 가동률 하락 원인")) == ["CDU-Dashboard"]
        assert _sources(canned_results("CDU 가동률 이유")) == ["CDU-Dashboard"]

    def test_cdu_utilization_without_reason_does_not_fire(self) -> None:
        assert canned_results("CDU 가동률") == []

    def test_partial_triggers_do_not_fire(self) -> None:
        assert canned_results("AiU 보험") == []
        assert canned_results("PP 생산 계획") == []
        assert canned_results("BOP 일정") == []
        assert canned_results("정기보수") == []

    def test_rules_are_independent(self) -> None:
        query = "CDU 정기보수 차질과 가동률 원인, 그리고 PE 생산량"
        assert _sources(canned_results(query)) == ["PE-Master", "Analytics", "CDU-Dashboard"]

    def test_canned_records_follow_source_results(self) -> None:
        results = mock_search("BOP 가격", ["Database"], today=TODAY)

        assert _sources(results) == ["Database", "BOP-Pricing"]
        assert results[1].updated == date(2025, 9, 8)

    def test_custom_rule_table(self) -> None:
        record = MockSearchResult(
            source="Wiki", title="Onboarding", snippet="Read the handbook.", updated=TODAY
        )
        rules = [CannedRule(groups=(("onboarding", "입사"),), result=record)]

        assert canned_results("New ONBOARDING guide", rules) == [record]
        assert canned_results("PE 생산량", rules) == []

    def test_default_table_covers_six_triggers(self) -> None:
        assert len(CANNED_RULES) == 6


async def test_backend_uses_intent_sources_and_clock() -> None:
    backend = MockSearchBackend(clock=lambda: TODAY)
    intent = SearchIntent(intent="production figures", data_sources=["Knowledge Base"])

    results = await backend.search("PE 생산량", intent)

    assert _sources(results) == ["Knowledge Base", "PE-Master"]
    assert results[0].updated == TODAY


def test_format_search_results() -> None:
    results = mock_search("PP 판매", ["API"], today=TODAY)

    text = format_search_results(results)

    blocks = text.split("\n\n")
    assert len(blocks) == 2
    assert blocks[0].startswith("Source: API\nTitle: Relevant Document from API\nSnippet: ")
    assert blocks[1] == (
        "Source: PP-Sales/Inventory\nTitle: PP 판매 및 재고 현황\n"
        "Snippet: 이번 달 PP 총 판매량은 50,200톤이며, 재고는 4,500톤 감소했습니다."
    )


def test_format_empty_results() -> None:
    assert format_search_results([]) == ""
