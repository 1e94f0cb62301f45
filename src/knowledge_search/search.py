"""
Mock multi-source search.

`MockSearchBackend` stands in for real retrieval: it synthesizes one
result per routed data source and appends canned records whose trigger
keywords appear in the query. Swap in any object implementing
`SearchBackend` to search something real.
"""

from dataclasses import dataclass
from datetime import date
from typing import Callable, List, Optional, Protocol, Sequence, Tuple

from .models import MockSearchResult, SearchIntent


class SearchBackend(Protocol):
    async def search(self, query: str, intent: SearchIntent) -> List[MockSearchResult]:
        ...


@dataclass(frozen=True)
class CannedRule:
    """
    A canned record returned when every keyword group matches.

    Each group is a tuple of alternatives; the rule fires when the
    lower-cased query contains at least one keyword from every group.
    """

    groups: Tuple[Tuple[str, ...], ...]
    result: MockSearchResult

    def matches(self, query: str) -> bool:
        text = query.lower()
        return all(any(keyword in text for keyword in group) for group in self.groups)


CANNED_RULES: Tuple[CannedRule, ...] = (
    CannedRule(
        groups=(("aiu 의료비",),),
        result=MockSearchResult(
            source="Knowledge Base",
            title="AiU 의료비 자동화 보안 검토 절차",
            snippet=(
                "AiU 의료비 자동화 보안 검토 절차는 정보보안팀의 가이드라인(DOC-SEC-1138)을 "
                "따릅니다. 담당자는 이보안(security.lee@example.com)입니다."
            ),
            updated=date(2024, 3, 15),
        ),
    ),
    CannedRule(
        groups=(("pe",), ("생산량", "mi")),
        result=MockSearchResult(
            source="PE-Master",
            title="PE 생산량 및 MI 지수 분석",
            snippet="지난달 PE 총 생산량 120,000톤 중 MI 지수 2.0 이상 제품은 36.5% (43,800톤)를 차지했습니다.",
            updated=date(2025, 9, 8),
        ),
    ),
    CannedRule(
        groups=(("pp",), ("판매", "재고")),
        result=MockSearchResult(
            source="PP-Sales/Inventory",
            title="PP 판매 및 재고 현황",
            snippet="이번 달 PP 총 판매량은 50,200톤이며, 재고는 4,500톤 감소했습니다.",
            updated=date(2025, 9, 8),
        ),
    ),
    CannedRule(
        groups=(("cdu",), ("정기보수", "차질")),
        result=MockSearchResult(
            source="Analytics",
            title="CDU 정기보수 영향 분석",
            snippet="다음 주 CDU 정기보수로 인해 예상되는 총 생산 차질은 1,850톤입니다. (CDU: 1,600톤, PE: 250톤)",
            updated=date(2025, 9, 8),
        ),
    ),
    CannedRule(
        groups=(("cdu",), ("가동률",), ("이유", "원인")),
        result=MockSearchResult(
            source="CDU-Dashboard",
            title="CDU 가동률 하락 원인 분석",
            snippet=(
                "지난 분기 CDU 가동률은 기준 대비 3.1%p 하락한 87.2%를 기록했습니다. "
                "주요 원인은 원유 성상(-1.8%p)과 유틸리티 비용(-0.9%p)입니다."
            ),
            updated=date(2025, 9, 8),
        ),
    ),
    CannedRule(
        groups=(("bop",), ("단가", "가격")),
        result=MockSearchResult(
            source="BOP-Pricing",
            title="BOP-150N 단가 비교 분석",
            snippet="올해 상반기 BOP-150N의 평균 단가는 톤당 985,000원으로, 전년 동기 대비 8.24% 상승했습니다.",
            updated=date(2025, 9, 8),
        ),
    ),
)


def source_result(query: str, source: str, today: date) -> MockSearchResult:
    return MockSearchResult(
        source=source,
        title=f"Relevant Document from {source}",
        snippet=(
            f'This is a mock search result for the query "{query}" from the {source}. '
            "It contains relevant keywords and information."
        ),
        updated=today,
    )


def canned_results(query: str, rules: Sequence[CannedRule] = CANNED_RULES) -> List[MockSearchResult]:
    return [rule.result for rule in rules if rule.matches(query)]


def mock_search(
    query: str,
    data_sources: Sequence[str],
    rules: Sequence[CannedRule] = CANNED_RULES,
    today: Optional[date] = None,
) -> List[MockSearchResult]:
    today = today or date.today()
    results = [source_result(query, source, today) for source in data_sources]
    results.extend(canned_results(query, rules))
    return results


class MockSearchBackend:
    def __init__(
        self,
        rules: Sequence[CannedRule] = CANNED_RULES,
        clock: Callable[[], date] = date.today,
    ) -> None:
        self.rules = tuple(rules)
        self._clock = clock

    async def search(self, query: str, intent: SearchIntent) -> List[MockSearchResult]:
        return mock_search(query, intent.data_sources, self.rules, self._clock())


def format_search_results(results: Sequence[MockSearchResult]) -> str:
    """Flatten results into the text block handed to the answer generator."""
    return "\n\n".join(
        f"Source: {r.source}\nTitle: {r.title}\nSnippet: {r.snippet}" for r in results
    )
