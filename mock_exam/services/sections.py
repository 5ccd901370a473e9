"""
services/sections.py

문항 수 → 고정 섹션 구성 매핑. 상태 없음.

  15문항 : [0,14]
  25문항 : [0,11], [12,24]
  그 외  : [0,14], [15,34], [35,49]

문제 은행이 요청보다 적은 문항을 돌려준 경우에는 요청 문항 수(layout_count)의
구성을 실제 문항 수에 맞게 잘라 쓴다. 비게 되는 섹션은 버린다.
"""

from typing import List, Optional, Tuple

from mock_exam.models.session_state import Section

_SECTION_NAMES = ("Section A", "Section B", "Section C")

_LAYOUTS = {
    15: ((0, 14),),
    25: ((0, 11), (12, 24)),
}
_DEFAULT_LAYOUT: Tuple[Tuple[int, int], ...] = ((0, 14), (15, 34), (35, 49))


def partition_sections(question_count: int, layout_count: Optional[int] = None) -> List[Section]:
    """
    섹션 리스트를 반환한다. 결과는 항상 [0, question_count-1]을 빈틈없이,
    겹침 없이 덮는다.

    Args:
        question_count: 실제 문항 수.
        layout_count:   구성 선택 기준 문항 수 (기본값: question_count).
    """
    if question_count <= 0:
        return []

    layout = _LAYOUTS.get(layout_count or question_count, _DEFAULT_LAYOUT)
    last = question_count - 1

    sections: List[Section] = []
    for name, (start, end) in zip(_SECTION_NAMES, layout):
        if start > last:
            break
        sections.append(Section(name=name, start_index=start, end_index=min(end, last)))

    # 구성보다 문항이 많으면 마지막 섹션을 늘려 전체를 덮는다
    if sections[-1].end_index < last:
        tail = sections.pop()
        sections.append(Section(name=tail.name, start_index=tail.start_index, end_index=last))
    return sections


def section_of(sections: List[Section], index: int) -> Optional[Section]:
    for section in sections:
        if index in section:
            return section
    return None
