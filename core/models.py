"""
Data model shared by the form-navigation and extraction pipeline.

Option sets are read fresh from the page every time they are needed.
Nothing here holds a reference to a live element.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple

from utils.helpers import seat_count


@dataclass(frozen=True)
class OptionDescriptor:
    """One selectable choice in a dropdown."""
    value: str  # submission token
    label: str  # visible text


class LookupKind(Enum):
    BY_ID = "id"
    BY_ATTRIBUTE = "attribute"
    BY_TEXT = "text"
    BY_POSITION = "position"
    FULL_SCAN = "full_scan"


@dataclass(frozen=True)
class LookupStrategy:
    """
    One way of locating an element.

    BY_ID        -> tag[id='value']
    BY_ATTRIBUTE -> tag[attribute*='value' i]
    BY_TEXT      -> every `tag` whose visible text or value attribute equals `value`
    BY_POSITION  -> the `index`-th `tag` on the page
    FULL_SCAN    -> every `tag` on the page
    """
    kind: LookupKind
    value: str = ""
    tag: str = "select"
    attribute: str = "name"
    index: int = 0

    def describe(self) -> str:
        if self.kind is LookupKind.BY_ID:
            return f"{self.tag}#{self.value}"
        if self.kind is LookupKind.BY_ATTRIBUTE:
            return f"{self.tag}[{self.attribute}~{self.value}]"
        if self.kind is LookupKind.BY_TEXT:
            return f"{self.tag}='{self.value}'"
        if self.kind is LookupKind.BY_POSITION:
            return f"{self.tag}:nth({self.index})"
        return f"{self.tag}:*"


@dataclass(frozen=True)
class FieldSelector:
    """Ordered candidate descriptors for one dropdown plus the events a change needs."""
    name: str
    strategies: Tuple[LookupStrategy, ...]
    events: Tuple[str, ...] = ("change", "blur")


@dataclass(frozen=True)
class SelectionTarget:
    field: FieldSelector
    desired_label: str


class ReportMode(Enum):
    ALL = "all"
    POSITIVE = "positive"


class SelectionOutcome(Enum):
    CONFIRMED = "confirmed"
    LIKELY_NAVIGATED = "likely_navigated"
    FAILED = "failed"


@dataclass
class SelectionResult:
    outcome: SelectionOutcome
    option: Optional[OptionDescriptor] = None
    source: str = ""  # strategy that produced the control

    @property
    def succeeded(self) -> bool:
        return self.outcome is not SelectionOutcome.FAILED


@dataclass(frozen=True)
class ResponseInfo:
    url: str
    status: int
    method: str = "GET"
    headers: Dict[str, str] = field(default_factory=dict)

    def header(self, name: str) -> Optional[str]:
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None


@dataclass
class BatchRecord:
    """One parsed row of the results table. `quantity` is the raw cell text."""
    batch_label: str
    quantity: Optional[str]
    via_fallback: bool = False

    @property
    def seats(self) -> Optional[int]:
        return seat_count(self.quantity)

    @property
    def is_positive(self) -> bool:
        seats = self.seats
        return seats is not None and seats > 0


@dataclass
class CourseReport:
    course: str
    records: List[BatchRecord] = field(default_factory=list)

    @property
    def positive_records(self) -> List[BatchRecord]:
        return [r for r in self.records if r.is_positive]


@dataclass
class ConsolidatedReport:
    courses: List[CourseReport] = field(default_factory=list)
    server_time: Optional[str] = None  # display only
    skipped_courses: List[str] = field(default_factory=list)
    generated_at: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def total_records(self) -> int:
        return sum(len(c.records) for c in self.courses)

    @property
    def has_positive(self) -> bool:
        return any(c.positive_records for c in self.courses)

    def course(self, name: str) -> Optional[CourseReport]:
        for course_report in self.courses:
            if course_report.course == name:
                return course_report
        return None
