"""Content domain models for generation and cleanup jobs.

This module defines the data structures for:
- Age groups, task types and supported languages
- Categories and tasks as seen by the job subsystem
- Generation combinations and per-run statistics
- Cleanup previews and cleanup statistics
"""

from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field


class AgeGroup(str, Enum):
    KIDS = "kids"
    TEEN = "teen"
    ADULTS = "adults"


class TaskType(str, Enum):
    TRUTH = "truth"
    DARE = "dare"


# ISO 639-1 codes, in generation order
SUPPORTED_LANGUAGES: List[str] = [
    "en",
    "zh",
    "es",
    "hi",
    "ar",
    "fr",
    "pt",
    "bn",
    "ru",
    "ur",
]

_MIN_AGE = {AgeGroup.KIDS: 0, AgeGroup.TEEN: 13, AgeGroup.ADULTS: 18}


def min_age_for_group(group: str) -> int:
    """Minimum player age for an age group (0 for unknown groups)."""
    try:
        return _MIN_AGE[AgeGroup(group)]
    except ValueError:
        return 0


def is_valid_age_group(group: str) -> bool:
    return group in {g.value for g in AgeGroup}


def is_valid_language(code: str) -> bool:
    return code in SUPPORTED_LANGUAGES


def is_age_group_compatible(category_age_group: str, target_age_group: str) -> bool:
    """Check whether a category may produce content for a target age group.

    Adults categories are only valid for adults. Teen categories are valid
    for teens and adults. Kids categories are valid for everyone.

    Args:
        category_age_group: The category's own age group
        target_age_group: Age group the content is generated for

    Returns:
        True if the combination is allowed
    """
    if category_age_group == AgeGroup.ADULTS and target_age_group != AgeGroup.ADULTS:
        return False
    if category_age_group == AgeGroup.TEEN and target_age_group == AgeGroup.KIDS:
        return False
    return True


def get_localized(text: Dict[str, str], language: str) -> str:
    """Look up multilingual text with fallback.

    Order: requested language, English, any available value, empty string.
    """
    if language in text:
        return text[language]
    if "en" in text:
        return text["en"]
    for value in text.values():
        return value
    return ""


class Category(BaseModel):
    """Content category as read by the generation job."""

    id: str = Field(..., min_length=1)
    label: Dict[str, str] = Field(default_factory=dict)
    emoji: str = "📝"
    age_group: str = AgeGroup.ADULTS.value
    requires_consent: bool = False
    is_active: bool = True
    sort_order: int = 0

    @property
    def effective_age_group(self) -> str:
        """Age group used for generation; blank means adults."""
        return self.age_group or AgeGroup.ADULTS.value

    @property
    def display_name(self) -> str:
        return get_localized(self.label, "en")


class Task(BaseModel):
    """A single truth or dare to persist."""

    id: Optional[str] = None
    category_id: str
    type: TaskType
    text: Dict[str, str]
    min_age: int = 0
    requires_consent: bool = False
    is_active: bool = True


class GenerationCombination(BaseModel):
    """One unit of generation work. Never persisted."""

    model_config = ConfigDict(frozen=True)

    category_id: str
    category_name: str
    age_group: str
    language: str
    explicit_mode: bool = False
    requires_consent: bool = False


class GeneratedContent(BaseModel):
    """JSON shape expected back from the content provider."""

    truths: List[str] = Field(default_factory=list)
    dares: List[str] = Field(default_factory=list)


class CombinationResult(BaseModel):
    """Outcome of generating one combination (after retries)."""

    success: bool
    tasks_created: int = 0
    truths: int = 0
    dares: int = 0
    attempts: int = 0
    error: Optional[str] = None


class GenerateError(BaseModel):
    """A combination that failed after all attempts."""

    category_id: str
    language: str
    age_group: Optional[str] = None
    error: str


class GenerationStats(BaseModel):
    """Aggregate outcome of one generation run.

    Invariants: total_attempts == success_count + failure_count and
    len(errors) == failure_count.
    """

    start_time: datetime = Field(default_factory=datetime.utcnow)
    end_time: Optional[datetime] = None
    total_attempts: int = 0
    success_count: int = 0
    failure_count: int = 0
    tasks_created: int = 0
    errors: List[GenerateError] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def duration(self) -> Optional[timedelta]:
        if self.end_time is None:
            return None
        return self.end_time - self.start_time

    def record_success(self, tasks_created: int) -> None:
        self.total_attempts += 1
        self.success_count += 1
        self.tasks_created += tasks_created

    def record_failure(self, combination: GenerationCombination, error: str) -> None:
        self.total_attempts += 1
        self.failure_count += 1
        self.errors.append(
            GenerateError(
                category_id=combination.category_id,
                language=combination.language,
                age_group=combination.age_group,
                error=error,
            )
        )

    def finish(self) -> None:
        self.end_time = datetime.utcnow()


class OnDemandRequest(BaseModel):
    """Ad-hoc generation request. None means "all" for each filter."""

    category_id: Optional[str] = None
    age_group: Optional[str] = None
    language: Optional[str] = None
    count: int = 10


class OnDemandResult(BaseModel):
    """Totals for an ad-hoc generation request."""

    total_truths: int = 0
    total_dares: int = 0
    tasks_created: int = 0
    combinations_count: int = 0
    failed_combinations: int = 0


class CleanupPreview(BaseModel):
    """Rows that a cleanup run would purge right now."""

    cutoff_date: datetime
    retention_months: int
    tasks_to_delete: int = 0
    categories_to_delete: int = 0


class CleanupStats(BaseModel):
    """Outcome of one cleanup run."""

    cutoff_date: datetime
    tasks_deleted: int = 0
    categories_deleted: int = 0
    size_before_bytes: Optional[int] = None
    size_after_bytes: Optional[int] = None
    reclaimed: bool = False

    @computed_field  # type: ignore[prop-decorator]
    @property
    def space_saved_bytes(self) -> Optional[int]:
        if self.size_before_bytes is None or self.size_after_bytes is None:
            return None
        return self.size_before_bytes - self.size_after_bytes
