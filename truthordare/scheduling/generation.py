"""Content generation job.

Fans AI generation out over (category x language) on a schedule, and over
(category x age group x language) on demand. Each combination is retried
on transient provider failures; a combination that still fails is recorded
and the run moves on.

Usage:
    job = ContentGenerationJob(categories, tasks, provider, prompts, settings)
    scheduler.add_job(job.to_job())

    result = await job.generate_on_demand(OnDemandRequest(language="en"))
"""

import asyncio
from typing import List, Optional

import structlog

from truthordare.models.config import GenerationSettings
from truthordare.models.content import (
    SUPPORTED_LANGUAGES,
    AgeGroup,
    Category,
    CombinationResult,
    GeneratedContent,
    GenerationCombination,
    GenerationStats,
    OnDemandRequest,
    OnDemandResult,
    Task,
    TaskType,
    is_age_group_compatible,
    is_valid_age_group,
    is_valid_language,
    min_age_for_group,
)
from truthordare.observability.metrics import GENERATION_ATTEMPTS, TASKS_GENERATED
from truthordare.scheduling.jobs import BaseJob, JobContext
from truthordare.services.ai.base import ChatMessage, ContentProvider
from truthordare.services.prompts import PromptSource
from truthordare.storage.repositories import CategoryStore, TaskStore
from truthordare.utils.exceptions import (
    JobCancelledError,
    PersistenceError,
    ProviderUnconfiguredError,
)
from truthordare.utils.retry import RetryHandler, is_retryable_error

logger = structlog.get_logger()

JOB_NAME = "auto-generate"
JOB_DESCRIPTION = "Generate tasks for all category+language combinations"

USER_PROMPT = "generate_tasks"
SYSTEM_PROMPT = "generate_tasks_system"

ON_DEMAND_DEFAULT_COUNT = 10
ON_DEMAND_MAX_COUNT = 50
ON_DEMAND_MAX_TOKENS = 4000


def clamp_count(count: int) -> int:
    """Normalize an on-demand count: non-positive means the default, cap at 50."""
    if count <= 0:
        return ON_DEMAND_DEFAULT_COUNT
    return min(count, ON_DEMAND_MAX_COUNT)


def build_combinations(
    categories: List[Category],
    age_groups: List[str],
    languages: List[str],
) -> List[GenerationCombination]:
    """Cross categories, age groups and languages in that nesting order.

    Age groups a category may not produce content for are skipped.
    """
    combinations = []
    for category in categories:
        for age_group in age_groups:
            if not is_age_group_compatible(category.effective_age_group, age_group):
                continue
            for language in languages:
                combinations.append(
                    GenerationCombination(
                        category_id=category.id,
                        category_name=category.display_name,
                        age_group=age_group,
                        language=language,
                        explicit_mode=(
                            category.requires_consent
                            and age_group == AgeGroup.ADULTS.value
                        ),
                        requires_consent=category.requires_consent,
                    )
                )
    return combinations


class ContentGenerationJob(BaseJob):
    """Generates truths and dares with an AI provider and stores them."""

    def __init__(
        self,
        categories: CategoryStore,
        tasks: TaskStore,
        provider: ContentProvider,
        prompts: PromptSource,
        settings: Optional[GenerationSettings] = None,
    ):
        self.settings = settings or GenerationSettings()
        super().__init__(
            name=JOB_NAME,
            description=JOB_DESCRIPTION,
            schedule=self.settings.schedule,
            enabled=self.settings.enabled,
        )
        self.categories = categories
        self.tasks = tasks
        self.provider = provider
        self.prompts = prompts
        self.retry_handler = RetryHandler(self.settings.retry_config())

    async def run(self, ctx: JobContext) -> GenerationStats:
        """Generate content for every active category in every language.

        Returns:
            GenerationStats for the run (empty when nothing was attempted)

        Raises:
            JobCancelledError: If the scheduler is shutting down
        """
        stats = GenerationStats()

        if not self.provider.is_configured():
            logger.error("generation_skipped", reason=str(ProviderUnconfiguredError()))
            stats.finish()
            return stats

        categories = await self.categories.find_active()
        if not categories:
            logger.info("generation_skipped", reason="no active categories")
            stats.finish()
            return stats

        # One combination per category, at the category's own age group
        combinations = []
        for category in categories:
            combinations.extend(
                build_combinations(
                    [category], [category.effective_age_group], SUPPORTED_LANGUAGES
                )
            )

        logger.info(
            "generation_started",
            categories=len(categories),
            languages=len(SUPPORTED_LANGUAGES),
            combinations=len(combinations),
        )

        for combination in combinations:
            ctx.raise_if_cancelled()

            result = await self.generate_for_combination(ctx, combination)
            if result.success:
                stats.record_success(result.tasks_created)
                GENERATION_ATTEMPTS.labels(status="success").inc()
            else:
                stats.record_failure(combination, result.error or "unknown error")
                GENERATION_ATTEMPTS.labels(status="failed").inc()

            await asyncio.sleep(self.settings.inter_combination_delay_seconds)

        stats.finish()

        logger.info(
            "generation_completed",
            total_attempts=stats.total_attempts,
            success_count=stats.success_count,
            failure_count=stats.failure_count,
            tasks_created=stats.tasks_created,
            duration_seconds=(
                round(stats.duration.total_seconds(), 2) if stats.duration else None
            ),
        )
        return stats

    async def generate_for_combination(
        self, ctx: JobContext, combination: GenerationCombination
    ) -> CombinationResult:
        """Generate one combination with retries.

        Provider failures become a failed CombinationResult. Cancellation
        propagates.
        """
        log = logger.bind(
            category_id=combination.category_id,
            category_name=combination.category_name,
            language=combination.language,
            age_group=combination.age_group,
        )
        attempts = 0

        async def attempt() -> CombinationResult:
            nonlocal attempts
            attempts += 1
            return await self._generate(combination, self.settings.count_per_combination)

        def on_retry(attempt_number: int, error: Exception, delay: float) -> None:
            log.warning(
                "generation_attempt_failed",
                attempt=attempt_number,
                max_retries=self.settings.max_retries,
                error=str(error),
                retry_in_seconds=round(delay, 2),
            )

        try:
            result = await self.retry_handler.execute(
                attempt,
                is_retryable=is_retryable_error,
                should_abort=ctx.raise_if_cancelled,
                on_retry=on_retry,
            )
        except JobCancelledError:
            raise
        except Exception as e:
            log.error(
                "generation_combination_failed",
                attempts=attempts,
                retryable=is_retryable_error(e),
                error=str(e),
            )
            return CombinationResult(success=False, attempts=attempts, error=str(e))

        result.attempts = attempts
        log.info(
            "generation_combination_succeeded",
            tasks_created=result.tasks_created,
            attempt=attempts,
        )
        return result

    async def generate_on_demand(self, request: OnDemandRequest) -> OnDemandResult:
        """Generate content for an ad-hoc selection of combinations.

        Args:
            request: Optional category/age group/language filters and count

        Returns:
            Totals across all combinations; failed ones are skipped

        Raises:
            ProviderUnconfiguredError: If the provider has no credentials
            ValueError: On an unknown category, age group or language, or
                when no combination survives the filters
        """
        count = clamp_count(request.count)

        if not self.provider.is_configured():
            raise ProviderUnconfiguredError()

        combinations = await self._on_demand_combinations(request)
        if not combinations:
            raise ValueError("No valid combinations found")

        result = OnDemandResult(combinations_count=len(combinations))

        for combination in combinations:
            try:
                outcome = await self._generate(
                    combination,
                    count,
                    use_system_prompt=True,
                    max_tokens=ON_DEMAND_MAX_TOKENS,
                )
            except Exception as e:
                logger.error(
                    "on_demand_combination_failed",
                    category=combination.category_name,
                    age_group=combination.age_group,
                    language=combination.language,
                    error=str(e),
                )
                result.failed_combinations += 1
                continue

            result.total_truths += outcome.truths
            result.total_dares += outcome.dares
            result.tasks_created += outcome.tasks_created

        logger.info(
            "on_demand_generation_completed",
            combinations=result.combinations_count,
            failed=result.failed_combinations,
            tasks_created=result.tasks_created,
        )
        return result

    async def _on_demand_combinations(
        self, request: OnDemandRequest
    ) -> List[GenerationCombination]:
        if request.category_id:
            category = await self.categories.find_by_id(request.category_id)
            if category is None:
                raise ValueError(f"category not found: {request.category_id}")
            categories = [category]
        else:
            categories = await self.categories.find_active()

        if request.age_group:
            if not is_valid_age_group(request.age_group):
                raise ValueError(f"invalid age group: {request.age_group}")
            age_groups = [request.age_group]
        else:
            age_groups = [g.value for g in AgeGroup]

        if request.language:
            if not is_valid_language(request.language):
                raise ValueError(f"invalid language: {request.language}")
            languages = [request.language]
        else:
            languages = list(SUPPORTED_LANGUAGES)

        return build_combinations(categories, age_groups, languages)

    async def _generate(
        self,
        combination: GenerationCombination,
        count: int,
        use_system_prompt: bool = False,
        max_tokens: Optional[int] = None,
    ) -> CombinationResult:
        """One provider call plus persistence. Raises on provider errors."""
        user_prompt = self.prompts.load_and_replace(
            USER_PROMPT,
            AGE_GROUP=combination.age_group,
            CATEGORY=combination.category_name,
            LANGUAGE=combination.language,
            COUNT=count,
            EXPLICIT_MODE="true" if combination.explicit_mode else "false",
        )

        messages = []
        if use_system_prompt:
            messages.append(
                ChatMessage(role="system", content=self.prompts.load(SYSTEM_PROMPT))
            )
        messages.append(ChatMessage(role="user", content=user_prompt))

        content = await self.provider.complete_json(
            messages,
            GeneratedContent,
            temperature=self.settings.temperature,
            max_tokens=max_tokens or self.settings.max_tokens,
        )

        created = 0
        for task_type, texts in (
            (TaskType.TRUTH, content.truths),
            (TaskType.DARE, content.dares),
        ):
            for text in texts:
                if await self._save(combination, task_type, text):
                    created += 1

        return CombinationResult(
            success=True,
            tasks_created=created,
            truths=len(content.truths),
            dares=len(content.dares),
        )

    async def _save(
        self, combination: GenerationCombination, task_type: TaskType, text: str
    ) -> bool:
        task = Task(
            category_id=combination.category_id,
            type=task_type,
            text={combination.language: text},
            min_age=min_age_for_group(combination.age_group),
            requires_consent=combination.requires_consent,
            is_active=True,
        )
        try:
            await self.tasks.create(task)
        except PersistenceError as e:
            logger.warning(
                "task_save_failed",
                category_id=combination.category_id,
                type=task_type.value,
                error=str(e),
            )
            return False

        TASKS_GENERATED.labels(type=task_type.value).inc()
        return True
