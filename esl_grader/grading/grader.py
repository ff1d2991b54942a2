"""Essay grading orchestration."""

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from ..config import Config
from ..llm import LLMProvider, create_provider_from_config
from ..models import GradingResult
from ..profiles import ProfileStore
from ..rubric import Rubric, load_rubric
from ..utils.logging import get_logger, set_request_id
from .prompt_builder import PromptBuilder
from .reconciler import ResponseReconciler
from .scoring import apply_temperature

logger = get_logger(__name__)


@dataclass
class GradingRequest:
    """One essay to grade."""
    essay_text: str
    profile_id: str
    assignment_prompt: str = ""
    student_nickname: Optional[str] = None
    temperature: Optional[float] = None
    label: str = ""


@dataclass
class BatchOutcome:
    """Result or failure for one essay of a batch."""
    index: int
    request: GradingRequest
    result: Optional[GradingResult] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class EssayGrader:
    """Grades essays: profile lookup, one LLM call, reconciliation, grade temperature."""

    def __init__(
        self,
        provider: LLMProvider,
        rubric: Rubric,
        profiles: ProfileStore,
        llm_temperature: float = 0.2,
        max_tokens: int = 4096,
        max_workers: int = 4,
        prompt_builder: Optional[PromptBuilder] = None,
        reconciler: Optional[ResponseReconciler] = None,
    ):
        self.provider = provider
        self.rubric = rubric
        self.profiles = profiles
        self.llm_temperature = llm_temperature
        self.max_tokens = max_tokens
        self.max_workers = max(1, max_workers)
        self.prompt_builder = prompt_builder or PromptBuilder(rubric)
        self.reconciler = reconciler or ResponseReconciler()

    @classmethod
    def from_config(cls, config: Config, provider: Optional[LLMProvider] = None) -> "EssayGrader":
        grading = config.grading
        return cls(
            provider=provider or create_provider_from_config(config.llm),
            rubric=load_rubric(Path(grading.rubric_path)),
            profiles=ProfileStore.from_file(grading.profiles_path),
            llm_temperature=grading.temperature,
            max_tokens=grading.max_tokens,
            max_workers=grading.batch_workers,
        )

    def grade(
        self,
        essay_text: str,
        profile_id: str,
        assignment_prompt: str = "",
        student_nickname: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> GradingResult:
        """Grade a single essay.

        Args:
            essay_text: Essay exactly as submitted; offsets refer to it.
            profile_id: Class profile to grade against.
            assignment_prompt: Assignment question, may be empty.
            student_nickname: Name used in personalized feedback.
            temperature: Grade adjustment from -5 to +5; defaults to the
                profile's temperature.

        Raises:
            ProfileNotFoundError: Before any LLM call if the profile is unknown.
            ResponseParseError: If the completion is not a JSON object.
            LLMError: If the provider call fails.
        """
        set_request_id()
        profile = self.profiles.find(profile_id)

        prompt = self.prompt_builder.build(
            essay_text,
            profile,
            assignment_prompt=assignment_prompt,
            student_nickname=student_nickname,
        )
        logger.info(
            f"Grading essay for profile {profile.id}",
            extra_data={"cefr_level": profile.cefr_level, "chars": len(essay_text)}
        )
        raw = self.provider.call(
            prompt.system_prompt,
            prompt.user_prompt,
            temperature=self.llm_temperature,
            max_tokens=self.max_tokens,
            require_json=True,
        )

        result = self.reconciler.reconcile(raw, essay_text, profile)
        grade_temperature = temperature if temperature is not None else profile.temperature
        return apply_temperature(result, grade_temperature)

    def grade_request(self, request: GradingRequest) -> GradingResult:
        return self.grade(
            request.essay_text,
            request.profile_id,
            assignment_prompt=request.assignment_prompt,
            student_nickname=request.student_nickname,
            temperature=request.temperature,
        )

    def grade_batch(
        self,
        requests: Sequence[GradingRequest],
        on_result: Optional[Callable[[BatchOutcome], None]] = None,
        max_workers: Optional[int] = None,
    ) -> List[BatchOutcome]:
        """Grade essays concurrently, one LLM call each.

        A failing essay is recorded on its outcome and does not stop the
        others. ``on_result`` is called as each essay finishes; the returned
        list is in input order.
        """
        if not requests:
            return []

        workers = min(max_workers or self.max_workers, len(requests))
        outcomes: List[Optional[BatchOutcome]] = [None] * len(requests)
        logger.info(f"Grading batch of {len(requests)} essays with {workers} workers")

        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {
                executor.submit(self.grade_request, request): idx
                for idx, request in enumerate(requests)
            }
            for future in as_completed(futures):
                idx = futures[future]
                outcome = BatchOutcome(index=idx, request=requests[idx])
                try:
                    outcome.result = future.result()
                except Exception as e:
                    logger.error(
                        f"Essay {idx + 1} failed: {e}",
                        extra_data={"label": requests[idx].label, "error_type": type(e).__name__}
                    )
                    outcome.error = e
                outcomes[idx] = outcome
                if on_result is not None:
                    on_result(outcome)

        failed = sum(1 for o in outcomes if o is not None and not o.ok)
        logger.info(
            f"Batch finished: {len(requests) - failed} graded, {failed} failed",
            extra_data={"graded": len(requests) - failed, "failed": failed, **self.provider.get_usage_stats()}
        )
        return [o for o in outcomes if o is not None]
