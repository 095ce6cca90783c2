"""Revision engine - AI-driven generation of a project's HTML.

Implements the charged generation flow shared by revisions and project
creation:

Phase 0 - Pre-Validation (no DB writes):
- User exists
- Balance covers one generation
- Prompt is non-empty after trimming
- Project exists and is owned by the viewer (revisions only)

Phase 1 - Charge (single DB transaction):
- Create the project (creation only)
- Append the user's transcript entry
- Debit credits atomically

Phase 2 - Enhance (no DB transaction held):
- Ask the model to sharpen the request
- Record the enhanced prompt in the transcript

Phase 3 - Generate (no DB transaction held):
- Ask the model for the complete document
- Strip markdown code fences

Phase 4 - Finalize (single DB transaction):
- Empty output: failure entry + refund, E_GENERATION_FAILED
- Otherwise: new Version, success entry, live pointer moved to it

Invariants:
- No DB transaction held during an LLM call
- Credits are refunded at most once, and only if they were debited
- No Version is created unless the cleaned output is non-empty
"""

import re
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from sitebuilder.db.models import Version, WebsiteProject
from sitebuilder.db.session import transaction
from sitebuilder.errors import ApiError, ApiErrorCode, InvalidRequestError, NotFoundError
from sitebuilder.logging import get_logger, set_project_id
from sitebuilder.services.conversations import (
    CHANGES_MADE,
    ENHANCED_PROMPT_TEMPLATE,
    GENERATION_FAILED,
    MAKING_CHANGES,
    append_assistant,
    append_user,
)
from sitebuilder.services.credits import (
    GENERATION_COST,
    debit_credits,
    get_credits,
    refund_credits,
)
from sitebuilder.services.llm.errors import LLMError
from sitebuilder.services.llm.site_generator import SiteGenerator
from sitebuilder.services.projects import get_owned_project, project_name_from_prompt
from sitebuilder.services.redact import safe_kv

logger = get_logger(__name__)

REVISION_DESCRIPTION = "changes made"
INITIAL_DESCRIPTION = "Initial version"

REVISION_SUCCESS_MESSAGE = "Changes made successfully"

_FENCE_MARKER_RE = re.compile(r"```[a-z]*\n?", re.IGNORECASE)


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences the model wraps around documents."""
    # The language tag is optional, so bare and trailing fences match too
    return _FENCE_MARKER_RE.sub("", text).strip()


@dataclass
class GenerationJob:
    """State carried between the phases of one charged generation."""

    viewer_id: UUID
    project_id: UUID
    request_text: str
    current_code: str | None
    description: str
    creating: bool = False
    charged: bool = False


# =============================================================================
# Phase 0 - Pre-Validation
# =============================================================================


def validate_charge(db: Session, viewer_id: UUID, prompt: str | None) -> str:
    """Check the user, balance and prompt in that order.

    Returns:
        The prompt, unchanged.

    Raises:
        NotFoundError(E_USER_NOT_FOUND): No user row.
        ApiError(E_INSUFFICIENT_CREDITS): Balance below one generation.
        InvalidRequestError(E_PROMPT_EMPTY): Prompt missing or blank.
    """
    credits = get_credits(db, viewer_id)
    if credits is None:
        raise NotFoundError(ApiErrorCode.E_USER_NOT_FOUND, "User not found")

    if credits < GENERATION_COST:
        raise ApiError(
            ApiErrorCode.E_INSUFFICIENT_CREDITS, "add more credits to make changes"
        )

    if not prompt or not prompt.strip():
        raise InvalidRequestError(ApiErrorCode.E_PROMPT_EMPTY, "Please enter a valid prompt")

    return prompt


def validate_revision(
    db: Session, viewer_id: UUID, project_id: UUID, message: str | None
) -> GenerationJob:
    """Phase 0 for a revision. Performs no writes."""
    message = validate_charge(db, viewer_id, message)
    project = get_owned_project(db, viewer_id, project_id)
    return GenerationJob(
        viewer_id=viewer_id,
        project_id=project.id,
        request_text=message,
        current_code=project.current_code,
        description=REVISION_DESCRIPTION,
    )


# =============================================================================
# Phase 1 - Charge
# =============================================================================


def _debit_or_raise(db: Session, viewer_id: UUID) -> None:
    # The guarded UPDATE fails if a concurrent request spent the balance
    if not debit_credits(db, viewer_id, GENERATION_COST):
        raise ApiError(
            ApiErrorCode.E_INSUFFICIENT_CREDITS, "add more credits to make changes"
        )


def charge_revision(db: Session, job: GenerationJob) -> None:
    """Record the request and take payment in one commit."""
    with transaction(db):
        append_user(db, job.project_id, job.request_text)
        _debit_or_raise(db, job.viewer_id)
    job.charged = True


def create_and_charge_project(db: Session, viewer_id: UUID, prompt: str) -> GenerationJob:
    """Create the project, record the prompt and take payment in one commit."""
    with transaction(db):
        project = WebsiteProject(
            user_id=viewer_id,
            name=project_name_from_prompt(prompt),
            initial_prompt=prompt,
        )
        db.add(project)
        db.flush()
        append_user(db, project.id, prompt)
        _debit_or_raise(db, viewer_id)

    set_project_id(str(project.id))
    return GenerationJob(
        viewer_id=viewer_id,
        project_id=project.id,
        request_text=prompt,
        current_code=None,
        description=INITIAL_DESCRIPTION,
        creating=True,
        charged=True,
    )


# =============================================================================
# Phase 2/4 - Transcript and finalize
# =============================================================================


def record_enhancement(db: Session, job: GenerationJob, enhanced: str) -> None:
    with transaction(db):
        append_assistant(db, job.project_id, ENHANCED_PROMPT_TEMPLATE.format(enhanced=enhanced))
        append_assistant(db, job.project_id, MAKING_CHANGES)


def record_empty_generation(db: Session, job: GenerationJob) -> None:
    """Log the failure in the transcript and give the credits back."""
    with transaction(db):
        append_assistant(db, job.project_id, GENERATION_FAILED)
        refund_credits(db, job.viewer_id, GENERATION_COST)
    job.charged = False


def finalize_generation(db: Session, job: GenerationJob, code: str) -> Version:
    """Store the new Version and make it live."""
    with transaction(db):
        project = db.get(WebsiteProject, job.project_id)
        if project is None:
            raise ApiError(ApiErrorCode.E_PROJECT_NOT_FOUND, "Project not found")

        version = Version(project_id=project.id, code=code, description=job.description)
        project.versions.append(version)
        db.flush()

        append_assistant(db, project.id, CHANGES_MADE)
        project.current_code = code
        project.current_version_index = version.id

    return version


def refund_after_failure(db: Session, job: GenerationJob) -> None:
    """Best-effort refund for a failure after the debit committed."""
    if not job.charged:
        return
    try:
        db.rollback()
        with transaction(db):
            refund_credits(db, job.viewer_id, GENERATION_COST)
        job.charged = False
    except Exception:
        logger.exception("revision.refund_failed", project_id=str(job.project_id))


# =============================================================================
# Orchestration
# =============================================================================


async def run_generation(db: Session, generator: SiteGenerator, job: GenerationJob) -> Version:
    """Phases 2-4 for an already charged job.

    Raises:
        ApiError(E_GENERATION_FAILED): Empty output or a model failure.
    """
    try:
        enhanced = await generator.enhance(job.request_text, creating=job.creating)
        instruction = enhanced.strip() if enhanced else ""
        if not instruction:
            instruction = job.request_text
        await run_in_threadpool(record_enhancement, db, job, instruction)

        raw = await generator.generate_document(job.current_code, instruction)
        code = strip_code_fences(raw or "")

        if not code:
            await run_in_threadpool(record_empty_generation, db, job)
            logger.warning("revision.empty_output", **safe_kv(output_chars=len(raw or "")))
            raise ApiError(ApiErrorCode.E_GENERATION_FAILED, "Failed to generate code")

        version = await run_in_threadpool(finalize_generation, db, job, code)
    except ApiError:
        await run_in_threadpool(refund_after_failure, db, job)
        raise
    except LLMError as e:
        await run_in_threadpool(refund_after_failure, db, job)
        logger.error("revision.llm_failed", error_class=e.error_class.value)
        raise ApiError(ApiErrorCode.E_GENERATION_FAILED, "Failed to generate code") from e
    except Exception:
        await run_in_threadpool(refund_after_failure, db, job)
        raise

    logger.info(
        "revision.completed",
        **safe_kv(version_id=str(version.id), code_chars=len(version.code)),
    )
    return version


async def make_revision(
    db: Session,
    generator: SiteGenerator,
    viewer_id: UUID,
    project_id: UUID,
    message: str | None,
) -> Version:
    """Apply a natural-language change request to a project.

    Returns:
        The new live Version.
    """
    job = await run_in_threadpool(validate_revision, db, viewer_id, project_id, message)
    logger.info("revision.started", **safe_kv(message_chars=len(job.request_text)))

    await run_in_threadpool(charge_revision, db, job)
    return await run_generation(db, generator, job)


async def create_project(
    db: Session,
    generator: SiteGenerator,
    viewer_id: UUID,
    initial_prompt: str | None,
) -> UUID:
    """Create a project and generate its first version from a description.

    The project survives a failed generation (with no code) so the user can
    retry with a revision; the credits are refunded in that case.

    Returns:
        The new project's ID.
    """
    prompt = await run_in_threadpool(validate_charge, db, viewer_id, initial_prompt)
    logger.info("project.create_started", **safe_kv(prompt_chars=len(prompt)))

    job = await run_in_threadpool(create_and_charge_project, db, viewer_id, prompt)
    await run_generation(db, generator, job)
    return job.project_id
