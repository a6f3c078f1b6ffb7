"""Review transition table.

PENDING_A → (approve) PENDING_B if sampled else FINALIZED
PENDING_A → (reject)  REJECTED
PENDING_B → (approve) PENDING_C
PENDING_B → (reject)  PENDING_A   notes required
PENDING_C → (approve) FINALIZED
PENDING_C → (reject)  PENDING_A   notes required

Terminal states (FINALIZED, REJECTED) have no outgoing transitions.
Deterministic — no I/O.
"""

from dataclasses import dataclass

from src.models.common import ReviewAction, ReviewStatus


@dataclass(frozen=True)
class Transition:
    """One row of the table.

    ``sampled_target`` is set only where the sampling decision picks the
    destination; ``target`` is then the non-sampled destination.
    """

    source: ReviewStatus
    action: ReviewAction
    target: ReviewStatus
    sampled_target: ReviewStatus | None = None
    notes_required: bool = False

    @property
    def needs_sampling(self) -> bool:
        return self.sampled_target is not None

    def resolve(self, *, sampled: bool | None) -> ReviewStatus:
        if self.sampled_target is not None and sampled:
            return self.sampled_target
        return self.target


REVIEW_TRANSITIONS: dict[tuple[ReviewStatus, ReviewAction], Transition] = {
    (t.source, t.action): t
    for t in (
        Transition(
            ReviewStatus.PENDING_A, ReviewAction.APPROVE,
            target=ReviewStatus.FINALIZED, sampled_target=ReviewStatus.PENDING_B,
        ),
        Transition(ReviewStatus.PENDING_A, ReviewAction.REJECT, target=ReviewStatus.REJECTED),
        Transition(ReviewStatus.PENDING_B, ReviewAction.APPROVE, target=ReviewStatus.PENDING_C),
        Transition(
            ReviewStatus.PENDING_B, ReviewAction.REJECT,
            target=ReviewStatus.PENDING_A, notes_required=True,
        ),
        Transition(ReviewStatus.PENDING_C, ReviewAction.APPROVE, target=ReviewStatus.FINALIZED),
        Transition(
            ReviewStatus.PENDING_C, ReviewAction.REJECT,
            target=ReviewStatus.PENDING_A, notes_required=True,
        ),
    )
}


def find_transition(status: ReviewStatus, action: ReviewAction) -> Transition | None:
    """Look up the transition for ``action`` out of ``status``, if defined."""
    return REVIEW_TRANSITIONS.get((status, action))


def allowed_actions(status: ReviewStatus) -> list[ReviewAction]:
    """Actions defined out of ``status``, in table order."""
    return [action for (source, action) in REVIEW_TRANSITIONS if source == status]
