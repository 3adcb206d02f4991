"""Conflict reconciliation for profile imports.

Given the existing profile collection and an incoming one, produce the
list of profiles to add. Incoming profiles whose id is not present in
the existing collection pass through unchanged. For every colliding id a
decision source is asked, one conflict at a time and in input order,
how to resolve it.

Nothing here touches the filesystem. If the decision source cancels,
``ImportCancelledError`` propagates and no partial result escapes.
"""

import logging
import uuid
from collections.abc import Awaitable, Callable, Collection, Iterable, Sequence

from hwprofiles.errors import ImportCancelledError
from hwprofiles.store.schema import ProfileSchema
from hwprofiles.types import ConflictAction, ConflictDecision

logger = logging.getLogger(__name__)

DecisionResult = ConflictDecision | ConflictAction | str | None
DecisionSource = Callable[[ProfileSchema, ProfileSchema], DecisionResult]
AsyncDecisionSource = Callable[
    [ProfileSchema, ProfileSchema], Awaitable[DecisionResult]
]
IdFactory = Callable[[Collection[str]], str]

MAX_ID_ATTEMPTS = 100


def generate_profile_id(taken: Collection[str]) -> str:
    """Return a random profile id not contained in ``taken``."""
    while True:
        candidate = uuid.uuid4().hex
        if candidate not in taken:
            return candidate


def _normalize_decision(result: DecisionResult) -> ConflictDecision:
    if result is None:
        raise ImportCancelledError("Conflict decision was dismissed")
    if isinstance(result, ConflictDecision):
        return result
    return ConflictDecision(ConflictAction(result))


class _Merge:
    """Accumulates the result of a single reconciliation run."""

    def __init__(
        self,
        existing: Sequence[ProfileSchema],
        incoming: Sequence[ProfileSchema],
        id_factory: IdFactory | None,
    ) -> None:
        self.existing_by_id: dict[str, ProfileSchema] = {}
        for profile in existing:
            self.existing_by_id.setdefault(profile.id, profile)
        self.taken: set[str] = set(self.existing_by_id)
        self.taken.update(profile.id for profile in incoming)
        self.id_factory = id_factory or generate_profile_id
        self.result: list[ProfileSchema] = []
        # result index of each id already claimed by keepNew in this run
        self.kept_new: dict[str, int] = {}

    def conflict_for(self, profile: ProfileSchema) -> ProfileSchema | None:
        return self.existing_by_id.get(profile.id)

    def fresh_id(self) -> str:
        for _ in range(MAX_ID_ATTEMPTS):
            candidate = self.id_factory(frozenset(self.taken))
            if candidate and candidate not in self.taken:
                self.taken.add(candidate)
                return candidate
        raise RuntimeError(
            f"Could not generate a unique profile id after {MAX_ID_ATTEMPTS} attempts"
        )

    def pass_through(self, profile: ProfileSchema) -> None:
        self.result.append(profile.model_copy(deep=True))

    def apply(self, profile: ProfileSchema, decision: ConflictDecision) -> None:
        action = decision.action
        logger.debug(
            "Conflict on profile id %s resolved with %s", profile.id, action.value
        )
        if action is ConflictAction.KEEP_OLD:
            return
        if action is ConflictAction.KEEP_NEW:
            if profile.id in self.kept_new:
                logger.warning(
                    "Profile id %s replaced more than once, keeping the last one",
                    profile.id,
                )
                self.result[self.kept_new[profile.id]] = profile.model_copy(deep=True)
                return
            self.kept_new[profile.id] = len(self.result)
            self.result.append(profile.model_copy(deep=True))
        elif action is ConflictAction.KEEP_BOTH:
            self.result.append(_rebuild(profile, id=self.fresh_id()))
        elif action is ConflictAction.NEW_NAME:
            self.result.append(
                _rebuild(profile, id=self.fresh_id(), name=decision.new_name)
            )


def _rebuild(profile: ProfileSchema, **changes: str | None) -> ProfileSchema:
    """Copy ``profile`` with ``changes`` applied, validating the result.

    Raises:
        pydantic.ValidationError: If a changed value breaks a field constraint.
    """
    return ProfileSchema.model_validate({**profile.to_document(), **changes})


def reconcile_profiles(
    existing: Sequence[ProfileSchema],
    incoming: Sequence[ProfileSchema],
    decide: DecisionSource,
    *,
    id_factory: IdFactory | None = None,
) -> list[ProfileSchema]:
    """Resolve id collisions between an existing and an incoming collection.

    Args:
        existing: Current profile collection. Not modified.
        incoming: Decoded import collection. Not modified.
        decide: Called once per colliding id with ``(existing, incoming)``
            profiles. Returns a ``ConflictDecision`` or, for actions that
            take no name, a bare ``ConflictAction``. Returning ``None`` or
            raising ``ImportCancelledError`` cancels the import.
        id_factory: Optional generator for fresh ids, given the ids
            already taken.

    Returns:
        Profiles to add, in input order. A profile that kept its colliding
        id (``keepNew``) is meant to replace the existing entry on commit;
        see ``merge_into_existing``. When several incoming profiles take
        ``keepNew`` for the same id, the last one wins and holds the slot
        of the first, so ids kept this way stay unique in the result.

    Raises:
        ImportCancelledError: If the decision source cancels.
        pydantic.ValidationError: If a ``newName`` replacement name is not
            a valid profile name.
    """
    merge = _Merge(existing, incoming, id_factory)
    for profile in incoming:
        current = merge.conflict_for(profile)
        if current is None:
            merge.pass_through(profile)
            continue
        decision = _normalize_decision(decide(current, profile))
        merge.apply(profile, decision)
    logger.info(
        "Reconciled %d incoming profile(s) into %d to import",
        len(incoming),
        len(merge.result),
    )
    return merge.result


async def reconcile_profiles_async(
    existing: Sequence[ProfileSchema],
    incoming: Sequence[ProfileSchema],
    decide: AsyncDecisionSource,
    *,
    id_factory: IdFactory | None = None,
) -> list[ProfileSchema]:
    """Asynchronous variant of ``reconcile_profiles``.

    Each decision is awaited before the next conflict is looked at. Task
    cancellation (``asyncio.CancelledError``) while waiting on a decision
    propagates like ``ImportCancelledError``: no result is returned.
    """
    merge = _Merge(existing, incoming, id_factory)
    for profile in incoming:
        current = merge.conflict_for(profile)
        if current is None:
            merge.pass_through(profile)
            continue
        decision = _normalize_decision(await decide(current, profile))
        merge.apply(profile, decision)
    logger.info(
        "Reconciled %d incoming profile(s) into %d to import",
        len(incoming),
        len(merge.result),
    )
    return merge.result


def merge_into_existing(
    existing: Iterable[ProfileSchema],
    reconciled: Sequence[ProfileSchema],
) -> list[ProfileSchema]:
    """Commit reconciled profiles onto the existing collection.

    A reconciled profile whose id matches an existing entry replaces that
    entry in place; the rest are appended in order.

    Returns:
        A new list; neither input is modified.
    """
    replacements = {profile.id: profile for profile in reconciled}
    merged: list[ProfileSchema] = []
    replaced: set[str] = set()
    for profile in existing:
        if profile.id in replacements and profile.id not in replaced:
            merged.append(replacements[profile.id])
            replaced.add(profile.id)
        else:
            merged.append(profile)
    merged.extend(profile for profile in reconciled if profile.id not in replaced)
    return merged


__all__ = [
    "AsyncDecisionSource",
    "DecisionSource",
    "generate_profile_id",
    "merge_into_existing",
    "reconcile_profiles",
    "reconcile_profiles_async",
]
