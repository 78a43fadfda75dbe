"""
Tag mutations.

The coordinator computes each entity's new tag list and hands it to the
store. It is intentionally explicit and linear so that:

    • writes happen strictly one entity at a time, in caller order
    • a failing write aborts the rest of the batch and propagates unchanged
    • an empty result is always persisted as "unset", never as []

There is no rollback: if the write for entity N fails, entities 1..N-1 keep
their new tags and N+1.. are never touched.
"""

from typing import List, Optional, Sequence

from tagger.engine.normalizer import dedupe
from tagger.types import Entity, TagOperation, TagStoreInterface


# ---------------------------------------------------------------------------
# Pure set computation
# ---------------------------------------------------------------------------
def compute_tags(existing: Sequence[str], operation: TagOperation, tags: Sequence[str]) -> List[str]:
    """
    Return the tag list an entity should carry after an operation.

    Order is preserved for display: existing tags first, new ones appended.
    """
    if operation is TagOperation.CLEAR:
        return []

    if operation is TagOperation.SET:
        return dedupe(list(tags))

    if operation is TagOperation.ADD:
        return dedupe(list(existing) + list(tags))

    if operation is TagOperation.REMOVE:
        removed = set(tags)
        return dedupe([tag for tag in existing if tag not in removed])

    # TOGGLE: keep what is not toggled, add what was not already there
    toggled = set(tags)
    present = set(existing)
    kept = [tag for tag in existing if tag not in toggled]
    added = [tag for tag in tags if tag not in present]
    return dedupe(kept + added)


def read_tags(store: TagStoreInterface, entity: Entity) -> List[str]:
    return list(store.read_flag(entity) or [])


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------
async def write_resolved_tags(entity: Entity, tags: Optional[Sequence[str]], store: TagStoreInterface) -> None:
    """Persist a final tag list; None or an empty list unsets the flag."""
    if not tags:
        await store.clear_flag(entity)
        return
    await store.write_flag(entity, list(tags))


async def update_tags(
    entities: Sequence[Entity],
    operation: TagOperation,
    tags: Sequence[str],
    store: TagStoreInterface,
) -> None:
    """
    Apply one operation to every entity, sequentially.

    Args:
        entities:
            Resolved entity handles.
        operation:
            SET, ADD, REMOVE, TOGGLE, or CLEAR. CLEAR ignores tags.
        tags:
            Canonical, literal tags (already normalized).
        store:
            The host adapter receiving the writes.

    Raises:
        StorageFailure (or whatever the store raises), unchanged, on the
        first failing write.
    """
    for entity in entities:
        if operation is TagOperation.CLEAR:
            await store.clear_flag(entity)
            continue

        new_tags = compute_tags(read_tags(store, entity), operation, tags)
        await write_resolved_tags(entity, new_tags, store)
