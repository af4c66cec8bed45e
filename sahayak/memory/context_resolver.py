"""Recovery of the implicit subject for continuation messages.

Resolution rules:
    - Runs only for continuation requests from an identified user with an
      existing conversation id; otherwise returns the inputs unchanged.
    - The last stored user turn, when present, becomes the effective message.
    - The last stored assistant turn fills `previous_answer` only when the caller
      did not supply one.

Failure handling:
    Missing turns are not errors. Store exceptions propagate to the caller.

Side effects:
    Read-only store access, run in a worker thread because store
    implementations may block.
"""

import asyncio
from dataclasses import dataclass

from sahayak.memory.conversation_store import ConversationStore


@dataclass(frozen=True)
class ResolvedContext:
    effective_message: str
    previous_answer: str
    recovered_subject: bool = False
    recovered_answer: bool = False


async def resolve_context(
    store: ConversationStore | None,
    message: str,
    previous_answer: str = "",
    identity: str | None = None,
    conversation_id: str | None = None,
    is_continuation: bool = False,
) -> ResolvedContext:
    """Return the effective message and previous answer for one request."""
    previous_answer = (previous_answer or "").strip()

    if not (is_continuation and store is not None and identity and conversation_id):
        return ResolvedContext(effective_message=message, previous_answer=previous_answer)

    effective_message = message
    recovered_subject = False
    recovered_answer = False

    last_user = await asyncio.to_thread(store.get_last_user_message, identity, conversation_id)
    if last_user and last_user.strip():
        effective_message = last_user.strip()
        recovered_subject = True

    if not previous_answer:
        last_assistant = await asyncio.to_thread(
            store.get_last_assistant_message, identity, conversation_id
        )
        if last_assistant and last_assistant.strip():
            previous_answer = last_assistant.strip()
            recovered_answer = True

    return ResolvedContext(
        effective_message=effective_message,
        previous_answer=previous_answer,
        recovered_subject=recovered_subject,
        recovered_answer=recovered_answer,
    )
