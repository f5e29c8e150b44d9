"""Who may edit a feedback item.

Only the update path consults this policy. Archive, reopen, delete, vote
and comment are open to any authenticated caller.
"""

from agora.feedback.schemas import Feedback
from agora.users.schemas import User


def can_update(feedback: Feedback, user: User) -> bool:
    """Admins may edit anything; everyone else only their own items.

    Unattributed feedback (no author) is editable by admins only.
    """
    if user.role.is_admin:
        return True
    return feedback.author_id is not None and feedback.author_id == user.id
