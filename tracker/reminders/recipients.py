# tracker/reminders/recipients.py

from dataclasses import dataclass
from typing import FrozenSet, Optional

from tracker.reminders.models import Reminder


@dataclass(frozen=True)
class Recipients:
    emails: FrozenSet[str]
    task_name: Optional[str] = None

    @property
    def deliverable(self) -> bool:
        return bool(self.emails)


def resolve_recipients(repository, reminder: Reminder) -> Recipients:
    """
    Turns a reminder into the set of addresses to notify.

    1. task row (name, creator)
    2. distinct assignees of the task
    3. narrowed to reminder.recipient_user_ids when that list is non-empty
       (never widened: a listed user who is not assigned is ignored)
    4. their profile emails, deduplicated
    5. if nothing is left, the task creator (or the reminder's creator) as fallback

    Store errors propagate (RepositoryError); the caller decides what a failure means for the batch.
    An empty result is valid and means there is nobody to notify.
    """
    task = repository.get_task(reminder.task_id)
    task_name = task.name if task and task.name else None

    assignee_ids = repository.list_assignee_ids(reminder.task_id)
    if reminder.recipient_user_ids:
        allow = set(reminder.recipient_user_ids)
        assignee_ids = [uid for uid in assignee_ids if uid in allow]

    emails = set()
    if assignee_ids:
        emails.update(e for e in repository.get_profile_emails(assignee_ids) if e)

    if not emails:
        creator_id = (task.created_by if task else None) or reminder.created_by
        if creator_id:
            email = repository.get_profile_email(creator_id)
            if email:
                emails.add(email)

    return Recipients(emails=frozenset(emails), task_name=task_name)
