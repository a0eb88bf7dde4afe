from typing import Iterable

from dinder.errors import AlreadySubmitted, InvalidOptions
from dinder.repositories import options as option_repo
from dinder.repositories import participants as participant_repo
from dinder.repositories import selections as selection_repo


def submit_selections(code: str, participant_id: str, option_ids: Iterable[str]) -> None:
    """Store a participant's picks once.

    Every id must be in the session's cached catalog. A participant who
    already has a non-empty selection is rejected; there is no overwrite.
    """
    ids = list(dict.fromkeys(option_ids))
    if not ids:
        raise InvalidOptions('Select at least one option')
    known = option_repo.option_ids(code)
    if any(option_id not in known for option_id in ids):
        raise InvalidOptions()
    if not selection_repo.add_if_absent(code, participant_id, ids):
        raise AlreadySubmitted()


def get_submitted_count(code: str) -> int:
    return selection_repo.count_submitted(code, participant_repo.list_ids(code))


def clear_selections(code: str) -> None:
    selection_repo.clear_all(code, participant_repo.list_ids(code))
