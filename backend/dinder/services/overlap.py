from typing import Any, Dict, Iterable, List, Optional

from dinder.models import OverlapResult
from dinder.repositories import options as option_repo
from dinder.repositories import participants as participant_repo
from dinder.repositories import results as results_repo
from dinder.repositories import selections as selection_repo


def calculate_overlap(code: str) -> OverlapResult:
    """Intersect every participant's selections.

    A lone participant's own picks are the overlap. Ids are mapped to the
    session's cached catalog records; ids that no longer resolve are dropped.
    """
    participant_ids = participant_repo.list_ids(code)
    if not participant_ids:
        return OverlapResult()

    if len(participant_ids) == 1:
        overlap_ids = selection_repo.get(code, participant_ids[0])
    else:
        overlap_ids = selection_repo.intersect(code, participant_ids)

    overlapping_options = option_repo.resolve(code, sorted(overlap_ids))

    all_selections: Dict[str, List[str]] = {}
    for participant in participant_repo.list_for_session(code):
        name = participant.display_name
        suffix = 2
        while name in all_selections:
            name = f"{participant.display_name} ({suffix})"
            suffix += 1
        all_selections[name] = sorted(selection_repo.get(code, participant.participant_id))

    return OverlapResult(
        overlapping_options=overlapping_options,
        all_selections=all_selections,
        has_overlap=bool(overlapping_options),
    )


def store_results(code: str, overlap_ids: Iterable[str]) -> None:
    results_repo.store(code, overlap_ids)


def get_results(code: str) -> Optional[List[Dict[str, Any]]]:
    """Stored overlap as catalog records; None when not computed yet."""
    ids = results_repo.get(code)
    if ids is None:
        return None
    return option_repo.resolve(code, ids)
