"""Catalog of options a group can choose from.

The restaurant search itself is an external collaborator; anything that
exposes ``list_options()`` returning ``{'optionId', 'name', ...}`` records can
be plugged in through the ``CATALOG_PROVIDER`` config key. The list is fetched
once when a session is created and cached per session in the store.
"""

from typing import Any, Dict, Iterable, List, Optional

from flask import current_app

DINNER_OPTIONS: List[Dict[str, Any]] = [
    {'optionId': 'pizza-palace', 'name': 'Pizza Palace', 'description': 'Italian cuisine, delivery available'},
    {'optionId': 'sushi-spot', 'name': 'Sushi Spot', 'description': 'Japanese cuisine, dine-in and takeout'},
    {'optionId': 'thai-kitchen', 'name': 'Thai Kitchen', 'description': 'Authentic Thai cuisine'},
    {'optionId': 'mexican-grill', 'name': 'Mexican Grill', 'description': 'Tex-Mex favorites and margaritas'},
    {'optionId': 'indian-curry', 'name': 'Indian Curry House', 'description': 'Traditional Indian curries and naan'},
    {'optionId': 'burger-joint', 'name': 'Burger Joint', 'description': 'Classic American burgers and fries'},
    {'optionId': 'chinese-garden', 'name': 'Chinese Garden', 'description': 'Cantonese and Szechuan dishes'},
    {'optionId': 'steakhouse', 'name': 'The Steakhouse', 'description': 'Premium cuts and wine selection'},
    {'optionId': 'vegan-cafe', 'name': 'Vegan Cafe', 'description': 'Plant-based meals and smoothies'},
    {'optionId': 'ramen-bar', 'name': 'Ramen Bar', 'description': 'Authentic Japanese ramen bowls'},
    {'optionId': 'greek-taverna', 'name': 'Greek Taverna', 'description': 'Mediterranean classics and mezze'},
    {'optionId': 'bbq-shack', 'name': 'BBQ Shack', 'description': 'Smoked meats and southern sides'},
    {'optionId': 'seafood-market', 'name': 'Seafood Market', 'description': 'Fresh catch and oyster bar'},
    {'optionId': 'french-bistro', 'name': 'French Bistro', 'description': 'Classic French cuisine'},
    {'optionId': 'korean-bbq', 'name': 'Korean BBQ', 'description': 'Table-top grilling experience'},
]


def validate_catalog(options: Iterable[Dict[str, Any]]) -> None:
    """Raise ValueError when option ids are missing or duplicated."""
    seen = set()
    duplicates = []
    for opt in options:
        option_id = opt.get('optionId')
        if not option_id:
            raise ValueError(f"Catalog option without optionId: {opt!r}")
        if option_id in seen:
            duplicates.append(option_id)
        seen.add(option_id)
    if duplicates:
        raise ValueError(f"Duplicate optionIds in catalog: {', '.join(duplicates)}")


class StaticCatalog:
    """Serves a fixed option list."""

    def __init__(self, options: Optional[List[Dict[str, Any]]] = None):
        self._options = list(DINNER_OPTIONS if options is None else options)
        validate_catalog(self._options)

    def list_options(self) -> List[Dict[str, Any]]:
        return [dict(opt) for opt in self._options]


def get_catalog():
    return current_app.extensions['catalog']
