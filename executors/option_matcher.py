"""
Option matching for dropdowns whose labels drift between page variants.
"""
from typing import Iterable, Optional

from core.models import OptionDescriptor
from utils.helpers import collapse_whitespace, normalize_text


def match_option(options: Iterable[OptionDescriptor], desired_label: str) -> Optional[OptionDescriptor]:
    """
    Pick the option whose visible label best matches `desired_label`.

    1. First option (in list order) whose trimmed, lower-cased label contains
       the desired text. When several contain it, the first one wins; this is
       part of the contract and callers order their option lists accordingly.
    2. Only if nothing contains it: first option whose label equals the desired
       text once internal whitespace runs are collapsed on both sides.

    An empty desired label matches nothing.
    """
    wanted = normalize_text(desired_label)
    if not wanted:
        return None

    options = list(options)
    for option in options:
        if wanted in normalize_text(option.label):
            return option

    wanted_collapsed = collapse_whitespace(desired_label)
    for option in options:
        if collapse_whitespace(option.label) == wanted_collapsed:
            return option

    return None


def label_matches(label: Optional[str], desired_label: str) -> bool:
    """True when a single label would be picked for `desired_label`."""
    return match_option([OptionDescriptor(value="", label=label or "")], desired_label) is not None
