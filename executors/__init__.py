"""
Executors package - option matching, element lookup and form navigation
"""
from .option_matcher import match_option, label_matches
from .element_resolver import ElementResolver
from .cascading_selector import CascadingSelector
from .form_navigator import FormNavigator, NavigatorState

__all__ = [
    'match_option',
    'label_matches',
    'ElementResolver',
    'CascadingSelector',
    'FormNavigator',
    'NavigatorState'
]
