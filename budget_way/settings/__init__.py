"""Step and milestone catalogues for the Budget Way engine.

Catalogues are stored as JSON files so titles, icons and milestone
thresholds can be adjusted without code changes.
"""

from .loader import clear_settings_cache, get_setting, load_settings, get_budget_way_settings

__all__ = ['clear_settings_cache', 'get_setting', 'load_settings', 'get_budget_way_settings']
