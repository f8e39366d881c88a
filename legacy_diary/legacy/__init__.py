"""
Legacy module - dead man's switch and heir-facing legacy access.

Import legacy_diary.legacy.switch and legacy_diary.legacy.access directly.
"""
