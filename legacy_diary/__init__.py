"""Digital Legacy Diary - journaling, wills and legacy transfer to trusted contacts"""

from __future__ import annotations

__version__ = "1.0.0"
