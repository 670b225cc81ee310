"""
Pauline Devotional - Core Package

A personal devotional companion that walks a reader through the Pauline
epistles two chapters a day, generates study material for each reading,
and keeps the reader's progress and reflections on-device.

DESIGN PRINCIPLES:
1. The reading plan is a pure function of the day number
2. Identity is passed explicitly, never read from ambient state
3. Archives never carry image payloads
4. Generated content is disposable, archived reflections are not
5. Storage backend is swappable
"""

__version__ = "1.0.0"
__author__ = "Pauline Devotional Team"
