"""
Compendium: notes, appointments and goals for one user.

Keeps the working set in memory, caches it locally and syncs it
as a single snapshot to a Supabase backend:
- Domain store with synchronous CRUD
- Local key/value cache
- Whole-snapshot remote load/save keyed by user id
"""

__version__ = "0.1.0"
