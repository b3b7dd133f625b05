"""
moviemail: watch a roster of directors on TMDb and mail out their new films.

Library code lives here; the runnable entrypoint is `scripts/moviemail_sync.py`,
which imports from `moviemail` rather than the other way around.
"""
