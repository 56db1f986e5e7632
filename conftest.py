"""
Pytest configuration. Dev server uses in-memory SQLite and an in-memory signing key so tests
don't touch the filesystem; set before any soj_dev_server import.
"""
import os

# In-memory SQLite; database.py uses StaticPool so all connections share the same DB
os.environ["SOJ_DEV_DATABASE_URL"] = "sqlite:///:memory:"
os.environ["SOJ_DEV_SIGNING_KEY_PATH"] = ""
# Avoid seed_from_env picking up a developer's seed user
for _name in ("SOJ_DEV_SEED_USER", "SOJ_DEV_SEED_PASSWORD", "SOJ_DEV_SEED_ROLE"):
    os.environ.pop(_name, None)
# Client: never persist credentials to disk during tests
os.environ.pop("SOJ_STORAGE_PATH", None)
