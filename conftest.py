"""Root pytest configuration for tripbook."""

import os

# The app lifespan opens storage from get_settings(); keep it in memory so
# API tests never create tripbook.db
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
