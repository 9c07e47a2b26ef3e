# ==============================================================================
# SWEET SHOP - Inventory management API
# ==============================================================================
# STRUCTURE:
# ├── main.py            → Flask app factory, routes, error handlers
# ├── app_container.py   → Dependency wiring (stores + services)
# ├── access_control.py  → Bearer authentication and admin gate
# ├── validators.py      → Request validation
# ├── services/          → Business logic (auth, catalog, stock)
# ├── repositories/      → Persistence (JSON files, SQLite)
# ├── models/            → Dataclass entities
# ├── config.py          → SWEETSHOP_* environment settings
# ├── logger.py          → Logging handlers
# ├── performance_logger.py → Request and function timings
# └── seed.py            → Sample catalog and CLI commands
# ==============================================================================

__version__ = '1.0.0'
