"""Deal pipeline module -- models, schemas, stages, validation, filtering, cascade delete.

Provides SQLAlchemy models (Organization, Account, Deal), Pydantic schemas
(records, commands, pipeline views), the stage adjacency table, the boundary
validators, the pure filter/aggregation engine, DealRepository for async
CRUD, and CascadeDeleter for transactional organization removal.
"""
