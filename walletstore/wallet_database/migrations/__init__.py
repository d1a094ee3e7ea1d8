from . import migration_0001_create_database
from . import migration_0002_tokens
