# migrations/env.py
from alembic import context

# (1) load .env before settings are read
try:
    from dotenv import load_dotenv
    load_dotenv()
except ImportError:
    pass

from storefront.core.config import settings  # noqa: E402
from storefront.db.base import Base  # noqa: E402
from storefront.db.session import make_engine, normalize_url  # noqa: E402
import storefront.models  # noqa: E402,F401  registers tables

config = context.config

# (2) Alembic uses the application's DATABASE_URL
db_url = normalize_url(settings.DATABASE_URL)
config.set_main_option("sqlalchemy.url", db_url)

target_metadata = Base.metadata

def run_migrations_offline():
    url = config.get_main_option("sqlalchemy.url")
    context.configure(url=url, target_metadata=target_metadata, literal_binds=True)
    with context.begin_transaction():
        context.run_migrations()

def run_migrations_online():
    connectable = make_engine(db_url)
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=connection.dialect.name == "sqlite",
        )
        with context.begin_transaction():
            context.run_migrations()
    connectable.dispose()

if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
